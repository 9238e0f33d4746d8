import json
from pathlib import Path

from lsprotocol import types
from pygls.workspace import Workspace

from avi_ls.config import CONFIG_FILENAME
from avi_ls.server import AviLanguageServer, create_server, on_completion, on_completion_resolve, on_initialize


def _server_with_doc(source: str, uri: str = "file:///integration.avi", root: Path = Path(".")) -> AviLanguageServer:
    server = AviLanguageServer()
    server.load_workspace(root)
    server.protocol._workspace = Workspace(None, sync_kind=types.TextDocumentSyncKind.Incremental)
    server.protocol.workspace.put_text_document(types.TextDocumentItem(uri=uri, language_id="avi", version=1, text=source))
    return server


def _params(uri: str, line: int, character: int) -> types.CompletionParams:
    return types.CompletionParams(
        text_document=types.TextDocumentIdentifier(uri=uri),
        position=types.Position(line=line, character=character),
        context=None,
    )


def test_completion_round_trip_integration():
    code = "fn greet(name: str) {\n  \n}\nlet count = 0\n"
    uri = "file:///completion.avi"
    server = _server_with_doc(code, uri)

    items = on_completion(server, _params(uri, 1, 2))
    labels = [item.label for item in items]

    assert labels.index("print") < labels.index("greet") < labels.index("count") < labels.index("name")
    greet = next(item for item in items if item.label == "greet")
    assert greet.insert_text == "greet(name: ${1:name})"


def test_completion_unknown_document_returns_builtins_only():
    server = _server_with_doc("let x = 1", "file:///known.avi")

    items = on_completion(server, _params("file:///unknown.avi", 0, 0))

    assert len(items) == len(server.builtins)
    assert "x" not in {item.label for item in items}


def test_resolve_round_trip_integration():
    server = _server_with_doc("")
    items = on_completion(server, _params("file:///integration.avi", 0, 0))
    push = next(item for item in items if item.label == "push")

    resolved = on_completion_resolve(server, push)

    assert resolved.documentation is not None
    assert "item" in resolved.documentation.value
    assert resolved.insert_text == "push(list: ${1:list}, item: ${2:item})"


def test_workspace_config_controls_completion(tmp_path: Path):
    (tmp_path / "extra.json").write_text(json.dumps([{"label": "sqrt", "kind": "Function", "detail": "(x: float)"}]))
    (tmp_path / CONFIG_FILENAME).write_text(
        json.dumps({"builtinFiles": ["extra.json"], "completion": {"snippets": False}})
    )
    uri = "file:///configured.avi"
    server = _server_with_doc("", uri, root=tmp_path)

    items = on_completion(server, _params(uri, 0, 0))

    assert "sqrt" in {item.label for item in items}
    assert all(item.insert_text is None for item in items)


def test_create_server_registers_completion_features():
    server = create_server()
    features = server.protocol.fm.features
    assert types.TEXT_DOCUMENT_COMPLETION in features
    assert types.COMPLETION_ITEM_RESOLVE in features


def test_initialize_loads_config_from_client_root(tmp_path: Path):
    (tmp_path / CONFIG_FILENAME).write_text(json.dumps({"completion": {"snippets": False}}))
    server = AviLanguageServer()
    params = types.InitializeParams(capabilities=types.ClientCapabilities(), root_uri=tmp_path.as_uri())

    on_initialize(server, params)

    assert server.config.workspace_root == tmp_path
    assert server.config.completion.snippets is False


def test_initialize_shows_each_config_warning(tmp_path: Path, monkeypatch):
    (tmp_path / CONFIG_FILENAME).write_text(
        json.dumps({"builtinFiles": ["missing.json"], "completion": {"snippets": "no"}})
    )
    server = AviLanguageServer()
    shown: list[types.ShowMessageParams] = []
    monkeypatch.setattr(server, "window_show_message", shown.append)
    params = types.InitializeParams(capabilities=types.ClientCapabilities(), root_path=str(tmp_path))

    on_initialize(server, params)

    assert len(shown) == 2
    assert all(message.type == types.MessageType.Warning for message in shown)
    assert any("missing.json" in message.message for message in shown)
    assert any("completion.snippets" in message.message for message in shown)


def test_completion_position_uses_client_utf16_columns():
    line = 'let a = "\U0001F600";fn f(x: int) {'
    uri = "file:///emoji.avi"
    server = _server_with_doc(line, uri)
    # The emoji is two UTF-16 units, so client columns run one ahead of code points.
    brace = line.index("{") + 1

    before_brace = {item.label for item in on_completion(server, _params(uri, 0, brace))}
    after_brace = {item.label for item in on_completion(server, _params(uri, 0, brace + 1))}

    assert "x" not in before_brace
    assert "x" in after_brace
