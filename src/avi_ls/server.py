from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from lsprotocol import types
from pygls.lsp.server import LanguageServer
from pygls.uris import to_fs_path

from . import __version__
from .builtins import DEFAULT_TABLE, BuiltinTable, load_builtin_table
from .completions import completion_items, resolve_completion
from .config import AviLSConfig, load_config

log = logging.getLogger(__name__)


class AviLanguageServer(LanguageServer):
    def __init__(self) -> None:
        super().__init__(
            "avi-ls",
            __version__,
            text_document_sync_kind=types.TextDocumentSyncKind.Incremental,
        )
        self._config = AviLSConfig.default(Path.cwd())
        self._builtins: BuiltinTable = DEFAULT_TABLE

    @property
    def config(self) -> AviLSConfig:
        return self._config

    @property
    def builtins(self) -> BuiltinTable:
        return self._builtins

    def load_workspace(self, workspace_root: Path) -> List[str]:
        config, warnings = load_config(workspace_root)
        table, table_warnings = load_builtin_table(config.builtin_files)
        warnings = [*warnings, *table_warnings]
        for warning in warnings:
            log.warning(warning)
        self._config = config
        self._builtins = table
        log.info("Workspace loaded from %s (%d builtins)", workspace_root, len(table))
        return warnings

    def document_snapshot(self, uri: str, position: types.Position) -> tuple[str | None, types.Position]:
        """Document text and the cursor converted from client (UTF-16) units to code points."""
        document = self.workspace.text_documents.get(uri)
        if document is None:
            return None, position
        lines = document.lines
        return document.source, document.position_codec.position_from_client_units(lines, position)


def on_initialize(ls: AviLanguageServer, params: types.InitializeParams) -> None:
    root = _workspace_root(params)
    warnings = ls.load_workspace(root)
    for warning in warnings:
        ls.window_show_message(types.ShowMessageParams(type=types.MessageType.Warning, message=warning))


def on_initialized(ls: AviLanguageServer, params: types.InitializedParams) -> None:
    ls.window_show_message(types.ShowMessageParams(type=types.MessageType.Info, message="Avi language server is running"))


def on_completion(ls: AviLanguageServer, params: types.CompletionParams) -> List[types.CompletionItem]:
    text, position = ls.document_snapshot(params.text_document.uri, params.position)
    settings = ls.config.completion
    return completion_items(
        ls.builtins,
        text,
        position,
        snippets=settings.snippets,
        scope=settings.scope_suggestions,
    )


def on_completion_resolve(ls: AviLanguageServer, item: types.CompletionItem) -> types.CompletionItem:
    return resolve_completion(item, ls.builtins)


def create_server() -> AviLanguageServer:
    server = AviLanguageServer()
    server.feature(types.INITIALIZE)(on_initialize)
    server.feature(types.INITIALIZED)(on_initialized)
    server.feature(
        types.TEXT_DOCUMENT_COMPLETION,
        types.CompletionOptions(resolve_provider=True),
    )(on_completion)
    server.feature(types.COMPLETION_ITEM_RESOLVE)(on_completion_resolve)
    return server


def _workspace_root(params: types.InitializeParams) -> Path:
    if params.root_uri:
        path = to_fs_path(params.root_uri)
        if path:
            return Path(path)
    if params.root_path:
        return Path(params.root_path)
    return Path.cwd()
