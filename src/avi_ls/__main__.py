from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Iterable

from lsprotocol import types

from .builtins import load_builtin_table
from .completions import completion_items
from .config import CONFIG_FILENAME, load_config
from .server import create_server


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Completion language server for Avi source files")
    parser.add_argument("--tcp", action="store_true", help="Serve editors over TCP instead of stdin/stdout")
    parser.add_argument("--host", default="127.0.0.1", help="Address to bind with --tcp")
    parser.add_argument("--port", type=int, default=2087, help="Port to bind with --tcp")
    parser.add_argument("--stdio", action="store_true", help="No-op; editors launching avi-ls may pass it")
    parser.add_argument("--log-level", default="WARNING", help="Verbosity of avi-ls logs on stderr")
    parser.add_argument("--complete", metavar="FILE", help="List the suggestions for an .avi file and exit")
    parser.add_argument("--line", type=int, default=None, help="Zero-based cursor line for --complete")
    parser.add_argument("--character", type=int, default=0, help="Zero-based cursor column for --complete")
    args = parser.parse_args(argv)

    if args.line is not None and args.line < 0:
        parser.error("--line must not be negative")
    if args.character < 0:
        parser.error("--character must not be negative")

    _configure_logging(args.log_level)

    if args.complete:
        if args.tcp:
            parser.error("--complete cannot be combined with --tcp")
        sys.exit(_run_completion(Path(args.complete), args.line, args.character))

    server = create_server()
    if args.tcp:
        server.start_tcp(args.host, args.port)
    else:
        server.start_io()


def _configure_logging(level: str) -> None:
    numeric = logging.getLevelName(level.upper())
    logging.basicConfig(
        level=numeric if isinstance(numeric, int) else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _run_completion(path: Path, line: int | None, character: int) -> int:
    if not path.exists():
        print(f"File not found: {path}", file=sys.stderr)
        return 2

    workspace_root = _discover_workspace_root(path)
    log = logging.getLogger(__name__)
    log.info("Completing %s (workspace root: %s)", path, workspace_root)

    config, warnings = load_config(workspace_root)
    table, table_warnings = load_builtin_table(config.builtin_files)
    for warning in [*warnings, *table_warnings]:
        log.warning(warning)

    source = path.read_text()
    position = types.Position(line=line, character=character) if line is not None else None
    items = completion_items(
        table,
        source,
        position,
        snippets=config.completion.snippets,
        scope=config.completion.scope_suggestions,
    )
    _print_items(items)
    return 0


def _discover_workspace_root(source: Path) -> Path:
    """Nearest ancestor holding an .avi-ls.json, else the file's own folder."""
    start = source.parent if source.is_file() else source
    configured = (folder for folder in (start, *start.parents) if (folder / CONFIG_FILENAME).is_file())
    return next(configured, start)


def _print_items(items: Iterable[types.CompletionItem]) -> None:
    for item in items:
        kind = _kind_label(item.kind)
        insert = item.insert_text or item.label
        print(f"{item.label}\t{kind}\t{insert}")


def _kind_label(kind: types.CompletionItemKind | None) -> str:
    if kind is None:
        return "text"
    try:
        return types.CompletionItemKind(kind).name.lower()
    except ValueError:
        return str(kind).lower()


if __name__ == "__main__":
    main()
