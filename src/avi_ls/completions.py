from __future__ import annotations

import copy
import logging
from typing import List, Optional

from lsprotocol import types

from .builtins import BuiltinSymbol, BuiltinTable
from .extractor import RegexSymbolExtractor, SymbolExtractor
from .signatures import decode_label, extract_arg_names, make_snippet, parse_signature_args

log = logging.getLogger(__name__)

DEFAULT_EXTRACTOR: SymbolExtractor = RegexSymbolExtractor()


def builtin_completions(table: BuiltinTable, *, snippets: bool = True) -> List[types.CompletionItem]:
    return [_builtin_item(sym, snippets) for sym in table.entries]


def _builtin_item(sym: BuiltinSymbol, snippets: bool) -> types.CompletionItem:
    parts = decode_label(sym.label)
    item = types.CompletionItem(
        label=parts.base_label,
        kind=sym.kind,
        detail=sym.detail or None,
        data=sym.key,
    )
    if snippets and (sym.detail or parts.mandatory_args):
        item.insert_text = make_snippet(parts.base_label, parts.mandatory_args, parse_signature_args(sym.detail))
        item.insert_text_format = types.InsertTextFormat.Snippet
    return item


def current_file_completions(
    text: str,
    extractor: SymbolExtractor = DEFAULT_EXTRACTOR,
    *,
    snippets: bool = True,
) -> List[types.CompletionItem]:
    items: list[types.CompletionItem] = []
    for fn in extractor.extract_functions(text):
        item = types.CompletionItem(label=fn.name, kind=types.CompletionItemKind.Function, detail=fn.signature)
        if snippets:
            item.insert_text = make_snippet(fn.name, (), parse_signature_args(fn.signature))
            item.insert_text_format = types.InsertTextFormat.Snippet
        items.append(item)
    for name in extractor.extract_variables(text):
        items.append(types.CompletionItem(label=name, kind=types.CompletionItemKind.Variable))
    return items


def scope_completions(
    text: str,
    position: types.Position,
    extractor: SymbolExtractor = DEFAULT_EXTRACTOR,
) -> List[types.CompletionItem]:
    """Parameters of every function whose body contains the cursor."""
    offset = _offset_at(text, position.line, position.character)
    items: list[types.CompletionItem] = []
    for fn in extractor.enclosing_functions(text, offset):
        for name in extract_arg_names(fn.signature):
            items.append(
                types.CompletionItem(
                    label=name,
                    kind=types.CompletionItemKind.Variable,
                    detail=f"parameter of {fn.name}",
                )
            )
    return items


def completion_items(
    table: BuiltinTable,
    text: Optional[str] = None,
    position: Optional[types.Position] = None,
    *,
    extractor: SymbolExtractor = DEFAULT_EXTRACTOR,
    snippets: bool = True,
    scope: bool = True,
) -> List[types.CompletionItem]:
    """Builtins first, then current-file symbols, then cursor scope.

    Sources are not deduplicated against each other: a local function that
    shadows a builtin is listed twice.
    """
    items = builtin_completions(table, snippets=snippets)
    if text is None:
        return items
    items.extend(current_file_completions(text, extractor, snippets=snippets))
    if scope and position is not None:
        items.extend(scope_completions(text, position, extractor))
    log.debug("Produced %d completion item(s)", len(items))
    return items


def resolve_completion(item: types.CompletionItem, table: BuiltinTable) -> types.CompletionItem:
    sym = table.lookup(item.data)
    if sym is None or not sym.documentation:
        return item
    resolved = copy.copy(item)
    resolved.documentation = types.MarkupContent(kind=types.MarkupKind.Markdown, value=sym.documentation)
    return resolved


def _offset_at(text: str, line: int, character: int) -> int:
    lines = text.split("\n")
    if line < 0:
        return 0
    if line >= len(lines):
        return len(text)
    offset = sum(len(prior) + 1 for prior in lines[:line])
    return offset + max(0, min(character, len(lines[line])))
