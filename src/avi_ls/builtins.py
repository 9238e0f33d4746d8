from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from lsprotocol import types

from .signatures import decode_label

log = logging.getLogger(__name__)


class BuiltinTableError(ValueError):
    """Raised when a builtin table entry cannot be decoded."""


@dataclass(frozen=True)
class BuiltinSymbol:
    label: str
    kind: types.CompletionItemKind
    detail: Optional[str] = None
    documentation: Optional[str] = None

    @property
    def key(self) -> str:
        return correlation_key(self.label, self.kind)


def correlation_key(label: str, kind: types.CompletionItemKind) -> str:
    return f"{label}_{int(kind)}"


_F = types.CompletionItemKind.Function
_K = types.CompletionItemKind.Keyword
_C = types.CompletionItemKind.Constant

AVI_BUILTINS: Tuple[BuiltinSymbol, ...] = (
    BuiltinSymbol("print", _F, "(value: str)", "Write `value` to standard output."),
    BuiltinSymbol("println", _F, "(value: str)", "Write `value` followed by a newline."),
    BuiltinSymbol("input", _F, "(prompt: str)", "Read one line from standard input after showing `prompt`."),
    BuiltinSymbol("len", _F, "(value: any)", "Number of elements in a list or characters in a string."),
    BuiltinSymbol("str", _F, "(value: any)", "Convert `value` to its string form."),
    BuiltinSymbol("int", _F, "(value: any)", "Convert `value` to an integer."),
    BuiltinSymbol("range", _F, "(start: int, end: int)", "List of integers from `start` up to, not including, `end`."),
    BuiltinSymbol("push__list_item", _F, "(list: list, item: any)", "Append `item` to the end of `list`."),
    BuiltinSymbol("pop__list", _F, "(list: list)", "Remove and return the last element of `list`."),
    BuiltinSymbol("insert__list", _F, "(list: list, index: int, item: any)", "Insert `item` into `list` at `index`."),
    BuiltinSymbol("assert__condition", _F, "(condition: bool, message: str)", "Abort with `message` when `condition` is false."),
    BuiltinSymbol("fn", _K, None, "Declare a function: `fn name(arg: type) { ... }`."),
    BuiltinSymbol("let", _K, None, "Declare a variable: `let name = value`."),
    BuiltinSymbol("mut", _K, None, "Mark a binding or parameter as mutable."),
    BuiltinSymbol("const", _K, None, "Declare a constant binding."),
    BuiltinSymbol("if", _K),
    BuiltinSymbol("else", _K),
    BuiltinSymbol("while", _K),
    BuiltinSymbol("for", _K),
    BuiltinSymbol("return", _K),
    BuiltinSymbol("true", _C, None, "Boolean true."),
    BuiltinSymbol("false", _C, None, "Boolean false."),
    BuiltinSymbol("null", _C, None, "The absent value."),
)


class BuiltinTable:
    """Read-only view over builtin symbols indexed by correlation key."""

    def __init__(self, entries: Iterable[BuiltinSymbol]):
        self._entries: Tuple[BuiltinSymbol, ...] = tuple(entries)
        index: dict[str, BuiltinSymbol] = {}
        shown: dict[str, str] = {}
        for entry in self._entries:
            base_label = decode_label(entry.label).base_label
            previous = shown.setdefault(base_label, entry.label)
            if previous != entry.label:
                log.warning("Builtins %r and %r are both shown as %r", previous, entry.label, base_label)
            if entry.key in index:
                log.warning("Duplicate builtin %r; resolve will use the first definition", entry.label)
                continue
            index[entry.key] = entry
        self._index: Dict[str, BuiltinSymbol] = index

    @property
    def entries(self) -> Tuple[BuiltinSymbol, ...]:
        return self._entries

    def lookup(self, key: Any) -> Optional[BuiltinSymbol]:
        if not isinstance(key, str):
            return None
        return self._index.get(key)

    def extend(self, entries: Iterable[BuiltinSymbol]) -> "BuiltinTable":
        return BuiltinTable((*self._entries, *entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)


DEFAULT_TABLE = BuiltinTable(AVI_BUILTINS)


def builtin_from_data(data: Any) -> BuiltinSymbol:
    if not isinstance(data, dict):
        raise BuiltinTableError(f"expected an object, got {type(data).__name__}")
    label = data.get("label")
    if not isinstance(label, str) or not label:
        raise BuiltinTableError("missing 'label'")
    kind = _parse_kind(data.get("kind", "Function"), label)
    detail = data.get("detail")
    documentation = data.get("documentation")
    for field_name, value in (("detail", detail), ("documentation", documentation)):
        if value is not None and not isinstance(value, str):
            raise BuiltinTableError(f"{label}: '{field_name}' must be a string")
    return BuiltinSymbol(label=label, kind=kind, detail=detail, documentation=documentation)


def _parse_kind(raw: Any, label: str) -> types.CompletionItemKind:
    if isinstance(raw, bool):
        raise BuiltinTableError(f"{label}: invalid kind {raw!r}")
    if isinstance(raw, int):
        try:
            return types.CompletionItemKind(raw)
        except ValueError as exc:
            raise BuiltinTableError(f"{label}: unknown kind {raw!r}") from exc
    if isinstance(raw, str):
        try:
            return types.CompletionItemKind[raw]
        except KeyError as exc:
            raise BuiltinTableError(f"{label}: unknown kind {raw!r}") from exc
    raise BuiltinTableError(f"{label}: invalid kind {raw!r}")


def load_builtin_file(path: Path) -> tuple[List[BuiltinSymbol], List[str]]:
    """Read a JSON list of builtin entries, skipping the ones that fail to decode."""
    warnings: list[str] = []
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return [], [f"Builtin table not found: {path}"]
    except (OSError, json.JSONDecodeError) as exc:
        return [], [f"Failed to read builtin table {path}: {exc}"]

    if not isinstance(data, list):
        return [], [f"Builtin table {path} must be a JSON list"]

    symbols: list[BuiltinSymbol] = []
    for idx, entry in enumerate(data):
        try:
            symbols.append(builtin_from_data(entry))
        except BuiltinTableError as exc:
            warnings.append(f"{path} entry {idx}: {exc}")
    return symbols, warnings


def load_builtin_table(paths: Iterable[Path], base: BuiltinTable = DEFAULT_TABLE) -> tuple[BuiltinTable, List[str]]:
    extra: list[BuiltinSymbol] = []
    warnings: list[str] = []
    for path in paths:
        symbols, file_warnings = load_builtin_file(path)
        extra.extend(symbols)
        warnings.extend(file_warnings)
    if not extra:
        return base, warnings
    log.info("Loaded %d extra builtin(s)", len(extra))
    return base.extend(extra), warnings
