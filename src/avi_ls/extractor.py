from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Protocol

log = logging.getLogger(__name__)

FN_RE = re.compile(r"\bfn\s+([A-Za-z_]\w*)\s*\(([^()]*)\)")
VAR_RE = re.compile(r"\b(?:let(?:\s+mut)?|const)\s+([A-Za-z_]\w*)")
# Anything up to the opening brace of a body, e.g. a ``-> int`` return annotation.
BODY_OPEN_RE = re.compile(r"[^{;}()]*\{")


@dataclass(frozen=True)
class WorkspaceFunction:
    name: str
    signature: str
    params: str = ""
    start: int = 0
    end: int = 0


class SymbolExtractor(Protocol):
    def extract_functions(self, text: str) -> List[WorkspaceFunction]: ...

    def extract_variables(self, text: str) -> List[str]: ...

    def enclosing_functions(self, text: str, offset: int) -> List[WorkspaceFunction]: ...


class RegexSymbolExtractor:
    """Best-effort lexical scan of Avi source.

    Comments and string literals are not recognised, so declarations inside
    them are reported too. Partial declarations simply do not match.
    """

    def extract_functions(self, text: str) -> List[WorkspaceFunction]:
        functions: list[WorkspaceFunction] = []
        for match in FN_RE.finditer(text or ""):
            name = match.group(1)
            params = match.group(2).strip()
            functions.append(
                WorkspaceFunction(
                    name=name,
                    signature=f"{name}({params})",
                    params=params,
                    start=match.start(),
                    end=match.end(),
                )
            )
        log.debug("Extracted %d function(s)", len(functions))
        return functions

    def extract_variables(self, text: str) -> List[str]:
        seen: dict[str, None] = {}
        for match in VAR_RE.finditer(text or ""):
            seen.setdefault(match.group(1), None)
        log.debug("Extracted %d variable(s)", len(seen))
        return list(seen)

    def enclosing_functions(self, text: str, offset: int) -> List[WorkspaceFunction]:
        """Functions whose body contains ``offset``, outermost first."""
        enclosing: list[WorkspaceFunction] = []
        for fn in self.extract_functions(text):
            span = _body_span(text, fn.end)
            if span is None:
                continue
            open_idx, close_idx = span
            if open_idx < offset <= close_idx:
                enclosing.append(fn)
        return enclosing


def _body_span(text: str, pos: int) -> tuple[int, int] | None:
    match = BODY_OPEN_RE.match(text, pos)
    if not match:
        return None
    open_idx = match.end() - 1
    depth = 0
    for idx in range(open_idx, len(text)):
        ch = text[idx]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return open_idx, idx
    # Unterminated body (mid-edit): runs to the end of the document.
    return open_idx, len(text)
