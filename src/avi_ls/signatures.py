from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Sequence

SIGNATURE_RE = re.compile(r"\(([^)]*)\)")
MUT_PREFIX_RE = re.compile(r"^mut\s+")
# Characters with meaning in LSP snippet syntax.
SNIPPET_ESCAPE_RE = re.compile(r"[$}\\]")

MANDATORY_MARKER = "__"
MANDATORY_SEPARATOR = "_"


@dataclass(frozen=True)
class LabelParts:
    base_label: str
    mandatory_args: tuple[str, ...] = ()


def parse_signature_args(signature: str | None) -> List[str]:
    """Return the raw argument strings inside the first ``(...)`` of a signature."""
    if not signature:
        return []
    match = SIGNATURE_RE.search(signature)
    if not match:
        return []
    inside = match.group(1).strip()
    if not inside:
        return []
    return [arg.strip() for arg in inside.split(",") if arg.strip()]


def arg_name(arg: str) -> str:
    stripped = MUT_PREFIX_RE.sub("", arg.strip())
    return stripped.split(":", 1)[0].strip()


def extract_arg_names(signature: str | None) -> List[str]:
    names = (arg_name(arg) for arg in parse_signature_args(signature))
    return [name for name in names if name]


def decode_label(label: str) -> LabelParts:
    """Split ``push__list_item`` into ``push`` and its mandatory args ``(list, item)``."""
    base, marker, rest = label.partition(MANDATORY_MARKER)
    if not marker:
        return LabelParts(base_label=label)
    mandatory = tuple(name for name in rest.split(MANDATORY_SEPARATOR) if name)
    return LabelParts(base_label=base, mandatory_args=mandatory)


def make_snippet(label: str, mandatory_args: Sequence[str], signature_args: Sequence[str]) -> str:
    """Render ``label(a: ${1:a}, ...)`` from mandatory names then signature args.

    Signature args are reduced to their bare names and merged by name, so an
    argument already listed as mandatory is not repeated.
    """
    args: list[str] = []
    for name in mandatory_args:
        if name and name not in args:
            args.append(name)
    for arg in signature_args:
        name = arg_name(arg)
        if name and name not in args:
            args.append(name)

    if not args:
        return f"{_escape(label)}()"

    placeholders = [
        f"{_escape(name)}: ${{{index}:{_escape(name)}}}" for index, name in enumerate(args, start=1)
    ]
    return f"{_escape(label)}({', '.join(placeholders)})"


def _escape(text: str) -> str:
    return SNIPPET_ESCAPE_RE.sub(r"\\\g<0>", text)
