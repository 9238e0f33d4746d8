from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Tuple

log = logging.getLogger(__name__)

CONFIG_FILENAME = ".avi-ls.json"

_ENV_RE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}|\$([A-Za-z_][A-Za-z0-9_]*)")


@dataclass
class CompletionSettings:
    snippets: bool = True
    scope_suggestions: bool = True


@dataclass
class AviLSConfig:
    workspace_root: Path
    builtin_files: Tuple[Path, ...] = ()
    completion: CompletionSettings = field(default_factory=CompletionSettings)

    @classmethod
    def default(cls, workspace_root: Path) -> "AviLSConfig":
        return cls(workspace_root=workspace_root)


class _MissingVariable(Exception):
    def __init__(self, name: str):
        super().__init__(name)
        self.name = name


def _substitute(value: str, workspace_root: Path) -> str:
    def _replace(match: re.Match[str]) -> str:
        name = match.group(1) or match.group(2)
        if name == "workspaceRoot":
            return str(workspace_root)
        env_value = os.environ.get(name)
        if env_value is None:
            raise _MissingVariable(name)
        return env_value

    return _ENV_RE.sub(_replace, value)


def load_config(workspace_root: Path) -> Tuple[AviLSConfig, List[str]]:
    cfg = AviLSConfig.default(workspace_root)
    path = workspace_root / CONFIG_FILENAME
    if not path.exists():
        return cfg, []

    warnings: list[str] = []
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        return cfg, [f"Failed to read {path}: {exc}"]
    if not isinstance(raw, dict):
        return cfg, [f"{path} must contain a JSON object"]

    cfg.builtin_files = _parse_builtin_files(raw.get("builtinFiles"), workspace_root, warnings)
    cfg.completion = _parse_completion(raw.get("completion"), warnings)
    log.debug("Loaded config from %s", path)
    return cfg, warnings


def _parse_builtin_files(value: Any, workspace_root: Path, warnings: list[str]) -> Tuple[Path, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        warnings.append("builtinFiles must be a list of paths")
        return ()
    paths: list[Path] = []
    for entry in value:
        if not isinstance(entry, str):
            warnings.append(f"Ignoring non-string builtinFiles entry: {entry!r}")
            continue
        try:
            expanded = _substitute(entry, workspace_root)
        except _MissingVariable as exc:
            warnings.append(f"builtinFiles entry {entry!r} references unset variable {exc.name}")
            continue
        path = Path(expanded)
        if not path.is_absolute():
            path = workspace_root / path
        paths.append(path)
    return tuple(paths)


def _parse_completion(value: Any, warnings: list[str]) -> CompletionSettings:
    settings = CompletionSettings()
    if value is None:
        return settings
    if not isinstance(value, dict):
        warnings.append("completion must be an object")
        return settings
    flags: Dict[str, str] = {"snippets": "snippets", "scopeSuggestions": "scope_suggestions"}
    for key, attr in flags.items():
        if key not in value:
            continue
        flag = value[key]
        if isinstance(flag, bool):
            setattr(settings, attr, flag)
        else:
            warnings.append(f"completion.{key} must be true or false")
    return settings
