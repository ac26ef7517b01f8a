"""Deployment defaults for the console, read from .env.defaults and .env.

Values here are only consulted after the process environment. A deployment
uses them to ship a fallback API key or point at a staging API.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Dict, List

DEFAULTS_FILES = (".env.defaults", ".env")


def _search_dirs() -> List[Path]:
    project_root = Path(__file__).resolve().parents[2]
    dirs = [project_root]
    try:
        cwd = Path.cwd().resolve()
    except OSError:
        return dirs
    if cwd != project_root:
        dirs.append(cwd)
    return dirs


@lru_cache(maxsize=1)
def load_defaults() -> Dict[str, str]:
    """Merged defaults; `.env` entries override `.env.defaults` entries."""
    merged: Dict[str, str] = {}
    dirs = _search_dirs()
    for filename in DEFAULTS_FILES:
        for path in (d / filename for d in dirs):
            if path.is_file():
                merged.update(_parse_env_file(path))
    return merged


def get_default(key: str, fallback: str | None = None) -> str | None:
    return load_defaults().get(key, fallback)


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def _parse_env_file(env_path: Path) -> Dict[str, str]:
    """KEY=value lines; blank lines, comments and malformed lines are skipped."""
    values: Dict[str, str] = {}
    for raw in env_path.read_text(encoding="utf-8").splitlines():
        key, sep, value = raw.strip().partition("=")
        if not sep or key.startswith("#"):
            continue
        values[key.strip()] = _unquote(value.strip())
    return values
