"""Read harness defaults from `.env.defaults` at the repository root.

The application under test keeps its own `.env` elsewhere; values such as
DATABASE_URL have to match the running instance, so this checkout carries its
own defaults file and real environment variables override it per shell.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Dict

DEFAULTS_FILE = Path(__file__).resolve().parents[1] / ".env.defaults"


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


@lru_cache(maxsize=1)
def _load_env_defaults() -> Dict[str, str]:
    if not DEFAULTS_FILE.is_file():
        return {}

    defaults: Dict[str, str] = {}
    for line in DEFAULTS_FILE.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if sep and key.strip():
            defaults[key.strip()] = _unquote(value.strip())
    return defaults


def get_env_default(key: str) -> str | None:
    return _load_env_defaults().get(key)
