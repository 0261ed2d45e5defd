"""Collision-free identifiers for fixtures.

Scenarios run in parallel (one pytest-xdist worker per process) against one
shared database, so every username, e-mail and slug carries the worker id, a
per-process counter and a random token.
"""
from __future__ import annotations

import itertools
import os
import re
import secrets

_counter = itertools.count(1)
_issued: set[str] = set()


def worker_id() -> str:
    return os.getenv("PYTEST_XDIST_WORKER", "main")


def unique_suffix() -> str:
    while True:
        suffix = f"{worker_id()}-{next(_counter)}-{secrets.token_hex(3)}"
        if suffix not in _issued:
            _issued.add(suffix)
            return suffix


def slugify(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", value.strip().lower())
    return slug.strip("-") or "item"


def unique_slug(value: str) -> str:
    return f"{slugify(value)}-{unique_suffix()}"
