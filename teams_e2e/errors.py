"""Error taxonomy for the harness.

- ProvisioningError: a fixture could not be created. Fatal to the scenario.
- AssertionFailure: expected UI state was not observed. Fatal to the scenario.
- ToolError: a browser action itself failed (an AssertionFailure).
- TeardownError: cleanup failed. Logged and collected, never raised.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict


class HarnessError(Exception):
    """Base class for every error the harness raises or records."""


class ProvisioningError(HarnessError):
    """Raised when a user, team or organization fixture cannot be created."""

    def __init__(self, kind: str, message: str) -> None:
        super().__init__(f"could not provision {kind}: {message}")
        self.kind = kind


class AssertionFailure(HarnessError, AssertionError):
    """Raised when the rendered page does not match what the scenario expects."""


@dataclass
class ToolError(AssertionFailure):
    """Raised when a browser operation fails."""

    name: str
    payload: Dict[str, Any] = field(default_factory=dict)
    message: str = ""

    def __str__(self) -> str:  # pragma: no cover - human readable helper
        return f"{self.name} failed ({self.message}) with payload={self.payload}"


@dataclass
class TeardownError(HarnessError):
    """A cleanup delete that failed. Recorded by the registry, never raised."""

    kind: str
    target: Any
    cause: BaseException

    def __str__(self) -> str:  # pragma: no cover - human readable helper
        return f"teardown of {self.kind} {self.target!r} failed: {self.cause}"
