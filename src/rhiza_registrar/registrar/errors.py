"""Error types raised by the registrar.

Every failure is terminal for the current invocation. Messages carry enough
context (variable, step, path, remote ids) for a human to act on them.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rhiza_registrar.registrar.sync.state import RegistrationState


class RegistrarError(Exception):
    """Base error for the registrar."""


class ConfigurationError(RegistrarError):
    """A `$VAR` value reference has no value in the environment."""

    def __init__(self, variable: str, path: str = "") -> None:
        self.variable = variable
        self.path = path
        where = f" (at {path})" if path else ""
        super().__init__(f"Environment variable {variable} is not set{where}")


class DefinitionError(RegistrarError):
    """The workflow definition is malformed or references a missing step."""

    def __init__(
        self, message: str, *, step: str | None = None, target: str | None = None
    ) -> None:
        self.step = step
        self.target = target
        super().__init__(message)


class StateCorruptionError(RegistrarError):
    """A state file exists but cannot be read as registration state."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Registration state at {path} is unreadable: {reason}")


class RegistrationError(RegistrarError):
    """The remote create/update call failed."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class StatePersistenceError(RegistrarError):
    """The remote side changed but the new state could not be written.

    A retry would not see this registration and would create a duplicate, so the
    remote identifiers are kept on the error for manual recovery.
    """

    def __init__(self, state: RegistrationState, path: Path, reason: str) -> None:
        self.state = state
        self.path = path
        super().__init__(
            f"Registered rhiza {state.rhiza_id} (collection {state.collection_id}) "
            f"but failed to write state to {path}: {reason}"
        )
