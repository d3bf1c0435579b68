"""Persisted registration state, one JSON file per (workflow, network)."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Protocol

from pydantic import BaseModel, Field, ValidationError

from rhiza_registrar.registrar.definition.model import WorkflowDefinition
from rhiza_registrar.registrar.errors import StateCorruptionError

logger = logging.getLogger(__name__)

STATE_FILE_PREFIX = ".rhiza-state-"


class Network(str, Enum):
    TEST = "test"
    MAIN = "main"


@dataclass(frozen=True, slots=True)
class StateKey:
    """Identifies one registration: the same workflow on two networks never collides."""

    workflow_name: str
    network: Network

    def __str__(self) -> str:
        return f"{self.workflow_name}@{self.network.value}"


def _utc_iso_now() -> str:
    return datetime.now(tz=UTC).isoformat()


class RegistrationState(BaseModel):
    """What we know about a workflow after it was registered remotely.

    `label`, `version` and `flow` are the fields later definitions are diffed against.
    """

    schema_version: int = Field(default=1)
    rhiza_id: str = Field(min_length=1)
    collection_id: str = Field(min_length=1)
    version: str

    label: str
    entry: str
    description: str | None = Field(default=None)
    flow: dict[str, Any] = Field(default_factory=dict)

    registered_at: str = Field(default_factory=_utc_iso_now)
    updated_at: str = Field(default_factory=_utc_iso_now)

    @classmethod
    def from_definition(
        cls, definition: WorkflowDefinition, *, rhiza_id: str, collection_id: str
    ) -> RegistrationState:
        return cls(
            rhiza_id=rhiza_id,
            collection_id=collection_id,
            version=definition.version,
            label=definition.label,
            entry=definition.entry,
            description=definition.description,
            flow=definition.flow_json(),
        )

    def with_definition(self, definition: WorkflowDefinition) -> RegistrationState:
        """Return this state advanced to `definition`, keeping the remote ids."""

        return self.model_copy(
            update={
                "version": definition.version,
                "label": definition.label,
                "entry": definition.entry,
                "description": definition.description,
                "flow": definition.flow_json(),
                "updated_at": _utc_iso_now(),
            }
        )


class StateReader(Protocol):
    def read(self, key: StateKey) -> RegistrationState | None: ...


class RegistrationStateStore:
    """JSON-file backed store for registration state.

    Files live in `state_dir` as `.rhiza-state-<workflow>-<network>.json`. A missing
    file means "never registered"; a present but unreadable file is an error.
    """

    def __init__(self, state_dir: Path) -> None:
        self._state_dir = state_dir

    def path_for(self, key: StateKey) -> Path:
        return self._state_dir / f"{STATE_FILE_PREFIX}{key.workflow_name}-{key.network.value}.json"

    def read(self, key: StateKey) -> RegistrationState | None:
        path = self.path_for(key)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("No registration state found", extra={"path": str(path)})
            return None
        except UnicodeDecodeError as e:
            raise StateCorruptionError(path, f"not valid UTF-8 ({e.reason})") from e
        except OSError as e:
            raise StateCorruptionError(path, f"cannot be read ({e.strerror or e})") from e

        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            raise StateCorruptionError(path, f"invalid JSON ({e})") from e

        if not isinstance(raw, dict):
            raise StateCorruptionError(path, "expected a JSON object")

        try:
            return RegistrationState.model_validate(raw)
        except ValidationError as e:
            raise StateCorruptionError(path, f"{e.error_count()} invalid field(s)") from e

    def write(self, key: StateKey, state: RegistrationState) -> Path:
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)

        # Write then rename so a crash never leaves a half-written file behind.
        tmp = path.with_name(path.name + ".tmp")
        tmp.write_text(
            json.dumps(state.model_dump(mode="json"), indent=2, ensure_ascii=False) + "\n",
            encoding="utf-8",
        )
        tmp.replace(path)

        logger.info("Registration state saved", extra={"path": str(path), "key": str(key)})
        return path

    def reader(self) -> StateReader:
        """Return a view of this store that can only read."""

        return _ReadOnlyStateView(self)


class _ReadOnlyStateView:
    __slots__ = ("_store",)

    def __init__(self, store: RegistrationStateStore) -> None:
        self._store = store

    def read(self, key: StateKey) -> RegistrationState | None:
        return self._store.read(key)
