from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from rhiza_registrar.registrar.definition.model import WorkflowDefinition


@dataclass(frozen=True, slots=True)
class RemoteIds:
    """Identifiers assigned by the remote side on first registration."""

    rhiza_id: str
    collection_id: str


class RegistrationCapability(Protocol):
    """Creates and updates the remote representation of a workflow.

    Implementations raise `RegistrationError` on failure. Retries, auth and transport
    are their concern.
    """

    def create(self, definition: WorkflowDefinition, *, collection_label: str) -> RemoteIds: ...

    def update(self, rhiza_id: str, definition: WorkflowDefinition) -> None: ...
