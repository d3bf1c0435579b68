"""Reconcile workflow definitions with their remote registrations."""

from rhiza_registrar.registrar.sync.diff import FieldChange
from rhiza_registrar.registrar.sync.engine import (
    Created,
    DryRunResult,
    DryRunUnchanged,
    SyncAction,
    SyncPlan,
    SyncResult,
    Unchanged,
    Updated,
    WouldCreate,
    WouldUpdate,
)
from rhiza_registrar.registrar.sync.orchestrator import register
from rhiza_registrar.registrar.sync.remote import RegistrationCapability, RemoteIds
from rhiza_registrar.registrar.sync.state import (
    Network,
    RegistrationState,
    RegistrationStateStore,
    StateKey,
)

__all__ = [
    "Created",
    "DryRunResult",
    "DryRunUnchanged",
    "FieldChange",
    "Network",
    "RegistrationCapability",
    "RegistrationState",
    "RegistrationStateStore",
    "RemoteIds",
    "StateKey",
    "SyncAction",
    "SyncPlan",
    "SyncResult",
    "Unchanged",
    "Updated",
    "WouldCreate",
    "WouldUpdate",
    "register",
]
