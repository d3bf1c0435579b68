"""Decide and carry out a registration.

`plan_sync` is pure: it compares a resolved definition with prior state and picks
an action. A plan is then either previewed (`preview`, which takes nothing that can
mutate) or applied (`apply_plan`, which talks to the remote side and writes state).
The two paths return disjoint result types so a preview can never be persisted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Literal

from rhiza_registrar.registrar.definition.model import WorkflowDefinition
from rhiza_registrar.registrar.errors import StatePersistenceError
from rhiza_registrar.registrar.sync.diff import FieldChange, compute_changes
from rhiza_registrar.registrar.sync.remote import RegistrationCapability
from rhiza_registrar.registrar.sync.state import (
    RegistrationState,
    RegistrationStateStore,
    StateKey,
)

logger = logging.getLogger(__name__)


class SyncAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    UNCHANGED = "unchanged"


@dataclass(frozen=True, slots=True)
class SyncPlan:
    key: StateKey
    definition: WorkflowDefinition
    prior: RegistrationState | None
    action: SyncAction
    changes: tuple[FieldChange, ...] = ()


# Applied results.


@dataclass(frozen=True, slots=True)
class Created:
    state: RegistrationState
    action: Literal["created"] = "created"


@dataclass(frozen=True, slots=True)
class Updated:
    changes: tuple[FieldChange, ...]
    state: RegistrationState
    action: Literal["updated"] = "updated"


@dataclass(frozen=True, slots=True)
class Unchanged:
    state: RegistrationState
    action: Literal["unchanged"] = "unchanged"


SyncResult = Created | Updated | Unchanged


# Dry-run results. None of these carry state.


@dataclass(frozen=True, slots=True)
class WouldCreate:
    action: Literal["would_create"] = "would_create"


@dataclass(frozen=True, slots=True)
class WouldUpdate:
    changes: tuple[FieldChange, ...]
    action: Literal["would_update"] = "would_update"


@dataclass(frozen=True, slots=True)
class DryRunUnchanged:
    action: Literal["unchanged"] = "unchanged"


DryRunResult = WouldCreate | WouldUpdate | DryRunUnchanged


def plan_sync(
    key: StateKey, definition: WorkflowDefinition, prior: RegistrationState | None
) -> SyncPlan:
    if prior is None:
        return SyncPlan(key=key, definition=definition, prior=None, action=SyncAction.CREATE)

    changes = compute_changes(definition, prior)
    action = SyncAction.UPDATE if changes else SyncAction.UNCHANGED
    return SyncPlan(key=key, definition=definition, prior=prior, action=action, changes=changes)


def preview(plan: SyncPlan) -> DryRunResult:
    if plan.action is SyncAction.CREATE:
        return WouldCreate()
    if plan.action is SyncAction.UPDATE:
        return WouldUpdate(changes=plan.changes)
    return DryRunUnchanged()


def default_collection_label(definition: WorkflowDefinition) -> str:
    return f"Rhiza: {definition.label}"


def _persist(store: RegistrationStateStore, key: StateKey, state: RegistrationState) -> None:
    try:
        store.write(key, state)
    except OSError as e:
        logger.error(
            "Remote registration succeeded but state was not saved",
            extra={
                "key": str(key),
                "rhiza_id": state.rhiza_id,
                "collection_id": state.collection_id,
            },
        )
        raise StatePersistenceError(state, store.path_for(key), str(e)) from e


def apply_plan(
    plan: SyncPlan,
    *,
    registry: RegistrationCapability,
    store: RegistrationStateStore,
    collection_label: str | None = None,
) -> SyncResult:
    """Carry out `plan` against the remote side and persist the resulting state.

    State is written only after the remote call succeeds, and never for `unchanged`.

    Raises:
        RegistrationError: The remote call failed; state is left as it was.
        StatePersistenceError: The remote call succeeded but state could not be written.
    """

    definition = plan.definition
    log_extra = {"key": str(plan.key), "action": plan.action.value}

    if plan.action is SyncAction.UNCHANGED:
        assert plan.prior is not None
        logger.info("Rhiza unchanged", extra={**log_extra, "rhiza_id": plan.prior.rhiza_id})
        return Unchanged(state=plan.prior)

    if plan.action is SyncAction.CREATE:
        label = collection_label or default_collection_label(definition)
        ids = registry.create(definition, collection_label=label)
        state = RegistrationState.from_definition(
            definition, rhiza_id=ids.rhiza_id, collection_id=ids.collection_id
        )
        _persist(store, plan.key, state)
        logger.info("Rhiza created", extra={**log_extra, "rhiza_id": state.rhiza_id})
        return Created(state=state)

    assert plan.prior is not None
    registry.update(plan.prior.rhiza_id, definition)
    state = plan.prior.with_definition(definition)
    _persist(store, plan.key, state)
    logger.info(
        "Rhiza updated",
        extra={**log_extra, "rhiza_id": state.rhiza_id, "changes": len(plan.changes)},
    )
    return Updated(changes=plan.changes, state=state)
