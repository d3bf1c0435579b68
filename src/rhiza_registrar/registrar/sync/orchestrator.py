"""Registration flow: resolve, validate, read state, decide, then apply or preview."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Literal, overload

from rhiza_registrar.registrar.definition.model import parse_definition
from rhiza_registrar.registrar.definition.validation import validate_definition
from rhiza_registrar.registrar.definition.variables import JsonValue, resolve_variables
from rhiza_registrar.registrar.sync.engine import (
    DryRunResult,
    SyncPlan,
    SyncResult,
    apply_plan,
    plan_sync,
    preview,
)
from rhiza_registrar.registrar.sync.remote import RegistrationCapability
from rhiza_registrar.registrar.sync.state import RegistrationStateStore, StateKey, StateReader

logger = logging.getLogger(__name__)


def prepare_plan(
    raw_definition: JsonValue,
    *,
    environ: Mapping[str, str],
    key: StateKey,
    reader: StateReader,
) -> SyncPlan:
    """Resolve and validate `raw_definition`, then decide against stored state.

    Nothing is read from the store until the definition is known to be valid.
    """

    resolved = resolve_variables(raw_definition, environ)
    definition = parse_definition(resolved)
    validate_definition(definition)

    prior = reader.read(key)
    plan = plan_sync(key, definition, prior)
    logger.info(
        "Registration planned",
        extra={
            "key": str(key),
            "action": plan.action.value,
            "changes": len(plan.changes),
            "rhiza_id": prior.rhiza_id if prior else None,
        },
    )
    return plan


def register_dry_run(
    raw_definition: JsonValue,
    *,
    environ: Mapping[str, str],
    key: StateKey,
    reader: StateReader,
) -> DryRunResult:
    return preview(prepare_plan(raw_definition, environ=environ, key=key, reader=reader))


def register_apply(
    raw_definition: JsonValue,
    *,
    environ: Mapping[str, str],
    key: StateKey,
    store: RegistrationStateStore,
    registry: RegistrationCapability,
    collection_label: str | None = None,
) -> SyncResult:
    plan = prepare_plan(raw_definition, environ=environ, key=key, reader=store.reader())
    return apply_plan(plan, registry=registry, store=store, collection_label=collection_label)


@overload
def register(
    raw_definition: JsonValue,
    *,
    environ: Mapping[str, str],
    key: StateKey,
    store: RegistrationStateStore,
    registry: RegistrationCapability,
    dry_run: Literal[False] = ...,
) -> SyncResult: ...


@overload
def register(
    raw_definition: JsonValue,
    *,
    environ: Mapping[str, str],
    key: StateKey,
    store: RegistrationStateStore,
    registry: RegistrationCapability | None = ...,
    dry_run: Literal[True],
) -> DryRunResult: ...


def register(
    raw_definition: JsonValue,
    *,
    environ: Mapping[str, str],
    key: StateKey,
    store: RegistrationStateStore,
    registry: RegistrationCapability | None = None,
    dry_run: bool = False,
) -> SyncResult | DryRunResult:
    """Register `raw_definition` for `key`.

    A dry run is handed only a read-only view of the store and never sees `registry`.
    """

    if dry_run:
        return register_dry_run(raw_definition, environ=environ, key=key, reader=store.reader())
    if registry is None:
        raise ValueError("registry is required unless dry_run is set")
    return register_apply(
        raw_definition, environ=environ, key=key, store=store, registry=registry
    )
