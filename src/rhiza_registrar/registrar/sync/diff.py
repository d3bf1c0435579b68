from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from rhiza_registrar.registrar.definition.model import WorkflowDefinition
from rhiza_registrar.registrar.sync.state import RegistrationState

FLOW_FIELD_PREFIX = "flow."


@dataclass(frozen=True, slots=True)
class FieldChange:
    """A single registration-relevant difference.

    `from_value` is None when the field (or step) did not exist before; `to_value`
    is None when a step was removed.
    """

    field: str
    from_value: Any
    to_value: Any

    def to_json(self) -> dict[str, Any]:
        return {"field": self.field, "from": self.from_value, "to": self.to_value}


def compute_changes(
    definition: WorkflowDefinition, prior: RegistrationState
) -> tuple[FieldChange, ...]:
    """Diff `definition` against `prior` over label, version and flow.

    Order is stable: label, version, then one entry per changed step in step-name
    order. `description` and `entry` are not compared.
    """

    changes: list[FieldChange] = []
    if definition.label != prior.label:
        changes.append(FieldChange("label", prior.label, definition.label))
    if definition.version != prior.version:
        changes.append(FieldChange("version", prior.version, definition.version))

    new_flow = definition.flow_json()
    for name in sorted(set(prior.flow) | set(new_flow)):
        before = prior.flow.get(name)
        after = new_flow.get(name)
        if before != after:
            changes.append(FieldChange(f"{FLOW_FIELD_PREFIX}{name}", before, after))

    return tuple(changes)
