"""Reference checks over a workflow's step graph.

Only dangling names are rejected. Cycles are allowed: loops are legal in the
execution engine and are not inspected at registration time.
"""

from __future__ import annotations

from rhiza_registrar.registrar.definition.model import HandoffKind, WorkflowDefinition
from rhiza_registrar.registrar.errors import DefinitionError

_TARGETED_KINDS = frozenset({HandoffKind.PASS, HandoffKind.SCATTER, HandoffKind.GATHER})


def validate_definition(definition: WorkflowDefinition) -> None:
    """Raise `DefinitionError` if the entry or any handoff target is not a step in `flow`."""

    if definition.entry not in definition.flow:
        raise DefinitionError(
            f"Entry step '{definition.entry}' is not defined in flow",
            target=definition.entry,
        )

    for name, step in definition.flow.items():
        handoff = step.handoff
        if handoff.kind not in _TARGETED_KINDS:
            continue
        if handoff.target not in definition.flow:
            raise DefinitionError(
                f"Step '{name}' has {handoff.kind.value} target '{handoff.target}' "
                "which is not defined in flow",
                step=name,
                target=handoff.target,
            )
