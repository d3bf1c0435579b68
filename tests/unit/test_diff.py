"""Unit tests for field-level diffing against prior registration state."""

from __future__ import annotations

from typing import Any

from rhiza_registrar.registrar.definition.model import WorkflowDefinition, parse_definition
from rhiza_registrar.registrar.sync.diff import FieldChange, compute_changes
from rhiza_registrar.registrar.sync.state import RegistrationState

FLOW: dict[str, Any] = {
    "s1": {"klados": {"pi": "W"}, "then": {"pass": "s2"}},
    "s2": {"klados": {"pi": "W"}, "then": {"done": True}},
}


def _definition(**overrides: Any) -> WorkflowDefinition:
    data: dict[str, Any] = {"label": "A", "version": "1.0", "entry": "s1", "flow": FLOW}
    data.update(overrides)
    return parse_definition(data)


def _prior(definition: WorkflowDefinition) -> RegistrationState:
    return RegistrationState.from_definition(definition, rhiza_id="r", collection_id="c")


def test_identical_definition_has_no_changes() -> None:
    definition = _definition()
    assert compute_changes(definition, _prior(definition)) == ()


def test_version_bump_is_a_single_change() -> None:
    prior = _prior(_definition())
    changes = compute_changes(_definition(version="2.0"), prior)
    assert changes == (FieldChange("version", "1.0", "2.0"),)


def test_description_is_not_compared() -> None:
    prior = _prior(_definition(description="old"))
    assert compute_changes(_definition(description="new"), prior) == ()


def test_changes_are_ordered_label_version_then_steps_by_name() -> None:
    prior = _prior(_definition())
    new_flow = {
        "s1": {"klados": {"pi": "W"}, "then": {"pass": "s3"}},
        "s3": {"klados": {"pi": "W"}, "then": {"done": True}},
    }

    changes = compute_changes(_definition(label="B", version="1.1", flow=new_flow), prior)

    assert [c.field for c in changes] == ["label", "version", "flow.s1", "flow.s2", "flow.s3"]
    removed = changes[3]
    assert removed.from_value == FLOW["s2"]
    assert removed.to_value is None
    added = changes[4]
    assert added.from_value is None
    assert added.to_value == {"klados": {"pi": "W"}, "then": {"done": True}}


def test_field_change_json_uses_from_and_to() -> None:
    change = FieldChange("version", None, "1.0")
    assert change.to_json() == {"field": "version", "from": None, "to": "1.0"}
