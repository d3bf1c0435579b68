"""Unit tests for parsing workflow definitions."""

from __future__ import annotations

import pytest

from rhiza_registrar.registrar.definition.model import (
    Handoff,
    HandoffKind,
    parse_definition,
)
from rhiza_registrar.registrar.errors import DefinitionError


def _definition(**overrides: object) -> dict[str, object]:
    data: dict[str, object] = {
        "label": "L",
        "version": "1.0",
        "entry": "s1",
        "flow": {"s1": {"worker": {"pi": "w"}, "then": {"done": True}}},
    }
    data.update(overrides)
    return data


@pytest.mark.parametrize(
    ("wire", "kind", "target"),
    [
        ({"pass": "b"}, HandoffKind.PASS, "b"),
        ({"scatter": "b"}, HandoffKind.SCATTER, "b"),
        ({"gather": "b"}, HandoffKind.GATHER, "b"),
        ({"done": True}, HandoffKind.DONE, None),
    ],
)
def test_handoff_parses_each_variant(wire: dict[str, object], kind: HandoffKind, target) -> None:
    handoff = Handoff.model_validate(wire)
    assert handoff.kind is kind
    assert handoff.target == target
    assert handoff.model_dump() == wire


@pytest.mark.parametrize(
    "wire",
    [
        {},
        {"pass": "a", "gather": "b"},
        {"done": False},
        {"pass": ""},
        {"pass": 3},
        {"jump": "a"},
    ],
)
def test_malformed_handoff_is_a_definition_error(wire: dict[str, object]) -> None:
    data = _definition(flow={"s1": {"worker": {"pi": "w"}, "then": wire}})
    with pytest.raises(DefinitionError):
        parse_definition(data)


def test_klados_is_accepted_as_worker_alias() -> None:
    definition = parse_definition(
        _definition(flow={"s1": {"klados": {"pi": "klados_1"}, "then": {"done": True}}})
    )
    assert definition.flow["s1"].worker.pi == "klados_1"


def test_worker_extra_fields_are_kept_in_flow_json() -> None:
    definition = parse_definition(
        _definition(
            flow={"s1": {"worker": {"pi": "w", "region": "eu"}, "then": {"done": True}}}
        )
    )
    assert definition.flow_json() == {
        "s1": {"klados": {"pi": "w", "region": "eu"}, "then": {"done": True}}
    }


def test_description_is_optional_and_omitted_from_payload() -> None:
    definition = parse_definition(_definition())
    assert definition.description is None
    assert "description" not in definition.to_payload()


def test_missing_required_fields_are_reported() -> None:
    data = _definition()
    del data["version"]
    with pytest.raises(DefinitionError, match="version"):
        parse_definition(data)


def test_non_object_definition_is_rejected() -> None:
    with pytest.raises(DefinitionError):
        parse_definition(["not", "a", "definition"])
