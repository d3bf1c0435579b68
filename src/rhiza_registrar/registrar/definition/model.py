"""Typed shape of a rhiza workflow definition.

The wire format is the JSON kept under `workflows/`:

    {
      "label": "Stamp Chain",
      "version": "1.0.0",
      "entry": "stamp_1",
      "flow": {
        "stamp_1": {"klados": {"pi": "$STAMP_KLADOS_1"}, "then": {"pass": "stamp_2"}},
        "stamp_2": {"klados": {"pi": "$STAMP_KLADOS_2"}, "then": {"done": true}}
      }
    }
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    model_serializer,
    model_validator,
)

from rhiza_registrar.registrar.errors import DefinitionError


class HandoffKind(str, Enum):
    PASS = "pass"
    SCATTER = "scatter"
    GATHER = "gather"
    DONE = "done"


_HANDOFF_KEYS = frozenset(kind.value for kind in HandoffKind)


class Handoff(BaseModel):
    """What happens after a step's worker completes.

    On the wire this is a single-key object: `{"pass": "next"}`, `{"scatter": "next"}`,
    `{"gather": "next"}` or `{"done": true}`.
    """

    model_config = ConfigDict(frozen=True)

    kind: HandoffKind
    target: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _from_wire(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "kind" in data:
            return data

        kinds = [k for k in data if k in _HANDOFF_KEYS]
        if len(data) != 1 or len(kinds) != 1:
            raise ValueError("handoff must have exactly one of: pass, scatter, gather, done")

        kind = HandoffKind(kinds[0])
        value = data[kinds[0]]
        if kind is HandoffKind.DONE:
            if value is not True:
                raise ValueError("'done' handoff must be true")
            return {"kind": kind}
        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"'{kind.value}' handoff must name a step")
        return {"kind": kind, "target": value}

    @model_validator(mode="after")
    def _target_matches_kind(self) -> Handoff:
        if self.kind is HandoffKind.DONE and self.target is not None:
            raise ValueError("'done' handoff cannot have a target")
        if self.kind is not HandoffKind.DONE and not self.target:
            raise ValueError(f"'{self.kind.value}' handoff must name a step")
        return self

    @model_serializer
    def _to_wire(self) -> dict[str, Any]:
        if self.kind is HandoffKind.DONE:
            return {"done": True}
        return {self.kind.value: self.target}


class WorkerReference(BaseModel):
    """Opaque reference to the klados worker a step invokes."""

    model_config = ConfigDict(frozen=True, extra="allow")

    pi: str = Field(min_length=1, description="Persistent identifier of the worker")


class Step(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    # Arke calls the worker a klados; both spellings are accepted on input.
    worker: WorkerReference = Field(
        validation_alias=AliasChoices("worker", "klados"), serialization_alias="klados"
    )
    handoff: Handoff = Field(alias="then")

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class WorkflowDefinition(BaseModel):
    """A resolved rhiza workflow: a named graph of steps."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    label: str = Field(min_length=1)
    description: str | None = None
    version: str = Field(min_length=1)
    entry: str = Field(min_length=1)
    flow: dict[str, Step]

    def flow_json(self) -> dict[str, dict[str, Any]]:
        """Return the flow in wire format, keyed by step name."""

        return {name: step.to_json() for name, step in self.flow.items()}

    def to_payload(self) -> dict[str, Any]:
        """Return the definition in the shape sent to the remote side."""

        payload: dict[str, Any] = {
            "label": self.label,
            "version": self.version,
            "entry": self.entry,
            "flow": self.flow_json(),
        }
        if self.description is not None:
            payload["description"] = self.description
        return payload


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "<root>"
        parts.append(f"{loc}: {err.get('msg', 'invalid')}")
    return "; ".join(parts)


def parse_definition(data: Any) -> WorkflowDefinition:
    """Build a `WorkflowDefinition` from resolved JSON.

    Raises:
        DefinitionError: The JSON does not have the shape of a workflow definition.
    """

    if not isinstance(data, dict):
        raise DefinitionError("Workflow definition must be a JSON object")
    try:
        return WorkflowDefinition.model_validate(data)
    except ValidationError as e:
        raise DefinitionError(f"Invalid workflow definition: {_format_validation_error(e)}") from e
