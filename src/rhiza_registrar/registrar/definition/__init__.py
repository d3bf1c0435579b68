"""Workflow definitions: placeholder resolution, typed model and graph checks."""

from rhiza_registrar.registrar.definition.model import (
    Handoff,
    HandoffKind,
    Step,
    WorkerReference,
    WorkflowDefinition,
    parse_definition,
)
from rhiza_registrar.registrar.definition.validation import validate_definition
from rhiza_registrar.registrar.definition.variables import resolve_variables

__all__ = [
    "Handoff",
    "HandoffKind",
    "Step",
    "WorkerReference",
    "WorkflowDefinition",
    "parse_definition",
    "resolve_variables",
    "validate_definition",
]
