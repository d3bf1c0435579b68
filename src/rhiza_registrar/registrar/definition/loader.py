"""Locate and read workflow definition files."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from rhiza_registrar.registrar.definition.variables import JsonValue
from rhiza_registrar.registrar.errors import DefinitionError

logger = logging.getLogger(__name__)


def workflow_name_from_arg(value: str) -> str:
    """Normalise a CLI workflow argument (`stamp-chain` or `stamp-chain.json`)."""

    name = value.strip()
    if name.endswith(".json"):
        name = name[: -len(".json")]
    if not name:
        raise DefinitionError("Workflow name is empty")
    return name


def definition_path(workflows_dir: Path, name: str) -> Path:
    return workflows_dir / f"{workflow_name_from_arg(name)}.json"


def load_definition_file(workflows_dir: Path, name: str) -> JsonValue:
    """Read the raw (unresolved) JSON for workflow `name`."""

    path = definition_path(workflows_dir, name)
    if not path.exists():
        raise DefinitionError(f"Workflow file not found: {path}")

    logger.debug("Loading workflow definition", extra={"path": str(path)})
    try:
        raw: JsonValue = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise DefinitionError(f"Workflow file {path} is not valid JSON: {e}") from e
    return raw
