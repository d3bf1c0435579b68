"""Test configuration and fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Any
from unittest.mock import Mock

import pytest

from rhiza_registrar.registrar.arke.client import ArkeClient
from rhiza_registrar.registrar.sync.remote import RemoteIds
from rhiza_registrar.registrar.sync.state import Network, RegistrationStateStore, StateKey


@pytest.fixture
def environ() -> dict[str, str]:
    """Provide the variables referenced by `raw_definition`."""
    return {"STAMP_KLADOS_1": "klados_one", "STAMP_KLADOS_2": "klados_two"}


@pytest.fixture
def raw_definition() -> dict[str, Any]:
    """Provide an unresolved two-step chain."""
    return {
        "label": "Stamp Chain",
        "description": "Two stamps in sequence",
        "version": "1.0.0",
        "entry": "s1",
        "flow": {
            "s1": {"klados": {"pi": "$STAMP_KLADOS_1"}, "then": {"pass": "s2"}},
            "s2": {"klados": {"pi": "$STAMP_KLADOS_2"}, "then": {"done": True}},
        },
    }


@pytest.fixture
def state_store(tmp_path: Path) -> RegistrationStateStore:
    """Provide a state store rooted in a temporary directory."""
    return RegistrationStateStore(tmp_path / "state")


@pytest.fixture
def state_key() -> StateKey:
    return StateKey(workflow_name="stamp-chain", network=Network.TEST)


@pytest.fixture
def registry() -> Mock:
    """Provide a mocked Arke client that hands out fixed ids."""
    mock = Mock(spec=ArkeClient)
    mock.create.return_value = RemoteIds(rhiza_id="rhiza_123", collection_id="coll_456")
    return mock
