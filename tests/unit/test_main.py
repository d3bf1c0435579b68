"""Unit tests for the CLI (Arke client mocked)."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import Mock

import pytest

import rhiza_registrar.registrar.main as main_module
from rhiza_registrar.registrar.arke.client import ArkeClient, KladosSummary
from rhiza_registrar.registrar.errors import RegistrationError
from rhiza_registrar.registrar.main import (
    EXIT_CONFIGURATION,
    EXIT_DEFINITION,
    EXIT_OK,
    EXIT_REGISTRATION,
    EXIT_STATE_CORRUPT,
    main,
)
from rhiza_registrar.registrar.sync.remote import RemoteIds
from rhiza_registrar.registrar.sync.state import Network, RegistrationStateStore, StateKey


@pytest.fixture
def workspace(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, raw_definition: dict[str, object]
) -> Path:
    for name in ("ARKE_NETWORK", "RHIZA_WORKFLOWS_DIR", "RHIZA_STATE_DIR", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("ARKE_USER_KEY", "uk_test")
    monkeypatch.setenv("STAMP_KLADOS_1", "klados_one")
    monkeypatch.setenv("STAMP_KLADOS_2", "klados_two")

    workflows = tmp_path / "workflows"
    workflows.mkdir()
    (workflows / "stamp-chain.json").write_text(json.dumps(raw_definition), encoding="utf-8")
    return tmp_path


@pytest.fixture
def fake_client(monkeypatch: pytest.MonkeyPatch) -> Mock:
    client = Mock(spec=ArkeClient)
    client.create.return_value = RemoteIds(rhiza_id="rhiza_cli", collection_id="coll_cli")
    factory = Mock(return_value=client)
    monkeypatch.setattr(main_module, "ArkeClient", factory)
    client.factory = factory
    return client


def _stored(workspace: Path, network: Network = Network.TEST):
    return RegistrationStateStore(workspace).read(StateKey("stamp-chain", network))


def test_register_creates_and_persists(
    workspace: Path, fake_client: Mock, capsys: pytest.CaptureFixture[str]
) -> None:
    assert main(["register", "stamp-chain"]) == EXIT_OK

    out = capsys.readouterr().out
    assert "Rhiza created!" in out
    assert "RHIZA_ID=rhiza_cli" in out
    assert "  - s1: klados_one" in out
    state = _stored(workspace)
    assert state is not None and state.rhiza_id == "rhiza_cli"
    assert fake_client.factory.call_args.kwargs["network"] is Network.TEST
    fake_client.close.assert_called_once()


def test_register_accepts_json_suffix_and_prod_flag(workspace: Path, fake_client: Mock) -> None:
    assert main(["register", "stamp-chain.json", "--prod"]) == EXIT_OK

    assert fake_client.factory.call_args.kwargs["network"] is Network.MAIN
    assert _stored(workspace, Network.MAIN) is not None
    assert _stored(workspace, Network.TEST) is None


def test_second_register_is_unchanged(
    workspace: Path, fake_client: Mock, capsys: pytest.CaptureFixture[str]
) -> None:
    main(["register", "stamp-chain"])
    capsys.readouterr()

    assert main(["register", "stamp-chain"]) == EXIT_OK

    assert "Rhiza unchanged!" in capsys.readouterr().out
    assert fake_client.create.call_count == 1


def test_dry_run_reports_changes_without_client(
    workspace: Path, fake_client: Mock, capsys: pytest.CaptureFixture[str]
) -> None:
    main(["register", "stamp-chain"])
    before = _stored(workspace)
    path = workspace / "workflows" / "stamp-chain.json"
    raw = json.loads(path.read_text(encoding="utf-8"))
    raw["version"] = "2.0.0"
    path.write_text(json.dumps(raw), encoding="utf-8")
    fake_client.factory.reset_mock()
    capsys.readouterr()

    assert main(["register", "stamp-chain", "--dry-run"]) == EXIT_OK

    out = capsys.readouterr().out
    assert "[DRY RUN]" in out
    assert "Would: would_update" in out
    assert "version: 1.0.0 → 2.0.0" in out
    fake_client.factory.assert_not_called()
    assert _stored(workspace) == before


def test_missing_variable_exits_with_configuration_code(
    workspace: Path, fake_client: Mock, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.delenv("STAMP_KLADOS_2")

    assert main(["register", "stamp-chain"]) == EXIT_CONFIGURATION
    fake_client.create.assert_not_called()


def test_missing_workflow_file_is_a_definition_error(workspace: Path, fake_client: Mock) -> None:
    assert main(["register", "nope"]) == EXIT_DEFINITION


def test_corrupt_state_exit_code(workspace: Path, fake_client: Mock) -> None:
    store = RegistrationStateStore(workspace)
    store.path_for(StateKey("stamp-chain", Network.TEST)).write_text("{", encoding="utf-8")

    assert main(["register", "stamp-chain"]) == EXIT_STATE_CORRUPT
    fake_client.create.assert_not_called()


def test_undecodable_state_exit_code(workspace: Path, fake_client: Mock) -> None:
    store = RegistrationStateStore(workspace)
    store.path_for(StateKey("stamp-chain", Network.TEST)).write_bytes(b"\xff\xfe{")

    assert main(["register", "stamp-chain"]) == EXIT_STATE_CORRUPT
    fake_client.create.assert_not_called()


def test_remote_failure_exit_code(workspace: Path, fake_client: Mock) -> None:
    fake_client.create.side_effect = RegistrationError("HTTP 500")

    assert main(["register", "stamp-chain"]) == EXIT_REGISTRATION
    assert _stored(workspace) is None


def test_missing_user_key_is_configuration_error(
    workspace: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.delenv("ARKE_USER_KEY")
    assert main(["register", "stamp-chain"]) == EXIT_CONFIGURATION


def test_show_state(
    workspace: Path, fake_client: Mock, capsys: pytest.CaptureFixture[str]
) -> None:
    assert main(["show-state", "stamp-chain"]) == EXIT_OK
    assert "No registration state" in capsys.readouterr().out

    main(["register", "stamp-chain"])
    capsys.readouterr()

    assert main(["show-state", "stamp-chain"]) == EXIT_OK
    out = capsys.readouterr().out
    assert "rhiza_cli" in out
    assert "s1, s2" in out


def test_list_kladoi(
    workspace: Path, fake_client: Mock, capsys: pytest.CaptureFixture[str]
) -> None:
    fake_client.list_kladoi.return_value = [
        KladosSummary(pi="klados_a", label="Stamp", status="active"),
        KladosSummary(pi="klados_b", label=None, status=None, fetched=False),
    ]

    assert main(["list-kladoi", "--network", "main", "--limit", "5"]) == EXIT_OK

    out = capsys.readouterr().out
    assert "klados_a" in out and "Stamp" in out and "active" in out
    assert "(unable to fetch)" in out
    fake_client.list_kladoi.assert_called_once_with(limit=5)
    assert fake_client.factory.call_args.kwargs["network"] is Network.MAIN
