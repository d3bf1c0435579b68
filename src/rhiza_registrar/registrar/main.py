"""CLI entrypoint for the rhiza registrar.

Usage:
    rhiza-registrar register stamp-chain              # test network
    rhiza-registrar register stamp-chain --prod       # main network
    rhiza-registrar register stamp-chain --dry-run
    rhiza-registrar list-kladoi
    rhiza-registrar show-state stamp-chain --prod
"""

from __future__ import annotations

import argparse
import logging
import sys

from pydantic import ValidationError

from rhiza_registrar import __version__
from rhiza_registrar.registrar.arke.client import ArkeClient
from rhiza_registrar.registrar.config import RegistrarSettings, resolution_environment
from rhiza_registrar.registrar.definition.loader import (
    load_definition_file,
    workflow_name_from_arg,
)
from rhiza_registrar.registrar.errors import (
    ConfigurationError,
    DefinitionError,
    RegistrationError,
    StateCorruptionError,
    StatePersistenceError,
)
from rhiza_registrar.registrar.logging import configure_logging
from rhiza_registrar.registrar.sync.diff import FieldChange
from rhiza_registrar.registrar.sync.engine import (
    Created,
    DryRunResult,
    SyncPlan,
    SyncResult,
    apply_plan,
    preview,
)
from rhiza_registrar.registrar.sync.orchestrator import prepare_plan
from rhiza_registrar.registrar.sync.state import Network, RegistrationStateStore, StateKey

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIGURATION = 2
EXIT_DEFINITION = 3
EXIT_STATE_CORRUPT = 4
EXIT_REGISTRATION = 5
EXIT_STATE_NOT_SAVED = 6

RULE = "=" * 60


def _add_network_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--prod",
        "--production",
        dest="production",
        action="store_true",
        help="Target the main network instead of the test network",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rhiza-registrar",
        description="Register rhiza workflow definitions with Arke",
    )
    parser.add_argument("--version", action="version", version=f"rhiza-registrar {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    register = subparsers.add_parser(
        "register",
        help="Create or update the rhiza for a workflow definition",
    )
    register.add_argument(
        "workflow",
        help="Workflow name; reads <RHIZA_WORKFLOWS_DIR>/<workflow>.json",
    )
    _add_network_flag(register)
    register.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would change without calling Arke or writing state",
    )

    list_kladoi = subparsers.add_parser(
        "list-kladoi",
        help="List klados workers that can be referenced from workflow definitions",
    )
    list_kladoi.add_argument(
        "--limit",
        type=int,
        default=50,
        help="Maximum number of workers to list",
    )
    list_kladoi.add_argument(
        "--network",
        choices=[n.value for n in Network],
        default=None,
        help="Network to query (defaults to ARKE_NETWORK)",
    )

    show_state = subparsers.add_parser(
        "show-state",
        help="Print the stored registration state for a workflow",
    )
    show_state.add_argument("workflow", help="Workflow name")
    _add_network_flag(show_state)

    return parser


def _network(args: argparse.Namespace) -> Network:
    return Network.MAIN if args.production else Network.TEST


def _print_plan_summary(plan: SyncPlan) -> None:
    definition = plan.definition
    print(f"Label: {definition.label}")
    print(f"Version: {definition.version}")
    print(f"Entry: {definition.entry}")
    print(f"Steps: {len(definition.flow)}")
    for name, step in definition.flow.items():
        print(f"  - {name}: {step.worker.pi}")
    print("")

    if plan.prior is not None:
        print(f"Found existing rhiza: {plan.prior.rhiza_id}")
    else:
        print("No existing rhiza found")


def _format_value(value: object) -> str:
    return "(none)" if value is None else str(value)


def _print_changes(changes: tuple[FieldChange, ...]) -> None:
    if not changes:
        return
    print("\nChanges:")
    for change in changes:
        print(
            f"  {change.field}: {_format_value(change.from_value)} → "
            f"{_format_value(change.to_value)}"
        )


def _print_dry_run(result: DryRunResult) -> None:
    print(f"\nWould: {result.action}")
    _print_changes(getattr(result, "changes", ()))
    print("\nRun without --dry-run to apply changes.")


def _print_sync_result(result: SyncResult) -> None:
    state = result.state
    _print_changes(getattr(result, "changes", ()))
    print(f"\n{RULE}")
    print(f"Rhiza {result.action}!")
    print(RULE)
    print(f"   ID: {state.rhiza_id}")
    print(f"   Collection: {state.collection_id}")
    print(f"   Version: {state.version}")
    print(f"{RULE}\n")

    if isinstance(result, Created):
        print(f"To run workflow tests, set RHIZA_ID={state.rhiza_id}")


def _run_register(args: argparse.Namespace, settings: RegistrarSettings) -> int:
    workflow_name = workflow_name_from_arg(args.workflow)
    network = _network(args)
    key = StateKey(workflow_name=workflow_name, network=network)

    print(
        f"\nRhiza registration ({network.value} network)"
        f"{' [DRY RUN]' if args.dry_run else ''}\n"
    )
    print(f"Workflow: {workflow_name}")

    raw = load_definition_file(settings.workflows_dir, workflow_name)
    store = RegistrationStateStore(settings.state_dir)
    plan = prepare_plan(
        raw, environ=resolution_environment(), key=key, reader=store.reader()
    )
    _print_plan_summary(plan)

    if args.dry_run:
        _print_dry_run(preview(plan))
        return EXIT_OK

    client = ArkeClient(
        user_key=settings.arke_user_key,
        network=network,
        api_base=settings.arke_api_base,
        timeout_seconds=settings.request_timeout_seconds,
    )
    try:
        result = apply_plan(plan, registry=client, store=store)
    finally:
        client.close()

    _print_sync_result(result)
    return EXIT_OK


def _run_list_kladoi(args: argparse.Namespace, settings: RegistrarSettings) -> int:
    network = Network(args.network) if args.network else settings.arke_network
    print(f"\nListing klados workers on {network.value} network...\n")

    client = ArkeClient(
        user_key=settings.arke_user_key,
        network=network,
        api_base=settings.arke_api_base,
        timeout_seconds=settings.request_timeout_seconds,
    )
    try:
        kladoi = client.list_kladoi(limit=args.limit)
    finally:
        client.close()

    if not kladoi:
        print("No klados workers found.")
        return EXIT_OK

    print(f"{'ID':<31} | {'Label':<24} | Status")
    print(f"{'-' * 31}-|-{'-' * 24}-|-{'-' * 6}")
    for k in kladoi:
        if not k.fetched:
            print(f"{k.pi:<31} | {'(unable to fetch)':<24} |")
            continue
        label = (k.label or "(unnamed)")[:24]
        print(f"{k.pi:<31} | {label:<24} | {k.status or 'unknown'}")

    print("\nUse these IDs in your workflow definitions.")
    print("Set them as environment variables (e.g., STAMP_KLADOS_1=klados_xxx)")
    return EXIT_OK


def _run_show_state(args: argparse.Namespace, settings: RegistrarSettings) -> int:
    key = StateKey(workflow_name=workflow_name_from_arg(args.workflow), network=_network(args))
    store = RegistrationStateStore(settings.state_dir)
    state = store.read(key)
    if state is None:
        print(f"No registration state for {key} ({store.path_for(key)})")
        return EXIT_OK

    print(f"Registration state for {key}:")
    print(f"   ID: {state.rhiza_id}")
    print(f"   Collection: {state.collection_id}")
    print(f"   Label: {state.label}")
    print(f"   Version: {state.version}")
    print(f"   Steps: {', '.join(sorted(state.flow)) or '(none)'}")
    print(f"   Updated: {state.updated_at}")
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = RegistrarSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your environment or .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return EXIT_CONFIGURATION

    configure_logging(settings.log_level)

    try:
        if args.command == "register":
            return _run_register(args, settings)
        if args.command == "list-kladoi":
            return _run_list_kladoi(args, settings)
        if args.command == "show-state":
            return _run_show_state(args, settings)

        logger.error("Unknown command", extra={"command": args.command})
        return EXIT_FAILED

    except ConfigurationError as e:
        print(f"\nError: {e}", file=sys.stderr)
        print("Make sure all required environment variables are set.", file=sys.stderr)
        return EXIT_CONFIGURATION

    except DefinitionError as e:
        print(f"\nError: {e}", file=sys.stderr)
        return EXIT_DEFINITION

    except StateCorruptionError as e:
        logger.error(str(e), extra={"path": str(e.path)})
        print(f"\nError: {e}", file=sys.stderr)
        print("Fix or remove the state file; it was not treated as absent.", file=sys.stderr)
        return EXIT_STATE_CORRUPT

    except RegistrationError as e:
        print("\nRegistration failed:", file=sys.stderr)
        print(f"   {e}", file=sys.stderr)
        return EXIT_REGISTRATION

    except StatePersistenceError as e:
        print(f"\nError: {e}", file=sys.stderr)
        print(
            f"Restore state manually before retrying: rhiza_id={e.state.rhiza_id} "
            f"collection_id={e.state.collection_id}",
            file=sys.stderr,
        )
        return EXIT_STATE_NOT_SAVED

    except Exception:
        logger.exception("Command failed")
        return EXIT_FAILED


if __name__ == "__main__":
    raise SystemExit(main())
