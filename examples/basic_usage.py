#!/usr/bin/env python3
"""Programmatic registration example.

This demonstrates using the registrar components directly:

* load settings from `.env`
* resolve and validate a workflow definition
* preview the change (default) or apply it with `--apply`

The definition path is passed as an argument (not read from `.env`).
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Sequence

from rhiza_registrar.registrar.arke.client import ArkeClient
from rhiza_registrar.registrar.config import RegistrarSettings, resolution_environment
from rhiza_registrar.registrar.logging import configure_logging
from rhiza_registrar.registrar.sync.orchestrator import register
from rhiza_registrar.registrar.sync.state import Network, RegistrationStateStore, StateKey


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Register a rhiza (programmatic example).")
    parser.add_argument("definition", help="Path to a workflow definition JSON file")
    parser.add_argument("--apply", action="store_true", help="Apply instead of previewing")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    path = Path(args.definition)

    settings = RegistrarSettings()
    configure_logging(settings.log_level)

    key = StateKey(workflow_name=path.stem, network=Network.TEST)
    store = RegistrationStateStore(settings.state_dir)
    raw = json.loads(path.read_text(encoding="utf-8"))

    if not args.apply:
        preview = register(
            raw, environ=resolution_environment(), key=key, store=store, dry_run=True
        )
        print(f"Would: {preview.action}")
        for change in getattr(preview, "changes", ()):
            print(f"  {change.field}: {change.from_value} -> {change.to_value}")
        return 0

    client = ArkeClient(
        user_key=settings.arke_user_key,
        network=key.network,
        api_base=settings.arke_api_base,
    )
    try:
        result = register(
            raw, environ=resolution_environment(), key=key, store=store, registry=client
        )
    finally:
        client.close()

    print(f"Rhiza {result.action}: {result.state.rhiza_id}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
