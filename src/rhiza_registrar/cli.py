"""Console entrypoint; the CLI itself lives in `rhiza_registrar.registrar.main`."""

from __future__ import annotations

from rhiza_registrar.registrar.main import main

__all__ = ["main"]


if __name__ == "__main__":
    raise SystemExit(main())
