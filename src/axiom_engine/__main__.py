"""Module entrypoint for ``python -m axiom_engine``."""

from __future__ import annotations

from axiom_engine.main import cli_entrypoint

if __name__ == "__main__":
    raise SystemExit(cli_entrypoint())
