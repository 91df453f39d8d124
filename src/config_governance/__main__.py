"""Module entrypoint for ``python -m config_governance``."""

from __future__ import annotations

from config_governance.main import cli_entrypoint

if __name__ == "__main__":
    raise SystemExit(cli_entrypoint())
