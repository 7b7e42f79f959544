"""Module entrypoint for ``python -m manifest_validator``."""

from __future__ import annotations

from manifest_validator.main import cli_entrypoint

if __name__ == "__main__":
    raise SystemExit(cli_entrypoint())
