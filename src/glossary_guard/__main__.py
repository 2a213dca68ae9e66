"""Module entrypoint for ``python -m glossary_guard``."""

from __future__ import annotations

from glossary_guard.main import cli_entrypoint

if __name__ == "__main__":
    raise SystemExit(cli_entrypoint())
