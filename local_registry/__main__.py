"""Allow ``python -m local_registry`` to run the registry CLI."""

from __future__ import annotations

from . import run

if __name__ == "__main__":
    run()
