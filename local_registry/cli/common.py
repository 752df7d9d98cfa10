from __future__ import annotations

import argparse
import logging
from pathlib import Path

from local_registry.core.paths import DEFAULT_STORAGE_DIR


LOG_LEVELS: dict[str, int] = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


def add_common_cli_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--target",
        required=True,
        help="Launcher target that runs the registry, e.g. workspace:local-registry",
    )

    parser.add_argument(
        "--storage",
        type=Path,
        default=DEFAULT_STORAGE_DIR,
        help="Directory the registry stores packages in",
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Echo the registry's output",
    )

    parser.add_argument(
        "--log-level",
        choices=sorted(LOG_LEVELS.keys()),
        default="info",
        help="Logging verbosity",
    )

    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Optional path to write logs to",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Settings file (default: $LOCAL_REGISTRY_CONFIG or ./local-registry.txt)",
    )
