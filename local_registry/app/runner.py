import argparse
import asyncio
import signal
import sys
from typing import Optional

from local_registry.cli.common import add_common_cli_arguments
from local_registry.core import LocalRegistryError, UsageError, start_local_registry, stop_local_registry
from local_registry.core.logging_config import configure_logging
from local_registry.core.logging_utils import get_module_logger
from local_registry.core.session_state import RegistrySession
from local_registry.core.settings import load_settings_async


logger = get_module_logger(__name__)

EXIT_STARTUP_FAILURE = 1
EXIT_USAGE = 2
EXIT_COMMAND_NOT_FOUND = 127


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="local-registry",
        description="Run an ephemeral local package registry, optionally around a command",
    )
    add_common_cli_arguments(parser)
    parser.add_argument(
        "command",
        nargs=argparse.REMAINDER,
        help="Command to run against the registry (after --); without one the registry runs until interrupted",
    )

    args = parser.parse_args(argv)
    if args.command and args.command[0] == "--":
        args.command = args.command[1:]
    return args


def _install_signal_handlers(loop: asyncio.AbstractEventLoop, handlers: dict) -> None:
    for sig, handler in handlers.items():
        try:
            loop.add_signal_handler(sig, handler)
        except NotImplementedError:
            pass  # Windows doesn't support add_signal_handler


async def _run_command(command: list[str]) -> int:
    """Run ``command`` with the registry environment; return its exit code."""
    logger.info("Running: %s", ' '.join(command))
    try:
        proc = await asyncio.create_subprocess_exec(*command)
    except OSError as e:
        logger.error("Could not run %s: %s", command[0], e)
        return EXIT_COMMAND_NOT_FOUND

    def forward_sigterm():
        if proc.returncode is None:
            proc.send_signal(signal.SIGTERM)

    # SIGINT from the terminal already reaches the command directly
    _install_signal_handlers(asyncio.get_running_loop(), {
        signal.SIGINT: lambda: None,
        signal.SIGTERM: forward_sigterm,
    })
    return await proc.wait()


async def _serve_until_signalled(session: RegistrySession) -> int:
    stop_event = asyncio.Event()
    _install_signal_handlers(asyncio.get_running_loop(), {
        signal.SIGINT: stop_event.set,
        signal.SIGTERM: stop_event.set,
    })

    print(session.registry_url, flush=True)
    logger.info("Local registry running at %s (Ctrl+C to stop)", session.registry_url)
    await stop_event.wait()
    return 0


async def main(argv: Optional[list[str]] = None) -> int:
    """
    Command-line entry point.

    Starts the registry, then either runs the trailing command against it
    or keeps it up until SIGINT/SIGTERM. Teardown always runs.
    """
    args = parse_args(argv)
    configure_logging(args.log_level, force=True, log_file=args.log_file)

    try:
        settings = await load_settings_async(args.config)
        session = await start_local_registry(
            args.target,
            storage=args.storage,
            verbose=args.verbose,
            settings=settings,
        )
    except UsageError as e:
        logger.error("%s", e.describe())
        return EXIT_USAGE
    except LocalRegistryError as e:
        logger.error("%s", e.describe())
        return EXIT_STARTUP_FAILURE

    try:
        if args.command:
            return await _run_command(args.command)
        return await _serve_until_signalled(session)
    finally:
        await session.process.stop()
        stop_local_registry()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
