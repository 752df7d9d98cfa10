import asyncio
import sys
from enum import Enum
from pathlib import Path
from typing import List, Optional, TextIO, Union

import psutil

from local_registry.core.logging_utils import get_module_logger

from .asyncio_utils import cancel_tasks, create_logged_task
from .errors import ConfigWriteError, PrematureExitError, SpawnError, StartupTimeoutError, UsageError
from .npm_config import RegistryConfigWriter, registry_url
from .port_discovery import parse_port
from .settings import RegistrySettings


class RegistryState(Enum):
    IDLE = "idle"
    STARTING = "starting"
    READY = "ready"
    FAILED = "failed"
    STOPPED = "stopped"


class RegistryProcess:
    """Runs the registry child process and reports when it is reachable.

    ``start()`` settles exactly once: with the announced port after the
    package-manager configuration has been applied, or with the first
    failure (spawn error, premature exit, configuration error, timeout).
    """

    def __init__(
        self,
        target: str,
        config_writer: RegistryConfigWriter,
        settings: Optional[RegistrySettings] = None,
        storage: Optional[Union[str, Path]] = None,
        verbose: bool = False,
        output: Optional[TextIO] = None,
    ):
        if not target or not target.strip():
            raise UsageError("local registry target is required")

        self.target = target
        self.config_writer = config_writer
        self.settings = settings or RegistrySettings()
        self.storage = storage
        self.verbose = verbose
        self.output = output

        self.logger = get_module_logger(f"RegistryProcess.{target}")

        self.process: Optional[asyncio.subprocess.Process] = None
        self.state = RegistryState.IDLE
        self.port: Optional[int] = None
        self.returncode: Optional[int] = None
        self.error_message: Optional[str] = None

        self.stdout_task: Optional[asyncio.Task] = None
        self.monitor_task: Optional[asyncio.Task] = None
        self._tasks: set[asyncio.Task] = set()

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._ready_future: Optional[asyncio.Future] = None
        self._scanning = False
        self._stopping = False

    # ------------------------------------------------------------------
    # Startup

    def build_command(self) -> List[str]:
        cmd = [
            *self.settings.launcher,
            "run", self.target,
            "--location", "none",
            "--clear", "true",
        ]
        if self.storage:
            cmd.extend(["--storage", str(self.storage)])
        return cmd

    async def start(self) -> int:
        if self.state is not RegistryState.IDLE:
            raise UsageError(f"registry process already {self.state.value}")

        self.state = RegistryState.STARTING
        self._loop = asyncio.get_running_loop()
        self._ready_future = self._loop.create_future()

        cmd = self.build_command()
        self.logger.info("Starting local registry: %s", self.target)
        self.logger.debug("Command: %s", ' '.join(cmd))

        try:
            # stdin and stderr stay attached to the operator's terminal
            self.process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=None,
                stdout=asyncio.subprocess.PIPE,
                stderr=None,
                limit=self.settings.stream_limit,
            )
        except OSError as e:
            self.state = RegistryState.FAILED
            self.error_message = str(e)
            self.logger.error("Failed to start registry process: %s", e)
            raise SpawnError(f"could not start {cmd[0]} for {self.target}: {e}") from e

        self.logger.info("Registry process started with PID: %d", self.process.pid)
        self._scanning = True

        self.stdout_task = create_logged_task(
            self._stdout_reader(), logger=self.logger, context="registry-stdout", pending=self._tasks
        )
        self.monitor_task = create_logged_task(
            self._process_monitor(), logger=self.logger, context="registry-monitor", pending=self._tasks
        )

        timeout = self.settings.startup_timeout
        try:
            if timeout:
                return await asyncio.wait_for(self._ready_future, timeout=timeout)
            return await self._ready_future
        except asyncio.TimeoutError:
            self._scanning = False
            self.state = RegistryState.FAILED
            error = StartupTimeoutError(timeout, self.target)
            self.error_message = str(error)
            self.logger.error("%s", error)
            await self._abort()
            raise error from None
        except (SpawnError, ConfigWriteError):
            await self._abort()
            raise
        except asyncio.CancelledError:
            self._scanning = False
            configured = self.state is RegistryState.READY and self.port is not None
            self.state = RegistryState.FAILED
            self.error_message = "startup cancelled"
            await self._abort()
            if configured:
                self._revert_config()
            raise

    # ------------------------------------------------------------------
    # Output and exit handling

    def _echo(self, line: bytes) -> None:
        stream = self.output or sys.stdout
        stream.write(line.decode("utf-8", errors="replace"))
        stream.flush()

    def _handle_line(self, line: bytes) -> None:
        if not self._scanning or self._ready_future is None or self._ready_future.done():
            return

        port = parse_port(line)
        if port is None:
            return

        # Only the first announcement counts
        self._scanning = False
        self._mark_ready(port)

    def _mark_ready(self, port: int) -> None:
        self.port = port
        self.logger.info("Local registry started on port %d", port)

        try:
            self.config_writer.apply(port, self.settings.auth_token)
        except Exception as e:
            error = e
            if not isinstance(e, ConfigWriteError):
                error = ConfigWriteError(f"applying registry configuration failed: {e}")
                error.__cause__ = e
            self.state = RegistryState.FAILED
            self.error_message = str(error)
            self.logger.error("Registry is up but configuration failed: %s", error)
            self._ready_future.set_exception(error)
            return

        self.state = RegistryState.READY
        self._ready_future.set_result(port)

    def _handle_exit(self, returncode: Optional[int]) -> None:
        self.returncode = returncode

        if self._ready_future is not None and not self._ready_future.done():
            self._scanning = False
            self.state = RegistryState.FAILED
            error = PrematureExitError(returncode, self.target)
            self.error_message = str(error)
            self.logger.error("Local registry exited with code %s before it was ready", returncode)
            self._ready_future.set_exception(error)
        elif self._stopping:
            self.logger.info("Local registry exited with code %s", returncode)
            if self.state is not RegistryState.FAILED:
                self.state = RegistryState.STOPPED
        elif self.state is RegistryState.READY:
            # Session still points at this handle; teardown deals with it
            self.logger.warning("Local registry exited with code %s after startup", returncode)
        else:
            self.logger.debug("Registry process exited with code %s", returncode)

    def _handle_reader_error(self, error: Exception) -> None:
        if self._ready_future is not None and not self._ready_future.done():
            self._scanning = False
            self.state = RegistryState.FAILED
            self.error_message = str(error)
            spawn_error = SpawnError(f"reading registry output failed: {error}")
            spawn_error.__cause__ = error
            self._ready_future.set_exception(spawn_error)
        else:
            self.logger.error("stdout reader error: %s", error)

    async def _stdout_reader(self) -> None:
        if not self.process or not self.process.stdout:
            return

        # Keeps draining after readiness so the child never blocks on a full pipe
        while True:
            try:
                line = await self.process.stdout.readline()
            except ValueError as e:
                self.logger.debug("Skipping oversized output line: %s", e)
                continue
            except Exception as e:
                self._handle_reader_error(e)
                return

            if not line:
                break

            if self.verbose:
                self._echo(line)
            self._handle_line(line)

    async def _process_monitor(self) -> None:
        if not self.process:
            return

        returncode = await self.process.wait()
        self._handle_exit(returncode)

    # ------------------------------------------------------------------
    # Shutdown

    def _on_loop_thread(self) -> bool:
        try:
            return asyncio.get_running_loop() is self._loop
        except RuntimeError:
            return False

    def _signal_tree(self, kill: bool) -> None:
        if self.process is None or self.process.returncode is not None:
            return

        pid = self.process.pid
        action = "kill" if kill else "terminate"

        if self.settings.terminate_tree:
            try:
                children = psutil.Process(pid).children(recursive=True)
            except psutil.NoSuchProcess:
                children = []
            for child in children:
                try:
                    getattr(child, action)()
                except psutil.NoSuchProcess:
                    continue
                except psutil.AccessDenied as e:
                    self.logger.warning("Cannot %s registry child pid=%d: %s", action, child.pid, e)

        try:
            getattr(self.process, action)()
        except ProcessLookupError:
            # Transport already closed with its loop; signal the pid directly
            try:
                getattr(psutil.Process(pid), action)()
            except psutil.NoSuchProcess:
                pass

    def terminate(self) -> None:
        """Send SIGTERM to the registry (and its children). Does not wait for exit.

        Safe to call from a thread other than the one running the loop.
        """
        if self.process is None or self.process.returncode is not None:
            self.logger.debug("Registry process not running")
            return

        self._stopping = True
        self.logger.info("Terminating local registry (PID %d)", self.process.pid)

        loop = self._loop
        if loop is not None and loop.is_running() and not self._on_loop_thread():
            loop.call_soon_threadsafe(self._signal_tree, False)
        else:
            self._signal_tree(False)

    async def stop(self, timeout: float = 10.0) -> None:
        """Terminate the registry, escalating to kill, and wait for it to exit."""
        if self.process is None:
            self.logger.debug("Registry process not running")
            return

        try:
            self.terminate()
            try:
                await asyncio.wait_for(self.process.wait(), timeout=timeout)
            except asyncio.TimeoutError:
                self.logger.warning("Registry did not exit after terminate, killing...")
                self._signal_tree(True)
                await self.process.wait()
        finally:
            await cancel_tasks(self._tasks)
            self.state = RegistryState.STOPPED
            self.logger.info("Local registry stopped: %s", self.target)

    def _revert_config(self) -> None:
        # No session will ever own this port, so nothing else removes the token
        try:
            self.config_writer.revert(self.port)
        except ConfigWriteError as e:
            self.logger.warning("Could not remove auth token for port %d: %s", self.port, e)

    async def _abort(self) -> None:
        if self.process is not None and self.process.returncode is None:
            self._stopping = True
            self._signal_tree(False)
            try:
                await asyncio.wait_for(self.process.wait(), timeout=5.0)
            except asyncio.TimeoutError:
                self._signal_tree(True)
                await self.process.wait()
        await cancel_tasks(self._tasks)

    # ------------------------------------------------------------------
    # Queries

    @property
    def pid(self) -> Optional[int]:
        return self.process.pid if self.process else None

    @property
    def registry_url(self) -> Optional[str]:
        return registry_url(self.port) if self.port is not None else None

    def get_state(self) -> RegistryState:
        return self.state

    def is_running(self) -> bool:
        return self.process is not None and self.process.returncode is None

    def is_ready(self) -> bool:
        return self.state is RegistryState.READY
