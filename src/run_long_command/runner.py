import asyncio
import logging
import os
import time
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from typing import Any

from run_long_command.config import NotifierConfig
from run_long_command.errors import describe_error
from run_long_command.injector import SessionInjector
from run_long_command.message import compose_error, compose_success
from run_long_command.shell import OutputBuffer, drain_stream, spawn_detached
from run_long_command.telemetry import Telemetry, get_telemetry
from run_long_command.tmux import TmuxInterface, TmuxManager

logger = logging.getLogger(__name__)


@dataclass
class ManagedCommand:
    """One background shell invocation, from spawn to delivered notice."""

    command: str
    cwd: str
    started_at: float
    output: OutputBuffer
    pid: int | None = None
    exit_code: int | None = None
    error: str | None = None


@dataclass(frozen=True)
class LaunchResult:
    """What the caller gets back right away."""

    text: str
    is_error: bool = False
    pid: int | None = None


class CommandRunner:
    """Launches commands in the background and reports back through tmux."""

    def __init__(
        self,
        config: NotifierConfig | None = None,
        tmux: TmuxInterface | None = None,
        injector: SessionInjector | None = None,
        telemetry: Telemetry | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or NotifierConfig()
        self.tmux = tmux or TmuxManager()
        self.injector = injector or SessionInjector(self.tmux, self.config)
        self.telemetry = telemetry or get_telemetry()
        self._clock = clock
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        """Number of commands whose notice has not been sent yet."""
        return len(self._tasks)

    async def start(self, command: str) -> LaunchResult:
        """
        Checks that the target session exists, then starts ``command``
        without waiting for it. Completion is reported asynchronously.
        """
        session = self.config.session_name
        if not await asyncio.to_thread(self.tmux.has_session, session):
            logger.warning("Refusing %r: tmux session %r not found", command, session)
            return LaunchResult(
                text=(
                    f"Error: Not running inside tmux session '{session}'. "
                    f"This tool requires being in a tmux session named '{session}' "
                    "to wake up the agent upon completion."
                ),
                is_error=True,
            )

        cwd = os.getcwd()
        managed = ManagedCommand(
            command=command,
            cwd=cwd,
            started_at=self._clock(),
            output=OutputBuffer(self.config.max_output_length),
        )

        try:
            process = await spawn_detached(command, cwd)
        except (OSError, ValueError) as e:
            # Reported through the pane like any other failure
            managed.error = describe_error(e)
            logger.error("Failed to start %r: %s", command, e)
            self._schedule(self._report_failure(managed))
        else:
            managed.pid = process.pid
            logger.info("Started %r as PID %s in %s", command, process.pid, cwd)
            if self.telemetry:
                self.telemetry.log_started(process.pid, command, cwd)
            self._schedule(self._supervise(managed, process))

        pid = managed.pid if managed.pid is not None else "unknown"
        return LaunchResult(
            text=(
                f'Command "{command}" started in the background '
                f"(PID: {pid}, CWD: {cwd}). I will notify you when it finishes."
            ),
            pid=managed.pid,
        )

    async def wait_all(self):
        """Waits until every launched command has had its notice sent."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _schedule(self, coro: Coroutine[Any, Any, None]):
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _supervise(self, managed: ManagedCommand, process: asyncio.subprocess.Process):
        try:
            await asyncio.gather(
                drain_stream(process.stdout, managed.output),
                drain_stream(process.stderr, managed.output),
            )
            managed.exit_code = await process.wait()
        except Exception as e:
            managed.error = describe_error(e)
            logger.error("Lost track of PID %s (%r): %s", managed.pid, managed.command, e)
            await self._report_failure(managed)
            return

        duration_ms = (self._clock() - managed.started_at) * 1000
        logger.info(
            "PID %s (%r) exited with %s after %.0fms",
            managed.pid,
            managed.command,
            managed.exit_code,
            duration_ms,
        )
        if self.telemetry:
            self.telemetry.log_completed(
                managed.pid, managed.command, managed.exit_code, duration_ms
            )

        notice = compose_success(
            managed.command,
            managed.exit_code,
            managed.output.text,
            duration_ms,
            max_length=self.config.max_notice_length,
        )
        await self._deliver(managed, notice)

    async def _report_failure(self, managed: ManagedCommand):
        if self.telemetry:
            self.telemetry.log_failed(managed.pid, managed.command, managed.error)
        notice = compose_error(
            managed.command, managed.error, max_length=self.config.max_notice_length
        )
        await self._deliver(managed, notice)

    async def _deliver(self, managed: ManagedCommand, notice: str):
        delivered = await self.injector.inject(notice)
        if self.telemetry:
            if delivered:
                self.telemetry.log_notified(managed.pid, managed.command, notice)
            else:
                self.telemetry.log_notify_failed(managed.pid, managed.command, notice)
