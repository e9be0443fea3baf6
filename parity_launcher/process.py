"""
Process supervisor for the parity client.

Spawns a single parity process in light mode, captures its stdout/stderr,
and classifies how it exited. Parity prints one of a couple of well-known
messages when another instance already holds its ports or database lock;
those exits are ignored so the first instance stays the main one. Any other
failure is escalated to the host through the error callback.
"""

import asyncio
import logging
import os
import signal
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Awaitable, Callable, Optional

from .cli import launch_args, log_command, parity_argv
from .config import Config, config
from .detect import is_parity_running
from .errors import HostExitRequested, ParityCrashError, ParityError, ParitySpawnError, ParityTransportError
from .paths import get_parity_path

logger = logging.getLogger(__name__)
parity_logger = logging.getLogger("parity_launcher.parity")

# Output parity produces when another instance is already running and this
# one lost the race for the port or the database lock.
KNOWN_BENIGN_FAILURES = (
    "is already in use, make sure that another instance of an Ethereum client is not running",
    "IO error: While lock file:",
)


class ExitOutcome(Enum):
    CLEAN = "clean"
    CONFLICT = "conflict"
    FATAL = "fatal"
    STOPPED = "stopped"


def classify_exit(exit_code: Optional[int], last_output: Optional[str]) -> ExitOutcome:
    """Classify a finished parity process from its exit code and last output chunk."""
    if exit_code == 0:
        return ExitOutcome.CLEAN
    if last_output and any(message in last_output for message in KNOWN_BENIGN_FAILURES):
        return ExitOutcome.CONFLICT
    return ExitOutcome.FATAL


def split_returncode(returncode: int) -> tuple[Optional[int], Optional[str]]:
    """Turn a returncode into (exit_code, signal_name). Negative means killed by a signal."""
    if returncode >= 0:
        return returncode, None
    try:
        return None, signal.Signals(-returncode).name
    except ValueError:
        return None, f"SIG{-returncode}"


@dataclass(frozen=True)
class ParityExit:
    """How a supervised parity process ended."""

    exit_code: Optional[int]
    signal: Optional[str]
    last_output: Optional[str]
    outcome: ExitOutcome
    explicit_args: bool = False
    pid: Optional[int] = None

    def error(self) -> Optional[ParityError]:
        """The error to escalate for this exit, if any."""
        if self.outcome is not ExitOutcome.FATAL:
            return None
        if self.explicit_args:
            return HostExitRequested(status=1)
        return ParityCrashError(self.exit_code, self.signal)

    def to_dict(self) -> dict:
        return {
            "pid": self.pid,
            "exit_code": self.exit_code,
            "signal": self.signal,
            "outcome": self.outcome.value,
            "last_output": self.last_output,
        }


@dataclass
class SupervisedProcess:
    """The parity process currently owned by a supervisor."""

    process: asyncio.subprocess.Process
    command: str
    generation: int
    started_at: datetime = field(default_factory=datetime.now)
    last_output: Optional[str] = None
    stop_requested: bool = False
    watcher: Optional[asyncio.Task] = None


class ParitySupervisor:
    """Starts, watches and stops a single parity process."""

    def __init__(
        self,
        *,
        run_parity: bool = True,
        launch_args: Optional[list[str]] = None,
        resolve_path: Callable[[], Awaitable[str]] = get_parity_path,
        is_running: Callable[[object], Awaitable[bool]] = is_parity_running,
        on_output: Optional[Callable[[int, str], None]] = None,
        on_exit: Optional[Callable[[ParityExit], None]] = None,
        on_error: Optional[Callable[[BaseException], None]] = None,
        chunk_size: int = 4096,
    ):
        self._run_parity = run_parity
        self._launch_args = list(launch_args or [])
        self._resolve_path = resolve_path
        self._is_running = is_running
        self._on_output = on_output
        self._on_exit = on_exit
        self._on_error = on_error
        self._chunk_size = chunk_size
        self._current: Optional[SupervisedProcess] = None
        self._last: Optional[SupervisedProcess] = None
        # Bumped by every stop() so an in-flight start() knows to give up
        self._generation = 0
        self.parity_running = False

    @classmethod
    def from_config(cls, cfg: Config = config, **handlers) -> "ParitySupervisor":
        return cls(
            run_parity=cfg.run_parity,
            launch_args=parity_argv(cfg),
            resolve_path=lambda: get_parity_path(cfg),
            is_running=lambda target: is_parity_running(target, cfg),
            chunk_size=cfg.output_chunk_size,
            **handlers,
        )

    @property
    def launch_args(self) -> list[str]:
        return list(self._launch_args)

    @property
    def is_running(self) -> bool:
        return self._current is not None and self._current.process.returncode is None

    @property
    def pid(self) -> Optional[int]:
        if not self.is_running:
            return None
        return self._current.process.pid

    @property
    def command(self) -> Optional[str]:
        return self._last.command if self._last else None

    @property
    def last_output(self) -> Optional[str]:
        return self._last.last_output if self._last else None

    @property
    def started_at(self) -> Optional[datetime]:
        return self._current.started_at if self._current else None

    def _superseded(self, generation: int) -> bool:
        if generation != self._generation:
            logger.info("Parity was stopped while starting, not launching it")
            return True
        return False

    async def start(self, notify_target) -> bool:
        """Launch parity unless disabled or already running. Returns True."""
        if not self._run_parity:
            logger.info("Launching parity is disabled")
            return True

        generation = self._generation

        if await self._is_running(notify_target):
            return True
        if self._superseded(generation):
            return True

        parity_path = await self._resolve_path()
        if self._superseded(generation):
            return True

        # Downloaded binaries sometimes lack +x; we may not have the rights to add it
        try:
            await asyncio.to_thread(os.chmod, parity_path, 0o755)
        except OSError:
            pass
        if self._superseded(generation):
            return True

        args = launch_args(self._launch_args)
        command = log_command(parity_path, args)
        if self._current is not None:
            logger.warning(f"Parity is already tracked with PID {self._current.process.pid}, replacing it")

        try:
            process = await asyncio.create_subprocess_exec(
                parity_path,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ParitySpawnError(parity_path, e) from e
        logger.info(command)

        record = SupervisedProcess(process=process, command=command, generation=generation)
        self._last = record
        self._current = record
        record.watcher = asyncio.create_task(self._watch(record))
        record.watcher.add_done_callback(self._on_watch_done)

        if self._superseded(generation):
            await self.stop()
            return True

        notify_target.send("parity-running", True)
        self.parity_running = True
        logger.info(f"Started parity with PID {process.pid}")
        return True

    async def stop(self) -> bool:
        """Signal parity to terminate. Does not wait for it to exit."""
        self._generation += 1
        record = self._current
        if record is None:
            return True

        logger.info("Stopping parity.")
        record.stop_requested = True
        try:
            record.process.terminate()
        except ProcessLookupError:
            pass
        self._current = None
        self.parity_running = False
        return True

    async def wait(self) -> Optional[ParityExit]:
        """Wait for the most recent parity process to exit."""
        if self._last is None or self._last.watcher is None:
            return None
        return await asyncio.shield(self._last.watcher)

    async def shutdown(self, timeout: float = 10) -> None:
        """Stop parity and wait for it, killing it if it doesn't exit in time."""
        record = self._current
        await self.stop()
        if record is None or record.watcher is None:
            return

        try:
            await asyncio.wait_for(asyncio.shield(record.watcher), timeout)
        except asyncio.TimeoutError:
            logger.warning("Parity did not stop gracefully, forcing kill")
            try:
                record.process.kill()
            except ProcessLookupError:
                pass
        except ParityError as e:
            logger.warning(f"Parity failed while shutting down: {e}")

    async def _pump(self, record: SupervisedProcess, stream: asyncio.StreamReader):
        """Forward output chunks, remembering the last one for exit classification."""
        while True:
            data = await stream.read(self._chunk_size)
            if not data:
                break

            text = data.decode("utf-8", errors="replace")
            record.last_output = text
            parity_logger.debug(text.rstrip())

            if self._on_output:
                try:
                    self._on_output(record.process.pid, text)
                except Exception as e:
                    logger.error(f"Error processing parity output: {e}")

    async def _watch(self, record: SupervisedProcess) -> ParityExit:
        process = record.process
        readers = [
            asyncio.create_task(self._pump(record, process.stdout)),
            asyncio.create_task(self._pump(record, process.stderr)),
        ]
        try:
            await asyncio.gather(*readers)
        except OSError as e:
            for reader in readers:
                reader.cancel()
            raise ParityTransportError(f"Lost parity output: {e}") from e

        exit_code, signal_name = split_returncode(await process.wait())
        # A stop we asked for is not a failure, whatever the exit status
        if record.stop_requested:
            outcome = ExitOutcome.STOPPED
        else:
            outcome = classify_exit(exit_code, record.last_output)

        result = ParityExit(
            exit_code=exit_code,
            signal=signal_name,
            last_output=record.last_output,
            outcome=outcome,
            explicit_args=bool(self._launch_args),
            pid=process.pid,
        )

        if self._current is record:
            self._current = None
            self.parity_running = False

        if outcome is ExitOutcome.CONFLICT:
            logger.info("Another instance of parity is running, closing local instance.")
        elif outcome is ExitOutcome.FATAL:
            logger.error(f"Parity exited with code {exit_code}, signal {signal_name}")
        else:
            logger.info(f"Parity exited ({outcome.value})")

        if self._on_exit:
            try:
                self._on_exit(result)
            except Exception as e:
                logger.error(f"Error handling parity exit: {e}")

        error = result.error()
        if error is not None:
            raise error
        return result

    def _on_watch_done(self, task: asyncio.Task):
        if self._on_error is None or task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._on_error(exc)
