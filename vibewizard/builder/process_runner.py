"""Subprocess execution for build and run commands.

Spawns toolchain processes with stderr merged into stdout and returns
structured results. Three modes are offered:

* ``run``: blocking capture of the whole output.
* ``run_with_streaming``: output is pushed to a callback line by line as it
  arrives; a bare carriage return also ends a line so build-tool progress
  bars show up immediately.
* ``run_interactive`` / ``start_interactive``: line-buffered output plus an
  open stdin the caller can keep writing to.

Every child gets ``WINEDEBUG=-all`` on top of the inherited environment,
whether or not Wine is involved. A non-zero exit is a normal result; only a
failed spawn (``ProcessSpawnError``) or an interrupted wait
(``ProcessInterruptedError``) is raised.
"""

from __future__ import annotations

import asyncio
import codecs
import inspect
import os
import re
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from rich.markup import escape

from vibewizard.config import WINE_ENV_OVERRIDES, ProcessConfig
from vibewizard.utils import format_command

OutputCallback = Callable[[str], Any]
InputSupplier = Callable[[], Awaitable[Optional[str]]]

# Upper bound for a single line in interactive mode.
_LINE_LIMIT = 1024 * 1024

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


@dataclass
class ProcessResult:
    """Structured result of one finished process."""

    exit_code: int
    output: str = ""
    command: list[str] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    def summary(self) -> str:
        """Return a human-readable summary of the result."""
        status = "[green]SUCCESS[/green]" if self.success else "[red]FAILED[/red]"
        lines = [
            f"Status: {status}",
            f"Command: {escape(format_command(self.command))}",
            f"Exit code: {self.exit_code}",
            f"Duration: {self.duration_seconds:.1f}s",
        ]
        return "\n".join(lines)


class ProcessRunnerError(Exception):
    """Base class for engine-level process failures."""

    def __init__(self, message: str, command: Sequence[str] = ()):
        self.command = list(command)
        super().__init__(message)


class ProcessSpawnError(ProcessRunnerError):
    """Raised when the process could not be started at all."""


class ProcessInterruptedError(ProcessRunnerError):
    """Raised when waiting for a process was cancelled or timed out.

    The child has been killed and reaped by the time this is raised.
    """

    def __init__(self, message: str, command: Sequence[str] = (), timed_out: bool = False):
        self.timed_out = timed_out
        super().__init__(message, command)


class StreamLineBuffer:
    """Incremental UTF-8 decoder that splits output into lines.

    Both ``\\n`` and a bare ``\\r`` end a line. Empty fragments are not
    reported, so ``\\r\\n`` yields one line and blank lines are skipped.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._pending: list[str] = []

    def _split(self, text: str) -> list[str]:
        lines: list[str] = []
        for char in text:
            if char in "\r\n":
                if self._pending:
                    lines.append("".join(self._pending))
                    self._pending.clear()
            else:
                self._pending.append(char)
        return lines

    def feed(self, data: bytes) -> list[str]:
        """Consume a chunk of raw output and return the completed lines."""
        return self._split(self._decoder.decode(data))

    def close(self) -> list[str]:
        """Flush undecoded bytes and the trailing partial line, once."""
        lines = self._split(self._decoder.decode(b"", final=True))
        if self._pending:
            lines.append("".join(self._pending))
            self._pending.clear()
        return lines


def normalize_output(raw: bytes) -> str:
    """Decode captured output, normalise line separators, strip the tail."""
    text = raw.decode("utf-8", errors="replace")
    return "\n".join(_LINE_BREAK.split(text)).rstrip()


def _strip_newline(line: str) -> str:
    if line.endswith("\n"):
        line = line[:-1]
        if line.endswith("\r"):
            line = line[:-1]
    return line


async def _emit(callback: Optional[OutputCallback], line: str) -> None:
    if callback is None:
        return
    result = callback(line)
    if inspect.isawaitable(result):
        await result


async def _close_stdin(process: asyncio.subprocess.Process) -> None:
    if process.stdin is None or process.stdin.is_closing():
        return
    process.stdin.close()
    try:
        await process.stdin.wait_closed()
    except (BrokenPipeError, ConnectionResetError):
        # The child exited without reading its input.
        return


async def _kill(process: asyncio.subprocess.Process) -> None:
    if process.returncode is None:
        try:
            process.kill()
        except ProcessLookupError:
            pass
    await process.wait()


class InteractiveProcess:
    """Handle to a running interactive process.

    Output is delivered to the callback by a background reader task; input
    is written with :meth:`send`. Always finish with :meth:`wait` or
    :meth:`terminate` so the reader is joined.
    """

    def __init__(
        self,
        process: asyncio.subprocess.Process,
        command: Sequence[str],
        on_output: Optional[OutputCallback],
    ):
        self.process = process
        self.command = list(command)
        self._on_output = on_output
        self._started = time.monotonic()
        self.reader_task = asyncio.ensure_future(self._read_lines())

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def running(self) -> bool:
        return self.process.returncode is None

    async def _read_lines(self) -> None:
        assert self.process.stdout is not None  # guaranteed by PIPE
        while True:
            raw = await self.process.stdout.readline()
            if not raw:
                break
            await _emit(self._on_output, _strip_newline(raw.decode("utf-8", errors="replace")))

    async def send(self, text: str) -> None:
        """Write *text* to the process's stdin."""
        if self.process.stdin is None or self.process.stdin.is_closing():
            raise ProcessRunnerError("Process input is already closed.", self.command)
        self.process.stdin.write(text.encode("utf-8"))
        await self.process.stdin.drain()

    async def close_input(self) -> None:
        await _close_stdin(self.process)

    async def wait(self) -> ProcessResult:
        """Wait for exit and for the reader to drain all output."""
        await self.reader_task
        exit_code = await self.process.wait()
        return ProcessResult(
            exit_code=exit_code,
            command=self.command,
            duration_seconds=time.monotonic() - self._started,
        )

    async def terminate(self) -> ProcessResult:
        """Kill the process, then join the reader."""
        await _kill(self.process)
        return await self.wait()


class ProcessRunner:
    """Spawns and supervises build/run processes.

    Args:
        env_overrides: Extra environment variables. ``WINEDEBUG=-all`` is
            always applied underneath them.
        timeout: Default wall-clock limit in seconds, or None for no limit.
        read_chunk_size: Bytes per read in streaming mode.
    """

    def __init__(
        self,
        env_overrides: Optional[dict[str, str]] = None,
        timeout: Optional[float] = None,
        read_chunk_size: int = 1024,
    ):
        self.env_overrides = dict(env_overrides or {})
        self.timeout = timeout
        self.read_chunk_size = read_chunk_size

    @classmethod
    def from_config(cls, config: ProcessConfig) -> "ProcessRunner":
        return cls(
            env_overrides=config.env_overrides,
            timeout=config.timeout,
            read_chunk_size=config.read_chunk_size,
        )

    def build_env(self) -> dict[str, str]:
        """Environment for child processes. ``WINEDEBUG=-all`` always wins."""
        return {**os.environ, **self.env_overrides, **WINE_ENV_OVERRIDES}

    def _timeout_for(self, timeout: Optional[float]) -> Optional[float]:
        return timeout if timeout is not None else self.timeout

    # ------------------------------------------------------------------
    # Spawning and supervision
    # ------------------------------------------------------------------

    async def _spawn(
        self, command: Sequence[str], cwd: Optional[str | Path]
    ) -> asyncio.subprocess.Process:
        if not command:
            raise ProcessSpawnError("Cannot run an empty command.", command)
        try:
            return await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                cwd=str(cwd) if cwd else None,
                env=self.build_env(),
                limit=_LINE_LIMIT,
            )
        except FileNotFoundError as exc:
            raise ProcessSpawnError(
                f"Executable not found: '{command[0]}'. "
                "Ensure the toolchain is installed and in PATH.",
                command,
            ) from exc
        except PermissionError as exc:
            raise ProcessSpawnError(
                f"Permission denied executing: '{command[0]}'.", command
            ) from exc
        except OSError as exc:
            raise ProcessSpawnError(
                f"Failed to start '{format_command(command)}': {exc}", command
            ) from exc

    async def _feed_stdin(self, process: asyncio.subprocess.Process, stdin: Optional[str]) -> None:
        if stdin and process.stdin is not None:
            try:
                process.stdin.write(stdin.encode("utf-8"))
                await process.stdin.drain()
            except (BrokenPipeError, ConnectionResetError):
                # The child exited without reading its input.
                return
        await _close_stdin(process)

    async def _supervise(
        self,
        process: asyncio.subprocess.Process,
        command: Sequence[str],
        drain: Awaitable[Any],
        cancel_event: Optional[asyncio.Event],
        timeout: Optional[float],
    ) -> int:
        """Wait for *drain* and process exit, honouring cancel and timeout."""

        async def finish() -> int:
            await drain
            return await process.wait()

        work = asyncio.ensure_future(finish())
        watchers: set[asyncio.Future] = {work}
        cancel_waiter: Optional[asyncio.Future] = None
        if cancel_event is not None:
            cancel_waiter = asyncio.ensure_future(cancel_event.wait())
            watchers.add(cancel_waiter)

        try:
            done, _ = await asyncio.wait(
                watchers, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            work.cancel()
            await _kill(process)
            await asyncio.gather(work, return_exceptions=True)
            raise
        finally:
            if cancel_waiter is not None:
                cancel_waiter.cancel()

        if work in done:
            return work.result()

        await _kill(process)
        work.cancel()
        await asyncio.gather(work, return_exceptions=True)
        if cancel_waiter is not None and cancel_waiter in done:
            raise ProcessInterruptedError(
                f"Process was cancelled: {format_command(command)}", command
            )
        raise ProcessInterruptedError(
            f"Process timed out after {timeout}s: {format_command(command)}",
            command,
            timed_out=True,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def run(
        self,
        command: Sequence[str],
        cwd: Optional[str | Path] = None,
        stdin: Optional[str] = None,
        *,
        cancel_event: Optional[asyncio.Event] = None,
        timeout: Optional[float] = None,
    ) -> ProcessResult:
        """Run *command* and capture its combined output.

        Args:
            command: Argument vector; the first item is the executable.
            cwd: Working directory for the child.
            stdin: Text written to the child's input before it is closed.
            cancel_event: Setting this event kills the child and raises
                ``ProcessInterruptedError``.
            timeout: Overrides the runner's default timeout.

        Returns:
            The exit code and the captured text with separators normalised
            to ``\\n`` and trailing whitespace removed.

        Raises:
            ProcessSpawnError: If the process could not be started.
            ProcessInterruptedError: If the wait was cancelled or timed out.
        """
        started = time.monotonic()
        process = await self._spawn(command, cwd)
        assert process.stdout is not None  # guaranteed by PIPE

        captured: list[bytes] = []

        async def drain() -> None:
            async def read_all() -> None:
                captured.append(await process.stdout.read())

            await asyncio.gather(self._feed_stdin(process, stdin), read_all())

        exit_code = await self._supervise(
            process, command, drain(), cancel_event, self._timeout_for(timeout)
        )
        return ProcessResult(
            exit_code=exit_code,
            output=normalize_output(b"".join(captured)),
            command=list(command),
            duration_seconds=time.monotonic() - started,
        )

    async def run_with_streaming(
        self,
        command: Sequence[str],
        cwd: Optional[str | Path] = None,
        stdin: Optional[str] = None,
        on_output: Optional[OutputCallback] = None,
        *,
        cancel_event: Optional[asyncio.Event] = None,
        timeout: Optional[float] = None,
    ) -> ProcessResult:
        """Run *command*, delivering output lines to *on_output* as they arrive.

        The callback may be a plain function or a coroutine function. It
        receives line content without terminators and is never called after
        this coroutine returns. The result's ``output`` is empty because the
        text has already been delivered.
        """
        started = time.monotonic()
        process = await self._spawn(command, cwd)
        assert process.stdout is not None  # guaranteed by PIPE
        buffer = StreamLineBuffer()

        async def read_stream() -> None:
            while True:
                chunk = await process.stdout.read(self.read_chunk_size)
                if not chunk:
                    break
                for line in buffer.feed(chunk):
                    await _emit(on_output, line)
            for line in buffer.close():
                await _emit(on_output, line)

        async def drain() -> None:
            await asyncio.gather(self._feed_stdin(process, stdin), read_stream())

        exit_code = await self._supervise(
            process, command, drain(), cancel_event, self._timeout_for(timeout)
        )
        return ProcessResult(
            exit_code=exit_code,
            command=list(command),
            duration_seconds=time.monotonic() - started,
        )

    async def start_interactive(
        self,
        command: Sequence[str],
        cwd: Optional[str | Path] = None,
        on_output: Optional[OutputCallback] = None,
    ) -> InteractiveProcess:
        """Spawn *command* with an open stdin and a background line reader."""
        process = await self._spawn(command, cwd)
        return InteractiveProcess(process, command, on_output)

    async def run_interactive(
        self,
        command: Sequence[str],
        cwd: Optional[str | Path] = None,
        on_output: Optional[OutputCallback] = None,
        input_supplier: Optional[InputSupplier] = None,
        *,
        cancel_event: Optional[asyncio.Event] = None,
        timeout: Optional[float] = None,
    ) -> ProcessResult:
        """Run *command* with bidirectional I/O until it exits.

        Output lines (split on ``\\n`` only) go to *on_output*. Each string
        returned by awaiting *input_supplier* is written to the child's
        stdin; returning None closes stdin. Without a supplier stdin is
        closed immediately.
        """
        session = await self.start_interactive(command, cwd, on_output)

        async def pump_input() -> None:
            try:
                while input_supplier is not None and session.running:
                    text = await input_supplier()
                    if text is None:
                        break
                    await session.send(text)
            except (BrokenPipeError, ConnectionResetError, ProcessRunnerError):
                # The child closed its input or exited.
                return
            finally:
                await session.close_input()

        writer = asyncio.ensure_future(pump_input())
        try:
            exit_code = await self._supervise(
                session.process,
                command,
                session.reader_task,
                cancel_event,
                self._timeout_for(timeout),
            )
        finally:
            if not writer.done():
                writer.cancel()
            await asyncio.gather(writer, return_exceptions=True)
        if not writer.cancelled() and writer.exception() is not None:
            raise writer.exception()

        return ProcessResult(
            exit_code=exit_code,
            command=list(command),
            duration_seconds=time.monotonic() - session._started,
        )
