from __future__ import annotations

import logging
import re
import subprocess
import threading
from collections import deque
from typing import Callable, Protocol, Sequence

from src.errors import ProcessExecutionError, StitchCancelledError
from src.render.command import format_command

logger = logging.getLogger(__name__)

DEFAULT_STDERR_TAIL_CHARS = 1000
STDERR_TAIL_LINES = 200
CANCEL_POLL_SECONDS = 0.1

_PROGRESS_PATTERN = re.compile(r"time=(\d+):(\d{2}):(\d{2}(?:\.\d+)?)")

LineCallback = Callable[[str], None]
ProgressCallback = Callable[[float], None]


class ProcessRunner(Protocol):
    def run(
        self,
        command: Sequence[str],
        on_line: LineCallback,
        cancel_event: threading.Event | None = None,
    ) -> int:
        """Run ``command`` to completion, feeding diagnostic lines to ``on_line``.

        Returns the exit code. Raises ``OSError`` if the executable cannot be started.
        When ``cancel_event`` is set the process is killed and its exit code is
        returned; ``CommandInvoker.execute`` turns that into ``StitchCancelledError``.
        """
        ...


class SubprocessRunner:
    """Runs a command with ``subprocess.Popen`` and streams its stderr line by line."""

    def run(
        self,
        command: Sequence[str],
        on_line: LineCallback,
        cancel_event: threading.Event | None = None,
    ) -> int:
        # Universal newlines split FFmpeg's carriage-return progress updates into lines.
        process = subprocess.Popen(
            list(command),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            text=True,
            errors="replace",
            bufsize=1,
        )

        watcher: threading.Thread | None = None
        if cancel_event is not None:
            watcher = threading.Thread(
                target=_kill_on_cancel,
                args=(process, cancel_event),
                name="ffmpeg-cancel-watcher",
                daemon=True,
            )
            watcher.start()

        try:
            if process.stderr is not None:
                for raw_line in process.stderr:
                    line = raw_line.rstrip()
                    if line:
                        on_line(line)
            return process.wait()
        finally:
            if process.poll() is None:
                process.kill()
                process.wait()
            if watcher is not None:
                watcher.join(timeout=1.0)


def _kill_on_cancel(process: subprocess.Popen[str], cancel_event: threading.Event) -> None:
    while process.poll() is None:
        if cancel_event.wait(CANCEL_POLL_SECONDS):
            if process.poll() is None:
                logger.warning("Cancellation requested; killing FFmpeg (pid %s).", process.pid)
                process.kill()
            return


def parse_progress_seconds(line: str) -> float | None:
    """Extract the ``time=HH:MM:SS.xx`` position from an FFmpeg progress line."""

    match = _PROGRESS_PATTERN.search(line)
    if match is None:
        return None
    hours, minutes, seconds = match.groups()
    return int(hours) * 3600 + int(minutes) * 60 + float(seconds)


class CommandInvoker:
    """Runs FFmpeg once per call and turns its exit status into success or an exception.

    No retries: a failed invocation is reported immediately.
    """

    def __init__(
        self,
        runner: ProcessRunner | None = None,
        *,
        stderr_tail_chars: int = DEFAULT_STDERR_TAIL_CHARS,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        self.runner = runner or SubprocessRunner()
        self.stderr_tail_chars = max(0, stderr_tail_chars)
        self.on_progress = on_progress

    def execute(self, command: Sequence[str], cancel_event: threading.Event | None = None) -> None:
        args = list(command)
        logger.info("Executing %s with %d arguments", args[0] if args else "<empty>", len(args))
        logger.debug("Full command: %s", format_command(args))

        tail_parts: deque[str] = deque(maxlen=STDERR_TAIL_LINES)

        def _handle_line(line: str) -> None:
            tail_parts.append(line)
            self._report_progress(line)

        try:
            exit_code = self.runner.run(args, _handle_line, cancel_event)
        except OSError as exc:
            raise ProcessExecutionError(
                f"Could not start {args[0] if args else 'process'}: {exc}. "
                "Install FFmpeg so it is available on PATH.",
                exit_code=None,
                stderr_tail="",
                command=args,
            ) from exc

        stderr_tail = self._tail("\n".join(tail_parts))

        if cancel_event is not None and cancel_event.is_set():
            raise StitchCancelledError(
                "FFmpeg was cancelled before completion.",
                exit_code=exit_code,
                stderr_tail=stderr_tail,
                command=args,
            )

        if exit_code != 0:
            logger.error("FFmpeg exited with code %s", exit_code)
            if stderr_tail:
                logger.error("FFmpeg stderr tail:\n%s", stderr_tail)
            details = f" stderr: {stderr_tail}" if stderr_tail else ""
            raise ProcessExecutionError(
                f"FFmpeg failed with exit code {exit_code}.{details}",
                exit_code=exit_code,
                stderr_tail=stderr_tail,
                command=args,
            )

        logger.info("FFmpeg completed successfully")

    def _report_progress(self, line: str) -> None:
        seconds = parse_progress_seconds(line)
        if seconds is None or seconds <= 0:
            return
        logger.info("Processing: %.2fs rendered", seconds)
        if self.on_progress is None:
            return
        try:
            self.on_progress(seconds)
        except Exception as exc:
            logger.warning("Progress callback failed (%s); continuing.", exc)

    def _tail(self, text: str) -> str:
        if self.stderr_tail_chars == 0:
            return ""
        return text[-self.stderr_tail_chars :]
