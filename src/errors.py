from __future__ import annotations


class StitchError(Exception):
    """Base class for clip stitching failures."""


class ValidationError(StitchError, ValueError):
    """Raised when stitch inputs fail precondition checks, before FFmpeg is spawned."""


class ProcessExecutionError(StitchError, RuntimeError):
    """Raised when the FFmpeg process exits non-zero or cannot be started.

    ``exit_code`` is ``None`` when the process never started.
    """

    def __init__(
        self,
        message: str,
        *,
        exit_code: int | None = None,
        stderr_tail: str = "",
        command: list[str] | None = None,
    ) -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.stderr_tail = stderr_tail
        self.command = list(command or [])


class StitchCancelledError(ProcessExecutionError):
    """Raised when a cancellation token fires while FFmpeg is running."""
