"""Cooperative cancellation threaded through long-running operations.

A CancellationToken is checked at loop boundaries and before every external
process launch. While a child process is running it is attached to the
token, so cancel() can terminate it immediately rather than waiting for the
next checkpoint.
"""

import subprocess

from jkm.core.errors import OperationCancelledError


class CancellationToken:
    """Cancellation signal plus a handle on the in-flight child process."""

    def __init__(self) -> None:
        self._cancelled = False
        self._process: subprocess.Popen[str] | None = None

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Request cancellation and terminate any attached process."""
        self._cancelled = True
        if self._process is not None and self._process.poll() is None:
            self._process.kill()

    def raise_if_cancelled(self) -> None:
        """Raise OperationCancelledError if cancel() has been called."""
        if self._cancelled:
            raise OperationCancelledError("Operation cancelled")

    def attach(self, process: "subprocess.Popen[str]") -> None:
        """Track a running child so cancel() can kill it.

        A token cancelled before the child started kills it right away.
        """
        self._process = process
        if self._cancelled and process.poll() is None:
            process.kill()

    def detach(self) -> None:
        self._process = None
