"""Ctrl-C handling for long-running batch commands."""

import signal
from collections.abc import Iterator
from contextlib import contextmanager
from types import FrameType

from jkm.cli.output import user_output
from jkm.core.cancellation import CancellationToken


@contextmanager
def cancel_on_interrupt() -> Iterator[CancellationToken]:
    """Yield a token that SIGINT cancels instead of raising KeyboardInterrupt.

    The in-flight child process is terminated and the batch records the
    remaining work as cancelled, so the caller can still print a summary.
    The previous handler is restored on exit.
    """
    token = CancellationToken()

    def _handle(_signum: int, _frame: FrameType | None) -> None:
        if not token.is_cancelled:
            user_output("\nInterrupted, cancelling...")
        token.cancel()

    previous = signal.signal(signal.SIGINT, _handle)
    try:
        yield token
    finally:
        signal.signal(signal.SIGINT, previous)
