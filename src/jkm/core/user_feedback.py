"""User-facing progress output with mode awareness.

Engine components report progress through a UserFeedback sink instead of
printing, so the same calls work for the interactive CLI, quiet mode, and
tests.
"""

from abc import ABC, abstractmethod

import click

from jkm.cli.output import user_output


class UserFeedback(ABC):
    """Sink for progress messages and streamed subprocess output.

    Two modes:
    - Interactive: all messages and pip/venv output go to stderr
    - Quiet: only warnings and errors appear
    """

    @abstractmethod
    def info(self, message: str) -> None:
        """Show informational message (suppressed in quiet mode)."""

    @abstractmethod
    def success(self, message: str) -> None:
        """Show success message (suppressed in quiet mode)."""

    @abstractmethod
    def warning(self, message: str) -> None:
        """Show warning message (always shown)."""

    @abstractmethod
    def error(self, message: str) -> None:
        """Show error message (always shown)."""

    @abstractmethod
    def stream(self, chunk: str) -> None:
        """Forward a raw chunk of subprocess output (suppressed in quiet mode)."""


class InteractiveFeedback(UserFeedback):
    """Feedback shown in interactive mode (all messages)."""

    def info(self, message: str) -> None:
        user_output(message)

    def success(self, message: str) -> None:
        user_output(click.style(message, fg="green"))

    def warning(self, message: str) -> None:
        user_output(click.style(message, fg="yellow"))

    def error(self, message: str) -> None:
        user_output(click.style(message, fg="red"))

    def stream(self, chunk: str) -> None:
        click.echo(click.style(chunk, dim=True), nl=False, err=True)


class SuppressedFeedback(UserFeedback):
    """Quiet mode: only warnings and errors are shown."""

    def info(self, message: str) -> None:
        pass

    def success(self, message: str) -> None:
        pass

    def warning(self, message: str) -> None:
        user_output(click.style(message, fg="yellow"))

    def error(self, message: str) -> None:
        user_output(click.style(message, fg="red"))

    def stream(self, chunk: str) -> None:
        pass
