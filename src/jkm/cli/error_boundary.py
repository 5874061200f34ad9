"""Error boundary handling for CLI commands.

This module provides decorators to catch well-known exceptions at CLI entry points
and display clean error messages without stack traces.
"""

import functools
from collections.abc import Callable
from typing import Any

import click

from jkm.core.errors import KernelManagerError


def cli_error_boundary[T: Callable[..., Any]](func: T) -> T:
    """Decorator that catches well-known exceptions and displays clean error messages.

    Catches:
        - KernelManagerError: Config, not-found, environment and cancellation errors
        - FileExistsError: File/directory conflicts
        - FileNotFoundError: Missing files/directories
        - ValueError: Invalid input or configuration
        - PermissionError: Permission denied errors

    All other exceptions bubble up normally with full stack traces.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except (
            KernelManagerError,
            FileExistsError,
            FileNotFoundError,
            ValueError,
            PermissionError,
        ) as e:
            click.echo(click.style("Error: ", fg="red") + str(e), err=True)
            raise SystemExit(1) from None

    return wrapper  # type: ignore[return-value]
