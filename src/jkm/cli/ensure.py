"""CLI error handling utilities with styled output.

This module provides the Ensure class for asserting invariants in CLI commands
with consistent, user-friendly error messages. All errors use red "Error:" prefix
for visual consistency.
"""

from typing import TYPE_CHECKING, NoReturn

import click

from jkm.cli.output import user_output
from jkm.core.config import KernelDefinition, KernelsConfig

if TYPE_CHECKING:
    from jkm.core.context import JkmContext


def _fail(error_message: str) -> NoReturn:
    user_output(click.style("Error: ", fg="red") + error_message)
    raise SystemExit(1)


class Ensure:
    """Helper class for asserting invariants with consistent error handling."""

    @staticmethod
    def invariant(condition: bool, error_message: str) -> None:
        """Ensure condition is true, otherwise output styled error and exit.

        Args:
            condition: Boolean condition to check
            error_message: Error message to display if condition is false.
                          "Error: " prefix will be added automatically in red.

        Raises:
            SystemExit: If condition is false (with exit code 1)
        """
        if not condition:
            _fail(error_message)

    @staticmethod
    def not_none[T](value: T | None, error_message: str) -> T:
        """Ensure value is not None, otherwise output styled error and exit.

        Provides type narrowing from ``T | None`` to ``T``.

        Raises:
            SystemExit: If value is None (with exit code 1)
        """
        if value is None:
            _fail(error_message)
        return value

    @staticmethod
    def config_loaded(ctx: "JkmContext") -> KernelsConfig:
        """Load kernels.json, or output the load error and exit.

        Example:
            >>> config = Ensure.config_loaded(ctx)
            >>> for name in config.names: ...
        """
        result = ctx.load_config()
        if result.config is None:
            message = result.error.message if result.error is not None else "unknown error"
            if result.error is not None and result.error.kind == "not_found":
                message += " - Run 'jkm init' to create one"
            _fail(f"{result.file_path}: {message}")
        return result.config

    @staticmethod
    def kernel_defined(config: KernelsConfig, name: str) -> KernelDefinition:
        """Ensure the kernel exists in config, otherwise list known kernels and exit."""
        definition = config.kernels.get(name)
        if definition is None:
            known = ", ".join(config.names) or "(none)"
            _fail(f'Kernel "{name}" is not defined in kernels.json (known: {known})')
        return definition
