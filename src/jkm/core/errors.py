"""Error taxonomy for kernel management operations.

Engine operations report failures through result records whose ``error``
field holds one of these exceptions. The CLI error boundary catches the same
types when they are raised directly.

Filesystem read/write/permission failures use the builtin ``OSError``.
"""

from typing import Literal

ConfigErrorKind = Literal["not_found", "parse", "schema", "io"]


class KernelManagerError(Exception):
    """Base class for all kernel manager errors."""


class ConfigError(KernelManagerError):
    """kernels.json could not be read, parsed, or validated.

    Attributes:
        kind: Which stage failed ("not_found", "parse", "schema", "io")
        message: Human-readable description naming the offending field
    """

    def __init__(self, kind: ConfigErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message


class NotFoundError(KernelManagerError):
    """A kernel directory, venv, or kernelspec does not exist."""


class EnvironmentSetupError(KernelManagerError):
    """Creating a venv or installing packages exited non-zero."""


class OperationCancelledError(KernelManagerError):
    """A cooperative cancellation was requested mid-operation."""
