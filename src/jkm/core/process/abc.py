"""Process execution interface.

Venv creation, pip installs, interpreter probes and robocopy all go through
this interface, so tests can script exit codes without spawning anything.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from jkm.core.cancellation import CancellationToken

OutputSink = Callable[[str], None]


@dataclass(frozen=True)
class ProcessResult:
    """Outcome of a finished child process.

    Attributes:
        exit_code: Process exit status (127 when the binary was not found)
        stdout: Captured standard output
        stderr: Captured standard error
    """

    exit_code: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def output(self) -> str:
        """Stripped stdout, falling back to stderr (`python --version` on old interpreters)."""
        return self.stdout.strip() or self.stderr.strip()


class ProcessRunner(ABC):
    """Abstract interface for running external commands."""

    @abstractmethod
    def run(
        self,
        cmd: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        on_output: OutputSink | None = None,
        token: CancellationToken | None = None,
    ) -> ProcessResult:
        """Run a command to completion.

        Args:
            cmd: Command and arguments
            cwd: Working directory for the child
            env: Extra environment variables merged over os.environ
            on_output: Called with each chunk of stdout/stderr as it arrives
            token: Cancellation token; the child is killed when cancelled

        Returns:
            ProcessResult with exit code and captured output. A missing
            binary is reported as exit code 127 rather than raised.
        """
        ...
