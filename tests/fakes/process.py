"""Fake implementation of ProcessRunner for testing.

This fake enables testing venv creation, pip installs and interpreter probes
without spawning any subprocess.
"""

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from jkm.core.cancellation import CancellationToken
from jkm.core.platform import Platform
from jkm.core.process.abc import OutputSink, ProcessResult, ProcessRunner

SideEffect = Callable[[list[str]], None]


@dataclass(frozen=True)
class ProcessCall:
    cmd: list[str]
    cwd: Path | None
    env: dict[str, str] | None


def _contains_run(cmd: Sequence[str], pattern: Sequence[str]) -> bool:
    """True if pattern appears as a contiguous run of arguments in cmd."""
    n = len(pattern)
    return any(list(cmd[i : i + n]) == list(pattern) for i in range(len(cmd) - n + 1))


def create_fake_venv(platform: Platform) -> SideEffect:
    """Side effect for ``-m venv`` commands that creates the venv interpreter file."""

    def _create(cmd: list[str]) -> None:
        python = platform.venv_python_path(Path(cmd[-1]))
        python.parent.mkdir(parents=True, exist_ok=True)
        python.write_text("", encoding="utf-8")

    return _create


class FakeProcessRunner(ProcessRunner):
    """In-memory fake implementation of process execution.

    Constructor Injection:
    - Scripted results and side effects are provided via constructor parameters
    - Patterns are matched as contiguous runs of command arguments, first match wins

    Examples:
        # pip install fails, everything else succeeds
        >>> runner = FakeProcessRunner(
        ...     results=[(("install", "-r"), ProcessResult(1, "", "boom"))],
        ... )

        # `-m venv` creates the interpreter so the venv looks valid
        >>> runner = FakeProcessRunner(
        ...     side_effects=[(("-m", "venv"), create_fake_venv(platform))],
        ... )

        # Binary missing
        >>> runner = FakeProcessRunner(default_result=ProcessResult(127, "", "not found"))
    """

    def __init__(
        self,
        *,
        results: Sequence[tuple[Sequence[str], ProcessResult]] = (),
        side_effects: Sequence[tuple[Sequence[str], SideEffect]] = (),
        default_result: ProcessResult | None = None,
    ) -> None:
        """Initialize fake with scripted results.

        Args:
            results: (pattern, result) pairs; the first matching pattern's
                result is returned
            side_effects: (pattern, callback) pairs; every matching callback
                runs with the command before the result is returned
            default_result: Result when no pattern matches (exit 0, no output)
        """
        self._results = [(tuple(p), r) for p, r in results]
        self._side_effects = [(tuple(p), cb) for p, cb in side_effects]
        self._default_result = default_result or ProcessResult(0, "", "")
        self._calls: list[ProcessCall] = []

    def run(
        self,
        cmd: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        on_output: OutputSink | None = None,
        token: CancellationToken | None = None,
    ) -> ProcessResult:
        command = list(cmd)
        self._calls.append(ProcessCall(command, cwd, dict(env) if env is not None else None))

        for pattern, callback in self._side_effects:
            if _contains_run(command, pattern):
                callback(command)

        result = self._default_result
        for pattern, scripted in self._results:
            if _contains_run(command, pattern):
                result = scripted
                break

        if on_output is not None and result.stdout:
            on_output(result.stdout)
        return result

    @property
    def calls(self) -> list[ProcessCall]:
        """Get the list of run() calls that were made.

        This property is for test assertions only.
        """
        return self._calls.copy()

    @property
    def commands(self) -> list[list[str]]:
        """Just the argument lists of every run() call, in order."""
        return [call.cmd for call in self._calls]

    def commands_matching(self, *pattern: str) -> list[list[str]]:
        return [cmd for cmd in self.commands if _contains_run(cmd, pattern)]
