"""Production process runner built on subprocess.Popen."""

import logging
import os
import subprocess
import threading
from collections.abc import Mapping, Sequence
from pathlib import Path

from jkm.core.cancellation import CancellationToken
from jkm.core.process.abc import OutputSink, ProcessResult, ProcessRunner

logger = logging.getLogger(__name__)

COMMAND_NOT_FOUND_EXIT_CODE = 127


class RealProcessRunner(ProcessRunner):
    """Runs commands with streamed output and cancellation support.

    stdout is read line by line on the calling thread while stderr is drained
    on a background thread, so pip's progress output interleaves in the sink
    the same way it would in a terminal.
    """

    def run(
        self,
        cmd: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        on_output: OutputSink | None = None,
        token: CancellationToken | None = None,
    ) -> ProcessResult:
        cmd_args = [str(arg) for arg in cmd]
        logger.debug("Running %s (cwd=%s)", cmd_args, cwd)

        child_env = {**os.environ, **env} if env else None
        try:
            process = subprocess.Popen(
                cmd_args,
                cwd=cwd,
                env=child_env,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,  # Line buffered
            )
        except FileNotFoundError as e:
            message = f"Command not found: {cmd_args[0]}"
            logger.debug("%s (%s)", message, e)
            if on_output is not None:
                on_output(message + "\n")
            return ProcessResult(COMMAND_NOT_FOUND_EXIT_CODE, "", message)

        if token is not None:
            token.attach(process)

        stdout_chunks: list[str] = []
        stderr_chunks: list[str] = []

        def capture_stderr() -> None:
            if process.stderr:
                for line in process.stderr:
                    stderr_chunks.append(line)
                    if on_output is not None:
                        on_output(line)

        stderr_thread = threading.Thread(target=capture_stderr, daemon=True)
        stderr_thread.start()

        try:
            if process.stdout:
                for line in process.stdout:
                    stdout_chunks.append(line)
                    if on_output is not None:
                        on_output(line)
            returncode = process.wait()
            stderr_thread.join(timeout=1.0)
        finally:
            if token is not None:
                token.detach()

        logger.debug("%s exited with %d", cmd_args[0], returncode)
        # Killed children report a negative signal number on POSIX
        exit_code = returncode if returncode >= 0 else 1
        return ProcessResult(exit_code, "".join(stdout_chunks), "".join(stderr_chunks))
