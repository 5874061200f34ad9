"""Jupyter kernelspec registration for provisioned kernels.

A kernelspec is a directory ``<specs_dir>/<prefix>-<kernel>[-<variant>]``
containing ``kernel.json``. Jupyter and editor integrations read these to
offer the kernel in their pickers.

Platform quirks (the Windows project-local copy) live in PostWriteHook
implementations, keeping the core write path platform-agnostic.
"""

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from jkm.core.cancellation import CancellationToken
from jkm.core.config import KernelDefinition, KernelsConfig
from jkm.core.errors import KernelManagerError, NotFoundError, OperationCancelledError
from jkm.core.layout import KernelLayout
from jkm.core.platform import Platform, remove_directory_safely
from jkm.core.process.abc import ProcessRunner
from jkm.core.user_feedback import UserFeedback

logger = logging.getLogger(__name__)

KERNEL_SPEC_FILENAME = "kernel.json"

# robocopy exit codes 0-7 are success variants; 8+ indicate failure
ROBOCOPY_MAX_SUCCESS_CODE = 7
ROBOCOPY_QUIET_FLAGS = ("/E", "/NFL", "/NDL", "/NJH", "/NJS", "/NC", "/NS", "/NP")


@dataclass(frozen=True)
class KernelSpec:
    """Contents of kernel.json."""

    argv: list[str]
    display_name: str
    language: str = "python"
    metadata: dict[str, Any] = field(default_factory=lambda: {"debugger": True})
    env: dict[str, str] = field(default_factory=dict)

    def to_json(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "argv": list(self.argv),
            "display_name": self.display_name,
            "language": self.language,
        }
        if self.metadata:
            data["metadata"] = dict(self.metadata)
        if self.env:
            data["env"] = dict(self.env)
        return data


@dataclass(frozen=True)
class RegistrationResult:
    success: bool
    kernel_name: str
    spec_name: str
    message: str
    error: KernelManagerError | OSError | None = None


@dataclass(frozen=True)
class UnregistrationResult:
    success: bool
    spec_name: str
    message: str
    error: KernelManagerError | OSError | None = None


def build_kernel_spec(python_path: Path, display_name: str, env: dict[str, str]) -> KernelSpec:
    return KernelSpec(
        argv=[str(python_path), "-m", "ipykernel_launcher", "-f", "{connection_file}"],
        display_name=display_name,
        env=dict(env),
    )


def write_kernel_spec(spec_dir: Path, spec: KernelSpec) -> Path:
    spec_dir.mkdir(parents=True, exist_ok=True)
    spec_file = spec_dir / KERNEL_SPEC_FILENAME
    spec_file.write_text(json.dumps(spec.to_json(), indent=2), encoding="utf-8")
    return spec_file


class PostWriteHook(ABC):
    """Extra step run after kernel.json lands in the shared specs dir."""

    @abstractmethod
    def applies(self, platform: Platform) -> bool:
        """Whether this hook should run on the given platform."""
        ...

    @abstractmethod
    def after_write(self, spec_name: str, spec: KernelSpec, shared_spec_dir: Path) -> None:
        """Run after a successful write. Must not raise; report problems as warnings."""
        ...

    @abstractmethod
    def after_remove(self, spec_name: str) -> None:
        """Best-effort cleanup after unregistration. Must not raise."""
        ...


class ProjectLocalMirrorHook(PostWriteHook):
    """Mirror kernelspecs into ``<workspace>/.venv/share/jupyter/kernels`` on Windows.

    VS Code on Windows looks for kernelspecs next to the workspace
    interpreter. Store Python redirects writes under AppData into its
    sandbox, so when the kernel interpreter lives inside WindowsApps the copy
    is made with robocopy, which sees the real filesystem.
    """

    def __init__(
        self,
        layout: KernelLayout,
        platform: Platform,
        process_runner: ProcessRunner,
        feedback: UserFeedback,
    ) -> None:
        self._layout = layout
        self._platform = platform
        self._runner = process_runner
        self._feedback = feedback

    def applies(self, platform: Platform) -> bool:
        return platform.is_windows

    def local_spec_dir(self, spec_name: str) -> Path:
        return self._layout.project_local_specs_dir() / spec_name

    def after_write(self, spec_name: str, spec: KernelSpec, shared_spec_dir: Path) -> None:
        local_dir = self.local_spec_dir(spec_name)
        python_path = Path(spec.argv[0])

        if self._platform.is_windows_store_python(python_path):
            self._feedback.info("  Sandboxed Python detected, using robocopy")
            result = self._runner.run(
                ["robocopy", str(shared_spec_dir), str(local_dir), *ROBOCOPY_QUIET_FLAGS],
                on_output=self._feedback.stream,
            )
            if result.exit_code > ROBOCOPY_MAX_SUCCESS_CODE:
                self._feedback.warning(f"  Warning: robocopy returned {result.exit_code}")
            return

        try:
            write_kernel_spec(local_dir, spec)
        except OSError as e:
            self._feedback.warning(f"  Warning: could not write project-local spec: {e}")
            return
        self._feedback.info(f"  Project-local: {local_dir}")

    def after_remove(self, spec_name: str) -> None:
        local_dir = self.local_spec_dir(spec_name)
        if not local_dir.exists():
            return
        try:
            remove_directory_safely(local_dir)
        except OSError as e:
            logger.debug("Could not remove %s: %s", local_dir, e)
            return
        self._feedback.info(f"  Removed project-local: {local_dir}")


class RegistrationManager:
    """Publishes and retracts kernelspecs for provisioned kernels."""

    def __init__(
        self,
        layout: KernelLayout,
        specs_dir: Path,
        prefix: str,
        platform: Platform,
        feedback: UserFeedback,
        post_write_hooks: Sequence[PostWriteHook] = (),
    ) -> None:
        self._layout = layout
        self._specs_dir = specs_dir
        self._prefix = prefix
        self._platform = platform
        self._feedback = feedback
        self._hooks = tuple(post_write_hooks)

    @property
    def specs_dir(self) -> Path:
        return self._specs_dir

    def kernel_spec_name(self, name: str, variant: str | None = None) -> str:
        """Build the kernelspec name, e.g. "py-learn-common" or "py-learn-torch-gpu"."""
        if variant:
            return f"{self._prefix}-{name}-{variant}"
        return f"{self._prefix}-{name}"

    def spec_dir(self, name: str, variant: str | None = None) -> Path:
        return self._specs_dir / self.kernel_spec_name(name, variant)

    def _active_hooks(self) -> list[PostWriteHook]:
        return [hook for hook in self._hooks if hook.applies(self._platform)]

    def register_kernel(
        self, name: str, definition: KernelDefinition, variant: str | None = None
    ) -> RegistrationResult:
        """Write kernel.json for a provisioned kernel.

        Fails with NotFoundError, writing nothing, when the venv is missing.
        """
        spec_name = self.kernel_spec_name(name, variant)

        display_name = definition.display_name
        if variant is not None and variant in definition.variants:
            display_name = definition.variants[variant].display_name or display_name

        venv_dir = self._layout.venv_dir(name)
        if not self._platform.is_venv_valid(venv_dir):
            error = NotFoundError(f'Venv not found for "{name}", run setup first')
            return RegistrationResult(False, name, spec_name, str(error), error)

        self._feedback.info(f"Registering kernel: {display_name} ({spec_name})")
        spec = build_kernel_spec(
            self._platform.venv_python_path(venv_dir), display_name, definition.env
        )

        spec_dir = self.spec_dir(name, variant)
        try:
            write_kernel_spec(spec_dir, spec)
        except OSError as e:
            self._feedback.error(f"  Failed to write kernelspec: {e}")
            return RegistrationResult(False, name, spec_name, f"Failed to write spec: {e}", e)
        self._feedback.info(f"  Written to: {spec_dir}")

        for hook in self._active_hooks():
            hook.after_write(spec_name, spec, spec_dir)

        self._feedback.success(f"  Registered: {display_name}")
        return RegistrationResult(True, name, spec_name, "Registered")

    def register_all_kernels(
        self, config: KernelsConfig, *, token: CancellationToken | None = None
    ) -> list[RegistrationResult]:
        """Register every kernel (base specs only) sequentially."""
        results: list[RegistrationResult] = []
        for name, definition in config.kernels.items():
            if token is not None and token.is_cancelled:
                results.append(
                    RegistrationResult(
                        False, name, "", "Cancelled", OperationCancelledError("Cancelled")
                    )
                )
                break
            results.append(self.register_kernel(name, definition))
        return results

    def unregister_kernel(self, name: str, variant: str | None = None) -> UnregistrationResult:
        spec_name = self.kernel_spec_name(name, variant)
        self._feedback.info(f"Unregistering kernel: {spec_name}")

        spec_dir = self.spec_dir(name, variant)
        if not spec_dir.exists():
            error = NotFoundError(f"Kernelspec not found: {spec_name}")
            return UnregistrationResult(False, spec_name, str(error), error)

        try:
            remove_directory_safely(spec_dir)
        except OSError as e:
            self._feedback.error(f"  Failed to remove: {e}")
            return UnregistrationResult(False, spec_name, f"Failed to remove: {e}", e)
        self._feedback.info(f"  Removed: {spec_dir}")

        for hook in self._active_hooks():
            hook.after_remove(spec_name)

        self._feedback.success(f"  Unregistered: {spec_name}")
        return UnregistrationResult(True, spec_name, "Unregistered")

    def is_registered(self, name: str, variant: str | None = None) -> bool:
        return (self.spec_dir(name, variant) / KERNEL_SPEC_FILENAME).is_file()

    def list_installed_specs(self) -> list[str]:
        """Names of every kernelspec directory under specs_dir, sorted."""
        if not self._specs_dir.is_dir():
            return []
        return sorted(entry.name for entry in self._specs_dir.iterdir() if entry.is_dir())
