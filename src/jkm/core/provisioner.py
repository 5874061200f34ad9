"""Idempotent venv provisioning for kernels.

setup_kernel() workflow:

1. Resolve venv, requirements and kernel directory paths
2. Short-circuit when the venv is valid and the requirements hash matches
3. (Re)create the venv when it is invalid or force is set
4. Snapshot the requirements hash before installing
5. Upgrade pip (best effort) and install requirements
6. Persist the snapshot as the new marker, only after a successful install

A failed install leaves the venv as-is without a marker, so the next status
check reports NEEDS_UPDATE. Nothing is rolled back.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from jkm.core.cancellation import CancellationToken
from jkm.core.config import KernelDefinition, KernelsConfig
from jkm.core.errors import (
    EnvironmentSetupError,
    KernelManagerError,
    NotFoundError,
    OperationCancelledError,
)
from jkm.core.hash_tracker import check_freshness, compute_file_hash, write_hash
from jkm.core.layout import KernelLayout
from jkm.core.mirror import MirrorSelector
from jkm.core.platform import Platform, remove_directory_safely
from jkm.core.process.abc import ProcessRunner
from jkm.core.user_feedback import UserFeedback

logger = logging.getLogger(__name__)

ALREADY_UP_TO_DATE = "Already up to date"
SETUP_COMPLETE = "Setup complete"
CANCELLED = "Cancelled"


@dataclass(frozen=True)
class SetupResult:
    """Outcome of provisioning one kernel."""

    success: bool
    kernel_name: str
    message: str
    error: KernelManagerError | OSError | None = None


class EnvironmentProvisioner:
    """Creates kernel venvs and installs their requirements."""

    def __init__(
        self,
        layout: KernelLayout,
        process_runner: ProcessRunner,
        mirror_selector: MirrorSelector,
        platform: Platform,
        system_python: str,
        feedback: UserFeedback,
    ) -> None:
        self._layout = layout
        self._runner = process_runner
        self._mirror = mirror_selector
        self._platform = platform
        self._system_python = system_python
        self._feedback = feedback

    def setup_kernel(
        self,
        name: str,
        definition: KernelDefinition,
        *,
        force: bool = False,
        variant: str | None = None,
        token: CancellationToken | None = None,
    ) -> SetupResult:
        """Provision one kernel's venv.

        Args:
            name: Kernel name (key in kernels.json)
            definition: Kernel definition from config
            force: Recreate the venv even if it is up to date
            variant: Variant whose requirements file to install
            token: Cancellation token

        Returns:
            SetupResult; failures carry NotFoundError, EnvironmentSetupError,
            OperationCancelledError or OSError in ``error``
        """
        self._feedback.info("")
        self._feedback.info("=" * 60)
        self._feedback.info(f"Setting up kernel: {definition.display_name}")
        self._feedback.info("=" * 60)

        try:
            return self._setup_kernel(name, definition, force, variant, token)
        except OperationCancelledError as e:
            self._feedback.warning(f"  Setup of {name} cancelled")
            return SetupResult(False, name, CANCELLED, e)
        except KernelManagerError as e:
            self._feedback.error(f"  {e}")
            return SetupResult(False, name, str(e), e)
        except OSError as e:
            self._feedback.error(f"  Filesystem error: {e}")
            return SetupResult(False, name, f"Filesystem error: {e}", e)

    def _setup_kernel(
        self,
        name: str,
        definition: KernelDefinition,
        force: bool,
        variant: str | None,
        token: CancellationToken | None,
    ) -> SetupResult:
        kernel_dir = self._layout.kernel_dir(name)
        venv_dir = self._layout.venv_dir(name)
        requirements_path = self._layout.requirements_path(name, definition, variant)

        if not kernel_dir.is_dir():
            raise NotFoundError(f"Kernel directory not found: {kernel_dir}")

        if variant is not None and variant not in definition.variants:
            logger.debug("Unknown variant %r for %s; using base requirements", variant, name)

        if not force and self._platform.is_venv_valid(venv_dir):
            freshness = check_freshness(venv_dir, requirements_path)
            if freshness.up_to_date:
                self._feedback.success(
                    f"  venv is already up to date (hash: {freshness.current_hash[:8]})"
                )
                return SetupResult(True, name, ALREADY_UP_TO_DATE)
            stored = freshness.stored_hash[:8] if freshness.stored_hash else "none"
            self._feedback.info(
                f"  Requirements changed (stored: {stored}, "
                f"current: {freshness.current_hash[:8]})"
            )

        if force or not self._platform.is_venv_valid(venv_dir):
            self._check_cancelled(token)
            if venv_dir.exists():
                if force:
                    self._feedback.info("  Force mode: removing existing venv")
                else:
                    self._feedback.info("  Invalid venv detected: removing and recreating")
                remove_directory_safely(venv_dir)
            self._create_venv(venv_dir, token)

        # Snapshot before installing: captures the file version being installed,
        # not one edited while pip runs
        requirements_hash = ""
        if requirements_path.is_file():
            requirements_hash = compute_file_hash(requirements_path)

        self._install_requirements(venv_dir, requirements_path, token)

        if requirements_hash:
            write_hash(venv_dir, requirements_hash)
            self._feedback.info(f"  Updated requirements marker (hash: {requirements_hash[:8]})")

        self._feedback.success(f"  venv setup complete for {name}")
        return SetupResult(True, name, SETUP_COMPLETE)

    def _check_cancelled(self, token: CancellationToken | None) -> None:
        if token is not None:
            token.raise_if_cancelled()

    def _create_venv(self, venv_dir: Path, token: CancellationToken | None) -> None:
        self._feedback.info(f"  Creating venv at {venv_dir}...")
        self._feedback.info(f"  Python command: {self._system_python}")

        result = self._runner.run(
            [self._system_python, "-m", "venv", str(venv_dir)],
            on_output=self._feedback.stream,
            token=token,
        )
        self._check_cancelled(token)
        if not result.ok:
            raise EnvironmentSetupError(
                f"Failed to create virtual environment (exit code {result.exit_code})"
            )
        self._feedback.info("  venv created successfully")

    def _pip_upgrade_command(self, venv_dir: Path, mirror_args: list[str]) -> list[str]:
        if self._platform.is_windows:
            # pip.exe cannot replace itself while running
            python = self._platform.venv_python_path(venv_dir)
            return [str(python), "-m", "pip", "install", "--upgrade", "pip", *mirror_args]
        pip = self._platform.venv_pip_path(venv_dir)
        return [str(pip), "install", "--upgrade", "pip", *mirror_args]

    def _install_requirements(
        self, venv_dir: Path, requirements_path: Path, token: CancellationToken | None
    ) -> None:
        if not requirements_path.is_file():
            self._feedback.info(
                f"  No requirements file at {requirements_path}, skipping install."
            )
            return

        mirror_args = self._mirror.get_mirror_args()
        mirror = self._mirror.get_preferred_mirror()
        if mirror is not None:
            self._feedback.info(f"  Using PyPI mirror: {mirror.label} ({mirror.url})")

        self._check_cancelled(token)
        self._feedback.info("  Upgrading pip...")
        upgrade = self._runner.run(
            self._pip_upgrade_command(venv_dir, mirror_args),
            on_output=self._feedback.stream,
            token=token,
        )
        self._check_cancelled(token)
        if not upgrade.ok:
            self._feedback.warning("  Warning: pip upgrade failed, continuing anyway...")

        self._feedback.info(f"  Installing packages from {requirements_path.name}...")
        pip = self._platform.venv_pip_path(venv_dir)
        install = self._runner.run(
            [str(pip), "install", "-r", str(requirements_path), *mirror_args],
            on_output=self._feedback.stream,
            token=token,
        )
        self._check_cancelled(token)
        if not install.ok:
            raise EnvironmentSetupError(
                f"Failed to install packages (exit code {install.exit_code})"
            )
        self._feedback.info("  Packages installed successfully")

    def setup_all_kernels(
        self,
        config: KernelsConfig,
        *,
        force: bool = False,
        token: CancellationToken | None = None,
    ) -> list[SetupResult]:
        """Provision every kernel sequentially.

        Individual failures do not stop the batch. Cancellation records one
        "Cancelled" result for the next kernel and stops.
        """
        results: list[SetupResult] = []
        for name, definition in config.kernels.items():
            if token is not None and token.is_cancelled:
                results.append(
                    SetupResult(False, name, CANCELLED, OperationCancelledError(CANCELLED))
                )
                break
            results.append(self.setup_kernel(name, definition, force=force, token=token))
        return results
