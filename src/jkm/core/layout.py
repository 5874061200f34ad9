"""Filesystem layout of kernel directories inside a workspace.

    <workspace>/
      kernels.json
      kernels/
        <name>/
          requirements.txt
          .venv/
            .requirements_hash
"""

from dataclasses import dataclass
from pathlib import Path

from jkm.core.config import DEFAULT_REQUIREMENTS_FILE, KernelDefinition

VENV_DIRNAME = ".venv"


@dataclass(frozen=True)
class KernelLayout:
    """Derives per-kernel paths from the workspace and kernels directory."""

    workspace_root: Path
    kernels_root: Path

    def kernel_dir(self, name: str) -> Path:
        return self.kernels_root / name

    def venv_dir(self, name: str) -> Path:
        return self.kernel_dir(name) / VENV_DIRNAME

    def requirements_path(
        self, name: str, definition: KernelDefinition, variant: str | None = None
    ) -> Path:
        """Resolve the requirements file for a kernel.

        A variant overrides the base file only when the definition declares
        it; an unknown variant name falls back to the base file.
        """
        if variant is not None and variant in definition.variants:
            return self.kernel_dir(name) / definition.variants[variant].requirements_file
        filename = definition.requirements_file or DEFAULT_REQUIREMENTS_FILE
        return self.kernel_dir(name) / filename

    def project_local_specs_dir(self) -> Path:
        """Kernelspec location inside the workspace's own .venv (used on Windows)."""
        return self.workspace_root / VENV_DIRNAME / "share" / "jupyter" / "kernels"
