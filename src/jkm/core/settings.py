"""Workspace settings loaded from pyproject.toml and JKM_* environment variables.

Settings are loaded once at the CLI entry point and stored in JkmContext.
Precedence (highest first):

1. ``JKM_*`` environment variables
2. ``[tool.jkm]`` table in ``<workspace>/pyproject.toml``
3. Built-in defaults
"""

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path

DEFAULT_CONFIG_PATH = "kernels.json"
DEFAULT_KERNELS_DIR = "kernels"
DEFAULT_KERNEL_PREFIX = "py-learn"
AUTO_MIRROR = "auto"

_ENV_OVERRIDES = {
    "config_path": "JKM_CONFIG_PATH",
    "kernels_dir": "JKM_KERNELS_DIR",
    "kernel_prefix": "JKM_KERNEL_PREFIX",
    "python_path": "JKM_PYTHON_PATH",
    "pypi_mirror": "JKM_PYPI_MIRROR",
}


@dataclass(frozen=True)
class Settings:
    """Immutable workspace settings.

    Attributes:
        workspace_root: Directory containing kernels.json and the kernels dir
        config_path: Config file location, relative to workspace_root
        kernels_dir: Directory holding one subdirectory per kernel
        kernel_prefix: Prefix used for kernelspec names
        python_path: Interpreter used to create venvs ("" = platform default)
        pypi_mirror: Package index URL, or "auto" for geolocation
    """

    workspace_root: Path
    config_path: str = DEFAULT_CONFIG_PATH
    kernels_dir: str = DEFAULT_KERNELS_DIR
    kernel_prefix: str = DEFAULT_KERNEL_PREFIX
    python_path: str = ""
    pypi_mirror: str = AUTO_MIRROR

    @property
    def config_file(self) -> Path:
        return self.workspace_root / self.config_path

    @property
    def kernels_root(self) -> Path:
        return self.workspace_root / self.kernels_dir


def _read_pyproject_table(workspace_root: Path) -> dict[str, object]:
    pyproject = workspace_root / "pyproject.toml"
    if not pyproject.exists():
        return {}

    data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
    tool = data.get("tool", {})
    table = tool.get("jkm", {}) if isinstance(tool, dict) else {}
    if not isinstance(table, dict):
        raise ValueError(f"[tool.jkm] in {pyproject} must be a table")
    return table


def load_settings(workspace_root: Path, environ: dict[str, str] | None = None) -> Settings:
    """Load settings for a workspace.

    Args:
        workspace_root: Workspace directory (resolved to an absolute path)
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Settings with pyproject values and environment overrides applied

    Raises:
        ValueError: If a [tool.jkm] value is not a string
        tomllib.TOMLDecodeError: If pyproject.toml is malformed
    """
    env = os.environ if environ is None else environ
    root = workspace_root.expanduser().resolve()
    table = _read_pyproject_table(root)

    values: dict[str, str] = {}
    for field_name, env_var in _ENV_OVERRIDES.items():
        key = field_name.replace("_", "-")
        if key in table:
            raw = table[key]
            if not isinstance(raw, str):
                raise ValueError(f"[tool.jkm] {key} must be a string, got {type(raw).__name__}")
            values[field_name] = raw
        if env_var in env:
            values[field_name] = env[env_var]

    return Settings(workspace_root=root, **values)
