"""kernels.json loading, validation and editing.

The config is reconstructed from disk on every load; nothing is cached
between loads.

Example kernels.json:

    {
      "kernels": {
        "pytorch_study": {
          "display_name": "Python (PyTorch)",
          "requirements_file": "requirements.txt",
          "env": {"PYTHONHASHSEED": "0"},
          "variants": {
            "gpu": {"display_name": "Python (PyTorch GPU)",
                    "requirements_file": "requirements-gpu.txt"}
          }
        }
      }
    }
"""

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from jkm.core.errors import ConfigError

DEFAULT_REQUIREMENTS_FILE = "requirements.txt"

STARTER_REQUIREMENTS = "# Add your Python package requirements here\nipykernel\n"

KERNEL_NAME_PATTERN = re.compile(r"[a-zA-Z0-9_-]+")

STARTER_CONFIG: dict[str, Any] = {
    "kernels": {
        "default": {
            "display_name": "Python (Default)",
            "description": "Default kernel with common packages",
        }
    }
}


@dataclass(frozen=True)
class VariantDefinition:
    """Alternate dependency set for a kernel (e.g. CPU vs GPU)."""

    requirements_file: str
    display_name: str | None = None


@dataclass(frozen=True)
class KernelDefinition:
    """One kernel entry from kernels.json."""

    display_name: str
    description: str | None = None
    requirements_file: str | None = None
    python_version: str | None = None
    env: dict[str, str] = field(default_factory=dict)
    variants: dict[str, VariantDefinition] = field(default_factory=dict)

    def to_json(self) -> dict[str, Any]:
        data: dict[str, Any] = {"display_name": self.display_name}
        if self.description is not None:
            data["description"] = self.description
        if self.requirements_file is not None:
            data["requirements_file"] = self.requirements_file
        if self.python_version is not None:
            data["python_version"] = self.python_version
        if self.env:
            data["env"] = dict(self.env)
        if self.variants:
            variants: dict[str, Any] = {}
            for name, variant in self.variants.items():
                entry: dict[str, Any] = {}
                if variant.display_name is not None:
                    entry["display_name"] = variant.display_name
                entry["requirements_file"] = variant.requirements_file
                variants[name] = entry
            data["variants"] = variants
        return data


@dataclass(frozen=True)
class KernelsConfig:
    """Validated kernels.json contents, keyed by kernel name in file order."""

    kernels: dict[str, KernelDefinition]

    @property
    def names(self) -> list[str]:
        return list(self.kernels)

    def to_json(self) -> dict[str, Any]:
        return {"kernels": {name: d.to_json() for name, d in self.kernels.items()}}


@dataclass(frozen=True)
class ConfigLoadResult:
    """Outcome of load_config: exactly one of config/error is set."""

    config: KernelsConfig | None
    error: ConfigError | None
    file_path: Path


def validate_config(obj: object) -> str | None:
    """Validate parsed kernels.json structure.

    Checks run in a fixed order and the first violation wins:
    kernels object, display_name, optional string fields, env, variants.

    Returns:
        Error message naming the offending field, or None if valid
    """
    if not isinstance(obj, dict):
        return "Config must be a JSON object"

    kernels = obj.get("kernels")
    if not isinstance(kernels, dict):
        return 'Config must contain a "kernels" object'

    for name, kernel in kernels.items():
        if not isinstance(kernel, dict):
            return f'Kernel "{name}" must be an object'

        display_name = kernel.get("display_name")
        if not isinstance(display_name, str) or not display_name:
            return f'Kernel "{name}" must have a non-empty "display_name" string'

        for key in ("description", "requirements_file", "python_version"):
            if key in kernel and not isinstance(kernel[key], str):
                return f'Kernel "{name}": "{key}" must be a string'

        if "env" in kernel and not isinstance(kernel["env"], dict):
            return f'Kernel "{name}": "env" must be an object'

        if "variants" in kernel:
            variants = kernel["variants"]
            if not isinstance(variants, dict):
                return f'Kernel "{name}": "variants" must be an object'
            for variant_name, variant in variants.items():
                if not isinstance(variant, dict):
                    return f'Kernel "{name}", variant "{variant_name}" must be an object'
                req = variant.get("requirements_file")
                if not isinstance(req, str) or not req:
                    return (
                        f'Kernel "{name}", variant "{variant_name}" '
                        f'must have a "requirements_file" string'
                    )

    return None


def _parse_variant(data: dict[str, Any]) -> VariantDefinition:
    display_name = data.get("display_name")
    return VariantDefinition(
        requirements_file=data["requirements_file"],
        display_name=display_name if isinstance(display_name, str) and display_name else None,
    )


def parse_config(obj: dict[str, Any]) -> KernelsConfig:
    """Build a KernelsConfig from an object that passed validate_config()."""
    kernels: dict[str, KernelDefinition] = {}
    for name, data in obj["kernels"].items():
        kernels[name] = KernelDefinition(
            display_name=data["display_name"],
            description=data.get("description"),
            requirements_file=data.get("requirements_file"),
            python_version=data.get("python_version"),
            env={str(k): str(v) for k, v in data.get("env", {}).items()},
            variants={
                variant_name: _parse_variant(variant)
                for variant_name, variant in data.get("variants", {}).items()
            },
        )
    return KernelsConfig(kernels=kernels)


def load_config(config_path: Path) -> ConfigLoadResult:
    """Load and validate kernels.json.

    Never raises for bad content: read, parse and schema failures are
    reported through ConfigLoadResult.error.
    """
    try:
        content = config_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return ConfigLoadResult(
            None, ConfigError("not_found", f"{config_path.name} not found"), config_path
        )
    except (OSError, UnicodeDecodeError) as e:
        return ConfigLoadResult(
            None, ConfigError("io", f"Failed to read config: {e}"), config_path
        )

    try:
        parsed = json.loads(content)
    except json.JSONDecodeError as e:
        return ConfigLoadResult(None, ConfigError("parse", f"Invalid JSON: {e}"), config_path)

    message = validate_config(parsed)
    if message is not None:
        return ConfigLoadResult(None, ConfigError("schema", message), config_path)

    return ConfigLoadResult(parse_config(parsed), None, config_path)


def _write_json(path: Path, data: dict[str, Any]) -> None:
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


def init_config(config_path: Path, kernels_root: Path, *, overwrite: bool) -> None:
    """Write a starter kernels.json with a single "default" kernel.

    Also creates ``<kernels_root>/default/requirements.txt`` if missing.

    Raises:
        FileExistsError: If config_path exists and overwrite is False
    """
    if config_path.exists() and not overwrite:
        raise FileExistsError(f"{config_path} already exists (use --force to overwrite)")

    default_dir = kernels_root / "default"
    default_dir.mkdir(parents=True, exist_ok=True)
    requirements = default_dir / DEFAULT_REQUIREMENTS_FILE
    if not requirements.exists():
        requirements.write_text(STARTER_REQUIREMENTS, encoding="utf-8")

    config_path.parent.mkdir(parents=True, exist_ok=True)
    _write_json(config_path, STARTER_CONFIG)


def add_kernel(
    config_path: Path,
    kernels_root: Path,
    name: str,
    display_name: str,
    description: str | None,
) -> KernelDefinition:
    """Scaffold a new kernel directory and append it to kernels.json.

    A missing config file is treated as an empty one.

    Raises:
        ValueError: If the name is invalid, already defined, or the existing
            config fails validation
    """
    if not KERNEL_NAME_PATTERN.fullmatch(name):
        raise ValueError(
            f'Invalid kernel name "{name}": use only letters, numbers, hyphens, and underscores'
        )
    if not display_name:
        raise ValueError("Display name is required")

    result = load_config(config_path)
    if result.error is not None and result.error.kind != "not_found":
        raise ValueError(f"Cannot update {config_path.name}: {result.error.message}")
    config = result.config if result.config is not None else KernelsConfig(kernels={})

    if name in config.kernels:
        raise ValueError(f'Kernel "{name}" already exists in config')

    kernel_dir = kernels_root / name
    kernel_dir.mkdir(parents=True, exist_ok=True)
    requirements = kernel_dir / DEFAULT_REQUIREMENTS_FILE
    if not requirements.exists():
        requirements.write_text(STARTER_REQUIREMENTS, encoding="utf-8")

    definition = KernelDefinition(display_name=display_name, description=description or None)
    updated = KernelsConfig(kernels={**config.kernels, name: definition})
    config_path.parent.mkdir(parents=True, exist_ok=True)
    _write_json(config_path, updated.to_json())
    return definition
