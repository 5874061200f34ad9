"""Pydantic models for JSON output schemas.

These models define the validated structure of `--format json` output.
"""

from pydantic import BaseModel, ConfigDict, Field

from jkm.core.status import KernelInfo


class KernelVariantInfo(BaseModel):
    """A variant of a kernel as reported by `jkm list --format json`."""

    model_config = ConfigDict(strict=True)

    name: str
    display_name: str | None
    requirements_file: str
    spec_name: str
    is_registered: bool


class KernelListItem(BaseModel):
    """One kernel in `jkm list --format json`.

    Attributes:
        name: Kernel name (key in kernels.json)
        display_name: Name shown in kernel pickers
        description: Optional description
        status: One of not_provisioned, ready, needs_update, broken
        is_registered: Whether the base kernelspec exists
        spec_name: Kernelspec name for the base kernel
        venv_path: Absolute path of the kernel's venv
    """

    model_config = ConfigDict(strict=True)

    name: str
    display_name: str
    description: str | None
    status: str = Field(..., pattern="^(not_provisioned|ready|needs_update|broken)$")
    is_registered: bool
    spec_name: str
    venv_path: str | None
    variants: list[KernelVariantInfo]


class KernelListResponse(BaseModel):
    """JSON response schema for `jkm list --format json`."""

    model_config = ConfigDict(strict=True)

    config_path: str
    kernels: list[KernelListItem]


class MirrorResponse(BaseModel):
    """JSON response schema for `jkm mirror --format json`."""

    model_config = ConfigDict(strict=True)

    url: str | None
    label: str | None


def kernel_list_item(info: KernelInfo, spec_name: str, variants: list[KernelVariantInfo]) -> KernelListItem:
    return KernelListItem(
        name=info.name,
        display_name=info.definition.display_name,
        description=info.definition.description,
        status=info.status.value,
        is_registered=info.is_registered,
        spec_name=spec_name,
        venv_path=str(info.venv_path) if info.venv_path is not None else None,
        variants=variants,
    )
