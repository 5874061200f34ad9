"""Per-kernel lifecycle state derived from filesystem probes.

The snapshot is recomputed on every call; nothing is cached, so a status
never lags behind an edit to a requirements file.
"""

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING

from jkm.core.config import KernelDefinition, KernelsConfig
from jkm.core.hash_tracker import check_freshness
from jkm.core.layout import KernelLayout
from jkm.core.platform import Platform

if TYPE_CHECKING:
    from jkm.core.registrar import RegistrationManager


class KernelStatus(StrEnum):
    NOT_PROVISIONED = "not_provisioned"
    READY = "ready"
    NEEDS_UPDATE = "needs_update"
    BROKEN = "broken"


@dataclass(frozen=True)
class KernelInfo:
    """Derived view of one kernel. Never persisted."""

    name: str
    definition: KernelDefinition
    status: KernelStatus
    is_registered: bool
    venv_path: Path | None


def resolve_status(
    layout: KernelLayout, platform: Platform, name: str, definition: KernelDefinition
) -> KernelStatus:
    venv_dir = layout.venv_dir(name)
    if platform.is_venv_valid(venv_dir):
        freshness = check_freshness(venv_dir, layout.requirements_path(name, definition))
        return KernelStatus.READY if freshness.up_to_date else KernelStatus.NEEDS_UPDATE
    if venv_dir.exists():
        # Directory present but no working interpreter
        return KernelStatus.BROKEN
    return KernelStatus.NOT_PROVISIONED


def get_kernel_info_list(
    config: KernelsConfig,
    layout: KernelLayout,
    platform: Platform,
    *,
    registrar: "RegistrationManager | None" = None,
) -> list[KernelInfo]:
    """Compute a status snapshot for every kernel, in config order."""
    result: list[KernelInfo] = []
    for name, definition in config.kernels.items():
        result.append(
            KernelInfo(
                name=name,
                definition=definition,
                status=resolve_status(layout, platform, name, definition),
                is_registered=registrar.is_registered(name) if registrar is not None else False,
                venv_path=layout.venv_dir(name),
            )
        )
    return result
