"""Tests for kernel status resolution."""

from pathlib import Path

from jkm.core.config import KernelDefinition, KernelsConfig
from jkm.core.hash_tracker import compute_file_hash, write_hash
from jkm.core.layout import KernelLayout
from jkm.core.platform import Platform
from jkm.core.status import KernelStatus, get_kernel_info_list, resolve_status

LINUX = Platform(name="linux", environ={}, home=Path("/nonexistent-home"))


def _layout(tmp_path: Path) -> KernelLayout:
    return KernelLayout(workspace_root=tmp_path, kernels_root=tmp_path / "kernels")


def _make_venv(layout: KernelLayout, name: str) -> Path:
    venv = layout.venv_dir(name)
    python = LINUX.venv_python_path(venv)
    python.parent.mkdir(parents=True)
    python.write_text("", encoding="utf-8")
    return venv


def _write_requirements(layout: KernelLayout, name: str, text: str) -> Path:
    path = layout.kernel_dir(name) / "requirements.txt"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_no_venv_is_not_provisioned(tmp_path: Path) -> None:
    layout = _layout(tmp_path)
    definition = KernelDefinition(display_name="A")

    assert resolve_status(layout, LINUX, "a", definition) == KernelStatus.NOT_PROVISIONED


def test_venv_dir_without_python_is_broken(tmp_path: Path) -> None:
    layout = _layout(tmp_path)
    layout.venv_dir("a").mkdir(parents=True)

    status = resolve_status(layout, LINUX, "a", KernelDefinition(display_name="A"))

    assert status == KernelStatus.BROKEN


def test_matching_marker_is_ready(tmp_path: Path) -> None:
    layout = _layout(tmp_path)
    requirements = _write_requirements(layout, "a", "numpy\n")
    venv = _make_venv(layout, "a")
    write_hash(venv, compute_file_hash(requirements))

    status = resolve_status(layout, LINUX, "a", KernelDefinition(display_name="A"))

    assert status == KernelStatus.READY


def test_edited_requirements_need_update(tmp_path: Path) -> None:
    layout = _layout(tmp_path)
    requirements = _write_requirements(layout, "a", "numpy\n")
    venv = _make_venv(layout, "a")
    write_hash(venv, compute_file_hash(requirements))

    requirements.write_text("numpy\npandas\n", encoding="utf-8")

    status = resolve_status(layout, LINUX, "a", KernelDefinition(display_name="A"))
    assert status == KernelStatus.NEEDS_UPDATE


def test_valid_venv_without_requirements_is_ready(tmp_path: Path) -> None:
    layout = _layout(tmp_path)
    _make_venv(layout, "a")

    status = resolve_status(layout, LINUX, "a", KernelDefinition(display_name="A"))

    assert status == KernelStatus.READY


def test_custom_requirements_file_is_used(tmp_path: Path) -> None:
    layout = _layout(tmp_path)
    custom = layout.kernel_dir("a") / "deps.txt"
    custom.parent.mkdir(parents=True)
    custom.write_text("torch\n", encoding="utf-8")
    venv = _make_venv(layout, "a")
    write_hash(venv, compute_file_hash(custom))
    definition = KernelDefinition(display_name="A", requirements_file="deps.txt")

    assert resolve_status(layout, LINUX, "a", definition) == KernelStatus.READY


def test_info_list_keeps_config_order(tmp_path: Path) -> None:
    layout = _layout(tmp_path)
    config = KernelsConfig(
        kernels={
            "zeta": KernelDefinition(display_name="Z"),
            "alpha": KernelDefinition(display_name="A"),
        }
    )

    infos = get_kernel_info_list(config, layout, LINUX)

    assert [info.name for info in infos] == ["zeta", "alpha"]
    assert all(info.status == KernelStatus.NOT_PROVISIONED for info in infos)
    assert all(not info.is_registered for info in infos)
    assert infos[0].venv_path == layout.venv_dir("zeta")


def test_info_list_empty_config(tmp_path: Path) -> None:
    assert get_kernel_info_list(KernelsConfig(kernels={}), _layout(tmp_path), LINUX) == []
