"""Tests for kernelspec registration."""

import json
from pathlib import Path

from jkm.core.cancellation import CancellationToken
from jkm.core.config import KernelDefinition, KernelsConfig, VariantDefinition
from jkm.core.context import JkmContext
from jkm.core.errors import NotFoundError, OperationCancelledError
from jkm.core.platform import Platform
from jkm.core.process.abc import ProcessResult
from jkm.core.registrar import KernelSpec, ProjectLocalMirrorHook, build_kernel_spec
from jkm.core.settings import Settings
from tests.fakes.process import FakeProcessRunner
from tests.fakes.user_feedback import FakeUserFeedback


def _make_venv(ctx: JkmContext, name: str) -> Path:
    python = ctx.platform.venv_python_path(ctx.layout.venv_dir(name))
    python.parent.mkdir(parents=True, exist_ok=True)
    python.write_text("", encoding="utf-8")
    return python


def _read_spec(path: Path) -> dict:
    return json.loads((path / "kernel.json").read_text(encoding="utf-8"))


def test_spec_names_use_prefix_and_variant(tmp_path: Path) -> None:
    ctx = JkmContext.for_test(tmp_path)
    registrar = ctx.registrar

    assert registrar.kernel_spec_name("common") == "py-learn-common"
    assert registrar.kernel_spec_name("torch", "gpu") == "py-learn-torch-gpu"


def test_custom_prefix_from_settings(tmp_path: Path) -> None:
    ctx = JkmContext.for_test(
        tmp_path, settings=Settings(workspace_root=tmp_path, kernel_prefix="course")
    )

    assert ctx.registrar.kernel_spec_name("common") == "course-common"


def test_register_writes_kernel_json(tmp_path: Path) -> None:
    ctx = JkmContext.for_test(tmp_path)
    python = _make_venv(ctx, "common")
    definition = KernelDefinition(display_name="Python (Common)", env={"MPLBACKEND": "Agg"})

    result = ctx.registrar.register_kernel("common", definition)

    assert result.success
    assert result.spec_name == "py-learn-common"
    spec_dir = ctx.platform.kernel_specs_dir() / "py-learn-common"
    assert _read_spec(spec_dir) == {
        "argv": [str(python), "-m", "ipykernel_launcher", "-f", "{connection_file}"],
        "display_name": "Python (Common)",
        "language": "python",
        "metadata": {"debugger": True},
        "env": {"MPLBACKEND": "Agg"},
    }
    assert ctx.registrar.is_registered("common")


def test_empty_env_is_omitted(tmp_path: Path) -> None:
    ctx = JkmContext.for_test(tmp_path)
    _make_venv(ctx, "common")

    ctx.registrar.register_kernel("common", KernelDefinition(display_name="C"))

    spec = _read_spec(ctx.registrar.spec_dir("common"))
    assert "env" not in spec


def test_register_without_venv_fails_and_writes_nothing(tmp_path: Path) -> None:
    ctx = JkmContext.for_test(tmp_path)

    result = ctx.registrar.register_kernel("common", KernelDefinition(display_name="C"))

    assert not result.success
    assert isinstance(result.error, NotFoundError)
    assert "run setup first" in result.message
    assert not ctx.registrar.spec_dir("common").exists()


def test_variant_uses_variant_display_name(tmp_path: Path) -> None:
    ctx = JkmContext.for_test(tmp_path)
    _make_venv(ctx, "torch")
    definition = KernelDefinition(
        display_name="Python (Torch)",
        variants={
            "gpu": VariantDefinition("requirements-gpu.txt", display_name="Python (Torch GPU)"),
            "cpu": VariantDefinition("requirements-cpu.txt"),
        },
    )

    gpu = ctx.registrar.register_kernel("torch", definition, "gpu")
    cpu = ctx.registrar.register_kernel("torch", definition, "cpu")

    assert gpu.spec_name == "py-learn-torch-gpu"
    assert _read_spec(ctx.registrar.spec_dir("torch", "gpu"))["display_name"] == "Python (Torch GPU)"
    assert cpu.success
    assert _read_spec(ctx.registrar.spec_dir("torch", "cpu"))["display_name"] == "Python (Torch)"


def test_register_all_reports_each_kernel(tmp_path: Path) -> None:
    ctx = JkmContext.for_test(tmp_path)
    _make_venv(ctx, "a")
    config = KernelsConfig(
        kernels={"a": KernelDefinition(display_name="A"), "b": KernelDefinition(display_name="B")}
    )

    results = ctx.registrar.register_all_kernels(config)

    assert [(r.kernel_name, r.success) for r in results] == [("a", True), ("b", False)]


def test_register_all_stops_when_cancelled(tmp_path: Path) -> None:
    ctx = JkmContext.for_test(tmp_path)
    _make_venv(ctx, "a")
    config = KernelsConfig(kernels={"a": KernelDefinition(display_name="A")})
    token = CancellationToken()
    token.cancel()

    results = ctx.registrar.register_all_kernels(config, token=token)

    assert len(results) == 1
    assert results[0].message == "Cancelled"
    assert isinstance(results[0].error, OperationCancelledError)
    assert not ctx.registrar.is_registered("a")


def test_unregister_removes_spec(tmp_path: Path) -> None:
    ctx = JkmContext.for_test(tmp_path)
    _make_venv(ctx, "a")
    ctx.registrar.register_kernel("a", KernelDefinition(display_name="A"))

    result = ctx.registrar.unregister_kernel("a")

    assert result.success
    assert not ctx.registrar.spec_dir("a").exists()
    assert not ctx.registrar.is_registered("a")


def test_unregister_missing_spec(tmp_path: Path) -> None:
    ctx = JkmContext.for_test(tmp_path)

    result = ctx.registrar.unregister_kernel("nope")

    assert not result.success
    assert isinstance(result.error, NotFoundError)
    assert result.message == "Kernelspec not found: py-learn-nope"


def test_list_installed_specs(tmp_path: Path) -> None:
    ctx = JkmContext.for_test(tmp_path)
    assert ctx.registrar.list_installed_specs() == []

    for name in ("b", "a"):
        _make_venv(ctx, name)
        ctx.registrar.register_kernel(name, KernelDefinition(display_name=name))

    assert ctx.registrar.list_installed_specs() == ["py-learn-a", "py-learn-b"]


def test_build_kernel_spec_serialization() -> None:
    spec = build_kernel_spec(Path("/venv/bin/python"), "X", {})

    assert spec == KernelSpec(
        argv=["/venv/bin/python", "-m", "ipykernel_launcher", "-f", "{connection_file}"],
        display_name="X",
    )
    assert spec.to_json()["metadata"] == {"debugger": True}


def _windows_context(tmp_path: Path, runner: FakeProcessRunner) -> JkmContext:
    platform = Platform(
        name="win32", environ={"APPDATA": str(tmp_path / "appdata")}, home=tmp_path / "home"
    )
    return JkmContext.for_test(tmp_path, platform=platform, process_runner=runner)


def test_windows_writes_project_local_copy(tmp_path: Path) -> None:
    runner = FakeProcessRunner()
    ctx = _windows_context(tmp_path, runner)
    _make_venv(ctx, "a")

    result = ctx.registrar.register_kernel("a", KernelDefinition(display_name="A"))

    assert result.success
    shared = tmp_path / "appdata" / "jupyter" / "kernels" / "py-learn-a"
    local = tmp_path / ".venv" / "share" / "jupyter" / "kernels" / "py-learn-a"
    assert _read_spec(local) == _read_spec(shared)
    assert runner.calls == []


def test_windows_unregister_removes_project_local_copy(tmp_path: Path) -> None:
    ctx = _windows_context(tmp_path, FakeProcessRunner())
    _make_venv(ctx, "a")
    ctx.registrar.register_kernel("a", KernelDefinition(display_name="A"))
    local = tmp_path / ".venv" / "share" / "jupyter" / "kernels" / "py-learn-a"
    assert local.exists()

    ctx.registrar.unregister_kernel("a")

    assert not local.exists()


def test_linux_skips_project_local_copy(tmp_path: Path) -> None:
    ctx = JkmContext.for_test(tmp_path)
    _make_venv(ctx, "a")

    ctx.registrar.register_kernel("a", KernelDefinition(display_name="A"))

    assert not (tmp_path / ".venv").exists()


class _StorePythonPlatform(Platform):
    def is_windows_store_python(self, python_path: Path) -> bool:
        return True


def test_store_python_copies_with_robocopy(tmp_path: Path) -> None:
    platform = _StorePythonPlatform(
        name="win32", environ={"APPDATA": str(tmp_path / "appdata")}, home=tmp_path
    )
    runner = FakeProcessRunner(results=[(("robocopy",), ProcessResult(1, "", ""))])
    feedback = FakeUserFeedback()
    ctx = JkmContext.for_test(tmp_path, platform=platform, process_runner=runner)
    hook = ProjectLocalMirrorHook(ctx.layout, platform, runner, feedback)
    spec = KernelSpec(argv=["C:/WindowsApps/python.exe"], display_name="A")
    shared = tmp_path / "appdata" / "jupyter" / "kernels" / "py-learn-a"

    hook.after_write("py-learn-a", spec, shared)

    assert runner.commands == [
        [
            "robocopy",
            str(shared),
            str(hook.local_spec_dir("py-learn-a")),
            "/E",
            "/NFL",
            "/NDL",
            "/NJH",
            "/NJS",
            "/NC",
            "/NS",
            "/NP",
        ]
    ]
    assert not feedback.has("robocopy returned")


def test_robocopy_failure_code_is_a_warning(tmp_path: Path) -> None:
    platform = _StorePythonPlatform(name="win32", environ={}, home=tmp_path)
    runner = FakeProcessRunner(results=[(("robocopy",), ProcessResult(8, "", ""))])
    feedback = FakeUserFeedback()
    ctx = JkmContext.for_test(tmp_path, platform=platform, process_runner=runner)
    hook = ProjectLocalMirrorHook(ctx.layout, platform, runner, feedback)

    hook.after_write("py-learn-a", KernelSpec(argv=["python.exe"], display_name="A"), tmp_path)

    assert feedback.has("robocopy returned 8")
