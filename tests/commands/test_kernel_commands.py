"""Tests for the setup, register and unregister commands."""

import json
from pathlib import Path

from click.testing import CliRunner

from jkm.cli.cli import cli
from jkm.core.context import JkmContext
from jkm.core.hash_tracker import read_stored_hash
from jkm.core.platform import Platform
from jkm.core.process.abc import ProcessResult
from tests.fakes.process import FakeProcessRunner, create_fake_venv


def _workspace(tmp_path: Path, *names: str) -> None:
    kernels = {name: {"display_name": f"Python ({name})"} for name in names}
    (tmp_path / "kernels.json").write_text(json.dumps({"kernels": kernels}), encoding="utf-8")
    for name in names:
        requirements = tmp_path / "kernels" / name / "requirements.txt"
        requirements.parent.mkdir(parents=True)
        requirements.write_text("ipykernel\n", encoding="utf-8")


def _context(tmp_path: Path, **results: ProcessResult) -> tuple[JkmContext, FakeProcessRunner]:
    platform = Platform(name="linux", environ={}, home=tmp_path / "home")
    runner = FakeProcessRunner(
        results=[(("install", "-r"), r) for r in results.values()],
        side_effects=[(("-m", "venv"), create_fake_venv(platform))],
    )
    return JkmContext.for_test(tmp_path, platform=platform, process_runner=runner), runner


def test_setup_single_kernel(tmp_path: Path) -> None:
    _workspace(tmp_path, "common")
    ctx, runner = _context(tmp_path)

    result = CliRunner().invoke(cli, ["setup", "common"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert len(runner.commands_matching("install", "-r")) == 1
    assert read_stored_hash(ctx.layout.venv_dir("common")) is not None


def test_setup_requires_name_or_all(tmp_path: Path) -> None:
    _workspace(tmp_path, "common")
    ctx, _ = _context(tmp_path)

    neither = CliRunner().invoke(cli, ["setup"], obj=ctx)
    both = CliRunner().invoke(cli, ["setup", "common", "--all"], obj=ctx)

    assert neither.exit_code == 1
    assert both.exit_code == 1
    assert "NAME or --all" in neither.output


def test_setup_unknown_kernel(tmp_path: Path) -> None:
    _workspace(tmp_path, "common")
    ctx, runner = _context(tmp_path)

    result = CliRunner().invoke(cli, ["setup", "ghost"], obj=ctx)

    assert result.exit_code == 1
    assert 'Kernel "ghost" is not defined' in result.output
    assert runner.calls == []


def test_setup_all_prints_summary_and_fails_on_error(tmp_path: Path) -> None:
    _workspace(tmp_path, "a", "b")
    ctx, _ = _context(tmp_path, failure=ProcessResult(1, "", "resolution failed"))

    result = CliRunner().invoke(cli, ["setup", "--all"], obj=ctx)

    assert result.exit_code == 1
    assert "Setup Finished with errors" in result.output
    assert "0/2 succeeded" in result.output


def test_setup_all_success(tmp_path: Path) -> None:
    _workspace(tmp_path, "a", "b")
    ctx, _ = _context(tmp_path)

    result = CliRunner().invoke(cli, ["setup", "--all"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert "2/2 succeeded" in result.output


def test_register_after_setup(tmp_path: Path) -> None:
    _workspace(tmp_path, "common")
    ctx, _ = _context(tmp_path)
    CliRunner().invoke(cli, ["setup", "common"], obj=ctx)

    result = CliRunner().invoke(cli, ["register", "common"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert ctx.registrar.is_registered("common")


def test_register_without_setup_fails(tmp_path: Path) -> None:
    _workspace(tmp_path, "common")
    ctx, _ = _context(tmp_path)

    result = CliRunner().invoke(cli, ["register", "common"], obj=ctx)

    assert result.exit_code == 1
    assert not ctx.registrar.is_registered("common")


def test_register_all_summary(tmp_path: Path) -> None:
    _workspace(tmp_path, "a", "b")
    ctx, _ = _context(tmp_path)
    CliRunner().invoke(cli, ["setup", "a"], obj=ctx)

    result = CliRunner().invoke(cli, ["register", "--all"], obj=ctx)

    assert result.exit_code == 1
    assert "1/2 succeeded" in result.output
    assert ctx.registrar.is_registered("a")
    assert not ctx.registrar.is_registered("b")


def test_unregister(tmp_path: Path) -> None:
    _workspace(tmp_path, "common")
    ctx, _ = _context(tmp_path)
    CliRunner().invoke(cli, ["setup", "common"], obj=ctx)
    CliRunner().invoke(cli, ["register", "common"], obj=ctx)

    result = CliRunner().invoke(cli, ["unregister", "common"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert not ctx.registrar.is_registered("common")


def test_unregister_missing_spec(tmp_path: Path) -> None:
    ctx, _ = _context(tmp_path)

    result = CliRunner().invoke(cli, ["unregister", "common"], obj=ctx)

    assert result.exit_code == 1
    assert "Kernelspec not found: py-learn-common" in result.output
