"""Health checks across the interpreter, Jupyter data dir, kernels and specs."""

import json
from dataclasses import dataclass, field
from pathlib import Path

from jkm.core.context import JkmContext
from jkm.core.hash_tracker import check_freshness
from jkm.core.process.real import COMMAND_NOT_FOUND_EXIT_CODE
from jkm.core.registrar import KERNEL_SPEC_FILENAME

IPYKERNEL_PROBE = "import ipykernel; print(ipykernel.__version__)"


@dataclass
class DiagnosticsSection:
    title: str
    lines: list[str] = field(default_factory=list)

    def add(self, line: str) -> None:
        self.lines.append(line)


@dataclass(frozen=True)
class DiagnosticsReport:
    sections: list[DiagnosticsSection]

    def render(self) -> str:
        out: list[str] = []
        for section in self.sections:
            out.append("")
            out.append(f"[{section.title}]")
            out.extend(section.lines)
        return "\n".join(out)


def _check_python_environment(ctx: JkmContext) -> DiagnosticsSection:
    section = DiagnosticsSection("Python Environment")
    python_cmd = ctx.system_python

    result = ctx.process_runner.run([python_cmd, "--version"])
    if result.ok:
        section.add(f"  System Python: {result.output}")
    elif result.exit_code == COMMAND_NOT_FOUND_EXIT_CODE:
        section.add(f'  ERROR: "{python_cmd}" not found on PATH')
    else:
        section.add(f'  WARNING: "{python_cmd}" returned exit code {result.exit_code}')

    if ctx.platform.is_windows:
        if ctx.platform.is_windows_store_python(Path(python_cmd)):
            section.add("  WARNING: Windows Store Python detected (sandboxed)")
            section.add("  Files written to AppData may be redirected to sandbox location")
        else:
            section.add("  Standard Python install (not sandboxed)")
    return section


def _check_jupyter_data_dir(ctx: JkmContext) -> DiagnosticsSection:
    section = DiagnosticsSection("Jupyter Data Directory")
    section.add(f"  Path: {ctx.platform.jupyter_data_dir()}")
    specs_dir = ctx.platform.kernel_specs_dir()
    if specs_dir.is_dir():
        section.add(f"  Kernels dir exists: {specs_dir}")
    else:
        section.add(f"  Kernels dir NOT found: {specs_dir}")
    return section


def _check_kernel_setup(ctx: JkmContext) -> DiagnosticsSection:
    section = DiagnosticsSection("Kernel Setup Status")

    loaded = ctx.load_config()
    if loaded.config is None:
        message = loaded.error.message if loaded.error is not None else "unknown error"
        section.add(f"  ERROR: Cannot load config: {message}")
        return section

    layout = ctx.layout
    registrar = ctx.registrar
    for name, definition in loaded.config.kernels.items():
        section.add("")
        section.add(f"  Kernel: {name} ({definition.display_name})")

        kernel_dir = layout.kernel_dir(name)
        if not kernel_dir.is_dir():
            section.add(f"    Directory: MISSING ({kernel_dir})")
            continue
        section.add("    Directory: OK")

        venv_dir = layout.venv_dir(name)
        if ctx.platform.is_venv_valid(venv_dir):
            section.add("    Venv: OK")
            python = str(ctx.platform.venv_python_path(venv_dir))

            version = ctx.process_runner.run([python, "--version"])
            if version.ok:
                section.add(f"    Python: {version.output}")
            else:
                section.add("    Python: ERROR (cannot execute)")

            ipykernel = ctx.process_runner.run([python, "-c", IPYKERNEL_PROBE])
            if ipykernel.ok:
                section.add(f"    ipykernel: {ipykernel.stdout.strip()}")
            else:
                section.add("    ipykernel: NOT INSTALLED")
                section.add('      Fix: add "ipykernel" to the requirements file and rerun setup')

            freshness = check_freshness(venv_dir, layout.requirements_path(name, definition))
            if freshness.up_to_date:
                section.add(f"    Requirements: Up to date ({freshness.current_hash[:8]})")
            elif freshness.stored_hash:
                section.add(
                    f"    Requirements: CHANGED (stored: {freshness.stored_hash[:8]}, "
                    f"current: {freshness.current_hash[:8]})"
                )
            else:
                section.add("    Requirements: No hash marker (needs setup)")
        elif venv_dir.exists():
            section.add("    Venv: BROKEN (directory exists but no valid Python)")
        else:
            section.add("    Venv: NOT SET UP")

        spec_name = registrar.kernel_spec_name(name)
        if registrar.is_registered(name):
            section.add(f"    Registered: YES ({spec_name})")
        else:
            section.add("    Registered: NO")

        for variant in definition.variants:
            state = "Registered" if registrar.is_registered(name, variant) else "Not registered"
            section.add(
                f'    Variant "{variant}": {state} ({registrar.kernel_spec_name(name, variant)})'
            )
    return section


def _check_registered_specs(ctx: JkmContext) -> DiagnosticsSection:
    section = DiagnosticsSection("Registered Jupyter Kernelspecs")
    registrar = ctx.registrar

    if not registrar.specs_dir.is_dir():
        section.add(f"  No kernelspecs directory found at: {registrar.specs_dir}")
        return section

    names = registrar.list_installed_specs()
    if not names:
        section.add("  No kernelspecs registered")
        return section

    for entry in names:
        spec_file = registrar.specs_dir / entry / KERNEL_SPEC_FILENAME
        try:
            spec = json.loads(spec_file.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            section.add(f"  {entry}: (invalid or unreadable kernel.json)")
            continue

        argv = spec.get("argv") if isinstance(spec, dict) else None
        python_path = argv[0] if isinstance(argv, list) and argv else "(unknown)"
        display_name = spec.get("display_name", entry) if isinstance(spec, dict) else entry

        status = "OK" if Path(python_path).exists() else "BROKEN (Python not found)"
        section.add(f"  {entry}: {display_name} [{status}]")
        section.add(f"    Python: {python_path}")
    return section


def _recommendations(ctx: JkmContext) -> DiagnosticsSection:
    section = DiagnosticsSection("Recommendations")
    section.add("  1. Restart your editor or Jupyter server after registering kernels")
    section.add('  2. In a notebook, use "Select Kernel" and look for your registered kernels')
    section.add('  3. Run "jkm setup --all" for any kernels marked as NOT SET UP')
    section.add('  4. Run "jkm register --all" for any kernels marked as NOT registered')
    if ctx.platform.is_windows:
        section.add("")
        section.add("  Windows notes:")
        section.add("  - Kernels are registered to %APPDATA%\\jupyter\\kernels\\")
        section.add("  - Project-local copies are also placed in .venv\\share\\jupyter\\kernels\\")
    return section


def run_diagnostics(ctx: JkmContext) -> DiagnosticsReport:
    """Collect every diagnostic section. Read-only apart from interpreter probes."""
    return DiagnosticsReport(
        sections=[
            _check_python_environment(ctx),
            _check_jupyter_data_dir(ctx),
            _check_kernel_setup(ctx),
            _check_registered_specs(ctx),
            _recommendations(ctx),
        ]
    )
