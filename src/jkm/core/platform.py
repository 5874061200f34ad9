"""Platform-specific paths for venvs and the Jupyter data directory."""

import os
import shutil
import sys
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Platform:
    """Host platform facts.

    Held as a value so tests can ask Windows questions on any host.

    Attributes:
        name: sys.platform-style identifier ("win32", "darwin", "linux")
        environ: Environment used to resolve data directories
        home: User home directory
    """

    name: str
    environ: dict[str, str]
    home: Path

    @staticmethod
    def current() -> "Platform":
        return Platform(name=sys.platform, environ=dict(os.environ), home=Path.home())

    @property
    def is_windows(self) -> bool:
        return self.name == "win32"

    @property
    def is_macos(self) -> bool:
        return self.name == "darwin"

    def venv_python_path(self, venv_dir: Path) -> Path:
        if self.is_windows:
            return venv_dir / "Scripts" / "python.exe"
        return venv_dir / "bin" / "python"

    def venv_pip_path(self, venv_dir: Path) -> Path:
        if self.is_windows:
            return venv_dir / "Scripts" / "pip.exe"
        return venv_dir / "bin" / "pip"

    def default_python_command(self) -> str:
        # `python3` is not reliably on PATH for Windows installs
        return "python" if self.is_windows else "python3"

    def system_python_command(self, configured: str) -> str:
        """Return the configured interpreter, or the platform default when empty."""
        if configured:
            return configured
        return self.default_python_command()

    def is_venv_valid(self, venv_dir: Path) -> bool:
        """Check that the venv has an interpreter at the expected location."""
        return self.venv_python_path(venv_dir).is_file()

    def jupyter_data_dir(self) -> Path:
        """Return Jupyter's per-user data directory.

        Windows: %APPDATA%/jupyter
        macOS:   ~/Library/Jupyter
        Other:   $XDG_DATA_HOME/jupyter or ~/.local/share/jupyter
        """
        if self.is_windows:
            app_data = self.environ.get("APPDATA")
            if app_data:
                return Path(app_data) / "jupyter"
            return self.home / "AppData" / "Roaming" / "jupyter"
        if self.is_macos:
            return self.home / "Library" / "Jupyter"
        data_home = self.environ.get("XDG_DATA_HOME")
        if data_home:
            return Path(data_home) / "jupyter"
        return self.home / ".local" / "share" / "jupyter"

    def kernel_specs_dir(self) -> Path:
        return self.jupyter_data_dir() / "kernels"

    def is_windows_store_python(self, python_path: Path) -> bool:
        """Detect a Microsoft Store (sandboxed) interpreter.

        Store Python lives under WindowsApps and has file writes under
        AppData redirected into its sandbox.
        """
        if not self.is_windows:
            return False
        try:
            resolved = python_path.resolve(strict=True)
        except OSError:
            return False
        return "windowsapps" in str(resolved).lower()


def remove_directory_safely(path: Path) -> None:
    """Remove a directory tree, clearing read-only bits that block deletion on Windows."""
    if not path.exists():
        return

    def _clear_readonly_and_retry(func, target, _exc) -> None:  # type: ignore[no-untyped-def]
        os.chmod(target, 0o700)
        func(target)

    shutil.rmtree(path, onexc=_clear_readonly_and_retry)
