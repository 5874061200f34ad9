"""Application context with dependency injection."""

from dataclasses import dataclass
from pathlib import Path

import click

from jkm.cli.output import user_output
from jkm.core.config import ConfigLoadResult, load_config
from jkm.core.geoip.real import HttpGeoLocator
from jkm.core.layout import KernelLayout
from jkm.core.mirror import MirrorSelector
from jkm.core.platform import Platform
from jkm.core.process.abc import ProcessRunner
from jkm.core.process.real import RealProcessRunner
from jkm.core.provisioner import EnvironmentProvisioner
from jkm.core.registrar import ProjectLocalMirrorHook, RegistrationManager
from jkm.core.settings import Settings, load_settings
from jkm.core.user_feedback import InteractiveFeedback, SuppressedFeedback, UserFeedback


@dataclass(frozen=True)
class JkmContext:
    """Immutable context holding all dependencies for jkm operations.

    Created at the CLI entry point and threaded through commands via
    click's ``obj``. The MirrorSelector instance carries the session's
    mirror cache, so every provisioner built from this context shares it.
    """

    settings: Settings
    platform: Platform
    process_runner: ProcessRunner
    mirror_selector: MirrorSelector
    feedback: UserFeedback

    @property
    def layout(self) -> KernelLayout:
        return KernelLayout(
            workspace_root=self.settings.workspace_root,
            kernels_root=self.settings.kernels_root,
        )

    @property
    def system_python(self) -> str:
        return self.platform.system_python_command(self.settings.python_path)

    @property
    def provisioner(self) -> EnvironmentProvisioner:
        return EnvironmentProvisioner(
            layout=self.layout,
            process_runner=self.process_runner,
            mirror_selector=self.mirror_selector,
            platform=self.platform,
            system_python=self.system_python,
            feedback=self.feedback,
        )

    @property
    def registrar(self) -> RegistrationManager:
        hook = ProjectLocalMirrorHook(
            layout=self.layout,
            platform=self.platform,
            process_runner=self.process_runner,
            feedback=self.feedback,
        )
        return RegistrationManager(
            layout=self.layout,
            specs_dir=self.platform.kernel_specs_dir(),
            prefix=self.settings.kernel_prefix,
            platform=self.platform,
            feedback=self.feedback,
            post_write_hooks=[hook],
        )

    def load_config(self) -> ConfigLoadResult:
        """Reload kernels.json from disk."""
        return load_config(self.settings.config_file)

    @staticmethod
    def for_test(
        workspace_root: Path,
        *,
        settings: Settings | None = None,
        platform: Platform | None = None,
        process_runner: ProcessRunner | None = None,
        mirror_selector: MirrorSelector | None = None,
        feedback: UserFeedback | None = None,
    ) -> "JkmContext":
        """Create a context with fake integrations for tests.

        Defaults: a Linux platform whose home and Jupyter data live under
        ``<workspace_root>/home``, a FakeProcessRunner with no scripted
        results, a MirrorSelector backed by a FakeGeoLocator that knows no
        country, and a FakeUserFeedback.

        Example:
            >>> runner = FakeProcessRunner()
            >>> ctx = JkmContext.for_test(tmp_path, process_runner=runner)
            >>> result = ctx.provisioner.setup_kernel("default", definition)
        """
        from tests.fakes.geoip import FakeGeoLocator
        from tests.fakes.process import FakeProcessRunner
        from tests.fakes.user_feedback import FakeUserFeedback

        if settings is None:
            settings = Settings(workspace_root=workspace_root)

        if platform is None:
            home = workspace_root / "home"
            platform = Platform(name="linux", environ={}, home=home)

        if process_runner is None:
            process_runner = FakeProcessRunner()

        if mirror_selector is None:
            mirror_selector = MirrorSelector(FakeGeoLocator(country_code=None))

        if feedback is None:
            feedback = FakeUserFeedback()

        return JkmContext(
            settings=settings,
            platform=platform,
            process_runner=process_runner,
            mirror_selector=mirror_selector,
            feedback=feedback,
        )


def create_context(workspace_root: Path, *, quiet: bool = False) -> JkmContext:
    """Create production context with real implementations.

    Args:
        workspace_root: Workspace directory holding kernels.json
        quiet: Use SuppressedFeedback (warnings and errors only)

    Returns:
        JkmContext with real process runner, GeoIP lookup and feedback
    """
    if not workspace_root.is_dir():
        user_output(click.style("Error: ", fg="red") + f"Workspace not found: {workspace_root}")
        raise SystemExit(1)

    settings = load_settings(workspace_root)

    feedback: UserFeedback
    if quiet:
        feedback = SuppressedFeedback()
    else:
        feedback = InteractiveFeedback()

    return JkmContext(
        settings=settings,
        platform=Platform.current(),
        process_runner=RealProcessRunner(),
        mirror_selector=MirrorSelector(HttpGeoLocator(), override=settings.pypi_mirror),
        feedback=feedback,
    )
