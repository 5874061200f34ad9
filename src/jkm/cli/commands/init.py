import click

from jkm.cli.error_boundary import cli_error_boundary
from jkm.cli.output import user_output
from jkm.core.config import init_config
from jkm.core.context import JkmContext


@click.command("init")
@click.option("--force", is_flag=True, help="Overwrite an existing kernels.json.")
@click.pass_obj
@cli_error_boundary
def init_cmd(ctx: JkmContext, force: bool) -> None:
    """Create a starter kernels.json with a "default" kernel."""
    config_file = ctx.settings.config_file
    init_config(config_file, ctx.settings.kernels_root, overwrite=force)

    user_output(click.style("✓ ", fg="green") + f"Created {config_file}")
    user_output(f"  Kernel requirements: {ctx.settings.kernels_root / 'default'}")
    user_output()
    user_output("Next: run 'jkm setup --all' then 'jkm register --all'")
