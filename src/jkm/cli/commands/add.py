import click

from jkm.cli.error_boundary import cli_error_boundary
from jkm.cli.output import user_output
from jkm.core.config import DEFAULT_REQUIREMENTS_FILE, add_kernel
from jkm.core.context import JkmContext


@click.command("add")
@click.argument("name")
@click.option("--display-name", "-d", help="Name shown in kernel pickers (defaults to NAME).")
@click.option("--description", help="Optional description.")
@click.pass_obj
@cli_error_boundary
def add_cmd(ctx: JkmContext, name: str, display_name: str | None, description: str | None) -> None:
    """Scaffold a new kernel directory and add it to kernels.json.

    NAME may contain only letters, numbers, hyphens and underscores.
    """
    definition = add_kernel(
        ctx.settings.config_file,
        ctx.settings.kernels_root,
        name,
        display_name if display_name else name,
        description,
    )

    requirements = ctx.layout.kernel_dir(name) / DEFAULT_REQUIREMENTS_FILE
    user_output(click.style("✓ ", fg="green") + f'Added kernel "{name}" ({definition.display_name})')
    user_output(f"  Edit {requirements}, then run 'jkm setup {name}'")
