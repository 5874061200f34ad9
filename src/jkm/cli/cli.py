import logging
import os
from pathlib import Path

import click

from jkm.cli.commands.add import add_cmd
from jkm.cli.commands.diagnose import diagnose_cmd
from jkm.cli.commands.init import init_cmd
from jkm.cli.commands.list_cmd import list_cmd
from jkm.cli.commands.mirror import mirror_cmd
from jkm.cli.commands.notebooks import notebooks_cmd
from jkm.cli.commands.register import register_cmd, unregister_cmd
from jkm.cli.commands.run import run_cmd
from jkm.cli.commands.setup import setup_cmd
from jkm.core.context import create_context

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])  # terse help flags

DEBUG_ENV_VAR = "JKM_DEBUG"


def _configure_logging(debug: bool) -> None:
    if debug or os.environ.get(DEBUG_ENV_VAR):
        logging.basicConfig(
            level=logging.DEBUG,
            format="[DEBUG %(name)s:%(lineno)d] %(message)s",
        )


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="jupyter-kernel-manager")
@click.option(
    "--workspace",
    "-w",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Workspace holding kernels.json (defaults to the current directory).",
)
@click.option("--quiet", "-q", is_flag=True, help="Only show warnings and errors.")
@click.option("--debug", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, workspace: Path | None, quiet: bool, debug: bool) -> None:
    """Provision, register and assign Jupyter kernels for a workspace."""
    _configure_logging(debug)
    # Only create context if not already provided (e.g., by tests)
    if ctx.obj is None:
        root = workspace if workspace is not None else Path.cwd()
        ctx.obj = create_context(root.resolve(), quiet=quiet)


cli.add_command(add_cmd)
cli.add_command(diagnose_cmd)
cli.add_command(init_cmd)
cli.add_command(list_cmd)
cli.add_command(mirror_cmd)
cli.add_command(notebooks_cmd)
cli.add_command(register_cmd)
cli.add_command(run_cmd)
cli.add_command(setup_cmd)
cli.add_command(unregister_cmd)


def main() -> None:
    """CLI entry point used by the `jkm` console script."""
    cli()
