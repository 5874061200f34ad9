import click

from jkm.cli.ensure import Ensure
from jkm.cli.error_boundary import cli_error_boundary
from jkm.cli.interrupt import cancel_on_interrupt
from jkm.core.context import JkmContext
from jkm.core.notebooks import NotebookUpdateSummary, update_notebook_kernels


def update_notebooks(ctx: JkmContext, *, dry_run: bool) -> NotebookUpdateSummary:
    config = Ensure.config_loaded(ctx)
    registrar = ctx.registrar
    with cancel_on_interrupt() as token:
        return update_notebook_kernels(
            config,
            ctx.settings.workspace_root,
            registrar.kernel_spec_name,
            ctx.feedback,
            dry_run=dry_run,
            token=token,
        )


@click.command("notebooks")
@click.option("--dry-run", is_flag=True, help="Report changes without writing notebooks.")
@click.pass_obj
@cli_error_boundary
def notebooks_cmd(ctx: JkmContext, dry_run: bool) -> None:
    """Point each notebook at the kernel whose name appears in its path.

    Notebooks under no kernel-named directory get the "common" kernel, then
    "default", then the first kernel in kernels.json.
    """
    summary = update_notebooks(ctx, dry_run=dry_run)
    if summary.errors:
        raise SystemExit(1)
