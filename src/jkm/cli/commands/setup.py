import click

from jkm.cli.ensure import Ensure
from jkm.cli.error_boundary import cli_error_boundary
from jkm.cli.interrupt import cancel_on_interrupt
from jkm.cli.output import format_batch_summary, stderr_console
from jkm.core.config import KernelsConfig
from jkm.core.context import JkmContext
from jkm.core.provisioner import SetupResult


def print_setup_summary(results: list[SetupResult]) -> None:
    rows = [(r.kernel_name, r.success, r.message) for r in results]
    stderr_console().print(format_batch_summary("Setup", rows))


def setup_all(ctx: JkmContext, config: KernelsConfig, *, force: bool) -> bool:
    """Provision every kernel and print a summary. Returns overall success."""
    with cancel_on_interrupt() as token:
        results = ctx.provisioner.setup_all_kernels(config, force=force, token=token)
    if results:
        print_setup_summary(results)
    return all(r.success for r in results)


def setup_one(
    ctx: JkmContext, config: KernelsConfig, name: str, *, force: bool, variant: str | None
) -> bool:
    definition = Ensure.kernel_defined(config, name)
    if variant is not None and variant not in definition.variants:
        ctx.feedback.warning(f'Unknown variant "{variant}" for {name}, using base requirements')
    with cancel_on_interrupt() as token:
        result = ctx.provisioner.setup_kernel(
            name, definition, force=force, variant=variant, token=token
        )
    return result.success


@click.command("setup")
@click.argument("name", required=False)
@click.option("--all", "all_kernels", is_flag=True, help="Set up every kernel in kernels.json.")
@click.option("--force", is_flag=True, help="Recreate venvs even if up to date.")
@click.option("--variant", help="Install the requirements file of this variant.")
@click.pass_obj
@cli_error_boundary
def setup_cmd(
    ctx: JkmContext, name: str | None, all_kernels: bool, force: bool, variant: str | None
) -> None:
    """Create or update kernel virtual environments.

    Skips kernels whose venv is valid and whose requirements are unchanged,
    unless --force is given.
    """
    Ensure.invariant(
        (name is not None) != all_kernels, "Specify a kernel NAME or --all (but not both)"
    )
    Ensure.invariant(not (all_kernels and variant), "--variant cannot be combined with --all")
    config = Ensure.config_loaded(ctx)

    if name is None:
        success = setup_all(ctx, config, force=force)
    else:
        success = setup_one(ctx, config, name, force=force, variant=variant)

    if not success:
        raise SystemExit(1)
