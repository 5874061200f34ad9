import click

from jkm.cli.ensure import Ensure
from jkm.cli.error_boundary import cli_error_boundary
from jkm.cli.interrupt import cancel_on_interrupt
from jkm.cli.output import format_batch_summary, stderr_console, user_output
from jkm.core.config import KernelsConfig
from jkm.core.context import JkmContext


def register_all(ctx: JkmContext, config: KernelsConfig) -> bool:
    """Register every kernel's base spec and print a summary. Returns overall success."""
    with cancel_on_interrupt() as token:
        results = ctx.registrar.register_all_kernels(config, token=token)
    if results:
        rows = [(r.spec_name or r.kernel_name, r.success, r.message) for r in results]
        stderr_console().print(format_batch_summary("Registration", rows))
        if any(r.success for r in results):
            user_output("Restart your editor or Jupyter server to pick up new kernels.")
    return all(r.success for r in results)


def register_one(ctx: JkmContext, config: KernelsConfig, name: str, variant: str | None) -> bool:
    definition = Ensure.kernel_defined(config, name)
    result = ctx.registrar.register_kernel(name, definition, variant)
    if not result.success:
        ctx.feedback.error(result.message)
    return result.success


@click.command("register")
@click.argument("name", required=False)
@click.option("--all", "all_kernels", is_flag=True, help="Register every kernel in kernels.json.")
@click.option("--variant", help="Register the named variant instead of the base kernel.")
@click.pass_obj
@cli_error_boundary
def register_cmd(
    ctx: JkmContext, name: str | None, all_kernels: bool, variant: str | None
) -> None:
    """Publish Jupyter kernelspecs for provisioned kernels."""
    Ensure.invariant(
        (name is not None) != all_kernels, "Specify a kernel NAME or --all (but not both)"
    )
    Ensure.invariant(not (all_kernels and variant), "--variant cannot be combined with --all")
    config = Ensure.config_loaded(ctx)

    if name is None:
        success = register_all(ctx, config)
    else:
        success = register_one(ctx, config, name, variant)

    if not success:
        raise SystemExit(1)


@click.command("unregister")
@click.argument("name")
@click.option("--variant", help="Remove the named variant's kernelspec.")
@click.pass_obj
@cli_error_boundary
def unregister_cmd(ctx: JkmContext, name: str, variant: str | None) -> None:
    """Remove a kernel's Jupyter kernelspec.

    Works without kernels.json; NAME is the kernel name, not the kernelspec name.
    """
    result = ctx.registrar.unregister_kernel(name, variant)
    if not result.success:
        Ensure.invariant(False, result.message)
