import click

from jkm.cli.output import user_output
from jkm.core.context import JkmContext
from jkm.core.diagnostics import run_diagnostics


def print_diagnostics(ctx: JkmContext) -> None:
    user_output("=" * 60)
    user_output("Jupyter Kernel Diagnostics")
    user_output("=" * 60)
    user_output(run_diagnostics(ctx).render())
    user_output()
    user_output("=" * 60)


@click.command("diagnose")
@click.pass_obj
def diagnose_cmd(ctx: JkmContext) -> None:
    """Check the interpreter, Jupyter data dir, kernel venvs and kernelspecs."""
    print_diagnostics(ctx)
