"""Symbolic task actions for editor task runners.

Each action maps onto one of the regular commands, so a tasks.json entry can
run ``jkm run setupAll`` without knowing individual flags.
"""

import click

from jkm.cli.commands.diagnose import print_diagnostics
from jkm.cli.commands.notebooks import update_notebooks
from jkm.cli.commands.register import register_all, register_one
from jkm.cli.commands.setup import setup_all, setup_one
from jkm.cli.ensure import Ensure
from jkm.cli.error_boundary import cli_error_boundary
from jkm.core.context import JkmContext

TASK_ACTIONS = (
    "setupAll",
    "registerAll",
    "checkHealth",
    "updateNotebooks",
    "updateNotebooksDryRun",
    "setup",
    "register",
)

_KERNEL_ACTIONS = frozenset({"setup", "register"})


def _run_action(ctx: JkmContext, action: str, kernel: str | None) -> bool:
    if action == "checkHealth":
        print_diagnostics(ctx)
        return True
    if action == "updateNotebooks":
        return update_notebooks(ctx, dry_run=False).errors == 0
    if action == "updateNotebooksDryRun":
        return update_notebooks(ctx, dry_run=True).errors == 0

    config = Ensure.config_loaded(ctx)
    if action == "setupAll":
        return setup_all(ctx, config, force=False)
    if action == "registerAll":
        return register_all(ctx, config)

    name = Ensure.not_none(kernel, f'Action "{action}" requires --kernel NAME')
    if action == "setup":
        return setup_one(ctx, config, name, force=False, variant=None)
    return register_one(ctx, config, name, None)


@click.command("run")
@click.argument("action", type=click.Choice(TASK_ACTIONS))
@click.option("--kernel", "-k", help="Kernel for the setup and register actions.")
@click.pass_obj
@cli_error_boundary
def run_cmd(ctx: JkmContext, action: str, kernel: str | None) -> None:
    """Run a named task action."""
    if kernel is not None:
        Ensure.invariant(
            action in _KERNEL_ACTIONS, f'Action "{action}" does not take --kernel'
        )
    if not _run_action(ctx, action, kernel):
        raise SystemExit(1)
