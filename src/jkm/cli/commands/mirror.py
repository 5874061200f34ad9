import click

from jkm.cli.json_output import emit_json, json_error_boundary
from jkm.cli.json_schemas import MirrorResponse
from jkm.cli.output import user_output
from jkm.core.context import JkmContext


@click.command("mirror")
@click.option("--clear", is_flag=True, help="Forget the cached choice and detect again.")
@click.option(
    "--format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format.",
)
@click.pass_obj
@json_error_boundary
def mirror_cmd(ctx: JkmContext, clear: bool, format: str) -> None:
    """Show the PyPI mirror pip installs will use.

    Set JKM_PYPI_MIRROR (or pypi-mirror under [tool.jkm]) to a URL to
    override detection, or to "auto" to detect by location.
    """
    if clear:
        ctx.mirror_selector.clear_cache()

    mirror = ctx.mirror_selector.get_preferred_mirror()

    if format == "json":
        response = MirrorResponse(
            url=mirror.url if mirror is not None else None,
            label=mirror.label if mirror is not None else None,
        )
        emit_json(response.model_dump(mode="json"))
        return

    if mirror is None:
        user_output("Using the default PyPI index")
        return
    user_output(f"Using PyPI mirror: {click.style(mirror.label, fg='cyan')} ({mirror.url})")
