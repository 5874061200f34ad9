import click
from rich.console import Console
from rich.table import Table

from jkm.cli.ensure import Ensure
from jkm.cli.json_output import emit_json, json_error_boundary
from jkm.cli.json_schemas import KernelListResponse, KernelVariantInfo, kernel_list_item
from jkm.cli.output import user_output
from jkm.core.config import KernelsConfig
from jkm.core.context import JkmContext
from jkm.core.errors import ConfigError
from jkm.core.registrar import RegistrationManager
from jkm.core.status import KernelInfo, KernelStatus, get_kernel_info_list

_STATUS_STYLES = {
    KernelStatus.READY: "green",
    KernelStatus.NEEDS_UPDATE: "yellow",
    KernelStatus.NOT_PROVISIONED: "dim",
    KernelStatus.BROKEN: "red",
}


def _variant_infos(
    ctx: JkmContext, registrar: RegistrationManager, info: KernelInfo
) -> list[KernelVariantInfo]:
    return [
        KernelVariantInfo(
            name=variant_name,
            display_name=variant.display_name,
            requirements_file=str(
                ctx.layout.requirements_path(info.name, info.definition, variant_name)
            ),
            spec_name=registrar.kernel_spec_name(info.name, variant_name),
            is_registered=registrar.is_registered(info.name, variant_name),
        )
        for variant_name, variant in info.definition.variants.items()
    ]


def _render_table(registrar: RegistrationManager, infos: list[KernelInfo]) -> None:
    table = Table(show_header=True, header_style="bold")
    table.add_column("kernel", style="cyan", no_wrap=True)
    table.add_column("display name", no_wrap=True)
    table.add_column("status", no_wrap=True)
    table.add_column("registered", no_wrap=True)
    table.add_column("spec", no_wrap=True)

    for info in infos:
        style = _STATUS_STYLES[info.status]
        registered = "[green]yes[/green]" if info.is_registered else "no"
        table.add_row(
            info.name,
            info.definition.display_name,
            f"[{style}]{info.status.value}[/{style}]",
            registered,
            registrar.kernel_spec_name(info.name),
        )
        for variant_name in info.definition.variants:
            variant_registered = registrar.is_registered(info.name, variant_name)
            table.add_row(
                f"  └ {variant_name}",
                info.definition.variants[variant_name].display_name or "",
                "",
                "[green]yes[/green]" if variant_registered else "no",
                registrar.kernel_spec_name(info.name, variant_name),
            )

    console = Console(stderr=True, width=200)
    console.print(table)
    console.print()


def _load_for_json(ctx: JkmContext) -> KernelsConfig:
    result = ctx.load_config()
    if result.config is None:
        if result.error is not None:
            raise result.error
        raise ConfigError("io", "Failed to load config")
    return result.config


@click.command("list")
@click.option(
    "--format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format.",
)
@click.pass_obj
@json_error_boundary
def list_cmd(ctx: JkmContext, format: str) -> None:
    """Show every kernel with its provisioning and registration status."""
    config = _load_for_json(ctx) if format == "json" else Ensure.config_loaded(ctx)
    registrar = ctx.registrar
    infos = get_kernel_info_list(config, ctx.layout, ctx.platform, registrar=registrar)

    if format == "json":
        response = KernelListResponse(
            config_path=str(ctx.settings.config_file),
            kernels=[
                kernel_list_item(
                    info,
                    registrar.kernel_spec_name(info.name),
                    _variant_infos(ctx, registrar, info),
                )
                for info in infos
            ],
        )
        emit_json(response.model_dump(mode="json"))
        return

    if not infos:
        user_output("No kernels defined. Run 'jkm add NAME' to create one.")
        return

    _render_table(registrar, infos)
