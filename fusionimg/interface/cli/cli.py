import asyncio
import click
import logging
from pathlib import Path
from pydantic import BaseModel

from fusionimg.domain.models.workflow_run import WorkflowStatus, WorkflowVariant
from fusionimg.interface.cli.output_models import (
    ConfigOutput,
    GatewayDetail,
    GatewaySummary,
    GatewaysOutput,
    RunOutput,
    ValidateOutput,
)
from fusionimg.application.config_loader import load_config


def _json_emit(model: BaseModel) -> None:
    # Single-line JSON, omit None fields (e.g., RunOutput.run_id on error).
    click.echo(model.model_dump_json(exclude_none=True), nl=True)


def _get_json_mode(ctx: click.Context) -> bool:
    obj = ctx.obj or {}
    return bool(obj.get("json", False))


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@click.group(help="Fusion Imager: plan, draft, analyze and refine images with Gemini.")
@click.option("--json", "json_output", is_flag=True, help="Emit machine-readable JSON on stdout.")
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr.")
@click.pass_context
def cli(ctx: click.Context, json_output: bool, verbose: bool) -> None:
    ctx.ensure_object(dict)
    ctx.obj["json"] = bool(json_output)
    _configure_logging(verbose)


@cli.command("run")
@click.argument("prompt", type=str)
@click.option(
    "--image",
    "image_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Reference image to edit or draw context from.",
)
@click.option("--quick", is_flag=True, help="Produce a quick draft before the full pipeline.")
@click.option(
    "--out-dir",
    "out_dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory for generated artifacts (overrides config output_dir).",
)
@click.option("--api-key", "api_key", type=str, help="API key (overrides config and environment).")
@click.option("--gateway", "gateway_key", type=str, help="Gateway key (overrides config).")
@click.pass_context
def run_cmd(
    ctx: click.Context,
    prompt: str,
    image_path: Path | None,
    quick: bool,
    out_dir: Path | None,
    api_key: str | None,
    gateway_key: str | None,
) -> None:
    """Run the generation pipeline for PROMPT."""
    try:
        from fusionimg.application.artifact_writer import write_artifacts
        from fusionimg.application.workflow_engine import WorkflowEngine
        from fusionimg.domain.events import StderrResultSink
        from fusionimg.domain.gateways import GatewayFactory
        from fusionimg.domain.models.artifacts import ImageArtifact

        cfg = load_config(
            project_root=Path.cwd(),
            user_home=Path.home(),
            overrides={"api_key": api_key, "gateway": gateway_key},
        )
        gateway = GatewayFactory.create(cfg.gateway, cfg.gateway_settings())
        engine = WorkflowEngine(gateway=gateway)
        if not _get_json_mode(ctx):
            engine.event_emitter.subscribe(StderrResultSink())

        image = ImageArtifact.from_path(image_path) if image_path else None
        variant = WorkflowVariant.QUICK if quick else WorkflowVariant.STANDARD

        status = asyncio.run(engine.run(prompt, image, variant))

        run = engine.active_run
        output_dir = out_dir or Path(cfg.output_dir)
        files = write_artifacts(output_dir=output_dir, run=run)
        exit_code = 0 if status == WorkflowStatus.COMPLETED else 1

        if _get_json_mode(ctx):
            _json_emit(
                RunOutput(
                    exit_code=exit_code,
                    error=run.error,
                    run_id=run.run_id,
                    variant=run.variant.value,
                    status=run.status.value,
                    failed_stage=run.failed_stage.value if run.failed_stage else None,
                    statuses=[t.status.value for t in run.status_history],
                    files={name: str(path) for name, path in files.items()},
                )
            )
            raise click.exceptions.Exit(exit_code)

        for name, path in files.items():
            click.echo(f"{name}: {path}")
        click.echo(f"Status: {run.status.name}")
        if exit_code != 0:
            click.echo(f"Error: {run.error}", err=True)
            raise click.exceptions.Exit(exit_code)

    except click.exceptions.Exit:
        raise
    except Exception as e:
        if _get_json_mode(ctx):
            _json_emit(
                RunOutput(
                    exit_code=1,
                    error=str(e),
                )
            )
            raise click.exceptions.Exit(1)
        raise click.ClickException(str(e)) from e


@cli.command("gateways")
@click.argument("gateway_name", required=False)
@click.pass_context
def gateways_cmd(ctx: click.Context, gateway_name: str | None) -> None:
    """List available gateways or show details for a specific gateway."""
    try:
        # Import gateways to ensure registration
        from fusionimg.domain.gateways import GatewayFactory

        if gateway_name:
            metadata = GatewayFactory.get_metadata(gateway_name)
            if metadata is None:
                available = ", ".join(GatewayFactory.list_gateways())
                error_msg = f"Gateway '{gateway_name}' is not registered (registered: {available})"
                if _get_json_mode(ctx):
                    _json_emit(GatewaysOutput(exit_code=1, error=error_msg))
                    raise click.exceptions.Exit(1)
                raise click.ClickException(error_msg)

            detail = GatewayDetail(
                name=metadata["name"],
                description=metadata["description"],
                requires_config=metadata.get("requires_config", False),
                config_keys=metadata.get("config_keys", []),
                text_model=metadata.get("text_model"),
                image_model=metadata.get("image_model"),
            )

            if _get_json_mode(ctx):
                _json_emit(GatewaysOutput(exit_code=0, gateway=detail))
                raise click.exceptions.Exit(0)

            click.echo(f"Gateway: {detail.name}")
            click.echo(f"Description: {detail.description}")
            requires_str = "yes" if detail.requires_config else "no"
            click.echo(f"Requires Config: {requires_str}")
            if detail.text_model:
                click.echo(f"Text Model: {detail.text_model}")
            if detail.image_model:
                click.echo(f"Image Model: {detail.image_model}")
            if detail.config_keys:
                click.echo(f"Config Keys: {', '.join(detail.config_keys)}")

        else:
            summaries = [
                GatewaySummary(
                    name=m["name"],
                    description=m["description"],
                    requires_config=m.get("requires_config", False),
                )
                for m in GatewayFactory.get_all_metadata()
            ]

            if _get_json_mode(ctx):
                _json_emit(GatewaysOutput(exit_code=0, gateways=summaries))
                raise click.exceptions.Exit(0)

            if summaries:
                click.echo(f"{'GATEWAY':<10}{'DESCRIPTION':<45}{'CONFIG'}")
                for g in summaries:
                    config_str = "required" if g.requires_config else "none"
                    click.echo(f"{g.name:<10}{g.description:<45}{config_str}")
            else:
                click.echo("No gateways registered.")

    except click.exceptions.Exit:
        raise
    except Exception as e:
        if _get_json_mode(ctx):
            _json_emit(GatewaysOutput(exit_code=1, error=str(e)))
            raise click.exceptions.Exit(1)
        raise click.ClickException(str(e)) from e


@cli.command("config")
@click.pass_context
def config_cmd(ctx: click.Context) -> None:
    """Show the merged configuration (API key masked)."""
    try:
        cfg = load_config(project_root=Path.cwd(), user_home=Path.home())
        data = cfg.masked()

        if _get_json_mode(ctx):
            _json_emit(ConfigOutput(exit_code=0, config=data))
            raise click.exceptions.Exit(0)

        for key, value in data.items():
            click.echo(f"{key}: {value}")

    except click.exceptions.Exit:
        raise
    except Exception as e:
        if _get_json_mode(ctx):
            _json_emit(ConfigOutput(exit_code=1, error=str(e)))
            raise click.exceptions.Exit(1)
        raise click.ClickException(str(e)) from e


@cli.command("validate")
@click.option("--api-key", "api_key", type=str, help="API key (overrides config and environment).")
@click.pass_context
def validate_cmd(ctx: click.Context, api_key: str | None) -> None:
    """Check that the configured gateway can be invoked."""
    from fusionimg.domain.errors import GatewayError
    from fusionimg.domain.gateways import GatewayFactory

    try:
        cfg = load_config(
            project_root=Path.cwd(),
            user_home=Path.home(),
            overrides={"api_key": api_key},
        )
        gateway = GatewayFactory.create(cfg.gateway, cfg.gateway_settings())
        try:
            gateway.validate()
            error = None
        except GatewayError as e:
            error = str(e)

        passed = error is None
        if _get_json_mode(ctx):
            _json_emit(
                ValidateOutput(
                    exit_code=0 if passed else 1,
                    error=error,
                    gateway=cfg.gateway,
                    passed=passed,
                )
            )
            raise click.exceptions.Exit(0 if passed else 1)

        status_str = "[PASS]" if passed else "[FAIL]"
        click.echo(f"{status_str} gateway: {cfg.gateway}")
        if error:
            click.echo(f"       {error}")
            raise click.exceptions.Exit(1)

    except click.exceptions.Exit:
        raise
    except Exception as e:
        if _get_json_mode(ctx):
            _json_emit(ValidateOutput(exit_code=1, error=str(e)))
            raise click.exceptions.Exit(1)
        raise click.ClickException(str(e)) from e
