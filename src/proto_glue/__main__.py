"""CLI entry point for proto-glue."""

import json
import sys
from pathlib import Path
from typing import Dict, Optional, Tuple

import click
import structlog

from .config import Config
from .models.glue import resolve_scalar_type
from .schema_gen.exceptions import SchemaConversionError
from .schema_gen.schema_converter_service import SchemaConverter, columns_to_json_schema
from .utils.logging_setup import configure_logging


def _parse_type_mapping(ctx: click.Context, param: click.Parameter, values: Tuple[str, ...]) -> Dict[str, str]:
    """Parses repeated TAG=TYPE options, e.g. -t int32=BIG_INT -t uint32=bigint."""
    mapping: Dict[str, str] = {}
    for value in values:
        tag, sep, type_spec = value.partition("=")
        if not sep or not tag.strip() or not type_spec.strip():
            raise click.BadParameter(f"expected TAG=TYPE, got '{value}'", ctx=ctx, param=param)
        try:
            resolve_scalar_type(type_spec)
        except ValueError as e:
            raise click.BadParameter(str(e), ctx=ctx, param=param) from e
        mapping[tag.strip()] = type_spec.strip()
    return mapping


@click.group()
@click.option(
    "--config-file", "-c",
    type=click.Path(exists=True, dir_okay=False, resolve_path=True),
    help="Path to a JSON configuration file.",
    envvar="PROTO_GLUE_CONFIG_FILE"
)
@click.option(
    "--log-level", "-l",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None, # Falls back to the Config default
    help="Override the logging level (e.g., DEBUG, INFO)."
)
@click.option(
    "--log-format",
    type=click.Choice(["console", "json"], case_sensitive=False),
    default=None,
    help="Override logging format."
)
@click.pass_context
def cli(ctx: click.Context, config_file: Optional[str], log_level: Optional[str], log_format: Optional[str]) -> None:
    """proto-glue - Converts Protocol Buffers schemas to AWS Glue table schemas."""
    try:
        if config_file:
            cfg = Config.from_file(Path(config_file))
        else:
            # Environment variables (and .env file if present)
            cfg = Config()
    except (OSError, ValueError) as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        sys.exit(1)

    if log_level:
        cfg.logging.level = log_level.upper()
    if log_format:
        cfg.logging.format = log_format.lower()

    configure_logging(cfg.logging)
    ctx.ensure_object(dict)
    ctx.obj["config"] = cfg


@cli.command()
@click.argument("proto_file", type=click.Path(dir_okay=False, path_type=Path))
@click.option(
    "--message", "-m", "message_name",
    default=None,
    help="Fully-qualified message name to convert (e.g. 'shop.User'). Defaults to the first top-level message."
)
@click.option(
    "--type-mapping", "-t",
    multiple=True,
    callback=_parse_type_mapping,
    help="Override a primitive type mapping as TAG=TYPE (e.g. 'int32=BIG_INT'). Can be used multiple times."
)
@click.option(
    "--output-file", "-o",
    type=click.Path(dir_okay=False, writable=True, resolve_path=True),
    help="Write the Glue schema (JSON) to this file instead of stdout."
)
@click.pass_context
def generate(ctx: click.Context, proto_file: Path, message_name: Optional[str], type_mapping: Dict[str, str], output_file: Optional[str]) -> None:
    """Generates the Glue table schema for a message of PROTO_FILE."""
    config: Config = ctx.obj["config"]
    log = structlog.get_logger(__name__).bind(command="generate")

    converter = SchemaConverter.from_config(config, type_mapping=type_mapping)
    try:
        columns = converter.generate_schema(proto_file, message_name)
    except SchemaConversionError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    rendered = json.dumps([column.model_dump() for column in columns_to_json_schema(columns)], indent=2)

    if output_file:
        try:
            with open(output_file, "w") as f:
                f.write(rendered + "\n")
        except OSError as e:
            click.echo(f"Error writing output file {output_file}: {e}", err=True)
            sys.exit(1)
        log.info("Glue schema written.", output_file=output_file, column_count=len(columns))
        click.echo(f"Glue schema written to {output_file}", err=True)
    else:
        click.echo(rendered)


@cli.command()
@click.pass_context
def version(ctx: click.Context) -> None:
    """Show version information."""
    from . import __version__
    click.echo(f"proto-glue v{__version__}")


@cli.command()
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Show current configuration."""
    config: Config = ctx.obj["config"]
    click.echo(json.dumps(config.model_dump(mode="json"), indent=2))


if __name__ == "__main__":
    cli()
