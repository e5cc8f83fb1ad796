"""Command-line interface for tangen."""

import logging
import sys

import click

from .core.config import load_config
from .core.emitters import SUPPORTED_VALIDATORS
from .core.errors import ConfigError
from .core.generator import SchemaGenerator


@click.group()
@click.version_option(package_name="tangen")
def main():
    """Generate TypeScript validator schemas from GraphQL and OpenAPI.

    Emits Zod, Valibot, ArkType or Effect Schema modules.
    """
    pass


@main.command()
@click.option(
    "--config",
    "-c",
    "config_path",
    default="tangen.yaml",
    show_default=True,
    type=click.Path(),
    help="Path to the YAML or JSON config file.",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output.",
)
def generate(config_path: str, verbose: bool):
    """Generate schema modules for every configured source.

    Examples:

        tangen generate

        tangen generate --config ./tangen.yaml -v
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(config_path)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    if verbose:
        click.echo(f"Config: {config_path}")
        click.echo(f"Output: {config.output_dir}")

    click.echo(f"Generating {len(config.sources)} source(s)...")
    results = SchemaGenerator(config).generate()

    failed = 0
    for result in results:
        if not result.ok:
            failed += 1
            click.echo(f"  {result.source}: FAILED - {result.error}", err=True)
            continue
        click.echo(
            f"  {result.source}: {result.schema_count} schema(s) -> {result.output_file}"
        )
        for warning in result.warnings:
            click.echo(f"    warning: {warning}", err=True)

    if failed:
        click.echo(f"{failed} of {len(results)} source(s) failed.", err=True)
        sys.exit(1)
    click.echo("Done!")


@main.command()
def validators():
    """List the supported validator libraries."""
    for library in SUPPORTED_VALIDATORS:
        click.echo(library)


if __name__ == "__main__":
    main()
