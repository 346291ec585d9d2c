"""CLI entry point for api-collector."""

import json
import logging
from pathlib import Path

import click
import yaml
from pydantic import ValidationError

from api_collector.collector import ApiCollector, build_catalog
from api_collector.config import CollectorConfig, load_config


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.INFO if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _load(config_path: Path | None, root: Path | None, verbose: bool, **overrides) -> CollectorConfig:
    """Load config and turn config errors into a CLI usage error."""
    try:
        config = load_config(config_path, root=root, **overrides)
    except (ValidationError, yaml.YAMLError, ValueError) as e:
        raise click.BadParameter(str(e), param_hint="--config")
    setup_logging(verbose or config.verbose)
    return config


@click.group()
def main():
    """API Collector: map UI pages to the backend endpoints they call."""
    pass


@main.command()
@click.option("-c", "--config", "config_path", default=None, type=click.Path(exists=True, dir_okay=False, path_type=Path), help="YAML configuration file.")
@click.option("--root", default=None, type=click.Path(exists=True, file_okay=False, path_type=Path), help="Project root directory.")
@click.option("-o", "--output", default=None, help="Output JSON path, relative to the project root.")
@click.option("-v", "--verbose", is_flag=True, help="Log per-page findings.")
def collect(config_path: Path | None, root: Path | None, output: str | None, verbose: bool):
    """Scan the views directory and write the page -> API mapping as JSON."""
    config = _load(config_path, root, verbose, output_path=output)
    click.echo(f"Scanning {config.views_root} (APIs: {config.api_root})...")

    collector = ApiCollector(config)
    try:
        summary = collector.run()
    except OSError as e:
        raise click.ClickException(f"Could not write {config.output_file}: {e}")

    click.echo(f"Categories: {summary.categories}")
    click.echo(f"Pages: {summary.pages}")
    click.echo(f"APIs: {summary.endpoints}")
    click.echo(f"Saved to {config.output_file}")


@main.command()
@click.option("-c", "--config", "config_path", default=None, type=click.Path(exists=True, dir_okay=False, path_type=Path), help="YAML configuration file.")
@click.option("--root", default=None, type=click.Path(exists=True, file_okay=False, path_type=Path), help="Project root directory.")
@click.option("-v", "--verbose", is_flag=True, help="Log each parsed API module.")
def catalog(config_path: Path | None, root: Path | None, verbose: bool):
    """Print the API definitions catalog as JSON."""
    config = _load(config_path, root, verbose)
    api_catalog = build_catalog(config)
    click.echo(json.dumps(api_catalog.to_dict(), indent=2, ensure_ascii=False))
