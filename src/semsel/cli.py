from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from .config import Settings
from .core.resolver import SemanticSelectors
from .errors import AmbiguousAcrossFeatures, NotFound
from .logging import setup_logging

app = typer.Typer(no_args_is_help=True)


def main() -> None:
    app()


def _selectors(mapping_dir: Optional[Path]) -> SemanticSelectors:
    settings = Settings.from_env()
    if mapping_dir is not None:
        settings.mapping_dir = mapping_dir.expanduser()
    settings.ensure_directories()
    setup_logging(settings.log_level, settings.log_dir / "semsel.log")
    return SemanticSelectors.from_settings(settings)


@app.command()
def resolve(
    query: str = typer.Argument(..., help="Semantic key, partial key, wildcard or description"),
    scope: Optional[str] = typer.Option(None, help="Feature name used to disambiguate matches"),
    mapping_dir: Optional[Path] = typer.Option(None, help="Directory containing mapping JSON files"),
) -> None:
    selectors = _selectors(mapping_dir)
    try:
        resolution = selectors.resolve(query, scope)
    except (NotFound, AmbiguousAcrossFeatures) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(resolution.selector)
    typer.echo(f"  key: {resolution.candidate.key} (score {resolution.candidate.score})", err=True)
    for warning in resolution.assessment.warnings:
        typer.echo(f"  warning: {warning}", err=True)


@app.command()
def keys(
    feature: Optional[str] = typer.Option(None, help="Only list keys belonging to this feature"),
    mapping_dir: Optional[Path] = typer.Option(None, help="Directory containing mapping JSON files"),
) -> None:
    selectors = _selectors(mapping_dir)
    items = selectors.feature_keys(feature) if feature else selectors.list_keys()
    for item in items:
        typer.echo(f"{item.key}\t{item.description}")


@app.command()
def suggest(
    description: str = typer.Argument(..., help="Free-text element description"),
    limit: int = typer.Option(10, help="Maximum number of suggestions"),
    mapping_dir: Optional[Path] = typer.Option(None, help="Directory containing mapping JSON files"),
) -> None:
    selectors = _selectors(mapping_dir)
    for item in selectors.suggest_keys(description, limit=limit):
        typer.echo(f"{item.score:>3}  {item.key}\t{item.description}")
