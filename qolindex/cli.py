"""CLI for the Quality of Living Index."""
from __future__ import annotations

import asyncio
import logging

import typer

from qolindex.config import get_settings

app_cli = typer.Typer(name="qolindex", help="Quality of Living Index CLI")


@app_cli.callback()
def main():
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app_cli.command()
def serve(
    host: str = "0.0.0.0",
    port: int = 8000,
    reload: bool = False,
):
    """Start the API server."""
    import uvicorn
    uvicorn.run("qolindex.main:app", host=host, port=port, reload=reload)


@app_cli.command("validate-borders")
def validate_borders(path: str):
    """Validate a GeoJSON FeatureCollection of country borders."""
    from qolindex.geometry.validator import GeometryValidator, load_feature_collection

    try:
        collection = load_feature_collection(path)
    except (OSError, ValueError) as e:
        typer.echo(f"Could not read {path}: {e}")
        raise typer.Exit(2)

    report = GeometryValidator().validate_borders(collection)
    typer.echo(
        f"Features: {report.total_features}  valid: {report.valid_features}  "
        f"invalid: {report.invalid_features}"
    )
    for issue in report.issues:
        typer.echo(f"  {issue.type.value:<7} [{issue.feature or '-'}] {issue.category.value}: {issue.message}")
    for rec in report.recommendations:
        typer.echo(f"{rec.priority}: {rec.message}")

    if report.invalid_features or (report.issues and not report.total_features):
        raise typer.Exit(1)


@app_cli.command()
def rankings(
    year: int,
    scheme: str = "equal",
    limit: int = 10,
):
    """Print the top and bottom countries of the composite index."""
    from qolindex.ingest.upstream import UpstreamDataSource
    from qolindex.packets.rankings import get_country_rankings
    from qolindex.score.engine import IndexEngine

    engine = IndexEngine(UpstreamDataSource())
    ranked = asyncio.run(get_country_rankings(engine, year, scheme, limit))

    if not ranked["top"]:
        typer.echo(f"No index data for {year}")
        raise typer.Exit(1)

    for label in ("top", "bottom"):
        typer.echo(f"{label.capitalize()} {len(ranked[label])} ({ranked['total']} ranked):")
        for r in ranked[label]:
            typer.echo(f"  {r.ranking.rank:>3}. {r.country}  {r.composite_score:5.1f}")
