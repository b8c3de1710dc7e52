from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
from loguru import logger

from propconf.adapters.config import config
from propconf.adapters.sql_repo import SqlPropertyRepository
from propconf.services.formatting import format_price_label
from propconf.services.migration import migrate_legacy
from propconf.services.properties import summarize

app = typer.Typer(help="Property config admin tools (summaries, legacy migration).")


@app.command("summarize")
def summarize_cmd(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON file holding an array of property rows"),
) -> None:
    """
    Print lowest price, area range and BHK labels for every row in PATH.
    """
    rows = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(rows, list):
        raise typer.BadParameter("expected a JSON array of rows", param_hint="PATH")

    for row in rows:
        try:
            s = summarize(row)
        except ValueError as e:
            typer.echo(f"{row.get('slug') or row.get('id')}: skipped ({e})", err=True)
            continue
        label = format_price_label(s.lowest_price)
        typer.echo(
            " | ".join(
                [
                    str(row.get("slug") or row.get("name") or row.get("id")),
                    label["label"] if label else "-",
                    s.area_range_label or "-",
                    ", ".join(s.bhk_labels) or "-",
                ]
            )
        )


@app.command("migrate-legacy")
def migrate_legacy_cmd(
    db_uri: Optional[str] = typer.Option(None, help="Database URI (default: PROPCONF_DB_URI)"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Report what would change without writing"),
) -> None:
    """
    Give every legacy row a structured config list.
    """
    repo = SqlPropertyRepository(db_uri or config.DB_URI)
    report = asyncio.run(migrate_legacy(repo, dry_run=dry_run))
    logger.info("Scanned {} rows", report.scanned)
    verb = "would migrate" if dry_run else "migrated"
    typer.echo(f"{verb} {len(report.migrated)} of {report.scanned} rows")
    for pid, err in report.failed.items():
        typer.echo(f"failed id={pid}: {err}", err=True)
    if report.failed:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
