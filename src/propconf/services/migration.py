# src/propconf/services/migration.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from propconf.domain.errors import ParseError
from propconf.domain.ports import PropertyRepository
from propconf.domain.property import CONFIG_COLUMN
from propconf.services.normalizer import load_configs, parse_config_column
from propconf.services.properties import row_kind


@dataclass
class MigrationReport:
    scanned: int = 0
    migrated: list[Any] = field(default_factory=list)
    failed: dict[Any, str] = field(default_factory=dict)


def needs_migration(row: dict[str, Any]) -> bool:
    """True when the row has no usable structured config list."""
    column = CONFIG_COLUMN[row_kind(row)]
    try:
        return not parse_config_column(row.get(column))
    except ParseError:
        return True


async def migrate_legacy(
    repo: PropertyRepository,
    *,
    dry_run: bool = False,
    limit: int = 10_000,
) -> MigrationReport:
    """
    Rewrite every row that still lives on flat legacy columns with the
    config list the normalizer synthesizes for it.
    """
    report = MigrationReport()
    for row in await repo.search(limit=limit):
        report.scanned += 1
        try:
            if not needs_migration(row):
                continue
            kind = row_kind(row)
            units = [u.model_dump(mode="json") for u in load_configs(row, kind)]
        except ValueError as err:
            logger.warning("Skipping id={}: {}", row.get("id"), err)
            report.failed[row.get("id")] = str(err)
            continue

        if not dry_run:
            await repo.update(row["id"], {CONFIG_COLUMN[kind]: units})
        report.migrated.append(row["id"])
        logger.info("Migrated id={} slug={} ({} sub-unit)", row["id"], row.get("slug"), len(units))

    return report
