import asyncio
import json

from typer.testing import CliRunner

from entrypoints.cli.propconf_admin import app
from propconf.adapters.sql_repo import SqlPropertyRepository
from propconf.services.normalizer import parse_config_column

from fixtures.properties import apartment_row, builder_floor_row, legacy_apartment_row

runner = CliRunner()


def test_summarize_prints_one_line_per_row(tmp_path):
    path = tmp_path / "rows.json"
    path.write_text(json.dumps([apartment_row(), builder_floor_row()]), encoding="utf-8")

    result = runner.invoke(app, ["summarize", str(path)])

    assert result.exit_code == 0, result.output
    lines = result.output.strip().splitlines()
    assert lines[0] == "godrej-sora | ₹ 5.5 Cr onwards | 8 acres | 3BHK, 4BHK"
    assert lines[1] == "dlf-phase-2-floors | ₹ 4.5 Cr onwards | 300-500 sqyd | -"


def test_migrate_legacy_rewrites_flat_rows(tmp_path):
    uri = f"sqlite:///{tmp_path / 'cli.db'}"
    repo = SqlPropertyRepository(uri)
    asyncio.run(repo.create(legacy_apartment_row(price=7.0)))

    dry = runner.invoke(app, ["migrate-legacy", "--db-uri", uri, "--dry-run"])
    assert dry.exit_code == 0, dry.output
    assert "would migrate 1 of 1 rows" in dry.output

    result = runner.invoke(app, ["migrate-legacy", "--db-uri", uri])
    assert result.exit_code == 0, result.output
    assert "migrated 1 of 1 rows" in result.output

    row = asyncio.run(repo.get_by_slug("m3m-golf-estate"))
    (tower,) = parse_config_column(row["tower_bhk_config"])
    assert tower["tower_number"] == 1
    assert tower["bhk"] == "3BHK, 4BHK"

    again = runner.invoke(app, ["migrate-legacy", "--db-uri", uri])
    assert "migrated 0 of 1 rows" in again.output
