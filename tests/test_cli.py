from pathlib import Path

import pytest
from typer.testing import CliRunner

from rawcsv.cli import EXIT_FILES_FAILED, EXIT_NOTHING_LOADED, app
from rawcsv.database import SQLiteStorage

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch):
    """Run every command from tmp_path with no RAWCSV_* settings inherited."""
    for name in ("RAWCSV_DATABASE", "RAWCSV_PREFIX", "RAWCSV_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def data_dir(create_csv_file, tmp_path: Path) -> Path:
    create_csv_file("orders.csv", [["Id", "Total|type:float"]] + [[i, i * 1.5] for i in range(1, 11)], sub_dir="data")
    create_csv_file("people.csv", [["Name", "City|index:TRUE"], ["Ada", "Oslo"]], sub_dir="data/nested")
    return tmp_path / "data"


def test_load_directory(data_dir: Path, tmp_db_path: Path):
    result = runner.invoke(app, ["load", str(data_dir), "--database", str(tmp_db_path)])
    assert result.exit_code == 0, result.output
    assert "_raw_orders: 10 inserted, 0 failed" in result.output
    assert "_raw_people: 1 inserted, 0 failed" in result.output
    assert "2 file(s) loaded, 0 skipped; 11 rows inserted, 0 failed." in result.output

    with SQLiteStorage(tmp_db_path) as db:
        assert db.list_tables() == ["_raw_orders", "_raw_people"]


def test_prefix_and_limit(data_dir: Path, tmp_db_path: Path):
    result = runner.invoke(
        app,
        ["load", str(data_dir), "-d", str(tmp_db_path), "--prefix", "stage", "--limit", "5"],
    )
    assert result.exit_code == 0, result.output
    with SQLiteStorage(tmp_db_path) as db:
        assert len(db.read_table("stage_orders")) == 5


@pytest.mark.parametrize("limit", ["-1", "abc", "1.5"])
def test_invalid_limit_aborts_before_io(data_dir: Path, tmp_db_path: Path, limit: str):
    result = runner.invoke(app, ["load", str(data_dir), "-d", str(tmp_db_path), "--limit", limit])
    assert result.exit_code == 2
    assert not tmp_db_path.exists()


def test_missing_path_argument():
    result = runner.invoke(app, ["load"])
    assert result.exit_code == 2


def test_no_subcommand_shows_help():
    result = runner.invoke(app, [])
    assert "load" in result.output


def test_root_not_found(tmp_path: Path, tmp_db_path: Path):
    result = runner.invoke(app, ["load", str(tmp_path / "nowhere"), "-d", str(tmp_db_path)])
    assert result.exit_code == EXIT_NOTHING_LOADED
    assert "Path not found" in result.output


def test_no_csv_files(tmp_path: Path, tmp_db_path: Path):
    empty = tmp_path / "empty"
    empty.mkdir()
    result = runner.invoke(app, ["load", str(empty), "-d", str(tmp_db_path)])
    assert result.exit_code == EXIT_NOTHING_LOADED
    assert "No CSV files found" in result.output


def test_bad_file_is_reported_and_batch_continues(create_csv_file, data_dir: Path, tmp_db_path: Path):
    bad = create_csv_file("broken.csv", [["A", "B|type"], ["1", "2"]], sub_dir="data")
    result = runner.invoke(app, ["load", str(data_dir), "-d", str(tmp_db_path)])
    assert result.exit_code == EXIT_FILES_FAILED
    assert f"{bad}: not loaded" in result.output
    assert "2 file(s) loaded, 1 skipped" in result.output


def test_settings_from_environment(data_dir: Path, tmp_path: Path, monkeypatch):
    db_path = tmp_path / "from_env.sqlite"
    monkeypatch.setenv("RAWCSV_DATABASE", str(db_path))
    monkeypatch.setenv("RAWCSV_PREFIX", "env")
    result = runner.invoke(app, ["load", str(data_dir)])
    assert result.exit_code == 0, result.output
    with SQLiteStorage(db_path) as db:
        assert db.list_tables() == ["env_orders", "env_people"]


def test_invalid_log_level(data_dir: Path, tmp_db_path: Path):
    result = runner.invoke(app, ["load", str(data_dir), "-d", str(tmp_db_path), "--log-level", "LOUD"])
    assert result.exit_code == 2
