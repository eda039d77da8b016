import json
import asyncio
import subprocess
from unittest.mock import MagicMock

import pytest
from typer.testing import CliRunner

import locallibrary.main as main_module
from locallibrary.main import app
from locallibrary.author import Author
from locallibrary.catalog import Catalog
from locallibrary.errors import StorageError
from locallibrary.genre import Genre
from locallibrary.utils.ui_helpers import OUTPUT_MODE_ENV

runner = CliRunner()


@pytest.fixture(autouse=True)
def reset_output_mode(monkeypatch):
    monkeypatch.delenv(OUTPUT_MODE_ENV, raising=False)


@pytest.fixture
def db_file(tmp_path):
    return str(tmp_path / "cli.db")


def test_init_db(db_file):
    result = runner.invoke(app, ["init-db", "--db-file", db_file])
    assert result.exit_code == 0
    assert f"Database initialized: {db_file}" in result.stdout


def test_stats_plain(db_file):
    catalog = Catalog(db_file=db_file)
    asyncio.run(catalog.save(Author(first_name="Jane", family_name="Austen")))
    asyncio.run(catalog.save(Genre(name="Romance")))

    result = runner.invoke(app, ["stats", "--db-file", db_file])
    assert result.exit_code == 0
    assert "Books: 0" in result.stdout
    assert "Authors: 1" in result.stdout
    assert "Genres: 1" in result.stdout


def test_stats_json(db_file):
    result = runner.invoke(app, ["--output", "json", "stats", "--db-file", db_file])
    assert result.exit_code == 0
    assert json.loads(result.stdout) == {
        "book_count": 0,
        "book_instance_count": 0,
        "book_instance_available_count": 0,
        "author_count": 0,
        "genre_count": 0,
    }


def test_stats_rich(db_file):
    result = runner.invoke(app, ["-o", "rich", "stats", "--db-file", db_file])
    assert result.exit_code == 0
    assert "Copies available" in result.stdout


def test_stats_store_error(db_file, monkeypatch):
    monkeypatch.setattr(main_module, "collect_stats", MagicMock(side_effect=StorageError("disk full")))

    result = runner.invoke(app, ["stats", "--db-file", db_file])
    assert result.exit_code == 1
    assert "Error: disk full" in result.stdout


def test_serve_runs_uvicorn(monkeypatch):
    run_mock = MagicMock()
    open_mock = MagicMock()
    monkeypatch.setattr(subprocess, "run", run_mock)
    monkeypatch.setattr(main_module.webbrowser, "open", open_mock)

    result = runner.invoke(app, ["serve", "--host", "0.0.0.0", "--port", "9000"])
    assert result.exit_code == 0
    assert "Starting web UI on http://0.0.0.0:9000/catalog" in result.stdout
    open_mock.assert_called_once_with("http://0.0.0.0:9000/catalog")

    args = run_mock.call_args[0][0]
    assert args[1:] == ["-m", "uvicorn", "locallibrary.api:app", "--host", "0.0.0.0", "--port", "9000"]


def test_serve_reload_without_browser(monkeypatch):
    run_mock = MagicMock()
    open_mock = MagicMock()
    monkeypatch.setattr(subprocess, "run", run_mock)
    monkeypatch.setattr(main_module.webbrowser, "open", open_mock)

    result = runner.invoke(app, ["serve", "--no-browser", "--reload"])
    assert result.exit_code == 0
    open_mock.assert_not_called()
    assert run_mock.call_args[0][0][-1] == "--reload"


def test_serve_missing_uvicorn(monkeypatch):
    monkeypatch.setattr(subprocess, "run", MagicMock(side_effect=FileNotFoundError()))
    monkeypatch.setattr(main_module.webbrowser, "open", MagicMock())

    result = runner.invoke(app, ["serve", "--no-browser"])
    assert result.exit_code == 1
    assert "could not be started" in result.stdout
