"""Tests for the command line entry points (cli.py and scripts/schema_export.py)."""
import importlib.util
import io
import sqlite3
from pathlib import Path

import pytest
import yaml

import cli

PROJECT_ROOT = Path(__file__).parent.parent


@pytest.fixture
def no_stdin(monkeypatch):
    monkeypatch.setattr("sys.stdin", io.StringIO(""))


def test_no_question_exits_with_usage(no_stdin, capsys):
    assert cli.main(["--dry-run"]) == 1
    err = capsys.readouterr().err
    assert "usage:" in err
    assert "question is required" in err


def test_dry_run_with_trailing_words(no_stdin, capsys):
    code = cli.main(["--dry-run", "How", "many", "trips", "were", "completed", "yesterday?"])
    out = capsys.readouterr().out
    assert code == 0
    assert "mobility.trips" in out
    assert "Validation passed" in out


def test_question_from_stdin(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("ad spend per campaign\n"))
    assert cli.main(["--dry-run"]) == 0
    assert "Ads" in capsys.readouterr().out


def test_overrides_and_debug_trail(no_stdin, capsys):
    code = cli.main([
        "--dry-run", "--debug", "--workspace", "CoreServices",
        "--tables", "core.users, core.sessions", "-q", "daily signups",
    ])
    out = capsys.readouterr().out
    assert code == 0
    assert "CoreServices" in out
    assert "Debug trail" in out
    assert '"forced"' in out


def test_parse_tables():
    assert cli.parse_tables("a, b,,c ") == ["a", "b", "c"]
    assert cli.parse_tables(None) == []


def test_database_flags_replace_profile_block():
    parser = cli.build_parser()
    profile_db = {"host": "db", "database": "wh"}

    args = parser.parse_args(["--database-url", "postgresql://db/other", "q"])
    assert cli.database_config(args, profile_db) == {"url": "postgresql://db/other"}
    args = parser.parse_args(["--database", "demo.db", "q"])
    assert cli.database_config(args, profile_db) == {"path": "demo.db"}
    args = parser.parse_args(["q"])
    assert cli.database_config(args, profile_db) == profile_db
    assert cli.database_config(args, {}) is None


def test_missing_api_key_is_reported(no_stdin, monkeypatch, capsys):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setattr(cli.PipelineConfig, "from_env", classmethod(lambda cls: cls(chat_model="gpt-4.1-mini")))
    assert cli.main(["-q", "trips"]) == 1
    assert "Configuration error" in capsys.readouterr().out


# ============================================================
# SCHEMA EXPORT SCRIPT
# ============================================================

def load_export_script():
    path = PROJECT_ROOT / "scripts" / "schema_export.py"
    spec = importlib.util.spec_from_file_location("schema_export", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_schema_export_writes_fixtures(tmp_path, capsys):
    db = tmp_path / "shop.db"
    conn = sqlite3.connect(db)
    conn.executescript("CREATE TABLE orders (id INTEGER, total REAL); CREATE TABLE schema_migrations (v TEXT);")
    conn.close()

    out_dir = tmp_path / "fixtures"
    code = load_export_script().main([
        "--config", str(tmp_path / "absent.yml"),
        "--database", str(db),
        "--workspace", "Shop",
        "--output-dir", str(out_dir),
    ])

    assert code == 0
    workspaces = yaml.safe_load((out_dir / "workspaces.yml").read_text())
    assert workspaces[0]["name"] == "Shop"
    assert workspaces[0]["table_ids"] == ["orders"]
    schemas = yaml.safe_load((out_dir / "schemas.yml").read_text())
    assert [c["name"] for c in schemas[0]["columns"]] == ["id", "total"]
    assert "Wrote fixtures" in capsys.readouterr().out


def test_schema_export_needs_a_database(tmp_path, monkeypatch):
    monkeypatch.setattr("configs.settings.DATABASE_PATH", "")
    code = load_export_script().main(["--config", str(tmp_path / "absent.yml")])
    assert code == 1
