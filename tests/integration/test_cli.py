import json
from datetime import date

import pytest

from cli_router import CLIRouter
from core import config as config_module
from core.config import ConfigManager
from core.container import get_storage, reset_container


@pytest.fixture
def memory_cli(monkeypatch, tmp_path):
    for name in ("STORAGE_BACKEND", "OPENAI_API_KEY", "GATEKEEPER_FAILURE_POLICY", "LOG_LEVEL", "EVENT_TIMEZONE"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    monkeypatch.setenv("INGEST_BATCH_DELAY_SECONDS", "0")
    monkeypatch.setenv("BRIEF_WRITE_DELAY_SECONDS", "0")
    monkeypatch.setattr(config_module, "_config_manager", ConfigManager(str(tmp_path / "missing.env")))
    reset_container()
    yield CLIRouter()
    reset_container()


def write_json(tmp_path, name, data):
    path = tmp_path / name
    path.write_text(json.dumps(data))
    return str(path)


def test_ingest_push_then_pending(memory_cli, tmp_path, capsys):
    events_file = write_json(tmp_path, "events.json", {"events": [
        {"title": "Purcellville Music Festival", "description": "Bands all weekend",
         "link": "https://www.visitloudoun.org/e/music"},
        {"title": "Tiny", "description": "skipped"},
    ]})

    assert memory_cli.route_command(["ingest", "push", "--file", events_file]) == 0
    assert "Stored: 1" in capsys.readouterr().out

    assert memory_cli.route_command(["scan", "pending", "--verbose"]) == 0
    out = capsys.readouterr().out
    assert "Unprocessed raw events: 1" in out
    assert "Visit Loudoun Events: 1" in out


def test_scan_run_json_over_stored_rows(memory_cli, tmp_path, capsys):
    events_file = write_json(tmp_path, "events.json", [
        {"title": "Purcellville Music Festival", "description": "Bands all weekend",
         "link": "https://www.visitloudoun.org/e/music"},
    ])
    memory_cli.route_command(["ingest", "push", "--file", events_file])
    capsys.readouterr()

    assert memory_cli.route_command(["scan", "run", "--json"]) == 0

    summary = json.loads(capsys.readouterr().out)
    assert summary["data_source"] == "stored_rows"
    assert summary["gatekeeper_status"] == "fail_open"
    assert summary["events_final"] == 1
    assert summary["message"] == "Events found but no tenants to generate briefs for"
    assert get_storage().raw_events.list_unprocessed() == []


def test_scan_run_with_raw_file_and_dates(memory_cli, tmp_path, capsys):
    year = date.today().year + 1
    feed = (
        "<rss><channel><item><title>Loudoun Wine Festival</title>"
        f"<description>Join us on 3/15/{year}</description></item></channel></rss>"
    )
    raw_file = write_json(tmp_path, "feeds.json", [{"source_url": "https://www.fxva.com/rss", "raw_content": feed}])

    code = memory_cli.route_command(["scan", "run", "--raw-file", raw_file, "--start", f"{year}-03-01",
                                     "--end", f"{year}-06-01"])

    assert code == 0
    out = capsys.readouterr().out
    assert f"Window: {year}-03-01 to {year}-06-01" in out
    assert f"Loudoun Wine Festival ({year}-03-15" in out


def test_invalid_dates_exit_nonzero(memory_cli, capsys):
    assert memory_cli.route_command(["scan", "run", "--start", "2025-06-01", "--end", "2025-03-01"]) == 1


def test_missing_file_exit_code(memory_cli, tmp_path):
    assert memory_cli.route_command(["ingest", "push", "--file", str(tmp_path / "absent.json")]) == 2


def test_health_check_with_memory_storage(memory_cli, capsys):
    assert memory_cli.route_command(["health", "check"]) == 0
    out = capsys.readouterr().out
    assert "memory connection: OK" in out
    assert "OpenAI not configured" in out
