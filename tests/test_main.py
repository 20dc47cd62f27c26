import json
from datetime import datetime, timedelta, timezone

import pytest

import main
import notion_store
import pipeline as pipeline_module
from errors import FetchError
from models.feed_item import FeedItem
from models.run import RunLog, RunResult
from notion_store import StoreCheck

ENV_KEYS = [
    "CEREBRAS_API_KEY",
    "CEREBRAS_MODEL",
    "CEREBRAS_MODEL_FALLBACK",
    "NOTION_API_KEY",
    "NOTION_DATABASE_ID",
    "FEED_URL",
    "DAYS_BACK",
    "LOG_DIR",
    "LOG_LEVEL",
    "LOG_FORMAT",
]


@pytest.fixture(autouse=True)
def cli_env(monkeypatch, tmp_path):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "log"))
    monkeypatch.setattr(main, "load_dotenv", lambda: None)
    monkeypatch.setattr(main, "setup_logging", lambda config, verbose=False: False)


@pytest.fixture
def secrets(monkeypatch):
    monkeypatch.setenv("CEREBRAS_API_KEY", "csk-secret")
    monkeypatch.setenv("NOTION_API_KEY", "ntn-secret")
    monkeypatch.setenv("NOTION_DATABASE_ID", "db-123")


def run_cli(monkeypatch, *argv) -> int:
    monkeypatch.setattr("sys.argv", ["peloton", *argv])
    return main.main()


def fake_run_once(result: RunResult, calls: list):
    async def run_once(config, days_back):
        calls.append(days_back)
        return result

    return run_once


class TestRun:
    def test_prints_logs_and_output(self, monkeypatch, capsys, secrets):
        log = RunLog()
        log.add("Notion save gelukt!")
        calls = []
        monkeypatch.setattr(pipeline_module, "run_once", fake_run_once(RunResult(True, log, "Verslag"), calls))

        code = run_cli(monkeypatch, "run", "--days", "2")

        out = capsys.readouterr().out
        assert code == 0
        assert calls == [2]
        assert "--- LOGS ---" in out
        assert "Notion save gelukt!" in out
        assert out.rstrip().endswith("Verslag")

    def test_json_output_and_failure_exit_code(self, monkeypatch, capsys, secrets):
        log = RunLog()
        log.add("Error: kapot")
        calls = []
        monkeypatch.setattr(
            pipeline_module, "run_once", fake_run_once(RunResult(False, log, "Er is een fout opgetreden."), calls)
        )

        code = run_cli(monkeypatch, "run", "--json")

        data = json.loads(capsys.readouterr().out)
        assert code == 1
        assert calls == [6]
        assert data == {"success": False, "logs": ["Error: kapot"], "content": "Er is een fout opgetreden."}

    def test_missing_secrets_stop_before_running(self, monkeypatch, capsys):
        calls = []
        monkeypatch.setattr(pipeline_module, "run_once", fake_run_once(None, calls))

        code = run_cli(monkeypatch, "run")

        assert code == 1
        assert calls == []
        assert "CEREBRAS_API_KEY" in capsys.readouterr().err

    def test_invalid_integer_setting_is_a_config_error(self, monkeypatch, capsys, secrets):
        monkeypatch.setenv("DAYS_BACK", "zes")

        assert run_cli(monkeypatch, "run") == 1
        assert "DAYS_BACK" in capsys.readouterr().err


class TestPreview:
    def test_lists_recent_items_only(self, monkeypatch, capsys):
        now = datetime.now(timezone.utc)
        items = [
            FeedItem(title="Pogacar wint in Lombardije", published_at=now - timedelta(hours=3), link="https://nos.nl/1"),
            FeedItem(title="Oud nieuws", published_at=now - timedelta(days=9)),
        ]

        async def fake_fetch_feed(url, timeout=30, session=None):
            return items

        monkeypatch.setattr(pipeline_module, "fetch_feed", fake_fetch_feed)

        code = run_cli(monkeypatch, "preview", "--days", "2")

        out = capsys.readouterr().out
        assert code == 0
        assert "1 item(s) from the last 2 days" in out
        assert "Pogacar wint in Lombardije" in out
        assert "Oud nieuws" not in out

    def test_fetch_error_exits_nonzero(self, monkeypatch, capsys):
        async def fake_fetch_feed(url, timeout=30, session=None):
            raise FetchError("RSS feed gaf HTTP 503 terug")

        monkeypatch.setattr(pipeline_module, "fetch_feed", fake_fetch_feed)

        assert run_cli(monkeypatch, "preview") == 1
        assert "HTTP 503" in capsys.readouterr().err


class TestCheckStore:
    def test_reports_missing_columns(self, monkeypatch, capsys, secrets):
        async def check_database(self):
            return StoreCheck(database_title="Wielernieuws", properties={"Nieuws": "title"}, missing=["Datum"])

        monkeypatch.setattr(notion_store.NotionStore, "check_database", check_database)

        code = run_cli(monkeypatch, "check-store")

        out = capsys.readouterr().out
        assert code == 1
        assert '"Wielernieuws"' in out
        assert "Datum" in out

    def test_success(self, monkeypatch, capsys, secrets):
        async def check_database(self):
            return StoreCheck(
                database_title="Wielernieuws",
                properties={"Nieuws": "title", "Datum": "date", "Omschrijving": "rich_text"},
            )

        monkeypatch.setattr(notion_store.NotionStore, "check_database", check_database)

        assert run_cli(monkeypatch, "check-store") == 0
        assert "Alle benodigde kolommen zijn aanwezig." in capsys.readouterr().out


def test_status_redacts_secrets(monkeypatch, capsys, secrets):
    monkeypatch.setenv("CEREBRAS_MODEL_FALLBACK", "llama3.1-8b")

    code = run_cli(monkeypatch, "status")

    out = capsys.readouterr().out
    status = json.loads(out)
    assert code == 0
    assert status["models"] == ["llama-3.3-70b", "llama3.1-8b"]
    assert status["cerebras_api_key_set"] is True
    assert "csk-secret" not in out
    assert "ntn-secret" not in out


def test_no_command_prints_help(monkeypatch, capsys):
    assert run_cli(monkeypatch) == 0
    assert "usage" in capsys.readouterr().out.lower()
