"""Tests for the wifilog CLI — list, check, status and logs against a temp data dir."""

import json
from datetime import date

import pytest

import wifilog.config as cfg
from wifilog import cli
from wifilog.db import Database
from wifilog.ssid import SsidProvider, SsidQueryError


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(cfg, "DATA_DIR", tmp_path)
    monkeypatch.setattr(cfg, "DB_PATH", tmp_path / "connections.db")
    monkeypatch.setattr(cfg, "LOG_PATH", tmp_path / "wifilog.log")
    monkeypatch.setattr(cfg, "PID_PATH", tmp_path / "wifilog.pid")
    monkeypatch.setattr(cfg, "TARGET_SSID", "eduroam")
    return tmp_path


@pytest.fixture
def seeded(data_dir):
    with Database(path=cfg.DB_PATH) as db:
        db.upsert_connection("2024-03-01", "08:01")
        db.upsert_connection("2024-03-01", "17:45")
        db.upsert_connection("2024-03-04", "09:30")
    return data_dir


class _Provider(SsidProvider):
    name = "fake"

    def __init__(self, answer):
        self.answer = answer

    def current_ssid(self):
        if isinstance(self.answer, Exception):
            raise self.answer
        return self.answer


class TestList:
    def test_human_output(self, seeded, capsys):
        cli.main(["list"])
        out = capsys.readouterr().out
        assert "eduroam connection log" in out
        lines = [l.strip() for l in out.splitlines() if "—" in l]
        assert lines == [
            "MON MAR 4TH — 09:30 TO 09:30",
            "FRI MAR 1ST — 08:01 TO 17:45",
        ]

    def test_json_output(self, seeded, capsys):
        cli.main(["list", "--json"])
        rows = json.loads(capsys.readouterr().out)
        assert rows[0] == {"date": "2024-03-04", "earliest": "09:30", "latest": "09:30"}
        assert [r["date"] for r in rows] == ["2024-03-04", "2024-03-01"]

    def test_empty_log(self, data_dir, capsys):
        cli.main(["list"])
        assert "No connections to eduroam logged yet" in capsys.readouterr().out


class TestListWatch:
    def test_refreshes_until_interrupted(self, seeded, monkeypatch, capsys):
        """Each refresh re-reads the store; Ctrl-C ends the loop cleanly."""
        waits = []

        def fake_sleep(seconds):
            waits.append(seconds)
            if len(waits) == 1:
                with Database(path=cfg.DB_PATH) as db:
                    db.upsert_connection("2024-03-05", "07:55")
                return
            raise KeyboardInterrupt

        monkeypatch.setattr(cli.time, "sleep", fake_sleep)
        assert cli.main(["list", "--watch"]) == 0

        out = capsys.readouterr().out
        assert waits == [cfg.LIST_REFRESH_INTERVAL, cfg.LIST_REFRESH_INTERVAL]
        assert out.count("eduroam connection log") == 2
        assert out.count("TUE MAR 5TH — 07:55 TO 07:55") == 1


class _CountingProvider(_Provider):
    def __init__(self, answer):
        super().__init__(answer)
        self.calls = 0

    def current_ssid(self):
        self.calls += 1
        return super().current_ssid()


class _FrozenDate(date):
    @classmethod
    def today(cls):
        return cls(1999, 1, 1)


class TestCheck:
    def test_match_records_today(self, data_dir, monkeypatch, capsys):
        monkeypatch.setattr("wifilog.ssid.provider_for_platform", lambda: _Provider("eduroam"))
        assert cli.main(["check"]) == 0
        out = capsys.readouterr().out
        assert "Current Wi-Fi   eduroam" in out
        with Database(path=cfg.DB_PATH) as db:
            assert db.get_connection(date.today().isoformat()) is not None

    def test_queries_the_os_once(self, data_dir, monkeypatch, capsys):
        provider = _CountingProvider("eduroam")
        monkeypatch.setattr("wifilog.ssid.provider_for_platform", lambda: provider)
        cli.main(["check"])
        assert provider.calls == 1

    def test_reports_the_day_that_was_recorded(self, data_dir, monkeypatch, capsys):
        """The lookup uses the sampled timestamp, not a second clock read."""
        monkeypatch.setattr("wifilog.ssid.provider_for_platform", lambda: _Provider("eduroam"))
        monkeypatch.setattr(cli, "date", _FrozenDate)
        assert cli.main(["check"]) == 0
        out = capsys.readouterr().out
        assert "Recorded        nothing" not in out
        assert " TO " in out

    def test_other_network(self, data_dir, monkeypatch, capsys):
        monkeypatch.setattr("wifilog.ssid.provider_for_platform", lambda: _Provider("CoffeeShop"))
        cli.main(["check"])
        assert "Recorded        nothing" in capsys.readouterr().out
        with Database(path=cfg.DB_PATH) as db:
            assert db.count("connections") == 0

    def test_ssid_flag_overrides_target(self, data_dir, monkeypatch, capsys):
        monkeypatch.setattr("wifilog.ssid.provider_for_platform", lambda: _Provider("HomeWiFi"))
        cli.main(["check", "--ssid", "HomeWiFi"])
        out = capsys.readouterr().out
        assert "Target          HomeWiFi" in out
        assert "Recorded        nothing" not in out

    def test_query_failure(self, data_dir, monkeypatch, capsys):
        monkeypatch.setattr(
            "wifilog.ssid.provider_for_platform",
            lambda: _Provider(SsidQueryError("nmcli failed")),
        )
        assert cli.main(["check"]) == 1
        assert "SSID query failed (fake): nmcli failed" in capsys.readouterr().out

    def test_unknown_provider_is_reported(self, data_dir, monkeypatch, capsys):
        monkeypatch.setattr(cfg, "SSID_PROVIDER", "airport")
        assert cli.main(["check"]) == 2
        assert "unknown SSID provider: 'airport'" in capsys.readouterr().err

    def test_non_positive_interval_is_reported(self, data_dir, monkeypatch, capsys):
        monkeypatch.setattr("wifilog.ssid.provider_for_platform", lambda: _Provider("eduroam"))
        monkeypatch.setattr(cfg, "SAMPLE_INTERVAL", 0.0)
        assert cli.main(["check"]) == 2
        assert "must be positive" in capsys.readouterr().err


class TestRun:
    def test_unknown_provider_is_reported(self, data_dir, monkeypatch, capsys):
        monkeypatch.setattr(cfg, "SSID_PROVIDER", "airport")
        assert cli.main(["run"]) == 2
        assert "unknown SSID provider" in capsys.readouterr().err

    def test_empty_target_is_reported(self, data_dir, monkeypatch, capsys):
        monkeypatch.setattr(cfg, "SSID_PROVIDER", "nmcli")
        assert cli.main(["run", "--ssid", ""]) == 2
        assert "target SSID is empty" in capsys.readouterr().err


class TestStatus:
    def test_no_database(self, data_dir, capsys):
        cli.main(["status"])
        out = capsys.readouterr().out
        assert "Daemon       stopped" in out
        assert "not created yet" in out

    def test_with_database(self, seeded, capsys):
        cli.main(["status"])
        out = capsys.readouterr().out
        assert "2 days logged" in out
        assert "Target       eduroam" in out

    def test_stale_pid_is_not_running(self, data_dir, capsys):
        (data_dir / "wifilog.pid").write_text("999999999")
        cli.main(["status"])
        assert "Daemon       stopped" in capsys.readouterr().out


class TestLogs:
    def test_tail(self, data_dir, capsys):
        (data_dir / "wifilog.log").write_text("\n".join(f"line {i}" for i in range(50)))
        cli.main(["logs", "-n", "3"])
        assert capsys.readouterr().out.splitlines() == ["line 47", "line 48", "line 49"]

    def test_missing(self, data_dir, capsys):
        cli.main(["logs"])
        assert "No log files found" in capsys.readouterr().out


def test_no_command_prints_help(capsys):
    cli.main([])
    assert "usage: wifilog" in capsys.readouterr().out
