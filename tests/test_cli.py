from __future__ import annotations

from typing import Any, Dict

import pytest
from typer.testing import CliRunner

from cli.app import app
from cli.config import load_config


class StubClient:
    def __init__(self, config) -> None:
        self.config = config
        self.snapshot: Dict[str, Any] = {
            "Commercial&12th": {
                "location": {"lat": 49.26, "lng": -123.07},
                "data": {"2024-1-9": [1] * 96, "2024-1-10": [2, 3]},
            },
            "Main&1st": {
                "location": {"lat": 49.27, "lng": -123.1},
                "data": {"2024-1-10": [4]},
            },
        }
        self.closed = False

    def health(self) -> str:
        return "API is up"

    def get_snapshot(self) -> Dict[str, Any]:
        return self.snapshot

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def stub(monkeypatch) -> StubClient:
    client = StubClient(config=None)

    def factory(config):
        client.config = config
        return client

    monkeypatch.setattr("cli.app.ApiClient", factory)
    return client


def test_health_command(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["--base-url", "http://traffic.local:3001/", "health"])

    assert result.exit_code == 0
    assert "API is up" in result.stdout
    assert stub.config.base_url == "http://traffic.local:3001"
    assert stub.closed is True


def test_snapshot_command_lists_intersections(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["snapshot"])

    assert result.exit_code == 0
    assert "Commercial&12th: 2 day(s), 101 vehicles" in result.stdout
    assert "Main&1st: 1 day(s), 4 vehicles" in result.stdout


def test_snapshot_command_with_no_data(runner: CliRunner, stub: StubClient) -> None:
    stub.snapshot = {}

    result = runner.invoke(app, ["snapshot"])

    assert result.exit_code == 0
    assert "No data published yet." in result.stdout


def test_intersection_command_shows_days(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["intersection", "Commercial&12th"])

    assert result.exit_code == 0
    assert "2024-1-9: 96 slots, 96 vehicles" in result.stdout
    assert "2024-1-10: 2 slots, 5 vehicles (partial)" in result.stdout


def test_intersection_command_unknown_name(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["intersection", "Nowhere&0th"])

    assert result.exit_code == 1
    assert stub.closed is True


def test_load_config_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("API_BASE_URL", "http://example.test/")
    monkeypatch.setenv("CLI_REQUEST_TIMEOUT", "not-a-number")

    config = load_config()

    assert config.base_url == "http://example.test"
    assert config.timeout == 30.0


def test_intersection_command_marks_only_latest_day_partial(runner: CliRunner, stub: StubClient) -> None:
    stub.snapshot["Main&1st"]["data"] = {"2024-3-10": [1] * 92, "2024-3-11": [2] * 96}

    result = runner.invoke(app, ["intersection", "Main&1st"])

    assert result.exit_code == 0
    assert "2024-3-10: 92 slots, 92 vehicles\n" in result.stdout
    assert "2024-3-11: 96 slots, 192 vehicles (partial)" in result.stdout
