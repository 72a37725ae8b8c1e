"""End-to-end CLI tests using typer's CliRunner with a stub provider."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping

import pytest

from anicache import __version__
from anicache.app import app, main
from anicache.exceptions import ProviderError
from anicache.providers import Failure, Success


class StubHttpProvider:
    """Stands in for HttpProvider; answers every operation with its parameters."""

    calls: list[tuple[str, dict[str, Any]]] = []
    settings: list[Any] = []
    answer: Any = None

    def __init__(self, settings: Any, client: Any = None) -> None:
        StubHttpProvider.settings.append(settings)

    def __enter__(self) -> StubHttpProvider:
        return self

    def __exit__(self, *args: object) -> None:
        pass

    def invoke(self, operation: str, parameters: Mapping[str, Any]) -> Any:
        StubHttpProvider.calls.append((operation, dict(parameters)))
        if StubHttpProvider.answer is not None:
            return StubHttpProvider.answer
        return Success(payload={"op": operation, **parameters})


@pytest.fixture()
def stub_provider(isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> type[StubHttpProvider]:
    monkeypatch.setattr(StubHttpProvider, "calls", [])
    monkeypatch.setattr(StubHttpProvider, "settings", [])
    monkeypatch.setattr(StubHttpProvider, "answer", None)
    monkeypatch.setattr("anicache.providers.HttpProvider", StubHttpProvider)
    return StubHttpProvider


# ---------------------------------------------------------------------------
# Root options
# ---------------------------------------------------------------------------


class TestRoot:
    def test_version(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"anicache {__version__}" in result.output

    def test_base_url_flag(self, cli_runner, stub_provider) -> None:
        result = cli_runner.invoke(app, ["--base-url", "http://meta.test", "data", "21"])
        assert result.exit_code == 0, result.output
        assert stub_provider.settings[0].base_url == "http://meta.test"


# ---------------------------------------------------------------------------
# Catalog commands
# ---------------------------------------------------------------------------


class TestCatalogCommands:
    def test_info_json(self, cli_runner, stub_provider) -> None:
        result = cli_runner.invoke(app, ["--json", "info", "21"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {
            "op": "animeinfo",
            "id": "21",
            "provider": "gogoanime",
        }

    def test_second_run_is_served_from_disk(self, cli_runner, stub_provider) -> None:
        """Snapshots written by one process are loaded by the next."""
        first = cli_runner.invoke(app, ["--json", "info", "21"])
        second = cli_runner.invoke(app, ["--json", "info", "21"])
        assert first.exit_code == second.exit_code == 0
        assert first.output == second.output
        assert len(stub_provider.calls) == 1

    def test_verbose_reports_hits(self, cli_runner, stub_provider) -> None:
        cli_runner.invoke(app, ["info", "21"])
        result = cli_runner.invoke(app, ["--plain", "--no-color", "-v", "info", "21"])
        assert result.exit_code == 0
        assert "Cache hit: Info animeInfo-21-gogoanime" in result.output

    def test_search_options(self, cli_runner, stub_provider) -> None:
        result = cli_runner.invoke(
            app,
            ["search", "frieren", "--season", "FALL", "--year", "2023",
             "--genre", "Adventure", "--genre", "Fantasy", "--sort", "SCORE_DESC"],
        )
        assert result.exit_code == 0, result.output
        op, params = stub_provider.calls[0]
        assert op == "AdvancedSearch"
        assert params["query"] == "frieren"
        assert params["genres"] == ["Adventure", "Fantasy"]
        assert params["sort"] == ["SCORE_DESC"]
        assert params["year"] == 2023

    def test_episodes_dub(self, cli_runner, stub_provider) -> None:
        result = cli_runner.invoke(app, ["episodes", "21", "--dub", "--provider", "zoro"])
        assert result.exit_code == 0, result.output
        assert stub_provider.calls == [
            ("animeepisodes", {"id": "21", "dub": True, "provider": "zoro"})
        ]

    @pytest.mark.parametrize(
        ("args", "operation"),
        [
            (["data", "21"], "animedata"),
            (["servers", "ep-1"], "animeservers"),
            (["watch", "ep-1"], "animewatch"),
            (["recent"], "animerecentepisodes"),
            (["skip-times", "21", "3", "--episode-length", "1420"], "skiptimes"),
            (["list", "Trending"], "animetrending"),
            (["list", "Upcoming"], "AdvancedSearch"),
        ],
    )
    def test_commands_reach_provider(self, cli_runner, stub_provider, args, operation) -> None:
        result = cli_runner.invoke(app, args)
        assert result.exit_code == 0, result.output
        assert stub_provider.calls[0][0] == operation

    def test_unknown_list(self, cli_runner, stub_provider) -> None:
        result = cli_runner.invoke(app, ["list", "Hot"])
        assert result.exit_code == 2
        assert "Hot: unknown anime list" in result.output
        assert stub_provider.calls == []

    def test_provider_failure(self, cli_runner, stub_provider) -> None:
        stub_provider.answer = Failure(message="Anime not found")
        result = cli_runner.invoke(app, ["episodes", "0"])
        assert result.exit_code == 5
        assert "Anime not found" in result.output

    def test_shape_error(self, cli_runner, stub_provider) -> None:
        stub_provider.answer = {}
        result = cli_runner.invoke(app, ["info", "21"])
        assert result.exit_code == 5
        assert "Unknown server error" in result.output


# ---------------------------------------------------------------------------
# Cache commands
# ---------------------------------------------------------------------------


class TestCacheCommands:
    def test_stats(self, cli_runner, stub_provider) -> None:
        cli_runner.invoke(app, ["info", "21"])
        result = cli_runner.invoke(app, ["--json", "cache", "stats"])
        assert result.exit_code == 0, result.output
        rows = {row["category"]: row for row in json.loads(result.output)}
        assert len(rows) == 13
        assert rows["Info"]["size"] == "1"
        assert rows["Info"]["capacity"] == "20"
        assert rows["Episodes"]["size"] == "0"

    def test_clear_category(self, cli_runner, stub_provider) -> None:
        cli_runner.invoke(app, ["info", "21"])
        result = cli_runner.invoke(app, ["--force", "cache", "clear", "Info"])
        assert result.exit_code == 0, result.output
        assert "Cleared Info." in result.output
        cli_runner.invoke(app, ["info", "21"])
        assert len(stub_provider.calls) == 2

    def test_clear_all_confirmed(self, cli_runner, stub_provider) -> None:
        cli_runner.invoke(app, ["data", "21"])
        result = cli_runner.invoke(app, ["cache", "clear"], input="y\n")
        assert result.exit_code == 0
        assert "Cleared all caches." in result.output

    def test_clear_cancelled(self, cli_runner, stub_provider) -> None:
        cli_runner.invoke(app, ["data", "21"])
        result = cli_runner.invoke(app, ["cache", "clear"], input="n\n")
        assert result.exit_code == 0
        assert "Cancelled." in result.output
        cli_runner.invoke(app, ["data", "21"])
        assert len(stub_provider.calls) == 1

    def test_clear_unknown_category(self, cli_runner, stub_provider) -> None:
        result = cli_runner.invoke(app, ["--force", "cache", "clear", "Fillers"])
        assert result.exit_code == 2
        assert "Unknown cache category: Fillers" in result.output


# ---------------------------------------------------------------------------
# Config commands
# ---------------------------------------------------------------------------


class TestConfigCommands:
    def test_show(self, cli_runner, isolated_config) -> None:
        result = cli_runner.invoke(app, ["--json", "-q", "config", "show"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["cache"]["capacity"] == 20

    def test_set_int(self, cli_runner, isolated_config) -> None:
        from anicache.config import load_global_config

        result = cli_runner.invoke(app, ["config", "set", "cache.capacity", "5"])
        assert result.exit_code == 0, result.output
        assert load_global_config().cache.capacity == 5

    def test_set_bool(self, cli_runner, isolated_config) -> None:
        from anicache.config import load_global_config

        cli_runner.invoke(app, ["config", "set", "cache.persist", "false"])
        assert load_global_config().cache.persist is False

    @pytest.mark.parametrize(
        "args",
        [
            ["cache.capacity", "many"],
            ["cache.nope", "1"],
            ["cache", "1"],
            ["nope.capacity", "1"],
            ["output.format", "yaml"],
        ],
    )
    def test_set_rejects(self, cli_runner, isolated_config, args) -> None:
        result = cli_runner.invoke(app, ["config", "set", *args])
        assert result.exit_code == 2

    def test_capacity_applies_to_catalog(self, cli_runner, stub_provider) -> None:
        cli_runner.invoke(app, ["config", "set", "cache.capacity", "1"])
        cli_runner.invoke(app, ["data", "1"])
        cli_runner.invoke(app, ["data", "2"])
        cli_runner.invoke(app, ["data", "1"])
        assert len(stub_provider.calls) == 3

    def test_configured_format_applies_without_flag(self, cli_runner, stub_provider) -> None:
        result = cli_runner.invoke(app, ["config", "set", "output.format", "json"])
        assert result.exit_code == 0, result.output

        result = cli_runner.invoke(app, ["info", "21"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["id"] == "21"

    def test_plain_flag_beats_configured_format(self, cli_runner, stub_provider) -> None:
        cli_runner.invoke(app, ["config", "set", "output.format", "json"])
        result = cli_runner.invoke(app, ["--plain", "data", "21"])
        assert result.exit_code == 0, result.output
        assert "op\tanimedata" in result.output

    def test_reset(self, cli_runner, isolated_config) -> None:
        from anicache.config import load_global_config

        cli_runner.invoke(app, ["config", "set", "cache.capacity", "5"])
        result = cli_runner.invoke(app, ["--force", "config", "reset"])
        assert result.exit_code == 0
        assert load_global_config().cache.capacity == 20


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


class TestMain:
    def test_anicache_error_exit_code(self, isolated_config, monkeypatch) -> None:
        monkeypatch.setattr("anicache.app._setup_signal_handlers", lambda: None)
        def boom() -> None:
            raise ProviderError("upstream down")

        monkeypatch.setattr("anicache.app.app", boom)
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 5

    def test_unexpected_error_writes_crash_log(self, isolated_config, monkeypatch) -> None:
        monkeypatch.setattr("anicache.app._setup_signal_handlers", lambda: None)
        def boom() -> None:
            raise RuntimeError("kaboom")

        monkeypatch.setattr("anicache.app.app", boom)
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 1
        logs = list((isolated_config / "data" / "anicache" / "logs").glob("crash-*.log"))
        assert len(logs) == 1
        assert "kaboom" in logs[0].read_text()
