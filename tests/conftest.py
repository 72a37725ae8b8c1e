"""Shared test fixtures for anicache.

Provides a controllable clock for expiry tests, isolated XDG directories,
output state management, and a counting stub provider.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Mapping

import pytest

from anicache.output import OutputFormat, OutputManager, reset_output, set_output
from anicache.providers.base import Success


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The manager caches sys.stdout/sys.stderr at creation time, which go
    stale once CliRunner or capfd swaps the streams.
    """
    yield
    reset_output()


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet, colourless OutputManager."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True, no_color=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced UNIX-seconds clock."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------


class CountingProvider:
    """Stub provider that records every call and answers from a callable."""

    def __init__(self, answer: Callable[[str, Mapping[str, Any]], Any] | None = None) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self._answer = answer or (lambda op, params: Success(payload={"op": op, **params}))

    def invoke(self, operation: str, parameters: Mapping[str, Any]) -> Any:
        self.calls.append((operation, dict(parameters)))
        return self._answer(operation, parameters)


@pytest.fixture
def counting_provider() -> CountingProvider:
    return CountingProvider()


@pytest.fixture
def make_provider() -> type[CountingProvider]:
    """Return the CountingProvider class for tests that need a custom answer."""
    return CountingProvider


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point XDG directories at tmp_path and clear ANICACHE_* variables.

    Returns:
        The tmp_path root directory.
    """
    monkeypatch.setattr("anicache.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in ["ANICACHE_BASE_URL", "ANICACHE_SKIP_TIMES_URL", "ANICACHE_CACHE_TTL"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def cli_runner():
    from typer.testing import CliRunner

    return CliRunner()
