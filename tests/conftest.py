"""Shared test fixtures for alphatrader.

Provides a canned-response transport, a controllable clock, isolated
configuration directories, and automatic reset of the module-level
output manager and default fetcher between tests.
"""

from __future__ import annotations

import json
import threading
from collections import Counter
from pathlib import Path
from typing import Union

import pytest

from alphatrader.fetcher import reset_fetcher
from alphatrader.models import RawResponse, Settings
from alphatrader.output import OutputFormat, OutputManager, reset_output, set_output


FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_globals_between_tests():
    """Reset the global OutputManager and default Fetcher after every test."""
    yield
    reset_output()
    reset_fetcher()


# ---------------------------------------------------------------------------
# Fake transport
# ---------------------------------------------------------------------------


Canned = Union[RawResponse, Exception]


class FakeTransport:
    """Transport returning canned responses and counting calls per path.

    Unknown paths ending in ``invalid`` answer 400, any other unknown path
    answers 404.  Setting ``gate`` makes every GET block until the event
    is set, which lets tests pile up concurrent callers on one load;
    ``max_active`` records the most GETs ever in progress at once per path.
    """

    def __init__(self, responses: dict[str, Canned] | None = None) -> None:
        self.responses: dict[str, Canned] = dict(responses or {})
        self.calls: Counter[str] = Counter()
        self.post_calls: Counter[str] = Counter()
        self.active: Counter[str] = Counter()
        self.max_active: Counter[str] = Counter()
        self.gate: threading.Event | None = None
        self._lock = threading.Lock()

    def set(self, path: str, status: int = 200, body: str = "") -> None:
        self.responses[path] = RawResponse(status_code=status, body=body)

    def fail(self, path: str, exc: Exception) -> None:
        self.responses[path] = exc

    def get(self, path: str) -> RawResponse:
        with self._lock:
            self.calls[path] += 1
            self.active[path] += 1
            self.max_active[path] = max(self.max_active[path], self.active[path])
        try:
            if self.gate is not None:
                self.gate.wait(5)
            return self._answer(path)
        finally:
            with self._lock:
                self.active[path] -= 1

    def post(self, path: str) -> RawResponse:
        with self._lock:
            self.post_calls[path] += 1
        return self._answer(path)

    def _answer(self, path: str) -> RawResponse:
        canned = self.responses.get(path)
        if isinstance(canned, Exception):
            raise canned
        if canned is not None:
            return canned
        if path.endswith("invalid"):
            return RawResponse(status_code=400)
        return RawResponse(status_code=404)


def _load_canned_responses() -> dict[str, Canned]:
    with open(FIXTURES_DIR / "get_responses.json") as f:
        raw = json.load(f)
    return {
        path: RawResponse(status_code=entry["status"], body=json.dumps(entry["content"]))
        for path, entry in raw.items()
    }


@pytest.fixture
def fake_transport() -> FakeTransport:
    """An empty FakeTransport."""
    return FakeTransport()


@pytest.fixture
def api_transport() -> FakeTransport:
    """A FakeTransport preloaded with ``fixtures/get_responses.json``."""
    return FakeTransport(_load_canned_responses())


@pytest.fixture
def api_json():
    """Return the JSON text of a canned response by path."""
    responses = _load_canned_responses()

    def _lookup(path: str) -> str:
        return responses[path].body

    return _lookup


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# Settings and config isolation
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    """Settings pointing at a fake API with literal credentials."""
    return Settings(
        api_url="https://api.example.com",
        token="test-token",
        partner_id="partner-42",
    )


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path,
    clears every ALPHATRADER_* variable and changes into tmp_path.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("alphatrader.config._is_xdg_platform", lambda: True)

    for var in [
        "ALPHATRADER_API_URL",
        "ALPHATRADER_TOKEN",
        "ALPHATRADER_PARTNER_ID",
        "ALPHATRADER_REFRESH_INTERVAL",
        "ALPHATRADER_CONFIG",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
