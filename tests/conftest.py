"""Shared test fixtures."""

from collections.abc import Callable, Generator, Sequence
from typing import Any

import pytest
from fastapi.testclient import TestClient

from scanweave.radio.base import RawScanRecord, StaticPermissionChecker, WifiRadio
from scanweave.scanner.dispatcher import ScanListener
from scanweave.scanner.manager import WifiScanManager
from scanweave.scanner.models import ErrorKind, ScanBatch


class FakeTimer:
    def __init__(self, when_ms: int, callback: Callable[..., None], args: tuple[Any, ...]) -> None:
        self.when_ms = when_ms
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeLoop:
    """Manual-clock stand-in for the asyncio loop methods the scanner uses.

    Time only moves through ``advance_ms``; thread-safe callbacks are
    queued until ``run_soon``.
    """

    def __init__(self) -> None:
        self.now_ms = 0
        self._timers: list[FakeTimer] = []
        self._soon: list[tuple[Callable[..., None], tuple[Any, ...]]] = []

    def call_later(self, delay: float, callback: Callable[..., None], *args: Any) -> FakeTimer:
        timer = FakeTimer(self.now_ms + round(delay * 1000), callback, args)
        self._timers.append(timer)
        return timer

    def call_soon_threadsafe(self, callback: Callable[..., None], *args: Any) -> None:
        self._soon.append((callback, args))

    def run_soon(self) -> None:
        queued, self._soon = self._soon, []
        for callback, args in queued:
            callback(*args)

    def pending_timers(self) -> list[FakeTimer]:
        return [t for t in self._timers if not t.cancelled]

    def advance_ms(self, ms: int) -> None:
        target = self.now_ms + ms
        while True:
            due = [t for t in self.pending_timers() if t.when_ms <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.when_ms)
            self._timers.remove(timer)
            self.now_ms = timer.when_ms
            timer.callback(*timer.args)
        self.now_ms = target


class FakeRadio(WifiRadio):
    """Radio whose completions are driven by the test."""

    def __init__(self) -> None:
        super().__init__()
        self.enabled = True
        self.accept = True
        self.start_calls = 0
        self.results: Sequence[RawScanRecord] | Exception = []

    def is_radio_enabled(self) -> bool:
        return self.enabled

    def start_scan(self) -> bool:
        self.start_calls += 1
        return self.accept

    def fetch_raw_results(self) -> Sequence[RawScanRecord]:
        if isinstance(self.results, Exception):
            raise self.results
        return self.results

    def complete(self, success: bool) -> None:
        self._notify_completed(success)


class RecordingListener(ScanListener):
    def __init__(self) -> None:
        self.events: list[tuple[Any, ...]] = []

    def on_batch(self, batch: ScanBatch) -> None:
        self.events.append(("batch", batch))

    def on_error(self, kind: ErrorKind, message: str) -> None:
        self.events.append(("error", kind, message))

    @property
    def batches(self) -> list[ScanBatch]:
        return [e[1] for e in self.events if e[0] == "batch"]

    @property
    def errors(self) -> list[ErrorKind]:
        return [e[1] for e in self.events if e[0] == "error"]


def raw_record(**overrides: Any) -> dict[str, Any]:
    record: dict[str, Any] = {
        "ssid": "TestNetwork",
        "bssid": "00:11:22:33:44:55",
        "capabilities": "[WPA2-PSK-CCMP][ESS]",
        "level": -50,
        "frequency": 2437,
        "timestamp_us": 1_700_000_000_000_000,
    }
    record.update(overrides)
    return record


@pytest.fixture
def loop() -> FakeLoop:
    return FakeLoop()


@pytest.fixture
def radio() -> FakeRadio:
    radio = FakeRadio()
    radio.results = [raw_record(), raw_record(bssid="66:77:88:99:AA:BB", frequency=5180)]
    return radio


@pytest.fixture
def permissions() -> StaticPermissionChecker:
    return StaticPermissionChecker(True)


@pytest.fixture
def listener() -> RecordingListener:
    return RecordingListener()


@pytest.fixture
def manager(radio, permissions, loop, listener) -> WifiScanManager:
    mgr = WifiScanManager(radio, permissions, loop=loop)  # type: ignore[arg-type]
    mgr.add_listener(listener)
    return mgr


@pytest.fixture
def client(monkeypatch, tmp_path) -> Generator[TestClient, None, None]:
    """TestClient with the mock radio configured and no .env file."""
    import scanweave.config as config_module
    from scanweave.main import app

    monkeypatch.setattr(config_module, "_ENV_FILE", tmp_path / ".env")
    monkeypatch.setenv("SCANWEAVE_RADIO_MODE", "mock")
    monkeypatch.delenv("SCANWEAVE_AUTOSTART", raising=False)
    monkeypatch.delenv("SCANWEAVE_WEBHOOK_URL", raising=False)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_record() -> Callable[..., dict[str, Any]]:
    """Factory for raw platform records; keyword arguments override fields."""
    return raw_record


@pytest.fixture
def record_listener() -> type[RecordingListener]:
    return RecordingListener
