"""Shared test fixtures for all test modules."""

import io
from collections.abc import Callable, Iterator
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from telemetripy.adapters.sinks import ConsoleSink
from telemetripy.config import LoggerConfig
from telemetripy.core.models import LogEntry, LogLevel, Sink
from telemetripy.runtime.engine import TelemetryLogger

BASE_TIME = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Wall clock that only moves when told to."""

    def __init__(self, start: datetime = BASE_TIME) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> None:
        self.now += timedelta(**delta)


class FakeMonotonic:
    """Monotonic clock in seconds that only moves when told to."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000


@pytest.fixture
def log_path(tmp_path: Path) -> Path:
    """Provide a temporary active log file path."""
    return tmp_path / "logs" / "application.log"


@pytest.fixture
def log_db_path(tmp_path: Path) -> str:
    """Provide a temporary database path for entry storage tests."""
    return str(tmp_path / "entries.db")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def monotonic() -> FakeMonotonic:
    return FakeMonotonic()


@pytest.fixture
def console_streams() -> tuple[io.StringIO, io.StringIO]:
    """(stdout, stderr) buffers for a ConsoleSink."""
    return io.StringIO(), io.StringIO()


@pytest.fixture
def make_entry() -> Callable[..., LogEntry]:
    """Factory fixture for LogEntry objects with sensible defaults."""

    def _entry(
        message: str = "message",
        level: LogLevel = LogLevel.INFO,
        category: str = "General",
        offset_seconds: float = 0,
        **fields: object,
    ) -> LogEntry:
        return LogEntry(
            level=level,
            message=message,
            category=category,
            timestamp=BASE_TIME + timedelta(seconds=offset_seconds),
            **fields,  # type: ignore[arg-type]
        )

    return _entry


@pytest.fixture
def make_logger(
    log_path: Path,
    clock: FakeClock,
    monotonic: FakeMonotonic,
    console_streams: tuple[io.StringIO, io.StringIO],
) -> Iterator[Callable[..., TelemetryLogger]]:
    """Factory fixture for TelemetryLogger instances.

    Defaults to the file sink only, a TRACE threshold and fake clocks.
    Every logger created is closed at teardown.
    """
    created: list[TelemetryLogger] = []
    stdout, stderr = console_streams

    def _logger(**overrides: object) -> TelemetryLogger:
        settings: dict[str, object] = {
            "level": LogLevel.TRACE,
            "targets": {Sink.FILE},
            "file_path": log_path,
        }
        settings.update(overrides)
        store = settings.pop("store", None)
        telemetry = TelemetryLogger(
            LoggerConfig(**settings),  # type: ignore[arg-type]
            store=store,  # type: ignore[arg-type]
            clock=clock,
            monotonic=monotonic,
            console=ConsoleSink(stdout=stdout, stderr=stderr),
        )
        created.append(telemetry)
        return telemetry

    yield _logger

    for telemetry in created:
        telemetry.close()


@pytest.fixture
def telemetry(make_logger: Callable[..., TelemetryLogger]) -> TelemetryLogger:
    """A logger with default test settings."""
    return make_logger()
