"""BDD step definitions for the engine feature files."""

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import pytest
from pytest_bdd import given, parsers, then, when

from telemetripy.core.events import FileRotated, Notification, PerformanceWarning
from telemetripy.runtime.engine import TelemetryLogger


@dataclass
class EngineScenarioContext:
    """State shared by the steps of one scenario."""

    telemetry: TelemetryLogger | None = None
    received: list[Notification] = field(default_factory=list)
    noted_total: int = 0
    file_sizes: list[int] = field(default_factory=list)
    export_path: Path | None = None
    export_result: bool | None = None

    @property
    def logger(self) -> TelemetryLogger:
        assert self.telemetry is not None, "no logger configured"
        return self.telemetry

    def notifications(self, kind: type) -> list[Notification]:
        self.logger.drain_notifications(timeout=5)
        return [n for n in self.received if isinstance(n, kind)]


@pytest.fixture
def ctx() -> EngineScenarioContext:
    return EngineScenarioContext()


def _messages(ctx: EngineScenarioContext) -> list[str]:
    return [e.message for e in ctx.logger.get_logs()]


# === Setup ===
@given("a logger")
def given_logger(
    ctx: EngineScenarioContext, make_logger: Callable[..., TelemetryLogger]
) -> None:
    ctx.telemetry = make_logger()


@given(parsers.parse("a logger with a recent capacity of {capacity:d}"))
def given_logger_with_capacity(
    ctx: EngineScenarioContext,
    make_logger: Callable[..., TelemetryLogger],
    capacity: int,
) -> None:
    ctx.telemetry = make_logger(recent_capacity=capacity)


@given(parsers.parse("a logger with a maximum file size of {size:d} bytes"))
def given_logger_with_max_size(
    ctx: EngineScenarioContext,
    make_logger: Callable[..., TelemetryLogger],
    size: int,
) -> None:
    ctx.telemetry = make_logger(max_file_size=size)


@given(parsers.parse("a logger that flags operations slower than {ms:d} ms"))
def given_logger_with_slow_threshold(
    ctx: EngineScenarioContext,
    make_logger: Callable[..., TelemetryLogger],
    ms: int,
) -> None:
    ctx.telemetry = make_logger(slow_operation_ms=ms)


@given("a subscriber to all notifications")
def given_subscriber(ctx: EngineScenarioContext) -> None:
    ctx.logger.subscribe(ctx.received.append)


@given("the number of recorded entries is noted")
def given_total_noted(ctx: EngineScenarioContext) -> None:
    ctx.noted_total = ctx.logger.get_log_statistics().total_entries


# === Actions ===
@when(parsers.parse("{count:d} entries are submitted"))
def when_entries_submitted(
    ctx: EngineScenarioContext, log_path: Path, count: int
) -> None:
    for i in range(1, count + 1):
        ctx.logger.info(f"entry {i}")
        if log_path.exists():
            ctx.file_sizes.append(log_path.stat().st_size)


@when(parsers.parse("the recent capacity is changed to {capacity:d}"))
def when_capacity_changed(ctx: EngineScenarioContext, capacity: int) -> None:
    ctx.logger.set_recent_capacity(capacity)


@when(parsers.parse('the log level is set to "{level}"'))
def when_level_set(ctx: EngineScenarioContext, level: str) -> None:
    ctx.logger.set_log_level(level)


@when(parsers.parse('an info entry "{message}" is logged'))
def when_info_logged(ctx: EngineScenarioContext, message: str) -> None:
    ctx.logger.info(message)


@when(parsers.parse('a warning entry "{message}" is logged'))
def when_warning_logged(ctx: EngineScenarioContext, message: str) -> None:
    ctx.logger.warning(message)


@when(parsers.parse('the performance timer "{operation}" is started'))
def when_timer_started(ctx: EngineScenarioContext, operation: str) -> None:
    ctx.logger.start_performance_timer(operation)


@when(parsers.parse("{ms:d} ms elapse"))
def when_time_elapses(monotonic, ms: int) -> None:
    monotonic.advance_ms(ms)


@when(parsers.parse('the performance timer "{operation}" is stopped'))
def when_timer_stopped(ctx: EngineScenarioContext, operation: str) -> None:
    ctx.logger.stop_performance_timer(operation)


@when(parsers.parse('the logs are exported as "{fmt}"'))
def when_exported(ctx: EngineScenarioContext, tmp_path: Path, fmt: str) -> None:
    ctx.export_path = tmp_path / f"export.{fmt}"
    ctx.export_result = ctx.logger.export_logs(ctx.export_path, fmt)


# === Outcomes ===
@then(parsers.parse("the recent buffer holds {count:d} entries"))
def then_recent_size(ctx: EngineScenarioContext, count: int) -> None:
    assert len(ctx.logger.recent_logs()) == count


@then(parsers.parse("the history holds {count:d} entries"))
def then_history_size(ctx: EngineScenarioContext, count: int) -> None:
    assert ctx.logger.get_log_statistics().total_entries == count


@then(parsers.parse("entry {n:d} is not in the recent buffer"))
def then_entry_evicted(ctx: EngineScenarioContext, n: int) -> None:
    assert f"entry {n}" not in [e.message for e in ctx.logger.recent_logs()]


@then(parsers.parse("entry {n:d} is the oldest entry in the recent buffer"))
def then_oldest_entry(ctx: EngineScenarioContext, n: int) -> None:
    assert ctx.logger.recent_logs()[0].message == f"entry {n}"


@then(parsers.parse('no entry has the message "{message}"'))
def then_no_entry(ctx: EngineScenarioContext, message: str) -> None:
    assert message not in _messages(ctx)


@then(parsers.parse('an entry has the message "{message}"'))
def then_entry_present(ctx: EngineScenarioContext, message: str) -> None:
    assert message in _messages(ctx)


@then("the number of recorded entries is unchanged")
def then_total_unchanged(ctx: EngineScenarioContext) -> None:
    assert ctx.logger.get_log_statistics().total_entries == ctx.noted_total


@then(parsers.parse('a performance warning is delivered for "{operation}"'))
def then_warning_delivered(ctx: EngineScenarioContext, operation: str) -> None:
    warnings = ctx.notifications(PerformanceWarning)
    assert [w.operation for w in warnings] == [operation]  # type: ignore[union-attr]


@then("no performance warning is delivered")
def then_no_warning(ctx: EngineScenarioContext) -> None:
    assert ctx.notifications(PerformanceWarning) == []


@then(parsers.parse('the maximum time of "{operation}" is at least {ms:d} ms'))
def then_max_time(ctx: EngineScenarioContext, operation: str, ms: int) -> None:
    assert ctx.logger.get_performance_statistics()[operation].max_time >= ms


@then(parsers.parse("at least {count:d} rotation notifications are delivered"))
def then_rotations_delivered(ctx: EngineScenarioContext, count: int) -> None:
    assert len(ctx.notifications(FileRotated)) >= count


@then("one backup file exists per rotation notification")
def then_backup_per_rotation(ctx: EngineScenarioContext) -> None:
    backups = {n.backup_path for n in ctx.notifications(FileRotated)}  # type: ignore[union-attr]
    assert len(backups) == len(ctx.notifications(FileRotated))
    assert all(path.is_file() for path in backups)


@then(parsers.parse("the active log file never exceeded {size:d} bytes after a write"))
def then_file_bounded(ctx: EngineScenarioContext, size: int) -> None:
    assert ctx.file_sizes
    assert max(ctx.file_sizes) <= size


@then("the export succeeds")
def then_export_succeeds(ctx: EngineScenarioContext) -> None:
    assert ctx.export_result is True


@then("the export fails")
def then_export_fails(ctx: EngineScenarioContext) -> None:
    assert ctx.export_result is False


@then("no export file is written")
def then_no_export_file(ctx: EngineScenarioContext) -> None:
    assert ctx.export_path is not None
    assert not ctx.export_path.exists()


@then(parsers.parse("the export has exactly {count:d} lines"))
def then_export_lines(ctx: EngineScenarioContext, count: int) -> None:
    assert ctx.export_path is not None
    assert len(ctx.export_path.read_text().splitlines()) == count


@then("every exported row has its message in double quotes")
def then_rows_quoted(ctx: EngineScenarioContext) -> None:
    assert ctx.export_path is not None
    rows = ctx.export_path.read_text().splitlines()[1:]
    assert rows
    for row in rows:
        message_field = row.split(",")[3]
        assert message_field.startswith('"') and message_field.endswith('"')
