"""Tests for rotation, archiving and retention against the file system."""

import gzip
import os
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

import pytest

from telemetripy.adapters.rotation import RotationError, RotationManager
from telemetripy.core.events import ArchiveCreated, FileRotated, Notification
from telemetripy.runtime.engine import TelemetryLogger

pytestmark = pytest.mark.tier(2)

OLD = datetime(2023, 1, 1).timestamp()


@pytest.mark.tra("Rotation.Manager")
class TestRotationManager:
    def test_threshold_is_strict(self, log_path: Path, clock) -> None:
        manager = RotationManager(clock)
        log_path.parent.mkdir(parents=True)
        log_path.write_bytes(b"x" * 100)

        assert manager.needs_rotation(log_path, 100) is False
        assert manager.needs_rotation(log_path, 99) is True

    def test_missing_file_needs_no_rotation(self, log_path: Path, clock) -> None:
        assert RotationManager(clock).needs_rotation(log_path, 0) is False

    def test_rotate_copies_then_truncates(self, log_path: Path, clock) -> None:
        manager = RotationManager(clock)
        log_path.parent.mkdir(parents=True)
        log_path.write_text("old content\n")

        backup = manager.rotate(log_path)

        assert backup.name == "application.log.20240301_120000"
        assert backup.read_text() == "old content\n"
        assert log_path.stat().st_size == 0

    def test_same_second_backups_get_a_suffix(self, log_path: Path, clock) -> None:
        manager = RotationManager(clock)
        log_path.parent.mkdir(parents=True)

        log_path.write_text("one")
        first = manager.rotate(log_path)
        log_path.write_text("two")
        second = manager.rotate(log_path)

        assert first != second
        assert second.name == "application.log.20240301_120000_1"
        assert second.read_text() == "two"

    def test_rotate_missing_file_raises(self, log_path: Path, clock) -> None:
        log_path.parent.mkdir(parents=True)
        with pytest.raises(RotationError):
            RotationManager(clock).rotate(log_path)

    def test_archive(self, log_path: Path, clock) -> None:
        manager = RotationManager(clock)
        log_path.parent.mkdir(parents=True)
        log_path.write_text("keep me\n")

        archive = manager.archive(log_path)

        assert archive is not None
        assert archive.name == "application.log.archive.20240301_120000.gz"
        with gzip.open(archive, "rt") as f:
            assert f.read() == "keep me\n"
        assert log_path.stat().st_size == 0

    def test_archive_empty_file(self, log_path: Path, clock) -> None:
        log_path.parent.mkdir(parents=True)
        log_path.touch()
        assert RotationManager(clock).archive(log_path) is None

    def test_sweep_removes_only_old_backups(self, log_path: Path, clock) -> None:
        manager = RotationManager(clock)
        log_path.parent.mkdir(parents=True)
        log_path.write_text("active")
        os.utime(log_path, (OLD, OLD))
        old_backup = log_path.with_name("application.log.20230101_000000")
        old_backup.write_text("x" * 10)
        os.utime(old_backup, (OLD, OLD))
        fresh_backup = log_path.with_name("application.log.20240229_000000")
        fresh_backup.write_text("fresh")
        unrelated = log_path.with_name("other.log.1")
        unrelated.write_text("other")
        os.utime(unrelated, (OLD, OLD))

        report = manager.sweep(log_path, max_age_days=30)

        assert report.removed == [old_backup]
        assert report.freed_bytes == 10
        assert report.failures == []
        assert log_path.exists()
        assert fresh_backup.exists()
        assert unrelated.exists()

    def test_sweep_without_directory(self, tmp_path: Path, clock) -> None:
        report = RotationManager(clock).sweep(tmp_path / "none" / "app.log", 1)
        assert report.removed == []


@pytest.mark.tra("Rotation.Engine")
class TestEngineRotation:
    def test_rotation_fires_once_per_crossing(
        self, make_logger: Callable[..., TelemetryLogger], log_path: Path
    ) -> None:
        telemetry = make_logger(max_file_size=100)
        rotations: list[Notification] = []
        telemetry.subscribe(rotations.append, kinds=[FileRotated])

        for i in range(10):
            telemetry.info(f"entry number {i}", "Import")
        assert telemetry.drain_notifications(timeout=5)

        backups = sorted(log_path.parent.glob("application.log.*"))
        assert len(rotations) >= 2
        assert len(rotations) == len(backups)
        assert {n.backup_path for n in rotations} == set(backups)  # type: ignore[union-attr]
        for backup in backups:
            assert backup.stat().st_size > 100
        assert [e.message for e in telemetry.get_logs(category="Logger")] == [
            "Log file rotated"
        ] * len(rotations)

    def test_no_rotation_below_threshold(
        self, make_logger: Callable[..., TelemetryLogger], log_path: Path
    ) -> None:
        telemetry = make_logger(max_file_size=10_000)
        for i in range(10):
            telemetry.info(f"entry {i}")
        assert list(log_path.parent.glob("application.log.*")) == []

    def test_archive_logs(
        self, make_logger: Callable[..., TelemetryLogger], log_path: Path
    ) -> None:
        telemetry = make_logger()
        archives: list[Notification] = []
        telemetry.subscribe(archives.append, kinds=[ArchiveCreated])
        telemetry.info("to be archived")

        archive = telemetry.archive_logs()
        telemetry.drain_notifications(timeout=5)

        assert archive is not None
        with gzip.open(archive, "rt") as f:
            assert "to be archived" in f.read()
        assert archives == [ArchiveCreated(archive)]
        assert "Logs archived" in log_path.read_text()

    def test_cleanup_old_logs(
        self, make_logger: Callable[..., TelemetryLogger], log_path: Path
    ) -> None:
        telemetry = make_logger(max_log_age_days=7)
        telemetry.info("active")
        stale = log_path.with_name("application.log.20230101_000000")
        stale.write_text("stale backup")
        os.utime(stale, (OLD, OLD))

        report = telemetry.cleanup_old_logs()

        assert report.removed == [stale]
        assert not stale.exists()
        [entry] = telemetry.get_logs(category="Logger")
        assert entry.message == "Old logs cleaned up"
        assert entry.context["freed_bytes"] == len("stale backup")

    def test_cleanup_with_nothing_to_remove_is_silent(
        self, make_logger: Callable[..., TelemetryLogger]
    ) -> None:
        telemetry = make_logger()
        telemetry.info("active")

        telemetry.cleanup_old_logs()

        assert telemetry.get_logs(category="Logger") == []


@pytest.mark.tra("Rotation.Manager")
def test_unreadable_path_needs_no_rotation(tmp_path: Path, clock) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")

    assert RotationManager(clock).needs_rotation(blocker / "app.log", 0) is False

