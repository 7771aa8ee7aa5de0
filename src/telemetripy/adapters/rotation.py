"""Size-based rotation, archiving and age-based retention of log files.

Backups live next to the active file and are named ``<name>.<suffix>``;
retention only ever considers files following that pattern.
"""

import gzip
import shutil
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path

BACKUP_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


class RotationError(Exception):
    """A rotation or archive step failed; the active file may be untouched."""


@dataclass
class RetentionReport:
    """Outcome of a retention sweep.

    Attributes:
        removed: Backups that were deleted.
        freed_bytes: Total size of the deleted backups.
        failures: Backups that could not be deleted, with the reason.
    """

    removed: list[Path] = field(default_factory=list)
    freed_bytes: int = 0
    failures: list[tuple[Path, str]] = field(default_factory=list)


def _unused(candidate: Path) -> Path:
    """Return candidate, or candidate with a ``_<n>`` suffix if it exists."""
    if not candidate.exists():
        return candidate
    n = 1
    while True:
        numbered = candidate.with_name(f"{candidate.name}_{n}")
        if not numbered.exists():
            return numbered
        n += 1


class RotationManager:
    """Rotates, archives and prunes the files around one active log file.

    Args:
        clock: Wall clock used for backup names and the retention cutoff.
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.now) -> None:
        self._clock = clock

    def needs_rotation(self, path: Path, max_size: int) -> bool:
        """True iff the file can be read and is strictly larger than max_size."""
        try:
            return path.stat().st_size > max_size
        except OSError:
            return False

    def backup_path(self, path: Path) -> Path:
        stamp = self._clock().strftime(BACKUP_TIMESTAMP_FORMAT)
        return _unused(path.with_name(f"{path.name}.{stamp}"))

    def rotate(self, path: Path) -> Path:
        """Copy the active file to a timestamped backup, then empty it.

        Returns:
            Path of the new backup.

        Raises:
            RotationError: If the copy or the truncation failed.
        """
        backup = self.backup_path(path)
        try:
            shutil.copyfile(path, backup)
        except OSError as e:
            raise RotationError(f"could not copy {path} to {backup}: {e}") from e
        try:
            with path.open("w", encoding="utf-8"):
                pass
        except OSError as e:
            raise RotationError(f"could not truncate {path}: {e}") from e
        return backup

    def archive(self, path: Path) -> Path | None:
        """Compress the active file into ``<name>.archive.<stamp>.gz`` and empty it.

        Returns:
            Path of the archive, or None when the file is missing or empty.

        Raises:
            RotationError: If compression or truncation failed.
        """
        try:
            if path.stat().st_size == 0:
                return None
        except FileNotFoundError:
            return None
        stamp = self._clock().strftime(BACKUP_TIMESTAMP_FORMAT)
        target = _unused(path.with_name(f"{path.name}.archive.{stamp}.gz"))
        try:
            with path.open("rb") as src, gzip.open(target, "wb") as dst:
                shutil.copyfileobj(src, dst)
        except OSError as e:
            raise RotationError(f"could not archive {path} to {target}: {e}") from e
        try:
            with path.open("w", encoding="utf-8"):
                pass
        except OSError as e:
            raise RotationError(f"could not truncate {path}: {e}") from e
        return target

    def backups(self, path: Path) -> list[Path]:
        """Files beside the active file named ``<name>.*``, oldest name first."""
        if not path.parent.is_dir():
            return []
        return sorted(
            p for p in path.parent.glob(f"{path.name}.*") if p.is_file() and p != path
        )

    def sweep(self, path: Path, max_age_days: int) -> RetentionReport:
        """Delete backups last modified before ``now - max_age_days``.

        Never raises for individual files; failures are collected in the report.
        """
        report = RetentionReport()
        cutoff = (self._clock() - timedelta(days=max_age_days)).timestamp()
        for backup in self.backups(path):
            try:
                stat = backup.stat()
                if stat.st_mtime >= cutoff:
                    continue
                backup.unlink()
            except OSError as e:
                report.failures.append((backup, str(e)))
                continue
            report.removed.append(backup)
            report.freed_bytes += stat.st_size
        return report
