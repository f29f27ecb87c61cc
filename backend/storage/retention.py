"""Snapshot retention policies.

Exactly one policy is active, chosen once from ``rotate_type`` when the
settings are loaded:

    CountRetention   keep the newest ``n`` snapshots
    AgeRetention     drop snapshots older than ``days``
    SizeRetention    drop oldest snapshots until the total fits ``max_bytes``

Deletion is always oldest-timestamp first. Running ``prune`` again without
new snapshots deletes nothing.
"""

import logging
import shutil
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from config import AppSettings, RotateType
from storage.files import dir_size

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60

Clock = Callable[[], float]


@dataclass(frozen=True)
class SnapshotDir:
    timestamp: int
    path: Path


def list_snapshot_dirs(history_dir: Path) -> list[SnapshotDir]:
    """Snapshot directories under ``history_dir``, oldest first.

    Only directories named by a decimal timestamp count; anything else is
    left alone.
    """
    if not history_dir.is_dir():
        return []
    snapshots = [
        SnapshotDir(timestamp=int(entry.name), path=entry)
        for entry in history_dir.iterdir()
        if entry.is_dir() and entry.name.isascii() and entry.name.isdigit()
    ]
    snapshots.sort(key=lambda s: (s.timestamp, s.path.name))
    return snapshots


class RetentionPolicy(ABC):
    """Decides which snapshots of one key to delete."""

    rotate_type: RotateType

    def __init__(self, clock: Clock = time.time):
        self._clock = clock

    @abstractmethod
    def select(self, snapshots: list[SnapshotDir]) -> list[SnapshotDir]:
        """Return the snapshots to delete, given all of them oldest first."""

    def prune(self, history_dir: Path) -> list[int]:
        """Delete the selected snapshot directories; return their timestamps.

        Raises ``OSError`` if a directory cannot be listed or removed.
        """
        doomed = self.select(list_snapshot_dirs(history_dir))
        for snapshot in doomed:
            shutil.rmtree(snapshot.path)
        if doomed:
            logger.info(
                f"Pruned {len(doomed)} snapshots from {history_dir.name} ({self.rotate_type.value})"
            )
        return [s.timestamp for s in doomed]

    @staticmethod
    def from_settings(app_settings: AppSettings, clock: Clock = time.time) -> "RetentionPolicy":
        if app_settings.rotate_type == RotateType.HISTORY_COUNT:
            return CountRetention(app_settings.rotate_count, clock=clock)
        if app_settings.rotate_type == RotateType.STORED_TIME:
            return AgeRetention(app_settings.rotate_time, clock=clock)
        if app_settings.rotate_type == RotateType.TOTAL_SIZE:
            return SizeRetention(app_settings.rotate_size_bytes, clock=clock)
        raise ValueError(f"Unknown rotate_type: {app_settings.rotate_type}")


class CountRetention(RetentionPolicy):
    rotate_type = RotateType.HISTORY_COUNT

    def __init__(self, max_count: int, clock: Clock = time.time):
        super().__init__(clock)
        if max_count < 1:
            raise ValueError("max_count must be positive")
        self.max_count = max_count

    def select(self, snapshots: list[SnapshotDir]) -> list[SnapshotDir]:
        excess = len(snapshots) - self.max_count
        return snapshots[:excess] if excess > 0 else []


class AgeRetention(RetentionPolicy):
    rotate_type = RotateType.STORED_TIME

    def __init__(self, max_age_days: int, clock: Clock = time.time):
        super().__init__(clock)
        if max_age_days < 1:
            raise ValueError("max_age_days must be positive")
        self.max_age_days = max_age_days

    def select(self, snapshots: list[SnapshotDir]) -> list[SnapshotDir]:
        cutoff = int(self._clock()) - self.max_age_days * SECONDS_PER_DAY
        return [s for s in snapshots if s.timestamp < cutoff]


class SizeRetention(RetentionPolicy):
    rotate_type = RotateType.TOTAL_SIZE

    def __init__(self, max_bytes: int, clock: Clock = time.time):
        super().__init__(clock)
        if max_bytes < 1:
            raise ValueError("max_bytes must be positive")
        self.max_bytes = max_bytes

    def select(self, snapshots: list[SnapshotDir]) -> list[SnapshotDir]:
        sizes = [dir_size(s.path) for s in snapshots]
        total = sum(sizes)
        doomed = []
        # the newest snapshot is never removed, even when it alone is over budget
        for snapshot, size in zip(snapshots[:-1], sizes):
            if total <= self.max_bytes:
                break
            doomed.append(snapshot)
            total -= size
        return doomed
