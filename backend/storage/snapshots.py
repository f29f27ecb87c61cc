"""Per-user document storage with snapshot-before-overwrite.

Layout under ``data_dir``:

    <key>.json                          live document
    history/<key>/<unix_seconds>/<key>.json   prior content, one per second

Every ``put`` that replaces existing content first copies the old content
into a snapshot directory for the current second, then swaps the new content
in atomically, then runs the active retention policy. All operations on one
key are serialised; different keys proceed in parallel.
"""

import logging
import shutil
import time
from dataclasses import dataclass, field
from pathlib import Path

from errors import DocumentNotFound, StorageError
from storage.files import validate_key, write_atomic
from storage.locks import KeyedLock
from storage.retention import Clock, RetentionPolicy, list_snapshot_dirs

logger = logging.getLogger(__name__)

DOCUMENT_SUFFIX = ".json"
HISTORY_DIRNAME = "history"


@dataclass
class PutResult:
    """Outcome of a successful ``put``.

    ``prune_error`` is set when retention failed after the write landed;
    the write itself still succeeded.
    """

    snapshot: int | None = None
    pruned: list[int] = field(default_factory=list)
    prune_error: str | None = None


class SnapshotStore:
    def __init__(
        self,
        data_dir: str | Path,
        policy: RetentionPolicy,
        clock: Clock = time.time,
        locks: KeyedLock | None = None,
    ):
        self.data_dir = Path(data_dir)
        self.policy = policy
        self._clock = clock
        self._locks = locks if locks is not None else KeyedLock()

    def live_path(self, key: str) -> Path:
        return self.data_dir / f"{validate_key(key)}{DOCUMENT_SUFFIX}"

    def history_dir(self, key: str) -> Path:
        return self.data_dir / HISTORY_DIRNAME / validate_key(key)

    def put(self, key: str, content: bytes) -> PutResult:
        """Store ``content`` as the live document for ``key``.

        Raises:
            InvalidKey: If ``key`` is not a safe file name.
            StorageError: If the snapshot or the overwrite fails. The live
                document is unchanged in that case.
        """
        live = self.live_path(key)
        history_dir = self.history_dir(key)
        result = PutResult()

        with self._locks.hold(key):
            if live.exists():
                result.snapshot = self._capture(live, history_dir)

            try:
                write_atomic(live, content)
            except OSError as e:
                raise StorageError(f"Failed to write {live.name}: {e}") from e

            try:
                result.pruned = self.policy.prune(history_dir)
            except OSError as e:
                logger.error(f"Retention prune failed for {key}: {e}")
                result.prune_error = str(e)

        return result

    def _capture(self, live: Path, history_dir: Path) -> int | None:
        """Copy the current live file into this second's snapshot directory.

        Returns the snapshot timestamp, or None when a snapshot for this
        second already exists.
        """
        now = int(self._clock())
        snapshot_dir = history_dir / str(now)
        try:
            history_dir.mkdir(parents=True, exist_ok=True)
            snapshot_dir.mkdir()
        except FileExistsError:
            logger.debug(f"Snapshot {snapshot_dir.name} already exists for {history_dir.name}")
            return None
        except OSError as e:
            raise StorageError(f"Failed to create snapshot for {history_dir.name}: {e}") from e

        try:
            shutil.copy2(live, snapshot_dir / live.name)
        except OSError as e:
            shutil.rmtree(snapshot_dir, ignore_errors=True)
            raise StorageError(f"Failed to snapshot {live.name}: {e}") from e

        logger.info(f"Saved snapshot {now} for {history_dir.name}")
        return now

    def get(self, key: str) -> bytes:
        """Return the live document for ``key``.

        Raises:
            DocumentNotFound: If nothing has been stored for ``key`` yet.
            StorageError: On any other read failure.
        """
        live = self.live_path(key)
        with self._locks.hold(key):
            try:
                return live.read_bytes()
            except FileNotFoundError:
                raise DocumentNotFound(key)
            except OSError as e:
                raise StorageError(f"Failed to read {live.name}: {e}") from e

    def list_snapshots(self, key: str) -> list[int]:
        """Snapshot timestamps for ``key``, oldest first."""
        history_dir = self.history_dir(key)
        with self._locks.hold(key):
            try:
                return [s.timestamp for s in list_snapshot_dirs(history_dir)]
            except OSError as e:
                raise StorageError(f"Failed to list snapshots for {key}: {e}") from e

    def prune(self, key: str) -> list[int]:
        """Run the active retention policy for ``key`` on its own."""
        history_dir = self.history_dir(key)
        with self._locks.hold(key):
            try:
                return self.policy.prune(history_dir)
            except OSError as e:
                raise StorageError(f"Retention prune failed for {key}: {e}") from e
