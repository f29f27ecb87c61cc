from .files import validate_key, write_atomic, dir_size
from .locks import KeyedLock
from .retention import (
    AgeRetention,
    CountRetention,
    RetentionPolicy,
    SizeRetention,
    SnapshotDir,
    list_snapshot_dirs,
)
from .snapshots import PutResult, SnapshotStore

__all__ = [
    "validate_key",
    "write_atomic",
    "dir_size",
    "KeyedLock",
    "AgeRetention",
    "CountRetention",
    "RetentionPolicy",
    "SizeRetention",
    "SnapshotDir",
    "list_snapshot_dirs",
    "PutResult",
    "SnapshotStore",
]
