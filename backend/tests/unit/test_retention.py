"""Tests for storage.retention: Count / Age / Size policies."""

import pytest

from config import AppSettings, RotateType
from storage.retention import (
    SECONDS_PER_DAY,
    AgeRetention,
    CountRetention,
    RetentionPolicy,
    SizeRetention,
    list_snapshot_dirs,
)


def _make_snapshots(history_dir, timestamps, size=10):
    for ts in timestamps:
        snapshot = history_dir / str(ts)
        snapshot.mkdir(parents=True)
        (snapshot / "alice.json").write_bytes(b"x" * size)


def _remaining(history_dir):
    return [s.timestamp for s in list_snapshot_dirs(history_dir)]


@pytest.fixture
def history_dir(tmp_path):
    return tmp_path / "history" / "alice"


class TestListSnapshotDirs:
    def test_missing_dir_is_empty(self, history_dir):
        assert list_snapshot_dirs(history_dir) == []

    def test_numeric_order_not_lexicographic(self, history_dir):
        _make_snapshots(history_dir, [900, 1000, 95])
        assert _remaining(history_dir) == [95, 900, 1000]

    def test_ignores_non_timestamp_entries(self, history_dir):
        _make_snapshots(history_dir, [100])
        (history_dir / "notes").mkdir()
        (history_dir / "200").write_text("a file, not a dir")
        assert _remaining(history_dir) == [100]


class TestFromSettings:
    @pytest.mark.parametrize(
        "rotate_type, cls",
        [
            (RotateType.HISTORY_COUNT, CountRetention),
            (RotateType.STORED_TIME, AgeRetention),
            (RotateType.TOTAL_SIZE, SizeRetention),
        ],
    )
    def test_selects_single_variant(self, rotate_type, cls):
        policy = RetentionPolicy.from_settings(AppSettings(rotate_type=rotate_type))
        assert type(policy) is cls

    def test_size_in_megabytes(self):
        policy = RetentionPolicy.from_settings(
            AppSettings(rotate_type=RotateType.TOTAL_SIZE, rotate_size=3)
        )
        assert policy.max_bytes == 3 * 1024 * 1024


class TestCountRetention:
    def test_keeps_newest(self, history_dir):
        _make_snapshots(history_dir, [100, 200, 300, 400, 500])
        removed = CountRetention(2).prune(history_dir)
        assert removed == [100, 200, 300]
        assert _remaining(history_dir) == [400, 500]

    def test_under_limit_untouched(self, history_dir):
        _make_snapshots(history_dir, [100, 200])
        assert CountRetention(5).prune(history_dir) == []
        assert _remaining(history_dir) == [100, 200]

    def test_idempotent(self, history_dir):
        _make_snapshots(history_dir, [100, 200, 300])
        policy = CountRetention(1)
        policy.prune(history_dir)
        assert policy.prune(history_dir) == []
        assert _remaining(history_dir) == [300]

    def test_rejects_zero(self):
        with pytest.raises(ValueError):
            CountRetention(0)


class TestAgeRetention:
    def test_drops_older_than_cutoff(self, history_dir):
        now = 100 * SECONDS_PER_DAY
        _make_snapshots(history_dir, [
            now - 40 * SECONDS_PER_DAY,
            now - 30 * SECONDS_PER_DAY - 1,
            now - 30 * SECONDS_PER_DAY,
            now - 1,
        ])
        removed = AgeRetention(30, clock=lambda: now).prune(history_dir)
        assert removed == [now - 40 * SECONDS_PER_DAY, now - 30 * SECONDS_PER_DAY - 1]
        assert _remaining(history_dir) == [now - 30 * SECONDS_PER_DAY, now - 1]

    def test_ignores_count(self, history_dir):
        now = 100 * SECONDS_PER_DAY
        _make_snapshots(history_dir, range(now - 50, now))
        assert AgeRetention(1, clock=lambda: now).prune(history_dir) == []
        assert len(_remaining(history_dir)) == 50

    def test_idempotent(self, history_dir):
        now = 100 * SECONDS_PER_DAY
        _make_snapshots(history_dir, [1, 2, now])
        policy = AgeRetention(1, clock=lambda: now)
        assert policy.prune(history_dir) == [1, 2]
        assert policy.prune(history_dir) == []


class TestSizeRetention:
    def test_drops_oldest_until_under_budget(self, history_dir):
        _make_snapshots(history_dir, [100, 200, 300, 400], size=10)
        removed = SizeRetention(25).prune(history_dir)
        assert removed == [100, 200]
        assert _remaining(history_dir) == [300, 400]

    def test_exact_budget_kept(self, history_dir):
        _make_snapshots(history_dir, [100, 200], size=10)
        assert SizeRetention(20).prune(history_dir) == []

    def test_total_never_exceeds_budget(self, history_dir):
        _make_snapshots(history_dir, range(100, 120), size=7)
        SizeRetention(50).prune(history_dir)
        total = sum(
            f.stat().st_size for f in history_dir.rglob("*") if f.is_file()
        )
        assert total <= 50

    def test_newest_kept_even_if_over_budget(self, history_dir):
        _make_snapshots(history_dir, [100, 200], size=100)
        removed = SizeRetention(50).prune(history_dir)
        assert removed == [100]
        assert _remaining(history_dir) == [200]

    def test_counts_nested_files(self, history_dir):
        _make_snapshots(history_dir, [100, 200], size=10)
        nested = history_dir / "100" / "extra"
        nested.mkdir()
        (nested / "blob").write_bytes(b"y" * 30)
        assert SizeRetention(45).prune(history_dir) == [100]

    def test_idempotent(self, history_dir):
        _make_snapshots(history_dir, [100, 200, 300], size=10)
        policy = SizeRetention(15)
        policy.prune(history_dir)
        before = _remaining(history_dir)
        assert policy.prune(history_dir) == []
        assert _remaining(history_dir) == before
