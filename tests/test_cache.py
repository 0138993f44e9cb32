"""Tests for the persistent player-stats cache."""

import json
import signal
import time

import pytest

from match_forecaster.data import cache as cache_module
from match_forecaster.data.cache import PlayerStatsCache, register_shutdown_flush
from match_forecaster.models.player import PlayerStat

HOUR = 3600.0


class FakeClock:
    def __init__(self, now=1_790_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class CountingCache(PlayerStatsCache):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.writes = 0

    def flush(self, force=False):
        written = super().flush(force)
        if written:
            self.writes += 1
        return written


def wait_for(predicate, timeout=3.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache_path(tmp_path):
    return tmp_path / "cache" / "playerStatsCache.json"


class TestLookup:
    def test_update_then_lookup(self, cache_path, clock):
        cache = PlayerStatsCache(str(cache_path), clock=clock, save_debounce_s=60)
        cache.update(7998, PlayerStat(rating=1.07))

        entry = cache.lookup(7998)

        assert entry.stats.rating == 1.07
        assert entry.timestamp == clock.now
        cache.close()

    def test_null_stats_are_a_known_miss(self, cache_path, clock):
        cache = PlayerStatsCache(str(cache_path), clock=clock, save_debounce_s=60)
        cache.update(9216, None)

        entry = cache.lookup(9216)

        assert entry is not None
        assert entry.stats is None
        cache.close()

    def test_expired_entry_is_deleted(self, cache_path, clock):
        cache = PlayerStatsCache(str(cache_path), expiration_hours=24, clock=clock, save_debounce_s=60)
        cache.update(1, PlayerStat(rating=1.0))

        clock.advance(24 * HOUR)
        assert cache.lookup(1) is not None

        clock.advance(1)
        assert cache.lookup(1) is None
        assert 1 not in cache
        cache.close()

    def test_disabled_cache_never_expires(self, cache_path, clock):
        cache = PlayerStatsCache(str(cache_path), enabled=False, clock=clock)
        cache.update(1, PlayerStat(rating=1.0))
        clock.advance(1000 * HOUR)

        assert cache.lookup(1) is not None
        assert cache.flush(force=True) is False
        assert not cache_path.exists()


class TestPersistence:
    def test_flush_writes_ordered_pairs(self, cache_path, clock):
        cache = PlayerStatsCache(str(cache_path), clock=clock, save_debounce_s=60)
        cache.update(11893, PlayerStat(rating=1.31))
        cache.update(9216, None)

        assert cache.flush() is True

        rows = json.loads(cache_path.read_text())
        assert [row[0] for row in rows] == [11893, 9216]
        assert rows[0][1]["stats"]["rating"] == 1.31
        assert rows[1][1] == {"stats": None, "timestamp": clock.now}
        cache.close()

    def test_flush_without_changes_is_a_no_op(self, cache_path, clock):
        cache = PlayerStatsCache(str(cache_path), clock=clock)
        assert cache.flush() is False
        assert not cache_path.exists()

    def test_load_round_trip_and_prune(self, cache_path, clock):
        writer = PlayerStatsCache(str(cache_path), clock=clock, save_debounce_s=60)
        writer.update(1, PlayerStat(rating=1.1))
        clock.advance(20 * HOUR)
        writer.update(2, PlayerStat(rating=0.95))
        writer.close()

        clock.advance(5 * HOUR)
        reader = PlayerStatsCache(str(cache_path), clock=clock, save_debounce_s=60)

        assert reader.load() == 1
        assert reader.lookup(1) is None
        assert reader.lookup(2).stats.rating == 0.95
        reader.close()

    @pytest.mark.parametrize("content", ["{broken", json.dumps({"1": {}}), json.dumps([[1, {"stats": None}]])])
    def test_corrupt_file_starts_empty(self, cache_path, clock, content):
        cache_path.parent.mkdir(parents=True)
        cache_path.write_text(content)
        cache = PlayerStatsCache(str(cache_path), clock=clock)

        assert cache.load() == 0
        assert len(cache) == 0

    def test_missing_file_starts_empty(self, cache_path, clock):
        assert PlayerStatsCache(str(cache_path), clock=clock).load() == 0

    def test_disabled_cache_skips_load(self, cache_path, clock):
        cache_path.parent.mkdir(parents=True)
        cache_path.write_text(json.dumps([[1, {"stats": None, "timestamp": clock.now}]]))
        cache = PlayerStatsCache(str(cache_path), enabled=False, clock=clock)

        assert cache.load() == 0
        assert len(cache) == 0


class TestDebouncedWrites:
    def test_burst_of_updates_is_written_once(self, cache_path):
        cache = CountingCache(str(cache_path), save_debounce_s=0.2)
        for player_id in range(5):
            cache.update(player_id, PlayerStat(rating=1.0))

        assert wait_for(cache_path.exists)
        time.sleep(0.3)
        assert cache.writes == 1
        assert len(json.loads(cache_path.read_text())) == 5

        cache.close()
        assert cache.writes == 1

    def test_close_writes_pending_changes(self, cache_path):
        cache = PlayerStatsCache(str(cache_path), save_debounce_s=60)
        cache.update(1, PlayerStat(rating=1.0))

        cache.close()

        assert json.loads(cache_path.read_text())[0][0] == 1

    def test_close_is_idempotent(self, cache_path):
        cache = CountingCache(str(cache_path), save_debounce_s=60)
        cache.update(1, PlayerStat(rating=1.0))
        cache.close()
        cache.close()
        assert cache.writes == 1


class TestShutdownFlush:
    def test_registers_atexit_and_signal_handlers(self, cache_path, monkeypatch):
        registered = []
        handlers = {}
        previous_calls = []

        def previous_handler(signum, frame):
            previous_calls.append(signum)

        monkeypatch.setattr(cache_module.atexit, "register", registered.append)
        monkeypatch.setattr(cache_module.signal, "getsignal", lambda signum: previous_handler)
        monkeypatch.setattr(cache_module.signal, "signal", lambda signum, handler: handlers.__setitem__(signum, handler))

        cache = PlayerStatsCache(str(cache_path), save_debounce_s=60)
        cache.update(1, PlayerStat(rating=1.0))
        register_shutdown_flush(cache)

        assert registered == [cache.close]
        assert set(handlers) == {signal.SIGINT, signal.SIGTERM}

        handlers[signal.SIGTERM](signal.SIGTERM, None)

        assert cache_path.exists()
        assert previous_calls == [signal.SIGTERM]

    def test_default_previous_handler_exits(self, cache_path, monkeypatch):
        handlers = {}
        monkeypatch.setattr(cache_module.atexit, "register", lambda fn: None)
        monkeypatch.setattr(cache_module.signal, "getsignal", lambda signum: signal.SIG_DFL)
        monkeypatch.setattr(cache_module.signal, "signal", lambda signum, handler: handlers.__setitem__(signum, handler))

        register_shutdown_flush(PlayerStatsCache(str(cache_path)))

        with pytest.raises(SystemExit) as excinfo:
            handlers[signal.SIGTERM](signal.SIGTERM, None)
        assert excinfo.value.code == 128 + signal.SIGTERM
