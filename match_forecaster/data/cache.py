"""
Persistent player-stats cache.

Entries map a player id to the last fetched stats (or ``None`` for a
known miss) with the time they were stored. The table is kept in memory
and written to a JSON file as an ordered list of ``[player_id, entry]``
pairs. Writes are coalesced by a background flusher thread: every
mutation marks the cache dirty and the flusher writes once no further
mutation has arrived for ``save_debounce_s`` seconds. ``flush()`` writes
synchronously and is what shutdown hooks call.
"""

from __future__ import annotations

import atexit
import json
import logging
import os
import signal
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional

from ..config import CacheConfig
from ..models.player import PlayerId, PlayerStat

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """Cached stats for one player; ``stats=None`` records a known miss."""

    stats: Optional[PlayerStat]
    timestamp: float

    def to_dict(self) -> dict:
        return {
            "stats": self.stats.to_dict() if self.stats is not None else None,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CacheEntry":
        stats = data.get("stats")
        return cls(
            stats=PlayerStat.from_dict(stats) if stats is not None else None,
            timestamp=float(data["timestamp"]),
        )


def _is_valid_row(row) -> bool:
    if not isinstance(row, list) or len(row) != 2:
        return False
    key, entry = row
    if isinstance(key, bool) or not isinstance(key, (int, str)):
        return False
    if not isinstance(entry, dict):
        return False
    timestamp = entry.get("timestamp")
    if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
        return False
    return entry.get("stats") is None or isinstance(entry.get("stats"), dict)


class PlayerStatsCache:
    """
    TTL cache of player stats with debounced persistence.

    Usage:
        cache = PlayerStatsCache("cache/playerStatsCache.json", expiration_hours=24)
        cache.load()
        entry = cache.lookup(7998)
        cache.update(7998, stats)
        cache.close()  # final synchronous write
    """

    def __init__(
        self,
        path: str,
        expiration_hours: float = 24.0,
        save_debounce_s: float = 2.0,
        enabled: bool = True,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize cache.

        Args:
            path: JSON file backing the cache
            expiration_hours: Entry lifetime; <= 0 disables expiry
            save_debounce_s: Quiet period before a background write
            enabled: False keeps everything in memory with no expiry (test mode)
            clock: Time source returning epoch seconds
        """
        self.path = Path(path)
        self.expiration_hours = expiration_hours
        self.save_debounce_s = save_debounce_s
        self.enabled = enabled
        self.clock = clock

        self._entries: Dict[PlayerId, CacheEntry] = {}
        self._lock = threading.RLock()
        self._dirty = threading.Event()
        self._closed = threading.Event()
        self._pending_write = False
        self._flusher: Optional[threading.Thread] = None

    @classmethod
    def from_config(cls, config: CacheConfig) -> "PlayerStatsCache":
        return cls(
            path=str(config.path),
            expiration_hours=config.expiration_hours,
            save_debounce_s=config.save_debounce_s,
            enabled=config.enabled,
        )

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, player_id) -> bool:
        return player_id in self._entries

    # --- loading -----------------------------------------------------------

    def load(self) -> int:
        """
        Load entries from disk, dropping expired ones.

        A missing or corrupt file leaves the cache empty.

        Returns:
            Number of entries kept after pruning
        """
        if not self.enabled:
            logger.info("Cache persistence disabled, skipping cache load from file.")
            return 0

        try:
            with open(self.path, "r") as f:
                rows = json.load(f)
        except FileNotFoundError:
            logger.info(f"No cache file found at {self.path}, starting with empty cache")
            return 0
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error loading cache from {self.path}: {e}. Starting with empty cache.")
            return 0

        if not isinstance(rows, list) or not all(_is_valid_row(row) for row in rows):
            logger.error(f"Invalid cache file format in {self.path}. Starting with empty cache.")
            return 0

        with self._lock:
            self._entries = {key: CacheEntry.from_dict(entry) for key, entry in rows}
        logger.info(f"Loaded {len(rows)} player stats entries from cache.")
        self.prune_expired()
        return len(self._entries)

    # --- reads and writes --------------------------------------------------

    def lookup(self, player_id: PlayerId) -> Optional[CacheEntry]:
        """
        Return the fresh entry for a player, or None on a miss.

        An expired entry is deleted and reported as a miss.
        """
        with self._lock:
            entry = self._entries.get(player_id)
            if entry is None:
                return None
            if self._is_expired(entry):
                logger.debug(f"Cache expired for player ID {player_id}.")
                del self._entries[player_id]
                expired = True
            else:
                expired = False
        if expired:
            self._schedule_save()
            return None
        return entry

    def update(self, player_id: PlayerId, stats: Optional[PlayerStat]) -> CacheEntry:
        entry = CacheEntry(stats=stats, timestamp=self.clock())
        with self._lock:
            self._entries[player_id] = entry
        self._schedule_save()
        return entry

    def prune_expired(self) -> int:
        with self._lock:
            expired = [key for key, entry in self._entries.items() if self._is_expired(entry)]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.info(f"Pruned {len(expired)} expired entries from cache.")
            self._schedule_save()
        return len(expired)

    def _is_expired(self, entry: CacheEntry) -> bool:
        if not self.enabled or self.expiration_hours <= 0:
            return False
        return self.clock() - entry.timestamp > self.expiration_hours * 3600.0

    # --- persistence -------------------------------------------------------

    def _schedule_save(self) -> None:
        if not self.enabled or self._closed.is_set():
            return
        with self._lock:
            self._pending_write = True
            if self._flusher is None or not self._flusher.is_alive():
                self._flusher = threading.Thread(
                    target=self._flush_loop, name="player-stats-cache-flusher", daemon=True
                )
                self._flusher.start()
        self._dirty.set()

    def _flush_loop(self) -> None:
        while not self._closed.is_set():
            self._dirty.wait()
            if self._closed.is_set():
                return
            # Restart the quiet period while mutations keep arriving.
            while True:
                self._dirty.clear()
                if self._closed.wait(self.save_debounce_s):
                    return
                if not self._dirty.is_set():
                    break
            try:
                self.flush()
            except OSError as e:
                logger.error(f"Error saving cache (debounced): {e}")

    def snapshot(self) -> List[list]:
        with self._lock:
            return [[key, entry.to_dict()] for key, entry in self._entries.items()]

    def flush(self, force: bool = False) -> bool:
        """
        Write the cache to disk synchronously.

        Args:
            force: Write even if nothing changed since the last write

        Returns:
            True if the file was written
        """
        if not self.enabled:
            return False
        with self._lock:
            if not (self._pending_write or force):
                return False
            for key in [k for k, e in self._entries.items() if self._is_expired(e)]:
                del self._entries[key]
            rows = self.snapshot()
            self._pending_write = False

            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_name(self.path.name + ".tmp")
            with open(tmp_path, "w") as f:
                json.dump(rows, f, indent=2)
            os.replace(tmp_path, self.path)
        logger.info(f"Saved {len(rows)} player stats entries to cache ({self.path})")
        return True

    def close(self) -> None:
        """Stop the background flusher and write any pending changes."""
        if self._closed.is_set():
            return
        self._closed.set()
        self._dirty.set()
        flusher = self._flusher
        if flusher is not None and flusher is not threading.current_thread():
            flusher.join(timeout=max(self.save_debounce_s, 1.0) + 5.0)
        try:
            self.flush()
        except OSError as e:
            logger.error(f"Error saving cache synchronously: {e}")

    def __enter__(self) -> "PlayerStatsCache":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def register_shutdown_flush(cache: PlayerStatsCache) -> None:
    """
    Guarantee a final synchronous cache write on interpreter exit.

    Registers an ``atexit`` hook and, when called from the main thread,
    SIGINT/SIGTERM handlers that flush before deferring to the previous
    handler.
    """
    atexit.register(cache.close)

    if threading.current_thread() is not threading.main_thread():
        return

    for signum in (signal.SIGINT, signal.SIGTERM):
        previous = signal.getsignal(signum)

        def _handler(received, frame, _previous=previous):
            logger.info(f"Received {signal.Signals(received).name}. Saving cache before exit...")
            cache.close()
            if callable(_previous):
                _previous(received, frame)
            elif _previous == signal.SIG_IGN:
                return
            else:
                raise SystemExit(128 + received)

        signal.signal(signum, _handler)
