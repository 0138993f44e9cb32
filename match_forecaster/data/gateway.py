"""
Rate-limited, cached, retrying access to a stats source.

All upstream calls go through one limiter (default width 1), wait a fixed
delay before every call, and are retried with linear backoff
(``retry_delay_s * attempt``) while the failure looks transient. Failures
never escape the gateway: callers get ``None`` (or an empty value) and the
cause is logged and attached to ``FetchResult``.
"""

from __future__ import annotations

import asyncio
import errno
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional

from ..config import ApiConfig
from ..errors import DataValidationError, PermanentSourceError, TransientSourceError
from ..models.match import MatchResult, ScheduledMatch
from ..models.player import PlayerId, PlayerStat
from ..models.team import HeadToHeadRecord, TeamId, TeamRoster
from .cache import PlayerStatsCache
from .sources.base import StatsSource

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


@dataclass
class FetchResult:
    """Outcome of a player-stats fetch; ``stats`` is None when no data is available."""

    stats: Optional[PlayerStat]
    from_cache: bool = False
    attempts: int = 0
    cause: Optional[BaseException] = None

    @property
    def found(self) -> bool:
        return self.stats is not None


@dataclass
class _RequestOutcome:
    value: Any = None
    error: Optional[BaseException] = None
    attempts: int = 0


_CODE_BY_TYPE = (
    (ConnectionResetError, "ECONNRESET"),
    (ConnectionRefusedError, "ECONNREFUSED"),
    (asyncio.TimeoutError, "ETIMEDOUT"),
    (TimeoutError, "ETIMEDOUT"),
)


def error_code(error: BaseException) -> Optional[str]:
    """Best-effort errno-style code for an exception (e.g. ``ETIMEDOUT``)."""
    code = getattr(error, "code", None)
    if isinstance(code, str) and code:
        return code
    for error_type, name in _CODE_BY_TYPE:
        if isinstance(error, error_type):
            return name
    if isinstance(error, OSError) and error.errno in errno.errorcode:
        return errno.errorcode[error.errno]
    return None


def error_status(error: BaseException) -> Optional[int]:
    status = getattr(error, "status", None)
    if isinstance(status, int):
        return status
    response = getattr(error, "response", None)
    status_code = getattr(response, "status_code", None)
    return status_code if isinstance(status_code, int) else None


def is_transient_error(error: Optional[BaseException], config: ApiConfig) -> bool:
    """
    Decide whether a failed call is worth retrying.

    Explicitly typed source errors decide for themselves; anything else is
    transient if its code, status or message matches the configured sets.
    """
    if error is None:
        return False
    if isinstance(error, (PermanentSourceError, DataValidationError)):
        return False
    if isinstance(error, TransientSourceError):
        return True

    code = error_code(error)
    if code and code in config.transient_error_codes:
        return True
    status = error_status(error)
    if status is not None and status in config.transient_status_codes:
        return True
    message = str(error).lower()
    return any(pattern and pattern.lower() in message for pattern in config.transient_error_patterns)


class FetchGateway:
    """
    Shields a StatsSource behind a limiter, a delay, retries and a cache.

    One instance is shared by every component of a run; it owns the
    player-stats cache.

    Usage:
        gateway = FetchGateway(source, cache, config.api)
        stats = await gateway.get_player_stats(7998, "s1mple")
    """

    def __init__(
        self,
        source: StatsSource,
        cache: PlayerStatsCache,
        config: Optional[ApiConfig] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        """
        Initialize gateway.

        Args:
            source: Upstream stats source (blocking calls run in worker threads)
            cache: Player-stats cache owned by this gateway
            config: Rate-limit, timeout and retry settings
            sleep: Awaitable sleep used for delays and backoff
        """
        self.source = source
        self.cache = cache
        self.config = config or ApiConfig()
        self._sleep = sleep
        self._limiter: Optional[asyncio.Semaphore] = None
        self._limiter_loop = None

    # --- player stats ------------------------------------------------------

    async def get_player_stats(self, player_id: PlayerId, display_name: str = "Unknown") -> Optional[PlayerStat]:
        result = await self.fetch_player_stats(player_id, display_name)
        return result.stats

    async def fetch_player_stats(self, player_id: PlayerId, display_name: str = "Unknown") -> FetchResult:
        """
        Fetch one player's stats, serving fresh cache entries without an upstream call.

        Args:
            player_id: Source identifier of the player
            display_name: Name used in log messages

        Returns:
            FetchResult; ``stats`` is None for misses, invalid data and failures
        """
        context = f"fetch_player_stats(ID: {player_id}, Name: {display_name})"

        entry = self.cache.lookup(player_id)
        if entry is not None:
            logger.debug(f"[Cache] HIT for player ID {player_id} ({display_name})")
            return FetchResult(stats=entry.stats, from_cache=True)
        logger.debug(f"[Cache] MISS for player ID {player_id} ({display_name})")

        outcome = await self._retryable_request(lambda: self.source.get_player_stats(player_id), context)

        if outcome.error is not None:
            logger.error(
                f"Error in {context} after {outcome.attempts} attempt(s): {outcome.error}. Caching null."
            )
            self.cache.update(player_id, None)
            return FetchResult(stats=None, attempts=outcome.attempts, cause=outcome.error)

        stats = outcome.value
        if isinstance(stats, dict):
            stats = PlayerStat.from_dict(stats)

        if stats is None:
            logger.warning(f"No stats found for player ID {player_id} ({display_name}). Caching null.")
            self.cache.update(player_id, None)
            return FetchResult(stats=None, attempts=outcome.attempts)

        if not isinstance(stats, PlayerStat) or not stats.has_valid_rating():
            rating = getattr(stats, "rating", None)
            cause = DataValidationError(f"invalid rating for player {player_id}: {rating!r}")
            logger.warning(f"Invalid rating found for player ID {player_id} ({display_name}). Rating: {rating}. Caching null.")
            self.cache.update(player_id, None)
            return FetchResult(stats=None, attempts=outcome.attempts, cause=cause)

        logger.debug(f"Fetched stats for player ID {player_id} ({display_name}). Rating: {stats.rating}")
        self.cache.update(player_id, stats)
        return FetchResult(stats=stats, attempts=outcome.attempts)

    # --- other endpoints ---------------------------------------------------

    async def get_roster(self, team_name: str) -> Optional[TeamRoster]:
        context = f"get_roster({team_name})"
        outcome = await self._retryable_request(lambda: self.source.get_roster(team_name), context)
        if outcome.error is not None:
            logger.error(f"Error in {context}: {outcome.error}. Returning None.")
            return None
        if outcome.value is None:
            logger.warning(f"No team data found for name: {team_name}")
        return outcome.value

    async def get_head_to_head(self, team1_id: TeamId, team2_id: TeamId) -> HeadToHeadRecord:
        context = f"get_head_to_head(T1: {team1_id}, T2: {team2_id})"
        outcome = await self._retryable_request(lambda: self.source.get_head_to_head(team1_id, team2_id), context)
        if outcome.error is not None:
            logger.error(f"Failed to get H2H results for {team1_id} vs {team2_id}: {outcome.error}")
            return HeadToHeadRecord.empty()
        if not isinstance(outcome.value, HeadToHeadRecord):
            logger.warning(f"Invalid H2H record received for {team1_id} vs {team2_id}.")
            return HeadToHeadRecord.empty()
        return outcome.value

    async def get_daily_matches(self) -> List[ScheduledMatch]:
        outcome = await self._retryable_request(self.source.get_daily_matches, "get_daily_matches")
        if outcome.error is not None:
            logger.error(f"Failed to get matches after {outcome.attempts} attempt(s): {outcome.error}")
            return []
        matches = list(outcome.value or [])
        logger.debug(f"Fetched {len(matches)} matches")
        return matches

    async def get_match_result(self, match_id) -> Optional[MatchResult]:
        context = f"get_match_result(ID: {match_id})"
        outcome = await self._retryable_request(lambda: self.source.get_match_result(match_id), context)
        if outcome.error is not None:
            logger.error(f"Failed to get result for match ID {match_id}: {outcome.error}")
            return None
        return outcome.value

    # --- request machinery -------------------------------------------------

    def _get_limiter(self) -> asyncio.Semaphore:
        loop = asyncio.get_running_loop()
        if self._limiter is None or self._limiter_loop is not loop:
            self._limiter = asyncio.Semaphore(self.config.max_concurrent_requests)
            self._limiter_loop = loop
        return self._limiter

    async def _call_upstream(self, operation: Callable[[], Any]) -> Any:
        """
        Run a blocking source call in a worker thread under the request timeout.

        A worker thread cannot be cancelled, so on timeout the caller keeps its
        limiter slot until the thread returns before the timeout is raised.
        """
        worker = asyncio.ensure_future(asyncio.to_thread(operation))
        try:
            return await asyncio.wait_for(asyncio.shield(worker), timeout=self.config.request_timeout_s)
        except asyncio.TimeoutError:
            await asyncio.gather(worker, return_exceptions=True)
            raise

    async def _retryable_request(self, operation: Callable[[], Any], context: str) -> _RequestOutcome:
        max_attempts = self.config.retry_attempts
        last_error: Optional[BaseException] = None

        for attempt in range(1, max_attempts + 1):
            if attempt > 1:
                backoff = self.config.retry_delay_s * attempt
                logger.debug(f"Retry attempt {attempt} for {context}. Waiting {backoff}s...")
                await self._sleep(backoff)
            try:
                async with self._get_limiter():
                    if self.config.delay_between_calls_s > 0:
                        await self._sleep(self.config.delay_between_calls_s)
                    value = await self._call_upstream(operation)
                return _RequestOutcome(value=value, attempts=attempt)
            except Exception as e:
                last_error = e
                if not is_transient_error(e, self.config):
                    logger.error(f"Non-transient error during {context} (Attempt {attempt}/{max_attempts}): {e!r}")
                    return _RequestOutcome(error=e, attempts=attempt)
                logger.warning(f"Transient error on attempt {attempt}/{max_attempts} for {context}: {e!r}")

        logger.error(f"All retry attempts failed for {context}. Last error: {last_error!r}")
        return _RequestOutcome(error=last_error, attempts=max_attempts)
