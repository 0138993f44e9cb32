"""Configuration for the match forecaster.

Every tunable is a dataclass field with a production default. A JSON file
can override any subset of fields, section by section:

    {
        "api": {"delay_between_calls_s": 5},
        "prediction": {"scaling_factor": 8}
    }
"""

from __future__ import annotations

import json
import logging
import math
import os
from dataclasses import dataclass, field, fields, asdict
from pathlib import Path
from typing import Dict, List, Optional

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

API_URL_ENV = "CS_FORECASTER_API_URL"


@dataclass
class ApiConfig:
    base_url: str = "http://localhost:8080/api"
    delay_between_calls_s: float = 15.0
    max_concurrent_requests: int = 1
    request_timeout_s: float = 30.0
    retry_attempts: int = 3
    retry_delay_s: float = 5.0  # multiplied by the attempt number
    h2h_result_count: int = 20
    transient_error_codes: List[str] = field(
        default_factory=lambda: ["ECONNRESET", "ETIMEDOUT", "ECONNREFUSED"]
    )
    transient_status_codes: List[int] = field(default_factory=lambda: [429, 503])
    transient_error_patterns: List[str] = field(
        default_factory=lambda: [
            "rate limit",
            "timeout",
            "temporarily unavailable",
            "network error",
            "socket hang up",
        ]
    )


@dataclass
class CacheConfig:
    directory: str = "cache"
    player_stats_file: str = "playerStatsCache.json"
    save_debounce_s: float = 2.0
    expiration_hours: float = 24.0
    enabled: bool = True  # False keeps the cache in memory with no expiry

    @property
    def path(self) -> Path:
        return Path(self.directory) / self.player_stats_file


@dataclass
class PlayerImpactConfig:
    default_rating: float = 0.9
    min_rating: float = 0.5
    max_rating: float = 2.0

    kpr_base: float = 0.7
    kpr_max_multiplier: float = 1.5
    headshot_base: float = 50.0
    headshot_max_multiplier: float = 1.3
    round_contribution_base: float = 70.0
    round_contribution_max_multiplier: float = 1.3
    maps_played_base: float = 50.0
    maps_played_max_multiplier: float = 1.2
    dpr_base: float = 0.7
    dpr_min_multiplier: float = 0.5

    weights: Dict[str, float] = field(
        default_factory=lambda: {
            "fragging": 0.3,
            "consistency": 0.2,
            "impact": 0.3,
            "survival": 0.2,
        }
    )


@dataclass
class PredictionConfig:
    rating_threshold: float = 0.05  # strength gap below which teams count as tied
    rank_nudge_scale: float = 0.001
    rank_nudge_max: float = 0.02
    h2h_min_matches: int = 3
    h2h_max_effect: float = 0.1
    h2h_scale: float = 0.2
    map_max_effect: float = 0.08
    scaling_factor: float = 10.0
    min_probability: float = 0.05
    max_probability: float = 0.95


@dataclass
class DataQualityConfig:
    high_threshold: float = 0.8
    medium_threshold: float = 0.5
    low_threshold: float = 0.3

    min_players_with_stats: int = 3  # per team
    expected_data_points: int = 6  # per player
    min_h2h_matches: int = 2
    min_recent_h2h_matches: int = 1
    min_map_matches: int = 2
    recent_window_days: int = 90

    no_player_stats_penalty: float = 0.4
    insufficient_h2h_penalty: float = 0.6
    insufficient_recent_h2h_penalty: float = 0.8
    insufficient_map_data_penalty: float = 0.9
    missing_rank_penalty: float = 0.95
    default_confidence: float = 0.9
    low_quality_cap: float = 0.4

    weights: Dict[str, float] = field(
        default_factory=lambda: {
            "player_stats": 0.40,
            "h2h": 0.30,
            "map_stats": 0.15,
            "rank": 0.15,
        }
    )


@dataclass
class SchedulerConfig:
    interval_hours: float = 24.0  # time between scheduled cycles
    accuracy_alert_threshold: float = 60.0  # percent; weekly accuracy below this is logged as a warning

    @property
    def interval_s(self) -> float:
        return self.interval_hours * 3600.0


_SECTIONS = {
    "api": ApiConfig,
    "cache": CacheConfig,
    "player": PlayerImpactConfig,
    "prediction": PredictionConfig,
    "quality": DataQualityConfig,
    "scheduler": SchedulerConfig,
}


@dataclass
class ForecasterConfig:
    api: ApiConfig = field(default_factory=ApiConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    player: PlayerImpactConfig = field(default_factory=PlayerImpactConfig)
    prediction: PredictionConfig = field(default_factory=PredictionConfig)
    quality: DataQualityConfig = field(default_factory=DataQualityConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)

    @classmethod
    def from_dict(cls, data: Dict) -> "ForecasterConfig":
        """Merge a partial config mapping over the defaults and validate it."""
        if not isinstance(data, dict):
            raise ConfigurationError("configuration must be a JSON object")

        unknown = sorted(set(data) - set(_SECTIONS))
        if unknown:
            raise ConfigurationError(f"unknown configuration sections: {', '.join(unknown)}")

        sections = {}
        for name, section_cls in _SECTIONS.items():
            overrides = data.get(name)
            if overrides is None:
                overrides = {}
            if not isinstance(overrides, dict):
                raise ConfigurationError(f"configuration section '{name}' must be an object")
            known = {f.name for f in fields(section_cls)}
            bad_keys = sorted(set(overrides) - known)
            if bad_keys:
                raise ConfigurationError(f"unknown keys in '{name}': {', '.join(bad_keys)}")
            merged = asdict(section_cls())
            for key, value in overrides.items():
                if isinstance(merged.get(key), dict) and isinstance(value, dict):
                    merged[key] = {**merged[key], **value}
                else:
                    merged[key] = value
            sections[name] = section_cls(**merged)

        config = cls(**sections)
        config.validate()
        return config

    def to_dict(self) -> Dict:
        return asdict(self)

    def validate(self) -> None:
        errors = _validation_errors(self)
        if errors:
            raise ConfigurationError("invalid configuration: " + "; ".join(errors))


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _check_numbers(
    errors: List[str], section: str, obj, names, minimum: Optional[float] = None, positive: bool = False
) -> bool:
    """Append an error for each field that is not a number in range. Returns True when all pass."""
    ok = True
    for name in names:
        value = getattr(obj, name)
        if not _is_number(value):
            errors.append(f"{section}.{name} must be a number")
            ok = False
        elif positive and value <= 0:
            errors.append(f"{section}.{name} must be positive")
            ok = False
        elif minimum is not None and value < minimum:
            errors.append(f"{section}.{name} must be >= {minimum}")
            ok = False
    return ok


def _check_ints(errors: List[str], section: str, obj, names, minimum: int) -> bool:
    ok = True
    for name in names:
        value = getattr(obj, name)
        if not _is_int(value) or value < minimum:
            errors.append(f"{section}.{name} must be an integer >= {minimum}")
            ok = False
    return ok


def _check_weights(errors: List[str], section: str, weights, expected) -> None:
    if not isinstance(weights, dict) or set(weights) != set(expected):
        errors.append(f"{section}.weights must define {', '.join(expected[:-1])} and {expected[-1]}")
    elif any(not _is_number(w) or w < 0 for w in weights.values()) or sum(weights.values()) <= 0:
        errors.append(f"{section}.weights must be non-negative with a positive sum")


def _validation_errors(config: ForecasterConfig) -> List[str]:
    errors: List[str] = []

    api = config.api
    if not isinstance(api.base_url, str) or not api.base_url:
        errors.append("api.base_url must be a non-empty string")
    _check_ints(errors, "api", api, ("max_concurrent_requests", "retry_attempts", "h2h_result_count"), 1)
    _check_numbers(errors, "api", api, ("delay_between_calls_s", "retry_delay_s"), minimum=0)
    _check_numbers(errors, "api", api, ("request_timeout_s",), positive=True)
    if not isinstance(api.transient_status_codes, list) or not all(_is_int(c) for c in api.transient_status_codes):
        errors.append("api.transient_status_codes must be a list of integers")
    for name in ("transient_error_codes", "transient_error_patterns"):
        value = getattr(api, name)
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            errors.append(f"api.{name} must be a list of strings")

    cache = config.cache
    _check_numbers(errors, "cache", cache, ("save_debounce_s",), minimum=0)
    _check_numbers(errors, "cache", cache, ("expiration_hours",))
    if not isinstance(cache.enabled, bool):
        errors.append("cache.enabled must be true or false")

    player = config.player
    if _check_numbers(errors, "player", player, ("min_rating", "max_rating", "default_rating")):
        if player.min_rating > player.max_rating:
            errors.append("player.min_rating must not exceed player.max_rating")
    _check_numbers(
        errors,
        "player",
        player,
        ("kpr_base", "headshot_base", "round_contribution_base", "maps_played_base", "dpr_base"),
        positive=True,
    )
    _check_numbers(
        errors,
        "player",
        player,
        (
            "kpr_max_multiplier",
            "headshot_max_multiplier",
            "round_contribution_max_multiplier",
            "maps_played_max_multiplier",
            "dpr_min_multiplier",
        ),
        minimum=0,
    )
    _check_weights(errors, "player", player.weights, ["fragging", "consistency", "impact", "survival"])

    prediction = config.prediction
    if _check_numbers(errors, "prediction", prediction, ("min_probability", "max_probability")):
        if not (0 < prediction.min_probability <= prediction.max_probability < 1):
            errors.append("prediction probability clamp must satisfy 0 < min <= max < 1")
    _check_numbers(errors, "prediction", prediction, ("scaling_factor",), positive=True)
    _check_numbers(
        errors,
        "prediction",
        prediction,
        ("rank_nudge_scale", "rank_nudge_max", "h2h_max_effect", "h2h_scale", "map_max_effect", "rating_threshold"),
        minimum=0,
    )
    _check_ints(errors, "prediction", prediction, ("h2h_min_matches",), 1)

    quality = config.quality
    _check_weights(errors, "quality", quality.weights, ["player_stats", "h2h", "map_stats", "rank"])
    if _check_numbers(errors, "quality", quality, ("low_threshold", "medium_threshold", "high_threshold")):
        if not (quality.low_threshold <= quality.medium_threshold <= quality.high_threshold):
            errors.append("quality thresholds must satisfy low <= medium <= high")
    _check_ints(errors, "quality", quality, ("expected_data_points",), 1)
    _check_ints(
        errors,
        "quality",
        quality,
        ("min_players_with_stats", "min_h2h_matches", "min_recent_h2h_matches", "min_map_matches", "recent_window_days"),
        0,
    )
    _check_numbers(
        errors,
        "quality",
        quality,
        (
            "no_player_stats_penalty",
            "insufficient_h2h_penalty",
            "insufficient_recent_h2h_penalty",
            "insufficient_map_data_penalty",
            "missing_rank_penalty",
            "default_confidence",
            "low_quality_cap",
        ),
        minimum=0,
    )

    scheduler = config.scheduler
    _check_numbers(errors, "scheduler", scheduler, ("interval_hours",), positive=True)
    if _check_numbers(errors, "scheduler", scheduler, ("accuracy_alert_threshold",), minimum=0):
        if scheduler.accuracy_alert_threshold > 100:
            errors.append("scheduler.accuracy_alert_threshold must be a percentage <= 100")

    return errors


def load_config(path: Optional[str] = None) -> ForecasterConfig:
    """
    Load configuration from a JSON file.

    Args:
        path: Config file path. ``None`` returns the built-in defaults.

    Returns:
        Validated ForecasterConfig

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid.
    """
    if path is None:
        config = ForecasterConfig()
    else:
        config_path = Path(path)
        try:
            with open(config_path, "r") as f:
                data = json.load(f)
        except FileNotFoundError as exc:
            raise ConfigurationError(f"config file not found: {config_path}") from exc
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigurationError(f"could not read config file {config_path}: {exc}") from exc
        config = ForecasterConfig.from_dict(data)
        logger.info(f"Loaded configuration from {config_path}")

    api_url = os.getenv(API_URL_ENV)
    if api_url:
        config.api.base_url = api_url
    return config
