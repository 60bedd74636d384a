# -*- coding: utf-8 -*-
# ============================================================================ #
# TapGame Core (TGC)                                                          #
# Copyright (c) 2025 MAX                                                       #
# Licensed under the MIT License                                               #
# ============================================================================ #

"""Game balance configuration.

``DEFAULT_CONFIG`` seeds ``config.json`` on first start.  ``GameConfig``
is the typed view the engine works with; invalid values are logged and fall
back to the defaults instead of failing the session.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from services.game.accrual import MAX_IDLE_HOURS, MS_PER_HOUR
from services.game.curves import DEFAULT_CURVES, TrackCurves
from services.game.levels import LEVELS, LevelInfo

logger = logging.getLogger("tgc.game.config")

DEFAULT_CONFIG: Dict[str, Any] = {
    "timezone": "UTC",
    "curves": {
        "tap": {"base_price": 1000, "cost_coefficient": 2.0,
                "base_benefit": 1, "benefit_coefficient": 2.0},
        "energy_cap": {"base_price": 1000, "cost_coefficient": 2.0,
                       "base_benefit": 500, "benefit_coefficient": 1.5},
        "mine": {"base_price": 1000, "cost_coefficient": 1.5,
                 "base_benefit": 1000, "benefit_coefficient": 1.2},
    },
    "levels": [{"name": lvl.name, "min_points": lvl.min_points} for lvl in LEVELS],
    "max_idle_hours": MAX_IDLE_HOURS,
    "daily_energy_refills": 6,
    "squad_bonus_per_level": 0.02,
    # Whether the squad multiplier also boosts mine income, not just taps.
    "squad_bonus_applies_to_idle": False,
    "base_click_speed": 1.0,
    "sync_interval_seconds": 30,
    "sync_base_url": "",
}


def _positive_number(cfg: Mapping[str, Any], key: str, default: float) -> float:
    raw = cfg.get(key, default)
    try:
        value = float(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid %s: %r. Using %s.", key, raw, default)
        return default
    if value <= 0:
        logger.warning("Non-positive %s: %r. Using %s.", key, raw, default)
        return default
    return value


def _parse_levels(raw: Any) -> Tuple[LevelInfo, ...]:
    if not isinstance(raw, list) or not raw:
        return LEVELS
    try:
        table = tuple(LevelInfo(str(item["name"]), float(item["min_points"])) for item in raw)
    except (KeyError, TypeError, ValueError) as e:
        logger.warning("Invalid level table in config (%s); using defaults", e)
        return LEVELS

    thresholds = [lvl.min_points for lvl in table]
    if thresholds[0] != 0 or thresholds != sorted(thresholds):
        logger.warning("Level table must start at 0 and ascend; using defaults")
        return LEVELS
    return table


def resolve_timezone(name: str, default: str = "UTC") -> ZoneInfo:
    """Zone for daily resets; an unknown name falls back to ``default``."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r; daily resets use %s", name, default)
        return ZoneInfo(default)


@dataclass(frozen=True)
class GameConfig:
    curves: TrackCurves = DEFAULT_CURVES
    levels: Tuple[LevelInfo, ...] = LEVELS
    max_idle_ms: int = MAX_IDLE_HOURS * MS_PER_HOUR
    daily_energy_refills: int = 6
    squad_bonus_per_level: float = 0.02
    squad_bonus_applies_to_idle: bool = False
    timezone: str = "UTC"
    base_click_speed: float = 1.0
    sync_interval_seconds: float = 30.0
    sync_base_url: str = ""

    @classmethod
    def from_mapping(cls, cfg: Optional[Mapping[str, Any]]) -> "GameConfig":
        cfg = dict(cfg or {})
        refills = cfg.get("daily_energy_refills", DEFAULT_CONFIG["daily_energy_refills"])
        if not isinstance(refills, int) or isinstance(refills, bool) or refills < 0:
            logger.warning("Invalid daily_energy_refills: %r. Using 6.", refills)
            refills = DEFAULT_CONFIG["daily_energy_refills"]

        bonus = cfg.get("squad_bonus_per_level", DEFAULT_CONFIG["squad_bonus_per_level"])
        try:
            bonus = max(0.0, float(bonus))
        except (TypeError, ValueError):
            logger.warning("Invalid squad_bonus_per_level: %r. Using 0.02.", bonus)
            bonus = DEFAULT_CONFIG["squad_bonus_per_level"]

        max_idle_hours = _positive_number(cfg, "max_idle_hours", DEFAULT_CONFIG["max_idle_hours"])

        return cls(
            curves=TrackCurves.from_mapping(cfg.get("curves", {}) or {}),
            levels=_parse_levels(cfg.get("levels")),
            max_idle_ms=int(max_idle_hours * MS_PER_HOUR),
            daily_energy_refills=refills,
            squad_bonus_per_level=bonus,
            squad_bonus_applies_to_idle=bool(cfg.get("squad_bonus_applies_to_idle", False)),
            timezone=str(cfg.get("timezone", DEFAULT_CONFIG["timezone"])),
            base_click_speed=_positive_number(cfg, "base_click_speed", DEFAULT_CONFIG["base_click_speed"]),
            sync_interval_seconds=_positive_number(
                cfg, "sync_interval_seconds", DEFAULT_CONFIG["sync_interval_seconds"]),
            sync_base_url=str(cfg.get("sync_base_url", "") or ""),
        )
