# -*- coding: utf-8 -*-
# ============================================================================ #
# TapGame Core (TGC)                                                          #
# Copyright (c) 2025 MAX                                                       #
# Licensed under the MIT License                                               #
# ============================================================================ #
"""Data models shared by the game engine and the sync boundary."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Tuple

from services.game.curves import UpgradeTrack
from services.game.effects import ExpiringEffect

logger = logging.getLogger("tgc.game.models")


# ---------------------
# Coercion helpers
# ---------------------

def _pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _non_negative_float(value: Any, default: float, name: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.warning("Invalid %s in snapshot: %r. Using %s.", name, value, default)
        return default
    if number != number or number < 0:  # NaN or negative
        logger.warning("Out-of-range %s in snapshot: %r. Using 0.", name, value)
        return 0.0
    return number


def _non_negative_int(value: Any, default: int, name: str) -> int:
    return int(_non_negative_float(value, default, name))


def _timestamp_ms(value: Any, name: str) -> int:
    """Accept epoch milliseconds or an ISO-8601 string."""
    if value is None or value == "":
        return 0
    if isinstance(value, str):
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return _non_negative_int(value, 0, name)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return int(dt.timestamp() * 1000)
    return _non_negative_int(value, 0, name)


# ---------------------
# Models
# ---------------------

@dataclass(frozen=True)
class Squad:
    id: str
    name: str = ""
    average_level: float = 0.0
    members: int = 0
    total_balance: float = 0.0
    logo: str = ""

    def to_json(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_json(d: Mapping[str, Any]) -> "Squad":
        return Squad(
            id=str(_pick(d, "id", default="")),
            name=str(_pick(d, "name", default="")),
            average_level=_non_negative_float(
                _pick(d, "average_level", "averageLevel", default=0), 0.0, "squad.average_level"),
            members=_non_negative_int(_pick(d, "members", default=0), 0, "squad.members"),
            total_balance=_non_negative_float(
                _pick(d, "total_balance", "totalBalance", default=0), 0.0, "squad.total_balance"),
            logo=str(_pick(d, "logo", default="")),
        )


@dataclass(frozen=True)
class PlayerProgress:
    """Everything the session knows about one player.

    ``level_index``, ``points_per_tap``, ``max_energy`` and
    ``production_per_hour`` are caches of pure functions of the points and
    track levels; the engine recomputes them and never trusts stored values.
    """

    telegram_id: Optional[str] = None
    lifetime_points: float = 0.0
    spendable_points: float = 0.0
    unsynced_points: float = 0.0
    level_index: int = 0
    tap_level: int = 0
    energy_cap_level: int = 0
    mine_level: int = 0
    points_per_tap: float = 1.0
    max_energy: float = 500.0
    production_per_hour: float = 0.0
    energy: float = 500.0
    energy_refills_left: int = 6
    last_tap_timestamp: int = 0
    last_energy_refill_timestamp: int = 0
    energy_updated_at: int = 0
    last_accrual_timestamp: int = 0
    last_refill_reset_day: str = ""  # YYYY-MM-DD (local)
    ton_wallet_address: Optional[str] = None
    squad: Optional[Squad] = None
    auto_clicker: bool = False
    effects: Tuple[ExpiringEffect, ...] = field(default_factory=tuple)

    def level_for(self, track: UpgradeTrack) -> int:
        if track is UpgradeTrack.TAP:
            return self.tap_level
        if track is UpgradeTrack.ENERGY_CAP:
            return self.energy_cap_level
        return self.mine_level

    def to_json(self) -> Dict[str, Any]:
        data = asdict(self)
        data["squad"] = self.squad.to_json() if self.squad else None
        data["effects"] = [e.to_json() for e in self.effects]
        return data

    @staticmethod
    def from_json(d: Mapping[str, Any]) -> "PlayerProgress":
        """Build progress from a persisted record.

        Accepts both the snake_case layout written by :meth:`to_json` and the
        camelCase user record served by the backend.  Unknown keys are ignored
        and bad numbers are replaced, so this never raises on content.
        """
        defaults = PlayerProgress()
        telegram_id = _pick(d, "telegram_id", "telegramId", "userTelegramId")
        squad_raw = _pick(d, "squad")
        effects_raw = _pick(d, "effects", default=[]) or []

        effects = []
        for raw in effects_raw:
            try:
                effects.append(ExpiringEffect.from_json(raw))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Dropping unreadable effect %r: %s", raw, e)

        lifetime = _non_negative_float(
            _pick(d, "lifetime_points", "points", default=0), 0.0, "lifetime_points")
        balance = _non_negative_float(
            _pick(d, "spendable_points", "pointsBalance", default=lifetime), lifetime, "spendable_points")
        last_tap = _timestamp_ms(_pick(d, "last_tap_timestamp", "lastClickTimestamp"), "last_tap_timestamp")

        return PlayerProgress(
            telegram_id=str(telegram_id) if telegram_id is not None else None,
            lifetime_points=lifetime,
            spendable_points=balance,
            unsynced_points=_non_negative_float(
                _pick(d, "unsynced_points", "unsynchronizedPoints", default=0), 0.0, "unsynced_points"),
            tap_level=_non_negative_int(
                _pick(d, "tap_level", "multitapLevelIndex", default=0), 0, "tap_level"),
            energy_cap_level=_non_negative_int(
                _pick(d, "energy_cap_level", "energyLimitLevelIndex", default=0), 0, "energy_cap_level"),
            mine_level=_non_negative_int(
                _pick(d, "mine_level", "mineLevelIndex", default=0), 0, "mine_level"),
            energy=_non_negative_float(_pick(d, "energy", default=defaults.energy), defaults.energy, "energy"),
            energy_refills_left=_non_negative_int(
                _pick(d, "energy_refills_left", "energyRefillsLeft", default=defaults.energy_refills_left),
                defaults.energy_refills_left, "energy_refills_left"),
            last_tap_timestamp=last_tap,
            last_energy_refill_timestamp=_timestamp_ms(
                _pick(d, "last_energy_refill_timestamp", "lastEnergyRefillTimestamp",
                      "lastEnergyRefillsTimestamp"),
                "last_energy_refill_timestamp"),
            energy_updated_at=_timestamp_ms(
                _pick(d, "energy_updated_at", "energyUpdatedAt", default=last_tap), "energy_updated_at"),
            last_accrual_timestamp=_timestamp_ms(
                _pick(d, "last_accrual_timestamp", "lastMineClaimTimestamp", "lastSyncTimestamp",
                      default=last_tap),
                "last_accrual_timestamp"),
            last_refill_reset_day=str(_pick(d, "last_refill_reset_day", "lastRefillResetDay", default="")),
            ton_wallet_address=_pick(d, "ton_wallet_address", "tonWalletAddress"),
            squad=Squad.from_json(squad_raw) if isinstance(squad_raw, Mapping) else None,
            auto_clicker=bool(_pick(d, "auto_clicker", "autoClicker", default=False)),
            effects=tuple(effects),
        )


@dataclass(frozen=True)
class UpgradeQuote:
    """What the upgrade button shows for one track."""

    track: UpgradeTrack
    level: int
    cost: float
    current_benefit: float
    next_benefit: float
    increase: float
    affordable: bool


@dataclass(frozen=True)
class SyncPayload:
    """Pending delta for the backend.

    ``levels`` and ``timestamps`` use the user record's own keys and the
    scalar fields use the snapshot keys, so a backend that stores them
    as-is hands them back unchanged on the next load.
    """

    telegram_id: Optional[str]
    unsynced_points: float
    levels: Dict[str, int]
    timestamps: Dict[str, int]
    energy: float
    energy_refills_left: int
    last_refill_reset_day: str = ""

    def to_json(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SyncAck:
    acked_points: float

    @staticmethod
    def from_json(d: Mapping[str, Any]) -> "SyncAck":
        raw = _pick(d, "acked_points", "ackedPoints", "syncedPoints")
        if raw is None:
            raise ValueError("acknowledgement carries no acked point count")
        acked = float(raw)
        if acked != acked or acked < 0:
            raise ValueError(f"invalid acked point count: {raw!r}")
        return SyncAck(acked_points=acked)
