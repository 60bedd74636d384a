# -*- coding: utf-8 -*-
# ============================================================================ #
# TapGame Core (TGC)                                                          #
# Copyright (c) 2025 MAX                                                       #
# Licensed under the MIT License                                               #
# ============================================================================ #

"""Shop boosts and the expiring effects they leave behind.

A timed boost is stored as an ``ExpiringEffect`` record and evaluated whenever
the session reads an effective rate.  Nothing is scheduled, so an effect that
ran out while the app was closed is simply inactive on the next read.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple


class EffectKind(str, Enum):
    PRODUCTION = "production"
    CLICK_SPEED = "click_speed"


@dataclass(frozen=True)
class ExpiringEffect:
    kind: EffectKind
    multiplier: float
    expires_at: int  # ms
    started_at: int = 0
    source: str = ""

    def is_active(self, now: int) -> bool:
        return self.started_at <= now < self.expires_at

    def to_json(self) -> Dict[str, Any]:
        data = asdict(self)
        data["kind"] = self.kind.value
        return data

    @staticmethod
    def from_json(d: Dict[str, Any]) -> "ExpiringEffect":
        return ExpiringEffect(
            kind=EffectKind(d["kind"]),
            multiplier=float(d["multiplier"]),
            expires_at=int(d["expires_at"]),
            started_at=int(d.get("started_at", 0)),
            source=str(d.get("source", "")),
        )


@dataclass(frozen=True)
class Boost:
    boost_id: str
    name: str
    cost: float
    effect_kind: Optional[EffectKind] = None
    multiplier: float = 1.0
    duration_ms: int = 0
    enables_auto_clicker: bool = False

    @property
    def is_timed(self) -> bool:
        return self.effect_kind is not None and self.duration_ms > 0

    def effect_from(self, now: int) -> ExpiringEffect:
        return ExpiringEffect(
            kind=self.effect_kind,
            multiplier=self.multiplier,
            expires_at=now + self.duration_ms,
            started_at=now,
            source=self.boost_id,
        )


BOOSTS: Dict[str, Boost] = {
    "auto_clicker": Boost("auto_clicker", "Auto clicker", cost=500, enables_auto_clicker=True),
    "lightning_speed": Boost("lightning_speed", "Lightning speed", cost=300,
                             effect_kind=EffectKind.CLICK_SPEED, multiplier=1.5,
                             duration_ms=60_000),
    "golden_mine": Boost("golden_mine", "Golden mine", cost=700,
                         effect_kind=EffectKind.PRODUCTION, multiplier=1.5,
                         duration_ms=30 * 60_000),
}


def active_multiplier(effects: Iterable[ExpiringEffect], kind: EffectKind, now: int) -> float:
    """Product of all active multipliers of ``kind``; 1.0 when none apply."""
    result = 1.0
    for effect in effects:
        if effect.kind is kind and effect.is_active(now):
            result *= effect.multiplier
    return result


def prune_expired(effects: Iterable[ExpiringEffect], now: int) -> Tuple[ExpiringEffect, ...]:
    return tuple(e for e in effects if now < e.expires_at)

