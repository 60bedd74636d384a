# -*- coding: utf-8 -*-
# ============================================================================ #
# TapGame Core (TGC)                                                          #
# Copyright (c) 2025 MAX                                                       #
# Licensed under the MIT License                                               #
# ============================================================================ #

"""Upgrade cost/benefit curves for the three upgrade tracks.

Every track follows the same exponential shape::

    cost(L)    = base_price   * cost_coefficient    ** L
    benefit(L) = base_benefit * benefit_coefficient ** L

The stats a player sees (points per tap, energy cap, mine production) are pure
functions of the track level.  Nothing here rounds; rounding is left to
whoever renders the numbers.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping


class UpgradeTrack(str, Enum):
    TAP = "tap"
    ENERGY_CAP = "energy_cap"
    MINE = "mine"


@dataclass(frozen=True)
class UpgradeCurve:
    """Price and benefit curve of a single upgrade track."""

    base_price: float
    cost_coefficient: float
    base_benefit: float
    benefit_coefficient: float

    def cost(self, level: int) -> float:
        return self.base_price * self.cost_coefficient ** level

    def benefit(self, level: int) -> float:
        return self.base_benefit * self.benefit_coefficient ** level

    def increase(self, level: int) -> float:
        """Benefit gained by buying the next level."""
        return self.benefit(level + 1) - self.benefit(level)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], fallback: "UpgradeCurve") -> "UpgradeCurve":
        """Build a curve from config, keeping ``fallback`` values for anything invalid."""
        values = {}
        for name in ("base_price", "cost_coefficient", "base_benefit", "benefit_coefficient"):
            raw = data.get(name, getattr(fallback, name))
            try:
                value = float(raw)
            except (TypeError, ValueError):
                value = getattr(fallback, name)
            if value <= 0:
                value = getattr(fallback, name)
            values[name] = value
        return cls(**values)


@dataclass(frozen=True)
class TrackCurves:
    """The curve set a session plays with."""

    tap: UpgradeCurve = UpgradeCurve(base_price=1000, cost_coefficient=2.0,
                                     base_benefit=1, benefit_coefficient=2.0)
    energy_cap: UpgradeCurve = UpgradeCurve(base_price=1000, cost_coefficient=2.0,
                                            base_benefit=500, benefit_coefficient=1.5)
    mine: UpgradeCurve = UpgradeCurve(base_price=1000, cost_coefficient=1.5,
                                      base_benefit=1000, benefit_coefficient=1.2)

    def for_track(self, track: UpgradeTrack) -> UpgradeCurve:
        if track is UpgradeTrack.TAP:
            return self.tap
        if track is UpgradeTrack.ENERGY_CAP:
            return self.energy_cap
        return self.mine

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "TrackCurves":
        defaults = cls()
        return cls(
            tap=UpgradeCurve.from_mapping(data.get("tap", {}) or {}, defaults.tap),
            energy_cap=UpgradeCurve.from_mapping(data.get("energy_cap", {}) or {}, defaults.energy_cap),
            mine=UpgradeCurve.from_mapping(data.get("mine", {}) or {}, defaults.mine),
        )


DEFAULT_CURVES = TrackCurves()


# ---------------------
# Track stats
# ---------------------

def points_per_tap(level: int, curves: TrackCurves = DEFAULT_CURVES) -> float:
    return curves.tap.benefit(level)


def max_energy(level: int, curves: TrackCurves = DEFAULT_CURVES) -> float:
    return curves.energy_cap.benefit(level)


def production_per_hour(level: int, curves: TrackCurves = DEFAULT_CURVES) -> float:
    # Level 0 earns nothing passively: the base benefit is an offset, not income.
    return max(0.0, curves.mine.benefit(level) - curves.mine.base_benefit)


_STAT_FUNCTIONS = {
    UpgradeTrack.TAP: points_per_tap,
    UpgradeTrack.ENERGY_CAP: max_energy,
    UpgradeTrack.MINE: production_per_hour,
}


def upgrade_cost(track: UpgradeTrack, level: int, curves: TrackCurves = DEFAULT_CURVES) -> float:
    """Price of buying level ``level + 1`` while sitting at ``level``."""
    return curves.for_track(track).cost(level)


def upgrade_benefit(track: UpgradeTrack, level: int, curves: TrackCurves = DEFAULT_CURVES) -> float:
    """The stat a track yields at ``level`` (mine production carries its offset)."""
    return _STAT_FUNCTIONS[track](level, curves)


def upgrade_increase(track: UpgradeTrack, level: int, curves: TrackCurves = DEFAULT_CURVES) -> float:
    """Advertised gain of the next purchase; always recomputed from the current level."""
    return upgrade_benefit(track, level + 1, curves) - upgrade_benefit(track, level, curves)
