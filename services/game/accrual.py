# -*- coding: utf-8 -*-
# ============================================================================ #
# TapGame Core (TGC)                                                          #
# Copyright (c) 2025 MAX                                                       #
# Licensed under the MIT License                                               #
# ============================================================================ #

"""Elapsed-time math: idle mine accrual and energy regeneration.

All timestamps are wall-clock milliseconds.  Both formulas return zero for a
non-positive interval so a skewed clock can never take points away.
"""

from __future__ import annotations

from services.game.curves import DEFAULT_CURVES, TrackCurves, points_per_tap, production_per_hour

MS_PER_SECOND = 1000
MS_PER_HOUR = 3_600_000
MAX_IDLE_HOURS = 3
MAX_IDLE_WINDOW_MS = MAX_IDLE_HOURS * MS_PER_HOUR


def clamp_idle_elapsed(from_ts: int, to_ts: int, max_idle_ms: int = MAX_IDLE_WINDOW_MS) -> int:
    """Elapsed milliseconds between two timestamps, clamped to ``[0, max_idle_ms]``."""
    if to_ts <= from_ts:
        return 0
    return min(to_ts - from_ts, max(0, max_idle_ms))


def accrue_at_rate(rate_per_hour: float, elapsed_ms: float) -> float:
    if rate_per_hour <= 0 or elapsed_ms <= 0:
        return 0.0
    # Multiply first: keeps whole-hour windows exact in floating point.
    return max(0.0, rate_per_hour * elapsed_ms / MS_PER_HOUR)


def accrue(
    mine_level: int,
    from_ts: int,
    to_ts: int,
    *,
    curves: TrackCurves = DEFAULT_CURVES,
    max_idle_ms: int = MAX_IDLE_WINDOW_MS,
) -> float:
    """Points the mine produced between ``from_ts`` and ``to_ts``.

    Time beyond ``max_idle_ms`` is not paid out.
    """
    elapsed = clamp_idle_elapsed(from_ts, to_ts, max_idle_ms)
    return accrue_at_rate(production_per_hour(mine_level, curves), elapsed)


def whole_seconds_between(from_ts: int, to_ts: int) -> int:
    if to_ts <= from_ts:
        return 0
    return (to_ts - from_ts) // MS_PER_SECOND


def restored_energy(
    tap_level: int,
    from_ts: int,
    to_ts: int,
    *,
    curves: TrackCurves = DEFAULT_CURVES,
) -> float:
    """Energy regenerated between two timestamps.

    Regen speed is ``points_per_tap`` per whole second, so it grows with the
    tap upgrade.  The caller caps the result at ``max_energy``.
    """
    return max(0.0, points_per_tap(tap_level, curves) * whole_seconds_between(from_ts, to_ts))
