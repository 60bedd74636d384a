#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# ============================================================================ #
# TapGame Core (TGC) - Game Levels Configuration                              #
# Copyright (c) 2025 MAX                                                       #
# Licensed under the MIT License                                               #
# ============================================================================ #

"""
Game Levels - threshold table and the lifetime-points -> level mapping
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True)
class LevelInfo:
    name: str
    min_points: float


LEVELS = (
    LevelInfo("Bronze", 0),
    LevelInfo("Silver", 5_000),
    LevelInfo("Gold", 25_000),
    LevelInfo("Platinum", 100_000),
    LevelInfo("Diamond", 1_000_000),
    LevelInfo("Epic", 2_000_000),
    LevelInfo("Legendary", 10_000_000),
    LevelInfo("Master", 50_000_000),
    LevelInfo("GrandMaster", 100_000_000),
    LevelInfo("Lord", 1_000_000_000),
)


def level_index_for(points: float, table: Sequence[LevelInfo] = LEVELS) -> int:
    """Return the highest index whose threshold is <= ``points``.

    ``table`` must be sorted ascending with ``table[0].min_points == 0``.
    Scans from the top so high-level players exit early.
    """
    for i in range(len(table) - 1, -1, -1):
        if points >= table[i].min_points:
            return i
    return 0


def level_progress_percent(points: float, index: int, table: Sequence[LevelInfo] = LEVELS) -> float:
    """Progress from the current tier's threshold towards the next one (0-100)."""
    if index >= len(table) - 1:
        return 100.0
    current_min = table[index].min_points
    next_min = table[index + 1].min_points
    progress = (points - current_min) / (next_min - current_min) * 100
    return max(0.0, min(progress, 100.0))


def get_level_name(index: int, table: Sequence[LevelInfo] = LEVELS) -> str:
    """Get name for a specific level index"""
    if 0 <= index < len(table):
        return table[index].name
    return f"Level {index + 1}"
