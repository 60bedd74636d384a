# -*- coding: utf-8 -*-
# ============================================================================ #
# TapGame Core (TGC)                                                          #
# Copyright (c) 2025 MAX                                                       #
# Licensed under the MIT License                                               #
# ============================================================================ #

"""
Game economy services - leveling, upgrade curves, idle accrual and the session engine
"""

from .curves import UpgradeTrack, UpgradeCurve, TrackCurves, DEFAULT_CURVES
from .levels import LevelInfo, LEVELS, level_index_for, level_progress_percent, get_level_name
from .effects import EffectKind, ExpiringEffect, Boost, BOOSTS
from .models import PlayerProgress, Squad, UpgradeQuote, SyncPayload, SyncAck
from .game_config import GameConfig, DEFAULT_CONFIG
from .engine import GameSession
from .snapshot_store import SnapshotStore

__all__ = [
    'UpgradeTrack',
    'UpgradeCurve',
    'TrackCurves',
    'DEFAULT_CURVES',
    'LevelInfo',
    'LEVELS',
    'level_index_for',
    'level_progress_percent',
    'get_level_name',
    'EffectKind',
    'ExpiringEffect',
    'Boost',
    'BOOSTS',
    'PlayerProgress',
    'Squad',
    'UpgradeQuote',
    'SyncPayload',
    'SyncAck',
    'GameConfig',
    'DEFAULT_CONFIG',
    'GameSession',
    'SnapshotStore',
]
