# -*- coding: utf-8 -*-
"""
Services Package - Game economy core for TGC

This package contains the business logic services organized by domain:
- game: Leveling, upgrade curves, idle accrual and the per-player session engine
- sync: Progress sync boundary towards the game backend (aiohttp)
- exceptions: Structured errors for configuration, storage and sync

All services follow the same patterns:
- Immutable dataclasses for game state
- Silent no-ops for game rule failures, exceptions only at I/O boundaries
- Singleton runtime for configuration and paths
- Atomic writes for persisted snapshots
"""

from .game import GameSession, GameConfig, PlayerProgress
from .game.runtime import get_game_runtime

__all__ = [
    'GameSession',
    'GameConfig',
    'PlayerProgress',
    'get_game_runtime',
]
