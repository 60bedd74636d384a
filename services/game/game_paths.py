# -*- coding: utf-8 -*-
# ============================================================================ #
# TapGame Core (TGC)                                                          #
# Copyright (c) 2025 MAX                                                       #
# Licensed under the MIT License                                               #
# ============================================================================ #

"""Utilities for resolving game storage locations.

Every consumer that needs the game configuration file or the local session
snapshots goes through the same resolver, which honours the
``TGC_GAME_DATA_DIR`` environment override.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from threading import Lock
from typing import Optional

logger = logging.getLogger("tgc.game_paths")

DEFAULT_DATA_DIR = Path("config/game")


@dataclass(frozen=True)
class GamePaths:
    """Concrete filesystem locations used by the game services."""

    data_dir: Path
    snapshot_dir: Path
    config_file: Path

    @classmethod
    def from_base_dir(cls, base_dir: Path, *, create_missing: bool = True) -> "GamePaths":
        """Create a :class:`GamePaths` instance rooted at ``base_dir``.

        Parameters
        ----------
        base_dir:
            Directory that should contain all game artefacts.
        create_missing:
            When ``True`` (default) the required directories are created on
            demand.  Existing files are left untouched.
        """

        base_dir = Path(base_dir).expanduser()
        snapshot_dir = base_dir / "snapshots"
        if create_missing:
            snapshot_dir.mkdir(parents=True, exist_ok=True)

        return cls(
            data_dir=base_dir,
            snapshot_dir=snapshot_dir,
            config_file=base_dir / "config.json",
        )

    def snapshot_for(self, telegram_id: str) -> Path:
        """Return the snapshot path for ``telegram_id``."""

        safe = str(telegram_id).replace("/", "_").replace("\\", "_")
        return self.snapshot_dir / f"{safe}.json"


_paths_cache: Optional[GamePaths] = None
_paths_lock = Lock()


def _resolve_base_dir() -> Path:
    env_override = os.getenv("TGC_GAME_DATA_DIR")
    if env_override:
        logger.debug("Using game data directory from TGC_GAME_DATA_DIR=%s", env_override)
        return Path(env_override)

    logger.debug("Falling back to default game data directory: %s", DEFAULT_DATA_DIR)
    return DEFAULT_DATA_DIR


def get_game_paths(*, create_missing: bool = True) -> GamePaths:
    """Return cached game paths, ensuring the layout exists when required."""

    global _paths_cache
    with _paths_lock:
        if _paths_cache is None:
            _paths_cache = GamePaths.from_base_dir(_resolve_base_dir(), create_missing=create_missing)
        elif create_missing:
            _paths_cache = GamePaths.from_base_dir(_paths_cache.data_dir, create_missing=True)
        return _paths_cache


def clear_game_paths_cache() -> None:
    """Reset the cached game paths (useful for tests)."""

    global _paths_cache
    with _paths_lock:
        _paths_cache = None
