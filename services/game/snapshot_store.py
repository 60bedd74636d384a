# -*- coding: utf-8 -*-
# ============================================================================ #
# TapGame Core (TGC) - Snapshot Store                                         #
# Copyright (c) 2025 MAX                                                       #
# Licensed under the MIT License                                               #
# ============================================================================ #

"""Local cache of per-player progress so unsynced points survive a restart.

Data layout:
  <data_dir>/snapshots/{telegram_id}.json    # last PlayerProgress of the player
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
from typing import Optional

from services.exceptions import FileStorageError
from services.game.game_paths import GamePaths, get_game_paths
from services.game.models import PlayerProgress

logger = logging.getLogger("tgc.game.snapshot_store")


class SnapshotStore:
    """Reads and writes ``PlayerProgress`` snapshots as JSON files."""

    def __init__(self, paths: Optional[GamePaths] = None):
        self.paths = paths or get_game_paths()

    def load(self, telegram_id: str) -> Optional[PlayerProgress]:
        """Return the stored progress, or ``None`` when missing or unreadable."""
        p = self.paths.snapshot_for(telegram_id)
        if not p.exists():
            return None

        try:
            with open(p, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"Corrupted snapshot for player {telegram_id} ({e}), ignoring it")
            return None
        except OSError as e:
            raise FileStorageError(
                f"Could not read snapshot for player {telegram_id}",
                details={"path": str(p), "error": str(e)},
            ) from e

        if not isinstance(data, dict):
            logger.warning(f"Snapshot for player {telegram_id} is not an object, ignoring it")
            return None
        return PlayerProgress.from_json(data)

    def save(self, progress: PlayerProgress) -> None:
        """Persist ``progress`` atomically: the old file stays intact if the write fails."""
        if not progress.telegram_id:
            raise FileStorageError("Cannot store a snapshot without a telegram id")

        p = self.paths.snapshot_for(progress.telegram_id)
        try:
            p.parent.mkdir(parents=True, exist_ok=True)
            temp_fd, temp_path = tempfile.mkstemp(dir=p.parent, prefix=f".{p.name}.", suffix=".tmp")
        except OSError as e:
            raise FileStorageError(
                f"Could not prepare snapshot for player {progress.telegram_id}",
                details={"path": str(p), "error": str(e)},
            ) from e

        try:
            with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
                json.dump(progress.to_json(), f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            shutil.move(temp_path, p)
        except OSError as e:
            try:
                os.unlink(temp_path)
            except OSError:
                logger.debug(f"Temp snapshot {temp_path} already gone")
            raise FileStorageError(
                f"Could not write snapshot for player {progress.telegram_id}",
                details={"path": str(p), "error": str(e)},
            ) from e

    def delete(self, telegram_id: str) -> bool:
        p = self.paths.snapshot_for(telegram_id)
        try:
            p.unlink()
        except FileNotFoundError:
            return False
        return True
