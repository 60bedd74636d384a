# -*- coding: utf-8 -*-
# ============================================================================ #
# TapGame Core (TGC)                                                          #
# Copyright (c) 2025 MAX                                                       #
# Licensed under the MIT License                                               #
# ============================================================================ #

"""Runtime helpers for the game services.

This module centralises the shared runtime state the game services need
(paths and configuration).  Sessions receive a ``GameConfig``
built from here instead of reading module globals, so tests can point the
runtime at a temporary directory and get a clean configuration.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from services.game.game_config import DEFAULT_CONFIG, GameConfig
from services.game.game_paths import GamePaths, get_game_paths

logger = logging.getLogger("tgc.game.runtime")


@dataclass
class GameRuntime:
    """Container for shared game runtime state."""

    paths: GamePaths = field(default_factory=get_game_paths)
    _default_config: Dict[str, object] = field(default_factory=lambda: dict(DEFAULT_CONFIG), repr=False)
    _config_cache: Optional[Dict[str, object]] = field(default=None, init=False, repr=False)
    _game_config: Optional[GameConfig] = field(default=None, init=False, repr=False)

    def configure_defaults(self, default_config: Dict[str, object]) -> None:
        """Register the default configuration used to seed new installs."""

        if not isinstance(default_config, dict):
            raise TypeError("default_config must be a dictionary")

        if self._default_config != default_config:
            logger.debug("Updating game runtime default configuration")
            self._default_config = default_config
            self.invalidate_cache()
        self.ensure_layout()

    # ------------------------------------------------------------------
    # Filesystem helpers
    # ------------------------------------------------------------------
    def ensure_layout(self) -> None:
        """Ensure the backing directory structure and config file exist."""

        paths = self.paths
        paths.snapshot_dir.mkdir(parents=True, exist_ok=True)
        if not paths.config_file.exists():
            logger.debug("Seeding game config with defaults at %s", paths.config_file)
            paths.config_file.write_text(json.dumps(self._default_config, indent=2), encoding="utf-8")
            self.invalidate_cache()

    # ------------------------------------------------------------------
    # Configuration accessors
    # ------------------------------------------------------------------
    def invalidate_cache(self) -> None:
        """Clear cached config information."""

        self._config_cache = None
        self._game_config = None

    def load_config(self, *, refresh: bool = False) -> Dict[str, object]:
        """Load the persisted configuration, optionally forcing a refresh.

        Keys missing from the file are filled from the defaults, so an older
        config keeps working after new settings are introduced.
        """

        if refresh:
            self.invalidate_cache()

        if self._config_cache is None:
            self.ensure_layout()
            try:
                with self.paths.config_file.open("r", encoding="utf-8") as fh:
                    loaded = json.load(fh) or {}
            except FileNotFoundError:
                logger.warning("Game config file disappeared; recreating")
                self.ensure_layout()
                with self.paths.config_file.open("r", encoding="utf-8") as fh:
                    loaded = json.load(fh) or {}
            except json.JSONDecodeError as exc:
                logger.error("Invalid JSON in game config (%s); resetting to defaults", exc)
                loaded = dict(self._default_config)
                self.paths.config_file.write_text(
                    json.dumps(self._default_config, indent=2), encoding="utf-8"
                )

            if not isinstance(loaded, dict):
                logger.error("Game config is not a JSON object; using defaults")
                loaded = dict(self._default_config)

            merged = dict(self._default_config)
            merged.update(loaded)
            self._config_cache = merged
        return self._config_cache

    def game_config(self, *, refresh: bool = False) -> GameConfig:
        """Return the typed :class:`GameConfig` for new sessions."""

        if refresh:
            self.invalidate_cache()
        if self._game_config is None:
            self._game_config = GameConfig.from_mapping(self.load_config())
        return self._game_config


_runtime: Optional[GameRuntime] = None


def get_game_runtime() -> GameRuntime:
    """Return the singleton :class:`GameRuntime` instance."""

    global _runtime
    if _runtime is None:
        _runtime = GameRuntime()
    return _runtime


def reset_game_runtime() -> None:
    """Reset the cached runtime (primarily for tests)."""

    global _runtime
    _runtime = None
