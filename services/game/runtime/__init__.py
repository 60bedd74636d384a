# -*- coding: utf-8 -*-
# ============================================================================ #
# TapGame Core (TGC)                                                          #
# Copyright (c) 2025 MAX                                                       #
# Licensed under the MIT License                                               #
# ============================================================================ #

"""Game runtime support package."""

from .runtime import GameRuntime, get_game_runtime, reset_game_runtime

__all__ = [
    "GameRuntime",
    "get_game_runtime",
    "reset_game_runtime",
]
