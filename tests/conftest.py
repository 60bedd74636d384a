# -*- coding: utf-8 -*-
# ============================================================================ #
# TapGame Core (TGC) - Pytest Configuration & Fixtures                        #
# Copyright (c) 2025 MAX                                                       #
# Licensed under the MIT License                                               #
# ============================================================================ #
"""
Global pytest configuration and fixtures for all test suites.
"""

import os
import sys
from pathlib import Path
from typing import Any, Dict

import pytest

# Add project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

# Test environment setup
os.environ["TESTING"] = "true"

from services.game.game_paths import clear_game_paths_cache  # noqa: E402
from services.game.runtime import reset_game_runtime  # noqa: E402
from utils.observability import metrics  # noqa: E402

# 2025-01-15 12:00:00 UTC
START_MS = 1_736_942_400_000


class FakeClock:
    """Millisecond clock the tests move by hand."""

    def __init__(self, start: int = START_MS):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def game_data_dir(tmp_path, monkeypatch):
    """Point the game runtime at a temporary data directory."""
    data_dir = tmp_path / "game"
    monkeypatch.setenv("TGC_GAME_DATA_DIR", str(data_dir))
    reset_game_runtime()
    clear_game_paths_cache()
    yield data_dir
    reset_game_runtime()
    clear_game_paths_cache()


@pytest.fixture(autouse=True)
def reset_metrics():
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def sample_snapshot() -> Dict[str, Any]:
    """A user record as served by the backend (camelCase)."""
    return {
        "telegramId": "424242",
        "points": 30000,
        "pointsBalance": 12000,
        "multitapLevelIndex": 1,
        "energyLimitLevelIndex": 2,
        "mineLevelIndex": 1,
        "energy": 400,
        "energyRefillsLeft": 4,
        "lastClickTimestamp": START_MS - 60_000,
        "lastEnergyRefillTimestamp": "2025-01-15T08:00:00Z",
        "tonWalletAddress": "UQ-test-wallet",
        "squad": {"id": "sq1", "name": "Tappers", "averageLevel": 5, "members": 12},
    }


# Markers for test categorization
pytestmark = [
    pytest.mark.filterwarnings("ignore:.*unclosed.*:ResourceWarning"),
    pytest.mark.filterwarnings("ignore::DeprecationWarning"),
]
