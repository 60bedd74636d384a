# -*- coding: utf-8 -*-
# ============================================================================ #
# TapGame Core (TGC)                                                          #
# Copyright (c) 2025 MAX                                                       #
# Licensed under the MIT License                                               #
# ============================================================================ #
"""Tests for PlayerProgress parsing and the sync data models."""

import pytest

from services.game.curves import UpgradeTrack
from services.game.effects import BOOSTS
from services.game.models import PlayerProgress, Squad, SyncAck


def test_from_backend_record(sample_snapshot):
    progress = PlayerProgress.from_json(sample_snapshot)

    assert progress.telegram_id == "424242"
    assert progress.lifetime_points == 30000
    assert progress.spendable_points == 12000
    assert progress.tap_level == 1
    assert progress.energy_cap_level == 2
    assert progress.mine_level == 1
    assert progress.energy_refills_left == 4
    assert progress.ton_wallet_address == "UQ-test-wallet"
    assert progress.squad.average_level == 5
    assert progress.level_for(UpgradeTrack.ENERGY_CAP) == 2


def test_baselines_fall_back_to_last_tap(sample_snapshot):
    progress = PlayerProgress.from_json(sample_snapshot)
    assert progress.energy_updated_at == sample_snapshot["lastClickTimestamp"]
    assert progress.last_accrual_timestamp == sample_snapshot["lastClickTimestamp"]


def test_pushed_baselines_are_read_back(sample_snapshot):
    record = dict(sample_snapshot, lastMineClaimTimestamp=1_000, energyUpdatedAt=2_000,
                  lastRefillResetDay="2025-01-15")
    progress = PlayerProgress.from_json(record)
    assert progress.last_accrual_timestamp == 1_000
    assert progress.energy_updated_at == 2_000
    assert progress.last_refill_reset_day == "2025-01-15"


def test_iso_timestamps_are_parsed(sample_snapshot):
    progress = PlayerProgress.from_json(sample_snapshot)
    # 2025-01-15T08:00:00Z
    assert progress.last_energy_refill_timestamp == 1_736_928_000_000


def test_balance_defaults_to_lifetime_points():
    progress = PlayerProgress.from_json({"points": 250})
    assert progress.spendable_points == 250


def test_bad_numbers_are_coerced():
    progress = PlayerProgress.from_json({
        "points": -5,
        "pointsBalance": "lots",
        "unsynchronizedPoints": float("nan"),
        "mineLevelIndex": None,
    })
    assert progress.lifetime_points == 0
    assert progress.spendable_points == 0
    assert progress.unsynced_points == 0
    assert progress.mine_level == 0


def test_unreadable_effects_are_dropped():
    good = BOOSTS["golden_mine"].effect_from(1_000).to_json()
    progress = PlayerProgress.from_json({"effects": [good, {"kind": "nope"}]})
    assert len(progress.effects) == 1


def test_snake_case_round_trip():
    original = PlayerProgress(
        telegram_id="7",
        lifetime_points=100,
        spendable_points=40,
        unsynced_points=15,
        mine_level=2,
        squad=Squad(id="s", average_level=3),
        effects=(BOOSTS["golden_mine"].effect_from(5_000),),
    )
    restored = PlayerProgress.from_json(original.to_json())
    assert restored.unsynced_points == 15
    assert restored.squad == original.squad
    assert restored.effects == original.effects


@pytest.mark.parametrize("body", [
    {"ackedPoints": 12},
    {"acked_points": 12.0},
    {"syncedPoints": "12"},
])
def test_sync_ack_key_variants(body):
    assert SyncAck.from_json(body).acked_points == 12


@pytest.mark.parametrize("body", [{}, {"ackedPoints": -1}, {"ackedPoints": "x"}])
def test_sync_ack_rejects_invalid(body):
    with pytest.raises(ValueError):
        SyncAck.from_json(body)
