#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# ============================================================================ #
# TapGame Core (TGC) - Game Session Engine                                    #
# Copyright (c) 2025 MAX                                                       #
# Licensed under the MIT License                                               #
# ============================================================================ #

"""
TapGame Session Engine (single owner of a player's in-session progress)

- One ``GameSession`` per player session; no process-wide store
- Every operation is synchronous and all-or-nothing: the next
  ``PlayerProgress`` is built in full, then swapped in
- Rule failures (not enough energy, balance or refills) are silent no-ops
  that return ``False``; nothing here raises for game rules
- Derived stats (level, points per tap, energy cap, production) are
  recomputed in one place after every change

Invariants after every operation:
  spendable_points >= 0, unsynced_points >= 0, 0 <= energy <= max_energy,
  level_index == level_index_for(lifetime_points),
  each derived stat == pure function of its track level.
"""
from __future__ import annotations

import logging
import time
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Mapping, Optional, Union

from services.game.accrual import (
    MS_PER_SECOND,
    accrue_at_rate,
    clamp_idle_elapsed,
    restored_energy,
    whole_seconds_between,
)
from services.game.curves import (
    UpgradeTrack,
    max_energy,
    points_per_tap,
    production_per_hour,
    upgrade_benefit,
    upgrade_cost,
)
from services.game.effects import BOOSTS, EffectKind, active_multiplier, prune_expired
from services.game.game_config import GameConfig, resolve_timezone
from services.game.levels import get_level_name, level_index_for, level_progress_percent
from services.game.models import PlayerProgress, Squad, SyncPayload, UpgradeQuote

logger = logging.getLogger("tgc.game.engine")

_TRACK_FIELDS = {
    UpgradeTrack.TAP: "tap_level",
    UpgradeTrack.ENERGY_CAP: "energy_cap_level",
    UpgradeTrack.MINE: "mine_level",
}


def now_ms() -> int:
    return int(time.time() * 1000)


class GameSession:
    """Owns and mutates one player's :class:`PlayerProgress`."""

    def __init__(self, config: Optional[GameConfig] = None,
                 clock: Optional[Callable[[], int]] = None,
                 progress: Optional[PlayerProgress] = None):
        self.config = config or GameConfig()
        self._clock = clock or now_ms
        self._tz = resolve_timezone(self.config.timezone)
        self._progress = self._with_derived(progress if progress is not None else self.new_player())

    # ---------------------
    # State access
    # ---------------------

    @property
    def progress(self) -> PlayerProgress:
        return self._progress

    def now(self) -> int:
        return self._clock()

    def new_player(self, telegram_id: Optional[str] = None) -> PlayerProgress:
        """Defaults for a player the backend has never seen."""
        now = self.now()
        return PlayerProgress(
            telegram_id=telegram_id,
            energy=max_energy(0, self.config.curves),
            energy_refills_left=self.config.daily_energy_refills,
            energy_updated_at=now,
            last_accrual_timestamp=now,
            last_energy_refill_timestamp=now,
            last_refill_reset_day=self._local_day(now),
        )

    def _with_derived(self, p: PlayerProgress) -> PlayerProgress:
        curves = self.config.curves
        cap = max_energy(p.energy_cap_level, curves)
        return replace(
            p,
            level_index=level_index_for(p.lifetime_points, self.config.levels),
            points_per_tap=points_per_tap(p.tap_level, curves),
            max_energy=cap,
            production_per_hour=production_per_hour(p.mine_level, curves),
            energy=min(max(0.0, p.energy), cap),
            spendable_points=max(0.0, p.spendable_points),
            unsynced_points=max(0.0, p.unsynced_points),
        )

    def _commit(self, p: PlayerProgress) -> PlayerProgress:
        self._progress = self._with_derived(p)
        return self._progress

    def _local_day(self, ts: int) -> str:
        return datetime.fromtimestamp(ts / MS_PER_SECOND, self._tz).date().isoformat()

    # ---------------------
    # Lifecycle
    # ---------------------

    def initialize(self, snapshot: Union[PlayerProgress, Mapping[str, Any], None]) -> PlayerProgress:
        """Replace the whole state from a trusted snapshot (or new-player defaults)."""
        if snapshot is None:
            progress = self.new_player()
        elif isinstance(snapshot, PlayerProgress):
            progress = snapshot
        else:
            progress = PlayerProgress.from_json(snapshot)

        if not progress.last_refill_reset_day and progress.last_energy_refill_timestamp > 0:
            # Records without a reset day: a refill today means today's allowance is in use.
            progress = replace(
                progress, last_refill_reset_day=self._local_day(progress.last_energy_refill_timestamp))

        state = self._commit(progress)
        logger.info(f"Session initialized for player {state.telegram_id}: level={state.level_index}, "
                    f"balance={state.spendable_points:.0f}, unsynced={state.unsynced_points:.0f}, "
                    f"tracks=tap:{state.tap_level}/energy:{state.energy_cap_level}/mine:{state.mine_level}")
        return state

    # ---------------------
    # Squad bonus
    # ---------------------

    def squad_bonus(self) -> float:
        """Tap multiplier from squad membership; read fresh on every call, never below 1."""
        squad = self._progress.squad
        if squad is None:
            return 1.0
        return max(1.0, 1.0 + squad.average_level * self.config.squad_bonus_per_level)

    # ---------------------
    # Operations
    # ---------------------

    def tap(self) -> bool:
        p = self._progress
        if p.energy < p.points_per_tap:
            return False

        reward = p.points_per_tap * self.squad_bonus()
        self._commit(replace(
            p,
            lifetime_points=p.lifetime_points + reward,
            spendable_points=p.spendable_points + reward,
            unsynced_points=p.unsynced_points + reward,
            energy=p.energy - p.points_per_tap,
            last_tap_timestamp=self.now(),
        ))
        return True

    def purchase_upgrade(self, track: Union[UpgradeTrack, str]) -> bool:
        track = UpgradeTrack(track)
        p = self._progress
        level = p.level_for(track)
        cost = upgrade_cost(track, level, self.config.curves)
        if p.spendable_points < cost:
            logger.debug(f"Upgrade {track.value} refused: balance {p.spendable_points:.0f} < cost {cost:.0f}")
            return False

        state = self._commit(replace(
            p,
            spendable_points=p.spendable_points - cost,
            **{_TRACK_FIELDS[track]: level + 1},
        ))
        logger.info(f"Upgrade {track.value}: level {level} -> {level + 1} for {cost:.0f} "
                    f"(player {state.telegram_id})")
        return True

    def refill_energy_fully(self) -> bool:
        p = self._progress
        if p.energy_refills_left <= 0:
            return False

        now = self.now()
        self._commit(replace(
            p,
            energy=p.max_energy,
            energy_refills_left=p.energy_refills_left - 1,
            last_energy_refill_timestamp=now,
            energy_updated_at=now,
        ))
        return True

    def reset_daily_refills(self) -> None:
        self._commit(replace(
            self._progress,
            energy_refills_left=self.config.daily_energy_refills,
            last_refill_reset_day=self._local_day(self.now()),
        ))

    def roll_daily_refills(self, now: Optional[int] = None) -> bool:
        """Reset refills once per local calendar day. Returns True if a reset happened."""
        now = self.now() if now is None else now
        today = self._local_day(now)
        p = self._progress
        if p.last_refill_reset_day == today:
            return False

        self._commit(replace(
            p,
            energy_refills_left=self.config.daily_energy_refills,
            last_refill_reset_day=today,
        ))
        logger.info(f"Daily energy refills reset for player {p.telegram_id} ({today})")
        return True

    def reconcile_sync(self, acked_points: float) -> float:
        """Subtract what the server acknowledged; any remainder waits for the next sync."""
        acked = max(0.0, float(acked_points))
        p = self._progress
        remaining = max(0.0, p.unsynced_points - acked)
        self._commit(replace(p, unsynced_points=remaining))
        return remaining

    def _idle_points(self, start: int, end: int) -> float:
        """Mine output over ``[start, end)``, honouring production effects piecewise."""
        p = self._progress
        rate = p.production_per_hour
        if rate <= 0 or end <= start:
            return 0.0

        production_effects = [e for e in p.effects if e.kind is EffectKind.PRODUCTION]
        points = {start, end}
        for effect in production_effects:
            for edge in (effect.started_at, effect.expires_at):
                if start < edge < end:
                    points.add(edge)

        edges = sorted(points)
        total = 0.0
        for seg_start, seg_end in zip(edges, edges[1:]):
            multiplier = active_multiplier(production_effects, EffectKind.PRODUCTION, seg_start)
            total += accrue_at_rate(rate * multiplier, seg_end - seg_start)
        return total

    def apply_idle_accrual(self, now: Optional[int] = None) -> float:
        """Credit mine output since the last accrual and move the baseline to ``now``.

        Credit and baseline move together, so the same interval is never paid
        twice.  A clock that went backwards earns nothing and leaves the
        baseline where it was.
        """
        now = self.now() if now is None else now
        p = self._progress
        baseline = p.last_accrual_timestamp
        if now <= baseline:
            return 0.0

        elapsed = clamp_idle_elapsed(baseline, now, self.config.max_idle_ms)
        earned = self._idle_points(now - elapsed, now)
        if self.config.squad_bonus_applies_to_idle:
            earned *= self.squad_bonus()

        self._commit(replace(
            p,
            lifetime_points=p.lifetime_points + earned,
            spendable_points=p.spendable_points + earned,
            unsynced_points=p.unsynced_points + earned,
            last_accrual_timestamp=now,
            effects=prune_expired(p.effects, now),
        ))
        if earned > 0:
            logger.debug(f"Idle accrual for player {p.telegram_id}: +{earned:.2f} over {elapsed} ms")
        return earned

    def regenerate_energy(self, now: Optional[int] = None) -> float:
        """Restore energy for the whole seconds since the regen baseline.

        The baseline advances by whole seconds only, so partial seconds carry
        over to the next call.
        """
        now = self.now() if now is None else now
        p = self._progress
        seconds = whole_seconds_between(p.energy_updated_at, now)
        if seconds <= 0:
            return 0.0

        restored = restored_energy(p.tap_level, p.energy_updated_at, now, curves=self.config.curves)
        new_energy = max(p.energy, min(p.max_energy, p.energy + restored))
        self._commit(replace(
            p,
            energy=new_energy,
            energy_updated_at=p.energy_updated_at + seconds * MS_PER_SECOND,
        ))
        return new_energy - p.energy

    def credit_points(self, amount: float) -> bool:
        """Server-granted reward (task, referral): already on the server, so not unsynced."""
        if amount <= 0:
            return False
        p = self._progress
        self._commit(replace(
            p,
            lifetime_points=p.lifetime_points + amount,
            spendable_points=p.spendable_points + amount,
        ))
        return True

    def deduct_points(self, amount: float) -> float:
        """Take ``amount`` off the balance, never below zero. Returns what was taken."""
        if amount <= 0:
            return 0.0
        p = self._progress
        taken = min(p.spendable_points, amount)
        self._commit(replace(p, spendable_points=p.spendable_points - taken))
        return taken

    def purchase_boost(self, boost_id: str) -> bool:
        boost = BOOSTS.get(boost_id)
        if boost is None:
            logger.warning(f"Unknown boost requested: {boost_id}")
            return False

        p = self._progress
        if p.spendable_points < boost.cost:
            return False
        if boost.enables_auto_clicker and p.auto_clicker:
            return False

        now = self.now()
        # Buying a timed boost again restarts its timer instead of stacking.
        effects = tuple(e for e in prune_expired(p.effects, now) if e.source != boost.boost_id)
        if boost.is_timed:
            effects = effects + (boost.effect_from(now),)

        self._commit(replace(
            p,
            spendable_points=p.spendable_points - boost.cost,
            auto_clicker=p.auto_clicker or boost.enables_auto_clicker,
            effects=effects,
        ))
        logger.info(f"Boost {boost.boost_id} purchased for {boost.cost:.0f} (player {p.telegram_id})")
        return True

    def set_squad(self, squad: Union[Squad, Mapping[str, Any], None]) -> None:
        if isinstance(squad, Mapping):
            squad = Squad.from_json(squad)
        self._commit(replace(self._progress, squad=squad))

    def set_wallet_address(self, address: Optional[str]) -> None:
        self._commit(replace(self._progress, ton_wallet_address=address or None))

    # ---------------------
    # Reads
    # ---------------------

    def upgrade_quote(self, track: Union[UpgradeTrack, str]) -> UpgradeQuote:
        track = UpgradeTrack(track)
        p = self._progress
        curves = self.config.curves
        level = p.level_for(track)
        cost = upgrade_cost(track, level, curves)
        current = upgrade_benefit(track, level, curves)
        following = upgrade_benefit(track, level + 1, curves)
        return UpgradeQuote(
            track=track,
            level=level,
            cost=cost,
            current_benefit=current,
            next_benefit=following,
            increase=following - current,
            affordable=p.spendable_points >= cost,
        )

    def effective_production_per_hour(self, now: Optional[int] = None) -> float:
        now = self.now() if now is None else now
        p = self._progress
        rate = p.production_per_hour * active_multiplier(p.effects, EffectKind.PRODUCTION, now)
        if self.config.squad_bonus_applies_to_idle:
            rate *= self.squad_bonus()
        return rate

    def effective_click_speed(self, now: Optional[int] = None) -> float:
        now = self.now() if now is None else now
        return self.config.base_click_speed * active_multiplier(
            self._progress.effects, EffectKind.CLICK_SPEED, now)

    def level_name(self) -> str:
        return get_level_name(self._progress.level_index, self.config.levels)

    def level_progress(self) -> float:
        p = self._progress
        return level_progress_percent(p.lifetime_points, p.level_index, self.config.levels)

    def build_sync_payload(self) -> SyncPayload:
        p = self._progress
        return SyncPayload(
            telegram_id=p.telegram_id,
            unsynced_points=p.unsynced_points,
            levels={
                "levelIndex": p.level_index,
                "multitapLevelIndex": p.tap_level,
                "energyLimitLevelIndex": p.energy_cap_level,
                "mineLevelIndex": p.mine_level,
            },
            timestamps={
                "lastClickTimestamp": p.last_tap_timestamp,
                "lastEnergyRefillTimestamp": p.last_energy_refill_timestamp,
                "lastMineClaimTimestamp": p.last_accrual_timestamp,
                "energyUpdatedAt": p.energy_updated_at,
            },
            energy=p.energy,
            energy_refills_left=p.energy_refills_left,
            last_refill_reset_day=p.last_refill_reset_day,
        )

    def snapshot(self) -> dict:
        return self._progress.to_json()
