# -*- coding: utf-8 -*-
# ============================================================================ #
# TapGame Core (TGC) - Sync Service                                           #
# Copyright (c) 2025 MAX                                                       #
# Licensed under the MIT License                                               #
# ============================================================================ #
"""Loads sessions from the backend and pushes unsynced progress back.

The session keeps accepting taps while a push is in flight.  Only the
amount the server acknowledged (never more than what was pushed) is
subtracted, so points earned in the meantime stay pending for the next cycle.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import replace
from typing import Callable, Optional

from services.exceptions import InvalidInitDataError, StorageError, SyncServiceError, SyncTransportError
from services.game.engine import GameSession
from services.game.game_config import GameConfig
from services.game.models import PlayerProgress
from services.game.runtime import get_game_runtime
from services.game.snapshot_store import SnapshotStore
from services.sync.client import ProgressSyncClient
from services.sync.models import SyncResult
from utils.logging_utils import get_module_logger
from utils.observability import get_structured_logger, metrics
from utils.telegram_init_data import verify_init_data

logger = get_module_logger("sync.service")
structured_logger = get_structured_logger(__name__, service_name="SyncService")


class SyncService:
    """Owns the sync loop for one or more :class:`GameSession` objects."""

    def __init__(self, client: ProgressSyncClient, config: Optional[GameConfig] = None,
                 store: Optional[SnapshotStore] = None,
                 clock: Optional[Callable[[], int]] = None):
        self.client = client
        self.config = config or get_game_runtime().game_config()
        self.store = store
        self.clock = clock

    def _save_local(self, session: GameSession) -> None:
        if self.store is None or not session.progress.telegram_id:
            return
        try:
            self.store.save(session.progress)
        except StorageError as exc:
            metrics.increment("sync.local_save_failed.total")
            logger.error("Could not cache session locally: %s", exc)

    async def load_session(self, telegram_id: str) -> GameSession:
        """Build a session for ``telegram_id`` and settle the time it was away.

        A local snapshot that still holds unsynced points wins over the backend
        record, since the backend has not seen those points yet.  When the
        backend is unreachable the local snapshot is used on its own.
        """
        session = GameSession(config=self.config, clock=self.clock)
        local = self.store.load(telegram_id) if self.store is not None else None

        try:
            with metrics.timer("sync.fetch"):
                record = await self.client.fetch_snapshot(telegram_id)
        except SyncTransportError as exc:
            if local is None:
                raise
            metrics.increment("sync.load_offline.total")
            logger.warning("Backend unreachable (%s); resuming player %s from local snapshot",
                           exc, telegram_id)
            record = None

        if local is not None and (record is None or local.unsynced_points > 0):
            progress = local
            source = "local"
        elif record is not None:
            progress = PlayerProgress.from_json(record)
            source = "backend"
        else:
            progress = session.new_player(telegram_id)
            source = "new"

        if progress.telegram_id is None:
            progress = replace(progress, telegram_id=str(telegram_id))

        session.initialize(progress)
        earned = session.apply_idle_accrual()
        session.regenerate_energy()
        session.roll_daily_refills()

        metrics.increment("sync.sessions_loaded.total", tags={"source": source})
        structured_logger.info("session_loaded", extra={
            "telegram_id": telegram_id,
            "source": source,
            "idle_points": earned,
            "unsynced_points": session.progress.unsynced_points,
        })
        self._save_local(session)
        return session

    async def load_session_from_init_data(self, init_data: str, bot_token: str,
                                          max_age_seconds: Optional[int] = None) -> GameSession:
        """Load the session of the user Telegram signed ``init_data`` for."""
        verified = verify_init_data(init_data, bot_token, max_age_seconds=max_age_seconds)
        if verified is None or not verified["user_id"]:
            metrics.increment("sync.init_data_rejected.total")
            raise InvalidInitDataError("Telegram init data could not be verified",
                                       details={"max_age_seconds": max_age_seconds})
        return await self.load_session(verified["user_id"])

    async def sync_once(self, session: GameSession) -> SyncResult:
        """Push the pending delta once and reconcile with the acknowledgement."""
        payload = session.build_sync_payload()
        pushed = payload.unsynced_points
        if pushed <= 0:
            return SyncResult(success=True, remaining_unsynced=session.progress.unsynced_points,
                              skipped=True)

        start_time = time.time()
        metrics.increment("sync.attempts.total")
        try:
            ack = await self.client.push(payload)
        except SyncServiceError as exc:
            duration_ms = (time.time() - start_time) * 1000
            metrics.increment("sync.failed.total", tags={"error": exc.error_code})
            structured_logger.warning("sync_failed", extra={
                "telegram_id": payload.telegram_id,
                "pushed_points": pushed,
                "error": str(exc),
                "error_code": exc.error_code,
                "duration_ms": duration_ms,
            })
            self._save_local(session)
            return SyncResult.failed(
                pushed_points=pushed,
                remaining_unsynced=session.progress.unsynced_points,
                error_message=str(exc),
                error_code=exc.error_code,
            )

        # Points tapped while the request was in flight were never sent.
        acked = min(ack.acked_points, pushed)
        remaining = session.reconcile_sync(acked)
        duration_ms = (time.time() - start_time) * 1000

        metrics.increment("sync.success.total")
        metrics.histogram("sync.acked_points", acked)
        metrics.histogram("sync.duration_ms", duration_ms)
        metrics.gauge("sync.remaining_unsynced", remaining)
        structured_logger.info("sync_completed", extra={
            "telegram_id": payload.telegram_id,
            "pushed_points": pushed,
            "acked_points": acked,
            "remaining_unsynced": remaining,
            "duration_ms": duration_ms,
        })
        self._save_local(session)
        return SyncResult(success=True, pushed_points=pushed, acked_points=acked,
                          remaining_unsynced=remaining)

    async def run_periodic(self, session: GameSession, interval: Optional[float] = None,
                           stop_event: Optional[asyncio.Event] = None) -> None:
        """Sync every ``interval`` seconds until ``stop_event`` is set.

        Idle accrual and energy regeneration are settled before each push.
        A last push runs after the stop signal so nothing earned is left
        behind.  Cancellation is not swallowed.
        """
        interval = interval if interval is not None else self.config.sync_interval_seconds
        stop_event = stop_event or asyncio.Event()
        logger.info("Periodic sync started for player %s every %ss",
                    session.progress.telegram_id, interval)

        while not stop_event.is_set():
            session.apply_idle_accrual()
            session.regenerate_energy()
            session.roll_daily_refills()
            await self.sync_once(session)
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=interval)
            except asyncio.TimeoutError:
                continue

        await self.sync_once(session)
        logger.info("Periodic sync stopped for player %s", session.progress.telegram_id)
