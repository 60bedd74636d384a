# -*- coding: utf-8 -*-
# ============================================================================ #
# TapGame Core (TGC)                                                          #
# Copyright (c) 2025 MAX                                                       #
# Licensed under the MIT License                                               #
# ============================================================================ #

import asyncio
import hashlib
import hmac
import json
from urllib.parse import urlencode

import pytest

from services.exceptions import InvalidInitDataError, SyncProtocolError, SyncTransportError
from services.game.accrual import MS_PER_HOUR
from services.game.curves import TrackCurves, UpgradeCurve
from services.game.engine import GameSession
from services.game.game_config import GameConfig
from services.game.game_paths import GamePaths
from services.game.models import PlayerProgress, SyncAck
from services.game.snapshot_store import SnapshotStore
from services.sync.service import SyncService
from utils.observability import metrics


class _StubSyncClient:
    def __init__(self, record=None, fetch_error=None):
        self.record = record
        self.fetch_error = fetch_error
        self.pushed = []
        self.push_error = None
        self.ack_extra = 0.0
        self.gate = None
        self.requested = []

    async def fetch_snapshot(self, telegram_id):
        self.requested.append(telegram_id)
        if self.fetch_error:
            raise self.fetch_error
        return self.record

    async def push(self, payload):
        self.pushed.append(payload)
        if self.gate is not None:
            await self.gate.wait()
        if self.push_error:
            raise self.push_error
        return SyncAck(acked_points=payload.unsynced_points + self.ack_extra)


class _RecordingBackend:
    """Merges each push into one user record, like the real backend does."""

    def __init__(self, record):
        self.record = dict(record)

    async def fetch_snapshot(self, telegram_id):
        return dict(self.record)

    async def push(self, payload):
        body = payload.to_json()
        acked = body["unsynced_points"]
        balance = self.record.get("pointsBalance", self.record.get("points", 0))
        self.record["points"] = self.record.get("points", 0) + acked
        self.record["pointsBalance"] = balance + acked
        self.record.update(body["levels"])
        self.record.update(body["timestamps"])
        self.record["energy"] = body["energy"]
        self.record["energyRefillsLeft"] = body["energy_refills_left"]
        self.record["lastRefillResetDay"] = body["last_refill_reset_day"]
        return SyncAck(acked_points=acked)


@pytest.fixture
def config():
    # mine level 1 produces 120 points per hour
    return GameConfig(curves=TrackCurves(mine=UpgradeCurve(1000, 1.5, 600, 1.2)))


@pytest.fixture
def store(tmp_path):
    return SnapshotStore(GamePaths.from_base_dir(tmp_path))


def _tapped_session(clock, config, taps=5):
    session = GameSession(config=config, clock=clock)
    session.initialize(session.new_player("7"))
    for _ in range(taps):
        session.tap()
    return session


@pytest.mark.asyncio
async def test_sync_once_reconciles_acknowledged_points(clock, config):
    client = _StubSyncClient()
    service = SyncService(client, config=config, clock=clock)
    session = _tapped_session(clock, config)

    result = await service.sync_once(session)

    assert result.success
    assert result.pushed_points == 5
    assert result.acked_points == 5
    assert session.progress.unsynced_points == 0
    assert client.pushed[0].telegram_id == "7"
    assert metrics.get_stats()["counters"]["sync.success.total"] == 1


@pytest.mark.asyncio
async def test_sync_once_skips_when_nothing_pending(clock, config):
    client = _StubSyncClient()
    service = SyncService(client, config=config, clock=clock)
    session = _tapped_session(clock, config, taps=0)

    result = await service.sync_once(session)

    assert result.success and result.skipped
    assert client.pushed == []


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [
    SyncTransportError("connection refused"),
    SyncProtocolError("garbage"),
])
async def test_failed_sync_keeps_unsynced_points(clock, config, error):
    client = _StubSyncClient()
    client.push_error = error
    service = SyncService(client, config=config, clock=clock)
    session = _tapped_session(clock, config)

    result = await service.sync_once(session)

    assert not result.success
    assert result.error_code == type(error).__name__
    assert session.progress.unsynced_points == 5
    assert metrics.get_stats()["counters"]["sync.failed.total"] == 1


@pytest.mark.asyncio
async def test_taps_during_push_stay_pending(clock, config):
    client = _StubSyncClient()
    client.gate = asyncio.Event()
    service = SyncService(client, config=config, clock=clock)
    session = _tapped_session(clock, config)

    in_flight = asyncio.create_task(service.sync_once(session))
    await asyncio.sleep(0)
    for _ in range(3):
        session.tap()
    client.gate.set()
    result = await in_flight

    assert result.acked_points == 5
    assert session.progress.unsynced_points == 3


@pytest.mark.asyncio
async def test_over_acknowledgement_is_capped_at_pushed_amount(clock, config):
    client = _StubSyncClient()
    client.ack_extra = 100
    client.gate = asyncio.Event()
    service = SyncService(client, config=config, clock=clock)
    session = _tapped_session(clock, config)

    in_flight = asyncio.create_task(service.sync_once(session))
    await asyncio.sleep(0)
    session.tap()
    client.gate.set()
    await in_flight

    assert session.progress.unsynced_points == 1


@pytest.mark.asyncio
async def test_load_session_from_backend_applies_idle_accrual(clock, config):
    record = {
        "telegramId": "7",
        "points": 1000,
        "mineLevelIndex": 1,
        "lastClickTimestamp": clock() - MS_PER_HOUR,
    }
    service = SyncService(_StubSyncClient(record=record), config=config, clock=clock)

    session = await service.load_session("7")

    assert session.progress.telegram_id == "7"
    assert session.progress.lifetime_points == pytest.approx(1120)
    assert session.progress.unsynced_points == pytest.approx(120)
    assert session.progress.last_accrual_timestamp == clock()


@pytest.mark.asyncio
async def test_load_session_for_unknown_player(clock, config, store):
    service = SyncService(_StubSyncClient(record=None), config=config, store=store, clock=clock)

    session = await service.load_session("8")

    assert session.progress.telegram_id == "8"
    assert session.progress.energy == session.progress.max_energy
    assert store.load("8") is not None


@pytest.mark.asyncio
async def test_local_unsynced_points_win_over_backend(clock, config, store):
    store.save(PlayerProgress(
        telegram_id="7", lifetime_points=60, spendable_points=60, unsynced_points=10,
        last_accrual_timestamp=clock(), energy_updated_at=clock(),
    ))
    record = {"telegramId": "7", "points": 50}
    service = SyncService(_StubSyncClient(record=record), config=config, store=store, clock=clock)

    session = await service.load_session("7")

    assert session.progress.lifetime_points == 60
    assert session.progress.unsynced_points == 10


@pytest.mark.asyncio
async def test_offline_load_uses_local_snapshot(clock, config, store):
    store.save(PlayerProgress(telegram_id="7", lifetime_points=60, spendable_points=60,
                              last_accrual_timestamp=clock(), energy_updated_at=clock()))
    client = _StubSyncClient(fetch_error=SyncTransportError("offline"))
    service = SyncService(client, config=config, store=store, clock=clock)

    session = await service.load_session("7")

    assert session.progress.lifetime_points == 60


@pytest.mark.asyncio
async def test_offline_load_without_local_snapshot_raises(clock, config, store):
    client = _StubSyncClient(fetch_error=SyncTransportError("offline"))
    service = SyncService(client, config=config, store=store, clock=clock)

    with pytest.raises(SyncTransportError):
        await service.load_session("7")


@pytest.mark.asyncio
async def test_run_periodic_flushes_on_stop(clock, config):
    client = _StubSyncClient()
    service = SyncService(client, config=config, clock=clock)
    session = _tapped_session(clock, config)
    stop = asyncio.Event()

    task = asyncio.create_task(service.run_periodic(session, interval=0.01, stop_event=stop))
    await asyncio.sleep(0.05)
    session.tap()
    stop.set()
    await asyncio.wait_for(task, timeout=1)

    assert session.progress.unsynced_points == 0
    assert sum(p.unsynced_points for p in client.pushed) == 6


@pytest.mark.asyncio
async def test_run_periodic_can_be_cancelled(clock, config):
    service = SyncService(_StubSyncClient(), config=config, clock=clock)
    session = _tapped_session(clock, config)

    task = asyncio.create_task(service.run_periodic(session, interval=10))
    await asyncio.sleep(0.01)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task


# ---------------------
# Load, sync, reload
# ---------------------

def _idle_record(clock):
    return {
        "telegramId": "7",
        "points": 1000,
        "mineLevelIndex": 1,
        "lastClickTimestamp": clock() - MS_PER_HOUR,
    }


@pytest.mark.asyncio
async def test_reload_after_sync_does_not_pay_idle_time_twice(clock, config):
    backend = _RecordingBackend(_idle_record(clock))
    service = SyncService(backend, config=config, clock=clock)

    first = await service.load_session("7")
    assert first.progress.unsynced_points == pytest.approx(120)
    result = await service.sync_once(first)
    assert result.acked_points == pytest.approx(120)

    second = await service.load_session("7")
    assert second.progress.lifetime_points == pytest.approx(1120)
    assert second.progress.unsynced_points == 0

    clock.advance(MS_PER_HOUR // 2)
    third = await service.load_session("7")
    assert third.progress.lifetime_points == pytest.approx(1180)
    assert third.progress.unsynced_points == pytest.approx(60)


@pytest.mark.asyncio
async def test_reload_after_sync_keeps_spent_refills(clock, config):
    backend = _RecordingBackend(_idle_record(clock))
    service = SyncService(backend, config=config, clock=clock)

    first = await service.load_session("7")
    assert first.progress.energy_refills_left == 6
    first.refill_energy_fully()
    first.refill_energy_fully()
    await service.sync_once(first)

    second = await service.load_session("7")
    assert second.progress.energy_refills_left == 4

    clock.advance(24 * MS_PER_HOUR)
    next_day = await service.load_session("7")
    assert next_day.progress.energy_refills_left == 6


@pytest.mark.asyncio
async def test_same_day_record_without_reset_day_keeps_refills(clock, config, sample_snapshot):
    record = dict(sample_snapshot, energyRefillsLeft=0, lastEnergyRefillTimestamp=clock() - 60_000)
    service = SyncService(_StubSyncClient(record=record), config=config, clock=clock)

    session = await service.load_session("424242")

    assert session.progress.energy_refills_left == 0
    assert session.progress.last_refill_reset_day == "2025-01-15"


@pytest.mark.asyncio
async def test_record_from_previous_day_gets_fresh_refills(clock, config, sample_snapshot):
    record = dict(sample_snapshot, energyRefillsLeft=0, lastRefillResetDay="2025-01-14")
    service = SyncService(_StubSyncClient(record=record), config=config, clock=clock)

    session = await service.load_session("424242")

    assert session.progress.energy_refills_left == 6


@pytest.mark.asyncio
async def test_load_session_times_backend_fetch(clock, config):
    service = SyncService(_StubSyncClient(record=_idle_record(clock)), config=config, clock=clock)

    await service.load_session("7")

    assert metrics.get_stats()["histograms"]["sync.fetch.duration_ms"]["count"] == 1


# ---------------------
# Telegram init data
# ---------------------

BOT_TOKEN = "123456:TEST-token"


def _signed_init_data(user_id, token=BOT_TOKEN):
    fields = {"user": json.dumps({"id": user_id, "first_name": "Tap"}), "auth_date": "1736942400"}
    data_check_string = "\n".join(f"{k}={fields[k]}" for k in sorted(fields))
    secret = hmac.new(b"WebAppData", token.encode(), hashlib.sha256).digest()
    digest = hmac.new(secret, data_check_string.encode(), hashlib.sha256).hexdigest()
    return urlencode({**fields, "hash": digest})


@pytest.mark.asyncio
async def test_load_session_from_signed_init_data(clock, config):
    client = _StubSyncClient(record={"telegramId": "7", "points": 500})
    service = SyncService(client, config=config, clock=clock)

    session = await service.load_session_from_init_data(_signed_init_data(7), BOT_TOKEN)

    assert client.requested == ["7"]
    assert session.progress.telegram_id == "7"
    assert session.progress.lifetime_points == 500


@pytest.mark.asyncio
async def test_init_data_signed_by_another_bot_is_rejected(clock, config):
    client = _StubSyncClient(record={"telegramId": "7"})
    service = SyncService(client, config=config, clock=clock)

    with pytest.raises(InvalidInitDataError):
        await service.load_session_from_init_data(_signed_init_data(7, token="999:other"), BOT_TOKEN)

    assert client.requested == []
    assert metrics.get_stats()["counters"]["sync.init_data_rejected.total"] == 1
