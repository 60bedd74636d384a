# -*- coding: utf-8 -*-
# ============================================================================ #
# TapGame Core (TGC) - Progress Sync Client                                   #
# Copyright (c) 2025 MAX                                                       #
# Licensed under the MIT License                                               #
# ============================================================================ #

"""HTTP client for the game backend's user and sync endpoints.

Endpoints (relative to ``base_url``):
  GET  /api/user?telegramId=<id>[&initData=...]   -> user record (camelCase)
  POST /api/sync                                  -> {"ackedPoints": n, "user": {...}}
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Optional

import aiohttp

from services.exceptions import SyncProtocolError, SyncTransportError
from services.game.models import SyncAck, SyncPayload

logger = logging.getLogger("tgc.sync.client")

DEFAULT_TIMEOUT_SECONDS = 10.0


class ProgressSyncClient:
    """Thin aiohttp wrapper; one ``ClientSession`` per request keeps it loop-agnostic."""

    def __init__(self, base_url: str, timeout: float = DEFAULT_TIMEOUT_SECONDS,
                 init_data: Optional[str] = None):
        if not base_url:
            raise ValueError("base_url is required for the sync client")
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.init_data = init_data

    def _params(self, **params: str) -> Dict[str, str]:
        if self.init_data:
            params["initData"] = self.init_data
        return params

    async def _read_json(self, response: aiohttp.ClientResponse, what: str) -> Dict[str, Any]:
        try:
            body = await response.json(content_type=None)
        except (json.JSONDecodeError, aiohttp.ContentTypeError, UnicodeDecodeError) as e:
            raise SyncProtocolError(f"Malformed {what} response", details={"error": str(e)}) from e
        if not isinstance(body, dict):
            raise SyncProtocolError(f"{what} response is not an object",
                                    details={"type": type(body).__name__})
        return body

    async def fetch_snapshot(self, telegram_id: str) -> Optional[Dict[str, Any]]:
        """Return the backend's user record, or ``None`` when the player is unknown."""
        url = f"{self.base_url}/api/user"
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.get(url, params=self._params(telegramId=str(telegram_id))) as response:
                    if response.status == 404:
                        logger.info(f"No backend record for player {telegram_id}")
                        return None
                    if response.status != 200:
                        raise SyncTransportError(
                            f"User fetch failed with HTTP {response.status}",
                            details={"status": response.status, "url": url},
                        )
                    body = await self._read_json(response, "user")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise SyncTransportError(f"User fetch failed: {e}", details={"url": url}) from e

        # Some deployments wrap the record as {"user": {...}}
        user = body.get("user", body)
        if not isinstance(user, dict):
            raise SyncProtocolError("User record is not an object")
        return user

    async def push(self, payload: SyncPayload) -> SyncAck:
        """Send the pending delta and return what the server acknowledged."""
        url = f"{self.base_url}/api/sync"
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(url, json=payload.to_json(), params=self._params()) as response:
                    if response.status not in (200, 201):
                        raise SyncTransportError(
                            f"Sync push failed with HTTP {response.status}",
                            details={"status": response.status, "url": url},
                        )
                    body = await self._read_json(response, "sync")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise SyncTransportError(f"Sync push failed: {e}", details={"url": url}) from e

        try:
            return SyncAck.from_json(body)
        except (TypeError, ValueError) as e:
            raise SyncProtocolError(f"Invalid sync acknowledgement: {e}", details={"body": body}) from e
