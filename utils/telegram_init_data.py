# -*- coding: utf-8 -*-
# ============================================================================ #
# TapGame Core (TGC)                                                          #
# Copyright (c) 2025 MAX                                                       #
# Licensed under the MIT License                                               #
# ============================================================================ #
"""
Telegram WebApp ``initData`` helpers.

Verification (Telegram WebApp docs):
  secret_key        = HMAC_SHA256(key=b"WebAppData", msg=bot_token)
  data_check_string = "\\n".join(sorted("key=value" for every field except hash))
  valid             = hex(HMAC_SHA256(key=secret_key, msg=data_check_string)) == hash
"""

import hashlib
import hmac
import json
import logging
import time
from typing import Any, Dict, Optional
from urllib.parse import parse_qsl

logger = logging.getLogger('tgc.telegram_init_data')


def _user_id_from(raw_user: Optional[str]) -> Optional[str]:
    if not raw_user:
        return None
    try:
        user = json.loads(raw_user)
    except json.JSONDecodeError:
        logger.debug("initData user field is not valid JSON")
        return None
    if not isinstance(user, dict) or user.get('id') is None:
        return None
    return str(user['id'])


def verify_init_data(init_data: str, bot_token: str,
                     max_age_seconds: Optional[int] = None,
                     now: Optional[float] = None) -> Optional[Dict[str, Any]]:
    """
    Check the ``hash`` signature of ``init_data`` against ``bot_token``.

    Args:
        init_data: Raw query string handed to the WebApp by Telegram
        bot_token: Token of the bot that opened the WebApp
        max_age_seconds: Reject data whose ``auth_date`` is older than this
        now: Current UNIX time (seconds), for tests

    Returns:
        dict with ``user_id``, ``user`` and the remaining ``fields``, or None
        when the data is missing, malformed, stale or not signed by the bot
    """
    if not init_data or not bot_token:
        return None

    try:
        fields = dict(parse_qsl(init_data, keep_blank_values=True, strict_parsing=True))
    except ValueError:
        logger.warning("Rejecting initData: not a valid query string")
        return None

    provided_hash = fields.pop('hash', '')
    if not provided_hash:
        return None

    data_check_string = "\n".join(f"{k}={fields[k]}" for k in sorted(fields)).encode('utf-8')
    secret_key = hmac.new(b"WebAppData", bot_token.encode('utf-8'), hashlib.sha256).digest()
    calc_hash = hmac.new(secret_key, data_check_string, hashlib.sha256).hexdigest()
    if not hmac.compare_digest(calc_hash, provided_hash):
        logger.warning("Rejecting initData: hash mismatch")
        return None

    if max_age_seconds is not None:
        try:
            auth_date = int(fields.get('auth_date', ''))
        except ValueError:
            logger.warning("Rejecting initData: missing auth_date")
            return None
        current = time.time() if now is None else now
        if current - auth_date > max_age_seconds:
            logger.warning("Rejecting initData: older than %ss", max_age_seconds)
            return None

    user: Dict[str, Any] = {}
    if 'user' in fields:
        try:
            user = json.loads(fields['user'])
        except json.JSONDecodeError:
            logger.warning("Rejecting initData: user field is not valid JSON")
            return None

    return {
        'user_id': _user_id_from(fields.get('user')),
        'user': user,
        'fields': fields,
    }
