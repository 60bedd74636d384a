# -*- coding: utf-8 -*-
# ============================================================================ #
# TapGame Core (TGC)                                                          #
# Copyright (c) 2025 MAX                                                       #
# Licensed under the MIT License                                               #
# ============================================================================ #

"""Progress sync boundary between a game session and the backend."""

from .client import ProgressSyncClient
from .models import SyncResult
from .service import SyncService

__all__ = [
    "ProgressSyncClient",
    "SyncResult",
    "SyncService",
]
