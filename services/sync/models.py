# -*- coding: utf-8 -*-
# ============================================================================ #
# TapGame Core (TGC)                                                          #
# Copyright (c) 2025 MAX                                                       #
# Licensed under the MIT License                                               #
# ============================================================================ #
"""Result objects returned by the sync service."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SyncResult:
    """Outcome of one push-and-reconcile cycle."""

    success: bool
    pushed_points: float = 0.0
    acked_points: float = 0.0
    remaining_unsynced: float = 0.0
    skipped: bool = False
    error_message: Optional[str] = None
    error_code: Optional[str] = None

    @classmethod
    def failed(cls, *, pushed_points: float, remaining_unsynced: float,
               error_message: str, error_code: str) -> "SyncResult":
        return cls(
            success=False,
            pushed_points=pushed_points,
            remaining_unsynced=remaining_unsynced,
            error_message=error_message,
            error_code=error_code,
        )
