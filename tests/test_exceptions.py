# -*- coding: utf-8 -*-
# ============================================================================ #
# TapGame Core (TGC)                                                          #
# Copyright (c) 2025 MAX                                                       #
# Licensed under the MIT License                                               #
# ============================================================================ #

from services.exceptions import (
    FileStorageError,
    InvalidInitDataError,
    SyncProtocolError,
    SyncServiceError,
    SyncTransportError,
    TGCBaseException,
    get_exception_info,
    is_recoverable_error,
)


def test_to_dict_uses_class_name_as_default_code():
    exc = SyncTransportError("timeout", details={"url": "http://backend"})
    assert exc.to_dict() == {
        "error": "SyncTransportError",
        "error_code": "SyncTransportError",
        "message": "timeout",
        "details": {"url": "http://backend"},
    }


def test_hierarchy():
    assert issubclass(SyncProtocolError, SyncServiceError)
    assert issubclass(InvalidInitDataError, SyncServiceError)
    assert issubclass(FileStorageError, TGCBaseException)


def test_exception_info_for_foreign_exception():
    info = get_exception_info(KeyError("x"))
    assert info["error"] == "KeyError"
    assert info["details"] == {}


def test_recoverable_errors():
    assert is_recoverable_error(SyncTransportError("offline"))
    assert is_recoverable_error(FileStorageError("disk full"))
    assert not is_recoverable_error(SyncProtocolError("garbage"))
    assert not is_recoverable_error(InvalidInitDataError("bad hash"))
    assert not is_recoverable_error(ValueError("x"))
