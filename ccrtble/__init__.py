"""Discover and control CC-RT-BLE radiator thermostats."""

from __future__ import annotations

from .ble import (
    Advertisement,
    BleAdapter,
    BleakAdapter,
    CcrtbleAdapterError,
    CcrtbleClient,
    CcrtbleConfigurationError,
    CcrtbleDevice,
    CcrtbleError,
    CcrtbleProtocolError,
    CcrtbleTimeoutError,
    HeatingMode,
    InfoData,
    SessionState,
    StatusData,
    normalize_address,
)
from .discovery import Ccrtble

__all__ = [
    "Advertisement",
    "BleAdapter",
    "BleakAdapter",
    "Ccrtble",
    "CcrtbleAdapterError",
    "CcrtbleClient",
    "CcrtbleConfigurationError",
    "CcrtbleDevice",
    "CcrtbleError",
    "CcrtbleProtocolError",
    "CcrtbleTimeoutError",
    "HeatingMode",
    "InfoData",
    "SessionState",
    "StatusData",
    "normalize_address",
]
