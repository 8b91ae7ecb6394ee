"""BLE layer for CC-RT-BLE thermostats."""

from .adapter import Advertisement, BleAdapter, BleakAdapter
from .client import CcrtbleClient, SessionState
from .device import CcrtbleDevice
from .errors import (
    CcrtbleAdapterError,
    CcrtbleConfigurationError,
    CcrtbleError,
    CcrtbleProtocolError,
    CcrtbleTimeoutError,
)
from .structs import HeatingMode, InfoData, StatusData, normalize_address

__all__ = [
    "Advertisement",
    "BleAdapter",
    "BleakAdapter",
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
