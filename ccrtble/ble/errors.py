"""Exceptions raised by the CC-RT-BLE library."""

from __future__ import annotations


class CcrtbleError(Exception):
    """Base error for CC-RT-BLE devices."""


class CcrtbleConfigurationError(CcrtbleError, TypeError):
    """Invalid discovery options."""


class CcrtbleTimeoutError(CcrtbleError, TimeoutError):
    """A bounded operation exceeded its deadline."""


class CcrtbleAdapterError(CcrtbleError):
    """The BLE adapter reported a failure."""


class CcrtbleProtocolError(CcrtbleError):
    """Notification with an unrecognized message type or status sub-type."""

    def __init__(self, message: str, data: bytes = b"") -> None:
        super().__init__(message)
        self.data = bytes(data)
