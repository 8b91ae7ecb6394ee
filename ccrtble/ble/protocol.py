"""Command encoding and notification decoding for the CC-RT-BLE protocol."""

from __future__ import annotations

from datetime import datetime
from typing import NamedTuple, Union

from ..const import (
    CMD_GET_INFO,
    CMD_GET_STATUS,
    CMD_SET_BOOST,
    CMD_SET_COMFORT_TEMPERATURE,
    CMD_SET_ECO_TEMPERATURE,
    CMD_SET_TARGET_TEMPERATURE,
    EVENT_STATUS,
    EVENT_VERSION,
    MSG_INFO,
    MSG_STATUS,
)
from .errors import CcrtbleProtocolError
from .structs import InfoData, StatusData, from_temperature


class Notification(NamedTuple):
    kind: str
    record: Union[InfoData, StatusData]


def encode_get_info() -> bytes:
    return bytes([CMD_GET_INFO])


def encode_get_status(now: datetime | None = None) -> bytes:
    """Request a status report; the payload also sets the device clock."""
    now = now or datetime.now()
    return bytes(
        [
            CMD_GET_STATUS,
            now.year % 100,
            now.month,
            now.day,
            now.hour,
            now.minute,
            now.second,
        ]
    )


def encode_set_target_temperature(temperature: float) -> bytes:
    raw = from_temperature(temperature)
    if not 0 <= raw <= 0xFF:
        raise ValueError(f"Temperature {temperature} cannot be encoded in half-degree steps")
    return bytes([CMD_SET_TARGET_TEMPERATURE, raw])


def encode_set_comfort_temperature() -> bytes:
    return bytes([CMD_SET_COMFORT_TEMPERATURE])


def encode_set_eco_temperature() -> bytes:
    return bytes([CMD_SET_ECO_TEMPERATURE])


def encode_set_boost(enabled: bool) -> bytes:
    return bytes([CMD_SET_BOOST, 0x01 if enabled else 0x00])


def decode_notification(data: bytes) -> Notification:
    """Dispatch a notification on its message type.

    Raises:
        CcrtbleProtocolError: Unknown message type or status sub-type.
    """
    data = bytes(data)
    if not data:
        raise CcrtbleProtocolError("Empty notification", data)
    message_type = data[0]
    if message_type == MSG_INFO:
        return Notification(EVENT_VERSION, InfoData.from_bytes(data))
    if message_type == MSG_STATUS:
        return Notification(EVENT_STATUS, StatusData.from_bytes(data))
    raise CcrtbleProtocolError(f"Unknown message type {message_type:#04x}", data)
