"""Data structure helpers for CC-RT-BLE notifications."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from ..const import (
    AWAY_YEAR_BASE,
    SERIAL_CHAR_OFFSET,
    STATUS_SUBTYPE_DEFAULT,
    TEMPERATURE_OFFSET_BIAS,
    WINDOW_OPEN_TIME_STEP,
)
from .errors import CcrtbleProtocolError

STATUS_MIN_LENGTH = 6
STATUS_AWAY_END = 10
STATUS_FULL_LENGTH = 15
INFO_MIN_LENGTH = 2
INFO_SERIAL_SLICE = slice(4, 14)

FLAG_MODE = 0x03
FLAG_AWAY = 0x02
FLAG_BOOST = 0x04
FLAG_DST = 0x08
FLAG_WINDOW_OPEN = 0x10
FLAG_LOCKED = 0x20
FLAG_LOW_BATTERY = 0x80


def normalize_address(address: str) -> str:
    return address.replace("-", ":").lower()


def normalize_uuid(uuid: str) -> str:
    return uuid.replace("-", "").lower()


def to_temperature(raw: int) -> float:
    return raw / 2


def from_temperature(value: float) -> int:
    return round(value * 2)


class HeatingMode(IntEnum):
    """Heating mode carried in the low bits of the status flags."""

    AUTO = 0
    MANUAL = 1
    VACATION = 2
    VACATION_MANUAL = 3


@dataclass
class AwayData:
    day: int
    year: int
    hour: int
    minute: int
    month: int

    @classmethod
    def from_bytes(cls, data: bytes) -> "AwayData":
        day, year, time_raw, month = data[:4]
        return cls(
            day=day,
            year=year + AWAY_YEAR_BASE,
            hour=time_raw // 2,
            minute=30 if time_raw & 0x01 else 0,
            month=month,
        )


@dataclass
class WindowOpenData:
    temperature: float
    duration: int  # minutes

    @classmethod
    def from_bytes(cls, data: bytes) -> "WindowOpenData":
        return cls(
            temperature=to_temperature(data[0]),
            duration=data[1] * WINDOW_OPEN_TIME_STEP,
        )


@dataclass
class StatusData:
    """Decoded status notification (sub-type 1).

    Older firmware only sends the first six bytes; the window-open, comfort,
    eco and offset fields are ``None`` in that case.
    """

    mode: HeatingMode
    is_boost: bool
    is_dst: bool
    is_window_open: bool
    is_locked: bool
    is_low_battery: bool
    valve: int
    target_temperature: float
    away: AwayData | None = None
    window_open: WindowOpenData | None = None
    comfort_temperature: float | None = None
    eco_temperature: float | None = None
    temperature_offset: float | None = None

    @classmethod
    def from_bytes(cls, data: bytes) -> "StatusData":
        if len(data) < 2:
            raise CcrtbleProtocolError("Status message too short", data)
        subtype = data[1] & 0x0F
        if subtype != STATUS_SUBTYPE_DEFAULT:
            raise CcrtbleProtocolError(f"Unknown status sub-type {subtype:#04x}", data)
        if len(data) < STATUS_MIN_LENGTH:
            raise CcrtbleProtocolError(
                f"Status message has {len(data)} bytes, expected at least {STATUS_MIN_LENGTH}",
                data,
            )

        flags = data[2]
        away = None
        if flags & FLAG_AWAY:
            if len(data) < STATUS_AWAY_END:
                raise CcrtbleProtocolError("Status flags announce an away schedule that is missing", data)
            away = AwayData.from_bytes(data[6:STATUS_AWAY_END])

        status = cls(
            mode=HeatingMode(flags & FLAG_MODE),
            is_boost=bool(flags & FLAG_BOOST),
            is_dst=bool(flags & FLAG_DST),
            is_window_open=bool(flags & FLAG_WINDOW_OPEN),
            is_locked=bool(flags & FLAG_LOCKED),
            is_low_battery=bool(flags & FLAG_LOW_BATTERY),
            valve=data[3],
            target_temperature=to_temperature(data[5]),
            away=away,
        )
        if len(data) >= STATUS_FULL_LENGTH:
            status.window_open = WindowOpenData.from_bytes(data[10:12])
            status.comfort_temperature = to_temperature(data[12])
            status.eco_temperature = to_temperature(data[13])
            status.temperature_offset = (data[14] - TEMPERATURE_OFFSET_BIAS) / 2
        return status


@dataclass
class InfoData:
    version: int
    serial: str

    @classmethod
    def from_bytes(cls, data: bytes) -> "InfoData":
        if len(data) < INFO_MIN_LENGTH:
            raise CcrtbleProtocolError("Info message too short", data)
        serial = "".join(
            chr((raw - SERIAL_CHAR_OFFSET) % 0x10000) for raw in data[INFO_SERIAL_SLICE]
        )
        return cls(version=data[1], serial=serial)
