"""Device access for CC-RT-BLE thermostats."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from ..const import EVENT_STATUS, EVENT_VERSION
from .client import CcrtbleClient, SessionState
from .protocol import (
    encode_get_info,
    encode_get_status,
    encode_set_boost,
    encode_set_comfort_temperature,
    encode_set_eco_temperature,
    encode_set_target_temperature,
)
from .structs import InfoData, StatusData

_LOGGER = logging.getLogger(__name__)


class CcrtbleDevice:
    """High-level device operations."""

    def __init__(self, client: CcrtbleClient, name: str | None = None) -> None:
        self._client = client
        self.name = name
        self.last_discovery = datetime.now(timezone.utc)

    def __repr__(self) -> str:
        return f"<CcrtbleDevice {self.address} name={self.name!r} state={self.state.value}>"

    @property
    def address(self) -> str:
        return self._client.address

    @property
    def state(self) -> SessionState:
        return self._client.state

    @property
    def is_connected(self) -> bool:
        return self._client.is_connected

    async def async_connect(self) -> None:
        await self._client.async_connect()

    async def async_disconnect(self) -> None:
        await self._client.async_disconnect()

    async def async_get_status(self) -> StatusData:
        return await self._client.async_send_command(encode_get_status(), EVENT_STATUS)

    async def async_get_info(self) -> InfoData:
        return await self._client.async_send_command(encode_get_info(), EVENT_VERSION)

    async def async_set_target_temperature(self, temperature: float) -> StatusData:
        """Set the target temperature, rounded to the nearest half degree."""
        payload = encode_set_target_temperature(temperature)
        _LOGGER.debug("Setting target temperature of %s to %.1f", self.address, payload[1] / 2)
        return await self._client.async_send_command(payload, EVENT_STATUS)

    async def async_set_comfort_temperature(self) -> StatusData:
        return await self._client.async_send_command(
            encode_set_comfort_temperature(), EVENT_STATUS
        )

    async def async_set_eco_temperature(self) -> StatusData:
        return await self._client.async_send_command(encode_set_eco_temperature(), EVENT_STATUS)

    async def async_set_boost(self, enabled: bool) -> StatusData:
        return await self._client.async_send_command(encode_set_boost(enabled), EVENT_STATUS)
