"""BLE adapter boundary and its bleak implementation."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Protocol

from bleak import BleakClient, BleakScanner
from bleak.backends.device import BLEDevice
from bleak.backends.scanner import AdvertisementData
from bleak.exc import BleakBluetoothNotAvailableError, BleakError
from bleak_retry_connector import (
    BleakClientWithServiceCache,
    close_stale_connections_by_address,
    establish_connection,
)

from ..const import DEFAULT_TIMEOUT, POWER_POLL_INTERVAL, UUID_SERVICE
from .errors import CcrtbleAdapterError
from .structs import normalize_address, normalize_uuid

_LOGGER = logging.getLogger(__name__)

NotificationCallback = Callable[[bytes], None]
DisconnectedCallback = Callable[[], None]


@dataclass
class Advertisement:
    address: str
    name: str | None = None
    service_uuids: list[str] = field(default_factory=list)
    rssi: int | None = None


class BleAdapter(Protocol):
    """Capabilities the library needs from a BLE driver.

    UUIDs cross this boundary in compact form (lower-case hex without
    separators). Advertisements are pushed into the queue returned by
    ``async_scan_start``; notifications go to the callback registered with
    ``async_subscribe_characteristic``.
    """

    async def async_wait_powered_on(self) -> None: ...

    async def async_scan_start(
        self, service_uuids: Iterable[str]
    ) -> asyncio.Queue[Advertisement]: ...

    async def async_stop_scan(self) -> None: ...

    def is_connected(self, address: str) -> bool: ...

    async def async_connect_peripheral(
        self, address: str, disconnected_callback: DisconnectedCallback | None = None
    ) -> None: ...

    async def async_disconnect_peripheral(self, address: str) -> None: ...

    async def async_discover_characteristics(
        self, address: str, service_uuid: str
    ) -> list[str]: ...

    async def async_subscribe_characteristic(
        self, address: str, char_uuid: str, callback: NotificationCallback
    ) -> None: ...

    async def async_unsubscribe_characteristic(self, address: str, char_uuid: str) -> None: ...

    async def async_write_characteristic(
        self, address: str, char_uuid: str, data: bytes
    ) -> None: ...


def to_bleak_uuid(uuid: str) -> str:
    uuid = normalize_uuid(uuid)
    return f"{uuid[0:8]}-{uuid[8:12]}-{uuid[12:16]}-{uuid[16:20]}-{uuid[20:]}"


class BleakAdapter:
    """BleAdapter backed by bleak and bleak-retry-connector."""

    def __init__(self, connect_timeout: float = DEFAULT_TIMEOUT) -> None:
        self._connect_timeout = connect_timeout
        self._scanner: BleakScanner | None = None
        self._queue: asyncio.Queue[Advertisement] | None = None
        self._ble_devices: dict[str, BLEDevice] = {}
        self._clients: dict[str, BleakClient] = {}
        self._powered_on = False

    async def async_wait_powered_on(self) -> None:
        while not self._powered_on:
            scanner = BleakScanner()
            try:
                await scanner.start()
            except BleakBluetoothNotAvailableError as err:
                _LOGGER.debug("Bluetooth not available yet: %s", err)
                await asyncio.sleep(POWER_POLL_INTERVAL)
                continue
            except BleakError as err:
                raise CcrtbleAdapterError(f"Failed to probe adapter: {err}") from err
            await scanner.stop()
            _LOGGER.debug("Adapter is powered on")
            self._powered_on = True

    def _detection_callback(self, device: BLEDevice, adv: AdvertisementData) -> None:
        address = normalize_address(device.address)
        service_uuids = [normalize_uuid(uuid) for uuid in adv.service_uuids]
        if UUID_SERVICE in service_uuids:
            self._ble_devices[address] = device
        if self._queue is None:
            return
        self._queue.put_nowait(
            Advertisement(
                address=address,
                name=adv.local_name or device.name,
                service_uuids=service_uuids,
                rssi=adv.rssi,
            )
        )

    async def async_scan_start(
        self, service_uuids: Iterable[str]
    ) -> asyncio.Queue[Advertisement]:
        if self._scanner is not None:
            raise CcrtbleAdapterError("A scan is already running")
        self._queue = asyncio.Queue()
        self._scanner = BleakScanner(
            detection_callback=self._detection_callback,
            service_uuids=[to_bleak_uuid(uuid) for uuid in service_uuids],
        )
        try:
            await self._scanner.start()
        except BleakError as err:
            self._scanner = None
            self._queue = None
            raise CcrtbleAdapterError(f"Failed to start scanning: {err}") from err
        _LOGGER.debug("Discovery started")
        return self._queue

    async def async_stop_scan(self) -> None:
        scanner, self._scanner = self._scanner, None
        self._queue = None
        if scanner is None:
            return
        try:
            await scanner.stop()
        except BleakError as err:
            raise CcrtbleAdapterError(f"Failed to stop scanning: {err}") from err
        _LOGGER.debug("Discovery finished")

    def is_connected(self, address: str) -> bool:
        client = self._clients.get(normalize_address(address))
        return client is not None and client.is_connected

    def _client(self, address: str) -> BleakClient:
        client = self._clients.get(normalize_address(address))
        if client is None or not client.is_connected:
            raise CcrtbleAdapterError(f"Not connected to {address}")
        return client

    async def async_connect_peripheral(
        self, address: str, disconnected_callback: DisconnectedCallback | None = None
    ) -> None:
        address = normalize_address(address)
        ble_device = self._ble_devices.get(address)
        if ble_device is None:
            try:
                ble_device = await BleakScanner.find_device_by_address(
                    address, timeout=self._connect_timeout
                )
            except BleakError as err:
                raise CcrtbleAdapterError(f"Failed to look up {address}: {err}") from err
        if ble_device is None:
            raise CcrtbleAdapterError(f"No connectable device found for {address}")

        try:
            await close_stale_connections_by_address(address)
        except Exception as err:
            _LOGGER.debug("close_stale_connections_by_address(%s) failed: %s", address, err)

        def _on_disconnect(client: BleakClient) -> None:
            # Ignore events from a link that is no longer the current one.
            if self._clients.get(address) is not client:
                return
            del self._clients[address]
            if disconnected_callback is not None:
                disconnected_callback()

        try:
            # The session bounds the whole connect; keep the connector to one attempt.
            client = await establish_connection(
                BleakClientWithServiceCache,
                ble_device,
                address,
                disconnected_callback=_on_disconnect,
                max_attempts=1,
            )
        except BleakError as err:
            raise CcrtbleAdapterError(f"Failed to connect to {address}: {err}") from err
        self._clients[address] = client

    async def async_disconnect_peripheral(self, address: str) -> None:
        client = self._clients.pop(normalize_address(address), None)
        if client is None:
            return
        try:
            await client.disconnect()
        except BleakError as err:
            raise CcrtbleAdapterError(f"Failed to disconnect from {address}: {err}") from err

    async def async_discover_characteristics(
        self, address: str, service_uuid: str
    ) -> list[str]:
        client = self._client(address)
        service = client.services.get_service(to_bleak_uuid(service_uuid))
        if service is None:
            raise CcrtbleAdapterError(f"Service {service_uuid} not found on {address}")
        return [normalize_uuid(char.uuid) for char in service.characteristics]

    async def async_subscribe_characteristic(
        self, address: str, char_uuid: str, callback: NotificationCallback
    ) -> None:
        client = self._client(address)

        def _handle(_sender: object, data: bytearray) -> None:
            callback(bytes(data))

        try:
            await client.start_notify(to_bleak_uuid(char_uuid), _handle)
        except BleakError as err:
            raise CcrtbleAdapterError(f"Failed to subscribe to {char_uuid}: {err}") from err

    async def async_unsubscribe_characteristic(self, address: str, char_uuid: str) -> None:
        client = self._clients.get(normalize_address(address))
        if client is None or not client.is_connected:
            return
        try:
            await client.stop_notify(to_bleak_uuid(char_uuid))
        except BleakError as err:
            raise CcrtbleAdapterError(f"Failed to unsubscribe from {char_uuid}: {err}") from err

    async def async_write_characteristic(
        self, address: str, char_uuid: str, data: bytes
    ) -> None:
        client = self._client(address)
        try:
            await client.write_gatt_char(to_bleak_uuid(char_uuid), data, response=True)
        except BleakError as err:
            raise CcrtbleAdapterError(f"Failed to write {char_uuid}: {err}") from err

    async def async_close(self) -> None:
        if self._scanner is not None:
            await self.async_stop_scan()
        for address in list(self._clients):
            await self.async_disconnect_peripheral(address)
