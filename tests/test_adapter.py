"""Tests for the bleak-backed adapter."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace

import pytest
from bleak import BleakScanner
from bleak.exc import BleakError

from ccrtble.ble import adapter as adapter_module
from ccrtble.ble.adapter import BleakAdapter, to_bleak_uuid
from ccrtble.ble.client import CcrtbleClient, SessionState
from ccrtble.ble.errors import CcrtbleAdapterError
from ccrtble.const import UUID_COMMAND, UUID_DATA, UUID_SERVICE

ADDRESS = "00:1a:22:0e:54:19"


class FakeBleakClient:
    """Minimal stand-in for a connected BleakClient."""

    def __init__(self) -> None:
        """Expose the thermostat service with both characteristics."""
        self.is_connected = True
        self.writes: list[tuple[str, bytes, bool]] = []
        self.notify_callback = None
        self.notify_char: str | None = None
        self.fail_write = False
        self.services = SimpleNamespace(get_service=self._get_service)

    def _get_service(self, uuid: str):
        if uuid != to_bleak_uuid(UUID_SERVICE):
            return None
        return SimpleNamespace(
            characteristics=[
                SimpleNamespace(uuid=to_bleak_uuid(UUID_COMMAND)),
                SimpleNamespace(uuid=to_bleak_uuid(UUID_DATA)),
            ]
        )

    async def write_gatt_char(self, char: str, data: bytes, response: bool) -> None:
        if self.fail_write:
            raise BleakError("write failed")
        self.writes.append((char, bytes(data), response))

    async def start_notify(self, char: str, callback) -> None:
        self.notify_char = char
        self.notify_callback = callback

    async def stop_notify(self, char: str) -> None:
        self.notify_callback = None

    async def disconnect(self) -> None:
        self.is_connected = False


@pytest.fixture
def bleak_client(monkeypatch) -> FakeBleakClient:
    client = FakeBleakClient()
    captured: dict[str, object] = {}

    async def _establish_connection(client_class, device, name, **kwargs):
        captured.update(kwargs, device=device)
        return client

    async def _close_stale(address):
        return None

    monkeypatch.setattr(adapter_module, "establish_connection", _establish_connection)
    monkeypatch.setattr(adapter_module, "close_stale_connections_by_address", _close_stale)
    client.captured = captured
    return client


def _seen(
    adapter: BleakAdapter,
    address: str = ADDRESS.upper(),
    service_uuids: list[str] | None = None,
) -> None:
    if service_uuids is None:
        service_uuids = [to_bleak_uuid(UUID_SERVICE).upper()]
    device = SimpleNamespace(address=address, name="CC-RT-BLE")
    adv = SimpleNamespace(
        local_name=None,
        service_uuids=service_uuids,
        rssi=-70,
    )
    adapter._detection_callback(device, adv)


def test_to_bleak_uuid():
    assert to_bleak_uuid(UUID_SERVICE) == "3e135142-654f-9090-134a-a6ff5bb77046"
    assert to_bleak_uuid(to_bleak_uuid(UUID_DATA)) == "d0e8434d-cd29-0996-af41-6c90f4e0eb2a"


@pytest.mark.asyncio
async def test_detection_callback_feeds_scan_queue():
    adapter = BleakAdapter()
    adapter._queue = queue = asyncio.Queue()

    _seen(adapter)

    advertisement = queue.get_nowait()
    assert advertisement.address == ADDRESS
    assert advertisement.name == "CC-RT-BLE"
    assert advertisement.service_uuids == [UUID_SERVICE]
    assert advertisement.rssi == -70


@pytest.mark.asyncio
async def test_connect_subscribe_write(bleak_client):
    adapter = BleakAdapter()
    _seen(adapter)
    received: list[bytes] = []

    await adapter.async_connect_peripheral(ADDRESS)
    assert adapter.is_connected(ADDRESS)
    assert bleak_client.captured["max_attempts"] == 1

    characteristics = await adapter.async_discover_characteristics(ADDRESS, UUID_SERVICE)
    assert characteristics == [UUID_COMMAND, UUID_DATA]

    await adapter.async_subscribe_characteristic(ADDRESS, UUID_DATA, received.append)
    assert bleak_client.notify_char == to_bleak_uuid(UUID_DATA)
    bleak_client.notify_callback(None, bytearray(b"\x02\x01"))
    assert received == [b"\x02\x01"]

    await adapter.async_write_characteristic(ADDRESS, UUID_COMMAND, b"\x00")
    assert bleak_client.writes == [(to_bleak_uuid(UUID_COMMAND), b"\x00", True)]

    await adapter.async_disconnect_peripheral(ADDRESS)
    assert not adapter.is_connected(ADDRESS)


@pytest.mark.asyncio
async def test_disconnected_callback(bleak_client):
    adapter = BleakAdapter()
    _seen(adapter)
    calls: list[bool] = []

    await adapter.async_connect_peripheral(ADDRESS, lambda: calls.append(True))
    bleak_client.captured["disconnected_callback"](bleak_client)

    assert calls == [True]
    assert not adapter.is_connected(ADDRESS)


@pytest.mark.asyncio
async def test_bleak_errors_are_wrapped(bleak_client):
    adapter = BleakAdapter()
    _seen(adapter)
    await adapter.async_connect_peripheral(ADDRESS)
    bleak_client.fail_write = True

    with pytest.raises(CcrtbleAdapterError, match="write failed"):
        await adapter.async_write_characteristic(ADDRESS, UUID_COMMAND, b"\x00")


@pytest.mark.asyncio
async def test_operations_require_connection():
    adapter = BleakAdapter()

    with pytest.raises(CcrtbleAdapterError, match="Not connected"):
        await adapter.async_write_characteristic(ADDRESS, UUID_COMMAND, b"\x00")


def _find_device(result=None, error: Exception | None = None):
    lookups: list[str] = []

    async def _find_device_by_address(address, timeout=None):
        lookups.append(address)
        if error is not None:
            raise error
        return result

    return staticmethod(_find_device_by_address), lookups


@pytest.mark.asyncio
async def test_address_lookup_errors_are_wrapped(monkeypatch):
    find, _ = _find_device(error=BleakError("Bluetooth adapter is off"))
    monkeypatch.setattr(BleakScanner, "find_device_by_address", find)

    with pytest.raises(CcrtbleAdapterError, match="adapter is off"):
        await BleakAdapter().async_connect_peripheral(ADDRESS)


@pytest.mark.asyncio
async def test_session_recovers_from_failed_address_lookup(monkeypatch):
    find, _ = _find_device(error=BleakError("Bluetooth adapter is off"))
    monkeypatch.setattr(BleakScanner, "find_device_by_address", find)
    session = CcrtbleClient(BleakAdapter(), ADDRESS, timeout=0.2)

    with pytest.raises(CcrtbleAdapterError):
        await session.async_connect()

    assert session.state is SessionState.DISCONNECTED


@pytest.mark.asyncio
async def test_only_thermostats_are_cached(monkeypatch):
    find, lookups = _find_device()
    monkeypatch.setattr(BleakScanner, "find_device_by_address", find)
    adapter = BleakAdapter()
    adapter._queue = queue = asyncio.Queue()
    other = "00:1a:22:00:00:0b"

    _seen(adapter, other.upper(), service_uuids=["0000180f-0000-1000-8000-00805f9b34fb"])
    _seen(adapter)

    assert queue.get_nowait().address == other
    assert queue.get_nowait().address == ADDRESS
    with pytest.raises(CcrtbleAdapterError, match="No connectable device"):
        await adapter.async_connect_peripheral(other)
    assert lookups == [other]


@pytest.mark.asyncio
async def test_stale_disconnect_event_is_ignored(monkeypatch):
    links: list[FakeBleakClient] = []
    callbacks: list = []

    async def _establish_connection(client_class, device, name, **kwargs):
        links.append(FakeBleakClient())
        callbacks.append(kwargs["disconnected_callback"])
        return links[-1]

    async def _close_stale(address):
        return None

    monkeypatch.setattr(adapter_module, "establish_connection", _establish_connection)
    monkeypatch.setattr(adapter_module, "close_stale_connections_by_address", _close_stale)
    adapter = BleakAdapter()
    _seen(adapter)
    session = CcrtbleClient(adapter, ADDRESS, timeout=0.2)

    await session.async_connect()
    await session.async_disconnect()
    await session.async_connect()
    callbacks[0](links[0])

    assert len(links) == 2
    assert adapter.is_connected(ADDRESS)
    assert session.state is SessionState.READY
    assert session.is_connected
