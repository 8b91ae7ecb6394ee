"""Pytest configuration for the ccrtble tests."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable

import pytest

from ccrtble.ble.adapter import Advertisement
from ccrtble.ble.client import CcrtbleClient
from ccrtble.const import UUID_COMMAND, UUID_DATA

ADDRESS = "00:1a:22:0e:54:19"


class FakeAdapter:
    """In-process stand-in for a BLE driver."""

    def __init__(self) -> None:
        """Start powered on with a device exposing both characteristics."""
        self.advertisements: list[Advertisement] = []
        self.characteristics: list[str] = [UUID_COMMAND, UUID_DATA]
        self.replies: dict[int, list[bytes]] = {}
        self.hang_connect = False
        self.hang_disconnect = False
        self.connect_delay = 0.0
        self.hang_write = False
        self.connect_error: Exception | None = None
        self.write_error: Exception | None = None
        self.events: list[str] = []
        self.writes: list[bytes] = []
        self.connected: set[str] = set()
        self.subscriptions: dict[str, Callable[[bytes], None]] = {}
        self.disconnected_callbacks: dict[str, Callable[[], None] | None] = {}
        self.queue: asyncio.Queue[Advertisement] | None = None
        self.scan_service_uuids: list[str] = []
        self.scanning = False

    async def async_wait_powered_on(self) -> None:
        self.events.append("powered_on")

    async def async_scan_start(self, service_uuids: Iterable[str]) -> asyncio.Queue[Advertisement]:
        """Queue every prepared advertisement in order."""
        self.events.append("scan_start")
        self.scan_service_uuids = list(service_uuids)
        self.scanning = True
        self.queue = asyncio.Queue()
        for advertisement in self.advertisements:
            self.queue.put_nowait(advertisement)
        return self.queue

    async def async_stop_scan(self) -> None:
        self.events.append("stop_scan")
        self.scanning = False

    def is_connected(self, address: str) -> bool:
        return address in self.connected

    async def async_connect_peripheral(
        self, address: str, disconnected_callback: Callable[[], None] | None = None
    ) -> None:
        self.events.append("connect")
        if self.connect_delay:
            await asyncio.sleep(self.connect_delay)
        if self.hang_connect:
            await asyncio.sleep(3600)
        if self.connect_error is not None:
            raise self.connect_error
        self.connected.add(address)
        self.disconnected_callbacks[address] = disconnected_callback

    async def async_disconnect_peripheral(self, address: str) -> None:
        self.events.append("disconnect")
        if self.hang_disconnect:
            await asyncio.sleep(3600)
        self.connected.discard(address)
        self.subscriptions.pop(address, None)

    async def async_discover_characteristics(self, address: str, service_uuid: str) -> list[str]:
        self.events.append("discover")
        return list(self.characteristics)

    async def async_subscribe_characteristic(
        self, address: str, char_uuid: str, callback: Callable[[bytes], None]
    ) -> None:
        self.events.append("subscribe")
        self.subscriptions[address] = callback

    async def async_unsubscribe_characteristic(self, address: str, char_uuid: str) -> None:
        self.events.append("unsubscribe")
        self.subscriptions.pop(address, None)

    async def async_write_characteristic(self, address: str, char_uuid: str, data: bytes) -> None:
        """Record the write and schedule the prepared replies for its opcode."""
        self.events.append("write")
        if self.hang_write:
            await asyncio.sleep(3600)
        if self.write_error is not None:
            raise self.write_error
        self.writes.append(bytes(data))
        loop = asyncio.get_running_loop()
        for reply in self.replies.get(data[0], []):
            loop.call_soon(self.notify, address, reply)

    def notify(self, address: str, data: bytes) -> None:
        callback = self.subscriptions.get(address)
        if callback is not None:
            callback(bytes(data))

    def drop_link(self, address: str) -> None:
        """Simulate the peripheral going away."""
        self.connected.discard(address)
        self.subscriptions.pop(address, None)
        callback = self.disconnected_callbacks.pop(address, None)
        if callback is not None:
            callback()


@pytest.fixture
def fake_adapter() -> FakeAdapter:
    return FakeAdapter()


@pytest.fixture
def client(fake_adapter: FakeAdapter) -> CcrtbleClient:
    return CcrtbleClient(fake_adapter, ADDRESS, timeout=0.2)
