"""BLE session for CC-RT-BLE devices."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum

from ..const import DEFAULT_TIMEOUT, EVENT_STATUS, UUID_COMMAND, UUID_DATA, UUID_SERVICE
from .adapter import BleAdapter
from .errors import (
    CcrtbleAdapterError,
    CcrtbleProtocolError,
    CcrtbleTimeoutError,
)
from .protocol import decode_notification
from .structs import InfoData, StatusData, normalize_address

_LOGGER = logging.getLogger(__name__)


class SessionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    RESOLVING_CHARACTERISTICS = "resolving_characteristics"
    SUBSCRIBING = "subscribing"
    READY = "ready"
    DISCONNECTING = "disconnecting"


class CcrtbleClient:
    """Connection state machine and request/reply channel for one device.

    Connect and disconnect share a lock, so a second attempt waits for the
    first and then finds the session in a stable state. Commands are
    serialized by their own lock: there is at most one reply slot per device
    and a notification can only ever resolve the command that is in flight.
    """

    def __init__(
        self,
        adapter: BleAdapter,
        address: str,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._adapter = adapter
        self._address = normalize_address(address)
        self._timeout = timeout
        self._state = SessionState.DISCONNECTED
        self._subscribed = False
        self._connect_lock = asyncio.Lock()
        self._command_lock = asyncio.Lock()
        self._pending: tuple[str, asyncio.Future[InfoData | StatusData]] | None = None

    @property
    def address(self) -> str:
        return self._address

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is SessionState.READY and self._adapter.is_connected(self._address)

    async def async_connect(self) -> None:
        await self._connect(asyncio.get_running_loop().time() + self._timeout)

    async def _connect(self, deadline: float) -> None:
        async with self._connect_lock:
            if self.is_connected:
                return
            try:
                async with asyncio.timeout_at(deadline):
                    await self._establish()
            except TimeoutError as err:
                await self._abort_connect(deadline)
                raise CcrtbleTimeoutError(
                    f"Timeout connecting to {self._address} after {self._timeout:.1f}s"
                ) from err
            except (Exception, asyncio.CancelledError):
                await self._abort_connect(deadline)
                raise
            _LOGGER.debug("Connected to %s", self._address)

    async def _establish(self) -> None:
        if not self._adapter.is_connected(self._address):
            self._state = SessionState.CONNECTING
            _LOGGER.debug("Initiating connection to %s", self._address)
            await self._adapter.async_connect_peripheral(self._address, self._on_disconnected)

        self._state = SessionState.RESOLVING_CHARACTERISTICS
        _LOGGER.debug("Resolving services and characteristics on %s", self._address)
        characteristics = await self._adapter.async_discover_characteristics(
            self._address, UUID_SERVICE
        )
        missing = {UUID_COMMAND, UUID_DATA}.difference(characteristics)
        if missing:
            raise CcrtbleAdapterError(
                f"Characteristic(s) {', '.join(sorted(missing))} not found on {self._address}"
            )

        self._state = SessionState.SUBSCRIBING
        _LOGGER.debug("Subscribing to data characteristic on %s", self._address)
        await self._adapter.async_subscribe_characteristic(
            self._address, UUID_DATA, self._notification_handler
        )
        self._subscribed = True
        self._state = SessionState.READY

    async def _abort_connect(self, deadline: float) -> None:
        """Drop a partial connection so the next connect starts from scratch.

        Cleanup shares the connect deadline; once it has passed, the adapter
        calls are started and cancelled at their first suspension.
        """
        try:
            async with asyncio.timeout_at(deadline):
                if self._subscribed:
                    await self._adapter.async_unsubscribe_characteristic(self._address, UUID_DATA)
                await self._adapter.async_disconnect_peripheral(self._address)
        except Exception as err:
            _LOGGER.debug("Cleanup of %s after failed connect failed: %s", self._address, err)
        finally:
            self._subscribed = False
            self._state = SessionState.DISCONNECTED

    async def async_disconnect(self) -> None:
        async with self._connect_lock:
            if self._state is SessionState.DISCONNECTED and not self._adapter.is_connected(
                self._address
            ):
                return
            self._state = SessionState.DISCONNECTING
            _LOGGER.debug("Closing connection to %s", self._address)
            try:
                async with asyncio.timeout(self._timeout):
                    await self._adapter.async_disconnect_peripheral(self._address)
            except TimeoutError as err:
                raise CcrtbleTimeoutError(
                    f"Timeout disconnecting from {self._address} after {self._timeout:.1f}s"
                ) from err
            finally:
                self._subscribed = False
                self._state = SessionState.DISCONNECTED
            _LOGGER.debug("Disconnected from %s", self._address)

    def _on_disconnected(self) -> None:
        _LOGGER.debug("Link to %s closed", self._address)
        self._subscribed = False
        self._state = SessionState.DISCONNECTED
        if self._pending is not None and not self._pending[1].done():
            self._pending[1].set_exception(
                CcrtbleAdapterError(f"Connection to {self._address} lost")
            )

    async def _write(self, payload: bytes) -> None:
        try:
            async with asyncio.timeout(self._timeout):
                await self._adapter.async_write_characteristic(
                    self._address, UUID_COMMAND, payload
                )
        except TimeoutError as err:
            raise CcrtbleTimeoutError(
                f"Timeout writing to {self._address} after {self._timeout:.1f}s"
            ) from err
        _LOGGER.debug(
            "Wrote 0x%s to characteristic %s on %s",
            payload.hex().upper(),
            UUID_COMMAND.upper(),
            self._address,
        )

    async def async_send_command(
        self, payload: bytes, kind: str = EVENT_STATUS
    ) -> InfoData | StatusData:
        """Write a command and wait for the reply of the given kind.

        Raises:
            CcrtbleTimeoutError: Connect, write or reply exceeded the timeout.
            CcrtbleAdapterError: The adapter failed or the link dropped.
        """
        async with self._command_lock:
            loop = asyncio.get_running_loop()
            deadline = loop.time() + self._timeout
            await self._connect(deadline)
            reply: asyncio.Future[InfoData | StatusData] = loop.create_future()
            self._pending = (kind, reply)
            try:
                async with asyncio.timeout_at(deadline):
                    await self._write(payload)
                    return await reply
            except CcrtbleTimeoutError:
                raise
            except TimeoutError as err:
                raise CcrtbleTimeoutError(
                    f"No {kind} reply from {self._address} within {self._timeout:.1f}s"
                ) from err
            finally:
                self._pending = None
                if not reply.done():
                    reply.cancel()

    def _notification_handler(self, data: bytes) -> None:
        try:
            notification = decode_notification(data)
        except CcrtbleProtocolError as err:
            _LOGGER.warning(
                "Unrecognized notification from %s: %s (0x%s)",
                self._address,
                err,
                err.data.hex(),
            )
            return

        _LOGGER.debug("Received %s message from %s", notification.kind, self._address)
        pending = self._pending
        if pending is None or pending[0] != notification.kind or pending[1].done():
            _LOGGER.debug(
                "No pending %s request on %s, dropping message", notification.kind, self._address
            )
            return
        pending[1].set_result(notification.record)
