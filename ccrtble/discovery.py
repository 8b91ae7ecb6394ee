"""Discovery of CC-RT-BLE thermostats."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

import voluptuous as vol

from .ble.adapter import Advertisement, BleAdapter
from .ble.client import CcrtbleClient
from .ble.device import CcrtbleDevice
from .ble.errors import CcrtbleConfigurationError
from .ble.structs import normalize_address, normalize_uuid
from .const import (
    CONF_ADDRESSES,
    CONF_DURATION,
    CONF_IGNORE_UNKNOWN,
    CONF_IGNORE_UNKNOWN_ALIAS,
    DEFAULT_DISCOVERY_DURATION,
    DEFAULT_TIMEOUT,
    UUID_SERVICE,
)

_LOGGER = logging.getLogger(__name__)


def _normalize_addresses(addresses: list[str] | tuple[str, ...]) -> list[str]:
    return [normalize_address(address) for address in addresses]


DISCOVERY_SCHEMA = vol.Schema(
    {
        vol.Optional(CONF_DURATION, default=DEFAULT_DISCOVERY_DURATION): vol.All(
            vol.Coerce(float), vol.Range(min=0)
        ),
        vol.Optional(CONF_ADDRESSES, default=list): vol.All(
            vol.Any([str], (str,)), _normalize_addresses
        ),
        vol.Optional(CONF_IGNORE_UNKNOWN, default=False): bool,
    },
    extra=vol.PREVENT_EXTRA,
)


def validate_options(options: Mapping[str, Any] | None) -> dict[str, Any]:
    """Validate discovery options and fill in defaults.

    Raises:
        CcrtbleConfigurationError: An option is unknown or has the wrong type.
    """
    try:
        config = dict(options) if options is not None else {}
        if CONF_IGNORE_UNKNOWN_ALIAS in config:
            if CONF_IGNORE_UNKNOWN in config:
                raise vol.Invalid(
                    f"{CONF_IGNORE_UNKNOWN} and {CONF_IGNORE_UNKNOWN_ALIAS} are mutually exclusive"
                )
            config[CONF_IGNORE_UNKNOWN] = config.pop(CONF_IGNORE_UNKNOWN_ALIAS)
        return DISCOVERY_SCHEMA(config)
    except (vol.Invalid, TypeError, ValueError) as err:
        raise CcrtbleConfigurationError(f"Invalid discovery options: {err}") from err


class Ccrtble:
    """Scan for thermostats advertising the CC-RT-BLE service."""

    def __init__(self, adapter: BleAdapter, timeout: float = DEFAULT_TIMEOUT) -> None:
        self._adapter = adapter
        self._timeout = timeout

    async def async_discover(
        self, options: Mapping[str, Any] | None = None
    ) -> list[CcrtbleDevice]:
        config = validate_options(options)
        duration: float = config[CONF_DURATION]
        addresses: list[str] = config[CONF_ADDRESSES]
        ignore_unknown: bool = config[CONF_IGNORE_UNKNOWN]
        devices: dict[str, CcrtbleDevice] = {}

        await self._adapter.async_wait_powered_on()
        _LOGGER.debug("Starting discovery with %.1fs duration", duration)
        if addresses:
            _LOGGER.debug(
                "Discovery will stop once %s %s found",
                addresses,
                "is" if len(addresses) == 1 else "are",
            )

        queue = await self._adapter.async_scan_start([UUID_SERVICE])
        try:
            async with asyncio.timeout(duration):
                while True:
                    advertisement = await queue.get()
                    if not self._handle_advertisement(
                        advertisement, devices, addresses, ignore_unknown
                    ):
                        continue
                    if addresses and all(address in devices for address in addresses):
                        _LOGGER.debug("Found all requested devices, stopping discovery")
                        break
        except TimeoutError:
            _LOGGER.debug("Duration reached, stopping discovery")
        finally:
            await self._adapter.async_stop_scan()

        return list(devices.values())

    def _handle_advertisement(
        self,
        advertisement: Advertisement,
        devices: dict[str, CcrtbleDevice],
        addresses: list[str],
        ignore_unknown: bool,
    ) -> bool:
        """Record a new device; return True if one was added."""
        address = normalize_address(advertisement.address)
        if ignore_unknown and address not in addresses:
            _LOGGER.debug("Ignoring device with address %s", address)
            return False
        if UUID_SERVICE not in {normalize_uuid(uuid) for uuid in advertisement.service_uuids}:
            return False
        if address in devices:
            return False

        device = CcrtbleDevice(
            CcrtbleClient(self._adapter, address, timeout=self._timeout),
            name=advertisement.name,
        )
        devices[address] = device
        _LOGGER.debug("Discovered device @ %s (%s)", address, advertisement.name)
        return True
