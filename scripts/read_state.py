#!/usr/bin/env python3
"""Read info/status from a thermostat and optionally change its settings."""

from __future__ import annotations

import argparse
import asyncio
import logging

from ccrtble import BleakAdapter, Ccrtble, CcrtbleDevice, StatusData, normalize_address


def _print_status(status: StatusData) -> None:
    print(f"mode: {status.mode.name.lower()}")
    print(f"target_temp: {status.target_temperature} C")
    print(f"valve: {status.valve}%")
    print(f"boost: {status.is_boost}")
    print(f"window_open: {status.is_window_open}")
    print(f"locked: {status.is_locked}")
    print(f"low_battery: {status.is_low_battery}")
    if status.away is not None:
        away = status.away
        print(
            f"away_until: {away.year:04d}-{away.month:02d}-{away.day:02d} "
            f"{away.hour:02d}:{away.minute:02d}"
        )
    if status.comfort_temperature is not None:
        print(f"comfort_temp: {status.comfort_temperature} C")
        print(f"eco_temp: {status.eco_temperature} C")
        print(f"temp_offset: {status.temperature_offset} C")


async def _run(
    device: CcrtbleDevice,
    temperature: float | None,
    boost: bool | None,
) -> None:
    info = await device.async_get_info()
    print(f"version: {info.version}")
    print(f"serial: {info.serial}")

    status = await device.async_get_status()
    if temperature is not None:
        status = await device.async_set_target_temperature(temperature)
    if boost is not None:
        status = await device.async_set_boost(boost)
    _print_status(status)


async def _read_state(
    address: str,
    duration: float,
    temperature: float | None,
    boost: bool | None,
) -> None:
    address = normalize_address(address)
    adapter = BleakAdapter()
    try:
        devices = await Ccrtble(adapter).async_discover(
            {"duration": duration, "addresses": [address], "ignore_unknown": True}
        )
        device = next((entry for entry in devices if entry.address == address), None)
        if device is None:
            raise SystemExit(f"{address} not found")
        try:
            await _run(device, temperature, boost)
        finally:
            await device.async_disconnect()
    finally:
        await adapter.async_close()


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Read CC-RT-BLE state via BLE.")
    parser.add_argument("address", help="BLE address (e.g. 00:1a:22:0e:54:19)")
    parser.add_argument("--duration", type=float, default=30.0, help="Max scan duration in seconds.")
    parser.add_argument("--temperature", type=float, default=None, help="Set target temperature (C).")
    boost = parser.add_mutually_exclusive_group()
    boost.add_argument("--boost", dest="boost", action="store_true", default=None, help="Enable boost.")
    boost.add_argument("--no-boost", dest="boost", action="store_false", help="Disable boost.")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    return parser.parse_args()


def main() -> None:
    args = _parse_args()
    if args.debug:
        logging.basicConfig(level=logging.DEBUG)
    asyncio.run(_read_state(args.address, args.duration, args.temperature, args.boost))


if __name__ == "__main__":
    main()
