#!/usr/bin/env python3
"""Scan for nearby CC-RT-BLE thermostats."""

from __future__ import annotations

import argparse
import asyncio
import logging

from ccrtble import BleakAdapter, Ccrtble


async def _scan(duration: float, addresses: list[str], ignore_unknown: bool) -> None:
    adapter = BleakAdapter()
    try:
        devices = await Ccrtble(adapter).async_discover(
            {
                "duration": duration,
                "addresses": addresses,
                "ignore_unknown": ignore_unknown,
            }
        )
    finally:
        await adapter.async_close()
    for device in devices:
        print(f"{device.address} | {device.name}")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Scan for CC-RT-BLE devices.")
    parser.add_argument("--duration", type=float, default=10.0, help="Scan duration in seconds.")
    parser.add_argument(
        "--address",
        action="append",
        default=[],
        help="Stop once this address is found (repeatable).",
    )
    parser.add_argument(
        "--ignore-unknown",
        action="store_true",
        help="Only report the addresses given with --address.",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    return parser.parse_args()


def main() -> None:
    args = _parse_args()
    if args.debug:
        logging.basicConfig(level=logging.DEBUG)
    asyncio.run(_scan(args.duration, args.address, args.ignore_unknown))


if __name__ == "__main__":
    main()
