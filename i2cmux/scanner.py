#!/usr/bin/env python3
"""
I2C Device Scanner for PCA9548A Multiplexers

Scans every channel of the multiplexer and lists the devices that answer.
Helps with initial setup, troubleshooting, and verification of sensor wiring.

Usage:
    i2cmux-scan                      # /dev/i2c-1, mux at 0x70
    i2cmux-scan --bus board -v
    SIM_MODE=true i2cmux-scan        # simulated bus
"""

import argparse
import logging
import sys
from typing import Dict, List, Optional, Union

from . import config
from .config import MuxConfig
from .errors import I2CMuxError
from .logging_config import setup_logging
from .mux import Mux

logger = logging.getLogger(__name__)

# Known device types by address
KNOWN_DEVICES = {
    0x28: "BNO055 IMU",
    0x29: "VL53L0X / TSL2591",
    0x40: "PCA9685 / INA228",
    0x44: "SHT3x",
    0x47: "BMP581 Barometer",
    0x4A: "BNO085 IMU",
    0x76: "BME280 / BMP280",
    0x77: "BMP388 Barometer",
}


ScanResults = Dict[int, Union[List[int], I2CMuxError]]


def scan_all_channels(mux: Mux) -> ScanResults:
    """
    Scan every channel of `mux`.

    A channel whose selector write fails is logged and keeps its error, so
    it is never mistaken for a channel with nothing attached.

    Returns:
        Mapping of channel number to ascending device addresses, or to the
        error that stopped the scan of that channel
    """
    results = {}
    for number in range(mux.channel_count):
        channel = mux.register_channel(number)
        try:
            results[number] = channel.scan()
        except I2CMuxError as e:
            logger.error(f"Channel {number}: {e}")
            results[number] = e
    return results


def print_results(results: ScanResults):
    total = 0
    print("-" * 60)
    for number, devices in sorted(results.items()):
        if isinstance(devices, Exception):
            print(f"Channel {number}: Error - {devices}")
            continue
        if not devices:
            print(f"Channel {number}: (empty)")
            continue
        print(f"Channel {number}:")
        for addr in devices:
            device_name = KNOWN_DEVICES.get(addr, "Unknown Device")
            print(f"  0x{addr:02X} ({addr:3d}) - {device_name}")
            total += 1
    print("-" * 60)
    print(f"Total devices found: {total} (across all channels)")


def main(argv: Optional[List[str]] = None) -> int:
    try:
        env = MuxConfig.from_env()
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    parser = argparse.ArgumentParser(
        description='Scan all channels of a PCA9548A I2C multiplexer',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument('--bus', default=config.bus_from_env(),
                        help='Bus identifier: /dev/i2c-N, N, board, or sim')
    parser.add_argument('--address', type=lambda v: int(v, 16), default=env.address,
                        help='Multiplexer address in hex (default %(default)#x)')
    parser.add_argument('--channels', type=int, default=env.channel_count,
                        help='Number of channels (default %(default)s)')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable debug logging')
    args = parser.parse_args(argv)

    setup_logging("scanner", "DEBUG" if args.verbose else config.LOG_LEVEL, config.LOG_FILE)

    try:
        mux_config = MuxConfig(
            address=args.address,
            channel_count=args.channels,
            max_clock=env.max_clock,
            reset_pin=env.reset_pin,
            debug=args.verbose,
        )
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    try:
        with Mux(args.bus, mux_config) as mux:
            print(f"Multiplexer found at 0x{mux.address:02X} on {args.bus}")
            print_results(scan_all_channels(mux))
    except I2CMuxError as e:
        print(f"Error: {e}")
        return 1

    print()
    print("Scan complete!")
    return 0


if __name__ == '__main__':
    sys.exit(main())
