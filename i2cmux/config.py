"""
Configuration for the I2C multiplexer driver

All settings can be overridden via environment variables; MuxConfig.from_env()
reads them at call time so a process can change them before opening a Mux.
"""
import os
from dataclasses import dataclass
from typing import Optional

from .constants import (
    DEFAULT_MUX_ADDRESS, DEFAULT_CHANNEL_COUNT, DEFAULT_MAX_CLOCK
)

DEFAULT_BUS = '/dev/i2c-1'


def sim_mode() -> bool:
    """True when SIM_MODE is enabled (no hardware access)."""
    return os.getenv('SIM_MODE', 'false').lower() == 'true'


def _env_flag(name: str) -> bool:
    return os.getenv(name, 'false').lower() == 'true'


@dataclass(frozen=True)
class MuxConfig:
    """
    Construction options for a Mux.

    Attributes:
        address: I2C address of the multiplexer chip
        channel_count: Number of downstream channels
        max_clock: Highest clock speed (Hz) a channel may request
        reset_pin: BCM GPIO number wired to the chip's RESET line, or None
        debug: Enable per-transaction debug logging
    """
    address: int = DEFAULT_MUX_ADDRESS
    channel_count: int = DEFAULT_CHANNEL_COUNT
    max_clock: int = DEFAULT_MAX_CLOCK
    reset_pin: Optional[int] = None
    debug: bool = False

    def __post_init__(self):
        if not 0 <= self.address <= 0x7F:
            raise ValueError(f"Invalid multiplexer address 0x{self.address:02X}")
        if not 1 <= self.channel_count <= 8:
            raise ValueError(f"Invalid channel count {self.channel_count}. Must be 1-8.")
        if self.max_clock <= 0:
            raise ValueError(f"Invalid max clock {self.max_clock}")

    @classmethod
    def from_env(cls) -> 'MuxConfig':
        reset_pin = os.getenv('I2C_MUX_RESET_PIN')
        return cls(
            address=int(os.getenv('I2C_MUX_ADDRESS', f'0x{DEFAULT_MUX_ADDRESS:02X}'), 16),
            channel_count=int(os.getenv('I2C_MUX_CHANNELS', str(DEFAULT_CHANNEL_COUNT))),
            max_clock=int(os.getenv('I2C_MUX_MAX_CLOCK', str(DEFAULT_MAX_CLOCK))),
            reset_pin=int(reset_pin) if reset_pin else None,
            debug=_env_flag('I2C_MUX_DEBUG'),
        )


def bus_from_env() -> str:
    """Bus identifier to open (I2C_MUX_BUS, 'sim' under SIM_MODE)."""
    if sim_mode():
        return 'sim'
    return os.getenv('I2C_MUX_BUS', DEFAULT_BUS)


# Logging Configuration
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_FILE = os.getenv('LOG_FILE')
