"""
PCA9548A I2C Multiplexer Control Core

Serializes access to the single physical bus behind a PCA9548A/TCA9548A,
switching the active channel and bus clock only when they change.
Thread-safe: one lock is held across the whole switch / speed / transfer
sequence of every transaction.
"""

import logging
import threading
import time
from dataclasses import dataclass, replace
from typing import Callable, Optional, Union

from .address import resolve_address
from .channel import Channel
from .config import MuxConfig
from .constants import DEFAULT_CHANNEL_SPEED, INIT_CHANNEL, RESET_SETTLE_S
from .errors import (
    I2CMuxError, InitError, InvalidChannelError, AddressConflictError,
    ChannelSwitchError
)
from .logging_config import enable_debug
from .transport import GpioLine, Transport, open_bus, open_gpio

logger = logging.getLogger(__name__)


@dataclass
class MuxState:
    """
    Last known hardware state. None means unknown (never written, or
    invalidated by a reset).
    """
    active_channel: Optional[int] = None
    speed: Optional[int] = None


class Mux:
    """
    Driver for a PCA9548A-style I2C multiplexer.

    Only one channel is active at a time. Channel selection writes a control
    byte where bit N selects channel N.
    """

    def __init__(self, bus: Union[int, str], config: Optional[MuxConfig] = None, *,
                 opener: Optional[Callable[..., Transport]] = None,
                 gpio_opener: Optional[Callable[[int], GpioLine]] = None):
        """
        Open the bus and select channel 0.

        Args:
            bus: Bus identifier passed to `opener` (e.g. "/dev/i2c-1", "board")
            config: Construction options (defaults: 0x70, 8 channels, 400 kHz)
            opener: Callable(bus, mux_address=..., frequency=...) returning a
                Transport
                (default open_bus)
            gpio_opener: Callable returning the reset GpioLine for a pin
                (default open_gpio)

        Raises:
            InitError: If the bus, the reset line, or the first selector
                write fails
        """
        self.config = config or MuxConfig()
        opener = opener or open_bus
        gpio_opener = gpio_opener or open_gpio
        self.bus = bus
        self.address = self.config.address
        self.channel_count = self.config.channel_count
        self.max_clock = self.config.max_clock
        self.default_speed = min(DEFAULT_CHANNEL_SPEED, self.max_clock)
        self.lock = threading.Lock()
        self._state = MuxState()
        self._failed_speed: Optional[int] = None
        self._transport: Optional[Transport] = None
        self._reset_line: Optional[GpioLine] = None

        if self.config.debug:
            enable_debug()

        logger.info(f"Initializing multiplexer at 0x{self.address:02X} on bus {bus}")

        try:
            self._transport = opener(bus, mux_address=self.address,
                                     frequency=self.default_speed)
        except Exception as e:
            logger.error(f"Failed to open I2C bus {bus}: {e}")
            raise InitError(f"Failed to open I2C bus {bus}: {e}") from e

        # Clock the transport opened at, None if it cannot tell
        self._state.speed = self._transport.frequency

        try:
            if self.config.reset_pin is not None:
                self._reset_line = gpio_opener(self.config.reset_pin)
            with self.lock:
                self._select(INIT_CHANNEL)
        except Exception as e:
            logger.error(f"Failed to initialize multiplexer: {e}")
            self._release()
            raise InitError(f"Failed to initialize multiplexer at 0x{self.address:02X}: {e}") from e

        logger.info("Multiplexer initialized successfully")

    def __repr__(self):
        return f"Mux(bus={self.bus!r}, address=0x{self.address:02X}, channels={self.channel_count})"

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def state(self) -> MuxState:
        """Snapshot of the cached channel / speed state."""
        with self.lock:
            return replace(self._state)

    @property
    def closed(self) -> bool:
        return self._transport is None

    def register_channel(self, channel: int) -> Channel:
        """
        Create a handle for one downstream channel. Does not touch hardware.
        New channels run at 100 kHz, or at max_clock when that is lower.

        Raises:
            InvalidChannelError: If channel is outside 0..channel_count-1
        """
        if not 0 <= channel < self.channel_count:
            raise InvalidChannelError(channel, self.channel_count)
        return Channel(self, channel, self.default_speed)

    def tx(self, channel: Channel, address: int, write: bytes = b'',
           read: Optional[bytearray] = None) -> None:
        """
        Run one transaction on `channel`.

        Address check, channel switch, clock change, and data transfer all
        happen under the multiplexer lock, in that order.

        Raises:
            AddressConflictError: If address is the multiplexer's own
            ChannelSwitchError: If the selector write fails
            OSError: Transport errors from the data transfer, unmodified
        """
        unmasked, ten_bit = resolve_address(address)

        with self.lock:
            if self._transport is None:
                raise I2CMuxError("Multiplexer is closed")

            if unmasked == self.address:
                raise AddressConflictError(unmasked)

            if self._state.active_channel != channel.number:
                self._select(channel.number)

            if self._state.speed != channel.speed:
                self._set_speed(channel.speed)

            logger.debug(f"ch{channel.number} tx 0x{unmasked:02X}: "
                         f"write {len(write)} read {len(read) if read else 0}")
            self._transport.transaction(unmasked, write, read, ten_bit)

    def reset(self):
        """
        Pulse the RESET line and re-select channel 0.

        Raises:
            I2CMuxError: If the multiplexer is closed or no reset pin is configured
            ChannelSwitchError: If re-initialization fails after the pulse
        """
        with self.lock:
            if self._transport is None:
                raise I2CMuxError("Multiplexer is closed")
            if self._reset_line is None:
                raise I2CMuxError("No reset pin configured")

            logger.info("Resetting multiplexer")
            self._reset_line.set_level(False)
            time.sleep(RESET_SETTLE_S)
            self._reset_line.set_level(True)
            time.sleep(RESET_SETTLE_S)

            self._state = MuxState()
            self._select(INIT_CHANNEL)

    def close(self):
        """Release the bus and reset line. Channels become unusable."""
        with self.lock:
            if self._transport is None:
                return
            self._release()
            logger.info(f"Multiplexer at 0x{self.address:02X} closed")

    def _select(self, channel: int):
        # Caller holds self.lock
        control_byte = 1 << channel
        try:
            self._transport.transaction(self.address, bytes([control_byte]), None)
        except Exception as e:
            logger.error(f"Failed to select channel {channel}: {e}")
            raise ChannelSwitchError(channel, str(e)) from e
        self._state.active_channel = channel
        logger.debug(f"Selected multiplexer channel {channel}")

    def _set_speed(self, frequency: int):
        # Caller holds self.lock. Failure keeps the previous speed and lets
        # the data transfer proceed.
        try:
            self._transport.set_speed(frequency)
        except Exception as e:
            if self._failed_speed == frequency:
                logger.debug(f"Bus speed still at {self._state.speed}, {frequency} Hz unavailable")
            else:
                logger.warning(f"Failed to set bus speed to {frequency} Hz, "
                               f"continuing at {self._state.speed}: {e}")
            self._failed_speed = frequency
            return
        self._state.speed = frequency
        self._failed_speed = None
        logger.debug(f"Bus speed set to {frequency} Hz")

    def _release(self):
        try:
            if self._reset_line is not None:
                self._reset_line.close()
        finally:
            self._reset_line = None
            transport, self._transport = self._transport, None
            if transport is not None:
                transport.close()
