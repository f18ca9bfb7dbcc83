"""
Channel and Device handles

A Channel is one logical bus behind the multiplexer. Every operation goes
through the owning Mux, which switches channel and clock as needed. Channels
also implement the busio.I2C locking/transfer methods so CircuitPython
device drivers can take a Channel in place of a bus.
"""

import logging
from typing import TYPE_CHECKING, List, Optional

from .constants import SCAN_FIRST_ADDRESS, SCAN_LAST_ADDRESS
from .errors import SpeedLimitError

if TYPE_CHECKING:
    from .mux import Mux

logger = logging.getLogger(__name__)


class Channel:
    """Handle for one multiplexer channel"""

    def __init__(self, mux: 'Mux', number: int, speed: int):
        self.mux = mux
        self.number = number
        self.speed = speed

    @property
    def name(self) -> str:
        return f"mux-ch{self.number}"

    def __str__(self):
        return self.name

    def __repr__(self):
        return f"Channel({self.number}, speed={self.speed}, mux=0x{self.mux.address:02X})"

    def tx(self, address: int, write: bytes = b'', read: Optional[bytearray] = None):
        """
        Raw transaction on this channel.

        Args:
            address: Target device address (may be marked with ten_bit())
            write: Bytes to send; empty for a read-only transfer
            read: Writable buffer filled with the reply; None or empty for a
                write-only transfer
        """
        self.mux.tx(self, address, write, read)

    def set_speed(self, frequency: int):
        """
        Set the clock used for this channel's next transactions.

        Raises:
            SpeedLimitError: If frequency is not in 1..mux.max_clock
        """
        if not 0 < frequency <= self.mux.max_clock:
            raise SpeedLimitError(frequency, self.mux.max_clock)
        self.speed = frequency

    def scan(self) -> List[int]:
        """
        Probe every 7-bit address with a 1-byte read.

        Returns:
            Ascending list of addresses that acknowledged
        """
        found = []
        probe = bytearray(1)
        for address in range(SCAN_FIRST_ADDRESS, SCAN_LAST_ADDRESS + 1):
            if address == self.mux.address:
                continue
            try:
                self.tx(address, b'', probe)
            except OSError:
                continue
            found.append(address)
        logger.debug(f"{self.name}: found {len(found)} device(s)")
        return found

    def device(self, address: int) -> 'Device':
        return Device(self, address)

    # busio.I2C compatibility. The Mux lock serializes transfers, so the
    # bus-level lock always succeeds.

    def try_lock(self) -> bool:
        return True

    def unlock(self):
        pass

    def writeto(self, address, buffer, *, start=0, end=None):
        self.tx(address, bytes(memoryview(buffer)[start:end]), None)

    def readfrom_into(self, address, buffer, *, start=0, end=None):
        self.tx(address, b'', memoryview(buffer)[start:end])

    def writeto_then_readfrom(self, address, buffer_out, buffer_in, *,
                              out_start=0, out_end=None, in_start=0, in_end=None):
        self.tx(address, bytes(memoryview(buffer_out)[out_start:out_end]),
                memoryview(buffer_in)[in_start:in_end])


class Device:
    """A downstream device at a fixed address on one channel"""

    def __init__(self, channel: Channel, address: int):
        self.channel = channel
        self.address = address

    def __repr__(self):
        return f"Device(0x{self.address:02X} on {self.channel})"

    def read(self, buf: bytearray):
        """Read len(buf) bytes from the device."""
        self.channel.tx(self.address, b'', buf)

    def read_reg(self, reg: int, buf: bytearray):
        """Write the register number, then read len(buf) bytes."""
        self.channel.tx(self.address, bytes([reg]), buf)

    def write(self, buf: bytes):
        """Write buf. A register write passes the register as the first byte."""
        self.channel.tx(self.address, bytes(buf), None)

    def write_reg(self, reg: int, buf: bytes):
        self.channel.tx(self.address, bytes([reg]) + bytes(buf), None)

    def tx(self, write: bytes = b'', read: Optional[bytearray] = None):
        self.channel.tx(self.address, write, read)
