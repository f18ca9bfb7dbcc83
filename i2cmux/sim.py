"""
Simulated bus and reset line for SIM_MODE and tests.

SimTransport models a PCA9548A at `mux_address` in front of per-channel
devices. It records every operation in order so callers can assert on the
exact sequence of selector writes, clock changes, and data transfers, and
supports fault injection (failing addresses, failing speed changes) and
per-address delays.
"""

import errno
import logging
import threading
import time
from typing import Dict, Iterable, List, Optional, Tuple

from .constants import DEFAULT_MUX_ADDRESS

logger = logging.getLogger(__name__)


class SimTransport:
    """In-memory multiplexer plus downstream devices"""

    def __init__(self, mux_address: int = DEFAULT_MUX_ADDRESS,
                 devices: Optional[Dict[int, Iterable[int]]] = None):
        """
        Args:
            mux_address: Address the simulated multiplexer answers on
            devices: Mapping of channel number to device addresses present
                on that channel
        """
        self.mux_address = mux_address
        self.devices: Dict[int, set] = {
            channel: set(addresses) for channel, addresses in (devices or {}).items()
        }
        self.selector = 0
        self.speed: Optional[int] = None
        self.closed = False

        # Operation log: ("select", byte) | ("speed", hz) | ("tx", addr, write, nread) | ("done", addr)
        self.ops: List[Tuple] = []
        self._ops_lock = threading.Lock()

        # Fault injection
        self.failures: Dict[int, Exception] = {}
        self.speed_failure: Optional[Exception] = None
        self.delays: Dict[int, float] = {}
        self.responses: Dict[int, bytes] = {}

        logger.info(f"SimTransport created with multiplexer at 0x{mux_address:02X}")

    def _record(self, *op):
        with self._ops_lock:
            self.ops.append(op)

    def fail(self, address: int, exc: Optional[Exception] = None):
        """Make every transaction to `address` raise `exc` (OSError by default)."""
        self.failures[address] = exc or OSError(errno.EIO, f"Injected failure at 0x{address:02X}")

    def clear_failure(self, address: int):
        self.failures.pop(address, None)

    def delay(self, address: int, seconds: float):
        """Hold transactions to `address` for `seconds` before completing."""
        self.delays[address] = seconds

    def respond(self, address: int, data: bytes):
        """Bytes returned by reads from `address` (zero-filled beyond)."""
        self.responses[address] = bytes(data)

    @property
    def frequency(self) -> Optional[int]:
        return self.speed

    def present(self, address: int) -> bool:
        for channel, addresses in self.devices.items():
            if self.selector & (1 << channel) and address in addresses:
                return True
        return False

    @property
    def selector_writes(self) -> List[int]:
        return [op[1] for op in self.ops if op[0] == "select"]

    @property
    def speed_writes(self) -> List[int]:
        return [op[1] for op in self.ops if op[0] == "speed"]

    @property
    def transactions(self) -> List[Tuple]:
        return [op[1:] for op in self.ops if op[0] == "tx"]

    def transaction(self, address, write, read, ten_bit=False):
        if self.closed:
            raise OSError(errno.EBADF, "Bus closed")
        if address in self.failures:
            raise self.failures[address]

        if address == self.mux_address:
            if len(write) != 1 or read:
                raise OSError(errno.EINVAL, "Multiplexer accepts single selector byte writes")
            self.selector = write[0]
            self._record("select", write[0])
            return

        self._record("tx", address, bytes(write), len(read) if read else 0)
        if address in self.delays:
            time.sleep(self.delays[address])

        if not self.present(address):
            self._record("done", address)
            raise OSError(errno.EREMOTEIO, f"No ACK from 0x{address:02X}")

        if read:
            data = self.responses.get(address, b'')[:len(read)]
            read[:] = data + bytes(len(read) - len(data))
        self._record("done", address)

    def set_speed(self, frequency):
        if self.speed_failure is not None:
            raise self.speed_failure
        self.speed = frequency
        self._record("speed", frequency)

    def close(self):
        self.closed = True


class SimGpioLine:
    """Reset line that records the levels it was driven to"""

    def __init__(self, pin: int = 0):
        self.pin = pin
        self.levels: List[bool] = []
        self.closed = False

    def set_level(self, high):
        self.levels.append(high)

    def close(self):
        self.closed = True
