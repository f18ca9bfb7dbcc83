"""
Bus and GPIO capability interfaces plus the hardware adapters behind them.

Transport: one physical I2C bus (raw transaction, clock speed, close).
GpioLine: one output line, used for the multiplexer's RESET pin.

board, busio and RPi.GPIO are imported when their adapter is constructed, so
the package can be imported (and simulated) off the Pi. smbus2 is pure
Python and installs anywhere, so it is imported with the module.
"""

import logging
from contextlib import contextmanager
from typing import Optional, Protocol, Union

from smbus2 import SMBus, i2c_msg

from . import config
from .constants import BUS_BOARD, BUS_SIM, DEFAULT_CHANNEL_SPEED, DEFAULT_MUX_ADDRESS

logger = logging.getLogger(__name__)

# linux/i2c.h message flag for 10-bit addressing
I2C_M_TEN = 0x0010


class Transport(Protocol):
    # Clock the bus currently runs at, None when the transport cannot tell
    frequency: Optional[int]

    def transaction(self, address: int, write: bytes, read: Optional[bytearray],
                    ten_bit: bool = False) -> None:
        """Write `write` then read len(`read`) bytes into `read`. Raises OSError."""
        ...

    def set_speed(self, frequency: int) -> None:
        ...

    def close(self) -> None:
        ...


class GpioLine(Protocol):
    def set_level(self, high: bool) -> None:
        ...

    def close(self) -> None:
        ...


class SMBusTransport:
    """
    Linux i2c-dev bus through smbus2.

    Combined write/read transactions are issued as a single I2C_RDWR ioctl
    (repeated start between the messages).
    """

    def __init__(self, bus: Union[int, str]):
        self.bus = bus
        self.frequency = None
        self._bus = SMBus(bus)
        logger.info(f"Opened I2C bus {bus}")

    def transaction(self, address, write, read, ten_bit=False):
        msgs = []
        if write:
            msgs.append(i2c_msg.write(address, write))
        if read:
            msgs.append(i2c_msg.read(address, len(read)))
        if not msgs:
            # Zero-length write (address-only probe)
            msgs.append(i2c_msg.write(address, b''))
        if ten_bit:
            for msg in msgs:
                msg.flags |= I2C_M_TEN

        self._bus.i2c_rdwr(*msgs)

        if read:
            read[:] = bytes(msgs[-1])

    def set_speed(self, frequency):
        # i2c-dev exposes no clock control; the rate comes from the device
        # tree (dtparam=i2c_arm_baudrate=...)
        raise NotImplementedError(
            f"Cannot set {self.bus} to {frequency} Hz: i2c-dev has no clock control"
        )

    def close(self):
        self._bus.close()
        logger.info(f"Closed I2C bus {self.bus}")


class BusioTransport:
    """
    adafruit-blinka busio.I2C on the board's default SCL/SDA pins.

    Clock changes re-create the busio.I2C object at the new frequency.
    """

    def __init__(self, frequency: int = DEFAULT_CHANNEL_SPEED):
        import board
        import busio

        self._board = board
        self._busio = busio
        self.frequency = frequency
        self._i2c = busio.I2C(board.SCL, board.SDA, frequency=frequency)
        logger.info(f"Opened board I2C bus at {frequency} Hz")

    @contextmanager
    def _locked(self):
        while not self._i2c.try_lock():
            pass
        try:
            yield self._i2c
        finally:
            self._i2c.unlock()

    def transaction(self, address, write, read, ten_bit=False):
        if ten_bit:
            raise OSError(f"busio does not support 10-bit address 0x{address:03X}")

        with self._locked() as i2c:
            if write and read:
                i2c.writeto_then_readfrom(address, write, read)
            elif read:
                i2c.readfrom_into(address, read)
            else:
                i2c.writeto(address, bytes(write))

    def set_speed(self, frequency):
        previous = self.frequency
        self._i2c.deinit()
        try:
            self._i2c = self._busio.I2C(self._board.SCL, self._board.SDA, frequency=frequency)
        except Exception:
            self._i2c = self._busio.I2C(self._board.SCL, self._board.SDA, frequency=previous)
            raise
        self.frequency = frequency
        logger.debug(f"Board I2C bus re-opened at {frequency} Hz")

    def close(self):
        self._i2c.deinit()
        logger.info("Closed board I2C bus")


class RPiGpioLine:
    """RESET line driven through RPi.GPIO (BCM numbering, idle high)."""

    def __init__(self, pin: int):
        import RPi.GPIO as GPIO

        self._gpio = GPIO
        self.pin = pin
        GPIO.setmode(GPIO.BCM)
        GPIO.setup(pin, GPIO.OUT, initial=GPIO.HIGH)
        logger.info(f"Reset line configured on GPIO {pin}")

    def set_level(self, high):
        self._gpio.output(self.pin, self._gpio.HIGH if high else self._gpio.LOW)

    def close(self):
        self._gpio.cleanup(self.pin)


def open_bus(identifier: Union[int, str], frequency: int = DEFAULT_CHANNEL_SPEED,
             mux_address: int = DEFAULT_MUX_ADDRESS) -> Transport:
    """
    Open the bus named by `identifier`.

    Args:
        identifier: "board" (busio on the default pins), "sim" (simulated),
            a bus number, or an i2c-dev path such as "/dev/i2c-1"
        frequency: Initial clock for transports that take one at open time
        mux_address: Multiplexer address, used by the simulated bus

    Returns:
        Transport for the bus
    """
    if identifier == BUS_SIM or config.sim_mode():
        from .sim import SimTransport
        return SimTransport(mux_address)
    if identifier == BUS_BOARD:
        return BusioTransport(frequency)
    if isinstance(identifier, str) and identifier.isdigit():
        identifier = int(identifier)
    return SMBusTransport(identifier)


def open_gpio(pin: int) -> GpioLine:
    if config.sim_mode():
        from .sim import SimGpioLine
        return SimGpioLine(pin)
    return RPiGpioLine(pin)
