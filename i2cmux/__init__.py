"""
i2cmux

Address I2C devices behind a PCA9548A/TCA9548A multiplexer as if each
channel were its own bus.
"""

from .address import ten_bit, resolve_address
from .channel import Channel, Device
from .config import MuxConfig
from .errors import (
    I2CMuxError, InitError, InvalidChannelError, AddressConflictError,
    ChannelSwitchError, SpeedLimitError
)
from .mux import Mux, MuxState
from .transport import Transport, GpioLine, open_bus, open_gpio

__all__ = [
    'Mux', 'MuxState', 'MuxConfig', 'Channel', 'Device',
    'I2CMuxError', 'InitError', 'InvalidChannelError', 'AddressConflictError',
    'ChannelSwitchError', 'SpeedLimitError',
    'Transport', 'GpioLine', 'open_bus', 'open_gpio',
    'ten_bit', 'resolve_address',
]
