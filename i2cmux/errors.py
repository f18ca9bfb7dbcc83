"""
Exception taxonomy for the multiplexer control core.

Transport-level failures (OSError from smbus2 or busio) are never wrapped
by the data path; they reach the caller as raised by the transport.
"""


class I2CMuxError(Exception):
    """Base exception for multiplexer errors"""
    pass


class InitError(I2CMuxError):
    """Bus open, reset line setup, or the first selector write failed"""
    pass


class InvalidChannelError(I2CMuxError, ValueError):
    """Channel number outside the configured range"""

    def __init__(self, channel: int, channel_count: int):
        self.channel = channel
        self.channel_count = channel_count
        super().__init__(
            f"Invalid channel {channel}. Must be 0-{channel_count - 1}."
        )


class AddressConflictError(I2CMuxError, ValueError):
    """Target address collides with the multiplexer's own address"""

    def __init__(self, address: int):
        self.address = address
        super().__init__(
            f"Address 0x{address:02X} is the multiplexer's control address"
        )


class ChannelSwitchError(I2CMuxError, RuntimeError):
    """Selector byte write to the multiplexer failed"""

    def __init__(self, channel: int, message: str):
        self.channel = channel
        super().__init__(f"Multiplexer channel selection failed: {message}")


class SpeedLimitError(I2CMuxError, ValueError):
    """Requested clock speed outside the allowed range"""

    def __init__(self, frequency: int, max_clock: int):
        self.frequency = frequency
        self.max_clock = max_clock
        super().__init__(
            f"Speed {frequency} Hz not allowed (must be 1-{max_clock} Hz)"
        )
