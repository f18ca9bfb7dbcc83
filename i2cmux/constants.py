"""
Hardware constants for the PCA9548A / TCA9548A I2C multiplexer.
These values match the chip datasheet defaults.
"""

# Chip addressing
DEFAULT_MUX_ADDRESS = 0x70      # A0-A2 tied low
DEFAULT_CHANNEL_COUNT = 8       # PCA9548A has 8 downstream channels

# Bus clock (Hz)
DEFAULT_CHANNEL_SPEED = 100000  # Standard mode
DEFAULT_MAX_CLOCK = 400000      # Fast mode ceiling of the chip

# Initialization selects channel 0 after open and after a hardware reset
INIT_CHANNEL = 0

# Reset line timing
RESET_SETTLE_S = 0.1            # Hold low / settle time around a reset pulse

# Address sweep range (7-bit address space, upper reserved block excluded)
SCAN_FIRST_ADDRESS = 0x00
SCAN_LAST_ADDRESS = 0x76

# Ten-bit address marking
TEN_BIT_MASK = 1 << 12

# Bus identifiers with a special meaning for open_bus()
BUS_BOARD = "board"             # adafruit-blinka board.SCL / board.SDA
BUS_SIM = "sim"                 # in-memory simulated bus
