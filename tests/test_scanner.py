"""
Tests for the multi-channel scanner.
"""

import os
import sys
from unittest import mock

# Add parent to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from i2cmux import Mux, MuxConfig, ChannelSwitchError
from i2cmux.scanner import scan_all_channels, print_results, main
from i2cmux.sim import SimTransport


def test_scan_all_channels():
    """Every channel is scanned and reported"""
    sim = SimTransport(devices={0: [0x40, 0x47], 1: [0x28]})
    mux = Mux("sim", MuxConfig(channel_count=4), opener=lambda bus, **kwargs: sim)

    results = scan_all_channels(mux)

    assert results == {0: [0x40, 0x47], 1: [0x28], 2: [], 3: []}


def test_scan_all_channels_keeps_switch_errors():
    """A channel that cannot be selected keeps its error instead of an empty list"""
    sim = SimTransport(devices={0: [0x40]})
    mux = Mux("sim", MuxConfig(channel_count=2), opener=lambda bus, **kwargs: sim)
    sim.fail(0x70)

    results = scan_all_channels(mux)

    assert results[0] == [0x40]
    assert isinstance(results[1], ChannelSwitchError)
    assert results[1].channel == 1


def test_print_results_shows_channel_errors(capsys):
    """Unselectable channels print as errors, not as empty"""
    sim = SimTransport(devices={0: [0x40]})
    mux = Mux("sim", MuxConfig(channel_count=3), opener=lambda bus, **kwargs: sim)
    sim.fail(0x70)

    print_results(scan_all_channels(mux))

    out = capsys.readouterr().out
    assert "Channel 1: Error - " in out
    assert "Channel 2: Error - " in out
    assert "(empty)" not in out
    assert "Total devices found: 1" in out


@mock.patch('i2cmux.scanner.setup_logging')
def test_main_sim_bus(setup_logging, capsys):
    assert main(['--bus', 'sim', '--channels', '2']) == 0
    out = capsys.readouterr().out
    assert "Multiplexer found at 0x70" in out
    assert "Channel 0: (empty)" in out
    assert "Channel 1: (empty)" in out
    assert "Scan complete!" in out


@mock.patch('i2cmux.scanner.setup_logging')
def test_main_reports_init_failure(setup_logging, capsys):
    with mock.patch('i2cmux.mux.open_bus', side_effect=OSError(2, "No such file")):
        assert main(['--bus', '/dev/i2c-9']) == 1
    assert "Error:" in capsys.readouterr().out


@mock.patch('i2cmux.scanner.setup_logging')
def test_main_rejects_bad_channel_count(setup_logging, capsys):
    """An out-of-range --channels value is an error exit, not a traceback"""
    assert main(['--bus', 'sim', '--channels', '9']) == 1
    assert "Error:" in capsys.readouterr().out


@mock.patch('i2cmux.scanner.setup_logging')
def test_main_rejects_malformed_environment(setup_logging, capsys):
    """A malformed I2C_MUX_ADDRESS is an error exit, not a traceback"""
    with mock.patch.dict(os.environ, {'I2C_MUX_ADDRESS': 'zz'}):
        assert main(['--bus', 'sim']) == 1
    assert "Error:" in capsys.readouterr().out
