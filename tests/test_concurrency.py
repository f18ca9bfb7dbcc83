"""
Concurrency tests for the multiplexer lock.

A transaction's channel switch and data transfer must never interleave with
another caller's. The simulated bus only acknowledges devices on the
currently selected channel, so a transfer that lands on the wrong channel
shows up as an OSError.

Usage:
    pytest tests/test_concurrency.py -v
"""

import os
import sys
import threading
import time

import pytest

# Add parent to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from i2cmux import Mux, MuxConfig
from i2cmux.sim import SimTransport


@pytest.fixture
def sim():
    return SimTransport(devices={
        1: [0x40], 2: [0x41], 3: [0x42], 4: [0x43],
    })


@pytest.fixture
def mux(sim):
    return Mux("sim", MuxConfig(), opener=lambda bus, **kwargs: sim)


def wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("Timed out waiting for condition")
        time.sleep(0.001)


def test_delayed_transfer_blocks_other_selector_writes(mux, sim):
    """No selector write happens while another transfer is in flight"""
    sim.delay(0x40, 0.2)
    ch1 = mux.register_channel(1)
    ch2 = mux.register_channel(2)
    errors = []

    def run(channel, address):
        try:
            channel.tx(address, b'\x00', bytearray(2))
        except Exception as e:
            errors.append(e)

    slow = threading.Thread(target=run, args=(ch1, 0x40))
    slow.start()
    wait_for(lambda: sim.transactions)

    fast = threading.Thread(target=run, args=(ch2, 0x41))
    fast.start()
    slow.join(timeout=5)
    fast.join(timeout=5)

    assert errors == []
    ops = sim.ops
    assert ops.index(("done", 0x40)) < ops.index(("select", 0x04))
    start = ops.index(("tx", 0x40, b'\x00', 2))
    assert ops[start + 1] == ("done", 0x40)


def test_parallel_channels_never_misroute(mux, sim):
    """Many threads on different channels all reach their own device"""
    channels = [(mux.register_channel(n), 0x3F + n) for n in range(1, 5)]
    errors = []
    barrier = threading.Barrier(len(channels))

    def worker(channel, address):
        barrier.wait()
        for _ in range(50):
            try:
                channel.tx(address, b'\x00', bytearray(1))
            except Exception as e:
                errors.append(e)

    threads = [threading.Thread(target=worker, args=pair) for pair in channels]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    assert errors == []
    assert len(sim.transactions) == 200


def test_parallel_same_channel_switches_once(mux, sim):
    """Concurrent callers on one channel share a single selector write"""
    ch3 = mux.register_channel(3)

    def worker():
        for _ in range(25):
            ch3.tx(0x42, b'\x00')

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    assert sim.selector_writes == [0x01, 0x08]
    assert sim.speed_writes == [100000]
