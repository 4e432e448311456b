"""Tests for fixed-rate pacing."""

import time

import pytest

from behemoth.errors import ConfigurationError
from behemoth.pacer import Pacer, delay_for_frequency


@pytest.mark.parametrize(
    ("frequency", "delay_ns"),
    [(1000, 1_000_000), (1, 1_000_000_000), (100, 10_000_000), (3, 333_333_334)],
)
def test_delay_is_ceiling_of_period(frequency: int, delay_ns: int) -> None:
    """Delay is the ceiling of 1e9 / frequency nanoseconds."""
    assert delay_for_frequency(frequency) == delay_ns
    assert Pacer(frequency).delay_ns == delay_ns


@pytest.mark.parametrize("frequency", [0, -1, -1000])
def test_non_positive_frequency_rejected(frequency: int) -> None:
    """Zero and negative frequencies are rejected."""
    with pytest.raises(ConfigurationError):
        Pacer(frequency)


def test_remaining_never_negative() -> None:
    """An overrun slot gives zero remaining; the deficit is not carried."""
    pacer = Pacer(1000)
    assert pacer.remaining(start=0, now=5_000_000) == 0
    assert pacer.remaining(start=0, now=250_000) == 750_000


@pytest.mark.asyncio
async def test_pace_sleeps_out_the_slot() -> None:
    """pace() sleeps until the slot ends."""
    pacer = Pacer(50)
    begin = time.monotonic()
    await pacer.pace(pacer.start())
    assert time.monotonic() - begin >= 0.019


@pytest.mark.asyncio
async def test_pace_returns_immediately_after_overrun() -> None:
    """pace() does not sleep when the slot is already used up."""
    pacer = Pacer(1000)
    start = pacer.start() - 10_000_000
    begin = time.monotonic()
    await pacer.pace(start)
    assert time.monotonic() - begin < 0.005
