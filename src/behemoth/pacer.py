"""
Fixed-rate pacing between submissions.

Best effort: when a tick overruns its slot the next tick starts immediately
and the deficit is not carried forward.
"""

import asyncio
import time

from .errors import ConfigurationError

NANOS_PER_SECOND = 1_000_000_000


def delay_for_frequency(frequency: int) -> int:
    """Return ``ceil(1e9 / frequency)`` nanoseconds. Frequency must be positive."""
    if frequency <= 0:
        raise ConfigurationError(f"Frequency must be a positive number of Hz, got {frequency}")
    return -(-NANOS_PER_SECOND // frequency)


class Pacer:
    """Enforce a per-message delay derived from a target frequency in Hz."""

    def __init__(self, frequency: int):
        self.frequency = frequency
        self.delay_ns = delay_for_frequency(frequency)

    @staticmethod
    def start() -> int:
        """Monotonic start mark for a tick."""
        return time.monotonic_ns()

    def remaining(self, start: int, now: int | None = None) -> int:
        """Nanoseconds left in the current slot, or 0 when it has been used up."""
        elapsed = (time.monotonic_ns() if now is None else now) - start
        return max(self.delay_ns - elapsed, 0)

    async def pace(self, start: int) -> None:
        """Sleep out the rest of the slot that began at ``start``."""
        remaining = self.remaining(start)
        if remaining > 0:
            await asyncio.sleep(remaining / NANOS_PER_SECOND)
