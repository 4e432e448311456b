"""
Precomputed pool of randomized channel messages.

Values are drawn once when the pool is built; the streaming loop cycles
through the pool instead of generating new values per tick.
"""

import random
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from .channels import Channel

POOL_SIZE = 100
# Closed-open range of generated values.
VALUE_MIN = 1
VALUE_MAX = 100


@dataclass(frozen=True)
class ChannelValue:
    """One value for one channel."""

    channel: str
    value: int


Message = tuple[ChannelValue, ...]


class MessagePool:
    """Immutable, fixed-size sequence of messages with index-based cycling."""

    def __init__(self, messages: Sequence[Message]):
        if not messages:
            raise ValueError("Message pool must contain at least one message")
        self._messages: tuple[Message, ...] = tuple(messages)

    @classmethod
    def generate(
        cls,
        channels: Sequence[Channel],
        size: int = POOL_SIZE,
        rng: random.Random | None = None,
    ) -> "MessagePool":
        """Draw ``size`` messages with one uniform value in [1, 100) per channel."""
        rng = rng or random.Random()
        messages = [
            tuple(ChannelValue(c.name, rng.randrange(VALUE_MIN, VALUE_MAX)) for c in channels)
            for _ in range(size)
        ]
        return cls(messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __getitem__(self, index: int) -> Message:
        return self._messages[index % len(self._messages)]

    def cycle(self, start: int = 0) -> Iterator[Message]:
        """Yield ``pool[k % size]`` at position ``k`` forever, starting at ``start``."""
        index = start
        size = len(self._messages)
        while True:
            yield self._messages[index % size]
            index += 1
