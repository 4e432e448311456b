"""
Channel matrix construction.

Channels are named ``sensor<i>.channel<j>`` and generated component-major so
that names are deterministic for a given configuration.
"""

from dataclasses import dataclass
from enum import Enum


class ChannelDataType(Enum):
    """Channel value types. Only INT64 is emitted."""

    INT64 = "int64"


@dataclass(frozen=True)
class Channel:
    """A single named, typed measurement stream."""

    name: str
    data_type: ChannelDataType = ChannelDataType.INT64


def channel_name(component: int, channel: int) -> str:
    """Return the channel name for a component/channel index pair."""
    return f"sensor{component}.channel{channel}"


def build_channel_matrix(num_components: int, channels_per_component: int) -> tuple[Channel, ...]:
    """
    Build the flat channel matrix.

    Args:
        num_components: Number of components (outer index)
        channels_per_component: Channels per component (inner index)

    Returns:
        Tuple of ``num_components * channels_per_component`` channels. Zero
        counts give an empty tuple.
    """
    return tuple(
        Channel(name=channel_name(i, j))
        for i in range(num_components)
        for j in range(channels_per_component)
    )
