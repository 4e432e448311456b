"""Tests for channel matrix construction."""

import pytest

from behemoth.channels import Channel, ChannelDataType, build_channel_matrix


@pytest.mark.parametrize(
    ("num_components", "channels_per_component"),
    [(0, 0), (0, 5), (5, 0), (1, 1), (3, 4), (10, 10)],
)
def test_matrix_size_and_unique_names(num_components: int, channels_per_component: int) -> None:
    """Matrix has num_components * channels_per_component distinct channels."""
    matrix = build_channel_matrix(num_components, channels_per_component)
    assert len(matrix) == num_components * channels_per_component
    assert len({c.name for c in matrix}) == len(matrix)


def test_matrix_is_component_major() -> None:
    """Component index is the outer loop, channel index the inner."""
    names = [c.name for c in build_channel_matrix(2, 3)]
    assert names == [
        "sensor0.channel0",
        "sensor0.channel1",
        "sensor0.channel2",
        "sensor1.channel0",
        "sensor1.channel1",
        "sensor1.channel2",
    ]


def test_all_channels_are_int64() -> None:
    """Every channel carries the integer data type."""
    assert all(c.data_type is ChannelDataType.INT64 for c in build_channel_matrix(4, 2))


def test_channels_are_immutable() -> None:
    """Channels cannot be renamed once built."""
    channel = Channel("sensor0.channel0")
    with pytest.raises(AttributeError):
        channel.name = "other"  # type: ignore[misc]
