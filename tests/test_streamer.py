"""Tests for the streaming loop lifecycle."""

import time

import pytest
from conftest import RecordingSession

from behemoth.cancellation import CancellationFlag
from behemoth.channels import build_channel_matrix
from behemoth.errors import SessionCloseError, SubmissionError
from behemoth.message_pool import POOL_SIZE, MessagePool
from behemoth.pacer import Pacer
from behemoth.run import FlowConfig, flow_name_for
from behemoth.streamer import Streamer, StreamState


def make_streamer(session, frequency: int = 1000, flag=None, max_messages=None, shape=(2, 3)):
    channels = build_channel_matrix(*shape)
    flow_config = FlowConfig(flow_name_for(*shape, frequency), channels)
    pool = MessagePool.generate(channels)
    return Streamer(
        session,
        flow_config,
        pool,
        Pacer(frequency),
        flag or CancellationFlag(),
        max_messages=max_messages,
    )


@pytest.mark.asyncio
async def test_cancellation_stops_submissions_and_closes_once() -> None:
    """Setting the flag stops submissions after the in-flight one and closes once."""
    flag = CancellationFlag()

    def cancel_on_third(session: RecordingSession) -> None:
        if session.submit_calls == 3:
            flag.cancel()

    session = RecordingSession(on_submit=cancel_on_third)
    streamer = make_streamer(session, flag=flag)

    stats = await streamer.run()

    assert session.submit_calls == 3
    assert session.close_calls == 1
    assert stats.messages_sent == 3
    assert stats.cancelled
    assert streamer.state is StreamState.CLOSED


@pytest.mark.asyncio
async def test_flag_set_before_start_sends_nothing() -> None:
    """A flag set before start sends nothing but still closes."""
    flag = CancellationFlag()
    flag.cancel()
    session = RecordingSession()

    stats = await make_streamer(session, flag=flag).run()

    assert session.submit_calls == 0
    assert session.close_calls == 1
    assert stats.messages_sent == 0


@pytest.mark.asyncio
async def test_submit_failure_on_fifth_call_drains_and_reports() -> None:
    """A failing 5th submit gives 5 submissions, one close and that error."""
    session = RecordingSession(fail_on=5)
    streamer = make_streamer(session)

    with pytest.raises(SubmissionError) as exc_info:
        await streamer.run()

    assert exc_info.value is session.failure
    assert exc_info.value.close_error is None
    assert session.submit_calls == 5
    assert session.close_calls == 1
    assert streamer.state is StreamState.CLOSED


@pytest.mark.asyncio
async def test_unexpected_submit_exception_is_wrapped() -> None:
    """Arbitrary submit exceptions become SubmissionError with the cause kept."""
    class BrokenSession(RecordingSession):
        async def submit(self, flow) -> None:
            self.submit_calls += 1
            raise RuntimeError("socket closed")

    session = BrokenSession()

    with pytest.raises(SubmissionError) as exc_info:
        await make_streamer(session).run()

    assert isinstance(exc_info.value.__cause__, RuntimeError)
    assert session.close_calls == 1


@pytest.mark.asyncio
async def test_close_error_does_not_mask_submission_error() -> None:
    """The submission error stays primary; the close error is attached."""
    session = RecordingSession(fail_on=2, close_error=SessionCloseError("flush failed"))

    with pytest.raises(SubmissionError) as exc_info:
        await make_streamer(session).run()

    assert exc_info.value is session.failure
    assert isinstance(exc_info.value.close_error, SessionCloseError)
    assert session.close_calls == 1


@pytest.mark.asyncio
async def test_close_error_after_clean_stop_is_raised() -> None:
    """A close failure after a clean stop is raised on its own."""
    session = RecordingSession(close_error=ConnectionError("reset"))

    with pytest.raises(SessionCloseError) as exc_info:
        await make_streamer(session, max_messages=4).run()

    assert isinstance(exc_info.value.__cause__, ConnectionError)
    assert session.submit_calls == 4
    assert session.close_calls == 1


@pytest.mark.asyncio
async def test_messages_follow_pool_cycle_with_monotonic_timestamps() -> None:
    """Flows follow pool order with non-decreasing timestamps."""
    session = RecordingSession()
    streamer = make_streamer(session, frequency=100_000, max_messages=POOL_SIZE + 20)

    await streamer.run()

    assert len(session.flows) == POOL_SIZE + 20
    for k, flow in enumerate(session.flows):
        assert flow.name == streamer.flow_config.name
        assert flow.values == streamer.pool[k % POOL_SIZE]
    timestamps = [flow.timestamp_ns for flow in session.flows]
    assert timestamps == sorted(timestamps)


@pytest.mark.asyncio
async def test_empty_matrix_streams_empty_messages() -> None:
    """An empty matrix streams empty messages at the configured rate."""
    session = RecordingSession()

    stats = await make_streamer(session, max_messages=5, shape=(0, 3)).run()

    assert stats.messages_sent == 5
    assert all(flow.values == () for flow in session.flows)


@pytest.mark.asyncio
async def test_end_to_end_spacing_at_100_hz() -> None:
    """2x3 channels at 100 Hz: six values per tick, ~10 ms between ticks."""
    arrivals: list[float] = []

    def record_arrival(_session: RecordingSession) -> None:
        arrivals.append(time.monotonic())

    session = RecordingSession(on_submit=record_arrival)
    streamer = make_streamer(session, frequency=100, max_messages=51, shape=(2, 3))

    await streamer.run()

    assert [c.name for c in streamer.flow_config.channels] == [
        f"sensor{i}.channel{j}" for i in range(2) for j in range(3)
    ]
    assert all(len(flow.values) == 6 for flow in session.flows)
    gaps = [b - a for a, b in zip(arrivals, arrivals[1:])]
    assert len(gaps) == 50
    average = sum(gaps) / len(gaps)
    assert 0.0098 <= average <= 0.0125
