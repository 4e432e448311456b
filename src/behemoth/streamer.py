"""
Rate-controlled, cancellable streaming loop.

The loop moves through three states:

- RUNNING: check the cancellation flag, take the next pooled message, submit
  it as a flow, then pace.
- DRAINING: close the session exactly once, also after a submission error,
  so data the session still buffers is flushed.
- CLOSED: terminal; the run result is reported.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from .cancellation import CancellationFlag
from .errors import SessionCloseError, SubmissionError
from .ingestion.base import Flow, IngestionSession
from .message_pool import MessagePool
from .pacer import Pacer
from .run import FlowConfig

logger = logging.getLogger(__name__)


class StreamState(Enum):
    RUNNING = "running"
    DRAINING = "draining"
    CLOSED = "closed"


@dataclass(frozen=True)
class StreamStats:
    """Summary of a finished run."""

    messages_sent: int
    elapsed_seconds: float
    cancelled: bool

    @property
    def effective_rate(self) -> float:
        """Messages per second actually achieved."""
        if self.elapsed_seconds <= 0:
            return 0.0
        return self.messages_sent / self.elapsed_seconds


class Streamer:
    """Submit pooled messages through a session at a fixed rate until cancelled."""

    def __init__(
        self,
        session: IngestionSession,
        flow_config: FlowConfig,
        pool: MessagePool,
        pacer: Pacer,
        flag: CancellationFlag,
        max_messages: int | None = None,
        clock: Callable[[], int] = time.time_ns,
    ):
        self.session = session
        self.flow_config = flow_config
        self.pool = pool
        self.pacer = pacer
        self.flag = flag
        self.max_messages = max_messages
        self._clock = clock
        self.state = StreamState.RUNNING
        self.messages_sent = 0

    async def run(self) -> StreamStats:
        """
        Stream until cancelled, bounded, or a submission fails; then close.

        Raises:
            SubmissionError: a submit failed. ``close_error`` holds any
                error from the subsequent close.
            SessionCloseError: the loop ended cleanly but close failed.
        """
        started = time.monotonic()
        loop_error: SubmissionError | None = None
        try:
            await self._stream()
        except SubmissionError as e:
            loop_error = e
        except Exception as e:
            loop_error = SubmissionError(f"error while sending message: {e}")
            loop_error.__cause__ = e

        self.state = StreamState.DRAINING
        try:
            await self.session.close()
        except Exception as e:
            close_error = (
                e
                if isinstance(e, SessionCloseError)
                else SessionCloseError(f"error terminating stream: {e}")
            )
            if close_error is not e:
                close_error.__cause__ = e
            if loop_error is None:
                raise close_error
            logger.error("Close after failed stream also failed: %s", close_error)
            loop_error.close_error = close_error
        finally:
            self.state = StreamState.CLOSED

        if loop_error is not None:
            raise loop_error

        return StreamStats(
            messages_sent=self.messages_sent,
            elapsed_seconds=time.monotonic() - started,
            cancelled=self.flag.is_cancelled,
        )

    async def _stream(self) -> None:
        messages = self.pool.cycle()
        flow_name = self.flow_config.name
        while not self.flag.is_cancelled:
            if self.max_messages is not None and self.messages_sent >= self.max_messages:
                logger.info("Sent %d messages; stopping", self.messages_sent)
                break
            tick = self.pacer.start()
            message = next(messages)
            await self.session.submit(Flow(flow_name, self._clock(), message))
            self.messages_sent += 1
            await self.pacer.pace(tick)
        if self.flag.is_cancelled:
            logger.info("Cancellation observed after %d messages; draining", self.messages_sent)
