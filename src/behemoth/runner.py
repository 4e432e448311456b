"""Assemble a streaming run from configuration and execute it."""

import contextlib
import logging
import signal
from collections.abc import Iterable

from .cancellation import DEFAULT_SIGNALS, CancellationFlag, InterruptWatcher
from .channels import build_channel_matrix
from .config import StreamConfig
from .ingestion import IngestionSession, open_session
from .message_pool import MessagePool
from .pacer import Pacer
from .run import FlowConfig, RunIdentity, flow_name_for
from .streamer import Streamer, StreamStats

logger = logging.getLogger(__name__)


def build_flow_config(config: StreamConfig) -> FlowConfig:
    """Flow name and channel matrix for a configuration."""
    return FlowConfig(
        name=flow_name_for(config.num_components, config.channels_per_component, config.frequency),
        channels=build_channel_matrix(config.num_components, config.channels_per_component),
    )


async def run_stream(
    config: StreamConfig,
    session: IngestionSession | None = None,
    flag: CancellationFlag | None = None,
    watch_signals: bool = True,
    signals: Iterable[signal.Signals] = DEFAULT_SIGNALS,
) -> StreamStats:
    """
    Run one stream end to end.

    Interrupt handlers are installed before setup and stay installed until the
    session has been closed, so an interrupt during setup or drain only sets
    (or re-sets) the cancellation flag.

    Args:
        config: Validated configuration
        session: Session to use instead of opening one from ``config``
        flag: Cancellation flag shared with the caller
        watch_signals: Install the interrupt watcher
        signals: Signals treated as an interrupt

    Returns:
        StreamStats for the finished run
    """
    flag = flag or CancellationFlag()
    pacer = Pacer(config.frequency)

    async with contextlib.AsyncExitStack() as stack:
        if watch_signals:
            await stack.enter_async_context(InterruptWatcher(flag, signals))

        run = RunIdentity.start(config.asset)
        flow_config = build_flow_config(config)
        pool = MessagePool.generate(flow_config.channels)
        if session is None:
            session = open_session(config, run, flow_config)

        logger.info(
            "Streaming run %s: %d channels at %d Hz (delay %d ns)",
            run.name,
            len(flow_config.channels),
            config.frequency,
            pacer.delay_ns,
        )

        streamer = Streamer(session, flow_config, pool, pacer, flag, max_messages=config.count)
        return await streamer.run()
