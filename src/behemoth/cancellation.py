"""
Interrupt-driven cancellation.

An interrupt watcher flips a shared flag when the first OS interrupt arrives;
the streaming loop reads the flag once per iteration and never blocks on it.
The watcher keeps its handlers installed until the run has closed its
session, so later interrupts are logged and ignored instead of aborting the
drain.
"""

import asyncio
import logging
import signal
import threading
from collections.abc import Iterable

logger = logging.getLogger(__name__)

DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class CancellationFlag:
    """Shared false-to-true flag. One writer, one reader, never reset."""

    def __init__(self) -> None:
        self._event = threading.Event()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> bool:
        """Set the flag. Returns True only for the call that made the transition."""
        if self._event.is_set():
            return False
        self._event.set()
        return True


class InterruptWatcher:
    """
    Set a CancellationFlag on the first interrupt and swallow the rest.

    Use as an async context manager around the whole run, including the
    session close.
    """

    def __init__(
        self,
        flag: CancellationFlag,
        signals: Iterable[signal.Signals] = DEFAULT_SIGNALS,
    ):
        self.flag = flag
        self.signals = tuple(signals)
        self.received: list[signal.Signals] = []
        self._loop: asyncio.AbstractEventLoop | None = None
        self._installed: list[signal.Signals] = []
        self._previous: dict[signal.Signals, object] = {}
        self._first = asyncio.Event()

    def _on_signal(self, signum: signal.Signals) -> None:
        signum = signal.Signals(signum)
        self.received.append(signum)
        if self.flag.cancel():
            logger.info("%s - terminating stream", signum.name)
            self._first.set()
        else:
            logger.info("%s ignored; stream is already terminating", signum.name)

    def install(self) -> None:
        """Register handlers on the running event loop."""
        loop = asyncio.get_running_loop()
        self._loop = loop
        for signum in self.signals:
            try:
                loop.add_signal_handler(signum, self._on_signal, signum)
                self._installed.append(signum)
            except NotImplementedError:
                # Event loops without add_signal_handler (Windows).
                self._previous[signum] = signal.signal(
                    signum,
                    lambda s, _frame: loop.call_soon_threadsafe(self._on_signal, s),
                )

    def remove(self) -> None:
        """Restore the handlers that were active before install()."""
        if self._loop is not None:
            for signum in self._installed:
                self._loop.remove_signal_handler(signum)
        for signum, handler in self._previous.items():
            signal.signal(signum, handler)  # type: ignore[arg-type]
        self._installed.clear()
        self._previous.clear()
        self._loop = None

    async def wait(self) -> None:
        """Wait until the first interrupt has set the flag."""
        await self._first.wait()

    async def __aenter__(self) -> "InterruptWatcher":
        self.install()
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.remove()
