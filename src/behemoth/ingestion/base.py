"""
Ingestion session contract.

The streaming loop only needs three things from the transport: a session
bound to a run and flow, a way to submit one timestamped message, and a
terminal close that flushes anything still buffered.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..message_pool import Message


@dataclass(frozen=True)
class Flow:
    """One timestamped message for a named flow."""

    name: str
    timestamp_ns: int
    values: Message


class IngestionSession(ABC):
    """A logical stream bound to one run and one flow."""

    @abstractmethod
    async def submit(self, flow: Flow) -> None:
        """
        Send one flow.

        May suspend. Implementations may retry internally; when they give up
        they raise SubmissionError.
        """

    @abstractmethod
    async def close(self) -> None:
        """Flush and finalize the session. Raises SessionCloseError on failure."""
