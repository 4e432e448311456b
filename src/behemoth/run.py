"""Run identity and flow configuration derived once at startup."""

import time
from dataclasses import dataclass

from .channels import Channel


def flow_name_for(num_components: int, channels_per_component: int, frequency: int) -> str:
    """Flow name encoding the matrix shape and rate (e.g. behemoth.100.10.1000)."""
    return f"behemoth.{num_components}.{channels_per_component}.{frequency}"


@dataclass(frozen=True)
class FlowConfig:
    """Named flow and the channels every submitted message carries."""

    name: str
    channels: tuple[Channel, ...]

    @property
    def channel_names(self) -> tuple[str, ...]:
        return tuple(c.name for c in self.channels)


@dataclass(frozen=True)
class RunIdentity:
    """Asset name plus start timestamp; tags the ingestion session."""

    asset: str
    started_at_ms: int

    @classmethod
    def start(cls, asset: str) -> "RunIdentity":
        return cls(asset=asset, started_at_ms=time.time_ns() // 1_000_000)

    @property
    def name(self) -> str:
        return f"{self.asset}.{self.started_at_ms}"

    @property
    def client_key(self) -> str:
        return self.name
