"""
Ingestion session backed by an OpenTelemetry metric exporter.

Flows are buffered and converted into MetricsData in batches: one gauge
metric per channel, one data point per flow. Exports run on a worker thread
so the event loop keeps pacing and watching for interrupts.
"""

import asyncio
import logging
import time
from dataclasses import dataclass

from opentelemetry.sdk.metrics.export import (
    Gauge,
    Metric,
    MetricExporter,
    MetricExportResult,
    MetricsData,
    NumberDataPoint,
    ResourceMetrics,
    ScopeMetrics,
)
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.util.instrumentation import InstrumentationScope

from .. import __version__
from ..errors import SessionCloseError, SubmissionError
from ..run import FlowConfig, RunIdentity
from .base import Flow, IngestionSession

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100
FLOW_NAME_ATTR = "flow.name"


@dataclass(frozen=True)
class RecoveryStrategy:
    """Retry policy for failed batch exports (exponential backoff)."""

    max_retries: int = 3
    initial_backoff: float = 0.05
    backoff_multiplier: float = 2.0
    max_backoff: float = 2.0

    def backoff(self, attempt: int) -> float:
        """Delay in seconds before retry number ``attempt`` (1-based)."""
        delay = self.initial_backoff * self.backoff_multiplier ** (attempt - 1)
        return min(delay, self.max_backoff)


def run_resource(run: RunIdentity) -> Resource:
    """Resource attributes tagging every export with the asset and run."""
    return Resource.create(
        {
            "service.name": run.asset,
            "service.version": __version__,
            "run.name": run.name,
            "run.client_key": run.client_key,
            "ingestion.client_key": run.asset,
        }
    )


class ExporterSession(IngestionSession):
    """IngestionSession that batches flows into an OpenTelemetry MetricExporter."""

    def __init__(
        self,
        exporter: MetricExporter,
        run: RunIdentity,
        flow_config: FlowConfig,
        batch_size: int = DEFAULT_BATCH_SIZE,
        recovery: RecoveryStrategy | None = None,
        sleep=time.sleep,
    ):
        """Initialize session; ``sleep`` is used for retry backoff on the worker thread."""
        self.exporter = exporter
        self.run = run
        self.flow_config = flow_config
        self.batch_size = batch_size
        self.recovery = recovery or RecoveryStrategy()
        self._sleep = sleep
        self._resource = run_resource(run)
        self._scope = InstrumentationScope("behemoth", __version__)
        self._buffer: list[Flow] = []
        self._closed = False
        self.flows_exported = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        """Flows buffered but not yet exported."""
        return len(self._buffer)

    async def submit(self, flow: Flow) -> None:
        """Buffer one flow and export the batch once it is full."""
        if self._closed:
            raise SubmissionError("Session is closed")
        if flow.name != self.flow_config.name:
            raise SubmissionError(
                f"Unknown flow {flow.name!r}; session is bound to {self.flow_config.name!r}"
            )
        if len(flow.values) != len(self.flow_config.channels):
            raise SubmissionError(
                f"Flow {flow.name!r} has {len(flow.values)} values, "
                f"expected {len(self.flow_config.channels)}"
            )
        self._buffer.append(flow)
        if len(self._buffer) >= self.batch_size:
            await self._flush()

    async def close(self) -> None:
        """Export remaining flows, then shut the exporter down."""
        if self._closed:
            raise SessionCloseError("Session already closed")
        self._closed = True
        try:
            if self._buffer:
                await self._flush()
        except SubmissionError as e:
            raise SessionCloseError(f"Failed to flush {self.pending} buffered flows: {e}") from e
        finally:
            try:
                await asyncio.to_thread(self.exporter.shutdown)
            except Exception as e:
                raise SessionCloseError(f"Exporter shutdown failed: {e}") from e
        logger.info("Session %s closed after %d flows", self.run.name, self.flows_exported)

    async def _flush(self) -> None:
        batch = self._buffer
        metrics_data = self.build_metrics_data(batch)
        await asyncio.to_thread(self._export_with_recovery, metrics_data)
        self._buffer = []
        self.flows_exported += len(batch)

    def build_metrics_data(self, flows: list[Flow]) -> MetricsData:
        """Convert buffered flows into one gauge per channel."""
        points: dict[str, list[NumberDataPoint]] = {
            name: [] for name in self.flow_config.channel_names
        }
        for flow in flows:
            attrs = {FLOW_NAME_ATTR: flow.name}
            for cv in flow.values:
                try:
                    channel_points = points[cv.channel]
                except KeyError:
                    raise SubmissionError(
                        f"Channel {cv.channel!r} is not part of flow {flow.name!r}"
                    ) from None
                channel_points.append(
                    NumberDataPoint(
                        attributes=attrs,
                        start_time_unix_nano=flow.timestamp_ns,
                        time_unix_nano=flow.timestamp_ns,
                        value=cv.value,
                    )
                )
        metrics = [
            Metric(name=name, description=None, unit="1", data=Gauge(data_points=data_points))
            for name, data_points in points.items()
            if data_points
        ]
        return MetricsData(
            resource_metrics=[
                ResourceMetrics(
                    resource=self._resource,
                    scope_metrics=[ScopeMetrics(scope=self._scope, metrics=metrics, schema_url="")],
                    schema_url="",
                )
            ]
        )

    def _export_with_recovery(self, metrics_data: MetricsData) -> None:
        attempt = 0
        while True:
            try:
                result = self.exporter.export(metrics_data)
                error = None if result == MetricExportResult.SUCCESS else "export returned FAILURE"
            except Exception as e:
                error = str(e) or type(e).__name__
            if error is None:
                return
            attempt += 1
            if attempt > self.recovery.max_retries:
                raise SubmissionError(
                    f"Export failed after {self.recovery.max_retries} retries: {error}"
                )
            delay = self.recovery.backoff(attempt)
            logger.warning(
                "Export failed (%s); retry %d/%d in %.2fs",
                error,
                attempt,
                self.recovery.max_retries,
                delay,
            )
            self._sleep(delay)
