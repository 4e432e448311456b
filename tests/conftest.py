"""Shared fakes for session and exporter tests."""

import pytest
from opentelemetry.sdk.metrics.export import MetricExporter, MetricExportResult

from behemoth.errors import SubmissionError
from behemoth.ingestion.base import Flow, IngestionSession


class RecordingSession(IngestionSession):
    """Session that records submissions and can fail on a given call."""

    def __init__(self, fail_on: int | None = None, close_error: Exception | None = None, on_submit=None):
        self.flows: list[Flow] = []
        self.submit_calls = 0
        self.close_calls = 0
        self.fail_on = fail_on
        self.close_error = close_error
        self.on_submit = on_submit
        self.failure = SubmissionError(f"submit {fail_on} rejected")

    async def submit(self, flow: Flow) -> None:
        self.submit_calls += 1
        if self.fail_on is not None and self.submit_calls == self.fail_on:
            raise self.failure
        self.flows.append(flow)
        if self.on_submit is not None:
            self.on_submit(self)

    async def close(self) -> None:
        self.close_calls += 1
        if self.close_error is not None:
            raise self.close_error


class RecordingExporter(MetricExporter):
    """MetricExporter that keeps exported batches and can fail a number of times."""

    def __init__(self, failures: int = 0, raise_on_failure: bool = False):
        super().__init__()
        self.batches = []
        self.failures = failures
        self.raise_on_failure = raise_on_failure
        self.attempts = 0
        self.shutdown_calls = 0

    def export(self, metrics_data, timeout_millis: float = 10000, **kwargs) -> MetricExportResult:
        self.attempts += 1
        if self.failures > 0:
            self.failures -= 1
            if self.raise_on_failure:
                raise ConnectionError("collector unavailable")
            return MetricExportResult.FAILURE
        self.batches.append(metrics_data)
        return MetricExportResult.SUCCESS

    def force_flush(self, timeout_millis: float = 10000) -> bool:
        return True

    def shutdown(self, timeout_millis: float = 30000, **kwargs) -> None:
        self.shutdown_calls += 1


@pytest.fixture
def recording_session() -> RecordingSession:
    return RecordingSession()


@pytest.fixture
def recording_exporter() -> RecordingExporter:
    return RecordingExporter()
