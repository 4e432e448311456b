"""Ingestion sessions: the transport the streaming loop submits flows through."""

import logging

from ..config import StreamConfig
from ..errors import ConfigurationError
from ..exporters import (
    FileMetricExporter,
    auth_headers,
    create_console_exporter,
    create_otlp_metric_exporter,
)
from ..run import FlowConfig, RunIdentity
from .base import Flow, IngestionSession
from .exporter_session import ExporterSession, RecoveryStrategy

logger = logging.getLogger(__name__)


def open_session(config: StreamConfig, run: RunIdentity, flow_config: FlowConfig) -> ExporterSession:
    """
    Open an ingestion session for a run and its flow.

    Uses a JSONL file when ``output_file`` is set, stdout when ``console`` is
    set, otherwise OTLP at ``uri``.
    """
    try:
        if config.output_file:
            exporter = FileMetricExporter(config.output_file, append=False)
            target = config.output_file
        elif config.console:
            exporter = create_console_exporter()
            target = "console"
        else:
            exporter = create_otlp_metric_exporter(
                endpoint=config.uri or "",
                protocol=config.protocol,
                headers=auth_headers(config.apikey),
                insecure=config.disable_tls,
            )
            target = f"{config.uri} ({config.protocol})"
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Failed to build ingestion session: {e}") from e

    logger.info("Opened session for run %s, flow %s -> %s", run.name, flow_config.name, target)
    return ExporterSession(
        exporter,
        run,
        flow_config,
        batch_size=config.batch_size,
        recovery=RecoveryStrategy(max_retries=config.max_retries),
    )


__all__ = [
    "Flow",
    "IngestionSession",
    "ExporterSession",
    "RecoveryStrategy",
    "open_session",
]
