"""Metric exporters used as ingestion transports."""

from .console_exporter import create_console_exporter
from .file_exporter import FileMetricExporter
from .otlp_exporter import auth_headers, create_otlp_metric_exporter

__all__ = [
    "create_otlp_metric_exporter",
    "auth_headers",
    "FileMetricExporter",
    "create_console_exporter",
]
