"""
Console exporter for debugging and development.

Prints exported flows to stdout for quick verification.
"""

from opentelemetry.sdk.metrics.export import ConsoleMetricExporter


def create_console_exporter() -> ConsoleMetricExporter:
    """Create a console metric exporter."""
    return ConsoleMetricExporter()
