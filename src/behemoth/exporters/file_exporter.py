"""
File-based exporter for offline analysis and debugging.

Writes each exported channel metric as one JSON line with its data points.
"""

import json
from pathlib import Path
from typing import Any

from opentelemetry.sdk.metrics.export import MetricExporter, MetricExportResult, MetricsData


class FileMetricExporter(MetricExporter):
    """Export metrics to a JSON lines file."""

    def __init__(self, output_path: str | Path, append: bool = True):
        """Initialize file exporter."""
        super().__init__()
        self.output_path = Path(output_path)
        self.append = append
        self.output_path.parent.mkdir(parents=True, exist_ok=True)

        if not append and self.output_path.exists():
            self.output_path.unlink()

    def export(
        self,
        metrics_data: MetricsData,
        timeout_millis: float = 10000,
        **kwargs,
    ) -> MetricExportResult:
        """Export metrics to file."""
        try:
            lines = []
            for resource_metrics in metrics_data.resource_metrics:
                resource_attrs = (
                    dict(resource_metrics.resource.attributes) if resource_metrics.resource else {}
                )
                for scope_metrics in resource_metrics.scope_metrics:
                    for metric in scope_metrics.metrics:
                        metric_dict: dict[str, Any] = {
                            "name": metric.name,
                            "unit": metric.unit,
                            "resource": resource_attrs,
                            "data_points": [
                                {
                                    "attributes": dict(dp.attributes or {}),
                                    "time": dp.time_unix_nano,
                                    "value": dp.value,
                                }
                                for dp in metric.data.data_points
                            ],
                        }
                        lines.append(json.dumps(metric_dict, default=str))

            with open(self.output_path, "a", encoding="utf-8") as f:
                for line in lines:
                    f.write(line + "\n")

            return MetricExportResult.SUCCESS
        except OSError:
            return MetricExportResult.FAILURE

    def shutdown(self, timeout_millis: float = 30000, **kwargs) -> None:
        """Shutdown exporter."""
        pass

    def force_flush(self, timeout_millis: float = 10000) -> bool:
        """Force flush."""
        return True
