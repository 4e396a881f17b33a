"""
OpenTelemetry Exporter for stagecoach

Architectural Intent:
- Exports deployment outcome metrics to OTLP-compatible backends
- Fed by deployment domain events through the event bus
- SDK is imported lazily; telemetry is a no-op without an endpoint

Security:
- Endpoint defaults to empty string (must be explicitly configured)
- Non-localhost http:// endpoints rejected unless insecure=True
- Validation in __post_init__ prevents accidental plaintext export
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Any
from urllib.parse import urlparse
import logging
from datetime import datetime, UTC

from stagecoach.domain.events.event_base import DeploymentOutcomeEvent, DomainEvent

logger = logging.getLogger(__name__)


@dataclass
class OTELConfig:
    endpoint: str = ""
    service_name: str = "stagecoach"
    environment: str = "production"
    insecure: bool = False

    def __post_init__(self) -> None:
        if self.endpoint:
            parsed = urlparse(self.endpoint)
            is_localhost = parsed.hostname in ("localhost", "127.0.0.1", "::1")
            if parsed.scheme == "http" and not is_localhost and not self.insecure:
                raise ValueError(
                    f"Non-localhost HTTP endpoint '{self.endpoint}' requires "
                    "insecure=True or use https://. "
                    "Set insecure=True to explicitly allow plaintext export."
                )


class OTELExporter:
    """
    OpenTelemetry metrics exporter for deployment runs.
    """

    def __init__(self, config: OTELConfig):
        self.config = config
        self._initialized = False
        self._metrics_buffer: list[dict[str, Any]] = []
        self._meter: Any = None
        self._counters: dict[str, Any] = {}

    async def initialize(self) -> None:
        """Initialize OpenTelemetry SDK and exporters."""
        if not self.config.endpoint:
            logger.info("OTEL endpoint not configured, telemetry disabled")
            return

        try:
            from opentelemetry import metrics
            from opentelemetry.sdk.resources import Resource, SERVICE_NAME
            from opentelemetry.sdk.metrics import MeterProvider
            from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
            from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import (
                OTLPMetricExporter,
            )

            resource = Resource(
                attributes={
                    SERVICE_NAME: self.config.service_name,
                    "environment": self.config.environment,
                }
            )
            metric_reader = PeriodicExportingMetricReader(
                OTLPMetricExporter(
                    endpoint=self.config.endpoint, insecure=self.config.insecure
                )
            )
            provider = MeterProvider(resource=resource, metric_readers=[metric_reader])
            metrics.set_meter_provider(provider)
            self._meter = metrics.get_meter(__name__)
            self._initialized = True

        except ImportError:
            logger.warning("OpenTelemetry SDK not installed, telemetry disabled")
            self._initialized = False

    def _get_counter(self, name: str) -> Any:
        if name not in self._counters and self._meter:
            self._counters[name] = self._meter.create_counter(name)
        return self._counters.get(name)

    def record_metric(
        self,
        name: str,
        value: float,
        attributes: Optional[dict[str, str]] = None,
    ) -> None:
        """Record a counter increment."""
        self._metrics_buffer.append(
            {
                "name": name,
                "value": value,
                "attributes": attributes or {},
                "timestamp": datetime.now(UTC).isoformat(),
            }
        )

        if self._initialized:
            counter = self._get_counter(name)
            if counter:
                counter.add(value, attributes=attributes or {})

    def record_deployment_outcome(
        self, deployment: str, release_identifier: str, status: str
    ) -> None:
        self.record_metric(
            "stagecoach.deployment.outcome",
            1.0,
            attributes={
                "deployment": deployment,
                "release": release_identifier,
                "status": status,
            },
        )

    async def handle_event(self, event: DomainEvent) -> None:
        """Event bus subscriber for deployment outcome events."""
        if not isinstance(event, DeploymentOutcomeEvent):
            return
        self.record_deployment_outcome(
            event.aggregate_id, event.release_identifier, event.outcome
        )

    async def export(self) -> None:
        """Flush the local buffer; the SDK reader exports on its own schedule."""
        exported_count = len(self._metrics_buffer)
        self._metrics_buffer.clear()

        if exported_count and self._initialized:
            logger.debug("Flushed %d buffered metrics", exported_count)


async def create_exporter(
    endpoint: Optional[str] = None,
    service_name: str = "stagecoach",
    insecure: bool = False,
) -> OTELExporter:
    """Factory function to create OTEL exporter."""
    config = OTELConfig(
        endpoint=endpoint or "",
        service_name=service_name,
        insecure=insecure,
    )
    exporter = OTELExporter(config)
    await exporter.initialize()
    return exporter
