"""
stagecoach Telemetry Infrastructure

Architectural Intent:
- OpenTelemetry integration for deployment outcome metrics
"""

from stagecoach.infrastructure.telemetry.otel_exporter import (
    OTELExporter,
    OTELConfig,
    create_exporter,
)

__all__ = [
    "OTELExporter",
    "OTELConfig",
    "create_exporter",
]
