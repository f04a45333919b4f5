"""Telemetry helpers and metrics."""

from .metrics import (
    ERROR_COUNTER,
    PIPELINE_STAGE_COUNTER,
    REQUEST_COUNT,
    REQUEST_LATENCY,
    observe_request,
    record_pipeline_stage,
)

__all__ = [
    "ERROR_COUNTER",
    "PIPELINE_STAGE_COUNTER",
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "observe_request",
    "record_pipeline_stage",
]
