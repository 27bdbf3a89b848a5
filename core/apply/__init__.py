# Path: core/apply/__init__.py
# Purpose: Package initializer for the bulk apply pipeline and its progress events.
# Layer: core/apply.
# Details: Exposes the pipeline, event types, SSE framing, and the consumer-side tally.

from .events import ApplySummary, EventType, ProgressEvent, encode_sse, tally_events
from .pipeline import BulkApplyPipeline

__all__ = [
    "ApplySummary",
    "BulkApplyPipeline",
    "EventType",
    "ProgressEvent",
    "encode_sse",
    "tally_events",
]
