# Path: core/apply/events.py
# Purpose: Define progress events emitted by the bulk apply pipeline and helpers to frame and tally them.
# Layer: core/apply.
# Details: Events serialize to the camelCase dicts consumed by the dashboard's event-stream reader.

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Optional


class EventType(str, Enum):
    START = "start"
    SUCCESS = "success"
    ERROR = "error"
    DONE = "done"


@dataclass(frozen=True)
class ProgressEvent:
    """One unit of pipeline output: an item's start/outcome, or stream termination."""

    type: EventType
    product_id: Optional[int] = None
    product_name: Optional[str] = None
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    @classmethod
    def start(cls, product_id: int, product_name: Optional[str] = None) -> "ProgressEvent":
        return cls(EventType.START, product_id, product_name)

    @classmethod
    def success(cls, product_id: int, product_name: Optional[str], result: Dict[str, Any]) -> "ProgressEvent":
        return cls(EventType.SUCCESS, product_id, product_name, result=result)

    @classmethod
    def failure(cls, product_id: int, product_name: Optional[str], error: str) -> "ProgressEvent":
        return cls(EventType.ERROR, product_id, product_name, error=error)

    @classmethod
    def done(cls) -> "ProgressEvent":
        return cls(EventType.DONE)

    def to_dict(self) -> Dict[str, Any]:
        """Return the wire representation of the event."""

        if self.type is EventType.DONE:
            return {"type": self.type.value}
        payload: Dict[str, Any] = {
            "type": self.type.value,
            "productId": self.product_id,
            "productName": self.product_name,
        }
        if self.type is EventType.SUCCESS:
            payload["result"] = self.result
        elif self.type is EventType.ERROR:
            payload["error"] = self.error
        return payload


def encode_sse(event: ProgressEvent) -> str:
    """Frame an event as a server-sent-events ``data:`` message."""

    return f"data: {json.dumps(event.to_dict())}\n\n"


@dataclass
class ApplySummary:
    """Counts aggregated by a consumer of the progress stream."""

    succeeded: int = 0
    failed: int = 0
    completed: bool = False

    @property
    def total(self) -> int:
        return self.succeeded + self.failed


def tally_events(events: Iterable[ProgressEvent]) -> ApplySummary:
    """Consume a progress stream and count per-item outcomes."""

    summary = ApplySummary()
    for event in events:
        if event.type is EventType.SUCCESS:
            summary.succeeded += 1
        elif event.type is EventType.ERROR:
            summary.failed += 1
        elif event.type is EventType.DONE:
            summary.completed = True
    return summary
