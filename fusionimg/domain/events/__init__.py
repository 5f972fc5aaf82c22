"""Run event system for result sink notifications."""

from fusionimg.domain.events.event_types import RunEventType
from fusionimg.domain.events.event import RunEvent
from fusionimg.domain.events.sink import ResultSink
from fusionimg.domain.events.emitter import RunEventEmitter
from fusionimg.domain.events.stderr_sink import StderrResultSink
from fusionimg.domain.events.queue_sink import QueueResultSink

__all__ = [
    "RunEventType",
    "RunEvent",
    "ResultSink",
    "RunEventEmitter",
    "StderrResultSink",
    "QueueResultSink",
]
