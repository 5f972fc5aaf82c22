"""Tests for QueueResultSink."""

import asyncio

from fusionimg.domain.events.event import RunEvent
from fusionimg.domain.events.event_types import RunEventType
from fusionimg.domain.events.queue_sink import QueueResultSink
from fusionimg.domain.models.workflow_run import WorkflowRun, WorkflowStatus


class TestQueueResultSink:
    def test_snapshots_then_sentinel(self) -> None:
        async def scenario():
            sink = QueueResultSink()
            run = WorkflowRun(prompt="p", status=WorkflowStatus.PLANNING)
            sink.notify(RunEvent(event_type=RunEventType.STATUS_CHANGED, run=run))
            sink.close()
            return [await sink.queue.get(), await sink.queue.get()]

        first, second = asyncio.run(scenario())

        assert first.status == WorkflowStatus.PLANNING
        assert second is None
