"""Queue-backed result sink used to stream snapshots to async consumers."""

import asyncio

from fusionimg.domain.events.event import RunEvent
from fusionimg.domain.models.workflow_run import WorkflowRun


class QueueResultSink:
    """Forwards each notified run snapshot into an asyncio.Queue.

    `close()` enqueues a None sentinel marking the end of the stream.
    """

    def __init__(self) -> None:
        self.queue: asyncio.Queue[WorkflowRun | None] = asyncio.Queue()

    def notify(self, event: RunEvent) -> None:
        self.queue.put_nowait(event.run)

    def close(self) -> None:
        self.queue.put_nowait(None)
