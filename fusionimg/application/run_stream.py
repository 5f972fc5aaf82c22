"""Streaming entry points: each yields run snapshots as they are published."""

import asyncio
from collections.abc import AsyncIterator

from fusionimg.application.workflow_engine import WorkflowEngine
from fusionimg.domain.events.queue_sink import QueueResultSink
from fusionimg.domain.models.artifacts import ImageArtifact, validate_prompt
from fusionimg.domain.models.workflow_run import WorkflowRun, WorkflowVariant


async def stream_run(
    engine: WorkflowEngine,
    prompt: str,
    image: ImageArtifact | None = None,
    variant: WorkflowVariant = WorkflowVariant.STANDARD,
) -> AsyncIterator[WorkflowRun]:
    """Start a run and yield every snapshot delivered for it.

    The stream ends after the terminal snapshot, or without one if the run is
    superseded by a newer run. Abandoning the stream early cancels the run.

    Raises:
        ValidationError: If the prompt is empty (raised on first iteration)
    """
    validate_prompt(prompt)
    sink = QueueResultSink()

    async def _drive():
        try:
            return await engine.run(prompt, image, variant, sink=sink)
        finally:
            sink.close()

    task = asyncio.create_task(_drive())
    try:
        while True:
            snapshot = await sink.queue.get()
            if snapshot is None:
                break
            yield snapshot
        # Re-raise anything the run itself raised.
        await task
    finally:
        if not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass


def run_standard(
    engine: WorkflowEngine,
    prompt: str,
    image: ImageArtifact | None = None,
) -> AsyncIterator[WorkflowRun]:
    """Plan -> draft -> analyze -> refine."""
    return stream_run(engine, prompt, image, WorkflowVariant.STANDARD)


def run_quick(
    engine: WorkflowEngine,
    prompt: str,
    image: ImageArtifact | None = None,
) -> AsyncIterator[WorkflowRun]:
    """Quick draft, then the standard sequence."""
    return stream_run(engine, prompt, image, WorkflowVariant.QUICK)
