"""Stderr result sink for CLI integration."""

import click

from fusionimg.domain.events.event import RunEvent
from fusionimg.domain.events.event_types import RunEventType


class StderrResultSink:
    """Emits run events as structured lines to stderr."""

    def notify(self, event: RunEvent) -> None:
        """Emit event as structured line to stderr."""
        run = event.run
        parts = [f"[RUN] {event.event_type.value}", f"status={run.status.name}"]
        if event.artifact:
            parts.append(f"artifact={event.artifact}")
        if event.event_type == RunEventType.RUN_FAILED and run.error:
            parts.append(f"error={run.error!r}")
        parts.append(f"run={run.run_id[:8]}")
        click.echo(" ".join(parts), err=True)
