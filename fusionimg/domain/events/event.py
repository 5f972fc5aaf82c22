"""Run event payload model."""

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from fusionimg.domain.events.event_types import RunEventType
from fusionimg.domain.models.workflow_run import WorkflowRun, WorkflowStatus


class RunEvent(BaseModel):
    """Immutable notification carrying the full run snapshot, not a delta."""

    model_config = {"frozen": True}

    event_type: RunEventType
    run: WorkflowRun
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    artifact: str | None = None  # Field name on WorkflowRun for ARTIFACT_PRODUCED

    @property
    def run_id(self) -> str:
        return self.run.run_id

    @property
    def status(self) -> WorkflowStatus:
        return self.run.status
