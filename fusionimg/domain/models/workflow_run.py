import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from fusionimg.domain.models.artifacts import (
    AnalysisArtifact,
    ImageArtifact,
    PlanArtifact,
)


class WorkflowVariant(str, Enum):
    """Which stage sequence a run executes."""

    STANDARD = "standard"  # plan -> draft -> analyze -> refine
    QUICK = "quick"        # quick draft first, then the standard sequence


class WorkflowStatus(str, Enum):
    """Run status with a total order over the progress statuses.

    IDLE < QUICK_DRAFTING < PLANNING < DRAFTING < ANALYZING < REFINING < COMPLETED.
    ERROR is terminal and sits outside the order; comparing against it raises TypeError.
    """

    IDLE = "idle"
    QUICK_DRAFTING = "quick_drafting"
    PLANNING = "planning"
    DRAFTING = "drafting"
    ANALYZING = "analyzing"
    REFINING = "refining"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def rank(self) -> int | None:
        """Position in the progress order, None for ERROR."""
        try:
            return _PROGRESS_ORDER.index(self)
        except ValueError:
            return None

    @property
    def is_terminal(self) -> bool:
        return self in (WorkflowStatus.COMPLETED, WorkflowStatus.ERROR)

    @property
    def is_active(self) -> bool:
        """True while a stage is executing."""
        return self not in (WorkflowStatus.IDLE, WorkflowStatus.COMPLETED, WorkflowStatus.ERROR)

    def _ranks(self, other: Any) -> tuple[int, int]:
        a, b = self.rank, other.rank
        if a is None or b is None:
            raise TypeError(f"{self.name} and {other.name} are not ordered")
        return a, b

    def __lt__(self, other: Any) -> bool:
        if not isinstance(other, WorkflowStatus):
            return NotImplemented
        a, b = self._ranks(other)
        return a < b

    def __le__(self, other: Any) -> bool:
        if not isinstance(other, WorkflowStatus):
            return NotImplemented
        a, b = self._ranks(other)
        return a <= b

    def __gt__(self, other: Any) -> bool:
        if not isinstance(other, WorkflowStatus):
            return NotImplemented
        a, b = self._ranks(other)
        return a > b

    def __ge__(self, other: Any) -> bool:
        if not isinstance(other, WorkflowStatus):
            return NotImplemented
        a, b = self._ranks(other)
        return a >= b


_PROGRESS_ORDER: tuple[WorkflowStatus, ...] = (
    WorkflowStatus.IDLE,
    WorkflowStatus.QUICK_DRAFTING,
    WorkflowStatus.PLANNING,
    WorkflowStatus.DRAFTING,
    WorkflowStatus.ANALYZING,
    WorkflowStatus.REFINING,
    WorkflowStatus.COMPLETED,
)


class StatusTransition(BaseModel):
    """Record of a status change."""

    status: WorkflowStatus
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class WorkflowRun(BaseModel):
    """Complete state snapshot of one pipeline invocation."""

    # Identity
    run_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    generation: int = 0
    variant: WorkflowVariant = WorkflowVariant.STANDARD

    # Inputs (fixed for the lifetime of the run)
    prompt: str
    original_image: ImageArtifact | None = None

    # State
    status: WorkflowStatus = WorkflowStatus.IDLE

    # Artifacts, in production order
    quick_draft: ImageArtifact | None = None
    plan: PlanArtifact | None = None
    draft: ImageArtifact | None = None
    analysis: AnalysisArtifact | None = None
    final_image: ImageArtifact | None = None

    # Error tracking
    error: str | None = None
    failed_stage: WorkflowStatus | None = None  # Stage that was active when the run failed

    # Timestamps
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    status_history: list[StatusTransition] = Field(default_factory=list)

    @field_validator("prompt")
    @classmethod
    def _prompt_non_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("prompt must be non-empty")
        return v

    @field_validator("generation")
    @classmethod
    def _generation_ge_0(cls, v: int) -> int:
        if v < 0:
            raise ValueError("generation must be >= 0")
        return v

    # ------------------------------------------------------------------
    # Display predicates
    # ------------------------------------------------------------------

    def _progress(self) -> WorkflowStatus:
        if self.status == WorkflowStatus.ERROR:
            return self.failed_stage or WorkflowStatus.IDLE
        return self.status

    def is_stage_done(self, stage: WorkflowStatus) -> bool:
        """True once the run has moved past `stage` (a failed stage is never done).

        ERROR is not a stage, so it is never done.
        """
        if stage.rank is None:
            return False
        return self._progress() > stage

    def is_stage_in_progress(self, stage: WorkflowStatus) -> bool:
        return self.status == stage and stage.is_active

    def is_stage_pending(self, stage: WorkflowStatus) -> bool:
        """True while `stage` has not started yet and the run can still reach it."""
        if self.status.is_terminal or stage.rank is None:
            return False
        return self._progress() < stage

    @property
    def is_loading(self) -> bool:
        return self.status.is_active

    def artifacts(self) -> dict[str, ImageArtifact | PlanArtifact | AnalysisArtifact]:
        """Artifacts produced so far, keyed by field name."""
        fields = ("quick_draft", "plan", "draft", "analysis", "final_image")
        return {name: getattr(self, name) for name in fields if getattr(self, name) is not None}
