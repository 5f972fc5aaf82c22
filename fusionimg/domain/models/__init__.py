"""Domain models for the Fusion Imager pipeline."""

from .artifacts import (
    AnalysisArtifact,
    ImageArtifact,
    PlanArtifact,
    validate_prompt,
)
from .workflow_run import (
    StatusTransition,
    WorkflowRun,
    WorkflowStatus,
    WorkflowVariant,
)


__all__ = [
    "AnalysisArtifact",
    "ImageArtifact",
    "PlanArtifact",
    "validate_prompt",
    "StatusTransition",
    "WorkflowRun",
    "WorkflowStatus",
    "WorkflowVariant",
]
