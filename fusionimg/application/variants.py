"""Declarative stage sequences for the two workflow variants.

Key concepts:
- A variant is an ordered tuple of stages, each entered before its gateway call
- The stage after the last one is always COMPLETED
- The quick draft is produced first and never consumed by later stages
"""

from dataclasses import dataclass

from fusionimg.domain.models.workflow_run import WorkflowStatus, WorkflowVariant


@dataclass(frozen=True, slots=True)
class StageSpec:
    """One pipeline stage.

    Attributes:
        status: Status the run holds while the stage executes
        artifact: WorkflowRun field the stage populates
        label: Human-readable name used in error messages
    """

    status: WorkflowStatus
    artifact: str
    label: str


QUICK_DRAFT = StageSpec(WorkflowStatus.QUICK_DRAFTING, "quick_draft", "Quick draft generation")
PLAN = StageSpec(WorkflowStatus.PLANNING, "plan", "Planning")
DRAFT = StageSpec(WorkflowStatus.DRAFTING, "draft", "Draft generation")
ANALYZE = StageSpec(WorkflowStatus.ANALYZING, "analysis", "Analysis")
REFINE = StageSpec(WorkflowStatus.REFINING, "final_image", "Refinement")


class VariantSelector:
    """Maps variants (and the entry points that choose them) to stage sequences.

    Usage:
        for stage in VariantSelector.stages(variant):
            ...
        VariantSelector.next_status(variant, WorkflowStatus.REFINING)  # COMPLETED
    """

    _SEQUENCES: dict[WorkflowVariant, tuple[StageSpec, ...]] = {
        WorkflowVariant.STANDARD: (PLAN, DRAFT, ANALYZE, REFINE),
        WorkflowVariant.QUICK: (QUICK_DRAFT, PLAN, DRAFT, ANALYZE, REFINE),
    }

    _ENTRY_POINTS: dict[str, WorkflowVariant] = {
        "standard": WorkflowVariant.STANDARD,
        "run_standard": WorkflowVariant.STANDARD,
        "quick": WorkflowVariant.QUICK,
        "run_quick": WorkflowVariant.QUICK,
    }

    @classmethod
    def stages(cls, variant: WorkflowVariant) -> tuple[StageSpec, ...]:
        """Get the ordered stages for a variant.

        Raises:
            KeyError: If the variant is unknown
        """
        return cls._SEQUENCES[variant]

    @classmethod
    def statuses(cls, variant: WorkflowVariant) -> list[WorkflowStatus]:
        """Statuses a successful run passes through, ending with COMPLETED."""
        return [stage.status for stage in cls.stages(variant)] + [WorkflowStatus.COMPLETED]

    @classmethod
    def next_status(
        cls,
        variant: WorkflowVariant,
        status: WorkflowStatus,
    ) -> WorkflowStatus | None:
        """Get the status that follows `status` in a variant.

        Returns:
            Next status, or None if `status` is terminal or not part of the variant
        """
        sequence = [WorkflowStatus.IDLE] + cls.statuses(variant)
        if status not in sequence or status == WorkflowStatus.COMPLETED:
            return None
        return sequence[sequence.index(status) + 1]

    @classmethod
    def for_entry_point(cls, name: str) -> WorkflowVariant:
        """Resolve the variant chosen by an invocation entry point.

        Raises:
            ValueError: If the entry point is unknown
        """
        key = name.strip().lower()
        if key not in cls._ENTRY_POINTS:
            available = ", ".join(sorted(cls._ENTRY_POINTS))
            raise ValueError(f"Unknown workflow entry point: {name!r}. Available: {available}")
        return cls._ENTRY_POINTS[key]
