"""Workflow execution driven by the VariantSelector stage sequences.

The engine owns status transitions and the single active-run cell. Gateways
produce artifacts; sinks observe snapshots; neither ever writes run state.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from fusionimg.application.variants import StageSpec, VariantSelector
from fusionimg.domain.errors import (
    EmptyTextResponseError,
    FusionError,
    GatewayError,
    MissingImagePayloadError,
    SupersededError,
)
from fusionimg.domain.events.emitter import RunEventEmitter
from fusionimg.domain.events.event import RunEvent
from fusionimg.domain.events.event_types import RunEventType
from fusionimg.domain.events.sink import ResultSink
from fusionimg.domain.gateways.generation_gateway import GenerationGateway
from fusionimg.domain.models.artifacts import (
    AnalysisArtifact,
    ImageArtifact,
    PlanArtifact,
    validate_prompt,
)
from fusionimg.domain.models.workflow_run import (
    StatusTransition,
    WorkflowRun,
    WorkflowStatus,
    WorkflowVariant,
)

logger = logging.getLogger(__name__)


class InvalidTransition(FusionError):
    """Raised when a commit would regress status or touch a finished run."""

    def __init__(self, current: WorkflowStatus, requested: WorkflowStatus | None, reason: str):
        self.current = current
        self.requested = requested
        target = f" -> {requested.value}" if requested else ""
        super().__init__(f"Invalid transition {current.value}{target}: {reason}")


@dataclass(frozen=True, slots=True)
class RunToken:
    """Identifies one registered run; stale tokens cannot commit."""

    run_id: str
    generation: int


class ActiveRunRegistry:
    """Single cell holding the currently active run and its generation counter.

    Registering a run bumps the generation; every later write must present a
    token whose generation is still current, otherwise SupersededError.
    """

    def __init__(self) -> None:
        self._generation = 0
        self._run: WorkflowRun | None = None

    @property
    def current_generation(self) -> int:
        return self._generation

    def begin(self, run: WorkflowRun) -> RunToken:
        """Register `run` as the active run, superseding any previous one."""
        self._generation += 1
        run.generation = self._generation
        run.status_history = [StatusTransition(status=run.status)]
        self._run = run
        return RunToken(run_id=run.run_id, generation=self._generation)

    def is_current(self, token: RunToken) -> bool:
        return (
            self._run is not None
            and token.generation == self._generation
            and token.run_id == self._run.run_id
        )

    def snapshot(self) -> WorkflowRun | None:
        """Deep copy of the active run, or None before the first run."""
        return self._run.model_copy(deep=True) if self._run is not None else None

    def commit(self, token: RunToken, **changes: Any) -> WorkflowRun:
        """Apply field changes to the active run and return a snapshot.

        Raises:
            SupersededError: If a newer run has been registered
            InvalidTransition: If the run is finished or status would regress
        """
        run = self._run
        if run is None or not self.is_current(token):
            raise SupersededError(token.run_id, token.generation, self._generation)

        if run.status.is_terminal:
            raise InvalidTransition(run.status, changes.get("status"), "run already finished")

        new_status = changes.get("status")
        if new_status is not None and new_status != WorkflowStatus.ERROR:
            if new_status < run.status:
                raise InvalidTransition(run.status, new_status, "status may not regress")

        for name, value in changes.items():
            setattr(run, name, value)
        run.updated_at = datetime.now(timezone.utc)
        if new_status is not None:
            run.status_history.append(StatusTransition(status=new_status))

        return run.model_copy(deep=True)


@dataclass
class WorkflowEngine:
    """Runs one workflow variant at a time against a GenerationGateway.

    Stages execute strictly in sequence. Each stage is entered (status change
    plus notification) before its gateway call, and its artifact is committed
    (plus notification) before the next stage starts. Starting a new run
    supersedes the in-flight one: its late results are discarded.
    """

    gateway: GenerationGateway
    event_emitter: RunEventEmitter | None = None
    registry: ActiveRunRegistry = field(default_factory=ActiveRunRegistry)

    def __post_init__(self) -> None:
        if self.event_emitter is None:
            self.event_emitter = RunEventEmitter()

    @property
    def active_run(self) -> WorkflowRun | None:
        """Snapshot of the most recently started run."""
        return self.registry.snapshot()

    async def run(
        self,
        prompt: str,
        image: ImageArtifact | None = None,
        variant: WorkflowVariant | str = WorkflowVariant.STANDARD,
        sink: ResultSink | None = None,
    ) -> WorkflowStatus:
        """Execute a variant to completion or failure.

        Args:
            prompt: Non-empty user prompt
            image: Optional reference image, passed to every stage
            variant: STANDARD or QUICK
            sink: Optional sink notified for this run only, in addition to
                the emitter's subscribers

        Returns:
            COMPLETED or ERROR; a superseded run returns the last status it committed

        Raises:
            ValidationError: If the prompt is empty (no run is started)
        """
        cleaned = validate_prompt(prompt)
        variant = WorkflowVariant(variant)

        token = self.registry.begin(
            WorkflowRun(prompt=cleaned, original_image=image, variant=variant)
        )
        logger.info(f"Run {token.run_id} started (variant={variant.value}, generation={token.generation})")

        last_status = WorkflowStatus.IDLE
        try:
            for stage in VariantSelector.stages(variant):
                snapshot = self.registry.commit(token, status=stage.status)
                last_status = stage.status
                self._emit(RunEventType.STATUS_CHANGED, snapshot, sink)

                try:
                    artifact = await self._execute_stage(stage, snapshot)
                except GatewayError as e:
                    logger.warning(f"Run {token.run_id}: {stage.label} failed: {e.message}")
                    return self._fail(token, stage, e.message, sink)
                except Exception as e:
                    logger.exception(f"Run {token.run_id}: unexpected error during {stage.label}")
                    return self._fail(token, stage, str(e) or type(e).__name__, sink)

                snapshot = self.registry.commit(token, **{stage.artifact: artifact})
                self._emit(RunEventType.ARTIFACT_PRODUCED, snapshot, sink, artifact=stage.artifact)

            snapshot = self.registry.commit(token, status=WorkflowStatus.COMPLETED)
            self._emit(RunEventType.RUN_COMPLETED, snapshot, sink)
            logger.info(f"Run {token.run_id} completed")
            return WorkflowStatus.COMPLETED

        except SupersededError as e:
            logger.info(f"Discarding results: {e}")
            return last_status

        except asyncio.CancelledError:
            if self.registry.is_current(token):
                snapshot = self.registry.commit(
                    token,
                    status=WorkflowStatus.ERROR,
                    error="Run cancelled",
                    failed_stage=last_status,
                )
                self._emit(RunEventType.RUN_FAILED, snapshot, sink)
            raise

    # ========================================================================
    # Internal Methods
    # ========================================================================

    async def _execute_stage(
        self,
        stage: StageSpec,
        run: WorkflowRun,
    ) -> ImageArtifact | PlanArtifact | AnalysisArtifact:
        """Call the gateway for `stage` using only committed artifacts from `run`."""
        gateway = self.gateway
        status = stage.status

        if status == WorkflowStatus.QUICK_DRAFTING:
            result = await gateway.quick_generate(run.prompt, run.original_image)
        elif status == WorkflowStatus.PLANNING:
            result = await gateway.plan(run.prompt, run.original_image)
        elif status == WorkflowStatus.DRAFTING:
            result = await gateway.draft(run.plan, run.original_image)
        elif status == WorkflowStatus.ANALYZING:
            result = await gateway.analyze(run.prompt, run.plan, run.draft, run.original_image)
        elif status == WorkflowStatus.REFINING:
            result = await gateway.refine(run.analysis, run.draft, run.original_image)
        else:
            raise ValueError(f"No gateway operation for stage {status.value}")

        _check_result(stage, result)
        return result

    def _fail(
        self,
        token: RunToken,
        stage: StageSpec,
        detail: str,
        sink: ResultSink | None,
    ) -> WorkflowStatus:
        snapshot = self.registry.commit(
            token,
            status=WorkflowStatus.ERROR,
            error=f"{stage.label} failed: {detail}",
            failed_stage=stage.status,
        )
        self._emit(RunEventType.RUN_FAILED, snapshot, sink)
        return WorkflowStatus.ERROR

    def _emit(
        self,
        event_type: RunEventType,
        snapshot: WorkflowRun,
        sink: ResultSink | None,
        artifact: str | None = None,
    ) -> None:
        """Deliver a snapshot; called right after a commit with no await in between."""
        event = RunEvent(event_type=event_type, run=snapshot, artifact=artifact)
        self.event_emitter.emit(event, extra=sink)


def _check_result(stage: StageSpec, result: Any) -> None:
    """Reject missing or mistyped gateway results as gateway failures."""
    if stage.status in (WorkflowStatus.PLANNING, WorkflowStatus.ANALYZING):
        expected = PlanArtifact if stage.status == WorkflowStatus.PLANNING else AnalysisArtifact
        if not isinstance(result, expected):
            raise EmptyTextResponseError(
                f"Gateway returned no {stage.artifact} text", operation=stage.artifact
            )
    elif not isinstance(result, ImageArtifact):
        raise MissingImagePayloadError(
            f"Gateway returned no image for {stage.label.lower()}", operation=stage.artifact
        )
