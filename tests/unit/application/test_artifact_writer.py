from pathlib import Path

from fusionimg.application.artifact_writer import write_artifacts
from fusionimg.domain.models.artifacts import AnalysisArtifact, ImageArtifact, PlanArtifact
from fusionimg.domain.models.workflow_run import WorkflowRun, WorkflowStatus


def test_writes_present_artifacts(tmp_path: Path) -> None:
    run = WorkflowRun(
        prompt="a red bicycle",
        status=WorkflowStatus.COMPLETED,
        plan=PlanArtifact(text="the plan"),
        draft=ImageArtifact(data=b"draft-bytes", mime_type="image/png"),
        analysis=AnalysisArtifact(text="the analysis"),
        final_image=ImageArtifact(data=b"final-bytes", mime_type="image/jpeg"),
    )

    written = write_artifacts(output_dir=tmp_path / "out", run=run)

    assert set(written) == {"plan", "draft", "analysis", "final_image"}
    assert written["plan"].read_text(encoding="utf-8") == "the plan"
    assert written["draft"].name == "draft.png"
    assert written["draft"].read_bytes() == b"draft-bytes"
    assert written["final_image"].stem == "final"
    assert written["final_image"].read_bytes() == b"final-bytes"


def test_failed_run_writes_partial_artifacts(tmp_path: Path) -> None:
    run = WorkflowRun(
        prompt="a red bicycle",
        status=WorkflowStatus.ERROR,
        plan=PlanArtifact(text="the plan"),
        error="Draft generation failed: Could not generate a draft image.",
    )

    written = write_artifacts(output_dir=tmp_path, run=run)

    assert list(written) == ["plan"]
    assert not (tmp_path / "draft.png").exists()
