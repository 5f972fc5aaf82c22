from pathlib import Path

from fusionimg.domain.models.artifacts import ImageArtifact
from fusionimg.domain.models.workflow_run import WorkflowRun

# Output file stem per WorkflowRun artifact field
ARTIFACT_FILE_STEMS = {
    "quick_draft": "quick-draft",
    "plan": "plan",
    "draft": "draft",
    "analysis": "analysis",
    "final_image": "final",
}


class ArtifactWriteError(Exception):
    """Raised when artifact writing fails."""
    pass


def write_artifacts(*, output_dir: Path, run: WorkflowRun) -> dict[str, Path]:
    """
    Write every artifact present on `run` into `output_dir`.

    Images keep their MIME-derived extension; text artifacts are written as
    Markdown. Missing artifacts (e.g. after a failed run) are skipped.

    Returns:
        Mapping of artifact field name to written path
    """
    written: dict[str, Path] = {}
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        for name, artifact in run.artifacts().items():
            stem = ARTIFACT_FILE_STEMS[name]
            if isinstance(artifact, ImageArtifact):
                written[name] = artifact.save(output_dir / f"{stem}{artifact.extension}")
            else:
                path = output_dir / f"{stem}.md"
                path.write_text(artifact.text, encoding="utf-8")
                written[name] = path
    except OSError as e:
        raise ArtifactWriteError(f"Failed to write artifacts to {output_dir}: {e}") from e

    return written
