from abc import ABC, abstractmethod
from typing import Any

from fusionimg.domain.models.artifacts import AnalysisArtifact, ImageArtifact, PlanArtifact


class GenerationGateway(ABC):
    """Abstract interface for remote generation backends (Strategy pattern).

    Every operation is a one-shot async call. Implementations own any retry
    policy; the engine never retries.
    """

    @classmethod
    def get_metadata(cls) -> dict[str, Any]:
        """Return gateway metadata for discovery commands.

        Returns:
            dict with keys: name, description, requires_config, config_keys,
                           text_model, image_model
        """
        return {
            "name": "unknown",
            "description": "No description available",
            "requires_config": False,
            "config_keys": [],
            "text_model": None,
            "image_model": None,
        }

    @abstractmethod
    def validate(self) -> None:
        """Verify the gateway is configured well enough to be invoked.

        Never called by the engine itself; the CLI and callers may use it
        to fail early.

        Raises:
            GatewayConfigurationError: If the gateway is misconfigured
        """
        ...

    @abstractmethod
    async def quick_generate(self, prompt: str, image: ImageArtifact | None = None) -> ImageArtifact:
        """Produce a fast, low-fidelity image straight from the prompt.

        Raises:
            GatewayError: If the call fails or returns no image
        """
        ...

    @abstractmethod
    async def plan(self, prompt: str, image: ImageArtifact | None = None) -> PlanArtifact:
        """Write a detailed generation plan for the prompt.

        Raises:
            GatewayError: If the call fails or returns empty text
        """
        ...

    @abstractmethod
    async def draft(self, plan: PlanArtifact, image: ImageArtifact | None = None) -> ImageArtifact:
        """Render a first image from the plan, editing `image` when given.

        Raises:
            GatewayError: If the call fails or returns no image
        """
        ...

    @abstractmethod
    async def analyze(
        self,
        prompt: str,
        plan: PlanArtifact,
        draft: ImageArtifact,
        image: ImageArtifact | None = None,
    ) -> AnalysisArtifact:
        """Critique the draft against the prompt and plan.

        Raises:
            GatewayError: If the call fails or returns empty text
        """
        ...

    @abstractmethod
    async def refine(
        self,
        analysis: AnalysisArtifact,
        draft: ImageArtifact,
        image: ImageArtifact | None = None,
    ) -> ImageArtifact:
        """Edit the draft into the final image following the analysis.

        Raises:
            GatewayError: If the call fails or returns no image
        """
        ...
