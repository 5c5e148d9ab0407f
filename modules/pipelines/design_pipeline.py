"""Refine-then-generate orchestration for a single tattoo design."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Callable, Optional

from modules.design.errors import EmptyPromptError
from modules.design.models import DesignRequest, GeneratedDesign
from modules.optimization.prompt_refiner import PromptRefiner
from modules.pipelines.image_generation import GenerationOutcome, ImageGenerationService
from modules.services.history_service import GenerationHistoryService

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class DesignOrchestrator:
    """Run refinement, then generation, for one request.

    Holds no lock: callers must not overlap submissions. The Gradio app
    enforces this with a concurrency limit of one on the generate event.
    """

    def __init__(self, refiner: PromptRefiner, generator: ImageGenerationService) -> None:
        self.refiner = refiner
        self.generator = generator
        self.last_outcome: Optional[GenerationOutcome] = None

    def refine(self, request: DesignRequest) -> str:
        return self.refiner.refine(request)

    def generate(self, refined_prompt: str, reference_image: Optional[str] = None) -> str:
        """Return an image data-URI.

        Raises:
            GenerationError: classified from the secondary tier's failure
                when both tiers fail.
        """
        outcome = self.generator.generate(refined_prompt, reference_image)
        self.last_outcome = outcome
        return outcome.unwrap()


class DesignPipeline:
    """One submission: validate, refine, generate, record in history."""

    def __init__(
        self,
        orchestrator: DesignOrchestrator,
        history: GenerationHistoryService,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self.orchestrator = orchestrator
        self.history = history
        self._id_factory = id_factory
        self._clock = clock

    def submit(self, request: DesignRequest) -> GeneratedDesign:
        """Produce a design and prepend it to history.

        Raises:
            EmptyPromptError: before any network call when the concept is blank.
            GenerationError: when both image tiers fail; history is untouched.
        """
        if not request.prompt.strip():
            raise EmptyPromptError("Please describe your tattoo concept first.")

        refined = self.orchestrator.refine(request)
        image_url = self.orchestrator.generate(refined, request.reference_image)

        design = GeneratedDesign(
            id=self._id_factory(),
            image_url=image_url,
            original_request=request,
            refined_prompt=refined,
            timestamp=self._clock(),
        )
        self.history.append(design)
        logger.info("Generated design %s (%s, %s)", design.id, request.style.name, request.view_mode.name)
        return design
