"""DesignPipeline end-to-end tests with a fake Gemini client."""

from __future__ import annotations

import re

import pytest

from conftest import MemoryStorage, image_response, text_response
from modules.design.errors import EmptyPromptError, ErrorKind, GenerationError
from modules.design.models import BodyPart, ColorMode, DesignRequest, TattooStyle, ViewMode
from modules.optimization.prompt_refiner import PromptRefiner
from modules.pipelines.design_pipeline import DesignOrchestrator, DesignPipeline
from modules.pipelines.image_generation import ImageGenerationService
from modules.services.history_service import GenerationHistoryService

WOLF = DesignRequest(
    prompt="a wolf howling at the moon",
    style=TattooStyle.TRADITIONAL,
    body_part=BodyPart.ARM,
    color=ColorMode.MONOCHROME,
    view_mode=ViewMode.FLASH_SHEET,
)


def build_pipeline(config, make_loader, outcomes, max_items=5):
    loader, client = make_loader(outcomes)
    orchestrator = DesignOrchestrator(PromptRefiner(config, client_loader=loader), ImageGenerationService(config, loader))
    history = GenerationHistoryService(MemoryStorage(), max_items=max_items)
    ids = iter(f"design-{n}" for n in range(100))
    pipeline = DesignPipeline(orchestrator, history, id_factory=lambda: next(ids), clock=lambda: 1234)
    return pipeline, history, client


def test_wolf_example_lands_first_in_history(config, make_loader):
    pipeline, history, client = build_pipeline(
        config,
        make_loader,
        {
            config.text_model: text_response("American traditional tattoo flash of a wolf howling at a full moon"),
            config.primary_image_model: image_response(),
        },
    )
    older = pipeline.submit(WOLF.with_prompt("an older design"))

    design = pipeline.submit(WOLF)

    assert design.refined_prompt.startswith("American traditional")
    assert re.match(r"^data:image/png;base64,", design.image_url)
    assert design.original_request == WOLF
    assert design.timestamp == 1234
    assert history.entries() == [design, older]
    assert client.models.models_called()[-2:] == [config.text_model, config.primary_image_model]


@pytest.mark.parametrize("prompt", ["", "   ", "\n\t"])
def test_blank_prompt_rejected_before_network(config, make_loader, prompt):
    pipeline, history, client = build_pipeline(config, make_loader, {})

    with pytest.raises(EmptyPromptError):
        pipeline.submit(WOLF.with_prompt(prompt))

    assert client.models.calls == []
    assert len(history) == 0


def test_refinement_failure_does_not_block_generation(config, make_loader):
    pipeline, _, client = build_pipeline(
        config,
        make_loader,
        {
            config.text_model: RuntimeError("500 INTERNAL"),
            config.primary_image_model: image_response(),
        },
    )

    design = pipeline.submit(WOLF)

    fallback = pipeline.orchestrator.refiner.fallback_prompt(WOLF)
    assert design.refined_prompt == fallback
    assert client.models.calls[1]["contents"][-1].text == fallback


def test_generation_failure_leaves_history_untouched(config, make_loader):
    pipeline, history, _ = build_pipeline(
        config,
        make_loader,
        {
            config.text_model: text_response("wolf"),
            config.primary_image_model: RuntimeError("404 NOT_FOUND. Requested entity was not found."),
            config.secondary_image_model: RuntimeError("404 NOT_FOUND. Requested entity was not found."),
        },
    )

    with pytest.raises(GenerationError) as excinfo:
        pipeline.submit(WOLF)

    assert excinfo.value.kind is ErrorKind.KEY_RESET_REQUIRED
    assert len(history) == 0
    assert len(pipeline.orchestrator.last_outcome.attempts) == 2


def test_secondary_tier_result_is_recorded(config, make_loader):
    pipeline, history, _ = build_pipeline(
        config,
        make_loader,
        {
            config.text_model: text_response("wolf"),
            config.primary_image_model: RuntimeError("503 UNAVAILABLE"),
            config.secondary_image_model: image_response(),
        },
    )

    design = pipeline.submit(WOLF)

    attempts = pipeline.orchestrator.last_outcome.attempts
    assert [attempt.tier.name for attempt in attempts] == ["primary", "secondary"]
    assert history.entries() == [design]


def test_capped_pipeline_history(config, make_loader):
    pipeline, history, _ = build_pipeline(
        config,
        make_loader,
        {config.text_model: text_response("wolf"), config.primary_image_model: image_response()},
        max_items=3,
    )

    designs = [pipeline.submit(WOLF.with_prompt(f"wolf {n}")) for n in range(5)]

    assert [design.id for design in history.entries()] == [d.id for d in reversed(designs[-3:])]
