"""
Presentation agent orchestration.

One run walks strictly sequentially through collection, synthesis, outline
planning, incremental slide generation, image enrichment and the final save,
streaming every step through the run's event sink.
"""

from datetime import datetime, timezone
from typing import Dict, Any, Optional

import sentry_sdk

from agents.config import PRESENTATION_MODEL, get_gemini_api_key
from agents.domain.models import PresentationRun, PresentationStatus, StepOutcome
from agents.generation.data_collector import ProjectDataCollector
from agents.generation.exceptions import ConfigurationError
from agents.generation.image_enricher import ImageEnricher
from agents.generation.insight_synthesizer import InsightSynthesizer, build_data_stats
from agents.generation.narrative_planner import NarrativePlanner, fallback_outline
from agents.generation.progress_manager import PresentationPhase
from agents.generation.slide_generator import SlideGenerator
from agents.generation.stream_checkpointer import StreamCheckpointer
from models.requests import PresentationRequest
from setup_logging_optimized import get_logger

logger = get_logger(__name__)


class PresentationAgent:
    """
    Runs the presentation pipeline for one request at a time.

    Collaborators are injected so runs can share clients without sharing
    any run state; everything mutable lives on the PresentationRun.

    Args:
        data_store: Project read operations (ProjectDataService)
        persistence: Presentation writes (PresentationPersistence)
        image_service: Image generation (ImageGenerationService)
        llm: Object with ``async generate(...)``; built from the configured
            model when omitted
        api_key: LLM key; read from the environment when omitted
    """

    def __init__(self, data_store, persistence, image_service, llm=None, api_key: Optional[str] = None):
        self.data_store = data_store
        self.persistence = persistence
        self.image_service = image_service
        self.llm = llm
        self.api_key = api_key

    def _resolve_llm(self, api_key: str):
        if self.llm is not None:
            return self.llm
        # Imported here so the provider SDKs load only when a real model is used
        from agents.ai.clients import ModelClient
        return ModelClient(PRESENTATION_MODEL, api_key=api_key)

    async def run(self, request: PresentationRequest, sink) -> PresentationRun:
        run = PresentationRun.from_request(request)
        checkpointer = StreamCheckpointer(run, sink, self.persistence)

        logger.info(
            f"[AGENT] Starting presentation {run.presentation_id} for project {run.project_id} "
            f"(mode={run.mode}, targetSlides={run.target_slides})"
        )
        await checkpointer.status(PresentationPhase.STARTING)

        api_key = self.api_key or get_gemini_api_key()
        if not api_key:
            raise ConfigurationError("GEMINI_API_KEY is not configured")
        llm = self._resolve_llm(api_key)
        model_name = getattr(llm, "model_name", PRESENTATION_MODEL)

        await checkpointer.checkpoint(status=PresentationStatus.GENERATING.value)

        with sentry_sdk.start_span(op="presentation.collect", name="Collect project data"):
            await ProjectDataCollector(self.data_store, checkpointer).collect(run)

        with sentry_sdk.start_span(op="presentation.synthesize", name="Synthesize insights"):
            await InsightSynthesizer(checkpointer).synthesize(run)

        await checkpointer.status(PresentationPhase.PLANNING)
        with sentry_sdk.start_span(op="presentation.plan", name="Plan outline"):
            outcome = await NarrativePlanner(llm).plan(run)
        if not outcome.is_ok:
            logger.warning(f"[AGENT] Using fallback outline for {run.presentation_id}: {outcome.error}")
            outcome = StepOutcome.fallback(fallback_outline(run), error=outcome.error)
        run.outline = outcome.value

        with sentry_sdk.start_span(op="presentation.slides", name="Generate slides"):
            await SlideGenerator(llm, checkpointer).generate_all(run)

        with sentry_sdk.start_span(op="presentation.images", name="Generate images"):
            await ImageEnricher(self.image_service, checkpointer).enrich(run)

        await checkpointer.status(PresentationPhase.SAVING)
        metadata = self.build_metadata(run, model_name)
        await checkpointer.checkpoint(
            status=PresentationStatus.COMPLETED.value,
            slides=run.slides_payload(),
            blackboard=run.blackboard_payload(),
            metadata=metadata,
        )

        await checkpointer.emit("complete", {
            "presentationId": run.presentation_id,
            "slideCount": len(run.slides),
            "blackboardCount": len(run.blackboard),
            "model": model_name,
        })
        logger.info(
            f"[AGENT] Completed {run.presentation_id}: {len(run.slides)} slides, "
            f"{len(run.blackboard)} blackboard entries"
        )
        return run

    @staticmethod
    def build_metadata(run: PresentationRun, model_name: str) -> Dict[str, Any]:
        return {
            "generatedAt": datetime.now(timezone.utc).isoformat(),
            "model": model_name,
            "mode": run.mode,
            "targetSlides": run.target_slides,
            "actualSlides": len(run.slides),
            "blackboardEntries": len(run.blackboard),
            "dataStats": build_data_stats(run.collected),
            "completionEstimate": run.completion_score,
        }
