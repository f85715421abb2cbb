"""
Streaming API endpoint for the presentation agent.

The agent runs as a background task publishing into a per-request event
stream; this module drains that stream into server-sent event frames. Any
exception that escapes the agent becomes a single ``error`` event, and a
client disconnect cancels the task.
"""

import asyncio
import json
import logging
from typing import Dict, Any, AsyncIterator, Callable, Optional

import sentry_sdk

from agents.generation.presentation_orchestrator import PresentationAgent
from agents.persistence.presentation_persistence import PresentationPersistence
from models.requests import PresentationRequest
from services.agent_stream_bus import EventStream
from services.image_generation_service import ImageGenerationService
from services.project_data_service import ProjectDataService
from utils.json_safe import ensure_json_serializable
from utils.supabase import get_supabase_client

logger = logging.getLogger(__name__)


def _sse(event: str, data: Dict[str, Any]) -> bytes:
    """Frame one server-sent event."""
    try:
        body = json.dumps(ensure_json_serializable(data))
    except (TypeError, ValueError):
        body = json.dumps({"message": "serialization_failed"})
    return f"event: {event}\ndata: {body}\n\n".encode("utf-8")


def build_agent(authorization: Optional[str] = None) -> PresentationAgent:
    """Wire the agent to Supabase, the image function and the configured model."""
    client = get_supabase_client(authorization)
    return PresentationAgent(
        data_store=ProjectDataService(client),
        persistence=PresentationPersistence(client),
        image_service=ImageGenerationService(),
    )


async def stream_presentation(
    request: PresentationRequest,
    authorization: Optional[str] = None,
    agent_factory: Optional[Callable[[Optional[str]], PresentationAgent]] = None
) -> AsyncIterator[bytes]:
    """
    Run one presentation generation and yield its SSE frames in order.

    Args:
        request: The validated trigger body
        authorization: Caller's Authorization header, forwarded to the data store
        agent_factory: Builds the agent; defaults to ``build_agent``

    Yields:
        Encoded ``event: <name>\\ndata: <json>\\n\\n`` frames
    """
    factory = agent_factory or build_agent
    stream = EventStream()

    async def _run() -> None:
        try:
            agent = factory(authorization)
            await agent.run(request, stream)
        except asyncio.CancelledError:
            logger.info(f"[STREAM] Presentation {request.presentationId} cancelled by client disconnect")
            raise
        except Exception as e:
            logger.error(f"Presentation agent error for {request.presentationId}: {e}", exc_info=True)
            sentry_sdk.capture_exception(e)
            await stream.publish("error", {"message": getattr(e, "message", None) or str(e)})
        finally:
            await stream.close()

    with sentry_sdk.start_transaction(op="presentation.generate", name="Generate Presentation"):
        sentry_sdk.set_tag("presentation_id", request.presentationId)
        sentry_sdk.set_tag("project_id", request.projectId)
        sentry_sdk.set_context("presentation_request", {
            "mode": request.mode,
            "target_slides": request.targetSlides,
            "has_initial_prompt": bool(request.initialPrompt),
        })

        task = asyncio.create_task(_run())
        try:
            async for event, data in stream:
                yield _sse(event, data)
        finally:
            if not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
