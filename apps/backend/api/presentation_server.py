import os
import sys
import logging
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, Header
from fastapi.responses import Response, StreamingResponse
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv
import uvicorn

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

# Set up logging first
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from setup_logging_optimized import setup_logging

setup_logging()

# Initialize Sentry after loading env vars but before creating app
load_dotenv(override=True)

sentry_logging = LoggingIntegration(
    level=logging.INFO,        # Capture info and above as breadcrumbs
    event_level=logging.ERROR  # Send errors as events
)

sentry_sdk.init(
    dsn=os.getenv("SENTRY_DSN"),
    integrations=[
        FastApiIntegration(transaction_style='endpoint'),
        sentry_logging,
    ],
    traces_sample_rate=0.1,
    environment=os.getenv("ENV", "development"),
    release=os.getenv("RENDER_GIT_COMMIT", "unknown"),
    send_default_pii=False,
)

from models.requests import PresentationRequest
from api.requests import api_presentation_stream

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}

app = FastAPI(title="Presentation Agent API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)


@app.get("/")
def read_root():
    return {"message": "Presentation Agent API is running", "timestamp": datetime.now().isoformat()}


@app.options("/api/presentation-agent")
async def presentation_agent_preflight():
    return Response(status_code=200, headers=CORS_HEADERS)


@app.post("/api/presentation-agent")
async def presentation_agent_endpoint(
    request: PresentationRequest,
    authorization: Optional[str] = Header(None)
):
    """Stream a presentation generation run as server-sent events."""
    logger.info(
        f"Starting presentation generation: project={request.projectId} "
        f"presentation={request.presentationId} mode={request.mode} targetSlides={request.targetSlides}"
    )
    generator = api_presentation_stream.stream_presentation(request, authorization)
    return StreamingResponse(
        generator,
        media_type="text/event-stream",
        headers={**SSE_HEADERS, **CORS_HEADERS},
    )


if __name__ == "__main__":
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "9090"))
    logger.info(f"Starting Presentation Agent API on {host}:{port}")
    uvicorn.run("api.presentation_server:app", host=host, port=port, reload=True, workers=1)
