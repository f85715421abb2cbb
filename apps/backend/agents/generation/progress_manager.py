"""
Progress manager for standardized presentation generation events.

This module defines the phase names the client tracks and builds the
payloads of ``status`` events.
"""

from typing import Dict, Any, Optional
from enum import Enum


class PresentationPhase(Enum):
    """Standardized phase names for presentation generation."""
    STARTING = "starting"
    READ_SETTINGS = "read_settings"
    READ_REQUIREMENTS = "read_requirements"
    READ_ARTIFACTS = "read_artifacts"
    READ_SPECIFICATIONS = "read_specifications"
    READ_CANVAS = "read_canvas"
    READ_REPO = "read_repo"
    READ_DATABASES = "read_databases"
    READ_CONNECTIONS = "read_connections"
    READ_DEPLOYMENTS = "read_deployments"
    SYNTHESIS = "synthesis"
    PLANNING = "planning"
    GENERATING_SLIDES = "generating_slides"
    GENERATING_IMAGES = "generating_images"
    SAVING = "saving"


PHASE_MESSAGES = {
    PresentationPhase.STARTING: "Initializing presentation agent...",
    PresentationPhase.READ_SETTINGS: "Analyzing project settings...",
    PresentationPhase.READ_REQUIREMENTS: "Analyzing requirements in depth...",
    PresentationPhase.READ_ARTIFACTS: "Scanning project artifacts...",
    PresentationPhase.READ_SPECIFICATIONS: "Reviewing generated specifications...",
    PresentationPhase.READ_CANVAS: "Analyzing architecture canvas...",
    PresentationPhase.READ_REPO: "Scanning code repositories...",
    PresentationPhase.READ_DATABASES: "Checking database configurations...",
    PresentationPhase.READ_CONNECTIONS: "Reviewing external connections...",
    PresentationPhase.READ_DEPLOYMENTS: "Checking deployment status...",
    PresentationPhase.SYNTHESIS: "Synthesizing insights...",
    PresentationPhase.PLANNING: "Planning slide structure...",
    PresentationPhase.GENERATING_SLIDES: "Generating slides...",
    PresentationPhase.GENERATING_IMAGES: "Generating images...",
    PresentationPhase.SAVING: "Saving presentation...",
}


def get_phase_message(phase: PresentationPhase) -> str:
    return PHASE_MESSAGES.get(phase, phase.value.replace("_", " ").capitalize())


def status_payload(
    phase: PresentationPhase,
    message: Optional[str] = None,
    current: Optional[int] = None,
    total: Optional[int] = None
) -> Dict[str, Any]:
    """
    Build a status event payload.

    ``current`` and ``total`` are only included when given, matching the
    slide-progress events the client renders as a counter.
    """
    payload: Dict[str, Any] = {
        "phase": phase.value,
        "message": message or get_phase_message(phase),
    }
    if total is not None:
        payload["total"] = total
    if current is not None:
        payload["current"] = current
    return payload
