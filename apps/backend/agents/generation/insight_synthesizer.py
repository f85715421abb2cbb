"""
Insight synthesis: a completion estimate and an executive summary derived
from what the collector gathered.
"""

import logging
from typing import Dict

from agents.domain.models import CollectedData, EntryCategory, PresentationRun, PresentationStatus
from agents.generation.progress_manager import PresentationPhase
from agents.generation.stream_checkpointer import StreamCheckpointer

logger = logging.getLogger(__name__)

# Points granted when a category has at least one item
COMPLETION_WEIGHTS = {
    "requirements": 15,
    "architecture": 20,
    "code": 25,
    "specs": 15,
    "artifacts": 10,
    "databases": 8,
    "deployments": 7,
}


def completion_breakdown(collected: CollectedData) -> Dict[str, int]:
    return {
        "requirements": len(collected.requirements),
        "architecture": len(collected.nodes),
        "code": len(collected.files),
        "specs": len(collected.specifications),
        "artifacts": len(collected.artifacts),
        "databases": len(collected.databases),
        "deployments": len(collected.deployments),
    }


def compute_completion_score(collected: CollectedData) -> int:
    breakdown = completion_breakdown(collected)
    score = sum(weight for key, weight in COMPLETION_WEIGHTS.items() if breakdown[key] > 0)
    return min(100, score)


def completion_band(score: int) -> str:
    if score < 30:
        return "Early stage - focus on vision and roadmap."
    if score < 60:
        return "Mid-development - balance current state with future plans."
    return "Advanced - emphasize achievements and remaining work."


def build_data_stats(collected: CollectedData) -> Dict[str, int]:
    return collected.counts()


class InsightSynthesizer:
    def __init__(self, checkpointer: StreamCheckpointer):
        self.checkpointer = checkpointer

    async def synthesize(self, run: PresentationRun) -> int:
        """Append the estimate and executive summary, then checkpoint the blackboard.

        Returns the completion score, which is also stored on the run.
        """
        await self.checkpointer.status(PresentationPhase.SYNTHESIS)

        collected = run.collected
        score = compute_completion_score(collected)
        run.completion_score = score
        breakdown = completion_breakdown(collected)

        await self.checkpointer.append_entry(
            "synthesis",
            EntryCategory.ESTIMATE.value,
            f"Project maturity assessment: {score}% complete. {completion_band(score)}",
            {"completionScore": score, "breakdown": breakdown},
        )
        await self.checkpointer.append_entry(
            "synthesis",
            EntryCategory.NARRATIVE.value,
            f"Executive Summary (BLUF): {collected.project_name}. Current status: {score}% complete with "
            f"{breakdown['requirements']} requirements defined, {breakdown['architecture']} architectural "
            f"components designed, and {breakdown['code']} code files implemented.",
            {"type": "bluf"},
        )

        logger.info(f"[SYNTHESIS] {run.presentation_id}: completion {score}%, {len(run.blackboard)} entries")

        await self.checkpointer.checkpoint(
            status=PresentationStatus.GENERATING_SLIDES.value,
            blackboard=run.blackboard_payload(),
        )
        return score
