"""
Streaming and checkpointing for a presentation run.

Every blackboard entry goes through ``append_entry``, which records the
entry in memory, streams it, and then persists it, in that order. Full-state
checkpoints overwrite the presentation row and are safe to repeat.
"""

import logging
from typing import Dict, Any, List, Optional

from agents.domain.models import BlackboardEntry, PresentationRun
from agents.generation.progress_manager import PresentationPhase, status_payload
from utils.json_safe import to_json_safe

logger = logging.getLogger(__name__)


class StreamCheckpointer:
    """Single writer of events and persisted progress for one run.

    Args:
        run: The run whose blackboard is appended to
        sink: Any object with ``async publish(event, data)``
        persistence: Any object with ``update_presentation`` and
            ``append_blackboard`` coroutines
    """

    def __init__(self, run: PresentationRun, sink, persistence):
        self.run = run
        self.sink = sink
        self.persistence = persistence

    async def emit(self, event: str, payload: Dict[str, Any]) -> None:
        await self.sink.publish(event, to_json_safe(payload))

    async def status(
        self,
        phase: PresentationPhase,
        message: Optional[str] = None,
        current: Optional[int] = None,
        total: Optional[int] = None
    ) -> None:
        await self.emit("status", status_payload(phase, message, current=current, total=total))

    async def append_entry(
        self,
        source: str,
        category: str,
        content: str,
        data: Optional[Dict[str, Any]] = None
    ) -> BlackboardEntry:
        entry = BlackboardEntry(source=source, category=category, content=content, data=data)
        self.run.blackboard.append(entry)
        payload = entry.to_dict()
        await self.emit("blackboard", payload)
        saved = await self.persistence.append_blackboard(
            self.run.presentation_id, self.run.share_token, to_json_safe(payload)
        )
        if not saved:
            logger.warning(f"[CHECKPOINT] blackboard entry {entry.id} not persisted for {self.run.presentation_id}")
        return entry

    async def checkpoint(
        self,
        status: Optional[str] = None,
        slides: Optional[List[Dict[str, Any]]] = None,
        blackboard: Optional[List[Dict[str, Any]]] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> bool:
        """Overwrite the given fields of the presentation row. Never raises."""
        saved = await self.persistence.update_presentation(
            self.run.presentation_id,
            self.run.share_token,
            status=getattr(status, 'value', status),
            slides=to_json_safe(slides) if slides is not None else None,
            blackboard=to_json_safe(blackboard) if blackboard is not None else None,
            metadata=to_json_safe(metadata) if metadata is not None else None,
        )
        if not saved:
            logger.error(f"[CHECKPOINT] checkpoint (status={status}) failed for {self.run.presentation_id}")
        return saved
