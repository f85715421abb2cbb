"""
Presentation persistence layer - writes run progress back to the presentation row.
"""
import asyncio
import logging
from typing import Dict, Any, List, Optional

from supabase import Client

from utils.supabase import call_rpc

logger = logging.getLogger(__name__)


class PresentationPersistence:
    """Writes status, slides, blackboard and metadata through the share-token RPCs.

    A new instance is built per request because the client carries the
    caller's headers, so the lock map lives on the class: every write to one
    presentation from this process is serialized, whichever request issued
    it. Writes from other processes are not coordinated and the last one
    wins. Failures are logged and reported as False; a run keeps streaming
    even when the store is unavailable.
    """

    _locks: Dict[str, asyncio.Lock] = {}

    def __init__(self, client: Client):
        self.client = client

    def get_lock(self, presentation_id: str) -> asyncio.Lock:
        """Get or create a lock for a specific presentation."""
        if presentation_id not in self._locks:
            self._locks[presentation_id] = asyncio.Lock()
        return self._locks[presentation_id]

    async def update_presentation(
        self,
        presentation_id: str,
        token: str,
        status: Optional[str] = None,
        slides: Optional[List[Dict[str, Any]]] = None,
        blackboard: Optional[List[Dict[str, Any]]] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> bool:
        """Overwrite the given fields; None leaves a field untouched."""
        params = {
            "p_presentation_id": presentation_id,
            "p_token": token,
            "p_status": status,
            "p_slides": slides,
            "p_blackboard": blackboard,
            "p_metadata": metadata,
        }
        async with self.get_lock(presentation_id):
            try:
                await call_rpc(self.client, "update_presentation_with_token", params)
                logger.debug(
                    f"[PERSIST] {presentation_id} status={status} "
                    f"slides={len(slides) if slides is not None else '-'} "
                    f"blackboard={len(blackboard) if blackboard is not None else '-'}"
                )
                return True
            except Exception as e:
                logger.error(f"[PERSIST] update_presentation failed for {presentation_id}: {e}")
                return False

    async def append_blackboard(self, presentation_id: str, token: str, entry: Dict[str, Any]) -> bool:
        """Append one blackboard entry to the stored list."""
        params = {
            "p_presentation_id": presentation_id,
            "p_token": token,
            "p_entry": entry,
        }
        async with self.get_lock(presentation_id):
            try:
                await call_rpc(self.client, "append_presentation_blackboard_with_token", params)
                return True
            except Exception as e:
                logger.warning(f"[PERSIST] append_blackboard failed for {presentation_id}: {e}")
                return False
