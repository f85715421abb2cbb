"""
Read access to project data through the share-token RPCs.

Every method issues exactly one RPC and returns the rows it produced
(an empty list or dict when the RPC returned nothing). Failures are
raised as DataStoreError carrying the RPC name.
"""

from typing import Dict, Any, List, Optional

from supabase import Client

from agents.generation.exceptions import DataStoreError
from setup_logging_optimized import get_logger
from utils.supabase import call_rpc

logger = get_logger(__name__)


class ProjectDataService:
    """Named fetch operations against the project data store."""

    def __init__(self, client: Client):
        self.client = client

    async def _fetch(self, function_name: str, params: Dict[str, Any]) -> Any:
        try:
            return await call_rpc(self.client, function_name, params)
        except Exception as e:
            message = getattr(e, "message", None) or str(e)
            logger.warning(f"[DATA] {function_name} failed: {message}")
            raise DataStoreError(function_name, message, cause=e)

    def _project_params(self, project_id: str, token: str) -> Dict[str, Any]:
        return {"p_project_id": project_id, "p_token": token}

    async def get_project(self, project_id: str, token: str) -> Dict[str, Any]:
        project = await self._fetch("get_project_with_token", self._project_params(project_id, token))
        # Single-row RPCs may come back wrapped in a list
        if isinstance(project, list):
            project = project[0] if project else {}
        return project or {}

    async def get_requirements(self, project_id: str, token: str) -> List[Dict[str, Any]]:
        return await self._fetch("get_requirements_with_token", self._project_params(project_id, token)) or []

    async def get_artifacts(self, project_id: str, token: str) -> List[Dict[str, Any]]:
        return await self._fetch("get_artifacts_with_token", self._project_params(project_id, token)) or []

    async def get_specifications(self, project_id: str, token: str) -> List[Dict[str, Any]]:
        return await self._fetch("get_specifications_with_token", self._project_params(project_id, token)) or []

    async def get_canvas_nodes(self, project_id: str, token: str) -> List[Dict[str, Any]]:
        return await self._fetch("get_canvas_nodes_with_token", self._project_params(project_id, token)) or []

    async def get_canvas_edges(self, project_id: str, token: str) -> List[Dict[str, Any]]:
        return await self._fetch("get_canvas_edges_with_token", self._project_params(project_id, token)) or []

    async def get_repos(self, project_id: str, token: str) -> List[Dict[str, Any]]:
        return await self._fetch("get_repos_with_token", self._project_params(project_id, token)) or []

    async def get_repo_files(self, repo_id: str, token: str) -> List[Dict[str, Any]]:
        return await self._fetch("get_repo_files_with_token", {"p_repo_id": repo_id, "p_token": token}) or []

    async def get_databases(self, project_id: str, token: str) -> List[Dict[str, Any]]:
        return await self._fetch("get_databases_with_token", self._project_params(project_id, token)) or []

    async def get_database_connections(self, project_id: str, token: str) -> List[Dict[str, Any]]:
        return await self._fetch("get_database_connections_with_token", self._project_params(project_id, token)) or []

    async def get_deployments(self, project_id: str, token: str) -> List[Dict[str, Any]]:
        return await self._fetch("get_deployments_with_token", self._project_params(project_id, token)) or []
