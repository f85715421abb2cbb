"""Shared in-memory collaborators for the presentation agent tests."""

import json
from typing import Any, Dict, List, Optional

import pytest

from agents.domain.models import PresentationRun
from agents.generation.exceptions import DataStoreError, ImageGenerationError
from agents.generation.stream_checkpointer import StreamCheckpointer


class RecordingSink:
    """Event sink keeping every published event in order."""

    def __init__(self) -> None:
        self.events: List[tuple] = []

    async def publish(self, event: str, data: Dict[str, Any]) -> None:
        self.events.append((event, data))

    def names(self) -> List[str]:
        return [name for name, _ in self.events]

    def of(self, name: str) -> List[Dict[str, Any]]:
        return [data for event, data in self.events if event == name]


class FakePersistence:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.updates: List[Dict[str, Any]] = []
        self.appended: List[Dict[str, Any]] = []
        # Shared log so tests can check ordering against the sink
        self.log: List[tuple] = []

    async def update_presentation(self, presentation_id, token, status=None, slides=None,
                                  blackboard=None, metadata=None) -> bool:
        self.updates.append({
            "presentation_id": presentation_id,
            "token": token,
            "status": status,
            "slides": slides,
            "blackboard": blackboard,
            "metadata": metadata,
        })
        self.log.append(("update", status))
        return not self.fail

    async def append_blackboard(self, presentation_id, token, entry) -> bool:
        self.appended.append(entry)
        self.log.append(("append", entry["id"]))
        return not self.fail


class FakeDataStore:
    """Project data store answering from dicts; names in ``failing`` raise DataStoreError."""

    def __init__(self, project: Optional[Dict[str, Any]] = None, failing: tuple = (), **rows) -> None:
        self.project = project if project is not None else {"name": "Atlas", "description": "", "created_at": None}
        self.rows = rows
        self.failing = set(failing)
        self.calls: List[str] = []

    async def _answer(self, operation: str, default: Any) -> Any:
        self.calls.append(operation)
        if operation in self.failing:
            raise DataStoreError(operation, f"{operation} unavailable")
        return self.rows.get(operation, default)

    async def get_project(self, project_id, token):
        self.calls.append("get_project")
        if "get_project" in self.failing:
            raise DataStoreError("get_project", "project unavailable")
        return self.project

    async def get_requirements(self, project_id, token):
        return await self._answer("get_requirements", [])

    async def get_artifacts(self, project_id, token):
        return await self._answer("get_artifacts", [])

    async def get_specifications(self, project_id, token):
        return await self._answer("get_specifications", [])

    async def get_canvas_nodes(self, project_id, token):
        return await self._answer("get_canvas_nodes", [])

    async def get_canvas_edges(self, project_id, token):
        return await self._answer("get_canvas_edges", [])

    async def get_repos(self, project_id, token):
        return await self._answer("get_repos", [])

    async def get_repo_files(self, repo_id, token):
        files = self.rows.get("get_repo_files", {})
        self.calls.append("get_repo_files")
        return files.get(repo_id, [])

    async def get_databases(self, project_id, token):
        return await self._answer("get_databases", [])

    async def get_database_connections(self, project_id, token):
        return await self._answer("get_database_connections", [])

    async def get_deployments(self, project_id, token):
        return await self._answer("get_deployments", [])


class FakeLLM:
    """Scripted model: each call pops the next response; Exceptions are raised."""

    model_name = "fake-model"

    def __init__(self, responses: Optional[List[Any]] = None, default: Any = None) -> None:
        self.responses = list(responses or [])
        self.default = default
        self.calls: List[Dict[str, Any]] = []

    async def generate(self, prompt, system_instruction=None, max_tokens=2000,
                       temperature=0.7, json_mode=False) -> str:
        self.calls.append({
            "prompt": prompt,
            "system_instruction": system_instruction,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "json_mode": json_mode,
        })
        response = self.responses.pop(0) if self.responses else self.default
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(prompt)
        if response is None:
            raise RuntimeError("model unavailable")
        return response if isinstance(response, str) else json.dumps(response)


class FakeImageService:
    def __init__(self, fail_prompts: tuple = ()) -> None:
        self.fail_prompts = set(fail_prompts)
        self.prompts: List[str] = []

    async def generate_image(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if prompt in self.fail_prompts:
            raise ImageGenerationError("image function returned HTTP 500")
        return f"https://images.example.com/{len(self.prompts)}.png"


def outline_items(count: int, layout: str = "title-content") -> List[Dict[str, Any]]:
    return [
        {"order": i + 1, "layoutId": layout, "title": f"Topic {i + 1}", "purpose": f"Purpose {i + 1}",
         "keyContent": [f"Point {i + 1}a", f"Point {i + 1}b"]}
        for i in range(count)
    ]


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def persistence():
    return FakePersistence()


@pytest.fixture
def run():
    return PresentationRun(project_id="proj-1", presentation_id="pres-1", share_token="tok", target_slides=4)


@pytest.fixture
def checkpointer(run, sink, persistence):
    return StreamCheckpointer(run, sink, persistence)
