"""
Domain models representing core business concepts.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional
from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from models.presentation import SlideOutline, GeneratedSlide


class EntryCategory(str, Enum):
    """Kinds of blackboard notes."""
    OBSERVATION = "observation"
    INSIGHT = "insight"
    QUESTION = "question"
    DECISION = "decision"
    ESTIMATE = "estimate"
    ANALYSIS = "analysis"
    NARRATIVE = "narrative"


class PresentationStatus(str, Enum):
    """Status markers written to the presentation row."""
    GENERATING = "generating"
    GENERATING_SLIDES = "generating_slides"
    COMPLETED = "completed"


@dataclass(frozen=True)
class BlackboardEntry:
    """An immutable, timestamped analysis note."""
    source: str
    category: str
    content: str
    data: Optional[Dict[str, Any]] = None
    id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def __post_init__(self):
        # Accept enum members but store the plain string value
        category = EntryCategory(self.category).value
        object.__setattr__(self, 'category', category)

    def to_dict(self) -> Dict[str, Any]:
        entry = {
            'id': self.id,
            'timestamp': self.timestamp,
            'source': self.source,
            'category': self.category,
            'content': self.content,
        }
        if self.data is not None:
            entry['data'] = self.data
        return entry


@dataclass
class CollectedData:
    """Raw project data gathered by the collector, one field per sub-resource."""
    settings: Dict[str, Any] = field(default_factory=dict)
    requirements: List[Dict[str, Any]] = field(default_factory=list)
    artifacts: List[Dict[str, Any]] = field(default_factory=list)
    specifications: List[Dict[str, Any]] = field(default_factory=list)
    canvas: Dict[str, List[Dict[str, Any]]] = field(default_factory=lambda: {'nodes': [], 'edges': []})
    repo_structure: Dict[str, List[Dict[str, Any]]] = field(default_factory=lambda: {'repos': [], 'files': []})
    databases: List[Dict[str, Any]] = field(default_factory=list)
    connections: List[Dict[str, Any]] = field(default_factory=list)
    deployments: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def project_name(self) -> str:
        return str((self.settings or {}).get('name') or "Project")

    @property
    def project_description(self) -> str:
        return str((self.settings or {}).get('description') or "")

    @property
    def nodes(self) -> List[Dict[str, Any]]:
        return self.canvas.get('nodes') or []

    @property
    def edges(self) -> List[Dict[str, Any]]:
        return self.canvas.get('edges') or []

    @property
    def files(self) -> List[Dict[str, Any]]:
        return self.repo_structure.get('files') or []

    def counts(self) -> Dict[str, int]:
        """Item counts per category, keyed the way the metadata reports them."""
        return {
            'requirements': len(self.requirements),
            'artifacts': len(self.artifacts),
            'canvasNodes': len(self.nodes),
            'specifications': len(self.specifications),
            'codeFiles': len(self.files),
            'databases': len(self.databases),
            'deployments': len(self.deployments),
        }


@dataclass
class ToolResult:
    """Outcome of one collector read."""
    tool: str
    success: bool
    data: Any = None
    error: Optional[str] = None
    blackboard_entries: List[BlackboardEntry] = field(default_factory=list)


class OutcomeKind(str, Enum):
    OK = "ok"
    FALLBACK = "fallback"
    FAILED = "failed"


@dataclass
class StepOutcome:
    """Result of a model-backed step.

    OK carries genuine model output, FALLBACK a deterministic substitute and
    FAILED only the error; callers decide what to substitute for FAILED.
    """
    kind: OutcomeKind
    value: Any = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, value: Any) -> 'StepOutcome':
        return cls(kind=OutcomeKind.OK, value=value)

    @classmethod
    def fallback(cls, value: Any, error: Optional[str] = None) -> 'StepOutcome':
        return cls(kind=OutcomeKind.FALLBACK, value=value, error=error)

    @classmethod
    def failed(cls, error: str) -> 'StepOutcome':
        return cls(kind=OutcomeKind.FAILED, error=error)

    @property
    def is_ok(self) -> bool:
        return self.kind == OutcomeKind.OK


@dataclass
class PresentationRun:
    """Run-scoped context passed explicitly into every pipeline step."""
    project_id: str
    presentation_id: str
    share_token: str
    mode: str = "concise"
    target_slides: int = 10
    initial_prompt: Optional[str] = None
    blackboard: List[BlackboardEntry] = field(default_factory=list)
    collected: CollectedData = field(default_factory=CollectedData)
    tool_results: List[ToolResult] = field(default_factory=list)
    outline: List[SlideOutline] = field(default_factory=list)
    slides: List[GeneratedSlide] = field(default_factory=list)
    completion_score: int = 0

    @classmethod
    def from_request(cls, request) -> 'PresentationRun':
        return cls(
            project_id=request.projectId,
            presentation_id=request.presentationId,
            share_token=request.shareToken,
            mode=request.mode,
            target_slides=request.targetSlides,
            initial_prompt=request.initialPrompt,
        )

    def entries_by_category(self, category: str, limit: Optional[int] = None) -> List[BlackboardEntry]:
        matches = [e for e in self.blackboard if e.category == category]
        return matches[:limit] if limit is not None else matches

    def blackboard_payload(self) -> List[Dict[str, Any]]:
        return [e.to_dict() for e in self.blackboard]

    def slides_payload(self) -> List[Dict[str, Any]]:
        return [s.to_payload() for s in self.slides]
