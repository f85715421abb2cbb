"""
Domain models and value objects.
"""

from agents.domain.models import (
    EntryCategory,
    PresentationStatus,
    BlackboardEntry,
    CollectedData,
    ToolResult,
    OutcomeKind,
    StepOutcome,
    PresentationRun
)

__all__ = [
    'EntryCategory',
    'PresentationStatus',
    'BlackboardEntry',
    'CollectedData',
    'ToolResult',
    'OutcomeKind',
    'StepOutcome',
    'PresentationRun'
]
