"""
Exception hierarchy for the presentation generation pipeline.

Recoverable failures (a single read, the outline call, one slide, one image)
are caught by the step that owns them; only the exceptions that escape those
steps reach the stream handler.
"""

from typing import Optional, Dict, Any


class GenerationError(Exception):
    """Base exception for all generation errors"""

    def __init__(
        self,
        message: str,
        cause: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.context = context or {}

    def __str__(self):
        parts = [super().__str__()]
        if self.cause:
            parts.append(f" (caused by: {type(self.cause).__name__}: {str(self.cause)})")
        if self.context:
            parts.append(f" Context: {self.context}")
        return "".join(parts)


class ConfigurationError(GenerationError):
    """A required credential or setting is missing"""
    pass


# === AI-related exceptions ===

class AIGenerationError(GenerationError):
    """AI model failed to generate content"""
    pass


class AITimeoutError(AIGenerationError):
    """AI generation timed out"""
    pass


class AIRateLimitError(AIGenerationError):
    """Provider rejected the call with a rate limit"""
    pass


# === Data store exceptions ===

class DataStoreError(GenerationError):
    """A project data store call failed"""

    def __init__(self, operation: str, message: str, **kwargs):
        super().__init__(message, **kwargs)
        self.operation = operation
        self.context.setdefault('operation', operation)


# === Orchestration exceptions ===

class OutlineGenerationError(GenerationError):
    """Outline request failed or returned something other than a list"""
    pass


class SlideGenerationError(GenerationError):
    """Single slide generation failed"""

    def __init__(self, slide_index: int, slide_title: str, message: str, **kwargs):
        super().__init__(message, **kwargs)
        self.slide_index = slide_index
        self.slide_title = slide_title
        self.context.update({
            'slide_index': slide_index,
            'slide_title': slide_title
        })


class ImageGenerationError(GenerationError):
    """Image generation collaborator failed"""
    pass
