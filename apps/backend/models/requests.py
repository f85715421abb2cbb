from pydantic import BaseModel, Field
from typing import Literal, Optional


class PresentationRequest(BaseModel):
    """Body of the presentation-agent trigger"""
    projectId: str
    presentationId: str
    shareToken: str
    mode: Literal["concise", "detailed"] = "concise"
    targetSlides: int = Field(default=10, ge=1, description="Exact number of slides to produce (>= 1)")
    initialPrompt: Optional[str] = Field(default=None, description="Optional user focus for the outline")
