from pydantic import BaseModel, Field
from typing import Dict, Any, List, Optional
from uuid import uuid4


class SlideOutline(BaseModel):
    """
    A planned, not yet realized slide.

    Attributes:
        order: 1-based position in the final deck
        layoutId: Identifier of a declared content layout
        title: Slide title
        purpose: Narrative role of the slide
        keyContent: Short topic strings the slide must cover
        imagePrompt: Optional prompt for the image enrichment pass
    """
    order: int
    layoutId: str = "title-content"
    title: str
    purpose: str = ""
    keyContent: List[str] = Field(default_factory=list)
    imagePrompt: Optional[str] = None

    @classmethod
    def coerce(cls, raw: Any, index: int) -> "SlideOutline":
        """Build an outline from an untrusted model item at position ``index`` (0-based)."""
        if not isinstance(raw, dict):
            raw = {"title": str(raw)} if isinstance(raw, str) and raw.strip() else {}

        key_content = raw.get("keyContent")
        if isinstance(key_content, str):
            key_content = [key_content]
        elif not isinstance(key_content, list):
            key_content = []

        image_prompt = raw.get("imagePrompt")

        return cls(
            order=index + 1,
            layoutId=str(raw.get("layoutId") or "title-content"),
            title=str(raw.get("title") or f"Slide {index + 1}"),
            purpose=str(raw.get("purpose") or ""),
            keyContent=[str(item) for item in key_content if item is not None and str(item).strip()],
            imagePrompt=str(image_prompt) if image_prompt else None,
        )


class SlideContent(BaseModel):
    """One filled region of a slide layout"""
    regionId: str
    type: str
    data: Any = None


class GeneratedSlide(BaseModel):
    """Realized content for one outline item"""
    id: str = Field(default_factory=lambda: str(uuid4()))
    order: int
    layoutId: str
    title: str
    subtitle: Optional[str] = None
    content: List[SlideContent] = Field(default_factory=list)
    notes: Optional[str] = None
    imageUrl: Optional[str] = None
    imagePrompt: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        """JSON shape sent to the client and persisted; unset optionals are omitted."""
        return self.model_dump(exclude_none=True)


class StoryStructureEntry(BaseModel):
    """Resolved slide allocation for one narrative section"""
    section: str
    slideCount: int
    layouts: List[str] = Field(default_factory=list)
    purpose: str
