"""
Incremental slide generation.

Each outline item becomes exactly one slide: the model output when the call
succeeds and parses to an object, otherwise a deterministic slide built from
the outline alone. Slides are streamed as soon as they exist and the slide
list is checkpointed every few items.
"""

from typing import Dict, Any, List, Optional
from uuid import uuid4

from agents.config import (
    SLIDE_MAX_TOKENS,
    SLIDE_TEMPERATURE,
    MAX_RELATED_ENTRIES,
    STORY_CONTEXT_WINDOW,
    CHECKPOINT_EVERY_N_SLIDES,
)
from agents.domain.models import (
    BlackboardEntry,
    CollectedData,
    PresentationRun,
    PresentationStatus,
    StepOutcome,
)
from agents.generation.exceptions import SlideGenerationError
from agents.generation.json_parser import EXPECT_OBJECT, parse_structured_output
from agents.generation.layouts import get_layout_regions, parse_regions, region_ids
from agents.generation.progress_manager import PresentationPhase
from agents.generation.stream_checkpointer import StreamCheckpointer
from models.presentation import GeneratedSlide, SlideContent, SlideOutline
from setup_logging_optimized import get_logger

logger = get_logger(__name__)

SLIDE_SYSTEM_INSTRUCTION = (
    "You generate professional presentation slides as JSON. Each slide must be specific to the "
    "project data provided, not generic. Return only valid JSON objects, no markdown fences."
)


def story_position(order: int, total: int) -> str:
    if order == 1:
        return "opening"
    if order == total:
        return "closing"
    if order <= 3:
        return "introduction"
    if order >= total - 2:
        return "conclusion"
    return "body"


def find_related_entries(
    outline: SlideOutline,
    blackboard: List[BlackboardEntry],
    limit: int = MAX_RELATED_ENTRIES
) -> List[BlackboardEntry]:
    """Entries whose content mentions a key-content phrase, the title or the purpose."""
    needles = [kc.lower() for kc in outline.keyContent]
    needles.append(outline.title.lower())
    needles.append(outline.purpose.lower())
    related = [e for e in blackboard if any(n in e.content.lower() for n in needles)]
    return related[:limit]


def build_slide_context(
    outline: SlideOutline,
    blackboard: List[BlackboardEntry],
    collected: CollectedData
) -> str:
    purpose = outline.purpose.lower()
    title = outline.title.lower()
    parts: List[str] = []

    related = find_related_entries(outline, blackboard)
    if related:
        parts.append("RELATED INSIGHTS:")
        parts.extend(f"- [{e.category}] {e.content}" for e in related)

    if "requirement" in purpose or "requirement" in title:
        requirements = [r for r in collected.requirements if not r.get("parent_id")][:8]
        if requirements:
            parts.append("\nKEY REQUIREMENTS:")
            parts.extend(
                f"- {r.get('code') or ''} {r.get('title')}: {(r.get('content') or '')[:100]}"
                for r in requirements
            )

    if "architecture" in purpose or "architecture" in title:
        nodes = collected.nodes[:10]
        if nodes:
            parts.append("\nARCHITECTURE COMPONENTS:")
            for node in nodes:
                node_data = node.get("data") or {}
                label = node_data.get("label") or node_data.get("title") or "Unnamed"
                parts.append(f"- {node.get('type')}: {label}")

    if "status" in purpose or "metric" in purpose or "status" in title:
        parts.append("\nPROJECT METRICS:")
        parts.append(f"- Requirements: {len(collected.requirements)}")
        parts.append(f"- Architecture Components: {len(collected.nodes)}")
        parts.append(f"- Code Files: {len(collected.files)}")
        parts.append(f"- Specifications: {len(collected.specifications)}")
        parts.append(f"- Deployments: {len(collected.deployments)}")

    return "\n".join(parts) or "Use the slide purpose and key content to create relevant material."


def _story_flow(outline: SlideOutline, all_outlines: List[SlideOutline]) -> str:
    index = outline.order - 1
    previous = all_outlines[max(0, index - STORY_CONTEXT_WINDOW):index]
    following = all_outlines[index + 1:index + 1 + STORY_CONTEXT_WINDOW]

    if previous:
        flow = "Previous slides: " + " → ".join(f"{o.order}. {o.title}" for o in previous)
    else:
        flow = "This is the first slide."
    if following:
        flow += "\nNext slides: " + " → ".join(f"{o.order}. {o.title}" for o in following)
    else:
        flow += "\nThis is the final slide."
    return flow


def build_slide_prompt(
    outline: SlideOutline,
    all_outlines: List[SlideOutline],
    blackboard: List[BlackboardEntry],
    collected: CollectedData
) -> str:
    name = collected.project_name
    total = len(all_outlines)
    image_line = f"\n- Image to generate: {outline.imagePrompt}" if outline.imagePrompt else ""
    image_field = f',\n  "imagePrompt": "{outline.imagePrompt}"' if outline.imagePrompt else ""

    return f"""Generate slide {outline.order}/{total} for "{name}".

PROJECT CONTEXT:
- Name: {name}
- Description: {collected.project_description}
- This is the {story_position(outline.order, total)} of the presentation

SLIDE TO GENERATE:
- Order: {outline.order}
- Title: "{outline.title}"
- Layout: {outline.layoutId}
- Purpose: {outline.purpose}
- Key points to cover: {"; ".join(outline.keyContent)}{image_line}

STORY FLOW:
{_story_flow(outline, all_outlines)}

RELATED PROJECT DATA:
{build_slide_context(outline, blackboard, collected)}

LAYOUT REGIONS FOR "{outline.layoutId}":
{get_layout_regions(outline.layoutId)}

CONTENT GENERATION RULES:
1. Create content that flows naturally from the previous slide and leads into the next
2. Be SPECIFIC - use actual data, names, numbers from the project
3. For bullets: use {{ items: [{{ title: "...", description: "..." }}, ...] }}
4. For stats: use {{ value: "number", label: "metric name" }}
5. For timeline: use {{ steps: [{{ title: "...", description: "..." }}, ...] }}
6. For icon-grid: use {{ items: [{{ icon: "emoji", title: "...", description: "..." }}, ...] }}
7. Use **bold** for emphasis, *italic* for terms
8. NEVER use HTML tags (<b>, <p>, <ul>, <li>, etc.)
9. Speaker notes should explain what to emphasize verbally
10. Only use the regionIds listed above

Return a single JSON object:
{{
  "order": {outline.order},
  "layoutId": "{outline.layoutId}",
  "title": "{outline.title}",
  "content": [
    {{ "regionId": "...", "type": "...", "data": {{...}} }}
  ],
  "notes": "2-3 sentence speaker notes"{image_field}
}}

ONLY RETURN THE JSON OBJECT, NO EXPLANATION."""


def _coerce_content(raw_content: Any, layout_id: str) -> List[SlideContent]:
    """Keep well-formed content entries that target a region of the layout."""
    if not isinstance(raw_content, list):
        return []
    allowed = set(region_ids(layout_id))
    content = []
    for item in raw_content:
        if not isinstance(item, dict):
            continue
        region_id = item.get("regionId")
        region_type = item.get("type")
        if not isinstance(region_id, str) or not isinstance(region_type, str):
            continue
        if region_id not in allowed:
            logger.debug(f"[SLIDES] dropping region '{region_id}' not declared by layout {layout_id}")
            continue
        content.append(SlideContent(regionId=region_id, type=region_type, data=item.get("data")))
    return content


def normalize_slide(parsed: Dict[str, Any], outline: SlideOutline) -> GeneratedSlide:
    """Build a slide from a parsed model object, with order and layout pinned to the outline.

    When no content entry targets a declared region, the slide gets the
    fallback content so it is never empty.
    """
    subtitle = parsed.get("subtitle")
    image_prompt = outline.imagePrompt or parsed.get("imagePrompt")
    content = _coerce_content(parsed.get("content"), outline.layoutId)
    if not content:
        logger.debug(f"[SLIDES] slide {outline.order} has no usable regions, using fallback content")
        content = create_fallback_slide(outline).content
    return GeneratedSlide(
        id=str(parsed.get("id") or uuid4()),
        order=outline.order,
        layoutId=outline.layoutId,
        title=str(parsed.get("title") or outline.title),
        subtitle=str(subtitle) if subtitle else None,
        content=content,
        notes=str(parsed.get("notes") or outline.purpose),
        imagePrompt=str(image_prompt) if image_prompt else None,
    )


def fallback_region(layout_id: str) -> str:
    """Region that holds fallback text: `content` when declared, else the first text-like region.

    Layouts without any text-capable region fall back to their last declared region.
    """
    regions = parse_regions(layout_id)
    ids = [region_id for region_id, _ in regions]
    if "content" in ids:
        return "content"
    for region_id, region_type in regions:
        if region_type in ("richtext", "text"):
            return region_id
    for region_id, region_type in regions:
        if region_type not in ("heading", "image"):
            return region_id
    return ids[-1] if ids else "content"


def create_fallback_slide(outline: SlideOutline) -> GeneratedSlide:
    return GeneratedSlide(
        order=outline.order,
        layoutId=outline.layoutId,
        title=outline.title,
        content=[SlideContent(
            regionId=fallback_region(outline.layoutId),
            type="richtext",
            data={"text": "\n\n".join(f"**{kc}**" for kc in outline.keyContent)},
        )],
        notes=outline.purpose,
        imagePrompt=outline.imagePrompt,
    )


class SlideGenerator:
    """Generates the slides of a run one outline item at a time."""

    def __init__(self, llm, checkpointer: StreamCheckpointer):
        self.llm = llm
        self.checkpointer = checkpointer

    async def generate(self, run: PresentationRun, outline: SlideOutline) -> StepOutcome:
        """Generate one slide. Never raises; a failure yields a ``fallback`` outcome."""
        try:
            prompt = build_slide_prompt(outline, run.outline, run.blackboard, run.collected)
            text = await self.llm.generate(
                prompt,
                system_instruction=SLIDE_SYSTEM_INSTRUCTION,
                max_tokens=SLIDE_MAX_TOKENS,
                temperature=SLIDE_TEMPERATURE,
                json_mode=True,
            )
            parsed = parse_structured_output(text, expect=EXPECT_OBJECT)
            if not parsed.ok or not isinstance(parsed.value, dict):
                raise SlideGenerationError(outline.order, outline.title, "Invalid slide format")
            return StepOutcome.ok(normalize_slide(parsed.value, outline))
        except Exception as e:
            message = getattr(e, "message", None) or str(e)
            logger.warning(f"[SLIDES] Failed to generate slide {outline.order} ({outline.title}): {message}")
            return StepOutcome.fallback(create_fallback_slide(outline), error=message)

    async def generate_all(self, run: PresentationRun) -> List[GeneratedSlide]:
        total = len(run.outline)
        await self.checkpointer.status(
            PresentationPhase.GENERATING_SLIDES,
            f"Generating {total} slides...",
            current=0,
            total=total,
        )

        fallbacks = 0
        for i, outline in enumerate(run.outline):
            await self.checkpointer.status(
                PresentationPhase.GENERATING_SLIDES,
                f'Generating slide {i + 1}/{total}: "{outline.title}"',
                current=i + 1,
                total=total,
            )

            outcome = await self.generate(run, outline)
            if not outcome.is_ok:
                fallbacks += 1
            slide = outcome.value
            run.slides.append(slide)
            await self.checkpointer.emit("slide", slide.to_payload())

            if (i + 1) % CHECKPOINT_EVERY_N_SLIDES == 0 or i == total - 1:
                await self.checkpointer.checkpoint(
                    status=PresentationStatus.GENERATING.value,
                    slides=run.slides_payload(),
                )

        logger.info(f"[SLIDES] Generated {len(run.slides)} slides ({fallbacks} fallback) for {run.presentation_id}")
        return run.slides
