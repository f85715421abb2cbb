"""
Outline planning.

The requested slide count is split across a fixed narrative arc, the model
is asked for exactly that many outline items, and whatever comes back is
padded or truncated so the outline always has the requested length.
"""

from typing import Dict, Any, List, Optional

from agents.config import OUTLINE_MAX_TOKENS, OUTLINE_TEMPERATURE
from agents.domain.models import BlackboardEntry, EntryCategory, PresentationRun, StepOutcome
from agents.generation.exceptions import OutlineGenerationError
from agents.generation.json_parser import EXPECT_ARRAY, parse_structured_output
from agents.generation.layouts import AVAILABLE_LAYOUTS, IMAGE_PROMPT_LAYOUTS, LAYOUT_REGIONS
from models.presentation import SlideOutline, StoryStructureEntry
from setup_logging_optimized import get_logger

logger = get_logger(__name__)

# (name, purpose, min slides, max slides) in story order
STORY_SECTIONS = [
    ("Opening", "Set the stage and capture attention", 2, 3),
    ("Context & Problem", "Explain why this project exists", 1, 3),
    ("Solution Overview", "High-level what we're building", 1, 2),
    ("Requirements Deep Dive", "Key functional requirements", 2, 4),
    ("Architecture", "Technical design and components", 1, 3),
    ("Implementation Status", "Current progress and metrics", 1, 2),
    ("Risks & Challenges", "What could go wrong and mitigations", 1, 2),
    ("Next Steps", "Roadmap and call to action", 1, 2),
]

SECTION_LAYOUTS: Dict[str, List[str]] = {
    "Opening": ["title-cover", "quote"],
    "Context & Problem": ["title-content", "image-right", "bullets"],
    "Solution Overview": ["image-left", "title-content", "stats-grid"],
    "Requirements Deep Dive": ["bullets", "two-column", "icon-grid", "comparison"],
    "Architecture": ["architecture", "image-left", "title-content"],
    "Implementation Status": ["stats-grid", "timeline", "bullets"],
    "Risks & Challenges": ["two-column", "bullets", "comparison"],
    "Next Steps": ["timeline", "bullets", "quote"],
}
DEFAULT_SECTION_LAYOUTS = ["title-content", "bullets"]

PADDING_LAYOUTS = ["bullets", "title-content", "image-right", "stats-grid"]
PADDING_TOPICS = [
    {"title": "Additional Insights", "purpose": "Further observations from the project data",
     "keyContent": ["Project insights", "Key observations"]},
    {"title": "Technical Details", "purpose": "More technical context",
     "keyContent": ["Implementation details", "Technical considerations"]},
    {"title": "Stakeholder Benefits", "purpose": "Value proposition for stakeholders",
     "keyContent": ["Business value", "User benefits"]},
    {"title": "Quality Assurance", "purpose": "Testing and validation approach",
     "keyContent": ["Testing strategy", "Quality metrics"]},
    {"title": "Team & Resources", "purpose": "Team composition and resources",
     "keyContent": ["Team structure", "Resource allocation"]},
    {"title": "Future Vision", "purpose": "Long-term vision and goals",
     "keyContent": ["Long-term goals", "Future enhancements"]},
]

# Digest caps per category, in the order they are quoted
DIGEST_SECTIONS = [
    ("NARRATIVE HOOKS", EntryCategory.NARRATIVE, 5, "- No narratives collected"),
    ("KEY INSIGHTS", EntryCategory.INSIGHT, 10, "- No insights collected"),
    ("ANALYSIS", EntryCategory.ANALYSIS, 5, "- No analysis collected"),
    ("STATUS ESTIMATES", EntryCategory.ESTIMATE, 3, "- No estimates"),
]


def build_story_structure(target_slides: int, mode: str = "concise") -> List[StoryStructureEntry]:
    """
    Distribute ``target_slides`` across the story sections.

    Minimums are granted first in section order until the budget runs out,
    then sweeps add one slide per section (up to its maximum) until the
    budget is spent or a sweep grants nothing. Sections left at zero are
    dropped, so the result may total less than the target when the target
    exceeds the sum of maximums.
    """
    remaining = max(0, target_slides)
    counts = []
    for _, _, min_slides, _ in STORY_SECTIONS:
        count = min(min_slides, remaining)
        counts.append(count)
        remaining -= count

    while remaining > 0:
        granted = 0
        for i, (_, _, _, max_slides) in enumerate(STORY_SECTIONS):
            if remaining == 0:
                break
            if counts[i] < max_slides:
                counts[i] += 1
                remaining -= 1
                granted += 1
        if granted == 0:
            break

    return [
        StoryStructureEntry(
            section=name,
            slideCount=count,
            layouts=list(SECTION_LAYOUTS.get(name, DEFAULT_SECTION_LAYOUTS)),
            purpose=purpose,
        )
        for (name, purpose, _, _), count in zip(STORY_SECTIONS, counts)
        if count > 0
    ]


def build_blackboard_digest(blackboard: List[BlackboardEntry]) -> str:
    parts = []
    for heading, category, cap, placeholder in DIGEST_SECTIONS:
        lines = [f"- {e.content}" for e in blackboard if e.category == category.value][:cap]
        parts.append(f"{heading}:\n" + ("\n".join(lines) or placeholder))
    return "\n\n".join(parts)


def build_section_instructions(structure: List[StoryStructureEntry]) -> str:
    lines = []
    start = 1
    for entry in structure:
        end = start + entry.slideCount - 1
        slide_range = f"Slide {start}" if start == end else f"Slides {start}-{end}"
        lines.append(
            f'{slide_range}: "{entry.section}" ({entry.slideCount} slides) - {entry.purpose}. '
            f"Use layouts: {', '.join(entry.layouts)}"
        )
        start = end + 1
    return "\n".join(lines)


def build_outline_system_instruction(target_slides: int) -> str:
    return (
        f"You are a presentation structure expert. You MUST return EXACTLY {target_slides} slides in a "
        f"JSON array. Do not return more or fewer slides. Each slide tells part of a cohesive story."
    )


def build_outline_prompt(run: PresentationRun, structure: List[StoryStructureEntry]) -> str:
    collected = run.collected
    target = run.target_slides
    name = collected.project_name
    focus = f"\nUSER FOCUS: {run.initial_prompt}" if run.initial_prompt else ""

    return f"""You are creating a {run.mode} presentation about "{name}" with EXACTLY {target} slides.

PROJECT: {name}
DESCRIPTION: {collected.project_description}
STATS: {len(collected.requirements)} requirements, {len(collected.nodes)} architecture components, {len(collected.files)} code files
{focus}

BLACKBOARD (collected insights from project data):
{build_blackboard_digest(run.blackboard)}

REQUIRED SLIDE STRUCTURE (YOU MUST FOLLOW THIS EXACTLY):
{build_section_instructions(structure)}

CRITICAL RULES:
1. Generate EXACTLY {target} slides, numbered 1 to {target}
2. Follow the section breakdown above precisely
3. Each slide must have: order, layoutId, title, purpose, keyContent (2-4 points)
4. For image layouts ({', '.join(IMAGE_PROMPT_LAYOUTS)}), include imagePrompt
5. Use data from the blackboard to make each slide specific and compelling
6. Titles should be action-oriented and specific, not generic
7. The slides must tell a COHESIVE STORY from start to finish

AVAILABLE LAYOUTS: {', '.join(AVAILABLE_LAYOUTS)}

Return a JSON array with EXACTLY {target} slide outlines. NO MARKDOWN, ONLY JSON."""


def enforce_outline_count(items: List[Any], target_slides: int) -> List[SlideOutline]:
    """Coerce model items and force the outline to exactly ``target_slides`` entries."""
    target = max(0, target_slides)
    outline = []
    for i, raw in enumerate(items[:target]):
        slide = SlideOutline.coerce(raw, i)
        if slide.layoutId not in LAYOUT_REGIONS:
            replacement = PADDING_LAYOUTS[i % len(PADDING_LAYOUTS)]
            logger.warning(f"[PLANNER] Unknown layout '{slide.layoutId}' on slide {i + 1}, using {replacement}")
            slide = slide.model_copy(update={"layoutId": replacement})
        outline.append(slide)

    if len(items) < target:
        logger.warning(f"[PLANNER] Model returned {len(items)} slides, need {target}. Padding...")
        existing_titles = {s.title for s in outline}
        while len(outline) < target:
            idx = len(outline)
            topic = PADDING_TOPICS[idx % len(PADDING_TOPICS)]
            title = topic["title"]
            if title in existing_titles:
                title = f"{title} ({idx})"
            existing_titles.add(title)
            outline.append(SlideOutline(
                order=idx + 1,
                layoutId=PADDING_LAYOUTS[idx % len(PADDING_LAYOUTS)],
                title=title,
                purpose=topic["purpose"],
                keyContent=list(topic["keyContent"]),
            ))
    elif len(items) > target:
        logger.warning(f"[PLANNER] Model returned {len(items)} slides, truncating to {target}")

    return [s.model_copy(update={"order": i + 1}) for i, s in enumerate(outline)]


def fallback_outline(run: PresentationRun) -> List[SlideOutline]:
    """Fixed four-slide outline used when outline generation fails, whatever the target."""
    name = run.collected.project_name
    insights = [e.content[:50] for e in run.entries_by_category(EntryCategory.INSIGHT.value, limit=4)]
    return [
        SlideOutline(order=1, layoutId="title-cover", title=name, purpose="Cover slide", keyContent=[name]),
        SlideOutline(order=2, layoutId="quote", title="Executive Summary", purpose="Key takeaways",
                     keyContent=[f"{run.completion_score}% complete",
                                 f"{len(run.collected.requirements)} requirements"]),
        SlideOutline(order=3, layoutId="stats-grid", title="Project Status", purpose="Current metrics",
                     keyContent=["Requirements", "Architecture", "Code", "Progress"]),
        SlideOutline(order=4, layoutId="bullets", title="Key Insights", purpose="Highlights from analysis",
                     keyContent=insights),
    ]


class NarrativePlanner:
    """Produces the slide outline with one model call."""

    def __init__(self, llm):
        self.llm = llm

    async def plan(self, run: PresentationRun) -> StepOutcome:
        """
        Ask the model for the outline.

        Returns an ``ok`` outcome holding exactly ``run.target_slides`` outline
        items, or ``failed`` when the call errors or does not produce a JSON
        array. No retry is attempted.
        """
        structure = build_story_structure(run.target_slides, run.mode)
        prompt = build_outline_prompt(run, structure)
        logger.info(
            f"[PLANNER] Generating outline for {run.target_slides} slides "
            f"({len(structure)} sections, prompt {len(prompt)} chars)"
        )

        try:
            text = await self.llm.generate(
                prompt,
                system_instruction=build_outline_system_instruction(run.target_slides),
                max_tokens=OUTLINE_MAX_TOKENS,
                temperature=OUTLINE_TEMPERATURE,
                json_mode=True,
            )
            parsed = parse_structured_output(text, expect=EXPECT_ARRAY)
            if not parsed.ok or not isinstance(parsed.value, list):
                raise OutlineGenerationError(
                    "Invalid outline format",
                    context={'parsed': parsed.ok, 'type': type(parsed.value).__name__}
                )
        except Exception as e:
            message = getattr(e, "message", None) or str(e)
            logger.warning(f"[PLANNER] Outline generation failed for {run.presentation_id}: {message}")
            return StepOutcome.failed(message)

        outline = enforce_outline_count(parsed.value, run.target_slides)
        logger.info(f"[PLANNER] Outline ready with exactly {len(outline)} slides")
        return StepOutcome.ok(outline)
