"""
Slide layout declarations.

Each layout names the regions generated content may target, written as
``regionId(type)`` pairs so the declaration can be quoted into prompts.
"""

from typing import Dict, List, Optional, Tuple

DEFAULT_REGIONS = "title(heading), content(richtext)"

LAYOUT_REGIONS: Dict[str, str] = {
    "title-cover": "background(image), title(heading), subtitle(text), date(text)",
    "section-divider": "section-number(heading), title(heading), subtitle(text)",
    "title-content": "title(heading), content(richtext)",
    "two-column": "title(heading), left-content(richtext), right-content(richtext)",
    "image-left": "title(heading), image(image), content(richtext)",
    "image-right": "title(heading), content(richtext), image(image)",
    "stats-grid": "title(heading), stat-1(stat), stat-2(stat), stat-3(stat), stat-4(stat)",
    "bullets": "title(heading), bullets(bullets)",
    "quote": "quote(text), attribution(text)",
    "architecture": "title(heading), diagram(image)",
    "comparison": "title(heading), left-header(heading), right-header(heading), left-content(bullets), right-content(bullets)",
    "timeline": "title(heading), timeline(timeline)",
    "icon-grid": "title(heading), subtitle(text), grid(icon-grid)",
    "table": "title(heading), table(table)",
    "chart-full": "title(heading), chart(chart)",
}

# Region that receives a generated image, per layout
IMAGE_REGIONS: Dict[str, str] = {
    "image-left": "image",
    "image-right": "image",
    "architecture": "diagram",
    "title-cover": "background",
}

# Layouts offered to the outline model
AVAILABLE_LAYOUTS: List[str] = [
    "title-cover", "section-divider", "title-content", "two-column", "image-left",
    "image-right", "stats-grid", "bullets", "quote", "architecture", "comparison",
    "timeline", "icon-grid",
]

# Layouts whose outline items should carry an imagePrompt
IMAGE_PROMPT_LAYOUTS: List[str] = ["image-left", "image-right", "architecture"]


def get_layout_regions(layout_id: str) -> str:
    return LAYOUT_REGIONS.get(layout_id, DEFAULT_REGIONS)


def parse_regions(layout_id: str) -> List[Tuple[str, str]]:
    """Return the layout's regions as (region_id, type) pairs."""
    regions = []
    for part in get_layout_regions(layout_id).split(","):
        part = part.strip()
        if "(" in part and part.endswith(")"):
            region_id, region_type = part[:-1].split("(", 1)
            regions.append((region_id.strip(), region_type.strip()))
    return regions


def region_ids(layout_id: str) -> List[str]:
    return [region_id for region_id, _ in parse_regions(layout_id)]


def get_image_region(layout_id: str) -> Optional[str]:
    return IMAGE_REGIONS.get(layout_id)
