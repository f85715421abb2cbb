"""
Image enrichment pass run after all slides exist.
"""

import logging

from agents.config import MAX_IMAGES_PER_PRESENTATION
from agents.domain.models import EntryCategory, PresentationRun
from agents.generation.layouts import get_image_region
from agents.generation.progress_manager import PresentationPhase
from agents.generation.stream_checkpointer import StreamCheckpointer
from models.presentation import GeneratedSlide, SlideContent

logger = logging.getLogger(__name__)


def attach_image(slide: GeneratedSlide, image_url: str) -> None:
    """Set the slide's imageUrl and fill its image region unless one already holds an image."""
    slide.imageUrl = image_url
    region = get_image_region(slide.layoutId)
    if not region:
        return
    has_image = any(c.regionId == region and c.type == "image" for c in slide.content)
    if not has_image:
        slide.content.append(SlideContent(
            regionId=region,
            type="image",
            data={"url": image_url, "alt": slide.imagePrompt},
        ))


class ImageEnricher:
    """Generates images for slides that carry an imagePrompt, up to a fixed cap."""

    def __init__(self, image_service, checkpointer: StreamCheckpointer,
                 max_images: int = MAX_IMAGES_PER_PRESENTATION):
        self.image_service = image_service
        self.checkpointer = checkpointer
        self.max_images = max_images

    async def enrich(self, run: PresentationRun) -> int:
        """Returns the number of images attached. Individual failures are skipped."""
        candidates = [s for s in run.slides if s.imagePrompt and not s.imageUrl]
        if not candidates:
            return 0

        batch = candidates[:self.max_images]
        await self.checkpointer.status(
            PresentationPhase.GENERATING_IMAGES,
            f"Generating images for {len(batch)} slides...",
        )

        generated = 0
        for i, slide in enumerate(batch):
            await self.checkpointer.status(
                PresentationPhase.GENERATING_IMAGES,
                f'Generating image {i + 1}/{len(batch)}: "{slide.title}"...',
            )
            try:
                image_url = await self.image_service.generate_image(slide.imagePrompt)
            except Exception as e:
                logger.warning(f"[IMAGES] slide {slide.order} image skipped: {getattr(e, 'message', None) or e}")
                continue
            attach_image(slide, image_url)
            generated += 1

        await self.checkpointer.append_entry(
            "image_generation",
            EntryCategory.OBSERVATION.value,
            f"Generated {generated} images for {len(candidates)} image-capable slides.",
            {"generated": generated, "requested": len(candidates)},
        )
        logger.info(f"[IMAGES] {generated}/{len(batch)} images attached for {run.presentation_id}")
        return generated
