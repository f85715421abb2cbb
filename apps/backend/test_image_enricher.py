"""Tests for the image enrichment pass."""

from agents.generation.image_enricher import ImageEnricher, attach_image
from models.presentation import GeneratedSlide, SlideContent
from conftest import FakeImageService


def _slide(order, layout="image-right", prompt="a mountain trail", **kwargs):
    return GeneratedSlide(order=order, layoutId=layout, title=f"Slide {order}", imagePrompt=prompt, **kwargs)


class TestAttachImage:
    def test_fills_layout_image_region(self):
        slide = _slide(1, layout="architecture", prompt="system diagram")
        attach_image(slide, "https://img/1.png")
        assert slide.imageUrl == "https://img/1.png"
        assert slide.content[-1].regionId == "diagram"
        assert slide.content[-1].data == {"url": "https://img/1.png", "alt": "system diagram"}

    def test_existing_image_content_is_kept(self):
        existing = SlideContent(regionId="image", type="image", data={"url": "https://img/old.png"})
        slide = _slide(1, content=[existing])
        attach_image(slide, "https://img/new.png")
        assert slide.imageUrl == "https://img/new.png"
        assert slide.content == [existing]

    def test_layout_without_image_region_only_sets_url(self):
        slide = _slide(1, layout="bullets")
        attach_image(slide, "https://img/1.png")
        assert slide.imageUrl == "https://img/1.png"
        assert slide.content == []


class TestImageEnricher:
    async def test_caps_batch_and_skips_failures(self, run, sink, checkpointer):
        run.slides = [_slide(i + 1, prompt=f"prompt {i + 1}") for i in range(7)]
        service = FakeImageService(fail_prompts=("prompt 2",))

        generated = await ImageEnricher(service, checkpointer).enrich(run)

        assert generated == 4
        assert service.prompts == [f"prompt {i}" for i in range(1, 6)]
        assert run.slides[1].imageUrl is None
        assert run.slides[0].imageUrl is not None
        assert all(s.imageUrl is None for s in run.slides[5:])

        entry = run.blackboard[-1]
        assert entry.source == "image_generation"
        assert entry.content == "Generated 4 images for 7 image-capable slides."
        assert entry.data == {"generated": 4, "requested": 7}

        statuses = sink.of("status")
        assert statuses[0]["message"] == "Generating images for 5 slides..."
        assert statuses[1]["message"] == 'Generating image 1/5: "Slide 1"...'

    async def test_slides_with_images_or_without_prompts_are_skipped(self, run, sink, checkpointer):
        run.slides = [_slide(1, prompt=None), _slide(2, imageUrl="https://img/done.png")]
        service = FakeImageService()

        assert await ImageEnricher(service, checkpointer).enrich(run) == 0
        assert service.prompts == []
        assert sink.events == []
        assert run.blackboard == []
