"""Tests for outline planning: section allocation, count enforcement and fallback."""

import json

import pytest

from agents.domain.models import BlackboardEntry, OutcomeKind
from agents.generation.layouts import LAYOUT_REGIONS
from agents.generation.narrative_planner import (
    NarrativePlanner,
    build_blackboard_digest,
    build_outline_prompt,
    build_story_structure,
    enforce_outline_count,
    fallback_outline,
)
from conftest import FakeLLM, outline_items


class TestStoryStructure:
    def test_small_target_fills_minimums_in_order(self):
        structure = build_story_structure(4, "concise")
        assert [(s.section, s.slideCount) for s in structure] == [
            ("Opening", 2),
            ("Context & Problem", 1),
            ("Solution Overview", 1),
        ]
        assert structure[0].layouts[0] == "title-cover"

    def test_single_slide_goes_to_opening(self):
        structure = build_story_structure(1, "concise")
        assert [(s.section, s.slideCount) for s in structure] == [("Opening", 1)]

    def test_ten_slides_is_exactly_the_minimum_arc(self):
        structure = build_story_structure(10, "detailed")
        assert len(structure) == 8
        assert sum(s.slideCount for s in structure) == 10

    def test_extra_slides_are_granted_one_per_section_sweep(self):
        counts = {s.section: s.slideCount for s in build_story_structure(14, "concise")}
        assert counts["Opening"] == 3
        assert counts["Context & Problem"] == 2
        assert counts["Solution Overview"] == 2
        assert counts["Requirements Deep Dive"] == 3
        assert counts["Architecture"] == 1
        assert sum(counts.values()) == 14

    def test_target_beyond_capacity_terminates_at_maximums(self):
        structure = build_story_structure(100, "concise")
        assert sum(s.slideCount for s in structure) == 21

    @pytest.mark.parametrize("target", [0, -3])
    def test_non_positive_target_yields_no_sections(self, target):
        assert build_story_structure(target) == []


class TestEnforceOutlineCount:
    def test_pads_from_topic_pool_with_layout_rotation(self):
        outline = enforce_outline_count(outline_items(2), 5)
        assert [s.order for s in outline] == [1, 2, 3, 4, 5]
        assert [s.title for s in outline[2:]] == ["Stakeholder Benefits", "Quality Assurance", "Team & Resources"]
        assert [s.layoutId for s in outline[2:]] == ["image-right", "stats-grid", "bullets"]

    def test_padding_title_collision_appends_index(self):
        items = [{"title": "Stakeholder Benefits", "layoutId": "quote"}]
        outline = enforce_outline_count(items, 3)
        assert [s.title for s in outline] == ["Stakeholder Benefits", "Technical Details", "Stakeholder Benefits (2)"]

    def test_truncates_and_renumbers(self):
        items = outline_items(7)
        items[0]["order"] = 9
        outline = enforce_outline_count(items, 3)
        assert [s.order for s in outline] == [1, 2, 3]
        assert [s.title for s in outline] == ["Topic 1", "Topic 2", "Topic 3"]

    def test_undeclared_layouts_are_replaced(self):
        items = outline_items(4, layout="hero-banner")
        items[1]["layoutId"] = "quote"
        outline = enforce_outline_count(items, 4)
        assert [s.layoutId for s in outline] == ["bullets", "quote", "image-right", "stats-grid"]
        assert all(s.layoutId in LAYOUT_REGIONS for s in outline)

    async def test_plan_never_returns_undeclared_layouts(self, run):
        llm = FakeLLM([outline_items(4, layout="hero-banner")])
        outcome = await NarrativePlanner(llm).plan(run)
        assert outcome.kind == OutcomeKind.OK
        assert all(s.layoutId in LAYOUT_REGIONS for s in outcome.value)

    def test_untrusted_items_are_coerced(self):
        outline = enforce_outline_count(["Just a title", 42, {"keyContent": "single"}], 3)
        assert outline[0].title == "Just a title"
        assert outline[1].title == "Slide 2"
        assert outline[2].keyContent == ["single"]
        assert all(s.layoutId for s in outline)


class TestFallbackAndDigest:
    def test_fallback_outline_is_fixed_four_items(self, run):
        run.target_slides = 9
        run.collected.settings = {"name": "Atlas"}
        run.completion_score = 40
        run.blackboard.append(BlackboardEntry(source="t", category="insight", content="x" * 80))
        outline = fallback_outline(run)
        assert [s.layoutId for s in outline] == ["title-cover", "quote", "stats-grid", "bullets"]
        assert outline[0].title == "Atlas"
        assert outline[1].keyContent == ["40% complete", "0 requirements"]
        assert outline[3].keyContent == ["x" * 50]

    def test_digest_placeholders_for_empty_blackboard(self):
        digest = build_blackboard_digest([])
        assert "- No narratives collected" in digest
        assert "- No insights collected" in digest
        assert "- No analysis collected" in digest
        assert "- No estimates" in digest

    def test_digest_caps_insights_at_ten(self):
        entries = [BlackboardEntry(source="t", category="insight", content=f"insight {i}") for i in range(12)]
        digest = build_blackboard_digest(entries)
        assert "insight 9" in digest
        assert "insight 10" not in digest

    def test_prompt_carries_sections_and_focus(self, run):
        run.initial_prompt = "Investor pitch"
        run.collected.settings = {"name": "Atlas", "description": "Mapping tool"}
        prompt = build_outline_prompt(run, build_story_structure(run.target_slides))
        assert 'EXACTLY 4 slides' in prompt
        assert 'Slides 1-2: "Opening"' in prompt
        assert "USER FOCUS: Investor pitch" in prompt


class TestNarrativePlanner:
    async def test_plan_pads_short_model_answer(self, run):
        llm = FakeLLM(["```json\n" + json.dumps(outline_items(3)) + "\n```"])
        outcome = await NarrativePlanner(llm).plan(run)
        assert outcome.kind == OutcomeKind.OK
        assert len(outcome.value) == 4
        call = llm.calls[0]
        assert call["max_tokens"] == 4000
        assert call["temperature"] == 0.4
        assert call["json_mode"] is True
        assert "EXACTLY 4 slides" in call["system_instruction"]

    async def test_object_answer_is_a_failure(self, run):
        outcome = await NarrativePlanner(FakeLLM([{"slides": outline_items(4)}])).plan(run)
        assert outcome.kind == OutcomeKind.FAILED
        assert outcome.value is None

    async def test_model_error_is_a_failure_without_retry(self, run):
        llm = FakeLLM([RuntimeError("HTTP 503")])
        outcome = await NarrativePlanner(llm).plan(run)
        assert outcome.kind == OutcomeKind.FAILED
        assert "503" in outcome.error
        assert len(llm.calls) == 1
