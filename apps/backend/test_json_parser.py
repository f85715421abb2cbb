"""Tests for structured output recovery from noisy model text."""

import json

import pytest

from agents.generation.json_parser import (
    EXPECT_ARRAY,
    EXPECT_OBJECT,
    parse_agent_response_text,
    parse_structured_output,
)


class TestDirectAndFenced:
    def test_plain_object_parses_directly(self):
        result = parse_structured_output('  {"title": "Intro", "order": 1}  ')
        assert result.ok
        assert result.value == {"title": "Intro", "order": 1}
        assert result.method == "direct parse"

    def test_fenced_block_inside_prose(self):
        text = 'Sure, here you go:\n```json\n{"a": 1}\n```\nLet me know if you need more.'
        result = parse_structured_output(text)
        assert result.ok
        assert result.value == {"a": 1}
        assert result.method == "last code fence"

    def test_last_fence_wins_when_several_are_valid(self):
        text = '```json\n{"draft": true}\n```\nrevised:\n```json\n{"draft": false}\n```'
        assert parse_agent_response_text(text) == {"draft": False}

    def test_falls_back_to_earlier_fence_when_last_is_broken(self):
        text = '```json\n[1, 2]\n```\nand also\n```\n{broken\n```'
        result = parse_structured_output(text)
        assert result.ok
        assert result.value == [1, 2]
        assert result.method.startswith("code fence #1")

    def test_preamble_inside_fence_is_stripped(self):
        text = '```\nHere is the JSON: {"slides": []}\n```'
        assert parse_agent_response_text(text) == {"slides": []}


class TestSerializedValues:
    @pytest.mark.parametrize("value", [
        {"title": "Use ```json fences``` sparingly", "notes": "{not a brace} [nor a bracket]"},
        [[1, [2, [3]]], {"nested": [{"deep": True}]}],
        {"count": 42, "ratio": -0.125, "big": 10 ** 18, "tiny": 1e-9},
        {"name": "Café Zürich", "emoji": "\U0001F680", "cjk": "演示文稿"},
        ["```", "```json", "}", "{"],
        {"empty": {}, "list": [], "null": None, "flag": False},
    ])
    def test_serialized_value_comes_back_unchanged(self, value):
        for text in (json.dumps(value), json.dumps(value, ensure_ascii=False, indent=2)):
            result = parse_structured_output(text)
            assert result.ok
            assert result.value == value

    def test_chatty_answer_around_fenced_object(self):
        text = "Sure! Here's the JSON:\n```json\n{\"concepts\":[]}\n```\nLet me know if you need changes."
        assert parse_agent_response_text(text) == {"concepts": []}
        assert parse_structured_output(text, expect=EXPECT_OBJECT).value == {"concepts": []}


class TestExtraction:
    def test_array_embedded_in_prose(self):
        result = parse_structured_output('The outline is [{"order": 1}] as requested.', expect=EXPECT_ARRAY)
        assert result.ok
        assert result.value == [{"order": 1}]
        assert result.method == "bracket extraction (array)"

    def test_array_inferred_when_bracket_comes_first(self):
        assert parse_agent_response_text('Result: [1, 2, 3] done') == [1, 2, 3]

    def test_object_expectation_skips_bracket_step(self):
        result = parse_structured_output('See [note] then {"a": 1} end', expect=EXPECT_OBJECT)
        assert result.ok
        assert result.value == {"a": 1}
        assert result.method == "brace extraction (raw)"

    def test_raw_newline_inside_string_recovered_by_whitespace_collapse(self):
        text = 'Result:\n{"notes": "line one\nline two"}'
        result = parse_structured_output(text)
        assert result.ok
        assert result.value == {"notes": "line one line two"}
        assert result.method == "brace extraction (cleaned)"


class TestFailureIsAValue:
    def test_unrecoverable_text(self):
        result = parse_structured_output("I could not produce the slides, sorry.")
        assert not result.ok
        assert result.value is None
        assert parse_agent_response_text("I could not produce the slides, sorry.") is None

    def test_empty_and_non_string_input(self):
        assert not parse_structured_output("").ok
        assert not parse_structured_output("   ").ok
        assert not parse_structured_output(None).ok

    def test_json_null_is_success(self):
        result = parse_structured_output("null")
        assert result.ok
        assert result.value is None

    def test_empty_array_and_false_are_success(self):
        assert parse_structured_output("[]").value == []
        assert parse_structured_output("false").ok

    def test_truncated_object_never_yields_partial_value(self):
        result = parse_structured_output('{"title": "Intro", "content": [')
        assert not result.ok
