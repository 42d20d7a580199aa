"""Tests for listcraft.core.prompt_builder.

Tests cover:
- Description prompt content (counts, optional tone and style, JSON contract).
- Image prompt wrapping.
- Code fence stripping with and without a language tag.
- Payload parsing for both field name pairs, trimming, and every ParseError path.
"""

from __future__ import annotations

import json
import logging

import pytest

from listcraft.core.errors import ParseError
from listcraft.core.prompt_builder import (
    build_description_prompt,
    build_image_prompt,
    parse_description_payload,
    strip_code_fence,
)


class TestBuildDescriptionPrompt:
    def test_includes_counts_and_subject(self):
        prompt = build_description_prompt("Great widget for you.", "Widget")
        assert '"Widget"' in prompt
        assert "- Characters: 21" in prompt
        assert "- Words: 4" in prompt
        assert "Great widget for you." in prompt

    def test_requests_json_contract(self):
        prompt = build_description_prompt("Great widget.", "Widget")
        assert '"enhanced_description": "string"' in prompt
        assert '"generation_context": "string"' in prompt
        assert "Just the JSON." in prompt

    def test_optional_tone_and_style(self):
        plain = build_description_prompt("Great widget.", "Widget")
        styled = build_description_prompt("Great widget.", "Widget", tone="playful", style="short")
        assert "Write in a" not in plain
        assert "writing style" not in plain
        assert "6. Write in a playful tone." in styled
        assert "7. Follow this writing style: short." in styled

    def test_style_without_tone_is_numbered_six(self):
        prompt = build_description_prompt("Great widget.", "Widget", style="short")
        assert "6. Follow this writing style: short." in prompt


class TestBuildImagePrompt:
    def test_wraps_product_context(self):
        prompt = build_image_prompt("A red enamel mug")
        assert "---\nA red enamel mug\n---" in prompt
        assert prompt.startswith("**VERY IMPORTANT: Read all instructions carefully.**")
        assert "Do not change the product's described features." in prompt


class TestStripCodeFence:
    @pytest.mark.parametrize(
        "raw",
        [
            '```json\n{"a": 1}\n```',
            '```\n{"a": 1}\n```',
            '```{"a": 1}```',
            '  ```json\n{"a": 1}\n```  ',
            '{"a": 1}',
        ],
    )
    def test_unwraps(self, raw):
        assert json.loads(strip_code_fence(raw)) == {"a": 1}


class TestParseDescriptionPayload:
    def test_fenced_prompted_names(self):
        raw = (
            '```json\n{"enhanced_description":"An exceptional widget.",'
            '"generation_context":"Shortened and polished."}\n```'
        )
        result = parse_description_payload(raw)
        assert result.enhanced_text == "An exceptional widget."
        assert result.rationale == "Shortened and polished."

    @pytest.mark.parametrize("fenced", [False, True])
    def test_normalized_names_are_trimmed(self, fenced):
        body = json.dumps({"enhancedText": "  Better text. ", "rationale": "\nWhy.\n"})
        raw = f"```\n{body}\n```" if fenced else body
        result = parse_description_payload(raw)
        assert result.enhanced_text == "Better text."
        assert result.rationale == "Why."

    def test_invalid_json_keeps_raw(self):
        with pytest.raises(ParseError) as exc_info:
            parse_description_payload("not json")
        assert exc_info.value.raw == "not json"

    def test_non_object(self):
        with pytest.raises(ParseError):
            parse_description_payload("[1, 2]")

    @pytest.mark.parametrize(
        "payload",
        [
            {"generation_context": "why"},
            {"enhanced_description": "  ", "generation_context": "why"},
            {"enhanced_description": "text"},
            {"enhanced_description": "text", "generation_context": ""},
            {"enhancedText": "text", "rationale": 5},
        ],
    )
    def test_missing_or_blank_fields(self, payload):
        with pytest.raises(ParseError):
            parse_description_payload(json.dumps(payload))

    def test_logs_truncated_raw(self, caplog):
        raw = "x" * 2000
        with caplog.at_level(logging.ERROR, logger="listcraft.core.prompt_builder"):
            with pytest.raises(ParseError) as exc_info:
                parse_description_payload(raw)
        assert exc_info.value.raw == raw
        assert raw not in caplog.text
        assert "x" * 500 in caplog.text
