"""Prompt construction and response normalization shared by every adapter.

Text providers all receive the same copywriter prompt and are asked for the
same JSON object, so building the prompt and parsing the answer live here
rather than in each adapter.  Image providers likewise share one fixed
two-part instruction that keeps the product faithful while letting the scene
change.

Description Prompt Structure::

    [Copywriter role and task for "<subject>"]

    Original Product Name / Original Description
    ---
    [original text]
    ---

    Original Description Length (characters, words)

    [Numbered instructions, optional tone and style lines]

    [JSON-only output contract]

Response Contract
-----------------
Providers are asked for::

    {"enhanced_description": "...", "generation_context": "..."}

:func:`parse_description_payload` also accepts the normalized
``enhancedText`` / ``rationale`` names so that payloads re-read from the
intermediary parse the same way.  A response wrapped in a single markdown code
fence is unwrapped first.

Usage
-----
::

    prompt = build_description_prompt(
        original_text="Stainless bottle, keeps drinks cold.",
        subject_name="Acme Bottle",
        tone="playful",
    )
    result = parse_description_payload(completion_text)
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from .errors import ParseError, truncate
from .models import TextGenerationResult

logger = logging.getLogger(__name__)

SYSTEM_MESSAGE = "You are an expert Amazon listing copywriter that outputs only valid JSON."

# Image analysis asks for plain prose, not JSON.
ANALYSIS_SYSTEM_MESSAGE = """You are an expert product photographer and e-commerce specialist.
Your task is to analyze product images and provide detailed, marketing-friendly descriptions.
Focus on:
1. Visual characteristics (color, shape, design, materials)
2. Key features visible in the image
3. Potential benefits and use cases
4. Quality indicators
5. Unique selling points

Format your response as a cohesive, well-structured product description that could be used directly in an Amazon listing.
Keep your description factual based on what you can see - don't make up specifications that aren't visible.
Use professional, persuasive language that highlights the product's strengths.
Do not include placeholder text or mention that you're analyzing an image."""

ANALYSIS_USER_PROMPT = (
    "Analyze this product image and provide a detailed, marketing-friendly description."
)

# One leading fence with an optional language tag and one trailing fence.
_FENCE_RE = re.compile(r"^```[\w-]*[ \t]*\r?\n?(.*?)\r?\n?```$", re.DOTALL)

_FIELD_PAIRS = (
    ("enhanced_description", "generation_context"),
    ("enhancedText", "rationale"),
)


def build_description_prompt(
    original_text: str,
    subject_name: str,
    tone: str | None = None,
    style: str | None = None,
) -> str:
    """Compile the copywriter prompt for a description rewrite.

    Args:
        original_text: Description to rewrite.
        subject_name: Product name.
        tone: Optional tone hint appended to the instructions.
        style: Optional style hint appended to the instructions.

    Returns:
        The full user prompt.
    """
    char_count = len(original_text)
    word_count = len(original_text.split())

    extra = []
    if tone:
        extra.append(f"6. Write in a {tone} tone.")
    if style:
        extra.append(f"{6 + len(extra)}. Follow this writing style: {style}.")
    extra_block = ("\n" + "\n".join(extra)) if extra else ""

    return f"""You are an expert Amazon listing copywriter.
Your task is to rewrite the provided product description for "{subject_name}" and provide context for your changes.

Original Product Name: "{subject_name}"
Original Description:
---
{original_text}
---

Original Description Length:
- Characters: {char_count}
- Words: {word_count}

Instructions:
1. Rewrite the "Original Description" to be highly compelling, benefit-driven, and optimized for Amazon.
2. The "enhanced_description" MUST be plain text only, without any markdown formatting (e.g., no ```, *, #).
3. The length (character and word count) of your "enhanced_description" should be in a similar range to the "Original Description Length" provided above. Aim for approximately the same number of words.
4. Focus on:
    - Clear and concise language.
    - Highlighting key benefits and unique selling points from the original.
    - Engaging tone that encourages purchase.
    - Persuasive and professional language.
5. Provide a brief "generation_context" (around 20-50 words) explaining your approach, key changes made, or focus areas during the rewrite.{extra_block}

Output ONLY a valid JSON object with the following exact schema:
{{
  "enhanced_description": "string",
  "generation_context": "string"
}}

Do NOT include any other text, explanations, or markdown formatting outside of this JSON object. Just the JSON."""


def build_image_prompt(product_context: str) -> str:
    """Wrap *product_context* in the faithful-product / new-scene instruction."""
    return f"""**VERY IMPORTANT: Read all instructions carefully.**
You are an AI image generator tasked with creating a product image for an Amazon listing.

**Product to Depict (Primary Focus):**
The core task is to accurately render the product described in the "Product Context" below. The product's appearance, features, and details as described MUST be depicted as faithfully and identically as possible. Do NOT alter the product itself from how it is described.

**Product Context (This describes the product you must render accurately):**
---
{product_context}
---

**Image Style and Scene (Secondary - This is what you change around the product):**
While the product depiction MUST remain true to the "Product Context", the surrounding scene and environment SHOULD be changed to be:
- Highly appealing and fashionable.
- Professional and commercial quality, suitable for a premium Amazon listing.
- Well-lit, clear, and high-resolution.
- The goal is to present the *exact same product* (as per "Product Context") in a *new, enhanced, stylish setting* that makes it look highly desirable.

**Key Rule: Do not change the product's described features. Only change the scene, background, and styling around the product.**
Generate an image that makes this specific product look highly desirable in its new fashionable environment."""


def strip_code_fence(raw: str) -> str:
    """Remove one optional surrounding triple-backtick fence from *raw*."""
    text = raw.strip()
    match = _FENCE_RE.match(text)
    if match:
        return match.group(1).strip()
    return text


def parse_description_payload(raw: str) -> TextGenerationResult:
    """Parse a provider completion into a :class:`TextGenerationResult`.

    Args:
        raw: Completion text, optionally wrapped in a code fence.

    Returns:
        The trimmed enhanced text and rationale.

    Raises:
        ParseError: If the text is not a JSON object or a field is missing or
            blank.  ``raw`` is kept on the error.
    """
    text = strip_code_fence(raw)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.error(f"Provider returned invalid JSON: {truncate(raw)}")
        raise ParseError(f"Failed to parse AI response as JSON: {e.msg}", raw=raw) from e

    return description_from_mapping(data, raw)


def description_from_mapping(data: Any, raw: str) -> TextGenerationResult:
    """Build a :class:`TextGenerationResult` from decoded JSON.

    Used for provider completions and for intermediary responses alike, so
    both paths trim the same way and reject the same blank fields.
    """
    if not isinstance(data, dict):
        logger.error(f"Provider returned non-object JSON: {truncate(raw)}")
        raise ParseError("AI response JSON is not an object", raw=raw)

    for text_key, rationale_key in _FIELD_PAIRS:
        if text_key in data:
            enhanced = data.get(text_key)
            rationale = data.get(rationale_key)
            break
    else:
        enhanced = rationale = None

    if not isinstance(enhanced, str) or not enhanced.strip():
        logger.error(f"Provider JSON lacks an enhanced description: {truncate(raw)}")
        raise ParseError("AI response JSON is missing 'enhanced_description'", raw=raw)
    if not isinstance(rationale, str) or not rationale.strip():
        logger.error(f"Provider JSON lacks a generation context: {truncate(raw)}")
        raise ParseError("AI response JSON is missing 'generation_context'", raw=raw)

    return TextGenerationResult(enhanced_text=enhanced.strip(), rationale=rationale.strip())
