"""Unit tests for the provider adapters.

All upstream traffic goes through ``httpx.MockTransport``; call counts and
request bodies are asserted through the recording handler from conftest.

Coverage
--------
- Chat completion adapters: OpenAI, Groq, xAI, OpenRouter wire formats.
- Gemini generateContent and its bad-key reclassification.
- OpenAI images: concurrent single-image calls, size mapping, variations.
- OpenAI image analysis: vision chat request and plain-prose answer.
- Stability AI: text-to-image batches and per-image image-to-image.
- Replicate: submit, poll, fetch, failure, timeout and cancellation.
- Concurrent fan-out: a failure cancels the sibling calls.
- Failure classification shared by every adapter.
"""

from __future__ import annotations

import asyncio
import base64
import json

import httpx
import pytest
from PIL import Image

from listcraft.core.adapters import (
    GeminiAdapter,
    GroqAdapter,
    OpenAIAdapter,
    OpenRouterAdapter,
    ReplicateAdapter,
    StabilityAdapter,
    XAIAdapter,
)
from listcraft.core.config import ListcraftConfig
from listcraft.core.errors import (
    CredentialError,
    ParseError,
    PollingTimeoutError,
    ProviderError,
    UnsupportedCapabilityError,
)
from listcraft.core.model_adapters import (
    adapter_registry,
    fetch_image_as_base64,
    gather_in_order,
    verify_image_bytes,
)
from listcraft.core.models import (
    ImageAnalysisRequest,
    ImageGenerationRequest,
    Provider,
    TextGenerationRequest,
)
from listcraft.core.registry import REPLICATE_SDXL

TEXT_REQUEST = TextGenerationRequest(original_text="Great widget.", subject_name="Widget")

SCENARIO_A_CONTENT = (
    '```json\n{"enhanced_description":"An exceptional widget.",'
    '"generation_context":"Shortened and polished."}\n```'
)


def chat_response(content: str | None) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})


# ============================================================================
# Chat completion adapters
# ============================================================================


class TestChatCompletionAdapters:
    @pytest.mark.asyncio
    async def test_openai_fenced_json(self, mock_client, test_config):
        client, recorder = mock_client(lambda request: chat_response(SCENARIO_A_CONTENT))
        adapter = OpenAIAdapter(client, test_config)

        result = await adapter.generate_text("gpt-4o", TEXT_REQUEST, "sk-test")

        assert result.enhanced_text == "An exceptional widget."
        assert result.rationale == "Shortened and polished."
        request = recorder.requests[0]
        assert str(request.url) == "https://api.openai.com/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer sk-test"
        body = recorder.json_bodies()[0]
        assert body["model"] == "gpt-4o"
        assert body["response_format"] == {"type": "json_object"}
        assert body["messages"][0]["role"] == "system"
        assert "Great widget." in body["messages"][1]["content"]
        assert body["temperature"] == 0.7
        assert body["max_tokens"] == 2000

    @pytest.mark.asyncio
    async def test_groq_sampling_options(self, mock_client, test_config):
        content = json.dumps({"enhancedText": " Better. ", "rationale": " Tighter. "})
        client, recorder = mock_client(lambda request: chat_response(content))

        result = await GroqAdapter(client, test_config).generate_text(
            "llama-3.1-70b-versatile", TEXT_REQUEST, "gsk_1"
        )

        assert (result.enhanced_text, result.rationale) == ("Better.", "Tighter.")
        assert str(recorder.requests[0].url) == "https://api.groq.com/openai/v1/chat/completions"
        body = recorder.json_bodies()[0]
        assert body["temperature"] == 0.6
        assert body["max_tokens"] == 1024

    @pytest.mark.asyncio
    async def test_xai_has_no_response_format(self, mock_client, test_config):
        client, recorder = mock_client(lambda request: chat_response(SCENARIO_A_CONTENT))
        await XAIAdapter(client, test_config).generate_text("grok-beta", TEXT_REQUEST, "xai-1")
        assert str(recorder.requests[0].url) == "https://api.x.ai/v1/chat/completions"
        assert "response_format" not in recorder.json_bodies()[0]

    @pytest.mark.asyncio
    async def test_openrouter_identifies_app(self, mock_client):
        settings = ListcraftConfig(_env_file=None, app_title="Test App", app_referer="http://me")
        client, recorder = mock_client(lambda request: chat_response(SCENARIO_A_CONTENT))
        await OpenRouterAdapter(client, settings).generate_text(
            "anthropic/claude-3-opus", TEXT_REQUEST, "sk-or-v1-x"
        )
        request = recorder.requests[0]
        assert str(request.url) == "https://openrouter.ai/api/v1/chat/completions"
        assert request.headers["X-Title"] == "Test App"
        assert request.headers["HTTP-Referer"] == "http://me"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", [None, "", "   "])
    async def test_empty_content_is_parse_error(self, mock_client, test_config, content):
        client, _ = mock_client(lambda request: chat_response(content))
        with pytest.raises(ParseError):
            await OpenAIAdapter(client, test_config).generate_text("gpt-4o", TEXT_REQUEST, "sk")

    @pytest.mark.asyncio
    async def test_non_json_body_keeps_raw(self, mock_client, test_config):
        client, _ = mock_client(lambda request: httpx.Response(200, text="not json"))
        with pytest.raises(ParseError) as exc_info:
            await OpenAIAdapter(client, test_config).generate_text("gpt-4o", TEXT_REQUEST, "sk")
        assert exc_info.value.raw == "not json"

    @pytest.mark.asyncio
    async def test_completion_not_json_keeps_raw(self, mock_client, test_config):
        client, _ = mock_client(lambda request: chat_response("Sure! Here is your text."))
        with pytest.raises(ParseError) as exc_info:
            await OpenAIAdapter(client, test_config).generate_text("gpt-4o", TEXT_REQUEST, "sk")
        assert exc_info.value.raw == "Sure! Here is your text."

    @pytest.mark.asyncio
    async def test_text_adapters_reject_images_offline(self, offline_client, test_config):
        client, recorder = offline_client
        for adapter_class in (GroqAdapter, XAIAdapter, OpenRouterAdapter, GeminiAdapter):
            with pytest.raises(UnsupportedCapabilityError) as exc_info:
                await adapter_class(client, test_config).generate_images(
                    "any", ImageGenerationRequest(prompt="mug"), "key"
                )
            assert "openai" in exc_info.value.alternatives
        assert recorder.count == 0


# ============================================================================
# Failure classification
# ============================================================================


class TestFailureClassification:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403])
    async def test_auth_failures(self, mock_client, test_config, status):
        client, _ = mock_client(
            lambda request: httpx.Response(status, json={"error": {"message": "Incorrect key"}})
        )
        with pytest.raises(CredentialError) as exc_info:
            await OpenAIAdapter(client, test_config).generate_text("gpt-4o", TEXT_REQUEST, "sk")
        assert "Incorrect key" in exc_info.value.message
        assert exc_info.value.missing is False

    @pytest.mark.asyncio
    async def test_rate_limit(self, mock_client, test_config):
        client, _ = mock_client(lambda request: httpx.Response(429, json={"error": "slow"}))
        with pytest.raises(ProviderError) as exc_info:
            await GroqAdapter(client, test_config).generate_text("m", TEXT_REQUEST, "k")
        assert exc_info.value.rate_limited is True
        assert exc_info.value.status_code == 429

    @pytest.mark.asyncio
    async def test_upstream_error_message_and_status(self, mock_client, test_config):
        client, _ = mock_client(
            lambda request: httpx.Response(503, json={"error": {"message": "Overloaded"}})
        )
        with pytest.raises(ProviderError) as exc_info:
            await OpenAIAdapter(client, test_config).generate_text("gpt-4o", TEXT_REQUEST, "sk")
        assert exc_info.value.status_code == 503
        assert "Overloaded" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_transport_failure(self, mock_client, test_config):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client, _ = mock_client(handler)
        with pytest.raises(ProviderError) as exc_info:
            await XAIAdapter(client, test_config).generate_text("grok-beta", TEXT_REQUEST, "k")
        assert exc_info.value.status_code == 502


# ============================================================================
# Gemini
# ============================================================================


class TestGeminiAdapter:
    @pytest.mark.asyncio
    async def test_generate_content(self, mock_client, test_config):
        body = {"candidates": [{"content": {"parts": [{"text": SCENARIO_A_CONTENT}]}}]}
        client, recorder = mock_client(lambda request: httpx.Response(200, json=body))

        result = await GeminiAdapter(client, test_config).generate_text(
            "gemini-1.5-pro", TEXT_REQUEST, "AIza-key"
        )

        assert result.enhanced_text == "An exceptional widget."
        request = recorder.requests[0]
        assert request.url.path.endswith("/models/gemini-1.5-pro:generateContent")
        assert request.headers["x-goog-api-key"] == "AIza-key"
        sent = recorder.json_bodies()[0]
        assert sent["generationConfig"]["responseMimeType"] == "application/json"

    @pytest.mark.asyncio
    async def test_bad_key_reported_as_400(self, mock_client, test_config):
        body = {"error": {"code": 400, "message": "API key not valid. Please pass a valid API key."}}
        client, _ = mock_client(lambda request: httpx.Response(400, json=body))
        with pytest.raises(CredentialError):
            await GeminiAdapter(client, test_config).generate_text(
                "gemini-1.5-pro", TEXT_REQUEST, "bad"
            )

    @pytest.mark.asyncio
    async def test_other_400_stays_provider_error(self, mock_client, test_config):
        body = {"error": {"code": 400, "message": "Invalid argument"}}
        client, _ = mock_client(lambda request: httpx.Response(400, json=body))
        with pytest.raises(ProviderError) as exc_info:
            await GeminiAdapter(client, test_config).generate_text(
                "gemini-1.5-pro", TEXT_REQUEST, "key"
            )
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_no_candidates(self, mock_client, test_config):
        client, _ = mock_client(lambda request: httpx.Response(200, json={"candidates": []}))
        with pytest.raises(ParseError):
            await GeminiAdapter(client, test_config).generate_text(
                "gemini-1.5-pro", TEXT_REQUEST, "key"
            )


# ============================================================================
# OpenAI images
# ============================================================================


class TestOpenAIImages:
    @pytest.mark.asyncio
    async def test_count_two_makes_two_single_calls(self, mock_client, test_config, png_b64):
        client, recorder = mock_client(
            lambda request: httpx.Response(200, json={"data": [{"b64_json": png_b64}]})
        )
        request = ImageGenerationRequest(
            prompt="A red mug", count=2, aspect_ratio="16:9", quality="hd", style="vivid"
        )

        result = await OpenAIAdapter(client, test_config).generate_images(
            "dall-e-3", request, "sk"
        )

        assert len(result.images) == 2
        assert all(image for image in result.images)
        assert recorder.count == 2
        for body in recorder.json_bodies():
            assert body["n"] == 1
            assert body["size"] == "1792x1024"
            assert body["quality"] == "hd"
            assert body["style"] == "vivid"
            assert body["response_format"] == "b64_json"
            assert "A red mug" in body["prompt"]
        assert result.metadata["provider"] == "openai"
        assert result.metadata["is_placeholder"] is False

    @pytest.mark.asyncio
    async def test_dall_e_2_omits_style_options(self, mock_client, test_config, png_b64):
        client, recorder = mock_client(
            lambda request: httpx.Response(200, json={"data": [{"b64_json": png_b64}]})
        )
        await OpenAIAdapter(client, test_config).generate_images(
            "dall-e-2", ImageGenerationRequest(prompt="mug", style="vivid"), "sk"
        )
        body = recorder.json_bodies()[0]
        assert "style" not in body
        assert body["size"] == "1024x1024"

    @pytest.mark.asyncio
    async def test_variation_with_source_image(self, mock_client, test_config, png_b64):
        client, recorder = mock_client(
            lambda request: httpx.Response(
                200, json={"data": [{"b64_json": png_b64}, {"b64_json": png_b64}]}
            )
        )
        request = ImageGenerationRequest(prompt="mug", count=2, source_image=png_b64)

        result = await OpenAIAdapter(client, test_config).generate_images(
            "dall-e-3", request, "sk"
        )

        assert len(result.images) == 2
        assert recorder.count == 1
        sent = recorder.requests[0]
        assert sent.url.path == "/v1/images/variations"
        assert b"dall-e-2" in sent.content
        assert base64.b64decode(png_b64) in sent.content
        assert result.metadata["mode"] == "variation"

    @pytest.mark.asyncio
    async def test_zero_images_is_failure(self, mock_client, test_config):
        client, _ = mock_client(lambda request: httpx.Response(200, json={"data": []}))
        with pytest.raises(ProviderError, match="No images"):
            await OpenAIAdapter(client, test_config).generate_images(
                "dall-e-3", ImageGenerationRequest(prompt="mug"), "sk"
            )


class TestOpenAIImageAnalysis:
    @pytest.mark.asyncio
    async def test_vision_request_and_trimmed_answer(self, mock_client, test_config, png_b64):
        client, recorder = mock_client(lambda request: chat_response("  A sturdy red mug.\n"))

        result = await OpenAIAdapter(client, test_config).analyze_image(
            "gpt-4o", ImageAnalysisRequest(image=png_b64), "sk"
        )

        assert result.analysis == "A sturdy red mug."
        assert recorder.paths() == ["/v1/chat/completions"]
        body = recorder.json_bodies()[0]
        assert body["model"] == "gpt-4o"
        assert body["max_tokens"] == 1000
        system, user = body["messages"]
        assert system["role"] == "system"
        assert "product photographer" in system["content"]
        text_part, image_part = user["content"]
        assert text_part["type"] == "text"
        assert image_part["image_url"]["url"] == f"data:image/png;base64,{png_b64}"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", [None, "", "   "])
    async def test_empty_analysis_is_parse_error(
        self, mock_client, test_config, png_b64, content
    ):
        client, _ = mock_client(lambda request: chat_response(content))
        with pytest.raises(ParseError, match="No analysis"):
            await OpenAIAdapter(client, test_config).analyze_image(
                "gpt-4o", ImageAnalysisRequest(image=png_b64), "sk"
            )

    @pytest.mark.asyncio
    async def test_other_adapters_reject_analysis_offline(
        self, offline_client, test_config, png_b64
    ):
        client, recorder = offline_client
        for adapter_class in (GroqAdapter, GeminiAdapter, StabilityAdapter, ReplicateAdapter):
            adapter = adapter_class(client, test_config)
            assert adapter.supports_image_analysis is False
            with pytest.raises(UnsupportedCapabilityError, match="image analysis"):
                await adapter.analyze_image("m", ImageAnalysisRequest(image=png_b64), "k")
        assert recorder.count == 0


# ============================================================================
# Stability AI
# ============================================================================


class TestStabilityAdapter:
    @pytest.mark.asyncio
    async def test_text_to_image_batches_samples(self, mock_client, test_config, png_b64):
        artifacts = [{"base64": png_b64, "finishReason": "SUCCESS"} for _ in range(3)]
        client, recorder = mock_client(
            lambda request: httpx.Response(200, json={"artifacts": artifacts})
        )

        result = await StabilityAdapter(client, test_config).generate_images(
            "stable-diffusion-xl-1024-v1-0",
            ImageGenerationRequest(prompt="mug", count=3, aspect_ratio="16:9", style="cinematic"),
            "sk-stab",
        )

        assert len(result.images) == 3
        assert recorder.count == 1
        request = recorder.requests[0]
        assert request.url.path == "/v1/generation/stable-diffusion-xl-1024-v1-0/text-to-image"
        assert request.headers["Authorization"] == "Bearer sk-stab"
        body = recorder.json_bodies()[0]
        assert body["samples"] == 3
        assert (body["width"], body["height"]) == (1344, 768)
        assert body["style_preset"] == "cinematic"
        assert body["cfg_scale"] == 7
        assert body["steps"] == 30

    @pytest.mark.asyncio
    async def test_image_to_image_one_call_per_image(self, mock_client, test_config, png_b64):
        client, recorder = mock_client(
            lambda request: httpx.Response(200, json={"artifacts": [{"base64": png_b64}]})
        )

        result = await StabilityAdapter(client, test_config).generate_images(
            "stable-diffusion-xl-1024-v1-0",
            ImageGenerationRequest(prompt="mug", count=2, source_image=png_b64),
            "sk-stab",
        )

        assert len(result.images) == 2
        assert recorder.count == 2
        for request in recorder.requests:
            assert request.url.path.endswith("/image-to-image")
            assert b"IMAGE_STRENGTH" in request.content
            assert b"0.35" in request.content
        assert result.metadata["source_strength"] == 0.35

    @pytest.mark.asyncio
    async def test_explicit_strength(self, mock_client, test_config, png_b64):
        client, recorder = mock_client(
            lambda request: httpx.Response(200, json={"artifacts": [{"base64": png_b64}]})
        )
        await StabilityAdapter(client, test_config).generate_images(
            "stable-diffusion-v1-6",
            ImageGenerationRequest(
                prompt="mug", source_image=png_b64, source_strength=0.8
            ),
            "sk",
        )
        assert b"0.8" in recorder.requests[0].content

    @pytest.mark.asyncio
    async def test_unexpected_payload(self, mock_client, test_config):
        client, _ = mock_client(lambda request: httpx.Response(200, json={"images": []}))
        with pytest.raises(ParseError):
            await StabilityAdapter(client, test_config).generate_images(
                "stable-diffusion-v1-6", ImageGenerationRequest(prompt="mug"), "sk"
            )


# ============================================================================
# Replicate
# ============================================================================


class FakeReplicate:
    """Replicate API double: predictions stay pending for ``pending_polls`` polls.

    Predictions listed in ``failing`` fail on their first poll.
    """

    IMAGE_URL = "https://replicate.delivery/out/image.png"

    def __init__(
        self,
        image: bytes,
        pending_polls: int = 1,
        final: str = "succeeded",
        failing: frozenset[str] = frozenset(),
    ) -> None:
        self.image = image
        self.pending_polls = pending_polls
        self.final = final
        self.failing = failing
        self.submitted = 0
        self.polls: dict[str, int] = {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if request.url.host == "replicate.delivery":
            return httpx.Response(200, content=self.image)
        if request.method == "POST" and path == "/v1/predictions":
            self.submitted += 1
            return httpx.Response(201, json={"id": f"p{self.submitted}", "status": "starting"})
        if request.method == "POST" and path.endswith("/cancel"):
            return httpx.Response(200, json={"status": "canceled"})
        if request.method == "GET" and path.startswith("/v1/predictions/"):
            job_id = path.rsplit("/", 1)[-1]
            self.polls[job_id] = self.polls.get(job_id, 0) + 1
            if job_id in self.failing:
                return httpx.Response(
                    200, json={"id": job_id, "status": "failed", "error": "GPU out of memory"}
                )
            if self.polls[job_id] <= self.pending_polls:
                return httpx.Response(200, json={"id": job_id, "status": "processing"})
            if self.final == "succeeded":
                return httpx.Response(
                    200, json={"id": job_id, "status": "succeeded", "output": [self.IMAGE_URL]}
                )
            return httpx.Response(
                200, json={"id": job_id, "status": self.final, "error": "NSFW content detected"}
            )
        return httpx.Response(404, json={"detail": "not found"})


class TestReplicateAdapter:
    @pytest.mark.asyncio
    async def test_submit_poll_fetch(self, mock_client, test_config, png_bytes, png_b64):
        fake = FakeReplicate(png_bytes, pending_polls=2)
        client, recorder = mock_client(fake)

        result = await ReplicateAdapter(client, test_config).generate_images(
            REPLICATE_SDXL, ImageGenerationRequest(prompt="mug", count=2), "r8_key"
        )

        assert result.images == [png_b64, png_b64]
        assert fake.submitted == 2
        assert fake.polls == {"p1": 3, "p2": 3}
        submit = recorder.requests[0]
        assert submit.headers["Authorization"] == "Token r8_key"
        body = json.loads(submit.content)
        assert body["version"] == REPLICATE_SDXL.split(":")[1]
        assert body["input"]["width"] == 1024
        assert "watermark" in body["input"]["negative_prompt"]

    @pytest.mark.asyncio
    async def test_timeout_after_exact_attempts(self, mock_client, png_bytes):
        settings = ListcraftConfig(_env_file=None, poll_interval=0, poll_max_attempts=4)
        fake = FakeReplicate(png_bytes, pending_polls=10_000)
        client, _ = mock_client(fake)

        with pytest.raises(PollingTimeoutError) as exc_info:
            await ReplicateAdapter(client, settings).generate_images(
                REPLICATE_SDXL, ImageGenerationRequest(prompt="mug"), "r8_key"
            )

        assert exc_info.value.attempts == 4
        assert fake.polls == {"p1": 4}

    @pytest.mark.asyncio
    async def test_failed_prediction(self, mock_client, test_config, png_bytes):
        client, _ = mock_client(FakeReplicate(png_bytes, pending_polls=0, final="failed"))
        with pytest.raises(ProviderError, match="NSFW"):
            await ReplicateAdapter(client, test_config).generate_images(
                REPLICATE_SDXL, ImageGenerationRequest(prompt="mug"), "r8_key"
            )

    @pytest.mark.asyncio
    async def test_cancellation_cancels_prediction(self, mock_client, png_bytes):
        settings = ListcraftConfig(_env_file=None, poll_interval=0.01, poll_max_attempts=10_000)
        fake = FakeReplicate(png_bytes, pending_polls=10_000)
        client, recorder = mock_client(fake)

        task = asyncio.create_task(
            ReplicateAdapter(client, settings).generate_images(
                REPLICATE_SDXL, ImageGenerationRequest(prompt="mug"), "r8_key"
            )
        )
        await asyncio.sleep(0.1)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert "/v1/predictions/p1/cancel" in recorder.paths()

    @pytest.mark.asyncio
    async def test_failure_cancels_sibling_predictions(self, mock_client, png_bytes):
        settings = ListcraftConfig(_env_file=None, poll_interval=0.01, poll_max_attempts=10_000)
        fake = FakeReplicate(png_bytes, pending_polls=10_000, failing=frozenset({"p1"}))
        client, recorder = mock_client(fake)

        with pytest.raises(ProviderError, match="GPU out of memory"):
            await ReplicateAdapter(client, settings).generate_images(
                REPLICATE_SDXL, ImageGenerationRequest(prompt="mug", count=2), "r8_key"
            )

        assert "/v1/predictions/p2/cancel" in recorder.paths()
        polls_at_failure = fake.polls.get("p2", 0)
        await asyncio.sleep(0.1)
        assert fake.polls.get("p2", 0) == polls_at_failure

    @pytest.mark.asyncio
    async def test_submit_error_detail(self, mock_client, test_config):
        client, _ = mock_client(
            lambda request: httpx.Response(422, json={"detail": "Invalid version"})
        )
        with pytest.raises(ProviderError, match="Invalid version") as exc_info:
            await ReplicateAdapter(client, test_config).generate_images(
                REPLICATE_SDXL, ImageGenerationRequest(prompt="mug"), "r8_key"
            )
        assert exc_info.value.status_code == 422


# ============================================================================
# Image fetch and registry
# ============================================================================


class TestFetchImage:
    @pytest.mark.asyncio
    async def test_encodes_image(self, mock_client, png_bytes, png_b64):
        client, _ = mock_client(lambda request: httpx.Response(200, content=png_bytes))
        assert await fetch_image_as_base64(client, "https://cdn.test/a.png") == png_b64

    @pytest.mark.asyncio
    async def test_not_an_image(self, mock_client):
        client, _ = mock_client(lambda request: httpx.Response(200, content=b"<html></html>"))
        with pytest.raises(ParseError):
            await fetch_image_as_base64(client, "https://cdn.test/a.png")

    @pytest.mark.asyncio
    async def test_fetch_failure(self, mock_client):
        client, _ = mock_client(lambda request: httpx.Response(404))
        with pytest.raises(ProviderError, match="fetch"):
            await fetch_image_as_base64(client, "https://cdn.test/a.png")


class TestVerifyImageBytes:
    def test_oversized_image_is_parse_error(self, monkeypatch, png_bytes):
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 4)
        with pytest.raises(ParseError, match="too large"):
            verify_image_bytes(png_bytes)

    def test_valid_image_passes(self, png_bytes):
        verify_image_bytes(png_bytes)


class TestGatherInOrder:
    @pytest.mark.asyncio
    async def test_results_in_argument_order(self):
        async def after(delay, value):
            await asyncio.sleep(delay)
            return value

        assert await gather_in_order([after(0.02, "a"), after(0, "b")]) == ["a", "b"]

    @pytest.mark.asyncio
    async def test_failure_cancels_siblings(self):
        cancelled = []

        async def slow():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.append(True)
                raise

        async def fail():
            raise ProviderError("boom")

        with pytest.raises(ProviderError, match="boom"):
            await gather_in_order([slow(), fail()])
        assert cancelled == [True]

    @pytest.mark.asyncio
    async def test_empty(self):
        assert await gather_in_order([]) == []


class TestAdapterRegistry:
    def test_every_provider_registered(self):
        assert set(adapter_registry.list_available()) == set(Provider)

    def test_instantiate_unknown(self, offline_client, test_config):
        from listcraft.core.model_adapters import AdapterRegistry

        client, _ = offline_client
        with pytest.raises(KeyError):
            AdapterRegistry().instantiate(Provider.OPENAI, client, test_config)
