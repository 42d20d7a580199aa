"""Tests for listcraft.core.errors: the error taxonomy.

Tests cover:
- Kind and status code of every error class.
- Rate-limit and status handling on ProviderError.
- Payload rendering and the client-side rebuild from payloads.
- Raw payload truncation.
"""

from __future__ import annotations

import pytest

from listcraft.core.errors import (
    RAW_PREVIEW_CHARS,
    ConfigurationError,
    CredentialError,
    NotFoundError,
    ParseError,
    PollingTimeoutError,
    ProviderError,
    UnsupportedCapabilityError,
    ValidationError,
    error_from_payload,
    truncate,
)


class TestErrorKinds:
    @pytest.mark.parametrize(
        "error, kind, status",
        [
            (ValidationError("bad"), "validation", 400),
            (CredentialError("bad"), "credential", 401),
            (CredentialError("none", missing=True), "credential_missing", 401),
            (ParseError("bad", raw="x"), "parse", 500),
            (PollingTimeoutError("slow", attempts=3), "timeout", 408),
            (UnsupportedCapabilityError("no"), "unsupported", 501),
            (ConfigurationError("no adapter"), "configuration", 500),
            (NotFoundError("no route"), "not_found", 404),
        ],
    )
    def test_kind_and_status(self, error, kind, status):
        assert error.kind == kind
        assert error.status_code == status

    def test_provider_error_keeps_upstream_status(self):
        error = ProviderError("boom", status_code=503)
        assert error.status_code == 503
        assert error.kind == "provider"
        assert error.rate_limited is False

    def test_provider_error_defaults_to_bad_gateway(self):
        assert ProviderError("boom").status_code == 502
        assert ProviderError("boom", status_code=200).status_code == 502

    def test_provider_error_429_is_rate_limited(self):
        error = ProviderError("slow down", status_code=429)
        assert error.rate_limited is True
        assert error.kind == "rate_limited"
        assert error.status_code == 429

    def test_parse_error_keeps_raw(self):
        assert ParseError("bad", raw="not json").raw == "not json"

    def test_timeout_keeps_attempts(self):
        assert PollingTimeoutError("slow", attempts=7).attempts == 7

    def test_payload_shape(self):
        assert ValidationError("count too big").to_payload() == {
            "error": "count too big",
            "kind": "validation",
        }


class TestErrorFromPayload:
    @pytest.mark.parametrize(
        "error",
        [
            ValidationError("v"),
            CredentialError("c"),
            CredentialError("m", missing=True),
            ProviderError("r", rate_limited=True),
            ParseError("p"),
            PollingTimeoutError("t"),
            UnsupportedCapabilityError("u"),
            ConfigurationError("x"),
            NotFoundError("n"),
        ],
    )
    def test_rebuilds_same_type_and_kind(self, error):
        rebuilt = error_from_payload(error.status_code, error.to_payload())
        assert type(rebuilt) is type(error)
        assert rebuilt.kind == error.kind
        assert rebuilt.message == error.message

    def test_falls_back_to_status_code(self):
        assert isinstance(error_from_payload(400, {"error": "x"}), ValidationError)
        assert isinstance(error_from_payload(403, {"error": "x"}), CredentialError)
        assert isinstance(error_from_payload(408, {}), PollingTimeoutError)

    def test_unknown_body_becomes_provider_error(self):
        error = error_from_payload(503, "oops")
        assert isinstance(error, ProviderError)
        assert error.status_code == 503
        assert "503" in error.message


class TestTruncate:
    def test_short_text_unchanged(self):
        assert truncate("abc") == "abc"

    def test_long_text_cut(self):
        text = "x" * (RAW_PREVIEW_CHARS + 50)
        result = truncate(text)
        assert result.startswith("x" * RAW_PREVIEW_CHARS)
        assert len(result) == RAW_PREVIEW_CHARS + 3
