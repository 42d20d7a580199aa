"""Error taxonomy for the provider abstraction layer.

Every failure that can leave an adapter, the router, or the dispatcher is one
of the classes below.  Each carries a human-readable ``message``, a stable
``kind`` string, and the HTTP ``status_code`` the intermediary uses when it
renders the error.

Kinds
-----
==========================  ======  ==========================================
Class                       Status  Meaning
==========================  ======  ==========================================
ValidationError             400     Malformed or out-of-range caller input
CredentialError             401     No usable or a rejected credential
ProviderError               4xx/5xx Upstream call failed (429 = rate limited)
ParseError                  500     Upstream 2xx body unusable
PollingTimeoutError         408     Job polling exhausted its attempt budget
UnsupportedCapabilityError  501     Provider cannot perform the operation
ConfigurationError          500     No adapter registered for a provider
NotFoundError               404     Unknown provider on an intermediary route
==========================  ======  ==========================================

The payload helpers let the dispatch client rebuild the exact error type from
an intermediary response, so a failure keeps its kind across the HTTP hop.
"""

from __future__ import annotations

from typing import Any

# Raw upstream payloads are cut to this many characters in messages and logs.
RAW_PREVIEW_CHARS = 500


def truncate(raw: str, limit: int = RAW_PREVIEW_CHARS) -> str:
    """Return *raw* cut to *limit* characters with an ellipsis marker."""
    if len(raw) <= limit:
        return raw
    return raw[:limit] + "..."


class GenerationError(Exception):
    """Base class for every classified generation failure.

    Attributes:
        message: Text suitable for display to the end user.
        kind: Stable machine-readable identifier.
        status_code: HTTP status the intermediary responds with.
    """

    kind: str = "error"
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_payload(self) -> dict[str, Any]:
        """Render the error as the intermediary's JSON error body."""
        return {"error": self.message, "kind": self.kind}


class ValidationError(GenerationError):
    """Caller input is missing, malformed, or out of range."""

    kind = "validation"
    status_code = 400


class CredentialError(GenerationError):
    """No usable credential exists, or the provider rejected it.

    ``missing`` distinguishes "nothing configured" (the dispatch client may
    fall back to another credential source) from "configured but rejected".
    """

    status_code = 401

    def __init__(self, message: str, *, missing: bool = False) -> None:
        super().__init__(message)
        self.missing = missing

    @property
    def kind(self) -> str:  # type: ignore[override]
        return "credential_missing" if self.missing else "credential"


class ProviderError(GenerationError):
    """The upstream provider call failed or returned an error payload."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        rate_limited: bool = False,
    ) -> None:
        super().__init__(message)
        self.rate_limited = rate_limited or status_code == 429
        if self.rate_limited:
            self.status_code = 429
        elif status_code and status_code >= 400:
            self.status_code = status_code
        else:
            self.status_code = 502

    @property
    def kind(self) -> str:  # type: ignore[override]
        return "rate_limited" if self.rate_limited else "provider"


class ParseError(GenerationError):
    """The provider answered 2xx but the body could not be used.

    The offending payload is kept on ``raw`` for diagnosis.
    """

    kind = "parse"
    status_code = 500

    def __init__(self, message: str, *, raw: str = "") -> None:
        super().__init__(message)
        self.raw = raw


class PollingTimeoutError(GenerationError):
    """A job-based provider did not reach a terminal state in time.

    Terminal for the call; the caller may resubmit.
    """

    kind = "timeout"
    status_code = 408

    def __init__(self, message: str, *, attempts: int = 0) -> None:
        super().__init__(message)
        self.attempts = attempts


class UnsupportedCapabilityError(GenerationError):
    """The provider does not support the requested operation."""

    kind = "unsupported"
    status_code = 501

    def __init__(self, message: str, *, alternatives: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.alternatives = alternatives


class ConfigurationError(GenerationError):
    """The application is not configured to serve a provider at all."""

    kind = "configuration"
    status_code = 500


class NotFoundError(GenerationError):
    """The intermediary has no route for the requested provider."""

    kind = "not_found"
    status_code = 404


def error_from_payload(status_code: int, payload: Any) -> GenerationError:
    """Rebuild a typed error from an intermediary error response.

    Args:
        status_code: HTTP status of the intermediary response.
        payload: Decoded JSON body, ideally ``{"error": ..., "kind": ...}``.

    Returns:
        The matching :class:`GenerationError` subclass instance.  Bodies
        without a recognised ``kind`` are classified by status code.
    """
    body = payload if isinstance(payload, dict) else {}
    message = str(body.get("error") or f"Intermediary returned HTTP {status_code}")
    kind = body.get("kind")

    if kind == "validation" or (kind is None and status_code == 400):
        return ValidationError(message)
    if kind == "credential_missing":
        return CredentialError(message, missing=True)
    if kind == "credential" or (kind is None and status_code in (401, 403)):
        return CredentialError(message)
    if kind == "rate_limited" or (kind is None and status_code == 429):
        return ProviderError(message, rate_limited=True)
    if kind == "parse":
        return ParseError(message)
    if kind == "timeout" or (kind is None and status_code == 408):
        return PollingTimeoutError(message)
    if kind == "unsupported" or (kind is None and status_code == 501):
        return UnsupportedCapabilityError(message)
    if kind == "configuration":
        return ConfigurationError(message)
    if kind == "not_found":
        return NotFoundError(message)
    return ProviderError(message, status_code=status_code)
