"""Configuration management for Listcraft.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the LISTCRAFT_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (LISTCRAFT_* prefix)
2. .env file in the project root
3. Default values defined in ListcraftConfig

Provider keys are additionally read from their conventional names so that an
existing shell setup works unchanged:

    OPENAI_API_KEY=sk-...
    LISTCRAFT_STABILITY_API_KEY=sk-...
    LISTCRAFT_INTERMEDIARY_URL=http://localhost:8000
    LISTCRAFT_POLL_MAX_ATTEMPTS=60

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
It is the configuration the HTTP server and the module-level dispatch helpers
fall back to when no explicit configuration is passed.

Usage Example
-------------
    from listcraft.core.config import config

    print(config.intermediary_url)
    creds = config.server_credentials()

Secrets
-------
Keys are stored as ``SecretStr`` so they never show up in ``repr`` output or
logs. ``server_credentials()`` is the only place they are unwrapped.
"""

from typing import Any

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from listcraft.core.models import LocalCredentials, Provider


def _key_field(provider: str) -> Any:
    upper = provider.upper()
    return Field(
        default=None,
        validation_alias=AliasChoices(f"LISTCRAFT_{upper}_API_KEY", f"{upper}_API_KEY"),
        description=f"Server-side API key for {provider}",
    )


class ListcraftConfig(BaseSettings):
    """Main configuration for Listcraft.

    Values are loaded from environment variables with the LISTCRAFT_ prefix,
    with fallback to defaults defined here.

    Attributes
    ----------
    Provider Keys:
        openai_api_key, gemini_api_key, stability_api_key, replicate_api_key,
        openrouter_api_key, groq_api_key, xai_api_key : SecretStr | None
            Server-side credentials. Unset keys mean the provider is only
            reachable with a caller-supplied key.

    Dispatch Settings:
        intermediary_url : str
            Base URL of the trusted intermediary the dispatch client tries first
        request_timeout : float
            Per-request timeout for upstream HTTP calls, in seconds
        poll_interval : float
            Delay between job status polls, in seconds
        poll_max_attempts : int
            Polls before a job-based provider call times out

    Server Settings:
        rate_limit_window_seconds : int
            Rolling window for per-client rate limiting
        rate_limit_max_requests : int
            Requests allowed per client per window
        trust_forwarded_for : bool
            Key clients by the first X-Forwarded-For hop (only behind a
            proxy that overwrites the header)
        server_host : str
            Bind address for the intermediary
        server_port : int
            Bind port (1024-65535)
        app_title : str
            Application name sent to providers that want one (OpenRouter)
        app_referer : str
            Referer sent to OpenRouter

    Examples
    --------
        >>> custom = ListcraftConfig(poll_max_attempts=5, openai_api_key="sk-test")
        >>> custom.server_credentials().has(Provider.OPENAI)
        True
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="LISTCRAFT_",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # Provider keys
    openai_api_key: SecretStr | None = _key_field("openai")
    gemini_api_key: SecretStr | None = _key_field("gemini")
    stability_api_key: SecretStr | None = _key_field("stability")
    replicate_api_key: SecretStr | None = _key_field("replicate")
    openrouter_api_key: SecretStr | None = _key_field("openrouter")
    groq_api_key: SecretStr | None = _key_field("groq")
    xai_api_key: SecretStr | None = _key_field("xai")

    # Dispatch settings
    intermediary_url: str = Field(
        default="http://localhost:8000",
        description="Base URL of the trusted intermediary",
    )
    request_timeout: float = Field(
        default=120.0,
        description="Upstream HTTP timeout in seconds",
        gt=0,
    )
    poll_interval: float = Field(
        default=1.0,
        description="Seconds between job status polls",
        ge=0,
    )
    poll_max_attempts: int = Field(
        default=60,
        description="Job status polls before giving up",
        ge=1,
    )

    # Server settings
    rate_limit_window_seconds: int = Field(default=60, ge=1)
    rate_limit_max_requests: int = Field(default=100, ge=1)
    trust_forwarded_for: bool = Field(
        default=False,
        description="Rate-limit by X-Forwarded-For instead of the socket peer",
    )
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address (0.0.0.0 for local network)",
    )
    server_port: int = Field(
        default=8000,
        description="Server port",
        ge=1024,
        le=65535,
    )
    app_title: str = Field(default="Amazon Listing Enhancer AI")
    app_referer: str = Field(default="http://localhost:8000")

    def server_credentials(self) -> LocalCredentials:
        """Return the configured provider keys as a credential mapping."""
        keys = {}
        for provider in Provider:
            secret = getattr(self, f"{provider.value}_api_key")
            if secret is not None:
                keys[provider] = secret.get_secret_value()
        return LocalCredentials(keys)


# Global configuration instance
# Loads values from environment variables (LISTCRAFT_* prefix) and .env file.
config = ListcraftConfig()
