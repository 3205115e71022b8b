"""
Configuration module for loading application settings.

Single Responsibility: This module is solely responsible for loading
and validating configuration from environment variables. Nothing here is
cached; callers build a fresh config per request.
"""

import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

from domain.errors import ConfigurationError

GOOGLE = "google"
OPENAI = "openai"

# Checked in order: the first variable present in the environment wins.
PROVIDER_CREDENTIALS = (
    (GOOGLE, "GOOGLE_API_KEY"),
    (OPENAI, "OPENAI_API_KEY"),
)

DEFAULT_CHAT_MODELS = {
    GOOGLE: "gemini-1.5-flash",
    OPENAI: "gpt-4o-mini",
}

DEFAULT_EMBEDDING_MODELS = {
    GOOGLE: "models/embedding-001",
    OPENAI: "text-embedding-3-small",
}

DEMO_MODE_MESSAGE = "\n".join([
    "Ingest is not supported in demo mode.",
    "Please set up your own deployment of this service to ingest documents.",
])


def _is_truthy(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class ProviderConfig:
    """
    Which LLM/embedding provider is active.

    Attributes:
        provider: "google" or "openai".
        api_key: Credential for the selected provider.
        credential_var: Name of the environment variable the key came from.
    """
    provider: str
    api_key: str
    credential_var: str

    @property
    def default_chat_model(self) -> str:
        return DEFAULT_CHAT_MODELS[self.provider]

    @property
    def default_embedding_model(self) -> str:
        return DEFAULT_EMBEDDING_MODELS[self.provider]

    @property
    def is_google(self) -> bool:
        return self.provider == GOOGLE

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ProviderConfig":
        """
        Resolve the provider from an environment snapshot.

        Args:
            environ: Mapping to read from. Defaults to os.environ.

        Returns:
            ProviderConfig for the first credential variable present.

        Raises:
            ConfigurationError: If no credential variable is present, or the
                first one present is empty.
        """
        env = os.environ if environ is None else environ

        for provider, var_name in PROVIDER_CREDENTIALS:
            if var_name not in env:
                continue
            api_key = (env.get(var_name) or "").strip()
            if not api_key:
                raise ConfigurationError(f"{var_name} is set but empty.")
            return cls(provider=provider, api_key=api_key, credential_var=var_name)

        names = " or ".join(var for _, var in PROVIDER_CREDENTIALS)
        raise ConfigurationError(
            f"No API key found for OpenAI or Google Generative AI. "
            f"Please set {names} in your .env file."
        )


@dataclass
class AppConfig:
    """
    Application-level settings.

    Attributes:
        demo_mode: Reject ingestion when true.
        log_level: Root logging level name.
        cors_origins: Allowed browser origins.
    """
    demo_mode: bool = False
    log_level: str = "INFO"
    cors_origins: List[str] = field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:5173"]
    )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AppConfig":
        """Load application settings from environment variables."""
        env = os.environ if environ is None else environ
        config = cls(
            demo_mode=_is_truthy(env.get("DEMO_MODE")),
            log_level=env.get("LOG_LEVEL", cls.log_level).upper(),
        )
        if origins := env.get("CORS_ORIGINS"):
            config.cors_origins = [o.strip() for o in origins.split(",") if o.strip()]
        return config
