"""
Service layer - Provider selection for chat models and embeddings.

The active provider comes from an explicit ProviderConfig. The module-level
helpers build that config from the environment on every call, so nothing is
cached between requests.
"""
from typing import Any, Optional
import logging

from langchain_core.embeddings import Embeddings
from langchain_core.language_models import BaseChatModel
from langchain_google_genai import ChatGoogleGenerativeAI, GoogleGenerativeAIEmbeddings
from langchain_openai import ChatOpenAI, OpenAIEmbeddings

from config import ProviderConfig
from services.embeddings_logger import LoggingEmbeddings

logger = logging.getLogger(__name__)


class ProviderSelector:
    """Builds chat and embedding clients for the configured provider."""

    def __init__(self, config: ProviderConfig):
        self.config = config

    @property
    def provider(self) -> str:
        return self.config.provider

    def chat_model(
        self,
        temperature: float = 0.8,
        model_name: Optional[str] = None,
        **options: Any
    ) -> BaseChatModel:
        """
        Create a chat model for the configured provider.

        Args:
            temperature: Sampling temperature
            model_name: Overrides the provider's default model
            **options: Extra provider-specific constructor arguments

        Returns:
            ChatGoogleGenerativeAI or ChatOpenAI instance
        """
        model = model_name or self.config.default_chat_model

        if self.config.is_google:
            logger.info(f"Using Google Generative AI model: {model}")
            return ChatGoogleGenerativeAI(
                model=model,
                temperature=temperature,
                google_api_key=self.config.api_key,
                **options
            )

        logger.info(f"Using OpenAI model: {model}")
        return ChatOpenAI(
            model=model,
            temperature=temperature,
            openai_api_key=self.config.api_key,
            **options
        )

    def embeddings(
        self,
        model: Optional[str] = None,
        dimensions: Optional[int] = None
    ) -> Embeddings:
        """
        Create a logging-wrapped embeddings client for the configured provider.

        The dimensions option only applies to OpenAI models that support it.
        """
        model = model or self.config.default_embedding_model

        if self.config.is_google:
            logger.info(f"Using Google Generative AI embeddings: {model}")
            base = GoogleGenerativeAIEmbeddings(
                model=model,
                google_api_key=self.config.api_key
            )
        else:
            logger.info(f"Using OpenAI embeddings: {model}")
            kwargs = {"dimensions": dimensions} if dimensions else {}
            base = OpenAIEmbeddings(
                model=model,
                openai_api_key=self.config.api_key,
                **kwargs
            )

        return LoggingEmbeddings(base)


def current_selector() -> ProviderSelector:
    """Selector for the current environment snapshot."""
    return ProviderSelector(ProviderConfig.from_env())


def select_chat_model(
    temperature: float = 0.8,
    model_name: Optional[str] = None,
    **options: Any
) -> BaseChatModel:
    """Pick a chat model from the environment. Raises ConfigurationError."""
    return current_selector().chat_model(temperature, model_name, **options)


def select_embeddings(
    model: Optional[str] = None,
    dimensions: Optional[int] = None
) -> Embeddings:
    """Pick an embeddings client from the environment. Raises ConfigurationError."""
    return current_selector().embeddings(model=model, dimensions=dimensions)
