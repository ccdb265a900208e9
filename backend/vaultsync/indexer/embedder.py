"""Embedding providers (OpenAI-compatible and Ollama)"""

import logging
import random
import time
from typing import Callable, Protocol, TypeVar

import httpx

from ..config import get_settings

T = TypeVar("T")

logger = logging.getLogger(__name__)

_RETRYABLE_NAMES = {
    "ratelimiterror",
    "apitimeouterror",
    "apiconnectionerror",
    "internalservererror",
}
_RETRYABLE_MESSAGES = ("rate limit", "too many requests", "429", "502", "503", "504", "timed out")


def _is_retryable(exc: Exception) -> bool:
    if isinstance(exc, (httpx.TimeoutException, httpx.TransportError)):
        return True
    if exc.__class__.__name__.lower() in _RETRYABLE_NAMES:
        return True
    message = str(exc).lower()
    return any(token in message for token in _RETRYABLE_MESSAGES)


def retry_with_backoff(
    operation: Callable[[], T],
    *,
    max_retries: int = 5,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Run ``operation`` retrying rate-limit and transport failures.

    Other errors are raised immediately. The last failure is raised once
    ``max_retries`` attempts have been made.
    """
    for attempt in range(max_retries):
        try:
            return operation()
        except Exception as exc:
            if not _is_retryable(exc) or attempt >= max_retries - 1:
                raise
            delay = min(max_delay, base_delay * (2 ** attempt))
            delay += random.uniform(0, base_delay)
            logger.warning(
                "Embedding request failed (%s), retry %d/%d in %.1fs",
                exc, attempt + 1, max_retries - 1, delay,
            )
            sleep(delay)
    raise RuntimeError("max_retries must be at least 1")


class EmbeddingProvider(Protocol):
    """Protocol for embedding providers"""

    def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for texts"""
        ...


class OpenAIEmbedding:
    """OpenAI (or OpenAI-compatible) embedding provider"""

    batch_size = 100

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
    ):
        settings = get_settings()
        self.api_key = api_key or settings.openai_api_key
        self.model = model or settings.embedding_model
        self.base_url = base_url or settings.openai_base_url

        if not self.api_key:
            raise ValueError("OpenAI API key is required")

    def embed(self, texts: list[str]) -> list[list[float]]:
        import openai

        client = openai.OpenAI(api_key=self.api_key, base_url=self.base_url)

        all_embeddings = []
        for i in range(0, len(texts), self.batch_size):
            batch = texts[i:i + self.batch_size]
            response = retry_with_backoff(
                lambda: client.embeddings.create(input=batch, model=self.model)
            )
            all_embeddings.extend(item.embedding for item in response.data)

        return all_embeddings


class OllamaEmbedding:
    """Ollama embedding provider"""

    def __init__(self, base_url: str | None = None, model: str | None = None):
        settings = get_settings()
        self.base_url = base_url or settings.ollama_base_url
        self.model = model or "nomic-embed-text"

    def embed(self, texts: list[str]) -> list[list[float]]:
        embeddings = []

        with httpx.Client(base_url=self.base_url, timeout=60.0) as client:
            for text in texts:
                def _request():
                    response = client.post(
                        "/api/embeddings",
                        json={"model": self.model, "prompt": text},
                    )
                    response.raise_for_status()
                    return response.json()

                data = retry_with_backoff(_request)
                embeddings.append(data["embedding"])

        return embeddings


def get_embedding_provider() -> EmbeddingProvider:
    """Get embedding provider based on settings"""
    settings = get_settings()

    if settings.embedding_provider == "openai":
        return OpenAIEmbedding()
    elif settings.embedding_provider == "ollama":
        return OllamaEmbedding()
    else:
        raise ValueError(f"Unknown embedding provider: {settings.embedding_provider}")
