"""OpenAI embeddings provider implementation."""

import logging
import os

import numpy as np
import openai
from openai import AsyncOpenAI

from ..embeddings.models import Embedding, ModelConfiguration
from ..errors import ProviderAuthError, ProviderError
from .base import EmbeddingProvider

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """OpenAI embeddings API provider.

    Retries are disabled on the client: a failed request is fatal to the run.
    """

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        client: AsyncOpenAI | None = None,
    ) -> None:
        """Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key. If not provided, reads from
                    OPENAI_API_KEY environment variable.
            timeout: Per-request timeout in seconds
            client: Preconfigured client, mainly for tests

        Raises:
            ProviderAuthError: If no API key is available.
        """
        self.timeout = timeout

        if client is not None:
            self._client = client
            return

        self._api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not self._api_key:
            raise ProviderAuthError(
                "OpenAI API key not found. Set OPENAI_API_KEY environment "
                "variable or provide api_key parameter."
            )

        self._client = AsyncOpenAI(
            api_key=self._api_key, timeout=timeout, max_retries=0
        )

    async def embed(self, text: str, config: ModelConfiguration) -> Embedding:
        """Request one embedding from the OpenAI API.

        Args:
            text: Text to embed
            config: Model name and optional dimensions to request

        Returns:
            Embedding as a float64 numpy array

        Raises:
            ProviderAuthError: If the API key is rejected
            ProviderError: On timeout, connection failure, error status
                or an empty response
        """
        logger.debug(f"Requesting embedding from {config.identifier} for '{text[:50]}'")

        try:
            response = await self._client.embeddings.create(
                input=text, **config.request_params()
            )
        except openai.AuthenticationError as e:
            raise ProviderAuthError(
                f"OpenAI rejected the API key: {e}", original_error=e
            ) from e
        except openai.APITimeoutError as e:
            raise ProviderError(
                f"OpenAI request timed out after {self.timeout}s", original_error=e
            ) from e
        except openai.APIConnectionError as e:
            raise ProviderError(
                f"Could not reach OpenAI: {e}", original_error=e
            ) from e
        except openai.APIStatusError as e:
            raise ProviderError(
                f"OpenAI API error: {e}",
                status_code=e.status_code,
                original_error=e,
            ) from e

        if not response.data or not response.data[0].embedding:
            raise ProviderError(
                f"OpenAI returned no embedding for model {config.identifier}"
            )

        return np.asarray(response.data[0].embedding, dtype=np.float64)
