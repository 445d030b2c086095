"""
Generator - The LLM gateway, backed by Ollama.

This module wraps the chat model behind one call:

    generate(prompt, max_tokens, temperature) -> text

It is shared by the answer synthesizer and the quiz generator. Provider
failures are translated into ServiceUnavailable / InvalidResponse and are
never retried here.
"""

import logging

import httpx
import ollama

from notes_tutor.config import (
    GENERATION_TIMEOUT_SECONDS,
    OLLAMA_BASE_URL,
    OLLAMA_MODEL,
    SYSTEM_PROMPT,
)
from notes_tutor.errors import InvalidResponse, ServiceUnavailable

logger = logging.getLogger(__name__)


class Generator:
    """
    Generates text using an Ollama chat model.

    Example:
        generator = Generator()
        text = generator.generate("Explain fractions.", max_tokens=300, temperature=0.2)
    """

    def __init__(
        self,
        model: str | None = None,
        host: str | None = None,
        timeout: float | None = None,
        client: ollama.Client | None = None,
    ):
        """
        Initialize the generator.

        Args:
            model: Ollama model name (uses config default if not provided)
            host: Ollama base URL
            timeout: Seconds before a call is abandoned and reported as unavailable
            client: Pre-built ollama.Client (mainly for tests)
        """
        self.model = model or OLLAMA_MODEL
        self.timeout = timeout or GENERATION_TIMEOUT_SECONDS
        self._client = client or ollama.Client(host=host or OLLAMA_BASE_URL, timeout=self.timeout)

    def check_available(self) -> bool:
        """
        Check if Ollama is running and the model is pulled.

        Only logs; callers decide what to do with the answer.
        """
        try:
            response = self._client.list()
        except (ollama.ResponseError, httpx.HTTPError, ConnectionError) as exc:
            logger.warning("Cannot connect to Ollama: %s (is `ollama serve` running?)", exc)
            return False

        available = []
        for entry in response.models:
            name = entry.model or ""
            if name:
                available.append(name.split(":")[0])

        if available and self.model.split(":")[0] not in available:
            logger.warning(
                "Model '%s' not found. Available: %s. Run: ollama pull %s",
                self.model,
                available,
                self.model,
            )
            return False
        return True

    def generate(
        self,
        prompt: str,
        max_tokens: int,
        temperature: float,
        system: str | None = None,
    ) -> str:
        """
        Send one prompt and return the model's reply.

        Args:
            prompt: The full user prompt
            max_tokens: Upper bound on generated tokens
            temperature: Sampling temperature
            system: Override default system prompt

        Returns:
            The generated text

        Raises:
            ServiceUnavailable: Ollama is unreachable, timed out or errored
            InvalidResponse: The reply had no text
        """
        messages = [
            {"role": "system", "content": system or SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]

        logger.debug("Calling %s with prompt: %s...", self.model, prompt[:100])
        try:
            response = self._client.chat(
                model=self.model,
                messages=messages,
                options={"num_predict": max_tokens, "temperature": temperature},
            )
        except ollama.ResponseError as exc:
            raise ServiceUnavailable(f"Ollama returned an error: {exc.error}") from exc
        except httpx.TimeoutException as exc:
            raise ServiceUnavailable(
                f"Ollama did not answer within {self.timeout:.0f} seconds"
            ) from exc
        except (httpx.HTTPError, ConnectionError) as exc:
            raise ServiceUnavailable("Cannot connect to Ollama") from exc

        message = response["message"] if response else None
        content = message["content"] if message else None
        if not content or not content.strip():
            raise InvalidResponse(f"Model {self.model} returned an empty reply")
        return content
