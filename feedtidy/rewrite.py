"""Client for the generative rewriting service.

Talks to any OpenAI-compatible ``/chat/completions`` endpoint (Mistral by
default).  Uses httpx for HTTP and tenacity for retry-on-error.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from feedtidy.settings import Settings

logger = logging.getLogger(__name__)


class RewriteError(RuntimeError):
    """The service failed or answered with something unusable."""


class ConfigurationError(RuntimeError):
    """A setting required for rewriting is missing."""


def _is_retryable(exc: BaseException) -> bool:
    """Return True for transient errors that should be retried."""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in (429, 500, 502, 503, 504)
    return isinstance(exc, (httpx.ConnectError, httpx.ReadTimeout))


def load_prompt(path: str | Path) -> str:
    """Read the instruction prompt sent ahead of each article."""
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read prompt file {path}: {exc}") from exc


class RewriteClient:
    """Synchronous chat-completions client.

    Retries on 429 / 5xx responses and connection failures with exponential
    backoff; anything else surfaces as :class:`RewriteError`.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str = "https://api.mistral.ai/v1",
        timeout: float = 60.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        if not api_key:
            raise ConfigurationError("rewrite API key is not set")
        if not model:
            raise ConfigurationError("rewrite model is not set")
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = http_client or httpx.Client(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> RewriteClient:
        return cls(
            api_key=settings.rewrite_api_key,
            model=settings.rewrite_model,
            base_url=settings.rewrite_base_url,
            timeout=float(settings.request_timeout),
        )

    # ------------------------------------------------------------------
    # Chat completions
    # ------------------------------------------------------------------

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4.0),
        retry=retry_if_exception(_is_retryable),
        reraise=True,
    )
    def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        response = self._client.post(
            f"{self.base_url}/chat/completions",
            json=payload,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
        )
        response.raise_for_status()
        return response.json()

    def rewrite(self, prompt: str, content: str) -> str:
        """Send *prompt* followed by *content*; return the model's answer.

        Raises:
            RewriteError: On HTTP failure or a response without a message.
        """
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": f"{prompt} \n {content}"}],
        }
        try:
            data = self._post(payload)
        except httpx.HTTPError as exc:
            raise RewriteError(f"rewrite request failed: {exc}") from exc
        except ValueError as exc:
            raise RewriteError(f"rewrite response is not JSON: {exc}") from exc

        try:
            message = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise RewriteError("rewrite response has no message content") from exc
        if not isinstance(message, str):
            raise RewriteError("rewrite response content is not text")
        logger.debug("rewrite: %d chars in, %d chars out", len(content), len(message))
        return message

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> RewriteClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
