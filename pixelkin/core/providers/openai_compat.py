"""OpenAI-compatible design provider.

Works against any endpoint implementing the Chat Completions API
(OpenAI itself, OpenRouter). Uses ``openai.OpenAI(base_url=...)``.
The assistant reply is treated as JSON text: code fences are stripped and
the outermost object is recovered when the model adds prose around it.
"""

import json
import logging
import random
import time
from typing import Any

import openai
from openai import OpenAI

from ...utils.json_text import parse_json_lenient, strip_code_fence
from ..models import PromptBundle
from .base import DesignProvider, DesignProviderError
from .logging import log_request_response

_TRANSIENT_ERRORS = (
    openai.APIConnectionError,
    openai.InternalServerError,
    openai.RateLimitError,
)
_MAX_API_RETRIES = 3

logger = logging.getLogger(__name__)


class OpenAICompatProvider(DesignProvider):
    """Chat Completions provider for OpenAI and OpenRouter.

    ``timeout_seconds`` of 0 disables the request timeout. OpenRouter
    attribution headers are sent only when ``provider_label`` is
    "openrouter". The ``json_object`` response format is requested only
    from OpenAI, which is the one endpoint known to honour it.
    """

    def __init__(
        self,
        api_key: str = "",
        *,
        model: str,
        base_url: str = "",
        provider_label: str = "openai",
        timeout_seconds: float = 120.0,
        site_url: str = "",
        app_name: str = "",
        log_requests: bool = False,
        logs_dir: str = "./logs",
        max_retries: int = _MAX_API_RETRIES,
    ) -> None:
        if not api_key:
            raise ValueError(
                f"API key not found for {provider_label}. "
                f"Set it as an environment variable."
            )
        super().__init__(model)
        self._api_key = api_key
        self._base_url = base_url
        self.provider_name = provider_label
        self._timeout = timeout_seconds if timeout_seconds > 0 else None
        self._site_url = site_url
        self._app_name = app_name
        self._log_requests = log_requests
        self._logs_dir = logs_dir
        self._max_retries = max_retries
        self._client: OpenAI | None = None

    def _default_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self.provider_name == "openrouter":
            if self._site_url:
                headers["HTTP-Referer"] = self._site_url
            if self._app_name:
                headers["X-Title"] = self._app_name
        return headers

    def _get_client(self) -> OpenAI:
        if self._client is None:
            kwargs: dict = {"api_key": self._api_key, "timeout": self._timeout}
            if self._base_url:
                kwargs["base_url"] = self._base_url.rstrip("/")
            headers = self._default_headers()
            if headers:
                kwargs["default_headers"] = headers
            self._client = OpenAI(**kwargs)
        return self._client

    def _build_params(
        self,
        prompt: PromptBundle,
        temperature: float,
        max_tokens: int | None,
    ) -> dict:
        """Build Chat Completions API request parameters."""
        params: dict = {
            "model": self.model,
            "temperature": temperature,
            "messages": [
                {"role": "system", "content": prompt.system},
                {"role": "user", "content": prompt.user_message()},
            ],
        }
        if max_tokens is not None:
            params["max_tokens"] = max_tokens
        if self.provider_name == "openai":
            params["response_format"] = {"type": "json_object"}
        return params

    @staticmethod
    def _extract_text(response) -> str:
        """Assistant text from a string or a list of content parts."""
        if not response.choices:
            raise DesignProviderError("Missing choices")
        content = response.choices[0].message.content

        if isinstance(content, str) and content.strip():
            return content

        if isinstance(content, list):
            parts = []
            for part in content:
                if isinstance(part, str):
                    parts.append(part)
                elif isinstance(part, dict) and isinstance(part.get("text"), str):
                    parts.append(part["text"])
                elif isinstance(getattr(part, "text", None), str):
                    parts.append(part.text)
            merged = "".join(parts).strip()
            if merged:
                return merged

        raise DesignProviderError("Missing assistant JSON content")

    def _with_retry(self, fn):
        """Retry on transient errors with exponential backoff."""
        max_retries = self._max_retries
        for attempt in range(max_retries + 1):
            try:
                return fn()
            except _TRANSIENT_ERRORS as e:
                if attempt == max_retries:
                    raise
                wait = (2**attempt) + random.random()
                lbl = self.provider_name
                att = f"{attempt + 1}/{max_retries + 1}"
                logger.warning(
                    f"[{lbl}] Transient error ({att}): "
                    f"{type(e).__name__}: {e}. "
                    f"Retrying in {wait:.1f}s"
                )
                time.sleep(wait)

    def complete_json(
        self,
        prompt: PromptBundle,
        *,
        temperature: float = 0.2,
        max_tokens: int | None = None,
        log: bool = True,
    ) -> Any:
        client = self._get_client()
        params = self._build_params(prompt, temperature, max_tokens)
        lbl = self.provider_name
        logger.info(f"[{lbl}] complete_json model={self.model}")

        api_start = time.time()
        try:
            response = self._with_retry(
                lambda: client.chat.completions.create(**params)
            )
        except openai.APITimeoutError as e:
            raise DesignProviderError(
                f"{lbl} request timed out after {self._timeout}s"
            ) from e
        except openai.APIStatusError as e:
            detail = str(e)[:220]
            raise DesignProviderError(
                f"{lbl.upper()} HTTP {e.status_code}: {detail}"
            ) from e
        except openai.OpenAIError as e:
            raise DesignProviderError(f"{lbl} request failed: {e}") from e
        logger.info(f"[{lbl}] API response in {time.time() - api_start:.2f}s")

        if log and self._log_requests:
            log_request_response(
                function_name="complete_json",
                request=params,
                response=response,
                provider=lbl,
                logs_dir=self._logs_dir,
            )

        text = self._extract_text(response)
        try:
            return parse_json_lenient(strip_code_fence(text))
        except json.JSONDecodeError as e:
            raise DesignProviderError(f"{lbl} returned invalid JSON: {e}") from e

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
