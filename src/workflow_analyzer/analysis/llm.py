"""Chat-completion client for the insight analyzer.

Targets OpenAI by default; configuring AZURE_OPENAI_ENDPOINT switches to
`openai.AzureOpenAI` with the model name used as the deployment.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from openai import AzureOpenAI, OpenAI

from ..config.settings import Settings

logger = logging.getLogger("workflow_analyzer.llm")


@dataclass(frozen=True)
class LLMConfig:
    api_key: str
    model: str = "gpt-4o"
    azure_endpoint: Optional[str] = None
    api_version: str = "2024-12-01-preview"

    @classmethod
    def from_settings(cls, settings: Settings) -> "LLMConfig":
        return cls(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            azure_endpoint=settings.azure_openai_endpoint,
            api_version=settings.azure_openai_api_version,
        )


class LLMClient:
    """Single-turn chat completions returning assistant text."""

    def __init__(self, config: LLMConfig, *, client: Any = None):
        self.config = config
        if client is not None:
            self._client = client
        elif config.azure_endpoint:
            self._client = AzureOpenAI(
                api_key=config.api_key,
                api_version=config.api_version,
                azure_endpoint=config.azure_endpoint.rstrip("/"),
            )
        else:
            self._client = OpenAI(api_key=config.api_key)

    def complete(
        self,
        prompt: str,
        *,
        max_tokens: int = 4000,
        temperature: float = 0.7,
        system: Optional[str] = None,
    ) -> str:
        messages: List[Dict[str, Any]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        logger.debug(
            "Calling chat completions model=%s prompt_chars=%d max_tokens=%d",
            self.config.model,
            len(prompt),
            max_tokens,
        )
        start = time.perf_counter()
        response = self._client.chat.completions.create(
            model=self.config.model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        elapsed_ms = (time.perf_counter() - start) * 1000

        usage = getattr(response, "usage", None)
        logger.info(
            "Chat completion finished ms=%.1f prompt_tokens=%s completion_tokens=%s",
            elapsed_ms,
            getattr(usage, "prompt_tokens", None),
            getattr(usage, "completion_tokens", None),
        )
        choices = getattr(response, "choices", None) or []
        if not choices:
            return ""
        message = getattr(choices[0], "message", None)
        return getattr(message, "content", None) or ""
