"""
OpenAI (ChatGPT) Adapter
"""

from typing import Optional

import httpx

from app.config import get_settings
from .base import (
    BasePlatformAdapter,
    LLMConfig,
    PlatformResponse,
    PlatformId,
    ProviderResponseError,
)

settings = get_settings()


class OpenAIAdapter(BasePlatformAdapter):
    """
    Adapter for OpenAI ChatGPT API.
    The chat completions API returns no sources, so `cited_urls` is
    always empty and visibility comes from the answer text alone.
    """

    API_BASE = "https://api.openai.com/v1"

    SYSTEM_PROMPT = (
        "You are a helpful assistant answering questions. If you know of "
        "specific websites or sources that are authoritative on this topic, "
        "mention them by name and domain."
    )

    # Cost per 1K tokens (USD)
    PRICING = {
        "gpt-4o-mini": {"input": 0.00015, "output": 0.0006},
        "gpt-4o": {"input": 0.0025, "output": 0.01},
        "gpt-4-turbo": {"input": 0.01, "output": 0.03},
    }

    def __init__(
        self,
        api_key: Optional[str] = None,
        config: Optional[LLMConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        max_concurrency: Optional[int] = None,
    ):
        super().__init__(
            api_key or settings.OPENAI_API_KEY,
            config,
            transport,
            max_concurrency or settings.PROVIDER_MAX_CONCURRENCY,
        )

    @property
    def platform(self) -> PlatformId:
        return PlatformId.CHATGPT

    @property
    def default_model(self) -> str:
        return settings.OPENAI_DEFAULT_MODEL

    async def _execute(self, question: str, cfg: LLMConfig) -> PlatformResponse:
        """Execute a single question"""
        payload = {
            "model": cfg.model,
            "messages": [
                {"role": "system", "content": self.SYSTEM_PROMPT},
                {"role": "user", "content": question},
            ],
            "temperature": cfg.temperature,
            "max_tokens": cfg.max_tokens,
        }

        if cfg.top_p is not None:
            payload["top_p"] = cfg.top_p
        payload.update(cfg.extra_params)

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        data, request_time, response_time = await self._post(
            f"{self.API_BASE}/chat/completions", payload, headers, cfg
        )

        try:
            choice = data["choices"][0]
            content = choice["message"].get("content") or ""
        except (KeyError, IndexError, TypeError, AttributeError):
            raise ProviderResponseError(
                "Missing choices in OpenAI response",
                self.platform,
                {"response": data}
            )

        usage_data = data.get("usage") or {}
        usage = self._usage(
            usage_data.get("prompt_tokens"),
            usage_data.get("completion_tokens"),
            usage_data.get("total_tokens"),
        )

        return PlatformResponse(
            platform=self.platform,
            query=question,
            raw_text=content,
            cited_urls=(),
            fetched_at=response_time,
            model=cfg.model,
            finish_reason=choice.get("finish_reason"),
            latency_ms=self._calculate_latency(request_time, response_time),
            usage=usage,
            estimated_cost_usd=self.estimate_cost(
                usage.prompt_tokens, usage.completion_tokens, cfg.model
            ),
        )
