"""
Perplexity Adapter
Specialized for citation-rich responses
"""

from typing import List, Optional

import httpx

from app.config import get_settings
from .base import (
    BasePlatformAdapter,
    LLMConfig,
    PlatformResponse,
    PlatformId,
    ProviderResponseError,
    clean_url_list,
)

settings = get_settings()


class PerplexityAdapter(BasePlatformAdapter):
    """
    Adapter for Perplexity API
    Perplexity is especially valuable for GEO because it natively
    provides source citations in responses.
    """

    API_BASE = "https://api.perplexity.ai"

    SYSTEM_PROMPT = "Answer with sources."

    # Cost per 1K tokens (USD)
    PRICING = {
        "sonar": {"input": 0.001, "output": 0.001},
        "sonar-pro": {"input": 0.003, "output": 0.015},
    }

    def __init__(
        self,
        api_key: Optional[str] = None,
        config: Optional[LLMConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        max_concurrency: Optional[int] = None,
    ):
        super().__init__(
            api_key or settings.PERPLEXITY_API_KEY,
            config,
            transport,
            max_concurrency or settings.PROVIDER_MAX_CONCURRENCY,
        )

    @property
    def platform(self) -> PlatformId:
        return PlatformId.PERPLEXITY

    @property
    def default_model(self) -> str:
        return settings.PERPLEXITY_DEFAULT_MODEL

    async def _execute(self, question: str, cfg: LLMConfig) -> PlatformResponse:
        """Execute a single question"""
        # Perplexity uses OpenAI-compatible format
        payload = {
            "model": cfg.model,
            "messages": [
                {"role": "system", "content": self.SYSTEM_PROMPT},
                {"role": "user", "content": question},
            ],
            "temperature": cfg.temperature,
            "max_tokens": cfg.max_tokens,
            # Perplexity-specific: request citations
            "return_citations": True,
            "return_related_questions": False,
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
                "Missing choices in Perplexity response",
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
            cited_urls=tuple(self._extract_citations(data)),
            fetched_at=response_time,
            model=cfg.model,
            finish_reason=choice.get("finish_reason"),
            latency_ms=self._calculate_latency(request_time, response_time),
            usage=usage,
            estimated_cost_usd=self.estimate_cost(
                usage.prompt_tokens, usage.completion_tokens, cfg.model
            ),
        )

    @staticmethod
    def _extract_citations(data: dict) -> List[str]:
        """
        Perplexity returns citations as a flat URL list; newer models
        also (or only) return `search_results` objects.
        """
        citations = clean_url_list(data.get("citations"))
        if citations:
            return citations

        results = data.get("search_results")
        if not isinstance(results, list):
            return []
        return clean_url_list([r.get("url") for r in results if isinstance(r, dict)])
