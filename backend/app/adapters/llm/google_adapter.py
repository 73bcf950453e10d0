"""
Google AI (Gemini) Adapter
Uses Google Search grounding so answers carry source URLs
"""

from typing import Any, Dict, List, Optional

import httpx

from app.config import get_settings
from .base import (
    BasePlatformAdapter,
    LLMConfig,
    PlatformResponse,
    PlatformId,
    ProviderError,
    ProviderResponseError,
    clean_url_list,
)

settings = get_settings()


class GoogleAdapter(BasePlatformAdapter):
    """Adapter for Google Gemini API"""

    API_BASE = "https://generativelanguage.googleapis.com/v1beta"

    # Cost per 1K tokens (USD)
    PRICING = {
        "gemini-2.5-flash": {"input": 0.0003, "output": 0.0025},
        "gemini-2.5-pro": {"input": 0.00125, "output": 0.01},
        "gemini-1.5-pro": {"input": 0.00125, "output": 0.005},
        "gemini-1.5-flash": {"input": 0.000075, "output": 0.0003},
    }

    def __init__(
        self,
        api_key: Optional[str] = None,
        config: Optional[LLMConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        max_concurrency: Optional[int] = None,
    ):
        super().__init__(
            api_key or settings.GOOGLE_AI_API_KEY,
            config,
            transport,
            max_concurrency or settings.PROVIDER_MAX_CONCURRENCY,
        )

    @property
    def platform(self) -> PlatformId:
        return PlatformId.GOOGLE_AI

    @property
    def default_model(self) -> str:
        return settings.GOOGLE_DEFAULT_MODEL

    async def _execute(self, question: str, cfg: LLMConfig) -> PlatformResponse:
        """Execute a single question with search grounding"""
        payload: Dict[str, Any] = {
            "contents": [
                {"role": "user", "parts": [{"text": question}]}
            ],
            "tools": [
                {"google_search": {}}
            ],
            "generationConfig": {
                "temperature": cfg.temperature,
                "maxOutputTokens": cfg.max_tokens,
            },
        }

        if cfg.top_p is not None:
            payload["generationConfig"]["topP"] = cfg.top_p
        payload.update(cfg.extra_params)

        url = f"{self.API_BASE}/models/{cfg.model}:generateContent"
        headers = {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }

        data, request_time, response_time = await self._post(url, payload, headers, cfg)

        # Check for errors in response
        if "error" in data:
            error = data["error"] if isinstance(data["error"], dict) else {}
            raise ProviderError(
                error.get("message", "Unknown error"),
                self.platform,
                {"error": data["error"]}
            )

        candidates = data.get("candidates") or []
        if not isinstance(candidates, list):
            raise ProviderResponseError(
                "Malformed candidates in Gemini response",
                self.platform,
                {"response": data}
            )

        # A blocked or empty answer is a valid, empty response
        content = ""
        cited_urls: List[str] = []
        finish_reason = None
        if candidates:
            candidate = candidates[0] if isinstance(candidates[0], dict) else {}
            for part in (candidate.get("content") or {}).get("parts") or []:
                if isinstance(part, dict) and "text" in part:
                    content += part["text"]
            cited_urls = self._extract_grounding_urls(candidate)
            finish_reason = candidate.get("finishReason")

        usage_metadata = data.get("usageMetadata") or {}
        usage = self._usage(
            usage_metadata.get("promptTokenCount"),
            usage_metadata.get("candidatesTokenCount"),
            usage_metadata.get("totalTokenCount"),
        )

        return PlatformResponse(
            platform=self.platform,
            query=question,
            raw_text=content,
            cited_urls=tuple(cited_urls),
            fetched_at=response_time,
            model=cfg.model,
            finish_reason=finish_reason,
            latency_ms=self._calculate_latency(request_time, response_time),
            usage=usage,
            estimated_cost_usd=self.estimate_cost(
                usage.prompt_tokens, usage.completion_tokens, cfg.model
            ),
        )

    @staticmethod
    def _extract_grounding_urls(candidate: Dict[str, Any]) -> List[str]:
        """Pull web source URIs out of groundingMetadata.groundingChunks"""
        metadata = candidate.get("groundingMetadata") or {}
        chunks = metadata.get("groundingChunks") or []
        uris = []
        for chunk in chunks:
            if not isinstance(chunk, dict):
                continue
            web = chunk.get("web") or {}
            uris.append(web.get("uri"))
        return clean_url_list(uris)
