"""
Base Platform Adapter Interface
All AI platforms must implement this interface
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from enum import Enum

import httpx

from app.utils.domain import validate_domain, validate_question

logger = logging.getLogger(__name__)


class PlatformId(str, Enum):
    """Supported AI platforms"""
    PERPLEXITY = "perplexity"
    GOOGLE_AI = "google_ai"
    CHATGPT = "chatgpt"


@dataclass
class LLMConfig:
    """Configuration for a provider request"""
    model: str
    temperature: float = 0.2
    max_tokens: int = 1000
    timeout: int = 25  # seconds
    max_retries: int = 1
    retry_delay: float = 1.5  # seconds
    top_p: Optional[float] = None
    extra_params: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class LLMUsage:
    """Token usage information"""
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass(frozen=True)
class PlatformResponse:
    """Normalized answer from one platform to one question"""
    platform: PlatformId
    query: str
    raw_text: str
    cited_urls: Tuple[str, ...] = ()
    fetched_at: datetime = field(default_factory=datetime.utcnow)

    # Metadata
    model: Optional[str] = None
    finish_reason: Optional[str] = None
    latency_ms: Optional[int] = None
    usage: Optional[LLMUsage] = None
    estimated_cost_usd: Optional[float] = None


class ProviderError(Exception):
    """Base exception for platform adapter errors"""
    retryable = False

    def __init__(self, message: str, platform: PlatformId, details: Optional[Dict] = None):
        super().__init__(message)
        self.platform = platform
        self.details = details or {}


class ProviderRateLimitError(ProviderError):
    """Rate limit exceeded"""
    retryable = True


class ProviderAuthenticationError(ProviderError):
    """Authentication failed"""
    pass


class ProviderTimeoutError(ProviderError):
    """Request timed out"""
    retryable = True


class ProviderUnavailableError(ProviderError):
    """Network failure or provider-side 5xx"""
    retryable = True


class ProviderResponseError(ProviderError):
    """Provider answered with a payload we cannot read"""
    pass


class ProviderNotConfiguredError(ProviderError):
    """No API key configured for this platform"""
    pass


class BasePlatformAdapter(ABC):
    """
    Abstract base class for platform adapters.
    Each platform (Perplexity, Google AI, ChatGPT) implements `_execute`;
    validation, retries and concurrency limits live here.
    """

    # Cost per 1K tokens (USD), keyed by model
    PRICING: Dict[str, Dict[str, float]] = {}

    def __init__(
        self,
        api_key: Optional[str] = None,
        config: Optional[LLMConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        max_concurrency: int = 5,
    ):
        self.api_key = api_key
        self.config = config
        self.transport = transport
        self._semaphore = asyncio.Semaphore(max(1, max_concurrency))

    @property
    @abstractmethod
    def platform(self) -> PlatformId:
        """Return the platform this adapter talks to"""
        pass

    @property
    @abstractmethod
    def default_model(self) -> str:
        """Return the default model for this platform"""
        pass

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    @abstractmethod
    async def _execute(self, question: str, cfg: LLMConfig) -> PlatformResponse:
        """
        Send one question to the provider.

        Raises:
            ProviderError: On HTTP, auth, rate-limit or payload failures
        """
        pass

    def default_config(self) -> LLMConfig:
        return LLMConfig(model=self.default_model)

    async def query(
        self,
        domain: str,
        question: str,
        timeout: Optional[float] = None,
    ) -> PlatformResponse:
        """
        Ask the platform a question about a domain.

        Args:
            domain: Bare hostname the scan is about
            question: Natural-language question to send
            timeout: Overall budget in seconds for the call and its retry.
                The clock starts once a concurrency slot is acquired, so
                time spent queued behind other calls is not counted.

        Returns:
            PlatformResponse with raw text and any cited URLs

        Raises:
            InvalidInputError: Before any network call, for bad input
            ProviderTimeoutError: If the call overruns `timeout`
            ProviderError: After at most one retry
        """
        validate_domain(domain)
        question = validate_question(question)

        if not self.is_configured:
            raise ProviderNotConfiguredError(
                f"No API key configured for {self.platform.value}",
                self.platform,
            )

        cfg = self.config or self.default_config()

        async with self._semaphore:
            if timeout is None:
                return await self._query_with_retry(question, cfg)
            try:
                return await asyncio.wait_for(
                    self._query_with_retry(question, cfg), timeout=timeout
                )
            except asyncio.TimeoutError:
                raise ProviderTimeoutError(
                    f"Timed out after {timeout}s",
                    self.platform,
                    {"timeout": timeout},
                )

    async def _query_with_retry(self, question: str, cfg: LLMConfig) -> PlatformResponse:
        attempts = 1 + max(0, min(cfg.max_retries, 1))

        for attempt in range(1, attempts + 1):
            try:
                return await self._execute(question, cfg)
            except ProviderError as e:
                if not e.retryable or attempt >= attempts:
                    raise
                delay = cfg.retry_delay * attempt
                logger.warning(
                    f"{self.platform.value} call failed ({e}); retrying in {delay:.1f}s"
                )
                await asyncio.sleep(delay)

        # Unreachable: the loop either returns or raises
        raise ProviderError("Retry loop exhausted", self.platform)

    def estimate_cost(self, input_tokens: int, output_tokens: int, model: Optional[str] = None) -> float:
        """Estimate cost based on token counts"""
        model = model or self.default_model
        pricing = self.PRICING.get(model)
        if pricing is None:
            return 0.0
        input_cost = (input_tokens / 1000) * pricing["input"]
        output_cost = (output_tokens / 1000) * pricing["output"]
        return input_cost + output_cost

    def _client(self, cfg: LLMConfig) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=cfg.timeout, transport=self.transport)

    def _raise_for_status(self, response: httpx.Response) -> None:
        """Map provider HTTP status codes onto the ProviderError family"""
        status = response.status_code
        if status in (401, 403):
            raise ProviderAuthenticationError(
                "Invalid API key",
                self.platform,
                {"status_code": status}
            )
        elif status == 429:
            raise ProviderRateLimitError(
                "Rate limit exceeded",
                self.platform,
                {"status_code": status, "retry_after": response.headers.get("retry-after")}
            )
        elif status >= 500:
            raise ProviderUnavailableError(
                f"Provider error {status}",
                self.platform,
                {"status_code": status, "response": response.text[:500]}
            )
        elif status != 200:
            raise ProviderError(
                f"API error: {response.text[:500]}",
                self.platform,
                {"status_code": status, "response": response.text[:500]}
            )

    def _parse_json(self, response: httpx.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            raise ProviderResponseError(
                "Response body is not JSON",
                self.platform,
                {"response": response.text[:500]}
            )
        if not isinstance(data, dict):
            raise ProviderResponseError(
                "Unexpected response shape",
                self.platform,
                {"response": data}
            )
        return data

    async def _post(
        self,
        url: str,
        payload: Dict[str, Any],
        headers: Dict[str, str],
        cfg: LLMConfig,
    ) -> Tuple[Dict[str, Any], datetime, datetime]:
        """POST a JSON payload and return (data, request_time, response_time)"""
        request_time = datetime.utcnow()
        try:
            async with self._client(cfg) as client:
                response = await client.post(url, json=payload, headers=headers)
        except httpx.TimeoutException:
            raise ProviderTimeoutError(
                f"Request timed out after {cfg.timeout}s",
                self.platform,
            )
        except httpx.RequestError as e:
            raise ProviderUnavailableError(
                f"Request failed: {str(e)}",
                self.platform,
            )

        response_time = datetime.utcnow()
        self._raise_for_status(response)
        return self._parse_json(response), request_time, response_time

    @staticmethod
    def _usage(prompt_tokens: Any, completion_tokens: Any, total_tokens: Any) -> LLMUsage:
        return LLMUsage(
            prompt_tokens=int(prompt_tokens or 0),
            completion_tokens=int(completion_tokens or 0),
            total_tokens=int(total_tokens or 0),
        )

    def _calculate_latency(self, start: datetime, end: datetime) -> int:
        """Calculate latency in milliseconds"""
        return int((end - start).total_seconds() * 1000)


def clean_url_list(urls: Any) -> List[str]:
    """Keep only non-empty string URLs, preserving provider order"""
    if not isinstance(urls, list):
        return []
    return [u.strip() for u in urls if isinstance(u, str) and u.strip()]
