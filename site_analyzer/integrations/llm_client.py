"""Async OpenAI chat client used for AI recommendations."""

import asyncio
import hashlib
import logging
import os
import time
from collections import OrderedDict
from dataclasses import asdict, dataclass
from typing import Any, Optional

import openai

logger = logging.getLogger(__name__)

# USD per 1k tokens (input, output)
MODEL_PRICING: dict[str, tuple[float, float]] = {
    "gpt-4o-mini": (0.00015, 0.0006),
    "gpt-4o": (0.0025, 0.01),
}


@dataclass
class TokenUsage:
    requests: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    cost_usd: float = 0.0

    def record(self, model: str, input_tokens: int, output_tokens: int) -> float:
        price_in, price_out = MODEL_PRICING.get(model, MODEL_PRICING["gpt-4o-mini"])
        cost = input_tokens / 1000 * price_in + output_tokens / 1000 * price_out
        self.requests += 1
        self.input_tokens += input_tokens
        self.output_tokens += output_tokens
        self.cost_usd += cost
        return cost


class PromptCache:
    """LRU cache of answers with a time-to-live.

    Reports of the same page within the TTL produce the same prompt, so
    repeated ``recommend`` runs reuse the earlier answer.
    """

    def __init__(self, ttl_hours: float = 24, max_entries: int = 256) -> None:
        self._ttl = ttl_hours * 3600
        self._max_entries = max_entries
        self._entries: OrderedDict[str, tuple[float, str]] = OrderedDict()

    @staticmethod
    def key(*parts: Any) -> str:
        return hashlib.sha256("\x1f".join(str(p) for p in parts).encode("utf-8")).hexdigest()

    def lookup(self, key: str) -> Optional[str]:
        hit = self._entries.get(key)
        if hit is None:
            return None
        stored_at, answer = hit
        if time.monotonic() - stored_at > self._ttl:
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return answer

    def store(self, key: str, answer: str) -> None:
        self._entries[key] = (time.monotonic(), answer)
        self._entries.move_to_end(key)
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)

    def __len__(self) -> int:
        return len(self._entries)


class LLMClient:
    """OpenAI chat completions with an answer cache, request spacing and cost tracking.

    Usage::

        client = LLMClient()
        if client.is_configured:
            text = await client.generate_text("Gib 5 Verbesserungsvorschläge ...")
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-4o-mini",
        max_tokens: int = 800,
        temperature: float = 0.7,
        timeout: int = 60,
        requests_per_minute: int = 60,
        cache_enabled: bool = True,
        cache_ttl_hours: int = 24,
    ):
        key = api_key or os.getenv("OPENAI_API_KEY", "")
        self.model = model
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._client = openai.AsyncOpenAI(api_key=key, timeout=timeout) if key else None
        self._min_interval = 60.0 / max(requests_per_minute, 1)
        self._last_request = 0.0
        self._spacing_lock = asyncio.Lock()
        self._cache = PromptCache(ttl_hours=cache_ttl_hours) if cache_enabled else None
        self.usage = TokenUsage()

    @property
    def is_configured(self) -> bool:
        return self._client is not None

    async def _wait_for_slot(self) -> None:
        async with self._spacing_lock:
            delay = self._last_request + self._min_interval - time.monotonic()
            if delay > 0:
                logger.debug("Waiting %.2fs before next OpenAI request", delay)
                await asyncio.sleep(delay)
            self._last_request = time.monotonic()

    async def generate_text(
        self,
        prompt: str,
        system_prompt: str = "Du bist ein erfahrener SEO- und Web-Performance-Berater.",
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        use_cache: bool = True,
    ) -> str:
        """Return the model's answer to *prompt*.

        Raises:
            RuntimeError: No API key is configured.
            openai.OpenAIError: The API call failed.
        """
        if self._client is None:
            raise RuntimeError("OpenAI is not configured. Set OPENAI_API_KEY.")
        if temperature is None:
            temperature = self._temperature
        cache_key = PromptCache.key(self.model, system_prompt, temperature, prompt)
        if use_cache and self._cache is not None:
            cached = self._cache.lookup(cache_key)
            if cached is not None:
                logger.debug("Reusing cached answer (%d cached)", len(self._cache))
                return cached

        await self._wait_for_slot()
        completion = await self._client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
            max_tokens=max_tokens or self._max_tokens,
            temperature=temperature,
        )
        answer = (completion.choices[0].message.content or "").strip()
        if completion.usage is not None:
            cost = self.usage.record(
                self.model, completion.usage.prompt_tokens, completion.usage.completion_tokens
            )
            logger.info(
                "%s: %d prompt / %d completion tokens ($%.5f)",
                self.model, completion.usage.prompt_tokens, completion.usage.completion_tokens, cost,
            )
        if use_cache and self._cache is not None:
            self._cache.store(cache_key, answer)
        return answer

    def get_usage_stats(self) -> dict[str, Any]:
        stats = asdict(self.usage)
        stats["cost_usd"] = round(stats["cost_usd"], 6)
        return stats
