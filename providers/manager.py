"""
Provider Manager — the credential pool and the failover invoker.

Every call walks the pool in configured order:

  key 1 ──ok──▶ return
    │ retriable error (bad key / quota / 5xx / timeout)
    ▼
  key 2 ──ok──▶ return
    │ ...
    ▼
  all failed ──▶ PoolExhaustedError

A non-retriable error (bad request, unsupported content) is raised at once:
the request itself is the problem, so another key would fail the same way.
Attempts are strictly sequential and the pool is never reordered.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Iterable, Optional, Sequence

from providers.base import (
    ConfigurationError, GenerationError, GenerationRequest, GenerationResult,
    ModelProvider, PoolExhaustedError, classify_error,
)

logger = logging.getLogger(__name__)


class CredentialPool:
    """Ordered, immutable set of provider handles (first = preferred)."""

    def __init__(self, providers: Iterable[ModelProvider]):
        self._providers: tuple[ModelProvider, ...] = tuple(providers)
        if not self._providers:
            raise ConfigurationError(
                "No Gemini API key configured.\n"
                "Set GEMINI_API_KEY (comma-separated for failover) in .env or the environment."
            )

    @classmethod
    def from_keys(cls, keys: Sequence[str]) -> "CredentialPool":
        from providers.gemini_provider import GeminiProvider
        pool = cls(GeminiProvider(key) for key in keys)
        logger.info("Loaded %d Gemini key(s): %s", len(pool), ", ".join(p.label for p in pool))
        return pool

    def __len__(self) -> int:
        return len(self._providers)

    def __iter__(self):
        return iter(self._providers)


class FailoverInvoker:

    def __init__(self, pool: CredentialPool, attempt_timeout: Optional[float] = None):
        self.pool = pool
        self.attempt_timeout = attempt_timeout

    async def invoke(self, request: GenerationRequest) -> GenerationResult:
        total = len(self.pool)
        last_error: Optional[BaseException] = None
        seen: list[str] = []
        t0 = time.monotonic()

        for index, provider in enumerate(self.pool):
            try:
                text = await asyncio.wait_for(
                    provider.generate(request), timeout=self.attempt_timeout
                )
            except Exception as exc:
                if isinstance(exc, asyncio.TimeoutError):
                    exc = asyncio.TimeoutError(
                        f"No answer within {self.attempt_timeout}s"
                    )
                last_error = exc
                logger.warning(
                    "API key %d/%d (%s) failed: %s", index + 1, total, provider.label, exc,
                )
                if not classify_error(exc):
                    raise GenerationError(str(exc), exc) from exc
                seen.append(str(exc))
                continue

            latency_ms = int((time.monotonic() - t0) * 1000)
            if index > 0:
                logger.info("Failover succeeded on key %d/%d after %dms", index + 1, total, latency_ms)
            return GenerationResult(
                text=text,
                credential_index=index,
                attempts=index + 1,
                latency_ms=latency_ms,
                errors=seen,
            )

        logger.error("All %d API keys failed", total)
        raise PoolExhaustedError(total, last_error)
