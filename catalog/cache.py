"""
Process-lifetime catalog cache.

Built once at startup and handed to whatever needs catalog data. The first
get() triggers the fetch; callers that arrive while it is running wait on the
same in-flight task instead of starting their own. The catalog is published
in one assignment once the fetch has fully succeeded, so readers see either
nothing or the complete catalog.

A failed fetch is logged and not remembered: the next get() tries again.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from catalog.base import Catalog, CatalogFetchError, CatalogSource, CatalogUnavailableError

logger = logging.getLogger(__name__)


class CatalogCache:

    def __init__(self, source: CatalogSource) -> None:
        self.source = source
        self._catalog: Optional[Catalog] = None
        self._inflight: Optional[asyncio.Task] = None
        self.last_error: Optional[CatalogFetchError] = None

    @property
    def loaded(self) -> bool:
        return self._catalog is not None

    async def get(self, strict: bool = False) -> Catalog:
        """
        Return the full catalog, fetching it on first use.

        On fetch failure returns an empty catalog, or raises
        CatalogUnavailableError when strict=True so callers can tell
        "no products" apart from "could not load products".
        """
        if self._catalog is not None:
            return self._catalog

        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._populate())
        task = self._inflight

        try:
            # shield: a cancelled caller must not cancel the fetch other callers share
            return await asyncio.shield(task)
        except CatalogFetchError as exc:
            if strict:
                raise CatalogUnavailableError(f"Product catalog unavailable: {exc}") from exc
            return ()

    def invalidate(self) -> None:
        """Drop the cached catalog; the next get() fetches again."""
        if self._catalog is not None:
            logger.info("Catalog cache invalidated (%d products dropped)", len(self._catalog))
        self._catalog = None

    async def _populate(self) -> Catalog:
        try:
            catalog = await self.source.fetch_all()
        except CatalogFetchError as exc:
            self.last_error = exc
            logger.error("Catalog fetch from %s failed: %s", self.source.name, exc)
            raise
        finally:
            self._inflight = None

        self._catalog = catalog
        self.last_error = None
        logger.info("Catalog cached: %d products", len(catalog))
        return catalog
