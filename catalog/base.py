"""
Shared catalog types.
Every catalog source must return the same Product tuple — the cache,
partitioner and recommender don't care where the products came from.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional


class CatalogFetchError(RuntimeError):
    """A page request failed; the whole fetch cycle is discarded."""


class CatalogUnavailableError(RuntimeError):
    """The catalog could not be loaded and the caller asked for a strict answer."""


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    url: str
    image_url: str
    variant_id: Optional[str]
    price: str                          # "INR 499.00" or "N/A"
    compare_at_price: Optional[str] = None
    description: str = ""
    product_type: str = ""
    tags: tuple[str, ...] = field(default_factory=tuple)

    def to_prompt_entry(self) -> dict:
        """The compact form embedded in recommendation prompts."""
        return {"id": self.variant_id, "name": self.name}


Catalog = tuple[Product, ...]


@dataclass
class CatalogPage:
    nodes: list[dict]
    has_next_page: bool
    end_cursor: Optional[str]


class CatalogSource(ABC):
    """All catalog backends must implement this interface."""

    @abstractmethod
    async def fetch_all(self) -> Catalog:
        """
        Drain the upstream source and return every product, in upstream order.
        Raises CatalogFetchError on any failure — never a partial catalog.
        """
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable source name for logs."""
        ...
