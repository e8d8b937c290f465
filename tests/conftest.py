"""
Shared pytest fixtures and fakes.

FakeProvider / FakeSource stand in for Gemini and Shopify so no test ever
touches the network.
"""
from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Callable, Optional, Union

import pytest

# ── Make the project root importable without installing the package ────────────
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from catalog.base import Catalog, CatalogFetchError, CatalogSource, Product  # noqa: E402
from providers.base import GenerationRequest, ModelProvider  # noqa: E402


class FakeProvider(ModelProvider):
    """Returns `reply` (or raises it, when it is an exception) and records calls."""

    def __init__(self, label: str, reply: Union[str, BaseException, Callable] = "ok", delay: float = 0):
        self.name = "fake"
        self.label = label
        self.reply = reply
        self.delay = delay
        self.calls: list[GenerationRequest] = []

    async def generate(self, request: GenerationRequest) -> str:
        self.calls.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if isinstance(self.reply, BaseException):
            raise self.reply
        if callable(self.reply):
            return self.reply(request)
        return self.reply


class FakeSource(CatalogSource):
    def __init__(self, products: Catalog = (), error: Optional[Exception] = None):
        self.products = products
        self.error = error
        self.calls = 0

    @property
    def name(self) -> str:
        return "fake"

    async def fetch_all(self) -> Catalog:
        self.calls += 1
        # yield to the loop so concurrent callers really overlap
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        if self.error:
            raise self.error
        return self.products


def make_product(name: str, variant_id: Optional[str] = None, **kwargs) -> Product:
    defaults = dict(
        id=f"gid://shopify/Product/{abs(hash(name)) % 10_000}",
        name=name,
        url=f"https://shop.example/products/{name.lower().replace(' ', '-')}",
        image_url="https://cdn.example/img.jpg",
        variant_id=variant_id or f"gid://shopify/ProductVariant/{name}",
        price="INR 499.00",
    )
    defaults.update(kwargs)
    return Product(**defaults)


@pytest.fixture
def catalog() -> Catalog:
    return (
        make_product("Anti-Acne Gel", "V-ACNE"),
        make_product("Hair Growth Shampoo", "V-SHAMPOO"),
        make_product("Minoxidil Serum", "V-MINOX"),
        make_product("Daily Moisturizer", "V-MOIST"),
    )


@pytest.fixture
def fetch_error() -> CatalogFetchError:
    return CatalogFetchError("Shopify error 502: bad gateway")
