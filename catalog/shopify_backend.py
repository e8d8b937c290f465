"""
Shopify Storefront API catalog source.

Products are read through the Storefront GraphQL endpoint:
  POST https://<shop>.myshopify.com/api/<version>/graphql.json
  X-Shopify-Storefront-Access-Token: <token>

Pagination is cursor based — each page returns pageInfo.hasNextPage and
pageInfo.endCursor, and the next request passes that cursor as `after`.
The loop runs until hasNextPage is false. Any failure along the way throws
away everything accumulated so far.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

import aiohttp

import config
from catalog.base import Catalog, CatalogFetchError, CatalogPage, CatalogSource, Product

logger = logging.getLogger(__name__)

PRODUCTS_QUERY = """
query Products($first: Int!, $after: String) {
  products(first: $first, after: $after) {
    pageInfo { hasNextPage endCursor }
    edges {
      node {
        id
        title
        description
        productType
        handle
        onlineStoreUrl
        images(first: 1) { edges { node { url } } }
        variants(first: 1) {
          edges {
            node {
              id
              price { amount currencyCode }
              compareAtPrice { amount currencyCode }
            }
          }
        }
        tags
      }
    }
  }
}
"""


class ShopifyCatalogSource(CatalogSource):

    def __init__(
        self,
        domain: str,
        access_token: str,
        api_version: str = "2024-01",
        page_size: int = 250,
        timeout: float = 30,
    ) -> None:
        self.domain = domain
        self.page_size = page_size
        self.endpoint = f"https://{domain}/api/{api_version}/graphql.json"
        self._timeout = timeout
        self._headers = {
            "Content-Type": "application/json",
            "X-Shopify-Storefront-Access-Token": access_token,
        }

    @classmethod
    def from_config(cls) -> "ShopifyCatalogSource":
        return cls(
            domain=config.SHOPIFY_DOMAIN,
            access_token=config.SHOPIFY_STOREFRONT_TOKEN,
            api_version=config.SHOPIFY_API_VERSION,
            page_size=config.CATALOG_PAGE_SIZE,
            timeout=config.CATALOG_TIMEOUT,
        )

    @property
    def name(self) -> str:
        return f"Shopify Storefront / {self.domain}"

    async def fetch_all(self) -> Catalog:
        nodes: list[dict] = []
        cursor: Optional[str] = None
        has_next = True
        pages = 0

        try:
            async with aiohttp.ClientSession(
                headers=self._headers,
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            ) as session:
                while has_next:
                    page = await self._fetch_page(session, cursor)
                    pages += 1
                    nodes.extend(page.nodes)
                    has_next = page.has_next_page
                    cursor = page.end_cursor
                    if has_next and not cursor:
                        raise CatalogFetchError(
                            f"Page {pages} signalled hasNextPage without an endCursor"
                        )
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            raise CatalogFetchError(f"Shopify fetch failed on page {pages + 1}: {exc}") from exc

        products: list[Product] = []
        for node in nodes:
            product = self._parse_product(node)
            if product:
                products.append(product)

        logger.info(
            "Fetched %d products (%d pages) from %s", len(products), pages, self.name,
        )
        return tuple(products)

    # ── HTTP helper ───────────────────────────────────────────────────────────

    async def _fetch_page(self, session: aiohttp.ClientSession, cursor: Optional[str]) -> CatalogPage:
        """Single GraphQL call for one page of products."""
        payload = {
            "query": PRODUCTS_QUERY,
            "variables": {"first": self.page_size, "after": cursor},
        }
        async with session.post(self.endpoint, json=payload) as resp:
            if resp.status != 200:
                text = await resp.text()
                raise CatalogFetchError(f"Shopify error {resp.status}: {text[:200]}")
            data = await resp.json()

        if not isinstance(data, dict):
            raise CatalogFetchError("Shopify returned a non-object response")
        if data.get("errors"):
            raise CatalogFetchError(f"Shopify GraphQL errors: {str(data['errors'])[:200]}")

        products = (data.get("data") or {}).get("products")
        if not isinstance(products, dict):
            raise CatalogFetchError("Shopify response has no data.products")

        page_info = products.get("pageInfo") or {}
        edges = products.get("edges") or []
        return CatalogPage(
            nodes=[edge.get("node") for edge in edges if isinstance(edge, dict)],
            has_next_page=bool(page_info.get("hasNextPage", False)),
            end_cursor=page_info.get("endCursor"),
        )

    # ── Parser ────────────────────────────────────────────────────────────────

    def _parse_product(self, node: dict) -> Optional[Product]:
        if not node or not isinstance(node, dict):
            return None
        product_id = node.get("id")
        title = (node.get("title") or "").strip()
        if not product_id or not title:
            logger.warning("Skipping Shopify product without id/title: %s", product_id or "?")
            return None

        image = _first_node(node.get("images"))
        variant = _first_node(node.get("variants"))

        url = node.get("onlineStoreUrl") or f"https://{self.domain}/products/{node.get('handle') or ''}"

        return Product(
            id=product_id,
            name=title,
            url=url,
            image_url=image.get("url") or config.PLACEHOLDER_IMAGE_URL,
            variant_id=variant.get("id"),
            price=_format_price(variant.get("price")) or "N/A",
            compare_at_price=_format_price(variant.get("compareAtPrice")),
            description=node.get("description") or "",
            product_type=node.get("productType") or "",
            tags=tuple(node.get("tags") or ()),
        )


# ── Helpers ────────────────────────────────────────────────────────────────────

def _first_node(connection: Optional[dict]) -> dict:
    """Return edges[0].node of a GraphQL connection, or {} when there is none."""
    edges = (connection or {}).get("edges") or []
    if not edges or not isinstance(edges[0], dict):
        return {}
    return edges[0].get("node") or {}


def _format_price(money: Optional[dict]) -> Optional[str]:
    """Format a MoneyV2 object as 'INR 499.00'; None when missing or unparseable."""
    if not money:
        return None
    try:
        amount = float(money.get("amount"))
    except (TypeError, ValueError):
        return None
    currency = money.get("currencyCode") or ""
    return f"{currency} {amount:.2f}".strip()
