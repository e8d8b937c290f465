"""
recommender.py — turns an analysis into a purchasable routine.

Steps for both skin and hair:
  1. Load the full catalog (strict: a failed fetch is an error, not "no products").
  2. Keep only the relevant partition (hair/scalp vs everything else).
  3. Ask the model for AM/PM steps, giving it only [{id, name}] for that partition.
  4. Hydrate each proposed step back onto a real catalog product.
     Steps that reference a product we don't have are dropped.
  5. Return [{category: "Morning Routine", products: [...]}, {"Evening Routine", ...}]
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

import config
import prompts
from catalog.base import Catalog, Product
from catalog.cache import CatalogCache
from catalog.partition import ProductClassifier, hair_products, skincare_products
from providers.base import GenerationRequest, TextPart, parse_structured
from providers.manager import FailoverInvoker
from schemas import HairRoutine, RecommendationEntry, SkinRoutine

logger = logging.getLogger(__name__)

ROUTINE_LABELS = (("am", "Morning Routine"), ("pm", "Evening Routine"))


@dataclass(frozen=True)
class RecommendedProduct:
    product: Product
    step_type: str

    def to_dict(self) -> dict:
        return {
            "name":      self.product.name,
            "price":     self.product.price,
            "image":     self.product.image_url,
            "url":       self.product.url,
            "variantId": self.product.variant_id,
            "tags":      [self.step_type],
        }


def hydrate(entries: Iterable[RecommendationEntry], catalog: Catalog) -> list[RecommendedProduct]:
    """
    Join model-proposed entries onto catalog products.

    Match on variant id first, then on exact product name. Unmatched entries
    are dropped (the model inventing an id is expected, not an error).
    Input order is kept.
    """
    by_variant: dict[str, Product] = {}
    by_name: dict[str, Product] = {}
    for product in catalog:
        if product.variant_id:
            by_variant.setdefault(product.variant_id, product)
        by_name.setdefault(product.name, product)

    hydrated: list[RecommendedProduct] = []
    for entry in entries:
        product = None
        if entry.product_id:
            product = by_variant.get(entry.product_id)
        if product is None and entry.product_name:
            product = by_name.get(entry.product_name)
        if product is None:
            logger.debug("Dropping unmatched recommendation %s / %s", entry.product_id, entry.product_name)
            continue
        hydrated.append(RecommendedProduct(product=product, step_type=entry.step_type))
    return hydrated


def build_routines(routine: Any, catalog: Catalog) -> list[dict]:
    """Hydrate the am/pm lists of a routine answer into the response payload."""
    result = []
    for key, label in ROUTINE_LABELS:
        steps = getattr(routine, key) or []
        products = hydrate((s.to_entry() for s in steps), catalog)
        if len(products) < len(steps):
            logger.info("%s: dropped %d unmatched step(s)", label, len(steps) - len(products))
        if products:
            result.append({"category": label, "products": [p.to_dict() for p in products]})
    return result


async def _recommend(
    invoker: FailoverInvoker, prompt: str, schema: Any, catalog: Catalog, source: str,
) -> list[dict]:
    request = GenerationRequest(
        model=config.GEMINI_MODEL,
        parts=[TextPart(prompt)],
        response_schema=schema,
    )
    result = await invoker.invoke(request)
    routine = parse_structured(result.text, schema, source)
    return build_routines(routine, catalog)


async def recommend_skin(
    invoker: FailoverInvoker,
    cache: CatalogCache,
    classifier: ProductClassifier,
    analysis: Any,
    goals: Sequence[str],
) -> list[dict]:
    catalog = skincare_products(await cache.get(strict=True), classifier)
    logger.info("Skin recommendation against %d skincare products", len(catalog))
    prompt = prompts.skin_routine(analysis, goals, [p.to_prompt_entry() for p in catalog])
    return await _recommend(invoker, prompt, SkinRoutine, catalog, "recommend-skin")


async def recommend_hair(
    invoker: FailoverInvoker,
    cache: CatalogCache,
    classifier: ProductClassifier,
    analysis: Any,
    profile: dict,
    goals: Sequence[str],
) -> list[dict]:
    catalog = hair_products(await cache.get(strict=True), classifier)
    logger.info("Hair recommendation against %d hair products", len(catalog))
    prompt = prompts.hair_routine(analysis, profile, goals, [p.to_prompt_entry() for p in catalog])
    return await _recommend(invoker, prompt, HairRoutine, catalog, "recommend-hair")
