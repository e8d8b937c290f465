"""
Catalog partitioning — splits the catalog into hair/scalp products and
everything else.

The store has no category field we can rely on, so membership is decided by
a classifier. Two are available:

  KeywordClassifier — case-insensitive substring match on the product name
  TagClassifier     — case-insensitive match on the product tags

Both sides of the split use the same classifier: hair = INCLUDE, skincare =
EXCLUDE. Every product therefore lands in exactly one partition.
"""
from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from typing import Iterable

import config
from catalog.base import Catalog, Product


class PartitionMode(enum.Enum):
    INCLUDE = "include"     # keep products the classifier matches
    EXCLUDE = "exclude"     # keep products the classifier does not match


class ProductClassifier(ABC):

    @abstractmethod
    def matches(self, product: Product) -> bool:
        ...


class KeywordClassifier(ProductClassifier):

    def __init__(self, keywords: Iterable[str]):
        self.keywords = tuple(k.lower() for k in keywords if k)

    def matches(self, product: Product) -> bool:
        name = product.name.lower()
        return any(k in name for k in self.keywords)


class TagClassifier(ProductClassifier):

    def __init__(self, tags: Iterable[str]):
        self.tags = frozenset(t.lower() for t in tags if t)

    def matches(self, product: Product) -> bool:
        return any(t.lower() in self.tags for t in product.tags)


def partition(catalog: Catalog, classifier: ProductClassifier, mode: PartitionMode) -> Catalog:
    """Pure filter over the catalog; upstream order is kept."""
    want = mode is PartitionMode.INCLUDE
    return tuple(p for p in catalog if classifier.matches(p) == want)


def hair_classifier() -> ProductClassifier:
    """Build the hair/scalp classifier selected by CATALOG_CLASSIFIER."""
    kind = config.CATALOG_CLASSIFIER.lower()
    if kind == "keywords":
        return KeywordClassifier(config.HAIR_KEYWORDS)
    if kind == "tags":
        return TagClassifier(config.HAIR_KEYWORDS)
    raise ValueError(f"Unknown CATALOG_CLASSIFIER '{config.CATALOG_CLASSIFIER}' (use keywords|tags)")


def hair_products(catalog: Catalog, classifier: ProductClassifier) -> Catalog:
    return partition(catalog, classifier, PartitionMode.INCLUDE)


def skincare_products(catalog: Catalog, classifier: ProductClassifier) -> Catalog:
    return partition(catalog, classifier, PartitionMode.EXCLUDE)
