"""
Central configuration — reads from .env file.

Everything here is read once at import time. Tests override individual
attributes with monkeypatch.setattr(config, "X", ...).
"""
import os
from dotenv import load_dotenv

import key_store

load_dotenv()

# ── Gemini ────────────────────────────────────────────────────────────────────
# Comma-separated list of API keys, tried in order on every call, e.g.
#   GEMINI_API_KEY=AIza...primary,AIza...backup
# API_KEY / VITE_API_KEY are accepted for compatibility with the frontend .env.
GEMINI_API_KEYS: list[str] = key_store.load_api_keys()

GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

# Seconds a single credential gets before failover moves to the next one
GEMINI_ATTEMPT_TIMEOUT: float = float(os.getenv("GEMINI_ATTEMPT_TIMEOUT", "90"))

# ── Shopify Storefront ────────────────────────────────────────────────────────
SHOPIFY_DOMAIN: str           = os.getenv("SHOPIFY_DOMAIN", "dermatics-in.myshopify.com")
SHOPIFY_STOREFRONT_TOKEN: str = os.getenv("SHOPIFY_STOREFRONT_TOKEN", "")
SHOPIFY_API_VERSION: str      = os.getenv("SHOPIFY_API_VERSION", "2024-01")

CATALOG_PAGE_SIZE: int  = int(os.getenv("CATALOG_PAGE_SIZE", "250"))
CATALOG_TIMEOUT: float  = float(os.getenv("CATALOG_TIMEOUT", "30"))
PLACEHOLDER_IMAGE_URL: str = os.getenv(
    "PLACEHOLDER_IMAGE_URL", "https://placehold.co/200x200?text=No+Image"
)

# ── Catalog partitioning ──────────────────────────────────────────────────────
# keywords → match HAIR_KEYWORDS against the product name
# tags     → match HAIR_KEYWORDS against the product tags
CATALOG_CLASSIFIER: str = os.getenv("CATALOG_CLASSIFIER", "keywords")
HAIR_KEYWORDS: list[str] = [
    k.strip().lower()
    for k in os.getenv(
        "HAIR_KEYWORDS",
        "hair,scalp,shampoo,conditioner,minoxidil,follihair,mintop,anaboom",
    ).split(",")
    if k.strip()
]

# ── Web server ────────────────────────────────────────────────────────────────
HOST: str        = os.getenv("HOST", "0.0.0.0")
PORT: int        = int(os.getenv("PORT", "5000"))
STATIC_DIR: str  = os.getenv("STATIC_DIR", "dist")
MAX_BODY_MB: int = int(os.getenv("MAX_BODY_MB", "50"))
