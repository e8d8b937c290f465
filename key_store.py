"""
key_store.py — single source of truth for the Gemini API keys.

Keys come from the environment / .env file as one comma-separated value:

  GEMINI_API_KEY=key1,key2,key3

Lookup order for the variable name:
  GEMINI_API_KEY  →  API_KEY  →  VITE_API_KEY

The order of keys inside the value is the failover order: the first key is
always tried first, the others only when it fails with a retriable error.
"""
from __future__ import annotations

import logging
import os
from typing import Optional

logger = logging.getLogger(__name__)

ENV_NAMES = ("GEMINI_API_KEY", "API_KEY", "VITE_API_KEY")


def parse_keys(raw: Optional[str]) -> list[str]:
    """Split a comma-separated key list, dropping blanks and duplicates (order kept)."""
    if not raw:
        return []
    keys: list[str] = []
    for part in raw.split(","):
        key = part.strip()
        if key and key not in keys:
            keys.append(key)
    return keys


def load_api_keys() -> list[str]:
    """Return the ordered key list from the first env variable that is set."""
    for name in ENV_NAMES:
        raw = os.getenv(name)
        if raw:
            keys = parse_keys(raw)
            logger.debug("Loaded %d Gemini key(s) from %s", len(keys), name)
            return keys
    return []


def mask(value: Optional[str]) -> str:
    """Return a masked version safe to write to logs."""
    if not value:
        return "<not set>"
    if len(value) <= 8:
        return "****"
    return f"{value[:4]}{'*' * (len(value) - 8)}{value[-4:]}"
