"""
analysis.py — image analysis, doctor report and chat.

Each function builds one GenerationRequest, runs it through the failover
invoker and returns a plain JSON-ready value for the web layer.
"""
from __future__ import annotations

import logging
from typing import Any, Sequence

import config
import prompts
from providers.base import (
    GenerationRequest, TextPart, image_part_from_base64, parse_structured,
)
from providers.manager import FailoverInvoker
from schemas import HairAnalysis, SkinAnalysis

logger = logging.getLogger(__name__)


class InvalidImageError(ValueError):
    """An uploaded image could not be decoded."""


def _image_parts(images: Sequence[str]) -> list:
    """Decode every image; the error names the first bad one (1-based)."""
    parts = []
    for i, encoded in enumerate(images, start=1):
        try:
            parts.append(image_part_from_base64(encoded))
        except ValueError as exc:
            raise InvalidImageError(f"Image {i}: {exc}") from exc
    return parts


async def analyze_skin(invoker: FailoverInvoker, images: Sequence[str]) -> list[dict]:
    request = GenerationRequest(
        model=config.GEMINI_MODEL,
        parts=[*_image_parts(images), TextPart(prompts.SKIN_ANALYSIS_PROMPT)],
        response_schema=SkinAnalysis,
    )
    result = await invoker.invoke(request)
    categories = parse_structured(result.text, SkinAnalysis, "analyze-skin")
    logger.info(
        "Skin analysis: %d image(s) → %d categor%s",
        len(images), len(categories), "y" if len(categories) == 1 else "ies",
    )
    return [c.model_dump(mode="json") for c in categories]


async def analyze_hair(invoker: FailoverInvoker, images: Sequence[str]) -> dict:
    request = GenerationRequest(
        model=config.GEMINI_MODEL,
        parts=[*_image_parts(images), TextPart(prompts.HAIR_ANALYSIS_PROMPT)],
        response_schema=HairAnalysis,
    )
    result = await invoker.invoke(request)
    analysis = parse_structured(result.text, HairAnalysis, "analyze-hair")
    if analysis.error:
        logger.info("Hair analysis rejected images: %s", analysis.error)
    return analysis.model_dump(mode="json")


async def doctor_report(invoker: FailoverInvoker, analysis: Any, kind: str) -> dict:
    request = GenerationRequest(
        model=config.GEMINI_MODEL,
        parts=[TextPart(prompts.doctor_report(analysis, kind))],
    )
    result = await invoker.invoke(request)
    return {"report": result.text.strip()}


async def chat(invoker: FailoverInvoker, query: str, context: dict) -> dict:
    request = GenerationRequest(
        model=config.GEMINI_MODEL,
        parts=[TextPart(prompts.chat(query, context))],
    )
    result = await invoker.invoke(request)
    return {"response": result.text.strip()}
