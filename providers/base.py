"""
Shared types for the generative model layer: request/result value objects,
the error hierarchy, error classification and structured-output parsing.
"""
from __future__ import annotations

import asyncio
import base64
import binascii
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from pydantic import TypeAdapter, ValidationError

logger = logging.getLogger(__name__)


# ── Errors ─────────────────────────────────────────────────────────────────────

class ConfigurationError(RuntimeError):
    """Raised at startup when the service cannot run (e.g. no API key)."""


class GenerationError(RuntimeError):
    """A model call failed in a way retrying with another key cannot fix."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class PoolExhaustedError(GenerationError):
    """Every credential in the pool failed with a retriable error."""

    def __init__(self, pool_size: int, last_error: Optional[BaseException]):
        last = str(last_error) if last_error else "Unknown error"
        super().__init__(f"All {pool_size} API keys failed. Last error: {last}", last_error)
        self.pool_size = pool_size


class ModelOutputError(GenerationError):
    """The model answered, but not with the shape that was asked for."""


# ── Request / result ───────────────────────────────────────────────────────────

@dataclass(frozen=True)
class TextPart:
    text: str


@dataclass(frozen=True)
class ImagePart:
    data: bytes
    mime_type: str = "image/jpeg"


Part = Union[TextPart, ImagePart]


@dataclass
class GenerationRequest:
    """One call to the model: ordered content parts plus an optional output shape."""
    model: str
    parts: list[Part]
    # pydantic model (or list[Model]) the JSON answer must conform to
    response_schema: Optional[Any] = None


@dataclass
class GenerationResult:
    text: str
    credential_index: int       # 0-based position of the key that answered
    attempts: int               # how many keys were tried, including the winner
    latency_ms: int = 0
    errors: list[str] = field(default_factory=list)   # retriable errors seen on the way


# ── Images ─────────────────────────────────────────────────────────────────────

def detect_mime(data: bytes) -> str:
    """Guess an image mime type from magic bytes; defaults to JPEG."""
    if data[:8] == b"\x89PNG\r\n\x1a\n":
        return "image/png"
    if data[:4] == b"GIF8":
        return "image/gif"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"


def image_part_from_base64(encoded: str) -> ImagePart:
    """
    Build an ImagePart from a base64 string as sent by the browser.
    Accepts both bare base64 and data URLs ("data:image/png;base64,....").
    Raises ValueError when the payload is not valid base64.
    """
    if not isinstance(encoded, str) or not encoded.strip():
        raise ValueError("Image must be a non-empty base64 string")

    mime: Optional[str] = None
    payload = encoded.strip()
    if payload.startswith("data:"):
        header, _, payload = payload.partition(",")
        declared = header[len("data:"):].split(";")[0]
        if declared.startswith("image/"):
            mime = declared

    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"Image is not valid base64: {exc}") from exc
    if not data:
        raise ValueError("Image decoded to zero bytes")

    return ImagePart(data=data, mime_type=mime or detect_mime(data))


# ── Error classification ───────────────────────────────────────────────────────

RETRIABLE_CODES = {401, 403, 429, 500, 502, 503, 504}
RETRIABLE_STATUSES = {
    "RESOURCE_EXHAUSTED", "UNAVAILABLE", "INTERNAL",
    "UNAUTHENTICATED", "PERMISSION_DENIED",
}
RETRIABLE_MARKERS = (
    "api key not valid",
    "api_key_invalid",
    "quota",
    "internal error",
    "500",
    "503",
)


def classify_error(exc: BaseException) -> bool:
    """
    Return True when another credential might succeed where this one failed.

    Structured errors (google-genai APIError exposes .code and .status) are
    judged on those fields. Invalid keys come back as a plain 400, so anything
    not matched structurally falls through to the message markers.
    """
    if isinstance(exc, asyncio.TimeoutError):
        return True

    code = getattr(exc, "code", None)
    if isinstance(code, int) and code in RETRIABLE_CODES:
        return True

    status = getattr(exc, "status", None)
    if isinstance(status, str) and status.upper() in RETRIABLE_STATUSES:
        return True

    message = str(exc).lower()
    return any(marker in message for marker in RETRIABLE_MARKERS)


# ── Structured output ──────────────────────────────────────────────────────────

def parse_json_response(raw: str, source: str) -> Any:
    """
    Parse JSON from a model response, handling markdown fences gracefully.
    Raises ModelOutputError on empty or non-JSON output.
    """
    text = (raw or "").strip()
    if not text:
        raise ModelOutputError(f"[{source}] Model returned an empty response")
    # Strip ```json ... ``` or ``` ... ``` fences if present
    if text.startswith("```"):
        lines = text.split("\n")
        text = "\n".join(lines[1:-1] if lines[-1].strip() == "```" else lines[1:])
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        logger.error("[%s] Non-JSON response: %s", source, raw[:300])
        raise ModelOutputError(f"[{source}] JSON parse error: {exc}", exc) from exc


def parse_structured(raw: str, schema: Any, source: str) -> Any:
    """Parse and validate a JSON answer against a pydantic schema type."""
    data = parse_json_response(raw, source)
    try:
        return TypeAdapter(schema).validate_python(data)
    except ValidationError as exc:
        logger.error("[%s] Response does not match schema: %s", source, exc)
        raise ModelOutputError(
            f"[{source}] Response does not match the expected shape: "
            f"{exc.error_count()} validation error(s)",
            exc,
        ) from exc


# ── Abstract base ──────────────────────────────────────────────────────────────

class ModelProvider(ABC):
    """One authenticated handle to a generative model."""

    name: str           # e.g. "google"
    label: str          # masked key, safe for logs

    @abstractmethod
    async def generate(self, request: GenerationRequest) -> str:
        """Run the request and return the raw text of the answer."""
        ...
