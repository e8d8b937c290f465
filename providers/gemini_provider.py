"""
Google Gemini provider — uses the google-genai SDK.

One GeminiProvider wraps one API key. The failover manager holds several of
them and decides which one to call.
"""
from __future__ import annotations

import logging
from typing import Optional

from google import genai
from google.genai import types as genai_types

import key_store
from providers.base import GenerationRequest, ImagePart, ModelProvider, TextPart

logger = logging.getLogger(__name__)


class GeminiProvider(ModelProvider):

    def __init__(self, api_key: str, client: Optional[genai.Client] = None):
        self.name   = "google"
        self.label  = key_store.mask(api_key)
        self._client = client or genai.Client(api_key=api_key)

    async def generate(self, request: GenerationRequest) -> str:
        contents = [self._to_part(p) for p in request.parts]

        gen_config = None
        if request.response_schema is not None:
            gen_config = genai_types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=request.response_schema,
            )

        response = await self._client.aio.models.generate_content(
            model=request.model,
            contents=contents,
            config=gen_config,
        )
        return response.text or ""

    @staticmethod
    def _to_part(part) -> genai_types.Part:
        if isinstance(part, ImagePart):
            return genai_types.Part.from_bytes(data=part.data, mime_type=part.mime_type)
        if isinstance(part, TextPart):
            return genai_types.Part.from_text(text=part.text)
        raise TypeError(f"Unsupported content part: {type(part).__name__}")
