"""
Pydantic models for request bodies and for the JSON shapes the model must
return. The response models are handed to Gemini as response_schema and used
again to validate what comes back.

Field names are the wire names the frontend reads (camelCase).
"""
from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


# ── Model output: analysis ────────────────────────────────────────────────────

class Box(BaseModel):
    x1: float
    y1: float
    x2: float
    y2: float


class BoundingBox(BaseModel):
    imageId: int = Field(description="0-based index of the image the box belongs to.")
    box: Box


class Condition(BaseModel):
    name: str = Field(description="Specific condition name.")
    confidence: float = Field(description="Confidence 0-100.")
    location: str = Field(description="Where the condition is visible.")
    boundingBoxes: list[BoundingBox]


class AnalysisCategory(BaseModel):
    category: str = Field(description="Dynamic category name based on finding.")
    conditions: list[Condition]


SkinAnalysis = list[AnalysisCategory]


class HairAnalysis(BaseModel):
    analysis: Optional[list[AnalysisCategory]] = None
    error: Optional[str] = None
    message: Optional[str] = None


# ── Model output: routines ────────────────────────────────────────────────────

class RecommendationEntry(BaseModel):
    """A product reference proposed by the model, before hydration."""
    product_id: Optional[str] = None
    product_name: Optional[str] = None
    step_type: str = ""


class SkinRoutineStep(BaseModel):
    productId: str
    name: str
    stepType: str

    def to_entry(self) -> RecommendationEntry:
        return RecommendationEntry(product_id=self.productId, product_name=self.name, step_type=self.stepType)


class HairRoutineStep(BaseModel):
    productId: str
    productName: str
    stepType: str

    def to_entry(self) -> RecommendationEntry:
        return RecommendationEntry(product_id=self.productId, product_name=self.productName, step_type=self.stepType)


class SkinRoutine(BaseModel):
    am: list[SkinRoutineStep]
    pm: list[SkinRoutineStep]


class HairRoutine(BaseModel):
    am: list[HairRoutineStep]
    pm: list[HairRoutineStep]


# ── Request bodies ────────────────────────────────────────────────────────────

class ImagesRequest(BaseModel):
    images: list[str] = Field(min_length=1)


class SkinRecommendRequest(BaseModel):
    analysis: Any
    goals: list[str] = []


class HairRecommendRequest(BaseModel):
    analysis: Any
    profile: dict = {}
    goals: list[str] = []


class DoctorReportRequest(BaseModel):
    analysis: Any
    type: Literal["skin", "hair"] = "skin"


class ChatRequest(BaseModel):
    query: str = Field(min_length=1)
    context: dict = {}
