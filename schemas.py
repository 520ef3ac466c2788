import math

from pydantic import BaseModel, Field, field_validator
from typing import Any, List, Literal, Optional

Bucket = Literal["suitable", "neutral", "unsuitable"]


def bucket_for_rating(rating: int) -> Bucket:
    if rating >= 4:
        return "suitable"
    if rating == 3:
        return "neutral"
    return "unsuitable"


def _finite(v: Any) -> Optional[float]:
    try:
        f = float(v)
    except (TypeError, ValueError):
        return None
    return f if math.isfinite(f) else None


def clamp_rating(v: Any) -> int:
    f = _finite(v)
    if f is None:
        return 3
    return min(5, max(1, round(f)))


def clamp_score(v: Any) -> Optional[float]:
    f = _finite(v)
    if f is None:
        return None
    return min(5.0, max(1.0, round(f, 1)))


def as_text(v: Any) -> str:
    return "" if v is None else str(v)


class BoundingBox(BaseModel):
    # fractions of image width / height
    x: float = Field(ge=0, le=1)
    y: float = Field(ge=0, le=1)
    width: float = Field(gt=0, le=1)
    height: float = Field(gt=0, le=1)


class MenuItem(BaseModel):
    name: str
    rating: int = Field(3, ge=1, le=5)
    reason: str = ""
    location: str = ""
    bbox: Optional[BoundingBox] = None

    @field_validator("name", "reason", "location", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return as_text(v)

    @field_validator("rating", mode="before")
    @classmethod
    def coerce_rating(cls, v: Any) -> int:
        return clamp_rating(v)

    @property
    def bucket(self) -> Bucket:
        return bucket_for_rating(self.rating)


class Recommendation(BaseModel):
    name: str
    rating: int = Field(3, ge=1, le=5)
    reason: str = ""

    @field_validator("name", "reason", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return as_text(v)

    @field_validator("rating", mode="before")
    @classmethod
    def coerce_rating(cls, v: Any) -> int:
        return clamp_rating(v)


class MenuSection(BaseModel):
    section: str
    compatibility: Optional[float] = Field(None, ge=1, le=5)
    description: str = ""

    @field_validator("section", "description", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return as_text(v)

    @field_validator("compatibility", mode="before")
    @classmethod
    def coerce_score(cls, v: Any) -> Optional[float]:
        return clamp_score(v)


class MenuAnalysisResult(BaseModel):
    summary: str = ""
    overallCompatibility: Optional[float] = Field(None, ge=1, le=5)
    suitableItems: List[MenuItem] = []
    neutralItems: List[MenuItem] = []
    unsuitableItems: List[MenuItem] = []
    recommendations: List[Recommendation] = []
    menuSections: List[MenuSection] = []
    rawResponse: Optional[str] = None

    @field_validator("summary", mode="before")
    @classmethod
    def coerce_summary(cls, v: Any) -> str:
        return as_text(v)

    @field_validator("overallCompatibility", mode="before")
    @classmethod
    def coerce_score(cls, v: Any) -> Optional[float]:
        return clamp_score(v)

    def all_items(self) -> List[MenuItem]:
        return [*self.suitableItems, *self.neutralItems, *self.unsuitableItems]


class MenuAnalysisRequest(BaseModel):
    imageBytes: bytes
    mimeType: str
    dietaryPreferences: List[str]
    likedItems: List[str] = []
    dislikedItems: List[str] = []


class AnalyzeMenuResponse(BaseModel):
    success: bool = True
    analysis: MenuAnalysisResult
    originalImage: str


class ErrorResponse(BaseModel):
    error: str
    message: Optional[str] = None


class HealthResponse(BaseModel):
    status: str = "ok"
    message: str = "Server is running"
