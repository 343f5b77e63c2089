"""Pydantic schemas for images, tracks, and projects.

Learn: Pydantic v2 models validate request/response data. Separate
"Create" schemas (input), "Update" schemas (partial input, every field
optional) and "Read" schemas (output). Read schemas are also what the
realtime stream serializes, so API and stream payloads match.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


# ─── Images ─────────────────────────────────────────────

class ImageCreate(BaseModel):
    src: str = Field(..., min_length=1)
    alt: str = Field(..., min_length=1, max_length=255)
    width: int = Field(default=550, gt=0)
    height: int = Field(default=384, gt=0)
    order: Optional[int] = Field(default=None, ge=0)
    priority: bool = False
    image_offset_x: float = Field(default=50, ge=0, le=100)
    image_offset_y: float = Field(default=50, ge=0, le=100)


class ImageUpdate(BaseModel):
    src: Optional[str] = Field(default=None, min_length=1)
    alt: Optional[str] = Field(default=None, min_length=1, max_length=255)
    width: Optional[int] = Field(default=None, gt=0)
    height: Optional[int] = Field(default=None, gt=0)
    order: Optional[int] = Field(default=None, ge=0)
    priority: Optional[bool] = None
    image_offset_x: Optional[float] = Field(default=None, ge=0, le=100)
    image_offset_y: Optional[float] = Field(default=None, ge=0, le=100)


class ImageRead(BaseModel):
    id: str
    src: str
    alt: str
    width: int
    height: int
    order: int
    priority: bool
    image_offset_x: float
    image_offset_y: float
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ─── Tracks ─────────────────────────────────────────────

class TrackCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    subtitle: str = Field(..., min_length=1, max_length=255)
    src: str = Field(..., min_length=1)
    order: Optional[int] = Field(default=None, ge=0)


class TrackUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    subtitle: Optional[str] = Field(default=None, min_length=1, max_length=255)
    src: Optional[str] = Field(default=None, min_length=1)
    order: Optional[int] = Field(default=None, ge=0)


class TrackRead(BaseModel):
    id: str
    title: str
    subtitle: str
    src: str
    order: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ─── Projects ───────────────────────────────────────────

class ProjectCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    image: Optional[str] = None
    link: Optional[str] = None
    category: str = Field(default="web", min_length=1, max_length=50)
    order: Optional[int] = Field(default=None, ge=0)
    crop_x: Optional[float] = None
    crop_y: Optional[float] = None
    crop_size: Optional[float] = None
    image_offset_x: Optional[float] = None
    image_offset_y: Optional[float] = None
    scale: Optional[float] = Field(default=None, gt=0)


class ProjectUpdate(BaseModel):
    """Partial update. Explicit nulls clear image/link/crop fields."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, min_length=1)
    image: Optional[str] = None
    link: Optional[str] = None
    category: Optional[str] = Field(default=None, min_length=1, max_length=50)
    order: Optional[int] = Field(default=None, ge=0)
    crop_x: Optional[float] = None
    crop_y: Optional[float] = None
    crop_size: Optional[float] = None
    image_offset_x: Optional[float] = None
    image_offset_y: Optional[float] = None
    scale: Optional[float] = Field(default=None, gt=0)

    @field_validator("title", "description", "category")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


class ProjectRead(BaseModel):
    id: str
    title: str
    description: str
    image: Optional[str]
    link: Optional[str]
    category: str
    order: Optional[int]
    crop_x: Optional[float]
    crop_y: Optional[float]
    crop_size: Optional[float]
    image_offset_x: Optional[float]
    image_offset_y: Optional[float]
    scale: Optional[float]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
