"""Pydantic schemas for visitor stats."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ViewCountRead(BaseModel):
    count: int = 0
    last_updated: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CountryVisitCreate(BaseModel):
    country: Optional[str] = Field(default=None, max_length=100)


class CountryVisitResult(BaseModel):
    success: bool = True
    skipped: Optional[bool] = None
    country: Optional[str] = None
    count: Optional[int] = None


class CountryVisitRead(BaseModel):
    country: str
    count: int
    last_visit: datetime

    model_config = {"from_attributes": True}
