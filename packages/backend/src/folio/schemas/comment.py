"""Pydantic schemas for comments and reactions."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

# Accepted spellings → counter column on Comment
REACTION_TYPES = {
    "like": "likes",
    "likes": "likes",
    "fire": "fires",
    "fires": "fires",
    "heart": "hearts",
    "hearts": "hearts",
    "laugh": "laughs",
    "laughs": "laughs",
    "wow": "wows",
    "wows": "wows",
}


class CommentCreate(BaseModel):
    text: str = Field(..., max_length=2000)

    @field_validator("text")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Comment text is required")
        return v


class CommentUpdate(CommentCreate):
    pass


class ReactionToggle(BaseModel):
    # Validated against REACTION_TYPES in the route so an unknown type is a 400
    type: str = Field(..., min_length=1, max_length=20)
    user_id: str = Field(..., min_length=1, max_length=255)


class ReactionRead(BaseModel):
    id: str
    comment_id: str
    user_id: str
    type: str
    created_at: datetime

    model_config = {"from_attributes": True}


class ReactionResult(BaseModel):
    action: Literal["added", "removed"]


class CommentRead(BaseModel):
    id: str
    text: str
    likes: int
    fires: int
    hearts: int
    laughs: int
    wows: int
    reactions: list[ReactionRead] = []
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
