from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field, field_validator

from haanein.schemas.base import CamelSchema


class LinkResponse(CamelSchema):
    id: int
    user_id: str
    place_id: str
    link_type: str
    review_content: str | None = None
    rating: int | None = None
    created_at: datetime


class LinkCreate(CamelSchema):
    # owner and review links are created by their own endpoints
    link_type: Literal["favorite", "visited"]


class ReviewCreate(CamelSchema):
    # Both are checked for presence in the router so a missing one gets a readable 400.
    rating: int | None = Field(default=None, ge=1, le=5)
    review_content: str | None = Field(default=None, max_length=2000)

    @field_validator("review_content")
    @classmethod
    def _strip(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None


class LinkData(CamelSchema):
    link: LinkResponse


class LinkEnvelope(CamelSchema):
    status: str = "success"
    data: LinkData


class ReviewListData(CamelSchema):
    reviews: list[LinkResponse]


class ReviewListEnvelope(CamelSchema):
    status: str = "success"
    results: int
    data: ReviewListData
