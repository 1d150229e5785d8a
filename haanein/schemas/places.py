from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import Field, field_validator, model_validator

from haanein.schemas.base import CamelSchema
from haanein.schemas.links import LinkResponse


class GeoPoint(CamelSchema):
    """GeoJSON Point; coordinates are [longitude, latitude]."""

    type: Literal["Point"] = "Point"
    coordinates: list[float]

    @field_validator("coordinates")
    @classmethod
    def _lng_lat(cls, v: list[float]) -> list[float]:
        if len(v) != 2:
            raise ValueError("coordinates must be a [longitude, latitude] pair")
        lng, lat = v
        if not -180 <= lng <= 180:
            raise ValueError("longitude must be between -180 and 180")
        if not -90 <= lat <= 90:
            raise ValueError("latitude must be between -90 and 90")
        return v


class PlaceCreate(CamelSchema):
    name: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1)
    address: str = Field(min_length=1)
    category: str = Field(min_length=1, max_length=80)
    categories: list[str] = Field(default_factory=list)
    phone: str | None = Field(default=None, max_length=40)
    working_hours: str | None = Field(default=None, max_length=200)
    images: list[str] = Field(default_factory=list)
    location: GeoPoint

    @field_validator("name", "description", "address", "category")
    @classmethod
    def _strip(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


_REQUIRED_ON_PLACE = ("name", "description", "address", "category", "categories", "images", "location")


class PlaceUpdate(CamelSchema):
    """Partial update. rating, reviewCount and createdBy are server-maintained and not accepted."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, min_length=1)
    address: str | None = Field(default=None, min_length=1)
    category: str | None = Field(default=None, min_length=1, max_length=80)
    categories: list[str] | None = None
    phone: str | None = Field(default=None, max_length=40)
    working_hours: str | None = Field(default=None, max_length=200)
    images: list[str] | None = None
    location: GeoPoint | None = None

    @model_validator(mode="after")
    def _no_null_required(self) -> "PlaceUpdate":
        for name in _REQUIRED_ON_PLACE:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class CreatorResponse(CamelSchema):
    id: str
    name: str
    email: str


class PlaceResponse(CamelSchema):
    id: str
    name: str
    description: str
    address: str
    category: str
    categories: list[str]
    phone: str | None
    working_hours: str | None
    images: list[str]
    location: GeoPoint
    rating: float
    review_count: int
    created_by: CreatorResponse | None
    created_at: datetime


class PlaceDetailResponse(PlaceResponse):
    links: list[LinkResponse] = Field(default_factory=list)


class PlaceData(CamelSchema):
    place: PlaceResponse


class PlaceDetailData(CamelSchema):
    place: PlaceDetailResponse


class PlaceEnvelope(CamelSchema):
    status: str = "success"
    data: PlaceData


class PlaceDetailEnvelope(CamelSchema):
    status: str = "success"
    data: PlaceDetailData


class ReviewAddedData(CamelSchema):
    place: PlaceResponse
    review: LinkResponse


class ReviewAddedEnvelope(CamelSchema):
    status: str = "success"
    data: ReviewAddedData


class PlaceListData(CamelSchema):
    # Already projected through ?fields=, so kept as plain dicts
    places: list[dict[str, Any]]


class PlaceListEnvelope(CamelSchema):
    status: str = "success"
    results: int
    data: PlaceListData
