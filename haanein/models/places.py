from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from haanein.db.base import Base


class Place(Base):
    __tablename__ = "places"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    address: Mapped[str] = mapped_column(String(250), nullable=False)
    category: Mapped[str] = mapped_column(String(80), nullable=False, index=True)
    categories: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    phone: Mapped[str | None] = mapped_column(String(40), nullable=True)
    working_hours: Mapped[str | None] = mapped_column(String(200), nullable=True)
    images: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    # GeoJSON Point, stored as two columns: coordinates == [longitude, latitude]
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)

    rating: Mapped[float] = mapped_column(Float, nullable=False, default=0.0, index=True)
    review_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Nulled when the owning user is deleted
    created_by: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id"), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    creator: Mapped["User"] = relationship()
    links: Mapped[list["Link"]] = relationship(
        back_populates="place", order_by="Link.created_at", cascade="all, delete-orphan"
    )

    @property
    def coordinates(self) -> list[float]:
        return [self.longitude, self.latitude]


Index("ix_places_lat_lng", Place.latitude, Place.longitude)
