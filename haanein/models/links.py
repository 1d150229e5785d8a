from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from haanein.db.base import Base


class Link(Base):
    __tablename__ = "links"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    place_id: Mapped[str] = mapped_column(String(36), ForeignKey("places.id"), nullable=False, index=True)
    link_type: Mapped[str] = mapped_column(String(20), nullable=False)

    # Only set for link_type == "review"
    review_content: Mapped[str | None] = mapped_column(Text, nullable=True)
    rating: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    user: Mapped["User"] = relationship(back_populates="links")
    place: Mapped["Place"] = relationship(back_populates="links")

    __table_args__ = (
        # One link of each type per (user, place)
        UniqueConstraint("user_id", "place_id", "link_type", name="uq_links_user_place_type"),
        CheckConstraint("rating IS NULL OR (rating >= 1 AND rating <= 5)", name="ck_links_rating_range"),
        CheckConstraint(
            "link_type != 'review' OR (rating IS NOT NULL AND review_content IS NOT NULL)",
            name="ck_links_review_fields",
        ),
    )
