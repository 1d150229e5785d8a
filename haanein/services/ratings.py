from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from haanein.models.enums import LinkType
from haanein.models.links import Link
from haanein.models.places import Place

logger = logging.getLogger(__name__)


def recompute_place_rating(db: Session, *, place_id: str) -> None:
    """Recompute aggregated rating fields for a place from its review links.

    Does not commit; runs inside the caller's transaction so the review write
    and the aggregate update land together.
    """
    db.flush()

    stmt = select(func.count(Link.id), func.avg(Link.rating)).where(
        Link.place_id == place_id,
        Link.link_type == LinkType.review.value,
    )
    cnt, avg = db.execute(stmt).one()

    place = db.get(Place, place_id)
    if not place:
        return

    place.review_count = int(cnt or 0)
    place.rating = round(float(avg or 0.0), 1)
    db.add(place)
    logger.info("Rating for place %s: %.1f (%s reviews)", place_id, place.rating, place.review_count)
