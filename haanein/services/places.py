from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from haanein.models.enums import LinkType
from haanein.models.links import Link
from haanein.models.places import Place
from haanein.models.users import User
from haanein.schemas.places import PlaceCreate, PlaceUpdate
from haanein.services.ratings import recompute_place_rating

logger = logging.getLogger(__name__)


class LinkExistsError(Exception):
    """The (user, place, link type) triple is already taken."""


def create_place(db: Session, *, owner: User, payload: PlaceCreate) -> Place:
    """Insert a place and its owner link in one transaction."""
    lng, lat = payload.location.coordinates
    place = Place(
        name=payload.name,
        description=payload.description,
        address=payload.address,
        category=payload.category,
        categories=list(payload.categories),
        phone=payload.phone,
        working_hours=payload.working_hours,
        images=list(payload.images),
        longitude=lng,
        latitude=lat,
        created_by=owner.id,
    )
    db.add(place)
    try:
        db.flush()
        db.add(Link(user_id=owner.id, place_id=place.id, link_type=LinkType.owner.value))
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Place creation rolled back (owner %s)", owner.id)
        raise

    db.refresh(place)
    logger.info("Place %s created by %s", place.id, owner.id)
    return place


def update_place(db: Session, *, place: Place, payload: PlaceUpdate) -> Place:
    changes = payload.model_dump(exclude_unset=True)
    location = changes.pop("location", None)
    if location is not None:
        place.longitude, place.latitude = location["coordinates"]
    for name, value in changes.items():
        setattr(place, name, value)

    db.add(place)
    db.commit()
    db.refresh(place)
    return place


def delete_place(db: Session, *, place: Place) -> None:
    """Delete a place together with every link that references it."""
    place_id = place.id
    n_links = len(place.links)
    db.delete(place)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Place deletion rolled back (%s)", place_id)
        raise
    logger.info("Place %s deleted with %s links", place_id, n_links)


def add_review(db: Session, *, place: Place, user: User, rating: int, content: str) -> Link:
    review = Link(
        user_id=user.id,
        place_id=place.id,
        link_type=LinkType.review.value,
        rating=rating,
        review_content=content,
    )
    db.add(review)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise LinkExistsError("review") from None

    recompute_place_rating(db, place_id=place.id)
    db.commit()
    db.refresh(review)
    db.refresh(place)
    logger.info("Review %s added to place %s by %s", review.id, place.id, user.id)
    return review


def list_reviews(db: Session, *, place_id: str) -> list[Link]:
    stmt = (
        select(Link)
        .where(Link.place_id == place_id, Link.link_type == LinkType.review.value)
        .order_by(Link.created_at.desc(), Link.id.desc())
    )
    return list(db.scalars(stmt).all())


def add_link(db: Session, *, place: Place, user: User, link_type: LinkType) -> Link:
    link = Link(user_id=user.id, place_id=place.id, link_type=link_type.value)
    db.add(link)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise LinkExistsError(link_type.value) from None
    db.refresh(link)
    return link


def find_link(db: Session, *, place_id: str, user_id: str, link_type: LinkType) -> Link | None:
    return db.scalar(
        select(Link).where(
            Link.place_id == place_id,
            Link.user_id == user_id,
            Link.link_type == link_type.value,
        )
    )


def remove_link(db: Session, *, link: Link) -> None:
    db.delete(link)
    db.commit()


def delete_user(db: Session, *, user: User) -> None:
    """Delete a user, their links and their ownership of places.

    Places the user created stay, with createdBy cleared. Ratings of places
    the user reviewed are recomputed in the same transaction.
    """
    user_id = user.id
    reviewed = {link.place_id for link in user.links if link.link_type == LinkType.review.value}

    db.execute(update(Place).where(Place.created_by == user_id).values(created_by=None))
    db.delete(user)
    try:
        db.flush()
        for place_id in reviewed:
            recompute_place_rating(db, place_id=place_id)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("User deletion rolled back (%s)", user_id)
        raise
    logger.info("User %s deleted (%s reviewed places recomputed)", user_id, len(reviewed))
