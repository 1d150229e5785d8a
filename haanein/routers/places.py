from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from haanein.core.deps import get_current_user
from haanein.core.permissions import ensure_can_modify
from haanein.db.session import get_db
from haanein.models.places import Place
from haanein.models.users import User
from haanein.schemas.links import LinkResponse
from haanein.schemas.places import (
    CreatorResponse,
    GeoPoint,
    PlaceCreate,
    PlaceData,
    PlaceDetailData,
    PlaceDetailEnvelope,
    PlaceDetailResponse,
    PlaceEnvelope,
    PlaceListData,
    PlaceListEnvelope,
    PlaceResponse,
    PlaceUpdate,
)
from haanein.services import places as place_service
from haanein.services.geo import latitude_band, parse_number, radius_radians, within_radius
from haanein.services.query_builder import QueryError, build_place_query

router = APIRouter(prefix="/api/places", tags=["places"])


def _to_creator(user: User | None) -> CreatorResponse | None:
    if user is None:
        return None
    return CreatorResponse(id=user.id, name=user.name, email=user.email)


def _to_place_response(place: Place) -> PlaceResponse:
    return PlaceResponse(
        id=place.id,
        name=place.name,
        description=place.description,
        address=place.address,
        category=place.category,
        categories=list(place.categories or []),
        phone=place.phone,
        working_hours=place.working_hours,
        images=list(place.images or []),
        location=GeoPoint(coordinates=place.coordinates),
        rating=place.rating,
        review_count=place.review_count,
        created_by=_to_creator(place.creator),
        created_at=place.created_at,
    )


def _to_place_detail(place: Place) -> PlaceDetailResponse:
    base = _to_place_response(place)
    return PlaceDetailResponse(
        **base.model_dump(),
        links=[LinkResponse.model_validate(link) for link in place.links],
    )


def _get_place_or_404(db: Session, place_id: str) -> Place:
    place = db.get(Place, place_id)
    if not place:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Place not found")
    return place


@router.get("", response_model=PlaceListEnvelope)
def list_places(request: Request, db: Session = Depends(get_db)) -> PlaceListEnvelope:
    try:
        query = build_place_query(request.query_params.multi_items())
    except QueryError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    stmt = query.apply(select(Place).options(selectinload(Place.creator)))
    places = list(db.scalars(stmt).all())

    items = [query.project(_to_place_response(p).model_dump(mode="json", by_alias=True)) for p in places]
    return PlaceListEnvelope(results=len(items), data=PlaceListData(places=items))


@router.get("/radius/{lat}/{lng}/{distance}", response_model=PlaceListEnvelope)
def places_within_radius(lat: str, lng: str, distance: str, db: Session = Depends(get_db)) -> PlaceListEnvelope:
    try:
        center_lat = parse_number(lat, "lat", bound=90)
        center_lng = parse_number(lng, "lng", bound=180)
        radius = radius_radians(parse_number(distance, "distance"))
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    low, high = latitude_band(center_lat, radius)
    candidates = db.scalars(
        select(Place)
        .options(selectinload(Place.creator))
        .where(Place.latitude >= low, Place.latitude <= high)
        .order_by(Place.created_at.desc(), Place.id)
    ).all()
    places = [p for p in candidates if within_radius(center_lat, center_lng, p.latitude, p.longitude, radius)]

    items = [_to_place_response(p).model_dump(mode="json", by_alias=True) for p in places]
    return PlaceListEnvelope(results=len(items), data=PlaceListData(places=items))


@router.get("/{place_id}", response_model=PlaceDetailEnvelope)
def get_place(place_id: str, db: Session = Depends(get_db)) -> PlaceDetailEnvelope:
    place = _get_place_or_404(db, place_id)
    return PlaceDetailEnvelope(data=PlaceDetailData(place=_to_place_detail(place)))


@router.post("", response_model=PlaceEnvelope, status_code=201)
def create_place(
    payload: PlaceCreate,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> PlaceEnvelope:
    place = place_service.create_place(db, owner=current, payload=payload)
    return PlaceEnvelope(data=PlaceData(place=_to_place_response(place)))


@router.patch("/{place_id}", response_model=PlaceEnvelope)
def update_place(
    place_id: str,
    payload: PlaceUpdate,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> PlaceEnvelope:
    place = _get_place_or_404(db, place_id)
    ensure_can_modify(current, place.created_by, detail="You do not have permission to update this place")

    place = place_service.update_place(db, place=place, payload=payload)
    return PlaceEnvelope(data=PlaceData(place=_to_place_response(place)))


@router.delete("/{place_id}", status_code=204)
def delete_place(
    place_id: str,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> None:
    place = _get_place_or_404(db, place_id)
    ensure_can_modify(current, place.created_by, detail="You do not have permission to delete this place")
    place_service.delete_place(db, place=place)
