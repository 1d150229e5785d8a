from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from haanein.core.deps import get_current_user
from haanein.db.session import get_db
from haanein.models.users import User
from haanein.routers.places import _get_place_or_404, _to_place_response
from haanein.schemas.links import LinkResponse, ReviewCreate, ReviewListData, ReviewListEnvelope
from haanein.schemas.places import ReviewAddedData, ReviewAddedEnvelope
from haanein.services import places as place_service

router = APIRouter(prefix="/api/places/{place_id}/reviews", tags=["reviews"])


@router.post("", response_model=ReviewAddedEnvelope, status_code=201)
def create_review(
    place_id: str,
    payload: ReviewCreate,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ReviewAddedEnvelope:
    if payload.rating is None or not payload.review_content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please provide rating and review content",
        )

    place = _get_place_or_404(db, place_id)
    try:
        review = place_service.add_review(
            db,
            place=place,
            user=current,
            rating=payload.rating,
            content=payload.review_content,
        )
    except place_service.LinkExistsError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You have already reviewed this place")

    return ReviewAddedEnvelope(
        data=ReviewAddedData(place=_to_place_response(place), review=LinkResponse.model_validate(review))
    )


@router.get("", response_model=ReviewListEnvelope)
def list_reviews(place_id: str, db: Session = Depends(get_db)) -> ReviewListEnvelope:
    _get_place_or_404(db, place_id)
    reviews = place_service.list_reviews(db, place_id=place_id)
    return ReviewListEnvelope(
        results=len(reviews),
        data=ReviewListData(reviews=[LinkResponse.model_validate(r) for r in reviews]),
    )
