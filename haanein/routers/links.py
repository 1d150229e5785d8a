from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from haanein.core.deps import get_current_user
from haanein.db.session import get_db
from haanein.models.enums import LinkType
from haanein.models.users import User
from haanein.routers.places import _get_place_or_404
from haanein.schemas.links import LinkCreate, LinkData, LinkEnvelope, LinkResponse
from haanein.services import places as place_service

router = APIRouter(prefix="/api/places/{place_id}/links", tags=["links"])

# owner and review links have their own lifecycle
_USER_MANAGED = {LinkType.favorite, LinkType.visited}


@router.post("", response_model=LinkEnvelope, status_code=201)
def create_link(
    place_id: str,
    payload: LinkCreate,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> LinkEnvelope:
    place = _get_place_or_404(db, place_id)
    link_type = LinkType(payload.link_type)
    try:
        link = place_service.add_link(db, place=place, user=current, link_type=link_type)
    except place_service.LinkExistsError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Place is already marked as {link_type.value}",
        )
    return LinkEnvelope(data=LinkData(link=LinkResponse.model_validate(link)))


@router.delete("/{link_type}", status_code=204)
def delete_link(
    place_id: str,
    link_type: LinkType,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> None:
    if link_type not in _USER_MANAGED:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{link_type.value} links cannot be removed directly",
        )
    _get_place_or_404(db, place_id)
    link = place_service.find_link(db, place_id=place_id, user_id=current.id, link_type=link_type)
    if not link:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Link not found")
    place_service.remove_link(db, link=link)
