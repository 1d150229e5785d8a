from __future__ import annotations

import logging

from fastapi import HTTPException, status

from haanein.models.users import User

logger = logging.getLogger(__name__)


def can_modify(user: User, owner_id: str | None) -> bool:
    """Owner-or-admin rule for mutating a resource."""
    if user.is_admin:
        return True
    return owner_id is not None and owner_id == user.id


def ensure_can_modify(user: User, owner_id: str | None, *, detail: str) -> None:
    if not can_modify(user, owner_id):
        logger.warning("Forbidden: user %s on resource owned by %s", user.id, owner_id)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
