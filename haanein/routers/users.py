from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from haanein.core.deps import get_current_user
from haanein.core.permissions import ensure_can_modify
from haanein.core.security import check_login_password, create_access_token, get_password_hash, verify_password
from haanein.db.session import get_db
from haanein.models.users import User
from haanein.schemas.links import LinkResponse
from haanein.schemas.users import (
    LoginRequest,
    PasswordChange,
    UserAuthEnvelope,
    UserCreate,
    UserData,
    UserDetailData,
    UserDetailResponse,
    UserEnvelope,
    UserListData,
    UserListEnvelope,
    UserResponse,
    UserUpdate,
)
from haanein.services.places import delete_user as delete_user_cascade

router = APIRouter(prefix="/api/users", tags=["users"])
logger = logging.getLogger(__name__)

# Same text whether the email is unknown or the password is wrong
INVALID_CREDENTIALS = "Invalid email or password. Please try again."


def _to_user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        created_at=user.created_at,
    )


def _to_user_detail(user: User) -> UserDetailResponse:
    return UserDetailResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        created_at=user.created_at,
        links=[LinkResponse.model_validate(link) for link in user.links],
    )


def _get_user_or_404(db: Session, user_id: str) -> User:
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found. Please check the ID and try again.",
        )
    return user


@router.post("", response_model=UserAuthEnvelope, status_code=201)
def create_user(payload: UserCreate, db: Session = Depends(get_db)) -> UserAuthEnvelope:
    existing = db.scalar(select(User).where(User.email == payload.email))
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A user with this email already exists. Please use a different email or log in.",
        )

    user = User(
        name=payload.name,
        email=payload.email,
        password_hash=get_password_hash(payload.password),
        role=payload.role.value,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("User %s registered (%s)", user.id, user.role)

    return UserAuthEnvelope(
        message="Account created successfully!",
        token=create_access_token(user),
        data=UserData(user=_to_user_response(user)),
    )


@router.post("/login", response_model=UserAuthEnvelope)
def login(payload: LoginRequest, db: Session = Depends(get_db)) -> UserAuthEnvelope:
    if not payload.email or not payload.password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email and password are required to log in.",
        )

    user = db.scalar(select(User).where(User.email == payload.email.strip().lower()))
    if not check_login_password(payload.password, user):
        logger.warning("Failed login attempt")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_CREDENTIALS)

    return UserAuthEnvelope(
        message="Login successful!",
        token=create_access_token(user),
        data=UserData(user=_to_user_response(user)),
    )


@router.get("", response_model=UserListEnvelope)
def list_users(
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> UserListEnvelope:
    users = list(db.scalars(select(User).order_by(User.created_at)).all())
    return UserListEnvelope(
        message="Users retrieved successfully.",
        results=len(users),
        data=UserListData(users=[_to_user_response(u) for u in users]),
    )


@router.get("/me", response_model=UserEnvelope)
def me(current: User = Depends(get_current_user)) -> UserEnvelope:
    return UserEnvelope(
        message="User profile retrieved successfully.",
        data=UserDetailData(user=_to_user_detail(current)),
    )


@router.patch("/me/password", response_model=UserAuthEnvelope)
def change_password(
    payload: PasswordChange,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> UserAuthEnvelope:
    if not verify_password(payload.current_password, current.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Current password is incorrect.")

    current.password_hash = get_password_hash(payload.new_password)
    db.add(current)
    db.commit()
    db.refresh(current)
    logger.info("Password changed for user %s", current.id)

    return UserAuthEnvelope(
        message="Password updated successfully.",
        token=create_access_token(current),
        data=UserData(user=_to_user_response(current)),
    )


@router.get("/{user_id}", response_model=UserEnvelope)
def get_user(
    user_id: str,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> UserEnvelope:
    user = _get_user_or_404(db, user_id)
    return UserEnvelope(
        message="User details retrieved successfully.",
        data=UserDetailData(user=_to_user_detail(user)),
    )


@router.patch("/{user_id}", response_model=UserEnvelope)
def update_user(
    user_id: str,
    payload: UserUpdate,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> UserEnvelope:
    if payload.password is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Password updates are not allowed here. Please use PATCH /api/users/me/password.",
        )

    user = _get_user_or_404(db, user_id)
    ensure_can_modify(current, user.id, detail="You do not have permission to update this user")

    changes = payload.model_dump(include={"name", "email"}, exclude_unset=True, exclude_none=True)
    if "email" in changes and changes["email"] != user.email:
        taken = db.scalar(select(User).where(User.email == changes["email"]))
        if taken:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="A user with this email already exists.",
            )

    for name, value in changes.items():
        setattr(user, name, value)
    db.add(user)
    db.commit()
    db.refresh(user)

    return UserEnvelope(
        message="User profile updated successfully.",
        data=UserDetailData(user=_to_user_detail(user)),
    )


@router.delete("/{user_id}", status_code=204)
def delete_user(
    user_id: str,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> None:
    user = _get_user_or_404(db, user_id)
    ensure_can_modify(current, user.id, detail="You do not have permission to delete this user")
    delete_user_cascade(db, user=user)
