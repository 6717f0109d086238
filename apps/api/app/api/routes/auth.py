from __future__ import annotations

import logging

from fastapi import APIRouter, status
from sqlalchemy import select

from app.api.deps import AppSettings, DBSession
from app.core.exceptions import api_error
from app.core.security import (
    KidClaims,
    ParentClaims,
    create_access_token,
    generate_parent_code,
    hash_password,
    verify_password,
)
from app.models import Kid, Parent, ResponseMode
from app.schemas.auth import (
    KidAuthResponse,
    KidLoginRequest,
    KidOut,
    KidRegisterRequest,
    ParentAuthResponse,
    ParentLoginRequest,
    ParentOut,
    ParentRegisterRequest,
)

logger = logging.getLogger("penpals.api.auth")

router = APIRouter(prefix="/api/auth", tags=["auth"])

INVALID_CREDENTIALS = "Invalid credentials"


@router.post("/parent/register", response_model=ParentAuthResponse)
def register_parent(payload: ParentRegisterRequest, db: DBSession, settings: AppSettings) -> ParentAuthResponse:
    existing = db.scalar(select(Parent.id).where(Parent.email == payload.email))
    if existing is not None:
        raise api_error(status.HTTP_400_BAD_REQUEST, "Email already registered", code="CONFLICT")

    parent = Parent(
        email=payload.email,
        password=hash_password(payload.password),
        name=payload.name,
        parent_code=generate_parent_code(),
        response_mode=ResponseMode.AI.value,
    )
    db.add(parent)
    db.commit()
    logger.info("parent.registered", extra={"parent_id": parent.id})

    token = create_access_token(ParentClaims(parent_id=parent.id), secret=settings.jwt_secret)
    return ParentAuthResponse(
        token=token,
        user=ParentOut.model_validate(parent),
        message="Account created successfully!",
    )


@router.post("/parent/login", response_model=ParentAuthResponse)
def login_parent(payload: ParentLoginRequest, db: DBSession, settings: AppSettings) -> ParentAuthResponse:
    parent = db.scalar(select(Parent).where(Parent.email == payload.email))
    if parent is None or not verify_password(payload.password, parent.password):
        raise api_error(status.HTTP_401_UNAUTHORIZED, INVALID_CREDENTIALS)

    token = create_access_token(ParentClaims(parent_id=parent.id), secret=settings.jwt_secret)
    return ParentAuthResponse(token=token, user=ParentOut.model_validate(parent))


@router.post("/kid/register", response_model=KidAuthResponse)
def register_kid(payload: KidRegisterRequest, db: DBSession, settings: AppSettings) -> KidAuthResponse:
    parent_id = db.scalar(select(Parent.id).where(Parent.parent_code == payload.parentCode))
    if parent_id is None:
        raise api_error(status.HTTP_400_BAD_REQUEST, "Invalid parent code")

    existing = db.scalar(select(Kid.id).where(Kid.username == payload.username))
    if existing is not None:
        raise api_error(status.HTTP_400_BAD_REQUEST, "Username already taken", code="CONFLICT")

    kid = Kid(
        parent_id=parent_id,
        username=payload.username,
        password=hash_password(payload.password),
        name=payload.name,
        age=payload.age,
    )
    db.add(kid)
    db.commit()
    logger.info("kid.registered", extra={"kid_id": kid.id, "parent_id": parent_id})

    token = create_access_token(KidClaims(kid_id=kid.id), secret=settings.jwt_secret)
    return KidAuthResponse(token=token, user=KidOut.model_validate(kid))


@router.post("/kid/login", response_model=KidAuthResponse)
def login_kid(payload: KidLoginRequest, db: DBSession, settings: AppSettings) -> KidAuthResponse:
    kid = db.scalar(select(Kid).where(Kid.username == payload.username))
    if kid is None or not verify_password(payload.password, kid.password):
        raise api_error(status.HTTP_401_UNAUTHORIZED, INVALID_CREDENTIALS)

    token = create_access_token(KidClaims(kid_id=kid.id), secret=settings.jwt_secret)
    return KidAuthResponse(token=token, user=KidOut.model_validate(kid))
