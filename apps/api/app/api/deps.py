from __future__ import annotations

from collections.abc import Iterator
from typing import Annotated

from fastapi import Depends, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.exceptions import api_error
from app.core.security import Claims, InvalidTokenError, KidClaims, ParentClaims, decode_claims
from app.services.billing import CheckoutGateway
from app.services.elf_replies import ElfReplyGenerator

auth_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


AppSettings = Annotated[Settings, Depends(get_settings)]


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


DBSession = Annotated[Session, Depends(get_db)]


def get_reply_generator(request: Request) -> ElfReplyGenerator:
    return request.app.state.reply_generator


ReplyGenerator = Annotated[ElfReplyGenerator, Depends(get_reply_generator)]


def get_checkout_gateway(request: Request) -> CheckoutGateway:
    return request.app.state.checkout_gateway


Gateway = Annotated[CheckoutGateway, Depends(get_checkout_gateway)]


def get_current_claims(
    request: Request,
    settings: AppSettings,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(auth_scheme)],
) -> Claims:
    if credentials is None:
        raise api_error(status.HTTP_401_UNAUTHORIZED, "Access token required")

    try:
        claims = decode_claims(credentials.credentials, secret=settings.jwt_secret)
    except InvalidTokenError as exc:
        raise api_error(status.HTTP_403_FORBIDDEN, "Invalid token") from exc

    match claims:
        case ParentClaims(parent_id=user_id) | KidClaims(kid_id=user_id):
            request.state.user_id = user_id
    request.state.role = claims.role.value
    return claims


CurrentClaims = Annotated[Claims, Depends(get_current_claims)]


def require_parent(claims: CurrentClaims) -> ParentClaims:
    match claims:
        case ParentClaims():
            return claims
        case KidClaims():
            raise api_error(status.HTTP_403_FORBIDDEN, "Insufficient role")


def require_kid(claims: CurrentClaims) -> KidClaims:
    match claims:
        case KidClaims():
            return claims
        case ParentClaims():
            raise api_error(status.HTTP_403_FORBIDDEN, "Insufficient role")


CurrentParent = Annotated[ParentClaims, Depends(require_parent)]
CurrentKid = Annotated[KidClaims, Depends(require_kid)]
