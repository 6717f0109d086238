from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum
from secrets import choice
from string import ascii_uppercase, digits
from typing import Any

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

JWT_ISSUER = "north-pole-penpals"
JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_DAYS = 7
PARENT_CODE_LENGTH = 6
PARENT_CODE_ALPHABET = ascii_uppercase + digits

_password_hasher = PasswordHasher()


class Role(str, Enum):
    PARENT = "parent"
    KID = "kid"


@dataclass(frozen=True, slots=True)
class ParentClaims:
    parent_id: int
    role: Role = Role.PARENT


@dataclass(frozen=True, slots=True)
class KidClaims:
    kid_id: int
    role: Role = Role.KID


Claims = ParentClaims | KidClaims


class InvalidTokenError(Exception):
    """Raised when a bearer token cannot be turned into claims."""


def hash_password(password: str) -> str:
    return _password_hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return _password_hasher.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def generate_parent_code() -> str:
    return "".join(choice(PARENT_CODE_ALPHABET) for _ in range(PARENT_CODE_LENGTH))


def create_access_token(claims: Claims, *, secret: str, now: datetime | None = None) -> str:
    match claims:
        case ParentClaims(parent_id=subject_id):
            pass
        case KidClaims(kid_id=subject_id):
            pass
    issued_at = now or datetime.now(UTC)
    payload: dict[str, Any] = {
        "iss": JWT_ISSUER,
        "sub": str(subject_id),
        "role": claims.role.value,
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + timedelta(days=ACCESS_TOKEN_DAYS)).timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def decode_claims(token: str, *, secret: str) -> Claims:
    try:
        payload = jwt.decode(token, secret, algorithms=[JWT_ALGORITHM], issuer=JWT_ISSUER)
    except jwt.PyJWTError as exc:
        raise InvalidTokenError(str(exc)) from exc

    sub = payload.get("sub")
    if not isinstance(sub, str) or not sub.isdigit():
        raise InvalidTokenError("Invalid token subject")

    try:
        role = Role(payload.get("role"))
    except ValueError as exc:
        raise InvalidTokenError("Invalid token role") from exc

    match role:
        case Role.PARENT:
            return ParentClaims(parent_id=int(sub))
        case Role.KID:
            return KidClaims(kid_id=int(sub))
