"""
Request guards.

``verify_token`` checks the session cookie and yields the caller's
``Identity``; ``verify_admin`` and ``verify_seller`` chain a role check after
it. The checks themselves (``check_credential``, ``authorize``) are plain
functions returning ``Allow`` or ``Reject`` so they can be composed and
tested without a request.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Union

import jwt
from fastapi import Cookie, Depends, Request, Response
from pymongo.database import Database

from config import Settings
from errors import Forbidden, ServiceError, Unauthenticated
from schemas import Role
from services import UserDirectory

logger = logging.getLogger(__name__)

TOKEN_COOKIE = "token"


@dataclass(frozen=True)
class Identity:
    email: str
    claims: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Allow:
    identity: Identity


@dataclass(frozen=True)
class Reject:
    error: ServiceError


Decision = Union[Allow, Reject]


# Dependencies
def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db(request: Request) -> Database:
    return request.app.state.db


def get_user_directory(db: Database = Depends(get_db)) -> UserDirectory:
    return UserDirectory(db)


# Tokens
def issue_token(payload: Dict[str, Any], settings: Settings) -> str:
    claims = dict(payload)
    claims["exp"] = datetime.now(timezone.utc) + timedelta(days=settings.token_expire_days)
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algo)


def check_credential(token: Optional[str], settings: Settings) -> Decision:
    if not token:
        return Reject(Unauthenticated())
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algo])
    except jwt.PyJWTError as exc:
        logger.warning("Rejected session token: %s", exc)
        return Reject(Unauthenticated())
    email = claims.get("email")
    if not email:
        return Reject(Unauthenticated())
    return Allow(Identity(email=email, claims=claims))


def set_token_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        TOKEN_COOKIE,
        token,
        httponly=True,
        secure=settings.is_production,
        samesite=settings.cookie_samesite,
    )


def clear_token_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        TOKEN_COOKIE,
        httponly=True,
        secure=settings.is_production,
        samesite=settings.cookie_samesite,
    )


# Guards
def verify_token(
    token: Optional[str] = Cookie(None),
    settings: Settings = Depends(get_settings),
) -> Identity:
    decision = check_credential(token, settings)
    if isinstance(decision, Reject):
        raise decision.error
    return decision.identity


def authorize(identity: Identity, required_role: Role, users: UserDirectory) -> Decision:
    role = users.get_role(identity.email)
    if role != required_role.value:
        return Reject(Forbidden())
    return Allow(identity)


def require_role(required_role: Role):
    def guard(
        identity: Identity = Depends(verify_token),
        users: UserDirectory = Depends(get_user_directory),
    ) -> Identity:
        decision = authorize(identity, required_role, users)
        if isinstance(decision, Reject):
            logger.info("%s denied %s access", identity.email, required_role.value)
            raise decision.error
        return decision.identity

    guard.__name__ = f"verify_{required_role.value}"
    return guard


verify_admin = require_role(Role.ADMIN)
verify_seller = require_role(Role.SELLER)
