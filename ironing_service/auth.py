"""
Authentication Module for the Ironing Service
=============================================

Identifies the caller of each request and enforces role-based access.

Authentication Method:
----------------------
Every user carries an opaque API token, sent as ``Authorization: Bearer
<token>``. Only the SHA-256 hash of the token is stored, so a database dump
does not leak usable credentials. Issuing tokens (login/signup) is handled
outside this service; ``issue_api_token`` exists for seeding and tests.

Roles:
------
- USER: customers placing orders
- DELIVERY_PERSON: executes pickup/delivery trips
- FLOOR_MANAGER: plans trips and oversees orders
- CENTER_OPERATOR: moves orders through processing stages
- ADMIN: full access

Usage:
------
    from ironing_service.auth import get_current_user, require_roles

    @router.post("/order/{order_id}/update-stage")
    def update_stage(
        order_id: int,
        user: User = Depends(require_roles(Role.CENTER_OPERATOR)),
        db: Session = Depends(get_db),
    ):
        ...

The dependencies will:
- Return 401 if the header is missing or the token is unknown
- Return 403 if the user's role is not in the allowed set
"""

import hashlib
import secrets
from typing import Callable, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .db import get_db
from .models import Role, User


# auto_error=False so a missing header yields our 401 rather than FastAPI's default
security = HTTPBearer(auto_error=False)

# Roles that act on orders they do not own
STAFF_ROLES = (Role.ADMIN, Role.FLOOR_MANAGER, Role.CENTER_OPERATOR, Role.DELIVERY_PERSON)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def issue_api_token(db: Session, user: User) -> str:
    """Generate a new token for user, store its hash, and return the plain token."""
    token = secrets.token_urlsafe(32)
    user.api_token_hash = hash_token(token)
    db.commit()
    return token


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """
    Resolve the bearer token to a User.

    Raises:
        HTTPException (401): missing, malformed, or unknown token
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token_hash = hash_token(credentials.credentials)
    user = db.query(User).filter(User.api_token_hash == token_hash).first()

    # The lookup already matched on the hash; compare again in constant time
    if user is None or not secrets.compare_digest(user.api_token_hash, token_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


def require_roles(*allowed_roles: Role) -> Callable[..., User]:
    """
    Build a dependency that only lets the given roles through.

    ADMIN is always allowed.
    """
    allowed = set(allowed_roles) | {Role.ADMIN}

    def dependency(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
        return user

    return dependency
