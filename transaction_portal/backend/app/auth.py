# backend/app/auth.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import jwt  # PyJWT
from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from .config import Settings
from .db import get_db
from .domain.enums import Role
from .middleware.structured_logging import bind_principal
from .models import AppUser

log = logging.getLogger("portal.auth")


@dataclass(frozen=True)
class Principal:
    user_id: str
    role: str  # agent | admin
    email: str | None = None
    name: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value


def _settings(request: Request) -> Settings:
    return request.app.state.settings


def _parse_role(raw: Any) -> str:
    role = str(raw or "").strip().lower()
    if role not in (Role.AGENT.value, Role.ADMIN.value):
        raise HTTPException(status_code=401, detail="Unknown role")
    return role


# -------------------------
# JWT helpers
# -------------------------
def decode_identity_token(token: str, *, settings: Settings) -> dict[str, Any]:
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")


def encode_identity_token(claims: dict[str, Any], *, settings: Settings) -> str:
    """Issue a token the same way the identity provider does (tests, CLI, local dev)."""
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


# -------------------------
# User provisioning
# -------------------------
def ensure_user(db: Session, principal: Principal) -> AppUser:
    """
    Make sure a users row exists for the caller so agent_id / changed_by
    foreign keys hold. Role on the row is informational; the request's
    identity context stays authoritative.
    """
    user = db.get(AppUser, principal.user_id)
    if user is not None:
        changed = False
        if principal.email and user.email != principal.email:
            user.email = principal.email
            changed = True
        if principal.name and user.name != principal.name:
            user.name = principal.name
            changed = True
        if user.role != principal.role:
            user.role = principal.role
            changed = True
        if changed:
            db.commit()
        return user

    user = AppUser(
        id=principal.user_id,
        email=principal.email,
        name=principal.name or (principal.email.split("@")[0] if principal.email else None),
        role=principal.role,
    )
    db.add(user)
    db.commit()
    log.info("provisioned user", extra={"user_id": principal.user_id, "role": principal.role})
    return user


# -------------------------
# get_principal (REAL)
# -------------------------
def get_principal(
    request: Request,
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(default=None, alias="Authorization"),
) -> Principal:
    """
    Identity sources supported (in priority order):
      1) Authorization: Bearer <token> from the external identity provider
      2) dev header spoofing (ONLY if settings.auth_mode == "dev")
    """
    settings = _settings(request)
    principal: Principal | None = None

    token = None
    if authorization and str(authorization).lower().startswith("bearer "):
        token = str(authorization).split(" ", 1)[1].strip()

    if token:
        claims = decode_identity_token(token, settings=settings)
        sub = str(claims.get("sub") or "").strip()
        if not sub:
            raise HTTPException(status_code=401, detail="Token missing sub")
        principal = Principal(
            user_id=sub,
            role=_parse_role(claims.get("role")),
            email=claims.get("email"),
            name=claims.get("name"),
        )

    elif settings.auth_mode == "dev":
        user_id = (request.headers.get(settings.dev_header_user_id) or "").strip()
        if not user_id:
            raise HTTPException(status_code=401, detail=f"Missing {settings.dev_header_user_id} for dev auth")
        email = (request.headers.get(settings.dev_header_user_email) or "").strip().lower() or None
        principal = Principal(
            user_id=user_id,
            role=_parse_role(request.headers.get(settings.dev_header_user_role) or Role.AGENT.value),
            email=email,
        )

    if principal is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    bind_principal(principal.user_id, principal.role)

    if settings.auto_provision_users:
        ensure_user(db, principal)
    elif db.get(AppUser, principal.user_id) is None:
        raise HTTPException(status_code=401, detail="Unknown user")

    return principal


def require_admin(p: Principal = Depends(get_principal)) -> Principal:
    if not p.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return p
