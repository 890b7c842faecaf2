# backend/app/routers/auth.py
from __future__ import annotations

from fastapi import APIRouter, Depends

from ..auth import Principal, get_principal
from ..schemas import PrincipalOut

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/me", response_model=PrincipalOut)
def me(p: Principal = Depends(get_principal)):
    """Who the portal thinks the caller is, after token/header resolution."""
    return PrincipalOut(user_id=p.user_id, role=p.role, email=p.email, name=p.name)
