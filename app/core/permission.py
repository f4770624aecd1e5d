# app/core/permission.py
from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from pydantic import BaseModel, Field

from app.core.security import Capability


class Principal(BaseModel):
    """Already-authenticated caller, as asserted by the access token."""

    sub: str
    role: Optional[str] = None
    hospital_id: Optional[UUID] = None
    scopes: List[str] = Field(default_factory=list)

    @classmethod
    def from_claims(cls, payload: Dict[str, Any]) -> "Principal":
        return cls(
            sub=payload["sub"],
            role=payload.get("role"),
            hospital_id=payload.get("hospital_id"),
            scopes=payload.get("scopes") or [],
        )

    @property
    def actor_id(self) -> Optional[UUID]:
        try:
            return UUID(self.sub)
        except ValueError:
            return None

    def can(self, capability: Capability | str) -> bool:
        value = capability.value if isinstance(capability, Capability) else capability
        return value in self.scopes


def get_principal(request: Request) -> Principal:
    principal = getattr(request.state, "principal", None)
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="not_authenticated",
        )
    return principal


def require_capability(*required: Capability):
    """
    Capability guard factory. Example: Depends(require_capability(Capability.SCHEDULE_READ))
    """
    async def dep(principal: Principal = Depends(get_principal)) -> Principal:
        missing = [c.value for c in required if not principal.can(c)]
        if missing:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="missing_capability",
            )
        return principal

    return dep
