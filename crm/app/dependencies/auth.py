from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from crm.app.db.session import get_db
from crm.app.models import Role, User, UserToken
from crm.app.services.permissions import get_effective_permissions, has_minimum_role, has_permission

logger = logging.getLogger("crm.auth")


@dataclass
class TenantContext:
    user_id: uuid.UUID
    company_id: uuid.UUID
    role: Role
    username: str
    permissions: dict[str, bool] = field(default_factory=dict)

    def can(self, key: str) -> bool:
        return has_permission(self.role, self.permissions, key)


def _bearer(authorization: str) -> str | None:
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_tenant(
    request: Request,
    authorization: str = Header(default=""),
    db: Session = Depends(get_db),
) -> TenantContext:
    token_value = _bearer(authorization)
    if not token_value:
        logger.warning("AUTH: missing bearer token path=%s", request.url.path)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")

    token = db.query(UserToken).filter(UserToken.token == token_value).first()
    if token is None:
        logger.warning("AUTH: unknown token path=%s", request.url.path)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    expires_at = token.expires_at
    if expires_at is not None:
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        if expires_at < datetime.now(timezone.utc):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired")

    user: User = token.user
    if not user.is_active or not user.company.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account disabled")

    return TenantContext(
        user_id=user.id,
        company_id=user.company_id,
        role=user.role,
        username=user.username,
        permissions=get_effective_permissions(user.role, user.permissions),
    )


def require_role(minimum: Role):
    def dependency(tenant: TenantContext = Depends(get_tenant)) -> TenantContext:
        if not has_minimum_role(tenant.role, minimum):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return tenant

    return dependency


def require_permission(key: str, minimum: Role = Role.EMPLOYEE):
    def dependency(tenant: TenantContext = Depends(get_tenant)) -> TenantContext:
        if not has_minimum_role(tenant.role, minimum) or not tenant.can(key):
            logger.info("AUTH: denied user=%s permission=%s", tenant.username, key)
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return tenant

    return dependency
