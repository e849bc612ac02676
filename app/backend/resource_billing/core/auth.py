"""Authentication context extraction and role guard utilities."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from resource_billing.core.config import get_settings
from resource_billing.db.dependencies import get_db_session
from resource_billing.models.entities import Resource, ResourceRole


@dataclass(frozen=True)
class RequestUserContext:
    """Authenticated request actor resolved from headers and DB state."""

    email: str
    display_name: str
    role: ResourceRole
    resource_id: UUID | None = None

    @property
    def is_admin(self) -> bool:
        return self.role is ResourceRole.ADMIN


def _find_resource(db: Session, email: str) -> Resource | None:
    return db.scalar(select(Resource).where(func.lower(Resource.email) == email))


def _resolve_identity(
    db: Session,
    x_user_email: str | None,
    x_user_name: str | None,
) -> RequestUserContext:
    settings = get_settings()
    if x_user_email and x_user_email.strip():
        email = x_user_email.strip().lower()
        resource = _find_resource(db, email)
        if resource is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Unknown user for X-User-Email header.",
            )
        return RequestUserContext(
            email=resource.email,
            display_name=(x_user_name or resource.name).strip(),
            role=resource.role,
            resource_id=resource.id,
        )

    if settings.auth_allow_dev_principal:
        email = settings.auth_dev_email.strip().lower()
        resource = _find_resource(db, email)
        return RequestUserContext(
            email=email,
            display_name=settings.auth_dev_display_name.strip(),
            role=ResourceRole.ADMIN,
            resource_id=resource.id if resource is not None else None,
        )

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Missing identity header. Expected X-User-Email or enable development principal fallback.",
    )


def get_current_user_context(
    x_user_email: str | None = Header(default=None, alias="X-User-Email"),
    x_user_name: str | None = Header(default=None, alias="X-User-Name"),
    db: Session = Depends(get_db_session),
) -> RequestUserContext:
    """Resolve current request user.

    Header strategy:
    - Current phase: trusted headers from proxy / test clients.
    - Future phase: replace with token validation and claim extraction.
    """

    return _resolve_identity(db, x_user_email, x_user_name)


def has_role(context: RequestUserContext, allowed_roles: set[ResourceRole]) -> bool:
    """Check whether user has any of the allowed roles."""

    return context.role in allowed_roles


def require_roles(*roles: ResourceRole):
    """Dependency factory requiring at least one provided role."""

    allowed = set(roles)

    def dependency(context: RequestUserContext = Depends(get_current_user_context)) -> RequestUserContext:
        if not has_role(context, allowed):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient role permissions for this operation.",
            )
        return context

    return dependency


require_admin = require_roles(ResourceRole.ADMIN)


def require_resource_identity(
    context: RequestUserContext = Depends(get_current_user_context),
) -> RequestUserContext:
    """Dependency for self-service endpoints bound to a resource row."""

    if context.resource_id is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Current user is not linked to a resource record.",
        )
    return context
