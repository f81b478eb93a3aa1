"""Tenant context resolution.

Authentication happens upstream: the API gateway validates the session and
forwards the caller's tenant and user identifiers as headers. This module
turns those headers into a TenantContext for the service layer.
"""

import uuid
from dataclasses import dataclass
from typing import Annotated

from fastapi import Header, HTTPException


@dataclass(frozen=True)
class TenantContext:
    """Identity of the caller for one request.

    Attributes:
        tenant_id: Owning tenant UUID; every query is scoped to it.
        user_id: Acting user UUID, recorded as author on writes.
    """

    tenant_id: uuid.UUID
    user_id: uuid.UUID


def get_current_tenant(
    x_tenant_id: Annotated[str, Header()],
    x_user_id: Annotated[str, Header()],
) -> TenantContext:
    """FastAPI dependency building a TenantContext from gateway headers.

    Args:
        x_tenant_id: Value of the X-Tenant-ID header.
        x_user_id: Value of the X-User-ID header.

    Returns:
        The TenantContext for this request.

    Raises:
        HTTPException: 401 if either header is not a valid UUID.
    """
    try:
        return TenantContext(tenant_id=uuid.UUID(x_tenant_id), user_id=uuid.UUID(x_user_id))
    except ValueError as exc:
        raise HTTPException(status_code=401, detail="Invalid tenant or user identifier") from exc
