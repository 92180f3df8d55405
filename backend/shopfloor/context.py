"""
Tenant Context: explicit identity and tenant scope for service calls

WHY: Every held-sale operation is scoped to the caller's tenant. Passing the
scope as an explicit object (instead of reading a request global inside the
service) makes tenant isolation a visible parameter of every call and lets
tests supply a fixed clock.

USAGE:
    from shopfloor.context import TenantContext

    ctx = TenantContext(user_id=user.id, tenant_id=user.tenant_id)
    held_sale_service.get_active_count(ctx, shop)

    # Inside a request, after authentication populated flask.g
    ctx = TenantContext.from_request()
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from flask import g

from .time_utils import utcnow


class TenantAccessError(Exception):
    """Raised when cross-tenant access is attempted or tenant context is missing."""
    pass


@dataclass(frozen=True)
class TenantContext:
    """
    Identity of the caller and the tenant every query is scoped to.

    clock supplies "now" for timestamps and expiry checks.
    """
    user_id: int
    tenant_id: int
    clock: Callable[[], datetime] = field(default=utcnow, compare=False)

    def __post_init__(self):
        if self.user_id is None or self.tenant_id is None:
            raise TenantAccessError("Tenant context not established")

    def now(self) -> datetime:
        return self.clock()

    @classmethod
    def from_request(cls) -> "TenantContext":
        """
        Build a context from Flask g after authentication.

        SECURITY: Raises TenantAccessError if g.current_user or g.tenant_id
        is not set. This should never happen behind an auth decorator, but
        is a safety check.
        """
        user = getattr(g, "current_user", None)
        tenant_id = getattr(g, "tenant_id", None)
        if user is None or tenant_id is None:
            raise TenantAccessError("Tenant context not established")
        return cls(user_id=user.id, tenant_id=tenant_id)
