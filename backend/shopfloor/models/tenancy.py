from __future__ import annotations

from ..extensions import db
from ..time_utils import utcnow


class Tenant(db.Model):
    """
    Multi-tenant root: every customer organization is a Tenant.

    WHY: Enables shared-database multi-tenancy with strict isolation.
    Users, shops, customers and held sales belong to exactly one tenant.

    DESIGN:
    - slug is globally unique and never empty; it is the URL identifier
    - Created once at provisioning time together with its owner user
    - trial_ends_at is set by provisioning (now + TENANT_TRIAL_DAYS)
    """
    __tablename__ = "tenants"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), nullable=False, unique=True, index=True)

    # Owner contact
    email = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(50), nullable=True)
    address = db.Column(db.Text, nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    max_users = db.Column(db.Integer, nullable=False, default=10)
    trial_ends_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<Tenant id={self.id} slug={self.slug!r}>"


class Shop(db.Model):
    """
    Shop (point of sale location) within a tenant.

    MULTI-TENANT: Shops are scoped to tenants via tenant_id.
    Shop names are unique within a tenant, not globally.
    """
    __tablename__ = "shops"
    __table_args__ = (
        db.UniqueConstraint("tenant_id", "name", name="uq_shops_tenant_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    tenant = db.relationship("Tenant", backref=db.backref("shops", lazy=True))

    def __repr__(self) -> str:
        return f"<Shop id={self.id} name={self.name!r} tenant_id={self.tenant_id}>"
