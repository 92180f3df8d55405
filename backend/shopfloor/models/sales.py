from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal

from ..extensions import db
from ..time_utils import as_naive_utc, to_utc_z, utcnow

STATUS_HELD = "held"
STATUS_RETRIEVED = "retrieved"


class HeldSale(db.Model):
    """
    A sale-in-progress parked at the till for later completion.

    MULTI-TENANT: Scoped to a tenant and a shop. Every query goes through
    tenant_id taken from the caller's context.

    LIFECYCLE:
    - Created in "held" state (retrieved_at NULL)
    - Transitions exactly once to "retrieved" (retrieved_at + retrieved_by set)
    - Deleted explicitly, or purged once created_at is past the TTL

    items is an opaque JSON payload stored verbatim.
    """
    __tablename__ = "held_sales"
    __table_args__ = (
        db.UniqueConstraint("shop_id", "hold_reference", name="uq_held_sales_shop_reference"),
        db.Index("ix_held_sales_tenant_shop_retrieved", "tenant_id", "shop_id", "retrieved_at"),
        db.Index("ix_held_sales_created_at", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)
    hold_reference = db.Column(db.String(32), nullable=False)

    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True)
    items = db.Column(db.JSON, nullable=False)
    notes = db.Column(db.Text, nullable=True)

    held_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    retrieved_at = db.Column(db.DateTime(timezone=True), nullable=True)
    retrieved_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    tenant = db.relationship("Tenant")
    shop = db.relationship("Shop", backref=db.backref("held_sales", lazy=True))
    customer = db.relationship("Customer")
    held_by = db.relationship("User", foreign_keys=[held_by_user_id])
    retrieved_by = db.relationship("User", foreign_keys=[retrieved_by_user_id])

    @property
    def is_retrieved(self) -> bool:
        return self.retrieved_at is not None

    @property
    def status(self) -> str:
        return STATUS_RETRIEVED if self.is_retrieved else STATUS_HELD

    @property
    def item_count(self) -> int:
        return len(self.items or [])

    @property
    def total_amount(self) -> Decimal:
        """Sum of quantity * unit_price over the lines; missing keys count as zero."""
        total = Decimal("0")
        for item in self.items or []:
            quantity = Decimal(str(item.get("quantity", 0)))
            unit_price = Decimal(str(item.get("unit_price", 0)))
            total += quantity * unit_price
        return total

    def expires_at(self, ttl: timedelta) -> datetime:
        return as_naive_utc(self.created_at) + ttl

    def is_expired(self, now: datetime, ttl: timedelta) -> bool:
        return as_naive_utc(self.created_at) <= as_naive_utc(now) - ttl

    def __repr__(self) -> str:
        return f"<HeldSale id={self.id} ref={self.hold_reference!r} status={self.status}>"

    def to_dict(self, ttl: timedelta | None = None) -> dict:
        data = {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "shop_id": self.shop_id,
            "hold_reference": self.hold_reference,
            "customer_id": self.customer_id,
            "items": self.items,
            "notes": self.notes,
            "status": self.status,
            "item_count": self.item_count,
            "total_amount": str(self.total_amount),
            "held_by_user_id": self.held_by_user_id,
            "created_at": to_utc_z(self.created_at),
            "retrieved_at": to_utc_z(self.retrieved_at) if self.retrieved_at else None,
            "retrieved_by_user_id": self.retrieved_by_user_id,
        }
        if ttl is not None:
            data["expires_at"] = to_utc_z(self.expires_at(ttl))
        if self.customer is not None:
            data["customer"] = self.customer.to_dict()
        if self.held_by is not None:
            data["held_by"] = {"id": self.held_by.id, "name": self.held_by.full_name}
        return data
