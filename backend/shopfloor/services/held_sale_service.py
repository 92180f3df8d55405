"""
Held Sale Service: park a sale at the till and pick it up later

WHY: Cashiers need to set a sale aside (customer stepped out, price check)
and serve the next customer without losing the cart.

MULTI-TENANT: Every operation takes a TenantContext. The tenant id always
comes from the context, never from caller input, so a held sale of another
tenant can neither be read nor changed.

LIFECYCLE:
- hold_sale creates the record in "held" state with a per-shop reference
- retrieve_held_sale moves it to "retrieved" exactly once (conditional UPDATE)
- delete_held_sale removes it in any state
- cleanup_expired_held_sales purges everything past HELD_SALE_TTL_HOURS

"Active" means not retrieved and not expired. Expiry is evaluated at query
time from created_at; nothing marks rows in the background.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import joinedload

from ..context import TenantContext, TenantAccessError
from ..extensions import db
from ..models import HeldSale, Shop, Customer
from ..time_utils import utcnow
from .concurrency import lock_for_update, run_with_retry, RETRYABLE_ERRORS

HOLD_REFERENCE_PREFIX = "HOLD-"
_HOLD_REFERENCE_RE = re.compile(r"HOLD-(\d+)$")

ALREADY_RETRIEVED_MESSAGE = "This held sale has already been retrieved."


class HeldSaleError(Exception):
    """Raised for held sale precondition failures."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def held_sale_ttl() -> timedelta:
    return timedelta(hours=current_app.config.get("HELD_SALE_TTL_HOURS", 24))


def _expiry_cutoff(now: datetime) -> datetime:
    return now - held_sale_ttl()


def _log_cross_tenant_attempt(ctx: TenantContext, reason: str) -> None:
    current_app.logger.warning(
        "Cross-tenant access denied: user_id=%s tenant_id=%s %s",
        ctx.user_id, ctx.tenant_id, reason,
    )


def _require_shop_in_tenant(ctx: TenantContext, shop: Shop) -> None:
    if shop.tenant_id != ctx.tenant_id:
        _log_cross_tenant_attempt(ctx, f"shop {shop.id} belongs to tenant {shop.tenant_id}")
        raise TenantAccessError("Shop not found")  # Don't reveal it exists in another tenant


def _require_customer_in_tenant(ctx: TenantContext, customer_id: int) -> None:
    customer = db.session.query(Customer).filter_by(id=customer_id).first()
    if not customer or customer.tenant_id != ctx.tenant_id:
        _log_cross_tenant_attempt(ctx, f"customer {customer_id} not in tenant")
        raise TenantAccessError("Customer not found")


def _tenant_query(ctx: TenantContext):
    return db.session.query(HeldSale).filter(HeldSale.tenant_id == ctx.tenant_id)


def _active_query(ctx: TenantContext, shop: Shop):
    return _tenant_query(ctx).filter(
        HeldSale.shop_id == shop.id,
        HeldSale.retrieved_at.is_(None),
        HeldSale.created_at > _expiry_cutoff(ctx.now()),
    )


def next_hold_reference(shop_id: int) -> str:
    """
    Next sequential reference for a shop: HOLD-001, HOLD-002, ...

    Locks the latest row of the shop so concurrent holds serialize where the
    dialect supports it; the (shop_id, hold_reference) unique constraint
    catches the rest.
    """
    last_hold = lock_for_update(
        db.session.query(HeldSale)
        .filter(HeldSale.shop_id == shop_id)
        .order_by(HeldSale.id.desc())
    ).first()

    sequence = 1
    if last_hold:
        match = _HOLD_REFERENCE_RE.search(last_hold.hold_reference)
        if match:
            sequence = int(match.group(1)) + 1

    return f"{HOLD_REFERENCE_PREFIX}{sequence:03d}"


def hold_sale(
    ctx: TenantContext,
    shop: Shop,
    items: list,
    customer_id: int | None = None,
    notes: str | None = None,
) -> HeldSale:
    """
    Hold a sale for later retrieval.

    items is stored verbatim; validating its contents is the caller's job.

    Raises:
        TenantAccessError: shop or customer belongs to another tenant
    """
    _require_shop_in_tenant(ctx, shop)
    if customer_id is not None:
        _require_customer_in_tenant(ctx, customer_id)

    def _op():
        held_sale = HeldSale(
            tenant_id=ctx.tenant_id,
            shop_id=shop.id,
            hold_reference=next_hold_reference(shop.id),
            customer_id=customer_id,
            items=items,
            notes=notes,
            held_by_user_id=ctx.user_id,
            created_at=ctx.now(),
        )
        db.session.add(held_sale)
        db.session.commit()
        return held_sale

    held_sale = run_with_retry(_op, retry_on=RETRYABLE_ERRORS + (IntegrityError,))
    current_app.logger.info(
        "Held sale %s (%s) for shop_id=%s by user_id=%s",
        held_sale.id, held_sale.hold_reference, shop.id, ctx.user_id,
    )
    return held_sale


def retrieve_held_sale(ctx: TenantContext, held_sale: HeldSale) -> HeldSale:
    """
    Mark a held sale as retrieved by the current user.

    The state check and the write are one conditional UPDATE, so two
    concurrent retrievals cannot both succeed.

    Raises:
        TenantAccessError: held sale belongs to another tenant
        HeldSaleError: already retrieved (no mutation happens)
    """
    held_sale_id = held_sale.id

    if held_sale.tenant_id != ctx.tenant_id:
        _log_cross_tenant_attempt(ctx, f"held sale {held_sale_id} belongs to tenant {held_sale.tenant_id}")
        raise TenantAccessError("Held sale not found")

    if held_sale.is_retrieved:
        raise HeldSaleError(ALREADY_RETRIEVED_MESSAGE, details={"held_sale_id": held_sale_id})

    updated = _tenant_query(ctx).filter(
        HeldSale.id == held_sale_id,
        HeldSale.retrieved_at.is_(None),
    ).update(
        {
            HeldSale.retrieved_at: ctx.now(),
            HeldSale.retrieved_by_user_id: ctx.user_id,
        },
        synchronize_session=False,
    )

    if updated == 0:
        db.session.rollback()
        current_app.logger.warning("Held sale %s was retrieved concurrently", held_sale_id)
        raise HeldSaleError(ALREADY_RETRIEVED_MESSAGE, details={"held_sale_id": held_sale_id})

    db.session.commit()
    db.session.refresh(held_sale)
    current_app.logger.info("Held sale %s retrieved by user_id=%s", held_sale_id, ctx.user_id)
    return held_sale


def delete_held_sale(ctx: TenantContext, held_sale: HeldSale) -> bool:
    """Delete a held sale in any state. Returns whether a row was removed."""
    held_sale_id = held_sale.id
    deleted = _tenant_query(ctx).filter(HeldSale.id == held_sale_id).delete(synchronize_session=False)
    db.session.commit()

    if deleted:
        if held_sale in db.session:
            db.session.expunge(held_sale)
        current_app.logger.info("Held sale %s deleted by user_id=%s", held_sale_id, ctx.user_id)
    return deleted > 0


def get_active_held_sales(ctx: TenantContext, shop: Shop) -> list[HeldSale]:
    """Active held sales of a shop, newest first, customer and holder loaded."""
    return (
        _active_query(ctx, shop)
        .options(joinedload(HeldSale.customer), joinedload(HeldSale.held_by))
        .order_by(HeldSale.created_at.desc(), HeldSale.id.desc())
        .all()
    )


def get_active_count(ctx: TenantContext, shop: Shop) -> int:
    return _active_query(ctx, shop).count()


def get_held_sale(ctx: TenantContext, held_sale_id: int) -> HeldSale | None:
    """
    Fetch one held sale of the current tenant in any state.

    Returns None both when it does not exist and when it belongs to another
    tenant; the two cases are indistinguishable to the caller.
    """
    return (
        _tenant_query(ctx)
        .options(joinedload(HeldSale.customer), joinedload(HeldSale.held_by))
        .filter(HeldSale.id == held_sale_id)
        .first()
    )


def _expired_query(now: datetime | None):
    cutoff = _expiry_cutoff(now or utcnow())
    return db.session.query(HeldSale).filter(HeldSale.created_at <= cutoff)


def count_expired_held_sales(now: datetime | None = None) -> int:
    return _expired_query(now).count()


def cleanup_expired_held_sales(now: datetime | None = None) -> int:
    """
    Delete expired held sales across all tenants (for scheduled task).

    One bulk DELETE on the expiry predicate: idempotent, and it never touches
    rows that are still active.
    """
    deleted = _expired_query(now).delete(synchronize_session=False)
    db.session.commit()
    current_app.logger.info("Cleaned up %s expired held sale(s)", deleted)
    return deleted
