# Overview: Pytest coverage for tenant isolation behavior.

"""
Multi-Tenant Isolation Tests

SECURITY TESTS: Prove that cross-tenant access is denied for held sales.

These tests create two tenants with separate shops and users, then verify
that:
1. User A cannot hold sales in Tenant B's shop or for Tenant B's customer
2. Tenant B's held sales never show up in Tenant A's lists or counts
3. Cross-tenant lookups return None (not errors that reveal existence)
4. Cross-tenant retrieve/delete is refused and leaves the row untouched
5. Tenant context must be present for every call
"""

import pytest
from flask import g

from shopfloor.context import TenantContext, TenantAccessError
from shopfloor.models import HeldSale
from shopfloor.services import held_sale_service


class TestTenantContext:

    def test_missing_ids_rejected(self):
        with pytest.raises(TenantAccessError):
            TenantContext(user_id=None, tenant_id=1)
        with pytest.raises(TenantAccessError):
            TenantContext(user_id=1, tenant_id=None)

    def test_from_request(self, app, user_a, tenant_a):
        with app.test_request_context():
            g.current_user = user_a
            g.tenant_id = tenant_a.id

            ctx = TenantContext.from_request()

        assert ctx.user_id == user_a.id
        assert ctx.tenant_id == tenant_a.id

    def test_from_request_without_auth(self, app):
        with app.test_request_context():
            with pytest.raises(TenantAccessError):
                TenantContext.from_request()

    def test_default_clock_is_utc_now(self, user_a, tenant_a):
        ctx = TenantContext(user_id=user_a.id, tenant_id=tenant_a.id)
        assert ctx.now().tzinfo is None


class TestHoldIsolation:

    def test_cannot_hold_in_foreign_shop(self, db_session, ctx_a, shop_b, valid_items):
        with pytest.raises(TenantAccessError):
            held_sale_service.hold_sale(ctx_a, shop_b, valid_items)

        assert db_session.query(HeldSale).count() == 0

    def test_cannot_attach_foreign_customer(self, db_session, ctx_a, shop_a, customer_b, valid_items):
        with pytest.raises(TenantAccessError):
            held_sale_service.hold_sale(ctx_a, shop_a, valid_items, customer_id=customer_b.id)

        assert db_session.query(HeldSale).count() == 0

    def test_unknown_customer_rejected(self, db_session, ctx_a, shop_a, valid_items):
        with pytest.raises(TenantAccessError):
            held_sale_service.hold_sale(ctx_a, shop_a, valid_items, customer_id=99999)


class TestQueryIsolation:

    def test_lists_and_counts_exclude_other_tenant(self, db_session, ctx_a, ctx_b, shop_a, shop_b, valid_items):
        held_sale_service.hold_sale(ctx_a, shop_a, valid_items)
        held_sale_service.hold_sale(ctx_b, shop_b, valid_items)
        held_sale_service.hold_sale(ctx_b, shop_b, valid_items)

        assert held_sale_service.get_active_count(ctx_a, shop_a) == 1
        assert held_sale_service.get_active_count(ctx_b, shop_b) == 2

        # Asking for the foreign shop through your own context yields nothing
        assert held_sale_service.get_active_held_sales(ctx_a, shop_b) == []
        assert held_sale_service.get_active_count(ctx_a, shop_b) == 0

        for held in held_sale_service.get_active_held_sales(ctx_a, shop_a):
            assert held.tenant_id == ctx_a.tenant_id

    def test_get_held_sale_cross_tenant_returns_none(self, db_session, ctx_a, ctx_b, shop_b, valid_items):
        foreign = held_sale_service.hold_sale(ctx_b, shop_b, valid_items)

        assert held_sale_service.get_held_sale(ctx_a, foreign.id) is None
        assert held_sale_service.get_held_sale(ctx_b, foreign.id) is not None


class TestMutationIsolation:

    def test_cannot_retrieve_foreign_held_sale(self, db_session, ctx_a, ctx_b, shop_b, valid_items):
        foreign = held_sale_service.hold_sale(ctx_b, shop_b, valid_items)

        with pytest.raises(TenantAccessError):
            held_sale_service.retrieve_held_sale(ctx_a, foreign)

        assert held_sale_service.get_held_sale(ctx_b, foreign.id).retrieved_at is None

    def test_cannot_delete_foreign_held_sale(self, db_session, ctx_a, ctx_b, shop_b, valid_items):
        foreign = held_sale_service.hold_sale(ctx_b, shop_b, valid_items)
        foreign_id = foreign.id

        assert held_sale_service.delete_held_sale(ctx_a, foreign) is False
        assert held_sale_service.get_held_sale(ctx_b, foreign_id) is not None
