# Overview: Pytest coverage for the Flask CLI command groups.

from datetime import timedelta

from shopfloor.models import Tenant, User, Shop, HeldSale
from shopfloor.services import held_sale_service
from shopfloor.time_utils import utcnow


def _create_args(name="Acme Corp", owner_email="ada@acme.test"):
    return [
        "tenants", "create",
        "--name", name,
        "--email", "contact@acme.test",
        "--owner-first-name", "Ada",
        "--owner-last-name", "Lovelace",
        "--owner-email", owner_email,
        "--owner-password", "Sup3r-secret!",
    ]


class TestTenantCommands:

    def test_create_tenant(self, app, db_session):
        runner = app.test_cli_runner()

        result = runner.invoke(args=_create_args())

        assert result.exit_code == 0, result.output
        assert "Slug: acme-corp" in result.output
        assert "Sup3r-secret!" not in result.output
        assert db_session.query(Tenant).count() == 1
        assert db_session.query(User).filter_by(email="ada@acme.test", is_tenant_owner=True).count() == 1

    def test_create_tenant_conflict(self, app, db_session):
        runner = app.test_cli_runner()
        runner.invoke(args=_create_args())

        result = runner.invoke(args=_create_args(name="Other"))

        assert result.exit_code == 1
        assert "FAIL" in result.output
        assert db_session.query(Tenant).count() == 1

    def test_list_and_add_shop(self, app, db_session):
        runner = app.test_cli_runner()
        runner.invoke(args=_create_args())

        listed = runner.invoke(args=["tenants", "list"])
        assert "acme-corp" in listed.output

        added = runner.invoke(args=["tenants", "add-shop", "--slug", "acme-corp", "--name", "Main Street"])
        assert added.exit_code == 0, added.output
        assert db_session.query(Shop).filter_by(name="Main Street").count() == 1

        duplicate = runner.invoke(args=["tenants", "add-shop", "--slug", "acme-corp", "--name", "Main Street"])
        assert duplicate.exit_code == 1

        missing = runner.invoke(args=["tenants", "add-shop", "--slug", "nope", "--name", "X"])
        assert missing.exit_code == 1


class TestHeldSaleCommands:

    def test_cleanup(self, app, db_session, ctx_a, shop_a, valid_items):
        # The CLI uses the real clock; age the rows relative to it
        held = held_sale_service.hold_sale(ctx_a, shop_a, valid_items)
        db_session.query(HeldSale).filter_by(id=held.id).update(
            {HeldSale.created_at: utcnow() - timedelta(days=2)},
            synchronize_session=False,
        )
        db_session.commit()
        runner = app.test_cli_runner()

        dry = runner.invoke(args=["held-sales", "cleanup", "--dry-run"])
        assert "Would delete 1" in dry.output
        assert db_session.query(HeldSale).count() == 1

        real = runner.invoke(args=["held-sales", "cleanup"])
        assert "Deleted 1" in real.output
        assert db_session.query(HeldSale).count() == 0

        again = runner.invoke(args=["held-sales", "cleanup"])
        assert "Deleted 0" in again.output


class TestSystemCommands:

    def test_init_db_is_idempotent(self, app, db_session):
        runner = app.test_cli_runner()
        runner.invoke(args=_create_args())

        result = runner.invoke(args=["system", "init-db"])

        assert result.exit_code == 0, result.output
        assert "PASS Database schema ready." in result.output
        assert db_session.query(Tenant).count() == 1

    def test_reset_db_requires_confirmation(self, app, db_session):
        runner = app.test_cli_runner()
        runner.invoke(args=_create_args())

        result = runner.invoke(args=["system", "reset-db"], input="n\n")

        assert result.exit_code == 1
        assert db_session.query(Tenant).count() == 1

    def test_reset_db_with_yes_drops_data(self, app, db_session):
        runner = app.test_cli_runner()
        runner.invoke(args=_create_args())

        result = runner.invoke(args=["system", "reset-db", "--yes"])

        assert result.exit_code == 0, result.output
        assert "PASS Database reset complete." in result.output
        assert db_session.query(Tenant).count() == 0
        assert db_session.query(User).count() == 0
