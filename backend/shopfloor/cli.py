# Overview: Flask CLI command groups for bootstrap, tenant provisioning, and maintenance.

# backend/shopfloor/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Use: flask --app shopfloor <group> <command> [options]
#
# System bootstrap/repair:
# - flask --app shopfloor system init-db
#   Create all tables that do not exist yet (idempotent).
# - flask --app shopfloor system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Tenant management (MULTI-TENANT):
# - flask --app shopfloor tenants create --name "Acme Corp" --email owner@acme.test \
#       --owner-first-name Ada --owner-last-name Lovelace --owner-email ada@acme.test
#   Create a tenant and its owner user (password is prompted).
# - flask --app shopfloor tenants list
#   List all tenants.
# - flask --app shopfloor tenants add-shop --slug acme-corp --name "Main Street"
#   Add a shop to a tenant.
#
# Held sales:
# - flask --app shopfloor held-sales cleanup [--dry-run]
#   Delete held sales older than HELD_SALE_TTL_HOURS (schedule this, e.g. hourly cron).

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import Shop
from .services import held_sale_service, tenant_service
from .validation import ValidationError, ConflictError
from .time_utils import to_utc_z


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables (existing tables are left untouched)."""
    db.create_all()
    click.echo("PASS Database schema ready.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete.")


@click.group('tenants')
def tenants_group():
    """Tenant management commands."""


@tenants_group.command('create')
@click.option('--name', required=True, help='Tenant name (slug is derived from it)')
@click.option('--email', required=True, help='Tenant contact email')
@click.option('--phone', help='Contact phone')
@click.option('--address', help='Postal address')
@click.option('--max-users', type=int, help='User quota (defaults to TENANT_DEFAULT_MAX_USERS)')
@click.option('--owner-first-name', required=True)
@click.option('--owner-last-name', required=True)
@click.option('--owner-email', required=True)
@click.option('--owner-password', prompt=True, hide_input=True, confirmation_prompt=True, help='Owner password')
@with_appcontext
def create_tenant_cli(name, email, phone, address, max_users,
                      owner_first_name, owner_last_name, owner_email, owner_password):
    """Create a new tenant together with its owner user."""
    tenant_data = {
        "name": name,
        "email": email,
        "phone": phone,
        "address": address,
        "max_users": max_users,
    }
    owner_data = {
        "first_name": owner_first_name,
        "last_name": owner_last_name,
        "email": owner_email,
        "password": owner_password,
    }

    try:
        result = tenant_service.create_tenant(tenant_data, owner_data)
    except (ValidationError, ConflictError) as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)
    except Exception:
        current_app.logger.exception("Failed to create tenant")
        click.echo("FAIL Internal error while creating tenant")
        raise SystemExit(1)

    click.echo(
        f"PASS Created tenant: {result.tenant.name} "
        f"(ID: {result.tenant.id}, Slug: {result.tenant.slug}, "
        f"Trial ends: {to_utc_z(result.tenant.trial_ends_at)})"
    )
    click.echo(f"PASS Created owner: {result.owner.email} (ID: {result.owner.id})")


@tenants_group.command('list')
@with_appcontext
def list_tenants_cli():
    """List all tenants."""
    tenants = tenant_service.list_tenants()
    if not tenants:
        click.echo("No tenants found.")
        return

    for tenant in tenants:
        status = "active" if tenant.is_active else "inactive"
        click.echo(f"{tenant.id:>5}  {tenant.slug:<32} {tenant.name} [{status}] users<={tenant.max_users}")


@tenants_group.command('add-shop')
@click.option('--slug', required=True, help='Tenant slug')
@click.option('--name', required=True, help='Shop name (unique within tenant)')
@with_appcontext
def add_shop_cli(slug, name):
    """Add a shop to a tenant."""
    tenant = tenant_service.get_tenant_by_slug(slug)
    if not tenant:
        click.echo(f"FAIL Tenant '{slug}' not found")
        raise SystemExit(1)

    existing = db.session.query(Shop).filter_by(tenant_id=tenant.id, name=name).first()
    if existing:
        click.echo(f"FAIL Shop '{name}' already exists in tenant '{slug}'")
        raise SystemExit(1)

    shop = Shop(tenant_id=tenant.id, name=name)
    db.session.add(shop)
    db.session.commit()

    click.echo(f"PASS Created shop: {shop.name} (ID: {shop.id}) in tenant {tenant.slug}")


@click.group('held-sales')
def held_sales_group():
    """Held sale maintenance commands."""


@held_sales_group.command('cleanup')
@click.option('--dry-run', is_flag=True, help='Report what would be deleted without deleting')
@with_appcontext
def cleanup_held_sales_cli(dry_run):
    """
    Delete expired held sales across all tenants.

    Expired means created more than HELD_SALE_TTL_HOURS ago.
    """
    ttl_hours = current_app.config.get("HELD_SALE_TTL_HOURS", 24)

    if dry_run:
        count = held_sale_service.count_expired_held_sales()
        click.echo(f"[DRY RUN] Would delete {count} held sale(s) older than {ttl_hours} hours.")
        return

    deleted = held_sale_service.cleanup_expired_held_sales()
    click.echo(f"Deleted {deleted} held sale(s) older than {ttl_hours} hours.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(tenants_group)  # Multi-tenant provisioning
    app.cli.add_command(held_sales_group)
