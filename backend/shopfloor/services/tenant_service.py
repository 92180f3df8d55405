"""
Tenant Provisioning Service: create a tenant together with its owner account

WHY: A tenant without an owner is unusable, and an owner without a tenant
breaks isolation. Both rows are written in one transaction so that neither
can be observed alone.

INVARIANTS:
1. Tenant slugs are globally unique and never empty
2. Exactly one owner user is created per provisioning call
3. Any failure rolls back both inserts
4. The owner password is hashed before it touches the session and is never logged

USAGE:
    from shopfloor.services.tenant_service import create_tenant

    result = create_tenant(
        {"name": "Acme Corp", "email": "owner@acme.test"},
        {"first_name": "Ada", "last_name": "Lovelace",
         "email": "ada@acme.test", "password": "s3cret!"},
    )
    result.tenant.slug  # "acme-corp"
"""

from __future__ import annotations

import re
import secrets
import unicodedata
from dataclasses import dataclass
from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Tenant, User, ROLE_OWNER
from ..time_utils import utcnow
from ..validation import ValidationError, ConflictError, require_fields
from .auth_service import hash_password

TENANT_REQUIRED_FIELDS = ("name", "email")
OWNER_REQUIRED_FIELDS = ("first_name", "last_name", "email", "password")

SLUG_MAX_LENGTH = 200

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


@dataclass
class ProvisionedTenant:
    """Result of create_tenant: the new tenant and its owner."""
    tenant: Tenant
    owner: User


def slugify(value: str) -> str:
    """
    Lowercase URL-safe slug: accents folded to ASCII, runs of anything that
    is not a letter or digit collapsed to a single "-", no leading/trailing "-".
    """
    folded = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    slug = _NON_ALNUM.sub("-", folded.lower()).strip("-")
    return slug[:SLUG_MAX_LENGTH].rstrip("-")


def _slug_taken(slug: str) -> bool:
    return db.session.query(Tenant.id).filter_by(slug=slug).first() is not None


def _random_suffix_slug(base: str) -> str:
    return f"{base}-{secrets.token_hex(3)}"


def unique_slug(base: str) -> str:
    """
    Return base, or base-1, base-2, ... whichever is free first.

    The sequential search is bounded by TENANT_SLUG_MAX_ATTEMPTS; past that a
    random suffix is used. This is a best-effort pre-check, the unique
    constraint on tenants.slug remains the authoritative guard.
    """
    max_attempts = current_app.config.get("TENANT_SLUG_MAX_ATTEMPTS", 100)

    if not _slug_taken(base):
        return base

    for counter in range(1, max_attempts):
        candidate = f"{base}-{counter}"
        if not _slug_taken(candidate):
            return candidate

    return _random_suffix_slug(base)


def _insert_tenant_and_owner(
    tenant_data: dict,
    owner_data: dict,
    slug: str,
    password_hash: str,
    now: datetime,
) -> ProvisionedTenant:
    trial_days = current_app.config.get("TENANT_TRIAL_DAYS", 50)
    default_max_users = current_app.config.get("TENANT_DEFAULT_MAX_USERS", 10)
    max_users = tenant_data.get("max_users")
    if max_users is None:
        max_users = default_max_users

    tenant = Tenant(
        name=tenant_data["name"].strip(),
        slug=slug,
        email=tenant_data["email"].strip(),
        phone=tenant_data.get("phone"),
        address=tenant_data.get("address"),
        max_users=max_users,
        is_active=True,
        trial_ends_at=now + timedelta(days=trial_days),
        created_at=now,
        updated_at=now,
    )
    db.session.add(tenant)
    db.session.flush()  # assigns tenant.id

    owner = User(
        tenant_id=tenant.id,
        first_name=owner_data["first_name"].strip(),
        last_name=owner_data["last_name"].strip(),
        email=owner_data["email"].strip(),
        password_hash=password_hash,
        role=ROLE_OWNER,
        is_tenant_owner=True,
        is_active=True,
        created_at=now,
    )
    db.session.add(owner)
    db.session.flush()

    return ProvisionedTenant(tenant=tenant, owner=owner)


def _owner_email_taken(email: str) -> bool:
    return db.session.query(User.id).filter_by(email=email).first() is not None


def create_tenant(tenant_data: dict, owner_data: dict, *, now: datetime | None = None) -> ProvisionedTenant:
    """
    Create a tenant and its owner user atomically.

    Args:
        tenant_data: name, email (required); phone, address, max_users (optional)
        owner_data: first_name, last_name, email, password (all required)
        now: provisioning time (defaults to utcnow); drives trial_ends_at

    Returns:
        ProvisionedTenant with both committed records

    Raises:
        ValidationError: missing fields or a name that yields an empty slug
        ConflictError: owner email already registered, or the slug was taken
            concurrently twice in a row
    """
    require_fields(tenant_data, TENANT_REQUIRED_FIELDS, label="Tenant")
    require_fields(owner_data, OWNER_REQUIRED_FIELDS, label="Owner")

    base_slug = slugify(tenant_data["name"])
    if not base_slug:
        raise ValidationError("Tenant name must contain at least one letter or digit")

    if now is None:
        now = utcnow()

    # Hash outside the transaction; bcrypt is deliberately slow
    password_hash = hash_password(owner_data["password"])
    owner_email = owner_data["email"].strip()

    slug = unique_slug(base_slug)
    for attempt in range(2):
        try:
            result = _insert_tenant_and_owner(tenant_data, owner_data, slug, password_hash, now)
            db.session.commit()
        except IntegrityError:
            db.session.rollback()

            if _owner_email_taken(owner_email):
                current_app.logger.info("Tenant provisioning rejected: owner email already registered")
                raise ConflictError("A user with this email already exists")

            if attempt == 0 and _slug_taken(slug):
                # Lost a race with a concurrent tenant of the same name
                current_app.logger.warning("Tenant slug %r taken concurrently, retrying", slug)
                slug = _random_suffix_slug(base_slug)
                continue

            raise ConflictError("Tenant could not be created due to a conflicting record")
        except Exception:
            db.session.rollback()
            raise

        current_app.logger.info(
            "Provisioned tenant id=%s slug=%s owner_id=%s",
            result.tenant.id, result.tenant.slug, result.owner.id,
        )
        return result

    raise ConflictError("Tenant slug is already taken")


def get_tenant_by_slug(slug: str) -> Tenant | None:
    return db.session.query(Tenant).filter_by(slug=slug).first()


def list_tenants() -> list[Tenant]:
    return db.session.query(Tenant).order_by(Tenant.created_at.desc(), Tenant.id.desc()).all()
