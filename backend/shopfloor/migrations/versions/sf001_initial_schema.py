"""Initial schema: tenants, users, shops, customers, held sales

MULTI-TENANT SCHEMA:
1. 'tenants' is the tenant root (globally unique slug)
2. users, shops, customers and held_sales carry tenant_id
3. users.email is globally unique (login identifier)
4. held_sales.hold_reference is unique per shop

Revision ID: sf001_initial_schema
Revises:
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'sf001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('tenants',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('slug', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('max_users', sa.Integer(), nullable=False, server_default='10'),
        sa.Column('trial_ends_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_tenants_slug', 'tenants', ['slug'], unique=True)
    op.create_index('ix_tenants_is_active', 'tenants', ['is_active'])

    op.create_table('users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('first_name', sa.String(length=128), nullable=False),
        sa.Column('last_name', sa.String(length=128), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('is_tenant_owner', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email', name='uq_users_email'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_users_tenant_id', 'users', ['tenant_id'])

    op.create_table('shops',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'name', name='uq_shops_tenant_name'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_shops_tenant_id', 'shops', ['tenant_id'])

    op.create_table('customers',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('first_name', sa.String(length=128), nullable=False),
        sa.Column('last_name', sa.String(length=128), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'email', name='uq_customers_tenant_email'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_customers_tenant_id', 'customers', ['tenant_id'])

    op.create_table('held_sales',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('shop_id', sa.Integer(), nullable=False),
        sa.Column('hold_reference', sa.String(length=32), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=True),
        sa.Column('items', sa.JSON(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('held_by_user_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('retrieved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('retrieved_by_user_id', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id']),
        sa.ForeignKeyConstraint(['shop_id'], ['shops.id']),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id']),
        sa.ForeignKeyConstraint(['held_by_user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['retrieved_by_user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('shop_id', 'hold_reference', name='uq_held_sales_shop_reference'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_held_sales_tenant_id', 'held_sales', ['tenant_id'])
    op.create_index('ix_held_sales_shop_id', 'held_sales', ['shop_id'])
    op.create_index('ix_held_sales_created_at', 'held_sales', ['created_at'])
    op.create_index(
        'ix_held_sales_tenant_shop_retrieved', 'held_sales',
        ['tenant_id', 'shop_id', 'retrieved_at'],
    )


def downgrade():
    op.drop_index('ix_held_sales_tenant_shop_retrieved', table_name='held_sales')
    op.drop_index('ix_held_sales_created_at', table_name='held_sales')
    op.drop_index('ix_held_sales_shop_id', table_name='held_sales')
    op.drop_index('ix_held_sales_tenant_id', table_name='held_sales')
    op.drop_table('held_sales')

    op.drop_index('ix_customers_tenant_id', table_name='customers')
    op.drop_table('customers')

    op.drop_index('ix_shops_tenant_id', table_name='shops')
    op.drop_table('shops')

    op.drop_index('ix_users_tenant_id', table_name='users')
    op.drop_table('users')

    op.drop_index('ix_tenants_is_active', table_name='tenants')
    op.drop_index('ix_tenants_slug', table_name='tenants')
    op.drop_table('tenants')
