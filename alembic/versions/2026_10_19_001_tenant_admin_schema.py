"""Tenant admin schema with RLS on tenant-scoped tables

Revision ID: 001_tenant_admin_schema
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = '001_tenant_admin_schema'
down_revision = None

TENANT_SCOPED_TABLES = (
    'memberships',
    'tenant_identifiers',
    'documents',
    'transactions',
    'line_items',
    'bank_accounts',
    'tenant_settings',
    'tenant_statistics',
    'ai_usage_events',
)

# Caller identity is passed as a session setting by whoever connects with a non-owner role
MEMBER_POLICY = """
    CREATE POLICY tenant_member_access ON {table}
    FOR ALL
    USING (
        EXISTS (
            SELECT 1 FROM profiles p
            WHERE p.id = nullif(current_setting('app.current_user_id', true), '')::uuid
              AND p.is_super_admin
        )
        OR tenant_id IN (
            SELECT m.tenant_id FROM memberships m
            WHERE m.user_id = nullif(current_setting('app.current_user_id', true), '')::uuid
              AND m.is_active
        )
    );
"""

# memberships cannot query itself inside its own policy
OWN_MEMBERSHIP_POLICY = """
    CREATE POLICY tenant_member_access ON memberships
    FOR ALL
    USING (
        user_id = nullif(current_setting('app.current_user_id', true), '')::uuid
        OR EXISTS (
            SELECT 1 FROM profiles p
            WHERE p.id = nullif(current_setting('app.current_user_id', true), '')::uuid
              AND p.is_super_admin
        )
    );
"""


def _uuid():
    return postgresql.UUID(as_uuid=True)


def _tenant_fk():
    return sa.Column('tenant_id', _uuid(), sa.ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False, index=True)


def upgrade():
    op.create_table(
        'tenants',
        sa.Column('id', _uuid(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False, index=True),
        sa.Column('slug', sa.String(), nullable=False, unique=True, index=True),
        sa.Column('locale', sa.String(16), nullable=False, server_default='en'),
        sa.Column('currency', sa.String(3), nullable=True),
        sa.Column('owner_id', _uuid(), nullable=True, index=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true', index=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.current_timestamp()),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'profiles',
        sa.Column('id', _uuid(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=True, index=True),
        sa.Column('is_super_admin', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.current_timestamp()),
    )

    op.create_table(
        'memberships',
        sa.Column('id', _uuid(), primary_key=True),
        sa.Column('user_id', _uuid(), nullable=False, index=True),
        _tenant_fk(),
        sa.Column(
            'role',
            sa.Enum('COMPANY_ADMIN', 'ACCOUNTANT', 'MEMBER', name='membershiprole'),
            nullable=False,
            server_default='MEMBER',
        ),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true', index=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.current_timestamp()),
        sa.UniqueConstraint('user_id', 'tenant_id', name='uq_membership_user_tenant'),
    )

    op.create_table(
        'tenant_identifiers',
        sa.Column('id', _uuid(), primary_key=True),
        _tenant_fk(),
        sa.Column('identifier_type', sa.Enum('NAME_ALIAS', name='identifiertype'), nullable=False, index=True),
        sa.Column('identifier_value', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.current_timestamp()),
    )

    op.create_table(
        'documents',
        sa.Column('id', _uuid(), primary_key=True),
        _tenant_fk(),
        sa.Column('file_name', sa.String(255), nullable=False),
        sa.Column('mime_type', sa.String(100), nullable=True),
        sa.Column('size_bytes', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(50), nullable=False, server_default='uploaded'),
        sa.Column('storage_path', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.current_timestamp(), index=True),
    )

    op.create_table(
        'transactions',
        sa.Column('id', _uuid(), primary_key=True),
        _tenant_fk(),
        sa.Column('document_id', _uuid(), sa.ForeignKey('documents.id', ondelete='SET NULL'), nullable=True, index=True),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('amount', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('currency', sa.String(3), nullable=True),
        sa.Column('transaction_date', sa.Date(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.current_timestamp()),
    )

    op.create_table(
        'line_items',
        sa.Column('id', _uuid(), primary_key=True),
        _tenant_fk(),
        sa.Column('transaction_id', _uuid(), sa.ForeignKey('transactions.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('quantity', sa.Numeric(12, 3), nullable=False, server_default='1'),
        sa.Column('unit_price', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('amount', sa.Numeric(14, 2), nullable=False, server_default='0'),
    )

    op.create_table(
        'bank_accounts',
        sa.Column('id', _uuid(), primary_key=True),
        _tenant_fk(),
        sa.Column('bank_name', sa.String(255), nullable=False),
        sa.Column('account_name', sa.String(255), nullable=True),
        sa.Column('account_number', sa.String(64), nullable=True),
        sa.Column('currency', sa.String(3), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.current_timestamp()),
    )

    op.create_table(
        'tenant_settings',
        sa.Column('id', _uuid(), primary_key=True),
        _tenant_fk(),
        sa.Column('setting_key', sa.String(100), nullable=False, index=True),
        sa.Column('setting_value', sa.JSON(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.current_timestamp()),
    )

    op.create_table(
        'tenant_statistics',
        sa.Column('id', _uuid(), primary_key=True),
        _tenant_fk(),
        sa.Column('metric', sa.String(100), nullable=False),
        sa.Column('value', sa.Float(), nullable=False, server_default='0'),
        sa.Column('period_start', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.current_timestamp()),
    )

    op.create_table(
        'ai_usage_events',
        sa.Column('id', _uuid(), primary_key=True),
        _tenant_fk(),
        sa.Column('model', sa.String(100), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='success'),
        sa.Column('tokens_input', sa.Integer(), nullable=True, server_default='0'),
        sa.Column('tokens_output', sa.Integer(), nullable=True, server_default='0'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.current_timestamp(), index=True),
    )
    op.create_index('idx_ai_usage_tenant_created', 'ai_usage_events', ['tenant_id', 'created_at'])

    op.create_table(
        'system_settings',
        sa.Column('setting_key', sa.String(100), primary_key=True),
        sa.Column('setting_value', sa.JSON(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.current_timestamp()),
    )

    op.create_table(
        'user_subscriptions',
        sa.Column('id', _uuid(), primary_key=True),
        sa.Column('user_id', sa.String(255), nullable=True, index=True),
        sa.Column('plan_id', sa.String(255), nullable=True),
        sa.Column('stripe_subscription_id', sa.String(255), nullable=False, unique=True, index=True),
        sa.Column('stripe_customer_id', sa.String(255), nullable=True),
        sa.Column('status', sa.String(50), nullable=False, server_default='incomplete'),
        sa.Column('current_period_end', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.current_timestamp()),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    # Enable Row Level Security on tenant-scoped tables
    for table in TENANT_SCOPED_TABLES:
        op.execute(f'ALTER TABLE {table} ENABLE ROW LEVEL SECURITY')
        if table == 'memberships':
            op.execute(OWN_MEMBERSHIP_POLICY)
        else:
            op.execute(MEMBER_POLICY.format(table=table))


def downgrade():
    for table in TENANT_SCOPED_TABLES:
        op.execute(f'DROP POLICY IF EXISTS tenant_member_access ON {table}')
        op.execute(f'ALTER TABLE {table} DISABLE ROW LEVEL SECURITY')

    op.drop_table('user_subscriptions')
    op.drop_table('system_settings')
    op.drop_index('idx_ai_usage_tenant_created', 'ai_usage_events')
    op.drop_table('ai_usage_events')
    op.drop_table('tenant_statistics')
    op.drop_table('tenant_settings')
    op.drop_table('bank_accounts')
    op.drop_table('line_items')
    op.drop_table('transactions')
    op.drop_table('documents')
    op.drop_table('tenant_identifiers')
    op.drop_table('memberships')
    op.drop_table('profiles')
    op.drop_table('tenants')

    op.execute('DROP TYPE IF EXISTS identifiertype')
    op.execute('DROP TYPE IF EXISTS membershiprole')
