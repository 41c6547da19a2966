"""Initial identity schema

Revision ID: 0001_initial_identity_schema
Revises:
Create Date: 2026-10-17 10:00:00.000000

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001_initial_identity_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACCOUNT_STATUSES = ('PENDING', 'ACTIVE', 'SUSPENDED', 'BLOCKED', 'DELETED')
USER_STATUSES = ('PENDING', 'ACTIVE', 'BLOCKED', 'REJECTED', 'DEACTIVATED', 'DELETED')


def upgrade() -> None:
    """Create accounts, users, addresses, password history, cloud profiles and audit log."""
    op.create_table(
        'accounts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('account_name', sa.String(254), nullable=False),
        sa.Column('parent_id', sa.Integer(), nullable=True),
        sa.Column('status', sa.Enum(*ACCOUNT_STATUSES, name='account_status'), nullable=False),
        sa.Column('default_roles', sa.JSON(), nullable=False),
        sa.Column('created_by', sa.String(256), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_by', sa.String(256), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_accounts_account_name', 'accounts', ['account_name'], unique=True)
    op.create_index('ix_accounts_parent_id', 'accounts', ['parent_id'], unique=False)

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('username', sa.String(254), nullable=False),
        sa.Column('email', sa.String(254), nullable=True),
        sa.Column('first_name', sa.String(128), nullable=True),
        sa.Column('last_name', sa.String(128), nullable=True),
        sa.Column('account_id', sa.Integer(), sa.ForeignKey('accounts.id'), nullable=False),
        sa.Column('status', sa.Enum(*USER_STATUSES, name='user_status'), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=True),
        sa.Column('password_changed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('roles', sa.JSON(), nullable=False),
        sa.Column('created_by', sa.String(256), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_by', sa.String(256), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_account_id', 'users', ['account_id'], unique=False)

    op.create_table(
        'user_addresses',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('country', sa.String(64), nullable=True),
        sa.Column('state', sa.String(64), nullable=True),
        sa.Column('city', sa.String(128), nullable=True),
        sa.Column('address1', sa.String(256), nullable=True),
        sa.Column('address2', sa.String(256), nullable=True),
        sa.Column('postal_code', sa.String(32), nullable=True),
        sa.Column('time_zone', sa.String(64), nullable=True),
    )
    op.create_index('ix_user_addresses_user_id', 'user_addresses', ['user_id'], unique=False)

    op.create_table(
        'password_history',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('changed_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_password_history_user_id', 'password_history', ['user_id'], unique=False)
    op.create_index('ix_password_history_changed_at', 'password_history', ['changed_at'], unique=False)

    op.create_table(
        'cloud_profiles',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('profile_name', sa.String(128), nullable=False),
        sa.Column('business_key', sa.String(160), nullable=False),
        sa.Column('profile_data', sa.JSON(), nullable=False),
        sa.Column('status', sa.String(16), nullable=False),
        sa.Column('created_by', sa.String(256), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_by', sa.String(256), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_cloud_profiles_user_id', 'cloud_profiles', ['user_id'], unique=False)
    op.create_index('ix_cloud_profiles_business_key', 'cloud_profiles', ['business_key'], unique=False)
    # One active profile per business key; deleted rows may repeat it.
    op.create_index(
        'uq_cloud_profiles_active_business_key',
        'cloud_profiles',
        ['business_key'],
        unique=True,
        postgresql_where=sa.text("status = 'ACTIVE'"),
    )

    op.create_table(
        'audit_log',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('event_id', sa.String(36), nullable=False, unique=True),
        sa.Column('actor', sa.String(256), nullable=False),
        sa.Column('action', sa.String(64), nullable=False),
        sa.Column('target_type', sa.String(64), nullable=False),
        sa.Column('target_id', sa.String(256), nullable=False),
        sa.Column('outcome', sa.String(16), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('correlation_id', sa.String(256), nullable=True),
        sa.Column('details', sa.JSON(), nullable=False),
        sa.Column('notes', sa.JSON(), nullable=False),
    )
    op.create_index('ix_audit_log_action', 'audit_log', ['action'], unique=False)
    op.create_index('ix_audit_log_target_id', 'audit_log', ['target_id'], unique=False)


def downgrade() -> None:
    """Drop the identity schema."""
    op.drop_table('audit_log')
    op.drop_index('uq_cloud_profiles_active_business_key', table_name='cloud_profiles')
    op.drop_table('cloud_profiles')
    op.drop_table('password_history')
    op.drop_table('user_addresses')
    op.drop_table('users')
    op.drop_table('accounts')
    sa.Enum(name='user_status').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='account_status').drop(op.get_bind(), checkfirst=True)
