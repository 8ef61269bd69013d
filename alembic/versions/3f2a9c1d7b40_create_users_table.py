"""create_users_table

Revision ID: 3f2a9c1d7b40
Revises:
Create Date: 2026-09-14 10:12:41.508213

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f2a9c1d7b40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ROLES = ('SYSTEM_ADMINISTRATOR', 'HERITAGE_MANAGER', 'CONTENT_MANAGER', 'COMMUNITY_MEMBER', 'GUEST')
STATUSES = ('ACTIVE', 'SUSPENDED', 'DISABLED', 'DELETED')


def upgrade() -> None:
    """Create the users table with its uniqueness guarantees."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('username', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=True),
        sa.Column('role', sa.Enum(*ROLES, name='user_role', native_enum=False, length=32), nullable=False),
        sa.Column('status', sa.Enum(*STATUSES, name='user_status', native_enum=False, length=32), nullable=False),
        sa.Column('status_reason', sa.Text(), nullable=True),
        sa.Column('status_changed_by', sa.String(length=255), nullable=True),
        sa.Column('status_changed_at', sa.DateTime(), nullable=True),
        sa.Column('enabled', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('email_verified', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('email_verification_token', sa.String(length=64), nullable=True),
        sa.Column('email_verification_token_expires_at', sa.DateTime(), nullable=True),
        sa.Column('reset_token', sa.String(length=64), nullable=True),
        sa.Column('reset_token_expires_at', sa.DateTime(), nullable=True),
        sa.Column('unlock_token', sa.String(length=64), nullable=True),
        sa.Column('unlock_token_expires_at', sa.DateTime(), nullable=True),
        sa.Column('refresh_token', sa.Text(), nullable=True),
        sa.Column('refresh_token_expires_at', sa.DateTime(), nullable=True),
        sa.Column('failed_login_attempts', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('account_non_locked', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('lockout_time', sa.DateTime(), nullable=True),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('preferred_language', sa.String(length=10), nullable=False, server_default='en'),
        sa.Column('profile_picture_url', sa.Text(), nullable=True),
        sa.Column('created_by', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_by', sa.String(length=255), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.Column('last_login', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_email_lower', 'users', [sa.text('lower(email)')])
    op.create_index('ix_users_email_verification_token', 'users', ['email_verification_token'])
    op.create_index('ix_users_reset_token', 'users', ['reset_token'])
    op.create_index('ix_users_unlock_token', 'users', ['unlock_token'])
    # At most one administrator row can ever exist.
    op.create_index(
        'uq_users_single_system_administrator',
        'users',
        ['role'],
        unique=True,
        postgresql_where=sa.text("role = 'SYSTEM_ADMINISTRATOR'"),
        sqlite_where=sa.text("role = 'SYSTEM_ADMINISTRATOR'"),
    )


def downgrade() -> None:
    """Drop the users table."""
    op.drop_index('uq_users_single_system_administrator', table_name='users')
    op.drop_index('ix_users_unlock_token', table_name='users')
    op.drop_index('ix_users_reset_token', table_name='users')
    op.drop_index('ix_users_email_verification_token', table_name='users')
    op.drop_index('ix_users_email_lower', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_index('ix_users_username', table_name='users')
    op.drop_table('users')
