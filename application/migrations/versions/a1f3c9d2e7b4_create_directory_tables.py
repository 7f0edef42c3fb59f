"""create directory tables

Revision ID: a1f3c9d2e7b4
Revises:
Create Date: 2026-10-19 10:12:41.204118

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'a1f3c9d2e7b4'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'branches',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('branch_id', sa.String(64), nullable=False),
        sa.Column('branch_name', sa.String(128), nullable=False),
        sa.Column('wa_link', sa.String(512), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('branch_name', name='uq_branches_branch_name'),
    )
    op.create_index('ix_branches_id', 'branches', ['id'])
    op.create_index('ix_branches_branch_id', 'branches', ['branch_id'], unique=True)

    op.create_table(
        'accounts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('username', sa.String(64), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(32), nullable=True),
        sa.Column('name', sa.String(128), nullable=True),
        sa.Column('role', sa.String(16), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=True),
        sa.Column('token_version', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('must_change_password', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('branch_ref_id', sa.Integer(), sa.ForeignKey('branches.id', ondelete='SET NULL'), nullable=True),
        sa.Column('branch_name', sa.String(128), nullable=True),
        sa.Column('branch_wa_link', sa.String(512), nullable=True),
        sa.Column('parent_sub_admin_id', sa.Integer(), sa.ForeignKey('accounts.id'), nullable=True),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('accounts.id'), nullable=True),
        sa.Column('reset_password_token', sa.String(64), nullable=True),
        sa.Column('reset_password_expires', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('last_login_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('last_logout_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('username', name='uq_accounts_username'),
        sa.UniqueConstraint('email', name='uq_accounts_email'),
    )
    op.create_index('ix_accounts_id', 'accounts', ['id'])
    op.create_index('ix_accounts_user_id', 'accounts', ['user_id'], unique=True)
    op.create_index('ix_accounts_phone', 'accounts', ['phone'])
    op.create_index('ix_accounts_role', 'accounts', ['role'])
    op.create_index('ix_accounts_parent_sub_admin_id', 'accounts', ['parent_sub_admin_id'])
    op.create_index('ix_accounts_created_by', 'accounts', ['created_by'])
    op.create_index('ix_accounts_reset_password_token', 'accounts', ['reset_password_token'])
    op.create_index('idx_accounts_role_active', 'accounts', ['role', 'is_active'])

    op.create_table(
        'visit_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('wa_link', sa.String(512), nullable=False, server_default=''),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_visit_logs_id', 'visit_logs', ['id'])
    op.create_index('ix_visit_logs_user_id', 'visit_logs', ['user_id'])
    op.create_index('ix_visit_logs_created_at', 'visit_logs', ['created_at'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('visit_logs')
    op.drop_table('accounts')
    op.drop_table('branches')
