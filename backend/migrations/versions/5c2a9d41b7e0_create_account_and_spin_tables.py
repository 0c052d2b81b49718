"""create account and spin tables

Revision ID: 5c2a9d41b7e0
Revises:
Create Date: 2026-10-19 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2a9d41b7e0'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'account',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=256), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('spins_left', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('is_admin', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('version', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('spins_left >= 0', name='ck_account_spins_left_non_negative'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_account_email', 'account', ['email'], unique=True)

    op.create_table(
        'spin',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.String(length=32), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('points', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['account_id'], ['account.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('account_id', 'position', name='uq_spin_account_position'),
    )
    op.create_index('ix_spin_account_id', 'spin', ['account_id'], unique=False)


def downgrade():
    op.drop_index('ix_spin_account_id', table_name='spin')
    op.drop_table('spin')
    op.drop_index('ix_account_email', table_name='account')
    op.drop_table('account')
