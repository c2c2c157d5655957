"""add_refund_fields

Revision ID: 0002_add_refund_fields
Revises: 0001_init
Create Date: 2026-10-18

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0002_add_refund_fields'
down_revision = '0001_init'
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column('orders', sa.Column('refund_process', sa.String(30), nullable=True))
    op.add_column('orders', sa.Column('refund_time', sa.DateTime(), nullable=True))
    op.add_column('orders', sa.Column('refund_message', sa.String(500), nullable=True))


def downgrade() -> None:
    op.drop_column('orders', 'refund_message')
    op.drop_column('orders', 'refund_time')
    op.drop_column('orders', 'refund_process')
