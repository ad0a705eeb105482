"""create donations table

Revision ID: 7c1d2e9a4b10
Revises:
Create Date: 2026-10-18 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '7c1d2e9a4b10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('donations',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=True),
        sa.Column('stripe_token', sa.String(length=255), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('address_line1', sa.String(length=255), nullable=True),
        sa.Column('address_city', sa.String(length=255), nullable=True),
        sa.Column('address_state', sa.String(length=255), nullable=True),
        sa.Column('address_zip', sa.String(length=255), nullable=True),
        sa.Column('address_country', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )


def downgrade():
    op.drop_table('donations')
