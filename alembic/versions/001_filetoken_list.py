"""Create filetoken_list table.

Revision ID: 001_filetoken_list
Revises:
Create Date: 2026-10-19

Stores time-limited file access tokens. Rows are written once at issuance
and only read afterwards; expired rows are left for an external sweep.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_filetoken_list'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create filetoken_list table."""
    op.create_table(
        'filetoken_list',
        sa.Column('token', sa.String(64), primary_key=True),
        sa.Column('entity_id', sa.Integer(), nullable=False),
        sa.Column('image_url', sa.String(2048), nullable=False),
        sa.Column('exp_timestamp', sa.BigInteger(), nullable=False),
        sa.Column('request_timestamp', sa.BigInteger(), nullable=False),
    )

    # Issuance looks tokens up by (file reference, owning entity)
    op.create_index(
        'ix_filetoken_list_image_url_entity_id',
        'filetoken_list',
        ['image_url', 'entity_id'],
    )


def downgrade() -> None:
    """Drop filetoken_list table."""
    op.drop_index('ix_filetoken_list_image_url_entity_id', table_name='filetoken_list')
    op.drop_table('filetoken_list')
