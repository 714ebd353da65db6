"""add_paper_versions_table

Revision ID: 9c4d7e2a1b08
Revises: 3f1a2b4c5d6e
Create Date: 2026-09-14 16:30:00.000000

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = '9c4d7e2a1b08'
down_revision: Union[str, Sequence[str], None] = '3f1a2b4c5d6e'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create paper_versions for per-paper edit history."""
    op.create_table(
        'paper_versions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('paper_id', sa.Integer(), nullable=False),
        sa.Column('version_number', sa.Integer(), server_default='1', nullable=False),
        sa.Column('changes', sa.Text(), server_default='', nullable=False),
        sa.Column('file_url', sa.Text(), nullable=True),
        sa.Column('created_at', sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(['paper_id'], ['papers.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'idx_paper_versions_paper_id_version', 'paper_versions',
        ['paper_id', 'version_number'], unique=False,
    )


def downgrade() -> None:
    op.drop_index('idx_paper_versions_paper_id_version', table_name='paper_versions')
    op.drop_table('paper_versions')
