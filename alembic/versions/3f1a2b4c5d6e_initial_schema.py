"""initial_schema

Revision ID: 3f1a2b4c5d6e
Revises:
Create Date: 2026-09-01 10:00:00.000000

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = '3f1a2b4c5d6e'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create reference data, accounts, papers and co-authors."""
    op.create_table(
        'departments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )
    op.create_table(
        'faculties',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('password_hash', sa.Text(), server_default='', nullable=False),
        sa.Column('role', sa.Text(), server_default='author', nullable=False),
        sa.Column('designation', sa.Text(), server_default='student', nullable=False),
        sa.Column('department_id', sa.Integer(), nullable=True),
        sa.Column('faculty_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.Text(), nullable=False),
        sa.Column('updated_at', sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(['department_id'], ['departments.id']),
        sa.ForeignKeyConstraint(['faculty_id'], ['faculties.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )
    op.create_table(
        'papers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('abstract', sa.Text(), nullable=False),
        sa.Column('keywords', sa.Text(), server_default='', nullable=False),
        sa.Column('category_text', sa.Text(), server_default='', nullable=False),
        sa.Column('author_id', sa.Integer(), nullable=False),
        sa.Column('corresponding_author', sa.Text(), server_default='', nullable=False),
        sa.Column('supervisor', sa.Text(), nullable=True),
        sa.Column('co_supervisor', sa.Text(), nullable=True),
        sa.Column('department_id', sa.Integer(), nullable=True),
        sa.Column('publication_date', sa.Date(), nullable=False),
        sa.Column('doi', sa.Text(), nullable=True),
        sa.Column('file_url', sa.Text(), server_default='', nullable=False),
        sa.Column('file_name', sa.Text(), server_default='', nullable=False),
        sa.Column('file_size', sa.Integer(), server_default='0', nullable=False),
        sa.Column('status', sa.Text(), server_default='pending', nullable=False),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('version', sa.Integer(), server_default='1', nullable=False),
        sa.Column('created_at', sa.Text(), nullable=False),
        sa.Column('updated_at', sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(['author_id'], ['users.id']),
        sa.ForeignKeyConstraint(['department_id'], ['departments.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_papers_status_publication_date', 'papers', ['status', 'publication_date'], unique=False)
    op.create_index('idx_papers_author_id', 'papers', ['author_id'], unique=False)
    op.create_index('idx_papers_created_at', 'papers', ['created_at'], unique=False)
    op.create_table(
        'co_authors',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('paper_id', sa.Integer(), nullable=False),
        sa.Column('co_author_name', sa.Text(), nullable=False),
        sa.Column('author_order', sa.Integer(), server_default='1', nullable=False),
        sa.Column('created_at', sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(['paper_id'], ['papers.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_co_authors_paper_id', 'co_authors', ['paper_id'], unique=False)


def downgrade() -> None:
    op.drop_index('idx_co_authors_paper_id', table_name='co_authors')
    op.drop_table('co_authors')
    op.drop_index('idx_papers_created_at', table_name='papers')
    op.drop_index('idx_papers_author_id', table_name='papers')
    op.drop_index('idx_papers_status_publication_date', table_name='papers')
    op.drop_table('papers')
    op.drop_table('users')
    op.drop_table('faculties')
    op.drop_table('departments')
