"""Add translations table for keyed translations

Revision ID: add_translations_table
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'add_translations_table'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'translations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('key', sa.String(255), nullable=False),
        sa.Column('lang', sa.String(10), nullable=False),
        sa.Column('value', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        # One row per (key, lang); concurrent fillers rely on this
        sa.UniqueConstraint('key', 'lang', name='uq_translations_key_lang'),
    )
    op.create_index('ix_translations_lang', 'translations', ['lang'])


def downgrade():
    op.drop_index('ix_translations_lang', table_name='translations')
    op.drop_table('translations')
