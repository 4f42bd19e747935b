"""Jurisdiction checklists and subscriptions

Revision ID: 004_checklists_and_subscriptions
Revises: 003_report_schedule_anchor_day
Create Date: 2025-04-20 00:00:00.000000

Adds per-jurisdiction compliance checklists (categories and ordered items),
each user's progress on those items, and the user_jurisdictions table that
records which jurisdictions a user follows.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '004_checklists_and_subscriptions'
down_revision: Union[str, None] = '003_report_schedule_anchor_day'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

CHECKLIST_STATUS = ('not_started', 'in_progress', 'completed')


def _timestamps() -> list:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('NOW()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('NOW()')),
    ]


def upgrade() -> None:
    """Create checklist and subscription tables."""
    postgresql.ENUM(*CHECKLIST_STATUS, name='checklist_status', create_type=True).create(
        op.get_bind(), checkfirst=True
    )

    op.create_table(
        'checklist_categories',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('jurisdiction_id', sa.Integer,
                  sa.ForeignKey('jurisdictions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text),
        sa.Column('sequence', sa.Integer, nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_checklist_categories_jurisdiction_id', 'checklist_categories', ['jurisdiction_id'])

    op.create_table(
        'checklist_items',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('category_id', sa.Integer,
                  sa.ForeignKey('checklist_categories.id', ondelete='CASCADE'), nullable=False),
        sa.Column('task', sa.Text, nullable=False),
        sa.Column('responsible', sa.String(255)),
        sa.Column('notes', sa.Text),
        sa.Column('sequence', sa.Integer, nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_checklist_items_category_id', 'checklist_items', ['category_id'])

    op.create_table(
        'user_checklist_progress',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('user_id', sa.Integer, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('checklist_item_id', sa.Integer,
                  sa.ForeignKey('checklist_items.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', postgresql.ENUM(*CHECKLIST_STATUS, name='checklist_status', create_type=False),
                  nullable=False, server_default='not_started'),
        sa.Column('notes', sa.Text),
        sa.Column('completed_at', sa.DateTime(timezone=True)),
        *_timestamps(),
        sa.UniqueConstraint('user_id', 'checklist_item_id', name='uq_user_checklist_item'),
    )
    op.create_index('ix_user_checklist_progress_user_id', 'user_checklist_progress', ['user_id'])
    op.create_index('ix_user_checklist_progress_checklist_item_id', 'user_checklist_progress',
                    ['checklist_item_id'])

    op.create_table(
        'user_jurisdictions',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('user_id', sa.Integer, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('jurisdiction_id', sa.Integer,
                  sa.ForeignKey('jurisdictions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('is_primary', sa.Boolean, nullable=False, server_default='false'),
        sa.Column('notes', sa.Text),
        sa.Column('added_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('NOW()')),
        sa.UniqueConstraint('user_id', 'jurisdiction_id', name='uq_user_jurisdiction'),
    )
    op.create_index('ix_user_jurisdictions_user_id', 'user_jurisdictions', ['user_id'])
    op.create_index('ix_user_jurisdictions_jurisdiction_id', 'user_jurisdictions', ['jurisdiction_id'])


def downgrade() -> None:
    for table in ('user_jurisdictions', 'user_checklist_progress', 'checklist_items', 'checklist_categories'):
        op.drop_table(table)
    op.execute('DROP TYPE IF EXISTS checklist_status')
