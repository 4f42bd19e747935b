"""Report schedule anchor day

Revision ID: 003_report_schedule_anchor_day
Revises: 002_enhanced_jurisdiction_schema
Create Date: 2025-04-02 00:00:00.000000

Month-based schedules remember the day of month they were created for, so
a schedule due on the 31st returns to the 31st after a short month instead
of staying on the 28th. Existing rows are anchored on their current
next_due_date.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '003_report_schedule_anchor_day'
down_revision: Union[str, None] = '002_enhanced_jurisdiction_schema'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    with op.batch_alter_table('report_schedules') as batch:
        batch.add_column(sa.Column('anchor_day', sa.Integer))

    op.execute(
        "UPDATE report_schedules SET anchor_day = EXTRACT(DAY FROM next_due_date) "
        "WHERE anchor_day IS NULL"
    )


def downgrade() -> None:
    with op.batch_alter_table('report_schedules') as batch:
        batch.drop_column('anchor_day')
