"""Enhanced jurisdiction schema

Revision ID: 002_enhanced_jurisdiction_schema
Revises: 001_initial
Create Date: 2025-03-10 00:00:00.000000

Adds the jurisdiction profile columns and the enhanced-generation tables
(laws, obligations, taxation rules, reporting obligations, regulatory
updates, tags, query keywords) plus policy obligation mappings, then copies
legacy regulations into laws and legacy compliance requirements into
obligations. Rows already copied (matched through the legacy_*_id
back-references) are skipped, so the copy is safe to repeat.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '002_enhanced_jurisdiction_schema'
down_revision: Union[str, None] = '001_initial'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

COPY_REGULATIONS_SQL = """
INSERT INTO laws (jurisdiction_id, title, law_type, description, source_url,
                  effective_date, last_updated, legacy_regulation_id)
SELECT r.jurisdiction_id, r.title, COALESCE(r.type, 'Generic'), r.description,
       r.compliance_url, r.effective_date, r.last_updated, r.id
FROM regulations r
WHERE NOT EXISTS (SELECT 1 FROM laws l WHERE l.legacy_regulation_id = r.id)
"""

COPY_REQUIREMENTS_SQL = """
INSERT INTO obligations (jurisdiction_id, title, description, obligation_type,
                         legacy_requirement_id)
SELECT c.jurisdiction_id, c.requirement_type, c.summary, c.requirement_type, c.id
FROM compliance_requirements c
WHERE NOT EXISTS (SELECT 1 FROM obligations o WHERE o.legacy_requirement_id = c.id)
"""


def _created_at() -> sa.Column:
    return sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                     server_default=sa.text('NOW()'))


def _jurisdiction_fk(unique: bool = False) -> sa.Column:
    return sa.Column('jurisdiction_id', sa.Integer,
                     sa.ForeignKey('jurisdictions.id', ondelete='CASCADE'),
                     nullable=False, unique=unique)


def upgrade() -> None:
    """Add enhanced jurisdiction tables and copy legacy rows."""

    # Jurisdiction profile
    with op.batch_alter_table('jurisdictions') as batch:
        batch.add_column(sa.Column('iso_code', sa.String(2)))
        batch.add_column(sa.Column('currency_code', sa.String(3)))
        batch.add_column(sa.Column('is_fatf_member', sa.Boolean, nullable=False,
                                   server_default='false'))
        batch.add_column(sa.Column('legal_system_type', sa.String(100)))
        batch.add_column(sa.Column('national_language', sa.String(100)))
        batch.add_column(sa.Column('central_bank_url', sa.Text))
        batch.add_column(sa.Column('financial_licensing_portal', sa.Text))
        batch.add_column(sa.Column('contact_email', sa.String(320)))
        batch.add_column(sa.Column('last_updated', sa.DateTime(timezone=True)))

    with op.batch_alter_table('regulatory_bodies') as batch:
        batch.add_column(sa.Column('contact_email', sa.String(320)))
        batch.add_column(sa.Column('phone_number', sa.String(50)))
        batch.add_column(sa.Column('crypto_scope', sa.Text))
        batch.add_column(sa.Column('authority_level', sa.String(100)))
        batch.add_column(sa.Column('reporting_api_available', sa.Boolean, nullable=False,
                                   server_default='false'))

    op.create_table(
        'laws',
        sa.Column('id', sa.Integer, primary_key=True),
        _jurisdiction_fk(),
        sa.Column('regulatory_body_id', sa.Integer,
                  sa.ForeignKey('regulatory_bodies.id', ondelete='SET NULL')),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('abbreviation', sa.String(50)),
        sa.Column('law_type', sa.String(100)),
        sa.Column('effective_date', sa.Date),
        sa.Column('last_updated', sa.Date),
        sa.Column('legal_category', sa.String(100)),
        sa.Column('description', sa.Text),
        sa.Column('applicability', sa.Text),
        sa.Column('full_text_link', sa.Text),
        sa.Column('source_url', sa.Text),
        sa.Column('source_language', sa.String(100)),
        sa.Column('legacy_regulation_id', sa.Integer,
                  sa.ForeignKey('regulations.id', ondelete='SET NULL'), unique=True),
        _created_at(),
    )
    op.create_index('ix_laws_jurisdiction_id', 'laws', ['jurisdiction_id'])
    op.create_index('idx_laws_by_type_and_category', 'laws', ['law_type', 'legal_category'])

    op.create_table(
        'obligations',
        sa.Column('id', sa.Integer, primary_key=True),
        _jurisdiction_fk(),
        sa.Column('law_id', sa.Integer, sa.ForeignKey('laws.id', ondelete='SET NULL')),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text),
        sa.Column('obligation_type', sa.String(100)),
        sa.Column('frequency', sa.String(100)),
        sa.Column('due_by_day', sa.Integer),
        sa.Column('due_months', sa.Text),
        sa.Column('format', sa.String(100)),
        sa.Column('delivery_method', sa.String(100)),
        sa.Column('submission_url', sa.Text),
        sa.Column('escalation_policy', sa.Text),
        sa.Column('penalty_type', sa.String(100)),
        sa.Column('penalty_amount', sa.Numeric(12, 2)),
        sa.Column('threshold_condition', sa.Text),
        sa.Column('dependent_on', sa.Integer,
                  sa.ForeignKey('obligations.id', ondelete='SET NULL')),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default='true'),
        sa.Column('legacy_requirement_id', sa.Integer,
                  sa.ForeignKey('compliance_requirements.id', ondelete='SET NULL'), unique=True),
        _created_at(),
    )
    op.create_index('ix_obligations_jurisdiction_id', 'obligations', ['jurisdiction_id'])
    op.create_index('ix_obligations_law_id', 'obligations', ['law_id'])
    op.create_index('idx_obligations_due_by', 'obligations', ['due_by_day'])

    op.create_table(
        'taxation_rules',
        sa.Column('id', sa.Integer, primary_key=True),
        _jurisdiction_fk(unique=True),
        sa.Column('income_tax_applicable', sa.Boolean, nullable=False, server_default='false'),
        sa.Column('capital_gains_tax', sa.Text),
        sa.Column('vat_applicable', sa.Boolean, nullable=False, server_default='false'),
        sa.Column('tax_description', sa.Text),
        sa.Column('tax_authority_url', sa.Text),
        sa.Column('last_updated', sa.Date),
        _created_at(),
    )

    op.create_table(
        'reporting_obligations',
        sa.Column('id', sa.Integer, primary_key=True),
        _jurisdiction_fk(),
        sa.Column('type', sa.String(255), nullable=False),
        sa.Column('frequency', sa.String(100)),
        sa.Column('submission_url', sa.Text),
        sa.Column('penalties', sa.Text),
        sa.Column('last_reviewed', sa.Date),
        _created_at(),
    )

    op.create_table(
        'regulatory_updates',
        sa.Column('id', sa.Integer, primary_key=True),
        _jurisdiction_fk(),
        sa.Column('update_title', sa.String(500), nullable=False),
        sa.Column('update_date', sa.Date),
        sa.Column('summary', sa.Text),
        sa.Column('source', sa.Text),
        _created_at(),
    )

    op.create_table(
        'jurisdiction_tags',
        sa.Column('id', sa.Integer, primary_key=True),
        _jurisdiction_fk(),
        sa.Column('tag', sa.String(100), nullable=False),
    )

    op.create_table(
        'jurisdiction_query_keywords',
        sa.Column('id', sa.Integer, primary_key=True),
        _jurisdiction_fk(),
        sa.Column('keyword', sa.String(255), nullable=False),
    )

    for table in ('reporting_obligations', 'regulatory_updates', 'jurisdiction_tags',
                  'jurisdiction_query_keywords'):
        op.create_index(f'ix_{table}_jurisdiction_id', table, ['jurisdiction_id'])

    op.create_table(
        'policy_obligation_mappings',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('policy_id', sa.Integer,
                  sa.ForeignKey('policies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('obligation_id', sa.Integer,
                  sa.ForeignKey('obligations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('coverage_percentage', sa.Integer, nullable=False),
        sa.Column('notes', sa.Text),
        _created_at(),
        sa.UniqueConstraint('policy_id', 'obligation_id', name='uq_policy_obligation'),
        sa.CheckConstraint('coverage_percentage >= 0 AND coverage_percentage <= 100',
                           name='ck_coverage_range'),
    )
    op.create_index('ix_policy_obligation_mappings_policy_id', 'policy_obligation_mappings',
                    ['policy_id'])
    op.create_index('ix_policy_obligation_mappings_obligation_id', 'policy_obligation_mappings',
                    ['obligation_id'])

    # Copy legacy rows into the enhanced tables
    op.execute(COPY_REGULATIONS_SQL)
    op.execute(COPY_REQUIREMENTS_SQL)


def downgrade() -> None:
    """Drop the enhanced tables; legacy rows were never modified."""
    for table in ('policy_obligation_mappings', 'jurisdiction_query_keywords',
                  'jurisdiction_tags', 'regulatory_updates', 'reporting_obligations',
                  'taxation_rules', 'obligations', 'laws'):
        op.drop_table(table)

    with op.batch_alter_table('regulatory_bodies') as batch:
        for column in ('reporting_api_available', 'authority_level', 'crypto_scope',
                       'phone_number', 'contact_email'):
            batch.drop_column(column)

    with op.batch_alter_table('jurisdictions') as batch:
        for column in ('last_updated', 'contact_email', 'financial_licensing_portal',
                       'central_bank_url', 'national_language', 'legal_system_type',
                       'is_fatf_member', 'currency_code', 'iso_code'):
            batch.drop_column(column)
