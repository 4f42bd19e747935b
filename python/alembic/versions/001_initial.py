"""Initial schema - Baseline migration

Revision ID: 001_initial
Revises:
Create Date: 2025-01-15 00:00:00.000000

Baseline for the Compliance Tracker: users, the five typed business
registration tables, generalized registrations with their audit trail,
the legacy jurisdiction graph (jurisdictions, regulatory bodies,
regulations, compliance requirements), policies, token registrations and
compliance reporting.

The enhanced jurisdiction tables (laws, obligations, ...) arrive in
002_enhanced_jurisdiction_schema.
For existing databases, use `alembic stamp 001_initial` to mark as applied.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ENUMS = {
    'policy_status': ('draft', 'active', 'archived', 'review_needed'),
    'approval_status': ('approved', 'rejected', 'pending', 'changes_requested'),
    'token_category': (
        'FINANCIAL_INSTRUMENT', 'REAL_WORLD_ASSET', 'PAYMENT_STABLE', 'UTILITY',
        'GOVERNANCE', 'SYNTHETIC_DERIVATIVE', 'NFT', 'COMPLIANCE_ACCESS',
        'SPECIAL_PURPOSE',
    ),
    'report_status': ('draft', 'in_progress', 'submitted', 'approved', 'rejected', 'needs_review'),
    'schedule_status': ('active', 'paused', 'completed'),
    'report_frequency': (
        'daily', 'weekly', 'monthly', 'quarterly', 'semi_annually', 'annually', 'ad_hoc',
    ),
    'registration_type': ('exchange', 'stablecoin', 'defi', 'nft', 'fund', 'token'),
    'audit_action': ('create', 'update', 'delete'),
}


def _enum(name: str) -> postgresql.ENUM:
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def _created_at() -> sa.Column:
    return sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                     server_default=sa.text('NOW()'))


def _updated_at() -> sa.Column:
    return sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                     server_default=sa.text('NOW()'))


def _user_fk(name: str = 'user_id', ondelete: str = 'CASCADE', nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.Integer, sa.ForeignKey('users.id', ondelete=ondelete),
                     nullable=nullable)


def _token_fk() -> sa.Column:
    return sa.Column('token_registration_id', sa.Integer,
                     sa.ForeignKey('token_registrations.id', ondelete='CASCADE'), nullable=False)


def upgrade() -> None:
    """Create initial database schema."""

    # Create enums
    for name, values in ENUMS.items():
        postgresql.ENUM(*values, name=name, create_type=True).create(op.get_bind(), checkfirst=True)

    # Users
    op.create_table(
        'users',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('username', sa.String(100), nullable=False, unique=True),
        sa.Column('password', sa.Text, nullable=False),
        sa.Column('email', sa.String(320), nullable=False),
        sa.Column('company_name', sa.String(255), nullable=False),
        sa.Column('wallet_address', sa.String(255)),
        sa.Column('kyc_verified', sa.Boolean, nullable=False, server_default='false'),
        sa.Column('risk_score', sa.Integer, nullable=False, server_default='0'),
        sa.Column('compliance_data', postgresql.JSONB),
        sa.Column('is_admin', sa.Boolean, nullable=False, server_default='false'),
        _created_at(),
    )

    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer, primary_key=True),
        _user_fk(),
        sa.Column('wallet_address', sa.String(255), nullable=False),
        sa.Column('amount', sa.String(100), nullable=False),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('status', sa.String(50), nullable=False),
        sa.Column('risk_level', sa.String(50), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('NOW()')),
    )
    op.create_index('ix_transactions_user_id', 'transactions', ['user_id'])

    # Legacy jurisdiction graph
    op.create_table(
        'jurisdictions',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('name', sa.String(255), nullable=False, unique=True),
        sa.Column('region', sa.String(100)),
        sa.Column('risk_level', sa.String(50)),
        sa.Column('favorability_score', sa.Integer),
        sa.Column('notes', sa.Text),
        _created_at(),
        _updated_at(),
    )
    op.create_index('idx_jurisdiction_risk_favorability', 'jurisdictions',
                    ['risk_level', 'favorability_score'])

    op.create_table(
        'regulatory_bodies',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('jurisdiction_id', sa.Integer,
                  sa.ForeignKey('jurisdictions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('website_url', sa.Text),
        sa.Column('description', sa.Text),
        _created_at(),
    )
    op.create_index('ix_regulatory_bodies_jurisdiction_id', 'regulatory_bodies', ['jurisdiction_id'])

    op.create_table(
        'regulations',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('jurisdiction_id', sa.Integer,
                  sa.ForeignKey('jurisdictions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('type', sa.String(100)),
        sa.Column('description', sa.Text),
        sa.Column('compliance_url', sa.Text),
        sa.Column('effective_date', sa.Date),
        sa.Column('last_updated', sa.Date),
        _created_at(),
    )
    op.create_index('ix_regulations_jurisdiction_id', 'regulations', ['jurisdiction_id'])

    op.create_table(
        'compliance_requirements',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('jurisdiction_id', sa.Integer,
                  sa.ForeignKey('jurisdictions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('requirement_type', sa.String(100), nullable=False),
        sa.Column('summary', sa.Text),
        sa.Column('details', sa.Text),
        _created_at(),
    )
    op.create_index('ix_compliance_requirements_jurisdiction_id', 'compliance_requirements',
                    ['jurisdiction_id'])

    # Business registrations
    op.create_table(
        'exchange_info',
        sa.Column('id', sa.Integer, primary_key=True),
        _user_fk(),
        sa.Column('exchange_name', sa.String(255), nullable=False),
        sa.Column('legal_entity_name', sa.String(255), nullable=False),
        sa.Column('registration_number', sa.String(100), nullable=False),
        sa.Column('headquarters_location', sa.String(255), nullable=False),
        sa.Column('website_url', sa.Text, nullable=False),
        sa.Column('year_established', sa.String(4), nullable=False),
        sa.Column('exchange_type', sa.String(10), nullable=False),
        sa.Column('regulatory_licenses', sa.Text),
        sa.Column('compliance_contact_name', sa.String(255), nullable=False),
        sa.Column('compliance_contact_email', sa.String(320), nullable=False),
        sa.Column('compliance_contact_phone', sa.String(50), nullable=False),
        sa.Column('trading_pairs', postgresql.JSONB),
        sa.Column('leverage_and_margin', postgresql.JSONB),
        sa.Column('hft_activity_metrics', postgresql.JSONB),
        sa.Column('wash_trading_detection', postgresql.JSONB),
        sa.Column('security_measures', postgresql.JSONB),
        sa.Column('risk_management', postgresql.JSONB),
        sa.Column('kyc_verification_metrics', postgresql.JSONB),
        sa.Column('sanctions_compliance', postgresql.JSONB),
        sa.Column('custody_arrangements', postgresql.JSONB),
        sa.Column('insurance_coverage', postgresql.JSONB),
        sa.Column('supported_blockchains', postgresql.JSONB),
        sa.Column('blockchain_analytics', postgresql.JSONB),
        _created_at(),
        sa.CheckConstraint("exchange_type IN ('CEX', 'DEX')", name='ck_exchange_type'),
    )

    op.create_table(
        'stablecoin_info',
        sa.Column('id', sa.Integer, primary_key=True),
        _user_fk(),
        sa.Column('stablecoin_name', sa.String(255), nullable=False),
        sa.Column('token_symbol', sa.String(20), nullable=False),
        sa.Column('issuer_name', sa.String(255), nullable=False),
        sa.Column('registration_number', sa.String(100)),
        sa.Column('jurisdiction', sa.String(255), nullable=False),
        sa.Column('website_url', sa.Text, nullable=False),
        sa.Column('compliance_officer_email', sa.String(320), nullable=False),
        sa.Column('backing_asset_type', sa.String(50), nullable=False, server_default='Fiat'),
        sa.Column('backing_asset_details', sa.Text),
        sa.Column('pegged_to', sa.String(20), nullable=False, server_default='USD'),
        sa.Column('total_supply', sa.String(100)),
        sa.Column('reserve_ratio', sa.String(50)),
        sa.Column('custodian_name', sa.String(255)),
        sa.Column('audit_provider', sa.String(255)),
        sa.Column('attestation_method', sa.String(255)),
        sa.Column('redemption_policy', sa.Text),
        sa.Column('redemption_frequency', sa.String(100)),
        sa.Column('central_bank_partnership', sa.Boolean, nullable=False, server_default='false'),
        sa.Column('is_regulated', sa.Boolean, nullable=False, server_default='false'),
        sa.Column('has_market_makers', sa.Boolean, nullable=False, server_default='false'),
        sa.Column('has_travel_rule', sa.Boolean, nullable=False, server_default='false'),
        sa.Column('aml_policy_url', sa.Text),
        sa.Column('reserve_details', postgresql.JSONB),
        sa.Column('custodian_details', postgresql.JSONB),
        sa.Column('audit_information', postgresql.JSONB),
        sa.Column('contract_addresses', postgresql.JSONB),
        sa.Column('blockchain_platforms', postgresql.JSONB),
        sa.Column('chain_ids', postgresql.JSONB),
        _created_at(),
    )

    op.create_table(
        'defi_protocol_info',
        sa.Column('id', sa.Integer, primary_key=True),
        _user_fk(),
        sa.Column('protocol_name', sa.String(255), nullable=False),
        sa.Column('protocol_type', sa.String(50), nullable=False, server_default='Lending'),
        sa.Column('website_url', sa.Text, nullable=False),
        sa.Column('smart_contract_addresses', postgresql.JSONB),
        sa.Column('supported_tokens', postgresql.JSONB),
        sa.Column('blockchain_networks', postgresql.JSONB),
        sa.Column('security_audits', postgresql.JSONB),
        sa.Column('insurance_coverage', postgresql.JSONB),
        sa.Column('risk_management', postgresql.JSONB),
        sa.Column('governance_structure', postgresql.JSONB),
        sa.Column('tokenomics', postgresql.JSONB),
        _created_at(),
    )

    op.create_table(
        'nft_marketplace_info',
        sa.Column('id', sa.Integer, primary_key=True),
        _user_fk(),
        sa.Column('marketplace_name', sa.String(255), nullable=False),
        sa.Column('business_entity', sa.String(255), nullable=False),
        sa.Column('website_url', sa.Text, nullable=False),
        sa.Column('supported_standards', postgresql.JSONB),
        sa.Column('blockchain_networks', postgresql.JSONB),
        sa.Column('smart_contracts', postgresql.JSONB),
        sa.Column('royalty_enforcement', postgresql.JSONB),
        sa.Column('listing_policies', postgresql.JSONB),
        sa.Column('moderation_procedures', postgresql.JSONB),
        sa.Column('copyright_policies', postgresql.JSONB),
        sa.Column('aml_policies', postgresql.JSONB),
        _created_at(),
    )

    op.create_table(
        'crypto_fund_info',
        sa.Column('id', sa.Integer, primary_key=True),
        _user_fk(),
        sa.Column('fund_name', sa.String(255), nullable=False),
        sa.Column('fund_type', sa.String(100), nullable=False, server_default='Hedge Fund'),
        sa.Column('registration_number', sa.String(100)),
        sa.Column('jurisdiction', sa.String(255), nullable=False),
        sa.Column('jurisdiction_id', sa.Integer,
                  sa.ForeignKey('jurisdictions.id', ondelete='SET NULL')),
        sa.Column('legal_entity_type', sa.String(100), nullable=False,
                  server_default='Limited Partnership'),
        sa.Column('incorporation_date', sa.String(20)),
        sa.Column('website_url', sa.Text),
        sa.Column('contact_email', sa.String(320), nullable=False),
        sa.Column('contact_phone', sa.String(50)),
        sa.Column('aum', sa.String(100)),
        sa.Column('fund_currency', sa.String(10), nullable=False, server_default='USD'),
        sa.Column('minimum_investment', sa.String(100)),
        sa.Column('redemption_terms', sa.Text),
        sa.Column('target_returns', sa.String(100)),
        sa.Column('management_fee', sa.String(50)),
        sa.Column('performance_fee', sa.String(50)),
        sa.Column('investment_strategy', postgresql.JSONB),
        sa.Column('asset_allocation', postgresql.JSONB),
        sa.Column('risk_profile', postgresql.JSONB),
        sa.Column('custody_arrangements', postgresql.JSONB),
        sa.Column('valuation_methods', postgresql.JSONB),
        sa.Column('regulatory_licenses', postgresql.JSONB),
        sa.Column('aml_procedures', postgresql.JSONB),
        sa.Column('servicing_providers', postgresql.JSONB),
        sa.Column('restricted_investors', postgresql.JSONB),
        _created_at(),
    )

    for table in ('exchange_info', 'stablecoin_info', 'defi_protocol_info',
                  'nft_marketplace_info', 'crypto_fund_info'):
        op.create_index(f'ix_{table}_user_id', table, ['user_id'])

    # Generalized registrations and audit trail
    op.create_table(
        'registrations',
        sa.Column('id', sa.Integer, primary_key=True),
        _user_fk(),
        sa.Column('registration_type', _enum('registration_type'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('status', sa.String(50), nullable=False, server_default='draft'),
        sa.Column('data', postgresql.JSONB, nullable=False),
        sa.Column('version', sa.Integer, nullable=False, server_default='1'),
        sa.Column('deleted_at', sa.DateTime(timezone=True)),
        _created_at(),
        _updated_at(),
    )
    op.create_index('ix_registrations_user_id', 'registrations', ['user_id'])
    op.create_index('ix_registrations_registration_type', 'registrations', ['registration_type'])
    op.create_index('ix_registration_user_type', 'registrations', ['user_id', 'registration_type'])

    op.create_table(
        'registration_versions',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('registration_id', sa.Integer,
                  sa.ForeignKey('registrations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('version', sa.Integer, nullable=False),
        sa.Column('data', postgresql.JSONB, nullable=False),
        _user_fk('created_by', ondelete='SET NULL', nullable=True),
        _created_at(),
        sa.UniqueConstraint('registration_id', 'version', name='uq_registration_version'),
    )
    op.create_index('ix_registration_versions_registration_id', 'registration_versions',
                    ['registration_id'])

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('table_name', sa.String(100), nullable=False),
        sa.Column('record_id', sa.Integer, nullable=False),
        sa.Column('action', _enum('audit_action'), nullable=False),
        _user_fk(ondelete='SET NULL', nullable=True),
        sa.Column('old_data', postgresql.JSONB),
        sa.Column('new_data', postgresql.JSONB),
        _created_at(),
    )
    op.create_index('ix_audit_logs_user_id', 'audit_logs', ['user_id'])
    op.create_index('ix_audit_table_record', 'audit_logs', ['table_name', 'record_id'])

    # Policy framework
    op.create_table(
        'policies',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text, nullable=False),
        sa.Column('type', sa.String(100), nullable=False),
        sa.Column('jurisdiction_id', sa.Integer,
                  sa.ForeignKey('jurisdictions.id', ondelete='SET NULL')),
        sa.Column('status', _enum('policy_status'), nullable=False, server_default='draft'),
        sa.Column('version', sa.String(20), nullable=False, server_default='1.0'),
        sa.Column('content', sa.Text, nullable=False),
        _user_fk('created_by'),
        _created_at(),
        _updated_at(),
    )
    op.create_index('ix_policies_jurisdiction_id', 'policies', ['jurisdiction_id'])
    op.create_index('ix_policies_status', 'policies', ['status'])
    op.create_index('ix_policies_created_by', 'policies', ['created_by'])

    op.create_table(
        'policy_versions',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('policy_id', sa.Integer,
                  sa.ForeignKey('policies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('version', sa.String(20), nullable=False),
        sa.Column('content', sa.Text, nullable=False),
        sa.Column('change_notes', sa.Text),
        _user_fk('created_by', ondelete='SET NULL', nullable=True),
        _created_at(),
        sa.UniqueConstraint('policy_id', 'version', name='uq_policy_version'),
    )

    op.create_table(
        'policy_tags',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('policy_id', sa.Integer,
                  sa.ForeignKey('policies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('tag', sa.String(100), nullable=False),
        _created_at(),
    )

    op.create_table(
        'policy_approvals',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('policy_id', sa.Integer,
                  sa.ForeignKey('policies.id', ondelete='CASCADE'), nullable=False),
        _user_fk('approver_id'),
        sa.Column('status', _enum('approval_status'), nullable=False),
        sa.Column('comments', sa.Text),
        _created_at(),
    )

    for table in ('policy_versions', 'policy_tags', 'policy_approvals'):
        op.create_index(f'ix_{table}_policy_id', table, ['policy_id'])

    # Token registrations
    op.create_table(
        'token_registrations',
        sa.Column('id', sa.Integer, primary_key=True),
        _user_fk(),
        sa.Column('token_name', sa.String(255), nullable=False),
        sa.Column('token_symbol', sa.String(10), nullable=False),
        sa.Column('token_category', _enum('token_category'), nullable=False),
        sa.Column('token_type', sa.String(100)),
        sa.Column('token_standard', sa.String(50)),
        sa.Column('issuer_name', sa.String(255), nullable=False),
        sa.Column('issuer_legal_entity', sa.String(255), nullable=False),
        sa.Column('issuer_jurisdiction', sa.String(255)),
        sa.Column('blockchain_networks', postgresql.JSONB),
        sa.Column('smart_contracts', postgresql.JSONB),
        sa.Column('total_supply', sa.BigInteger),
        sa.Column('circulating_supply', sa.BigInteger),
        sa.Column('launch_date', sa.Date),
        sa.Column('description', sa.Text, nullable=False),
        sa.Column('use_case', sa.Text),
        sa.Column('website_url', sa.Text),
        sa.Column('whitepaper_url', sa.Text),
        sa.Column('github_url', sa.Text),
        sa.Column('social_media_links', postgresql.JSONB),
        sa.Column('contact_information', postgresql.JSONB),
        sa.Column('token_economics', postgresql.JSONB),
        sa.Column('jurisdictions', postgresql.JSONB),
        sa.Column('asset_backing_details', postgresql.JSONB),
        sa.Column('tokenomics_details', postgresql.JSONB),
        sa.Column('token_management_team', postgresql.JSONB),
        sa.Column('regulatory_status', sa.String(100)),
        sa.Column('legal_opinion_references', postgresql.JSONB),
        sa.Column('audit_status', sa.String(100)),
        sa.Column('registration_status', sa.String(50), nullable=False, server_default='draft'),
        sa.Column('is_verified', sa.Boolean, nullable=False, server_default='false'),
        sa.Column('is_listed', sa.Boolean, nullable=False, server_default='false'),
        sa.Column('visibility', sa.String(20), nullable=False, server_default='public'),
        _created_at(),
        _updated_at(),
    )
    op.create_index('ix_token_registrations_user_id', 'token_registrations', ['user_id'])
    op.create_index('ix_token_registrations_token_category', 'token_registrations', ['token_category'])
    op.create_index('ix_token_user_category', 'token_registrations', ['user_id', 'token_category'])

    op.create_table(
        'token_registration_documents',
        sa.Column('id', sa.Integer, primary_key=True),
        _token_fk(),
        sa.Column('document_type', sa.String(100), nullable=False),
        sa.Column('document_name', sa.String(255), nullable=False),
        sa.Column('document_url', sa.Text, nullable=False),
        _user_fk('uploaded_by', ondelete='SET NULL', nullable=True),
        sa.Column('uploaded_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('NOW()')),
    )

    op.create_table(
        'token_registration_verifications',
        sa.Column('id', sa.Integer, primary_key=True),
        _token_fk(),
        sa.Column('verification_status', sa.String(50), nullable=False),
        sa.Column('verification_date', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('NOW()')),
        _user_fk('verifier_user_id', ondelete='SET NULL', nullable=True),
        sa.Column('verification_notes', sa.Text),
        sa.Column('verification_documents', postgresql.JSONB),
        _created_at(),
    )

    op.create_table(
        'token_risk_assessments',
        sa.Column('id', sa.Integer, primary_key=True),
        _token_fk(),
        sa.Column('risk_score', sa.Integer, nullable=False),
        sa.Column('risk_level', sa.String(50), nullable=False),
        sa.Column('assessment_date', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('NOW()')),
        _user_fk('assessor_user_id', ondelete='SET NULL', nullable=True),
        sa.Column('assessment_notes', sa.Text),
        sa.Column('risk_factors', postgresql.JSONB),
        _created_at(),
        sa.CheckConstraint('risk_score >= 0 AND risk_score <= 100', name='ck_token_risk_score'),
    )

    op.create_table(
        'token_jurisdiction_approvals',
        sa.Column('id', sa.Integer, primary_key=True),
        _token_fk(),
        sa.Column('jurisdiction_id', sa.Integer,
                  sa.ForeignKey('jurisdictions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('approval_status', sa.String(50), nullable=False),
        sa.Column('approval_date', sa.Date),
        sa.Column('approval_details', sa.Text),
        sa.Column('regulatory_requirements', postgresql.JSONB),
        sa.Column('restrictions', postgresql.JSONB),
        _created_at(),
    )

    for table in ('token_registration_documents', 'token_registration_verifications',
                  'token_risk_assessments', 'token_jurisdiction_approvals'):
        op.create_index(f'ix_{table}_token_registration_id', table, ['token_registration_id'])

    # Compliance reporting
    op.create_table(
        'compliance_report_types',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('name', sa.String(255), nullable=False, unique=True),
        sa.Column('description', sa.Text),
        sa.Column('category', sa.String(100), nullable=False),
        sa.Column('frequency', _enum('report_frequency'), nullable=False),
        sa.Column('applies_to', sa.String(100), nullable=False),
        sa.Column('template_available', sa.Boolean, nullable=False, server_default='false'),
        _created_at(),
    )

    op.create_table(
        'compliance_reports',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('report_type_id', sa.Integer,
                  sa.ForeignKey('compliance_report_types.id'), nullable=False),
        _user_fk(),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', sa.Integer),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('status', _enum('report_status'), nullable=False, server_default='draft'),
        sa.Column('due_date', sa.Date),
        sa.Column('submission_date', sa.DateTime(timezone=True)),
        sa.Column('report_data', postgresql.JSONB),
        sa.Column('notes', sa.Text),
        _created_at(),
        _updated_at(),
    )
    op.create_index('ix_compliance_reports_report_type_id', 'compliance_reports', ['report_type_id'])
    op.create_index('ix_compliance_reports_user_id', 'compliance_reports', ['user_id'])
    op.create_index('ix_compliance_reports_status', 'compliance_reports', ['status'])
    op.create_index('ix_report_user_due', 'compliance_reports', ['user_id', 'due_date'])

    op.create_table(
        'report_schedules',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('report_type_id', sa.Integer,
                  sa.ForeignKey('compliance_report_types.id'), nullable=False),
        _user_fk(),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', sa.Integer),
        sa.Column('frequency', _enum('report_frequency'), nullable=False),
        sa.Column('next_due_date', sa.Date, nullable=False),
        sa.Column('status', _enum('schedule_status'), nullable=False, server_default='active'),
        sa.Column('reminder_days_before', sa.Integer, nullable=False, server_default='7'),
        sa.Column('reminders_enabled', sa.Boolean, nullable=False, server_default='true'),
        _created_at(),
        _updated_at(),
    )
    op.create_index('ix_report_schedules_report_type_id', 'report_schedules', ['report_type_id'])
    op.create_index('ix_report_schedules_user_id', 'report_schedules', ['user_id'])


def downgrade() -> None:
    """Drop all tables and types."""
    tables = [
        'report_schedules', 'compliance_reports', 'compliance_report_types',
        'token_jurisdiction_approvals', 'token_risk_assessments',
        'token_registration_verifications', 'token_registration_documents',
        'token_registrations',
        'policy_approvals', 'policy_tags', 'policy_versions', 'policies',
        'audit_logs', 'registration_versions', 'registrations',
        'crypto_fund_info', 'nft_marketplace_info', 'defi_protocol_info',
        'stablecoin_info', 'exchange_info',
        'compliance_requirements', 'regulations', 'regulatory_bodies', 'jurisdictions',
        'transactions', 'users',
    ]
    for table in tables:
        op.drop_table(table)

    for name in ENUMS:
        op.execute(f'DROP TYPE IF EXISTS {name}')
