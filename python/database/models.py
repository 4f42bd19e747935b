"""
SQLAlchemy ORM Models for the Crypto Compliance Tracker

This module defines the complete relational schema:
- Users and their session-backed identity
- Five typed business registration tables (exchange, stablecoin, DeFi,
  NFT marketplace, crypto fund) plus a generalized, versioned registration
- Jurisdiction graph (regulatory bodies, legacy regulations/requirements,
  enhanced laws/obligations, taxation, reporting, updates, tags, keywords)
- Policy framework (versions, tags, obligation mappings, approvals)
- Token registration graph with cascading child tables
- Compliance reporting catalog, filings and schedules
- Per-jurisdiction compliance checklists, user progress and subscriptions

JSON sub-documents are stored as JSONB on PostgreSQL and plain JSON on other
dialects. Their shape is enforced by the API validators, never here.

Tables:
1. users / transactions
2. exchange_info, stablecoin_info, defi_protocol_info,
   nft_marketplace_info, crypto_fund_info
3. registrations, registration_versions, audit_logs
4. jurisdictions and children (regulatory_bodies, regulations,
   compliance_requirements, laws, obligations, taxation_rules,
   reporting_obligations, regulatory_updates, jurisdiction_tags,
   jurisdiction_query_keywords)
5. policies, policy_versions, policy_tags, policy_obligation_mappings,
   policy_approvals
6. token_registrations, token_registration_documents,
   token_registration_verifications, token_risk_assessments,
   token_jurisdiction_approvals
7. compliance_report_types, compliance_reports, report_schedules
8. checklist_categories, checklist_items, user_checklist_progress,
   user_jurisdictions
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum as PyEnum
from typing import Any, Dict, List, Optional

from pydantic.alias_generators import to_camel
from sqlalchemy import (
    BigInteger, Boolean, CheckConstraint, Date, DateTime, Enum, ForeignKey,
    Index, Integer, JSON, Numeric, String, Text, UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship, declarative_base, Mapped, mapped_column
from sqlalchemy.sql import func

# Base class for all models
Base = declarative_base()

# JSONB on PostgreSQL, JSON elsewhere (SQLite in unit tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


# ============================================
# ENUMS
# ============================================

class PolicyStatus(str, PyEnum):
    """Lifecycle status of a compliance policy"""
    DRAFT = "draft"
    ACTIVE = "active"
    ARCHIVED = "archived"
    REVIEW_NEEDED = "review_needed"


class ApprovalStatus(str, PyEnum):
    """Decision recorded on a policy approval"""
    APPROVED = "approved"
    REJECTED = "rejected"
    PENDING = "pending"
    CHANGES_REQUESTED = "changes_requested"


class TokenCategory(str, PyEnum):
    """Regulatory category of a registered token"""
    FINANCIAL_INSTRUMENT = "FINANCIAL_INSTRUMENT"
    REAL_WORLD_ASSET = "REAL_WORLD_ASSET"
    PAYMENT_STABLE = "PAYMENT_STABLE"
    UTILITY = "UTILITY"
    GOVERNANCE = "GOVERNANCE"
    SYNTHETIC_DERIVATIVE = "SYNTHETIC_DERIVATIVE"
    NFT = "NFT"
    COMPLIANCE_ACCESS = "COMPLIANCE_ACCESS"
    SPECIAL_PURPOSE = "SPECIAL_PURPOSE"


class ReportStatus(str, PyEnum):
    """Status of a compliance report filing"""
    DRAFT = "draft"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"
    NEEDS_REVIEW = "needs_review"


class ScheduleStatus(str, PyEnum):
    """Status of a recurring report schedule"""
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"


class ReportFrequency(str, PyEnum):
    """Filing frequency of a report type or schedule"""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    SEMI_ANNUALLY = "semi_annually"
    ANNUALLY = "annually"
    AD_HOC = "ad_hoc"


class RegistrationType(str, PyEnum):
    """Discriminator of the generalized registration table"""
    EXCHANGE = "exchange"
    STABLECOIN = "stablecoin"
    DEFI = "defi"
    NFT = "nft"
    FUND = "fund"
    TOKEN = "token"


class AuditAction(str, PyEnum):
    """Type of audit action"""
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class ChecklistStatus(str, PyEnum):
    """A user's progress on one checklist item"""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


def _enum_column(enum_cls: type, name: str) -> Enum:
    """Enum column type persisting the member values (not the names)."""
    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


# ============================================
# MIXIN CLASSES
# ============================================

class TimestampMixin:
    """Mixin for created_at and updated_at timestamps"""
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )


class CreatedAtMixin:
    """Mixin for append-only rows that only carry created_at"""
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )


class SerializerMixin:
    """
    Mixin producing the camelCase JSON document for a row.

    Columns listed in ``__serialize_exclude__`` are never emitted.
    """
    __serialize_exclude__: frozenset = frozenset()

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        for attr in self.__mapper__.column_attrs:
            if attr.key in self.__serialize_exclude__:
                continue
            data[to_camel(attr.key)] = _serialize_value(getattr(self, attr.key))
        return data


def _serialize_value(value: Any) -> Any:
    if isinstance(value, PyEnum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return value


# ============================================
# USER MODELS
# ============================================

class User(Base, SerializerMixin):
    """
    Application user.

    Created at registration; mutated by KYC update and by the admin flag.
    Users are never hard-deleted.
    """
    __tablename__ = "users"
    __serialize_exclude__ = frozenset({"password"})

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    username: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    # "<hex scrypt hash>.<hex salt>"
    password: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    company_name: Mapped[str] = mapped_column(String(255), nullable=False)
    wallet_address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    kyc_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    risk_score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    compliance_data: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}', admin={self.is_admin})>"


class Transaction(Base, SerializerMixin):
    """Wallet transaction observed for a user."""
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    wallet_address: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False)
    risk_level: Mapped[str] = mapped_column(String(50), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


# ============================================
# BUSINESS REGISTRATION MODELS
# ============================================

class ExchangeInfo(Base, SerializerMixin, CreatedAtMixin):
    """Compliance intake for a centralized or decentralized exchange."""
    __tablename__ = "exchange_info"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # General exchange information
    exchange_name: Mapped[str] = mapped_column(String(255), nullable=False)
    legal_entity_name: Mapped[str] = mapped_column(String(255), nullable=False)
    registration_number: Mapped[str] = mapped_column(String(100), nullable=False)
    headquarters_location: Mapped[str] = mapped_column(String(255), nullable=False)
    website_url: Mapped[str] = mapped_column(Text, nullable=False)
    year_established: Mapped[str] = mapped_column(String(4), nullable=False)
    exchange_type: Mapped[str] = mapped_column(String(10), nullable=False)
    regulatory_licenses: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Compliance contact
    compliance_contact_name: Mapped[str] = mapped_column(String(255), nullable=False)
    compliance_contact_email: Mapped[str] = mapped_column(String(320), nullable=False)
    compliance_contact_phone: Mapped[str] = mapped_column(String(50), nullable=False)

    # Trading & market data
    trading_pairs: Mapped[Optional[list]] = mapped_column(JSONType, nullable=True)
    leverage_and_margin: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    hft_activity_metrics: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)

    # Security & risk
    wash_trading_detection: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    security_measures: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    risk_management: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)

    # AML & KYC
    kyc_verification_metrics: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    sanctions_compliance: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)

    # Custody & insurance
    custody_arrangements: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    insurance_coverage: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)

    # Blockchain integration
    supported_blockchains: Mapped[Optional[list]] = mapped_column(JSONType, nullable=True)
    blockchain_analytics: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)

    __table_args__ = (
        CheckConstraint("exchange_type IN ('CEX', 'DEX')", name="ck_exchange_type"),
    )

    def __repr__(self) -> str:
        return f"<ExchangeInfo(id={self.id}, name='{self.exchange_name}')>"


class StablecoinInfo(Base, SerializerMixin, CreatedAtMixin):
    """Compliance intake for a stablecoin issuer."""
    __tablename__ = "stablecoin_info"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    stablecoin_name: Mapped[str] = mapped_column(String(255), nullable=False)
    token_symbol: Mapped[str] = mapped_column(String(20), nullable=False)
    issuer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    registration_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    jurisdiction: Mapped[str] = mapped_column(String(255), nullable=False)
    website_url: Mapped[str] = mapped_column(Text, nullable=False)
    compliance_officer_email: Mapped[str] = mapped_column(String(320), nullable=False)

    # Backing & reserves
    backing_asset_type: Mapped[str] = mapped_column(String(50), nullable=False, default="Fiat")
    backing_asset_details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    pegged_to: Mapped[str] = mapped_column(String(20), nullable=False, default="USD")
    total_supply: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    reserve_ratio: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    custodian_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Audit & redemption
    audit_provider: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    attestation_method: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    redemption_policy: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    redemption_frequency: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Regulatory flags
    central_bank_partnership: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_regulated: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    has_market_makers: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    has_travel_rule: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    aml_policy_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Structured sub-documents
    reserve_details: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    custodian_details: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    audit_information: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    contract_addresses: Mapped[Optional[list]] = mapped_column(JSONType, nullable=True)
    blockchain_platforms: Mapped[Optional[list]] = mapped_column(JSONType, nullable=True)
    chain_ids: Mapped[Optional[list]] = mapped_column(JSONType, nullable=True)

    def __repr__(self) -> str:
        return f"<StablecoinInfo(id={self.id}, symbol='{self.token_symbol}')>"


class DefiProtocolInfo(Base, SerializerMixin, CreatedAtMixin):
    """Compliance intake for a DeFi protocol."""
    __tablename__ = "defi_protocol_info"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    protocol_name: Mapped[str] = mapped_column(String(255), nullable=False)
    protocol_type: Mapped[str] = mapped_column(String(50), nullable=False, default="Lending")
    website_url: Mapped[str] = mapped_column(Text, nullable=False)

    smart_contract_addresses: Mapped[Optional[list]] = mapped_column(JSONType, nullable=True)
    supported_tokens: Mapped[Optional[list]] = mapped_column(JSONType, nullable=True)
    blockchain_networks: Mapped[Optional[list]] = mapped_column(JSONType, nullable=True)
    security_audits: Mapped[Optional[list]] = mapped_column(JSONType, nullable=True)
    insurance_coverage: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    risk_management: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    governance_structure: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    tokenomics: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)

    def __repr__(self) -> str:
        return f"<DefiProtocolInfo(id={self.id}, name='{self.protocol_name}')>"


class NftMarketplaceInfo(Base, SerializerMixin, CreatedAtMixin):
    """Compliance intake for an NFT marketplace."""
    __tablename__ = "nft_marketplace_info"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    marketplace_name: Mapped[str] = mapped_column(String(255), nullable=False)
    business_entity: Mapped[str] = mapped_column(String(255), nullable=False)
    website_url: Mapped[str] = mapped_column(Text, nullable=False)

    supported_standards: Mapped[Optional[list]] = mapped_column(JSONType, nullable=True)
    blockchain_networks: Mapped[Optional[list]] = mapped_column(JSONType, nullable=True)
    smart_contracts: Mapped[Optional[list]] = mapped_column(JSONType, nullable=True)
    royalty_enforcement: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    listing_policies: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    moderation_procedures: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    copyright_policies: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    aml_policies: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)

    def __repr__(self) -> str:
        return f"<NftMarketplaceInfo(id={self.id}, name='{self.marketplace_name}')>"


class CryptoFundInfo(Base, SerializerMixin, CreatedAtMixin):
    """Compliance intake for a crypto investment fund."""
    __tablename__ = "crypto_fund_info"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Basic information
    fund_name: Mapped[str] = mapped_column(String(255), nullable=False)
    fund_type: Mapped[str] = mapped_column(String(100), nullable=False, default="Hedge Fund")
    registration_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    jurisdiction: Mapped[str] = mapped_column(String(255), nullable=False)
    jurisdiction_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("jurisdictions.id", ondelete="SET NULL"), nullable=True
    )
    legal_entity_type: Mapped[str] = mapped_column(
        String(100), nullable=False, default="Limited Partnership"
    )
    incorporation_date: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    website_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Contact & terms
    contact_email: Mapped[str] = mapped_column(String(320), nullable=False)
    contact_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    aum: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    fund_currency: Mapped[str] = mapped_column(String(10), nullable=False, default="USD")
    minimum_investment: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    redemption_terms: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    target_returns: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    management_fee: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    performance_fee: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # Strategy, risk, custody, licensing
    investment_strategy: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    asset_allocation: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    risk_profile: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    custody_arrangements: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    valuation_methods: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    regulatory_licenses: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    aml_procedures: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    servicing_providers: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    restricted_investors: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)

    def __repr__(self) -> str:
        return f"<CryptoFundInfo(id={self.id}, name='{self.fund_name}')>"


# ============================================
# GENERALIZED REGISTRATION AND AUDIT MODELS
# ============================================

class Registration(Base, SerializerMixin, TimestampMixin):
    """
    Type-agnostic registration with a version counter and soft delete.

    Lives alongside the typed tables above; the two are not synchronized.
    """
    __tablename__ = "registrations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    registration_type: Mapped[RegistrationType] = mapped_column(
        _enum_column(RegistrationType, "registration_type"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="draft")
    data: Mapped[dict] = mapped_column(JSONType, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    versions: Mapped[List["RegistrationVersion"]] = relationship(
        "RegistrationVersion",
        back_populates="registration",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index('ix_registration_user_type', 'user_id', 'registration_type'),
    )

    def __repr__(self) -> str:
        return f"<Registration(id={self.id}, type={self.registration_type}, v={self.version})>"


class RegistrationVersion(Base, SerializerMixin, CreatedAtMixin):
    """Immutable snapshot of a registration's data at a given version."""
    __tablename__ = "registration_versions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    registration_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("registrations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    data: Mapped[dict] = mapped_column(JSONType, nullable=False)
    created_by: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    registration: Mapped["Registration"] = relationship("Registration", back_populates="versions")

    __table_args__ = (
        UniqueConstraint('registration_id', 'version', name='uq_registration_version'),
    )


class AuditLog(Base, SerializerMixin, CreatedAtMixin):
    """
    Append-only audit trail of writes to audited tables.

    Immutable - no updates or deletes allowed.
    """
    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    table_name: Mapped[str] = mapped_column(String(100), nullable=False)
    record_id: Mapped[int] = mapped_column(Integer, nullable=False)
    action: Mapped[AuditAction] = mapped_column(
        _enum_column(AuditAction, "audit_action"), nullable=False
    )
    user_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    old_data: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    new_data: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)

    __table_args__ = (
        Index('ix_audit_table_record', 'table_name', 'record_id'),
    )

    def __repr__(self) -> str:
        return f"<AuditLog(id={self.id}, action={self.action}, table='{self.table_name}')>"


# ============================================
# JURISDICTION GRAPH MODELS
# ============================================

class Jurisdiction(Base, SerializerMixin, TimestampMixin):
    """
    Root of the jurisdiction graph.

    Every child table holds a cascading foreign key to jurisdictions.id.
    Children are loaded explicitly by the aggregation service, never eagerly.
    """
    __tablename__ = "jurisdictions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    region: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    risk_level: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    favorability_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Enhanced profile columns
    iso_code: Mapped[Optional[str]] = mapped_column(String(2), nullable=True)
    currency_code: Mapped[Optional[str]] = mapped_column(String(3), nullable=True)
    is_fatf_member: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    legal_system_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    national_language: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    central_bank_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    financial_licensing_portal: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    contact_email: Mapped[Optional[str]] = mapped_column(String(320), nullable=True)
    last_updated: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    regulatory_bodies: Mapped[List["RegulatoryBody"]] = relationship(
        "RegulatoryBody", back_populates="jurisdiction",
        cascade="all, delete-orphan", passive_deletes=True,
    )
    laws: Mapped[List["Law"]] = relationship(
        "Law", back_populates="jurisdiction",
        cascade="all, delete-orphan", passive_deletes=True,
    )
    obligations: Mapped[List["Obligation"]] = relationship(
        "Obligation", back_populates="jurisdiction",
        cascade="all, delete-orphan", passive_deletes=True,
    )

    __table_args__ = (
        Index('idx_jurisdiction_risk_favorability', 'risk_level', 'favorability_score'),
    )

    def __repr__(self) -> str:
        return f"<Jurisdiction(id={self.id}, name='{self.name}')>"


class RegulatoryBody(Base, SerializerMixin, CreatedAtMixin):
    """Authority supervising crypto activity in a jurisdiction."""
    __tablename__ = "regulatory_bodies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    jurisdiction_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("jurisdictions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    website_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    contact_email: Mapped[Optional[str]] = mapped_column(String(320), nullable=True)
    phone_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    crypto_scope: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    authority_level: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    reporting_api_available: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    jurisdiction: Mapped["Jurisdiction"] = relationship("Jurisdiction", back_populates="regulatory_bodies")


class Regulation(Base, SerializerMixin, CreatedAtMixin):
    """Legacy regulation row. Read-only; superseded by Law."""
    __tablename__ = "regulations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    jurisdiction_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("jurisdictions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    compliance_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    effective_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    last_updated: Mapped[Optional[date]] = mapped_column(Date, nullable=True)


class ComplianceRequirement(Base, SerializerMixin, CreatedAtMixin):
    """Legacy compliance requirement row. Read-only; superseded by Obligation."""
    __tablename__ = "compliance_requirements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    jurisdiction_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("jurisdictions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    requirement_type: Mapped[str] = mapped_column(String(100), nullable=False)
    summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class Law(Base, SerializerMixin, CreatedAtMixin):
    """
    Enhanced-generation law.

    legacy_regulation_id points back at the legacy regulation a row was
    migrated from; the unique constraint keeps the copy one-to-one.
    """
    __tablename__ = "laws"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    jurisdiction_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("jurisdictions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    regulatory_body_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("regulatory_bodies.id", ondelete="SET NULL"), nullable=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    abbreviation: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    law_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    effective_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    last_updated: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    legal_category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    applicability: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    full_text_link: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    source_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    source_language: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    legacy_regulation_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("regulations.id", ondelete="SET NULL"), nullable=True, unique=True
    )

    jurisdiction: Mapped["Jurisdiction"] = relationship("Jurisdiction", back_populates="laws")

    __table_args__ = (
        Index('idx_laws_by_type_and_category', 'law_type', 'legal_category'),
    )

    def __repr__(self) -> str:
        return f"<Law(id={self.id}, title='{self.title}')>"


class Obligation(Base, SerializerMixin, CreatedAtMixin):
    """Enhanced-generation compliance duty tied to a jurisdiction and optionally a law."""
    __tablename__ = "obligations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    jurisdiction_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("jurisdictions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    law_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("laws.id", ondelete="SET NULL"), nullable=True, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    obligation_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Schedule
    frequency: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    due_by_day: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    due_months: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Delivery
    format: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    delivery_method: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    submission_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    escalation_policy: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Penalties & dependencies
    penalty_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    penalty_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    threshold_condition: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    dependent_on: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("obligations.id", ondelete="SET NULL"), nullable=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    legacy_requirement_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("compliance_requirements.id", ondelete="SET NULL"),
        nullable=True, unique=True
    )

    jurisdiction: Mapped["Jurisdiction"] = relationship("Jurisdiction", back_populates="obligations")

    __table_args__ = (
        Index('idx_obligations_due_by', 'due_by_day'),
    )

    def __repr__(self) -> str:
        return f"<Obligation(id={self.id}, title='{self.title}')>"


class TaxationRule(Base, SerializerMixin, CreatedAtMixin):
    """Crypto taxation summary; at most one per jurisdiction."""
    __tablename__ = "taxation_rules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    jurisdiction_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("jurisdictions.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    income_tax_applicable: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    capital_gains_tax: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    vat_applicable: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    tax_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tax_authority_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    last_updated: Mapped[Optional[date]] = mapped_column(Date, nullable=True)


class ReportingObligation(Base, SerializerMixin, CreatedAtMixin):
    """Periodic regulatory reporting duty of a jurisdiction."""
    __tablename__ = "reporting_obligations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    jurisdiction_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("jurisdictions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type: Mapped[str] = mapped_column(String(255), nullable=False)
    frequency: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    submission_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    penalties: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    last_reviewed: Mapped[Optional[date]] = mapped_column(Date, nullable=True)


class RegulatoryUpdate(Base, SerializerMixin, CreatedAtMixin):
    """Dated news item about a jurisdiction's regulation."""
    __tablename__ = "regulatory_updates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    jurisdiction_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("jurisdictions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    update_title: Mapped[str] = mapped_column(String(500), nullable=False)
    update_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    source: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class JurisdictionTag(Base, SerializerMixin):
    """Free-text label attached to a jurisdiction."""
    __tablename__ = "jurisdiction_tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    jurisdiction_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("jurisdictions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    tag: Mapped[str] = mapped_column(String(100), nullable=False)


class JurisdictionQueryKeyword(Base, SerializerMixin):
    """Search keyword resolving to a jurisdiction."""
    __tablename__ = "jurisdiction_query_keywords"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    jurisdiction_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("jurisdictions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    keyword: Mapped[str] = mapped_column(String(255), nullable=False)


# ============================================
# CHECKLISTS AND SUBSCRIPTIONS
# ============================================

class ChecklistCategory(Base, SerializerMixin, TimestampMixin):
    """Ordered group of compliance tasks for one jurisdiction."""
    __tablename__ = "checklist_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    jurisdiction_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("jurisdictions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)

    items: Mapped[List["ChecklistItem"]] = relationship(
        "ChecklistItem", back_populates="category", order_by="ChecklistItem.sequence",
        cascade="all, delete-orphan", passive_deletes=True,
    )


class ChecklistItem(Base, SerializerMixin, TimestampMixin):
    __tablename__ = "checklist_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    category_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("checklist_categories.id", ondelete="CASCADE"), nullable=False, index=True
    )
    task: Mapped[str] = mapped_column(Text, nullable=False)
    responsible: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)

    category: Mapped["ChecklistCategory"] = relationship("ChecklistCategory", back_populates="items")


class UserChecklistProgress(Base, SerializerMixin, TimestampMixin):
    """
    One user's status on one checklist item.

    A missing row means the item is not started; completed_at is set when
    the status becomes completed and cleared when it leaves completed.
    """
    __tablename__ = "user_checklist_progress"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    checklist_item_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("checklist_items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[ChecklistStatus] = mapped_column(
        _enum_column(ChecklistStatus, "checklist_status"),
        nullable=False,
        default=ChecklistStatus.NOT_STARTED
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint('user_id', 'checklist_item_id', name='uq_user_checklist_item'),
    )


class UserJurisdiction(Base, SerializerMixin):
    """A user's subscription to a jurisdiction's updates and checklists."""
    __tablename__ = "user_jurisdictions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    jurisdiction_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("jurisdictions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    is_primary: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    jurisdiction: Mapped["Jurisdiction"] = relationship("Jurisdiction")

    __table_args__ = (
        UniqueConstraint('user_id', 'jurisdiction_id', name='uq_user_jurisdiction'),
    )


# ============================================
# POLICY FRAMEWORK MODELS
# ============================================

class Policy(Base, SerializerMixin, TimestampMixin):
    """
    Internal compliance policy authored by a user.

    Status changes driven by approvals happen in the same transaction as
    the approval insert (see PolicyRepository.add_approval).
    """
    __tablename__ = "policies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(100), nullable=False)
    jurisdiction_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("jurisdictions.id", ondelete="SET NULL"), nullable=True, index=True
    )
    status: Mapped[PolicyStatus] = mapped_column(
        _enum_column(PolicyStatus, "policy_status"),
        nullable=False,
        default=PolicyStatus.DRAFT,
        index=True
    )
    version: Mapped[str] = mapped_column(String(20), nullable=False, default="1.0")
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_by: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    versions: Mapped[List["PolicyVersion"]] = relationship(
        "PolicyVersion", back_populates="policy",
        cascade="all, delete-orphan", passive_deletes=True,
    )
    tags: Mapped[List["PolicyTag"]] = relationship(
        "PolicyTag", cascade="all, delete-orphan", passive_deletes=True,
    )
    obligation_mappings: Mapped[List["PolicyObligationMapping"]] = relationship(
        "PolicyObligationMapping", cascade="all, delete-orphan", passive_deletes=True,
    )
    approvals: Mapped[List["PolicyApproval"]] = relationship(
        "PolicyApproval", cascade="all, delete-orphan", passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Policy(id={self.id}, name='{self.name}', status={self.status})>"


class PolicyVersion(Base, SerializerMixin, CreatedAtMixin):
    """Immutable content snapshot of a policy."""
    __tablename__ = "policy_versions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    policy_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("policies.id", ondelete="CASCADE"), nullable=False, index=True
    )
    version: Mapped[str] = mapped_column(String(20), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    change_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    policy: Mapped["Policy"] = relationship("Policy", back_populates="versions")

    __table_args__ = (
        UniqueConstraint('policy_id', 'version', name='uq_policy_version'),
    )


class PolicyTag(Base, SerializerMixin, CreatedAtMixin):
    """Free-text label on a policy."""
    __tablename__ = "policy_tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    policy_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("policies.id", ondelete="CASCADE"), nullable=False, index=True
    )
    tag: Mapped[str] = mapped_column(String(100), nullable=False)


class PolicyObligationMapping(Base, SerializerMixin, CreatedAtMixin):
    """N:N join from policies to the obligations they cover."""
    __tablename__ = "policy_obligation_mappings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    policy_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("policies.id", ondelete="CASCADE"), nullable=False, index=True
    )
    obligation_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("obligations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    coverage_percentage: Mapped[int] = mapped_column(Integer, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint('policy_id', 'obligation_id', name='uq_policy_obligation'),
        CheckConstraint(
            'coverage_percentage >= 0 AND coverage_percentage <= 100',
            name='ck_coverage_range'
        ),
    )


class PolicyApproval(Base, SerializerMixin, CreatedAtMixin):
    """Append-only approval/rejection record on a policy."""
    __tablename__ = "policy_approvals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    policy_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("policies.id", ondelete="CASCADE"), nullable=False, index=True
    )
    approver_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[ApprovalStatus] = mapped_column(
        _enum_column(ApprovalStatus, "approval_status"), nullable=False
    )
    comments: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


# ============================================
# TOKEN REGISTRATION MODELS
# ============================================

class TokenRegistration(Base, SerializerMixin, TimestampMixin):
    """Crypto token compliance registration owned by a user."""
    __tablename__ = "token_registrations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Identity
    token_name: Mapped[str] = mapped_column(String(255), nullable=False)
    token_symbol: Mapped[str] = mapped_column(String(10), nullable=False)
    token_category: Mapped[TokenCategory] = mapped_column(
        _enum_column(TokenCategory, "token_category"), nullable=False, index=True
    )
    token_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    token_standard: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    issuer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    issuer_legal_entity: Mapped[str] = mapped_column(String(255), nullable=False)
    issuer_jurisdiction: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Chain & supply
    blockchain_networks: Mapped[Optional[list]] = mapped_column(JSONType, nullable=True)
    smart_contracts: Mapped[Optional[list]] = mapped_column(JSONType, nullable=True)
    total_supply: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    circulating_supply: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    launch_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # Descriptive
    description: Mapped[str] = mapped_column(Text, nullable=False)
    use_case: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    website_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    whitepaper_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    github_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    social_media_links: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    contact_information: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    token_economics: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)

    # Compliance
    jurisdictions: Mapped[Optional[list]] = mapped_column(JSONType, nullable=True)
    asset_backing_details: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    tokenomics_details: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    token_management_team: Mapped[Optional[list]] = mapped_column(JSONType, nullable=True)
    regulatory_status: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    legal_opinion_references: Mapped[Optional[list]] = mapped_column(JSONType, nullable=True)
    audit_status: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Flags
    registration_status: Mapped[str] = mapped_column(String(50), nullable=False, default="draft")
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_listed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    visibility: Mapped[str] = mapped_column(String(20), nullable=False, default="public")

    documents: Mapped[List["TokenRegistrationDocument"]] = relationship(
        "TokenRegistrationDocument", cascade="all, delete-orphan", passive_deletes=True,
    )
    verifications: Mapped[List["TokenRegistrationVerification"]] = relationship(
        "TokenRegistrationVerification", cascade="all, delete-orphan", passive_deletes=True,
    )
    risk_assessments: Mapped[List["TokenRiskAssessment"]] = relationship(
        "TokenRiskAssessment", cascade="all, delete-orphan", passive_deletes=True,
    )
    jurisdiction_approvals: Mapped[List["TokenJurisdictionApproval"]] = relationship(
        "TokenJurisdictionApproval", cascade="all, delete-orphan", passive_deletes=True,
    )

    __table_args__ = (
        Index('ix_token_user_category', 'user_id', 'token_category'),
    )

    def __repr__(self) -> str:
        return f"<TokenRegistration(id={self.id}, symbol='{self.token_symbol}')>"


class TokenRegistrationDocument(Base, SerializerMixin):
    """Supporting document uploaded for a token registration."""
    __tablename__ = "token_registration_documents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    token_registration_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("token_registrations.id", ondelete="CASCADE"),
        nullable=False, index=True
    )
    document_type: Mapped[str] = mapped_column(String(100), nullable=False)
    document_name: Mapped[str] = mapped_column(String(255), nullable=False)
    document_url: Mapped[str] = mapped_column(Text, nullable=False)
    uploaded_by: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class TokenRegistrationVerification(Base, SerializerMixin, CreatedAtMixin):
    """Reviewer verification decision on a token registration."""
    __tablename__ = "token_registration_verifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    token_registration_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("token_registrations.id", ondelete="CASCADE"),
        nullable=False, index=True
    )
    verification_status: Mapped[str] = mapped_column(String(50), nullable=False)
    verification_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    verifier_user_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    verification_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    verification_documents: Mapped[Optional[list]] = mapped_column(JSONType, nullable=True)


class TokenRiskAssessment(Base, SerializerMixin, CreatedAtMixin):
    """Risk score assigned to a token registration by a reviewer."""
    __tablename__ = "token_risk_assessments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    token_registration_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("token_registrations.id", ondelete="CASCADE"),
        nullable=False, index=True
    )
    risk_score: Mapped[int] = mapped_column(Integer, nullable=False)
    risk_level: Mapped[str] = mapped_column(String(50), nullable=False)
    assessment_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    assessor_user_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    assessment_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    risk_factors: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)

    __table_args__ = (
        CheckConstraint('risk_score >= 0 AND risk_score <= 100', name='ck_token_risk_score'),
    )


class TokenJurisdictionApproval(Base, SerializerMixin, CreatedAtMixin):
    """Approval status of a token within one jurisdiction."""
    __tablename__ = "token_jurisdiction_approvals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    token_registration_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("token_registrations.id", ondelete="CASCADE"),
        nullable=False, index=True
    )
    jurisdiction_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("jurisdictions.id", ondelete="CASCADE"), nullable=False
    )
    approval_status: Mapped[str] = mapped_column(String(50), nullable=False)
    approval_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    approval_details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    regulatory_requirements: Mapped[Optional[list]] = mapped_column(JSONType, nullable=True)
    restrictions: Mapped[Optional[list]] = mapped_column(JSONType, nullable=True)


# ============================================
# COMPLIANCE REPORTING MODELS
# ============================================

class ComplianceReportType(Base, SerializerMixin, CreatedAtMixin):
    """Catalog entry describing a kind of regulatory report."""
    __tablename__ = "compliance_report_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    frequency: Mapped[ReportFrequency] = mapped_column(
        _enum_column(ReportFrequency, "report_frequency"), nullable=False
    )
    applies_to: Mapped[str] = mapped_column(String(100), nullable=False)
    template_available: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class ComplianceReport(Base, SerializerMixin, TimestampMixin):
    """A user's filing instance of a catalog report type."""
    __tablename__ = "compliance_reports"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    report_type_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("compliance_report_types.id"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[ReportStatus] = mapped_column(
        _enum_column(ReportStatus, "report_status"),
        nullable=False,
        default=ReportStatus.DRAFT,
        index=True
    )
    due_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    submission_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    report_data: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index('ix_report_user_due', 'user_id', 'due_date'),
    )


class ReportSchedule(Base, SerializerMixin, TimestampMixin):
    """Recurrence rule that generates future report due dates."""
    __tablename__ = "report_schedules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    report_type_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("compliance_report_types.id"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    frequency: Mapped[ReportFrequency] = mapped_column(
        _enum_column(ReportFrequency, "report_frequency"), nullable=False
    )
    next_due_date: Mapped[date] = mapped_column(Date, nullable=False)
    # day of month month-based frequencies return to (1-31)
    anchor_day: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    status: Mapped[ScheduleStatus] = mapped_column(
        _enum_column(ScheduleStatus, "schedule_status"),
        nullable=False,
        default=ScheduleStatus.ACTIVE
    )
    reminder_days_before: Mapped[int] = mapped_column(Integer, nullable=False, default=7)
    reminders_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
