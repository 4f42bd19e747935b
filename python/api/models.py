"""
Pydantic request schemas for the Compliance Tracker API

Every insertable shape has a validator here (business registration forms
live in registration_models.py). Validators:
- accept camelCase JSON keys (snake_case is accepted too)
- omit server-assigned fields (id, timestamps, owner ids)
- add the refinements the columns cannot express (lengths, enums, URL and
  email formats, numeric ranges)

``to_row()`` turns a validated model into the column dict the repositories
expect. JSON sub-documents are dumped back to camelCase with only the keys
the client sent, so they round-trip unchanged.
"""

import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from pydantic import (
    BaseModel, EmailStr, Field, HttpUrl, TypeAdapter, field_validator,
)
from pydantic.alias_generators import to_camel

from database.models import (
    ApprovalStatus,
    ChecklistStatus,
    PolicyStatus,
    RegistrationType,
    ReportFrequency,
    ReportStatus,
    ScheduleStatus,
    TokenCategory,
)

# JSON numbers keep their int/float identity
Number = Union[int, float]

_http_url = TypeAdapter(HttpUrl)

PASSWORD_RULES = (
    (re.compile(r'[A-Z]'), "Password must contain at least one uppercase letter"),
    (re.compile(r'[a-z]'), "Password must contain at least one lowercase letter"),
    (re.compile(r'[0-9]'), "Password must contain at least one number"),
    (re.compile(r'[^A-Za-z0-9]'), "Password must contain at least one special character"),
)

CONTRACT_ADDRESS_RE = re.compile(r'^0x[a-fA-F0-9]{40}$')
SEMVER_RE = re.compile(r'^\d+(\.\d+)*$')


def validate_url(value: Optional[str]) -> Optional[str]:
    """Check an http(s) URL but keep the string exactly as sent."""
    if value is None or value == "":
        return value
    _http_url.validate_python(value)
    return value


def reject_null(value: Any) -> Any:
    """Refuse an explicit JSON null for a column that cannot be NULL."""
    if value is None:
        raise ValueError("Field cannot be null")
    return value


def not_nullable(*fields: str):
    """Before-validator for partial updates: a field may be omitted but not nulled."""
    return field_validator(*fields, mode='before')(reject_null)


def _dump(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_unset=True)
    if isinstance(value, list):
        return [_dump(item) for item in value]
    if isinstance(value, dict):
        return {key: _dump(item) for key, item in value.items()}
    return value


# ============================================
# BASE CLASSES
# ============================================

class ApiModel(BaseModel):
    """Base for request bodies: camelCase aliases, snake_case attributes."""

    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    def to_row(self, exclude_unset: bool = False) -> Dict[str, Any]:
        """
        Column dict for the repositories.

        Unset optional fields are left out so column defaults apply; with
        ``exclude_unset`` only fields present in the request are returned
        (partial updates).
        """
        row: Dict[str, Any] = {}
        for name in type(self).model_fields:
            if name not in self.model_fields_set:
                if exclude_unset or getattr(self, name) is None:
                    continue
            row[name] = _dump(getattr(self, name))
        return row


class SubDocument(BaseModel):
    """Base for JSON sub-documents; unknown keys are kept as sent."""

    model_config = {"alias_generator": to_camel, "populate_by_name": True, "extra": "allow"}


# ============================================
# AUTH & USER
# ============================================

class RegisterRequest(ApiModel):
    """Account registration body."""
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=12, description="At least 12 chars with upper, lower, digit and symbol")
    email: EmailStr
    company_name: str = Field(..., min_length=2)
    wallet_address: Optional[str] = None

    @field_validator('password')
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        for pattern, message in PASSWORD_RULES:
            if not pattern.search(v):
                raise ValueError(message)
        return v


class LoginRequest(ApiModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class KycUpdateRequest(ApiModel):
    wallet_address: str = Field(..., min_length=1)
    compliance_data: Dict[str, Any] = Field(default_factory=dict)


class AdminUserUpdate(ApiModel):
    is_admin: bool


# ============================================
# GENERALIZED REGISTRATIONS
# ============================================

class RegistrationCreate(ApiModel):
    registration_type: RegistrationType
    name: str = Field(..., min_length=2)
    status: str = Field(default="draft", min_length=1)
    data: Dict[str, Any]


class RegistrationUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=2)
    status: Optional[str] = Field(default=None, min_length=1)
    data: Optional[Dict[str, Any]] = None

    _not_null = not_nullable('name', 'status', 'data')


# ============================================
# JURISDICTION IMPORT
# ============================================

class JurisdictionFields(ApiModel):
    name: str = Field(..., min_length=2)
    region: Optional[str] = None
    risk_level: Optional[str] = None
    favorability_score: Optional[int] = Field(default=None, ge=0, le=100)
    notes: Optional[str] = None
    iso_code: Optional[str] = Field(default=None, min_length=2, max_length=2)
    currency_code: Optional[str] = Field(default=None, min_length=3, max_length=3)
    is_fatf_member: bool = False
    legal_system_type: Optional[str] = None
    national_language: Optional[str] = None
    central_bank_url: Optional[str] = None
    financial_licensing_portal: Optional[str] = None
    contact_email: Optional[EmailStr] = None
    last_updated: Optional[datetime] = None

    _check_urls = field_validator('central_bank_url', 'financial_licensing_portal')(validate_url)


class RegulatoryBodyImport(ApiModel):
    name: str = Field(..., min_length=2)
    website_url: Optional[str] = None
    description: Optional[str] = None
    contact_email: Optional[EmailStr] = None
    phone_number: Optional[str] = None
    crypto_scope: Optional[str] = None
    authority_level: Optional[str] = None
    reporting_api_available: bool = False

    _check_urls = field_validator('website_url')(validate_url)


class LawImport(ApiModel):
    title: str = Field(..., min_length=2)
    abbreviation: Optional[str] = None
    law_type: Optional[str] = None
    regulatory_body_name: Optional[str] = Field(
        default=None, description="Name of a regulatory body defined in the same document"
    )
    effective_date: Optional[date] = None
    last_updated: Optional[date] = None
    legal_category: Optional[str] = None
    description: Optional[str] = None
    applicability: Optional[str] = None
    full_text_link: Optional[str] = None
    source_url: Optional[str] = None
    source_language: Optional[str] = None

    _check_urls = field_validator('full_text_link', 'source_url')(validate_url)


class ObligationImport(ApiModel):
    title: str = Field(..., min_length=2)
    description: Optional[str] = None
    law_title: Optional[str] = Field(
        default=None, description="Title of a law defined in the same document"
    )
    obligation_type: Optional[str] = None
    frequency: Optional[str] = None
    due_by_day: Optional[int] = Field(default=None, ge=1, le=31)
    due_months: Optional[str] = None
    format: Optional[str] = None
    delivery_method: Optional[str] = None
    submission_url: Optional[str] = None
    escalation_policy: Optional[str] = None
    penalty_type: Optional[str] = None
    penalty_amount: Optional[Decimal] = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    threshold_condition: Optional[str] = None
    is_active: bool = True

    _check_urls = field_validator('submission_url')(validate_url)


class TaxationRuleImport(ApiModel):
    income_tax_applicable: bool = False
    capital_gains_tax: Optional[str] = None
    vat_applicable: bool = False
    tax_description: Optional[str] = None
    tax_authority_url: Optional[str] = None
    last_updated: Optional[date] = None

    _check_urls = field_validator('tax_authority_url')(validate_url)


class ReportingObligationImport(ApiModel):
    type: str = Field(..., min_length=1)
    frequency: Optional[str] = None
    submission_url: Optional[str] = None
    penalties: Optional[str] = None
    last_reviewed: Optional[date] = None


class RegulatoryUpdateImport(ApiModel):
    update_title: str = Field(..., min_length=1)
    update_date: Optional[date] = None
    summary: Optional[str] = None
    source: Optional[str] = None


class JurisdictionImport(ApiModel):
    """Bulk import document: a jurisdiction with all of its children."""
    jurisdiction: JurisdictionFields
    regulatory_bodies: List[RegulatoryBodyImport] = Field(default_factory=list)
    laws: List[LawImport] = Field(default_factory=list)
    obligations: List[ObligationImport] = Field(default_factory=list)
    taxation_rule: Optional[TaxationRuleImport] = None
    reporting_obligations: List[ReportingObligationImport] = Field(default_factory=list)
    regulatory_updates: List[RegulatoryUpdateImport] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)

    def to_document(self) -> Dict[str, Any]:
        """Snake_case document for JurisdictionService.import_document."""
        return {
            'jurisdiction': self.jurisdiction.to_row(),
            'regulatory_bodies': [b.to_row() for b in self.regulatory_bodies],
            'laws': [law.to_row() for law in self.laws],
            'obligations': [o.to_row() for o in self.obligations],
            'taxation_rule': self.taxation_rule.to_row() if self.taxation_rule else None,
            'reporting_obligations': [r.to_row() for r in self.reporting_obligations],
            'regulatory_updates': [u.to_row() for u in self.regulatory_updates],
            'tags': list(self.tags),
            'keywords': list(self.keywords),
        }


# ============================================
# POLICY FRAMEWORK
# ============================================

class PolicyCreate(ApiModel):
    name: str = Field(..., min_length=3)
    description: str = Field(..., min_length=10)
    type: str = Field(..., min_length=1)
    jurisdiction_id: Optional[int] = None
    status: PolicyStatus = PolicyStatus.DRAFT
    version: str = "1.0"
    content: str = Field(..., min_length=20)


class PolicyUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=3)
    description: Optional[str] = Field(default=None, min_length=10)
    type: Optional[str] = Field(default=None, min_length=1)
    jurisdiction_id: Optional[int] = None
    status: Optional[PolicyStatus] = None
    version: Optional[str] = None
    content: Optional[str] = Field(default=None, min_length=20)

    _not_null = not_nullable('name', 'description', 'type', 'status', 'version', 'content')


class PolicyVersionCreate(ApiModel):
    version: str = Field(..., description="Dotted numeric version, e.g. 1.1 or 2.0.3")
    content: str = Field(..., min_length=20)
    change_notes: Optional[str] = None

    @field_validator('version')
    @classmethod
    def validate_version(cls, v: str) -> str:
        if not SEMVER_RE.match(v):
            raise ValueError("Version must be a dotted numeric string such as 1.0 or 2.1.3")
        return v


class PolicyTagCreate(ApiModel):
    tag: str = Field(..., min_length=1, max_length=100)


class PolicyObligationMappingCreate(ApiModel):
    obligation_id: int
    coverage_percentage: int = Field(..., ge=0, le=100)
    notes: Optional[str] = None


class PolicyApprovalCreate(ApiModel):
    status: ApprovalStatus
    comments: Optional[str] = None


# ============================================
# TOKEN REGISTRATIONS
# ============================================

class SmartContract(SubDocument):
    network: Optional[str] = None
    address: str

    @field_validator('address')
    @classmethod
    def validate_address(cls, v: str) -> str:
        if not CONTRACT_ADDRESS_RE.match(v):
            raise ValueError("Contract address must be 0x followed by 40 hex characters")
        return v


class TokenRegistrationCreate(ApiModel):
    token_name: str = Field(..., min_length=2)
    token_symbol: str = Field(..., min_length=1, max_length=10)
    token_category: TokenCategory
    token_type: Optional[str] = None
    token_standard: Optional[str] = None
    issuer_name: str = Field(..., min_length=2)
    issuer_legal_entity: str = Field(..., min_length=2)
    issuer_jurisdiction: Optional[str] = None
    blockchain_networks: Optional[List[str]] = None
    smart_contracts: Optional[List[SmartContract]] = None
    total_supply: Optional[int] = Field(default=None, ge=0)
    circulating_supply: Optional[int] = Field(default=None, ge=0)
    launch_date: Optional[date] = None
    description: str = Field(..., min_length=10)
    use_case: Optional[str] = None
    website_url: Optional[str] = None
    whitepaper_url: Optional[str] = None
    github_url: Optional[str] = None
    social_media_links: Optional[Dict[str, str]] = None
    contact_information: Optional[Dict[str, Any]] = None
    token_economics: Optional[Dict[str, Any]] = None
    jurisdictions: Optional[List[str]] = None
    asset_backing_details: Optional[Dict[str, Any]] = None
    tokenomics_details: Optional[Dict[str, Any]] = None
    token_management_team: Optional[List[Dict[str, Any]]] = None
    regulatory_status: Optional[str] = None
    legal_opinion_references: Optional[List[str]] = None
    audit_status: Optional[str] = None
    registration_status: str = "draft"
    visibility: str = Field(default="public", pattern=r'^(public|private)$')

    _check_urls = field_validator('website_url', 'whitepaper_url', 'github_url')(validate_url)


class TokenRegistrationUpdate(ApiModel):
    token_name: Optional[str] = Field(default=None, min_length=2)
    token_symbol: Optional[str] = Field(default=None, min_length=1, max_length=10)
    token_category: Optional[TokenCategory] = None
    token_type: Optional[str] = None
    token_standard: Optional[str] = None
    issuer_jurisdiction: Optional[str] = None
    blockchain_networks: Optional[List[str]] = None
    smart_contracts: Optional[List[SmartContract]] = None
    total_supply: Optional[int] = Field(default=None, ge=0)
    circulating_supply: Optional[int] = Field(default=None, ge=0)
    description: Optional[str] = Field(default=None, min_length=10)
    use_case: Optional[str] = None
    website_url: Optional[str] = None
    whitepaper_url: Optional[str] = None
    regulatory_status: Optional[str] = None
    audit_status: Optional[str] = None
    registration_status: Optional[str] = None
    is_listed: Optional[bool] = None
    visibility: Optional[str] = Field(default=None, pattern=r'^(public|private)$')

    _check_urls = field_validator('website_url', 'whitepaper_url')(validate_url)
    _not_null = not_nullable(
        'token_name', 'token_symbol', 'token_category', 'description',
        'registration_status', 'is_listed', 'visibility',
    )


class TokenDocumentCreate(ApiModel):
    document_type: str = Field(..., min_length=1)
    document_name: str = Field(..., min_length=1)
    document_url: str

    _check_urls = field_validator('document_url')(validate_url)


class TokenVerificationCreate(ApiModel):
    verification_status: str = Field(..., min_length=1)
    verification_notes: Optional[str] = None
    verification_documents: Optional[List[str]] = None


class TokenRiskAssessmentCreate(ApiModel):
    risk_score: int = Field(..., ge=0, le=100)
    risk_level: str = Field(..., min_length=1)
    assessment_notes: Optional[str] = None
    risk_factors: Optional[Dict[str, Any]] = None


class TokenJurisdictionApprovalCreate(ApiModel):
    jurisdiction_id: int
    approval_status: str = Field(..., min_length=1)
    approval_date: Optional[date] = None
    approval_details: Optional[str] = None
    regulatory_requirements: Optional[List[str]] = None
    restrictions: Optional[List[str]] = None


# ============================================
# COMPLIANCE REPORTING
# ============================================

class ReportTypeCreate(ApiModel):
    name: str = Field(..., min_length=2)
    description: Optional[str] = None
    category: str = Field(..., min_length=1)
    frequency: ReportFrequency
    applies_to: str = Field(..., min_length=1)
    template_available: bool = False


class ComplianceReportCreate(ApiModel):
    report_type_id: int
    entity_type: str = Field(..., min_length=1)
    entity_id: Optional[int] = None
    title: str = Field(..., min_length=2)
    status: ReportStatus = ReportStatus.DRAFT
    due_date: Optional[date] = None
    report_data: Optional[Dict[str, Any]] = None
    notes: Optional[str] = None


class ComplianceReportUpdate(ApiModel):
    title: Optional[str] = Field(default=None, min_length=2)
    status: Optional[ReportStatus] = None
    due_date: Optional[date] = None
    submission_date: Optional[datetime] = None
    report_data: Optional[Dict[str, Any]] = None
    notes: Optional[str] = None

    _not_null = not_nullable('title', 'status')


class ReportScheduleCreate(ApiModel):
    report_type_id: int
    entity_type: str = Field(..., min_length=1)
    entity_id: Optional[int] = None
    frequency: ReportFrequency
    next_due_date: date
    status: ScheduleStatus = ScheduleStatus.ACTIVE
    reminder_days_before: int = Field(default=7, ge=0, le=365)
    reminders_enabled: bool = True


class ReportScheduleUpdate(ApiModel):
    frequency: Optional[ReportFrequency] = None
    next_due_date: Optional[date] = None
    status: Optional[ScheduleStatus] = None
    reminder_days_before: Optional[int] = Field(default=None, ge=0, le=365)
    reminders_enabled: Optional[bool] = None

    _not_null = not_nullable('frequency', 'next_due_date', 'status', 'reminder_days_before', 'reminders_enabled')


# ============================================
# CHECKLISTS & SUBSCRIPTIONS
# ============================================

class ChecklistItemImport(ApiModel):
    task: str = Field(..., min_length=1)
    responsible: Optional[str] = None
    notes: Optional[str] = None
    sequence: int = Field(..., ge=0)


class ChecklistCategoryImport(ApiModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    sequence: int = Field(..., ge=0)
    items: List[ChecklistItemImport] = Field(default_factory=list)

    def to_row(self, exclude_unset: bool = False) -> Dict[str, Any]:
        row = super().to_row(exclude_unset)
        row.pop('items', None)
        return row


class ChecklistImport(ApiModel):
    """A jurisdiction's checklist: categories with their items."""
    categories: List[ChecklistCategoryImport] = Field(..., min_length=1)

    def to_document(self) -> List[Dict[str, Any]]:
        """Snake_case category rows, each carrying its item rows under 'items'."""
        return [
            dict(category.to_row(), items=[item.to_row() for item in category.items])
            for category in self.categories
        ]


class ChecklistProgressUpdate(ApiModel):
    status: ChecklistStatus
    notes: Optional[str] = Field(default=None, max_length=5000)


class UserJurisdictionCreate(ApiModel):
    """Subscription body; the client sends snake_case keys, camelCase works too."""
    jurisdiction_id: int = Field(..., ge=1)
    is_primary: bool = False
    notes: Optional[str] = None


# ============================================
# RESPONSES
# ============================================

class FieldError(BaseModel):
    path: List[Union[str, int]]
    message: str
    code: str


class ErrorResponse(BaseModel):
    """Error body returned by every failing route."""
    message: str = Field(..., description="Human-readable error message")
    errors: Optional[List[FieldError]] = Field(default=None, description="Per-field validation errors")
    error: Optional[str] = Field(default=None, description="Underlying error (development only)")


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    status: str
