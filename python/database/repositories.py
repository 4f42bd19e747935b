"""
Repository Pattern for Crypto Compliance Tracker Database Operations

Provides the data access layer with proper typing and error handling.
Repositories never commit and never check authorization: transaction
boundaries and ownership rules belong to the caller (the route layer).

Conventions shared by every repository:
- ``get(id)`` returns the row or None, never raises for absence
- ``list_*`` returns a possibly empty list ordered by insertion (id)
- ``create(...)`` flushes and returns the row with server-assigned fields
- ``update(id, updates)`` changes only the given columns, raising
  EntityNotFoundError when the row does not exist
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, Type

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from database.models import (
    Base,
    User,
    Transaction,
    ExchangeInfo,
    StablecoinInfo,
    DefiProtocolInfo,
    NftMarketplaceInfo,
    CryptoFundInfo,
    Registration,
    RegistrationVersion,
    RegistrationType,
    AuditLog,
    AuditAction,
    Jurisdiction,
    RegulatoryBody,
    Regulation,
    ComplianceRequirement,
    Law,
    Obligation,
    TaxationRule,
    ReportingObligation,
    RegulatoryUpdate,
    JurisdictionTag,
    JurisdictionQueryKeyword,
    Policy,
    PolicyVersion,
    PolicyTag,
    PolicyObligationMapping,
    PolicyApproval,
    PolicyStatus,
    ApprovalStatus,
    TokenRegistration,
    TokenRegistrationDocument,
    TokenRegistrationVerification,
    TokenRiskAssessment,
    TokenJurisdictionApproval,
    TokenCategory,
    ComplianceReportType,
    ComplianceReport,
    ReportSchedule,
    ChecklistCategory,
    ChecklistItem,
    ChecklistStatus,
    UserChecklistProgress,
    UserJurisdiction,
)

logger = logging.getLogger(__name__)


class RepositoryError(Exception):
    """Base exception for repository errors."""
    pass


class EntityNotFoundError(RepositoryError):
    """Raised when an entity is not found."""
    pass


class DuplicateEntityError(RepositoryError):
    """Raised when attempting to create a duplicate entity."""
    pass


# SQLSTATE for unique_violation on PostgreSQL
UNIQUE_VIOLATION = '23505'


def is_unique_violation(error: IntegrityError) -> bool:
    """True for unique/primary key conflicts, False for FK, NOT NULL and CHECK failures."""
    if getattr(error.orig, 'pgcode', None) == UNIQUE_VIOLATION:
        return True
    message = str(error.orig)
    return 'UNIQUE constraint failed' in message or 'duplicate key value' in message


# ============================================
# BASE REPOSITORY
# ============================================

class BaseRepository:
    """
    Single-table CRUD shared by the concrete repositories.

    Subclasses set ``model`` and optionally ``parent_column`` (the name of
    the owning foreign key used by ``list_by_parent``).
    """

    model: Type[Base] = None
    parent_column: Optional[str] = None

    def __init__(self, session: Session):
        self.session = session

    def get(self, entity_id: int):
        return self.session.get(self.model, entity_id)

    def list_all(self) -> list:
        query = select(self.model).order_by(self.model.id)
        return list(self.session.execute(query).scalars().all())

    def list_by_parent(self, parent_id: int) -> list:
        column = getattr(self.model, self.parent_column)
        query = select(self.model).where(column == parent_id).order_by(self.model.id)
        return list(self.session.execute(query).scalars().all())

    def create(self, data: Dict[str, Any]):
        """
        Insert a row and flush so server defaults and the id are assigned.

        Raises:
            DuplicateEntityError: on a unique constraint violation
        """
        return self._add(self.model(**data))

    def update(self, entity_id: int, updates: Dict[str, Any]):
        """
        Partially update a row.

        Raises:
            EntityNotFoundError: If the row does not exist
        """
        entity = self.get(entity_id)
        if entity is None:
            raise EntityNotFoundError(f"{self.model.__name__} not found: {entity_id}")

        for key, value in updates.items():
            if hasattr(entity, key):
                setattr(entity, key, value)

        self.session.flush()
        return entity

    def _add(self, entity):
        try:
            self.session.add(entity)
            self.session.flush()
        except IntegrityError as e:
            self.session.rollback()
            if not is_unique_violation(e):
                raise
            raise DuplicateEntityError(f"{type(entity).__name__} already exists: {e.orig}") from e

        logger.debug(f"Created {type(entity).__name__}: {entity.id}")
        return entity


# ============================================
# USER REPOSITORIES
# ============================================

class UserRepository(BaseRepository):
    """Repository for application users."""

    model = User

    def get_by_username(self, username: str) -> Optional[User]:
        query = select(User).where(User.username == username)
        return self.session.execute(query).scalar_one_or_none()

    def create(self, data: Dict[str, Any]) -> User:
        """
        Create a user, refusing a taken username.

        The lookup and the insert run in the caller's transaction; the unique
        index settles concurrent registrations, surfacing as the same error.

        Raises:
            DuplicateEntityError: If the username already exists
        """
        if self.get_by_username(data['username']) is not None:
            raise DuplicateEntityError("Username already exists")
        try:
            return self._add(User(**data))
        except DuplicateEntityError as e:
            raise DuplicateEntityError("Username already exists") from e

    def set_admin(self, user_id: int, is_admin: bool) -> User:
        return self.update(user_id, {'is_admin': is_admin})

    def update_kyc(self, user_id: int, wallet_address: str, compliance_data: Dict[str, Any]) -> User:
        """Record KYC details and mark the user as verified."""
        return self.update(user_id, {
            'wallet_address': wallet_address,
            'compliance_data': compliance_data,
            'kyc_verified': True,
        })


class TransactionRepository(BaseRepository):
    """Read-only access to wallet transactions."""

    model = Transaction
    parent_column = 'user_id'


# ============================================
# BUSINESS REGISTRATION REPOSITORIES
# ============================================

# URL segment -> typed registration table
BUSINESS_REGISTRATION_MODELS: Dict[str, Type[Base]] = {
    'exchange': ExchangeInfo,
    'stablecoin': StablecoinInfo,
    'defi': DefiProtocolInfo,
    'nft': NftMarketplaceInfo,
    'fund': CryptoFundInfo,
}


class BusinessRegistrationRepository(BaseRepository):
    """
    Repository for one of the five typed business registration tables.

    Usage:
        repo = BusinessRegistrationRepository(session, 'exchange')
        row = repo.create(user.id, data)
    """

    parent_column = 'user_id'

    def __init__(self, session: Session, registration_type: str):
        super().__init__(session)
        if registration_type not in BUSINESS_REGISTRATION_MODELS:
            raise ValueError(f"Unknown registration type: {registration_type}")
        self.registration_type = registration_type
        self.model = BUSINESS_REGISTRATION_MODELS[registration_type]

    def create(self, user_id: int, data: Dict[str, Any]):
        return self._add(self.model(user_id=user_id, **data))

    def list_by_user(self, user_id: int) -> list:
        return self.list_by_parent(user_id)


# ============================================
# AUDIT REPOSITORY
# ============================================

class AuditRepository:
    """Append-only audit trail."""

    def __init__(self, session: Session):
        self.session = session

    def log(
        self,
        table_name: str,
        record_id: int,
        action: AuditAction,
        user_id: Optional[int] = None,
        old_data: Optional[Dict[str, Any]] = None,
        new_data: Optional[Dict[str, Any]] = None
    ) -> AuditLog:
        entry = AuditLog(
            table_name=table_name,
            record_id=record_id,
            action=action,
            user_id=user_id,
            old_data=old_data,
            new_data=new_data
        )
        self.session.add(entry)
        self.session.flush()
        return entry

    def list_for_record(self, table_name: str, record_id: int) -> List[AuditLog]:
        """Entries for one record, newest first."""
        query = select(AuditLog).where(
            AuditLog.table_name == table_name,
            AuditLog.record_id == record_id
        ).order_by(AuditLog.id.desc())
        return list(self.session.execute(query).scalars().all())


# ============================================
# GENERALIZED REGISTRATION REPOSITORY
# ============================================

class RegistrationRepository(BaseRepository):
    """
    Versioned, soft-deletable registrations.

    Every write appends a version snapshot and/or an audit entry in the
    same flush, so a caller's single commit covers all of them.
    """

    model = Registration
    parent_column = 'user_id'

    def __init__(self, session: Session):
        super().__init__(session)
        self.audit = AuditRepository(session)

    def get(self, registration_id: int, include_deleted: bool = False) -> Optional[Registration]:
        query = select(Registration).where(Registration.id == registration_id)
        if not include_deleted:
            query = query.where(Registration.deleted_at.is_(None))
        return self.session.execute(query).scalar_one_or_none()

    def list_by_user(self, user_id: int) -> List[Registration]:
        query = select(Registration).where(
            Registration.user_id == user_id,
            Registration.deleted_at.is_(None)
        ).order_by(Registration.id)
        return list(self.session.execute(query).scalars().all())

    def list_all(self, registration_type: Optional[RegistrationType] = None) -> List[Registration]:
        query = select(Registration).where(Registration.deleted_at.is_(None))
        if registration_type is not None:
            query = query.where(Registration.registration_type == registration_type)
        query = query.order_by(Registration.id)
        return list(self.session.execute(query).scalars().all())

    def create(self, user_id: int, data: Dict[str, Any]) -> Registration:
        registration = self._add(Registration(user_id=user_id, version=1, **data))
        self._snapshot(registration, user_id)
        self.audit.log(
            'registrations', registration.id, AuditAction.CREATE,
            user_id=user_id, new_data=_audit_view(registration)
        )
        return registration

    def update(self, registration_id: int, updates: Dict[str, Any], user_id: Optional[int] = None) -> Registration:
        """
        Apply a partial update, bump the version and record the change.

        Raises:
            EntityNotFoundError: If the registration is absent or soft-deleted
        """
        registration = self.get(registration_id)
        if registration is None:
            raise EntityNotFoundError(f"Registration not found: {registration_id}")

        old_data = _audit_view(registration)
        for key, value in updates.items():
            if hasattr(registration, key):
                setattr(registration, key, value)
        registration.version = registration.version + 1
        self.session.flush()

        self._snapshot(registration, user_id)
        self.audit.log(
            'registrations', registration.id, AuditAction.UPDATE,
            user_id=user_id, old_data=old_data, new_data=_audit_view(registration)
        )
        return registration

    def soft_delete(self, registration_id: int, user_id: Optional[int] = None) -> bool:
        """
        Mark a registration deleted.

        Returns:
            True if deleted, False if not found
        """
        registration = self.get(registration_id)
        if registration is None:
            return False

        registration.deleted_at = datetime.now(timezone.utc)
        self.session.flush()
        self.audit.log(
            'registrations', registration.id, AuditAction.DELETE,
            user_id=user_id, old_data=_audit_view(registration)
        )
        return True

    def list_versions(self, registration_id: int) -> List[RegistrationVersion]:
        """Version snapshots, newest first."""
        query = select(RegistrationVersion).where(
            RegistrationVersion.registration_id == registration_id
        ).order_by(RegistrationVersion.version.desc())
        return list(self.session.execute(query).scalars().all())

    def list_audit_logs(self, registration_id: int) -> List[AuditLog]:
        return self.audit.list_for_record('registrations', registration_id)

    def _snapshot(self, registration: Registration, user_id: Optional[int]) -> RegistrationVersion:
        version = RegistrationVersion(
            registration_id=registration.id,
            version=registration.version,
            data=registration.data,
            created_by=user_id
        )
        self.session.add(version)
        self.session.flush()
        return version


def _audit_view(registration: Registration) -> Dict[str, Any]:
    return {
        'name': registration.name,
        'status': registration.status,
        'version': registration.version,
        'data': registration.data,
    }


# ============================================
# JURISDICTION REPOSITORY
# ============================================

class JurisdictionRepository(BaseRepository):
    """Jurisdiction roots plus read access to every child table."""

    model = Jurisdiction

    def get_by_name(self, name: str) -> Optional[Jurisdiction]:
        query = select(Jurisdiction).where(Jurisdiction.name == name)
        return self.session.execute(query).scalar_one_or_none()

    def list_all(self) -> List[Jurisdiction]:
        query = select(Jurisdiction).order_by(Jurisdiction.name)
        return list(self.session.execute(query).scalars().all())

    def create(self, data: Dict[str, Any]) -> Jurisdiction:
        if self.get_by_name(data['name']) is not None:
            raise DuplicateEntityError(f"Jurisdiction already exists: {data['name']}")
        return self._add(Jurisdiction(**data))

    def list_children(self, child_model: Type[Base], jurisdiction_id: int) -> list:
        query = select(child_model).where(
            child_model.jurisdiction_id == jurisdiction_id
        ).order_by(child_model.id)
        return list(self.session.execute(query).scalars().all())

    def add_child(self, child_model: Type[Base], jurisdiction_id: int, data: Dict[str, Any]):
        return self._add(child_model(jurisdiction_id=jurisdiction_id, **data))

    def list_regulatory_bodies(self, jurisdiction_id: int) -> List[RegulatoryBody]:
        return self.list_children(RegulatoryBody, jurisdiction_id)

    def list_regulations(self, jurisdiction_id: int) -> List[Regulation]:
        return self.list_children(Regulation, jurisdiction_id)

    def list_compliance_requirements(self, jurisdiction_id: int) -> List[ComplianceRequirement]:
        return self.list_children(ComplianceRequirement, jurisdiction_id)

    def list_laws(self, jurisdiction_id: int) -> List[Law]:
        return self.list_children(Law, jurisdiction_id)

    def list_obligations(self, jurisdiction_id: int) -> List[Obligation]:
        return self.list_children(Obligation, jurisdiction_id)

    def get_taxation_rule(self, jurisdiction_id: int) -> Optional[TaxationRule]:
        query = select(TaxationRule).where(TaxationRule.jurisdiction_id == jurisdiction_id)
        return self.session.execute(query).scalar_one_or_none()

    def list_reporting_obligations(self, jurisdiction_id: int) -> List[ReportingObligation]:
        return self.list_children(ReportingObligation, jurisdiction_id)

    def list_regulatory_updates(self, jurisdiction_id: int) -> List[RegulatoryUpdate]:
        return self.list_children(RegulatoryUpdate, jurisdiction_id)

    def list_tags(self, jurisdiction_id: int) -> List[JurisdictionTag]:
        return self.list_children(JurisdictionTag, jurisdiction_id)

    def list_keywords(self, jurisdiction_id: int) -> List[JurisdictionQueryKeyword]:
        return self.list_children(JurisdictionQueryKeyword, jurisdiction_id)


class ObligationRepository(BaseRepository):
    """Enhanced-generation obligations across jurisdictions."""

    model = Obligation
    parent_column = 'jurisdiction_id'

    def list_active(self) -> List[Obligation]:
        query = select(Obligation).where(Obligation.is_active.is_(True)).order_by(Obligation.id)
        return list(self.session.execute(query).scalars().all())


# ============================================
# POLICY REPOSITORY
# ============================================

# Approval status -> resulting policy status; anything else leaves it alone
APPROVAL_STATUS_TRANSITIONS = {
    ApprovalStatus.APPROVED: PolicyStatus.ACTIVE,
    ApprovalStatus.REJECTED: PolicyStatus.REVIEW_NEEDED,
}


class PolicyRepository(BaseRepository):
    """Repository for policies and their child collections."""

    model = Policy
    parent_column = 'created_by'

    def create(self, user_id: int, data: Dict[str, Any]) -> Policy:
        return self._add(Policy(created_by=user_id, **data))

    def list_by_user(self, user_id: int) -> List[Policy]:
        return self.list_by_parent(user_id)

    def _children(self, child_model: Type[Base], policy_id: int) -> list:
        query = select(child_model).where(
            child_model.policy_id == policy_id
        ).order_by(child_model.id)
        return list(self.session.execute(query).scalars().all())

    def add_version(self, policy_id: int, user_id: int, data: Dict[str, Any]) -> PolicyVersion:
        return self._add(PolicyVersion(policy_id=policy_id, created_by=user_id, **data))

    def list_versions(self, policy_id: int) -> List[PolicyVersion]:
        return self._children(PolicyVersion, policy_id)

    def add_tag(self, policy_id: int, data: Dict[str, Any]) -> PolicyTag:
        return self._add(PolicyTag(policy_id=policy_id, **data))

    def list_tags(self, policy_id: int) -> List[PolicyTag]:
        return self._children(PolicyTag, policy_id)

    def add_obligation_mapping(self, policy_id: int, data: Dict[str, Any]) -> PolicyObligationMapping:
        """
        Raises:
            DuplicateEntityError: If the policy already maps this obligation
        """
        return self._add(PolicyObligationMapping(policy_id=policy_id, **data))

    def list_obligation_mappings(self, policy_id: int) -> List[PolicyObligationMapping]:
        return self._children(PolicyObligationMapping, policy_id)

    def add_approval(self, policy_id: int, approver_id: int, data: Dict[str, Any]) -> PolicyApproval:
        """
        Record an approval and apply the status transition it implies.

        Both writes are flushed in the caller's transaction, so they commit
        or roll back together.

        Raises:
            EntityNotFoundError: If the policy does not exist
        """
        policy = self.get(policy_id)
        if policy is None:
            raise EntityNotFoundError(f"Policy not found: {policy_id}")

        approval = self._add(PolicyApproval(policy_id=policy_id, approver_id=approver_id, **data))

        new_status = APPROVAL_STATUS_TRANSITIONS.get(ApprovalStatus(approval.status))
        if new_status is not None:
            policy.status = new_status
            self.session.flush()
            logger.info(f"Policy {policy_id} moved to {new_status.value} by approval {approval.id}")

        return approval

    def list_approvals(self, policy_id: int) -> List[PolicyApproval]:
        return self._children(PolicyApproval, policy_id)


# ============================================
# TOKEN REPOSITORY
# ============================================

class TokenRepository(BaseRepository):
    """Repository for token registrations and their child tables."""

    model = TokenRegistration
    parent_column = 'user_id'

    def create(self, user_id: int, data: Dict[str, Any]) -> TokenRegistration:
        return self._add(TokenRegistration(user_id=user_id, **data))

    def list_by_user(self, user_id: int) -> List[TokenRegistration]:
        return self.list_by_parent(user_id)

    def list_by_category(self, category: TokenCategory) -> List[TokenRegistration]:
        query = select(TokenRegistration).where(
            TokenRegistration.token_category == category
        ).order_by(TokenRegistration.id)
        return list(self.session.execute(query).scalars().all())

    def _children(self, child_model: Type[Base], token_id: int) -> list:
        query = select(child_model).where(
            child_model.token_registration_id == token_id
        ).order_by(child_model.id)
        return list(self.session.execute(query).scalars().all())

    def add_document(self, token_id: int, user_id: int, data: Dict[str, Any]) -> TokenRegistrationDocument:
        return self._add(TokenRegistrationDocument(
            token_registration_id=token_id, uploaded_by=user_id, **data
        ))

    def list_documents(self, token_id: int) -> List[TokenRegistrationDocument]:
        return self._children(TokenRegistrationDocument, token_id)

    def add_verification(self, token_id: int, user_id: int, data: Dict[str, Any]) -> TokenRegistrationVerification:
        return self._add(TokenRegistrationVerification(
            token_registration_id=token_id, verifier_user_id=user_id, **data
        ))

    def list_verifications(self, token_id: int) -> List[TokenRegistrationVerification]:
        return self._children(TokenRegistrationVerification, token_id)

    def add_risk_assessment(self, token_id: int, user_id: int, data: Dict[str, Any]) -> TokenRiskAssessment:
        return self._add(TokenRiskAssessment(
            token_registration_id=token_id, assessor_user_id=user_id, **data
        ))

    def list_risk_assessments(self, token_id: int) -> List[TokenRiskAssessment]:
        return self._children(TokenRiskAssessment, token_id)

    def add_jurisdiction_approval(self, token_id: int, data: Dict[str, Any]) -> TokenJurisdictionApproval:
        return self._add(TokenJurisdictionApproval(token_registration_id=token_id, **data))

    def list_jurisdiction_approvals(self, token_id: int) -> List[TokenJurisdictionApproval]:
        return self._children(TokenJurisdictionApproval, token_id)


# ============================================
# COMPLIANCE REPORTING REPOSITORIES
# ============================================

class ReportTypeRepository(BaseRepository):
    """Catalog of compliance report types."""

    model = ComplianceReportType

    def get_by_name(self, name: str) -> Optional[ComplianceReportType]:
        query = select(ComplianceReportType).where(ComplianceReportType.name == name)
        return self.session.execute(query).scalar_one_or_none()


class ComplianceReportRepository(BaseRepository):
    """User filings of catalog report types."""

    model = ComplianceReport
    parent_column = 'user_id'

    def create(self, user_id: int, data: Dict[str, Any]) -> ComplianceReport:
        return self._add(ComplianceReport(user_id=user_id, **data))

    def list_by_user(self, user_id: int) -> List[ComplianceReport]:
        return self.list_by_parent(user_id)


class ReportScheduleRepository(BaseRepository):
    """Recurring report schedules."""

    model = ReportSchedule
    parent_column = 'user_id'

    def create(self, user_id: int, data: Dict[str, Any]) -> ReportSchedule:
        data = dict(data)
        data.setdefault('anchor_day', data['next_due_date'].day)
        return self._add(ReportSchedule(user_id=user_id, **data))

    def update(self, schedule_id: int, updates: Dict[str, Any]) -> ReportSchedule:
        """Partial update; re-dating the schedule moves its anchor day too."""
        if updates.get('next_due_date') is not None:
            updates = dict(updates, anchor_day=updates['next_due_date'].day)
        return super().update(schedule_id, updates)

    def list_by_user(self, user_id: int) -> List[ReportSchedule]:
        return self.list_by_parent(user_id)


# ============================================
# CHECKLIST AND SUBSCRIPTION REPOSITORIES
# ============================================

class ChecklistRepository(BaseRepository):
    """Jurisdiction checklists (categories with ordered items) and per-user progress."""

    model = ChecklistCategory

    def list_categories(self, jurisdiction_id: int) -> List[ChecklistCategory]:
        """Categories in sequence order with their items loaded."""
        query = select(ChecklistCategory).where(
            ChecklistCategory.jurisdiction_id == jurisdiction_id
        ).options(
            selectinload(ChecklistCategory.items)
        ).order_by(ChecklistCategory.sequence, ChecklistCategory.id)
        return list(self.session.execute(query).scalars().all())

    def add_category(self, jurisdiction_id: int, data: Dict[str, Any]) -> ChecklistCategory:
        return self._add(ChecklistCategory(jurisdiction_id=jurisdiction_id, **data))

    def add_item(self, category_id: int, data: Dict[str, Any]) -> ChecklistItem:
        return self._add(ChecklistItem(category_id=category_id, **data))

    def add_checklist(self, jurisdiction_id: int, categories: List[Dict[str, Any]]) -> Dict[str, int]:
        """
        Insert categories and the item rows nested under each one's 'items' key.

        Returns:
            Counts of created categories and items
        """
        counts = {'categories': 0, 'items': 0}
        for category_data in categories:
            category_data = dict(category_data)
            items = category_data.pop('items', [])
            category = self.add_category(jurisdiction_id, category_data)
            counts['categories'] += 1
            for item_data in items:
                self.add_item(category.id, item_data)
                counts['items'] += 1
        return counts

    def has_checklist(self, jurisdiction_id: int) -> bool:
        query = select(ChecklistCategory.id).where(ChecklistCategory.jurisdiction_id == jurisdiction_id).limit(1)
        return self.session.execute(query).first() is not None

    def get_item(self, item_id: int) -> Optional[ChecklistItem]:
        return self.session.get(ChecklistItem, item_id)

    def list_progress(
        self, user_id: int, jurisdiction_id: int
    ) -> List[Tuple[ChecklistItem, Optional[UserChecklistProgress]]]:
        """
        Every item of the jurisdiction's checklist paired with the user's
        progress row, or None where the user has not touched the item.
        """
        query = select(ChecklistItem, UserChecklistProgress).join(
            ChecklistCategory, ChecklistItem.category_id == ChecklistCategory.id
        ).outerjoin(
            UserChecklistProgress,
            (UserChecklistProgress.checklist_item_id == ChecklistItem.id)
            & (UserChecklistProgress.user_id == user_id)
        ).where(
            ChecklistCategory.jurisdiction_id == jurisdiction_id
        ).order_by(
            ChecklistCategory.sequence, ChecklistCategory.id, ChecklistItem.sequence, ChecklistItem.id
        )
        return [(item, progress) for item, progress in self.session.execute(query).all()]

    def set_progress(
        self,
        user_id: int,
        item_id: int,
        status: ChecklistStatus,
        notes: Optional[str] = None,
    ) -> UserChecklistProgress:
        """
        Record the user's status on an item, creating the row on first use.

        completed_at is stamped on the transition into completed and
        cleared when the item is reopened.
        """
        query = select(UserChecklistProgress).where(
            UserChecklistProgress.user_id == user_id,
            UserChecklistProgress.checklist_item_id == item_id,
        )
        progress = self.session.execute(query).scalar_one_or_none()
        if progress is None:
            progress = self._add(UserChecklistProgress(
                user_id=user_id, checklist_item_id=item_id, status=ChecklistStatus.NOT_STARTED,
            ))

        status = ChecklistStatus(status)
        if status == ChecklistStatus.COMPLETED:
            if ChecklistStatus(progress.status) != ChecklistStatus.COMPLETED:
                progress.completed_at = datetime.now(timezone.utc)
        else:
            progress.completed_at = None

        progress.status = status
        progress.notes = notes
        self.session.flush()
        return progress


class UserJurisdictionRepository(BaseRepository):
    """Jurisdictions each user follows."""

    model = UserJurisdiction
    parent_column = 'user_id'

    def list_by_user(self, user_id: int) -> List[Tuple[UserJurisdiction, Jurisdiction]]:
        """Subscriptions with their jurisdiction, primary first, then by jurisdiction name."""
        query = select(UserJurisdiction, Jurisdiction).join(
            Jurisdiction, UserJurisdiction.jurisdiction_id == Jurisdiction.id
        ).where(
            UserJurisdiction.user_id == user_id
        ).order_by(UserJurisdiction.is_primary.desc(), Jurisdiction.name)
        return [(subscription, jurisdiction) for subscription, jurisdiction in self.session.execute(query).all()]

    def create(self, user_id: int, data: Dict[str, Any]) -> UserJurisdiction:
        """
        Subscribe a user. A new primary subscription demotes the previous one.

        Raises:
            DuplicateEntityError: when the user already follows the jurisdiction
        """
        if data.get('is_primary'):
            self._clear_primary(user_id)
        return self._add(UserJurisdiction(user_id=user_id, **data))

    def delete(self, subscription_id: int) -> None:
        subscription = self.get(subscription_id)
        if subscription is None:
            raise EntityNotFoundError(f"UserJurisdiction not found: {subscription_id}")
        self.session.delete(subscription)
        self.session.flush()

    def _clear_primary(self, user_id: int) -> None:
        query = select(UserJurisdiction).where(
            UserJurisdiction.user_id == user_id,
            UserJurisdiction.is_primary.is_(True),
        )
        for subscription in self.session.execute(query).scalars():
            subscription.is_primary = False
