"""
Unit tests for database models, repositories and the session provider.

Uses an in-memory SQLite database for fast testing, and PostgreSQL for
the integration tests when TEST_DATABASE_URL is set.
"""

import os
import sys
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
from sqlalchemy import inspect, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.pool import QueuePool, StaticPool

sys.path.insert(0, str(Path(__file__).parent.parent))

from database.connection import DatabaseSettings, create_test_provider
from database.models import (
    ApprovalStatus,
    AuditAction,
    Base,
    Jurisdiction,
    JurisdictionTag,
    Law,
    Obligation,
    Policy,
    PolicyStatus,
    PolicyVersion,
    Registration,
    RegistrationType,
    RegistrationVersion,
    ReportFrequency,
    TokenCategory,
    User,
)
from database.repositories import (
    DuplicateEntityError,
    PolicyRepository,
    RegistrationRepository,
    UserRepository,
)


@pytest.fixture
def user(session):
    user = UserRepository(session).create({
        "username": "erin", "password": "hash.salt", "email": "erin@example.com", "company_name": "Erin Capital",
    })
    session.commit()
    return user


class TestEnums:
    """Stored values match what the API accepts."""

    def test_policy_status_values(self):
        assert {s.value for s in PolicyStatus} == {"draft", "active", "archived", "review_needed"}

    def test_approval_status_values(self):
        assert {s.value for s in ApprovalStatus} == {"approved", "rejected", "pending", "changes_requested"}

    def test_token_categories(self):
        assert len(TokenCategory) == 9
        assert TokenCategory("PAYMENT_STABLE") is TokenCategory.PAYMENT_STABLE

    def test_report_frequency_values(self):
        assert ReportFrequency("semi_annually") is ReportFrequency.SEMI_ANNUALLY

    def test_registration_and_audit_values(self):
        assert {t.value for t in RegistrationType} == {"exchange", "stablecoin", "defi", "nft", "fund", "token"}
        assert {a.value for a in AuditAction} == {"create", "update", "delete"}


class TestSchema:
    def test_all_tables_created(self, db_provider):
        tables = set(inspect(db_provider.engine).get_table_names())
        assert set(Base.metadata.tables) <= tables
        assert {"users", "jurisdictions", "laws", "obligations", "policies",
                "token_registrations", "report_schedules", "audit_logs"} <= tables

    def test_foreign_keys_enforced(self, session):
        assert session.execute(text("PRAGMA foreign_keys")).scalar() == 1


class TestSerialization:
    """to_dict emits camelCase keys and JSON-safe values."""

    def test_password_never_serialized(self, user):
        data = user.to_dict()
        assert "password" not in data
        assert data["companyName"] == "Erin Capital"
        assert data["isAdmin"] is False

    def test_dates_decimals_and_enums(self, session, user):
        jurisdiction = Jurisdiction(name="Malta")
        session.add(jurisdiction)
        session.flush()
        obligation = Obligation(jurisdiction_id=jurisdiction.id, title="Annual audit",
                                penalty_amount=Decimal("2500.50"))
        policy = Policy(name="AML", description="AML controls", type="AML", content="x" * 20,
                        created_by=user.id, status=PolicyStatus.ACTIVE)
        law = Law(jurisdiction_id=jurisdiction.id, title="VFA Act", law_type="Statute",
                  effective_date=date(2018, 11, 1))
        session.add_all([obligation, policy, law])
        session.commit()

        assert obligation.to_dict()["penaltyAmount"] == 2500.5
        assert policy.to_dict()["status"] == "active"
        assert law.to_dict()["effectiveDate"] == "2018-11-01"
        assert isinstance(policy.to_dict()["createdAt"], str)


class TestUserRepository:
    def test_duplicate_username(self, session, user):
        with pytest.raises(DuplicateEntityError):
            UserRepository(session).create({
                "username": "erin", "password": "x.y", "email": "other@example.com", "company_name": "Other",
            })

    def test_set_admin(self, session, user):
        UserRepository(session).set_admin(user.id, True)
        session.commit()
        assert session.get(User, user.id).is_admin


class TestPolicyRepository:
    def test_duplicate_version(self, session, user):
        repo = PolicyRepository(session)
        policy = repo.create(user.id, {"name": "AML", "description": "AML controls", "type": "AML",
                                       "content": "All customers are screened."})
        repo.add_version(policy.id, user.id, {"version": "1.1", "content": "Updated content here."})
        session.commit()

        with pytest.raises(DuplicateEntityError):
            repo.add_version(policy.id, user.id, {"version": "1.1", "content": "Updated content again."})

    def test_approval_transition(self, session, user):
        repo = PolicyRepository(session)
        policy = repo.create(user.id, {"name": "KYC", "description": "KYC controls", "type": "KYC",
                                       "content": "Customers are verified."})
        repo.add_approval(policy.id, user.id, {"status": ApprovalStatus.REJECTED})
        session.commit()
        assert PolicyStatus(session.get(Policy, policy.id).status) == PolicyStatus.REVIEW_NEEDED

    def test_missing_jurisdiction_is_not_a_duplicate(self, session, user):
        """A foreign key failure propagates as IntegrityError, only unique conflicts become DuplicateEntityError."""
        with pytest.raises(IntegrityError) as excinfo:
            PolicyRepository(session).create(user.id, {
                "name": "AML", "description": "AML controls", "type": "AML",
                "content": "All customers are screened.", "jurisdiction_id": 9999,
            })
        assert not isinstance(excinfo.value, DuplicateEntityError)
        assert session.query(Policy).count() == 0


class TestCascadeDeletes:
    """Deleting a parent removes its dependent rows at the database level."""

    def test_jurisdiction_children_removed(self, session):
        jurisdiction = Jurisdiction(name="Gibraltar")
        session.add(jurisdiction)
        session.flush()
        session.add_all([
            Law(jurisdiction_id=jurisdiction.id, title="DLT Framework", law_type="Regulation"),
            JurisdictionTag(jurisdiction_id=jurisdiction.id, tag="dlt"),
        ])
        session.commit()

        session.delete(jurisdiction)
        session.commit()
        assert session.query(Law).count() == 0
        assert session.query(JurisdictionTag).count() == 0

    def test_policy_versions_removed(self, session, user):
        repo = PolicyRepository(session)
        policy = repo.create(user.id, {"name": "AML", "description": "AML controls", "type": "AML",
                                       "content": "All customers are screened."})
        repo.add_version(policy.id, user.id, {"version": "2.0", "content": "Second edition content."})
        session.commit()

        session.delete(policy)
        session.commit()
        assert session.query(PolicyVersion).count() == 0

    def test_user_delete_cascades_registrations(self, session, user):
        registration = RegistrationRepository(session).create(user.id, {
            "registration_type": RegistrationType.FUND, "name": "Erin Fund I", "data": {"aum": 10},
        })
        session.commit()
        registration_id = registration.id
        user_id = user.id
        assert session.query(RegistrationVersion).count() == 1

        session.execute(text("DELETE FROM users WHERE id = :id"), {"id": user_id})
        session.commit()
        session.expire_all()
        assert session.get(Registration, registration_id) is None
        assert session.query(RegistrationVersion).count() == 0


class TestDatabaseSettings:
    def test_database_url_wins(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@db:5432/compliance")
        assert DatabaseSettings.from_env().get_url() == "postgresql://u:p@db:5432/compliance"

    def test_heroku_scheme_rewritten(self):
        settings = DatabaseSettings(url="postgres://u:p@db/compliance")
        assert settings.get_url() == "postgresql+psycopg2://u:p@db/compliance"

    def test_url_from_parts(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.setenv("DB_HOST", "db.internal")
        monkeypatch.setenv("DB_NAME", "tracker")
        settings = DatabaseSettings.from_env()
        assert settings.get_url().endswith("@db.internal:5432/tracker")
        assert "password" not in repr(settings)

    def test_postgres_gets_sized_pool(self):
        options = DatabaseSettings(url="postgresql://db/compliance", pool_size=4).engine_options()
        assert options["poolclass"] is QueuePool
        assert options["pool_size"] == 4
        assert options["pool_pre_ping"] is True

    def test_in_memory_sqlite_shares_one_connection(self):
        options = DatabaseSettings(url="sqlite://").engine_options()
        assert options["poolclass"] is StaticPool
        assert "pool_size" not in options

    def test_sqlite_file_uses_default_pool(self):
        options = DatabaseSettings(url="sqlite:///tracker.db").engine_options()
        assert "poolclass" not in options


class TestSessionProvider:
    def test_default_test_provider_is_in_memory_sqlite(self):
        provider = create_test_provider()
        try:
            provider.create_tables()
            with provider.session_scope() as session:
                assert session.execute(text("PRAGMA foreign_keys")).scalar() == 1
            assert provider.health_check() is True
        finally:
            provider.close()
        assert provider.initialized is False

    def test_session_scope_rolls_back_on_error(self, db_provider):
        with pytest.raises(RuntimeError):
            with db_provider.session_scope() as session:
                session.add(Jurisdiction(name="Gibraltar"))
                session.flush()
                raise RuntimeError("abort")
        with db_provider.session_scope() as session:
            assert session.query(Jurisdiction).filter_by(name="Gibraltar").count() == 0


# PostgreSQL-specific tests (skipped if not available)
@pytest.fixture
def pg_provider():
    """Provider bound to the PostgreSQL database named by TEST_DATABASE_URL."""
    url = os.getenv("TEST_DATABASE_URL")
    if not url:
        pytest.skip("TEST_DATABASE_URL is not set")

    from sqlalchemy import create_engine
    from database.connection import create_test_provider

    provider = create_test_provider(engine=create_engine(url))
    provider.create_tables()
    yield provider
    provider.drop_tables()
    provider.close()


class TestPostgreSQLIntegration:
    """Integration tests requiring PostgreSQL."""

    def test_json_columns_round_trip(self, pg_provider):
        with pg_provider.session_scope() as session:
            user = UserRepository(session).create({
                "username": "pg_user", "password": "x.y", "email": "pg@example.com", "company_name": "PG Co",
            })
            registration = RegistrationRepository(session).create(user.id, {
                "registration_type": RegistrationType.EXCHANGE, "name": "PG Exchange",
                "data": {"pairs": [{"pair": "BTC/USD", "volume": 1.5}]},
            })
            registration_id = registration.id

        with pg_provider.session_scope() as session:
            stored = session.get(Registration, registration_id)
            assert stored.data == {"pairs": [{"pair": "BTC/USD", "volume": 1.5}]}
            assert stored.version == 1

    def test_health_check(self, pg_provider):
        assert pg_provider.health_check()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
