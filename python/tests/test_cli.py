"""
Tests for the load_initial_data and migrate_legacy_data command line scripts.
"""

import json
import sys
from pathlib import Path

import pytest
from pydantic import ValidationError

sys.path.insert(0, str(Path(__file__).parent.parent))

import load_initial_data
import migrate_legacy_data
from database.models import (
    ChecklistCategory,
    ChecklistItem,
    ComplianceReportType,
    Jurisdiction,
    Law,
    Obligation,
    Regulation,
    User,
)
from tests.factories import jurisdiction_document


@pytest.fixture
def jurisdiction_file(tmp_path):
    path = tmp_path / "singapore.json"
    path.write_text(json.dumps(jurisdiction_document()), encoding="utf-8")
    return path


@pytest.fixture
def use_test_db(monkeypatch, db_provider):
    """Point both scripts at the test database."""
    for module in (load_initial_data, migrate_legacy_data):
        monkeypatch.setattr(module, "init_db", lambda: db_provider)
        monkeypatch.setattr(module, "close_db", lambda: None)
    return db_provider


@pytest.fixture
def user(session):
    user = User(username="dana", password="x.y", email="dana@example.com", company_name="Dana Labs")
    session.add(user)
    session.commit()
    return user


class TestLoadReportTypes:
    def test_seeds_catalog(self, session):
        created = load_initial_data.load_report_types(session)
        session.commit()
        assert created == len(load_initial_data.REPORT_TYPES)
        assert session.query(ComplianceReportType).count() == created

    def test_existing_names_left_alone(self, session):
        load_initial_data.load_report_types(session)
        session.commit()
        assert load_initial_data.load_report_types(session) == 0


class TestLoadJurisdictionFile:
    def test_imports_document(self, session, jurisdiction_file):
        counts = load_initial_data.load_jurisdiction_file(session, jurisdiction_file)
        session.commit()
        assert counts["laws"] == 1
        assert counts["obligations"] == 2
        assert session.query(Jurisdiction).one().name == "Singapore"

    def test_existing_jurisdiction_skipped(self, session, jurisdiction_file):
        load_initial_data.load_jurisdiction_file(session, jurisdiction_file)
        session.commit()
        assert load_initial_data.load_jurisdiction_file(session, jurisdiction_file) is None
        assert session.query(Jurisdiction).count() == 1

    def test_invalid_document(self, session, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"jurisdiction": {"name": "X", "favorabilityScore": 500}}), encoding="utf-8")
        with pytest.raises(ValidationError):
            load_initial_data.load_jurisdiction_file(session, path)


class TestLoadChecklists:
    @pytest.fixture
    def uae(self, session):
        jurisdiction = Jurisdiction(name="United Arab Emirates", region="Middle East")
        session.add(jurisdiction)
        session.commit()
        return jurisdiction

    def test_bundled_templates(self, session, uae):
        assert load_initial_data.load_checklists(session) == 1
        session.commit()
        categories = session.query(ChecklistCategory).filter_by(jurisdiction_id=uae.id).all()
        assert len(categories) == 4
        assert session.query(ChecklistItem).count() == 14

    def test_existing_checklist_skipped(self, session, uae):
        load_initial_data.load_checklists(session)
        session.commit()
        assert load_initial_data.load_checklists(session) == 0

    def test_missing_jurisdiction_skipped(self, session):
        assert load_initial_data.load_checklists(session) == 0
        assert session.query(ChecklistCategory).count() == 0

    def test_invalid_item(self, session, uae, tmp_path):
        path = tmp_path / "checklists.yaml"
        path.write_text(
            "checklists:\n"
            "  - jurisdiction: United Arab Emirates\n"
            "    categories:\n"
            "      - {name: Licensing, sequence: 1, items: [{responsible: Legal, sequence: 1}]}\n",
            encoding="utf-8",
        )
        with pytest.raises(ValidationError):
            load_initial_data.load_checklists(session, path)


class TestPromoteAdmin:
    def test_promotes(self, session, user):
        assert load_initial_data.promote_admin(session, "dana")
        session.commit()
        session.refresh(user)
        assert user.is_admin

    def test_unknown_user(self, session):
        assert not load_initial_data.promote_admin(session, "nobody")


class TestLoadInitialDataMain:
    def test_full_run(self, use_test_db, session, user, jurisdiction_file):
        code = load_initial_data.main(["-j", str(jurisdiction_file), "--promote-admin", "dana"])
        assert code == 0

        session.expire_all()
        assert session.query(ComplianceReportType).count() == len(load_initial_data.REPORT_TYPES)
        assert session.query(Jurisdiction).count() == 1
        assert session.get(User, user.id).is_admin

    def test_checklists_flag(self, use_test_db, session):
        session.add(Jurisdiction(name="United Arab Emirates"))
        session.commit()
        assert load_initial_data.main(["--skip-report-types", "--checklists"]) == 0
        assert session.query(ChecklistCategory).count() == 4

    def test_skip_report_types(self, use_test_db, session):
        assert load_initial_data.main(["--skip-report-types"]) == 0
        assert session.query(ComplianceReportType).count() == 0

    def test_unknown_admin_fails(self, use_test_db):
        assert load_initial_data.main(["--promote-admin", "nobody"]) == 1

    def test_missing_file_fails(self, use_test_db, tmp_path):
        assert load_initial_data.main(["-j", str(tmp_path / "absent.json")]) == 1

    def test_malformed_json_fails(self, use_test_db, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        assert load_initial_data.main(["-j", str(path)]) == 1


class TestMigrateLegacyDataMain:
    @pytest.fixture
    def legacy(self, session):
        jurisdiction = Jurisdiction(name="Malta")
        session.add(jurisdiction)
        session.flush()
        session.add(Regulation(jurisdiction_id=jurisdiction.id, title="VFA Act"))
        session.commit()

    def test_migrates(self, use_test_db, session, legacy):
        assert migrate_legacy_data.main([]) == 0
        session.expire_all()
        assert [law.title for law in session.query(Law)] == ["VFA Act"]
        assert session.query(Obligation).count() == 0

    def test_dry_run_writes_nothing(self, use_test_db, session, legacy):
        assert migrate_legacy_data.main(["--dry-run"]) == 0
        assert session.query(Law).count() == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
