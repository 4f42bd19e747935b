#!/usr/bin/env python3
"""
Initial Data Loading Script for the Compliance Tracker

Loads reference data into the database:
- The compliance report-type catalog
- Jurisdiction documents from JSON files (same validation and import path
  as POST /api/jurisdictions/import)
- Jurisdiction compliance checklists from checklist_templates.yaml
- Admin promotion of an existing user

Usage:
    python load_initial_data.py
    python load_initial_data.py --jurisdiction data/singapore.json --jurisdiction data/uae.json
    python load_initial_data.py --skip-report-types --promote-admin alice
    python load_initial_data.py --checklists
"""

import sys
import json
import argparse
import logging
from pathlib import Path

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent))

import yaml
from pydantic import ValidationError

from api.models import ChecklistImport, JurisdictionImport
from database.connection import init_db, close_db
from database.jurisdiction_service import JurisdictionImportError, JurisdictionService
from database.models import ComplianceReportType, ReportFrequency
from database.repositories import (
    ChecklistRepository,
    DuplicateEntityError,
    JurisdictionRepository,
    ReportTypeRepository,
    UserRepository,
)

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

DEFAULT_CHECKLISTS_PATH = Path(__file__).parent / "checklist_templates.yaml"

REPORT_TYPES = [
    {
        "name": "Suspicious Activity Report",
        "description": "Report of transactions suspected of money laundering or terrorist financing",
        "category": "AML",
        "frequency": ReportFrequency.AD_HOC,
        "applies_to": "all",
        "template_available": True,
    },
    {
        "name": "Currency Transaction Report",
        "description": "Cash-equivalent transactions above the reporting threshold",
        "category": "AML",
        "frequency": ReportFrequency.DAILY,
        "applies_to": "exchange",
    },
    {
        "name": "Travel Rule Compliance Report",
        "description": "Originator and beneficiary data exchanged for virtual asset transfers",
        "category": "AML",
        "frequency": ReportFrequency.MONTHLY,
        "applies_to": "exchange",
    },
    {
        "name": "Quarterly Regulatory Filing",
        "description": "Periodic activity and financial statement filing with the licensing authority",
        "category": "Regulatory",
        "frequency": ReportFrequency.QUARTERLY,
        "applies_to": "all",
        "template_available": True,
    },
    {
        "name": "Reserve Attestation",
        "description": "Independent attestation that stablecoin reserves cover circulating supply",
        "category": "Financial",
        "frequency": ReportFrequency.MONTHLY,
        "applies_to": "stablecoin",
        "template_available": True,
    },
    {
        "name": "Smart Contract Security Review",
        "description": "Summary of audits and incidents affecting deployed contracts",
        "category": "Security",
        "frequency": ReportFrequency.SEMI_ANNUALLY,
        "applies_to": "defi",
    },
    {
        "name": "Investor Disclosure Report",
        "description": "Fund performance, allocation and risk disclosures to investors",
        "category": "Disclosure",
        "frequency": ReportFrequency.QUARTERLY,
        "applies_to": "fund",
    },
    {
        "name": "Annual Compliance Review",
        "description": "Yearly review of the compliance program, policies and training",
        "category": "Governance",
        "frequency": ReportFrequency.ANNUALLY,
        "applies_to": "all",
        "template_available": True,
    },
]


def load_report_types(session):
    """Load the default report-type catalog; existing names are left alone."""
    repo = ReportTypeRepository(session)
    created = 0
    for type_data in REPORT_TYPES:
        if repo.get_by_name(type_data["name"]) is not None:
            logger.info("Report type already exists: %s", type_data["name"])
            continue
        session.add(ComplianceReportType(**type_data))
        created += 1
        logger.info("Created report type: %s", type_data["name"])

    session.flush()
    return created


def load_jurisdiction_file(session, path: Path):
    """
    Validate and import one jurisdiction JSON document.

    Returns the per-collection counts, or None when the jurisdiction already
    exists.
    """
    with open(path, encoding='utf-8') as f:
        payload = json.load(f)

    document = JurisdictionImport.model_validate(payload).to_document()
    try:
        jurisdiction, counts = JurisdictionService(session).import_document(document)
    except DuplicateEntityError:
        logger.info("Jurisdiction already exists, skipping: %s", document['jurisdiction']['name'])
        return None

    logger.info("Imported jurisdiction %s (id=%s): %s", jurisdiction.name, jurisdiction.id, counts)
    return counts


def load_checklists(session, path: Path = DEFAULT_CHECKLISTS_PATH) -> int:
    """
    Load jurisdiction checklists from a YAML file.

    Jurisdictions missing from the database or already carrying a checklist
    are skipped. Returns the number of checklists created.
    """
    with open(path, encoding='utf-8') as f:
        raw = yaml.safe_load(f) or {}

    jurisdictions = JurisdictionRepository(session)
    checklists = ChecklistRepository(session)
    created = 0
    for entry in raw.get('checklists', []):
        name = entry.get('jurisdiction')
        jurisdiction = jurisdictions.get_by_name(name) if name else None
        if jurisdiction is None:
            logger.warning("Jurisdiction not found, skipping checklist: %s", name)
            continue
        if checklists.has_checklist(jurisdiction.id):
            logger.info("Checklist already exists, skipping: %s", name)
            continue

        document = ChecklistImport.model_validate({'categories': entry.get('categories', [])}).to_document()
        counts = checklists.add_checklist(jurisdiction.id, document)
        created += 1
        logger.info("Loaded checklist for %s: %s", name, counts)

    return created


def promote_admin(session, username: str) -> bool:
    repo = UserRepository(session)
    user = repo.get_by_username(username)
    if user is None:
        logger.error("User not found: %s", username)
        return False
    repo.set_admin(user.id, True)
    logger.info("Granted admin to %s", username)
    return True


def main(argv=None):
    parser = argparse.ArgumentParser(description="Load initial data into the Compliance Tracker database")
    parser.add_argument("--jurisdiction", "-j", action="append", type=Path, default=[],
                        metavar="FILE", help="Jurisdiction JSON document to import (repeatable)")
    parser.add_argument("--skip-report-types", action="store_true", help="Do not seed the report-type catalog")
    parser.add_argument("--checklists", nargs="?", type=Path, const=DEFAULT_CHECKLISTS_PATH, metavar="FILE",
                        help="Load jurisdiction checklists (default: checklist_templates.yaml)")
    parser.add_argument("--promote-admin", metavar="USERNAME", help="Grant admin to an existing user")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    logger.info("=" * 50)
    logger.info("Compliance Tracker Initial Data Loading")
    logger.info("=" * 50)

    try:
        db = init_db()

        with db.session_scope() as session:
            if args.skip_report_types:
                logger.info("[1/4] Skipping report types")
            else:
                logger.info("[1/4] Loading report types...")
                logger.info("Report types created: %d", load_report_types(session))

            logger.info("[2/4] Importing %d jurisdiction file(s)...", len(args.jurisdiction))
            for path in args.jurisdiction:
                load_jurisdiction_file(session, path)

            if args.checklists:
                logger.info("[3/4] Loading checklists from %s...", args.checklists)
                logger.info("Checklists created: %d", load_checklists(session, args.checklists))
            else:
                logger.info("[3/4] Skipping checklists")

            if args.promote_admin:
                logger.info("[4/4] Promoting admin...")
                if not promote_admin(session, args.promote_admin):
                    return 1
            else:
                logger.info("[4/4] No admin to promote")

        logger.info("=" * 50)
        logger.info("Initial data loading complete!")
        logger.info("=" * 50)
        return 0
    except (OSError, json.JSONDecodeError, yaml.YAMLError, ValidationError, JurisdictionImportError) as e:
        logger.error("Error loading initial data: %s", e)
        return 1
    finally:
        close_db()


if __name__ == "__main__":
    sys.exit(main())
