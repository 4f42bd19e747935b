"""
Policy Template Catalog

Read-only catalog of starter policies loaded from policy_templates.yaml.
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).parent / "policy_templates.yaml"


class PolicyCatalogError(Exception):
    """Raised when the template catalog cannot be read."""
    pass


class PolicyTemplateCatalog:
    """In-memory view of the template catalog file."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else DEFAULT_CATALOG_PATH
        self._templates: List[Dict[str, Any]] = []
        self._categories: List[Dict[str, Any]] = []
        self.load()

    def load(self) -> None:
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                raw = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise PolicyCatalogError(f"Cannot load policy templates from {self.path}: {e}") from e

        self._templates = list(raw.get('templates', []))
        self._categories = list(raw.get('categories', []))
        logger.info("Loaded %d policy templates", len(self._templates))

    def list_templates(self, category: Optional[str] = None) -> List[Dict[str, Any]]:
        if category is None:
            return list(self._templates)
        return [t for t in self._templates if t.get('category') == category]

    def get_template(self, template_id: str) -> Optional[Dict[str, Any]]:
        for template in self._templates:
            if template.get('id') == template_id:
                return template
        return None

    def list_categories(self) -> List[Dict[str, Any]]:
        """Categories with the number of templates filed under each."""
        return [
            {**c, 'templateCount': len(self.list_templates(c.get('name')))}
            for c in self._categories
        ]


@lru_cache()
def get_policy_catalog() -> PolicyTemplateCatalog:
    """Shared catalog; POLICY_TEMPLATES_PATH overrides the bundled file."""
    path = os.getenv("POLICY_TEMPLATES_PATH")
    return PolicyTemplateCatalog(Path(path) if path else None)
