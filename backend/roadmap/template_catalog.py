"""
Career Template Catalog

Read-only mapping from career key to CareerTemplate. The catalog is
loaded from the shipped YAML file once and handed to the components that
need it, so tests can build their own catalogs.

Usage:
    catalog = TemplateCatalog.from_yaml("data/career_templates.yaml")
    template = catalog.get("Data Scientist")
    matches = catalog.search("data", skills=["Python"])
"""

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

import yaml

from models.career_models import CareerTemplate, StepTemplate
from roadmap.config import TEMPLATE_CATALOG_PATH
from roadmap.errors import UnknownTemplateError

logger = logging.getLogger(__name__)


class TemplateCatalog:
    """
    Immutable collection of career templates keyed by career key.

    Iteration follows the order the templates were declared in.
    """

    def __init__(self, templates: Iterable[CareerTemplate]):
        entries: Dict[str, CareerTemplate] = {}
        for template in templates:
            if template.key in entries:
                raise ValueError(f"Duplicate career template: {template.key}")
            entries[template.key] = template
        self._templates: Mapping[str, CareerTemplate] = MappingProxyType(entries)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Mapping]) -> "TemplateCatalog":
        """Build a catalog from a {career_key: {title, description, steps, skills}} mapping."""
        templates = []
        for key, body in raw.items():
            templates.append(CareerTemplate(
                key=key,
                title=body["title"],
                description=body["description"],
                steps=tuple(StepTemplate(**step) for step in body.get("steps", [])),
                skills=tuple(body.get("skills") or ()),
            ))
        return cls(templates)

    @classmethod
    def from_yaml(cls, path: Union[str, Path] = TEMPLATE_CATALOG_PATH) -> "TemplateCatalog":
        """Load the catalog from a YAML file."""
        path = Path(path)
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        if not isinstance(raw, dict):
            raise ValueError(f"Template catalog must be a mapping: {path}")

        catalog = cls.from_mapping(raw)
        logger.info(f"Loaded {len(catalog)} career templates from {path}")
        return catalog

    def __contains__(self, career_key: object) -> bool:
        return str(getattr(career_key, "value", career_key)) in self._templates

    def __len__(self) -> int:
        return len(self._templates)

    def __iter__(self) -> Iterator[CareerTemplate]:
        return iter(self._templates.values())

    def keys(self) -> List[str]:
        return list(self._templates.keys())

    def find(self, career_key: str) -> Optional[CareerTemplate]:
        """Template for a key, or None when the key is unknown."""
        return self._templates.get(str(getattr(career_key, "value", career_key)))

    def get(self, career_key: str) -> CareerTemplate:
        """Template for a key; raises UnknownTemplateError when the key is unknown."""
        template = self.find(career_key)
        if template is None:
            raise UnknownTemplateError(str(getattr(career_key, "value", career_key)))
        return template

    def all_skills(self) -> List[str]:
        """Every skill tag used by any template, de-duplicated and sorted."""
        skills = set()
        for template in self._templates.values():
            skills.update(template.skills)
        return sorted(skills)

    def search(
        self,
        term: Optional[str] = None,
        skills: Optional[Iterable[str]] = None
    ) -> List[Tuple[str, CareerTemplate]]:
        """
        Filter templates for the browse view.

        Args:
            term: Case-insensitive substring matched against title or description
            skills: Skill tags that must all be present on the template

        Returns:
            (career_key, template) pairs in catalog order
        """
        needle = (term or "").strip().lower()
        required = list(skills or [])

        results = []
        for key, template in self._templates.items():
            matches_search = (
                not needle
                or needle in template.title.lower()
                or needle in template.description.lower()
            )
            matches_skills = all(skill in template.skills for skill in required)
            if matches_search and matches_skills:
                results.append((key, template))
        return results


def load_default_catalog() -> TemplateCatalog:
    """Catalog shipped with the application."""
    return TemplateCatalog.from_yaml(TEMPLATE_CATALOG_PATH)
