"""
Roadmap engine

This package holds the decision and progress rules of Career Compass:
- Recommendation: ordered rule table from quiz answers to a career key
- Template catalog: shipped career templates loaded from YAML
- Materializer: template expansion and active-roadmap replacement
- Progress: sequential step unlocking and completion percentage
"""

from .config import (
    DEFAULT_CAREER,
    ENFORCE_STEP_LOCKS,
    SERIALIZE_ROADMAP_CREATION,
    TEMPLATE_CATALOG_PATH,
)

__version__ = "1.0.0"
__all__ = [
    "DEFAULT_CAREER",
    "ENFORCE_STEP_LOCKS",
    "SERIALIZE_ROADMAP_CREATION",
    "TEMPLATE_CATALOG_PATH",
]
