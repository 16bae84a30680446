"""
Shared pytest fixtures: a throwaway SQLite document store, the shipped
template catalog and a career service wired to both.
"""
import pytest

from models.career_models import CareerTemplate, StepTemplate
from roadmap.template_catalog import TemplateCatalog, load_default_catalog
from services.career_service import CareerService
from storage.document_store import SqliteDocumentStore


@pytest.fixture
def catalog():
    return load_default_catalog()


@pytest.fixture
def tiny_catalog():
    """Two-template catalog for tests that should not depend on shipped data."""
    return TemplateCatalog([
        CareerTemplate(
            key="Gardener",
            title="Gardener Path",
            description="Grow things outdoors.",
            steps=(
                StepTemplate(title="Dig", description="Prepare the soil."),
                StepTemplate(title="Plant", description="Sow the seeds."),
            ),
            skills=("Patience", "Botany"),
        ),
        CareerTemplate(
            key="Baker",
            title="Baker Path",
            description="Bake bread at dawn.",
            steps=(StepTemplate(title="Knead", description="Work the dough."),),
            skills=("Patience",),
        ),
    ])


@pytest.fixture
async def store(tmp_path):
    document_store = SqliteDocumentStore(tmp_path / "test.db")
    await document_store.initialize()
    return document_store


@pytest.fixture
def service(store, catalog):
    return CareerService(store, catalog)


@pytest.fixture
def strict_service(store, catalog):
    return CareerService(store, catalog, enforce_step_locks=True)
