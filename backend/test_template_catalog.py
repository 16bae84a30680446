"""
Tests for loading and browsing the career template catalog
"""
import pytest

from models.career_models import CareerKey, CareerTemplate
from roadmap.errors import UnknownTemplateError
from roadmap.template_catalog import TemplateCatalog


def test_shipped_catalog_has_one_template_per_career(catalog):
    assert sorted(catalog.keys()) == sorted(key.value for key in CareerKey)
    for template in catalog:
        assert len(template.steps) == 5


def test_data_scientist_template(catalog):
    template = catalog.get("Data Scientist")
    assert template.title == "Data Scientist Path"
    assert [step.title for step in template.steps] == [
        "Learn Python",
        "Master SQL",
        "Learn Pandas & NumPy",
        "Machine Learning Basics",
        "Build Data Projects",
    ]
    assert "Python" in template.skills


def test_lookup_accepts_enum_members(catalog):
    assert CareerKey.UX_DESIGNER in catalog
    assert catalog.get(CareerKey.UX_DESIGNER).title == "UX Designer Path"


def test_unknown_key(catalog):
    assert "Astronaut" not in catalog
    assert catalog.find("Astronaut") is None
    with pytest.raises(UnknownTemplateError) as exc_info:
        catalog.get("Astronaut")
    assert exc_info.value.career_key == "Astronaut"


def test_templates_are_immutable(catalog):
    template = catalog.get("Product Manager")
    with pytest.raises(Exception):
        template.title = "Changed"


def test_duplicate_keys_rejected():
    template = CareerTemplate(key="Baker", title="Baker", description="Bread.", steps=())
    with pytest.raises(ValueError):
        TemplateCatalog([template, template])


def test_from_yaml(tmp_path):
    path = tmp_path / "templates.yaml"
    path.write_text(
        "Baker:\n"
        "  title: Baker Path\n"
        "  description: Bake bread.\n"
        "  steps:\n"
        "    - title: Knead\n"
        "      description: Work the dough.\n"
        "  skills: [Patience]\n",
        encoding="utf-8",
    )

    loaded = TemplateCatalog.from_yaml(path)
    assert loaded.keys() == ["Baker"]
    assert loaded.get("Baker").steps[0].title == "Knead"
    assert loaded.get("Baker").skills == ("Patience",)


def test_from_yaml_rejects_non_mapping(tmp_path):
    path = tmp_path / "templates.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError):
        TemplateCatalog.from_yaml(path)


def test_all_skills_sorted_and_unique(catalog):
    skills = catalog.all_skills()
    assert skills == sorted(set(skills))
    assert skills.count("User Research") == 1
    assert len(skills) == 15


def test_search_by_term(catalog):
    assert [key for key, _ in catalog.search("data")] == ["Data Scientist"]
    assert [key for key, _ in catalog.search("DESIGN")] == ["UX Designer"]
    assert [key for key, _ in catalog.search("strategy")] == ["Product Manager"]


def test_search_by_skills_requires_all(catalog):
    assert [key for key, _ in catalog.search(skills=["User Research"])] == [
        "Product Manager",
        "UX Designer",
    ]
    assert [key for key, _ in catalog.search(skills=["User Research", "Figma"])] == ["UX Designer"]
    assert catalog.search(skills=["Python", "Figma"]) == []


def test_search_without_filters_returns_everything_in_order(catalog):
    assert [key for key, _ in catalog.search()] == catalog.keys()
    assert [key for key, _ in catalog.search("   ", [])] == catalog.keys()


def test_search_combines_term_and_skills(tiny_catalog):
    assert [key for key, _ in tiny_catalog.search("path", ["Botany"])] == ["Gardener"]
    assert [key for key, _ in tiny_catalog.search("bread", ["Botany"])] == []
