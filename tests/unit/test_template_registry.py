"""Unit tests for TemplateRegistry class."""

import pytest

from cvstudio.contexts.templating import ModernTemplate, TemplateRegistry
from cvstudio.exceptions import DuplicateRegistrationError, TemplateNotFoundError


@pytest.mark.unit
def test_default_registry_contents(template_registry):
    assert len(template_registry) == 9
    assert set(template_registry.list_ids()) == {
        "modern",
        "tech",
        "classic",
        "executive",
        "creative",
        "minimal",
        "elegant",
        "simple",
        "awesome-cv",
    }
    assert "tech" in template_registry


@pytest.mark.unit
def test_get_template_returns_same_instance(template_registry):
    assert template_registry.get_template("classic") is template_registry.get_template("classic")


@pytest.mark.unit
def test_get_template_not_found(template_registry):
    with pytest.raises(TemplateNotFoundError, match="Available templates: modern"):
        template_registry.get_template("nonexistent_type")


@pytest.mark.unit
def test_duplicate_registration_is_rejected(template_registry):
    with pytest.raises(DuplicateRegistrationError):
        template_registry.register(ModernTemplate())


@pytest.mark.unit
def test_get_by_category(template_registry):
    modern = [t.metadata.id for t in template_registry.get_by_category("modern")]
    classic = [t.metadata.id for t in template_registry.get_by_category("CLASSIC")]

    assert modern == ["modern", "tech", "elegant", "awesome-cv"]
    assert classic == ["classic", "executive", "simple"]
    assert template_registry.get_by_category("brutalist") == []


@pytest.mark.unit
def test_get_by_format(template_registry):
    assert len(template_registry.get_by_format("html")) == 9
    assert template_registry.get_by_format("docx") == []


@pytest.mark.unit
def test_search(template_registry):
    assert [t.metadata.id for t in template_registry.search("leadership")] == ["executive"]
    assert {t.metadata.id for t in template_registry.search("tech")} == {"tech"}
    assert [t.metadata.id for t in template_registry.search("MINIMAL")] == ["minimal"]


@pytest.mark.unit
def test_default_template_is_stable(template_registry):
    assert template_registry.get_default_template().metadata.id == "modern"
    assert template_registry.get_default_template() is template_registry.get_default_template()


@pytest.mark.unit
def test_default_template_configurable():
    registry = TemplateRegistry(default_template_id="classic")
    registry.register(ModernTemplate())
    # Configured id missing: falls back to modern
    assert registry.get_default_template().metadata.id == "modern"


@pytest.mark.unit
def test_empty_registry_has_no_default():
    with pytest.raises(TemplateNotFoundError):
        TemplateRegistry().get_default_template()


@pytest.mark.unit
def test_get_popular(template_registry):
    popular = template_registry.get_popular(limit=3)
    assert len(popular) == 3
    assert popular[0].metadata.id == "modern"


@pytest.mark.unit
def test_validate_sections(template_registry):
    assert template_registry.validate_sections("modern", ["experience", "awards"]) == {
        "valid": True,
        "unsupported": [],
    }
    report = template_registry.validate_sections("minimal", ["experience", "projects"])
    assert report == {"valid": False, "unsupported": ["projects"]}


@pytest.mark.unit
def test_statistics(template_registry):
    stats = template_registry.get_statistics()

    assert stats["totalTemplates"] == 9
    assert stats["byCategory"] == {"modern": 4, "classic": 3, "creative": 1, "minimal": 1}
    assert stats["byFormat"] == {"html": 9}
    assert stats["defaultTemplate"] == "modern"


@pytest.mark.unit
def test_metadata_serialization(template_registry):
    data = template_registry.get_metadata("tech").to_dict()

    assert data["id"] == "tech"
    assert data["defaultTheme"] == "teal"
    assert "projects" in data["supportedSections"]
