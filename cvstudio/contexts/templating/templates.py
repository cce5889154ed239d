"""
Shipped CV templates.

Each class binds metadata to a types/{id}/ directory and adds the values its
markup needs on top of CVTemplate.prepare_data().
"""

from datetime import date
from typing import Any, Dict, List

from cvstudio.contexts.templating.base_template import CVTemplate, TemplateMetadata

ALL_SECTIONS = (
    "personalInfo",
    "experience",
    "education",
    "skills",
    "projects",
    "certifications",
    "languages",
    "volunteer",
    "publications",
    "awards",
)

CONTACT_FIELDS = ("email", "phone", "location", "website", "linkedin", "github")


def contact_items(personal: Dict[str, Any]) -> List[str]:
    """Non-empty contact values in display order."""
    return [personal[key] for key in CONTACT_FIELDS if personal.get(key)]


def initials(full_name: str) -> str:
    """
    Example:
        >>> initials("Jane Q. Smith")
        'JS'
    """
    parts = [part for part in (full_name or "").split() if part[0].isalpha()]
    if not parts:
        return ""
    if len(parts) == 1:
        return parts[0][0].upper()
    return (parts[0][0] + parts[-1][0]).upper()


def years_of_experience(experience: List[Dict[str, Any]], today: date = None) -> int:
    """Whole years since the earliest experience start date (0 when unknown)."""
    today = today or date.today()
    starts = []
    for entry in experience:
        try:
            starts.append(date.fromisoformat(entry.get("startDate") or ""))
        except ValueError:
            continue
    if not starts:
        return 0
    return max(0, int((today - min(starts)).days // 365.25))


def flatten_skills(skill_groups: List[Dict[str, Any]]) -> List[str]:
    """All skill names across groups, de-duplicated in first-seen order."""
    seen: List[str] = []
    for group in skill_groups:
        for skill in group.get("skills") or []:
            if skill not in seen:
                seen.append(skill)
    return seen


def current_position(experience: List[Dict[str, Any]]) -> str:
    """Position of the first ongoing role, else of the first listed role."""
    for entry in experience:
        if entry.get("position") and not entry.get("endDate"):
            return entry["position"]
    for entry in experience:
        if entry.get("position"):
            return entry["position"]
    return ""


class ModernTemplate(CVTemplate):
    """Two-tone header with sidebar for skills and languages."""

    metadata = TemplateMetadata(
        id="modern",
        display_name="Modern",
        description="Clean modern layout with a colored header and skills sidebar",
        category="modern",
        supported_sections=ALL_SECTIONS,
        default_theme="blue",
    )

    def prepare_data(self, data, options):
        context = super().prepare_data(data, options)
        personal = data.get("personalInfo") or {}
        context["initials"] = initials(personal.get("fullName", ""))
        context["contacts"] = contact_items(personal)
        return context


class TechTemplate(CVTemplate):
    """Projects-first layout with a flat tech-stack line."""

    metadata = TemplateMetadata(
        id="tech",
        display_name="Tech Resume",
        description="Resume template optimized for tech professionals, projects and tech stack first",
        category="modern",
        supported_sections=(
            "personalInfo",
            "experience",
            "education",
            "skills",
            "projects",
            "certifications",
            "languages",
        ),
        default_theme="teal",
    )

    def prepare_data(self, data, options):
        context = super().prepare_data(data, options)
        context["contacts"] = contact_items(data.get("personalInfo") or {})
        context["tech_stack"] = flatten_skills(data.get("skills") or [])
        return context


class ClassicTemplate(CVTemplate):
    """Single-column serif layout."""

    metadata = TemplateMetadata(
        id="classic",
        display_name="Classic",
        description="Traditional single-column serif resume",
        category="classic",
        supported_sections=ALL_SECTIONS,
        default_theme="black",
    )

    def prepare_data(self, data, options):
        context = super().prepare_data(data, options)
        context["contact_line"] = " | ".join(contact_items(data.get("personalInfo") or {}))
        return context


class ExecutiveTemplate(CVTemplate):
    """Leadership-focused layout that keeps only the top highlights per role."""

    metadata = TemplateMetadata(
        id="executive",
        display_name="Executive",
        description="Professional resume for senior leadership roles",
        category="classic",
        supported_sections=(
            "personalInfo",
            "experience",
            "education",
            "skills",
            "certifications",
            "awards",
            "publications",
        ),
        default_theme="gray",
    )

    max_highlights = 3

    def prepare_data(self, data, options):
        context = super().prepare_data(data, options)
        experience = data.get("experience") or []
        context["contact_line"] = " | ".join(contact_items(data.get("personalInfo") or {}))
        context["years_of_experience"] = years_of_experience(experience)
        context["experience"] = [
            {**entry, "highlights": (entry.get("highlights") or [])[: self.max_highlights]}
            for entry in experience
        ]
        return context


class CreativeTemplate(CVTemplate):
    """Colorful layout with monogram and skill tags."""

    metadata = TemplateMetadata(
        id="creative",
        display_name="Creative Resume",
        description="Creative and unique resume layout with monogram and skill tags",
        category="creative",
        supported_sections=(
            "personalInfo",
            "experience",
            "education",
            "skills",
            "projects",
            "languages",
            "awards",
            "volunteer",
        ),
        default_theme="purple",
    )

    def prepare_data(self, data, options):
        context = super().prepare_data(data, options)
        personal = data.get("personalInfo") or {}
        context["initials"] = initials(personal.get("fullName", ""))
        context["contacts"] = contact_items(personal)
        context["skill_tags"] = [
            {"name": skill, "category": group.get("category", "")}
            for group in data.get("skills") or []
            for skill in group.get("skills") or []
        ]
        return context


class MinimalTemplate(CVTemplate):
    """Essentials only: experience, education and skills."""

    metadata = TemplateMetadata(
        id="minimal",
        display_name="Minimal",
        description="Minimal whitespace-first resume with only the essentials",
        category="minimal",
        supported_sections=("personalInfo", "experience", "education", "skills"),
        default_theme="gray",
    )

    def prepare_data(self, data, options):
        context = super().prepare_data(data, options)
        context["contact_line"] = " / ".join(contact_items(data.get("personalInfo") or {}))
        context["skill_line"] = ", ".join(flatten_skills(data.get("skills") or []))
        return context


class ElegantTemplate(CVTemplate):
    """Centered header over a colored rule, with the current role as headline."""

    metadata = TemplateMetadata(
        id="elegant",
        display_name="Elegant CV",
        description="Sophisticated and elegant resume layout",
        category="modern",
        supported_sections=("personalInfo", "experience", "education", "skills"),
        default_theme="blue",
    )

    def prepare_data(self, data, options):
        context = super().prepare_data(data, options)
        context["headline"] = current_position(data.get("experience") or [])
        context["contact_line"] = " | ".join(contact_items(data.get("personalInfo") or {}))
        return context


class SimpleTemplate(CVTemplate):
    """Plain single-column layout; each skill group becomes one line."""

    metadata = TemplateMetadata(
        id="simple",
        display_name="Simple Resume",
        description="Simple and straightforward resume template",
        category="classic",
        supported_sections=("personalInfo", "experience", "education", "skills"),
        default_theme="gray",
    )

    def prepare_data(self, data, options):
        context = super().prepare_data(data, options)
        context["contact_line"] = ", ".join(contact_items(data.get("personalInfo") or {}))
        context["skill_lines"] = [
            f"{group['category']}: {', '.join(group.get('skills') or [])}"
            if group.get("category")
            else ", ".join(group.get("skills") or [])
            for group in data.get("skills") or []
            if group.get("skills")
        ]
        return context


class AwesomeCVTemplate(CVTemplate):
    """Colored header band and label/value tables for skills and languages."""

    metadata = TemplateMetadata(
        id="awesome-cv",
        display_name="Awesome CV",
        description="Professional and modern CV template with colored headers",
        category="modern",
        supported_sections=ALL_SECTIONS,
        default_theme="blue",
    )

    def prepare_data(self, data, options):
        context = super().prepare_data(data, options)
        context["headline"] = current_position(data.get("experience") or [])
        context["contacts"] = contact_items(data.get("personalInfo") or {})
        context["skill_rows"] = [
            {"label": group.get("category") or "Skills", "value": ", ".join(group.get("skills") or [])}
            for group in data.get("skills") or []
        ]
        context["language_rows"] = [
            {"label": lang.get("language", ""), "value": lang.get("proficiency") or ""}
            for lang in data.get("languages") or []
        ]
        return context


DEFAULT_TEMPLATE_CLASSES = (
    ModernTemplate,
    ClassicTemplate,
    TechTemplate,
    ExecutiveTemplate,
    CreativeTemplate,
    MinimalTemplate,
    ElegantTemplate,
    SimpleTemplate,
    AwesomeCVTemplate,
)
