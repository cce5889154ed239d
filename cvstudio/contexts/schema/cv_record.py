"""
Canonical CV Record

Defines the format-independent resume structure every parser produces and
every template consumes. Attributes are snake_case in Python; the serialized
dict/JSON form uses camelCase keys (personalInfo.fullName, startDate, ...).

Sections are ordered lists kept in insertion order (the order supplied by the
source); nothing here re-sorts entries.
"""

from dataclasses import MISSING, dataclass, field, fields
from typing import Any, Dict, List, Optional


def to_camel(name: str) -> str:
    """Convert a snake_case attribute name to its camelCase wire key."""
    first, *rest = name.split("_")
    return first + "".join(part.capitalize() for part in rest)


@dataclass
class _Entry:
    """Shared dict conversion for record components."""

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to camelCase keys, omitting absent optional scalars."""
        result = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            result[to_camel(f.name)] = list(value) if isinstance(value, list) else value
        return result

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]):
        """Build from camelCase (or snake_case) keys, ignoring unknown keys."""
        data = data or {}
        kwargs = {}
        for f in fields(cls):
            key = to_camel(f.name)
            if key in data:
                value = data[key]
            elif f.name in data:
                value = data[f.name]
            else:
                continue
            # Lists never become None
            if value is None and f.default_factory is not MISSING:
                continue
            kwargs[f.name] = value
        return cls(**kwargs)


@dataclass
class PersonalInfo(_Entry):
    full_name: str = ""
    email: str = ""
    phone: Optional[str] = None
    location: Optional[str] = None
    summary: Optional[str] = None
    website: Optional[str] = None
    linkedin: Optional[str] = None
    github: Optional[str] = None


@dataclass
class Experience(_Entry):
    company: str = ""
    position: str = ""
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    description: Optional[str] = None
    highlights: List[str] = field(default_factory=list)


@dataclass
class Education(_Entry):
    institution: str = ""
    area: Optional[str] = None
    study_type: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    score: Optional[str] = None


@dataclass
class SkillGroup(_Entry):
    category: str = ""
    skills: List[str] = field(default_factory=list)


@dataclass
class Project(_Entry):
    name: str = ""
    description: Optional[str] = None
    url: Optional[str] = None
    technologies: List[str] = field(default_factory=list)
    start_date: Optional[str] = None
    end_date: Optional[str] = None


@dataclass
class Certification(_Entry):
    name: str = ""
    issuer: Optional[str] = None
    issue_date: Optional[str] = None
    expiration_date: Optional[str] = None
    credential_url: Optional[str] = None


@dataclass
class Language(_Entry):
    language: str = ""
    proficiency: Optional[str] = None


@dataclass
class Volunteer(_Entry):
    organization: str = ""
    position: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    description: Optional[str] = None


@dataclass
class Publication(_Entry):
    name: str = ""
    publisher: Optional[str] = None
    release_date: Optional[str] = None
    url: Optional[str] = None
    summary: Optional[str] = None


@dataclass
class Award(_Entry):
    title: str = ""
    date: Optional[str] = None
    awarder: Optional[str] = None
    summary: Optional[str] = None


# Section attribute -> entry type, in canonical order
SECTION_TYPES = {
    "experience": Experience,
    "education": Education,
    "skills": SkillGroup,
    "projects": Project,
    "certifications": Certification,
    "languages": Language,
    "volunteer": Volunteer,
    "publications": Publication,
    "awards": Award,
}


@dataclass
class CVRecord:
    """
    Canonical resume record.

    Attributes:
        personal_info: Identity and contact details (fullName and email required)
        experience: Work history in source order
        education: Schools and degrees
        skills: Skill groups keyed by category
        projects, certifications, languages, volunteer, publications, awards:
            Optional sections, empty lists when absent
    """

    personal_info: PersonalInfo = field(default_factory=PersonalInfo)
    experience: List[Experience] = field(default_factory=list)
    education: List[Education] = field(default_factory=list)
    skills: List[SkillGroup] = field(default_factory=list)
    projects: List[Project] = field(default_factory=list)
    certifications: List[Certification] = field(default_factory=list)
    languages: List[Language] = field(default_factory=list)
    volunteer: List[Volunteer] = field(default_factory=list)
    publications: List[Publication] = field(default_factory=list)
    awards: List[Award] = field(default_factory=list)

    @property
    def full_name(self) -> str:
        return self.personal_info.full_name

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the camelCase wire form."""
        data: Dict[str, Any] = {"personalInfo": self.personal_info.to_dict()}
        for section in SECTION_TYPES:
            data[section] = [entry.to_dict() for entry in getattr(self, section)]
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "CVRecord":
        """
        Build a record from its camelCase wire form.

        Missing sections default to empty lists; non-list sections and
        non-object entries are skipped (validate() reports them).
        """
        data = data or {}
        personal = data.get("personalInfo", data.get("personal_info"))
        kwargs: Dict[str, Any] = {
            "personal_info": PersonalInfo.from_dict(personal if isinstance(personal, dict) else {})
        }
        for section, entry_type in SECTION_TYPES.items():
            items = data.get(section) or []
            if not isinstance(items, list):
                items = []
            kwargs[section] = [entry_type.from_dict(item) for item in items if isinstance(item, dict)]
        return cls(**kwargs)

    def non_empty_sections(self) -> List[str]:
        """Names of sections that have at least one entry, in canonical order."""
        return [section for section in SECTION_TYPES if getattr(self, section)]
