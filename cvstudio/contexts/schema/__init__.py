"""
Schema Context

Responsibilities:
- Defines the canonical, format-independent CV record
- Validates candidate records with field-level errors and warnings
- Computes the deterministic data-quality score

Owns: CV record shape, validation rules, quality weighting
Never: Parses source formats or renders documents
"""

from cvstudio.contexts.schema.cv_record import (
    Award,
    Certification,
    CVRecord,
    Education,
    Experience,
    Language,
    PersonalInfo,
    Project,
    Publication,
    SECTION_TYPES,
    SkillGroup,
    Volunteer,
)
from cvstudio.contexts.schema.validator import ValidationReport, score_quality, validate

__all__ = [
    "CVRecord",
    "PersonalInfo",
    "Experience",
    "Education",
    "SkillGroup",
    "Project",
    "Certification",
    "Language",
    "Volunteer",
    "Publication",
    "Award",
    "SECTION_TYPES",
    "ValidationReport",
    "validate",
    "score_quality",
]
