"""
CV record validation and data-quality scoring.

validate() is the single authority on record correctness: parsers only
extract and normalize, then hand their candidate here. score_quality() is a
pure completeness metric and never fails.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

from cvstudio.contexts.schema.cv_record import SECTION_TYPES, CVRecord
from cvstudio.utils.text_processing import is_iso_date

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# camelCase date keys checked per section
DATE_FIELDS = {
    "experience": ("startDate", "endDate"),
    "education": ("startDate", "endDate"),
    "projects": ("startDate", "endDate"),
    "certifications": ("issueDate", "expirationDate"),
    "volunteer": ("startDate", "endDate"),
    "publications": ("releaseDate",),
    "awards": ("date",),
}

# camelCase string-list keys checked per section
LIST_FIELDS = {
    "experience": ("highlights",),
    "skills": ("skills",),
    "projects": ("technologies",),
}

EMPTY_SECTION_WARNINGS = {
    "experience": "No work experience found",
    "education": "No education found",
    "skills": "No skills found",
}

# Quality weights: (points per entry, cap) for counted sections
COUNTED_SECTION_POINTS = {
    "experience": (5, 20),
    "education": (5, 15),
    "skills": (3, 15),
}
# Flat points for having at least one entry
EXTRA_SECTION_POINTS = {
    "projects": 3,
    "certifications": 3,
    "languages": 2,
    "volunteer": 1,
    "publications": 1,
}
PERSONAL_INFO_POINTS = {
    "fullName": 10,
    "email": 10,
    "phone": 5,
    "location": 5,
    "summary": 10,
}
MAX_QUALITY_POINTS = (
    sum(PERSONAL_INFO_POINTS.values())
    + sum(cap for _, cap in COUNTED_SECTION_POINTS.values())
    + sum(EXTRA_SECTION_POINTS.values())
)


@dataclass
class ValidationReport:
    """Outcome of validate(); valid is True exactly when errors is empty."""

    valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def _as_dict(candidate: Union[CVRecord, Dict[str, Any], None]) -> Dict[str, Any]:
    if isinstance(candidate, CVRecord):
        return candidate.to_dict()
    return candidate if isinstance(candidate, dict) else {}


def validate(candidate: Union[CVRecord, Dict[str, Any]]) -> ValidationReport:
    """
    Validate a CV record candidate.

    Args:
        candidate: CVRecord or its camelCase dict form

    Returns:
        ValidationReport with field-level errors and non-fatal warnings
    """
    data = _as_dict(candidate)
    errors: List[str] = []
    warnings: List[str] = []

    personal = data.get("personalInfo")
    if not isinstance(personal, dict):
        errors.append("personalInfo: Personal info is required")
        personal = {}

    full_name = personal.get("fullName")
    if not isinstance(full_name, str) or not full_name.strip():
        errors.append("personalInfo.fullName: Full name is required")

    email = personal.get("email")
    if not isinstance(email, str) or not email.strip():
        errors.append("personalInfo.email: Email is required")
    elif not EMAIL_PATTERN.match(email.strip()):
        errors.append(f"personalInfo.email: Invalid email address '{email}'")

    for section in SECTION_TYPES:
        entries = data.get(section)
        if entries is None:
            entries = []
        if not isinstance(entries, list):
            errors.append(f"{section}: Expected a list")
            continue

        for index, entry in enumerate(entries):
            if not isinstance(entry, dict):
                errors.append(f"{section}[{index}]: Expected an object")
                continue
            for key in DATE_FIELDS.get(section, ()):
                value = entry.get(key)
                if value is not None and not is_iso_date(value):
                    errors.append(
                        f"{section}[{index}].{key}: Invalid date '{value}' (expected YYYY-MM-DD)"
                    )
            for key in LIST_FIELDS.get(section, ()):
                value = entry.get(key)
                if value is None:
                    continue
                if not isinstance(value, list):
                    errors.append(f"{section}[{index}].{key}: Expected a list")
                elif not all(isinstance(item, str) for item in value):
                    errors.append(f"{section}[{index}].{key}: Expected a list of strings")

        if not entries and section in EMPTY_SECTION_WARNINGS:
            warnings.append(EMPTY_SECTION_WARNINGS[section])

    return ValidationReport(valid=not errors, errors=errors, warnings=warnings)


def score_quality(record: Union[CVRecord, Dict[str, Any]]) -> int:
    """
    Compute the 0-100 completeness score of a record.

    Personal info is worth 40 points, experience 20, education 15, skills 15,
    and the remaining sections 10 combined. Deterministic for identical input.
    """
    data = _as_dict(record)
    personal = data.get("personalInfo")
    if not isinstance(personal, dict):
        personal = {}

    achieved = sum(points for key, points in PERSONAL_INFO_POINTS.items() if personal.get(key))

    for section, (per_entry, cap) in COUNTED_SECTION_POINTS.items():
        entries = data.get(section)
        if isinstance(entries, list):
            achieved += min(len(entries) * per_entry, cap)

    for section, points in EXTRA_SECTION_POINTS.items():
        entries = data.get(section)
        if isinstance(entries, list) and entries:
            achieved += points

    return round(100 * achieved / MAX_QUALITY_POINTS)
