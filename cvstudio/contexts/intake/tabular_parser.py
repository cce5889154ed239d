"""
Tabular export parser.

Handles spreadsheet-style profile exports (LinkedIn data exports and
similar CSV dumps) where one flat list of heterogeneous rows carries every
section. Rows are routed purely by which distinguishing columns they fill:

    First Name, Last Name, Email Address, ...   -> personal info (first row)
    Position + Company                          -> experience
    School / Institution                        -> education
    Skill (+ Skill Category)                    -> skills
    License/Certificate                         -> certifications
    Language (+ Proficiency)                    -> languages

Column names are matched case-insensitively.
"""

import csv
import io
from typing import Any, Dict, List, Optional

from cvstudio.contexts.intake.base import CVParser, ParserMetadata, RawParseResult
from cvstudio.contexts.schema import (
    Certification,
    CVRecord,
    Education,
    Experience,
    Language,
    PersonalInfo,
    SkillGroup,
)
from cvstudio.utils.text_processing import clean_text

DEFAULT_SKILL_CATEGORY = "Technical"

Row = Dict[str, str]


def read_rows(text: str, delimiter: str = ",") -> List[Row]:
    """
    Read delimited text with a header row into row dicts.

    RFC 4180 quoting applies: quoted fields may contain the delimiter,
    newlines and doubled quotes. Blank lines are skipped.

    Raises:
        csv.Error: On malformed quoting
    """
    reader = csv.DictReader(io.StringIO(text), delimiter=delimiter, strict=True)
    return [row for row in reader if any(value for value in row.values() if isinstance(value, str))]


def normalize_row(row: Dict[Any, Any]) -> Row:
    """Lower-case column names and collapse whitespace in values."""
    normalized = {}
    for key, value in row.items():
        # DictReader files overflow cells under a None key
        if key is None:
            continue
        text = clean_text(value)
        if text:
            normalized[str(key).strip().lower()] = text
    return normalized


def column(row: Row, *names: str) -> Optional[str]:
    """First non-empty value among the given column names."""
    for name in names:
        value = row.get(name.lower())
        if value:
            return value
    return None


class TabularParser(CVParser):
    """Parser for tabular (CSV) profile exports."""

    metadata = ParserMetadata(
        name="Tabular Export Parser",
        type="tabular",
        version="1.0.0",
        supported_formats=("csv",),
        supported_sections=(
            "personalInfo",
            "experience",
            "education",
            "skills",
            "certifications",
            "languages",
        ),
        description="Parses CV data from tabular profile exports such as LinkedIn CSV dumps",
    )

    def parse_raw(self, content: Any, options: Optional[Dict[str, Any]] = None) -> RawParseResult:
        options = options or {}

        if isinstance(content, (bytes, bytearray)):
            content = content.decode("utf-8-sig")

        if isinstance(content, str):
            try:
                rows = read_rows(content, delimiter=options.get("delimiter", ","))
            except csv.Error as e:
                return RawParseResult(success=False, errors=[f"Invalid CSV format: {e}"])
        elif isinstance(content, list):
            rows = [row for row in content if isinstance(row, dict)]
        else:
            return RawParseResult(
                success=False,
                errors=["Invalid CSV format: expected delimited text or a list of rows"],
            )

        rows = [normalized for normalized in (normalize_row(row) for row in rows) if normalized]
        if not rows:
            return RawParseResult(success=False, errors=["No data found in tabular export"])

        warnings: List[str] = []
        record = CVRecord(
            personal_info=self._personal_info(rows[0]),
            experience=self._experience(rows, warnings),
            education=self._education(rows, warnings),
            skills=self._skills(rows),
            certifications=self._certifications(rows, warnings),
            languages=self._languages(rows),
        )
        return RawParseResult(success=True, data=record, warnings=warnings)

    @staticmethod
    def _personal_info(row: Row) -> PersonalInfo:
        names = [column(row, "First Name"), column(row, "Last Name")]
        full_name = " ".join(name for name in names if name) or column(row, "Full Name", "Name")
        return PersonalInfo(
            full_name=full_name or "",
            email=column(row, "Email Address", "Email") or "",
            phone=column(row, "Phone Number", "Phone"),
            location=column(row, "Location", "Geo Location"),
            summary=column(row, "Headline", "Summary"),
            website=column(row, "Website", "Websites"),
            linkedin=column(row, "LinkedIn", "Profile URL"),
            github=column(row, "GitHub"),
        )

    def _experience(self, rows: List[Row], warnings: List[str]) -> List[Experience]:
        experience = []
        for i, row in enumerate(rows):
            company = column(row, "Company", "Company Name")
            position = column(row, "Position", "Title")
            if not (company and position):
                continue
            experience.append(
                Experience(
                    company=company,
                    position=position,
                    start_date=self.normalize_date_field(
                        column(row, "Start Date", "Started On"), f"row {i + 1} Start Date", warnings
                    ),
                    end_date=self.normalize_date_field(
                        column(row, "End Date", "Finished On"), f"row {i + 1} End Date", warnings
                    ),
                    description=column(row, "Description"),
                )
            )
        return experience

    def _education(self, rows: List[Row], warnings: List[str]) -> List[Education]:
        education = []
        for i, row in enumerate(rows):
            institution = column(row, "School", "School Name", "Institution")
            if not institution:
                continue
            education.append(
                Education(
                    institution=institution,
                    area=column(row, "Field of Study"),
                    study_type=column(row, "Degree", "Degree Name"),
                    start_date=self.normalize_date_field(
                        column(row, "Start Date", "Started On"), f"row {i + 1} Start Date", warnings
                    ),
                    end_date=self.normalize_date_field(
                        column(row, "End Date", "Finished On"), f"row {i + 1} End Date", warnings
                    ),
                    score=column(row, "Grade"),
                )
            )
        return education

    @staticmethod
    def _skills(rows: List[Row]) -> List[SkillGroup]:
        groups: Dict[str, List[str]] = {}
        for row in rows:
            skill = column(row, "Skill", "Skill Name")
            if not skill:
                continue
            category = column(row, "Skill Category", "Category") or DEFAULT_SKILL_CATEGORY
            groups.setdefault(category, [])
            if skill not in groups[category]:
                groups[category].append(skill)
        return [SkillGroup(category=category, skills=skills) for category, skills in groups.items()]

    def _certifications(self, rows: List[Row], warnings: List[str]) -> List[Certification]:
        certifications = []
        for i, row in enumerate(rows):
            name = column(row, "License/Certificate", "Certification", "Certificate")
            if not name:
                continue
            certifications.append(
                Certification(
                    name=name,
                    issuer=column(row, "Issuing Organization", "Authority"),
                    issue_date=self.normalize_date_field(
                        column(row, "Issue Date"), f"row {i + 1} Issue Date", warnings
                    ),
                    expiration_date=self.normalize_date_field(
                        column(row, "Expiration Date"), f"row {i + 1} Expiration Date", warnings
                    ),
                    credential_url=column(row, "Credential URL", "Url"),
                )
            )
        return certifications

    @staticmethod
    def _languages(rows: List[Row]) -> List[Language]:
        return [
            Language(language=column(row, "Language"), proficiency=column(row, "Proficiency"))
            for row in rows
            if column(row, "Language")
        ]
