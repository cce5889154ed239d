"""
JSON Resume parser.

Parses the JSON Resume standard (https://jsonresume.org/schema/):

    {
      "basics": {"name": "...", "email": "...", "profiles": [{"network": "GitHub", "url": "..."}]},
      "work": [{"name": "...", "position": "...", "startDate": "2020-01"}],
      "education": [{"institution": "...", "area": "...", "studyType": "..."}],
      "skills": [{"name": "Backend", "keywords": ["Python", "SQL"]}],
      ...
    }

Documents in CV Studio's own export shape (top-level "personalInfo") are
accepted too, so an exported record re-imports unchanged.
"""

import json
from typing import Any, Dict, List, Optional

from cvstudio.contexts.intake.base import ALL_SECTIONS, CVParser, ParserMetadata, RawParseResult
from cvstudio.contexts.schema import (
    Award,
    Certification,
    CVRecord,
    Education,
    Experience,
    Language,
    PersonalInfo,
    Project,
    Publication,
    SkillGroup,
    Volunteer,
)
from cvstudio.utils.text_processing import clean_text


def find_profile_url(profiles: Any, network: str) -> Optional[str]:
    """Return the URL of the first profile whose network matches (case-insensitive)."""
    if not isinstance(profiles, list):
        return None
    for profile in profiles:
        if not isinstance(profile, dict):
            continue
        if str(profile.get("network") or "").strip().lower() == network:
            return clean_text(profile.get("url"))
    return None


def format_location(location: Any) -> Optional[str]:
    """Flatten a JSON Resume location object into "City, Region, CC"."""
    if isinstance(location, dict):
        parts = [
            clean_text(location.get(key))
            for key in ("address", "city", "region", "postalCode", "countryCode")
        ]
        return ", ".join(part for part in parts if part) or None
    return clean_text(location)


class JsonResumeParser(CVParser):
    """Parser for JSON Resume documents (object or JSON string)."""

    metadata = ParserMetadata(
        name="JSON Resume Parser",
        type="json-resume",
        version="1.0.0",
        supported_formats=("json",),
        supported_sections=ALL_SECTIONS,
        description="Parses CV data from JSON Resume format (https://jsonresume.org/)",
    )

    def parse_raw(self, content: Any, options: Optional[Dict[str, Any]] = None) -> RawParseResult:
        if isinstance(content, (bytes, bytearray)):
            content = content.decode("utf-8-sig")

        if isinstance(content, str):
            try:
                resume = json.loads(content)
            except json.JSONDecodeError as e:
                # No partial extraction from malformed documents
                return RawParseResult(success=False, errors=[f"Invalid JSON format: {e}"])
        else:
            resume = content

        if not isinstance(resume, dict):
            return RawParseResult(
                success=False,
                errors=["Invalid JSON format: expected an object at the top level"],
            )

        warnings: List[str] = []
        if "personalInfo" in resume:
            record = self.record_from_canonical(resume, warnings)
        else:
            record = self._from_json_resume(resume, warnings)

        return RawParseResult(success=True, data=record, warnings=warnings)

    def _from_json_resume(self, resume: Dict[str, Any], warnings: List[str]) -> CVRecord:
        basics = resume.get("basics") if isinstance(resume.get("basics"), dict) else {}
        profiles = basics.get("profiles")

        personal_info = PersonalInfo(
            full_name=clean_text(basics.get("name")) or "",
            email=clean_text(basics.get("email")) or "",
            phone=clean_text(basics.get("phone")),
            location=format_location(basics.get("location")),
            summary=clean_text(basics.get("summary")),
            website=clean_text(basics.get("url") or basics.get("website")),
            linkedin=find_profile_url(profiles, "linkedin"),
            github=find_profile_url(profiles, "github"),
        )

        def date(entry: Dict[str, Any], key: str, label: str) -> Optional[str]:
            return self.normalize_date_field(entry.get(key), label, warnings)

        experience = [
            Experience(
                company=clean_text(work.get("name") or work.get("company")) or "",
                position=clean_text(work.get("position")) or "",
                start_date=date(work, "startDate", f"work[{i}].startDate"),
                end_date=date(work, "endDate", f"work[{i}].endDate"),
                description=clean_text(work.get("summary") or work.get("description")),
                highlights=self.text_list(work.get("highlights")),
            )
            for i, work in enumerate(self.entries(resume, "work", warnings))
        ]

        education = [
            Education(
                institution=clean_text(edu.get("institution")) or "",
                area=clean_text(edu.get("area")),
                study_type=clean_text(edu.get("studyType")),
                start_date=date(edu, "startDate", f"education[{i}].startDate"),
                end_date=date(edu, "endDate", f"education[{i}].endDate"),
                score=clean_text(edu.get("score")),
            )
            for i, edu in enumerate(self.entries(resume, "education", warnings))
        ]

        skills = [
            SkillGroup(
                category=clean_text(group.get("name")) or "",
                skills=self.text_list(group.get("keywords")) or self.text_list(group.get("name")),
            )
            for group in self.entries(resume, "skills", warnings)
        ]

        projects = [
            Project(
                name=clean_text(project.get("name")) or "",
                description=clean_text(project.get("description")),
                url=clean_text(project.get("url")),
                technologies=self.text_list(project.get("keywords")),
                start_date=date(project, "startDate", f"projects[{i}].startDate"),
                end_date=date(project, "endDate", f"projects[{i}].endDate"),
            )
            for i, project in enumerate(self.entries(resume, "projects", warnings))
        ]

        certifications = [
            Certification(
                name=clean_text(cert.get("name")) or "",
                issuer=clean_text(cert.get("issuer")),
                issue_date=date(cert, "date", f"certificates[{i}].date"),
                credential_url=clean_text(cert.get("url")),
            )
            for i, cert in enumerate(self.entries(resume, ("certificates", "certifications"), warnings))
        ]

        languages = [
            Language(
                language=clean_text(lang.get("language")) or "",
                proficiency=clean_text(lang.get("fluency")),
            )
            for lang in self.entries(resume, "languages", warnings)
        ]

        volunteer = [
            Volunteer(
                organization=clean_text(vol.get("organization")) or "",
                position=clean_text(vol.get("position")),
                start_date=date(vol, "startDate", f"volunteer[{i}].startDate"),
                end_date=date(vol, "endDate", f"volunteer[{i}].endDate"),
                description=clean_text(vol.get("summary")),
            )
            for i, vol in enumerate(self.entries(resume, "volunteer", warnings))
        ]

        publications = [
            Publication(
                name=clean_text(pub.get("name")) or "",
                publisher=clean_text(pub.get("publisher")),
                release_date=date(pub, "releaseDate", f"publications[{i}].releaseDate"),
                url=clean_text(pub.get("url")),
                summary=clean_text(pub.get("summary")),
            )
            for i, pub in enumerate(self.entries(resume, "publications", warnings))
        ]

        awards = [
            Award(
                title=clean_text(award.get("title")) or "",
                date=date(award, "date", f"awards[{i}].date"),
                awarder=clean_text(award.get("awarder")),
                summary=clean_text(award.get("summary")),
            )
            for i, award in enumerate(self.entries(resume, "awards", warnings))
        ]

        return CVRecord(
            personal_info=personal_info,
            experience=experience,
            education=education,
            skills=skills,
            projects=projects,
            certifications=certifications,
            languages=languages,
            volunteer=volunteer,
            publications=publications,
            awards=awards,
        )
