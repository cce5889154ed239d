"""
YAML resume parser.

Reads an indentation-based YAML document (JSON Resume layout with friendlier
aliases) through OmegaConf:

    basics:
      name: Jane Smith
      email: jane@example.com
    work:
      - company: Acme
        role: Engineer
        startDate: 2020-01
    education:
      - school: State University
        degree: BSc
        gpa: 3.8
    skills:
      - name: Backend
        keywords: [Python, SQL]

Aliases: school -> institution, degree -> studyType, fieldOfStudy -> area,
gpa -> score, role -> position, certifications -> certificates, and the
like. Documents in canonical export shape ("personalInfo") are accepted.
"""

from typing import Any, Dict, List, Optional

import yaml
from omegaconf import OmegaConf
from omegaconf.errors import OmegaConfBaseException

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


def first(entry: Dict[str, Any], *keys: str) -> Any:
    """Value of the first key present with a non-empty value."""
    for key in keys:
        value = entry.get(key)
        if value is not None and value != "":
            return value
    return None


class YamlParser(CVParser):
    """Parser for YAML resumes."""

    metadata = ParserMetadata(
        name="YAML Parser",
        type="yaml",
        version="1.0.0",
        supported_formats=("yaml", "yml"),
        supported_sections=ALL_SECTIONS,
        description="Parses CV data from YAML format",
    )

    def parse_raw(self, content: Any, options: Optional[Dict[str, Any]] = None) -> RawParseResult:
        if isinstance(content, (bytes, bytearray)):
            content = content.decode("utf-8-sig")

        if isinstance(content, str):
            try:
                document = self._load(content)
            except (yaml.YAMLError, OmegaConfBaseException, ValueError) as e:
                return RawParseResult(success=False, errors=[f"Invalid YAML format: {e}"])
        else:
            document = content

        if not isinstance(document, dict):
            return RawParseResult(
                success=False,
                errors=["Invalid YAML format: expected a mapping at the top level"],
            )

        warnings: List[str] = []
        if "personalInfo" in document:
            record = self.record_from_canonical(document, warnings)
        else:
            record = self._from_yaml(document, warnings)

        return RawParseResult(success=True, data=record, warnings=warnings)

    @staticmethod
    def _load(text: str) -> Any:
        """
        Load YAML text into plain Python containers.

        OmegaConf keeps ISO-looking dates as strings and leaves ${...}
        interpolations unresolved.
        """
        if not text.strip():
            return {}
        config = OmegaConf.create(text)
        return OmegaConf.to_container(config, resolve=False)

    def _from_yaml(self, resume: Dict[str, Any], warnings: List[str]) -> CVRecord:
        basics = resume.get("basics") if isinstance(resume.get("basics"), dict) else {}

        personal_info = PersonalInfo(
            full_name=clean_text(first(basics, "name", "fullName")) or "",
            email=clean_text(basics.get("email")) or "",
            phone=clean_text(basics.get("phone")),
            location=clean_text(basics.get("location")),
            summary=clean_text(basics.get("summary")),
            website=clean_text(first(basics, "url", "website")),
            linkedin=clean_text(basics.get("linkedin")),
            github=clean_text(basics.get("github")),
        )

        def date(entry: Dict[str, Any], label: str, *keys: str) -> Optional[str]:
            return self.normalize_date_field(first(entry, *keys), label, warnings)

        experience = [
            Experience(
                company=clean_text(first(work, "name", "company")) or "",
                position=clean_text(first(work, "position", "role", "title")) or "",
                start_date=date(work, f"work[{i}].startDate", "startDate"),
                end_date=date(work, f"work[{i}].endDate", "endDate"),
                description=clean_text(first(work, "summary", "description")),
                highlights=self.text_list(work.get("highlights")),
            )
            for i, work in enumerate(self.entries(resume, ("work", "experience"), warnings))
        ]

        education = [
            Education(
                institution=clean_text(first(edu, "institution", "school")) or "",
                area=clean_text(first(edu, "area", "fieldOfStudy")),
                study_type=clean_text(first(edu, "studyType", "degree")),
                start_date=date(edu, f"education[{i}].startDate", "startDate"),
                end_date=date(edu, f"education[{i}].endDate", "endDate"),
                score=clean_text(first(edu, "score", "gpa")),
            )
            for i, edu in enumerate(self.entries(resume, "education", warnings))
        ]

        projects = [
            Project(
                name=clean_text(project.get("name")) or "",
                description=clean_text(project.get("description")),
                url=clean_text(first(project, "url", "repository")),
                technologies=self.text_list(first(project, "technologies", "keywords")),
                start_date=date(project, f"projects[{i}].startDate", "startDate"),
                end_date=date(project, f"projects[{i}].endDate", "endDate"),
            )
            for i, project in enumerate(self.entries(resume, "projects", warnings))
        ]

        certifications = [
            Certification(
                name=clean_text(first(cert, "name", "title")) or "",
                issuer=clean_text(first(cert, "issuer", "organization")),
                issue_date=date(cert, f"certificates[{i}].date", "date", "issueDate"),
                expiration_date=date(cert, f"certificates[{i}].expirationDate", "expirationDate"),
                credential_url=clean_text(first(cert, "url", "credentialUrl")),
            )
            for i, cert in enumerate(
                self.entries(resume, ("certificates", "certifications"), warnings)
            )
        ]

        languages = [
            Language(
                language=clean_text(first(lang, "language", "name")) or "",
                proficiency=clean_text(first(lang, "fluency", "proficiency")),
            )
            for lang in self.entries(resume, "languages", warnings)
        ]

        volunteer = [
            Volunteer(
                organization=clean_text(vol.get("organization")) or "",
                position=clean_text(first(vol, "position", "role")),
                start_date=date(vol, f"volunteer[{i}].startDate", "startDate"),
                end_date=date(vol, f"volunteer[{i}].endDate", "endDate"),
                description=clean_text(first(vol, "summary", "description")),
            )
            for i, vol in enumerate(self.entries(resume, "volunteer", warnings))
        ]

        publications = [
            Publication(
                name=clean_text(first(pub, "name", "title")) or "",
                publisher=clean_text(pub.get("publisher")),
                release_date=date(pub, f"publications[{i}].releaseDate", "releaseDate", "date"),
                url=clean_text(pub.get("url")),
                summary=clean_text(first(pub, "summary", "description")),
            )
            for i, pub in enumerate(self.entries(resume, "publications", warnings))
        ]

        awards = [
            Award(
                title=clean_text(first(award, "title", "name")) or "",
                date=date(award, f"awards[{i}].date", "date"),
                awarder=clean_text(first(award, "awarder", "issuer")),
                summary=clean_text(first(award, "summary", "description")),
            )
            for i, award in enumerate(self.entries(resume, "awards", warnings))
        ]

        return CVRecord(
            personal_info=personal_info,
            experience=experience,
            education=education,
            skills=self._parse_skills(resume.get("skills"), warnings),
            projects=projects,
            certifications=certifications,
            languages=languages,
            volunteer=volunteer,
            publications=publications,
            awards=awards,
        )

    def _parse_skills(self, skills: Any, warnings: List[str]) -> List[SkillGroup]:
        """
        Accept skill groups in three shapes.

            skills: [Python, SQL]                       -> one group per bare name
            skills: [{name: Backend, keywords: [...]}]  -> JSON Resume groups
            skills: {Backend: [Python, SQL]}            -> category mapping
        """
        if skills is None:
            return []
        if isinstance(skills, dict):
            return [
                SkillGroup(category=clean_text(category) or "", skills=self.text_list(values))
                for category, values in skills.items()
            ]
        if not isinstance(skills, list):
            warnings.append("skills: Expected a list, section ignored")
            return []

        groups = []
        for skill in skills:
            if isinstance(skill, dict):
                name = clean_text(first(skill, "name", "category"))
                if not name:
                    continue
                groups.append(
                    SkillGroup(
                        category=name,
                        skills=self.text_list(first(skill, "keywords", "skills")) or [name],
                    )
                )
            elif clean_text(skill):
                name = clean_text(skill)
                groups.append(SkillGroup(category=name, skills=[name]))
        return groups
