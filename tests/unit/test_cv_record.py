"""Unit tests for the canonical CV record."""

import pytest

from cvstudio.contexts.schema import CVRecord, Experience, PersonalInfo, SkillGroup
from cvstudio.contexts.schema.cv_record import to_camel


@pytest.mark.unit
def test_to_camel():
    assert to_camel("full_name") == "fullName"
    assert to_camel("credential_url") == "credentialUrl"
    assert to_camel("email") == "email"


@pytest.mark.unit
def test_from_dict_reads_camel_case(sample_record):
    record = CVRecord.from_dict(sample_record)

    assert record.full_name == "Jane Smith"
    assert record.personal_info.email == "jane.smith@example.com"
    assert record.experience[0].company == "Acme Corp"
    assert record.experience[0].start_date == "2020-01-01"
    assert record.education[0].study_type == "BSc"
    assert record.skills[1].skills == ["Kubernetes", "Terraform"]


@pytest.mark.unit
def test_to_dict_round_trips(sample_record):
    record = CVRecord.from_dict(sample_record)
    assert CVRecord.from_dict(record.to_dict()) == record


@pytest.mark.unit
def test_to_dict_omits_absent_scalars_but_keeps_lists():
    record = CVRecord(
        personal_info=PersonalInfo(full_name="A B", email="a@b.io"),
        experience=[Experience(company="Acme", position="Dev")],
    )
    data = record.to_dict()

    assert data["personalInfo"] == {"fullName": "A B", "email": "a@b.io"}
    assert data["experience"] == [{"company": "Acme", "position": "Dev", "highlights": []}]
    assert data["awards"] == []


@pytest.mark.unit
def test_from_dict_is_lenient_about_shape():
    record = CVRecord.from_dict(
        {
            "personalInfo": {"fullName": "A B", "email": "a@b.io", "nickname": "ab"},
            "experience": "not a list",
            "skills": [{"category": "Core", "skills": ["Go"]}, "stray"],
            "projects": None,
        }
    )

    assert record.experience == []
    assert record.skills == [SkillGroup(category="Core", skills=["Go"])]
    assert record.projects == []


@pytest.mark.unit
def test_section_order_is_preserved():
    entries = [{"company": c, "position": "Dev"} for c in ("Zeta", "Alpha", "Mid")]
    record = CVRecord.from_dict({"personalInfo": {}, "experience": entries})
    assert [e.company for e in record.experience] == ["Zeta", "Alpha", "Mid"]


@pytest.mark.unit
def test_non_empty_sections(sample_record):
    record = CVRecord.from_dict(sample_record)
    assert record.non_empty_sections() == [
        "experience",
        "education",
        "skills",
        "projects",
        "languages",
    ]
