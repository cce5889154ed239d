"""Unit tests for the JSON Resume, YAML and tabular parsers."""

import json

import pytest

from cvstudio.contexts.intake import JsonResumeParser, TabularParser, YamlParser
from cvstudio.contexts.intake.tabular_parser import DEFAULT_SKILL_CATEGORY


# JSON Resume


@pytest.mark.unit
def test_json_resume_maps_standard_fields(json_resume):
    result = JsonResumeParser().parse(json.dumps(json_resume))

    assert result.success, result.errors
    personal = result.data.personal_info
    assert personal.full_name == "Jane Smith"
    assert personal.location == "Berlin, DE"
    assert personal.github == "https://github.com/janesmith"
    assert personal.linkedin == "https://linkedin.com/in/janesmith"

    job = result.data.experience[0]
    assert job.company == "Acme Corp"
    assert job.start_date == "2020-01-01"
    assert job.end_date is None
    assert result.data.skills[0].category == "Backend"
    assert result.data.skills[0].skills == ["Python", "SQL"]


@pytest.mark.unit
def test_json_resume_accepts_objects_and_bytes(json_resume):
    parser = JsonResumeParser()
    assert parser.parse(json_resume).success
    assert parser.parse(json.dumps(json_resume).encode("utf-8")).success


@pytest.mark.unit
def test_json_resume_metadata(json_resume):
    result = JsonResumeParser().parse(json_resume)

    assert result.metadata.parser_type == "json-resume"
    assert result.metadata.parse_time_ms >= 0
    assert 0 < result.metadata.data_quality <= 100


@pytest.mark.unit
def test_malformed_json_is_a_single_error():
    result = JsonResumeParser().parse('{"basics": {"name": ')

    assert not result.success
    assert len(result.errors) == 1
    assert result.errors[0].startswith("Invalid JSON format:")
    assert result.data is None
    assert result.metadata.data_quality == 0


@pytest.mark.unit
def test_top_level_array_is_rejected():
    result = JsonResumeParser().parse("[1, 2]")
    assert not result.success
    assert result.errors == ["Invalid JSON format: expected an object at the top level"]


@pytest.mark.unit
def test_missing_email_fails_validation_but_keeps_data(json_resume):
    del json_resume["basics"]["email"]
    result = JsonResumeParser().parse(json_resume)

    assert not result.success
    assert "personalInfo.email: Email is required" in result.errors
    assert result.data.personal_info.full_name == "Jane Smith"
    assert result.metadata.data_quality == 0


@pytest.mark.unit
def test_unrecognized_date_is_dropped_with_warning(json_resume):
    json_resume["work"][0]["startDate"] = "sometime in 2020"
    result = JsonResumeParser().parse(json_resume)

    assert result.success
    assert result.data.experience[0].start_date is None
    assert "work[0].startDate: Unrecognized date 'sometime in 2020' was dropped" in result.warnings


@pytest.mark.unit
def test_empty_sections_produce_warnings():
    result = JsonResumeParser().parse({"basics": {"name": "A B", "email": "a@b.io"}})

    assert result.success
    assert "No work experience found" in result.warnings
    assert "No education found" in result.warnings


@pytest.mark.unit
def test_canonical_export_shape_is_accepted(sample_record):
    result = JsonResumeParser().parse(json.dumps(sample_record))

    assert result.success
    assert result.data.to_dict()["experience"] == sample_record["experience"]


@pytest.mark.unit
def test_parser_exceptions_become_parse_errors():
    class Exploding(JsonResumeParser):
        def parse_raw(self, content, options=None):
            raise KeyError("boom")

    result = Exploding().parse("{}")

    assert not result.success
    assert result.errors == ["Parse error: 'boom'"]


# YAML


YAML_RESUME = """
basics:
  name: Jane   Smith
  email: jane@example.com
  location: Berlin
work:
  - company: Acme
    role: Engineer
    startDate: 2020-01
    endDate: Present
education:
  - school: State University
    degree: BSc
    fieldOfStudy: Physics
    gpa: 3.8
    endDate: 2016
skills:
  Backend: [Python, SQL]
  Cloud: [AWS]
"""


@pytest.mark.unit
def test_yaml_aliases_and_dates():
    result = YamlParser().parse(YAML_RESUME)

    assert result.success, result.errors
    record = result.data
    assert record.full_name == "Jane Smith"
    assert record.experience[0].position == "Engineer"
    assert record.experience[0].start_date == "2020-01-01"
    assert record.experience[0].end_date is None

    school = record.education[0]
    assert school.institution == "State University"
    assert school.study_type == "BSc"
    assert school.area == "Physics"
    assert school.score == "3.8"
    assert school.end_date == "2016-01-01"


@pytest.mark.unit
def test_yaml_skill_mapping_keeps_order():
    result = YamlParser().parse(YAML_RESUME)
    assert [(g.category, g.skills) for g in result.data.skills] == [
        ("Backend", ["Python", "SQL"]),
        ("Cloud", ["AWS"]),
    ]


@pytest.mark.unit
def test_yaml_bare_skill_names():
    text = "basics: {name: A B, email: a@b.io}\nskills: [Python, Go]\n"
    result = YamlParser().parse(text)
    assert [g.skills for g in result.data.skills] == [["Python"], ["Go"]]


@pytest.mark.unit
def test_malformed_yaml():
    result = YamlParser().parse("basics: [unclosed\n  name: x")

    assert not result.success
    assert result.errors[0].startswith("Invalid YAML format:")


@pytest.mark.unit
def test_yaml_top_level_list_is_rejected():
    result = YamlParser().parse("- a\n- b\n")
    assert result.errors == ["Invalid YAML format: expected a mapping at the top level"]


# Tabular


@pytest.mark.unit
def test_tabular_single_row_scenario():
    csv_text = (
        "First Name,Last Name,Email Address,Company,Position,Start Date,End Date\n"
        "John,Doe,john@example.com,Acme,Engineer,Jan 2020,Dec 2022\n"
    )
    result = TabularParser().parse(csv_text)

    assert result.success, result.errors
    assert result.data.personal_info.full_name == "John Doe"
    assert len(result.data.experience) == 1
    job = result.data.experience[0]
    assert (job.company, job.position) == ("Acme", "Engineer")
    assert job.start_date == "2020-01-01"
    assert job.end_date == "2022-12-01"


@pytest.mark.unit
def test_tabular_year_only_date():
    rows = [
        {
            "First Name": "John",
            "Last Name": "Doe",
            "Email Address": "john@example.com",
            "Company": "Acme",
            "Position": "Engineer",
            "Start Date": "2020",
        }
    ]
    result = TabularParser().parse(rows)
    assert result.data.experience[0].start_date == "2020-01-01"


@pytest.mark.unit
def test_tabular_routes_rows_by_columns():
    csv_text = (
        "First Name,Last Name,Email Address,Company,Position,School,Degree,Skill,Skill Category,Language\n"
        "John,Doe,john@example.com,,,,,,,\n"
        ",,,Acme,Engineer,,,,,\n"
        ",,,,,MIT,BSc,,,\n"
        ",,,,,,,Python,Languages,\n"
        ",,,,,,,Docker,,\n"
        ",,,,,,,Python,Languages,\n"
        ",,,,,,,,,German\n"
    )
    record = TabularParser().parse(csv_text).data

    assert [e.company for e in record.experience] == ["Acme"]
    assert [(e.institution, e.study_type) for e in record.education] == [("MIT", "BSc")]
    assert [(g.category, g.skills) for g in record.skills] == [
        ("Languages", ["Python"]),
        (DEFAULT_SKILL_CATEGORY, ["Docker"]),
    ]
    assert [l.language for l in record.languages] == ["German"]


@pytest.mark.unit
def test_tabular_quoted_fields():
    csv_text = (
        "First Name,Last Name,Email Address,Company,Position,Description\n"
        'John,Doe,john@example.com,"Acme, Inc.",Engineer,"Built ""things""\nacross teams"\n'
    )
    job = TabularParser().parse(csv_text).data.experience[0]

    assert job.company == "Acme, Inc."
    assert job.description == 'Built "things" across teams'


@pytest.mark.unit
def test_tabular_column_names_are_case_insensitive():
    csv_text = "first name,LAST NAME,email address\nJohn,Doe,john@example.com\n"
    record = TabularParser().parse(csv_text).data
    assert record.personal_info.full_name == "John Doe"
    assert record.personal_info.email == "john@example.com"


@pytest.mark.unit
def test_tabular_header_only_has_no_data():
    result = TabularParser().parse("First Name,Last Name\n")

    assert not result.success
    assert result.errors == ["No data found in tabular export"]


@pytest.mark.unit
def test_supports_format_and_section():
    parser = TabularParser()

    assert parser.supports_format("CSV")
    assert not parser.supports_format("json")
    assert parser.supports_section("experience")
    assert not parser.supports_section("awards")
