"""
Integration tests for CVLifecycleService: parsers, templates, the rendering
pipeline (in-process engine) and SQLite persistence working together.
"""

import asyncio
import json
import threading

import pytest

from cvstudio.contexts.lifecycle import CVState, EventType
from cvstudio.contexts.lifecycle.service import export_filename
from cvstudio.exceptions import (
    CVNotFoundError,
    CVValidationError,
    ImportFailedError,
    ParserNotFoundError,
    RenderError,
    RenderTimeoutError,
    TemplateNotFoundError,
    UnsupportedFormatError,
    VersionConflictError,
)

OWNER = "alice"
OTHER = "mallory"


# Create / read


@pytest.mark.integration
def test_create_defaults(lifecycle, sample_record):
    entity = lifecycle.create(OWNER, sample_record)

    assert entity.version == 1
    assert entity.title == "Jane Smith's CV"
    assert entity.template_id == "modern"
    assert entity.state is CVState.DRAFT
    assert lifecycle.get(entity.id, OWNER).record == entity.record
    assert [v.version for v in lifecycle.list_versions(entity.id, OWNER)] == [1]


@pytest.mark.integration
def test_create_rejects_invalid_records(lifecycle, sample_record):
    del sample_record["personalInfo"]["email"]

    with pytest.raises(CVValidationError) as excinfo:
        lifecycle.create(OWNER, sample_record)
    assert excinfo.value.errors == ["personalInfo.email: Email is required"]
    assert lifecycle.list_for_owner(OWNER) == []


@pytest.mark.integration
def test_create_rejects_string_highlights(lifecycle, sample_record):
    sample_record["experience"][0]["highlights"] = "not a list"

    with pytest.raises(CVValidationError) as excinfo:
        lifecycle.create(OWNER, sample_record)
    assert excinfo.value.errors == ["experience[0].highlights: Expected a list"]
    assert lifecycle.list_for_owner(OWNER) == []


@pytest.mark.integration
def test_create_rejects_unknown_template(lifecycle, sample_record):
    with pytest.raises(TemplateNotFoundError):
        lifecycle.create(OWNER, sample_record, template_id="fancy")


@pytest.mark.integration
def test_other_owners_see_not_found(lifecycle, sample_record):
    entity = lifecycle.create(OWNER, sample_record)

    for action in (
        lambda: lifecycle.get(entity.id, OTHER),
        lambda: lifecycle.update(entity.id, OTHER, sample_record),
        lambda: lifecycle.delete(entity.id, OTHER),
        lambda: lifecycle.change_template(entity.id, OTHER, "tech"),
        lambda: lifecycle.publish(entity.id, OTHER),
        lambda: lifecycle.list_versions(entity.id, OTHER),
    ):
        with pytest.raises(CVNotFoundError, match="CV not found"):
            action()

    with pytest.raises(CVNotFoundError):
        lifecycle.get("no-such-id", OWNER)


@pytest.mark.integration
def test_list_for_owner_pages(lifecycle, sample_record):
    ids = [lifecycle.create(OWNER, sample_record, title=f"CV {i}").id for i in range(3)]
    lifecycle.create(OTHER, sample_record)

    listed = lifecycle.list_for_owner(OWNER, limit=2)
    assert len(listed) == 2
    assert {e.id for e in listed} <= set(ids)
    assert len(lifecycle.list_for_owner(OWNER, limit=10, offset=2)) == 1


# Update / versioning


@pytest.mark.integration
def test_update_increments_version(lifecycle, sample_record):
    entity = lifecycle.create(OWNER, sample_record)
    sample_record["personalInfo"]["summary"] = "Now leading the platform team."

    updated = lifecycle.update(entity.id, OWNER, sample_record)
    again = lifecycle.update(entity.id, OWNER, sample_record, expected_version=2)

    assert updated.version == 2
    assert again.version == 3
    assert again.record.personal_info.summary == "Now leading the platform team."
    assert [v.version for v in lifecycle.list_versions(entity.id, OWNER)] == [1, 2, 3]


@pytest.mark.integration
def test_stale_update_conflicts(lifecycle, sample_record):
    entity = lifecycle.create(OWNER, sample_record)
    lifecycle.update(entity.id, OWNER, sample_record, expected_version=1)

    with pytest.raises(VersionConflictError):
        lifecycle.update(entity.id, OWNER, sample_record, expected_version=1)
    assert lifecycle.get(entity.id, OWNER).version == 2


@pytest.mark.integration
def test_concurrent_updates_have_one_winner(lifecycle, sample_record):
    entity = lifecycle.create(OWNER, sample_record)
    winners, conflicts = [], []

    def attempt():
        try:
            winners.append(lifecycle.update(entity.id, OWNER, sample_record, expected_version=1).version)
        except VersionConflictError:
            conflicts.append(True)

    threads = [threading.Thread(target=attempt) for _ in range(6)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert winners == [2]
    assert len(conflicts) == 5


@pytest.mark.integration
def test_update_validates(lifecycle, sample_record):
    entity = lifecycle.create(OWNER, sample_record)
    sample_record["experience"][0]["startDate"] = "Jan 2020"

    with pytest.raises(CVValidationError):
        lifecycle.update(entity.id, OWNER, sample_record)
    assert lifecycle.get(entity.id, OWNER).version == 1


# Templates


@pytest.mark.integration
def test_change_template_keeps_version(lifecycle, sample_record):
    entity = lifecycle.create(OWNER, sample_record)

    first = lifecycle.change_template(entity.id, OWNER, "tech")
    second = lifecycle.change_template(entity.id, OWNER, "tech")

    assert first.template_id == second.template_id == "tech"
    assert first.version == second.version == 1


@pytest.mark.integration
def test_change_template_unknown(lifecycle, sample_record):
    entity = lifecycle.create(OWNER, sample_record)

    with pytest.raises(TemplateNotFoundError):
        lifecycle.change_template(entity.id, OWNER, "fancy")
    assert lifecycle.get(entity.id, OWNER).template_id == "modern"


# Import


@pytest.mark.integration
def test_import_tabular_scenario(lifecycle):
    csv_text = (
        "First Name,Last Name,Email Address,Company,Position,Start Date,End Date\n"
        "John,Doe,john@example.com,Acme,Engineer,Jan 2020,Dec 2022\n"
    )
    outcome = lifecycle.import_from(OWNER, csv_text, source_name="linkedin.csv")
    record = outcome.entity.record

    assert record.personal_info.full_name == "John Doe"
    assert len(record.experience) == 1
    assert record.experience[0].start_date == "2020-01-01"
    assert record.experience[0].end_date == "2022-12-01"
    assert "No education found" in outcome.warnings
    assert 0 < outcome.quality <= 100


@pytest.mark.integration
def test_import_records_audit(services, lifecycle, json_resume):
    outcome = lifecycle.import_from(OWNER, json.dumps(json_resume), source_name="resume.json")
    imports = services.repository.list_imports(OWNER)

    assert len(imports) == 1
    assert imports[0].cv_id == outcome.entity.id
    assert imports[0].format == "json"
    assert imports[0].parser_type == "json-resume"
    assert imports[0].quality == outcome.quality


@pytest.mark.integration
@pytest.mark.parametrize(
    "format_name, source_name, expected",
    [
        ("YAML", "cv.json", "yaml"),
        (None, "cv.YML", "yml"),
        (None, "export.csv", "csv"),
        (None, "notes.txt", "json"),
        (None, "", "json"),
    ],
)
def test_detect_format(lifecycle, format_name, source_name, expected):
    assert lifecycle.detect_format(format_name, source_name) == expected


@pytest.mark.integration
def test_import_failure_carries_parser_errors(lifecycle):
    with pytest.raises(ImportFailedError) as excinfo:
        lifecycle.import_from(OWNER, "{not json", source_name="broken.json")

    assert excinfo.value.errors[0].startswith("Invalid JSON format:")
    assert lifecycle.list_for_owner(OWNER) == []


@pytest.mark.integration
def test_import_failure_on_validation(lifecycle, json_resume):
    del json_resume["basics"]["name"]

    with pytest.raises(ImportFailedError) as excinfo:
        lifecycle.import_from(OWNER, json.dumps(json_resume))
    assert "personalInfo.fullName: Full name is required" in excinfo.value.errors


@pytest.mark.integration
def test_import_unknown_format_or_parser(lifecycle):
    with pytest.raises(UnsupportedFormatError):
        lifecycle.import_from(OWNER, "...", format_name="docx")
    with pytest.raises(ParserNotFoundError):
        lifecycle.import_from(OWNER, "{}", parser_type="docx")


# Export


@pytest.mark.integration
def test_json_round_trip(lifecycle, json_resume):
    original = lifecycle.import_from(OWNER, json.dumps(json_resume), source_name="a.json").entity

    exported = asyncio.run(lifecycle.export_as(original.id, OWNER, "json"))
    assert exported.content_type == "application/json"
    assert exported.filename == "Jane_Smith_s_CV.json"

    copy = lifecycle.import_from(OWNER, exported.content, source_name=exported.filename).entity
    assert copy.id != original.id
    assert copy.record.personal_info == original.record.personal_info
    assert copy.record.experience == original.record.experience
    assert copy.record.education == original.record.education
    assert copy.record.skills == original.record.skills


@pytest.mark.integration
def test_export_html_uses_entity_template(lifecycle, sample_record):
    entity = lifecycle.create(OWNER, sample_record, template_id="tech")

    result = asyncio.run(lifecycle.export_as(entity.id, OWNER, "html"))
    assert result.content_type == "text/html"
    assert b'class="cv cv-tech"' in result.content

    override = asyncio.run(lifecycle.export_as(entity.id, OWNER, "HTML", template_id="classic"))
    assert b'class="cv cv-classic"' in override.content


@pytest.mark.integration
def test_export_pdf(lifecycle, sample_record, fake_engine):
    entity = lifecycle.create(OWNER, sample_record)
    result = asyncio.run(lifecycle.export_as(entity.id, OWNER, "pdf"))

    assert result.content.startswith(b"%PDF")
    assert result.content_type == "application/pdf"
    assert result.filename.endswith(".pdf")
    assert fake_engine.open_surface_count == 0


@pytest.mark.integration
def test_export_keeps_database_calls_off_the_event_loop(lifecycle, sample_record, monkeypatch):
    entity = lifecycle.create(OWNER, sample_record)
    repository = lifecycle.repository
    calling_threads = []

    def tracked(method):
        def wrapper(*args, **kwargs):
            calling_threads.append(threading.current_thread())
            return method(*args, **kwargs)

        return wrapper

    monkeypatch.setattr(repository, "find", tracked(repository.find))
    monkeypatch.setattr(repository, "add_event", tracked(repository.add_event))

    result = asyncio.run(lifecycle.export_as(entity.id, OWNER, "pdf"))

    assert result.content.startswith(b"%PDF")
    assert len(calling_threads) == 2
    assert threading.main_thread() not in calling_threads
    assert EventType.EXPORTED in [e.event_type for e in repository.list_events(OWNER)]


@pytest.mark.integration
def test_export_pdf_timeout(lifecycle, services, sample_record, fake_engine):
    entity = lifecycle.create(OWNER, sample_record)
    fake_engine.pdf_delay = 5
    services.pipeline.timeout_s = 0.05

    with pytest.raises(RenderTimeoutError, match="Render timeout after 0.05s"):
        asyncio.run(lifecycle.export_as(entity.id, OWNER, "pdf"))
    assert fake_engine.open_surface_count == 0


@pytest.mark.integration
def test_export_pdf_engine_failure(lifecycle, sample_record, fake_engine):
    entity = lifecycle.create(OWNER, sample_record)
    fake_engine.fail_start = True

    with pytest.raises(RenderError) as excinfo:
        asyncio.run(lifecycle.export_as(entity.id, OWNER, "pdf"))
    assert not isinstance(excinfo.value, RenderTimeoutError)


@pytest.mark.integration
def test_export_rejects_unknown_format_and_template(lifecycle, sample_record):
    entity = lifecycle.create(OWNER, sample_record)

    with pytest.raises(UnsupportedFormatError):
        asyncio.run(lifecycle.export_as(entity.id, OWNER, "docx"))
    with pytest.raises(TemplateNotFoundError):
        asyncio.run(lifecycle.export_as(entity.id, OWNER, "html", template_id="fancy"))


@pytest.mark.unit
def test_export_filename():
    assert export_filename("Jane Smith's CV", "pdf") == "Jane_Smith_s_CV.pdf"
    assert export_filename("???", "json") == "cv.json"


# Publish


@pytest.mark.integration
def test_publish_and_public_read(lifecycle, sample_record):
    entity = lifecycle.create(OWNER, sample_record)
    result = lifecycle.publish(entity.id, OWNER)

    assert result.public_path == f"/cv/public/{result.token}"
    assert len(result.token) == 32

    public = lifecycle.get_public(result.token)
    assert public.id == entity.id
    assert public.state is CVState.PUBLISHED
    assert public.published_at


@pytest.mark.integration
def test_republish_rotates_token(lifecycle, sample_record):
    entity = lifecycle.create(OWNER, sample_record)
    first = lifecycle.publish(entity.id, OWNER)
    second = lifecycle.publish(entity.id, OWNER)

    assert first.token != second.token
    assert lifecycle.get_public(second.token).id == entity.id
    with pytest.raises(CVNotFoundError):
        lifecycle.get_public(first.token)


@pytest.mark.integration
def test_public_read_not_found_cases(lifecycle, sample_record):
    entity = lifecycle.create(OWNER, sample_record)
    token = lifecycle.publish(entity.id, OWNER).token
    lifecycle.delete(entity.id, OWNER)

    for bad_token in (token, "never-issued", ""):
        with pytest.raises(CVNotFoundError):
            lifecycle.get_public(bad_token)


# Delete / statistics


@pytest.mark.integration
def test_delete(services, lifecycle, json_resume):
    entity = lifecycle.import_from(OWNER, json_resume, format_name="json").entity
    lifecycle.delete(entity.id, OWNER)

    with pytest.raises(CVNotFoundError):
        lifecycle.get(entity.id, OWNER)
    with pytest.raises(CVNotFoundError):
        lifecycle.delete(entity.id, OWNER)

    events = [e.event_type for e in services.repository.list_events(OWNER, cv_id=entity.id)]
    assert events[-1] is EventType.DELETED
    assert len(services.repository.list_imports(OWNER)) == 1


@pytest.mark.integration
def test_statistics(lifecycle, json_resume, sample_record):
    imported = lifecycle.import_from(OWNER, json_resume, format_name="json")
    created = lifecycle.create(OWNER, sample_record, template_id="tech")
    lifecycle.create(OWNER, sample_record, template_id="tech")
    lifecycle.publish(created.id, OWNER)

    stats = lifecycle.get_statistics(OWNER)

    assert stats["totalCVs"] == 3
    assert stats["publishedCVs"] == 1
    # created x3, imported, published
    assert stats["recentActivity"] == 5
    assert stats["averageQuality"] == imported.quality
    assert stats["mostUsedTemplate"] == "tech"
    assert lifecycle.get_statistics(OTHER)["totalCVs"] == 0


@pytest.mark.integration
def test_discovery(lifecycle):
    assert {t["id"] for t in lifecycle.list_templates()} >= {"modern", "tech", "minimal"}
    assert [p["type"] for p in lifecycle.list_parsers()] == ["json-resume", "yaml", "tabular"]
