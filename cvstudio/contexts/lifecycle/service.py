"""
CV Lifecycle Service

Orchestrates CV entities through their lifecycle:

    draft --publish()--> published

create/update/delete manage content and versions, import_from/export_as
bridge to the parser registry and rendering pipeline, and publish/get_public
expose a read-only public view keyed by an opaque token.

Every lookup is owner-scoped. Missing CVs and CVs owned by someone else
raise the same CVNotFoundError so callers cannot probe for existence.
"""

import asyncio
import json
import os
import re
import secrets
from collections import Counter
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from dotenv import load_dotenv

from cvstudio.contexts.intake import ParserRegistry
from cvstudio.contexts.lifecycle.entities import (
    CVEntity,
    CVEvent,
    CVVersion,
    EventType,
    ExportResult,
    ImportOutcome,
    ImportRecord,
    PublishResult,
    new_id,
)
from cvstudio.contexts.lifecycle.logger import (
    log_cv_created,
    log_cv_deleted,
    log_cv_updated,
    log_export,
    log_import_result,
    log_published,
    log_version_conflict,
)
from cvstudio.contexts.lifecycle.repository import CVRepository
from cvstudio.contexts.rendering import CONTENT_TYPES, SUPPORTED_FORMATS, RenderingPipeline
from cvstudio.contexts.schema import CVRecord, validate
from cvstudio.contexts.templating import TemplateRegistry
from cvstudio.exceptions import (
    CVNotFoundError,
    CVValidationError,
    ImportFailedError,
    RenderError,
    RenderTimeoutError,
    UnsupportedFormatError,
    VersionConflictError,
)
from cvstudio.utils.timestamp import days_ago, now_exact

load_dotenv()
PUBLIC_PATH_PREFIX = os.getenv("PUBLIC_PATH_PREFIX", "/cv/public")
RECENT_ACTIVITY_DAYS = int(os.getenv("RECENT_ACTIVITY_DAYS", "7"))

DEFAULT_IMPORT_FORMAT = "json"

RecordLike = Union[CVRecord, Mapping[str, Any]]


def default_title(record: CVRecord) -> str:
    return f"{record.full_name}'s CV"


def export_filename(title: str, format_name: str) -> str:
    """
    Example:
        >>> export_filename("Jane Smith's CV", "pdf")
        'Jane_Smith_s_CV.pdf'
    """
    stem = re.sub(r"[^A-Za-z0-9]+", "_", title).strip("_") or "cv"
    return f"{stem}.{format_name}"


class CVLifecycleService:
    """
    CV lifecycle orchestration.

    Args:
        repository: Persistence collaborator
        parser_registry: Parsers used by import_from()
        template_registry: Templates used by create/change_template/export_as
        pipeline: Rendering pipeline used by export_as()
    """

    def __init__(
        self,
        repository: CVRepository,
        parser_registry: ParserRegistry,
        template_registry: TemplateRegistry,
        pipeline: RenderingPipeline,
    ):
        self.repository = repository
        self.parser_registry = parser_registry
        self.template_registry = template_registry
        self.pipeline = pipeline

    # Content

    def create(
        self,
        owner_id: str,
        record: RecordLike,
        template_id: Optional[str] = None,
        title: Optional[str] = None,
    ) -> CVEntity:
        """
        Create a draft CV at version 1.

        Raises:
            CVValidationError: Missing name/email or other invalid content
            TemplateNotFoundError: Unknown template_id
        """
        cv_record = self._checked_record(record)
        if template_id is None:
            template_id = self.template_registry.get_default_template().metadata.id
        else:
            self.template_registry.get_template(template_id)

        timestamp = now_exact()
        entity = CVEntity(
            id=new_id(),
            owner_id=owner_id,
            title=title or default_title(cv_record),
            record=cv_record,
            template_id=template_id,
            version=1,
            created_at=timestamp,
            updated_at=timestamp,
        )
        self.repository.insert(entity)
        self._snapshot(entity.id, 1, entity.title, cv_record, timestamp)
        self._record_event(entity.id, owner_id, EventType.CREATED, {"templateId": template_id})

        log_cv_created(entity)
        return entity

    def get(self, cv_id: str, owner_id: str) -> CVEntity:
        """
        Raises:
            CVNotFoundError: Missing or owned by someone else
        """
        entity = self.repository.find(cv_id, owner_id)
        if entity is None:
            raise CVNotFoundError()
        return entity

    def list_for_owner(self, owner_id: str, limit: int = 10, offset: int = 0) -> List[CVEntity]:
        return self.repository.list_by_owner(owner_id, limit=limit, offset=offset)

    def update(
        self,
        cv_id: str,
        owner_id: str,
        record: RecordLike,
        expected_version: Optional[int] = None,
        title: Optional[str] = None,
    ) -> CVEntity:
        """
        Replace a CV's content and bump its version by exactly one.

        Args:
            expected_version: Version the caller edited; defaults to the
                              currently stored version

        Raises:
            CVValidationError: Invalid content
            CVNotFoundError: Missing or owned by someone else
            VersionConflictError: Another update advanced the version first
        """
        cv_record = self._checked_record(record)
        current = self.get(cv_id, owner_id)
        base_version = current.version if expected_version is None else expected_version
        new_title = title or current.title

        timestamp = now_exact()
        new_version = self.repository.update_record(
            cv_id, owner_id, cv_record, new_title, base_version, timestamp
        )
        if new_version is None:
            if self.repository.find(cv_id, owner_id) is None:
                raise CVNotFoundError()
            log_version_conflict(cv_id, base_version)
            raise VersionConflictError(
                f"CV was modified concurrently (expected version {base_version})"
            )

        self._snapshot(cv_id, new_version, new_title, cv_record, timestamp)
        self._record_event(cv_id, owner_id, EventType.UPDATED, {"version": new_version})
        log_cv_updated(cv_id, new_version)
        return self.get(cv_id, owner_id)

    def delete(self, cv_id: str, owner_id: str) -> None:
        """
        Hard-delete a CV and its version snapshots. Import and activity
        records are kept for audit.

        Raises:
            CVNotFoundError: Missing or owned by someone else
        """
        if not self.repository.delete(cv_id, owner_id):
            raise CVNotFoundError()
        self._record_event(cv_id, owner_id, EventType.DELETED)
        log_cv_deleted(cv_id)

    def list_versions(self, cv_id: str, owner_id: str) -> List[CVVersion]:
        self.get(cv_id, owner_id)
        return self.repository.list_versions(cv_id)

    # Import / export

    def detect_format(self, format_name: Optional[str] = None, source_name: str = "") -> str:
        """
        Resolve the import format: explicit value, else a supported file
        extension of source_name, else json.
        """
        if format_name:
            return format_name.lower().lstrip(".")
        suffix = Path(source_name or "").suffix.lower().lstrip(".")
        if suffix and self.parser_registry.supports_format(suffix):
            return suffix
        return DEFAULT_IMPORT_FORMAT

    def import_from(
        self,
        owner_id: str,
        raw_content: Any,
        format_name: Optional[str] = None,
        source_name: str = "",
        parser_type: Optional[str] = None,
        template_id: Optional[str] = None,
    ) -> ImportOutcome:
        """
        Parse content into a new CV and record the import for audit.

        Raises:
            UnsupportedFormatError: No parser for the format
            ParserNotFoundError: Unknown parser_type
            ImportFailedError: Parser or validation errors (carried on .errors)
        """
        resolved_format = self.detect_format(format_name, source_name)
        result = self.parser_registry.parse(raw_content, resolved_format, parser_type)

        if not result.success:
            log_import_result(source_name, resolved_format, errors=result.errors)
            raise ImportFailedError(
                f"Import of '{source_name or resolved_format}' failed",
                errors=result.errors,
                warnings=result.warnings,
            )

        entity = self.create(owner_id, result.data, template_id=template_id)
        quality = result.metadata.data_quality
        self.repository.add_import(
            ImportRecord(
                cv_id=entity.id,
                owner_id=owner_id,
                source_name=source_name,
                format=resolved_format,
                parser_type=result.metadata.parser_type,
                quality=quality,
                warnings=list(result.warnings),
                imported_at=now_exact(),
            )
        )
        self._record_event(
            entity.id,
            owner_id,
            EventType.IMPORTED,
            {"format": resolved_format, "sourceName": source_name, "quality": quality},
        )

        outcome = ImportOutcome(entity=entity, quality=quality, warnings=list(result.warnings))
        log_import_result(source_name, resolved_format, outcome=outcome)
        return outcome

    async def export_as(
        self,
        cv_id: str,
        owner_id: str,
        format_name: str,
        template_id: Optional[str] = None,
        theme: Optional[str] = None,
    ) -> ExportResult:
        """
        Export a CV as json, html or pdf.

        json returns the raw record; html and pdf render with the CV's own
        template unless template_id overrides it.

        Raises:
            CVNotFoundError: Missing or owned by someone else
            UnsupportedFormatError: Format other than json, html or pdf
            TemplateNotFoundError: Unknown template override
            RenderTimeoutError: PDF render exceeded the pipeline timeout
            RenderError: Any other render failure
        """
        # Repository calls run off the event loop
        entity = await asyncio.to_thread(self.get, cv_id, owner_id)
        output_format = format_name.lower()
        if output_format not in SUPPORTED_FORMATS:
            raise UnsupportedFormatError(
                f"Unsupported export format '{format_name}'. "
                f"Supported formats: {', '.join(SUPPORTED_FORMATS)}"
            )

        used_template = template_id or entity.template_id
        if output_format == "json":
            content = json.dumps(entity.record.to_dict(), indent=2, ensure_ascii=False).encode("utf-8")
        else:
            self.template_registry.get_template(used_template)
            if output_format == "html":
                result = self.pipeline.render_to_html(used_template, entity.record, theme)
            else:
                result = await self.pipeline.render_to_pdf(used_template, entity.record, theme)

            if not result.success:
                if result.timed_out:
                    raise RenderTimeoutError(result.error)
                raise RenderError(result.error)
            content = result.content

        await asyncio.to_thread(
            self._record_event,
            cv_id,
            owner_id,
            EventType.EXPORTED,
            {"format": output_format, "templateId": used_template},
        )
        log_export(cv_id, output_format, len(content))
        return ExportResult(
            format=output_format,
            content_type=CONTENT_TYPES[output_format],
            content=content,
            filename=export_filename(entity.title, output_format),
        )

    # Presentation and publishing

    def change_template(self, cv_id: str, owner_id: str, template_id: str) -> CVEntity:
        """
        Switch the CV's template. The version is unchanged: template choice
        is presentation, not content.

        Raises:
            CVNotFoundError: Missing or owned by someone else
            TemplateNotFoundError: Unknown template_id
        """
        entity = self.get(cv_id, owner_id)
        self.template_registry.get_template(template_id)

        self.repository.update_fields(
            cv_id, owner_id, template_id=template_id, updated_at=now_exact()
        )
        self._record_event(
            cv_id,
            owner_id,
            EventType.TEMPLATE_CHANGED,
            {"from": entity.template_id, "to": template_id},
        )
        return self.get(cv_id, owner_id)

    def publish(self, cv_id: str, owner_id: str) -> PublishResult:
        """
        Publish a CV under a fresh random token. Publishing again rotates
        the token, so older public links stop resolving.

        Raises:
            CVNotFoundError: Missing or owned by someone else
        """
        self.get(cv_id, owner_id)
        token = secrets.token_hex(16)
        timestamp = now_exact()
        self.repository.update_fields(
            cv_id,
            owner_id,
            is_published=True,
            public_token=token,
            published_at=timestamp,
            updated_at=timestamp,
        )

        public_path = f"{PUBLIC_PATH_PREFIX.rstrip('/')}/{token}"
        self._record_event(cv_id, owner_id, EventType.PUBLISHED, {"publicPath": public_path})
        log_published(cv_id, public_path)
        return PublishResult(public_path=public_path, token=token)

    def get_public(self, token: str) -> CVEntity:
        """
        Read a published CV by token, without authentication.

        Raises:
            CVNotFoundError: Unknown token, or the CV is not published
        """
        entity = self.repository.find_by_token(token) if token else None
        if entity is None or not entity.is_published:
            raise CVNotFoundError()
        return entity

    # Discovery and statistics

    def get_statistics(self, owner_id: str) -> Dict[str, Any]:
        """
        Per-owner summary.

        Returns:
            {"totalCVs", "publishedCVs", "recentActivity", "averageQuality",
             "mostUsedTemplate", "recentEvents"}
        """
        total = self.repository.count_by_owner(owner_id)
        published = self.repository.count_by_owner(owner_id, published=True)
        recent = self.repository.list_events(owner_id, since=days_ago(RECENT_ACTIVITY_DAYS))
        imports = self.repository.list_imports(owner_id)

        templates = Counter(
            entity.template_id
            for entity in self.repository.list_by_owner(owner_id, limit=max(total, 1))
        )
        average_quality = round(sum(i.quality for i in imports) / len(imports)) if imports else 0

        return {
            "totalCVs": total,
            "publishedCVs": published,
            "recentActivity": len(recent),
            "averageQuality": average_quality,
            "mostUsedTemplate": templates.most_common(1)[0][0] if templates else None,
            "recentEvents": [event.to_dict() for event in recent[-10:]],
        }

    def list_templates(self) -> List[Dict[str, Any]]:
        return [meta.to_dict() for meta in self.template_registry.list_metadata()]

    def list_parsers(self) -> List[Dict[str, Any]]:
        return [parser.metadata.to_dict() for parser in self.parser_registry.list_parsers()]

    # Helpers

    @staticmethod
    def _checked_record(record: RecordLike) -> CVRecord:
        report = validate(record)
        if not report.valid:
            raise CVValidationError("Invalid CV record", report.errors)
        return record if isinstance(record, CVRecord) else CVRecord.from_dict(record)

    def _snapshot(self, cv_id: str, version: int, title: str, record: CVRecord, timestamp: str) -> None:
        self.repository.add_version(
            CVVersion(cv_id=cv_id, version=version, title=title, record=record, created_at=timestamp)
        )

    def _record_event(
        self, cv_id: str, owner_id: str, event_type: EventType, detail: Optional[Dict[str, Any]] = None
    ) -> None:
        self.repository.add_event(
            CVEvent(
                cv_id=cv_id,
                owner_id=owner_id,
                event_type=event_type,
                detail=detail or {},
                timestamp=now_exact(),
            )
        )
