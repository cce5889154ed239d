"""
Lifecycle entities.

CVEntity wraps a CVRecord with ownership, presentation and publishing
metadata. ImportRecord, CVEvent and CVVersion are side-records kept apart
from the entity itself.
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from cvstudio.contexts.schema import CVRecord


def new_id() -> str:
    return str(uuid.uuid4())


class CVState(Enum):
    """Publication state. Publishing is one-way: there is no unpublish."""

    DRAFT = "draft"
    PUBLISHED = "published"


class EventType(Enum):
    CREATED = "created"
    UPDATED = "updated"
    IMPORTED = "imported"
    EXPORTED = "exported"
    TEMPLATE_CHANGED = "template_changed"
    PUBLISHED = "published"
    DELETED = "deleted"


@dataclass
class CVEntity:
    """
    Persisted, owned and versioned CV.

    Attributes:
        id: Opaque identifier
        owner_id: Owning user, supplied by the authentication collaborator
        title: Display title
        record: Canonical CV content
        template_id: Template used for exports unless overridden
        version: Starts at 1, +1 per content update only
        is_published: Whether the public token resolves
        public_token: Opaque token for unauthenticated reads
        created_at, updated_at, published_at: UTC ISO 8601 timestamps
    """

    id: str
    owner_id: str
    title: str
    record: CVRecord
    template_id: str
    version: int = 1
    is_published: bool = False
    public_token: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""
    published_at: Optional[str] = None

    @property
    def state(self) -> CVState:
        return CVState.PUBLISHED if self.is_published else CVState.DRAFT

    def to_dict(self, include_record: bool = True) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "ownerId": self.owner_id,
            "title": self.title,
            "templateId": self.template_id,
            "version": self.version,
            "isPublished": self.is_published,
            "publicToken": self.public_token,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "publishedAt": self.published_at,
        }
        if include_record:
            data["record"] = self.record.to_dict()
        return data


@dataclass
class ImportRecord:
    """Audit record of one import, kept even after the CV is deleted."""

    cv_id: str
    owner_id: str
    source_name: str
    format: str
    parser_type: str
    quality: int
    warnings: List[str] = field(default_factory=list)
    imported_at: str = ""
    id: str = field(default_factory=new_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "cvId": self.cv_id,
            "ownerId": self.owner_id,
            "sourceName": self.source_name,
            "format": self.format,
            "parserType": self.parser_type,
            "quality": self.quality,
            "warnings": list(self.warnings),
            "importedAt": self.imported_at,
        }


@dataclass
class CVEvent:
    cv_id: str
    owner_id: str
    event_type: EventType
    detail: Dict[str, Any] = field(default_factory=dict)
    timestamp: str = ""
    id: str = field(default_factory=new_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "cvId": self.cv_id,
            "ownerId": self.owner_id,
            "eventType": self.event_type.value,
            "detail": dict(self.detail),
            "timestamp": self.timestamp,
        }


@dataclass
class CVVersion:
    """Immutable snapshot written on create and on each content update."""

    cv_id: str
    version: int
    title: str
    record: CVRecord
    created_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cvId": self.cv_id,
            "version": self.version,
            "title": self.title,
            "record": self.record.to_dict(),
            "createdAt": self.created_at,
        }


# Service results


@dataclass
class ImportOutcome:
    entity: CVEntity
    quality: int
    warnings: List[str] = field(default_factory=list)


@dataclass
class ExportResult:
    """
    Exported document.

    Attributes:
        format: "pdf", "html" or "json"
        content_type: MIME type for the HTTP boundary
        content: Document bytes
        filename: Suggested download name
    """

    format: str
    content_type: str
    content: bytes
    filename: str


@dataclass
class PublishResult:
    public_path: str
    token: str
