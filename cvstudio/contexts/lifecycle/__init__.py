"""
Lifecycle Context

Responsibilities:
- Creates, updates, versions and deletes owned CVs
- Imports CVs through the parser registry and exports them through the rendering pipeline
- Publishes CVs under opaque public tokens
- Keeps import audit records, activity events and version snapshots

Owns: CV entity state, ownership checks, persistence interface
Never: Parses formats or renders markup itself
"""

from cvstudio.contexts.lifecycle.entities import (
    CVEntity,
    CVEvent,
    CVState,
    CVVersion,
    EventType,
    ExportResult,
    ImportOutcome,
    ImportRecord,
    PublishResult,
)
from cvstudio.contexts.lifecycle.repository import CVRepository, SQLiteCVRepository
from cvstudio.contexts.lifecycle.service import CVLifecycleService

__all__ = [
    # Service
    "CVLifecycleService",
    # Persistence
    "CVRepository",
    "SQLiteCVRepository",
    # Entities and side records
    "CVEntity",
    "CVState",
    "CVEvent",
    "EventType",
    "CVVersion",
    "ImportRecord",
    # Service results
    "ImportOutcome",
    "ExportResult",
    "PublishResult",
]
