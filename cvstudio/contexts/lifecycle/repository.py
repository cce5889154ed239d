"""
CV persistence.

CVRepository is the narrow interface the lifecycle service depends on.
SQLiteCVRepository is the default implementation: one SQLite file (or
":memory:") holding CVs, version snapshots, import audit records and
activity events.

Version increments are compare-and-increment updates
(UPDATE ... WHERE version = ?), so concurrent edits can never both win.
"""

import json
import sqlite3
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from cvstudio.contexts.lifecycle.entities import (
    CVEntity,
    CVEvent,
    CVVersion,
    EventType,
    ImportRecord,
)
from cvstudio.contexts.schema import CVRecord

# Columns update_fields() may change; content changes go through update_record()
UPDATABLE_FIELDS = ("title", "template_id", "is_published", "public_token", "published_at", "updated_at")


class CVRepository(ABC):
    """Persistence collaborator for the lifecycle service."""

    @abstractmethod
    def insert(self, entity: CVEntity) -> None: ...

    @abstractmethod
    def find(self, cv_id: str, owner_id: Optional[str] = None) -> Optional[CVEntity]:
        """Find by id; when owner_id is given, only that owner's CV matches."""

    @abstractmethod
    def find_by_token(self, token: str) -> Optional[CVEntity]:
        """Find a published CV by public token."""

    @abstractmethod
    def list_by_owner(self, owner_id: str, limit: int = 10, offset: int = 0) -> List[CVEntity]: ...

    @abstractmethod
    def count_by_owner(self, owner_id: str, published: Optional[bool] = None) -> int: ...

    @abstractmethod
    def update_record(
        self,
        cv_id: str,
        owner_id: str,
        record: CVRecord,
        title: str,
        expected_version: int,
        updated_at: str,
    ) -> Optional[int]:
        """
        Replace content if the stored version still equals expected_version.

        Returns:
            The new version, or None when the CV is missing, not owned, or
            another update already advanced the version
        """

    @abstractmethod
    def update_fields(self, cv_id: str, owner_id: str, **fields: Any) -> bool:
        """Update presentation/publishing columns without touching the version."""

    @abstractmethod
    def delete(self, cv_id: str, owner_id: str) -> bool:
        """Delete a CV and its version snapshots; audit records stay."""

    @abstractmethod
    def add_import(self, record: ImportRecord) -> None: ...

    @abstractmethod
    def list_imports(self, owner_id: str, cv_id: Optional[str] = None) -> List[ImportRecord]: ...

    @abstractmethod
    def add_event(self, event: CVEvent) -> None: ...

    @abstractmethod
    def list_events(
        self, owner_id: str, since: Optional[str] = None, cv_id: Optional[str] = None
    ) -> List[CVEvent]: ...

    @abstractmethod
    def add_version(self, snapshot: CVVersion) -> None: ...

    @abstractmethod
    def list_versions(self, cv_id: str) -> List[CVVersion]: ...


class SQLiteCVRepository(CVRepository):
    """
    SQLite-backed CV repository.

    The schema is created on first connection. A single connection is
    shared behind a lock so the repository can be used from worker threads.

    Example:
        repo = SQLiteCVRepository(Path("data/cvstudio.db"))
        repo = SQLiteCVRepository(":memory:")
    """

    def __init__(self, db_path: Union[Path, str] = ":memory:"):
        self.db_path = db_path
        if str(db_path) != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        self._lock = threading.Lock()
        self.conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self.conn.row_factory = sqlite3.Row  # Enable column access by name
        self._create_schema()

    def _create_schema(self) -> None:
        with self._lock, self.conn:
            self.conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS cvs (
                    id TEXT PRIMARY KEY,
                    owner_id TEXT NOT NULL,
                    title TEXT NOT NULL,
                    record TEXT NOT NULL,
                    template_id TEXT NOT NULL,
                    version INTEGER NOT NULL DEFAULT 1,
                    is_published INTEGER NOT NULL DEFAULT 0,
                    public_token TEXT UNIQUE,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    published_at TEXT
                );
                CREATE INDEX IF NOT EXISTS idx_cvs_owner ON cvs(owner_id);

                CREATE TABLE IF NOT EXISTS cv_versions (
                    cv_id TEXT NOT NULL,
                    version INTEGER NOT NULL,
                    title TEXT NOT NULL,
                    record TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    PRIMARY KEY (cv_id, version)
                );

                CREATE TABLE IF NOT EXISTS cv_imports (
                    id TEXT PRIMARY KEY,
                    cv_id TEXT NOT NULL,
                    owner_id TEXT NOT NULL,
                    source_name TEXT NOT NULL,
                    format TEXT NOT NULL,
                    parser_type TEXT NOT NULL,
                    quality INTEGER NOT NULL,
                    warnings TEXT NOT NULL,
                    imported_at TEXT NOT NULL
                );
                CREATE INDEX IF NOT EXISTS idx_imports_owner ON cv_imports(owner_id);

                CREATE TABLE IF NOT EXISTS cv_events (
                    id TEXT PRIMARY KEY,
                    cv_id TEXT NOT NULL,
                    owner_id TEXT NOT NULL,
                    event_type TEXT NOT NULL,
                    detail TEXT NOT NULL,
                    timestamp TEXT NOT NULL
                );
                CREATE INDEX IF NOT EXISTS idx_events_owner ON cv_events(owner_id, timestamp);
                """
            )

    def _query(self, sql: str, params: tuple = ()) -> List[sqlite3.Row]:
        with self._lock:
            return self.conn.execute(sql, params).fetchall()

    def _execute(self, sql: str, params: tuple = ()) -> int:
        """Run one statement in its own transaction; returns affected row count."""
        with self._lock, self.conn:
            return self.conn.execute(sql, params).rowcount

    # CVs

    def insert(self, entity: CVEntity) -> None:
        self._execute(
            """
            INSERT INTO cvs (id, owner_id, title, record, template_id, version, is_published,
                             public_token, created_at, updated_at, published_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                entity.id,
                entity.owner_id,
                entity.title,
                json.dumps(entity.record.to_dict()),
                entity.template_id,
                entity.version,
                int(entity.is_published),
                entity.public_token,
                entity.created_at,
                entity.updated_at,
                entity.published_at,
            ),
        )

    def find(self, cv_id: str, owner_id: Optional[str] = None) -> Optional[CVEntity]:
        if owner_id is None:
            rows = self._query("SELECT * FROM cvs WHERE id = ?", (cv_id,))
        else:
            rows = self._query("SELECT * FROM cvs WHERE id = ? AND owner_id = ?", (cv_id, owner_id))
        return _row_to_entity(rows[0]) if rows else None

    def find_by_token(self, token: str) -> Optional[CVEntity]:
        rows = self._query(
            "SELECT * FROM cvs WHERE public_token = ? AND is_published = 1", (token,)
        )
        return _row_to_entity(rows[0]) if rows else None

    def list_by_owner(self, owner_id: str, limit: int = 10, offset: int = 0) -> List[CVEntity]:
        rows = self._query(
            "SELECT * FROM cvs WHERE owner_id = ? ORDER BY updated_at DESC, id LIMIT ? OFFSET ?",
            (owner_id, limit, offset),
        )
        return [_row_to_entity(row) for row in rows]

    def count_by_owner(self, owner_id: str, published: Optional[bool] = None) -> int:
        if published is None:
            rows = self._query("SELECT COUNT(*) FROM cvs WHERE owner_id = ?", (owner_id,))
        else:
            rows = self._query(
                "SELECT COUNT(*) FROM cvs WHERE owner_id = ? AND is_published = ?",
                (owner_id, int(published)),
            )
        return rows[0][0]

    def update_record(
        self,
        cv_id: str,
        owner_id: str,
        record: CVRecord,
        title: str,
        expected_version: int,
        updated_at: str,
    ) -> Optional[int]:
        changed = self._execute(
            """
            UPDATE cvs SET record = ?, title = ?, version = version + 1, updated_at = ?
            WHERE id = ? AND owner_id = ? AND version = ?
            """,
            (json.dumps(record.to_dict()), title, updated_at, cv_id, owner_id, expected_version),
        )
        return expected_version + 1 if changed == 1 else None

    def update_fields(self, cv_id: str, owner_id: str, **fields: Any) -> bool:
        unknown = set(fields) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        if not fields:
            return False

        assignments = ", ".join(f"{name} = ?" for name in fields)
        values = tuple(int(v) if isinstance(v, bool) else v for v in fields.values())
        changed = self._execute(
            f"UPDATE cvs SET {assignments} WHERE id = ? AND owner_id = ?",
            values + (cv_id, owner_id),
        )
        return changed == 1

    def delete(self, cv_id: str, owner_id: str) -> bool:
        with self._lock, self.conn:
            changed = self.conn.execute(
                "DELETE FROM cvs WHERE id = ? AND owner_id = ?", (cv_id, owner_id)
            ).rowcount
            if changed:
                self.conn.execute("DELETE FROM cv_versions WHERE cv_id = ?", (cv_id,))
        return changed == 1

    # Side records

    def add_import(self, record: ImportRecord) -> None:
        self._execute(
            """
            INSERT INTO cv_imports (id, cv_id, owner_id, source_name, format, parser_type,
                                    quality, warnings, imported_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.id,
                record.cv_id,
                record.owner_id,
                record.source_name,
                record.format,
                record.parser_type,
                record.quality,
                json.dumps(record.warnings),
                record.imported_at,
            ),
        )

    def list_imports(self, owner_id: str, cv_id: Optional[str] = None) -> List[ImportRecord]:
        sql = "SELECT * FROM cv_imports WHERE owner_id = ?"
        params: tuple = (owner_id,)
        if cv_id is not None:
            sql += " AND cv_id = ?"
            params += (cv_id,)
        rows = self._query(sql + " ORDER BY imported_at", params)
        return [
            ImportRecord(
                id=row["id"],
                cv_id=row["cv_id"],
                owner_id=row["owner_id"],
                source_name=row["source_name"],
                format=row["format"],
                parser_type=row["parser_type"],
                quality=row["quality"],
                warnings=json.loads(row["warnings"]),
                imported_at=row["imported_at"],
            )
            for row in rows
        ]

    def add_event(self, event: CVEvent) -> None:
        self._execute(
            "INSERT INTO cv_events (id, cv_id, owner_id, event_type, detail, timestamp) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (
                event.id,
                event.cv_id,
                event.owner_id,
                event.event_type.value,
                json.dumps(event.detail),
                event.timestamp,
            ),
        )

    def list_events(
        self, owner_id: str, since: Optional[str] = None, cv_id: Optional[str] = None
    ) -> List[CVEvent]:
        sql = "SELECT * FROM cv_events WHERE owner_id = ?"
        params: tuple = (owner_id,)
        if since is not None:
            sql += " AND timestamp >= ?"
            params += (since,)
        if cv_id is not None:
            sql += " AND cv_id = ?"
            params += (cv_id,)
        rows = self._query(sql + " ORDER BY timestamp", params)
        return [
            CVEvent(
                id=row["id"],
                cv_id=row["cv_id"],
                owner_id=row["owner_id"],
                event_type=EventType(row["event_type"]),
                detail=json.loads(row["detail"]),
                timestamp=row["timestamp"],
            )
            for row in rows
        ]

    def add_version(self, snapshot: CVVersion) -> None:
        self._execute(
            "INSERT INTO cv_versions (cv_id, version, title, record, created_at) VALUES (?, ?, ?, ?, ?)",
            (
                snapshot.cv_id,
                snapshot.version,
                snapshot.title,
                json.dumps(snapshot.record.to_dict()),
                snapshot.created_at,
            ),
        )

    def list_versions(self, cv_id: str) -> List[CVVersion]:
        rows = self._query("SELECT * FROM cv_versions WHERE cv_id = ? ORDER BY version", (cv_id,))
        return [
            CVVersion(
                cv_id=row["cv_id"],
                version=row["version"],
                title=row["title"],
                record=CVRecord.from_dict(json.loads(row["record"])),
                created_at=row["created_at"],
            )
            for row in rows
        ]

    def close(self) -> None:
        with self._lock:
            self.conn.close()


def _row_to_entity(row: sqlite3.Row) -> CVEntity:
    return CVEntity(
        id=row["id"],
        owner_id=row["owner_id"],
        title=row["title"],
        record=CVRecord.from_dict(json.loads(row["record"])),
        template_id=row["template_id"],
        version=row["version"],
        is_published=bool(row["is_published"]),
        public_token=row["public_token"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        published_at=row["published_at"],
    )
