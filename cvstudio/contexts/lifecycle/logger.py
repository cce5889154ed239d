"""
Lifecycle context logger.

Provides logging interface for lifecycle context with automatic [lifecycle] prefix.
All lifecycle modules should import from this module, not from loguru directly.
"""

from loguru import logger

CONTEXT_PREFIX = "[lifecycle]"


def _log_info(message: str) -> None:
    """Log info message with [lifecycle] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [lifecycle] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [lifecycle] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [lifecycle] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [lifecycle] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level lifecycle-specific logging helpers


def log_cv_created(entity) -> None:
    _log_success(f"Created CV {entity.id} '{entity.title}' (template: {entity.template_id})")


def log_cv_updated(cv_id: str, version: int) -> None:
    _log_info(f"Updated CV {cv_id} -> version {version}")


def log_cv_deleted(cv_id: str) -> None:
    _log_info(f"Deleted CV {cv_id}")


def log_version_conflict(cv_id: str, expected_version: int) -> None:
    _log_warning(f"Version conflict on CV {cv_id}: expected version {expected_version}")


def log_import_result(source_name: str, format_name: str, outcome=None, errors=None) -> None:
    """
    Log the outcome of an import.

    Args:
        source_name: Uploaded file name (may be empty)
        format_name: Resolved import format
        outcome: ImportOutcome on success
        errors: Parser errors on failure
    """
    label = source_name or f"<{format_name} content>"
    if outcome is not None:
        _log_success(f"Imported {label} as CV {outcome.entity.id} (quality {outcome.quality}/100)")
        for warning in outcome.warnings[:3]:
            _log_debug(f"  Warning: {warning}")
    else:
        _log_error(f"Import of {label} failed: {len(errors or [])} errors")
        for i, err in enumerate((errors or [])[:5], 1):
            _log_error(f"  Error {i}: {err}")


def log_export(cv_id: str, format_name: str, num_bytes: int) -> None:
    _log_success(f"Exported CV {cv_id} as {format_name} ({num_bytes} bytes)")


def log_published(cv_id: str, public_path: str) -> None:
    _log_success(f"Published CV {cv_id} at {public_path}")
