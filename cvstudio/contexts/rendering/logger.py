"""
Rendering context logger.

Provides logging interface for rendering context with automatic [render] prefix.
All rendering modules should import from this module, not from loguru directly.
"""

from loguru import logger

CONTEXT_PREFIX = "[render]"


def _log_info(message: str) -> None:
    """Log info message with [render] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [render] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [render] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [render] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [render] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level rendering-specific logging helpers


def log_engine_starting(engine_name: str) -> None:
    _log_info(f"Starting rendering engine: {engine_name}")


def log_engine_ready(engine_name: str, elapsed_time: float) -> None:
    _log_success(f"Rendering engine ready: {engine_name} ({elapsed_time:.2f}s)")


def log_engine_failed(engine_name: str, error: Exception) -> None:
    _log_error(f"Rendering engine failed to start: {engine_name}: {error}")


def log_render_start(template_id: str, output_format: str) -> None:
    _log_info(f"Rendering '{template_id}' to {output_format}")


def log_render_result(template_id: str, result, elapsed_time: float) -> None:
    """
    Log a render result.

    Args:
        template_id: Template used
        result: RenderResult from the pipeline
        elapsed_time: Seconds spent rendering
    """
    if result.success:
        size = len(result.content) if result.content else 0
        pages = f", {result.page_count} pages" if result.page_count else ""
        _log_success(
            f"{template_id} -> {result.format}: {size} bytes{pages} ({elapsed_time:.2f}s)"
        )
        if result.file_path:
            _log_debug(f"  Saved: {result.file_path}")
    elif result.timed_out:
        _log_warning(f"{template_id} -> {result.format}: {result.error}")
    else:
        _log_error(f"{template_id} -> {result.format} failed: {result.error}")
