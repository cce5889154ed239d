"""
Intake context logger.

Parsers and the parser registry log through these helpers, which add the
[intake] prefix.
"""

from loguru import logger

CONTEXT_PREFIX = "[intake]"


def _log_success(message: str) -> None:
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    logger.debug(f"{CONTEXT_PREFIX} {message}")


def log_parser_registered(parser_type: str, formats) -> None:
    _log_debug(f"Registered parser '{parser_type}' for formats: {', '.join(formats)}")


def log_parser_selected(parser_type: str, format_name: str, explicit: bool) -> None:
    how = "requested" if explicit else "auto-detected"
    _log_debug(f"Using parser '{parser_type}' ({how}) for format '{format_name}'")


def log_parse_result(result, verbose: bool = False) -> None:
    """
    Log a parse result with its diagnostics.

    Args:
        result: ParseResult from CVParser.parse()
        verbose: Show every warning instead of the first few
    """
    meta = result.metadata
    if result.success:
        _log_success(
            f"Parsed with '{meta.parser_type}': quality {meta.data_quality}/100 "
            f"({meta.parse_time_ms:.1f}ms)"
        )
    else:
        _log_error(f"Parse with '{meta.parser_type}' failed: {len(result.errors)} errors")
        for i, err in enumerate(result.errors[:5], 1):
            _log_error(f"  Error {i}: {err}")

    if result.warnings:
        warning_limit = len(result.warnings) if verbose else 3
        _log_debug(f"{len(result.warnings)} warnings")
        for i, warn in enumerate(result.warnings[:warning_limit], 1):
            _log_debug(f"  Warning {i}: {warn}")
