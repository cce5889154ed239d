"""
Logger setup shared by every context.

Provides loguru sink configuration with a provenance header. Context modules
define their own prefixed wrappers in contexts/{context}/logger.py and never
configure sinks themselves; entry points (the CLI) call setup_logger().
"""

import sys
from pathlib import Path
from typing import Dict, Optional

from loguru import logger

from cvstudio import __version__

LEVEL_COLORS = {
    "WARNING": "<yellow>",
    "ERROR": "<red>",
    "CRITICAL": "<bold><red>",
}

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <7} | {message}"
CONSOLE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss} | <level>{level: <7}</level> | <level>{message}</level>"
)


def setup_logger(
    context_name: str,
    log_dir: Path,
    extra_provenance: Optional[Dict[str, object]] = None,
    console_level: str = "INFO",
    level_colors: Optional[Dict[str, str]] = None,
) -> Path:
    """
    Configure loguru sinks for one session.

    Replaces any existing sinks with a DEBUG file sink at
    {log_dir}/{context_name}.log and a colorized console sink, then writes
    the provenance header.

    Args:
        context_name: Session identifier used as the log file stem (e.g., "cli")
        log_dir: Directory for this session's log file (created if missing)
        extra_provenance: Additional key-value pairs for the provenance header
        console_level: Minimum level shown on stdout
        level_colors: Overrides for LEVEL_COLORS

    Returns:
        Path to the log file
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"{context_name}.log"

    logger.remove()

    for level_name, color in {**LEVEL_COLORS, **(level_colors or {})}.items():
        logger.level(level_name, color=color)

    logger.add(log_file, format=FILE_FORMAT, level="DEBUG")
    logger.add(sys.stdout, format=CONSOLE_FORMAT, level=console_level, colorize=True)

    log_provenance(extra_provenance)

    return log_file


def log_provenance(extra_context: Optional[Dict[str, object]] = None) -> None:
    """
    Log where and how the current process was started.

    Args:
        extra_context: Additional key-value pairs to log
    """
    logger.info("=" * 80)
    logger.info(f"CV Studio: {__version__}")
    logger.info(f"Command: {' '.join(sys.argv)}")
    logger.info(f"Working directory: {Path.cwd()}")
    logger.info(f"Python: {sys.version.split()[0]}")

    for key, value in (extra_context or {}).items():
        logger.info(f"{key}: {value}")

    logger.info("=" * 80)
