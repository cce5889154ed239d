"""
Templating context logger.

Markup compilation and theme resolution log through these helpers, which add
the [template] prefix. Sinks are configured by the caller (see utils.logger).
"""

from loguru import logger

CONTEXT_PREFIX = "[template]"


def _log_warning(message: str) -> None:
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    logger.debug(f"{CONTEXT_PREFIX} {message}")


def log_template_registered(template_id: str, category: str) -> None:
    _log_debug(f"Registered template '{template_id}' ({category})")


def log_theme_fallback(requested: str, fallback: str) -> None:
    _log_warning(f"Unknown theme '{requested}', falling back to '{fallback}'")


def log_render_markup(template_id: str, theme: str, num_chars: int) -> None:
    _log_debug(f"Rendered '{template_id}' with theme '{theme}' ({num_chars} chars)")
