"""
Markup engine abstraction.

Templates hand their markup source to a MarkupEngine and get back a
CompiledMarkup they can render with data. The concrete technology
(Jinja2 by default) stays behind this interface.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Iterable, Mapping, Optional

from jinja2 import ChainableUndefined, Environment, Template


class CompiledMarkup(ABC):
    """Markup source compiled once, rendered many times."""

    @abstractmethod
    def render(self, data: Mapping[str, Any]) -> str:
        """Substitute data into the markup."""


class MarkupEngine(ABC):
    """Compiles markup source text."""

    @abstractmethod
    def compile(self, source: str, name: Optional[str] = None) -> CompiledMarkup:
        """
        Compile markup source.

        Raises:
            Engine-specific syntax errors; callers wrap them
        """


# Filters available to every template


def month_year(value: Any) -> str:
    """
    Format an ISO date as "Jan 2020".

    Example:
        >>> month_year("2020-01-15")
        'Jan 2020'
    """
    if not value:
        return ""
    try:
        parsed = date.fromisoformat(str(value)[:10])
    except ValueError:
        return str(value)
    return parsed.strftime("%b %Y")


def date_range(start: Any, end: Any = None, ongoing_label: str = "Present") -> str:
    """
    Format a start/end pair as "Jan 2020 - Dec 2022".

    A missing end date after a start date reads as ongoing_label.
    """
    start_text = month_year(start)
    end_text = month_year(end)
    if not start_text:
        return end_text
    return f"{start_text} - {end_text or ongoing_label}"


def join_nonempty(values: Iterable[Any], separator: str = " | ") -> str:
    """Join the truthy values with separator."""
    if not values:
        return ""
    return separator.join(str(value) for value in values if value)


class _JinjaCompiledMarkup(CompiledMarkup):
    def __init__(self, template: Template):
        self._template = template

    def render(self, data: Mapping[str, Any]) -> str:
        return self._template.render(**data)


class JinjaMarkupEngine(MarkupEngine):
    """
    Jinja2-backed markup engine.

    HTML autoescaping is on. Undefined values are chainable and render as
    empty strings, so a missing optional field never fails a render.
    """

    def __init__(self):
        self.env = Environment(
            autoescape=True,
            # Missing optional fields render empty instead of raising
            undefined=ChainableUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self.env.filters["month_year"] = month_year
        self.env.filters["date_range"] = date_range
        self.env.filters["join_nonempty"] = join_nonempty

    def compile(self, source: str, name: Optional[str] = None) -> CompiledMarkup:
        template = self.env.from_string(source)
        if name:
            template.name = name
        return _JinjaCompiledMarkup(template)
