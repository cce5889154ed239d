"""
CV template base class.

A CVTemplate pairs static metadata with a markup source and stylesheet
stored under types/{template_id}/:

    types/modern/template.html.jinja   body markup (Jinja2 by default)
    types/modern/style.css             stylesheet, inlined by the rendering pipeline

Subclasses customise the data handed to the markup through prepare_data().
"""

import os
from abc import ABC
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from dotenv import load_dotenv

from cvstudio.contexts.schema import CVRecord, ValidationReport
from cvstudio.contexts.templating.logger import log_render_markup
from cvstudio.contexts.templating.markup_engine import CompiledMarkup, JinjaMarkupEngine, MarkupEngine
from cvstudio.contexts.templating.themes import ThemePalette, resolve_theme
from cvstudio.exceptions import TemplateRenderError
from cvstudio.utils.timestamp import today

load_dotenv()
TYPES_PATH = Path(os.getenv("TEMPLATE_TYPES_PATH", Path(__file__).parent / "types"))

TEMPLATE_FILENAME = "template.html.jinja"
STYLESHEET_FILENAME = "style.css"

CATEGORIES = ("modern", "classic", "creative", "minimal")


@dataclass(frozen=True)
class TemplateMetadata:
    """
    Static description of a template.

    Attributes:
        id: Registry key, also the types/ directory name
        display_name: Human-readable name
        description: One-line summary used by search
        category: One of CATEGORIES
        output_format: Markup produced by render() (always "html" today)
        supported_sections: Record sections the markup displays
        default_theme: Theme used when the caller names none
        version: Template revision
    """

    id: str
    display_name: str
    description: str
    category: str
    output_format: str = "html"
    supported_sections: tuple = ("personalInfo", "experience", "education", "skills")
    default_theme: str = "blue"
    version: str = "1.0.0"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "displayName": self.display_name,
            "description": self.description,
            "category": self.category,
            "outputFormat": self.output_format,
            "supportedSections": list(self.supported_sections),
            "defaultTheme": self.default_theme,
            "version": self.version,
        }


class CVTemplate(ABC):
    """
    Base class for visual styles.

    Subclasses set `metadata` and may override prepare_data(). The markup
    is compiled lazily on first render and cached.
    """

    metadata: TemplateMetadata

    def __init__(self, markup_engine: MarkupEngine = None, types_path: Path = None):
        """
        Args:
            markup_engine: Engine compiling the markup (defaults to JinjaMarkupEngine)
            types_path: Directory holding one subdirectory per template id
                        (defaults to TEMPLATE_TYPES_PATH)
        """
        if types_path is None:
            types_path = TYPES_PATH

        self.markup_engine = markup_engine or JinjaMarkupEngine()
        self.types_path = Path(types_path)
        self._compiled: Optional[CompiledMarkup] = None

    @property
    def template_dir(self) -> Path:
        return self.types_path / self.metadata.id

    @property
    def source(self) -> str:
        """Raw markup source."""
        path = self.template_dir / TEMPLATE_FILENAME
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise TemplateRenderError(
                f"Template markup not found at {path}", template_id=self.metadata.id, original_error=e
            ) from e

    @property
    def stylesheet(self) -> str:
        """Stylesheet text, empty when the template ships none."""
        path = self.template_dir / STYLESHEET_FILENAME
        return path.read_text(encoding="utf-8") if path.exists() else ""

    def compile(self) -> CompiledMarkup:
        if self._compiled is None:
            try:
                self._compiled = self.markup_engine.compile(self.source, name=self.metadata.id)
            except TemplateRenderError:
                raise
            except Exception as e:
                raise TemplateRenderError(
                    "Failed to compile template", template_id=self.metadata.id, original_error=e
                ) from e
        return self._compiled

    def render(
        self, record: Union[CVRecord, Mapping[str, Any]], options: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Render a record to markup.

        Sections with no entries are omitted; missing optional fields render
        empty.

        Args:
            record: CVRecord or its camelCase dict form
            options: Render options ("theme" selects the palette)

        Returns:
            Rendered markup (an HTML body fragment)

        Raises:
            TemplateRenderError: On any compile or render failure
        """
        options = options or {}
        data = record.to_dict() if isinstance(record, CVRecord) else dict(record or {})

        try:
            context = self.prepare_data(data, options)
            markup = self.compile().render(context)
        except TemplateRenderError:
            raise
        except Exception as e:
            raise TemplateRenderError(
                "Failed to render template", template_id=self.metadata.id, original_error=e
            ) from e

        log_render_markup(self.metadata.id, context["theme_name"], len(markup))
        return markup

    def prepare_data(self, data: Dict[str, Any], options: Dict[str, Any]) -> Dict[str, Any]:
        """
        Build the markup context from record data.

        Subclasses extend this to add style-specific values; they should
        call super() and add keys rather than replace the returned dict.
        """
        theme = self.apply_theme(options.get("theme"))
        return {
            **data,
            "theme": theme.to_dict(),
            "theme_name": theme.name,
            "sections": [s for s in self.metadata.supported_sections if data.get(s)],
            "generated_on": today(),
        }

    def validate_cv_data(self, record: Union[CVRecord, Mapping[str, Any], None]) -> ValidationReport:
        """
        Check the record has the keys this template needs.

        A shape check only: content rules belong to schema validation.
        """
        data = record.to_dict() if isinstance(record, CVRecord) else record
        if not isinstance(data, Mapping):
            return ValidationReport(valid=False, errors=["CV data must be an object"])

        errors = []
        if not isinstance(data.get("personalInfo"), Mapping):
            errors.append("Personal information is required")
        if not isinstance(data.get("experience"), list):
            errors.append("Experience section is required")
        if not isinstance(data.get("education"), list):
            errors.append("Education section is required")
        return ValidationReport(valid=not errors, errors=errors)

    def apply_theme(self, theme: Optional[str] = None) -> ThemePalette:
        """Resolve a theme name (default: this template's default theme) to a palette."""
        return resolve_theme(theme or self.metadata.default_theme)

    def supports_section(self, section: str) -> bool:
        return section in self.metadata.supported_sections

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.metadata.id!r})"
