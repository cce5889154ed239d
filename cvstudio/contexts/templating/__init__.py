"""
Templating Context

Responsibilities:
- Turns canonical CV records into style-specific HTML markup
- Owns template metadata, markup sources, stylesheets and theme palettes
- Resolves templates by id, category, format and keyword

Owns: Visual styles, markup engine seam, theme palettes
Never: Parses source formats or drives the rendering engine
"""

from cvstudio.contexts.templating.base_template import CATEGORIES, CVTemplate, TemplateMetadata
from cvstudio.contexts.templating.markup_engine import (
    CompiledMarkup,
    JinjaMarkupEngine,
    MarkupEngine,
)
from cvstudio.contexts.templating.template_registry import TemplateRegistry
from cvstudio.contexts.templating.templates import (
    DEFAULT_TEMPLATE_CLASSES,
    AwesomeCVTemplate,
    ClassicTemplate,
    CreativeTemplate,
    ElegantTemplate,
    ExecutiveTemplate,
    MinimalTemplate,
    ModernTemplate,
    SimpleTemplate,
    TechTemplate,
)
from cvstudio.contexts.templating.themes import DEFAULT_THEME, ThemePalette, list_themes, resolve_theme

__all__ = [
    # Template interface
    "CVTemplate",
    "TemplateMetadata",
    "CATEGORIES",
    # Markup engine seam
    "MarkupEngine",
    "CompiledMarkup",
    "JinjaMarkupEngine",
    # Shipped templates
    "ModernTemplate",
    "TechTemplate",
    "ClassicTemplate",
    "ExecutiveTemplate",
    "CreativeTemplate",
    "MinimalTemplate",
    "ElegantTemplate",
    "SimpleTemplate",
    "AwesomeCVTemplate",
    "DEFAULT_TEMPLATE_CLASSES",
    # Registry
    "TemplateRegistry",
    # Themes
    "ThemePalette",
    "DEFAULT_THEME",
    "resolve_theme",
    "list_themes",
]
