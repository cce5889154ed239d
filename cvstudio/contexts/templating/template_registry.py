"""
Template Registry

Explicitly constructed registry of CVTemplate instances keyed by template id.
Build one with cvstudio.bootstrap.create_template_registry().
"""

import os
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from cvstudio.contexts.templating.base_template import CVTemplate, TemplateMetadata
from cvstudio.contexts.templating.logger import log_template_registered
from cvstudio.exceptions import DuplicateRegistrationError, TemplateNotFoundError

load_dotenv()
DEFAULT_TEMPLATE_ID = os.getenv("DEFAULT_TEMPLATE_ID", "modern")
FALLBACK_TEMPLATE_ID = "modern"

# Display order for get_popular(); unlisted templates follow in registration order
POPULAR_ORDER = ("modern", "classic", "tech", "executive", "minimal", "creative")


class TemplateRegistry:
    """
    Registry of CV templates.

    Example:
        registry = TemplateRegistry()
        registry.register(ModernTemplate())
        html = registry.get_template("modern").render(record)
    """

    def __init__(self, default_template_id: Optional[str] = None):
        self._templates: Dict[str, CVTemplate] = {}
        self.default_template_id = default_template_id or DEFAULT_TEMPLATE_ID

    def register(self, template: CVTemplate) -> None:
        """
        Raises:
            DuplicateRegistrationError: If the template id is already registered
        """
        template_id = template.metadata.id
        if template_id in self._templates:
            raise DuplicateRegistrationError(f"Template '{template_id}' is already registered")
        self._templates[template_id] = template
        log_template_registered(template_id, template.metadata.category)

    def get_template(self, template_id: str) -> CVTemplate:
        """
        Raises:
            TemplateNotFoundError: If template_id is not registered
        """
        template = self._templates.get(template_id)
        if template is None:
            raise TemplateNotFoundError(
                f"Template '{template_id}' not found. "
                f"Available templates: {', '.join(self.list_ids())}"
            )
        return template

    def get_metadata(self, template_id: str) -> TemplateMetadata:
        return self.get_template(template_id).metadata

    def list_templates(self) -> List[CVTemplate]:
        return list(self._templates.values())

    def list_metadata(self) -> List[TemplateMetadata]:
        return [template.metadata for template in self._templates.values()]

    def list_ids(self) -> List[str]:
        return list(self._templates)

    def exists(self, template_id: str) -> bool:
        return template_id in self._templates

    def get_by_category(self, category: str) -> List[CVTemplate]:
        category = category.lower()
        return [t for t in self._templates.values() if t.metadata.category == category]

    def get_by_format(self, output_format: str) -> List[CVTemplate]:
        output_format = output_format.lower()
        return [t for t in self._templates.values() if t.metadata.output_format == output_format]

    def search(self, keyword: str) -> List[CVTemplate]:
        """Templates whose name, description or category contains keyword (case-insensitive)."""
        keyword = keyword.lower()
        return [
            template
            for template in self._templates.values()
            if keyword in template.metadata.id.lower()
            or keyword in template.metadata.display_name.lower()
            or keyword in template.metadata.description.lower()
            or keyword in template.metadata.category.lower()
        ]

    def get_default_template(self) -> CVTemplate:
        """
        Resolve the default template.

        Resolution is stable: the configured default id, then "modern", then
        the first registered template.

        Raises:
            TemplateNotFoundError: If no templates are registered
        """
        for template_id in (self.default_template_id, FALLBACK_TEMPLATE_ID):
            if template_id in self._templates:
                return self._templates[template_id]
        if self._templates:
            return next(iter(self._templates.values()))
        raise TemplateNotFoundError("No templates registered")

    def get_popular(self, limit: int = 5) -> List[CVTemplate]:
        ranked = [self._templates[t] for t in POPULAR_ORDER if t in self._templates]
        ranked.extend(t for t in self._templates.values() if t not in ranked)
        return ranked[:limit]

    def validate_sections(self, template_id: str, sections: List[str]) -> Dict[str, Any]:
        """
        Check which of the given record sections a template displays.

        Returns:
            {"valid": bool, "unsupported": [...]} where valid means every
            section is displayed
        """
        template = self.get_template(template_id)
        unsupported = [s for s in sections if not template.supports_section(s)]
        return {"valid": not unsupported, "unsupported": unsupported}

    def get_statistics(self) -> Dict[str, Any]:
        by_category: Dict[str, int] = {}
        by_format: Dict[str, int] = {}
        for meta in self.list_metadata():
            by_category[meta.category] = by_category.get(meta.category, 0) + 1
            by_format[meta.output_format] = by_format.get(meta.output_format, 0) + 1
        return {
            "totalTemplates": len(self._templates),
            "byCategory": by_category,
            "byFormat": by_format,
            "defaultTemplate": self.get_default_template().metadata.id if self._templates else None,
        }

    def __len__(self) -> int:
        return len(self._templates)

    def __contains__(self, template_id: str) -> bool:
        return self.exists(template_id)
