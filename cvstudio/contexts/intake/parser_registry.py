"""
Parser Registry

Explicitly constructed registry mapping parser type ids to CVParser
instances, with format-based dispatch. Build one with
cvstudio.bootstrap.create_parser_registry(); there is no module-level
registry.
"""

from typing import Any, Dict, List, Optional

from cvstudio.contexts.intake.base import CVParser, ParseResult
from cvstudio.contexts.intake.logger import (
    log_parse_result,
    log_parser_registered,
    log_parser_selected,
)
from cvstudio.exceptions import (
    DuplicateRegistrationError,
    ParserNotFoundError,
    UnsupportedFormatError,
)

# When several parsers claim a format, the first listed wins
PARSER_PRIORITY = ("json-resume", "yaml", "tabular")


class ParserRegistry:
    """
    Registry of CV parsers keyed by type id.

    Example:
        registry = ParserRegistry()
        registry.register(JsonResumeParser())
        result = registry.parse(text, "json")
    """

    def __init__(self):
        self._parsers: Dict[str, CVParser] = {}
        # format -> parser types, in registration order
        self._format_map: Dict[str, List[str]] = {}

    def register(self, parser: CVParser) -> None:
        """
        Register a parser under its metadata type id.

        Raises:
            DuplicateRegistrationError: If the type id is already registered
        """
        parser_type = parser.metadata.type.lower()
        if parser_type in self._parsers:
            raise DuplicateRegistrationError(f"Parser '{parser_type}' is already registered")

        self._parsers[parser_type] = parser
        for format_name in parser.metadata.supported_formats:
            self._format_map.setdefault(format_name.lower(), []).append(parser_type)

        log_parser_registered(parser_type, parser.metadata.supported_formats)

    def get_parser(self, parser_type: str) -> CVParser:
        """
        Look up a parser by type id.

        Raises:
            ParserNotFoundError: Lists the available types
        """
        parser = self._parsers.get(parser_type.lower())
        if parser is None:
            raise ParserNotFoundError(
                f"Parser '{parser_type}' not found. "
                f"Available parsers: {', '.join(self.list_types())}"
            )
        return parser

    def get_parsers_by_format(self, format_name: str) -> List[CVParser]:
        """Parsers declaring the format (case-insensitive), in registration order."""
        return [self._parsers[t] for t in self._format_map.get(format_name.lower(), [])]

    def get_parsers_by_section(self, section: str) -> List[CVParser]:
        return [parser for parser in self._parsers.values() if parser.supports_section(section)]

    def auto_detect(self, format_name: str) -> CVParser:
        """
        Choose the parser for a format.

        Raises:
            UnsupportedFormatError: If no parser declares the format
        """
        candidates = self.get_parsers_by_format(format_name)
        if not candidates:
            raise UnsupportedFormatError(
                f"No parser found for format '{format_name}'. "
                f"Supported formats: {', '.join(self.list_formats())}"
            )

        for parser_type in PARSER_PRIORITY:
            for parser in candidates:
                if parser.metadata.type == parser_type:
                    return parser
        return candidates[0]

    def parse(
        self,
        content: Any,
        format_name: str,
        parser_type: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> ParseResult:
        """
        Parse content with the requested parser, or the one detected for format_name.

        Raises:
            ParserNotFoundError: Unknown parser_type
            UnsupportedFormatError: No parser for format_name
        """
        if parser_type:
            parser = self.get_parser(parser_type)
        else:
            parser = self.auto_detect(format_name)
        log_parser_selected(parser.metadata.type, format_name, explicit=bool(parser_type))

        result = parser.parse(content, options)
        log_parse_result(result)
        return result

    def parse_with_all(self, content: Any, format_name: str) -> Dict[str, ParseResult]:
        """Run every parser that declares format_name; results keyed by parser type."""
        return {
            parser.metadata.type: parser.parse(content)
            for parser in self.get_parsers_by_format(format_name)
        }

    def search(self, keyword: str) -> List[CVParser]:
        """Parsers whose name, type or description contains keyword (case-insensitive)."""
        keyword = keyword.lower()
        return [
            parser
            for parser in self._parsers.values()
            if keyword in parser.metadata.name.lower()
            or keyword in parser.metadata.type.lower()
            or keyword in parser.metadata.description.lower()
        ]

    def list_parsers(self) -> List[CVParser]:
        return list(self._parsers.values())

    def list_types(self) -> List[str]:
        return list(self._parsers)

    def list_formats(self) -> List[str]:
        return list(self._format_map)

    def has_parser(self, parser_type: str) -> bool:
        return parser_type.lower() in self._parsers

    def supports_format(self, format_name: str) -> bool:
        return format_name.lower() in self._format_map

    def get_statistics(self) -> Dict[str, Any]:
        """Registry summary for operator discovery."""
        sections: List[str] = []
        details = []
        for parser in self._parsers.values():
            meta = parser.metadata
            details.append(
                {
                    "type": meta.type,
                    "name": meta.name,
                    "formats": list(meta.supported_formats),
                    "sections": list(meta.supported_sections),
                }
            )
            sections.extend(s for s in meta.supported_sections if s not in sections)

        return {
            "totalParsers": len(self._parsers),
            "supportedFormats": self.list_formats(),
            "supportedSections": sections,
            "parserDetails": details,
        }

    def validate(self) -> Dict[str, Any]:
        """Check the registry is usable; returns {"valid": bool, "errors": [...]}."""
        errors = []
        if not self._parsers:
            errors.append("No parsers registered")
        if not self._format_map:
            errors.append("No formats registered")
        return {"valid": not errors, "errors": errors}

    def __len__(self) -> int:
        return len(self._parsers)

    def __contains__(self, parser_type: str) -> bool:
        return self.has_parser(parser_type)
