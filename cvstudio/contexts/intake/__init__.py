"""
Intake Context

Responsibilities:
- Converts source formats (JSON Resume, YAML, tabular exports) into CV records
- Normalizes dates and free text during extraction
- Dispatches content to parsers by type id or declared format

Owns: Source-format knowledge, parser registry
Never: Decides record validity (delegated to the schema context) or renders output
"""

from cvstudio.contexts.intake.base import (
    CVParser,
    ParseMetadata,
    ParseResult,
    ParserMetadata,
    RawParseResult,
)
from cvstudio.contexts.intake.json_resume_parser import JsonResumeParser
from cvstudio.contexts.intake.parser_registry import PARSER_PRIORITY, ParserRegistry
from cvstudio.contexts.intake.tabular_parser import TabularParser
from cvstudio.contexts.intake.yaml_parser import YamlParser

__all__ = [
    # Parser interface and results
    "CVParser",
    "ParserMetadata",
    "RawParseResult",
    "ParseResult",
    "ParseMetadata",
    # Concrete parsers
    "JsonResumeParser",
    "YamlParser",
    "TabularParser",
    # Dispatch
    "ParserRegistry",
    "PARSER_PRIORITY",
]
