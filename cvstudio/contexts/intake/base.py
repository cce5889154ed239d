"""
Parser base class and result types.

Every source format has one CVParser subclass. Subclasses implement
parse_raw() (structural extraction and normalization only); the shared
parse() wrapper times the call, contains escaped exceptions, validates the
candidate and stamps the data-quality score.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional

from cvstudio.contexts.intake.logger import _log_debug
from cvstudio.contexts.schema import SECTION_TYPES, CVRecord, score_quality, validate
from cvstudio.contexts.schema.cv_record import to_camel
from cvstudio.utils.text_processing import clean_text, is_ongoing, normalize_date

ALL_SECTIONS = ("personalInfo",) + tuple(SECTION_TYPES)


@dataclass(frozen=True)
class ParserMetadata:
    """Static description of a parser, used by the registry for dispatch."""

    name: str
    type: str
    version: str
    supported_formats: tuple
    supported_sections: tuple
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "version": self.version,
            "supportedFormats": list(self.supported_formats),
            "supportedSections": list(self.supported_sections),
            "description": self.description,
        }


@dataclass
class RawParseResult:
    """Output of parse_raw(), before timing, validation and scoring."""

    success: bool
    data: Optional[CVRecord] = None
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class ParseMetadata:
    parser_type: str
    parse_time_ms: float
    data_quality: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "parserType": self.parser_type,
            "parseTimeMs": self.parse_time_ms,
            "dataQuality": self.data_quality,
        }


@dataclass
class ParseResult:
    """
    Result of CVParser.parse().

    Attributes:
        success: True when extraction and validation both succeeded
        data: Extracted record (untrustworthy when success is False)
        errors: Parser errors followed by validation errors
        warnings: Parser warnings followed by validation warnings
        metadata: Parser type, elapsed milliseconds, quality score
    """

    success: bool
    data: Optional[CVRecord]
    errors: List[str]
    warnings: List[str]
    metadata: ParseMetadata

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "data": self.data.to_dict() if self.data else None,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "metadata": self.metadata.to_dict(),
        }


class CVParser(ABC):
    """Base class for source-format parsers."""

    metadata: ParserMetadata

    @abstractmethod
    def parse_raw(self, content: Any, options: Optional[Dict[str, Any]] = None) -> RawParseResult:
        """
        Extract a CV record candidate from source content.

        Implementations never validate; they only map fields and normalize
        values. Unrecoverable input problems return success=False.
        """

    def parse(self, content: Any, options: Optional[Dict[str, Any]] = None) -> ParseResult:
        """
        Parse content, validate the candidate and score its quality.

        Never raises: escaped exceptions become a failed result with a
        "Parse error: ..." message.
        """
        start = time.perf_counter()
        try:
            raw = self.parse_raw(content, options or {})
        except Exception as e:
            return ParseResult(
                success=False,
                data=None,
                errors=[f"Parse error: {e}"],
                warnings=[],
                metadata=ParseMetadata(self.metadata.type, _elapsed_ms(start), 0),
            )

        errors = list(raw.errors)
        warnings = list(raw.warnings)
        success = raw.success and raw.data is not None
        quality = 0

        if success:
            report = validate(raw.data)
            errors.extend(report.errors)
            warnings.extend(w for w in report.warnings if w not in warnings)
            success = report.valid
            if success:
                quality = score_quality(raw.data)

        return ParseResult(
            success=success,
            data=raw.data,
            errors=errors,
            warnings=warnings,
            metadata=ParseMetadata(self.metadata.type, _elapsed_ms(start), quality),
        )

    def supports_format(self, format_name: str) -> bool:
        return format_name.lower() in (f.lower() for f in self.metadata.supported_formats)

    def supports_section(self, section: str) -> bool:
        return section.lower() in (s.lower() for s in self.metadata.supported_sections)

    # Normalization helpers shared by subclasses

    def normalize_date_field(self, value: Any, label: str, warnings: List[str]) -> Optional[str]:
        """
        Normalize a date to ISO form, dropping it with a warning when unrecognized.

        Ongoing markers ("Present", "Current") become an absent date silently.
        """
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        if is_ongoing(value):
            return None
        normalized = normalize_date(value)
        if normalized is None:
            warnings.append(f"{label}: Unrecognized date '{value}' was dropped")
            _log_debug(f"Dropped unrecognized date {label}={value!r}")
        return normalized

    def text_list(self, value: Any) -> List[str]:
        """Coerce a scalar or sequence into a list of cleaned, non-empty strings."""
        if value is None:
            return []
        items = value if isinstance(value, (list, tuple)) else [value]
        return [text for text in (clean_text(item) for item in items) if text]

    def entries(self, source: Dict[str, Any], keys, warnings: List[str]) -> List[Dict[str, Any]]:
        """
        Return the object entries of the first present key among keys.

        Non-list values and non-object entries are skipped with a warning.
        """
        if isinstance(keys, str):
            keys = (keys,)
        for key in keys:
            if key not in source or source[key] is None:
                continue
            value = source[key]
            if not isinstance(value, list):
                warnings.append(f"{key}: Expected a list, section ignored")
                return []
            items = [item for item in value if isinstance(item, dict)]
            if len(items) != len(value):
                warnings.append(f"{key}: {len(value) - len(items)} non-object entries ignored")
            return items
        return []

    def record_from_canonical(self, data: Dict[str, Any], warnings: List[str]) -> CVRecord:
        """
        Build a record from data already in canonical (exported) shape.

        Free text is kept as-is; dates are re-normalized so hand-edited
        exports still satisfy the ISO date rule.
        """
        record = CVRecord.from_dict(data)
        for section in SECTION_TYPES:
            for index, entry in enumerate(getattr(record, section)):
                for f in fields(entry):
                    if f.name == "date" or f.name.endswith("_date"):
                        label = f"{section}[{index}].{to_camel(f.name)}"
                        setattr(
                            entry,
                            f.name,
                            self.normalize_date_field(getattr(entry, f.name), label, warnings),
                        )
        return record


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 3)
