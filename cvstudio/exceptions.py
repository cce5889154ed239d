"""
Error taxonomy shared across contexts.

Callers can catch a whole family (e.g. FormatError) or a specific condition.
"""

from typing import Iterable, List, Optional


class CVStudioError(Exception):
    """Base class for all CV Studio errors."""


class CVValidationError(CVStudioError):
    """
    Raised when a CV record is malformed or incomplete.

    Attributes:
        errors: Field-level messages (e.g. "personalInfo.email: Email is required")
    """

    def __init__(self, message: str, errors: Optional[Iterable[str]] = None):
        self.errors: List[str] = list(errors or [])
        if self.errors:
            message = f"{message}: {'; '.join(self.errors)}"
        super().__init__(message)


class CVNotFoundError(CVStudioError):
    """Raised when a CV does not exist or is not owned by the caller."""

    def __init__(self, message: str = "CV not found"):
        super().__init__(message)


class VersionConflictError(CVStudioError):
    """Raised when a concurrent edit already advanced the CV version."""


# Format errors: recoverable by the caller correcting its input


class FormatError(CVStudioError):
    """Base class for unparseable input and unknown parser/template ids."""


class UnsupportedFormatError(FormatError):
    """Raised when no parser handles the requested format."""


class ParserNotFoundError(FormatError):
    """Raised when a parser type id is not registered."""


class TemplateNotFoundError(FormatError):
    """Raised when a template id is not registered."""


class ImportFailedError(FormatError):
    """
    Raised when a parser rejects imported content.

    Attributes:
        errors: Parser and validation errors
        warnings: Non-fatal parser warnings
    """

    def __init__(
        self,
        message: str,
        errors: Optional[Iterable[str]] = None,
        warnings: Optional[Iterable[str]] = None,
    ):
        self.errors: List[str] = list(errors or [])
        self.warnings: List[str] = list(warnings or [])
        if self.errors:
            message = f"{message}: {', '.join(self.errors)}"
        super().__init__(message)


# Rendering errors: may warrant a retry


class RenderError(CVStudioError):
    """Raised when a document cannot be rendered."""


class RenderTimeoutError(RenderError):
    """Raised when rendering exceeds the configured timeout."""


class EngineInitializationError(RenderError):
    """Raised when the external rendering engine fails to start."""


class TemplateRenderError(CVStudioError):
    """
    Raised when template markup cannot be compiled or rendered.

    Attributes:
        template_id: Template being rendered
        original_error: The underlying markup engine error
    """

    def __init__(
        self,
        message: str,
        template_id: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        self.template_id = template_id
        self.original_error = original_error

        parts = [message]
        if template_id:
            parts.append(f"Template: {template_id}")
        if original_error:
            parts.append(f"Original error: {original_error}")

        super().__init__("\n".join(parts))


# Registry configuration errors: fatal at startup


class RegistryConfigurationError(CVStudioError):
    """Raised when a registry is misconfigured."""


class DuplicateRegistrationError(RegistryConfigurationError):
    """Raised when an id is registered twice."""
