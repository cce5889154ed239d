"""
Rendering Context

Responsibilities:
- Wraps template markup into complete HTML documents
- Drives the shared headless rendering engine to produce PDFs
- Enforces the render timeout and per-render surface cleanup

Owns: Rendering engine lifecycle, output formats
Never: Chooses templates for a CV or persists output metadata
"""

from cvstudio.contexts.rendering.engine import PlaywrightEngine, RenderEngine, RenderSurface
from cvstudio.contexts.rendering.pipeline import (
    CONTENT_TYPES,
    SUPPORTED_FORMATS,
    RenderingPipeline,
    RenderResult,
)

__all__ = [
    "RenderEngine",
    "RenderSurface",
    "PlaywrightEngine",
    "RenderingPipeline",
    "RenderResult",
    "CONTENT_TYPES",
    "SUPPORTED_FORMATS",
]
