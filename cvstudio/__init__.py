"""
CV Studio - structured resume import, export and rendering

Ingests resumes from several source formats into one canonical record, scores
their completeness, and renders them through styled templates to HTML and PDF.

Architecture:
- Schema Context: Canonical CV record and validation
- Intake Context: Source-format parsers and the parser registry
- Templating Context: Visual templates, themes and the template registry
- Rendering Context: HTML document assembly and headless PDF rasterization
- Lifecycle Context: Owned, versioned CV entities and their publication
"""

__version__ = "0.1.0"
