"""
Wiring for the default CV Studio stack.

Registries are plain objects owned by whoever builds them; nothing here is a
module-level singleton. Entry points call build_services() once and pass the
result around.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv

from cvstudio.contexts.intake import JsonResumeParser, ParserRegistry, TabularParser, YamlParser
from cvstudio.contexts.lifecycle import CVLifecycleService, SQLiteCVRepository
from cvstudio.contexts.rendering import RenderEngine, RenderingPipeline
from cvstudio.contexts.templating import DEFAULT_TEMPLATE_CLASSES, TemplateRegistry

load_dotenv()
DB_PATH = Path(os.getenv("CVSTUDIO_DB_PATH", "outs/cvstudio.db"))


def create_parser_registry() -> ParserRegistry:
    """Registry with the JSON Resume, YAML and tabular parsers."""
    registry = ParserRegistry()
    for parser in (JsonResumeParser(), YamlParser(), TabularParser()):
        registry.register(parser)
    return registry


def create_template_registry(default_template_id: Optional[str] = None) -> TemplateRegistry:
    """Registry with every built-in template."""
    registry = TemplateRegistry(default_template_id=default_template_id)
    for template_class in DEFAULT_TEMPLATE_CLASSES:
        registry.register(template_class())
    return registry


@dataclass
class Services:
    """Everything an entry point needs, built once per process."""

    lifecycle: CVLifecycleService
    repository: SQLiteCVRepository
    parsers: ParserRegistry
    templates: TemplateRegistry
    pipeline: RenderingPipeline

    async def close(self) -> None:
        await self.pipeline.close()
        self.repository.close()


def build_services(
    db_path: Union[Path, str, None] = None,
    engine: Optional[RenderEngine] = None,
    timeout_s: Optional[float] = None,
) -> Services:
    """
    Build the default stack.

    Args:
        db_path: SQLite file (defaults to CVSTUDIO_DB_PATH; ":memory:" for tests)
        engine: Rendering engine override (defaults to the Playwright engine)
        timeout_s: PDF render timeout override

    Returns:
        Services bundle
    """
    repository = SQLiteCVRepository(DB_PATH if db_path is None else db_path)
    parsers = create_parser_registry()
    templates = create_template_registry()
    pipeline = RenderingPipeline(templates, engine=engine, timeout_s=timeout_s)
    lifecycle = CVLifecycleService(repository, parsers, templates, pipeline)

    return Services(
        lifecycle=lifecycle,
        repository=repository,
        parsers=parsers,
        templates=templates,
        pipeline=pipeline,
    )
