"""
Rendering Pipeline

Turns a CV record and template id into HTML, PDF or JSON output. PDF output
goes through one shared, lazily started RenderEngine:

    generate_html()  template markup wrapped in a full document with inlined CSS
    render_to_pdf()  HTML rasterized on one render surface, under a hard timeout

Every surface is closed on every exit path, including timeouts: the timeout
cancels the render task and waits for its cleanup before reporting.
"""

import asyncio
import json
import os
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, AsyncIterator, Dict, Iterable, Mapping, Optional, Set, Union

from dotenv import load_dotenv
from jinja2 import Environment

from cvstudio.contexts.rendering.engine import PlaywrightEngine, RenderEngine, RenderSurface
from cvstudio.contexts.rendering.logger import (
    _log_debug,
    log_engine_failed,
    log_engine_ready,
    log_engine_starting,
    log_render_result,
    log_render_start,
)
from cvstudio.contexts.schema import CVRecord
from cvstudio.contexts.templating import TemplateRegistry
from cvstudio.exceptions import EngineInitializationError, TemplateRenderError
from cvstudio.utils.pdf_processing import page_count
from cvstudio.utils.timestamp import now

load_dotenv()
RENDER_TIMEOUT_S = float(os.getenv("RENDER_TIMEOUT_S", "30"))

CONTENT_TYPES = {
    "pdf": "application/pdf",
    "html": "text/html",
    "json": "application/json",
}
SUPPORTED_FORMATS = tuple(CONTENT_TYPES)

DOCUMENT_SHELL = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<meta name="generator" content="cvstudio/{{ template_id }}">
<title>{{ title }}</title>
<style>
{{ theme_css | safe }}
{{ stylesheet | safe }}
</style>
</head>
<body>
{{ body | safe }}
</body>
</html>
"""

_shell = Environment(autoescape=True).from_string(DOCUMENT_SHELL)

RecordLike = Union[CVRecord, Mapping[str, Any]]


@dataclass
class RenderResult:
    """
    Result of one render.

    Attributes:
        success: Whether the output was produced
        format: "pdf", "html" or "json"
        content: Output bytes (None if failed)
        file_path: Where the output was written, when a save_dir was given
        error: Failure reason (None if succeeded)
        timed_out: True when the render hit the pipeline timeout
        page_count: Pages in a PDF output (None if not available)
    """

    success: bool
    format: str
    content: Optional[bytes] = None
    file_path: Optional[Path] = None
    error: Optional[str] = None
    timed_out: bool = False
    page_count: Optional[int] = None

    @property
    def content_type(self) -> str:
        return CONTENT_TYPES.get(self.format, "application/octet-stream")


def _as_dict(record: RecordLike) -> Dict[str, Any]:
    return record.to_dict() if isinstance(record, CVRecord) else dict(record)


class RenderingPipeline:
    """
    Renders CV records through registered templates.

    Args:
        template_registry: Source of templates
        engine: Rendering engine for PDF output (defaults to PlaywrightEngine)
        timeout_s: Hard limit for one PDF render (defaults to RENDER_TIMEOUT_S)
    """

    def __init__(
        self,
        template_registry: TemplateRegistry,
        engine: RenderEngine = None,
        timeout_s: float = None,
    ):
        self.template_registry = template_registry
        self.engine = engine or PlaywrightEngine()
        self.timeout_s = RENDER_TIMEOUT_S if timeout_s is None else timeout_s
        self._init_lock = asyncio.Lock()
        self._init_task: Optional[asyncio.Future] = None
        self._pending_closes: Set[asyncio.Future] = set()

    # HTML

    def generate_html(self, template_id: str, record: RecordLike, theme: str = None) -> str:
        """
        Render a full HTML document.

        Raises:
            TemplateNotFoundError: Unknown template_id
            TemplateRenderError: Markup failure
        """
        template = self.template_registry.get_template(template_id)
        palette = template.apply_theme(theme)
        body = template.render(record, {"theme": palette.name})
        full_name = _as_dict(record).get("personalInfo", {}).get("fullName") or "CV"

        return _shell.render(
            template_id=template.metadata.id,
            title=full_name,
            theme_css=palette.to_css(),
            stylesheet=template.stylesheet,
            body=body,
        )

    def render_to_html(
        self,
        template_id: str,
        record: RecordLike,
        theme: str = None,
        save_dir: Path = None,
        filename: str = None,
    ) -> RenderResult:
        """
        Render an HTML document as a RenderResult.

        Raises:
            TemplateNotFoundError: Unknown template_id
        """
        start = time.time()
        log_render_start(template_id, "html")

        failure = self._check_preconditions(template_id, record, "html")
        if failure:
            return failure

        try:
            html = self.generate_html(template_id, record, theme)
        except TemplateRenderError as e:
            result = RenderResult(success=False, format="html", error=str(e))
        else:
            result = self._finish(html.encode("utf-8"), "html", template_id, save_dir, filename)

        log_render_result(template_id, result, time.time() - start)
        return result

    # PDF

    async def render_to_pdf(
        self,
        template_id: str,
        record: RecordLike,
        theme: str = None,
        save_dir: Path = None,
        filename: str = None,
    ) -> RenderResult:
        """
        Render a PDF through the shared engine.

        The engine starts on first use. Engine failures, markup failures and
        timeouts come back as failed results; only an unknown template raises.

        Raises:
            TemplateNotFoundError: Unknown template_id
        """
        start = time.time()
        log_render_start(template_id, "pdf")

        failure = self._check_preconditions(template_id, record, "pdf")
        if failure:
            return failure

        try:
            html = self.generate_html(template_id, record, theme)
            pdf_bytes = await asyncio.wait_for(self._rasterize(html), timeout=self.timeout_s)
        except asyncio.TimeoutError:
            result = RenderResult(
                success=False,
                format="pdf",
                error=f"Render timeout after {self.timeout_s:g}s",
                timed_out=True,
            )
        except (TemplateRenderError, EngineInitializationError) as e:
            result = RenderResult(success=False, format="pdf", error=str(e))
        except Exception as e:
            result = RenderResult(success=False, format="pdf", error=f"PDF rendering failed: {e}")
        else:
            result = self._finish(pdf_bytes, "pdf", template_id, save_dir, filename)
            result.page_count = page_count(pdf_bytes)

        log_render_result(template_id, result, time.time() - start)
        return result

    async def _rasterize(self, html: str) -> bytes:
        await self._ensure_engine()
        async with self.render_surface() as surface:
            await surface.set_content(html)
            return await surface.pdf()

    @asynccontextmanager
    async def render_surface(self) -> AsyncIterator[RenderSurface]:
        """
        Open one surface on the engine and close it on exit, whatever the outcome.

        Example:
            async with pipeline.render_surface() as surface:
                await surface.set_content(html)
                pdf_bytes = await surface.pdf()
        """
        opening = asyncio.ensure_future(self.engine.open_surface())
        try:
            surface = await asyncio.shield(opening)
        except asyncio.CancelledError:
            # The engine may still hand back a surface after we give up on it
            closing = asyncio.ensure_future(self._close_when_opened(opening))
            self._pending_closes.add(closing)
            closing.add_done_callback(self._pending_closes.discard)
            raise
        try:
            yield surface
        finally:
            await surface.close()
            _log_debug(f"Surface closed ({self.engine.open_surface_count} open)")

    async def _close_when_opened(self, opening: asyncio.Future) -> None:
        try:
            surface = await opening
        except Exception as e:
            _log_debug(f"Surface for a cancelled render failed to open: {e}")
            return
        await surface.close()
        _log_debug(
            f"Closed late surface of a cancelled render ({self.engine.open_surface_count} open)"
        )

    async def _ensure_engine(self) -> None:
        """
        Start the engine if it is not running.

        Concurrent callers share a single start attempt. Waiting callers are
        shielded so a caller's timeout never cancels the shared start.

        Raises:
            EngineInitializationError: If the engine fails to start
        """
        if self.engine.is_alive:
            return
        async with self._init_lock:
            if self.engine.is_alive:
                return
            if self._init_task is None or self._init_task.done():
                self._init_task = asyncio.ensure_future(self._start_engine())
            task = self._init_task
        await asyncio.shield(task)

    async def _start_engine(self) -> None:
        start = time.time()
        log_engine_starting(self.engine.name)
        try:
            await self.engine.start()
        except Exception as e:
            log_engine_failed(self.engine.name, e)
            raise EngineInitializationError(f"Failed to initialize rendering engine: {e}") from e
        log_engine_ready(self.engine.name, time.time() - start)

    # Fan-out

    def render_to_json(
        self, record: RecordLike, save_dir: Path = None, filename: str = None
    ) -> RenderResult:
        content = json.dumps(_as_dict(record), indent=2, ensure_ascii=False).encode("utf-8")
        return self._finish(content, "json", "record", save_dir, filename)

    async def render_to_multiple(
        self,
        template_id: str,
        record: RecordLike,
        formats: Iterable[str],
        theme: str = None,
        save_dir: Path = None,
    ) -> Dict[str, RenderResult]:
        """
        Render one record to several formats concurrently.

        Each format succeeds or fails on its own; a failure never aborts the
        others.

        Returns:
            Results keyed by format

        Raises:
            TemplateNotFoundError: Unknown template_id
        """
        self.template_registry.get_template(template_id)
        requested = list(dict.fromkeys(f.lower() for f in formats))

        async def render_one(output_format: str) -> RenderResult:
            if output_format == "pdf":
                return await self.render_to_pdf(template_id, record, theme, save_dir)
            if output_format == "html":
                return self.render_to_html(template_id, record, theme, save_dir)
            if output_format == "json":
                return self.render_to_json(record, save_dir)
            return RenderResult(
                success=False,
                format=output_format,
                error=f"Unsupported format '{output_format}'. Supported: {', '.join(SUPPORTED_FORMATS)}",
            )

        outcomes = await asyncio.gather(*(render_one(f) for f in requested), return_exceptions=True)

        results = {}
        for output_format, outcome in zip(requested, outcomes):
            if isinstance(outcome, BaseException):
                outcome = RenderResult(success=False, format=output_format, error=str(outcome))
            results[output_format] = outcome
        return results

    # Engine lifecycle

    @property
    def is_engine_alive(self) -> bool:
        return self.engine.is_alive

    async def health_check(self, start_engine: bool = False) -> Dict[str, Any]:
        """
        Report pipeline health.

        Args:
            start_engine: Start the engine first if it is not running

        Returns:
            {"healthy", "engineAlive", "openSurfaces", "templates", "timeoutS", "error"}
        """
        error = None
        if start_engine:
            try:
                await self._ensure_engine()
            except EngineInitializationError as e:
                error = str(e)

        alive = self.engine.is_alive
        return {
            "healthy": alive and error is None,
            "engineAlive": alive,
            "openSurfaces": self.engine.open_surface_count,
            "templates": len(self.template_registry),
            "timeoutS": self.timeout_s,
            "error": error,
        }

    async def close(self) -> None:
        """Shut the engine down. The next PDF render starts it again."""
        if self._init_task is not None and not self._init_task.done():
            # Let an in-flight start settle before tearing down
            await asyncio.gather(self._init_task, return_exceptions=True)
        self._init_task = None
        if self._pending_closes:
            # Surfaces still opening for cancelled renders
            await asyncio.gather(*list(self._pending_closes), return_exceptions=True)
        if self.engine.is_alive:
            await self.engine.close()
            _log_debug(f"Engine closed: {self.engine.name}")

    # Helpers

    def _check_preconditions(
        self, template_id: str, record: RecordLike, output_format: str
    ) -> Optional[RenderResult]:
        template = self.template_registry.get_template(template_id)
        check = template.validate_cv_data(record)
        if check.valid:
            return None
        return RenderResult(
            success=False,
            format=output_format,
            error=f"Validation failed: {', '.join(check.errors)}",
        )

    def _finish(
        self,
        content: bytes,
        output_format: str,
        stem: str,
        save_dir: Optional[Path],
        filename: Optional[str],
    ) -> RenderResult:
        result = RenderResult(success=True, format=output_format, content=content)
        if save_dir is not None:
            save_dir = Path(save_dir)
            save_dir.mkdir(parents=True, exist_ok=True)
            path = save_dir / (filename or f"{stem}_{now()}.{output_format}")
            path.write_bytes(content)
            result.file_path = path
        return result
