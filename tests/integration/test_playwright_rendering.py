"""
Integration tests for the Playwright engine - renders real PDFs with headless Chromium.
"""

import asyncio
from pathlib import Path

import pytest

from cvstudio.bootstrap import create_template_registry
from cvstudio.contexts.rendering import PlaywrightEngine, RenderingPipeline


def _chromium_available() -> bool:
    try:
        from playwright.sync_api import sync_playwright

        with sync_playwright() as p:
            return Path(p.chromium.executable_path).exists()
    except Exception:
        return False


skip_if_no_chromium = pytest.mark.skipif(
    not _chromium_available(),
    reason="Chromium not installed - run `playwright install chromium`",
)


@pytest.mark.integration
@pytest.mark.browser
@skip_if_no_chromium
@pytest.mark.parametrize("template_id", ["modern", "tech", "classic", "executive", "creative", "minimal", "elegant", "simple", "awesome-cv"])
def test_render_pdf_with_chromium(template_id, sample_record, tmp_path):
    """Each shipped template produces a real PDF."""
    engine = PlaywrightEngine()
    pipeline = RenderingPipeline(create_template_registry(), engine=engine, timeout_s=60)

    async def render():
        try:
            return await pipeline.render_to_pdf(template_id, sample_record, save_dir=tmp_path)
        finally:
            await pipeline.close()

    result = asyncio.run(render())

    assert result.success, result.error
    assert result.content.startswith(b"%PDF")
    assert result.file_path.exists()
    assert result.page_count is not None and result.page_count >= 1
    assert engine.open_surface_count == 0
    assert not engine.is_alive


@pytest.mark.integration
@pytest.mark.browser
@skip_if_no_chromium
def test_concurrent_renders_share_one_browser(sample_record):
    """Concurrent renders on one pipeline all succeed and leave no pages open."""
    engine = PlaywrightEngine()
    pipeline = RenderingPipeline(create_template_registry(), engine=engine, timeout_s=60)

    async def render_many():
        try:
            results = await pipeline.render_to_multiple("modern", sample_record, ["pdf", "html", "json"])
            pdfs = await asyncio.gather(
                *(pipeline.render_to_pdf("classic", sample_record) for _ in range(3))
            )
            return results, pdfs, engine.open_surface_count
        finally:
            await pipeline.close()

    results, pdfs, open_surfaces = asyncio.run(render_many())

    assert all(r.success for r in results.values())
    assert all(r.success for r in pdfs)
    assert open_surfaces == 0
