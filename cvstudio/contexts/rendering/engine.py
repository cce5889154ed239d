"""
Rendering engine abstraction.

A RenderEngine is one long-lived external process (a headless browser)
shared by every render. Each render opens one RenderSurface (a page), uses
it, and closes it. The engine tracks how many surfaces are open so leaks
are observable.
"""

import os
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Set

from dotenv import load_dotenv
from playwright.async_api import Browser, Page, Playwright, async_playwright

from cvstudio.contexts.rendering.logger import _log_debug

load_dotenv()
RENDER_HEADLESS = os.getenv("RENDER_HEADLESS", "true").lower() == "true"

# Container-friendly Chromium flags
CHROMIUM_ARGS = ["--no-sandbox", "--disable-dev-shm-usage"]

PDF_OPTIONS = {
    "format": "A4",
    "print_background": True,
    "margin": {"top": "12mm", "bottom": "12mm", "left": "12mm", "right": "12mm"},
}


class RenderSurface(ABC):
    """One short-lived unit of rendering work (a page/tab)."""

    @abstractmethod
    async def set_content(self, html: str) -> None:
        """Load an HTML document into the surface."""

    @abstractmethod
    async def pdf(self, options: Optional[Dict[str, Any]] = None) -> bytes:
        """Rasterize the loaded document to PDF bytes."""

    @abstractmethod
    async def close(self) -> None:
        """Release the surface. Safe to call more than once."""


class RenderEngine(ABC):
    """Shared external rendering engine."""

    name = "engine"

    @abstractmethod
    async def start(self) -> None:
        """Launch the engine. Raises on failure."""

    @abstractmethod
    async def close(self) -> None:
        """Shut the engine down and release every surface."""

    @property
    @abstractmethod
    def is_alive(self) -> bool:
        """True while the engine can accept renders."""

    @abstractmethod
    async def open_surface(self) -> RenderSurface:
        """Open a new surface on the running engine."""

    @property
    @abstractmethod
    def open_surface_count(self) -> int:
        """Number of surfaces opened and not yet closed."""


class PlaywrightSurface(RenderSurface):
    def __init__(self, page: Page, engine: "PlaywrightEngine"):
        self._page = page
        self._engine = engine
        self._closed = False

    async def set_content(self, html: str) -> None:
        await self._page.set_content(html, wait_until="load")

    async def pdf(self, options: Optional[Dict[str, Any]] = None) -> bytes:
        return await self._page.pdf(**{**PDF_OPTIONS, **(options or {})})

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._engine._surfaces.discard(self)
        if not self._page.is_closed():
            await self._page.close()


class PlaywrightEngine(RenderEngine):
    """
    Headless Chromium driven through Playwright's async API.

    One browser process serves every render; each surface is a new page.
    """

    name = "playwright-chromium"

    def __init__(self, headless: bool = None, launch_args=None):
        self.headless = RENDER_HEADLESS if headless is None else headless
        self.launch_args = list(launch_args or CHROMIUM_ARGS)
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._surfaces: Set[PlaywrightSurface] = set()

    async def start(self) -> None:
        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._playwright.chromium.launch(
                headless=self.headless, args=self.launch_args
            )
        except Exception:
            await self._playwright.stop()
            self._playwright = None
            raise
        _log_debug(f"Chromium {self._browser.version} launched (headless={self.headless})")

    @property
    def is_alive(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    async def open_surface(self) -> RenderSurface:
        if not self.is_alive:
            raise RuntimeError("Rendering engine is not running")
        page = await self._browser.new_page()
        surface = PlaywrightSurface(page, self)
        self._surfaces.add(surface)
        return surface

    @property
    def open_surface_count(self) -> int:
        return len(self._surfaces)

    async def close(self) -> None:
        for surface in list(self._surfaces):
            await surface.close()
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
