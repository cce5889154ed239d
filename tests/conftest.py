"""Shared fixtures: sample records, registries, an in-process render engine and services."""

import asyncio
import copy
from typing import Any, Dict, Optional

import pytest

from cvstudio.bootstrap import build_services, create_parser_registry, create_template_registry
from cvstudio.contexts.rendering import RenderEngine, RenderSurface

# Smallest well-formed single-page PDF
MINIMAL_PDF = (
    b"%PDF-1.4\n"
    b"1 0 obj<</Type/Catalog/Pages 2 0 R>>endobj\n"
    b"2 0 obj<</Type/Pages/Kids[3 0 R]/Count 1>>endobj\n"
    b"3 0 obj<</Type/Page/Parent 2 0 R/MediaBox[0 0 595 842]>>endobj\n"
    b"trailer<</Root 1 0 R>>\n"
    b"%%EOF\n"
)

SAMPLE_RECORD = {
    "personalInfo": {
        "fullName": "Jane Smith",
        "email": "jane.smith@example.com",
        "phone": "+1 555 0100",
        "location": "Berlin, DE",
        "summary": "Backend engineer focused on data platforms.",
        "github": "https://github.com/janesmith",
    },
    "experience": [
        {
            "company": "Acme Corp",
            "position": "Senior Engineer",
            "startDate": "2020-01-01",
            "description": "Owns the ingestion platform.",
            "highlights": ["Cut batch latency by 40%", "Led migration to Kafka"],
        },
        {
            "company": "Initech",
            "position": "Engineer",
            "startDate": "2016-06-01",
            "endDate": "2019-12-01",
            "highlights": [],
        },
    ],
    "education": [
        {
            "institution": "State University",
            "area": "Computer Science",
            "studyType": "BSc",
            "startDate": "2012-09-01",
            "endDate": "2016-06-01",
        }
    ],
    "skills": [
        {"category": "Backend", "skills": ["Python", "SQL"]},
        {"category": "Infrastructure", "skills": ["Kubernetes", "Terraform"]},
    ],
    "projects": [
        {"name": "cvtools", "description": "Resume tooling", "technologies": ["Python"]}
    ],
    "languages": [{"language": "English", "proficiency": "Native"}],
}

JSON_RESUME = {
    "basics": {
        "name": "Jane Smith",
        "email": "jane.smith@example.com",
        "phone": "+1 555 0100",
        "summary": "Backend engineer",
        "location": {"city": "Berlin", "countryCode": "DE"},
        "profiles": [
            {"network": "GitHub", "url": "https://github.com/janesmith"},
            {"network": "LinkedIn", "url": "https://linkedin.com/in/janesmith"},
        ],
    },
    "work": [
        {
            "name": "Acme Corp",
            "position": "Senior Engineer",
            "startDate": "2020-01",
            "endDate": "Present",
            "highlights": ["Cut batch latency by 40%"],
        }
    ],
    "education": [
        {"institution": "State University", "area": "Computer Science", "studyType": "BSc"}
    ],
    "skills": [{"name": "Backend", "keywords": ["Python", "SQL"]}],
}


class FakeSurface(RenderSurface):
    def __init__(self, engine: "FakeEngine"):
        self.engine = engine
        self.closed = False

    async def set_content(self, html: str) -> None:
        self.engine.documents.append(html)

    async def pdf(self, options: Optional[Dict[str, Any]] = None) -> bytes:
        if self.engine.pdf_delay:
            await asyncio.sleep(self.engine.pdf_delay)
        if self.engine.pdf_error:
            raise RuntimeError(self.engine.pdf_error)
        return MINIMAL_PDF

    async def close(self) -> None:
        if not self.closed:
            self.closed = True
            self.engine.surfaces.discard(self)


class FakeEngine(RenderEngine):
    """
    In-process RenderEngine.

    Counts start() calls and open surfaces; can be told to start slowly,
    fail to start, open surfaces slowly, rasterize slowly or fail to rasterize.
    """

    name = "fake"

    def __init__(
        self, start_delay=0.0, fail_start=False, pdf_delay=0.0, pdf_error=None, open_delay=0.0
    ):
        self.start_delay = start_delay
        self.fail_start = fail_start
        self.pdf_delay = pdf_delay
        self.pdf_error = pdf_error
        self.open_delay = open_delay
        self.start_calls = 0
        self.alive = False
        self.surfaces = set()
        self.documents = []

    async def start(self) -> None:
        self.start_calls += 1
        if self.start_delay:
            await asyncio.sleep(self.start_delay)
        if self.fail_start:
            raise RuntimeError("chromium executable not found")
        self.alive = True

    async def close(self) -> None:
        for surface in list(self.surfaces):
            await surface.close()
        self.alive = False

    @property
    def is_alive(self) -> bool:
        return self.alive

    async def open_surface(self) -> RenderSurface:
        # Registered before the delay, like a browser page that exists before new_page() returns
        surface = FakeSurface(self)
        self.surfaces.add(surface)
        if self.open_delay:
            await asyncio.sleep(self.open_delay)
        return surface

    @property
    def open_surface_count(self) -> int:
        return len(self.surfaces)


@pytest.fixture
def sample_record():
    """Canonical record dict (a fresh copy per test)."""
    return copy.deepcopy(SAMPLE_RECORD)


@pytest.fixture
def json_resume():
    return copy.deepcopy(JSON_RESUME)


@pytest.fixture
def parser_registry():
    return create_parser_registry()


@pytest.fixture
def template_registry():
    return create_template_registry()


@pytest.fixture
def fake_engine_factory():
    """The FakeEngine class, for tests that need custom behavior."""
    return FakeEngine


@pytest.fixture
def fake_engine():
    return FakeEngine()


@pytest.fixture
def services(tmp_path, fake_engine):
    """Full stack on a temporary SQLite file and the in-process engine."""
    bundle = build_services(db_path=tmp_path / "cvstudio.db", engine=fake_engine, timeout_s=2)
    yield bundle
    bundle.repository.close()


@pytest.fixture
def lifecycle(services):
    return services.lifecycle
