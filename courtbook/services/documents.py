"""
Closing documents: rendering and storage.

Closings are rendered with Jinja2 into a fixed-layout HTML page and handed
to a ``DocumentSink``, which keeps the bytes and returns a URL to them.
The bundled ``LocalDocumentSink`` writes into DOCUMENTS_DIR, which the app
serves under ``/documents``.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Protocol

from jinja2 import Environment, FileSystemLoader, select_autoescape

from courtbook.config import DOCUMENTS_DIR
from courtbook.models import ClosingReport

logger = logging.getLogger(__name__)

_TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

DOCUMENTS_URL_PREFIX = "/documents"


def colones(amount: int) -> str:
    return f"₡{amount:,}".replace(",", ".")


_env = Environment(
    loader=FileSystemLoader(str(_TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
)
_env.filters["colones"] = colones


def render_closing(report: ClosingReport) -> str:
    """Render a closing report as a self-contained HTML document."""
    return _env.get_template("closing.html").render(report=report, snapshot=report.snapshot)


class DocumentSink(Protocol):
    async def store(self, name: str, content: bytes, content_type: str) -> str:
        """Keep *content* and return the URL it can be fetched from."""
        ...

    async def remove(self, url: str) -> None: ...


class LocalDocumentSink:
    """Stores documents as files in a local directory."""

    def __init__(self, directory: str = DOCUMENTS_DIR, url_prefix: str = DOCUMENTS_URL_PREFIX) -> None:
        self.directory = Path(directory)
        self.url_prefix = url_prefix.rstrip("/")

    def _path(self, name: str) -> Path:
        path = (self.directory / name).resolve()
        if path.parent != self.directory.resolve():
            raise ValueError(f"Invalid document name: {name!r}")
        return path

    async def store(self, name: str, content: bytes, content_type: str) -> str:
        path = self._path(name)
        self.directory.mkdir(parents=True, exist_ok=True)
        await asyncio.to_thread(path.write_bytes, content)
        logger.info("Stored document %s (%s, %d bytes)", name, content_type, len(content))
        return f"{self.url_prefix}/{name}"

    async def remove(self, url: str) -> None:
        name = url.rsplit("/", 1)[-1]
        await asyncio.to_thread(self._path(name).unlink, True)
        logger.info("Removed document %s", name)


# ── Process-wide sink ─────────────────────────────────────────────────────

_sink: DocumentSink | None = None


def get_document_sink() -> DocumentSink:
    global _sink
    if _sink is None:
        _sink = LocalDocumentSink()
    return _sink


def set_document_sink(sink: DocumentSink | None) -> None:
    global _sink
    _sink = sink
