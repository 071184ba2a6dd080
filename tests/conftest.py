"""
pytest configuration and fixtures.
"""

import io
import shutil
import threading
from pathlib import Path
from typing import Callable, Dict, Generator, Optional

import pytest

from snippetbox.app import Application
from snippetbox.config import UI_DIR, ServerConfig
from snippetbox.http.request import HTTPRequest, RequestParser
from snippetbox.logs import new_loggers
from snippetbox.models import MemorySnippetStore
from snippetbox.server import SnippetServer
from snippetbox.templating import TemplateCache


class LogCapture:
    """The two sinks an Application logs to, as strings."""

    def __init__(self):
        self.stdout = io.StringIO()
        self.stderr = io.StringIO()

    @property
    def info(self) -> str:
        return self.stdout.getvalue()

    @property
    def error(self) -> str:
        return self.stderr.getvalue()

    def error_lines(self) -> list[str]:
        """Lines that start a new ERROR record."""
        return [line for line in self.error.splitlines() if line.startswith("ERROR\t")]


@pytest.fixture
def template_dir(tmp_path: Path) -> Path:
    """A private copy of the shipped template tree, safe to break."""
    target = tmp_path / "html"
    shutil.copytree(UI_DIR / "html", target)
    return target


@pytest.fixture
def static_dir(tmp_path: Path) -> Path:
    target = tmp_path / "static"
    shutil.copytree(UI_DIR / "static", target)
    return target


@pytest.fixture
def config(template_dir: Path, static_dir: Path) -> ServerConfig:
    return ServerConfig(
        addr="127.0.0.1:0",
        template_dir=str(template_dir),
        static_dir=str(static_dir),
        min_workers=2,
        max_workers=4,
        timeout=5.0,
        keep_alive_timeout=1.0,
    )


@pytest.fixture
def logs() -> LogCapture:
    return LogCapture()


@pytest.fixture
def store() -> MemorySnippetStore:
    return MemorySnippetStore()


@pytest.fixture
def make_app(config: ServerConfig, logs: LogCapture) -> Callable[..., Application]:
    """
    Build an Application writing to `logs`.

        app = make_app()                         # no snippet store
        app = make_app(snippets=store)
        app = make_app(templates=TemplateCache({...}, cached=False))
    """
    def factory(
        snippets: Optional[MemorySnippetStore] = None,
        templates: Optional[TemplateCache] = None,
        **overrides,
    ) -> Application:
        for name, value in overrides.items():
            setattr(config, name, value)
        info_log, error_log = new_loggers(logs.stdout, logs.stderr)
        if templates is None:
            templates = TemplateCache.from_directory(config.template_dir, cached=config.cache_templates)
        return Application(
            config=config,
            info_log=info_log,
            error_log=error_log,
            templates=templates,
            snippets=snippets,
        )

    return factory


@pytest.fixture
def make_request() -> Callable[..., HTTPRequest]:
    """
    Build an HTTPRequest by parsing real request bytes.

        make_request("GET", "/snippet/view?id=7")
        make_request("POST", "/snippet/create", body=b"title=a&content=b",
                     headers={"Content-Type": "application/x-www-form-urlencoded"})
    """
    parser = RequestParser()

    def factory(
        method: str,
        target: str,
        body: bytes = b"",
        headers: Optional[Dict[str, str]] = None,
    ) -> HTTPRequest:
        lines = [f"{method} {target} HTTP/1.1", "Host: localhost"]
        for name, value in (headers or {}).items():
            lines.append(f"{name}: {value}")
        if body:
            lines.append(f"Content-Length: {len(body)}")
        raw = ("\r\n".join(lines) + "\r\n\r\n").encode("latin-1") + body
        return parser.parse(raw, ("127.0.0.1", 50000))

    return factory


class LiveServer:
    """A SnippetServer running in a background thread."""

    def __init__(self, server: SnippetServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self) -> None:
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()
        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("server failed to start")

    def stop(self) -> None:
        self.server.shutdown()
        if self._thread is not None:
            self._thread.join(timeout=10.0)


@pytest.fixture
def live_server(make_app, store) -> Generator[LiveServer, None, None]:
    server = LiveServer(SnippetServer(make_app(snippets=store)))
    server.start()
    yield server
    server.stop()
