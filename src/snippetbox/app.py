"""
=============================================================================
APPLICATION CONTEXT
=============================================================================

Everything a handler needs, gathered once at startup:

    ┌──────────────────────── Application (frozen) ───────────────────────┐
    │  config      ServerConfig                                           │
    │  info_log    INFO  → stdout                                         │
    │  error_log   ERROR → stderr                                         │
    │  templates   TemplateCache  (page → TemplateSet)                    │
    │  snippets    SnippetStore or None                                   │
    │  errors      ErrorReporter  (writes to error_log)                   │
    └─────────────────────────────────────────────────────────────────────┘
                │ shared by reference, read-only
       ┌────────┼────────┬────────┐
       ▼        ▼        ▼        ▼
    worker-0 worker-1 worker-2  ...

Nothing on an Application changes after construction, so workers read it
without locks. Changing anything (e.g. reloading templates) means
building a NEW Application and publishing it to the server, which swaps
a single reference:

    server.publish(app.with_templates(TemplateCache.from_directory(...)))

Requests already running keep the Application they started with.

=============================================================================
"""

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import IO, Optional

from .config import ServerConfig
from .logs import new_loggers
from .models import SnippetStore
from .reporting import ErrorReporter
from .templating import TemplateCache


@dataclass(frozen=True)
class Application:
    config: ServerConfig
    info_log: logging.Logger
    error_log: logging.Logger
    templates: TemplateCache
    snippets: Optional[SnippetStore] = None
    errors: ErrorReporter = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(
            self, "errors", ErrorReporter(self.error_log, depth=self.config.error_log_depth)
        )

    @classmethod
    def from_config(
        cls,
        config: ServerConfig,
        *,
        snippets: Optional[SnippetStore] = None,
        stdout: Optional[IO[str]] = None,
        stderr: Optional[IO[str]] = None,
    ) -> "Application":
        """
        Resolve every dependency from `config`.

        Raises:
            TemplateBuildError: With template caching on, when any page
                fails to build.
        """
        info_log, error_log = new_loggers(stdout, stderr)
        templates = TemplateCache.from_directory(config.template_dir, cached=config.cache_templates)
        return cls(
            config=config,
            info_log=info_log,
            error_log=error_log,
            templates=templates,
            snippets=snippets,
        )

    def with_templates(self, templates: TemplateCache) -> "Application":
        """A copy of this Application using `templates`."""
        return dataclasses.replace(self, templates=templates)

    def reload_templates(self) -> "Application":
        """A copy with the template tree re-read from config.template_dir."""
        return self.with_templates(
            TemplateCache.from_directory(self.config.template_dir, cached=self.config.cache_templates)
        )
