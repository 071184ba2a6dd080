"""
Unit tests for the Application context and publishing a new one.
"""

import dataclasses
import io

import pytest

from snippetbox.app import Application
from snippetbox.errors import TemplateBuildError
from snippetbox.reporting import ErrorReporter
from snippetbox.server import SnippetServer
from snippetbox.templating import TemplateCache


class TestApplication:
    def test_is_frozen(self, make_app):
        app = make_app()
        with pytest.raises(dataclasses.FrozenInstanceError):
            app.templates = None

    def test_reporter_uses_error_log_and_depth(self, make_app):
        app = make_app(error_log_depth=3)

        assert isinstance(app.errors, ErrorReporter)
        assert app.errors.error_log is app.error_log
        assert app.errors.depth == 3

    def test_from_config(self, config):
        out, err = io.StringIO(), io.StringIO()
        app = Application.from_config(config, stdout=out, stderr=err)

        assert app.config is config
        assert "home.html" in app.templates
        assert app.snippets is None

        app.info_log.info("hello")
        app.error_log.error("oops")
        assert "hello" in out.getvalue()
        assert "oops" in err.getvalue()

    def test_from_config_fails_on_broken_tree(self, config, template_dir):
        (template_dir / "base.html").write_text('{% define "base" %}{{ broken {% enddefine %}')
        with pytest.raises(TemplateBuildError):
            Application.from_config(config, stdout=io.StringIO(), stderr=io.StringIO())

    def test_with_templates_returns_new_app(self, make_app, template_dir):
        app = make_app()
        templates = TemplateCache.from_directory(template_dir)

        updated = app.with_templates(templates)

        assert updated is not app
        assert updated.templates is templates
        assert app.templates is not templates
        assert updated.config is app.config
        assert updated.info_log is app.info_log

    def test_reload_templates_rereads_tree(self, make_app, template_dir):
        app = make_app()
        page = template_dir / "pages" / "home.html"
        page.write_text(page.read_text().replace("Latest Snippets", "Newest Snippets"))

        reloaded = app.reload_templates()

        assert reloaded is not app
        assert reloaded.templates is not app.templates


class TestPublish:
    def test_publish_swaps_context(self, make_app, logs):
        first = make_app()
        second = first.with_templates(first.templates)
        server = SnippetServer(first)

        server.publish(second)

        assert server.app is second
        assert "Published new application context" in logs.info

    def test_new_requests_use_published_app(self, make_app, make_request, template_dir):
        server = SnippetServer(make_app())
        _, before = server._current

        page = template_dir / "pages" / "home.html"
        page.write_text(page.read_text().replace("{% define \"title\" %}Home", "{% define \"title\" %}Start"))
        server.reload_templates()
        _, after = server._current

        assert b"<title>Home - Snippetbox</title>" in before(make_request("GET", "/")).body
        assert b"<title>Start - Snippetbox</title>" in after(make_request("GET", "/")).body

    def test_failed_reload_keeps_running_app(self, make_app, template_dir):
        app = make_app()
        server = SnippetServer(app)
        (template_dir / "partials" / "nav.html").write_text('{% define "nav" %}{% if %}{% enddefine %}')

        with pytest.raises(TemplateBuildError):
            server.reload_templates()

        assert server.app is app
