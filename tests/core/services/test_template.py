"""
Test suite for Renderer template service.

- Template environment initialization
- Async template rendering
- HTML/text email pairs and the bundled templates

Run all tests:
    pytest tests/core/services/test_template.py -v
"""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from jinja2 import TemplateNotFound

from credgate.core.services.template import Renderer

TEMPLATE_DIR = Path(__file__).resolve().parents[3] / "credgate" / "templates"


@pytest.fixture(autouse=True)
def reset_renderer():
    yield
    Renderer._env = None


class TestRendererInitialization:

    def test_initialize_sets_environment(self):
        with patch("credgate.core.services.template.Environment") as mock_env_class:
            mock_env_instance = MagicMock()
            mock_env_class.return_value = mock_env_instance

            Renderer.initialize(template_dir="/templates")

            mock_env_class.assert_called_once()
            assert Renderer._env == mock_env_instance

    def test_initialize_with_file_system_loader(self):
        with patch("credgate.core.services.template.FileSystemLoader") as mock_loader:
            Renderer.initialize(template_dir="/path/to/templates")

            mock_loader.assert_called_once_with("/path/to/templates")

    def test_initialize_enables_autoescape_and_async(self):
        with patch("credgate.core.services.template.Environment") as mock_env_class:
            Renderer.initialize(template_dir="/templates")

            call_kwargs = mock_env_class.call_args[1]
            assert call_kwargs["autoescape"] is True
            assert call_kwargs["enable_async"] is True

    def test_is_initialized(self):
        assert Renderer.is_initialized() is False

        Renderer.initialize(str(TEMPLATE_DIR))

        assert Renderer.is_initialized() is True


class TestRendererRenderTemplate:

    async def test_render_template_with_context(self):
        mock_env = MagicMock()
        mock_template = AsyncMock()
        mock_template.render_async = AsyncMock(return_value="<h1>Hello, John</h1>")
        mock_env.get_template.return_value = mock_template
        Renderer._env = mock_env

        result = await Renderer.render_template("greeting.html", {"name": "John"})

        assert result == "<h1>Hello, John</h1>"
        mock_env.get_template.assert_called_once_with("greeting.html")
        mock_template.render_async.assert_called_once_with(name="John")

    async def test_render_template_without_context(self):
        mock_env = MagicMock()
        mock_template = AsyncMock()
        mock_template.render_async = AsyncMock(return_value="<p>Content</p>")
        mock_env.get_template.return_value = mock_template
        Renderer._env = mock_env

        await Renderer.render_template("template.html")

        mock_template.render_async.assert_called_once_with()

    async def test_render_template_not_initialized(self):
        with pytest.raises(RuntimeError, match="not initialized"):
            await Renderer.render_template("otp.html")

    async def test_render_missing_template(self):
        Renderer.initialize(str(TEMPLATE_DIR))

        with pytest.raises(TemplateNotFound):
            await Renderer.render_template("missing.html")


class TestRenderEmail:

    async def test_otp_email(self):
        Renderer.initialize(str(TEMPLATE_DIR))

        html, text = await Renderer.render_email(
            "otp", {"app_name": "credgate", "otp_code": "123456", "expiry_minutes": 60}
        )

        assert "123456" in html
        assert "60 minutes" in html
        assert "123456" in text
        assert "credgate" in text

    async def test_password_reset_email(self):
        Renderer.initialize(str(TEMPLATE_DIR))

        html, text = await Renderer.render_email(
            "password_reset",
            {"app_name": "credgate", "reset_token": "abc.def.ghi", "expiry_minutes": 60},
        )

        assert "abc.def.ghi" in html
        assert "abc.def.ghi" in text

    async def test_html_is_autoescaped(self):
        Renderer.initialize(str(TEMPLATE_DIR))

        html, _ = await Renderer.render_email(
            "otp", {"app_name": "<script>", "otp_code": "123456", "expiry_minutes": 60}
        )

        assert "<script>" not in html
        assert "&lt;script&gt;" in html

    async def test_text_part_is_optional(self, tmp_path):
        (tmp_path / "only_html.html").write_text("<p>{{ value }}</p>", encoding="utf-8")
        Renderer.initialize(str(tmp_path))

        html, text = await Renderer.render_email("only_html", {"value": "x"})

        assert html == "<p>x</p>"
        assert text is None
