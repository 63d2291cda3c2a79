from jinja2 import Environment, FileSystemLoader, TemplateNotFound


class Renderer:
    """Async Jinja2 renderer for email bodies."""

    _env: Environment | None = None

    @classmethod
    def initialize(cls, template_dir: str) -> None:
        """
        Set up the Jinja2 environment.

        Args:
            template_dir (str): Directory holding ``<name>.html`` and optional
                ``<name>.txt`` templates.
        """
        cls._env = Environment(
            loader=FileSystemLoader(template_dir), autoescape=True, enable_async=True
        )

    @classmethod
    def is_initialized(cls) -> bool:
        return cls._env is not None

    @classmethod
    async def render_template(
        cls, template_name: str, context: dict | None = None
    ) -> str:
        """
        Render a single template file.

        Raises:
            RuntimeError: If the renderer has not been initialized.
            TemplateNotFound: If the template does not exist.
        """
        if cls._env is None:
            raise RuntimeError("Renderer not initialized. Call initialize() first.")
        template = cls._env.get_template(template_name)
        return await template.render_async(**(context or {}))

    @classmethod
    async def render_email(
        cls, name: str, context: dict | None = None
    ) -> tuple[str, str | None]:
        """
        Render the HTML body and, when present, the plain-text body of an email.

        Args:
            name (str): Template base name, e.g. ``"otp"``.
            context (dict | None): Template variables.

        Returns:
            tuple[str, str | None]: ``(html, text)``; ``text`` is None when no
            ``<name>.txt`` template exists.
        """
        html = await cls.render_template(f"{name}.html", context)
        try:
            text = await cls.render_template(f"{name}.txt", context)
        except TemplateNotFound:
            text = None
        return html, text


__all__ = ["Renderer"]
