"""Jinja2 environment used to render generated modules."""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from jinja2 import Environment, PackageLoader, StrictUndefined

from schema2orm.utils.logging import get_logger

logger = get_logger(__name__)

TEMPLATE_PACKAGE = "schema2orm.generation"
TEMPLATE_DIR = "templates"


@lru_cache(maxsize=None)
def get_environment() -> Environment:
    """Shared environment loading the templates shipped with the package.

    Block tags on their own line leave no blank line behind, so templates
    can be laid out like the Python they produce.
    """
    return Environment(
        loader=PackageLoader(TEMPLATE_PACKAGE, TEMPLATE_DIR),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )


def render_template(template_name: str, **context: Any) -> str:
    """Render one template with the given context.

    Raises:
        jinja2.TemplateError: If the template is missing or fails to render
    """
    logger.debug(f"Rendering {template_name}")
    return get_environment().get_template(template_name).render(**context)
