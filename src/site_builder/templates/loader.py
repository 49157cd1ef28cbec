"""
Fragment Template Loader

Loads the HTML fragment templates used for pre-rendered site sections,
letting a site directory override the packaged defaults.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, List

from jinja2 import (
    ChoiceLoader, Environment, FileSystemLoader, Template, TemplateNotFound,
    select_autoescape,
)

from common.exceptions import SiteError

logger = logging.getLogger(__name__)


class TemplateLoader:
    """
    Loads fragment templates from multiple locations.

    Search order:
    1. Site override directories (in the order given)
    2. Templates packaged next to this module
    """

    PACKAGE_PATH = Path(__file__).parent

    def __init__(self, override_paths: Optional[List[Path]] = None):
        self._paths = [Path(p) for p in override_paths or []]
        self._paths.append(self.PACKAGE_PATH)
        self._env = self._create_environment()

    def _create_environment(self) -> Environment:
        """Create Jinja2 environment with all template paths."""
        loaders = []

        for path in self._paths:
            if path.is_dir():
                loaders.append(FileSystemLoader(str(path)))
                logger.debug(f"Added template path: {path}")
            else:
                logger.warning(f"Template directory not found: {path}")

        return Environment(
            loader=ChoiceLoader(loaders),
            autoescape=select_autoescape(["html", "j2"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def get_template(self, name: str) -> Template:
        """
        Get a template by name.

        Raises:
            SiteError: No search path provides the template.
        """
        try:
            return self._env.get_template(name)
        except TemplateNotFound as e:
            raise SiteError(
                f"Template not found: {name}",
                code="TEMPLATE_NOT_FOUND",
                details={"template": name, "paths": [str(p) for p in self._paths]},
                cause=e,
                recoverable=False,
            )

    def render(self, name: str, **variables) -> str:
        """Render a template with variables."""
        return self.get_template(name).render(**variables)
