"""
Build Configuration - Where the directory data comes from and goes to.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Optional, List, Dict, Any

from common.exceptions import InvalidConfigError, MissingConfigError

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = ["All", "AI", "Games", "IoT", "Tools", "Dev Tools"]
PLACEHOLDER_ICON = "assets/images/placeholder-app.png"


@dataclass
class BuildConfig:
    """Settings for one regeneration run."""
    # Upstream repository
    owner: str = "ixian-platform"
    repo: str = "Spixi-Mini-Apps"
    branch: str = "master"
    apps_path: str = "apps"
    manifest_ext: str = "spixi"
    github_token: Optional[str] = None

    # Local artifacts
    catalog_path: Path = Path("data/apps.json")
    html_path: Path = Path("index.html")
    template_dir: Optional[Path] = None

    # Curation defaults
    default_categories: List[str] = field(default_factory=lambda: list(DEFAULT_CATEGORIES))
    default_category: str = "Tools"
    placeholder_icon: str = PLACEHOLDER_ICON

    # Network
    timeout: float = 15.0
    workers: int = 4
    check_icons: bool = True

    # Browsing
    initial_page_size: int = 9
    page_increment: int = 6

    _PATH_FIELDS = ("catalog_path", "html_path", "template_dir")

    def __post_init__(self):
        for name in self._PATH_FIELDS:
            value = getattr(self, name)
            if value is not None and not isinstance(value, Path):
                setattr(self, name, Path(value))

        if self.workers < 1:
            raise InvalidConfigError("workers", self.workers, "must be at least 1")
        if self.timeout <= 0:
            raise InvalidConfigError("timeout", self.timeout, "must be positive")
        if self.initial_page_size < 1:
            raise InvalidConfigError("initial_page_size", self.initial_page_size, "must be at least 1")
        if self.page_increment < 1:
            raise InvalidConfigError("page_increment", self.page_increment, "must be at least 1")
        if not self.default_categories:
            raise InvalidConfigError("default_categories", self.default_categories, "must not be empty")

        if not self.github_token:
            self.github_token = os.environ.get("GITHUB_TOKEN") or None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BuildConfig":
        """Create from dictionary, warning about unknown keys."""
        known = {f.name: f for f in fields(cls)}
        kwargs: Dict[str, Any] = {}

        for key, value in data.items():
            if key not in known:
                logger.warning(f"Ignoring unknown config key: {key}")
                continue
            kwargs[key] = _check_type(key, value, getattr(cls, key, None))

        return cls(**kwargs)

    @classmethod
    def load(cls, path: Path) -> "BuildConfig":
        """
        Load configuration from a JSON file.

        Relative artifact paths are resolved against the file's directory.
        """
        if not path.exists():
            raise MissingConfigError(str(path))

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidConfigError(str(path), "<file>", f"not valid JSON: {e}")

        if not isinstance(data, dict):
            raise InvalidConfigError(str(path), "<file>", "top level must be an object")

        config = cls.from_dict(data)
        base = path.parent
        for name in cls._PATH_FIELDS:
            value = getattr(config, name)
            if value is not None and not value.is_absolute():
                setattr(config, name, base / value)
        return config

    def with_overrides(self, **overrides) -> "BuildConfig":
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self

    # URL conventions of the upstream repository

    @property
    def listing_url(self) -> str:
        return (
            f"https://api.github.com/repos/{self.owner}/{self.repo}"
            f"/contents/{self.apps_path}?ref={self.branch}"
        )

    def raw_url(self, app_id: str, filename: str) -> str:
        return (
            f"https://raw.githubusercontent.com/{self.owner}/{self.repo}"
            f"/{self.branch}/{self.apps_path}/{app_id}/{filename}"
        )

    def manifest_url(self, app_id: str) -> str:
        return self.raw_url(app_id, f"appinfo.{self.manifest_ext}")

    def icon_url(self, app_id: str) -> str:
        return self.raw_url(app_id, "icon.png")

    def tree_url(self, app_id: str) -> str:
        return (
            f"https://github.com/{self.owner}/{self.repo}"
            f"/tree/{self.branch}/{self.apps_path}/{app_id}"
        )


def _check_type(key: str, value: Any, default: Any) -> Any:
    """Reject values whose JSON type cannot stand in for the default."""
    if key == "default_categories":
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise InvalidConfigError(key, value, "expected a list of strings")
        return value
    if value is None or default is None:
        return value
    if isinstance(default, bool):
        ok = isinstance(value, bool)
    elif isinstance(default, (int, float)):
        ok = isinstance(value, (int, float)) and not isinstance(value, bool)
    elif isinstance(default, (str, Path)):
        ok = isinstance(value, str)
    else:
        ok = True
    if not ok:
        raise InvalidConfigError(key, value, f"expected {type(default).__name__}")
    return value
