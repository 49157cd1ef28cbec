"""
App Catalog - The directory's persisted app records and categories.

The catalog is the single artifact shared between the regeneration run
and the site: data/apps.json holds ``{"apps": [...], "categories": [...]}``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, List, Dict, Any

from common.exceptions import CatalogReadError
from utils.atomic_write import atomic_write_json, dump_json

logger = logging.getLogger(__name__)


@dataclass
class AppRecord:
    """Directory entry for one mini app."""
    id: str
    name: str
    publisher: str
    description: str
    category: str
    version: str = "0.0.0"
    featured: bool = False
    icon: str = ""
    spixi_url: str = ""
    github: str = ""

    # Curated extras
    website: Optional[str] = None
    single_user: Optional[bool] = None
    multi_user: Optional[bool] = None

    def __post_init__(self):
        if not self.spixi_url:
            self.spixi_url = f"spixi://app/{self.id}"

    @property
    def capabilities(self) -> List[str]:
        caps = []
        if self.single_user:
            caps.append("singleUser")
        if self.multi_user:
            caps.append("multiUser")
        return caps

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON shape consumed by the site."""
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "publisher": self.publisher,
            "description": self.description,
            "category": self.category,
            "featured": self.featured,
            "version": self.version,
            "icon": self.icon,
            "spixiUrl": self.spixi_url,
            "github": self.github,
        }
        if self.website:
            data["website"] = self.website
        if self.single_user is not None:
            data["singleUser"] = self.single_user
        if self.multi_user is not None:
            data["multiUser"] = self.multi_user
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppRecord":
        """Create from dictionary."""
        single = data.get("singleUser")
        multi = data.get("multiUser")
        return cls(
            id=data["id"],
            name=data.get("name") or data["id"],
            publisher=data.get("publisher") or "Unknown",
            description=data.get("description") or "",
            category=data.get("category") or "",
            version=data.get("version") or "0.0.0",
            featured=bool(data.get("featured", False)),
            icon=data.get("icon") or "",
            spixi_url=data.get("spixiUrl") or "",
            github=data.get("github") or "",
            website=data.get("website") or None,
            single_user=bool(single) if single is not None else None,
            multi_user=bool(multi) if multi is not None else None,
        )


@dataclass
class Catalog:
    """App records plus the ordered category set."""
    apps: List[AppRecord] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)

    def get(self, app_id: str) -> Optional[AppRecord]:
        """Get app by ID."""
        for app in self.apps:
            if app.id == app_id:
                return app
        return None

    def by_id(self) -> Dict[str, AppRecord]:
        return {app.id: app for app in self.apps}

    def featured(self) -> List[AppRecord]:
        """Featured apps in catalog order."""
        return [app for app in self.apps if app.featured]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "apps": [app.to_dict() for app in self.apps],
            "categories": list(self.categories),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Catalog":
        """
        Create from dictionary.

        Malformed app entries are logged and dropped; a later entry with a
        duplicate id replaces the earlier one.
        """
        apps: Dict[str, AppRecord] = {}
        apps_data = data.get("apps")
        if not isinstance(apps_data, list):
            apps_data = []
        for app_data in apps_data:
            try:
                app = AppRecord.from_dict(app_data)
            except (KeyError, TypeError, AttributeError) as e:
                logger.warning(f"Failed to load app entry: {e}")
                continue
            if app.id in apps:
                logger.warning(f"Duplicate app id in catalog: {app.id}")
            apps[app.id] = app

        categories = data.get("categories")
        if not isinstance(categories, list):
            categories = []
        categories = [c for c in categories if isinstance(c, str)]
        return cls(apps=list(apps.values()), categories=categories)


class CatalogStore:
    """
    Reads and writes the catalog file.

    Writes are atomic and skipped when the serialized catalog is unchanged,
    so rerunning against the same upstream state leaves the file untouched.
    """

    def __init__(self, catalog_path: Path):
        """
        Initialize CatalogStore.

        Args:
            catalog_path: Path to apps.json
        """
        self.catalog_path = Path(catalog_path)

    def read(self) -> Optional[Catalog]:
        """
        Read the catalog.

        Returns:
            The catalog, or None if the file does not exist.

        Raises:
            CatalogReadError: The file exists but is not a usable catalog.
        """
        if not self.catalog_path.exists():
            return None

        try:
            with open(self.catalog_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise CatalogReadError(str(self.catalog_path), str(e), cause=e)

        if not isinstance(data, dict):
            raise CatalogReadError(str(self.catalog_path), "top level must be an object")
        for key in ("apps", "categories"):
            if data.get(key) is not None and not isinstance(data[key], list):
                raise CatalogReadError(str(self.catalog_path), f"'{key}' must be a list")

        catalog = Catalog.from_dict(data)
        logger.info(f"Loaded {len(catalog.apps)} apps from {self.catalog_path}")
        return catalog

    def load(self) -> Optional[Catalog]:
        """
        Load the prior catalog for a regeneration run.

        Returns:
            The catalog, or None if it is absent or unreadable.
        """
        try:
            catalog = self.read()
        except CatalogReadError as e:
            logger.warning(f"Could not read existing catalog: {e}")
            return None

        if catalog is None:
            logger.warning(f"Catalog not found: {self.catalog_path}, using defaults")
        return catalog

    def save(self, catalog: Catalog) -> bool:
        """
        Save the catalog to disk.

        Returns:
            True if the file content changed.
        """
        changed = atomic_write_json(self.catalog_path, catalog.to_dict(), indent=2)
        if changed:
            logger.info(f"Saved {len(catalog.apps)} apps to {self.catalog_path}")
        else:
            logger.info(f"Catalog unchanged: {self.catalog_path}")
        return changed

    def would_change(self, catalog: Catalog) -> bool:
        """Whether save() would rewrite the file, without writing it."""
        try:
            with open(self.catalog_path, "r", encoding="utf-8", newline="") as f:
                current = f.read()
        except (OSError, UnicodeDecodeError):
            return True
        return current != dump_json(catalog.to_dict(), indent=2)
