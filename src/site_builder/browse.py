"""
Catalog View - Browsing state over a catalog, as the directory page shows it.

Holds the active category filter, search query and revealed page size,
and projects the catalog through them.
"""

from __future__ import annotations

from typing import Optional, List

from .catalog import AppRecord, Catalog

ALL_CATEGORIES = "All"


class CatalogView:
    """
    Filter, search and paginate a catalog.

    Changing the category or query resets the revealed count to the
    initial page size.
    """

    def __init__(self, catalog: Catalog, initial_page_size: int = 9, page_increment: int = 6):
        self.catalog = catalog
        self.initial_page_size = initial_page_size
        self.page_increment = page_increment
        self.active_category = ALL_CATEGORIES
        self.query = ""
        self.displayed_count = initial_page_size

    @property
    def categories(self) -> List[str]:
        return list(self.catalog.categories)

    def filter_by_category(self, category: str) -> None:
        self.active_category = category or ALL_CATEGORIES
        self.displayed_count = self.initial_page_size

    def search(self, query: str) -> None:
        self.query = query or ""
        self.displayed_count = self.initial_page_size

    def load_more(self) -> None:
        self.displayed_count += self.page_increment

    def matches(self) -> List[AppRecord]:
        """All apps passing the category filter and search query."""
        results = self.catalog.apps

        if self.active_category != ALL_CATEGORIES:
            results = [app for app in results if app.category == self.active_category]

        if self.query:
            term = self.query.lower()
            results = [
                app for app in results
                if term in app.name.lower()
                or term in app.description.lower()
                or term in app.publisher.lower()
            ]

        return list(results)

    def visible(self) -> List[AppRecord]:
        """The revealed page of matches."""
        return self.matches()[:self.displayed_count]

    @property
    def has_more(self) -> bool:
        return self.displayed_count < len(self.matches())

    def featured(self) -> List[AppRecord]:
        return self.catalog.featured()

    def get(self, app_id: str) -> Optional[AppRecord]:
        """Record for the detail view."""
        return self.catalog.get(app_id)
