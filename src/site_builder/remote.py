"""
Remote Source - Reads the upstream mini apps repository on GitHub.

Lists app directories through the contents API and downloads each app's
manifest from raw.githubusercontent.com.
"""

from __future__ import annotations

import logging
from typing import Optional, List

import requests

from common.exceptions import (
    RemoteListingError, ManifestFetchError, ManifestParseError,
)
from .config import BuildConfig
from .manifest import parse_manifest

logger = logging.getLogger(__name__)

USER_AGENT = "spixi-directory-builder"


def build_session(token: Optional[str] = None) -> requests.Session:
    """Create an HTTP session with GitHub headers."""
    session = requests.Session()
    session.headers.update({
        "User-Agent": USER_AGENT,
        "Accept": "application/vnd.github+json",
    })
    if token:
        session.headers["Authorization"] = f"Bearer {token}"
    return session


class GitHubSource:
    """
    Upstream repository access.

    One instance is shared by the fetch workers; requests.Session is safe
    for concurrent GETs.
    """

    def __init__(self, config: BuildConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or build_session(config.github_token)

    def list_app_ids(self) -> List[str]:
        """
        List app ids (directory names) in listing order.

        Raises:
            RemoteListingError: Listing unreachable or not a directory listing.
        """
        url = self.config.listing_url
        logger.info(f"Fetching app list from {url}")

        try:
            response = self.session.get(url, timeout=self.config.timeout)
        except requests.RequestException as e:
            raise RemoteListingError(url, str(e), cause=e)

        if not response.ok:
            raise RemoteListingError(url, f"HTTP {response.status_code}")

        try:
            entries = response.json()
        except ValueError as e:
            raise RemoteListingError(url, "response is not JSON", cause=e)

        if not isinstance(entries, list):
            raise RemoteListingError(url, "response is not a directory listing")

        app_ids = [
            entry["name"] for entry in entries
            if isinstance(entry, dict) and entry.get("type") == "dir" and entry.get("name")
        ]
        logger.info(f"Found {len(app_ids)} app directories")
        return app_ids

    def fetch_manifest_text(self, app_id: str) -> str:
        """
        Download an app's manifest.

        Raises:
            ManifestFetchError: Network error, timeout or non-success status.
            ManifestParseError: Content is not UTF-8 text.
        """
        url = self.config.manifest_url(app_id)
        logger.debug(f"Fetching {url}")

        try:
            response = self.session.get(url, timeout=self.config.timeout)
        except requests.Timeout as e:
            raise ManifestFetchError(app_id, url, "timed out", cause=e)
        except requests.RequestException as e:
            raise ManifestFetchError(app_id, url, str(e), cause=e)

        if not response.ok:
            raise ManifestFetchError(app_id, url, f"HTTP {response.status_code}")

        try:
            return response.content.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ManifestParseError(app_id, "manifest is not UTF-8 text", cause=e)

    def fetch_manifest(self, app_id: str) -> dict:
        """Download and parse an app's manifest."""
        return parse_manifest(self.fetch_manifest_text(app_id))
