"""
Asset Validator - Confirms icon URLs resolve before they reach the site.
"""

from __future__ import annotations

import logging
from typing import Optional

import requests

from common.exceptions import AssetUnavailable
from .config import PLACEHOLDER_ICON

logger = logging.getLogger(__name__)


class AssetValidator:
    """Probes remote icons and substitutes a local placeholder when missing."""

    def __init__(
        self,
        session: requests.Session,
        placeholder: str = PLACEHOLDER_ICON,
        timeout: float = 15.0,
        enabled: bool = True,
    ):
        self.session = session
        self.placeholder = placeholder
        self.timeout = timeout
        self.enabled = enabled

    def probe(self, url: str) -> None:
        """
        Check that an asset exists with a HEAD request.

        Raises:
            AssetUnavailable: Network error or non-success status.
        """
        try:
            response = self.session.head(url, timeout=self.timeout, allow_redirects=True)
        except requests.RequestException as e:
            raise AssetUnavailable(url, str(e), cause=e)

        if not response.ok:
            raise AssetUnavailable(url, f"HTTP {response.status_code}")

    def validate(self, url: Optional[str]) -> str:
        """
        Return a displayable icon URL.

        Never raises: anything other than a confirmed remote asset yields
        the placeholder.
        """
        if not url:
            return self.placeholder
        if not self.enabled:
            return url

        try:
            self.probe(url)
        except AssetUnavailable as e:
            logger.warning(f"Using placeholder icon: {e}")
            return self.placeholder
        return url
