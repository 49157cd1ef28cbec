"""
Pytest configuration and shared fixtures for site builder tests.

Provides an in-memory stand-in for the upstream GitHub repository so no
test touches the network.
"""

import json
import pytest
from unittest.mock import MagicMock
from pathlib import Path
import sys

import requests

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


LISTING_URL = (
    "https://api.github.com/repos/ixian-platform/Spixi-Mini-Apps/contents/apps?ref=master"
)
RAW_BASE = "https://raw.githubusercontent.com/ixian-platform/Spixi-Mini-Apps/master/apps"


def make_response(status: int = 200, text: str = "", json_data=None) -> MagicMock:
    """Build a mock requests.Response."""
    response = MagicMock()
    response.status_code = status
    response.ok = 200 <= status < 300
    response.content = text.encode("utf-8")
    response.text = text
    if json_data is not None:
        response.json.return_value = json_data
    else:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    return response


class UpstreamStub:
    """
    Fake upstream repository behind a mocked requests.Session.

    Attributes:
        app_dirs: Directory names returned by the listing
        manifests: app id -> manifest text, or an exception to raise
        icons: app ids whose icon.png exists
        listing_error: Exception (or status code) for the listing call
    """

    def __init__(self):
        self.app_dirs = []
        self.extra_entries = []
        self.manifests = {}
        self.icons = set()
        self.listing_error = None
        self.session = MagicMock(spec=requests.Session)
        self.session.headers = {}
        self.session.get.side_effect = self._get
        self.session.head.side_effect = self._head

    def _get(self, url, timeout=None, **kwargs):
        if url == LISTING_URL:
            if isinstance(self.listing_error, Exception):
                raise self.listing_error
            if isinstance(self.listing_error, int):
                return make_response(self.listing_error, "error")
            entries = [{"name": d, "type": "dir"} for d in self.app_dirs]
            return make_response(200, json_data=entries + self.extra_entries)

        for app_id, manifest in self.manifests.items():
            if url == f"{RAW_BASE}/{app_id}/appinfo.spixi":
                if isinstance(manifest, Exception):
                    raise manifest
                return make_response(200, manifest)
        return make_response(404, "404: Not Found")

    def _head(self, url, timeout=None, allow_redirects=False, **kwargs):
        for app_id in self.icons:
            if url == f"{RAW_BASE}/{app_id}/icon.png":
                return make_response(200)
        return make_response(404)


@pytest.fixture
def upstream() -> UpstreamStub:
    """Empty fake upstream repository."""
    return UpstreamStub()


@pytest.fixture
def build_config(tmp_path: Path):
    """Config writing into a temporary site directory."""
    from site_builder.config import BuildConfig

    return BuildConfig(
        catalog_path=tmp_path / "data" / "apps.json",
        html_path=tmp_path / "index.html",
        workers=2,
        github_token="test-token",
    )


@pytest.fixture
def prior_catalog_data():
    """Previously curated catalog content."""
    return {
        "apps": [
            {
                "id": "alpha",
                "name": "Old Alpha",
                "publisher": "Acme",
                "description": "Curated alpha description",
                "category": "Tools",
                "featured": True,
                "version": "1.0.0",
                "icon": f"{RAW_BASE}/alpha/icon.png",
                "spixiUrl": "spixi://app/alpha",
                "github": "https://github.com/ixian-platform/Spixi-Mini-Apps/tree/master/apps/alpha",
                "website": "https://alpha.example",
                "multiUser": True,
            },
            {
                "id": "retired",
                "name": "Retired",
                "publisher": "Nobody",
                "description": "Gone upstream",
                "category": "Games",
                "featured": False,
                "version": "0.1.0",
                "icon": "assets/images/placeholder-app.png",
                "spixiUrl": "spixi://app/retired",
                "github": "",
            },
        ],
        "categories": ["All", "AI", "Games", "IoT", "Tools", "Dev Tools"],
    }


@pytest.fixture
def prior_catalog_file(build_config, prior_catalog_data) -> Path:
    """Write the prior catalog to the configured path."""
    path = build_config.catalog_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(prior_catalog_data, indent=2))
    return path


SAMPLE_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>Spixi Mini Apps Directory</title>
</head>
<body>
  <section class="featured">
    <h2>Featured apps</h2>
    <div class="featured-grid" id="featured-grid">
      <p>Loading featured apps...</p>
    </div>
  </section>
  <div id="app-grid" class="app-grid"></div>
  <!-- APPS_DATA -->
  <script src="js/app.js"></script>
</body>
</html>
"""


@pytest.fixture
def sample_page(build_config) -> Path:
    """Write a static page with both injection points."""
    path = build_config.html_path
    path.write_text(SAMPLE_PAGE)
    return path


# ============ Marker Configuration ============

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "unit: fast unit tests with no external deps"
    )
    config.addinivalue_line(
        "markers", "integration: full pipeline runs against the fake upstream"
    )
