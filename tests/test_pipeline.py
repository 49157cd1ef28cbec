"""
Tests for the regeneration pipeline against a fake upstream repository.
"""

import json
import pytest
import requests

from common.logging_config import LogContext
from site_builder.config import PLACEHOLDER_ICON
from site_builder.pipeline import RegenerationPipeline, RunSummary
from site_builder.remote import GitHubSource

from conftest import RAW_BASE, SAMPLE_PAGE

pytestmark = pytest.mark.integration


def _pipeline(config, upstream):
    return RegenerationPipeline(config, source=GitHubSource(config, upstream.session))


def _saved(config):
    return json.loads(config.catalog_path.read_text(encoding="utf-8"))


class TestEndToEnd:
    """Full runs of the pipeline."""

    def test_alpha_beta_example(self, build_config, upstream, prior_catalog_file, prior_catalog_data):
        upstream.app_dirs = ["alpha", "beta"]
        upstream.manifests["alpha"] = "name=Alpha\npublisher=Acme\nversion=1.2.0"
        upstream.manifests["beta"] = requests.ConnectionError("connection reset")
        upstream.icons.add("alpha")

        summary = _pipeline(build_config, upstream).run()

        assert summary.success
        assert summary.discovered == 2
        assert summary.processed == 1
        assert list(summary.skipped) == ["beta"]

        saved = _saved(build_config)
        assert saved["categories"] == prior_catalog_data["categories"]
        assert len(saved["apps"]) == 1
        alpha = saved["apps"][0]
        assert alpha["id"] == "alpha"
        assert alpha["name"] == "Alpha"
        assert alpha["publisher"] == "Acme"
        assert alpha["version"] == "1.2.0"
        assert alpha["category"] == "Tools"
        assert alpha["featured"] is True
        assert alpha["description"] == "Curated alpha description"
        assert alpha["icon"] == f"{RAW_BASE}/alpha/icon.png"
        assert alpha["spixiUrl"] == "spixi://app/alpha"
        assert alpha["github"] == (
            "https://github.com/ixian-platform/Spixi-Mini-Apps/tree/master/apps/alpha"
        )

    def test_description_default_without_prior(self, build_config, upstream):
        upstream.app_dirs = ["alpha"]
        upstream.manifests["alpha"] = "name=Alpha\npublisher=Acme\nversion=1.2.0"

        _pipeline(build_config, upstream).run()

        alpha = _saved(build_config)["apps"][0]
        assert alpha["description"] == "No description available."
        assert alpha["category"] == "Tools"
        assert alpha["featured"] is False
        assert alpha["icon"] == PLACEHOLDER_ICON

    def test_dropped_app_not_in_catalog(self, build_config, upstream, prior_catalog_file):
        upstream.app_dirs = ["alpha"]
        upstream.manifests["alpha"] = "name=Alpha"

        _pipeline(build_config, upstream).run()

        ids = [app["id"] for app in _saved(build_config)["apps"]]
        assert ids == ["alpha"]

    def test_partial_failure_isolated(self, build_config, upstream):
        upstream.app_dirs = ["a", "b", "c", "d"]
        for app_id in ["a", "b", "d"]:
            upstream.manifests[app_id] = f"name={app_id.upper()}"
        upstream.manifests["c"] = requests.Timeout("timed out")

        summary = _pipeline(build_config, upstream).run()

        assert summary.success
        assert summary.processed == 3
        assert [a["id"] for a in _saved(build_config)["apps"]] == ["a", "b", "d"]

    def test_failure_logged_with_app_context(self, build_config, upstream, caplog):
        upstream.app_dirs = ["a", "c"]
        upstream.manifests["a"] = "name=A"
        upstream.manifests["c"] = requests.Timeout("timed out")

        with LogContext(branch="master"):
            _pipeline(build_config, upstream).run()

        failures = [r for r in caplog.records if "Failed to process c" in r.getMessage()]
        assert len(failures) == 1
        assert failures[0].extra_data == {"branch": "master", "app_id": "c"}

    def test_listing_order_kept_with_many_workers(self, build_config, upstream):
        build_config.workers = 8
        upstream.app_dirs = [f"app{i:02d}" for i in range(20)][::-1]
        for app_id in upstream.app_dirs:
            upstream.manifests[app_id] = f"name={app_id}"

        _pipeline(build_config, upstream).run()

        assert [a["id"] for a in _saved(build_config)["apps"]] == upstream.app_dirs


class TestFatalPath:
    """Listing failures abort without touching the catalog."""

    @pytest.mark.parametrize("error", [requests.ConnectionError("down"), 500])
    def test_listing_failure_keeps_artifact(self, build_config, upstream, prior_catalog_file, error):
        before = prior_catalog_file.read_bytes()
        upstream.listing_error = error

        summary = _pipeline(build_config, upstream).run()

        assert summary.aborted
        assert not summary.success
        assert "Failed to list apps" in summary.abort_reason
        assert prior_catalog_file.read_bytes() == before
        assert summary.lines()[0].startswith("Aborted:")

    def test_listing_failure_writes_nothing_fresh(self, build_config, upstream, sample_page):
        upstream.listing_error = 404

        _pipeline(build_config, upstream).run()

        assert not build_config.catalog_path.exists()
        assert sample_page.read_text() == SAMPLE_PAGE


class TestIdempotence:
    """Re-running against unchanged upstream is a no-op."""

    def test_second_run_byte_identical(self, build_config, upstream, prior_catalog_file, sample_page):
        upstream.app_dirs = ["alpha", "gamma"]
        upstream.manifests["alpha"] = "name=Alpha\nversion=1.2.0"
        upstream.manifests["gamma"] = "name=Gamma\ndescription=Third app"
        upstream.icons.update({"alpha", "gamma"})

        first = _pipeline(build_config, upstream).run()
        catalog_bytes = build_config.catalog_path.read_bytes()
        page_text = sample_page.read_text()

        second = _pipeline(build_config, upstream).run()

        assert first.catalog_changed and first.document_changed
        assert not second.catalog_changed
        assert not second.document_changed
        assert build_config.catalog_path.read_bytes() == catalog_bytes
        assert sample_page.read_text() == page_text
        assert 'data-app-id="alpha"' in page_text


class TestDryRun:
    """Dry runs report without writing."""

    def test_nothing_written(self, build_config, upstream, prior_catalog_file, sample_page):
        before = prior_catalog_file.read_bytes()
        upstream.app_dirs = ["alpha"]
        upstream.manifests["alpha"] = "name=Alpha"

        summary = _pipeline(build_config, upstream).run(dry_run=True)

        assert summary.dry_run
        assert summary.catalog_changed is True
        assert summary.document_changed is True
        assert summary.catalog.get("alpha").name == "Alpha"
        assert prior_catalog_file.read_bytes() == before
        assert sample_page.read_text() == SAMPLE_PAGE

    def test_reports_reformat_of_non_canonical_catalog(self, build_config, upstream):
        upstream.app_dirs = ["alpha"]
        upstream.manifests["alpha"] = "name=Alpha"
        _pipeline(build_config, upstream).run()
        canonical = build_config.catalog_path.read_text()

        # Same data, different layout: a real run would rewrite it
        build_config.catalog_path.write_text(json.dumps(json.loads(canonical)))
        assert _pipeline(build_config, upstream).run(dry_run=True).catalog_changed is True

        build_config.catalog_path.write_text(canonical)
        assert _pipeline(build_config, upstream).run(dry_run=True).catalog_changed is False


class TestMissingDocument:
    """A missing page does not fail the run."""

    def test_catalog_still_written(self, build_config, upstream):
        upstream.app_dirs = ["alpha"]
        upstream.manifests["alpha"] = "name=Alpha"

        summary = _pipeline(build_config, upstream).run()

        assert summary.success
        assert summary.catalog_changed
        assert not summary.document_changed
        assert build_config.catalog_path.exists()

    def test_undecodable_page_does_not_fail_run(self, build_config, upstream):
        upstream.app_dirs = ["alpha"]
        upstream.manifests["alpha"] = "name=Alpha"
        build_config.html_path.write_bytes(
            '<div class="featured-grid">caf\xe9</div><!-- APPS_DATA -->'.encode("latin-1")
        )

        summary = _pipeline(build_config, upstream).run()

        assert summary.success
        assert summary.catalog_changed
        assert not summary.document_changed
        assert _saved(build_config)["apps"][0]["name"] == "Alpha"


class TestRunSummary:
    """Tests for the run report."""

    def test_lines_list_skipped(self):
        summary = RunSummary(discovered=3, processed=2, skipped={"beta": "HTTP 404"},
                             catalog_changed=True)
        lines = summary.lines()
        assert lines[0] == "Discovered 3 apps: 2 processed, 1 skipped"
        assert "  skipped beta: HTTP 404" in lines
        assert "Catalog updated" in lines
        assert "Page unchanged" in lines


class TestUnusablePriorCatalog:
    """A prior catalog of the wrong shape falls back to defaults."""

    def test_non_list_apps(self, build_config, upstream):
        build_config.catalog_path.parent.mkdir(parents=True, exist_ok=True)
        build_config.catalog_path.write_text(json.dumps({"apps": 5, "categories": ["All"]}))
        upstream.app_dirs = ["alpha"]
        upstream.manifests["alpha"] = "name=Alpha"

        summary = _pipeline(build_config, upstream).run()

        assert summary.success
        data = _saved(build_config)
        assert data["categories"] == build_config.default_categories
        assert data["apps"][0]["category"] == build_config.default_category
