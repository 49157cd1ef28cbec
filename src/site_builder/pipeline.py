"""
Regeneration Pipeline - Rebuilds the directory from the upstream repository.

Workflow:
1. Read the prior catalog (absent or unreadable -> defaults)
2. List app directories upstream (failure aborts the run)
3. Fetch, parse and derive each app's record (failures skip the app)
4. Validate icons
5. Reconcile into the new catalog and write apps.json
6. Inject the catalog into index.html
"""

from __future__ import annotations

import contextvars
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Union

from common.decorators import timed
from common.logging_config import LogContext
from common.exceptions import (
    RemoteListingError, ManifestFetchError, ManifestParseError,
)
from .assets import AssetValidator
from .catalog import AppRecord, Catalog, CatalogStore
from .config import BuildConfig
from .injector import SiteInjector
from .reconciler import derive_record, reconcile
from .remote import GitHubSource
from .templates import TemplateLoader

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    """Outcome of one regeneration run."""
    discovered: int = 0
    processed: int = 0
    skipped: Dict[str, str] = field(default_factory=dict)
    catalog_changed: bool = False
    document_changed: bool = False
    aborted: bool = False
    abort_reason: Optional[str] = None
    dry_run: bool = False
    catalog: Optional[Catalog] = None

    @property
    def success(self) -> bool:
        return not self.aborted

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    def lines(self) -> List[str]:
        """Human-readable report."""
        if self.aborted:
            return [f"Aborted: {self.abort_reason}", "Catalog was not modified."]

        prefix = "[dry run] " if self.dry_run else ""
        lines = [
            f"{prefix}Discovered {self.discovered} apps: "
            f"{self.processed} processed, {self.skipped_count} skipped",
        ]
        for app_id, reason in self.skipped.items():
            lines.append(f"  skipped {app_id}: {reason}")
        lines.append(f"{prefix}Catalog {'updated' if self.catalog_changed else 'unchanged'}")
        lines.append(f"{prefix}Page {'updated' if self.document_changed else 'unchanged'}")
        return lines


class RegenerationPipeline:
    """
    Runs the catalog regeneration.

    Collaborators can be injected for tests; by default they are built
    from the config.
    """

    def __init__(
        self,
        config: BuildConfig,
        source: Optional[GitHubSource] = None,
        validator: Optional[AssetValidator] = None,
        store: Optional[CatalogStore] = None,
        injector: Optional[SiteInjector] = None,
    ):
        self.config = config
        self.source = source or GitHubSource(config)
        self.validator = validator or AssetValidator(
            self.source.session,
            placeholder=config.placeholder_icon,
            timeout=config.timeout,
            enabled=config.check_icons,
        )
        self.store = store or CatalogStore(config.catalog_path)
        if injector is None:
            overrides = [config.template_dir] if config.template_dir else None
            injector = SiteInjector(TemplateLoader(overrides), config.placeholder_icon)
        self.injector = injector

    def build_record(self, app_id: str, prior: Optional[Catalog]) -> AppRecord:
        """
        Build one app's record.

        Raises:
            ManifestFetchError, ManifestParseError: The app must be skipped.
        """
        logger.info(f"Processing {app_id}...")
        manifest = self.source.fetch_manifest(app_id)
        prior_record = prior.get(app_id) if prior else None

        return derive_record(
            app_id,
            manifest,
            prior_record,
            self.config.default_category,
            icon=self.validator.validate(self.config.icon_url(app_id)),
            github=self.config.tree_url(app_id),
        )

    def _try_build(self, app_id: str, prior: Optional[Catalog]) -> Union[AppRecord, Exception]:
        with LogContext(app_id=app_id):
            try:
                return self.build_record(app_id, prior)
            except (ManifestFetchError, ManifestParseError) as e:
                logger.error(f"Failed to process {app_id}: {e}")
                return e

    def collect_records(self, app_ids: List[str], prior: Optional[Catalog], summary: RunSummary) -> List[AppRecord]:
        """Build records concurrently, keeping listing order."""
        # Each worker call runs in a copy of the caller's log context
        contexts = [contextvars.copy_context() for _ in app_ids]
        with ThreadPoolExecutor(max_workers=self.config.workers) as pool:
            results = list(pool.map(
                lambda ctx, app_id: ctx.run(self._try_build, app_id, prior),
                contexts, app_ids,
            ))

        records = []
        for app_id, result in zip(app_ids, results):
            if isinstance(result, AppRecord):
                records.append(result)
            else:
                summary.skipped[app_id] = result.message
        summary.processed = len(records)
        return records

    @timed
    def run(self, dry_run: bool = False) -> RunSummary:
        """
        Regenerate apps.json and index.html.

        Args:
            dry_run: Compute everything but write nothing.
        """
        summary = RunSummary(dry_run=dry_run)
        logger.info("Starting apps update...")

        prior = self.store.load()

        try:
            app_ids = self.source.list_app_ids()
        except RemoteListingError as e:
            logger.error(f"Fatal error updating apps: {e}")
            summary.aborted = True
            summary.abort_reason = e.message
            return summary

        summary.discovered = len(app_ids)
        records = self.collect_records(app_ids, prior, summary)
        catalog = reconcile(records, prior, self.config.default_categories)
        summary.catalog = catalog

        if dry_run:
            summary.catalog_changed = self.store.would_change(catalog)
            summary.document_changed = self.injector.apply(self.config.html_path, catalog, write=False)
        else:
            summary.catalog_changed = self.store.save(catalog)
            summary.document_changed = self.injector.apply(self.config.html_path, catalog)

        logger.info(
            f"Successfully updated catalog with {summary.processed} apps "
            f"({summary.skipped_count} skipped)"
        )
        return summary
