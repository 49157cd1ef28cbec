"""
Spixi Mini Apps Directory - site builder

Regenerates the directory's app catalog from the upstream mini apps
repository and publishes it into the static site.
"""

from .catalog import AppRecord, Catalog, CatalogStore
from .config import BuildConfig
from .manifest import parse_manifest
from .reconciler import derive_record, reconcile
from .pipeline import RegenerationPipeline, RunSummary

__version__ = "1.0.0"

__all__ = [
    "AppRecord",
    "Catalog",
    "CatalogStore",
    "BuildConfig",
    "parse_manifest",
    "derive_record",
    "reconcile",
    "RegenerationPipeline",
    "RunSummary",
]
