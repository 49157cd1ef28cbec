"""
Reconciler - Merges upstream manifests with locally curated catalog data.

Upstream manifests own identity and versioning (name, publisher, version,
description when present). The local catalog owns editorial fields
(category, featured, website, capabilities, description fallback), which
is how manual curation survives regeneration.
"""

from __future__ import annotations

import logging
from typing import Optional, List, Mapping, Sequence

from .catalog import AppRecord, Catalog
from .manifest import KNOWN_KEYS

logger = logging.getLogger(__name__)

DEFAULT_PUBLISHER = "Unknown"
DEFAULT_VERSION = "0.0.0"
DEFAULT_DESCRIPTION = "No description available."


def _first(*values: Optional[str]) -> Optional[str]:
    """First non-empty value."""
    for value in values:
        if value:
            return value
    return None


def derive_record(
    app_id: str,
    manifest: Mapping[str, str],
    prior: Optional[AppRecord],
    default_category: str,
    icon: str = "",
    github: str = "",
) -> AppRecord:
    """
    Build an app record from a fresh manifest and the prior record.

    Args:
        app_id: Upstream directory name
        manifest: Parsed manifest
        prior: Record for the same id in the previous catalog, if any
        default_category: Category for apps nobody has curated yet
        icon: Icon URL for the app
        github: Source tree URL for the app
    """
    ignored = sorted(k for k in manifest if k not in KNOWN_KEYS)
    if ignored:
        logger.debug(f"{app_id}: ignoring manifest keys {', '.join(ignored)}")

    return AppRecord(
        id=app_id,
        name=_first(manifest.get("name"), app_id),
        publisher=_first(manifest.get("publisher"), DEFAULT_PUBLISHER),
        version=_first(manifest.get("version"), DEFAULT_VERSION),
        description=_first(
            manifest.get("description"),
            prior.description if prior else None,
            DEFAULT_DESCRIPTION,
        ),
        category=_first(prior.category if prior else None, default_category),
        featured=bool(prior.featured) if prior else False,
        icon=icon,
        github=github,
        website=prior.website if prior else None,
        single_user=prior.single_user if prior else None,
        multi_user=prior.multi_user if prior else None,
    )


def reconcile(
    records: Sequence[AppRecord],
    prior: Optional[Catalog],
    default_categories: Sequence[str],
) -> Catalog:
    """
    Assemble the new catalog.

    Only ``records`` make it into the catalog: apps missing upstream are
    dropped even if the prior catalog had them. Categories carry over from
    the prior catalog (defaults when it has none), so the category set is
    never reset, but it can grow: a record category not yet listed is
    appended to the end so every record's category stays in the set.
    """
    if prior is not None and prior.categories:
        categories = list(prior.categories)
    else:
        categories = list(default_categories)

    apps: List[AppRecord] = []
    seen = set()
    for record in records:
        if record.id in seen:
            logger.warning(f"Duplicate app id from upstream, keeping first: {record.id}")
            continue
        seen.add(record.id)
        apps.append(record)

        if record.category not in categories:
            logger.info(f"Adding category '{record.category}' used by {record.id}")
            categories.append(record.category)

    return Catalog(apps=apps, categories=categories)
