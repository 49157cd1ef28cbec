"""
Site Injector - Rewrites index.html with freshly generated catalog data.

Two independent edits are made to the static page:

1. The embedded data statement ``<script>window.APPS_DATA = ...;</script>``
   (or the ``<!-- APPS_DATA -->`` placeholder on first run) is replaced
   with the current catalog.
2. The contents of the element classed ``featured-grid`` are replaced with
   pre-rendered cards for featured apps.

Both edits are idempotent: applying them to their own output changes
nothing, in either order.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Iterator, Optional, List, Tuple

from common.exceptions import DocumentInjectionWarning
from utils.atomic_write import write_if_changed
from .catalog import AppRecord, Catalog
from .config import PLACEHOLDER_ICON
from .templates import TemplateLoader

logger = logging.getLogger(__name__)

DATA_MARKER = "<!-- APPS_DATA -->"
DATA_STATEMENT_RE = re.compile(
    r"<script\b[^>]*>\s*window\.APPS_DATA\s*=.*?</script>",
    re.DOTALL | re.IGNORECASE,
)

FEATURED_CLASS = "featured-grid"
CARD_TEMPLATE = "featured_card.html.j2"

# Comments, or tags with quoted attribute values that may contain '>'
TAG_RE = re.compile(
    r"<!--.*?-->"
    r"|<(/?)([a-zA-Z][a-zA-Z0-9:-]*)((?:[^>\"']|\"[^\"]*\"|'[^']*')*)>",
    re.DOTALL,
)
CLASS_ATTR_RE = re.compile(
    r"""(?:^|\s)class\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'>]+))""",
    re.IGNORECASE,
)
RAW_TEXT_TAGS = {"script", "style", "textarea", "title"}
VOID_TAGS = {
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "source", "track", "wbr",
}


def serialize_embedding(catalog: Catalog) -> str:
    """
    Render the catalog as an inline script statement.

    ``<`` is written as ``\\u003c`` so the payload can never close the
    script element or open a comment.
    """
    payload = json.dumps(catalog.to_dict(), ensure_ascii=False, separators=(",", ":"))
    payload = payload.replace("<", "\\u003c")
    return f"<script>window.APPS_DATA = {payload};</script>"


def _iter_tags(html: str, pos: int = 0) -> Iterator[Tuple[re.Match, str, bool, bool]]:
    """
    Yield (match, lowercase name, is_closing, is_self_closing) for tags.

    Comments are skipped, as is the body of raw text elements such as
    <script>, whose content is not markup.
    """
    while True:
        match = TAG_RE.search(html, pos)
        if match is None:
            return
        pos = match.end()
        name = match.group(2)
        if name is None:
            continue

        name = name.lower()
        closing = match.group(1) == "/"
        self_closing = not closing and match.group(3).rstrip().endswith("/")
        yield match, name, closing, self_closing

        if name in RAW_TEXT_TAGS and not closing and not self_closing:
            end = re.compile(rf"</{name}\s*>", re.IGNORECASE).search(html, pos)
            if end is None:
                return
            pos = end.start()


def _has_class(attrs: str, class_name: str) -> bool:
    match = CLASS_ATTR_RE.search(attrs)
    if match is None:
        return False
    value = next(g for g in match.groups() if g is not None)
    return class_name in value.split()


def find_element_contents(html: str, class_name: str) -> Optional[Tuple[int, int, int]]:
    """
    Locate the contents of the first element carrying ``class_name``.

    The element ends at the closing tag that balances its opening tag;
    same-name elements nested inside are counted, so they stay inside.

    Returns:
        (open_tag_start, contents_start, contents_end), or None when no such
        element exists or it is never closed.
    """
    tags = _iter_tags(html)
    for match, name, closing, self_closing in tags:
        if closing or not _has_class(match.group(3), class_name):
            continue
        if self_closing or name in VOID_TAGS:
            return None

        depth = 1
        for inner, inner_name, inner_closing, inner_self_closing in tags:
            if inner_name != name or inner_self_closing:
                continue
            depth += -1 if inner_closing else 1
            if depth == 0:
                return match.start(), match.end(), inner.start()
        return None
    return None


def _line_indent(html: str, index: int) -> str:
    """Whitespace before ``index`` on its line, or "" if other text precedes it."""
    line_start = html.rfind("\n", 0, index) + 1
    prefix = html[line_start:index]
    return prefix if prefix.strip() == "" else ""


def _indent(block: str, prefix: str) -> str:
    return "\n".join(prefix + line if line.strip() else "" for line in block.split("\n"))


class SiteInjector:
    """Applies generated catalog content to the static page."""

    def __init__(
        self,
        loader: Optional[TemplateLoader] = None,
        placeholder_icon: str = PLACEHOLDER_ICON,
    ):
        self.loader = loader or TemplateLoader()
        self.placeholder_icon = placeholder_icon

    def render_card(self, app: AppRecord) -> str:
        """Render one featured app card."""
        return self.loader.render(CARD_TEMPLATE, app=app, placeholder=self.placeholder_icon)

    def render_featured(self, catalog: Catalog) -> List[str]:
        """Render cards for featured apps in catalog order."""
        return [self.render_card(app) for app in catalog.featured()]

    def embed_catalog(self, html: str, catalog: Catalog, source: str = "<document>") -> str:
        """
        Replace the embedded data statement, or the placeholder marker.

        Raises:
            DocumentInjectionWarning: Neither is present.
        """
        statement = serialize_embedding(catalog)

        match = DATA_STATEMENT_RE.search(html)
        if match:
            start, end = match.span()
        else:
            start = html.find(DATA_MARKER)
            if start < 0:
                raise DocumentInjectionWarning(
                    source, "data embedding",
                    f"no APPS_DATA script or {DATA_MARKER} marker found",
                )
            end = start + len(DATA_MARKER)

        return html[:start] + statement + html[end:]

    def inject_featured(self, html: str, catalog: Catalog, source: str = "<document>") -> str:
        """
        Replace the contents of the featured container with rendered cards.

        Raises:
            DocumentInjectionWarning: No balanced featured container exists.
        """
        span = find_element_contents(html, FEATURED_CLASS)
        if span is None:
            raise DocumentInjectionWarning(
                source, "featured fragment",
                f"no balanced element with class '{FEATURED_CLASS}' found",
            )

        tag_start, start, end = span
        indent = _line_indent(html, tag_start)
        cards = [_indent(card, indent + "  ") for card in self.render_featured(catalog)]

        contents = "\n" + "".join(card + "\n" for card in cards) + indent
        return html[:start] + contents + html[end:]

    def render_document(self, html: str, catalog: Catalog, source: str = "<document>") -> str:
        """Apply both edits, skipping (and logging) any that cannot be applied."""
        for step in (self.embed_catalog, self.inject_featured):
            try:
                html = step(html, catalog, source)
            except DocumentInjectionWarning as e:
                logger.warning(str(e))
        return html

    def apply(self, path: Path, catalog: Catalog, write: bool = True) -> bool:
        """
        Update the page on disk.

        The page keeps its line endings. A page that cannot be read or
        written is logged and skipped; it never fails the run.

        Args:
            path: The HTML document
            catalog: Catalog to publish
            write: False to only report whether the page would change

        Returns:
            True if the document changed (or would change).
        """
        path = Path(path)
        if not path.exists():
            logger.warning(str(DocumentInjectionWarning(str(path), "page update", "document not found")))
            return False

        try:
            with open(path, "r", encoding="utf-8", newline="") as f:
                original = f.read()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(str(DocumentInjectionWarning(str(path), "page read", str(e))))
            return False

        crlf = "\r\n" in original
        updated = self.render_document(original.replace("\r\n", "\n"), catalog, str(path))
        if crlf:
            updated = updated.replace("\n", "\r\n")

        if updated == original:
            logger.info(f"Page unchanged: {path}")
            return False
        if write:
            try:
                write_if_changed(path, updated)
            except OSError as e:
                logger.warning(str(DocumentInjectionWarning(str(path), "page write", str(e))))
                return False
            logger.info(f"Updated {path} ({len(catalog.featured())} featured apps)")
        return True
