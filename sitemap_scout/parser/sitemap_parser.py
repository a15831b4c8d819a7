# File: sitemap_scout/parser/sitemap_parser.py
"""sitemap_scout.parser.sitemap_parser: parsing of sitemap indexes and urlsets."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Union

from lxml import etree

from sitemap_scout.crawler.models import FrontierEntry
from sitemap_scout.errors import SitemapParseError
from sitemap_scout.utils import parse_w3c_datetime

__all__ = ("SitemapDocument", "parse_sitemap")


@dataclass(slots=True)
class SitemapDocument:
    """What one sitemap body references: child sitemaps and/or content pages."""

    url: str
    sitemaps: List[str] = field(default_factory=list)
    entries: List[FrontierEntry] = field(default_factory=list)

    @property
    def is_index(self) -> bool:
        return bool(self.sitemaps)


def _child_text(node: etree._Element, name: str) -> Optional[str]:
    child = node.find(f"{{*}}{name}")
    if child is None or child.text is None:
        return None
    text = child.text.strip()
    return text or None


def _parse_priority(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        priority = float(value)
    except ValueError:
        return None
    return priority if 0.0 <= priority <= 1.0 else None


def parse_sitemap(xml_content: Union[str, bytes], url: str = "") -> SitemapDocument:
    """Parse a sitemap body into a :class:`SitemapDocument`.

    Args:
        xml_content: sitemap.xml body (namespaced or not). Raw bytes are
            decoded by lxml using the encoding of the XML declaration.
        url: where the body came from, used in error messages.

    Returns:
        SitemapDocument with ``sitemaps`` filled for a sitemap index and
        ``entries`` for a urlset.

    Raises:
        SitemapParseError: the body is empty, not XML, or its root is neither
        ``<urlset>`` nor ``<sitemapindex>`` (e.g. an HTML error page served with 200).

    Example:
    ```python
    from sitemap_scout.parser.sitemap_parser import parse_sitemap

    with open('sitemap.xml', encoding='utf-8') as f:
        doc = parse_sitemap(f.read(), 'https://example.com/sitemap.xml')
    print(doc.sitemaps, [e.url for e in doc.entries])
    ```
    """
    body = xml_content.strip()
    if not body:
        raise SitemapParseError(url, "empty body")
    # decoded text: its XML declaration no longer describes the bytes
    encoding = None
    if isinstance(body, str):
        body, encoding = body.encode("utf-8"), "utf-8"

    parser = etree.XMLParser(
        encoding=encoding, ns_clean=True, recover=True, resolve_entities=False, no_network=True
    )
    try:
        root = etree.fromstring(body, parser=parser)
    except etree.XMLSyntaxError as exc:
        raise SitemapParseError(url, str(exc)) from exc
    if root is None:
        raise SitemapParseError(url, "not an XML document")

    tag = etree.QName(root).localname.lower()
    doc = SitemapDocument(url=url)
    if tag == "sitemapindex":
        for node in root.iterfind("{*}sitemap"):
            loc = _child_text(node, "loc")
            if loc:
                doc.sitemaps.append(loc)
    elif tag == "urlset":
        for node in root.iterfind("{*}url"):
            loc = _child_text(node, "loc")
            if not loc:
                continue
            doc.entries.append(
                FrontierEntry(
                    url=loc,
                    last_modified=parse_w3c_datetime(_child_text(node, "lastmod")),
                    sitemap_priority=_parse_priority(_child_text(node, "priority")),
                    sitemap_changefreq=_child_text(node, "changefreq"),
                )
            )
    else:
        raise SitemapParseError(url, f"unexpected root element <{tag}>")
    return doc
