"""Regex-based extraction of <title>, <meta> and canonical links.

No DOM is built. Missing or malformed tags simply yield None.
"""

import re
from dataclasses import dataclass, field
from typing import Optional

from link4coders.utils.text import clean_text

_META_TAG = re.compile(r"<meta\b[^>]*>", re.IGNORECASE)
_LINK_TAG = re.compile(r"<link\b[^>]*>", re.IGNORECASE)
_ATTRIBUTE = re.compile(
    r"""([a-zA-Z_:.-]+)\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'>]+))"""
)
_TITLE_TAG = re.compile(r"<title[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL)


def _attributes(tag: str) -> dict[str, str]:
    attrs = {}
    for match in _ATTRIBUTE.finditer(tag):
        value = next((g for g in match.groups()[1:] if g is not None), "")
        attrs.setdefault(match.group(1).lower(), value)
    return attrs


def parse_meta_tags(html: str) -> dict[str, str]:
    """Map ``property``/``name`` (lower-cased) to ``content``; first wins."""
    tags: dict[str, str] = {}
    for tag in _META_TAG.finditer(html):
        attrs = _attributes(tag.group(0))
        key = attrs.get("property") or attrs.get("name") or attrs.get("itemprop")
        content = attrs.get("content")
        if key and content is not None:
            tags.setdefault(key.lower(), content)
    return tags


def _canonical_link(html: str) -> Optional[str]:
    for tag in _LINK_TAG.finditer(html):
        attrs = _attributes(tag.group(0))
        if "canonical" in attrs.get("rel", "").lower().split() and attrs.get("href"):
            return attrs["href"].strip()
    return None


@dataclass
class PageMeta:
    tags: dict[str, str] = field(default_factory=dict)
    title_tag: Optional[str] = None
    canonical: Optional[str] = None

    def first(self, *names: str) -> Optional[str]:
        for name in names:
            value = clean_text(self.tags.get(name))
            if value:
                return value
        return None

    @property
    def title(self) -> Optional[str]:
        return self.first("og:title", "twitter:title") or self.title_tag

    @property
    def description(self) -> Optional[str]:
        return self.first("og:description", "twitter:description", "description")

    @property
    def image(self) -> Optional[str]:
        return self.first("og:image", "og:image:url", "twitter:image", "twitter:image:src")


def parse_page(html: str) -> PageMeta:
    title_match = _TITLE_TAG.search(html)
    return PageMeta(
        tags=parse_meta_tags(html),
        title_tag=clean_text(title_match.group(1)) if title_match else None,
        canonical=_canonical_link(html),
    )
