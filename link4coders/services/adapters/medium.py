import re
from typing import Optional
from urllib.parse import urlsplit

from link4coders.errors import AdapterError, AdapterErrorReason
from link4coders.schemas.preview import PreviewAuthor, PreviewMetadata, PreviewType
from link4coders.services.adapters.base import PreviewAdapter
from link4coders.services.adapters.html import PageMeta, parse_page
from link4coders.services.detector import Platform
from link4coders.utils.text import clean_text

_BY_AUTHOR = re.compile(r"\bby\s+([^|<>\n]+?)\s*\|")
_BY_AUTHOR_SUFFIX = re.compile(r"\s*\|\s*by\s+[^|]*\|\s*Medium\s*$", re.IGNORECASE)
_MEDIUM_SUFFIX = re.compile(r"\s*\|\s*Medium\s*$", re.IGNORECASE)
_READING_TIME = re.compile(r"(\d+)\s*min\s*read", re.IGNORECASE)


def strip_medium_suffix(title: str) -> str:
    return _MEDIUM_SUFFIX.sub("", _BY_AUTHOR_SUFFIX.sub("", title)).strip()


def _medium_username(url: str) -> Optional[str]:
    parts = urlsplit(url)
    first = next((s for s in parts.path.split("/") if s), "")
    if first.startswith("@"):
        return first[1:] or None
    hostname = (parts.hostname or "").lower()
    if hostname.endswith(".medium.com"):
        return hostname[: -len(".medium.com")] or None
    return None


def _author_name(page: PageMeta, raw_titles: list[str]) -> Optional[str]:
    for text in raw_titles:
        match = _BY_AUTHOR.search(text)
        if match:
            return clean_text(match.group(1))
    name = page.first("author", "article:author")
    if name and not name.startswith("http"):
        return name
    return None


class MediumAdapter(PreviewAdapter):
    """Medium has no public read API; everything comes from the page HTML."""

    platform = Platform.MEDIUM.value

    async def _fetch_metadata(self, url: str) -> PreviewMetadata:
        html, final_url = await self._fetch_html(url)
        page = parse_page(html)

        raw_title = page.title
        if not raw_title:
            raise AdapterError(AdapterErrorReason.PARSE_ERROR, f"no title found on {url}")
        raw_titles = [t for t in (raw_title, page.title_tag) if t]

        canonical = page.first("og:url") or page.canonical or final_url
        username = _medium_username(canonical)
        author_name = _author_name(page, raw_titles)
        reading_time = _READING_TIME.search(html)

        return PreviewMetadata(
            type=PreviewType.BLOG_POST,
            title=strip_medium_suffix(raw_title),
            description=page.description,
            featured_image=page.image,
            author=(
                PreviewAuthor(
                    name=author_name or username,
                    username=username,
                    profile_url=f"https://medium.com/@{username}" if username else None,
                )
                if author_name or username
                else None
            ),
            published_at=page.first("article:published_time"),
            reading_time_minutes=int(reading_time.group(1)) if reading_time else None,
            tags=[],
            platform=Platform.MEDIUM.value,
            canonical_url=canonical,
        )
