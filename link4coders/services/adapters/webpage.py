from typing import Optional
from urllib.parse import urljoin, urlsplit

from link4coders.schemas.preview import PreviewMetadata, PreviewType
from link4coders.services.adapters.base import PreviewAdapter
from link4coders.services.adapters.html import parse_page


def site_hostname(url: str) -> str:
    hostname = (urlsplit(url).hostname or "").lower()
    return hostname[4:] if hostname.startswith("www.") else hostname


def _absolute(base: str, value: Optional[str]) -> Optional[str]:
    return urljoin(base, value) if value else None


class WebpageAdapter(PreviewAdapter):
    """Open-Graph / HTML meta scrape that works for any page.

    Also the fallback for every specialized adapter.
    """

    platform = "webpage"

    async def _fetch_metadata(self, url: str) -> PreviewMetadata:
        html, final_url = await self._fetch_html(url)
        page = parse_page(html)
        hostname = site_hostname(final_url) or site_hostname(url)
        site_name = page.first("og:site_name")

        return PreviewMetadata(
            type=PreviewType.WEBPAGE,
            title=page.title or site_name or hostname,
            description=page.description,
            featured_image=_absolute(final_url, page.image),
            platform=hostname,
            canonical_url=_absolute(final_url, page.first("og:url") or page.canonical) or final_url,
            site_name=site_name,
        )
