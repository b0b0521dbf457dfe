"""Hashnode posts.

Resolution order, all inside this adapter:

1. GraphQL ``publication(host).post(slug)`` query, skipped for
   ``hashnode.com/post/<slug>`` URLs which carry no publication host.
2. The post object serialized into the rendered page (Next.js page props).
3. Open-Graph / meta tags of the rendered page.

A 429 from the GraphQL endpoint is reported as ``rate_limited`` straight
away; scraping the same service right after would only be throttled too.
"""

import json
import logging
import re
from typing import Any, Optional
from urllib.parse import urlsplit

from link4coders.errors import AdapterError, AdapterErrorReason
from link4coders.schemas.preview import PreviewAuthor, PreviewMetadata, PreviewType
from link4coders.services.adapters.base import PreviewAdapter
from link4coders.services.adapters.html import parse_page
from link4coders.services.detector import Platform

logger = logging.getLogger(__name__)

POST_QUERY = """
query PostBySlug($host: String!, $slug: String!) {
  publication(host: $host) {
    post(slug: $slug) {
      title
      brief
      url
      canonicalUrl
      publishedAt
      readTimeInMinutes
      reactionCount
      responseCount
      coverImage { url }
      author { name username profilePicture }
      tags { name }
    }
  }
}
"""

_NEXT_DATA_PATTERNS = (
    re.compile(
        r"""<script[^>]*id=["']__NEXT_DATA__["'][^>]*>(.*?)</script>""",
        re.IGNORECASE | re.DOTALL,
    ),
    re.compile(r"window\.__NEXT_DATA__\s*=\s*(\{.*?\})\s*;?\s*</script>", re.DOTALL),
)


def parse_hashnode_slug(url: str) -> Optional[str]:
    parts = urlsplit(url)
    hostname = (parts.hostname or "").lower()
    segments = [segment for segment in parts.path.split("/") if segment]
    if hostname == "hashnode.com" or hostname.endswith(".hashnode.com"):
        if len(segments) >= 2 and segments[0] == "post":
            return segments[1]
        return None
    return segments[-1] if segments else None


def publication_host(hostname: str) -> bool:
    """True when the hostname itself identifies a Hashnode publication."""
    return hostname != "hashnode.com" and not hostname.endswith(".hashnode.com")


def post_from_page_data(html: str) -> Optional[dict[str, Any]]:
    """Pull ``props.pageProps.post`` out of the embedded Next.js data blob.

    Raises ``ValueError`` when a blob is present but is not valid JSON.
    """
    for pattern in _NEXT_DATA_PATTERNS:
        match = pattern.search(html)
        if not match:
            continue
        data = json.loads(match.group(1))
        post = ((data.get("props") or {}).get("pageProps") or {}).get("post")
        if isinstance(post, dict) and post.get("title"):
            return post
    return None


class HashnodeAdapter(PreviewAdapter):
    platform = Platform.HASHNODE.value

    async def _fetch_metadata(self, url: str) -> PreviewMetadata:
        slug = parse_hashnode_slug(url)
        if not slug:
            raise AdapterError(AdapterErrorReason.PARSE_ERROR, f"no post slug in {url}")
        host = (urlsplit(url).hostname or "").lower()
        if not publication_host(host):
            # hashnode.com/post/<slug> does not name the publication to query
            return await self._scrape(url)

        try:
            post = await self._query_post(host, slug)
        except AdapterError as exc:
            if exc.reason is AdapterErrorReason.RATE_LIMITED:
                raise
            logger.info("Hashnode GraphQL failed for %s (%s); scraping page", url, exc)
        else:
            if post:
                return self._to_metadata(post, url)
            # Deleted post or API inconsistency; the page scrape settles it
            logger.warning("Hashnode GraphQL returned no post for %s; scraping page", url)

        return await self._scrape(url)

    async def _query_post(self, host: str, slug: str) -> Optional[dict[str, Any]]:
        response = await self._request(
            "POST",
            self.settings.hashnode_gql_url,
            json={"query": POST_QUERY, "variables": {"host": host, "slug": slug}},
            headers={"User-Agent": self.settings.user_agent},
        )
        self._check_status(response)
        payload = self._json(response)
        if not isinstance(payload, dict):
            raise AdapterError(AdapterErrorReason.PARSE_ERROR, "unexpected GraphQL payload")
        if payload.get("errors"):
            raise AdapterError(
                AdapterErrorReason.PARSE_ERROR, f"GraphQL errors: {payload['errors']}"
            )
        publication = (payload.get("data") or {}).get("publication") or {}
        post = publication.get("post")
        return post if isinstance(post, dict) else None

    async def _scrape(self, url: str) -> PreviewMetadata:
        html, final_url = await self._fetch_html(url)

        try:
            post = post_from_page_data(html)
        except (ValueError, AttributeError) as exc:
            logger.info("Unparsable Hashnode page data for %s: %s", url, exc)
            post = None
        if post:
            return self._to_metadata(post, final_url)

        page = parse_page(html)
        if not page.title:
            raise AdapterError(AdapterErrorReason.PARSE_ERROR, f"no title found on {url}")
        author = page.first("author")
        return PreviewMetadata(
            type=PreviewType.BLOG_POST,
            title=page.title,
            description=page.description,
            featured_image=page.image,
            author=PreviewAuthor(name=author) if author else None,
            published_at=page.first("article:published_time"),
            platform=Platform.HASHNODE.value,
            canonical_url=page.first("og:url") or page.canonical or final_url,
        )

    @staticmethod
    def _to_metadata(post: dict[str, Any], url: str) -> PreviewMetadata:
        author = post.get("author") or {}
        username = author.get("username")
        cover = post.get("coverImage")
        if isinstance(cover, dict):
            cover = cover.get("url")
        return PreviewMetadata(
            type=PreviewType.BLOG_POST,
            title=post["title"],
            description=post.get("brief"),
            featured_image=cover or None,
            author=PreviewAuthor(
                name=author.get("name") or username or "Unknown Author",
                username=username,
                avatar=author.get("profilePicture"),
                profile_url=f"https://hashnode.com/@{username}" if username else None,
            ),
            published_at=post.get("publishedAt"),
            reading_time_minutes=post.get("readTimeInMinutes"),
            reactions_count=post.get("reactionCount"),
            comments_count=post.get("responseCount", post.get("replyCount")),
            tags=[tag["name"] for tag in post.get("tags") or [] if isinstance(tag, dict) and tag.get("name")],
            platform=Platform.HASHNODE.value,
            canonical_url=post.get("canonicalUrl") or post.get("url") or url,
        )
