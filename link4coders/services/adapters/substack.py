from link4coders.errors import AdapterError, AdapterErrorReason
from link4coders.schemas.preview import PreviewAuthor, PreviewMetadata, PreviewType
from link4coders.services.adapters.base import PreviewAdapter
from link4coders.services.adapters.html import parse_page
from link4coders.services.detector import Platform


class SubstackAdapter(PreviewAdapter):
    platform = Platform.SUBSTACK.value

    async def _fetch_metadata(self, url: str) -> PreviewMetadata:
        html, final_url = await self._fetch_html(url)
        page = parse_page(html)
        if not page.title:
            raise AdapterError(AdapterErrorReason.PARSE_ERROR, f"no title found on {url}")

        canonical = page.first("og:url") or page.canonical or final_url
        author = page.first("author")
        return PreviewMetadata(
            type=PreviewType.BLOG_POST,
            title=page.title,
            description=page.description,
            featured_image=page.image,
            author=(
                # Posts live under /p/<slug>; the publication root is the author page
                PreviewAuthor(name=author, profile_url=canonical.split("/p/")[0])
                if author
                else None
            ),
            published_at=page.first("article:published_time"),
            tags=[],
            platform=Platform.SUBSTACK.value,
            canonical_url=canonical,
            site_name=page.first("og:site_name"),
        )
