from datetime import timedelta

import pytest

from link4coders.errors import BatchValidationError, LinkNotFoundError
from link4coders.schemas import LinkCategory, PreviewStatus, PreviewType

from .conftest import github_repo_payload, html_page

HTML = {"content-type": "text/html"}
GITHUB_API = "https://api.github.com/repos/octo/hello"


class TestGetOrRefreshPreview:
    """Serving previews through the cache."""

    async def test_second_read_is_served_from_cache(self, upstream, store, service, make_link):
        upstream.add("GET", GITHUB_API, json=github_repo_payload())
        store.add(make_link(link_id="a", url="https://github.com/octo/hello"))

        first = await service.get_or_refresh_preview("a")
        second = await service.get_or_refresh_preview("a")

        assert first.refreshed is True
        assert second.refreshed is False
        assert first.metadata == second.metadata
        assert second.status is PreviewStatus.SUCCESS
        assert upstream.count("GET", GITHUB_API) == 1

    async def test_expired_preview_is_refetched(self, upstream, store, service, make_link):
        upstream.add("GET", GITHUB_API, json=github_repo_payload())
        store.add(make_link(link_id="a", url="https://github.com/octo/hello"))
        first = await service.get_or_refresh_preview("a")

        service.clock = lambda: first.metadata.expires_at
        again = await service.get_or_refresh_preview("a")

        assert again.refreshed is True
        assert upstream.count("GET", GITHUB_API) == 2

    async def test_failure_keeps_last_good_preview(self, upstream, store, service, make_link):
        upstream.add("GET", "https://example.org/post", headers=HTML, text=html_page("Good"))
        store.add(make_link(link_id="a"))
        good = await service.get_or_refresh_preview("a")

        upstream.add("GET", "https://example.org/post", 503)
        failed = await service.force_refresh_preview("a")

        assert failed.status is PreviewStatus.FAILED
        assert failed.metadata == good.metadata
        assert failed.card == good.metadata
        assert store.links["a"].preview_metadata == good.metadata
        assert store.links["a"].preview_expires_at == good.metadata.expires_at

    async def test_failure_without_history_shows_basic_card(self, store, service, make_link):
        store.add(make_link(link_id="a", title="My post"))

        response = await service.get_or_refresh_preview("a")

        assert response.status is PreviewStatus.FAILED
        assert response.metadata is None
        assert response.card.type is PreviewType.BASIC_LINK
        assert response.card.title == "My post"

    async def test_social_link_is_never_fetched(self, upstream, store, service, make_link):
        store.add(
            make_link(link_id="s", url="https://example.org/me", category=LinkCategory.SOCIAL)
        )

        response = await service.get_or_refresh_preview("s")
        forced = await service.force_refresh_preview("s")

        assert response.refreshed is False
        assert forced.refreshed is False
        assert response.status is PreviewStatus.PENDING
        assert upstream.calls == []

    async def test_malformed_api_payload_serves_scraped_page(
        self, upstream, store, service, make_link
    ):
        url = "https://dev.to/jane/my-post"
        upstream.add(
            "GET", "https://dev.to/api/articles/jane/my-post", json={"title": "Hi", "user": "jane"}
        )
        upstream.add("GET", url, headers=HTML, text=html_page("Scraped"))
        store.add(make_link(link_id="a", url=url))

        response = await service.get_or_refresh_preview("a")

        assert response.refreshed is True
        assert response.status is PreviewStatus.SUCCESS
        assert response.metadata.type is PreviewType.WEBPAGE
        assert response.metadata.title == "Scraped"

    async def test_unknown_link(self, service):
        with pytest.raises(LinkNotFoundError):
            await service.get_or_refresh_preview("missing")


class TestForceRefresh:
    async def test_bypasses_fresh_cache(self, upstream, store, service, make_link):
        upstream.add("GET", GITHUB_API, json=github_repo_payload())
        store.add(make_link(link_id="a", url="https://github.com/octo/hello"))
        await service.get_or_refresh_preview("a")

        response = await service.force_refresh_preview("a")

        assert response.refreshed is True
        assert upstream.count("GET", GITHUB_API) == 2
        window = response.metadata.expires_at - response.metadata.fetched_at
        assert window == timedelta(hours=24)


class TestBatchRefreshPreviews:
    async def test_partial_success(self, upstream, store, service, make_link):
        upstream.add("GET", GITHUB_API, json=github_repo_payload())
        upstream.add("GET", "https://example.org/c", headers=HTML, text=html_page("Page C"))
        store.add(make_link(link_id="a", url="https://github.com/octo/hello"))
        store.add(make_link(link_id="b", url="https://github.com/octo/gone"))
        store.add(make_link(link_id="c", url="https://example.org/c"))

        response = await service.batch_refresh_previews(["a", "b", "c"])

        assert response.processed == 3
        assert response.total == 3
        assert response.results["a"].status is PreviewStatus.SUCCESS
        assert response.results["a"].metadata.type is PreviewType.GITHUB_REPO
        assert response.results["b"].status is PreviewStatus.FAILED
        assert response.results["c"].status is PreviewStatus.SUCCESS
        assert response.results["c"].metadata.type is PreviewType.WEBPAGE
        assert store.links["b"].preview_status is PreviewStatus.FAILED

    async def test_oversized_batch_touches_nothing(self, upstream, store, service):
        with pytest.raises(BatchValidationError):
            await service.batch_refresh_previews([f"id-{i}" for i in range(21)])

        assert upstream.calls == []
        assert store.reads == 0

    async def test_unknown_and_ineligible_links(self, upstream, store, service, make_link):
        upstream.add("GET", "https://example.org/c", headers=HTML, text=html_page("Page C"))
        store.add(make_link(link_id="c", url="https://example.org/c"))
        store.add(
            make_link(link_id="s", url="https://twitter.com/jane", category=LinkCategory.SOCIAL)
        )

        response = await service.batch_refresh_previews(["c", "s", "nope"])

        assert response.processed == 1
        assert response.total == 3
        assert set(response.results) == {"c", "s"}
        assert response.results["s"].refreshed is False
        assert [str(call.url) for call in upstream.calls] == ["https://example.org/c"]


class TestClearAndStats:
    async def test_clear_then_refetch(self, upstream, store, service, make_link):
        upstream.add("GET", "https://example.org/post", headers=HTML, text=html_page("Post"))
        store.add(make_link(link_id="a"))
        await service.get_or_refresh_preview("a")

        await service.clear_preview("a")

        assert store.links["a"].preview_status is PreviewStatus.PENDING
        assert store.links["a"].preview_metadata is None
        response = await service.get_or_refresh_preview("a")
        assert response.refreshed is True

    async def test_clear_unknown_link(self, service):
        with pytest.raises(LinkNotFoundError):
            await service.clear_preview("missing")

    async def test_stats(self, upstream, store, service, make_link):
        upstream.add("GET", GITHUB_API, json=github_repo_payload())
        store.add(make_link(link_id="a", url="https://github.com/octo/hello"))
        store.add(make_link(link_id="b", url="https://example.org/gone"))
        store.add(make_link(link_id="c", url="https://example.org/later"))
        await service.get_or_refresh_preview("a")
        await service.get_or_refresh_preview("b")

        stats = await service.preview_stats()

        assert stats.total == 3
        assert stats.success == 1
        assert stats.github == 1
        assert stats.failed == 1
        assert stats.pending == 1
