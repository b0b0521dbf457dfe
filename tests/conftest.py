"""Shared fixtures: a fake upstream web, an in-memory links store, factories."""

from collections.abc import AsyncIterator, Callable, Sequence
from typing import Any, Optional, Union

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from link4coders.config import Settings
from link4coders.models import Base
from link4coders.schemas import LinkCategory, LinkRecord, PreviewStats, PreviewStatus
from link4coders.services.batch import BatchCoordinator
from link4coders.services.link_store import tally
from link4coders.services.pipeline import build_resolver
from link4coders.services.previews import PreviewService
from link4coders.services.resolver import PreviewResolver

Route = Union[Callable[[httpx.Request], httpx.Response], dict[str, Any]]


def _key(method: str, url: Union[str, httpx.URL]) -> tuple[str, str]:
    return method.upper(), str(httpx.URL(str(url)))


class MockUpstream:
    """Routes requests by method + URL to canned responses.

    Unrouted URLs answer 404. Every request is recorded in ``calls``.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Route] = {}
        self.calls: list[httpx.Request] = []

    def add(self, method: str, url: str, status_code: int = 200, **kwargs: Any) -> None:
        self.routes[_key(method, url)] = {"status_code": status_code, **kwargs}

    def add_handler(
        self, method: str, url: str, handler: Callable[[httpx.Request], httpx.Response]
    ) -> None:
        self.routes[_key(method, url)] = handler

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        route = self.routes.get(_key(request.method, request.url))
        if route is None:
            return httpx.Response(404, text="not found")
        if callable(route):
            return route(request)
        return httpx.Response(**route)

    def count(self, method: str, url: str) -> int:
        key = _key(method, url)
        return sum(1 for request in self.calls if _key(request.method, request.url) == key)


class InMemoryLinkStore:
    """LinkStore backed by a dict, mirroring SqlLinkStore's write rules."""

    def __init__(self, links: Sequence[LinkRecord] = ()) -> None:
        self.links = {link.id: link for link in links}
        self.reads = 0

    def add(self, link: LinkRecord) -> None:
        self.links[link.id] = link

    async def get(self, link_id: str) -> Optional[LinkRecord]:
        self.reads += 1
        return self.links.get(link_id)

    async def get_many(self, link_ids: Sequence[str]) -> list[LinkRecord]:
        self.reads += 1
        return [self.links[i] for i in link_ids if i in self.links]

    async def save_preview(self, link: LinkRecord) -> None:
        current = self.links[link.id]
        self.links[link.id] = current.model_copy(
            update={
                "preview_metadata": link.preview_metadata,
                "preview_status": link.preview_status,
                "preview_fetched_at": link.preview_fetched_at,
                "preview_expires_at": link.preview_expires_at,
            }
        )

    async def clear_preview(self, link_id: str) -> bool:
        if link_id not in self.links:
            return False
        self.links[link_id] = self.links[link_id].model_copy(
            update={
                "preview_metadata": None,
                "preview_status": PreviewStatus.PENDING,
                "preview_fetched_at": None,
                "preview_expires_at": None,
            }
        )
        return True

    async def preview_stats(self) -> PreviewStats:
        return tally(
            [
                (
                    link.preview_status.value,
                    link.preview_metadata.model_dump(mode="json")
                    if link.preview_metadata
                    else None,
                )
                for link in self.links.values()
            ]
        )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        github_token=None,
        request_timeout_seconds=2.0,
        retry_attempts=1,
        batch_chunk_delay_seconds=0,
    )


@pytest.fixture
def upstream() -> MockUpstream:
    return MockUpstream()


@pytest.fixture
async def http_client(upstream: MockUpstream) -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(
        transport=httpx.MockTransport(upstream.handler), follow_redirects=True
    ) as client:
        yield client


@pytest.fixture
def resolver(http_client: httpx.AsyncClient, settings: Settings) -> PreviewResolver:
    return build_resolver(http_client, settings)


@pytest.fixture
def store() -> InMemoryLinkStore:
    return InMemoryLinkStore()


@pytest.fixture
def service(
    store: InMemoryLinkStore, resolver: PreviewResolver, settings: Settings
) -> PreviewService:
    return PreviewService(store, resolver, BatchCoordinator(resolver, settings), settings)


@pytest.fixture
def make_link() -> Callable[..., LinkRecord]:
    def _make(
        link_id: str = "link-1",
        url: str = "https://example.org/post",
        title: str = "My link",
        category: LinkCategory = LinkCategory.CUSTOM,
        **preview: Any,
    ) -> LinkRecord:
        return LinkRecord(id=link_id, url=url, title=title, category=category, **preview)

    return _make


@pytest.fixture
async def session_factory() -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


def github_repo_payload(owner: str = "octo", repo: str = "hello") -> dict[str, Any]:
    return {
        "full_name": f"{owner}/{repo}",
        "html_url": f"https://github.com/{owner}/{repo}",
        "description": "A friendly repository",
        "language": "Python",
        "stargazers_count": 42,
        "forks_count": 7,
        "topics": ["cli", "python"],
        "created_at": "2021-03-04T05:06:07Z",
        "homepage": "",
        "license": {"name": "MIT License", "spdx_id": "MIT"},
        "owner": {
            "login": owner,
            "avatar_url": f"https://avatars.example.com/{owner}.png",
            "html_url": f"https://github.com/{owner}",
        },
    }


def html_page(
    title: Optional[str] = "Example page",
    meta: Optional[dict[str, str]] = None,
    head: str = "",
    body: str = "",
) -> str:
    tags = []
    for key, content in (meta or {}).items():
        attr = "property" if key.startswith(("og:", "article:")) else "name"
        tags.append(f'<meta {attr}="{key}" content="{content}">')
    title_tag = f"<title>{title}</title>" if title is not None else ""
    return (
        f"<!doctype html><html><head>{title_tag}{''.join(tags)}{head}</head>"
        f"<body>{body}</body></html>"
    )
