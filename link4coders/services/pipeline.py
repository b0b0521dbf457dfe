import logging

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from link4coders.config import Settings, settings
from link4coders.database import session_scope
from link4coders.services.adapters import WebpageAdapter, build_registry
from link4coders.services.batch import BatchCoordinator
from link4coders.services.link_store import SqlLinkStore
from link4coders.services.previews import PreviewService
from link4coders.services.resolver import PreviewResolver
from link4coders.services.tasks import PreviewTaskScheduler

logger = logging.getLogger(__name__)

_http_client: httpx.AsyncClient | None = None
_resolver: PreviewResolver | None = None
_scheduler: PreviewTaskScheduler | None = None


def create_http_client(config: Settings) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=config.request_timeout_seconds,
        follow_redirects=True,
        headers={"User-Agent": config.user_agent},
    )


def get_http_client() -> httpx.AsyncClient:
    global _http_client
    if _http_client is None:
        _http_client = create_http_client(settings)
    return _http_client


def build_resolver(client: httpx.AsyncClient, config: Settings) -> PreviewResolver:
    return PreviewResolver(build_registry(client, config), WebpageAdapter(client, config))


def get_resolver() -> PreviewResolver:
    global _resolver
    if _resolver is None:
        _resolver = build_resolver(get_http_client(), settings)
    return _resolver


def get_task_scheduler() -> PreviewTaskScheduler:
    global _scheduler
    if _scheduler is None:
        _scheduler = PreviewTaskScheduler()
    return _scheduler


def build_preview_service(session: AsyncSession) -> PreviewService:
    resolver = get_resolver()
    return PreviewService(
        SqlLinkStore(session),
        resolver,
        BatchCoordinator(resolver, settings),
        settings,
    )


async def refresh_in_background(link_id: str) -> None:
    """Refresh one preview on its own session, outside any request."""
    async with session_scope() as session:
        response = await build_preview_service(session).force_refresh_preview(link_id)
    logger.info("Background preview refresh for link %s: %s", link_id, response.status.value)


def schedule_refresh(link_id: str) -> None:
    get_task_scheduler().schedule(
        refresh_in_background(link_id), name=f"preview-refresh-{link_id}"
    )


async def shutdown_pipeline() -> None:
    global _http_client, _resolver, _scheduler
    if _scheduler is not None:
        await _scheduler.shutdown()
    if _http_client is not None:
        await _http_client.aclose()
    _http_client = None
    _resolver = None
    _scheduler = None
