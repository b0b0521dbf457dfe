import logging
from collections.abc import Sequence
from datetime import datetime
from typing import Callable

from link4coders.config import Settings
from link4coders.errors import LinkNotFoundError
from link4coders.schemas.link import LinkRecord
from link4coders.schemas.preview import (
    BatchRefreshResponse,
    PreviewResponse,
    PreviewStats,
)
from link4coders.services.batch import BatchCoordinator, validate_batch
from link4coders.services.cache_policy import (
    apply_result,
    display_card,
    is_preview_eligible,
    needs_refresh,
    utcnow,
)
from link4coders.services.link_store import LinkStore
from link4coders.services.resolver import PreviewResolver

logger = logging.getLogger(__name__)


def to_response(link: LinkRecord, refreshed: bool) -> PreviewResponse:
    return PreviewResponse(
        metadata=link.preview_metadata,
        status=link.preview_status,
        refreshed=refreshed,
        card=display_card(link),
    )


class PreviewService:
    """Preview operations exposed to the dashboard and public profile."""

    def __init__(
        self,
        store: LinkStore,
        resolver: PreviewResolver,
        batch: BatchCoordinator,
        settings: Settings,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.resolver = resolver
        self.batch = batch
        self.settings = settings
        self.clock = clock

    async def _load(self, link_id: str) -> LinkRecord:
        link = await self.store.get(link_id)
        if link is None:
            raise LinkNotFoundError(link_id)
        return link

    async def _refresh(self, link: LinkRecord) -> LinkRecord:
        result = await self.resolver.resolve_preview(link)
        updated = apply_result(link, result)
        await self.store.save_preview(updated)
        return updated

    async def get_or_refresh_preview(self, link_id: str) -> PreviewResponse:
        """Serve the cached preview, refetching only when it is stale."""
        link = await self._load(link_id)
        if not needs_refresh(link, self.clock()):
            return to_response(link, refreshed=False)
        return to_response(await self._refresh(link), refreshed=True)

    async def force_refresh_preview(self, link_id: str) -> PreviewResponse:
        """Re-resolve regardless of expiry. Ineligible links are left alone."""
        link = await self._load(link_id)
        if not is_preview_eligible(link):
            logger.info("Link %s is not eligible for a rich preview", link_id)
            return to_response(link, refreshed=False)
        return to_response(await self._refresh(link), refreshed=True)

    async def batch_refresh_previews(self, link_ids: Sequence[str]) -> BatchRefreshResponse:
        validate_batch(link_ids, self.settings.batch_max_size)
        links = await self.store.get_many(link_ids)
        eligible = [link for link in links if is_preview_eligible(link)]
        results = await self.batch.batch_refresh(eligible) if eligible else {}

        responses: dict[str, PreviewResponse] = {}
        for link in links:
            result = results.get(link.id)
            if result is None:
                responses[link.id] = to_response(link, refreshed=False)
                continue
            # Writes happen one by one; the session is not shared across tasks
            updated = apply_result(link, result)
            await self.store.save_preview(updated)
            responses[link.id] = to_response(updated, refreshed=True)

        return BatchRefreshResponse(
            results=responses, processed=len(results), total=len(link_ids)
        )

    async def clear_preview(self, link_id: str) -> None:
        if not await self.store.clear_preview(link_id):
            raise LinkNotFoundError(link_id)

    async def preview_stats(self) -> PreviewStats:
        return await self.store.preview_stats()
