import logging
from datetime import datetime
from typing import Callable, Optional

from link4coders.errors import AdapterError
from link4coders.schemas.link import LinkRecord
from link4coders.schemas.preview import (
    PreviewMetadata,
    PreviewResult,
    PreviewStatus,
    PreviewType,
)
from link4coders.services.adapters import AdapterRegistry, PreviewAdapter
from link4coders.services.cache_policy import stamp, utcnow
from link4coders.services.detector import detect

logger = logging.getLogger(__name__)


class PreviewResolver:
    """Resolves one link to preview metadata.

    detect -> platform adapter -> generic webpage adapter, strictly in that
    order. Never raises for an upstream failure and never persists anything;
    the caller stores the returned result.
    """

    def __init__(
        self,
        registry: AdapterRegistry,
        fallback: PreviewAdapter,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.registry = registry
        self.fallback = fallback
        self.clock = clock

    async def resolve_preview(self, link: LinkRecord) -> PreviewResult:
        detection = detect(link.url)
        metadata: Optional[PreviewMetadata] = None

        adapter = self.registry.get(detection.platform)
        if adapter is not None:
            try:
                metadata = await adapter.fetch_metadata(link.url)
            except AdapterError as exc:
                logger.warning(
                    "%s adapter failed for link %s (%s); falling back to webpage scrape",
                    adapter.platform,
                    link.id,
                    exc,
                )

        if metadata is None:
            try:
                metadata = await self.fallback.fetch_metadata(link.url)
            except AdapterError as exc:
                logger.warning("Preview failed for link %s: %s", link.id, exc)
                return PreviewResult(
                    status=PreviewStatus.FAILED, metadata=link.preview_metadata
                )
            metadata = metadata.model_copy(update={"type": PreviewType.WEBPAGE})

        return PreviewResult(
            status=PreviewStatus.SUCCESS, metadata=stamp(metadata, self.clock())
        )
