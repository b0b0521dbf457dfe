import asyncio
import logging
from collections.abc import Sequence

from link4coders.config import Settings
from link4coders.errors import BatchValidationError
from link4coders.schemas.link import LinkRecord
from link4coders.schemas.preview import PreviewResult, PreviewStatus
from link4coders.services.resolver import PreviewResolver

logger = logging.getLogger(__name__)


def validate_batch(link_ids: Sequence[object], max_size: int) -> None:
    if not link_ids:
        raise BatchValidationError("At least one link id is required")
    if len(link_ids) > max_size:
        raise BatchValidationError(f"Maximum {max_size} links per batch")
    for link_id in link_ids:
        if not isinstance(link_id, str) or not link_id.strip():
            raise BatchValidationError(f"Malformed link id: {link_id!r}")
    if len(set(link_ids)) != len(link_ids):
        raise BatchValidationError("Duplicate link ids in batch")


class BatchCoordinator:
    """Resolves many links, at most ``batch_chunk_size`` in flight at a time.

    One link's failure never aborts the batch; only invalid input raises.
    """

    def __init__(self, resolver: PreviewResolver, settings: Settings) -> None:
        self.resolver = resolver
        self.settings = settings

    def _chunks(self, links: Sequence[LinkRecord]) -> list[Sequence[LinkRecord]]:
        size = self.settings.batch_chunk_size
        return [links[i : i + size] for i in range(0, len(links), size)]

    async def batch_refresh(self, links: Sequence[LinkRecord]) -> dict[str, PreviewResult]:
        validate_batch([link.id for link in links], self.settings.batch_max_size)
        logger.info("Refreshing %d previews", len(links))

        results: dict[str, PreviewResult] = {}
        for index, chunk in enumerate(self._chunks(links)):
            if index and self.settings.batch_chunk_delay_seconds:
                await asyncio.sleep(self.settings.batch_chunk_delay_seconds)

            outcomes = await asyncio.gather(
                *(self.resolver.resolve_preview(link) for link in chunk),
                return_exceptions=True,
            )
            for link, outcome in zip(chunk, outcomes):
                if isinstance(outcome, Exception):
                    logger.error(
                        "Preview refresh crashed for link %s", link.id, exc_info=outcome
                    )
                    outcome = PreviewResult(
                        status=PreviewStatus.FAILED, metadata=link.preview_metadata
                    )
                elif isinstance(outcome, BaseException):
                    raise outcome
                results[link.id] = outcome

        succeeded = sum(r.status is PreviewStatus.SUCCESS for r in results.values())
        logger.info("Batch finished: %d/%d previews refreshed", succeeded, len(links))
        return results
