from collections.abc import Sequence
from typing import Optional, Protocol
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from link4coders.errors import BatchValidationError
from link4coders.models import Link
from link4coders.schemas.link import LinkRecord
from link4coders.schemas.preview import PreviewStats, PreviewStatus, PreviewType


class LinkStore(Protocol):
    """The links collaborator as seen by the preview pipeline.

    ``save_preview`` and ``clear_preview`` write the preview fields only;
    url, title and category are owned by the links API.
    """

    async def get(self, link_id: str) -> Optional[LinkRecord]: ...

    async def get_many(self, link_ids: Sequence[str]) -> list[LinkRecord]: ...

    async def save_preview(self, link: LinkRecord) -> None: ...

    async def clear_preview(self, link_id: str) -> bool: ...

    async def preview_stats(self) -> PreviewStats: ...


def _parse_id(link_id: str) -> Optional[UUID]:
    try:
        return UUID(link_id)
    except (ValueError, AttributeError, TypeError):
        return None


def tally(rows: Sequence[tuple[Optional[str], Optional[dict]]]) -> PreviewStats:
    stats = PreviewStats(total=len(rows))
    for status, metadata in rows:
        if status == PreviewStatus.SUCCESS.value:
            stats.success += 1
            kind = (metadata or {}).get("type")
            if kind == PreviewType.GITHUB_REPO.value:
                stats.github += 1
            elif kind == PreviewType.BLOG_POST.value:
                stats.blog += 1
            elif kind == PreviewType.WEBPAGE.value:
                stats.webpage += 1
        elif status == PreviewStatus.FAILED.value:
            stats.failed += 1
        else:
            stats.pending += 1
    return stats


class SqlLinkStore:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, link_id: str) -> Optional[LinkRecord]:
        uid = _parse_id(link_id)
        if uid is None:
            return None
        link = await self.session.get(Link, uid, populate_existing=True)
        return LinkRecord.model_validate(link) if link else None

    async def get_many(self, link_ids: Sequence[str]) -> list[LinkRecord]:
        uids = []
        for link_id in link_ids:
            uid = _parse_id(link_id)
            if uid is None:
                raise BatchValidationError(f"Malformed link id: {link_id!r}")
            uids.append(uid)
        result = await self.session.execute(
            select(Link)
            .where(Link.id.in_(uids))
            .execution_options(populate_existing=True)
        )
        return [LinkRecord.model_validate(link) for link in result.scalars()]

    async def save_preview(self, link: LinkRecord) -> None:
        metadata = link.preview_metadata
        await self.session.execute(
            update(Link)
            .where(Link.id == UUID(link.id))
            .execution_options(synchronize_session=False)
            .values(
                preview_metadata=metadata.model_dump(mode="json") if metadata else None,
                preview_status=link.preview_status.value,
                preview_fetched_at=link.preview_fetched_at,
                preview_expires_at=link.preview_expires_at,
            )
        )
        await self.session.commit()

    async def clear_preview(self, link_id: str) -> bool:
        uid = _parse_id(link_id)
        if uid is None:
            return False
        result = await self.session.execute(
            update(Link)
            .where(Link.id == uid)
            .execution_options(synchronize_session=False)
            .values(
                preview_metadata=None,
                preview_status=PreviewStatus.PENDING.value,
                preview_fetched_at=None,
                preview_expires_at=None,
            )
        )
        await self.session.commit()
        return result.rowcount > 0

    async def preview_stats(self) -> PreviewStats:
        result = await self.session.execute(
            select(Link.preview_status, Link.preview_metadata)
        )
        return tally(result.all())
