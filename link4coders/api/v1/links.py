from typing import Annotated, Callable
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from link4coders.api.deps import get_preview_service, get_refresh_scheduler, get_session
from link4coders.models import Link
from link4coders.schemas import LinkCreate, LinkRead, LinkUpdate
from link4coders.services.cache_policy import is_preview_eligible
from link4coders.services.previews import PreviewService

router = APIRouter(prefix="/links", tags=["links"])


async def _get_link_or_404(db: AsyncSession, link_id: UUID) -> Link:
    result = await db.execute(select(Link).where(Link.id == link_id))
    link = result.scalar_one_or_none()
    if not link:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Link not found"
        )
    return link


@router.post("", response_model=LinkRead, status_code=status.HTTP_201_CREATED)
async def create_link(
    payload: LinkCreate,
    db: Annotated[AsyncSession, Depends(get_session)],
    schedule_refresh: Annotated[Callable[[str], None], Depends(get_refresh_scheduler)],
) -> LinkRead:
    """Create a link and fetch its preview in the background."""
    link = Link(
        url=str(payload.url),
        title=payload.title,
        category=payload.category.value,
    )
    db.add(link)
    await db.commit()
    await db.refresh(link)

    created = LinkRead.model_validate(link)
    if is_preview_eligible(created):
        schedule_refresh(created.id)
    return created


@router.get("/{link_id}", response_model=LinkRead)
async def get_link(
    link_id: UUID,
    db: Annotated[AsyncSession, Depends(get_session)],
) -> LinkRead:
    """Get a specific link by ID."""
    return LinkRead.model_validate(await _get_link_or_404(db, link_id))


@router.patch("/{link_id}", response_model=LinkRead)
async def update_link(
    link_id: UUID,
    payload: LinkUpdate,
    db: Annotated[AsyncSession, Depends(get_session)],
    previews: Annotated[PreviewService, Depends(get_preview_service)],
    schedule_refresh: Annotated[Callable[[str], None], Depends(get_refresh_scheduler)],
) -> LinkRead:
    """Update a link's title, category and/or URL.

    A new URL invalidates the cached preview and schedules a fresh one.
    """
    link = await _get_link_or_404(db, link_id)

    # Update only provided fields
    if payload.title is not None:
        link.title = payload.title
    if payload.category is not None:
        link.category = payload.category.value
    url_changed = payload.url is not None and str(payload.url) != link.url
    if url_changed:
        link.url = str(payload.url)

    await db.commit()
    if url_changed:
        await previews.clear_preview(str(link_id))
    await db.refresh(link)

    updated = LinkRead.model_validate(link)
    if url_changed and is_preview_eligible(updated):
        schedule_refresh(updated.id)
    return updated
