from typing import Annotated, Callable

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from link4coders.database import get_db
from link4coders.services.pipeline import build_preview_service, schedule_refresh
from link4coders.services.previews import PreviewService


async def get_session(session: AsyncSession = Depends(get_db)) -> AsyncSession:
    return session


async def get_preview_service(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> PreviewService:
    return build_preview_service(session)


def get_refresh_scheduler() -> Callable[[str], None]:
    """Hands a link id to the background preview refresher."""
    return schedule_refresh
