from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status

from link4coders.api.deps import get_preview_service
from link4coders.errors import BatchValidationError, LinkNotFoundError
from link4coders.schemas import (
    BatchRefreshRequest,
    BatchRefreshResponse,
    PreviewResponse,
    PreviewStats,
)
from link4coders.services.previews import PreviewService

router = APIRouter(tags=["previews"])

PreviewServiceDep = Annotated[PreviewService, Depends(get_preview_service)]


def _not_found(exc: LinkNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.get("/links/{link_id}/preview", response_model=PreviewResponse)
async def get_preview(link_id: str, previews: PreviewServiceDep) -> PreviewResponse:
    """Cached preview for a link, refreshed first if it has expired."""
    try:
        return await previews.get_or_refresh_preview(link_id)
    except LinkNotFoundError as exc:
        raise _not_found(exc) from exc


@router.post("/links/{link_id}/preview/refresh", response_model=PreviewResponse)
async def refresh_preview(link_id: str, previews: PreviewServiceDep) -> PreviewResponse:
    try:
        return await previews.force_refresh_preview(link_id)
    except LinkNotFoundError as exc:
        raise _not_found(exc) from exc


@router.delete("/links/{link_id}/preview", status_code=status.HTTP_204_NO_CONTENT)
async def clear_preview(link_id: str, previews: PreviewServiceDep) -> Response:
    try:
        await previews.clear_preview(link_id)
    except LinkNotFoundError as exc:
        raise _not_found(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/previews/batch", response_model=BatchRefreshResponse)
async def batch_refresh(
    payload: BatchRefreshRequest, previews: PreviewServiceDep
) -> BatchRefreshResponse:
    """Refresh up to 20 previews; larger sets must be split by the caller."""
    try:
        return await previews.batch_refresh_previews(payload.link_ids)
    except BatchValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc


@router.get("/previews/stats", response_model=PreviewStats)
async def preview_stats(previews: PreviewServiceDep) -> PreviewStats:
    return await previews.preview_stats()
