from fastapi import APIRouter

from link4coders.api.v1 import links, previews

api_router = APIRouter(prefix="/api")
api_router.include_router(links.router)
api_router.include_router(previews.router)

__all__ = ["api_router"]
