from link4coders.schemas.link import (
    LinkCategory,
    LinkCreate,
    LinkRead,
    LinkRecord,
    LinkUpdate,
)
from link4coders.schemas.preview import (
    BatchRefreshRequest,
    BatchRefreshResponse,
    PreviewAuthor,
    PreviewMetadata,
    PreviewResponse,
    PreviewResult,
    PreviewStats,
    PreviewStatus,
    PreviewType,
)

__all__ = [
    "BatchRefreshRequest",
    "BatchRefreshResponse",
    "LinkCategory",
    "LinkCreate",
    "LinkRead",
    "LinkRecord",
    "LinkUpdate",
    "PreviewAuthor",
    "PreviewMetadata",
    "PreviewResponse",
    "PreviewResult",
    "PreviewStats",
    "PreviewStatus",
    "PreviewType",
]
