from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator

from link4coders.schemas.preview import PreviewMetadata, PreviewStatus


class LinkCategory(str, Enum):
    PERSONAL = "personal"
    PROJECTS = "projects"
    BLOGS = "blogs"
    ACHIEVEMENTS = "achievements"
    CONTACT = "contact"
    CUSTOM = "custom"
    SOCIAL = "social"


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Some drivers (sqlite) hand back naive datetimes for tz-aware columns
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class LinkRecord(BaseModel):
    """A link as seen by the preview pipeline.

    The pipeline only ever changes the ``preview_*`` fields.
    """

    id: str
    url: str
    title: str
    category: LinkCategory
    preview_metadata: Optional[PreviewMetadata] = None
    preview_status: PreviewStatus = PreviewStatus.PENDING
    preview_fetched_at: Optional[datetime] = None
    preview_expires_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, value: Any) -> str:
        return str(value)

    @field_validator("preview_status", mode="before")
    @classmethod
    def _default_status(cls, value: Any) -> Any:
        return value or PreviewStatus.PENDING

    @field_validator("preview_fetched_at", "preview_expires_at", mode="after")
    @classmethod
    def _utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)


class LinkCreate(BaseModel):
    url: HttpUrl
    title: str = Field(min_length=1)
    category: LinkCategory = LinkCategory.CUSTOM


class LinkUpdate(BaseModel):
    url: Optional[HttpUrl] = None
    title: Optional[str] = Field(default=None, min_length=1)
    category: Optional[LinkCategory] = None


class LinkRead(LinkRecord):
    created_at: datetime
    updated_at: datetime
