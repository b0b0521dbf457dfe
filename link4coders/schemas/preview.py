from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from link4coders.utils.text import (
    DESCRIPTION_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    clean_text,
    truncate,
)


class PreviewType(str, Enum):
    GITHUB_REPO = "github_repo"
    BLOG_POST = "blog_post"
    WEBPAGE = "webpage"
    BASIC_LINK = "basic_link"


class PreviewStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


class PreviewAuthor(BaseModel):
    name: str
    username: Optional[str] = None
    avatar: Optional[str] = None
    profile_url: Optional[str] = None


class PreviewMetadata(BaseModel):
    """Normalized preview of a link, tagged by ``type``.

    ``blog_post`` enrichments (reading time, reactions, comments, tags) and
    ``github_repo`` enrichments (repo name, language, stars, forks, topics,
    license, homepage) are left unset for the other shapes.
    """

    type: PreviewType
    title: str
    description: Optional[str] = None
    featured_image: Optional[str] = None
    author: Optional[PreviewAuthor] = None
    published_at: Optional[str] = None
    platform: str
    canonical_url: str
    site_name: Optional[str] = None

    # blog_post
    reading_time_minutes: Optional[int] = None
    reactions_count: Optional[int] = None
    comments_count: Optional[int] = None
    tags: Optional[list[str]] = None

    # github_repo
    repo_name: Optional[str] = None
    language: Optional[str] = None
    stars: Optional[int] = None
    forks: Optional[int] = None
    topics: Optional[list[str]] = None
    license: Optional[str] = None
    homepage: Optional[str] = None

    fetched_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None

    @field_validator("title", mode="before")
    @classmethod
    def _sanitize_title(cls, value: Optional[str]) -> str:
        return truncate(clean_text(value), TITLE_MAX_LENGTH) or "Untitled"

    @field_validator("description", mode="before")
    @classmethod
    def _sanitize_description(cls, value: Optional[str]) -> Optional[str]:
        return truncate(clean_text(value), DESCRIPTION_MAX_LENGTH)

    @model_validator(mode="after")
    def _check_cache_window(self) -> "PreviewMetadata":
        if self.fetched_at and self.expires_at and self.expires_at <= self.fetched_at:
            raise ValueError("expires_at must be later than fetched_at")
        return self

    @classmethod
    def basic_link(cls, title: Optional[str], url: str) -> "PreviewMetadata":
        """Plain title + URL card used when no rich preview is available."""
        return cls(
            type=PreviewType.BASIC_LINK,
            title=title or url,
            platform="link",
            canonical_url=url,
        )


class PreviewResult(BaseModel):
    """Outcome of resolving one link.

    On failure ``metadata`` is whatever was cached before the attempt, which
    may be ``None``.
    """

    status: PreviewStatus
    metadata: Optional[PreviewMetadata] = None


class PreviewResponse(BaseModel):
    metadata: Optional[PreviewMetadata] = None
    status: PreviewStatus
    refreshed: bool = False
    card: PreviewMetadata


class BatchRefreshRequest(BaseModel):
    link_ids: list[str] = Field(default_factory=list)


class BatchRefreshResponse(BaseModel):
    results: dict[str, PreviewResponse]
    processed: int
    total: int


class PreviewStats(BaseModel):
    total: int = 0
    success: int = 0
    failed: int = 0
    pending: int = 0
    github: int = 0
    blog: int = 0
    webpage: int = 0
