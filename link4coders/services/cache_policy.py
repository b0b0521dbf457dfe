from datetime import datetime, timedelta, timezone
from typing import Optional

from link4coders.schemas.link import LinkCategory, LinkRecord
from link4coders.schemas.preview import (
    PreviewMetadata,
    PreviewResult,
    PreviewStatus,
    PreviewType,
)
from link4coders.services.detector import is_fetchable_url, is_social_media_url

GITHUB_TTL = timedelta(hours=24)
DEFAULT_TTL = timedelta(days=7)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ttl_for(metadata: PreviewMetadata) -> timedelta:
    if metadata.type is PreviewType.GITHUB_REPO:
        return GITHUB_TTL
    return DEFAULT_TTL


def stamp(metadata: PreviewMetadata, now: datetime) -> PreviewMetadata:
    """Copy of ``metadata`` with its cache window starting at ``now``."""
    return metadata.model_copy(
        update={"fetched_at": now, "expires_at": now + ttl_for(metadata)}
    )


def is_preview_eligible(link: LinkRecord) -> bool:
    """Social links are rendered as icons and never get a rich preview."""
    if link.category is LinkCategory.SOCIAL:
        return False
    return is_fetchable_url(link.url) and not is_social_media_url(link.url)


def expires_at(link: LinkRecord) -> Optional[datetime]:
    if link.preview_expires_at is not None:
        return link.preview_expires_at
    if link.preview_metadata is not None:
        return link.preview_metadata.expires_at
    return None


def needs_refresh(link: LinkRecord, now: Optional[datetime] = None) -> bool:
    if not is_preview_eligible(link):
        return False
    if link.preview_metadata is None or link.preview_status is not PreviewStatus.SUCCESS:
        return True
    expiry = expires_at(link)
    if expiry is None:
        return True
    return (now or utcnow()) >= expiry


def clear_preview(link: LinkRecord) -> LinkRecord:
    return link.model_copy(
        update={
            "preview_metadata": None,
            "preview_status": PreviewStatus.PENDING,
            "preview_fetched_at": None,
            "preview_expires_at": None,
        }
    )


def display_card(link: LinkRecord) -> PreviewMetadata:
    """What to render for a link: the cached preview, or a basic link card."""
    return link.preview_metadata or PreviewMetadata.basic_link(link.title, link.url)


def apply_result(link: LinkRecord, result: PreviewResult) -> LinkRecord:
    """Fold a resolution outcome into the link's preview fields.

    A failed refresh only flips the status: previously cached metadata and
    its cache window are kept so the link never regresses to a blank card.
    """
    if result.status is PreviewStatus.SUCCESS and result.metadata is not None:
        return link.model_copy(
            update={
                "preview_metadata": result.metadata,
                "preview_status": PreviewStatus.SUCCESS,
                "preview_fetched_at": result.metadata.fetched_at,
                "preview_expires_at": result.metadata.expires_at,
            }
        )
    return link.model_copy(update={"preview_status": PreviewStatus.FAILED})
