from __future__ import annotations

from datetime import datetime
from typing import Any, Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, DateTime, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from link4coders.models.base import Base


class Link(Base):
    __tablename__ = "links"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    url: Mapped[str]
    title: Mapped[str]
    category: Mapped[str] = mapped_column(String(32), index=True)

    # Preview fields, written only by the preview pipeline
    preview_metadata: Mapped[Optional[dict[str, Any]]] = mapped_column(
        "metadata", JSON(none_as_null=True)
    )
    preview_status: Mapped[str] = mapped_column(
        String(16), default="pending", server_default="pending"
    )
    preview_fetched_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True)
    )
    preview_expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True)
    )

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("ix_links_preview_status_expires_at", "preview_status", "preview_expires_at"),
    )
