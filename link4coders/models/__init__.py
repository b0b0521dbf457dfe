from link4coders.models.base import Base
from link4coders.models.link import Link

__all__ = ["Base", "Link"]
