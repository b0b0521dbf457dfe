"""URL classification for the preview pipeline.

Pure functions only: nothing here performs I/O, and malformed input always
classifies as a generic webpage instead of raising.
"""

import ipaddress
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional
from urllib.parse import urlsplit


class Platform(str, Enum):
    GITHUB = "github"
    DEVTO = "dev.to"
    HASHNODE = "hashnode"
    MEDIUM = "medium"
    SUBSTACK = "substack"


@dataclass(frozen=True)
class Detection:
    is_github: bool = False
    is_blog: bool = False
    platform: Optional[Platform] = None

    @property
    def generic(self) -> bool:
        return not (self.is_github or self.is_blog)


GENERIC = Detection()

GITHUB_HOSTS = frozenset({"github.com", "www.github.com"})
# /owner/repo, /owner/repo/tree/<branch>, /owner/repo/blob/<branch>/<path>
GITHUB_REPO_PATH = re.compile(
    r"^/(?P<owner>[^/]+)/(?P<repo>[^/]+?)(?:\.git)?(?:/(?:tree|blob)/.+)?/?$"
)
# Top-level GitHub pages that share the /<owner>/<repo> shape
GITHUB_RESERVED_OWNERS = frozenset(
    {
        "about",
        "apps",
        "codespaces",
        "collections",
        "customer-stories",
        "enterprise",
        "events",
        "explore",
        "features",
        "issues",
        "login",
        "marketplace",
        "new",
        "notifications",
        "orgs",
        "organizations",
        "pricing",
        "pulls",
        "search",
        "security",
        "settings",
        "site",
        "sponsors",
        "team",
        "topics",
        "trending",
    }
)

SOCIAL_MEDIA_HOSTS = (
    "twitter.com",
    "x.com",
    "facebook.com",
    "instagram.com",
    "linkedin.com",
    "youtube.com",
    "tiktok.com",
    "snapchat.com",
    "discord.com",
    "telegram.org",
    "whatsapp.com",
    "reddit.com",
    "pinterest.com",
    "tumblr.com",
)


def _hostname(url: str) -> Optional[str]:
    try:
        parts = urlsplit(url.strip())
        hostname = parts.hostname
    except ValueError:
        return None
    if parts.scheme not in ("http", "https") or not hostname:
        return None
    return hostname.lower()


def _matches(hostname: str, domain: str) -> bool:
    return hostname == domain or hostname.endswith("." + domain)


def parse_github_repo(url: str) -> Optional[tuple[str, str]]:
    """Return ``(owner, repo)`` for a GitHub repository URL, else None."""
    hostname = _hostname(url)
    if hostname not in GITHUB_HOSTS:
        return None
    match = GITHUB_REPO_PATH.match(urlsplit(url.strip()).path)
    if not match or match.group("owner").lower() in GITHUB_RESERVED_OWNERS:
        return None
    return match.group("owner"), match.group("repo")


def detect(url: str) -> Detection:
    hostname = _hostname(url)
    if hostname is None:
        return GENERIC

    if hostname in GITHUB_HOSTS:
        if parse_github_repo(url):
            return Detection(is_github=True, platform=Platform.GITHUB)
        return GENERIC
    if hostname == "dev.to":
        return Detection(is_blog=True, platform=Platform.DEVTO)
    if _matches(hostname, "hashnode.dev") or _matches(hostname, "hashnode.com"):
        return Detection(is_blog=True, platform=Platform.HASHNODE)
    if _matches(hostname, "medium.com"):
        return Detection(is_blog=True, platform=Platform.MEDIUM)
    if hostname.endswith(".substack.com"):
        return Detection(is_blog=True, platform=Platform.SUBSTACK)
    return GENERIC


def is_social_media_url(url: str) -> bool:
    hostname = _hostname(url)
    if hostname is None:
        return False
    return any(_matches(hostname, domain) for domain in SOCIAL_MEDIA_HOSTS)


def is_fetchable_url(url: str) -> bool:
    """http(s) URLs that do not point at localhost or a private network."""
    hostname = _hostname(url)
    if hostname is None:
        return False
    if hostname == "localhost" or hostname.endswith(".localhost"):
        return False
    try:
        address = ipaddress.ip_address(hostname)
    except ValueError:
        return True
    return not (
        address.is_private
        or address.is_loopback
        or address.is_link_local
        or address.is_reserved
        or address.is_unspecified
    )
