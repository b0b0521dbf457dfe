import logging
import time
from typing import Any, Optional

import httpx

from link4coders.errors import AdapterError, AdapterErrorReason
from link4coders.schemas.preview import PreviewAuthor, PreviewMetadata, PreviewType
from link4coders.services.adapters.base import PreviewAdapter
from link4coders.services.detector import Platform, parse_github_repo

logger = logging.getLogger(__name__)


class GitHubAdapter(PreviewAdapter):
    """Repository metadata from the GitHub REST API (v3)."""

    platform = Platform.GITHUB.value

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        # Last rate-limit window reported by GitHub
        self._remaining: Optional[int] = None
        self._reset_at: Optional[float] = None

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": self.settings.user_agent,
        }
        if self.settings.github_token:
            headers["Authorization"] = f"token {self.settings.github_token}"
        return headers

    def _check_rate_limit(self) -> None:
        if self._remaining is None or self._remaining > 0 or self._reset_at is None:
            return
        if time.time() < self._reset_at:
            raise AdapterError(
                AdapterErrorReason.RATE_LIMITED,
                f"GitHub rate limit exhausted until {self._reset_at:.0f}",
            )

    def _record_rate_limit(self, response: httpx.Response) -> None:
        remaining = response.headers.get("x-ratelimit-remaining")
        reset = response.headers.get("x-ratelimit-reset")
        if remaining is None or reset is None:
            return
        try:
            self._remaining = int(remaining)
            self._reset_at = float(reset)
        except ValueError:
            logger.debug("Ignoring malformed GitHub rate-limit headers")

    async def _fetch_metadata(self, url: str) -> PreviewMetadata:
        repo = parse_github_repo(url)
        if repo is None:
            raise AdapterError(AdapterErrorReason.PARSE_ERROR, f"not a repository URL: {url}")
        owner, name = repo

        self._check_rate_limit()
        response = await self._request(
            "GET",
            f"{self.settings.github_api_base}/repos/{owner}/{name}",
            headers=self._headers(),
        )
        self._record_rate_limit(response)
        if response.status_code in (403, 429):
            raise AdapterError(
                AdapterErrorReason.RATE_LIMITED,
                f"GitHub returned {response.status_code} for {owner}/{name}",
            )
        self._check_status(response)

        data = self._json(response)
        if not isinstance(data, dict) or not data.get("full_name"):
            raise AdapterError(
                AdapterErrorReason.PARSE_ERROR, f"unexpected GitHub payload for {owner}/{name}"
            )
        return self._to_metadata(data, url)

    @staticmethod
    def _to_metadata(data: dict[str, Any], url: str) -> PreviewMetadata:
        owner = data.get("owner") or {}
        login = owner.get("login")
        license_info = data.get("license") or {}
        return PreviewMetadata(
            type=PreviewType.GITHUB_REPO,
            title=data["full_name"],
            description=data.get("description"),
            featured_image=owner.get("avatar_url"),
            author=(
                PreviewAuthor(
                    name=login,
                    username=login,
                    avatar=owner.get("avatar_url"),
                    profile_url=owner.get("html_url") or f"https://github.com/{login}",
                )
                if login
                else None
            ),
            published_at=data.get("created_at"),
            platform=Platform.GITHUB.value,
            canonical_url=data.get("html_url") or url,
            repo_name=data["full_name"],
            language=data.get("language"),
            stars=data.get("stargazers_count"),
            forks=data.get("forks_count"),
            topics=data.get("topics") or [],
            license=license_info.get("spdx_id") or license_info.get("name"),
            homepage=data.get("homepage") or None,
        )
