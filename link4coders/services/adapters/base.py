import logging
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

from link4coders.config import Settings
from link4coders.errors import AdapterError, AdapterErrorReason
from link4coders.schemas.preview import PreviewMetadata
from link4coders.services.detector import Platform

logger = logging.getLogger(__name__)

HTML_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"


class PreviewAdapter(ABC):
    """Fetches metadata for one platform and normalizes it.

    ``fetch_metadata`` either returns a complete ``PreviewMetadata`` or
    raises ``AdapterError``; it never returns partial data. Subclasses
    implement ``_fetch_metadata``; a payload whose shape they did not expect
    surfaces as ``parse_error``.
    """

    platform: ClassVar[str]

    def __init__(self, client: httpx.AsyncClient, settings: Settings) -> None:
        self.client = client
        self.settings = settings

    async def fetch_metadata(self, url: str) -> PreviewMetadata:
        try:
            return await self._fetch_metadata(url)
        except AdapterError:
            raise
        except (KeyError, TypeError, AttributeError, ValueError) as exc:
            # ValueError covers pydantic's ValidationError
            raise AdapterError(
                AdapterErrorReason.PARSE_ERROR,
                f"unexpected {self.platform} payload for {url}: {exc!r}",
            ) from exc

    @abstractmethod
    async def _fetch_metadata(self, url: str) -> PreviewMetadata:
        raise NotImplementedError

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self.settings.retry_attempts),
            wait=wait_random_exponential(multiplier=0.5, max=3),
            retry=retry_if_exception_type(httpx.TransportError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request, retrying transport errors, mapping them to AdapterError."""
        kwargs.setdefault("timeout", self.settings.request_timeout_seconds)
        try:
            async for attempt in self._retrying():
                with attempt:
                    response = await self.client.request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            raise AdapterError(
                AdapterErrorReason.TIMEOUT, f"{method} {url} timed out"
            ) from exc
        except httpx.HTTPError as exc:
            raise AdapterError(
                AdapterErrorReason.NETWORK_ERROR, f"{method} {url} failed: {exc}"
            ) from exc
        return response

    @staticmethod
    def _check_status(response: httpx.Response) -> None:
        status = response.status_code
        if status == 429:
            raise AdapterError(AdapterErrorReason.RATE_LIMITED, f"{response.url}")
        if status in (404, 410):
            raise AdapterError(AdapterErrorReason.NOT_FOUND, f"{response.url}")
        if not response.is_success:
            raise AdapterError(
                AdapterErrorReason.NETWORK_ERROR, f"{response.url} returned {status}"
            )

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise AdapterError(
                AdapterErrorReason.PARSE_ERROR, f"invalid JSON from {response.url}"
            ) from exc

    @staticmethod
    def _check_html(response: httpx.Response, url: str) -> None:
        content_type = response.headers.get("content-type", "").lower()
        if (
            content_type
            and not content_type.startswith("text/")
            and "html" not in content_type
            and "xml" not in content_type
        ):
            raise AdapterError(
                AdapterErrorReason.PARSE_ERROR,
                f"{url} is {content_type}, not an HTML page",
            )

    async def _read_page(self, url: str) -> tuple[str, str]:
        limit = self.settings.max_html_bytes
        async with self.client.stream(
            "GET",
            url,
            headers={"User-Agent": self.settings.user_agent, "Accept": HTML_ACCEPT},
            timeout=self.settings.request_timeout_seconds,
        ) as response:
            self._check_status(response)
            self._check_html(response, url)

            declared = response.headers.get("content-length", "")
            if declared.isdigit() and int(declared) > limit:
                raise AdapterError(
                    AdapterErrorReason.PARSE_ERROR,
                    f"{url} declares {declared} bytes, limit is {limit}",
                )

            body = bytearray()
            async for chunk in response.aiter_bytes():
                body.extend(chunk)
                if len(body) > limit:
                    raise AdapterError(
                        AdapterErrorReason.PARSE_ERROR,
                        f"{url} exceeded {limit} bytes",
                    )
            encoding = response.encoding or "utf-8"
            final_url = str(response.url)

        return body.decode(encoding, errors="replace"), final_url

    async def _fetch_html(self, url: str) -> tuple[str, str]:
        """Return ``(html, final_url)`` for a page, after redirects.

        The body is streamed and abandoned once it passes ``max_html_bytes``.
        """
        try:
            async for attempt in self._retrying():
                with attempt:
                    page = await self._read_page(url)
        except httpx.TimeoutException as exc:
            raise AdapterError(AdapterErrorReason.TIMEOUT, f"GET {url} timed out") from exc
        except httpx.HTTPError as exc:
            raise AdapterError(
                AdapterErrorReason.NETWORK_ERROR, f"GET {url} failed: {exc}"
            ) from exc
        return page


class AdapterRegistry:
    """Maps a detected platform to the adapter that handles it."""

    def __init__(self) -> None:
        self._adapters: dict[Platform, PreviewAdapter] = {}

    def register(self, platform: Platform, adapter: PreviewAdapter) -> None:
        self._adapters[platform] = adapter

    def get(self, platform: Optional[Platform]) -> Optional[PreviewAdapter]:
        if platform is None:
            return None
        return self._adapters.get(platform)

    def __contains__(self, platform: object) -> bool:
        return platform in self._adapters
