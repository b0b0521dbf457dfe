from enum import Enum


class AdapterErrorReason(str, Enum):
    RATE_LIMITED = "rate_limited"
    NOT_FOUND = "not_found"
    PARSE_ERROR = "parse_error"
    NETWORK_ERROR = "network_error"
    TIMEOUT = "timeout"


class AdapterError(Exception):
    """A source adapter could not produce metadata for a URL.

    Never surfaced to API consumers; the resolver uses the reason to decide
    on a fallback and logs it.
    """

    def __init__(self, reason: AdapterErrorReason, message: str = "") -> None:
        self.reason = reason
        self.message = message or reason.value
        super().__init__(f"{reason.value}: {self.message}")


class PreviewError(Exception):
    """Base class for errors raised to callers of the preview service."""


class BatchValidationError(PreviewError, ValueError):
    """A batch request is structurally invalid (empty, too large, bad ids)."""


class LinkNotFoundError(PreviewError, LookupError):
    def __init__(self, link_id: str) -> None:
        self.link_id = link_id
        super().__init__(f"Link not found: {link_id}")
