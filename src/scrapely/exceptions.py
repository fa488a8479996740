"""Exception hierarchy for scraping failures.

Every error carries a stable machine-readable ``code`` and a structured
``meta`` payload so callers can branch on the failure kind instead of
parsing messages.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class ScrapelyError(Exception):
    """Base class for all errors raised by scrapely."""

    def __init__(self, message: str, code: str, meta: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.code = code
        self.meta = meta or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serializable view used for logging and CLI output."""
        return {"error": type(self).__name__, "code": self.code, "message": self.message, "meta": dict(self.meta)}


class ValidationError(ScrapelyError):
    """Bad caller input: wrong type or shape, missing required field."""

    def __init__(self, param: str, reason: str) -> None:
        self.param = param
        self.reason = reason
        super().__init__(f'Invalid parameter "{param}": {reason}', "ERR_VALIDATION", {"param": param})


class FetchError(ScrapelyError):
    """All retry attempts for a URL were exhausted."""

    def __init__(self, url: str, attempts: int, cause: BaseException) -> None:
        self.url = url
        self.attempts = attempts
        self.cause = cause
        super().__init__(
            f"Request to {url} failed after {attempts} attempt(s): {cause}",
            "ERR_FETCH_FAILED",
            {"url": url, "attempts": attempts},
        )
        self.__cause__ = cause


class HttpStatusError(ScrapelyError):
    """The transport received a status rejected by the status validator."""

    def __init__(self, url: str, status: int) -> None:
        self.url = url
        self.status = status
        super().__init__(
            f"Request to {url} returned rejected status {status}",
            "ERR_HTTP_STATUS",
            {"url": url, "status": status},
        )


class ExportError(ScrapelyError):
    """Writing exported data to disk failed."""

    def __init__(self, filepath: str, cause: BaseException) -> None:
        self.filepath = filepath
        self.cause = cause
        super().__init__(f"Failed to export to {filepath}: {cause}", "ERR_EXPORT_FAILED", {"filepath": filepath})
        self.__cause__ = cause


class DownloadError(ScrapelyError):
    """Downloading a remote resource to disk failed."""

    def __init__(self, url: str, dest: str, cause: BaseException) -> None:
        self.url = url
        self.dest = dest
        self.cause = cause
        super().__init__(f"Download failed ({url} -> {dest}): {cause}", "ERR_DOWNLOAD", {"url": url, "dest": dest})
        self.__cause__ = cause
