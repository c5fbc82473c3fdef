"""
Failure taxonomy for a single extraction.

The router attaches ``url`` / ``domain`` context and rethrows; the worker
is the only place these are turned into item state.  ``str(exc)`` is
always the bare message, which is what gets persisted.
"""

from __future__ import annotations

from typing import Any


class ScrapeError(Exception):
    """Base class for every classified extraction failure."""

    def __init__(self, message: str, *, url: str | None = None, domain: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.url = url
        self.domain = domain

    def add_context(self, *, url: str, domain: str | None) -> "ScrapeError":
        # Keep the innermost context if a nested call already set it.
        self.url = self.url or url
        self.domain = self.domain or domain
        return self

    @property
    def context(self) -> dict[str, Any]:
        return {"url": self.url, "domain": self.domain}

    def __str__(self) -> str:
        return self.message


class UnregisteredDomainError(ScrapeError):
    """No extractor is registered for the URL's hostname."""


class NotFoundError(ScrapeError):
    """The product page is gone (HTTP 404)."""


class BlockedError(ScrapeError):
    """HTTP 403/429 or an anti-bot challenge page."""


class ScrapeTimeoutError(ScrapeError):
    """A navigation or interactive wait exceeded its bound."""


class ExtractionError(ScrapeError):
    """Required page structure was missing or structured data was unusable."""


def error_for_status(status: int) -> ScrapeError | None:
    """Classify a non-OK HTTP status from a fetch or navigation."""
    if status < 400:
        return None
    if status in (404, 410):
        return NotFoundError("Product not found (404)")
    if status in (403, 429):
        return BlockedError(f"Blocked by site (HTTP {status})")
    return ScrapeError(f"HTTP error! status: {status}")
