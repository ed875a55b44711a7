"""
Exceptions raised inside the review scraper.

Most of them never escape a run: selector problems degrade to "no match" and
navigation problems end the run early with whatever was already collected.
"""

from typing import Optional


class ReviewScraperError(Exception):
    """Base class for review scraper errors."""


class SelectorEvaluationError(ReviewScraperError):
    """A selector could not be evaluated against the document."""

    def __init__(self, selector: str, cause: Optional[BaseException] = None):
        self.selector = selector
        self.cause = cause
        message = f"Cannot evaluate selector {selector!r}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class ExportTransportError(ReviewScraperError):
    """Every configured export transport failed."""
