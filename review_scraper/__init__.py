"""
Paginated review scraper with robust selector synthesis and CSV export.
"""

from .models import (
    COLUMNS,
    CacheEntry,
    ItemRecord,
    PageFingerprint,
    ScrapeConfig,
    ScrapeResult,
    SelectorCandidate,
    SelectorKind,
    StopReason,
)
from .errors import ExportTransportError, ReviewScraperError, SelectorEvaluationError
from .tree import HtmlTree, QueryableTree
from .synthesizer import SelectorSynthesizer, css_escape, is_unique
from .signature import compute_signature, wait_for_change
from .parser import ReviewParser, extract_rating
from .cache import DedupCache, key_of
from .export import CsvExporter, to_csv
from .pages import HttpPage, StaticPage
from .browser import BrowserPage
from .core import ReviewScraper, RunPhase, RunState

__version__ = "1.0.0"

__all__ = [
    "COLUMNS",
    "CacheEntry",
    "ItemRecord",
    "PageFingerprint",
    "ScrapeConfig",
    "ScrapeResult",
    "SelectorCandidate",
    "SelectorKind",
    "StopReason",
    "ExportTransportError",
    "ReviewScraperError",
    "SelectorEvaluationError",
    "HtmlTree",
    "QueryableTree",
    "SelectorSynthesizer",
    "css_escape",
    "is_unique",
    "compute_signature",
    "wait_for_change",
    "ReviewParser",
    "extract_rating",
    "DedupCache",
    "key_of",
    "CsvExporter",
    "to_csv",
    "HttpPage",
    "StaticPage",
    "BrowserPage",
    "ReviewScraper",
    "RunPhase",
    "RunState",
]
