import json
import os
from enum import Enum
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


COLUMNS = ("username", "date", "rating", "title", "content")

DEFAULT_MAX_PAGES = 20
DEFAULT_WAIT_MS = 1000

_ENV_PREFIX = "REVIEW_SCRAPER_"
_ENV_FIELDS = {
    "item_selector": "ITEM_SELECTOR",
    "user_rel_selector": "USER_SELECTOR",
    "date_rel_selector": "DATE_SELECTOR",
    "rating_rel_selector": "RATING_SELECTOR",
    "title_rel_selector": "TITLE_SELECTOR",
    "content_rel_selector": "CONTENT_SELECTOR",
    "next_selector": "NEXT_SELECTOR",
    "max_pages": "MAX_PAGES",
    "wait_ms": "WAIT_MS",
}


class ScrapeConfig(BaseModel):
    """Selectors and pagination settings for one scrape run.

    The ``*_rel_selector`` fields are evaluated relative to one item container;
    ``item_selector`` and ``next_selector`` are document-scoped. Values are
    trimmed but otherwise taken as-is.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    item_selector: str = ""
    user_rel_selector: str = ""
    date_rel_selector: str = ""
    rating_rel_selector: str = ""
    title_rel_selector: str = ""
    content_rel_selector: str = ""
    next_selector: str = ""
    max_pages: int = DEFAULT_MAX_PAGES
    wait_ms: int = DEFAULT_WAIT_MS

    @field_validator(
        "item_selector",
        "user_rel_selector",
        "date_rel_selector",
        "rating_rel_selector",
        "title_rel_selector",
        "content_rel_selector",
        "next_selector",
        mode="before",
    )
    @classmethod
    def trim_selector(cls, v):
        if v is None:
            return ""
        return str(v).strip()

    @field_validator("max_pages", mode="before")
    @classmethod
    def default_max_pages(cls, v):
        return _number_or_default(v, DEFAULT_MAX_PAGES)

    @field_validator("wait_ms", mode="before")
    @classmethod
    def default_wait_ms(cls, v):
        return _number_or_default(v, DEFAULT_WAIT_MS)

    @classmethod
    def from_env(cls) -> "ScrapeConfig":
        """Build a config from ``REVIEW_SCRAPER_*`` environment variables (and a .env file)."""
        load_dotenv()
        values: Dict[str, Any] = {}
        for field_name, suffix in _ENV_FIELDS.items():
            raw = os.getenv(_ENV_PREFIX + suffix)
            if raw is not None:
                values[field_name] = raw
        return cls(**values)

    @classmethod
    def from_file(cls, path: str) -> "ScrapeConfig":
        """Load a config from a JSON file. Both snake_case and camelCase keys work."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return cls.model_validate(data)

    def with_preset(self, url: str) -> "ScrapeConfig":
        """Return a copy with blank selectors filled from the preset for ``url``'s site."""
        from .presets import preset_for_host

        preset = preset_for_host(urlparse(url).hostname or "")
        if preset is None:
            return self
        updates = {
            name: value
            for name, value in preset.items()
            if not getattr(self, name)
        }
        return self.model_copy(update=updates)


def _number_or_default(value: Any, default: int) -> int:
    # Empty, zero or unparsable numbers fall back to the default.
    if value is None or value == "":
        return default
    try:
        number = int(float(value))
    except (TypeError, ValueError):
        return default
    return number or default


class ItemRecord(BaseModel):
    """One extracted review."""
    username: str = ""
    date: str = ""
    rating: str = ""
    title: str = ""
    content: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def clean_text(cls, v):
        if v is None:
            return ""
        return str(v).strip()

    def as_row(self) -> List[str]:
        return [getattr(self, column) for column in COLUMNS]


class CacheEntry(BaseModel):
    record: ItemRecord
    key: str


class PageFingerprint(BaseModel):
    """Cheap summary of the visible page, compared before and after navigation."""
    model_config = ConfigDict(frozen=True)

    location: str
    count: int
    first_title: str = ""


class SelectorKind(str, Enum):
    HOOK = "hook"
    IDENTITY = "identity"
    DATA = "data"
    STABLE = "stable"
    CLASS = "class"
    PATH = "path"


class SelectorCandidate(BaseModel):
    selector: str
    kind: SelectorKind
    unique: bool = True


class StopReason(str, Enum):
    SINGLE_PAGE = "single_page"
    NO_NEXT = "no_next"
    NEXT_DISABLED = "next_disabled"
    NAVIGATION_FAILED = "navigation_failed"
    STALLED = "stalled"
    NO_NEW_RECORDS = "no_new_records"
    PAGE_LIMIT = "page_limit"


class ScrapeResult(BaseModel):
    """Complete result from a scraping run."""
    records: List[ItemRecord] = Field(default_factory=list)
    page_count: int = 0
    total_count: int = 0
    stop_reason: Optional[StopReason] = None
    output_path: Optional[str] = None

    @property
    def as_dicts(self) -> List[Dict[str, Any]]:
        return [r.model_dump() for r in self.records]
