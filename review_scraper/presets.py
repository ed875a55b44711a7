"""
Built-in selector sets for review sites the scraper knows about.

Presets only fill selectors the user left blank; see ``ScrapeConfig.with_preset``.
"""

from typing import Dict, Optional


TRUSTPILOT = {
    "item_selector": 'section[data-nosnippet="false"] article[data-service-review-card-paper="true"]',
    "user_rel_selector": "span[data-consumer-name-typography]",
    "date_rel_selector": '[data-testid="review-badge-date"] span',
    "rating_rel_selector": "div[data-service-review-rating] img",
    "title_rel_selector": "h2[data-service-review-title-typography]",
    "content_rel_selector": "p[data-service-review-text-typography]",
    "next_selector": 'a[data-pagination-button-next-link="true"], a[data-pagination-button-next]',
}

AMAZON = {
    "item_selector": 'li[data-hook="review"]',
    "user_rel_selector": ".a-profile-name",
    "date_rel_selector": '[data-hook="review-date"]',
    "rating_rel_selector": '[data-hook="review-star-rating"]',
    "title_rel_selector": '[data-hook="review-title"] > span:last-of-type',
    "content_rel_selector": '[data-hook="review-body"] > span',
    "next_selector": ".a-last a",
}

# Host fragment -> preset
SITE_PRESETS: Dict[str, Dict[str, str]] = {
    "trustpilot.com": TRUSTPILOT,
    "amazon.com": AMAZON,
}

# Item containers used when picking a field without an explicit item selector.
ITEM_CONTAINER_SELECTORS = (
    'article[data-service-review-card-paper="true"]',
    'li[data-hook="review"]',
)


def preset_for_host(hostname: str) -> Optional[Dict[str, str]]:
    """Return the preset whose host fragment appears in ``hostname``."""
    host = (hostname or "").lower()
    for fragment, preset in SITE_PRESETS.items():
        if fragment in host:
            return dict(preset)
    return None
