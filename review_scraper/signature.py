"""
Page fingerprints and change detection after a navigation click.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable

from .models import PageFingerprint
from .pages import Page
from .tree import safe_query, safe_query_all

logger = logging.getLogger(__name__)


DEFAULT_TITLE_SELECTOR = 'h2, h5, [data-hook="review-title"]'
TITLE_PREFIX_LENGTH = 80

# Per page turn; independent of the configurable inter-click delay.
CHANGE_TIMEOUT_MS = 8000
POLL_INTERVAL_MS = 300


def compute_signature(page: Page, item_selector: str, title_selector: str = "") -> PageFingerprint:
    """Fingerprint the page from its location, item count and first item title."""
    tree = page.tree
    items = safe_query_all(tree, item_selector)
    first_title = ""
    if items:
        title = safe_query(tree, items[0], title_selector or DEFAULT_TITLE_SELECTOR)
        first_title = tree.text_of(title)[:TITLE_PREFIX_LENGTH]
    return PageFingerprint(location=page.location, count=len(items), first_title=first_title)


async def wait_for_change(
    page: Page,
    baseline: PageFingerprint,
    item_selector: str,
    title_selector: str = "",
    *,
    timeout_ms: int = CHANGE_TIMEOUT_MS,
    interval_ms: int = POLL_INTERVAL_MS,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> bool:
    """Poll until the fingerprint differs from ``baseline``.

    Every iteration suspends for ``interval_ms`` before looking. Returns False
    once ``timeout_ms`` has elapsed without a difference.
    """
    start = clock()
    while (clock() - start) * 1000 < timeout_ms:
        await sleep(interval_ms / 1000)
        try:
            await page.sync()
        except Exception as exc:  # page may be mid-navigation
            logger.debug("Page sync failed while waiting for change: %r", exc)
            continue
        if compute_signature(page, item_selector, title_selector) != baseline:
            return True
    return False
