import asyncio
import logging
import random
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from .cache import DedupCache, key_of
from .errors import ExportTransportError
from .export import Exporter
from .models import ItemRecord, PageFingerprint, ScrapeConfig, ScrapeResult, StopReason
from .pages import Page
from .parser import ReviewParser
from .signature import CHANGE_TIMEOUT_MS, POLL_INTERVAL_MS, compute_signature, wait_for_change
from .tree import QueryableTree, safe_query

logger = logging.getLogger(__name__)


class RunPhase(str, Enum):
    INIT = "init"
    SCRAPING_PAGE = "scraping_page"
    AWAITING_NAVIGATION = "awaiting_navigation"
    EXPORTING = "exporting"
    DONE = "done"


@dataclass
class RunState:
    """Mutable state of one run. Owned by a single ``ReviewScraper.run`` call."""
    page_index: int = 1
    total_count: int = 0
    cache: DedupCache = field(default_factory=DedupCache)
    phase: RunPhase = RunPhase.INIT
    stop_reason: Optional[StopReason] = None


ProgressCallback = Callable[[RunState, str], None]


def random_wait(min_ms: int, max_ms: int, rng: Optional[random.Random] = None) -> int:
    """Uniform integer delay in ``[min_ms, max_ms]``."""
    rng = rng or random
    return min_ms + rng.randint(0, max(0, max_ms - min_ms))


def is_disabled(tree: QueryableTree, node) -> bool:
    return (
        tree.attribute_of(node, "aria-disabled") == "true"
        or tree.attribute_of(node, "tabindex") == "-1"
        or tree.attribute_of(node, "disabled") is not None
    )


class ReviewScraper:
    """Main orchestrator for paginated review scraping.

    One ``run`` scrapes the current page, clicks "next", waits until the page
    content actually changes and repeats, deduplicating records along the
    way. Runs end early (never with an exception) when the next control is
    missing or disabled, navigation stalls, a page adds nothing new, or the
    page limit is reached; whatever was collected is still exported.

    A ``ReviewScraper`` must not run twice concurrently against the same page.
    """

    def __init__(
        self,
        page: Page,
        exporter: Optional[Exporter] = None,
        *,
        on_progress: Optional[ProgressCallback] = None,
        verbose: bool = False,
        change_timeout_ms: int = CHANGE_TIMEOUT_MS,
        poll_interval_ms: int = POLL_INTERVAL_MS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
        rng: Optional[random.Random] = None,
    ):
        self.page = page
        self.exporter = exporter
        self.on_progress = on_progress
        self.verbose = verbose
        self.change_timeout_ms = change_timeout_ms
        self.poll_interval_ms = poll_interval_ms
        self.sleep = sleep
        self.clock = clock
        self.rng = rng or random.Random()

    async def run(self, config: ScrapeConfig, only_current_page: bool = False) -> ScrapeResult:
        """Scrape from the current page forward and export the result."""
        state = RunState()
        state.cache.clear()
        await self.page.sync()
        parser = ReviewParser(config)
        baseline: Optional[PageFingerprint] = None

        state.phase = RunPhase.SCRAPING_PAGE
        while state.phase not in (RunPhase.EXPORTING, RunPhase.DONE):
            if state.phase is RunPhase.SCRAPING_PAGE:
                added = self._scrape_and_append(parser, state)
                self._notify(state, f"Page {state.page_index}: {state.total_count} reviews collected")

                if only_current_page:
                    self._stop(state, StopReason.SINGLE_PAGE)
                elif state.page_index > 1 and added == 0:
                    self._stop(state, StopReason.NO_NEW_RECORDS)
                    self._notify(state, f"Page {state.page_index} added no new reviews, stopping")
                elif state.page_index >= config.max_pages:
                    self._stop(state, StopReason.PAGE_LIMIT)
                else:
                    baseline = await self._navigate(config, state)

            elif state.phase is RunPhase.AWAITING_NAVIGATION:
                changed = await wait_for_change(
                    self.page,
                    baseline,
                    config.item_selector,
                    config.title_rel_selector,
                    timeout_ms=self.change_timeout_ms,
                    interval_ms=self.poll_interval_ms,
                    sleep=self.sleep,
                    clock=self.clock,
                )
                if not changed:
                    self._stop(state, StopReason.STALLED)
                    self._notify(
                        state,
                        f"No page change detected, stopping at page {state.page_index} "
                        f"with {state.total_count} reviews",
                    )
                else:
                    state.page_index += 1
                    state.phase = RunPhase.SCRAPING_PAGE

        return self._export(state)

    def preview_extract(self, config: ScrapeConfig) -> List[ItemRecord]:
        """Extract the current page's records without touching any run state."""
        records, _ = ReviewParser(config).parse_page(self.page.tree)
        return records

    def _scrape_and_append(self, parser: ReviewParser, state: RunState) -> int:
        tree = self.page.tree
        records, containers = parser.parse_page(tree)
        keys = [key_of(tree, container) for container in containers]
        added = state.cache.append(records, keys)
        state.total_count += added
        return added

    async def _navigate(self, config: ScrapeConfig, state: RunState) -> Optional[PageFingerprint]:
        """Click "next" and sleep; leaves the state awaiting navigation or exporting."""
        tree = self.page.tree
        next_control = safe_query(tree, None, config.next_selector)
        if next_control is None:
            self._stop(state, StopReason.NO_NEXT)
            return None
        if is_disabled(tree, next_control):
            self._stop(state, StopReason.NEXT_DISABLED)
            return None

        baseline = compute_signature(self.page, config.item_selector, config.title_rel_selector)
        try:
            await self.page.click(config.next_selector)
        except Exception as exc:
            logger.warning("Clicking next control %r failed: %r", config.next_selector, exc)
            self._stop(state, StopReason.NAVIGATION_FAILED)
            self._notify(state, f"Could not open the next page, stopping at page {state.page_index}")
            return None

        delay = random_wait(config.wait_ms, config.wait_ms * 2, self.rng)
        self._notify(
            state,
            f"Page {state.page_index}: {state.total_count} reviews collected, "
            f"waiting {delay} ms before continuing...",
        )
        await self.sleep(delay / 1000)
        state.phase = RunPhase.AWAITING_NAVIGATION
        return baseline

    def _stop(self, state: RunState, reason: StopReason) -> None:
        state.stop_reason = reason
        state.phase = RunPhase.EXPORTING

    def _export(self, state: RunState) -> ScrapeResult:
        state.phase = RunPhase.EXPORTING
        records = state.cache.records()
        output_path = None
        if self.exporter is not None:
            try:
                output_path = self.exporter.export(records, state.page_index, state.total_count)
            except ExportTransportError as exc:
                logger.error("Export failed, keeping %s reviews in the result: %s", len(records), exc)

        self._notify(state, f"Scraping complete: {state.page_index} pages, {state.total_count} reviews")
        state.phase = RunPhase.DONE
        return ScrapeResult(
            records=records,
            page_count=state.page_index,
            total_count=state.total_count,
            stop_reason=state.stop_reason,
            output_path=output_path,
        )

    def _notify(self, state: RunState, message: str) -> None:
        logger.debug(message)
        if self.verbose:
            print(message)
        if self.on_progress:
            self.on_progress(state, message)
