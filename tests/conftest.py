"""Shared fixtures for review scraper tests."""

from typing import List, Sequence, Tuple

import pytest

from review_scraper import ScrapeConfig


class FakeClock:
    """Deterministic clock whose ``sleep`` advances time instantly."""

    def __init__(self):
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class RecordingExporter:
    def __init__(self):
        self.calls = []

    def export(self, records, page_count, total_count):
        self.calls.append((list(records), page_count, total_count))
        return "memory://reviews.csv"


def review_article(review_id: str, user: str, title: str, body: str, rating: str = "4") -> str:
    return (
        f'<article class="review-card" data-review-id="{review_id}">'
        f'<span class="reviewer-name">{user}</span>'
        f'<time class="review-date">2024-03-01</time>'
        f'<div data-service-review-rating="{rating}">'
        f'<img alt="Rated {rating} out of 5 stars" src="/static/stars-{rating}.svg">'
        f'</div>'
        f'<h2 class="review-title">{title}</h2>'
        f'<p class="review-text">{body}</p>'
        f'</article>'
    )


def review_page(reviews: Sequence[Tuple[str, str, str, str]], next_link: str = "") -> str:
    items = "".join(review_article(*review) for review in reviews)
    return (
        "<html><body>"
        f'<section class="reviews">{items}</section>'
        f"<nav>{next_link}</nav>"
        "</body></html>"
    )


NEXT_LINK = '<a class="next-page" href="?page=2">Next page</a>'


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def exporter():
    return RecordingExporter()


@pytest.fixture
def config():
    return ScrapeConfig(
        item_selector="article.review-card",
        user_rel_selector="span.reviewer-name",
        date_rel_selector="time.review-date",
        rating_rel_selector="div[data-service-review-rating] img",
        title_rel_selector="h2.review-title",
        content_rel_selector="p.review-text",
        next_selector="a.next-page",
        max_pages=20,
        wait_ms=10,
    )


@pytest.fixture
def three_pages():
    """Three pages of two reviews each; the last one has no next link."""
    return [
        ("/reviews?page=1", review_page(
            [("r1", "Alice", "Great", "Loved it"), ("r2", "Bob", "Fine", "It was fine")],
            NEXT_LINK,
        )),
        ("/reviews?page=2", review_page(
            [("r3", "Carol", "Meh", "Not much"), ("r4", "Dan", "Bad", "Broke quickly")],
            NEXT_LINK,
        )),
        ("/reviews?page=3", review_page(
            [("r5", "Eve", "Superb", "Would buy again"), ("r6", "Finn", "Okay", "Average")],
        )),
    ]
