"""Tests for the command-line interface."""

import json

import pytest
from typer.testing import CliRunner

from review_scraper.main import app, render_stars

from .conftest import NEXT_LINK, review_page


runner = CliRunner()

FIELD_OPTIONS = [
    "--item", "article.review-card",
    "--user", "span.reviewer-name",
    "--date", "time.review-date",
    "--rating", "div[data-service-review-rating] img",
    "--title", "h2.review-title",
    "--content", "p.review-text",
]


@pytest.fixture
def saved_pages(tmp_path):
    first = tmp_path / "page1.html"
    second = tmp_path / "page2.html"
    first.write_text(review_page(
        [("r1", "Alice", "Great", "Loved it"), ("r2", "Bob", "Fine", "It was fine")],
        NEXT_LINK,
    ), encoding="utf-8")
    second.write_text(review_page([("r3", "Carol", "Meh", "Not much")]), encoding="utf-8")
    return first, second


class TestPreviewCommand:

    def test_shows_records(self, saved_pages):
        first, _ = saved_pages
        result = runner.invoke(app, ["preview", str(first), *FIELD_OPTIONS])
        assert result.exit_code == 0
        assert "2 reviews on this page" in result.output
        assert "Alice" in result.output
        assert "Loved it" in result.output

    def test_limit(self, saved_pages):
        first, _ = saved_pages
        result = runner.invoke(app, ["preview", str(first), *FIELD_OPTIONS, "--limit", "1"])
        assert result.exit_code == 0
        assert "Alice" in result.output
        assert "Bob" not in result.output

    def test_no_matches(self, saved_pages):
        first, _ = saved_pages
        result = runner.invoke(app, ["preview", str(first), "--item", "table.none"])
        assert result.exit_code == 0
        assert "No reviews found" in result.output


class TestSuggestCommand:

    def test_absolute_and_relative(self, saved_pages):
        first, _ = saved_pages
        result = runner.invoke(app, [
            "suggest", str(first),
            "--target", 'article[data-review-id="r2"] span.reviewer-name',
            "--item", "article.review-card",
        ])
        assert result.exit_code == 0
        suggestion = json.loads(result.output)
        assert suggestion["field"] == "span.reviewer-name"
        assert suggestion["absolute"] == 'article[data-review-id="r2"] > span.reviewer-name'
        assert suggestion["kind"] == "path"
        assert suggestion["unique"] is True

    def test_target_not_found(self, saved_pages):
        first, _ = saved_pages
        result = runner.invoke(app, ["suggest", str(first), "--target", "table.none"])
        assert result.exit_code == 1


class TestRunCommand:

    def test_exports_all_pages(self, saved_pages, tmp_path):
        first, second = saved_pages
        out_dir = tmp_path / "out"
        result = runner.invoke(app, [
            "run", str(first), str(second),
            *FIELD_OPTIONS,
            "--next", "a.next-page",
            "--wait-ms", "1",
            "--output-dir", str(out_dir),
        ])
        assert result.exit_code == 0, result.output
        assert "Exported 3 reviews from 2 pages" in result.output

        files = list(out_dir.glob("reviews_*.csv"))
        assert len(files) == 1
        text = files[0].read_text(encoding="utf-8-sig")
        assert "Carol" in text

    def test_requires_item_selector(self, saved_pages, monkeypatch):
        monkeypatch.delenv("REVIEW_SCRAPER_ITEM_SELECTOR", raising=False)
        first, _ = saved_pages
        result = runner.invoke(app, ["run", str(first)])
        assert result.exit_code == 1
        assert "item selector is required" in result.output


class TestRenderStars:

    def test_whole_and_half(self):
        assert "★★★★" in render_stars("4")
        assert "½" in render_stars("3.5")
        assert "(3.5)" in render_stars("3.5")

    def test_non_numeric(self):
        assert "Excellent" in render_stars("Excellent")
        assert render_stars("") == "[dim]-[/dim]"
