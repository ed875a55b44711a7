"""
Example usage of the review scraper.
"""

import asyncio
import json

from review_scraper import (
    BrowserPage,
    CsvExporter,
    HtmlTree,
    ReviewScraper,
    ScrapeConfig,
    SelectorSynthesizer,
    StaticPage,
)


async def example_1_basic_usage():
    """Scrape a Trustpilot company page with the built-in preset."""
    print("=" * 60)
    print("Example 1: Paginated Review Scraping")
    print("=" * 60)

    url = "https://www.trustpilot.com/review/example.com"
    config = ScrapeConfig(max_pages=3, wait_ms=1500).with_preset(url)

    try:
        async with BrowserPage(url, wait_for=config.item_selector) as page:
            scraper = ReviewScraper(page, CsvExporter("output"), verbose=True)
            result = await scraper.run(config)

        print(f"\n✓ Scraped {result.total_count} reviews from {result.page_count} pages")
        print(f"  stopped because: {result.stop_reason.value}")
        print("\nFirst 3 reviews:")
        for i, record in enumerate(result.records[:3], 1):
            print(f"\n{i}. {json.dumps(record.model_dump(), indent=2)}")

        if result.output_path:
            print(f"\n✓ Saved to {result.output_path}")

    except Exception as e:
        print(f"Error: {e}")


async def example_2_preview():
    """Check selectors against the current page without paginating."""
    print("\n" + "=" * 60)
    print("Example 2: Preview Extraction")
    print("=" * 60)

    html = """
    <ul>
      <li data-hook="review"><span class="a-profile-name">Sam</span>
        <i data-hook="review-star-rating" class="a-icon a-star-4-5"></i>
        <a data-hook="review-title"><span>Solid</span></a>
        <span data-hook="review-body"><span>Does what it says.</span></span>
      </li>
    </ul>
    """
    config = ScrapeConfig(
        item_selector='li[data-hook="review"]',
        user_rel_selector=".a-profile-name",
        rating_rel_selector='[data-hook="review-star-rating"]',
        title_rel_selector='[data-hook="review-title"] > span',
        content_rel_selector='[data-hook="review-body"] > span',
    )

    async with StaticPage.from_html(html) as page:
        records = ReviewScraper(page).preview_extract(config)

    print(json.dumps([r.model_dump() for r in records], indent=2))


def example_3_suggest_selector():
    """Turn a picked element into a stable, container-relative selector."""
    print("\n" + "=" * 60)
    print("Example 3: Selector Suggestion")
    print("=" * 60)

    tree = HtmlTree("""
    <article data-service-review-card-paper="true">
      <span data-consumer-name-typography="true">Dana</span>
      <p class="styles_reviewText__x1Y2z">Fast delivery.</p>
    </article>
    """)
    synthesizer = SelectorSynthesizer(tree)

    for target in ("span", "p"):
        node = tree.query_one(target)
        print(f"{target}: absolute={synthesizer.absolute(node)!r} field={synthesizer.pick(node)!r}")


def main():
    """Run examples."""
    print("Review Scraper - Example Usage\n")
    print("Note: Example 1 needs Playwright browsers (playwright install chromium)\n")

    # Run examples (comment out as needed)
    # asyncio.run(example_1_basic_usage())
    asyncio.run(example_2_preview())
    example_3_suggest_selector()


if __name__ == "__main__":
    main()
