import asyncio
import json
import logging
import os
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.json import JSON
from rich.logging import RichHandler
from tqdm import tqdm

from .browser import BrowserPage
from .core import ReviewScraper, RunState
from .export import CsvExporter
from .models import ItemRecord, ScrapeConfig
from .pages import HttpPage, StaticPage
from .synthesizer import SelectorSynthesizer
from .tree import safe_query


app = typer.Typer(help="Paginated review scraper with selector synthesis and CSV export")
console = Console()


def setup_logging(level: Optional[str] = None) -> None:
    """Route library logging through rich."""
    level = (level or os.getenv("REVIEW_SCRAPER_LOG_LEVEL", "WARNING")).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


@app.command()
def run(
    sources: List[str] = typer.Argument(..., help="Start URL, or one or more saved HTML pages"),
    config_file: Optional[str] = typer.Option(None, "--config", "-c", help="Path to JSON config file"),
    item: Optional[str] = typer.Option(None, "--item", help="Selector for one review container"),
    user: Optional[str] = typer.Option(None, "--user", help="Username selector (relative to item)"),
    date: Optional[str] = typer.Option(None, "--date", help="Date selector (relative to item)"),
    rating: Optional[str] = typer.Option(None, "--rating", help="Rating selector (relative to item)"),
    title: Optional[str] = typer.Option(None, "--title", help="Title selector (relative to item)"),
    content: Optional[str] = typer.Option(None, "--content", help="Content selector (relative to item)"),
    next_selector: Optional[str] = typer.Option(None, "--next", help="Selector for the next-page control"),
    max_pages: Optional[int] = typer.Option(None, "--max-pages", "-p", help="Maximum pages to scrape"),
    wait_ms: Optional[int] = typer.Option(None, "--wait-ms", help="Base delay after each click (ms)"),
    current_page: bool = typer.Option(False, "--current-page", help="Only export the current page"),
    use_browser: bool = typer.Option(
        False,
        "--browser",
        "-b",
        help="Use browser automation for JavaScript-heavy sites",
    ),
    wait_for: Optional[str] = typer.Option(None, "--wait-for", help="CSS selector to wait for in browser mode"),
    output_dir: Optional[str] = typer.Option(None, "--output-dir", "-o", help="Directory for the CSV file"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING or ERROR"),
):
    """Scrape reviews page by page and export them as CSV."""
    setup_logging(log_level)
    cfg = _load_config(config_file, sources[0], {
        "item_selector": item,
        "user_rel_selector": user,
        "date_rel_selector": date,
        "rating_rel_selector": rating,
        "title_rel_selector": title,
        "content_rel_selector": content,
        "next_selector": next_selector,
        "max_pages": max_pages,
        "wait_ms": wait_ms,
    })
    if not cfg.item_selector:
        console.print("[red]Error: an item selector is required (--item or --config)[/red]")
        raise typer.Exit(1)

    exporter = CsvExporter(output_dir or os.getenv("REVIEW_SCRAPER_OUTPUT_DIR", "output"))

    async def _run():
        async with _open_page(sources, use_browser, wait_for) as page:
            with tqdm(total=1 if current_page else cfg.max_pages, unit="page", desc="Scraping") as bar:

                def on_progress(state: RunState, message: str) -> None:
                    if state.page_index > bar.n:
                        bar.update(state.page_index - bar.n)
                    bar.set_postfix(reviews=state.total_count)

                scraper = ReviewScraper(page, exporter, on_progress=on_progress)
                return await scraper.run(cfg, only_current_page=current_page)

    result = asyncio.run(_run())

    console.print(
        f"\n[green]Exported {result.total_count} reviews from {result.page_count} pages[/green]"
        f" (stopped: {result.stop_reason.value if result.stop_reason else 'n/a'})"
    )
    if result.output_path:
        console.print(f"[green]Saved to {result.output_path}[/green]")
    else:
        console.print("[red]Export failed; see log for details[/red]")
        raise typer.Exit(1)


@app.command()
def preview(
    source: str = typer.Argument(..., help="URL or saved HTML page"),
    config_file: Optional[str] = typer.Option(None, "--config", "-c", help="Path to JSON config file"),
    item: Optional[str] = typer.Option(None, "--item", help="Selector for one review container"),
    user: Optional[str] = typer.Option(None, "--user"),
    date: Optional[str] = typer.Option(None, "--date"),
    rating: Optional[str] = typer.Option(None, "--rating"),
    title: Optional[str] = typer.Option(None, "--title"),
    content: Optional[str] = typer.Option(None, "--content"),
    limit: int = typer.Option(5, "--limit", "-n", help="Number of reviews to show"),
    use_browser: bool = typer.Option(False, "--browser", "-b"),
    wait_for: Optional[str] = typer.Option(None, "--wait-for"),
    log_level: Optional[str] = typer.Option(None, "--log-level"),
):
    """Show the first few reviews of a page without paginating or exporting."""
    setup_logging(log_level)
    cfg = _load_config(config_file, source, {
        "item_selector": item,
        "user_rel_selector": user,
        "date_rel_selector": date,
        "rating_rel_selector": rating,
        "title_rel_selector": title,
        "content_rel_selector": content,
    })

    async def _preview() -> List[ItemRecord]:
        async with _open_page([source], use_browser, wait_for) as page:
            return ReviewScraper(page).preview_extract(cfg)

    records = asyncio.run(_preview())
    if not records:
        console.print("[yellow]No reviews found; check the item and field selectors.[/yellow]")
        return

    console.print(f"[cyan]{len(records)} reviews on this page[/cyan]\n")
    for record in records[:limit]:
        console.print(
            f"[bold]{record.username or '(anonymous)'}[/bold] ({record.date or '-'}) "
            f"{render_stars(record.rating)}"
        )
        console.print(f"[italic]{record.title or '-'}[/italic]")
        console.print(record.content or "-")
        console.print()


@app.command()
def suggest(
    source: str = typer.Argument(..., help="URL or saved HTML page"),
    target: str = typer.Option(..., "--target", "-t", help="Any selector that finds the element"),
    item: Optional[str] = typer.Option(
        None,
        "--item",
        help="Review container selector; the suggestion becomes relative to it",
    ),
    use_browser: bool = typer.Option(False, "--browser", "-b"),
    wait_for: Optional[str] = typer.Option(None, "--wait-for"),
    log_level: Optional[str] = typer.Option(None, "--log-level"),
):
    """Suggest a stable selector for an element."""
    setup_logging(log_level)

    async def _suggest() -> Optional[Dict[str, Any]]:
        async with _open_page([source], use_browser, wait_for) as page:
            tree = page.tree
            node = safe_query(tree, None, target)
            if node is None:
                return None
            synthesizer = SelectorSynthesizer(tree)
            candidate = synthesizer.absolute_candidate(node)
            return {
                "absolute": candidate.selector,
                "kind": candidate.kind.value,
                "unique": candidate.unique,
                "field": synthesizer.pick(node, item) if item else None,
            }

    suggestion = asyncio.run(_suggest())
    if suggestion is None:
        console.print(f"[red]Error: {target!r} matches nothing[/red]")
        raise typer.Exit(1)
    console.print(JSON(json.dumps(suggestion)), soft_wrap=True)


def render_stars(rating: str) -> str:
    """Render a rating string as rich-marked-up stars."""
    if not rating:
        return "[dim]-[/dim]"
    try:
        value = float(rating)
    except ValueError:
        return f"[dim]{rating}[/dim]"

    full = max(0, min(5, int(value)))
    half = full < 5 and (value % 1) >= 0.5
    empty = 5 - full - (1 if half else 0)
    return (
        "[yellow]" + "★" * full + ("½" if half else "") + "[/yellow]"
        + "[dim]" + "★" * empty + "[/dim]"
        + f" ({rating})"
    )


def _load_config(config_file: Optional[str], source: str, overrides: Dict[str, Any]) -> ScrapeConfig:
    """Config file (or environment), then CLI overrides, then site presets for blanks."""
    base = ScrapeConfig.from_file(config_file) if config_file else ScrapeConfig.from_env()
    data = base.model_dump()
    data.update({k: v for k, v in overrides.items() if v is not None})
    cfg = ScrapeConfig.model_validate(data)
    if _is_url(source):
        cfg = cfg.with_preset(source)
    return cfg


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def _open_page(sources: List[str], use_browser: bool, wait_for: Optional[str]):
    if _is_url(sources[0]):
        if use_browser:
            return BrowserPage(sources[0], wait_for=wait_for)
        return HttpPage(sources[0])
    return StaticPage.from_files(sources)


if __name__ == "__main__":
    app()
