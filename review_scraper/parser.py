import re
from typing import Any, List, Optional, Tuple

from .models import ItemRecord, ScrapeConfig
from .tree import QueryableTree, safe_query, safe_query_all


STAR_CLASS = re.compile(r"-star-(\d+)(?:-(\d+))?$")
OUT_OF_FIVE = re.compile(r"(\d+(?:\.\d+)?)\s+out\s+of\s+5", re.IGNORECASE)
RATED_ALT = re.compile(r"Rated\s+(\d+(?:\.\d+)?)\s+out\s+of\s+5", re.IGNORECASE)
STARS_SRC = re.compile(r"stars-(\d+(?:\.\d+)?)\.")

RATING_ATTRIBUTES = ("data-service-review-rating", "data-rating")
ICON_ALT_SELECTOR = ".a-icon-alt"


class ReviewParser:
    """Extracts review records from the item containers of a page."""

    def __init__(self, config: ScrapeConfig):
        self.config = config

    def parse_page(self, tree: QueryableTree) -> Tuple[List[ItemRecord], List[Any]]:
        """Extract all records from the current page, with their containers."""
        containers = self.containers(tree)
        return self.extract_all(tree, containers), containers

    def containers(self, tree: QueryableTree) -> List[Any]:
        return safe_query_all(tree, self.config.item_selector)

    def extract_all(self, tree: QueryableTree, containers: List[Any]) -> List[ItemRecord]:
        return [self._extract_from_element(tree, item) for item in containers]

    def _extract_from_element(self, tree: QueryableTree, item: Any) -> ItemRecord:
        """Extract all fields from a single container."""
        cfg = self.config
        rating_node = safe_query(tree, item, cfg.rating_rel_selector)
        return ItemRecord(
            username=self._extract_field(tree, item, cfg.user_rel_selector),
            date=self._extract_field(tree, item, cfg.date_rel_selector),
            rating=extract_rating(tree, rating_node),
            title=self._extract_field(tree, item, cfg.title_rel_selector),
            content=self._extract_field(tree, item, cfg.content_rel_selector),
        )

    def _extract_field(self, tree: QueryableTree, item: Any, selector: str) -> str:
        return tree.text_of(safe_query(tree, item, selector))


def extract_rating(tree: QueryableTree, node: Optional[Any]) -> str:
    """Normalise a rating element to a number-like string.

    Tries, in order: a ``*-star-N`` class, an "N out of 5" text, a
    "Rated N out of 5" alt text, a rating data attribute on the element or
    its closest ancestor, a ``stars-N.ext`` image source, and finally the
    element's own text.
    """
    if node is None:
        return ""

    for token in (tree.attribute_of(node, "class") or "").split():
        match = STAR_CLASS.search(token)
        if match:
            whole, fraction = match.groups()
            return f"{whole}.{fraction}" if fraction else whole

    for text in (tree.text_of(safe_query(tree, node, ICON_ALT_SELECTOR)), tree.text_of(node)):
        match = OUT_OF_FIVE.search(text)
        if match:
            return match.group(1)

    alts = [tree.attribute_of(node, "alt")]
    image = safe_query(tree, node, "img[alt]")
    if image is not None:
        alts.append(tree.attribute_of(image, "alt"))
    for alt in alts:
        match = RATED_ALT.search(alt or "")
        if match:
            return match.group(1)

    current = node
    while current is not None:
        for name in RATING_ATTRIBUTES:
            value = tree.attribute_of(current, name)
            if value:
                return value.strip()
        current = tree.parent_of(current)

    match = STARS_SRC.search(tree.attribute_of(node, "src") or "")
    if match:
        return match.group(1)

    return tree.text_of(node)
