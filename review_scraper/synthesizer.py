"""
Selector synthesis for picked elements.

Given a node, produce the shortest stable CSS selector that finds it again:
either document-wide (``absolute``) or relative to the review container that
holds it (``relative``). Stable hooks beat ids, ids beat data attributes,
data attributes beat classes, and a structural path is the last resort.
"""

import logging
import re
from typing import Any, Callable, Iterator, List, Optional, Tuple

from .errors import SelectorEvaluationError
from .models import SelectorCandidate, SelectorKind
from .presets import ITEM_CONTAINER_SELECTORS
from .tree import QueryableTree

logger = logging.getLogger(__name__)


HOOK_ATTRIBUTES = ("data-hook", "data-testid")
STABLE_ATTRIBUTES = ("aria-label", "role", "itemprop", "name", "type")

MAX_ABSOLUTE_DEPTH = 5
MAX_RELATIVE_DEPTH = 8

# Class tokens that are generated by CSS-in-JS tooling or utility frameworks
# and change between deploys.
GENERATED_CLASS_PATTERNS = (
    re.compile(r"styles_"),
    re.compile(r"__\w{4,}"),
    re.compile(r"^[a-z]-[a-z0-9-]+$"),
    re.compile(r"(?:^|[-_])(?=[A-Za-z]*\d)(?=\d*[A-Za-z])[A-Za-z\d]{6,}$"),
)

_PLAIN_IDENTIFIER = re.compile(r"^-?[A-Za-z_][\w-]*$")
_IDENTIFIER_SPECIALS = re.compile(r"([^\w-])")


def css_escape(value: Optional[str]) -> str:
    """Escape a value for use inside a double-quoted attribute selector."""
    return (value or "").replace("\\", "\\\\").replace('"', '\\"')


def escape_identifier(token: str) -> str:
    """Escape characters that cannot appear unescaped in a class or id selector."""
    return _IDENTIFIER_SPECIALS.sub(r"\\\1", token)


def is_unique(tree: QueryableTree, selector: str, scope: Any = None) -> bool:
    """True iff ``selector`` matches exactly one element in ``scope``."""
    if not selector:
        return False
    try:
        return len(tree.query_all(selector, scope)) == 1
    except SelectorEvaluationError:
        return False


def is_generated_class(token: str) -> bool:
    return any(pattern.search(token) for pattern in GENERATED_CLASS_PATTERNS)


def _attribute_clause(name: str, value: str) -> str:
    if not value:
        return f"[{name}]"
    return f'[{name}="{css_escape(value)}"]'


class SelectorSynthesizer:
    """Builds absolute and container-relative selectors over one tree."""

    def __init__(self, tree: QueryableTree):
        self.tree = tree

    # ---- Public API ---------------------------------------------------------

    def absolute(self, node: Any) -> str:
        return self.absolute_candidate(node).selector

    def absolute_candidate(self, node: Any) -> SelectorCandidate:
        """First document-unique candidate, or the best-effort structural path."""
        for selector, kind in self._absolute_candidates(node):
            if is_unique(self.tree, selector):
                return SelectorCandidate(selector=selector, kind=kind)

        selector, unique = self._build_path(
            node,
            accept=lambda sel: is_unique(self.tree, sel),
            limit=MAX_ABSOLUTE_DEPTH,
        )
        return SelectorCandidate(selector=selector, kind=SelectorKind.PATH, unique=unique)

    def relative(self, node: Any, scope: Any) -> str:
        return self.relative_candidate(node, scope).selector

    def relative_candidate(self, node: Any, scope: Any) -> SelectorCandidate:
        """Selector that finds ``node`` when queried from inside ``scope``."""
        if self.tree.same_node(node, scope):
            return SelectorCandidate(selector="", kind=SelectorKind.PATH)

        for selector in self._hook_selectors(node):
            if self._finds(selector, scope, node):
                return SelectorCandidate(selector=selector, kind=SelectorKind.HOOK)

        simple = self.simple_selector(node)
        if simple and self._finds(simple, scope, node):
            return SelectorCandidate(selector=simple, kind=self._kind_of(simple))

        selector, unique = self._build_path(
            node,
            accept=lambda sel: self._resolves_only_to(sel, scope, node),
            limit=MAX_RELATIVE_DEPTH,
            boundary=scope,
        )
        return SelectorCandidate(selector=selector, kind=SelectorKind.PATH, unique=unique)

    def pick(self, node: Any, item_selector: Optional[str] = None) -> str:
        """Selector for a picked field element.

        When the node sits inside a review container the selector is relative
        to that container, otherwise it is absolute.
        """
        container_selector = item_selector or ", ".join(ITEM_CONTAINER_SELECTORS)
        try:
            container = self.tree.closest(node, container_selector)
        except SelectorEvaluationError as exc:
            logger.debug("Cannot locate container for pick: %s", exc)
            container = None

        if container is not None:
            relative = self.relative(node, container)
            if relative:
                return relative
        return self.absolute(node)

    # ---- Per-node pieces ----------------------------------------------------

    def simple_selector(self, node: Any) -> str:
        """One-level selector: hook, else first data attribute, else first meaningful class."""
        tag = self.tree.tag_of(node)
        hook = self.tree.attribute_of(node, "data-hook")
        if hook:
            return _attribute_clause("data-hook", hook)

        for name, value in self.tree.attributes_of(node):
            if name.startswith("data-"):
                return tag + _attribute_clause(name, value)

        classes = [c for c in self._meaningful_classes(node) if len(c) > 2]
        if classes:
            return f"{tag}.{escape_identifier(classes[0])}"
        return ""

    def class_selector(self, node: Any) -> str:
        classes = self._meaningful_classes(node)
        if not classes:
            return ""
        tag = self.tree.tag_of(node)
        return tag + "".join("." + escape_identifier(c) for c in classes[:2])

    def attribute_selector(self, node: Any) -> str:
        """Hook, tag-scoped data attribute or tag-scoped stable attribute."""
        for selector, _kind in self._attribute_candidates(node, include_id=False):
            return selector
        return ""

    def node_piece(self, node: Any) -> str:
        """The path segment used for ``node`` when building a structural path."""
        piece = self.attribute_selector(node) or self.class_selector(node)
        if piece:
            return piece

        tag = self.tree.tag_of(node)
        parent = self.tree.parent_of(node)
        if parent is None:
            return tag
        siblings = [
            child for child in self.tree.children_of(parent)
            if self.tree.tag_of(child) == tag
        ]
        if len(siblings) <= 1:
            return tag
        index = next(
            (i for i, sibling in enumerate(siblings, 1) if self.tree.same_node(sibling, node)),
            1,
        )
        return f"{tag}:nth-of-type({index})"

    # ---- Internals ----------------------------------------------------------

    def _absolute_candidates(self, node: Any) -> Iterator[Tuple[str, SelectorKind]]:
        yield from self._attribute_candidates(node, include_id=True)
        selector = self.class_selector(node)
        if selector:
            yield selector, SelectorKind.CLASS

    def _attribute_candidates(self, node: Any, include_id: bool) -> Iterator[Tuple[str, SelectorKind]]:
        tag = self.tree.tag_of(node)
        for selector in self._hook_selectors(node):
            yield selector, SelectorKind.HOOK

        if include_id:
            selector = self._id_selector(node)
            if selector:
                yield selector, SelectorKind.IDENTITY

        for name, value in self.tree.attributes_of(node):
            if name.startswith("data-") and name not in HOOK_ATTRIBUTES:
                yield tag + _attribute_clause(name, value), SelectorKind.DATA

        for name in STABLE_ATTRIBUTES:
            value = self.tree.attribute_of(node, name)
            if value:
                yield tag + _attribute_clause(name, value), SelectorKind.STABLE

    def _hook_selectors(self, node: Any) -> Iterator[str]:
        for name in HOOK_ATTRIBUTES:
            value = self.tree.attribute_of(node, name)
            if value:
                yield _attribute_clause(name, value)

    def _id_selector(self, node: Any) -> str:
        value = self.tree.attribute_of(node, "id")
        if not value:
            return ""
        if _PLAIN_IDENTIFIER.match(value):
            return f"#{value}"
        return _attribute_clause("id", value)

    def _meaningful_classes(self, node: Any) -> List[str]:
        tokens = (self.tree.attribute_of(node, "class") or "").split()
        return [token for token in tokens if not is_generated_class(token)]

    def _build_path(
        self,
        node: Any,
        accept: Callable[[str], bool],
        limit: int,
        boundary: Any = None,
    ) -> Tuple[str, bool]:
        parts: List[str] = []
        current = node
        for _ in range(limit):
            if current is None or (boundary is not None and self.tree.same_node(current, boundary)):
                break
            parent = self.tree.parent_of(current)
            if parent is None and boundary is None:
                parts.insert(0, self.tree.tag_of(current))
                break

            parts.insert(0, self.node_piece(current))
            selector = " > ".join(parts)
            if accept(selector):
                return selector, True
            current = parent

        return " > ".join(parts) or self.tree.tag_of(node), False

    def _finds(self, selector: str, scope: Any, node: Any) -> bool:
        try:
            return self.tree.same_node(self.tree.query_one(selector, scope), node)
        except SelectorEvaluationError:
            return False

    def _resolves_only_to(self, selector: str, scope: Any, node: Any) -> bool:
        try:
            matches = self.tree.query_all(selector, scope)
        except SelectorEvaluationError:
            return False
        return len(matches) == 1 and self.tree.same_node(matches[0], node)

    @staticmethod
    def _kind_of(selector: str) -> SelectorKind:
        if selector.startswith("[data-hook"):
            return SelectorKind.HOOK
        if "[data-" in selector:
            return SelectorKind.DATA
        return SelectorKind.CLASS
