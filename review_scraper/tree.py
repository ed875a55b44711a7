"""
Queryable document tree.

Everything that reads the page goes through a ``QueryableTree`` so the
selector synthesizer, the parser and the orchestrator can run against a live
browser snapshot, a fetched page or a test fixture alike.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Protocol, Tuple

from selectolax.lexbor import LexborHTMLParser, LexborNode

from .errors import SelectorEvaluationError

logger = logging.getLogger(__name__)


class QueryableTree(Protocol):
    """The read-only capabilities the core needs from a document."""

    def query_one(self, selector: str, scope: Any = None) -> Optional[Any]:
        ...

    def query_all(self, selector: str, scope: Any = None) -> List[Any]:
        ...

    def text_of(self, node: Any) -> str:
        ...

    def attribute_of(self, node: Any, name: str) -> Optional[str]:
        ...

    def attributes_of(self, node: Any) -> List[Tuple[str, str]]:
        ...

    def tag_of(self, node: Any) -> str:
        ...

    def parent_of(self, node: Any) -> Optional[Any]:
        ...

    def children_of(self, node: Any) -> List[Any]:
        ...

    def same_node(self, a: Any, b: Any) -> bool:
        ...

    def closest(self, node: Any, selector: str) -> Optional[Any]:
        ...


_TEXT_TAGS = ("-text", "#text")
_WHITESPACE = re.compile(r"\s+")


def _is_element(node: Optional[LexborNode]) -> bool:
    # Lexbor reports text, comment and document nodes with tags like
    # "#text", "#comment" or "#document"; element tags start with a letter.
    if node is None:
        return False
    tag = node.tag or ""
    return bool(tag) and tag[0].isalpha()


class HtmlTree:
    """A ``QueryableTree`` over a parsed HTML document (selectolax).

    Scoped queries follow DOM ``querySelectorAll`` semantics: only descendants
    of the scope can match, results come back in document order, and an
    invalid selector raises ``SelectorEvaluationError``.
    """

    def __init__(self, html: str):
        self.html = html
        self._parser = LexborHTMLParser(html)
        self._order: Optional[Dict[int, int]] = None

    @property
    def root(self) -> Optional[LexborNode]:
        return self._parser.root

    def query_all(self, selector: str, scope: Optional[LexborNode] = None) -> List[LexborNode]:
        if not selector:
            return []
        base = scope if scope is not None else self._parser
        try:
            matches = base.css(selector)
        except Exception as exc:
            raise SelectorEvaluationError(selector, exc) from exc

        seen = set()
        unique: List[LexborNode] = []
        for match in matches:
            if match.mem_id in seen:
                continue
            if scope is not None and match.mem_id == scope.mem_id:
                continue
            seen.add(match.mem_id)
            unique.append(match)
        order = self._document_order()
        unique.sort(key=lambda n: order.get(n.mem_id, 0))
        return unique

    def query_one(self, selector: str, scope: Optional[LexborNode] = None) -> Optional[LexborNode]:
        matches = self.query_all(selector, scope)
        return matches[0] if matches else None

    def text_of(self, node: Optional[LexborNode]) -> str:
        if node is None:
            return ""
        # Inline markup adds no spaces and <br> starts a new line.
        parts: List[str] = []
        for child in node.traverse(include_text=True):
            tag = child.tag
            if tag == "br":
                parts.append("\n")
            elif tag in _TEXT_TAGS:
                parts.append(_WHITESPACE.sub(" ", child.text()))
        lines = "".join(parts).split("\n")
        return "\n".join(" ".join(line.split()) for line in lines).strip()

    def attribute_of(self, node: Optional[LexborNode], name: str) -> Optional[str]:
        if node is None:
            return None
        attributes = node.attributes
        if name not in attributes:
            return None
        return attributes[name] or ""

    def attributes_of(self, node: LexborNode) -> List[Tuple[str, str]]:
        return [(name, value or "") for name, value in node.attributes.items()]

    def tag_of(self, node: LexborNode) -> str:
        return (node.tag or "").lower()

    def class_tokens(self, node: LexborNode) -> List[str]:
        return (self.attribute_of(node, "class") or "").split()

    def parent_of(self, node: LexborNode) -> Optional[LexborNode]:
        parent = node.parent
        return parent if _is_element(parent) else None

    def children_of(self, node: LexborNode) -> List[LexborNode]:
        return [child for child in node.iter(include_text=False) if _is_element(child)]

    def same_node(self, a: Optional[LexborNode], b: Optional[LexborNode]) -> bool:
        if a is None or b is None:
            return False
        return a.mem_id == b.mem_id

    def closest(self, node: Optional[LexborNode], selector: str) -> Optional[LexborNode]:
        """Nearest inclusive ancestor of ``node`` matching ``selector``."""
        if node is None:
            return None
        candidates = {match.mem_id for match in self.query_all(selector)}
        current = node
        while current is not None:
            if current.mem_id in candidates:
                return current
            current = self.parent_of(current)
        return None

    def _document_order(self) -> Dict[int, int]:
        if self._order is None:
            root = self._parser.root
            nodes = [root] if root is not None else []
            if root is not None:
                nodes.extend(root.traverse(include_text=False))
            self._order = {}
            for index, node in enumerate(nodes):
                self._order.setdefault(node.mem_id, index)
        return self._order


def safe_query(tree: QueryableTree, scope: Any, selector: str) -> Optional[Any]:
    """Resolve ``selector`` inside ``scope``; retry document-wide if that raises.

    Returns ``None`` when the selector is empty, matches nothing, or cannot be
    evaluated at all.
    """
    if not selector:
        return None
    try:
        return tree.query_one(selector, scope)
    except SelectorEvaluationError as exc:
        logger.debug("Scoped query failed, retrying document-wide: %s", exc)
    try:
        return tree.query_one(selector)
    except SelectorEvaluationError as exc:
        logger.debug("Document query failed: %s", exc)
        return None


def safe_query_all(tree: QueryableTree, selector: str, scope: Any = None) -> List[Any]:
    """``query_all`` that treats an unusable selector as matching nothing."""
    try:
        return tree.query_all(selector, scope)
    except SelectorEvaluationError as exc:
        logger.debug("Query failed: %s", exc)
        return []
