"""Tests for the selectolax-backed queryable tree."""

from review_scraper.tree import HtmlTree, safe_query, safe_query_all


HTML = """
<html><body>
  <div id="list">
    <article class="card" data-review-id="a1">
      <h2 class="title">First</h2>
      <p class="body">  Hello
         <b>world</b>  </p>
      <span data-flag>flagged</span>
    </article>
    <article class="card" data-review-id="a2">
      <p class="body">Second body</p>
      <h2 class="title">Second</h2>
    </article>
  </div>
</body></html>
"""


class TestQueries:

    def test_query_all_document_wide(self):
        tree = HtmlTree(HTML)
        assert len(tree.query_all("article.card")) == 2

    def test_scoped_query_only_sees_descendants(self):
        tree = HtmlTree(HTML)
        first = tree.query_one("article.card")
        assert tree.query_all("article.card", first) == []
        assert tree.text_of(tree.query_one("h2.title", first)) == "First"

    def test_results_in_document_order(self):
        tree = HtmlTree(HTML)
        second = tree.query_all("article.card")[1]
        first_match = tree.query_one("h2, p", second)
        assert tree.text_of(first_match) == "Second body"

    def test_empty_selector_matches_nothing(self):
        tree = HtmlTree(HTML)
        assert tree.query_all("") == []
        assert tree.query_one("") is None


class TestNodeAccess:

    def test_text_is_whitespace_normalised(self):
        tree = HtmlTree(HTML)
        assert tree.text_of(tree.query_one("p.body")) == "Hello world"
        assert tree.text_of(None) == ""

    def test_inline_markup_adds_no_spaces(self):
        tree = HtmlTree("<p>Don<b>'t</b> buy <i>this</i>.</p>")
        assert tree.text_of(tree.query_one("p")) == "Don't buy this."

    def test_line_breaks_are_kept(self):
        tree = HtmlTree("<p>First line<br>  second\n   line <br/>third</p>")
        assert tree.text_of(tree.query_one("p")) == "First line\nsecond line\nthird"

    def test_attributes(self):
        tree = HtmlTree(HTML)
        flag = tree.query_one("span")
        assert tree.attribute_of(flag, "data-flag") == ""
        assert tree.attribute_of(flag, "missing") is None
        assert ("data-flag", "") in tree.attributes_of(flag)
        assert tree.tag_of(flag) == "span"

    def test_parent_children_and_identity(self):
        tree = HtmlTree(HTML)
        article = tree.query_one("article.card")
        title = tree.query_one("h2.title", article)
        assert tree.same_node(tree.parent_of(title), article)
        assert [tree.tag_of(c) for c in tree.children_of(article)] == ["h2", "p", "span"]
        assert not tree.same_node(article, tree.query_all("article.card")[1])
        assert not tree.same_node(article, None)

    def test_closest_is_inclusive(self):
        tree = HtmlTree(HTML)
        article = tree.query_one("article.card")
        bold = tree.query_one("b")
        assert tree.same_node(tree.closest(bold, "article.card"), article)
        assert tree.same_node(tree.closest(article, "article.card"), article)
        assert tree.closest(bold, "table") is None


class TestSafeQuery:

    def test_invalid_selector_degrades_to_no_match(self):
        tree = HtmlTree(HTML)
        article = tree.query_one("article.card")
        assert safe_query(tree, article, "p[[") is None
        assert safe_query_all(tree, "p[[") == []

    def test_empty_selector_returns_none(self):
        tree = HtmlTree(HTML)
        assert safe_query(tree, None, "") is None

    def test_document_query_without_scope(self):
        tree = HtmlTree(HTML)
        assert tree.text_of(safe_query(tree, None, "#list h2")) == "First"
