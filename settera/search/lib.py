"""Title and description search over a settings schema."""

from dataclasses import dataclass, field
from typing import Any

from settera.model import Page, Schema, Section, Subsection
from settera.traversal import WalkContext, get_schema_index, is_page_group, walk_schema

__all__ = ["SearchResult", "search_schema"]


@dataclass
class SearchResult:
    """Keys of settings and pages matching a query."""

    setting_keys: set[str] = field(default_factory=set)
    page_keys: set[str] = field(default_factory=set)

    def __bool__(self) -> bool:
        return bool(self.setting_keys or self.page_keys)


class _Matcher:
    """Walk visitor applying the match propagation rules."""

    def __init__(self, query: str, parent_of: dict[str, str], result: SearchResult):
        self.query = query
        self.parent_of = parent_of
        self.result = result
        self.matched_pages: set[str] = set()
        self.section_hit = False
        self.subsection_hit = False

    def matches(self, text: str | None) -> bool:
        return bool(text) and self.query in text.lower()

    def on_page(self, page: Page, ctx: WalkContext) -> None:
        if self.matches(page.title):
            self.matched_pages.add(page.key)
            self.result.page_keys.add(page.key)
        elif self.parent_of.get(page.key) in self.matched_pages:
            # Nested pages of a hit surface through their settings only.
            self.matched_pages.add(page.key)

    def on_section(self, section: Section, ctx: WalkContext) -> None:
        self.section_hit = self.matches(section.title)
        self.subsection_hit = False

    def on_subsection(self, sub: Subsection, ctx: WalkContext) -> None:
        self.subsection_hit = self.matches(sub.title)

    def on_setting(self, setting: Any, ctx: WalkContext) -> None:
        if (
            ctx.page_key in self.matched_pages
            or self.section_hit
            or self.subsection_hit
            or self.matches(setting.title)
            or self.matches(setting.description)
        ):
            self.result.setting_keys.add(setting.key)
            self.result.page_keys.add(ctx.page_key)


def search_schema(schema: Schema, query: str) -> SearchResult:
    """Find settings and pages whose text contains ``query``.

    Matching is a case-insensitive substring test against page titles,
    page-group labels, section and subsection titles, and setting titles and
    descriptions. A matching container pulls in every setting beneath it; a
    matching page also pulls in the settings of its nested pages. ``page_keys``
    holds every page owning a hit and is finally closed under the parent-of
    relation so navigation can show the full path to each hit.

    Args:
        schema: Schema to search.
        query: Search text. An empty query matches nothing.

    Returns:
        SearchResult with the matching setting and page keys.

    Example:
        >>> result = search_schema(schema, "proxy")
        >>> sorted(result.setting_keys)
        ['advanced.proxyUrl']
        >>> sorted(result.page_keys)
        ['advanced']
    """
    result = SearchResult()
    if not query:
        return result

    index = get_schema_index(schema)
    matcher = _Matcher(query.lower(), index.parent_of, result)

    for item in schema.pages:
        if is_page_group(item) and matcher.matches(item.label):
            for page in item.pages:
                matcher.matched_pages.add(page.key)
                result.page_keys.add(page.key)

    walk_schema(schema, matcher)

    for key in list(result.page_keys):
        result.page_keys.update(index.ancestors(key))
    return result
