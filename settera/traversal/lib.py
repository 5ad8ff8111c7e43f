"""Depth-first traversal, flattening and indexing of settings schemas.

Every consumer of a schema (validator, search, presentation layer) works off
the primitives here. The walker visits nodes in declaration order: for a page
its sections, then its nested pages; for a section its direct settings, then
its subsections. Page groups are transparent wrappers whose member pages are
visited as root pages.

Derived structures are memoised per schema instance through ``SchemaIndex``
so repeated lookups on every interaction cost O(1).
"""

import logging
from dataclasses import dataclass
from functools import cached_property
from typing import Any, Callable, Iterable, Iterator

from settera.model import (
    FlattenedSetting,
    Page,
    PageGroup,
    Schema,
    Section,
    VisibilityConditionGroup,
)

logger = logging.getLogger(__name__)

# Maximum single-child descents performed by resolve_page_key.
MAX_FLATTEN_DEPTH = 10


# =============================================================================
# Walker
# =============================================================================


@dataclass(frozen=True)
class WalkContext:
    """Position of the visited node within the schema.

    Attributes:
        page_key: Key of the current page.
        section_key: Key of the current section, or "" above section level.
        subsection_key: Key of the current subsection, or "" when not inside one.
        depth: Page nesting depth (0 for root pages, including grouped ones).
        path: Declaration-order locator of the visited node.
    """

    page_key: str
    section_key: str = ""
    subsection_key: str = ""
    depth: int = 0
    path: str = ""


Callback = Callable[[Any, WalkContext], Any]


@dataclass
class SchemaVisitor:
    """Container for walk callbacks; any subset may be provided.

    A callback returning exactly ``False`` aborts the entire walk.
    """

    on_page: Callback | None = None
    on_section: Callback | None = None
    on_subsection: Callback | None = None
    on_setting: Callback | None = None


def _proceed(visitor: Any, name: str, node: Any, ctx: WalkContext) -> bool:
    callback = getattr(visitor, name, None)
    return callback is None or callback(node, ctx) is not False


def walk_schema(schema: Schema, visitor: Any) -> bool:
    """Walk the schema depth-first in declaration order.

    Args:
        schema: Schema to walk.
        visitor: Object exposing any of ``on_page``, ``on_section``,
            ``on_subsection`` and ``on_setting``, each called with
            ``(node, WalkContext)``.

    Returns:
        True if the walk completed, False if a callback aborted it.
    """
    for i, item in enumerate(schema.pages):
        if is_page_group(item):
            for j, page in enumerate(item.pages):
                if not _walk_page(page, visitor, f"pages[{i}].pages[{j}]", 0):
                    return False
        elif not _walk_page(item, visitor, f"pages[{i}]", 0):
            return False
    return True


def _walk_page(page: Page, visitor: Any, path: str, depth: int) -> bool:
    ctx = WalkContext(page.key, depth=depth, path=path)
    if not _proceed(visitor, "on_page", page, ctx):
        return False

    for si, section in enumerate(page.sections or []):
        if not _walk_section(page, section, visitor, f"{path}.sections[{si}]", depth):
            return False

    for pi, child in enumerate(page.pages or []):
        if not _walk_page(child, visitor, f"{path}.pages[{pi}]", depth + 1):
            return False
    return True


def _walk_section(
    page: Page, section: Section, visitor: Any, path: str, depth: int
) -> bool:
    ctx = WalkContext(page.key, section.key, depth=depth, path=path)
    if not _proceed(visitor, "on_section", section, ctx):
        return False

    for i, setting in enumerate(section.settings or []):
        ctx = WalkContext(page.key, section.key, "", depth, f"{path}.settings[{i}]")
        if not _proceed(visitor, "on_setting", setting, ctx):
            return False

    for ssi, sub in enumerate(section.subsections or []):
        sub_path = f"{path}.subsections[{ssi}]"
        ctx = WalkContext(page.key, section.key, sub.key, depth, sub_path)
        if not _proceed(visitor, "on_subsection", sub, ctx):
            return False
        for i, setting in enumerate(sub.settings or []):
            ctx = WalkContext(
                page.key, section.key, sub.key, depth, f"{sub_path}.settings[{i}]"
            )
            if not _proceed(visitor, "on_setting", setting, ctx):
                return False
    return True


# =============================================================================
# Flattening and lookups
# =============================================================================


def flatten_settings(schema: Schema) -> list[FlattenedSetting]:
    """Collect every setting with its location, in walk order."""
    result: list[FlattenedSetting] = []

    def on_setting(setting: Any, ctx: WalkContext) -> None:
        result.append(
            FlattenedSetting(
                definition=setting,
                path=ctx.path,
                page_key=ctx.page_key,
                section_key=ctx.section_key,
                subsection_key=ctx.subsection_key,
            )
        )

    walk_schema(schema, SchemaVisitor(on_setting=on_setting))
    return result


def get_setting_by_key(schema: Schema, key: str) -> Any | None:
    """First setting with ``key`` anywhere in the schema, or None."""
    found: list[Any] = []

    def on_setting(setting: Any, ctx: WalkContext) -> bool:
        if setting.key == key:
            found.append(setting)
            return False
        return True

    walk_schema(schema, SchemaVisitor(on_setting=on_setting))
    return found[0] if found else None


def get_page_by_key(schema: Schema, key: str) -> Page | None:
    """First page with ``key`` anywhere in the schema, or None."""
    found: list[Page] = []

    def on_page(page: Page, ctx: WalkContext) -> bool:
        if page.key == key:
            found.append(page)
            return False
        return True

    walk_schema(schema, SchemaVisitor(on_page=on_page))
    return found[0] if found else None


# =============================================================================
# Page resolution
# =============================================================================


def is_page_group(item: Any) -> bool:
    """True if a root page item is a grouping wrapper rather than a page."""
    return isinstance(item, PageGroup)


def flatten_page_items(items: Iterable[Page | PageGroup]) -> list[Page]:
    """Expand page groups into their member pages, preserving order."""
    pages: list[Page] = []
    for item in items:
        if is_page_group(item):
            pages.extend(item.pages)
        else:
            pages.append(item)
    return pages


def is_flattened_page(page: Page) -> bool:
    """A page with exactly one child page and no sections of its own."""
    return len(page.pages or []) == 1 and not page.sections


def resolve_page_key(page: Page) -> str:
    """Resolve through single-child pages to the key that owns content.

    Descends at most ``MAX_FLATTEN_DEPTH`` times; when the limit is hit the
    key of the page reached at that depth is returned.
    """
    current = page
    descents = 0
    while is_flattened_page(current) and descents < MAX_FLATTEN_DEPTH:
        current = current.pages[0]
        descents += 1
    return current.key


# =============================================================================
# Indices
# =============================================================================


def build_setting_index(schema: Schema) -> dict[str, Any]:
    """Map of setting key to definition (first declaration wins)."""
    index: dict[str, Any] = {}
    for flat in flatten_settings(schema):
        index.setdefault(flat.key, flat.definition)
    return index


def build_section_index(schema: Schema) -> dict[str, Section]:
    """Map of ``"page_key:section_key"`` to section."""
    index: dict[str, Section] = {}

    def on_section(section: Section, ctx: WalkContext) -> None:
        index.setdefault(f"{ctx.page_key}:{section.key}", section)

    walk_schema(schema, SchemaVisitor(on_section=on_section))
    return index


def iter_conditions(visible_when: Any) -> Iterator[Any]:
    """Yield every condition in a rule, list of rules or OR-group."""
    if visible_when is None:
        return
    rules = visible_when if isinstance(visible_when, list) else [visible_when]
    for rule in rules:
        if isinstance(rule, VisibilityConditionGroup):
            yield from rule.or_
        else:
            yield rule


def resolve_dependencies(schema: Schema) -> dict[str, list[str]]:
    """Map each setting with a visibility rule to the keys it depends on.

    Keys are ordered by first reference and de-duplicated. Settings without
    a rule are absent.
    """
    deps: dict[str, list[str]] = {}
    for flat in flatten_settings(schema):
        visible_when = getattr(flat.definition, "visible_when", None)
        if not visible_when:
            continue
        controllers: list[str] = []
        for condition in iter_conditions(visible_when):
            if condition.setting and condition.setting not in controllers:
                controllers.append(condition.setting)
        deps[flat.key] = controllers
    return deps


def build_parent_map(schema: Schema) -> dict[str, str]:
    """Map of nested page key to its parent page key."""
    parents: dict[str, str] = {}

    def visit(page: Page) -> None:
        for child in page.pages or []:
            parents.setdefault(child.key, page.key)
            visit(child)

    for page in flatten_page_items(schema.pages):
        visit(page)
    return parents


class SchemaIndex:
    """Lazily built derived structures for one schema instance.

    Obtain through ``get_schema_index`` so the index is built once and
    reused for the schema's lifetime.
    """

    def __init__(self, schema: Schema):
        self.schema = schema

    @cached_property
    def flattened(self) -> list[FlattenedSetting]:
        logger.debug("Flattening settings for schema %s", id(self.schema))
        return flatten_settings(self.schema)

    @cached_property
    def flattened_by_key(self) -> dict[str, FlattenedSetting]:
        index: dict[str, FlattenedSetting] = {}
        for flat in self.flattened:
            index.setdefault(flat.key, flat)
        return index

    @cached_property
    def settings_by_key(self) -> dict[str, Any]:
        return {key: flat.definition for key, flat in self.flattened_by_key.items()}

    @cached_property
    def sections_by_key(self) -> dict[str, Section]:
        return build_section_index(self.schema)

    @cached_property
    def pages_by_key(self) -> dict[str, Page]:
        pages: dict[str, Page] = {}

        def on_page(page: Page, ctx: WalkContext) -> None:
            pages.setdefault(page.key, page)

        walk_schema(self.schema, SchemaVisitor(on_page=on_page))
        return pages

    @cached_property
    def parent_of(self) -> dict[str, str]:
        return build_parent_map(self.schema)

    @cached_property
    def dependencies(self) -> dict[str, list[str]]:
        return resolve_dependencies(self.schema)

    @cached_property
    def root_pages(self) -> list[Page]:
        return flatten_page_items(self.schema.pages)

    def ancestors(self, page_key: str) -> list[str]:
        """Parent chain of a page, nearest first."""
        chain: list[str] = []
        current = self.parent_of.get(page_key)
        while current is not None and current not in chain:
            chain.append(current)
            current = self.parent_of.get(current)
        return chain


def get_schema_index(schema: Schema) -> SchemaIndex:
    """Memoised index for ``schema``."""
    return schema.derive("index", SchemaIndex)


def get_flattened_setting(schema: Schema, key: str) -> FlattenedSetting | None:
    """O(1) lookup of a setting and its location by key."""
    return get_schema_index(schema).flattened_by_key.get(key)


def get_section(schema: Schema, page_key: str, section_key: str) -> Section | None:
    """O(1) lookup of a section by page and section key."""
    return get_schema_index(schema).sections_by_key.get(f"{page_key}:{section_key}")


__all__ = [
    "MAX_FLATTEN_DEPTH",
    # Walker
    "WalkContext",
    "SchemaVisitor",
    "walk_schema",
    # Flattening and lookups
    "flatten_settings",
    "get_setting_by_key",
    "get_page_by_key",
    # Page resolution
    "is_page_group",
    "flatten_page_items",
    "is_flattened_page",
    "resolve_page_key",
    # Indices
    "build_setting_index",
    "build_section_index",
    "build_parent_map",
    "iter_conditions",
    "resolve_dependencies",
    "SchemaIndex",
    "get_schema_index",
    "get_flattened_setting",
    "get_section",
]
