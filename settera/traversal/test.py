"""Unit tests for schema traversal and indexing."""

import pytest

from settera.model import Page, Schema

from .lib import (
    MAX_FLATTEN_DEPTH,
    SchemaVisitor,
    build_parent_map,
    build_section_index,
    build_setting_index,
    flatten_page_items,
    flatten_settings,
    get_flattened_setting,
    get_page_by_key,
    get_schema_index,
    get_section,
    get_setting_by_key,
    is_flattened_page,
    is_page_group,
    resolve_dependencies,
    resolve_page_key,
    walk_schema,
)


def _subsection_schema() -> Schema:
    return Schema.model_validate(
        {
            "version": "1.0",
            "pages": [
                {
                    "key": "p1",
                    "title": "P1",
                    "sections": [
                        {
                            "key": "s1",
                            "title": "S1",
                            "settings": [{"key": "direct", "title": "Direct", "type": "boolean"}],
                            "subsections": [
                                {
                                    "key": "sub1",
                                    "title": "Sub 1",
                                    "settings": [
                                        {"key": "nested", "title": "Nested", "type": "boolean"}
                                    ],
                                }
                            ],
                        }
                    ],
                }
            ],
        }
    )


def _grouped_schema() -> Schema:
    return Schema.model_validate(
        {
            "version": "1.0",
            "pages": [
                {"key": "home", "title": "Home"},
                {
                    "label": "Administration",
                    "pages": [
                        {"key": "users", "title": "Users"},
                        {"key": "billing", "title": "Billing"},
                    ],
                },
            ],
        }
    )


def _chain(levels: int) -> Page:
    """Nested single-child, section-less pages level-1 .. level-N."""
    page = Page(key=f"level-{levels}", title=f"Level {levels}")
    for n in range(levels - 1, 0, -1):
        page = Page(key=f"level-{n}", title=f"Level {n}", pages=[page])
    return page


class TestWalkSchema:
    """Tests for the depth-first walker."""

    @pytest.mark.unit
    def test_visits_all_nodes(self, reference_schema):
        """Pages, sections and settings are all visited."""
        pages, sections, settings = [], [], []
        completed = walk_schema(
            reference_schema,
            SchemaVisitor(
                on_page=lambda p, ctx: pages.append(p.key),
                on_section=lambda s, ctx: sections.append(s.key),
                on_setting=lambda s, ctx: settings.append(s.key),
            ),
        )
        assert completed is True
        assert pages == ["general", "general.privacy", "appearance", "advanced"]
        assert sections[:3] == ["behavior", "security", "dataCollection"]
        assert "advanced.clearCache" in settings

    @pytest.mark.unit
    def test_page_context(self, reference_schema):
        """Page context carries key, depth and path."""
        contexts = {}
        walk_schema(
            reference_schema,
            SchemaVisitor(on_page=lambda p, ctx: contexts.setdefault(p.key, ctx)),
        )
        general = contexts["general"]
        assert general.depth == 0
        assert general.section_key == ""
        assert general.path == "pages[0]"
        privacy = contexts["general.privacy"]
        assert privacy.depth == 1
        assert privacy.path == "pages[0].pages[0]"

    @pytest.mark.unit
    def test_setting_context(self, reference_schema):
        """Setting context carries owning page and section."""
        contexts = {}
        walk_schema(
            reference_schema,
            SchemaVisitor(on_setting=lambda s, ctx: contexts.setdefault(s.key, ctx)),
        )
        auto_save = contexts["general.autoSave"]
        assert auto_save.page_key == "general"
        assert auto_save.section_key == "behavior"
        assert auto_save.path == "pages[0].sections[0].settings[0]"
        telemetry = contexts["privacy.telemetry"]
        assert telemetry.page_key == "general.privacy"
        assert telemetry.depth == 1

    @pytest.mark.unit
    def test_subsection_settings_after_direct(self):
        """Direct settings come before subsection settings."""
        contexts = []
        walk_schema(
            _subsection_schema(),
            SchemaVisitor(on_setting=lambda s, ctx: contexts.append((s.key, ctx))),
        )
        assert [key for key, _ in contexts] == ["direct", "nested"]
        nested = contexts[1][1]
        assert nested.subsection_key == "sub1"
        assert nested.path == "pages[0].sections[0].subsections[0].settings[0]"

    @pytest.mark.unit
    def test_false_from_on_page_aborts_everything(self, reference_schema):
        """Returning False aborts the whole walk, not only the subtree."""
        pages = []

        def on_page(page, ctx):
            pages.append(page.key)
            if page.key == "general":
                return False

        assert walk_schema(reference_schema, SchemaVisitor(on_page=on_page)) is False
        assert pages == ["general"]

    @pytest.mark.unit
    def test_false_from_on_section_aborts(self, reference_schema):
        """Section callback abort stops later sections and pages."""
        sections = []

        def on_section(section, ctx):
            sections.append(section.key)
            if section.key == "security":
                return False

        walk_schema(reference_schema, SchemaVisitor(on_section=on_section))
        assert sections == ["behavior", "security"]

    @pytest.mark.unit
    def test_false_from_on_setting_aborts(self, reference_schema):
        """Setting callback abort stops immediately."""
        settings = []

        def on_setting(setting, ctx):
            settings.append(setting.key)
            return False

        walk_schema(reference_schema, SchemaVisitor(on_setting=on_setting))
        assert settings == ["general.autoSave"]

    @pytest.mark.unit
    def test_other_falsy_returns_continue(self, reference_schema):
        """Only exactly False aborts; None, 0 and "" do not."""
        seen = []

        def on_page(page, ctx):
            seen.append(page.key)
            return 0

        assert walk_schema(reference_schema, SchemaVisitor(on_page=on_page)) is True
        assert len(seen) == 4

    @pytest.mark.unit
    def test_any_object_with_callbacks_is_a_visitor(self):
        """Visitors are duck-typed."""

        class Collector:
            def __init__(self):
                self.paths = []

            def on_subsection(self, sub, ctx):
                self.paths.append(ctx.path)

        collector = Collector()
        walk_schema(_subsection_schema(), collector)
        assert collector.paths == ["pages[0].sections[0].subsections[0]"]

    @pytest.mark.unit
    def test_page_groups_are_transparent(self):
        """Grouped pages are visited at depth 0 with group-relative paths."""
        contexts = {}
        walk_schema(
            _grouped_schema(),
            SchemaVisitor(on_page=lambda p, ctx: contexts.setdefault(p.key, ctx)),
        )
        assert list(contexts) == ["home", "users", "billing"]
        assert contexts["billing"].depth == 0
        assert contexts["billing"].path == "pages[1].pages[1]"

    @pytest.mark.unit
    def test_empty_schema(self):
        """An empty schema walks without visiting anything."""
        schema = Schema(version="1.0", pages=[])
        assert walk_schema(schema, SchemaVisitor()) is True


class TestFlattenSettings:
    """Tests for flatten_settings."""

    @pytest.mark.unit
    def test_reference_schema_count(self, reference_schema):
        """All 18 reference settings are flattened."""
        assert len(flatten_settings(reference_schema)) == 18

    @pytest.mark.unit
    def test_matches_manual_walk(self, reference_schema):
        """Flattened order equals the on_setting visit order."""
        walked = []
        walk_schema(
            reference_schema,
            SchemaVisitor(on_setting=lambda s, ctx: walked.append(s.key)),
        )
        assert [flat.key for flat in flatten_settings(reference_schema)] == walked

    @pytest.mark.unit
    def test_records_location(self, reference_schema):
        """Each entry records page and section keys."""
        by_key = {flat.key: flat for flat in flatten_settings(reference_schema)}
        assert by_key["privacy.telemetry"].page_key == "general.privacy"
        assert by_key["privacy.telemetry"].section_key == "dataCollection"
        assert by_key["editor.fontSize"].path == "pages[1].sections[1].settings[0]"
        assert by_key["editor.fontSize"].subsection_key == ""

    @pytest.mark.unit
    def test_subsection_key_recorded(self):
        """Subsection settings carry their subsection key."""
        flat = flatten_settings(_subsection_schema())
        assert [(f.key, f.subsection_key) for f in flat] == [
            ("direct", ""),
            ("nested", "sub1"),
        ]


class TestLookups:
    """Tests for key-based lookups."""

    @pytest.mark.unit
    def test_get_setting_by_key(self, reference_schema):
        """Settings are found on root and nested pages."""
        assert get_setting_by_key(reference_schema, "general.autoSave").title == "Auto Save"
        assert get_setting_by_key(reference_schema, "privacy.telemetry").type == "boolean"
        assert get_setting_by_key(reference_schema, "nope") is None

    @pytest.mark.unit
    def test_get_setting_in_subsection(self):
        """Subsection settings are found."""
        assert get_setting_by_key(_subsection_schema(), "nested").title == "Nested"

    @pytest.mark.unit
    def test_get_page_by_key(self, reference_schema):
        """Pages are found at any depth."""
        assert get_page_by_key(reference_schema, "advanced").title == "Advanced"
        assert get_page_by_key(reference_schema, "general.privacy").title == "Privacy"
        assert get_page_by_key(reference_schema, "nope") is None

    @pytest.mark.unit
    def test_get_page_inside_group(self):
        """Grouped pages are found."""
        assert get_page_by_key(_grouped_schema(), "billing").title == "Billing"


class TestPageResolution:
    """Tests for flattened-page detection and resolution."""

    @pytest.mark.unit
    def test_is_flattened_page(self):
        """One child and no sections is flattened."""
        child = Page(key="child", title="Child")
        assert is_flattened_page(Page(key="p", title="P", pages=[child])) is True
        assert is_flattened_page(Page(key="p", title="P", sections=[], pages=[child])) is True
        assert is_flattened_page(Page(key="p", title="P", pages=[child, child])) is False
        assert is_flattened_page(Page(key="p", title="P")) is False

    @pytest.mark.unit
    def test_page_with_sections_is_not_flattened(self):
        """Sections make a page own its content."""
        page = Page.model_validate(
            {
                "key": "p",
                "title": "P",
                "sections": [{"key": "s", "title": "S"}],
                "pages": [{"key": "c", "title": "C"}],
            }
        )
        assert is_flattened_page(page) is False
        assert resolve_page_key(page) == "p"

    @pytest.mark.unit
    def test_resolves_through_chain(self):
        """Resolution follows single children to the content page."""
        assert resolve_page_key(_chain(3)) == "level-3"

    @pytest.mark.unit
    def test_depth_guard(self):
        """A 12-deep chain stops after MAX_FLATTEN_DEPTH descents."""
        assert MAX_FLATTEN_DEPTH == 10
        assert resolve_page_key(_chain(12)) == "level-11"

    @pytest.mark.unit
    def test_chain_at_limit_reaches_leaf(self):
        """Exactly MAX_FLATTEN_DEPTH descents still reach the leaf."""
        assert resolve_page_key(_chain(11)) == "level-11"

    @pytest.mark.unit
    def test_resolved_page_owns_content(self, reference_schema):
        """Resolved pages never have a single child and no sections."""
        index = get_schema_index(reference_schema)
        for page in index.pages_by_key.values():
            resolved = get_page_by_key(reference_schema, resolve_page_key(page))
            assert not is_flattened_page(resolved)

    @pytest.mark.unit
    def test_page_groups(self):
        """Groups are detected and expanded in order."""
        schema = _grouped_schema()
        assert is_page_group(schema.pages[1]) is True
        assert is_page_group(schema.pages[0]) is False
        assert [p.key for p in flatten_page_items(schema.pages)] == [
            "home",
            "users",
            "billing",
        ]


class TestIndices:
    """Tests for index builders and the memoised SchemaIndex."""

    @pytest.mark.unit
    def test_setting_index(self, reference_schema):
        """Setting index maps keys to definitions."""
        index = build_setting_index(reference_schema)
        assert len(index) == 18
        assert index["advanced.timeout"].default == 30

    @pytest.mark.unit
    def test_section_index(self, reference_schema):
        """Section index keys are page:section."""
        index = build_section_index(reference_schema)
        assert index["general:security"].title == "Security"
        assert index["general.privacy:dataCollection"].title == "Data Collection"

    @pytest.mark.unit
    def test_parent_map(self, reference_schema):
        """Nested pages map to their parents."""
        assert build_parent_map(reference_schema) == {"general.privacy": "general"}

    @pytest.mark.unit
    def test_resolve_dependencies(self, reference_schema):
        """Dependencies list the settings each rule references."""
        deps = resolve_dependencies(reference_schema)
        assert deps == {
            "security.ssoProvider": ["security.ssoEnabled"],
            "security.ssoDomain": ["security.ssoEnabled", "security.ssoProvider"],
            "advanced.debugMode": ["advanced.experimentalFeatures"],
        }

    @pytest.mark.unit
    def test_dependencies_include_or_groups_deduplicated(self):
        """OR-group references are included once, in first-seen order."""
        schema = Schema.model_validate(
            {
                "version": "1.0",
                "pages": [
                    {
                        "key": "p",
                        "title": "P",
                        "sections": [
                            {
                                "key": "s",
                                "title": "S",
                                "settings": [
                                    {"key": "a", "title": "A", "type": "boolean"},
                                    {"key": "b", "title": "B", "type": "boolean"},
                                    {
                                        "key": "c",
                                        "title": "C",
                                        "type": "text",
                                        "visibleWhen": [
                                            {"setting": "b"},
                                            {"or": [{"setting": "a"}, {"setting": "b"}]},
                                        ],
                                    },
                                ],
                            }
                        ],
                    }
                ],
            }
        )
        assert resolve_dependencies(schema) == {"c": ["b", "a"]}

    @pytest.mark.unit
    def test_schema_index_is_memoised(self, reference_schema):
        """The same index object is returned for the same schema."""
        index = get_schema_index(reference_schema)
        assert get_schema_index(reference_schema) is index
        assert index.flattened is index.flattened

    @pytest.mark.unit
    def test_distinct_schemas_get_distinct_indices(self, reference_schema):
        """A copied schema has its own index."""
        copy = reference_schema.model_copy()
        assert get_schema_index(copy) is not get_schema_index(reference_schema)

    @pytest.mark.unit
    def test_index_contents(self, reference_schema):
        """SchemaIndex exposes the derived maps."""
        index = get_schema_index(reference_schema)
        assert set(index.pages_by_key) == {
            "general",
            "general.privacy",
            "appearance",
            "advanced",
        }
        assert [p.key for p in index.root_pages] == ["general", "appearance", "advanced"]
        assert index.parent_of == {"general.privacy": "general"}
        assert index.ancestors("general.privacy") == ["general"]
        assert "security.ssoDomain" in index.dependencies

    @pytest.mark.unit
    def test_constant_time_lookups(self, reference_schema):
        """get_flattened_setting and get_section use the index."""
        flat = get_flattened_setting(reference_schema, "security.ssoDomain")
        assert flat.section_key == "security"
        assert flat.path == "pages[0].sections[1].settings[2]"
        assert get_flattened_setting(reference_schema, "nope") is None
        assert get_section(reference_schema, "advanced", "network").title == "Network"
        assert get_section(reference_schema, "advanced", "security") is None
