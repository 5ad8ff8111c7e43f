"""Unit tests for schema search."""

import pytest

from settera.model import Schema

from .lib import SearchResult, search_schema


def _page(key: str, title: str, *settings: tuple[str, str], **extra) -> dict:
    return {
        "key": key,
        "title": title,
        "sections": [
            {
                "key": "main",
                "title": "Main",
                "settings": [{"key": k, "title": t, "type": "text"} for k, t in settings],
            }
        ],
        **extra,
    }


@pytest.fixture
def schema() -> Schema:
    return Schema.model_validate(
        {
            "version": "1.0",
            "pages": [
                {
                    "key": "general",
                    "title": "General Settings",
                    "sections": [
                        {
                            "key": "profile",
                            "title": "Profile",
                            "settings": [
                                {"key": "name", "title": "Display Name", "type": "text"},
                                {
                                    "key": "email",
                                    "title": "Email Address",
                                    "type": "text",
                                    "description": "Your primary email",
                                },
                            ],
                        },
                        {
                            "key": "notifications",
                            "title": "Notification Preferences",
                            "settings": [
                                {"key": "push", "title": "Push Notifications", "type": "boolean"},
                                {"key": "digest", "title": "Email Digest", "type": "boolean"},
                            ],
                            "subsections": [
                                {
                                    "key": "advanced-notif",
                                    "title": "Advanced Alerts",
                                    "settings": [
                                        {"key": "sound", "title": "Sound", "type": "boolean"}
                                    ],
                                }
                            ],
                        },
                    ],
                },
                {
                    "key": "appearance",
                    "title": "Appearance",
                    "sections": [
                        {
                            "key": "theme",
                            "title": "Theme",
                            "settings": [
                                {"key": "dark-mode", "title": "Dark Mode", "type": "boolean"},
                                {"key": "font-size", "title": "Font Size", "type": "number"},
                            ],
                        }
                    ],
                    "pages": [_page("colors", "Custom Colors", ("primary", "Primary Color"))],
                },
            ],
        }
    )


class TestSearchSchema:
    """Tests for search matching rules."""

    @pytest.mark.unit
    def test_empty_query(self, schema):
        """An empty query matches nothing."""
        result = search_schema(schema, "")
        assert result == SearchResult()
        assert not result

    @pytest.mark.unit
    def test_setting_title(self, schema):
        """Setting titles match and bring their page along."""
        result = search_schema(schema, "Display Name")
        assert result.setting_keys == {"name"}
        assert result.page_keys == {"general"}

    @pytest.mark.unit
    def test_setting_description(self, schema):
        """Setting descriptions are searched."""
        assert search_schema(schema, "primary email").setting_keys == {"email"}

    @pytest.mark.unit
    def test_case_insensitive_partial(self, schema):
        """Matching ignores case and accepts substrings."""
        assert search_schema(schema, "display name").setting_keys == {"name"}
        assert "font-size" in search_schema(schema, "FONT").setting_keys

    @pytest.mark.unit
    def test_page_title(self, schema):
        """A matching page brings every setting under it, nested pages included."""
        result = search_schema(schema, "Appearance")
        assert result.setting_keys == {"dark-mode", "font-size", "primary"}
        assert result.page_keys == {"appearance", "colors"}

    @pytest.mark.unit
    def test_section_title(self, schema):
        """A matching section brings all its settings, subsections included."""
        result = search_schema(schema, "Notification Preferences")
        assert result.setting_keys == {"push", "digest", "sound"}
        assert result.page_keys == {"general"}

    @pytest.mark.unit
    def test_subsection_title(self, schema):
        """A matching subsection brings only its own settings."""
        result = search_schema(schema, "Advanced Alerts")
        assert result.setting_keys == {"sound"}
        assert result.page_keys == {"general"}

    @pytest.mark.unit
    def test_child_page_adds_ancestors(self, schema):
        """Ancestors of a matching page are added; siblings are not."""
        result = search_schema(schema, "Custom Colors")
        assert result.page_keys == {"colors", "appearance"}
        assert result.setting_keys == {"primary"}

    @pytest.mark.unit
    def test_no_match(self, schema):
        """Unrelated queries yield empty sets."""
        result = search_schema(schema, "xyznonexistent")
        assert result.setting_keys == set()
        assert result.page_keys == set()

    @pytest.mark.unit
    def test_reference_schema(self, reference_schema):
        """Descriptions and nested pages resolve in the reference schema."""
        result = search_schema(reference_schema, "crash")
        assert result.setting_keys == {"privacy.crashReports"}
        assert result.page_keys == {"general", "general.privacy"}


class TestSectionScenarios:
    """Tests for deeper nesting and subsections."""

    @pytest.mark.unit
    def test_section_includes_subsection_settings(self):
        """A section hit covers direct and subsection settings."""
        schema = Schema.model_validate(
            {
                "version": "1.0",
                "pages": [
                    {
                        "key": "general",
                        "title": "General",
                        "sections": [
                            {
                                "key": "behavior",
                                "title": "Behavior",
                                "settings": [
                                    {"key": "autoSave", "title": "Auto Save", "type": "boolean"}
                                ],
                                "subsections": [
                                    {
                                        "key": "perf",
                                        "title": "Performance",
                                        "settings": [
                                            {
                                                "key": "lazyLoad",
                                                "title": "Lazy Load",
                                                "type": "boolean",
                                            }
                                        ],
                                    }
                                ],
                            },
                            {
                                "key": "other",
                                "title": "Other",
                                "settings": [{"key": "x", "title": "X", "type": "boolean"}],
                            },
                        ],
                    }
                ],
            }
        )
        result = search_schema(schema, "Behavior")
        assert result.setting_keys == {"autoSave", "lazyLoad"}
        assert result.page_keys == {"general"}

    @pytest.mark.unit
    def test_three_level_chain(self):
        """A deep hit adds exactly its ancestor chain."""
        cookies = _page("general.privacy.cookies", "Cookie Settings", ("cookies.allow", "Allow"))
        privacy = _page("general.privacy", "Privacy", ("privacy.track", "Tracking"), pages=[cookies])
        schema = Schema.model_validate(
            {
                "version": "1.0",
                "pages": [
                    _page("general", "General", ("g", "G"), pages=[privacy]),
                    _page("other", "Other", ("o", "O")),
                ],
            }
        )
        result = search_schema(schema, "Cookie Settings")
        assert result.page_keys == {"general", "general.privacy", "general.privacy.cookies"}
        assert result.setting_keys == {"cookies.allow"}

    @pytest.mark.unit
    def test_nested_pages_surface_through_settings(self):
        """A page hit lists nested pages only when they contribute settings."""
        empty = {"key": "docs.empty", "title": "Placeholder"}
        filled = _page("docs.filled", "Details", ("docs.depth", "Depth"))
        docs = _page("docs", "Documentation", ("docs.lang", "Lang"), pages=[empty, filled])
        schema = Schema.model_validate({"version": "1.0", "pages": [docs]})
        result = search_schema(schema, "documentation")
        assert result.setting_keys == {"docs.lang", "docs.depth"}
        assert result.page_keys == {"docs", "docs.filled"}


class TestPageGroups:
    """Tests for page-group label matching."""

    @pytest.fixture
    def schema(self) -> Schema:
        return Schema.model_validate(
            {
                "version": "1.0",
                "pages": [
                    _page("general", "General", ("name", "Name")),
                    {
                        "label": "Administration",
                        "pages": [
                            _page("users", "Users", ("role", "User Role")),
                            _page("billing", "Billing", ("plan-type", "Plan Type")),
                        ],
                    },
                ],
            }
        )

    @pytest.mark.unit
    def test_group_label(self, schema):
        """A matching label brings every page of the group and their settings."""
        result = search_schema(schema, "admin")
        assert result.page_keys == {"users", "billing"}
        assert result.setting_keys == {"role", "plan-type"}

    @pytest.mark.unit
    def test_page_inside_group(self, schema):
        """Pages in groups still match individually."""
        result = search_schema(schema, "Users")
        assert result.page_keys == {"users"}
        assert "role" in result.setting_keys
        assert "billing" not in result.page_keys
