"""Tests for page configuration resolution."""

import re

import pytest

from journey_runner.journey.page_resolver import (
    deep_merge,
    find_page_rule,
    normalize_page_keys,
    resolve_page_config,
)
from journey_runner.models.journey_models import PageRule, WaitStrategy


@pytest.fixture
def defaults():
    """Raw page defaults as built from config."""
    return {
        "maxRetries": 0,
        "waitFor": "load",
        "fields": {"#name": "Alice"},
        "navigate": ["button"],
        "axe": {"run": True, "stopOnFail": False, "ignore": {}},
    }


@pytest.fixture
def pages():
    """Ordered page table with an overlapping pattern."""
    return [
        PageRule(pattern=re.compile(r"/apply/.*"), overrides={"maxRetries": 2}),
        PageRule(pattern=re.compile(r"/apply/name"), overrides={"maxRetries": 5}),
        PageRule(
            pattern=re.compile(r"/details"),
            overrides={"fields": {"#age": "42"}, "navigate": ["#next"]},
        ),
    ]


class TestDeepMerge:
    """Tests for deep_merge."""

    def test_nested_mappings_merge(self):
        merged = deep_merge({"a": {"x": 1, "y": 2}}, {"a": {"y": 3}})
        assert merged == {"a": {"x": 1, "y": 3}}

    def test_lists_replace(self):
        merged = deep_merge({"navigate": ["a", "b"]}, {"navigate": ["c"]})
        assert merged == {"navigate": ["c"]}

    def test_none_replaces(self):
        merged = deep_merge({"collect": {"ref": "#ref"}}, {"collect": None})
        assert merged == {"collect": None}

    def test_inputs_not_mutated(self):
        base = {"a": {"x": [1]}}
        override = {"a": {"y": 2}}
        merged = deep_merge(base, override)
        merged["a"]["x"].append(2)
        assert base == {"a": {"x": [1]}}
        assert override == {"a": {"y": 2}}

    def test_empty_override_is_idempotent(self, defaults):
        assert deep_merge(defaults, {}) == defaults
        assert deep_merge(deep_merge(defaults, {}), {}) == deep_merge(defaults, {})

    def test_skips_missing_layers(self):
        assert deep_merge(None, {"a": 1}, None) == {"a": 1}


class TestNormalizePageKeys:
    """Tests for page key normalization."""

    def test_snake_case_options_become_camel_case(self):
        normalized = normalize_page_keys(
            {"max_retries": 1, "axe": {"stop_on_fail": True, "ignore": {"color-contrast": {}}}}
        )
        assert normalized == {
            "maxRetries": 1,
            "axe": {"stopOnFail": True, "ignore": {"color-contrast": {}}},
        }

    def test_field_selectors_untouched(self):
        normalized = normalize_page_keys({"fields": {"#first_name": "Alice"}})
        assert normalized == {"fields": {"#first_name": "Alice"}}


class TestResolvePageConfig:
    """Tests for resolve_page_config."""

    def test_first_match_wins(self, pages, defaults):
        page = resolve_page_config("http://a.test/apply/name", pages, defaults)
        assert page.max_retries == 2

    def test_pattern_must_match_whole_path(self, pages, defaults):
        page = resolve_page_config("http://a.test/details/more", pages, defaults)
        assert page.field_map == {"#name": "Alice"}

    def test_unmatched_uses_defaults_and_url(self, pages, defaults):
        page = resolve_page_config("http://a.test/other?x=1", pages, defaults)
        assert page.url == "http://a.test/other?x=1"
        assert page.max_retries == 0
        assert page.wait_for == WaitStrategy.LOAD
        assert page.navigate == ["button"]

    def test_fields_merge_and_navigate_replaces(self, pages, defaults):
        page = resolve_page_config("http://a.test/details", pages, defaults)
        assert page.field_map == {"#name": "Alice", "#age": "42"}
        assert page.navigate == ["#next"]

    def test_resolution_is_pure(self, pages, defaults):
        first = resolve_page_config("http://a.test/details", pages, defaults)
        second = resolve_page_config("http://a.test/details", pages, defaults)
        assert first == second
        assert defaults["fields"] == {"#name": "Alice"}

    def test_find_page_rule_none(self, pages):
        assert find_page_rule("/nowhere", pages) is None
