"""
Tests for Pattern Matcher

Glob/placeholder patterns used by PatternMatch and ExtractParam.
"""

import pytest


class TestMatches:
    """Tests for matches()"""

    def test_wildcard_matches_rest_of_text(self):
        from rulebot.common.pattern_matcher import matches
        assert matches("go to *", "go to the kitchen")

    def test_placeholder_is_case_insensitive(self):
        from rulebot.common.pattern_matcher import matches
        assert matches("go to {place}", "go to Kitchen")
        assert matches("GO TO {place}", "Go To KITCHEN")

    def test_anchored_at_both_ends(self):
        from rulebot.common.pattern_matcher import matches
        assert not matches("go to {place}", "please go to kitchen")
        assert not matches("hello", "hello there")

    def test_placeholder_needs_at_least_one_character(self):
        from rulebot.common.pattern_matcher import matches
        assert not matches("go to{place}", "go to")
        assert matches("go to*", "go to")

    def test_surrounding_whitespace_is_ignored(self):
        from rulebot.common.pattern_matcher import matches
        assert matches("  hello  ", "   HELLO ")

    def test_regex_metacharacters_are_literal(self):
        from rulebot.common.pattern_matcher import matches
        assert matches("what is 2+2?", "What is 2+2?")
        assert not matches("a.c", "abc")

    def test_empty_text_matches_only_empty_or_wildcard(self):
        from rulebot.common.pattern_matcher import matches
        assert matches("*", "")
        assert not matches("{anything}", "")


class TestExtract:
    """Tests for extract()"""

    def test_extract_preserves_original_case(self):
        from rulebot.common.pattern_matcher import extract
        assert extract("go to {place}", "go to the Kitchen", 0) == "the Kitchen"

    def test_extract_after_text_that_changes_length_when_lowered(self):
        from rulebot.common.pattern_matcher import extract
        assert extract("*, go to {place}", "İzmir, go to the Kitchen", 1) == "the Kitchen"

    def test_extract_second_group(self):
        from rulebot.common.pattern_matcher import extract
        text = "Move the Box to the Garage"
        assert extract("move {item} to {place}", text, 0) == "the Box"
        assert extract("move {item} to {place}", text, 1) == "the Garage"

    def test_wildcards_count_as_groups(self):
        from rulebot.common.pattern_matcher import extract
        assert extract("* to {place}", "walk to Lobby", 1) == "Lobby"

    def test_no_match_returns_none(self):
        from rulebot.common.pattern_matcher import extract
        assert extract("go to {place}", "stay here", 0) is None

    @pytest.mark.parametrize("index", [1, 5, -1])
    def test_index_out_of_range_returns_none(self, index):
        from rulebot.common.pattern_matcher import extract
        assert extract("go to {place}", "go to kitchen", index) is None

    def test_default_index_is_first_group(self):
        from rulebot.common.pattern_matcher import extract
        assert extract("say {words}", "say Hello World") == "Hello World"

    def test_compiled_patterns_are_cached(self):
        from rulebot.common.pattern_matcher import compile_pattern
        assert compile_pattern("go to {place}") is compile_pattern("go to {place}")
