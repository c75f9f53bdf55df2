"""Tests for edge condition evaluation."""

import pytest

from panelflow.domain.services.condition_evaluator import (
    evaluate_condition,
    evaluate_single_condition,
)


class TestAbsentCondition:
    @pytest.mark.parametrize("condition", [None, "", "   ", "\n\t"])
    def test_always_passes(self, condition):
        assert evaluate_condition(condition, "") is True
        assert evaluate_condition(condition, "anything") is True


class TestSingleClauses:
    def test_contains_is_case_insensitive(self):
        assert evaluate_condition("contains:ERROR", "an error occurred") is True
        assert evaluate_condition("Contains:warning", "an error occurred") is False

    def test_not(self):
        assert evaluate_condition("not:error", "all good") is True
        assert evaluate_condition("not:error", "Fatal ERROR") is False

    def test_regex(self):
        assert evaluate_condition(r"regex:^\d+$", "12345") is True
        assert evaluate_condition(r"regex:^\d+$", "12a45") is False
        assert evaluate_condition("regex:status:\\s*OK", "Status:   ok") is True

    def test_invalid_regex_is_false(self):
        assert evaluate_condition("regex:[unclosed", "[unclosed") is False

    def test_starts_and_ends_with(self):
        assert evaluate_condition("startsWith:yes", "YES, approved") is True
        assert evaluate_condition("startsWith:no", "YES, approved") is False
        assert evaluate_condition("endsWith:done.", "Task DONE.") is True
        assert evaluate_condition("endswith:done", "done later") is False

    def test_equals_trims_output_and_is_case_sensitive(self):
        assert evaluate_condition("equals:OK", "  OK \n") is True
        assert evaluate_condition("equals:OK", "ok") is False
        assert evaluate_condition("equals:OK", "OK!") is False

    @pytest.mark.parametrize(
        "condition,output,expected",
        [
            ("length>5", "abcdef", True),
            ("length>5", "abcde", False),
            ("length<3", "ab", True),
            ("length >= 3", "abc", True),
            ("length<=2", "abc", False),
            ("length==4", "abcd", True),
            ("length!=4", "abcd", False),
        ],
    )
    def test_length_comparisons(self, condition, output, expected):
        assert evaluate_condition(condition, output) is expected

    def test_unknown_length_operator_passes(self):
        assert evaluate_condition("length=>3", "") is True

    def test_plain_text_is_substring_check(self):
        assert evaluate_condition("success", "Build SUCCESS in 3s") is True
        assert evaluate_condition("success", "Build failed") is False

    def test_blank_clause_passes(self):
        assert evaluate_single_condition("  ", "whatever") is True


class TestCompoundConditions:
    def test_and_requires_all(self):
        assert evaluate_condition("contains:alpha AND contains:beta", "alpha and beta") is True
        assert evaluate_condition("contains:alpha AND contains:beta", "only alpha") is False

    def test_or_requires_any(self):
        assert evaluate_condition("contains:x OR contains:beta", "beta") is True
        assert evaluate_condition("contains:x OR contains:y", "beta") is False

    def test_and_takes_precedence_over_or(self):
        # Split on AND first: the OR alternative cannot rescue a failed AND clause
        assert evaluate_condition("contains:a AND contains:b OR contains:c", "c") is False

    def test_lowercase_separators_are_plain_text(self):
        assert evaluate_condition("contains:cats and dogs", "Cats and dogs") is True
        assert evaluate_condition("contains:cats and dogs", "cats") is False

    def test_mixed_clause_types(self):
        condition = "not:error AND length>3 AND regex:v\\d+"
        assert evaluate_condition(condition, "release v2") is True
        assert evaluate_condition(condition, "error v2") is False
