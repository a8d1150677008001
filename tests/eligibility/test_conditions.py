"""
Tests for the condition evaluator.

Covers the AND-of-ORs contract, value coercion, numeric and boolean
specifiers, the absent-field sentinels, and graceful handling of malformed
catalog data.
"""

import pytest

from peezy.eligibility.conditions import (
    coerce_value,
    evaluate,
    lookup_answer,
    parse_int,
)


class TestAutoPass:
    """Missing or empty condition sets never constrain anything."""

    def test_none_conditions_pass(self):
        assert evaluate(None, {"AnyPets": "No"}) is True

    def test_empty_conditions_pass(self):
        assert evaluate({}, {"AnyPets": "No"}) is True

    def test_empty_answers_with_no_conditions(self):
        assert evaluate(None, {}) is True
        assert evaluate({}, {}) is True


class TestLiteralMatching:
    """Case-insensitive exact match against string specifiers."""

    def test_exact_match(self):
        assert evaluate({"currentRentOrOwn": ["Rent"]}, {"currentRentOrOwn": "Rent"}) is True

    def test_case_insensitive(self):
        assert evaluate({"currentRentOrOwn": ["RENT"]}, {"currentRentOrOwn": "rent"}) is True

    def test_no_match(self):
        assert evaluate({"currentRentOrOwn": ["Own"]}, {"currentRentOrOwn": "Rent"}) is False

    def test_substring_is_not_a_match(self):
        assert evaluate({"floorAccess": ["Elevator"]}, {"floorAccess": "Reservable Elevator"}) is False

    def test_spelling_is_not_normalized(self):
        assert evaluate({"MoveDistance": ["Long Distance"]}, {"MoveDistance": "LongDistance"}) is False


class TestAndAcrossFields:
    """Every field must pass."""

    CONDITIONS = {"A": ["Yes"], "B": ["Local"]}

    def test_all_fields_pass(self):
        assert evaluate(self.CONDITIONS, {"A": "Yes", "B": "Local"}) is True

    def test_second_field_fails(self):
        assert evaluate(self.CONDITIONS, {"A": "Yes", "B": "Cross-Country"}) is False

    def test_first_field_fails(self):
        assert evaluate(self.CONDITIONS, {"A": "No", "B": "Local"}) is False

    def test_both_fields_fail(self):
        assert evaluate(self.CONDITIONS, {"A": "No", "B": "Cross-Country"}) is False


class TestOrWithinField:
    """Any one specifier in a field's list is enough."""

    CONDITIONS = {"D": ["Long Distance", "Cross-Country"]}

    def test_first_specifier(self):
        assert evaluate(self.CONDITIONS, {"D": "Long Distance"}) is True

    def test_second_specifier(self):
        assert evaluate(self.CONDITIONS, {"D": "Cross-Country"}) is True

    def test_no_specifier(self):
        assert evaluate(self.CONDITIONS, {"D": "Local"}) is False


class TestNumericComparison:
    """>=, <=, > and < compare integers; parse failures fail the specifier."""

    @pytest.mark.parametrize(
        "specifier,value,expected",
        [
            (">=1", "2", True),
            (">=1", "1", True),
            (">=1", "0", False),
            ("<=2", "2", True),
            ("<=2", "3", False),
            (">0", "1", True),
            (">0", "0", False),
            ("<3", "2", True),
            ("<3", "3", False),
            (">=-1", "-1", True),
        ],
    )
    def test_comparisons(self, specifier, value, expected):
        assert evaluate({"N": [specifier]}, {"N": value}) is expected

    def test_int_answer(self):
        assert evaluate({"SchoolAgeChildren": [">=1"]}, {"SchoolAgeChildren": 2}) is True

    def test_non_numeric_user_value_fails(self):
        assert evaluate({"N": [">=1"]}, {"N": "several"}) is False

    def test_decimal_string_is_not_an_integer(self):
        assert evaluate({"N": [">=1"]}, {"N": "2.5"}) is False

    def test_bad_threshold_fails_without_raising(self):
        assert evaluate({"N": [">=lots"]}, {"N": "5"}) is False

    def test_bad_threshold_does_not_block_other_specifiers(self):
        assert evaluate({"N": [">=lots", ">=1"]}, {"N": "5"}) is True

    def test_bool_answer_never_compares_numerically(self):
        # True coerces to "Yes", which is not an integer
        assert evaluate({"N": [">=1"]}, {"N": True}) is False


class TestFloatTruncation:
    """Floats are truncated toward zero before matching."""

    def test_whole_float(self):
        assert evaluate({"bedrooms": ["2"]}, {"bedrooms": 2.0}) is True

    def test_fraction_dropped(self):
        assert evaluate({"bedrooms": ["2"]}, {"bedrooms": 2.9}) is True

    def test_fraction_dropped_before_comparison(self):
        assert evaluate({"children": [">=1"]}, {"children": 0.9}) is False

    def test_negative_truncates_toward_zero(self):
        assert coerce_value(-1.7) == "-1"


class TestBooleanCoercion:
    """Booleans render as Yes/No; true/false specifiers match booleans directly."""

    def test_true_matches_yes(self):
        assert evaluate({"P": ["Yes"]}, {"P": True}) is True

    def test_false_matches_no(self):
        assert evaluate({"P": ["No"]}, {"P": False}) is True

    def test_true_does_not_match_no(self):
        assert evaluate({"P": ["No"]}, {"P": True}) is False

    def test_true_literal_matches_bool(self):
        assert evaluate({"hasKids": ["true"]}, {"hasKids": True}) is True
        assert evaluate({"hasKids": ["TRUE"]}, {"hasKids": False}) is False

    def test_false_literal_matches_bool(self):
        assert evaluate({"hasKids": ["false"]}, {"hasKids": False}) is True

    def test_boolean_literal_matches_string(self):
        assert evaluate({"hasKids": ["true"]}, {"hasKids": "True"}) is True
        assert evaluate({"hasKids": ["false"]}, {"hasKids": "true"}) is False

    def test_boolean_literal_rejects_yes_string(self):
        assert evaluate({"hasKids": ["true"]}, {"hasKids": "Yes"}) is False

    def test_boolean_literal_rejects_numbers(self):
        assert evaluate({"hasKids": ["true"]}, {"hasKids": 1}) is False


class TestMissingFields:
    """Absent fields fail unless a "nil" or "" sentinel is listed."""

    def test_missing_without_sentinel_fails(self):
        assert evaluate({"AnyPets": ["Yes"]}, {}) is False

    def test_nil_sentinel(self):
        assert evaluate({"AnyPets": ["Yes", "nil"]}, {}) is True

    def test_nil_sentinel_case_insensitive(self):
        assert evaluate({"AnyPets": ["NIL"]}, {}) is True

    def test_empty_string_sentinel(self):
        assert evaluate({"AnyPets": [""]}, {}) is True

    def test_none_value_counts_as_missing(self):
        assert evaluate({"AnyPets": ["nil"]}, {"AnyPets": None}) is True
        assert evaluate({"AnyPets": ["Yes"]}, {"AnyPets": None}) is False

    def test_present_field_still_matches_normally_with_sentinel(self):
        assert evaluate({"changingDistricts": ["Yes", "nil"]}, {"changingDistricts": "Yes"}) is True
        assert evaluate({"changingDistricts": ["Yes", "nil"]}, {"changingDistricts": "No"}) is False


class TestFieldLookup:
    """Field names match exactly first, then case-insensitively."""

    def test_case_insensitive_field_name(self):
        assert evaluate({"AnyPets": ["Yes"]}, {"anyPets": "Yes"}) is True

    def test_exact_key_wins(self):
        answers = {"moveDistance": "Local", "MoveDistance": "Long Distance"}
        assert lookup_answer(answers, "MoveDistance") == "Long Distance"


class TestMultiSelect:
    """List answers pass when any selection equals any literal."""

    def test_any_selection_matches(self):
        assert evaluate({"fitnessWellness": ["Yoga"]}, {"fitnessWellness": ["Gym", "Yoga"]}) is True

    def test_case_insensitive(self):
        assert evaluate({"fitnessWellness": ["yoga"]}, {"fitnessWellness": ["YOGA"]}) is True

    def test_no_selection_matches(self):
        assert evaluate({"fitnessWellness": ["Yoga"]}, {"fitnessWellness": ["Gym"]}) is False

    def test_empty_selection(self):
        assert evaluate({"fitnessWellness": ["Yoga"]}, {"fitnessWellness": []}) is False


class TestMalformedConditions:
    """Bad catalog data degrades per field and never raises."""

    def test_non_list_specifiers_skipped(self):
        assert evaluate({"AnyPets": "Yes"}, {"AnyPets": "No"}) is True

    def test_empty_specifier_list_skipped(self):
        assert evaluate({"AnyPets": []}, {"AnyPets": "No"}) is True

    def test_non_string_specifiers_skipped(self):
        assert evaluate({"children": [1, 2]}, {"children": "5"}) is True

    def test_skipped_field_does_not_hide_sibling_failure(self):
        conditions = {"AnyPets": "Yes", "MoveDistance": ["Local"]}
        assert evaluate(conditions, {"AnyPets": "No", "MoveDistance": "Long Distance"}) is False

    def test_warns_on_skipped_field(self, caplog):
        with caplog.at_level("WARNING", logger="peezy.eligibility.conditions"):
            evaluate({"AnyPets": {"bad": "shape"}}, {})
        assert "Invalid condition format for 'AnyPets'" in caplog.text


class TestHelpers:
    def test_coerce_value(self):
        assert coerce_value("Rent") == "Rent"
        assert coerce_value(True) == "Yes"
        assert coerce_value(False) == "No"
        assert coerce_value(3) == "3"
        assert coerce_value(3.99) == "3"

    def test_parse_int_strict(self):
        assert parse_int("12") == 12
        assert parse_int("-3") == -3
        assert parse_int("+4") == 4
        assert parse_int(" 4") is None
        assert parse_int("4a") is None
        assert parse_int("") is None

    def test_evaluate_does_not_mutate_answers(self):
        answers = {"AnyPets": True, "kids": 2.5}
        evaluate({"AnyPets": ["Yes"], "kids": [">=2"], "missing": ["nil"]}, answers)
        assert answers == {"AnyPets": True, "kids": 2.5}
