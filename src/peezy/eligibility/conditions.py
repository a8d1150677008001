"""
Condition Evaluator.

Decides whether a task or vendor applies to a user by checking its condition
set against the Answer Map.

CONDITION FORMAT:
    {field_name: [specifier, ...], ...}

    - Fields are combined with AND (every field must pass)
    - Specifiers within a field are combined with OR (any one may match)
    - A missing or empty condition set always passes

SPECIFIERS:
    "Long Distance"     Case-insensitive exact match against the user's value
    ">=1" "<=5" ">0"    Integer comparison; both sides must parse as integers
    "true" / "false"    Boolean literal; matches bools, or "true"/"false" strings
    "nil" / ""          Matches when the field is absent from the Answer Map

VALUE COERCION (before string/numeric matching):
    True / False  ->  "Yes" / "No"
    2, 2.0, 2.9   ->  "2"   (floats are truncated, not rounded)
    ["Yoga", ...] ->  multi-select; passes if any selection equals any literal

EXAMPLES:
    {"AnyPets": ["Yes"]}                                    pets only
    {"MoveDistance": ["Long Distance", "Cross-Country"]}    either distance
    {"SchoolAgeChildren": [">=1"], "MoveDistance": ["Long Distance"]}

Evaluation never raises. Malformed catalog data degrades to "does not match"
or "skipped" for that one field, and sibling fields are still evaluated.

A legacy string form ("hasKids: true, moveDistance: local") still exists in
older catalog records. It is converted to the dictionary form by
parse_legacy_conditions() before evaluation; there is only one evaluator.
"""

import logging
import math
import operator
import re
from collections.abc import Mapping
from typing import Any, Callable

from .answers import AnswerMap

logger = logging.getLogger(__name__)


# =============================================================================
# Types and Constants
# =============================================================================

ConditionSet = Mapping[str, list[str]]

# Specifiers that match a field missing from the Answer Map.
ABSENT_SENTINELS = frozenset({"nil", ""})

# Longest prefix first so ">=" is never read as ">".
NUMERIC_COMPARATORS: tuple[tuple[str, Callable[[int, int], bool]], ...] = (
    (">=", operator.ge),
    ("<=", operator.le),
    (">", operator.gt),
    ("<", operator.lt),
)

_INTEGER_RE = re.compile(r"[+-]?\d+")

_MISSING = object()


# =============================================================================
# Public API
# =============================================================================

def evaluate(conditions: ConditionSet | None, answers: AnswerMap) -> bool:
    """
    Evaluate a condition set against an Answer Map.

    Args:
        conditions: Field name -> list of acceptable specifiers, or None
        answers: The user's current answers (read-only snapshot)

    Returns:
        True if every field has at least one matching specifier
    """
    if not conditions:
        logger.debug("No conditions - auto-pass")
        return True

    for field_name, specifiers in conditions.items():
        if not _is_specifier_list(specifiers):
            logger.warning(f"Invalid condition format for '{field_name}' - skipping")
            continue

        user_value = lookup_answer(answers, field_name)
        if not field_matches(user_value, specifiers):
            logger.debug(
                f"FAILED: '{field_name}' - user has {_describe(user_value)} "
                f"but needs one of {list(specifiers)}"
            )
            return False

        logger.debug(f"PASSED: '{field_name}' = {_describe(user_value)}")

    return True


def lookup_answer(answers: AnswerMap, field_name: str) -> Any:
    """
    Find a field in the Answer Map.

    Exact key first, then a case-insensitive scan. Returns the module-level
    missing sentinel when the field is absent or explicitly None.
    """
    value = answers.get(field_name, _MISSING)
    if value is _MISSING:
        lowered = field_name.lower()
        for key, candidate in answers.items():
            if key.lower() == lowered:
                value = candidate
                break
    if value is None:
        return _MISSING
    return value


def field_matches(user_value: Any, specifiers: list[str]) -> bool:
    """Check one field: does any specifier match the user's value (OR)?"""
    if user_value is _MISSING:
        return any(spec.strip().lower() in ABSENT_SENTINELS for spec in specifiers)

    # Multi-select: any selection equal to any literal specifier
    if isinstance(user_value, (list, tuple, set, frozenset)):
        selections = {coerce_value(item).lower() for item in user_value}
        return any(spec.lower() in selections for spec in specifiers)

    user_string = coerce_value(user_value)
    return any(specifier_matches(user_value, user_string, spec) for spec in specifiers)


def specifier_matches(user_value: Any, user_string: str, specifier: str) -> bool:
    """Match a single (non-list) user value against one specifier."""
    for prefix, compare in NUMERIC_COMPARATORS:
        if specifier.startswith(prefix):
            threshold = parse_int(specifier[len(prefix):])
            user_number = parse_int(user_string)
            if threshold is None:
                logger.warning(f"Invalid numeric comparison: '{specifier}'")
                return False
            if user_number is None:
                return False
            return compare(user_number, threshold)

    literal = specifier.lower()
    if literal in ("true", "false"):
        expected = literal == "true"
        if isinstance(user_value, bool):
            return user_value is expected
        if isinstance(user_value, str):
            return user_value.lower() == literal
        return False

    return user_string.lower() == literal


def coerce_value(value: Any) -> str:
    """
    Render a scalar answer as the string the catalog is written against.

    Floats are truncated toward zero ("2.9" -> "2"); catalog thresholds are
    whole counts (children, bedrooms).
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isfinite(value):
            return str(int(value))
        return str(value)
    return str(value)


def parse_int(text: str) -> int | None:
    """Strict integer parse: optional sign and digits only."""
    if _INTEGER_RE.fullmatch(text):
        return int(text)
    return None


# =============================================================================
# Legacy String Conditions
# =============================================================================

def parse_legacy_conditions(conditions: str) -> dict[str, list[str]]:
    """
    Convert a legacy "field: value, field2: value" string to the dict form.

    - Field names get a lower-case first letter ("HasKids" -> "hasKids")
    - A field repeated in the string accumulates OR-values
    - Fragments without a colon are dropped
    """
    condition_map: dict[str, list[str]] = {}

    for fragment in conditions.split(","):
        fragment = fragment.strip()
        if ":" not in fragment:
            continue

        field_part, value_part = fragment.split(":", 1)
        field_name = field_part.strip()
        if not field_name:
            continue

        field_name = field_name[0].lower() + field_name[1:]
        condition_map.setdefault(field_name, []).append(value_part.strip())

    return condition_map


def normalize_conditions(raw: Any) -> dict[str, Any] | None:
    """
    Accept any stored condition shape and return the dictionary form.

    Handles:
    - None -> None (no constraint)
    - {"field": ["v1", "v2"]} -> copied; bool and number specifiers (YAML
      reads an unquoted Yes as True) are rendered with coerce_value
    - "field: v1, field2: v2" -> legacy string
    - ["field: v1", "field2: v2"] -> legacy list, joined then parsed
    """
    if raw is None:
        return None

    if isinstance(raw, Mapping):
        return {str(key): _render_specifiers(value) for key, value in raw.items()}

    if isinstance(raw, str):
        return parse_legacy_conditions(raw)

    if isinstance(raw, (list, tuple)):
        fragments = [item for item in raw if isinstance(item, str)]
        if len(fragments) != len(raw):
            logger.warning(f"Dropping non-string legacy condition entries: {raw!r}")
        return parse_legacy_conditions(", ".join(fragments))

    logger.warning(f"Unrecognized condition format: {type(raw).__name__}")
    return None


# =============================================================================
# Helpers
# =============================================================================

def _render_specifiers(specifiers: Any) -> Any:
    if not isinstance(specifiers, (list, tuple)):
        return specifiers
    return [
        coerce_value(spec) if isinstance(spec, (bool, int, float)) else spec
        for spec in specifiers
    ]


def _is_specifier_list(specifiers: Any) -> bool:
    if not isinstance(specifiers, (list, tuple)) or not specifiers:
        return False
    return all(isinstance(spec, str) for spec in specifiers)


def _describe(user_value: Any) -> str:
    return "nil" if user_value is _MISSING else repr(user_value)
