"""
Answer Map helpers.

The Answer Map is the flat field -> value snapshot the assessment UI builds up.
Keys are the same identifiers used by catalog conditions ("currentRentOrOwn",
"MoveDistance", ...), values are scalars or multi-select lists.

This module owns:
- The AnswerValue / AnswerMap type aliases
- Merging mini-assessment answers into the core assessment
- Computed fields the catalog expects but the UI never asks for directly
  (service hire Yes/No mapping, move distance, interstate)

Nothing here mutates its inputs. Every function returns a fresh dict.
"""

import logging
from collections.abc import Mapping
from typing import Union

logger = logging.getLogger(__name__)


# =============================================================================
# Types
# =============================================================================

# Closed scalar variant. Floats are accepted because stores hand back counts
# as doubles; the evaluator truncates them to integers before comparing.
ScalarValue = Union[str, bool, int, float]
AnswerValue = Union[ScalarValue, list[str]]
AnswerMap = Mapping[str, AnswerValue]

# Keys written alongside mini-assessment answers that are not answers.
MINI_ASSESSMENT_METADATA_KEYS = frozenset({"completedAt", "taskId"})

LOCAL = "Local"
LONG_DISTANCE = "Long Distance"
DEFAULT_LONG_DISTANCE_MILES = 50.0


# =============================================================================
# Merging
# =============================================================================

def merge_answers(core: AnswerMap, *mini_assessments: AnswerMap) -> dict[str, AnswerValue]:
    """
    Combine the core assessment with completed mini-assessment answers.

    Later maps win on key collisions. Metadata keys stored with
    mini-assessments (completedAt, taskId) are dropped.
    """
    combined: dict[str, AnswerValue] = dict(core)
    for answers in mini_assessments:
        for key, value in answers.items():
            if key in MINI_ASSESSMENT_METADATA_KEYS:
                continue
            combined[key] = value

    logger.debug(f"Combined assessment has {len(combined)} fields")
    return combined


# =============================================================================
# Computed Fields
# =============================================================================

# Descriptive hire labels that count as "Yes" ("Not sure" included).
HIRE_MOVERS_YES = ("hire professional movers", "get me quotes", "not sure")
HIRE_PACKERS_YES = ("hire professional packers", "get me quotes", "not sure")
HIRE_CLEANERS_YES = ("hire professional cleaners", "get me quotes", "not sure")

SERVICE_FIELDS = {
    "hireMovers": HIRE_MOVERS_YES,
    "hirePackers": HIRE_PACKERS_YES,
    "hireCleaners": HIRE_CLEANERS_YES,
}


def map_service_to_yes_no(value: str, yes_values: tuple[str, ...] | list[str]) -> str:
    """Map a descriptive service label to "Yes"/"No". Empty stays empty."""
    if not value:
        return ""
    return "Yes" if value.strip().lower() in {v.lower() for v in yes_values} else "No"


def classify_move_distance(
    miles: float | None,
    threshold_miles: float = DEFAULT_LONG_DISTANCE_MILES,
) -> str:
    """
    Bucket a move by distance. Unknown distance counts as long distance.
    """
    if miles is None or miles < 0:
        return LONG_DISTANCE
    return LONG_DISTANCE if miles >= threshold_miles else LOCAL


def classify_interstate(from_state: str | None, to_state: str | None) -> str:
    """Return "Yes" when the states differ or either one is unknown."""
    if not from_state or not to_state:
        return "Yes"
    return "No" if from_state.strip().lower() == to_state.strip().lower() else "Yes"


def derive_assessment_answers(
    raw: AnswerMap,
    distance_miles: float | None = None,
    from_state: str | None = None,
    to_state: str | None = None,
    threshold_miles: float = DEFAULT_LONG_DISTANCE_MILES,
) -> dict[str, AnswerValue]:
    """
    Build the Answer Map the catalog is written against from raw UI answers.

    - Raw service labels are kept under "<field>Detail"; the field itself
      becomes "Yes"/"No".
    - moveDistance and isInterstate are computed from geocoding results the
      caller supplies. An answer already in `raw` is kept when the inputs
      for it (the distance, or both states) weren't given.
    """
    data: dict[str, AnswerValue] = dict(raw)

    for field_name, yes_values in SERVICE_FIELDS.items():
        label = raw.get(field_name)
        if not isinstance(label, str):
            continue
        data[f"{field_name}Detail"] = label
        data[field_name] = map_service_to_yes_no(label, yes_values)

    if distance_miles is not None or data.get("moveDistance") is None:
        data["moveDistance"] = classify_move_distance(distance_miles, threshold_miles)
    if from_state or to_state or data.get("isInterstate") is None:
        data["isInterstate"] = classify_interstate(from_state, to_state)
    return data
