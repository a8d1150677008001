"""
Peezy Eligibility Engine.

Decides which tasks and vendors apply to a user from their assessment answers.

- conditions: AND-of-ORs condition evaluation over the Answer Map
- catalog: Definition model and two-phase (core / sub-task) matching
- tasks: Dated task records from matches
- answers: Answer Map merging and computed fields
- loader: YAML/JSON catalog and answer loading
"""

from .answers import AnswerMap, AnswerValue, merge_answers
from .catalog import CatalogMatcher, Definition, match_definitions
from .conditions import ConditionSet, evaluate, normalize_conditions, parse_legacy_conditions
from .tasks import TaskGenerator, UserTask, calculate_due_date

__all__ = [
    "AnswerMap",
    "AnswerValue",
    "merge_answers",
    "CatalogMatcher",
    "Definition",
    "match_definitions",
    "ConditionSet",
    "evaluate",
    "normalize_conditions",
    "parse_legacy_conditions",
    "TaskGenerator",
    "UserTask",
    "calculate_due_date",
]
