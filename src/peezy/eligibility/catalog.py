"""
Eligibility Catalog Matcher.

Filters a catalog of task/vendor definitions down to the ones whose
conditions pass for the current Answer Map.

Two-phase matching:
1. Core pass - every non-sub-task definition is evaluated against the core
   assessment answers.
2. Sub-task pass - after a mini-assessment (e.g. PET_OPTIONS) completes and
   its answers are merged into the Answer Map, the sub-tasks that name it as
   parent are evaluated against the merged map.

Matching is pure and deterministic: same catalog + same answers gives the
same list, in catalog order.
"""

import logging
import math
from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

from .answers import AnswerMap
from .conditions import NUMERIC_COMPARATORS, evaluate, normalize_conditions, parse_int

logger = logging.getLogger(__name__)

DefinitionKind = Literal["task", "vendor"]

DEFAULT_URGENCY_PERCENTAGE = 50

# Record keys consumed into Definition fields; everything else lands in metadata.
_CORE_RECORD_KEYS = frozenset({
    "id", "pageKey", "taskId", "title", "displayName", "category",
    "conditions", "isSubTask", "parentTask", "urgencyPercentage",
})


# =============================================================================
# Definition
# =============================================================================

@dataclass(frozen=True)
class Definition:
    """
    A task or vendor from the catalog.

    Frozen, and holds its own copies of conditions and metadata, so the
    instances a CatalogMatcher hands out can't change later matches.

    Attributes:
        id: Stable identifier (e.g. "PET_OPTIONS", "SETUP_VET", "movers")
        conditions: Dict-form condition set, None for "applies to everyone"
        kind: "task" or "vendor"
        title: Display title
        category: Free-form grouping ("pets", "logistics", ...)
        is_sub_task: Held back from the core pass; unlocked by a mini-assessment
        parent_task: Id of the mini-assessment task that unlocks this sub-task
        urgency_percentage: 1-100, higher means due sooner (None = default)
        metadata: Remaining record fields passed through untouched
    """

    id: str
    conditions: dict[str, Any] | None = None
    kind: DefinitionKind = "task"
    title: str = ""
    category: str = ""
    is_sub_task: bool = False
    parent_task: str | None = None
    urgency_percentage: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.conditions is not None:
            object.__setattr__(self, "conditions", {
                key: list(value) if isinstance(value, (list, tuple)) else value
                for key, value in self.conditions.items()
            })
        object.__setattr__(self, "metadata", dict(self.metadata))

    @classmethod
    def from_record(
        cls,
        record: Mapping[str, Any],
        kind: DefinitionKind = "task",
    ) -> "Definition | None":
        """
        Build a Definition from a stored catalog record.

        Returns None (record excluded) when the record has no usable id or
        its conditions are in an unrecognized shape.
        """
        definition_id = _first_present(record, "id", "pageKey", "taskId")
        if definition_id is None:
            logger.warning(f"Skipping catalog record without an id: {_record_label(record)}")
            return None

        raw_conditions = record.get("conditions")
        if raw_conditions is not None and not isinstance(raw_conditions, (str, list, tuple, Mapping)):
            logger.warning(f"Skipping '{definition_id}': unrecognized conditions format")
            return None

        parent = record.get("parentTask")
        title = record.get("title") or record.get("displayName") or ""

        return cls(
            id=str(definition_id),
            conditions=normalize_conditions(raw_conditions),
            kind=kind,
            title=str(title),
            category=str(record.get("category") or ""),
            is_sub_task=_as_flag(record.get("isSubTask")),
            parent_task=str(parent) if parent else None,
            urgency_percentage=_as_int(record.get("urgencyPercentage")),
            metadata={k: v for k, v in record.items() if k not in _CORE_RECORD_KEYS},
        )

    def applies_to(self, answers: AnswerMap) -> bool:
        """Check this definition's conditions against an Answer Map."""
        return evaluate(self.conditions, answers)


def definitions_from_records(
    records: Iterable[Mapping[str, Any]],
    kind: DefinitionKind = "task",
) -> list[Definition]:
    """Convert stored records, dropping the ones that can't be used."""
    definitions = []
    for record in records:
        if not isinstance(record, Mapping):
            logger.warning(f"Skipping non-mapping catalog record: {record!r}")
            continue
        definition = Definition.from_record(record, kind=kind)
        if definition is not None:
            definitions.append(definition)
    return definitions


# =============================================================================
# Matching
# =============================================================================

def match_definitions(
    catalog: Iterable[Definition],
    answers: AnswerMap,
    include_sub_tasks: bool = False,
    parent_filter: str | None = None,
) -> list[Definition]:
    """
    Return the definitions that currently apply, in catalog order.

    Args:
        catalog: Definitions to consider
        answers: Answer Map snapshot (merged with mini-assessment answers
            for the sub-task pass)
        include_sub_tasks: False for the core pass (sub-tasks excluded),
            True for the sub-task pass (only sub-tasks considered)
        parent_filter: In the sub-task pass, restrict to children of this id
    """
    matched = []
    skipped = 0

    for definition in catalog:
        if definition.is_sub_task != include_sub_tasks:
            continue
        if include_sub_tasks and parent_filter is not None and definition.parent_task != parent_filter:
            continue

        if definition.applies_to(answers):
            logger.debug(f"Including: {definition.id}")
            matched.append(definition)
        else:
            logger.debug(f"Skipping: {definition.id} (conditions not met)")
            skipped += 1

    phase = f"sub-task pass ({parent_filter or 'any parent'})" if include_sub_tasks else "core pass"
    logger.info(f"Catalog {phase}: {len(matched)} matched, {skipped} skipped")
    return matched


class CatalogMatcher:
    """
    Matcher bound to one catalog.

    Construct one per catalog; there is no shared instance. Safe to use from
    multiple readers since matching never mutates anything.
    """

    def __init__(self, catalog: Iterable[Definition]):
        self._catalog: tuple[Definition, ...] = tuple(catalog)
        self._by_id = {d.id: d for d in self._catalog}

    @property
    def catalog(self) -> tuple[Definition, ...]:
        return self._catalog

    def get(self, definition_id: str) -> Definition | None:
        return self._by_id.get(definition_id)

    def match(
        self,
        answers: AnswerMap,
        include_sub_tasks: bool = False,
        parent_filter: str | None = None,
    ) -> list[Definition]:
        return match_definitions(self._catalog, answers, include_sub_tasks, parent_filter)

    def match_core(self, answers: AnswerMap) -> list[Definition]:
        """First pass: non-sub-task definitions only."""
        return self.match(answers)

    def match_sub_tasks(self, parent_id: str, merged_answers: AnswerMap) -> list[Definition]:
        """Second pass: sub-tasks of one mini-assessment, against merged answers."""
        return self.match(merged_answers, include_sub_tasks=True, parent_filter=parent_id)

    def sub_task_parents(self) -> list[str]:
        """Ids that have at least one sub-task, in first-seen order."""
        parents: list[str] = []
        for definition in self._catalog:
            if definition.is_sub_task and definition.parent_task and definition.parent_task not in parents:
                parents.append(definition.parent_task)
        return parents


# =============================================================================
# Catalog Audit
# =============================================================================

@dataclass
class CatalogIssue:
    """A problem found in catalog data. Informational; matching still works."""
    definition_id: str
    message: str


def find_catalog_issues(
    definitions: Iterable[Definition],
    external_parents: Iterable[str] = (),
) -> list[CatalogIssue]:
    """
    Look for catalog data that will silently never match (or always match).

    Reports duplicate ids, orphaned sub-tasks, malformed specifier lists and
    numeric specifiers whose threshold isn't an integer.

    Args:
        definitions: Catalog to check
        external_parents: Parent ids that exist outside the catalog (the
            generated address-change mini-assessments)
    """
    definitions = list(definitions)
    issues: list[CatalogIssue] = []
    known_ids = {d.id for d in definitions} | set(external_parents)

    counts = Counter(d.id for d in definitions)
    for definition_id, count in counts.items():
        if count > 1:
            issues.append(CatalogIssue(definition_id, f"id appears {count} times"))

    for definition in definitions:
        if definition.is_sub_task:
            if not definition.parent_task:
                issues.append(CatalogIssue(definition.id, "sub-task has no parentTask"))
            elif definition.parent_task not in known_ids:
                issues.append(CatalogIssue(
                    definition.id, f"parentTask '{definition.parent_task}' is not in the catalog"
                ))

        for field_name, specifiers in (definition.conditions or {}).items():
            if not isinstance(specifiers, (list, tuple)) or not specifiers:
                issues.append(CatalogIssue(
                    definition.id, f"condition '{field_name}' is not a non-empty list (always skipped)"
                ))
                continue
            for spec in specifiers:
                if not isinstance(spec, str):
                    issues.append(CatalogIssue(
                        definition.id, f"condition '{field_name}' has non-string value {spec!r}"
                    ))
                    continue
                for prefix, _ in NUMERIC_COMPARATORS:
                    if spec.startswith(prefix):
                        if parse_int(spec[len(prefix):]) is None:
                            issues.append(CatalogIssue(
                                definition.id, f"condition '{field_name}' has invalid comparison '{spec}'"
                            ))
                        break

    return issues


# =============================================================================
# Helpers
# =============================================================================

def _first_present(record: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = record.get(key)
        if value is not None and value != "":
            return value
    return None


def _as_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes")
    return False


def _as_int(value: Any) -> int | None:
    # Stores hand numbers back as doubles
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        return parse_int(value.strip())
    return None


def _record_label(record: Mapping[str, Any]) -> str:
    return str(record.get("title") or record.get("displayName") or dict(record))
