"""
Assessment Steps and Flow.

Declares every question in the moving assessment, the order they're asked in,
and the branch points where the next few questions depend on an earlier
answer (apartment vs house, storage unit or not, ...).

Step values double as Answer Map field names, so a step's answer is always
answers[step.value].
"""

from collections.abc import Callable, Hashable, Mapping
from dataclasses import dataclass, field
from enum import Enum

from peezy.eligibility.answers import AnswerMap
from peezy.eligibility.conditions import coerce_value


class AssessmentStep(Enum):
    """Every input screen in the assessment."""
    # Section 1: Basics
    USER_NAME = "userName"
    MOVE_CONCERNS = "moveConcerns"
    MOVE_DATE = "moveDate"
    MOVE_DATE_TYPE = "moveDateType"

    # Section 2: Current home
    CURRENT_RENT_OR_OWN = "currentRentOrOwn"
    CURRENT_DWELLING_TYPE = "currentDwellingType"
    CURRENT_ADDRESS = "currentAddress"
    CURRENT_FLOOR_ACCESS = "currentFloorAccess"      # Apartment/Condo only
    CURRENT_BEDROOMS = "currentBedrooms"
    CURRENT_SQUARE_FOOTAGE = "currentSquareFootage"  # Apartment/Condo
    CURRENT_FINISHED_SQ_FT = "currentFinishedSqFt"   # House/Townhouse

    # Section 3: New home
    NEW_RENT_OR_OWN = "newRentOrOwn"
    NEW_DWELLING_TYPE = "newDwellingType"
    NEW_ADDRESS = "newAddress"
    NEW_FLOOR_ACCESS = "newFloorAccess"
    NEW_BEDROOMS = "newBedrooms"
    NEW_SQUARE_FOOTAGE = "newSquareFootage"
    NEW_FINISHED_SQ_FT = "newFinishedSqFt"

    # Storage
    HAS_STORAGE = "hasStorage"
    STORAGE_SIZE = "storageSize"
    STORAGE_FULLNESS = "storageFullness"

    # Section 4: People
    CHILDREN_IN_SCHOOL = "childrenInSchool"
    CHILDREN_IN_DAYCARE = "childrenInDaycare"
    HAS_VET = "hasVet"
    HAS_VEHICLES = "hasVehicles"

    # Section 5: Services
    HIRE_MOVERS = "hireMovers"
    HIRE_PACKERS = "hirePackers"
    HIRE_CLEANERS = "hireCleaners"

    # Section 6: Accounts (multi-select, each with an optional follow-up)
    FINANCIAL_INSTITUTIONS = "financialInstitutions"
    FINANCIAL_DETAILS = "financialDetails"
    HEALTHCARE_PROVIDERS = "healthcareProviders"
    HEALTHCARE_DETAILS = "healthcareDetails"
    FITNESS_WELLNESS = "fitnessWellness"
    FITNESS_DETAILS = "fitnessDetails"

    # Wrap-up
    HOW_HEARD = "howHeard"


# =============================================================================
# Branch Predicates
# =============================================================================

Predicate = Callable[[AnswerMap], bool]


def answer_in(field_name: str, *values: str) -> Predicate:
    """Predicate: the answer equals one of `values` (case-insensitive)."""
    accepted = {v.lower() for v in values}

    def predicate(answers: AnswerMap) -> bool:
        value = answers.get(field_name)
        if value is None or isinstance(value, (list, tuple)):
            return False
        return coerce_value(value).strip().lower() in accepted

    return predicate


def answer_present(field_name: str) -> Predicate:
    """Predicate: the field has a non-empty answer (multi-selects count)."""

    def predicate(answers: AnswerMap) -> bool:
        value = answers.get(field_name)
        if value is None:
            return False
        if isinstance(value, str):
            return bool(value.strip())
        if isinstance(value, (list, tuple)):
            return len(value) > 0
        return True

    return predicate


# =============================================================================
# Flow
# =============================================================================

@dataclass(frozen=True)
class Branch:
    """Two alternative step lists; the predicate picks one."""
    predicate: Predicate
    when_true: tuple[Hashable, ...]
    when_false: tuple[Hashable, ...] = ()

    def select(self, answers: AnswerMap) -> tuple[Hashable, ...]:
        return self.when_true if self.predicate(answers) else self.when_false


@dataclass(frozen=True)
class AssessmentFlow:
    """
    Declarative question flow.

    Attributes:
        steps: The main line of steps, always asked
        branches: Step -> Branch inserted right after that step
        branching_steps: Steps whose answers change which branches apply;
            answering one of these forces the sequence to be rebuilt
    """
    steps: tuple[Hashable, ...]
    branches: Mapping[Hashable, Branch] = field(default_factory=dict)
    branching_steps: frozenset = frozenset()

    def branch_after(self, step: Hashable) -> Branch | None:
        return self.branches.get(step)

    def is_branching(self, step: Hashable) -> bool:
        return step in self.branching_steps

    def resolve_steps(self, answers: AnswerMap) -> list[Hashable]:
        """Flatten the flow into the ordered step list for these answers."""
        resolved = []
        for step in self.steps:
            resolved.append(step)
            branch = self.branch_after(step)
            if branch is not None:
                resolved.extend(branch.select(answers))
        return resolved


def _is_apartment(field_name: str) -> Predicate:
    return answer_in(field_name, "Apartment", "Condo")


S = AssessmentStep

MOVING_ASSESSMENT = AssessmentFlow(
    steps=(
        S.USER_NAME,
        S.MOVE_CONCERNS,
        S.MOVE_DATE,
        S.MOVE_DATE_TYPE,
        S.CURRENT_RENT_OR_OWN,
        S.CURRENT_DWELLING_TYPE,
        S.CURRENT_ADDRESS,
        S.NEW_RENT_OR_OWN,
        S.NEW_DWELLING_TYPE,
        S.NEW_ADDRESS,
        S.HAS_STORAGE,
        S.CHILDREN_IN_SCHOOL,
        S.CHILDREN_IN_DAYCARE,
        S.HAS_VET,
        S.HAS_VEHICLES,
        S.HIRE_MOVERS,
        S.HIRE_PACKERS,
        S.HIRE_CLEANERS,
        S.FINANCIAL_INSTITUTIONS,
        S.HEALTHCARE_PROVIDERS,
        S.FITNESS_WELLNESS,
        S.HOW_HEARD,
    ),
    branches={
        # House/Townhouse is also the default before the dwelling is answered
        S.CURRENT_ADDRESS: Branch(
            _is_apartment(S.CURRENT_DWELLING_TYPE.value),
            when_true=(S.CURRENT_FLOOR_ACCESS, S.CURRENT_BEDROOMS, S.CURRENT_SQUARE_FOOTAGE),
            when_false=(S.CURRENT_BEDROOMS, S.CURRENT_FINISHED_SQ_FT),
        ),
        S.NEW_ADDRESS: Branch(
            _is_apartment(S.NEW_DWELLING_TYPE.value),
            when_true=(S.NEW_FLOOR_ACCESS, S.NEW_BEDROOMS, S.NEW_SQUARE_FOOTAGE),
            when_false=(S.NEW_BEDROOMS, S.NEW_FINISHED_SQ_FT),
        ),
        S.HAS_STORAGE: Branch(
            answer_in(S.HAS_STORAGE.value, "Yes"),
            when_true=(S.STORAGE_SIZE, S.STORAGE_FULLNESS),
        ),
        S.FINANCIAL_INSTITUTIONS: Branch(
            answer_present(S.FINANCIAL_INSTITUTIONS.value),
            when_true=(S.FINANCIAL_DETAILS,),
        ),
        S.HEALTHCARE_PROVIDERS: Branch(
            answer_present(S.HEALTHCARE_PROVIDERS.value),
            when_true=(S.HEALTHCARE_DETAILS,),
        ),
        S.FITNESS_WELLNESS: Branch(
            answer_present(S.FITNESS_WELLNESS.value),
            when_true=(S.FITNESS_DETAILS,),
        ),
    },
    branching_steps=frozenset({
        S.CURRENT_DWELLING_TYPE,
        S.NEW_DWELLING_TYPE,
        S.HAS_STORAGE,
        S.FINANCIAL_INSTITUTIONS,
        S.HEALTHCARE_PROVIDERS,
        S.FITNESS_WELLNESS,
    }),
)


def field_for(step: AssessmentStep) -> str:
    """Answer Map field a step writes to."""
    return step.value


# Multi-select steps store a list of options rather than a single string.
MULTI_SELECT_STEPS = frozenset({
    S.MOVE_CONCERNS,
    S.FINANCIAL_INSTITUTIONS,
    S.HEALTHCARE_PROVIDERS,
    S.FITNESS_WELLNESS,
})
