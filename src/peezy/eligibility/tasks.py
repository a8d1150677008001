"""
Task Generation.

Turns catalog matches into dated user task records.

Flow:
1. Assessment completes -> generate_initial(): the "Complete Moving
   Assessment" task, the address-change mini-assessment tasks, then every
   core-pass catalog match.
2. A mini-assessment completes -> complete_mini_assessment(): answers are
   merged into the core assessment and the parent's sub-tasks are matched
   against the merged map.

Records are returned, never written. Persistence belongs to the caller.
"""

import logging
from dataclasses import asdict, dataclass, field
from datetime import date, timedelta
from typing import Any

from .answers import AnswerMap, AnswerValue, merge_answers
from .catalog import DEFAULT_URGENCY_PERCENTAGE, CatalogMatcher, Definition

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

ASSESSMENT_COMPLETE_TASK_ID = "assessment_complete"
MINI_ASSESSMENT_URGENCY = 85

# Address-change lists every user gets. Each one is a mini-assessment whose
# answers later unlock sub-tasks.
MINI_ASSESSMENT_TASKS = [
    {
        "id": "address_change_financial",
        "title": "Create financial address list",
        "desc": "Identify the financial accounts that need your new address.",
        "icon": "dollarsign.circle.fill",
    },
    {
        "id": "address_change_health",
        "title": "Create healthcare address list",
        "desc": "Update doctors, dentists, insurance and pharmacies.",
        "icon": "heart.fill",
    },
    {
        "id": "address_change_insurance",
        "title": "Create insurance address list",
        "desc": "Rates can change with your address. Update every policy.",
        "icon": "shield.fill",
    },
    {
        "id": "address_change_fitness",
        "title": "Create fitness membership list",
        "desc": "Gym memberships and fitness subscriptions to transfer or cancel.",
        "icon": "figure.run",
    },
    {
        "id": "address_change_memberships",
        "title": "Create membership address list",
        "desc": "Warehouse clubs, AAA, library cards.",
        "icon": "person.2.fill",
    },
    {
        "id": "address_change_subscriptions",
        "title": "Create subscription address list",
        "desc": "Meal kits, pet food and other deliveries.",
        "icon": "shippingbox.fill",
    },
]

MINI_ASSESSMENT_IDS = tuple(item["id"] for item in MINI_ASSESSMENT_TASKS)


# =============================================================================
# Models
# =============================================================================

@dataclass
class UserTask:
    """A task generated for one user."""
    id: str
    title: str
    due_date: date
    urgency_percentage: int
    category: str = "custom"
    status: str = "Upcoming"
    is_sub_task: bool = False
    parent_task: str | None = None
    is_assessment_task: bool = False
    workflow_id: str | None = None  # Set on mini-assessment tasks
    generated_from: str = "assessment"
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Serialize for handing to a store or UI."""
        data = asdict(self)
        data["due_date"] = self.due_date.isoformat()
        return data


# =============================================================================
# Due Dates
# =============================================================================

def calculate_due_date(
    move_date: date,
    urgency_percentage: int,
    today: date | None = None,
) -> date:
    """
    Place a task on the timeline between today and move day.

    Higher urgency lands earlier: 90% urgency on a 50-day timeline is due in
    5 days, 10% urgency in 45. Moves today or in the past collapse to today.
    """
    today = today or date.today()
    total_days = (move_date - today).days
    if total_days <= 0:
        return today

    urgency = min(max(urgency_percentage, 0), 100)
    days_from_now = total_days * (100 - urgency) // 100
    return today + timedelta(days=days_from_now)


# =============================================================================
# Generator
# =============================================================================

class TaskGenerator:
    """Generates dated task records from catalog matches."""

    def __init__(
        self,
        matcher: CatalogMatcher,
        default_urgency_percentage: int = DEFAULT_URGENCY_PERCENTAGE,
    ):
        self.matcher = matcher
        self.default_urgency_percentage = default_urgency_percentage

    def generate_initial(
        self,
        answers: AnswerMap,
        move_date: date,
        today: date | None = None,
    ) -> list[UserTask]:
        """Tasks created when the main assessment completes."""
        today = today or date.today()

        tasks = [self._assessment_complete_task(today)]
        tasks.extend(self._mini_assessment_tasks(move_date, today))

        for definition in self.matcher.match_core(answers):
            tasks.append(self._from_definition(definition, move_date, today))

        logger.info(f"Generated {len(tasks)} total tasks ({len(MINI_ASSESSMENT_TASKS)} mini-assessments)")
        return tasks

    def generate_sub_tasks(
        self,
        parent_id: str,
        merged_answers: AnswerMap,
        move_date: date,
        today: date | None = None,
    ) -> list[UserTask]:
        """Sub-tasks unlocked by one mini-assessment."""
        today = today or date.today()
        tasks = [
            self._from_definition(
                definition, move_date, today, generated_from="mini-assessment-completion"
            )
            for definition in self.matcher.match_sub_tasks(parent_id, merged_answers)
        ]

        if not tasks:
            logger.info(f"No sub-tasks generated for '{parent_id}' (conditions not met or none defined)")
        return tasks

    def complete_mini_assessment(
        self,
        parent_id: str,
        core_answers: AnswerMap,
        mini_answers: AnswerMap,
        move_date: date,
        today: date | None = None,
    ) -> tuple[dict[str, AnswerValue], list[UserTask]]:
        """
        Merge a finished mini-assessment and generate its sub-tasks.

        Returns:
            (merged_answers, sub_tasks)
        """
        merged = merge_answers(core_answers, mini_answers)
        return merged, self.generate_sub_tasks(parent_id, merged, move_date, today)

    # -------------------------------------------------------------------------
    # Record builders
    # -------------------------------------------------------------------------

    def _from_definition(
        self,
        definition: Definition,
        move_date: date,
        today: date,
        generated_from: str = "assessment",
    ) -> UserTask:
        urgency = definition.urgency_percentage
        if urgency is None:
            urgency = self.default_urgency_percentage

        return UserTask(
            id=definition.id,
            title=definition.title,
            due_date=calculate_due_date(move_date, urgency, today),
            urgency_percentage=urgency,
            category=definition.category or "custom",
            is_sub_task=definition.is_sub_task,
            parent_task=definition.parent_task,
            generated_from=generated_from,
            details=dict(definition.metadata),
        )

    def _assessment_complete_task(self, today: date) -> UserTask:
        return UserTask(
            id=ASSESSMENT_COMPLETE_TASK_ID,
            title="Complete Moving Assessment",
            due_date=today,
            urgency_percentage=100,
            category="assessment",
            is_assessment_task=True,
        )

    def _mini_assessment_tasks(self, move_date: date, today: date) -> list[UserTask]:
        due = calculate_due_date(move_date, MINI_ASSESSMENT_URGENCY, today)
        return [
            UserTask(
                id=item["id"],
                title=item["title"],
                due_date=due,
                urgency_percentage=MINI_ASSESSMENT_URGENCY,
                category="address_change",
                workflow_id=item["id"],
                details={"desc": item["desc"], "icon": item["icon"]},
            )
            for item in MINI_ASSESSMENT_TASKS
        ]
