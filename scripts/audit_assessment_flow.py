"""Audit the assessment flow and task matching for a set of sample households."""
import sys
from datetime import date, timedelta

sys.path.insert(0, "src")

from peezy.assessment.nodes import InputNode
from peezy.assessment.sequencer import QuestionnaireSequencer
from peezy.assessment.steps import MOVING_ASSESSMENT
from peezy.eligibility.answers import derive_assessment_answers
from peezy.eligibility.catalog import CatalogMatcher
from peezy.eligibility.loader import load_task_catalog
from peezy.eligibility.tasks import TaskGenerator

HOUSEHOLDS = {
    "renter_apartment_local": {
        "raw": {
            "currentRentOrOwn": "Rent",
            "currentDwellingType": "Apartment",
            "newDwellingType": "Apartment",
            "currentFloorAccess": "Elevator",
            "hasStorage": "No",
            "hireMovers": "Get me quotes",
            "hireCleaners": "I'll clean myself",
            "fitnessWellness": ["Yoga"],
        },
        "distance": 8.0,
        "states": ("OR", "OR"),
    },
    "owner_house_interstate": {
        "raw": {
            "currentRentOrOwn": "Own",
            "currentDwellingType": "House",
            "newDwellingType": "Townhouse",
            "hasStorage": "Yes",
            "hasVehicles": "Yes",
            "AnyPets": "Yes",
            "childrenInSchool": "Yes",
            "hireMovers": "Hire professional movers",
            "financialInstitutions": ["Bank"],
        },
        "distance": 640.0,
        "states": ("CA", "WA"),
    },
}


def walk(answers):
    """Walk the whole sequence, checking progress and Back along the way."""
    sequencer = QuestionnaireSequencer(answers=answers)
    watermark = sequencer.state.watermark
    screens = 0

    while not sequencer.completed:
        state = sequencer.next(answers)
        screens += 1
        if state.watermark < watermark:
            print(f"   ! watermark dropped {watermark} -> {state.watermark}")
        watermark = state.watermark

    back = sequencer.back()
    if not isinstance(back.current_node, InputNode):
        print(f"   ! back landed on {back.current_node}")

    return screens, watermark


def audit():
    catalog = load_task_catalog()
    generator = TaskGenerator(CatalogMatcher(catalog))
    today = date.today()
    move_date = today + timedelta(days=45)

    print("=" * 60)
    print("ASSESSMENT FLOW AUDIT")
    print("=" * 60)
    print(f"Catalog: {len(catalog)} definitions, move in 45 days")

    for name, household in HOUSEHOLDS.items():
        print(f"\n[{name}]")
        answers = derive_assessment_answers(
            household["raw"],
            distance_miles=household["distance"],
            from_state=household["states"][0],
            to_state=household["states"][1],
        )

        steps = MOVING_ASSESSMENT.resolve_steps(answers)
        screens, watermark = walk(answers)
        print(f"   - Questions: {len(steps)} ({screens} screens walked, watermark {watermark})")
        print(f"   - moveDistance: {answers['moveDistance']}, isInterstate: {answers['isInterstate']}")

        tasks = generator.generate_initial(answers, move_date, today)
        catalog_tasks = [t for t in tasks if not t.is_assessment_task and t.workflow_id is None]
        print(f"   - Tasks: {len(tasks)} total")
        for task in catalog_tasks:
            print(f"       {task.due_date.isoformat()}  {task.id}")

    print("\nDone.")


if __name__ == "__main__":
    audit()
