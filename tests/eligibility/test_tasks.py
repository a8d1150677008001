"""
Tests for task generation and due-date placement.
"""

from datetime import date, timedelta

import pytest

from peezy.eligibility.catalog import CatalogMatcher, Definition
from peezy.eligibility.tasks import (
    ASSESSMENT_COMPLETE_TASK_ID,
    MINI_ASSESSMENT_TASKS,
    MINI_ASSESSMENT_URGENCY,
    TaskGenerator,
    UserTask,
    calculate_due_date,
)


class TestCalculateDueDate:
    """Higher urgency lands closer to today."""

    TODAY = date(2026, 1, 1)
    MOVE = date(2026, 2, 20)  # 50 days out

    @pytest.mark.parametrize(
        "urgency,days",
        [(90, 5), (10, 45), (50, 25), (100, 0), (0, 50), (85, 7)],
    )
    def test_spread(self, urgency, days):
        assert calculate_due_date(self.MOVE, urgency, self.TODAY) == self.TODAY + timedelta(days=days)

    def test_past_move_is_due_today(self):
        assert calculate_due_date(date(2025, 12, 1), 10, self.TODAY) == self.TODAY

    def test_move_today_is_due_today(self):
        assert calculate_due_date(self.TODAY, 10, self.TODAY) == self.TODAY

    def test_urgency_clamped(self):
        assert calculate_due_date(self.MOVE, 150, self.TODAY) == self.TODAY
        assert calculate_due_date(self.MOVE, -20, self.TODAY) == self.MOVE

    def test_never_before_today(self):
        for urgency in range(0, 101, 5):
            assert calculate_due_date(self.MOVE, urgency, self.TODAY) >= self.TODAY


class TestGenerateInitial:
    """Assessment task, then mini-assessments, then core matches."""

    @pytest.fixture
    def generator(self):
        return TaskGenerator(CatalogMatcher([
            Definition(id="BOOK_MOVERS", title="Book movers", conditions={"hireMovers": ["Yes"]},
                       urgency_percentage=90, category="logistics"),
            Definition(id="FORWARD_MAIL", title="Forward mail"),
            Definition(id="BOOK_CLEANERS", conditions={"hireCleaners": ["Yes"]}),
            Definition(id="CANCEL_YOGA", is_sub_task=True, parent_task="address_change_fitness",
                       conditions={"fitnessWellness": ["Yoga"]}),
        ]))

    def test_task_order(self, generator, core_answers, today):
        tasks = generator.generate_initial(core_answers, date(2026, 3, 1), today)
        ids = [t.id for t in tasks]

        assert ids[0] == ASSESSMENT_COMPLETE_TASK_ID
        assert ids[1:7] == [item["id"] for item in MINI_ASSESSMENT_TASKS]
        assert ids[7:] == ["BOOK_MOVERS", "FORWARD_MAIL"]

    def test_assessment_task(self, generator, core_answers, today):
        task = generator.generate_initial(core_answers, date(2026, 3, 1), today)[0]
        assert task.urgency_percentage == 100
        assert task.due_date == today
        assert task.is_assessment_task is True

    def test_mini_assessment_tasks(self, generator, core_answers, today):
        move = today + timedelta(days=100)
        minis = generator.generate_initial(core_answers, move, today)[1:7]
        for task in minis:
            assert task.urgency_percentage == MINI_ASSESSMENT_URGENCY
            assert task.due_date == today + timedelta(days=15)
            assert task.workflow_id == task.id
            assert task.category == "address_change"

    def test_catalog_urgency_and_default(self, generator, core_answers, today):
        move = today + timedelta(days=100)
        tasks = {t.id: t for t in generator.generate_initial(core_answers, move, today)}

        assert tasks["BOOK_MOVERS"].urgency_percentage == 90
        assert tasks["BOOK_MOVERS"].due_date == today + timedelta(days=10)
        assert tasks["BOOK_MOVERS"].category == "logistics"
        assert tasks["FORWARD_MAIL"].urgency_percentage == 50
        assert tasks["FORWARD_MAIL"].category == "custom"

    def test_custom_default_urgency(self, core_answers, today):
        generator = TaskGenerator(CatalogMatcher([Definition(id="X")]), default_urgency_percentage=20)
        task = generator.generate_initial(core_answers, today + timedelta(days=10), today)[-1]
        assert task.urgency_percentage == 20
        assert task.due_date == today + timedelta(days=8)


class TestMiniAssessmentCompletion:
    """Merged answers unlock sub-tasks of one parent."""

    def test_complete_mini_assessment(self, pet_matcher, today):
        generator = TaskGenerator(pet_matcher)
        core = {"AnyPets": "Yes"}
        mini = {"MoveDistance": "Long Distance", "taskId": "PET_OPTIONS", "completedAt": "2026-01-02"}

        merged, tasks = generator.complete_mini_assessment(
            "PET_OPTIONS", core, mini, today + timedelta(days=30), today
        )

        assert merged == {"AnyPets": "Yes", "MoveDistance": "Long Distance"}
        assert [t.id for t in tasks] == ["SETUP_VET"]
        assert tasks[0].is_sub_task is True
        assert tasks[0].parent_task == "PET_OPTIONS"
        assert tasks[0].generated_from == "mini-assessment-completion"

    def test_no_sub_tasks(self, pet_matcher, today):
        generator = TaskGenerator(pet_matcher)
        tasks = generator.generate_sub_tasks("PET_OPTIONS", {"AnyPets": "No"}, today, today)
        assert tasks == []

    def test_inputs_not_mutated(self, pet_matcher, today):
        generator = TaskGenerator(pet_matcher)
        core = {"AnyPets": "Yes"}
        mini = {"MoveDistance": "Local"}
        generator.complete_mini_assessment("PET_OPTIONS", core, mini, today, today)
        assert core == {"AnyPets": "Yes"}
        assert mini == {"MoveDistance": "Local"}


class TestUserTask:
    def test_to_dict(self):
        task = UserTask(id="X", title="Do X", due_date=date(2026, 1, 5), urgency_percentage=40)
        data = task.to_dict()
        assert data["due_date"] == "2026-01-05"
        assert data["status"] == "Upcoming"
        assert data["details"] == {}
