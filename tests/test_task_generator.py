"""
Tests for the Task Generator: rules, due dates, the per-university duplicate
guard and failure handling
"""
import logging
import pytest
from datetime import date
from unittest.mock import patch
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.models import TaskStatus
from app.services.errors import NotFound
from app.services.record_store import UniversityStore
from app.services.task_generator import TaskGenerator, compute_due_date, relevant_kinds


@pytest.fixture
def generator(db):
    return TaskGenerator(db, lead_days=30)


class TestGenerateForUniversity:
    """Fresh-batch generation for a single university"""

    def test_sat_and_recommendations_scenario(self, generator, stanford, profile_store):
        """SAT avg 1500 + 2 letters, no SAT score and 1 letter -> exactly two tasks"""
        profile_store.update({"recommendations_count": 1})

        tasks = generator.generate_for_university(stanford.id)

        assert len(tasks) == 2
        sat_task, recs_task = tasks
        assert "Take SAT" in sat_task.title
        assert sat_task.priority == "high"
        assert sat_task.profile_item_type == "satActual"
        assert "Request recommendation letters" in recs_task.title
        assert recs_task.priority == "high"
        assert recs_task.profile_item_type == "recommendationsCount"
        assert all(t.status == TaskStatus.SUGGESTED.value for t in tasks)
        assert all(t.university_id == stanford.id for t in tasks)

    def test_descriptions_carry_concrete_numbers(self, generator, stanford, profile_store):
        profile_store.update({"recommendations_count": 1})
        sat_task, recs_task = generator.generate_for_university(stanford.id)
        assert "(avg: 1500)" in sat_task.description
        assert "Stanford University" in sat_task.description
        assert "requires 2 recommendation letter(s)" in recs_task.description
        assert "You currently have 1" in recs_task.description

    def test_no_requirements_means_no_tasks(self, generator, make_university):
        university = make_university(name="PMU")
        assert generator.generate_for_university(university.id) == []

    def test_missing_university_raises_not_found(self, generator):
        with pytest.raises(NotFound):
            generator.generate_for_university(9999)

    def test_profile_created_lazily(self, generator, stanford, profile_store):
        assert profile_store.get() is None
        generator.generate_for_university(stanford.id)
        profile = profile_store.get()
        assert profile is not None
        assert profile.transcript_status == "missing"
        assert profile.recommendations_count == 0
        assert profile.statement_status == "not_started"

    def test_repeated_direct_calls_duplicate_batch(self, generator, stanford):
        first = generator.generate_for_university(stanford.id)
        second = generator.generate_for_university(stanford.id)
        assert len(first) == len(second) == 2
        assert {t.id for t in first}.isdisjoint({t.id for t in second})

    def test_retake_when_below_minimum(self, generator, make_university, profile_store):
        university = make_university(name="MIT", sat_min=1500)
        profile_store.update({"sat_actual": 1400})
        tasks = generator.generate_for_university(university.id)
        assert len(tasks) == 1
        assert tasks[0].title == "Retake SAT for MIT"
        assert tasks[0].profile_item_type == "satActual"
        assert "(1400)" in tasks[0].description

    def test_average_only_sat_never_asks_for_retake(self, generator, stanford, profile_store):
        profile_store.update({"sat_actual": 1400, "recommendations_count": 2})
        assert generator.generate_for_university(stanford.id) == []

    def test_english_test_defaults_to_required_test(self, generator, make_university):
        oxford = make_university(name="Oxford University", ielts_min=7.0)
        (task,) = generator.generate_for_university(oxford.id)
        assert task.title == "Take English Proficiency Test for Oxford University"
        assert task.profile_item_type == "ieltsScore"
        assert "requires IELTS (min: 7)" in task.description

    def test_toefl_only_requirement(self, generator, make_university):
        university = make_university(name="UCLA", toefl_min=100)
        (task,) = generator.generate_for_university(university.id)
        assert task.profile_item_type == "toeflScore"
        assert "requires TOEFL (min: 100)" in task.description

    def test_any_english_score_satisfies(self, generator, make_university, profile_store):
        university = make_university(name="UCLA", toefl_min=100)
        profile_store.update({"ielts_score": 6.0})
        assert generator.generate_for_university(university.id) == []

    def test_transcripts_essays_interview(self, generator, make_university):
        university = make_university(
            name="Oxford University",
            transcripts_required=True,
            essays_required=1,
            interview_required=True,
        )
        tasks = generator.generate_for_university(university.id)
        by_type = {t.profile_item_type: t for t in tasks}
        assert set(by_type) == {"transcriptStatus", "statementStatus", None}
        assert by_type["transcriptStatus"].priority == "high"
        assert by_type["statementStatus"].priority == "medium"
        assert by_type[None].title == "Prepare for interview at Oxford University"
        assert by_type[None].priority == "medium"

    def test_progress_suppresses_rules(self, generator, make_university, profile_store):
        university = make_university(transcripts_required=True, essays_required=2)
        profile_store.update({"transcript_status": "requested", "statement_status": "drafting"})
        assert generator.generate_for_university(university.id) == []

    @pytest.mark.parametrize("fields, expected", [
        ({"sat_avg": 1500}, "satActual"),
        ({"sat_min": 1500}, "satActual"),
        ({"ielts_avg": 7.5}, "ieltsScore"),
        ({"toefl_min": 90}, "toeflScore"),
        ({"transcripts_required": True}, "transcriptStatus"),
        ({"rec_letters_required": 3}, "recommendationsCount"),
        ({"essays_required": 1}, "statementStatus"),
        ({"interview_required": True}, None),
    ])
    def test_profile_item_type_maps_to_checked_field(self, generator, make_university, fields, expected):
        university = make_university(**fields)
        (task,) = generator.generate_for_university(university.id)
        assert task.profile_item_type == expected

    def test_application_fee_alone_generates_nothing(self, generator, make_university):
        university = make_university(application_fee=90, fee_waiver_available=True)
        assert university.requirements.is_required("applicationFee")
        assert generator.generate_for_university(university.id) == []


class TestDueDates:

    def test_early_deadline_minus_thirty_days(self, generator, stanford):
        tasks = generator.generate_for_university(stanford.id)
        assert {t.due_date for t in tasks} == {date(2026, 10, 2)}

    def test_earliest_of_early_and_regular(self, make_university):
        university = make_university(
            deadline_early=date(2026, 11, 1),
            deadline_regular=date(2026, 10, 15),
        )
        assert compute_due_date(university, 30) == date(2026, 9, 15)

    def test_transfer_deadline_is_ignored(self, generator, make_university):
        university = make_university(sat_avg=1400, deadline_transfer=date(2026, 12, 1))
        (task,) = generator.generate_for_university(university.id)
        assert task.due_date is None

    def test_no_deadline_no_due_date(self, generator, make_university):
        university = make_university(sat_avg=1400)
        (task,) = generator.generate_for_university(university.id)
        assert task.due_date is None

    def test_lead_days_configurable(self, db, make_university):
        university = make_university(sat_avg=1400, deadline_regular=date(2027, 1, 5))
        (task,) = TaskGenerator(db, lead_days=14).generate_for_university(university.id)
        assert task.due_date == date(2026, 12, 22)


class TestRequirementsQuirks:

    def test_malformed_requirements_treated_as_empty(self, db, generator, stanford):
        db.execute(
            text("UPDATE universities SET requirements = :raw WHERE id = :id"),
            {"raw": "{not json", "id": stanford.id},
        )
        db.commit()
        db.expire_all()

        assert generator.generate_for_university(stanford.id) == []

    def test_flat_field_edit_does_not_resync_requirements(self, db, generator, stanford, profile_store):
        """Known quirk: requirements are derived once at creation time"""
        UniversityStore(db).update(stanford.id, {"sat_min": 1600})
        profile_store.update({"sat_actual": 1550, "recommendations_count": 2})

        # 1550 < 1600 but the stored mapping has no minimum, so no retake task
        assert generator.generate_for_university(stanford.id) == []


class TestGenerateForProfileUpdate:
    """Incremental regeneration and the coarse per-university duplicate guard"""

    def test_no_profile_is_noop(self, generator, stanford, profile_store):
        assert generator.generate_for_profile_update(["satActual"]) == []
        assert profile_store.get() is None

    def test_unrelated_field_generates_nothing(self, generator, stanford, profile_store):
        profile_store.update({"fee_budget": 500})
        assert generator.generate_for_profile_update(["feeBudget", "satTarget"]) == []

    def test_field_not_required_by_university_skips_it(self, generator, stanford, profile_store):
        profile_store.update({"transcript_status": "requested"})
        assert generator.generate_for_profile_update(["transcriptStatus"]) == []

    def test_second_identical_call_creates_nothing(self, generator, stanford, profile_store):
        profile_store.update({"recommendations_count": 1})

        first = generator.generate_for_profile_update(["recommendationsCount"])
        second = generator.generate_for_profile_update(["recommendationsCount"])

        assert len(first) == 2
        assert second == []

    def test_outstanding_suggestion_blocks_then_regenerates(
        self, generator, stanford, profile_store, task_store
    ):
        profile_store.update({"recommendations_count": 1})
        sat_task, recs_task = generator.generate_for_university(stanford.id)

        profile_store.update({"sat_actual": 1550})
        assert generator.generate_for_profile_update(["satActual"]) == []

        # Triage: SAT task done, recommendation suggestion dismissed
        task_store.update(sat_task.id, {"status": "done"})
        task_store.delete(recs_task.id)

        regenerated = generator.generate_for_profile_update(["satActual"])
        assert len(regenerated) == 1
        assert "Request recommendation letters" in regenerated[0].title
        assert regenerated[0].profile_item_type == "recommendationsCount"

    def test_todo_tasks_do_not_block(self, generator, stanford, profile_store, task_store):
        profile_store.update({"recommendations_count": 1})
        for task in generator.generate_for_university(stanford.id):
            task_store.update(task.id, {"status": "todo"})

        assert len(generator.generate_for_profile_update(["satActual"])) == 2

    def test_guard_is_per_university(self, generator, stanford, make_university, profile_store):
        kaust = make_university(name="KAUST", sat_avg=1400)
        profile_store.get_or_create()
        generator.generate_for_university(stanford.id)

        created = generator.generate_for_profile_update(["satActual"])
        assert [t.university_id for t in created] == [kaust.id]

    def test_snake_case_field_names_accepted(self, generator, stanford, profile_store):
        profile_store.get_or_create()
        assert len(generator.generate_for_profile_update(["sat_actual"])) == 2

    def test_english_fields_cover_both_tests(self):
        assert relevant_kinds(["toeflScore"]) == {"ielts", "toefl"}
        assert relevant_kinds(["ieltsScore"]) == {"ielts", "toefl"}
        assert relevant_kinds(["feeBudget"]) == set()


class TestSideEffectGeneration:
    """Generation triggered by another operation never raises"""

    def test_store_failure_is_logged_and_swallowed(self, generator, stanford, caplog):
        with patch.object(generator.tasks, "create", side_effect=SQLAlchemyError("disk full")):
            with caplog.at_level(logging.ERROR):
                result = generator.generate_after_university_create(stanford.id)

        assert result == []
        assert "Task generation failed after university create" in caplog.text

    def test_missing_university_is_swallowed(self, generator):
        assert generator.generate_after_university_create(9999) == []

    def test_profile_update_failure_is_swallowed(self, generator, stanford, profile_store):
        profile_store.get_or_create()
        with patch.object(generator, "generate_for_university", side_effect=RuntimeError("boom")):
            assert generator.generate_after_profile_update(["satActual"]) == []
