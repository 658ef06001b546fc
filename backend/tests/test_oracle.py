import time

from jadwal.schemas.schedule import GradePlan, StudyPlan
from jadwal.services.oracle import GreedyOracle, TimeoutOracle, unavailable_teachers

from factories import FIRST_A, SECOND, SECOND_A, ScriptedOracle, make_classes, make_study_plans, make_teachers, period


def second_grade_context(**overrides):
    classes = make_classes()
    context = {
        "day": "Sunday",
        "grade": SECOND,
        "classes_in_grade": [item for item in classes if item.stage == SECOND],
        "todays_prior_assignments": [period(1), period(2)],
        "teacher_roster": make_teachers(),
        "study_plans": make_study_plans(),
        "todays_total_periods": 2,
        "grade_target_periods": 2,
        "school_level": "Intermediate",
        "prior_days_schedule": {},
        "all_classes": classes,
        "unavailability": {},
    }
    context.update(overrides)
    return context


def test_greedy_fills_each_period_once_without_repeating_subjects():
    result = GreedyOracle(["Mathematics", "Arabic"]).generate(**second_grade_context())

    assert [row.period for row in result] == [1, 2]
    subjects = [row.assignments[SECOND_A].subject for row in result]
    assert len(set(subjects)) == 2
    assert subjects[0] in {"Mathematics", "Arabic"}


def test_greedy_skips_teachers_busy_in_the_same_period():
    busy = [period(1, {FIRST_A: ("Mathematics", "Khalid")}), period(2, {FIRST_A: ("Arabic", "Omar")})]

    result = GreedyOracle().generate(**second_grade_context(todays_prior_assignments=busy))

    assert result[0].assignments[SECOND_A].teacher != "Khalid"
    assert result[1].assignments[SECOND_A].teacher != "Omar"


def test_greedy_respects_unavailability_by_id_or_name():
    for reference in ("t6", "Omar"):
        result = GreedyOracle().generate(**second_grade_context(unavailability={reference: {"Sunday"}}))

        assert all(row.assignments[SECOND_A].teacher != "Omar" for row in result)


def test_greedy_counts_lessons_already_taught_this_week():
    prior = {"Sunday": [period(1, {SECOND_A: ("Mathematics", "Khalid")}), period(2, {SECOND_A: ("Mathematics", "Khalid")})]}

    result = GreedyOracle(["Mathematics"]).generate(
        **second_grade_context(day="Monday", prior_days_schedule=prior)
    )

    assert all(row.assignments[SECOND_A].subject != "Mathematics" for row in result)


def test_greedy_returns_none_when_a_period_cannot_be_filled():
    plans = {"Intermediate": StudyPlan(grades={SECOND: GradePlan(subjects={"Science": 2})})}

    result = GreedyOracle().generate(
        **second_grade_context(study_plans=plans, unavailability={"Omar": {"Sunday"}})
    )

    assert result is None


def test_greedy_returns_none_without_grade_plan():
    assert GreedyOracle().generate(**second_grade_context(study_plans={})) is None


def test_unavailable_teachers_only_lists_that_day():
    blocked = unavailable_teachers("Monday", make_teachers(), {"t1": {"Monday"}, "Sara": {"Sunday"}})

    assert blocked == {"Ahmed"}


class SlowOracle:
    def generate(self, **context):
        time.sleep(0.5)
        return [period(1)]


def test_timeout_oracle_gives_up_on_slow_calls():
    assert TimeoutOracle(SlowOracle(), 0.05).generate(**second_grade_context()) is None


def test_timeout_oracle_passes_fast_results_through():
    inner = ScriptedOracle()

    result = TimeoutOracle(inner, 5).generate(**second_grade_context())

    assert [row.period for row in result] == [1, 2]
    assert len(inner.calls) == 1
