"""Test run creation and the per-grouping test run history.

History rows are flat: one row per test result, carrying the fields of its
test run, test group and test group result. :func:`group_hash_list` folds
them into one report per (test run, test group), which is what the result
tables consume. Which fields a viewer may see depends on who started the
run and on the test group's ``display_output`` setting.
"""
from __future__ import annotations

from typing import Iterable

from django.db.models import F, QuerySet

from accounts.models import Role
from autotest.models import TestGroup, TestRun

from ..models import Grouping

ROW_FIELDS = {
    "run_id": F("id"),
    "run_created_at": F("created_at"),
    "run_problems": F("problems"),
    "user_name": F("user__username"),
    "test_group_name": F("test_group_results__test_group__name"),
    "display_output": F("test_group_results__test_group__display_output"),
    "extra_info": F("test_group_results__extra_info"),
    "test_group_time": F("test_group_results__time"),
    "result_name": F("test_group_results__test_results__name"),
    "result_status": F("test_group_results__test_results__status"),
    "marks_earned": F("test_group_results__test_results__marks_earned"),
    "marks_total": F("test_group_results__test_results__marks_total"),
    "output": F("test_group_results__test_results__output"),
    "time": F("test_group_results__test_results__time"),
}

GROUP_BY_KEYS = ("run_id", "run_created_at", "run_problems", "user_name", "test_group_name")

# display_output values hiding test output from students
HIDDEN_FROM_STUDENTS_RELEASED = (
    TestGroup.DisplayOutput.INSTRUCTORS,
    TestGroup.DisplayOutput.INSTRUCTORS_AND_STUDENT_TESTS,
)
HIDDEN_FROM_STUDENTS_OWN_RUNS = (TestGroup.DisplayOutput.INSTRUCTORS,)


def create_test_run(
    grouping: Grouping,
    user=None,
    user_id: int | None = None,
    test_batch=None,
    submission=None,
) -> TestRun:
    """Create a test run against the latest revision of the grouping's repository."""
    if user_id is None and user is not None:
        user_id = user.pk
    if user_id is None:
        raise ValueError("A user is required to create a test run")
    with grouping.group.access_repo() as repo:
        revision_identifier = repo.get_latest_revision().revision_identifier
    return TestRun.objects.create(
        grouping=grouping,
        user_id=user_id,
        revision_identifier=revision_identifier,
        test_batch=test_batch,
        submission=submission,
    )


def filter_test_runs(grouping: Grouping, **filters) -> QuerySet:
    return TestRun.objects.filter(grouping=grouping, **filters).order_by("-created_at", "-id")


def pluck_test_runs(test_runs: QuerySet) -> list[dict]:
    """Flatten ``test_runs`` into one dict per test result.

    Runs without results still produce a row, with the result fields empty.
    """
    return list(
        test_runs.order_by(
            "-created_at",
            "-id",
            "test_group_results__id",
            "test_group_results__test_results__id",
        ).values(**ROW_FIELDS)
    )


def group_hash_list(rows: Iterable[dict]) -> list[dict]:
    """Fold flat rows into one report per test run and test group."""
    grouped: dict[tuple, list[dict]] = {}
    for row in rows:
        key = tuple(row[field] for field in GROUP_BY_KEYS)
        grouped.setdefault(key, []).append(row)

    reports = []
    for key, test_data in grouped.items():
        report = dict(zip(GROUP_BY_KEYS, key))
        report["test_data"] = test_data
        reports.append(report)

    statuses = TestRun.statuses(report["run_id"] for report in reports)
    for report in reports:
        report["status"] = statuses.get(report["run_id"])
    return reports


def _redact(rows: list[dict], hidden_output_policies) -> list[dict]:
    for row in rows:
        if row.get("display_output") in hidden_output_policies:
            row.pop("output", None)
        row.pop("extra_info", None)
    return rows


def _instructor_runs(grouping: Grouping, submission) -> QuerySet:
    return filter_test_runs(
        grouping, user__adminprofile__isnull=False, submission=submission
    )


def test_runs_instructors(grouping: Grouping, submission=None) -> list[dict]:
    """Instructor-started runs on ``submission``, with every field."""
    return group_hash_list(pluck_test_runs(_instructor_runs(grouping, submission)))


def test_runs_instructors_released(grouping: Grouping, submission=None) -> list[dict]:
    """Instructor-started runs on ``submission`` as shown to students."""
    rows = pluck_test_runs(_instructor_runs(grouping, submission))
    return group_hash_list(_redact(rows, HIDDEN_FROM_STUDENTS_RELEASED))


def test_runs_students(grouping: Grouping) -> list[dict]:
    """Runs started by the grouping's students, as shown to them."""
    rows = pluck_test_runs(filter_test_runs(grouping, user__in=grouping.accepted_students))
    return group_hash_list(_redact(rows, HIDDEN_FROM_STUDENTS_OWN_RUNS))


def test_runs_students_simple(grouping: Grouping) -> QuerySet:
    """Runs started by the grouping's students, newest first, without results."""
    return filter_test_runs(grouping, user__in=grouping.accepted_students)


def history(grouping: Grouping, viewer_role: str, submission=None, released: bool = False) -> list[dict]:
    """Return the test run reports ``viewer_role`` may see for ``grouping``."""
    if viewer_role == Role.STUDENT:
        return test_runs_students(grouping)
    if released:
        return test_runs_instructors_released(grouping, submission)
    return test_runs_instructors(grouping, submission)

