from __future__ import annotations

from typing import Iterable

from django.conf import settings
from django.db import models
from django.utils import timezone


class TestBatch(models.Model):
    """A set of test runs enqueued together by an instructor."""

    __test__ = False  # keep pytest from collecting the model

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name_plural = "Test batches"

    def __str__(self) -> str:  # pragma: no cover - simple representation
        return f"Batch {self.pk}"


class TestGroup(models.Model):
    __test__ = False  # keep pytest from collecting the model

    class DisplayOutput(models.TextChoices):
        INSTRUCTORS = "instructors", "Instructors only"
        INSTRUCTORS_AND_STUDENT_TESTS = (
            "instructors_and_student_tests",
            "Instructors, and students for their own test runs",
        )
        INSTRUCTORS_AND_STUDENTS = "instructors_and_students", "Instructors and students"

    assignment = models.ForeignKey(
        "assignments.Assignment",
        on_delete=models.CASCADE,
        related_name="test_groups",
    )
    name = models.CharField(max_length=255)
    display_output = models.CharField(
        max_length=40,
        choices=DisplayOutput.choices,
        default=DisplayOutput.INSTRUCTORS,
    )
    run_by_instructors = models.BooleanField(default=True)
    run_by_students = models.BooleanField(default=False)

    class Meta:
        ordering = ("assignment", "id")
        unique_together = ("assignment", "name")

    def __str__(self) -> str:
        return f"{self.assignment}: {self.name}"


class TestRun(models.Model):
    """One execution of the automated tests against a grouping's repository."""

    __test__ = False  # keep pytest from collecting the model

    class Status(models.TextChoices):
        IN_PROGRESS = "in_progress", "In progress"
        COMPLETE = "complete", "Complete"
        PROBLEMS = "problems", "Problems"

    grouping = models.ForeignKey(
        "groupings.Grouping",
        on_delete=models.CASCADE,
        related_name="test_runs",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="test_runs",
    )
    submission = models.ForeignKey(
        "groupings.Submission",
        on_delete=models.CASCADE,
        related_name="test_runs",
        null=True,
        blank=True,
    )
    test_batch = models.ForeignKey(
        TestBatch,
        on_delete=models.SET_NULL,
        related_name="test_runs",
        null=True,
        blank=True,
    )
    revision_identifier = models.CharField(max_length=255)
    problems = models.TextField(blank=True)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ("-created_at", "-id")

    def __str__(self) -> str:  # pragma: no cover - simple representation
        return f"Test run {self.pk} for {self.grouping}"

    @classmethod
    def statuses(cls, test_run_ids: Iterable[int]) -> dict[int, str]:
        """Return the status of each test run id.

        A run that reported problems is ``problems``; a run with at least one
        test group result is ``complete``; anything else is still
        ``in_progress``.
        """
        ids = [run_id for run_id in test_run_ids if run_id is not None]
        rows = (
            cls.objects.filter(pk__in=ids)
            .annotate(result_count=models.Count("test_group_results"))
            .values_list("pk", "problems", "result_count")
        )
        statuses: dict[int, str] = {}
        for run_id, problems, result_count in rows:
            if problems:
                statuses[run_id] = cls.Status.PROBLEMS
            elif result_count:
                statuses[run_id] = cls.Status.COMPLETE
            else:
                statuses[run_id] = cls.Status.IN_PROGRESS
        return statuses

    def in_progress(self) -> bool:
        return self.statuses([self.pk]).get(self.pk) == self.Status.IN_PROGRESS


class TestGroupResult(models.Model):
    __test__ = False  # keep pytest from collecting the model

    test_run = models.ForeignKey(
        TestRun,
        on_delete=models.CASCADE,
        related_name="test_group_results",
    )
    test_group = models.ForeignKey(
        TestGroup,
        on_delete=models.CASCADE,
        related_name="test_group_results",
    )
    marks_earned = models.FloatField(default=0)
    marks_total = models.FloatField(default=0)
    time = models.BigIntegerField(null=True, blank=True, help_text="Run time in milliseconds")
    extra_info = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("test_run", "id")

    def __str__(self) -> str:  # pragma: no cover - simple representation
        return f"{self.test_group} ({self.marks_earned}/{self.marks_total})"


class TestResult(models.Model):
    __test__ = False  # keep pytest from collecting the model

    class Status(models.TextChoices):
        PASS = "pass", "Pass"
        PARTIAL = "partial", "Partial"
        FAIL = "fail", "Fail"
        ERROR = "error", "Error"
        ERROR_ALL = "error_all", "Error (all)"

    test_group_result = models.ForeignKey(
        TestGroupResult,
        on_delete=models.CASCADE,
        related_name="test_results",
    )
    name = models.CharField(max_length=255)
    status = models.CharField(max_length=20, choices=Status.choices)
    marks_earned = models.FloatField(default=0)
    marks_total = models.FloatField(default=0)
    output = models.TextField(blank=True)
    time = models.BigIntegerField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("test_group_result", "id")

    def __str__(self) -> str:  # pragma: no cover - simple representation
        return f"{self.name}: {self.status}"
