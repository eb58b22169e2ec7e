import pkgutil
from datetime import timedelta

from django.test import TestCase
from django.utils import timezone

from accounts.models import Role
from autotest.models import TestGroup, TestRun
from groupings import service_utils
from groupings.service_utils import run_history as test_run_service
from repositories.memory import MemoryRepository

from . import factories

Output = TestGroup.DisplayOutput


class TestRunHistoryTests(TestCase):
    def setUp(self):
        MemoryRepository.purge_all()
        self.addCleanup(MemoryRepository.purge_all)
        self.assignment = factories.create_assignment()
        self.grouping = factories.create_grouping(self.assignment)
        self.student = factories.create_student("alice")
        factories.add_inviter(self.grouping, self.student)
        self.admin = factories.create_admin("prof")
        self.submission = factories.create_submission(self.grouping)

        self.private = factories.create_test_group(
            self.assignment, name="private", display_output=Output.INSTRUCTORS
        )
        self.student_tests = factories.create_test_group(
            self.assignment,
            name="student_tests",
            display_output=Output.INSTRUCTORS_AND_STUDENT_TESTS,
        )
        self.public = factories.create_test_group(
            self.assignment, name="public", display_output=Output.INSTRUCTORS_AND_STUDENTS
        )
        self.now = timezone.now()

    def run_with_results(self, user, created_at, **run_values):
        run = factories.create_test_run(self.grouping, user, created_at=created_at, **run_values)
        for test_group in (self.private, self.student_tests, self.public):
            factories.add_results(
                run,
                test_group,
                [
                    {
                        "name": f"{test_group.name}_1",
                        "status": "pass",
                        "marks_earned": 1,
                        "marks_total": 1,
                        "output": "ok",
                    },
                    {
                        "name": f"{test_group.name}_2",
                        "status": "fail",
                        "marks_earned": 0,
                        "marks_total": 1,
                        "output": "expected 2",
                    },
                ],
                extra_info="stderr",
                marks_earned=1,
                marks_total=2,
            )
        return run

    def outputs_by_group(self, reports):
        return {
            report["test_group_name"]: ["output" in row for row in report["test_data"]]
            for report in reports
        }

    def test_reports_are_grouped_by_run_and_test_group(self):
        older = self.run_with_results(self.student, self.now - timedelta(hours=2))
        newer = self.run_with_results(self.student, self.now - timedelta(hours=1))

        reports = test_run_service.test_runs_students(self.grouping)

        self.assertEqual(len(reports), 6)
        self.assertEqual([report["run_id"] for report in reports[:3]], [newer.pk] * 3)
        self.assertEqual([report["run_id"] for report in reports[3:]], [older.pk] * 3)
        self.assertEqual(
            [report["test_group_name"] for report in reports[:3]],
            ["private", "student_tests", "public"],
        )
        first = reports[0]
        self.assertEqual(first["user_name"], "alice")
        self.assertEqual(first["status"], TestRun.Status.COMPLETE)
        self.assertEqual(
            [row["result_name"] for row in first["test_data"]], ["private_1", "private_2"]
        )

    def test_students_see_output_unless_instructor_only(self):
        self.run_with_results(self.student, self.now)

        reports = test_run_service.history(self.grouping, Role.STUDENT)

        self.assertEqual(
            self.outputs_by_group(reports),
            {
                "private": [False, False],
                "student_tests": [True, True],
                "public": [True, True],
            },
        )
        for report in reports:
            for row in report["test_data"]:
                self.assertNotIn("extra_info", row)

    def test_students_do_not_see_instructor_runs(self):
        self.run_with_results(self.admin, self.now, submission=self.submission)

        self.assertEqual(test_run_service.test_runs_students(self.grouping), [])

    def test_instructors_see_everything(self):
        run = self.run_with_results(self.admin, self.now, submission=self.submission)
        self.run_with_results(self.student, self.now)

        reports = test_run_service.history(self.grouping, Role.ADMIN, submission=self.submission)

        self.assertEqual({report["run_id"] for report in reports}, {run.pk})
        self.assertEqual(
            self.outputs_by_group(reports),
            {
                "private": [True, True],
                "student_tests": [True, True],
                "public": [True, True],
            },
        )
        self.assertEqual(reports[0]["test_data"][0]["extra_info"], "stderr")

    def test_released_instructor_runs_hide_output(self):
        self.run_with_results(self.admin, self.now, submission=self.submission)

        reports = test_run_service.history(
            self.grouping, Role.TA, submission=self.submission, released=True
        )

        self.assertEqual(
            self.outputs_by_group(reports),
            {
                "private": [False, False],
                "student_tests": [False, False],
                "public": [True, True],
            },
        )
        for report in reports:
            for row in report["test_data"]:
                self.assertNotIn("extra_info", row)

    def test_runs_without_results_are_listed(self):
        pending = factories.create_test_run(self.grouping, self.student, created_at=self.now)
        broken = factories.create_test_run(
            self.grouping,
            self.student,
            created_at=self.now - timedelta(minutes=1),
            problems="timeout",
        )

        reports = test_run_service.test_runs_students(self.grouping)

        self.assertEqual([report["run_id"] for report in reports], [pending.pk, broken.pk])
        self.assertIsNone(reports[0]["test_group_name"])
        self.assertEqual(reports[0]["status"], TestRun.Status.IN_PROGRESS)
        self.assertEqual(reports[1]["status"], TestRun.Status.PROBLEMS)
        self.assertEqual(reports[1]["run_problems"], "timeout")
        self.assertIsNone(reports[0]["test_data"][0]["result_name"])

    def test_simple_student_runs_are_newest_first(self):
        older = factories.create_test_run(
            self.grouping, self.student, created_at=self.now - timedelta(days=1)
        )
        newer = factories.create_test_run(self.grouping, self.student, created_at=self.now)
        factories.create_test_run(self.grouping, self.admin, created_at=self.now)

        self.assertEqual(
            list(test_run_service.test_runs_students_simple(self.grouping)), [newer, older]
        )


class CreateTestRunTests(TestCase):
    def setUp(self):
        MemoryRepository.purge_all()
        self.addCleanup(MemoryRepository.purge_all)
        self.grouping = factories.create_grouping()
        self.student = factories.create_student()

    def test_uses_latest_revision(self):
        with self.grouping.group.access_repo() as repo:
            txn = repo.get_transaction(self.student.username, "work")
            txn.add(f"{self.grouping.assignment.repository_folder}/main.py", "print()")
            repo.commit(txn)
            latest = repo.get_latest_revision().revision_identifier

        run = test_run_service.create_test_run(self.grouping, user=self.student)

        self.assertEqual(run.revision_identifier, latest)
        self.assertEqual(run.user, self.student)
        self.assertTrue(run.in_progress())

    def test_accepts_user_id(self):
        run = test_run_service.create_test_run(self.grouping, user_id=self.student.pk)
        self.assertEqual(run.user_id, self.student.pk)

    def test_requires_a_user(self):
        with self.assertRaises(ValueError):
            test_run_service.create_test_run(self.grouping)


class ServiceModuleNamesTests(TestCase):
    def test_service_modules_do_not_look_like_test_modules(self):
        names = [module.name for module in pkgutil.iter_modules(service_utils.__path__)]

        self.assertIn("run_history", names)
        self.assertEqual([name for name in names if name.startswith("test")], [])
