from datetime import timedelta

from django.test import TestCase
from django.utils import timezone
from rest_framework.exceptions import PermissionDenied

from groupings.models import Extension, Membership
from groupings.policies import GroupingPolicy
from repositories.memory import MemoryRepository

from . import factories


class GroupingPolicyTests(TestCase):
    def setUp(self):
        MemoryRepository.purge_all()
        self.addCleanup(MemoryRepository.purge_all)
        self.assignment = factories.create_assignment(
            group_max=2, due_date=timezone.now() + timedelta(days=2)
        )
        self.grouping = factories.create_grouping(self.assignment, test_tokens=1)
        self.student = factories.create_student()
        factories.add_inviter(self.grouping, self.student)

    def policy(self, user=None, now=None):
        return GroupingPolicy(user or self.student, self.grouping, now=now)

    def test_student_member_with_tokens_may_run_tests(self):
        self.assertTrue(self.policy().run_tests())

    def test_non_students_always_run_tests(self):
        self.grouping.test_tokens = 0
        later = self.assignment.due_date + timedelta(days=1)
        self.assertTrue(self.policy(factories.create_ta(), now=later).run_tests())
        self.assertTrue(self.policy(factories.create_admin(), now=later).run_tests())

    def test_run_tests_requirements(self):
        outsider = factories.create_student()
        self.assertFalse(self.policy(outsider).run_tests())

        pending = factories.add_student(self.grouping, status=Membership.Status.PENDING).user
        self.assertFalse(self.policy(pending).member())

        self.assertFalse(
            self.policy(now=self.assignment.due_date + timedelta(minutes=1)).run_tests()
        )

        self.grouping.test_tokens = 0
        self.assertFalse(self.policy().tokens_available())
        self.assignment.unlimited_tokens = True
        self.assertTrue(self.policy().tokens_available())

    def test_run_in_progress_blocks_students(self):
        factories.create_test_run(self.grouping, self.student)
        policy = self.policy()
        self.assertFalse(policy.not_in_progress())
        self.assertFalse(policy.run_tests())

    def test_invite_member(self):
        self.assertTrue(self.policy().invite_member())

        self.assignment.invalid_override = True
        self.assertFalse(self.policy().invite_member())
        self.assignment.invalid_override = False

        Extension.objects.create(grouping=self.grouping, time_delta=timedelta(days=1))
        self.assertFalse(self.policy().invite_member())

    def test_destroy_requires_no_submission(self):
        self.assertTrue(self.policy().destroy())

        factories.create_submission(self.grouping)

        self.assertTrue(self.policy().deletable_by())
        self.assertFalse(self.policy().destroy())

    def test_delete_rejected_is_for_the_inviter(self):
        self.assertTrue(self.policy().delete_rejected())
        self.assertFalse(self.policy(factories.create_student()).delete_rejected())

    def test_authorize(self):
        self.policy().authorize("run_tests")
        with self.assertRaises(PermissionDenied):
            self.policy(factories.create_student()).authorize("member")
        with self.assertRaises(ValueError):
            self.policy().authorize("authorize")
