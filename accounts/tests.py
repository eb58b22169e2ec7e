from django.test import TestCase

from accounts import services
from accounts.models import Role, StudentProfile, role_of, section_of
from groupings.models import GracePeriodDeduction
from groupings.tests import factories
from repositories.memory import MemoryRepository


class RoleTests(TestCase):
    def test_roles(self):
        self.assertEqual(role_of(factories.create_student()), Role.STUDENT)
        self.assertEqual(role_of(factories.create_ta()), Role.TA)
        self.assertEqual(role_of(factories.create_admin()), Role.ADMIN)
        self.assertIsNone(role_of(factories.create_user()))

    def test_section_of(self):
        section = factories.create_section("L0101")
        self.assertEqual(section_of(factories.create_student(section=section)), section)
        self.assertIsNone(section_of(factories.create_ta()))


class StudentServicesTests(TestCase):
    def setUp(self):
        MemoryRepository.purge_all()
        self.addCleanup(MemoryRepository.purge_all)
        self.student = factories.create_student(grace_credits=3)

    def test_give_grace_credits_never_goes_negative(self):
        services.give_grace_credits([self.student.pk], 2)
        self.assertEqual(StudentProfile.objects.get(user=self.student).grace_credits, 5)

        services.give_grace_credits([self.student.pk], -10)
        self.assertEqual(StudentProfile.objects.get(user=self.student).grace_credits, 0)

    def test_remaining_grace_credits(self):
        grouping = factories.create_grouping()
        membership = factories.add_inviter(grouping, self.student)
        GracePeriodDeduction.objects.create(membership=membership, deduction=2)

        self.assertEqual(services.remaining_grace_credits(self.student), 1)
        self.assertEqual(grouping.available_grace_credits(), 1)

    def test_hiding_students_rebuilds_permissions(self):
        grouping = factories.create_grouping(factories.create_assignment(vcs_submit=True))
        factories.add_inviter(grouping, self.student)

        with self.captureOnCommitCallbacks(execute=True):
            services.hide_students([self.student.pk])
        self.assertNotIn(grouping.group.repo_name, MemoryRepository.permissions)

        with self.captureOnCommitCallbacks(execute=True):
            services.unhide_students([self.student.pk])
        self.assertEqual(
            MemoryRepository.permissions[grouping.group.repo_name], [self.student.username]
        )
