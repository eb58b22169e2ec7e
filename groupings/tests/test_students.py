from datetime import timedelta

from django.test import TestCase

from assignments.models import SectionDueDate
from groupings.models import Group, Membership
from groupings.service_utils import students as student_service
from repositories.memory import MemoryRepository

from . import factories


class StudentGroupingTests(TestCase):
    def setUp(self):
        MemoryRepository.purge_all()
        self.addCleanup(MemoryRepository.purge_all)
        self.assignment = factories.create_assignment(group_max=2)
        self.student = factories.create_student("alice")

    def test_join_accepts_one_and_rejects_other_invitations(self):
        first = factories.create_grouping(self.assignment)
        second = factories.create_grouping(self.assignment)
        factories.add_student(first, self.student, status=Membership.Status.PENDING)
        factories.add_student(second, self.student, status=Membership.Status.PENDING)
        self.assertEqual(
            set(student_service.pending_groupings_for(self.student, self.assignment)),
            {first, second},
        )

        student_service.join(self.student, second)

        self.assertEqual(second.membership_status(self.student), Membership.Status.ACCEPTED)
        self.assertEqual(first.membership_status(self.student), Membership.Status.REJECTED)
        self.assertEqual(student_service.accepted_grouping_for(self.student, self.assignment), second)
        self.assertFalse(student_service.has_pending_groupings_for(self.student, self.assignment))

    def test_working_alone_uses_a_group_named_after_the_student(self):
        invitation = factories.create_grouping(self.assignment)
        factories.add_student(invitation, self.student, status=Membership.Status.PENDING)

        grouping = student_service.create_group_for_working_alone_student(
            self.student, self.assignment
        )

        self.assertEqual(grouping.group.group_name, "alice")
        self.assertTrue(grouping.is_inviter(self.student))
        self.assertIsNone(invitation.membership_status(self.student))

        other = factories.create_assignment()
        again = student_service.create_group_for_working_alone_student(self.student, other)
        self.assertEqual(again.group, grouping.group)
        self.assertEqual(Group.objects.filter(group_name="alice").count(), 1)

    def test_autogenerated_group(self):
        grouping = student_service.create_autogenerated_name_group(self.student, self.assignment)

        self.assertTrue(grouping.group.group_name.startswith("group_"))
        self.assertTrue(student_service.has_accepted_grouping_for(self.student, self.assignment))

    def test_due_date_for_assignment(self):
        section = factories.create_section()
        self.assignment.section_due_dates_type = True
        self.assignment.save()
        section_date = self.assignment.due_date + timedelta(days=1)
        SectionDueDate.objects.create(
            assignment=self.assignment, section=section, due_date=section_date
        )
        student = factories.create_student(section=section)

        self.assertEqual(student_service.due_date_for_assignment(student, self.assignment), section_date)
        self.assertEqual(
            student_service.due_date_for_assignment(self.student, self.assignment),
            self.assignment.due_date,
        )
