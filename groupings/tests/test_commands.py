from io import StringIO

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from groupings.models import Membership
from repositories.memory import MemoryRepository

from . import factories


class AssignTasCommandTests(TestCase):
    def setUp(self):
        MemoryRepository.purge_all()
        self.addCleanup(MemoryRepository.purge_all)
        self.assignment = factories.create_assignment(short_identifier="A1")
        self.groupings = [factories.create_grouping(self.assignment) for _ in range(4)]
        self.tas = [factories.create_ta(f"ta{index}") for index in range(2)]

    def ta_memberships(self):
        return Membership.objects.filter(membership_type=Membership.Type.TA)

    def test_random_strategy_assigns_one_ta_per_grouping(self):
        out = StringIO()

        call_command("assign_tas", "--assignment", "A1", stdout=out)

        self.assertIn("Assigned 4 TA memberships for A1", out.getvalue())
        self.assertEqual(self.ta_memberships().count(), 4)
        self.assertEqual(
            sorted(self.ta_memberships().values_list("grouping_id", flat=True)),
            sorted(grouping.pk for grouping in self.groupings),
        )

    def test_all_strategy_with_selected_tas_and_groupings(self):
        call_command(
            "assign_tas",
            "--assignment",
            "A1",
            "--strategy",
            "all",
            "--ta",
            "ta0",
            "--ta",
            str(self.tas[1].pk),
            "--grouping",
            str(self.groupings[0].pk),
            stdout=StringIO(),
        )

        self.assertEqual(
            set(self.ta_memberships().values_list("grouping_id", "user_id")),
            {(self.groupings[0].pk, ta.pk) for ta in self.tas},
        )

    def test_unknown_assignment(self):
        with self.assertRaises(CommandError) as ctx:
            call_command("assign_tas", "--assignment", "missing")
        self.assertEqual(str(ctx.exception), "Assignment not found")
        self.assertIsNone(ctx.exception.__cause__)
        self.assertTrue(ctx.exception.__suppress_context__)

    def test_no_tas(self):
        with self.assertRaises(CommandError):
            call_command("assign_tas", "--assignment", "A1", "--ta", "nobody")
