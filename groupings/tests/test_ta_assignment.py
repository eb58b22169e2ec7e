import random
from unittest import mock

from django.db import DatabaseError
from django.test import TestCase

from groupings.models import Membership
from groupings.service_utils import ta_assignment
from repositories.memory import MemoryRepository

from . import factories


class TaAssignmentTests(TestCase):
    def setUp(self):
        MemoryRepository.purge_all()
        self.addCleanup(MemoryRepository.purge_all)

        self.assignment = factories.create_assignment(group_max=3)
        self.first_criterion = factories.create_criterion(self.assignment, name="style")
        self.second_criterion = factories.create_criterion(self.assignment, name="tests")
        self.ta1 = factories.create_ta("ta1")
        self.ta2 = factories.create_ta("ta2")
        factories.associate_ta(self.ta1, self.first_criterion)
        factories.associate_ta(self.ta2, self.first_criterion)
        factories.associate_ta(self.ta2, self.second_criterion)
        self.groupings = [factories.create_grouping(self.assignment) for _ in range(3)]
        self.grouping_ids = [grouping.pk for grouping in self.groupings]

    def ta_pairs(self):
        return set(
            Membership.objects.filter(membership_type=Membership.Type.TA).values_list(
                "grouping_id", "user_id"
            )
        )

    def test_assign_all_is_idempotent(self):
        ta_ids = [self.ta1.pk, self.ta2.pk]
        created = ta_assignment.assign_all_tas(self.grouping_ids, ta_ids, self.assignment)
        pairs = self.ta_pairs()

        again = ta_assignment.assign_all_tas(self.grouping_ids, ta_ids, self.assignment)

        self.assertEqual(created, 6)
        self.assertEqual(again, 0)
        self.assertEqual(self.ta_pairs(), pairs)
        self.assertEqual(len(pairs), 6)

    def test_random_assignment_gives_each_grouping_one_ta(self):
        created = ta_assignment.randomly_assign_tas(
            self.grouping_ids,
            [self.ta1.pk, self.ta2.pk],
            self.assignment,
            rng=random.Random(0),
        )

        self.assertEqual(created, 3)
        pairs = self.ta_pairs()
        self.assertEqual(sorted(grouping_id for grouping_id, _ in pairs), sorted(self.grouping_ids))
        per_ta = sorted(
            sum(1 for _, ta_id in pairs if ta_id == ta.pk) for ta in (self.ta1, self.ta2)
        )
        self.assertEqual(per_ta, [1, 2])

    def test_random_assignment_is_reproducible_with_seeded_rng(self):
        ta_ids = [self.ta1.pk, self.ta2.pk]
        ta_assignment.randomly_assign_tas(
            self.grouping_ids, ta_ids, self.assignment, rng=random.Random(42)
        )
        first = self.ta_pairs()
        Membership.objects.filter(membership_type=Membership.Type.TA).delete()

        ta_assignment.randomly_assign_tas(
            self.grouping_ids, ta_ids, self.assignment, rng=random.Random(42)
        )

        self.assertEqual(self.ta_pairs(), first)

    def test_unknown_ids_are_ignored(self):
        student = factories.create_student()
        other_grouping = factories.create_grouping()

        created = ta_assignment.assign_all_tas(
            [self.groupings[0].pk, other_grouping.pk, 999999],
            [self.ta1.pk, student.pk, 999999],
            self.assignment,
        )

        self.assertEqual(created, 1)
        self.assertEqual(self.ta_pairs(), {(self.groupings[0].pk, self.ta1.pk)})

    def test_custom_pairs(self):
        created = ta_assignment.assign_ta_pairs(
            [(self.groupings[0].pk, self.ta2.pk), (self.groupings[1].pk, self.ta1.pk)],
            self.assignment,
        )

        self.assertEqual(created, 2)
        self.assertEqual(
            self.ta_pairs(),
            {(self.groupings[0].pk, self.ta2.pk), (self.groupings[1].pk, self.ta1.pk)},
        )

    def test_coverage_counts_follow_assignment(self):
        grouping = self.groupings[0]

        ta_assignment.assign_all_tas([grouping.pk], [self.ta1.pk], self.assignment)
        grouping.refresh_from_db()
        self.assertEqual(grouping.criteria_coverage_count, 1)

        ta_assignment.assign_all_tas([grouping.pk], [self.ta2.pk], self.assignment)
        grouping.refresh_from_db()
        self.first_criterion.refresh_from_db()
        self.second_criterion.refresh_from_db()
        self.assertEqual(grouping.criteria_coverage_count, 2)
        self.assertEqual(self.first_criterion.assigned_groups_count, 1)
        self.assertEqual(self.second_criterion.assigned_groups_count, 1)

    def test_assign_then_unassign_restores_coverage(self):
        grouping = self.groupings[1]
        before = grouping.criteria_coverage_count

        ta_assignment.assign_all_tas([grouping.pk], [self.ta2.pk], self.assignment)
        membership = grouping.ta_memberships.get()
        deleted = ta_assignment.unassign_tas([membership.pk], [grouping.pk], self.assignment)

        grouping.refresh_from_db()
        self.second_criterion.refresh_from_db()
        self.assertEqual(deleted, 1)
        self.assertEqual(grouping.criteria_coverage_count, before)
        self.assertEqual(self.second_criterion.assigned_groups_count, 0)

    def test_unassign_without_grouping_ids_recomputes_affected_groupings(self):
        grouping = self.groupings[2]
        ta_assignment.assign_all_tas([grouping.pk], [self.ta1.pk], self.assignment)
        membership = grouping.ta_memberships.get()

        ta_assignment.unassign_tas([membership.pk], [], self.assignment)

        grouping.refresh_from_db()
        self.assertEqual(grouping.criteria_coverage_count, 0)

    def test_add_and_remove_tas(self):
        grouping = self.groupings[0]

        ta_assignment.add_tas(grouping, [self.ta1, self.ta2])
        self.assertEqual(grouping.get_ta_names(), ["ta1", "ta2"])

        ta_assignment.remove_tas(grouping, [self.ta1.pk])
        self.assertEqual(grouping.get_ta_names(), ["ta2"])


class TaAssignmentPermissionTests(TestCase):
    def setUp(self):
        MemoryRepository.purge_all()
        self.addCleanup(MemoryRepository.purge_all)
        self.assignment = factories.create_assignment(vcs_submit=True)
        self.groupings = [factories.create_grouping(self.assignment) for _ in range(4)]
        self.tas = [factories.create_ta() for _ in range(3)]

    def test_bulk_assignment_rebuilds_permissions_once(self):
        with mock.patch.object(MemoryRepository, "rebuild_permissions") as rebuild:
            with self.captureOnCommitCallbacks(execute=True):
                ta_assignment.assign_all_tas(
                    [grouping.pk for grouping in self.groupings],
                    [ta.pk for ta in self.tas],
                    self.assignment,
                )

        rebuild.assert_called_once_with()

    def test_failed_assignment_does_not_rebuild_permissions(self):
        with mock.patch.object(
            Membership.objects, "bulk_create", side_effect=DatabaseError("boom")
        ):
            with self.captureOnCommitCallbacks() as callbacks:
                with self.assertRaises(DatabaseError):
                    ta_assignment.assign_all_tas(
                        [self.groupings[0].pk], [self.tas[0].pk], self.assignment
                    )

        self.assertEqual(callbacks, [])
        self.assertFalse(Membership.objects.filter(membership_type=Membership.Type.TA).exists())

    def test_rebuilt_permissions_include_assigned_tas(self):
        grouping = self.groupings[0]
        factories.add_inviter(grouping, factories.create_student("alice"))

        with self.captureOnCommitCallbacks(execute=True):
            ta_assignment.assign_all_tas([grouping.pk], [self.tas[0].pk], self.assignment)

        self.assertEqual(
            MemoryRepository.permissions[grouping.group.repo_name],
            sorted(["alice", self.tas[0].username]),
        )
