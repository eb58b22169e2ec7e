from datetime import timedelta

from django.core.exceptions import ValidationError
from django.test import TestCase

from assignments.models import CriterionTaAssociation, SectionDueDate
from assignments.services import update_assigned_groups_counts
from groupings.tests import factories
from repositories.memory import MemoryRepository


class AssignmentTests(TestCase):
    def test_group_sizes_are_validated(self):
        assignment = factories.create_assignment(group_min=3, group_max=2)
        with self.assertRaises(ValidationError):
            assignment.full_clean()

    def test_group_assignment(self):
        self.assertFalse(factories.create_assignment().is_group_assignment)
        self.assertTrue(factories.create_assignment(group_max=2).is_group_assignment)
        self.assertTrue(factories.create_assignment(invalid_override=True).is_group_assignment)

    def test_section_due_dates(self):
        assignment = factories.create_assignment(late_period=timedelta(hours=1))
        section = factories.create_section()
        later = assignment.due_date + timedelta(days=1)
        SectionDueDate.objects.create(assignment=assignment, section=section, due_date=later)

        self.assertEqual(assignment.section_due_date(section), assignment.due_date)

        assignment.section_due_dates_type = True
        self.assertEqual(assignment.section_due_date(section), later)
        self.assertEqual(assignment.section_due_date(None), assignment.due_date)
        self.assertTrue(
            assignment.past_collection_date(now=assignment.due_date + timedelta(hours=2))
        )
        self.assertFalse(
            assignment.past_collection_date(section, now=assignment.due_date + timedelta(hours=2))
        )


class CriterionAssociationTests(TestCase):
    def setUp(self):
        MemoryRepository.purge_all()
        self.addCleanup(MemoryRepository.purge_all)
        self.assignment = factories.create_assignment()
        self.criterion = factories.create_criterion(self.assignment, criterion_type="rubric")
        self.ta = factories.create_ta()

    def test_association_copies_assignment_and_type(self):
        association = CriterionTaAssociation.objects.create(criterion=self.criterion, ta=self.ta)

        self.assertEqual(association.assignment, self.assignment)
        self.assertEqual(association.criterion_type, "rubric")

    def test_assigned_groups_count(self):
        factories.associate_ta(self.ta, self.criterion)
        for _ in range(2):
            factories.add_ta(factories.create_grouping(self.assignment), self.ta)
        factories.add_ta(factories.create_grouping(self.assignment))

        update_assigned_groups_counts(self.assignment)

        self.criterion.refresh_from_db()
        self.assertEqual(self.criterion.assigned_groups_count, 2)
