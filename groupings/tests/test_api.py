import json
from datetime import timedelta

from django.test import TestCase
from django.utils import timezone

from autotest.models import TestRun
from groupings.models import Grouping, Membership
from repositories.memory import MemoryRepository

from . import factories


class GroupingApiTestCase(TestCase):
    def setUp(self):
        MemoryRepository.purge_all()
        self.addCleanup(MemoryRepository.purge_all)
        now = timezone.now()
        self.assignment = factories.create_assignment(
            group_max=3,
            tokens_per_period=2,
            token_start_date=now - timedelta(hours=1),
            due_date=now + timedelta(days=3),
        )
        self.grouping = factories.create_grouping(self.assignment)
        self.student = factories.create_student("alice")
        factories.add_inviter(self.grouping, self.student)

    def post_json(self, url, payload):
        return self.client.post(url, data=json.dumps(payload), content_type="application/json")


class RunTestsApiTests(GroupingApiTestCase):
    def url(self):
        return f"/api/groupings/{self.grouping.pk}/run_tests/"

    def test_student_run_consumes_a_token(self):
        self.client.force_login(self.student)

        response = self.client.post(self.url())

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["test_tokens"], 1)
        self.grouping.refresh_from_db()
        self.assertEqual(self.grouping.test_tokens, 1)
        self.assertEqual(TestRun.objects.filter(grouping=self.grouping, user=self.student).count(), 1)

    def test_second_run_is_blocked_while_first_is_in_progress(self):
        self.client.force_login(self.student)
        self.assertEqual(self.client.post(self.url()).status_code, 201)

        response = self.client.post(self.url())

        self.assertEqual(response.status_code, 403)
        self.assertEqual(TestRun.objects.count(), 1)

    def test_outsider_is_forbidden(self):
        self.client.force_login(factories.create_student())
        self.assertEqual(self.client.post(self.url()).status_code, 403)

    def test_instructor_does_not_use_tokens(self):
        self.client.force_login(factories.create_admin())

        response = self.client.post(self.url())

        self.assertEqual(response.status_code, 201)
        self.grouping.refresh_from_db()
        self.assertEqual(self.grouping.test_tokens, 0)

    def test_unknown_grouping(self):
        self.client.force_login(self.student)
        self.assertEqual(self.client.post("/api/groupings/999999/run_tests/").status_code, 404)

    def test_anonymous(self):
        self.assertEqual(self.client.post(self.url()).status_code, 403)


class InviteApiTests(GroupingApiTestCase):
    def test_invite_reports_errors(self):
        factories.create_student("bob")
        self.client.force_login(self.student)

        response = self.post_json(
            f"/api/groupings/{self.grouping.pk}/invite/", {"members": ["bob", "nobody"]}
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()["errors"]), 1)
        self.assertIn("nobody", response.json()["errors"][0])
        self.assertEqual(self.grouping.pending_students.get().username, "bob")

    def test_instructor_formed_groups(self):
        self.assignment.invalid_override = True
        self.assignment.save()
        factories.create_student("bob")
        self.client.force_login(self.student)

        response = self.post_json(f"/api/groupings/{self.grouping.pk}/invite/", {"members": ["bob"]})

        self.assertEqual(response.status_code, 403)

    def test_empty_member_list(self):
        self.client.force_login(self.student)
        response = self.post_json(f"/api/groupings/{self.grouping.pk}/invite/", {"members": []})
        self.assertEqual(response.status_code, 400)


class DestroyApiTests(GroupingApiTestCase):
    def test_inviter_deletes_grouping(self):
        self.client.force_login(self.student)

        response = self.client.delete(f"/api/groupings/{self.grouping.pk}/")

        self.assertEqual(response.status_code, 204)
        self.assertFalse(Grouping.objects.filter(pk=self.grouping.pk).exists())

    def test_submission_prevents_deletion(self):
        factories.create_submission(self.grouping)
        self.client.force_login(self.student)

        response = self.client.delete(f"/api/groupings/{self.grouping.pk}/")

        self.assertEqual(response.status_code, 403)
        self.assertTrue(Grouping.objects.filter(pk=self.grouping.pk).exists())

    def test_inviter_removes_rejected_invitation(self):
        rejected = factories.add_student(self.grouping, status=Membership.Status.REJECTED)
        self.client.force_login(self.student)

        url = f"/api/groupings/{self.grouping.pk}/rejected/{rejected.pk}/"
        self.assertEqual(self.client.delete(url).status_code, 204)
        self.assertEqual(self.client.delete(url).status_code, 404)


class TestRunHistoryApiTests(GroupingApiTestCase):
    def test_student_sees_own_runs(self):
        factories.create_test_run(self.grouping, self.student)
        self.client.force_login(self.student)

        response = self.client.get(f"/api/groupings/{self.grouping.pk}/test_runs/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()), 1)
        self.assertEqual(response.json()[0]["status"], TestRun.Status.IN_PROGRESS)

    def test_other_student_is_forbidden(self):
        self.client.force_login(factories.create_student())
        response = self.client.get(f"/api/groupings/{self.grouping.pk}/test_runs/")
        self.assertEqual(response.status_code, 403)

    def test_instructor_filters_by_submission(self):
        admin = factories.create_admin()
        submission = factories.create_submission(self.grouping)
        run = factories.create_test_run(self.grouping, admin, submission=submission)
        factories.create_test_run(self.grouping, admin)
        self.client.force_login(admin)

        response = self.client.get(
            f"/api/groupings/{self.grouping.pk}/test_runs/", {"submission": submission.pk}
        )

        self.assertEqual([report["run_id"] for report in response.json()], [run.pk])


class TaAssignmentApiTests(GroupingApiTestCase):
    def setUp(self):
        super().setUp()
        self.ta = factories.create_ta()
        self.url = f"/api/assignments/{self.assignment.pk}/tas/"

    def test_instructor_assigns_and_unassigns(self):
        self.client.force_login(factories.create_admin())

        response = self.post_json(
            self.url + "assign/",
            {"grouping_ids": [self.grouping.pk], "ta_ids": [self.ta.pk], "strategy": "all"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"created": 1})

        membership = self.grouping.ta_memberships.get()
        response = self.post_json(self.url + "unassign/", {"ta_membership_ids": [membership.pk]})
        self.assertEqual(response.json(), {"deleted": 1})
        self.assertFalse(self.grouping.has_ta_for_marking())

    def test_students_and_tas_are_forbidden(self):
        for user in (self.student, self.ta):
            self.client.force_login(user)
            response = self.post_json(
                self.url + "assign/",
                {"grouping_ids": [self.grouping.pk], "ta_ids": [self.ta.pk]},
            )
            self.assertEqual(response.status_code, 403)
