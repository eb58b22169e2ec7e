from datetime import timedelta
from unittest import mock

from django.conf import settings
from django.test import SimpleTestCase, TestCase, override_settings
from django.utils import timezone

from groupings.models import Membership
from groupings.tests import factories

from . import RepositoryCollision, RepositoryNotFound, get_repository_class
from .memory import MemoryRepository


class PermissionScopeTests(TestCase):
    def setUp(self):
        MemoryRepository.purge_all()
        self.addCleanup(MemoryRepository.purge_all)

    def test_update_outside_scope_is_scheduled_after_commit(self):
        with self.captureOnCommitCallbacks() as callbacks:
            MemoryRepository.update_permissions()
        self.assertEqual(len(callbacks), 1)

    def test_scope_rebuilds_once(self):
        with self.captureOnCommitCallbacks() as callbacks:
            with MemoryRepository.update_permissions_after():
                MemoryRepository.update_permissions()
                with MemoryRepository.update_permissions_after():
                    MemoryRepository.update_permissions()
        self.assertEqual(len(callbacks), 1)

    def test_only_on_request_without_request(self):
        with self.captureOnCommitCallbacks() as callbacks:
            with MemoryRepository.update_permissions_after(only_on_request=True):
                pass
        self.assertEqual(callbacks, [])

    def test_only_on_request_with_request(self):
        with self.captureOnCommitCallbacks() as callbacks:
            with MemoryRepository.update_permissions_after(only_on_request=True):
                MemoryRepository.update_permissions()
                MemoryRepository.update_permissions()
        self.assertEqual(len(callbacks), 1)

    def test_inner_unconditional_scope_requests_rebuild(self):
        with self.captureOnCommitCallbacks() as callbacks:
            with MemoryRepository.update_permissions_after(only_on_request=True):
                with MemoryRepository.update_permissions_after():
                    pass
        self.assertEqual(len(callbacks), 1)

    def test_failure_skips_rebuild_and_resets_scope(self):
        with self.captureOnCommitCallbacks() as callbacks:
            with self.assertRaises(RuntimeError):
                with MemoryRepository.update_permissions_after():
                    MemoryRepository.update_permissions()
                    raise RuntimeError("boom")
        self.assertEqual(callbacks, [])

        with self.captureOnCommitCallbacks() as callbacks:
            MemoryRepository.update_permissions()
        self.assertEqual(len(callbacks), 1)


class RepoPermissionsTests(TestCase):
    def setUp(self):
        MemoryRepository.purge_all()
        self.addCleanup(MemoryRepository.purge_all)
        self.assignment = factories.create_assignment(vcs_submit=True, group_min=2, group_max=3)

    def test_permissions_follow_valid_groupings(self):
        valid = factories.create_grouping(self.assignment)
        factories.add_inviter(valid, factories.create_student("alice"))
        factories.add_student(valid, factories.create_student("bob"))
        factories.add_student(valid, factories.create_student("hidden", hidden=True))
        factories.add_student(
            valid, factories.create_student("carol"), status=Membership.Status.PENDING
        )
        factories.add_ta(valid, factories.create_ta("ta"))

        invalid = factories.create_grouping(self.assignment)
        factories.add_inviter(invalid, factories.create_student("dave"))

        approved = factories.create_grouping(self.assignment, admin_approved=True)
        factories.add_inviter(approved, factories.create_student("erin"))

        not_vcs = factories.create_grouping(factories.create_assignment(group_min=1))
        factories.add_inviter(not_vcs, factories.create_student("frank"))

        factories.create_admin("prof")

        MemoryRepository.rebuild_permissions()

        self.assertEqual(
            MemoryRepository.permissions,
            {
                valid.group.repo_name: ["alice", "bob", "ta"],
                approved.group.repo_name: ["erin"],
            },
        )
        self.assertEqual(MemoryRepository.full_access_users, ["prof"])


class MemoryRepositoryTests(TestCase):
    def setUp(self):
        MemoryRepository.purge_all()
        self.addCleanup(MemoryRepository.purge_all)

    def test_backend_comes_from_settings(self):
        self.assertIs(get_repository_class(), MemoryRepository)
        with override_settings(REPOSITORY_BACKEND="repositories.base.AbstractRepository"):
            self.assertIsNot(get_repository_class(), MemoryRepository)

    def test_create_and_open(self):
        MemoryRepository.create("repo")
        with self.assertRaises(RepositoryCollision):
            MemoryRepository.create("repo")
        with self.assertRaises(RepositoryNotFound):
            MemoryRepository.open("missing")

    def test_empty_transaction_is_not_committed(self):
        repo = MemoryRepository.create("repo")
        latest = repo.get_latest_revision()

        self.assertFalse(repo.commit(repo.get_transaction("user")))
        self.assertEqual(
            repo.get_latest_revision().revision_identifier, latest.revision_identifier
        )

        txn = repo.get_transaction("user")
        txn.add_path("a1")
        self.assertTrue(txn.has_jobs)
        self.assertTrue(repo.commit(txn))
        self.assertTrue(repo.get_latest_revision().path_exists("a1"))

    def test_revision_by_timestamp(self):
        start = timezone.now()
        repo = MemoryRepository.create("repo")
        for hours, path in ((1, "a1/x.py"), (2, "a2/y.py"), (3, "a1/z.py")):
            txn = repo.get_transaction("user")
            txn.add(path)
            with mock.patch("repositories.memory.timezone.now", return_value=start + timedelta(hours=hours)):
                repo.commit(txn)

        latest_a1 = repo.get_revision_by_timestamp(start + timedelta(hours=4), "a1")
        self.assertEqual(latest_a1.revision_identifier, "3")
        before_third = repo.get_revision_by_timestamp(start + timedelta(hours=2, minutes=30), "a1")
        self.assertEqual(before_third.revision_identifier, "1")
        self.assertIsNone(
            repo.get_revision_by_timestamp(
                start + timedelta(hours=2, minutes=30), "a1", start + timedelta(hours=1)
            )
        )
        self.assertTrue(repo.get_latest_revision().path_exists("a2/y.py"))


class LoggingSettingsTests(SimpleTestCase):
    def test_app_loggers_are_quiet_under_tests(self):
        self.assertEqual(settings.LOG_LEVEL, "WARNING")
        self.assertEqual(settings.LOGGING["root"]["level"], "WARNING")
        for app in ("groupings", "autotest", "repositories"):
            logger = settings.LOGGING["loggers"][app]
            self.assertEqual(logger["level"], "WARNING")
            self.assertEqual(logger["handlers"], ["console"])
            self.assertFalse(logger["propagate"])
