"""Backend-independent repository interface.

A repository stores the files students submit for every assignment of one
group. Besides file access, the backend owns the repository permission
table. Permissions are derived from grouping memberships and are rebuilt as
a whole: callers never edit them directly, they only *request* a rebuild via
:meth:`AbstractRepository.update_permissions`, usually from inside an
:meth:`AbstractRepository.update_permissions_after` scope so that a batch of
membership changes results in a single rebuild once the surrounding
database transaction has committed.
"""
from __future__ import annotations

import logging
import threading
from collections import defaultdict
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator

from django.db import transaction

logger = logging.getLogger(__name__)

# ``requested`` is None outside of any permission scope, otherwise a bool
# telling whether the outermost scope has to rebuild permissions on exit.
_permission_state = threading.local()


class RepositoryError(Exception):
    """Base error for repository backends."""


class RepositoryNotFound(RepositoryError):
    pass


class RepositoryCollision(RepositoryError):
    pass


class Transaction:
    """A list of pending changes to commit to a repository."""

    def __init__(self, user_id: str, comment: str = ""):
        self.user_id = user_id
        self.comment = comment
        self.jobs: list[tuple[str, str, str | None]] = []

    def add_path(self, path: str) -> None:
        self.jobs.append(("add_path", path, None))

    def add(self, path: str, content: str = "") -> None:
        self.jobs.append(("add", path, content))

    @property
    def has_jobs(self) -> bool:
        return bool(self.jobs)


class AbstractRepository:
    """Interface every repository backend implements."""

    def __init__(self, location: str):
        self.location = location

    # Repository lifecycle -------------------------------------------------

    @classmethod
    def create(cls, location: str) -> "AbstractRepository":
        raise NotImplementedError

    @classmethod
    def exists(cls, location: str) -> bool:
        raise NotImplementedError

    @classmethod
    def open(cls, location: str) -> "AbstractRepository":
        raise NotImplementedError

    def close(self) -> None:
        pass

    @classmethod
    @contextmanager
    def access(cls, location: str) -> Iterator["AbstractRepository"]:
        repo = cls.open(location)
        try:
            yield repo
        finally:
            repo.close()

    # Revisions ------------------------------------------------------------

    def get_latest_revision(self):
        raise NotImplementedError

    def get_revision_by_timestamp(
        self,
        at_or_before: datetime,
        path: str | None = None,
        later_than: datetime | None = None,
    ):
        """Return the latest revision at or before ``at_or_before``.

        When ``path`` is given only revisions that changed something under
        ``path`` are considered; when ``later_than`` is given the revision
        must also be strictly newer than it. Returns ``None`` if there is no
        such revision.
        """
        raise NotImplementedError

    def get_transaction(self, user_id: str, comment: str = "") -> Transaction:
        return Transaction(user_id, comment)

    def commit(self, txn: Transaction) -> bool:
        raise NotImplementedError

    # Permissions ----------------------------------------------------------

    @classmethod
    def update_permissions(cls) -> None:
        """Request a permission rebuild.

        Inside an :meth:`update_permissions_after` scope the request is only
        recorded; otherwise the rebuild runs once the current transaction
        commits.
        """
        if getattr(_permission_state, "requested", None) is None:
            cls._schedule_permission_rebuild()
        else:
            _permission_state.requested = True

    @classmethod
    @contextmanager
    def update_permissions_after(cls, only_on_request: bool = False) -> Iterator[None]:
        """Defer permission rebuilds until the block has finished.

        Nested scopes collapse into the outermost one. On normal exit the
        outermost scope schedules a single rebuild (unconditionally, or with
        ``only_on_request`` only if something inside asked for one). If the
        block raises, nothing is scheduled.
        """
        outermost = getattr(_permission_state, "requested", None) is None
        if outermost:
            _permission_state.requested = not only_on_request
        elif not only_on_request:
            _permission_state.requested = True
        try:
            yield
        except BaseException:
            if outermost:
                _permission_state.requested = None
            raise
        if outermost:
            requested = _permission_state.requested
            _permission_state.requested = None
            if requested:
                cls._schedule_permission_rebuild()

    @classmethod
    def _schedule_permission_rebuild(cls) -> None:
        transaction.on_commit(cls.rebuild_permissions)

    @classmethod
    def rebuild_permissions(cls) -> None:
        permissions = cls.get_repo_permissions()
        full_access_users = cls.get_full_access_users()
        cls.update_permissions_file(permissions, full_access_users)
        logger.info(
            "Rebuilt repository permissions for %d repositories", len(permissions)
        )

    @classmethod
    def update_permissions_file(
        cls, permissions: dict[str, list[str]], full_access_users: list[str]
    ) -> None:
        raise NotImplementedError

    @staticmethod
    def get_full_access_users() -> list[str]:
        from accounts.models import AdminProfile

        return sorted(AdminProfile.objects.values_list("user__username", flat=True))

    @staticmethod
    def get_repo_permissions() -> dict[str, list[str]]:
        """Map each group repository to the user names allowed to access it.

        Accepted students of valid groupings and the TAs assigned to those
        groupings get access, for assignments submitted through version
        control only.
        """
        from django.db.models import Count, Q

        from groupings.models import Grouping, Membership

        groupings = (
            Grouping.objects.filter(assignment__vcs_submit=True)
            .select_related("assignment", "group")
            .annotate(
                non_rejected_count=Count(
                    "memberships",
                    filter=Q(memberships__membership_type=Membership.Type.STUDENT)
                    & ~Q(memberships__membership_status=Membership.Status.REJECTED),
                )
            )
        )
        valid = {
            grouping.id: grouping.group.repo_name
            for grouping in groupings
            if grouping.admin_approved
            or grouping.non_rejected_count >= grouping.assignment.group_min
        }

        permissions: dict[str, set[str]] = defaultdict(set)
        memberships = Membership.objects.filter(grouping_id__in=valid.keys()).filter(
            Q(membership_type=Membership.Type.TA)
            | Q(
                membership_status__in=Membership.ACCEPTED_STATUSES,
                user__studentprofile__hidden=False,
            )
        )
        for grouping_id, username in memberships.values_list("grouping_id", "user__username"):
            permissions[valid[grouping_id]].add(username)
        return {repo: sorted(users) for repo, users in permissions.items()}
