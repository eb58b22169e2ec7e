"""In-process repository backend used for development and tests."""
from __future__ import annotations

import logging
from datetime import datetime

from django.utils import timezone

from .base import AbstractRepository, RepositoryCollision, RepositoryNotFound, Transaction

logger = logging.getLogger(__name__)


class MemoryRevision:
    def __init__(
        self,
        revision_identifier: str,
        server_timestamp: datetime,
        files: dict[str, str],
        directories: set[str],
        changed_paths: set[str],
    ):
        self.revision_identifier = revision_identifier
        self.server_timestamp = server_timestamp
        self.timestamp = server_timestamp
        self.files = files
        self.directories = directories
        self.changed_paths = changed_paths

    def path_exists(self, path: str) -> bool:
        path = path.strip("/")
        if path in self.files or path in self.directories:
            return True
        prefix = f"{path}/"
        return any(name.startswith(prefix) for name in self.files)

    def changes_at_path(self, path: str) -> bool:
        path = path.strip("/")
        prefix = f"{path}/"
        return any(name == path or name.startswith(prefix) for name in self.changed_paths)


class MemoryRepository(AbstractRepository):
    _repositories: dict[str, "MemoryRepository"] = {}
    permissions: dict[str, list[str]] = {}
    full_access_users: list[str] = []

    def __init__(self, location: str):
        super().__init__(location)
        self._revisions = [MemoryRevision("0", timezone.now(), {}, set(), set())]

    @classmethod
    def create(cls, location: str) -> "MemoryRepository":
        if location in cls._repositories:
            raise RepositoryCollision(f"Repository {location} already exists")
        repo = cls(location)
        cls._repositories[location] = repo
        return repo

    @classmethod
    def exists(cls, location: str) -> bool:
        return location in cls._repositories

    @classmethod
    def open(cls, location: str) -> "MemoryRepository":
        try:
            return cls._repositories[location]
        except KeyError as exc:
            raise RepositoryNotFound(f"Repository {location} does not exist") from exc

    @classmethod
    def purge_all(cls) -> None:
        cls._repositories.clear()
        cls.permissions = {}
        cls.full_access_users = []

    def get_latest_revision(self) -> MemoryRevision:
        return self._revisions[-1]

    def get_revision_by_timestamp(self, at_or_before, path=None, later_than=None):
        for revision in reversed(self._revisions):
            if revision.server_timestamp > at_or_before:
                continue
            if later_than is not None and revision.server_timestamp <= later_than:
                return None
            if path is None or revision.changes_at_path(path):
                return revision
        return None

    def commit(self, txn: Transaction) -> bool:
        if not txn.has_jobs:
            return False
        latest = self.get_latest_revision()
        files = dict(latest.files)
        directories = set(latest.directories)
        changed: set[str] = set()
        for kind, path, content in txn.jobs:
            path = path.strip("/")
            if kind == "add_path":
                directories.add(path)
            else:
                files[path] = content or ""
            changed.add(path)
        revision = MemoryRevision(
            str(len(self._revisions)), timezone.now(), files, directories, changed
        )
        self._revisions.append(revision)
        logger.debug(
            "Committed revision %s to %s: %s",
            revision.revision_identifier,
            self.location,
            txn.comment,
        )
        return True

    @classmethod
    def update_permissions_file(cls, permissions, full_access_users) -> None:
        cls.permissions = permissions
        cls.full_access_users = full_access_users
