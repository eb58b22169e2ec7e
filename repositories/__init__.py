"""Version control backends for group repositories."""
from django.conf import settings
from django.utils.module_loading import import_string

from .base import (
    AbstractRepository,
    RepositoryCollision,
    RepositoryError,
    RepositoryNotFound,
    Transaction,
)


def get_repository_class() -> type[AbstractRepository]:
    """Return the repository backend configured by ``REPOSITORY_BACKEND``."""
    return import_string(settings.REPOSITORY_BACKEND)


__all__ = [
    "AbstractRepository",
    "RepositoryCollision",
    "RepositoryError",
    "RepositoryNotFound",
    "Transaction",
    "get_repository_class",
]
