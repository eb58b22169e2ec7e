from __future__ import annotations

from typing import Iterable

from django.db import transaction
from django.db.models import Sum

from .models import StudentProfile


def hide_students(student_ids: Iterable[int]) -> int:
    """Hide the students with user ids ``student_ids``.

    Hidden students cannot be invited into groupings. Repository access is
    recomputed from memberships, so a permission update is requested too.
    """
    from repositories import get_repository_class

    with get_repository_class().update_permissions_after():
        return StudentProfile.objects.filter(user_id__in=list(student_ids)).update(hidden=True)


def unhide_students(student_ids: Iterable[int]) -> int:
    from repositories import get_repository_class

    with get_repository_class().update_permissions_after():
        return StudentProfile.objects.filter(user_id__in=list(student_ids)).update(hidden=False)


@transaction.atomic
def give_grace_credits(student_ids: Iterable[int], number_of_grace_credits: int) -> None:
    """Add (or with a negative number remove) grace credits, never below zero."""
    profiles = StudentProfile.objects.select_for_update().filter(user_id__in=list(student_ids))
    for profile in profiles:
        profile.grace_credits = max(0, profile.grace_credits + int(number_of_grace_credits))
        profile.save(update_fields=["grace_credits"])


def remaining_grace_credits(user) -> int:
    from groupings.models import GracePeriodDeduction

    profile = StudentProfile.objects.get(user=user)
    total_deductions = (
        GracePeriodDeduction.objects.filter(membership__user=user)
        .aggregate(total=Sum("deduction"))
        .get("total")
        or 0
    )
    return profile.grace_credits - total_deductions
