"""Who may do what with a grouping.

Predicates read state only; :meth:`GroupingPolicy.authorize` turns a failed
check into a 403 response at the API boundary.
"""
from __future__ import annotations

from datetime import datetime

from django.utils import timezone
from rest_framework.exceptions import PermissionDenied

from accounts.models import is_student

from .service_utils import lifecycle
from .service_utils.tokens import student_test_run_in_progress


class GroupingPolicy:
    actions = (
        "run_tests",
        "member",
        "not_in_progress",
        "tokens_available",
        "invite_member",
        "students_form_groups",
        "no_extension",
        "before_due_date",
        "destroy",
        "deletable_by",
        "no_submission",
        "delete_rejected",
    )

    def __init__(self, user, grouping, now: datetime | None = None):
        self.user = user
        self.grouping = grouping
        self.now = now or timezone.now()

    def authorize(self, action: str) -> None:
        if action not in self.actions:
            raise ValueError(f"Unknown grouping action: {action}")
        if not getattr(self, action)():
            raise PermissionDenied(f"Not allowed to {action.replace('_', ' ')}.")

    # Test runs

    def run_tests(self) -> bool:
        if not is_student(self.user):
            return True
        return (
            self.member()
            and self.not_in_progress()
            and self.tokens_available()
            and self.before_due_date()
        )

    def member(self) -> bool:
        return self.grouping.accepted_students.filter(pk=self.user.pk).exists()

    def not_in_progress(self) -> bool:
        return not student_test_run_in_progress(self.grouping, now=self.now)

    def tokens_available(self) -> bool:
        return self.grouping.test_tokens > 0 or self.grouping.assignment.unlimited_tokens

    # Invitations

    def invite_member(self) -> bool:
        return self.students_form_groups() and self.no_extension() and self.before_due_date()

    def students_form_groups(self) -> bool:
        return not self.grouping.assignment.invalid_override

    def no_extension(self) -> bool:
        return self.grouping.get_extension() is None

    def before_due_date(self) -> bool:
        return not self.grouping.past_collection_date(now=self.now)

    # Deletion

    def destroy(self) -> bool:
        return self.deletable_by() and self.no_submission()

    def deletable_by(self) -> bool:
        return lifecycle.deletable_by(self.grouping, self.user, now=self.now)

    def no_submission(self) -> bool:
        return not self.grouping.has_submission()

    def delete_rejected(self) -> bool:
        inviter = self.grouping.inviter
        return inviter is not None and inviter.pk == self.user.pk
