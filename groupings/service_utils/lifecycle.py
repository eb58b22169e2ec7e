"""Forming, validating and dissolving groupings.

Functions here change memberships and therefore repository access. They
request permission rebuilds explicitly through the repository backend, and
the bulk ones wrap their writes in
``update_permissions_after`` so the rebuild happens once, after commit.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone
from rest_framework import exceptions

from accounts.models import StudentProfile, section_of
from repositories import get_repository_class

from ..exceptions import InvitationError
from ..models import GracePeriodDeduction, Group, Grouping, Membership
from .students import has_accepted_grouping_for

logger = logging.getLogger(__name__)


def _request_permission_update(grouping: Grouping) -> None:
    if grouping.assignment.vcs_submit:
        get_repository_class().update_permissions()


def _destroy_membership(membership: Membership) -> None:
    grants_access = membership.grants_repository_access
    membership.delete()
    if grants_access:
        _request_permission_update(membership.grouping)


# Creation -----------------------------------------------------------------


def create_grouping(assignment, group: Group) -> Grouping:
    """Create the grouping of ``group`` for ``assignment``.

    Once the transaction commits, the assignment folder is created in the
    group's repository.
    """
    grouping = Grouping.objects.create(assignment=assignment, group=group)
    transaction.on_commit(lambda: create_grouping_repository_folder(grouping))
    return grouping


def create_grouping_repository_folder(grouping: Grouping) -> bool:
    if not settings.REPOSITORY_IS_ADMIN:
        return True
    result = True
    assignment = grouping.assignment
    with grouping.group.access_repo() as repo:
        folder = assignment.repository_folder
        if not repo.get_latest_revision().path_exists(folder):
            txn = repo.get_transaction(
                "Markus", f"Added assignment folder {assignment.short_identifier}"
            )
            txn.add_path(folder)
            result = repo.commit(txn)
            logger.info("Created folder %s in repository %s", folder, grouping.group.repo_path)
    return result


# Invitations ----------------------------------------------------------------


def invite(
    grouping: Grouping,
    members: str | Iterable[str],
    membership_status: str = Membership.Status.PENDING,
    invoked_by_admin: bool = False,
) -> list[str]:
    """Invite students by user name and return one error message per failure.

    Admins skip the :func:`can_invite` checks. A failing member never stops
    the others from being invited.
    """
    if isinstance(members, str):
        members = [members]

    errors: list[str] = []
    for member in members:
        user_name = member.strip()
        user = (
            get_user_model()
            .objects.filter(username=user_name, studentprofile__hidden=False)
            .first()
        )
        try:
            if user is None:
                raise InvitationError("not_found", user_name)
            if invoked_by_admin or can_invite(grouping, user):
                add_member(grouping, user, membership_status)
        except InvitationError as exc:
            errors.extend(exc.messages)
    return errors


def can_invite(grouping: Grouping, user) -> bool:
    """Return ``True`` or raise :class:`InvitationError` with the first reason."""
    inviter = grouping.inviter
    assignment = grouping.assignment
    if inviter == user:
        raise InvitationError("inviting_self", user.username)
    if grouping.get_extension() is not None:
        raise InvitationError("extension_exists", user.username)
    if grouping.student_membership_number >= assignment.group_max:
        raise InvitationError("group_max_reached", user.username)
    if assignment.section_groups_only and section_of(user) != (
        section_of(inviter) if inviter else None
    ):
        raise InvitationError("not_same_section", user.username)
    if has_accepted_grouping_for(user, assignment):
        raise InvitationError("already_grouped", user.username)
    if grouping.is_pending(user):
        raise InvitationError("already_pending", user.username)
    return True


@transaction.atomic
def add_member(
    grouping: Grouping, user, membership_status: str = Membership.Status.ACCEPTED
) -> Membership | None:
    """Add ``user`` as a student member, or return ``None`` if they cannot join.

    The new member gets the same grace period deduction as the rest of the
    grouping, replacing any deduction they had for this assignment. A grouping
    has at most one inviter, so a second inviter joins as accepted.
    """
    if has_accepted_grouping_for(user, grouping.assignment):
        return None
    if not StudentProfile.objects.filter(user=user, hidden=False).exists():
        return None
    if grouping.memberships.filter(user=user).exists():
        return None
    if (
        membership_status == Membership.Status.INVITER
        and grouping.inviter_membership is not None
    ):
        membership_status = Membership.Status.ACCEPTED

    member = Membership.objects.create(
        grouping=grouping,
        user=user,
        membership_type=Membership.Type.STUDENT,
        membership_status=membership_status,
    )
    remove_grace_period_deduction(grouping, member)
    GracePeriodDeduction.objects.create(
        membership=member, deduction=grouping.grace_period_deduction_single()
    )
    if member.grants_repository_access:
        _request_permission_update(grouping)
    return member


def remove_grace_period_deduction(grouping: Grouping, membership: Membership) -> int:
    """Delete the member's grace period deductions for the grouping's assignment."""
    deleted, _ = GracePeriodDeduction.objects.filter(
        membership__user=membership.user,
        membership__grouping__assignment=grouping.assignment,
    ).delete()
    return deleted


# Membership changes ---------------------------------------------------------


@transaction.atomic
def remove_member(grouping: Grouping, membership_id: int) -> None:
    """Remove a student; if it was the inviter, the next member takes over."""
    member = grouping.student_memberships.filter(pk=membership_id).first()
    if member is None:
        raise exceptions.NotFound("Membership not found")
    was_inviter = member.membership_status == Membership.Status.INVITER
    _destroy_membership(member)
    if was_inviter:
        successor = grouping.accepted_student_memberships.first()
        if successor is not None:
            successor.membership_status = Membership.Status.INVITER
            successor.save(update_fields=["membership_status"])


def remove_rejected(grouping: Grouping, membership_id: int) -> bool:
    member = grouping.memberships.filter(
        pk=membership_id, membership_status=Membership.Status.REJECTED
    ).first()
    if member is None:
        return False
    member.delete()
    return True


def decline_invitation(grouping: Grouping, student) -> Membership:
    try:
        membership = grouping.student_memberships.get(user=student)
    except Membership.DoesNotExist as exc:
        raise exceptions.NotFound("Invitation not found") from exc
    membership.membership_status = Membership.Status.REJECTED
    membership.save(update_fields=["membership_status"])
    return membership


def validate_grouping(grouping: Grouping) -> None:
    """Approve the grouping regardless of its size."""
    _set_admin_approved(grouping, True)


def invalidate_grouping(grouping: Grouping) -> None:
    _set_admin_approved(grouping, False)


def _set_admin_approved(grouping: Grouping, approved: bool) -> None:
    changed = grouping.admin_approved != approved
    grouping.admin_approved = approved
    grouping.save(update_fields=["admin_approved"])
    if changed:
        _request_permission_update(grouping)


@transaction.atomic
def delete_grouping(grouping: Grouping) -> None:
    """Remove every student membership, then the grouping itself."""
    grouping_id = grouping.pk
    with get_repository_class().update_permissions_after(only_on_request=True):
        for membership in grouping.student_memberships.select_related("grouping__assignment"):
            _destroy_membership(membership)
    grouping.delete()
    logger.info("Deleted grouping %s", grouping_id)


def deletable_by(grouping: Grouping, user, now: datetime | None = None) -> bool:
    """Whether ``user`` may delete ``grouping``.

    Only the inviter may, and only while the grouping is invalid, or while it
    is valid with the inviter as its sole member of a group assignment whose
    collection date (for the inviter's section) has not passed.
    """
    inviter = grouping.inviter
    if inviter is None or inviter != user:
        return False
    if not grouping.is_valid():
        return True
    assignment = grouping.assignment
    return (
        grouping.accepted_students.count() == 1
        and assignment.is_group_assignment
        and not assignment.past_collection_date(section_of(inviter), now=now)
    )


# Repository queries ---------------------------------------------------------


def past_due_date(grouping: Grouping, now: datetime | None = None) -> bool:
    """Whether the assignment folder changed after the grouping's due date."""
    now = now or timezone.now()
    due_date = grouping.due_date
    with grouping.group.access_repo() as repo:
        # backends may ignore later_than, so the timestamp is checked again
        revision = repo.get_revision_by_timestamp(
            now, grouping.assignment.repository_folder, due_date
        )
    return revision is not None and revision.server_timestamp > due_date


def missing_assignment_files(grouping: Grouping, required_files: Iterable[str], revision=None) -> list[str]:
    """Return the required file names missing from the assignment folder."""
    folder = grouping.assignment.repository_folder

    def missing(open_revision) -> list[str]:
        return [
            filename
            for filename in required_files
            if not open_revision.path_exists(f"{folder}/{filename}")
        ]

    if revision is not None:
        return missing(revision)
    with grouping.group.access_repo() as repo:
        return missing(repo.get_latest_revision())
