"""Grouping operations seen from one student's side."""
from __future__ import annotations

from django.db import transaction

from accounts.models import section_of

from ..models import Group, Grouping, Membership


def _student_memberships(user, assignment):
    return Membership.objects.filter(
        user=user,
        membership_type=Membership.Type.STUDENT,
        grouping__assignment=assignment,
    )


def accepted_grouping_for(user, assignment) -> Grouping | None:
    membership = (
        _student_memberships(user, assignment)
        .filter(membership_status__in=Membership.ACCEPTED_STATUSES)
        .select_related("grouping")
        .first()
    )
    return membership.grouping if membership else None


def has_accepted_grouping_for(user, assignment) -> bool:
    return (
        _student_memberships(user, assignment)
        .filter(membership_status__in=Membership.ACCEPTED_STATUSES)
        .exists()
    )


def pending_groupings_for(user, assignment):
    return Grouping.objects.filter(
        memberships__in=_student_memberships(user, assignment).filter(
            membership_status=Membership.Status.PENDING
        )
    )


def has_pending_groupings_for(user, assignment) -> bool:
    return pending_groupings_for(user, assignment).exists()


def destroy_all_pending_memberships(user, assignment) -> int:
    # pending members have no repository access, no permission update needed
    deleted, _ = (
        _student_memberships(user, assignment)
        .filter(membership_status=Membership.Status.PENDING)
        .delete()
    )
    return deleted


@transaction.atomic
def join(user, grouping: Grouping) -> Membership:
    """Accept the invitation to ``grouping`` and reject all others."""
    from .lifecycle import _request_permission_update

    membership = grouping.student_memberships.get(user=user)
    membership.membership_status = Membership.Status.ACCEPTED
    membership.save(update_fields=["membership_status"])

    _student_memberships(user, grouping.assignment).filter(
        membership_status=Membership.Status.PENDING
    ).update(membership_status=Membership.Status.REJECTED)
    _request_permission_update(grouping)
    return membership


@transaction.atomic
def create_group_for_working_alone_student(user, assignment) -> Grouping:
    """Give ``user`` a grouping of their own, named after them."""
    from .lifecycle import _request_permission_update, create_grouping

    group = Group.objects.filter(group_name=user.username).first()
    if group is None:
        group = Group.objects.create(group_name=user.username, repo_name=user.username)

    # an empty grouping may be left behind after an instructor removed the student
    grouping = Grouping.objects.filter(assignment=assignment, group=group).first()
    if grouping is None:
        grouping = create_grouping(assignment, group)

    Membership.objects.update_or_create(
        grouping=grouping,
        user=user,
        defaults={
            "membership_type": Membership.Type.STUDENT,
            "membership_status": Membership.Status.INVITER,
        },
    )
    destroy_all_pending_memberships(user, assignment)
    _request_permission_update(grouping)
    return grouping


@transaction.atomic
def create_autogenerated_name_group(user, assignment) -> Grouping:
    from .lifecycle import _request_permission_update, create_grouping

    grouping = create_grouping(assignment, Group.objects.create())
    Membership.objects.create(
        grouping=grouping,
        user=user,
        membership_type=Membership.Type.STUDENT,
        membership_status=Membership.Status.INVITER,
    )
    destroy_all_pending_memberships(user, assignment)
    _request_permission_update(grouping)
    return grouping


def due_date_for_assignment(user, assignment):
    grouping = accepted_grouping_for(user, assignment)
    if grouping is not None:
        return grouping.due_date
    return assignment.section_due_date(section_of(user))
