"""Bulk assignment of grading TAs to groupings.

Every entry point funnels into :func:`assign_tas`, which takes a *pairing
strategy*: a callable receiving the (validated) grouping ids and TA ids and
returning the ``(grouping_id, ta_id)`` pairs to create. Existing pairs are
skipped, so calling any of these functions twice is the same as calling it
once.
"""
from __future__ import annotations

import logging
import random
from collections import defaultdict
from itertools import cycle
from typing import Callable, Iterable, Sequence

from django.contrib.auth import get_user_model
from django.db import transaction

from assignments.models import Assignment, CriterionTaAssociation
from assignments.services import update_assigned_groups_counts
from repositories import get_repository_class

from ..models import Grouping, Membership

logger = logging.getLogger(__name__)

PairStrategy = Callable[[list[int], list[int]], Iterable[tuple[int, int]]]


def _as_list(ids) -> list[int]:
    if ids is None:
        return []
    if isinstance(ids, (int, str)):
        return [int(ids)]
    return [int(value) for value in ids]


def _existing_ta_ids(ta_ids: Sequence[int]) -> list[int]:
    found = set(
        get_user_model()
        .objects.filter(pk__in=ta_ids, taprofile__isnull=False)
        .values_list("pk", flat=True)
    )
    return [ta_id for ta_id in dict.fromkeys(ta_ids) if ta_id in found]


def _existing_grouping_ids(grouping_ids: Sequence[int], assignment: Assignment) -> list[int]:
    found = set(
        Grouping.objects.filter(pk__in=grouping_ids, assignment=assignment).values_list(
            "pk", flat=True
        )
    )
    return [grouping_id for grouping_id in dict.fromkeys(grouping_ids) if grouping_id in found]


def assign_tas(grouping_ids, ta_ids, assignment: Assignment, pair_ids: PairStrategy) -> int:
    """Assign TAs to groupings of ``assignment`` using the ``pair_ids`` strategy.

    Unknown ids (and groupings of other assignments) are silently dropped.
    Returns the number of new TA memberships.
    """
    ta_ids = _existing_ta_ids(_as_list(ta_ids))
    grouping_ids = _existing_grouping_ids(_as_list(grouping_ids), assignment)

    existing = set(
        Membership.objects.filter(
            grouping_id__in=grouping_ids,
            user_id__in=ta_ids,
        ).values_list("grouping_id", "user_id")
    )
    pairs = [
        pair
        for pair in dict.fromkeys(tuple(pair) for pair in pair_ids(grouping_ids, ta_ids))
        if pair not in existing
    ]

    with transaction.atomic():
        with get_repository_class().update_permissions_after():
            Membership.objects.bulk_create(
                [
                    Membership(
                        grouping_id=grouping_id,
                        user_id=ta_id,
                        membership_type=Membership.Type.TA,
                    )
                    for grouping_id, ta_id in pairs
                ]
            )
        update_criteria_coverage_counts(assignment, grouping_ids)
        update_assigned_groups_counts(assignment)

    logger.info(
        "Assigned %d TA memberships for assignment %s", len(pairs), assignment.short_identifier
    )
    return len(pairs)


def randomly_assign_tas(grouping_ids, ta_ids, assignment: Assignment, rng: random.Random | None = None) -> int:
    """Assign TAs round-robin to the groupings taken in random order.

    Pass ``rng`` to make the grouping order reproducible.
    """
    shuffle = (rng or random).shuffle

    def round_robin(grouping_ids: list[int], ta_ids: list[int]):
        if not ta_ids:
            return []
        shuffled = list(grouping_ids)
        shuffle(shuffled)
        return list(zip(shuffled, cycle(ta_ids)))

    return assign_tas(grouping_ids, ta_ids, assignment, round_robin)


def assign_all_tas(grouping_ids, ta_ids, assignment: Assignment) -> int:
    """Assign every TA to every grouping."""

    def cartesian_product(grouping_ids: list[int], ta_ids: list[int]):
        return [(grouping_id, ta_id) for grouping_id in grouping_ids for ta_id in ta_ids]

    return assign_tas(grouping_ids, ta_ids, assignment, cartesian_product)


def assign_ta_pairs(pairs: Iterable[tuple[int, int]], assignment: Assignment) -> int:
    """Create exactly the given ``(grouping_id, ta_id)`` pairs."""
    pairs = [(int(grouping_id), int(ta_id)) for grouping_id, ta_id in pairs]

    def custom(grouping_ids: list[int], ta_ids: list[int]):
        valid_groupings, valid_tas = set(grouping_ids), set(ta_ids)
        return [
            (grouping_id, ta_id)
            for grouping_id, ta_id in pairs
            if grouping_id in valid_groupings and ta_id in valid_tas
        ]

    return assign_tas(
        [grouping_id for grouping_id, _ in pairs],
        [ta_id for _, ta_id in pairs],
        assignment,
        custom,
    )


def unassign_tas(ta_membership_ids, grouping_ids, assignment: Assignment) -> int:
    """Delete the given TA memberships and refresh the derived counters."""
    memberships = Membership.objects.filter(
        pk__in=_as_list(ta_membership_ids),
        membership_type=Membership.Type.TA,
        grouping__assignment=assignment,
    )
    with transaction.atomic():
        affected = _as_list(grouping_ids) + list(memberships.values_list("grouping_id", flat=True))
        with get_repository_class().update_permissions_after():
            deleted, _ = memberships.delete()
        update_criteria_coverage_counts(assignment, _existing_grouping_ids(affected, assignment))
        update_assigned_groups_counts(assignment)

    logger.info(
        "Removed %d TA memberships for assignment %s", deleted, assignment.short_identifier
    )
    return deleted


def update_criteria_coverage_counts(assignment: Assignment, grouping_ids=None) -> None:
    """Recompute ``criteria_coverage_count`` for the given groupings.

    The count is the number of distinct ``(criterion, criterion_type)`` pairs
    marked by any TA assigned to the grouping. Every given grouping is
    written, with 0 when none of its TAs marks a criterion.
    """
    if grouping_ids is None:
        grouping_ids = list(assignment.groupings.values_list("pk", flat=True))
    grouping_ids = _as_list(grouping_ids)
    if not grouping_ids:
        return

    tas_by_grouping: dict[int, set[int]] = defaultdict(set)
    for grouping_id, ta_id in Membership.objects.filter(
        grouping_id__in=grouping_ids,
        membership_type=Membership.Type.TA,
    ).values_list("grouping_id", "user_id"):
        tas_by_grouping[grouping_id].add(ta_id)

    criteria_by_ta: dict[int, set[tuple[int, str]]] = defaultdict(set)
    ta_ids = set().union(*tas_by_grouping.values()) if tas_by_grouping else set()
    for ta_id, criterion_id, criterion_type in CriterionTaAssociation.objects.filter(
        assignment=assignment,
        ta_id__in=ta_ids,
    ).values_list("ta_id", "criterion_id", "criterion_type"):
        criteria_by_ta[ta_id].add((criterion_id, criterion_type))

    groupings = []
    for grouping_id in dict.fromkeys(grouping_ids):
        covered: set[tuple[int, str]] = set()
        for ta_id in tas_by_grouping.get(grouping_id, ()):
            covered |= criteria_by_ta.get(ta_id, set())
        groupings.append(Grouping(pk=grouping_id, criteria_coverage_count=len(covered)))
    Grouping.objects.bulk_update(groupings, ["criteria_coverage_count"])


def add_tas(grouping: Grouping, tas) -> int:
    """Assign each user in ``tas`` to ``grouping``."""
    return assign_all_tas([grouping.pk], [ta.pk for ta in tas], grouping.assignment)


def remove_tas(grouping: Grouping, ta_ids) -> int:
    """Remove the TAs with ``ta_ids`` from ``grouping``."""
    ta_ids = _as_list(ta_ids)
    if not ta_ids:
        return 0
    membership_ids = list(
        grouping.ta_memberships.filter(user_id__in=ta_ids).values_list("pk", flat=True)
    )
    return unassign_tas(membership_ids, [grouping.pk], grouping.assignment)
