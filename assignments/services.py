from __future__ import annotations

from collections import defaultdict

from .models import Assignment, Criterion, CriterionTaAssociation


def update_assigned_groups_counts(assignment: Assignment) -> None:
    """Recompute ``assigned_groups_count`` for every criterion of ``assignment``.

    The count is the number of distinct groupings that have at least one TA
    assigned who also marks the criterion.
    """
    from groupings.models import Membership

    groupings_by_ta: dict[int, set[int]] = defaultdict(set)
    for grouping_id, ta_id in Membership.objects.filter(
        grouping__assignment=assignment,
        membership_type=Membership.Type.TA,
    ).values_list("grouping_id", "user_id"):
        groupings_by_ta[ta_id].add(grouping_id)

    groupings_by_criterion: dict[int, set[int]] = defaultdict(set)
    for criterion_id, ta_id in CriterionTaAssociation.objects.filter(
        assignment=assignment
    ).values_list("criterion_id", "ta_id"):
        groupings_by_criterion[criterion_id].update(groupings_by_ta.get(ta_id, ()))

    criteria = list(assignment.criteria.all())
    for criterion in criteria:
        criterion.assigned_groups_count = len(groupings_by_criterion.get(criterion.id, ()))
    Criterion.objects.bulk_update(criteria, ["assigned_groups_count"])
