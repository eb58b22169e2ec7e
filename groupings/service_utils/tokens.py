"""Test tokens: the budget of student-initiated automated test runs.

Tokens are granted per period of ``assignment.token_period`` hours starting
at ``assignment.token_start_date``. A grouping is topped up to
``tokens_per_period`` the first time tokens are looked at in a period in
which no student of the grouping has run the tests yet. With
``non_regenerating_tokens`` there is only one period, lasting forever.
"""
from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from ..models import Grouping
from .run_history import test_runs_students_simple

logger = logging.getLogger(__name__)


def current_period_start(assignment, now: datetime) -> datetime:
    """Return the start of the token period containing ``now``."""
    if assignment.non_regenerating_tokens:
        return assignment.token_start_date
    hours_from_start = (now - assignment.token_start_date).total_seconds() / 3600
    periods_from_start = math.floor(hours_from_start / assignment.token_period)
    return assignment.token_start_date + timedelta(
        hours=periods_from_start * assignment.token_period
    )


def _lock(grouping: Grouping) -> Grouping:
    return Grouping.objects.select_for_update().select_related("assignment").get(pk=grouping.pk)


def refresh_test_tokens(grouping: Grouping, now: datetime | None = None) -> int:
    """Top up the grouping's tokens for the current period and return them."""
    now = now or timezone.now()
    with transaction.atomic():
        locked = _lock(grouping)
        assignment = locked.assignment
        if assignment.unlimited_tokens or now < assignment.token_start_date:
            locked.test_tokens = 0
        else:
            last_student_run = test_runs_students_simple(locked).first()
            if last_student_run is None:
                locked.test_tokens = assignment.tokens_per_period
            elif last_student_run.created_at < current_period_start(assignment, now):
                locked.test_tokens = assignment.tokens_per_period
                logger.debug(
                    "Granted %d test tokens to grouping %s",
                    locked.test_tokens,
                    locked.pk,
                )
        locked.save(update_fields=["test_tokens"])
    grouping.test_tokens = locked.test_tokens
    return grouping.test_tokens


def decrease_test_tokens(grouping: Grouping) -> int:
    """Use one token; never goes below zero and never raises."""
    with transaction.atomic():
        locked = _lock(grouping)
        if not locked.assignment.unlimited_tokens and locked.test_tokens > 0:
            locked.test_tokens -= 1
            locked.save(update_fields=["test_tokens"])
            logger.debug(
                "Grouping %s used a test token, %d left", locked.pk, locked.test_tokens
            )
    grouping.test_tokens = locked.test_tokens
    return grouping.test_tokens


def student_test_run_in_progress(
    grouping: Grouping,
    now: datetime | None = None,
    buffer_time: timedelta | None = None,
) -> bool:
    """Whether the last student test run is still waiting for its results.

    After ``buffer_time`` the run no longer counts as in progress, even if no
    result ever arrived.
    """
    now = now or timezone.now()
    if buffer_time is None:
        buffer_time = settings.AUTOTEST_STUDENT_TESTS_BUFFER_TIME
    last_student_run = test_runs_students_simple(grouping).first()
    if last_student_run is None:
        return False
    if last_student_run.created_at + buffer_time < now:
        return False
    return last_student_run.in_progress()
