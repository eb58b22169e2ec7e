"""Test results of a group's submission, for the automated testing server.

Every endpoint walks assignment → group → the submission in use → the test
group result, answering 404 at the first missing link.
"""
import logging

from django.db import DatabaseError
from rest_framework import permissions, status
from rest_framework.exceptions import NotFound
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import IsInstructor
from assignments.models import Assignment
from groupings.models import Group, Grouping

from ..models import TestGroupResult
from .serializers import TestResultSerializer

logger = logging.getLogger(__name__)


def get_submission(assignment_id: int, group_id: int):
    assignment = Assignment.objects.filter(pk=assignment_id).first()
    if assignment is None:
        raise NotFound("No assignment exists with that id")
    group = Group.objects.filter(pk=group_id).first()
    if group is None:
        raise NotFound("No group exists with that id")
    grouping = Grouping.objects.filter(assignment=assignment, group=group).first()
    submission = grouping.current_submission_used if grouping else None
    if submission is None:
        raise NotFound("Submission was not found")
    return submission


def get_test_group_result(assignment_id: int, group_id: int, test_group_result_id: int):
    submission = get_submission(assignment_id, group_id)
    test_group_result = TestGroupResult.objects.filter(
        pk=test_group_result_id, test_run__submission=submission
    ).first()
    if test_group_result is None:
        raise NotFound("Test group result was not found")
    return test_group_result


def persistence_failure(exc: DatabaseError) -> Response:
    logger.exception("Could not save test result: %s", exc)
    return Response(
        {"detail": "Internal server error"}, status=status.HTTP_500_INTERNAL_SERVER_ERROR
    )


class TestResultListView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsInstructor]

    def get(self, request, assignment_id, group_id, test_group_result_id, *args, **kwargs):
        test_group_result = get_test_group_result(assignment_id, group_id, test_group_result_id)
        serializer = TestResultSerializer(test_group_result.test_results.all(), many=True)
        return Response(serializer.data)

    def post(self, request, assignment_id, group_id, test_group_result_id, *args, **kwargs):
        test_group_result = get_test_group_result(assignment_id, group_id, test_group_result_id)
        serializer = TestResultSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            serializer.save(test_group_result=test_group_result)
        except DatabaseError as exc:
            return persistence_failure(exc)
        return Response(serializer.data, status=status.HTTP_201_CREATED)


class TestResultDetailView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsInstructor]

    def get_object(self, assignment_id, group_id, test_group_result_id, pk):
        test_group_result = get_test_group_result(assignment_id, group_id, test_group_result_id)
        test_result = test_group_result.test_results.filter(pk=pk).first()
        if test_result is None:
            raise NotFound("Test result was not found")
        return test_result

    def get(self, request, assignment_id, group_id, test_group_result_id, pk, *args, **kwargs):
        test_result = self.get_object(assignment_id, group_id, test_group_result_id, pk)
        return Response(TestResultSerializer(test_result).data)

    def patch(self, request, assignment_id, group_id, test_group_result_id, pk, *args, **kwargs):
        test_result = self.get_object(assignment_id, group_id, test_group_result_id, pk)
        serializer = TestResultSerializer(test_result, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        try:
            serializer.save()
        except DatabaseError as exc:
            return persistence_failure(exc)
        return Response(serializer.data)

    put = patch

    def delete(self, request, assignment_id, group_id, test_group_result_id, pk, *args, **kwargs):
        test_result = self.get_object(assignment_id, group_id, test_group_result_id, pk)
        try:
            test_result.delete()
        except DatabaseError as exc:
            return persistence_failure(exc)
        return Response({"detail": "Success"})
