import logging

from django.db import transaction
from django.shortcuts import get_object_or_404
from rest_framework import permissions, status
from rest_framework.exceptions import PermissionDenied
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.models import Role, is_admin, is_student, role_of
from accounts.permissions import IsInstructor
from assignments.models import Assignment

from ..models import Grouping
from ..policies import GroupingPolicy
from ..service_utils import lifecycle
from ..service_utils import ta_assignment
from ..service_utils import run_history as test_run_service
from ..service_utils import tokens as token_service
from .serializers import (
    AssignTasSerializer,
    GroupingSerializer,
    InviteSerializer,
    TestRunSerializer,
    UnassignTasSerializer,
)

logger = logging.getLogger(__name__)


class GroupingDetailView(APIView):
    """Show a grouping, or let its inviter delete it."""

    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, grouping_id: int, *args, **kwargs):
        grouping = get_object_or_404(Grouping, pk=grouping_id)
        if is_student(request.user) and not GroupingPolicy(request.user, grouping).member():
            raise PermissionDenied("Not a member of this group.")
        return Response(GroupingSerializer(grouping).data)

    def delete(self, request, grouping_id: int, *args, **kwargs):
        grouping = get_object_or_404(Grouping, pk=grouping_id)
        GroupingPolicy(request.user, grouping).authorize("destroy")
        lifecycle.delete_grouping(grouping)
        return Response(status=status.HTTP_204_NO_CONTENT)


class RunTestsView(APIView):
    """Start a test run on the latest revision of the grouping's repository."""

    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, grouping_id: int, *args, **kwargs):
        student = is_student(request.user)
        with transaction.atomic():
            grouping = get_object_or_404(
                Grouping.objects.select_for_update().select_related("assignment", "group"),
                pk=grouping_id,
            )
            if student:
                token_service.refresh_test_tokens(grouping)
            GroupingPolicy(request.user, grouping).authorize("run_tests")
            test_run = test_run_service.create_test_run(grouping, user=request.user)
            if student:
                token_service.decrease_test_tokens(grouping)
        logger.info("User %s started test run %s for grouping %s", request.user, test_run.pk, grouping.pk)
        data = TestRunSerializer(test_run).data
        data["test_tokens"] = grouping.test_tokens
        return Response(data, status=status.HTTP_201_CREATED)


class InviteView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, grouping_id: int, *args, **kwargs):
        grouping = get_object_or_404(Grouping, pk=grouping_id)
        serializer = InviteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        admin = is_admin(request.user)
        if not admin:
            policy = GroupingPolicy(request.user, grouping)
            policy.authorize("member")
            policy.authorize("invite_member")
        errors = lifecycle.invite(
            grouping, serializer.validated_data["members"], invoked_by_admin=admin
        )
        return Response({"errors": errors})


class RejectedMembershipView(APIView):
    """Let the inviter clear a rejected invitation."""

    permission_classes = [permissions.IsAuthenticated]

    def delete(self, request, grouping_id: int, membership_id: int, *args, **kwargs):
        grouping = get_object_or_404(Grouping, pk=grouping_id)
        GroupingPolicy(request.user, grouping).authorize("delete_rejected")
        if not lifecycle.remove_rejected(grouping, membership_id):
            return Response({"detail": "Rejected membership not found"}, status=404)
        return Response(status=status.HTTP_204_NO_CONTENT)


class TestRunHistoryView(APIView):
    """Test run reports of a grouping, as the requesting user may see them."""

    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, grouping_id: int, *args, **kwargs):
        grouping = get_object_or_404(Grouping, pk=grouping_id)
        role = role_of(request.user)
        if role is None:
            raise PermissionDenied("No role in this course.")
        if role == Role.STUDENT:
            GroupingPolicy(request.user, grouping).authorize("member")
            return Response(test_run_service.history(grouping, role))

        submission = None
        submission_id = request.query_params.get("submission")
        if submission_id:
            submission = get_object_or_404(grouping.submissions, pk=submission_id)
        released = request.query_params.get("released") in ("1", "true")
        return Response(
            test_run_service.history(grouping, role, submission=submission, released=released)
        )


class AssignTasView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsInstructor]

    def post(self, request, assignment_id: int, *args, **kwargs):
        assignment = get_object_or_404(Assignment, pk=assignment_id)
        serializer = AssignTasSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        if data["strategy"] == "all":
            created = ta_assignment.assign_all_tas(data["grouping_ids"], data["ta_ids"], assignment)
        else:
            created = ta_assignment.randomly_assign_tas(
                data["grouping_ids"], data["ta_ids"], assignment
            )
        return Response({"created": created})


class UnassignTasView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsInstructor]

    def post(self, request, assignment_id: int, *args, **kwargs):
        assignment = get_object_or_404(Assignment, pk=assignment_id)
        serializer = UnassignTasSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        deleted = ta_assignment.unassign_tas(
            data["ta_membership_ids"], data["grouping_ids"], assignment
        )
        return Response({"deleted": deleted})
