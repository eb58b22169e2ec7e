from django.urls import path

from .views import (
    AssignTasView,
    GroupingDetailView,
    InviteView,
    RejectedMembershipView,
    RunTestsView,
    TestRunHistoryView,
    UnassignTasView,
)

urlpatterns = [
    path("api/groupings/<int:grouping_id>/", GroupingDetailView.as_view(), name="grouping-detail"),
    path(
        "api/groupings/<int:grouping_id>/run_tests/",
        RunTestsView.as_view(),
        name="grouping-run-tests",
    ),
    path("api/groupings/<int:grouping_id>/invite/", InviteView.as_view(), name="grouping-invite"),
    path(
        "api/groupings/<int:grouping_id>/rejected/<int:membership_id>/",
        RejectedMembershipView.as_view(),
        name="grouping-delete-rejected",
    ),
    path(
        "api/groupings/<int:grouping_id>/test_runs/",
        TestRunHistoryView.as_view(),
        name="grouping-test-runs",
    ),
    path(
        "api/assignments/<int:assignment_id>/tas/assign/",
        AssignTasView.as_view(),
        name="assignment-assign-tas",
    ),
    path(
        "api/assignments/<int:assignment_id>/tas/unassign/",
        UnassignTasView.as_view(),
        name="assignment-unassign-tas",
    ),
]
