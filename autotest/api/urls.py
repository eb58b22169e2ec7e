from django.urls import path

from .views import TestResultDetailView, TestResultListView

PREFIX = (
    "api/assignments/<int:assignment_id>/groups/<int:group_id>/"
    "test_group_results/<int:test_group_result_id>/test_results/"
)

urlpatterns = [
    path(PREFIX, TestResultListView.as_view(), name="test-result-list"),
    path(f"{PREFIX}<int:pk>/", TestResultDetailView.as_view(), name="test-result-detail"),
]
