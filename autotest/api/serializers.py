from rest_framework import serializers

from ..models import TestResult


class TestResultSerializer(serializers.ModelSerializer):
    class Meta:
        model = TestResult
        fields = [
            "id",
            "test_group_result",
            "name",
            "status",
            "marks_earned",
            "marks_total",
            "output",
            "time",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "test_group_result", "created_at", "updated_at"]
