from rest_framework import serializers

from autotest.models import TestRun

from ..models import Grouping, Membership


class MembershipSerializer(serializers.ModelSerializer):
    user_name = serializers.CharField(source="user.username", read_only=True)

    class Meta:
        model = Membership
        fields = ["id", "user", "user_name", "membership_type", "membership_status"]
        read_only_fields = fields


class GroupingSerializer(serializers.ModelSerializer):
    group_name = serializers.CharField(source="group.group_name", read_only=True)
    assignment = serializers.CharField(source="assignment.short_identifier", read_only=True)
    memberships = MembershipSerializer(many=True, read_only=True)
    is_valid = serializers.SerializerMethodField()

    class Meta:
        model = Grouping
        fields = [
            "id",
            "assignment",
            "group_name",
            "admin_approved",
            "is_valid",
            "test_tokens",
            "criteria_coverage_count",
            "memberships",
        ]
        read_only_fields = fields

    def get_is_valid(self, obj):
        return obj.is_valid()


class TestRunSerializer(serializers.ModelSerializer):
    class Meta:
        model = TestRun
        fields = ["id", "grouping", "user", "revision_identifier", "submission", "created_at"]
        read_only_fields = fields


class InviteSerializer(serializers.Serializer):
    members = serializers.ListField(child=serializers.CharField(), allow_empty=False)


class AssignTasSerializer(serializers.Serializer):
    STRATEGIES = ("random", "all")

    grouping_ids = serializers.ListField(child=serializers.IntegerField())
    ta_ids = serializers.ListField(child=serializers.IntegerField())
    strategy = serializers.ChoiceField(choices=STRATEGIES, default="random")


class UnassignTasSerializer(serializers.Serializer):
    ta_membership_ids = serializers.ListField(child=serializers.IntegerField())
    grouping_ids = serializers.ListField(child=serializers.IntegerField(), required=False, default=list)
