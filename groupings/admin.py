from django.contrib import admin

from .models import Extension, GracePeriodDeduction, Group, Grouping, Membership, Submission
from .service_utils import lifecycle


class MembershipInline(admin.TabularInline):
    model = Membership
    extra = 0
    fields = ("user", "membership_type", "membership_status")
    raw_id_fields = ("user",)


class ExtensionInline(admin.StackedInline):
    model = Extension
    extra = 0


@admin.register(Group)
class GroupAdmin(admin.ModelAdmin):
    list_display = ("group_name", "repo_name", "created_at")
    search_fields = ("group_name", "repo_name")


@admin.register(Grouping)
class GroupingAdmin(admin.ModelAdmin):
    list_display = (
        "group",
        "assignment",
        "admin_approved",
        "test_tokens",
        "criteria_coverage_count",
    )
    list_filter = ("assignment", "admin_approved")
    search_fields = ("group__group_name", "memberships__user__username")
    readonly_fields = ("criteria_coverage_count", "created_at")
    inlines = (MembershipInline, ExtensionInline)
    actions = ("approve_groupings", "unapprove_groupings")

    @admin.action(description="Approve selected groupings")
    def approve_groupings(self, request, queryset):
        for grouping in queryset.select_related("assignment"):
            lifecycle.validate_grouping(grouping)

    @admin.action(description="Revoke approval of selected groupings")
    def unapprove_groupings(self, request, queryset):
        for grouping in queryset.select_related("assignment"):
            lifecycle.invalidate_grouping(grouping)


@admin.register(GracePeriodDeduction)
class GracePeriodDeductionAdmin(admin.ModelAdmin):
    list_display = ("membership", "deduction")
    search_fields = ("membership__user__username",)


@admin.register(Submission)
class SubmissionAdmin(admin.ModelAdmin):
    list_display = ("grouping", "revision_identifier", "submission_version_used", "created_at")
    list_filter = ("submission_version_used",)
