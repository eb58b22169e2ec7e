from django.contrib import admin

from .models import Assignment, Criterion, CriterionTaAssociation, SectionDueDate


class SectionDueDateInline(admin.TabularInline):
    model = SectionDueDate
    extra = 0


class CriterionInline(admin.TabularInline):
    model = Criterion
    extra = 0
    fields = ("position", "name", "criterion_type", "max_mark", "assigned_groups_count")
    readonly_fields = ("assigned_groups_count",)
    ordering = ("position",)


@admin.register(Assignment)
class AssignmentAdmin(admin.ModelAdmin):
    list_display = (
        "short_identifier",
        "due_date",
        "group_min",
        "group_max",
        "unlimited_tokens",
        "tokens_per_period",
    )
    list_filter = ("vcs_submit", "section_groups_only", "unlimited_tokens")
    search_fields = ("short_identifier", "description")
    readonly_fields = ("created_at", "updated_at")
    inlines = (SectionDueDateInline, CriterionInline)


@admin.register(CriterionTaAssociation)
class CriterionTaAssociationAdmin(admin.ModelAdmin):
    list_display = ("criterion", "criterion_type", "ta", "assignment")
    list_filter = ("assignment", "criterion_type")
    search_fields = ("ta__username", "criterion__name")
