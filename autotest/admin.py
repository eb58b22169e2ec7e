from django.contrib import admin

from .models import TestBatch, TestGroup, TestGroupResult, TestResult, TestRun


@admin.register(TestGroup)
class TestGroupAdmin(admin.ModelAdmin):
    list_display = ("name", "assignment", "display_output", "run_by_instructors", "run_by_students")
    list_filter = ("assignment", "display_output")


class TestGroupResultInline(admin.TabularInline):
    model = TestGroupResult
    extra = 0


@admin.register(TestRun)
class TestRunAdmin(admin.ModelAdmin):
    list_display = ("id", "grouping", "user", "revision_identifier", "created_at")
    list_filter = ("grouping__assignment",)
    raw_id_fields = ("grouping", "user", "submission", "test_batch")
    inlines = (TestGroupResultInline,)


class TestResultInline(admin.TabularInline):
    model = TestResult
    extra = 0


@admin.register(TestGroupResult)
class TestGroupResultAdmin(admin.ModelAdmin):
    list_display = ("test_run", "test_group", "marks_earned", "marks_total")
    inlines = (TestResultInline,)


admin.site.register(TestBatch)
