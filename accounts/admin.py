from django.contrib import admin

from . import services
from .models import AdminProfile, Section, StudentProfile, TaProfile


@admin.register(StudentProfile)
class StudentProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "section", "hidden", "grace_credits")
    list_filter = ("section", "hidden")
    search_fields = ("user__username",)
    actions = ("hide", "unhide", "give_one_grace_credit")

    @admin.action(description="Hide selected students")
    def hide(self, request, queryset):
        services.hide_students(queryset.values_list("user_id", flat=True))

    @admin.action(description="Unhide selected students")
    def unhide(self, request, queryset):
        services.unhide_students(queryset.values_list("user_id", flat=True))

    @admin.action(description="Give one grace credit")
    def give_one_grace_credit(self, request, queryset):
        services.give_grace_credits(queryset.values_list("user_id", flat=True), 1)


admin.site.register(Section)
admin.site.register(TaProfile)
admin.site.register(AdminProfile)
