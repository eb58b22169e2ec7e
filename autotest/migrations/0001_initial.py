from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("assignments", "0001_initial"),
        ("groupings", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="TestBatch",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                "verbose_name_plural": "Test batches",
            },
        ),
        migrations.CreateModel(
            name="TestGroup",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                (
                    "display_output",
                    models.CharField(
                        choices=[
                            ("instructors", "Instructors only"),
                            (
                                "instructors_and_student_tests",
                                "Instructors, and students for their own test runs",
                            ),
                            ("instructors_and_students", "Instructors and students"),
                        ],
                        default="instructors",
                        max_length=40,
                    ),
                ),
                ("run_by_instructors", models.BooleanField(default=True)),
                ("run_by_students", models.BooleanField(default=False)),
                (
                    "assignment",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="test_groups",
                        to="assignments.assignment",
                    ),
                ),
            ],
            options={
                "ordering": ("assignment", "id"),
                "unique_together": {("assignment", "name")},
            },
        ),
        migrations.CreateModel(
            name="TestRun",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("revision_identifier", models.CharField(max_length=255)),
                ("problems", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                (
                    "grouping",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="test_runs",
                        to="groupings.grouping",
                    ),
                ),
                (
                    "submission",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="test_runs",
                        to="groupings.submission",
                    ),
                ),
                (
                    "test_batch",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="test_runs",
                        to="autotest.testbatch",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="test_runs",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ("-created_at", "-id"),
            },
        ),
        migrations.CreateModel(
            name="TestGroupResult",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("marks_earned", models.FloatField(default=0)),
                ("marks_total", models.FloatField(default=0)),
                ("time", models.BigIntegerField(blank=True, help_text="Run time in milliseconds", null=True)),
                ("extra_info", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "test_group",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="test_group_results",
                        to="autotest.testgroup",
                    ),
                ),
                (
                    "test_run",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="test_group_results",
                        to="autotest.testrun",
                    ),
                ),
            ],
            options={
                "ordering": ("test_run", "id"),
            },
        ),
        migrations.CreateModel(
            name="TestResult",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pass", "Pass"),
                            ("partial", "Partial"),
                            ("fail", "Fail"),
                            ("error", "Error"),
                            ("error_all", "Error (all)"),
                        ],
                        max_length=20,
                    ),
                ),
                ("marks_earned", models.FloatField(default=0)),
                ("marks_total", models.FloatField(default=0)),
                ("output", models.TextField(blank=True)),
                ("time", models.BigIntegerField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "test_group_result",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="test_results",
                        to="autotest.testgroupresult",
                    ),
                ),
            ],
            options={
                "ordering": ("test_group_result", "id"),
            },
        ),
    ]
