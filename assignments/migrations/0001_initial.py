from datetime import timedelta

from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("accounts", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Assignment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("short_identifier", models.CharField(max_length=100, unique=True)),
                ("description", models.CharField(blank=True, max_length=255)),
                ("due_date", models.DateTimeField()),
                (
                    "late_period",
                    models.DurationField(
                        default=timedelta(0),
                        help_text="Time after the due date during which submissions are still collected",
                    ),
                ),
                (
                    "group_min",
                    models.PositiveIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1)]),
                ),
                (
                    "group_max",
                    models.PositiveIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1)]),
                ),
                (
                    "invalid_override",
                    models.BooleanField(
                        default=False,
                        help_text="Instructors form the groups; students cannot invite each other",
                    ),
                ),
                ("section_groups_only", models.BooleanField(default=False)),
                ("section_due_dates_type", models.BooleanField(default=False)),
                ("vcs_submit", models.BooleanField(default=False)),
                ("unlimited_tokens", models.BooleanField(default=False)),
                ("tokens_per_period", models.PositiveIntegerField(default=0)),
                (
                    "token_period",
                    models.FloatField(
                        default=24.0,
                        help_text="Token regeneration period in hours",
                        validators=[django.core.validators.MinValueValidator(0.01)],
                    ),
                ),
                ("token_start_date", models.DateTimeField(default=django.utils.timezone.now)),
                ("non_regenerating_tokens", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ("due_date", "short_identifier"),
            },
        ),
        migrations.CreateModel(
            name="Criterion",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                (
                    "criterion_type",
                    models.CharField(
                        choices=[("rubric", "Rubric"), ("flexible", "Flexible"), ("checkbox", "Checkbox")],
                        default="flexible",
                        max_length=20,
                    ),
                ),
                ("max_mark", models.DecimalField(decimal_places=2, default=1, max_digits=10)),
                ("position", models.PositiveIntegerField(default=0)),
                ("assigned_groups_count", models.PositiveIntegerField(default=0)),
                (
                    "assignment",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="criteria",
                        to="assignments.assignment",
                    ),
                ),
            ],
            options={
                "ordering": ("assignment", "position", "id"),
                "unique_together": {("assignment", "name")},
            },
        ),
        migrations.CreateModel(
            name="CriterionTaAssociation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "criterion_type",
                    models.CharField(
                        choices=[("rubric", "Rubric"), ("flexible", "Flexible"), ("checkbox", "Checkbox")],
                        default="flexible",
                        max_length=20,
                    ),
                ),
                (
                    "assignment",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="criterion_ta_associations",
                        to="assignments.assignment",
                    ),
                ),
                (
                    "criterion",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="ta_associations",
                        to="assignments.criterion",
                    ),
                ),
                (
                    "ta",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="criterion_ta_associations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "unique_together": {("criterion", "ta")},
            },
        ),
        migrations.CreateModel(
            name="SectionDueDate",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("due_date", models.DateTimeField()),
                (
                    "assignment",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="section_due_dates",
                        to="assignments.assignment",
                    ),
                ),
                (
                    "section",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="section_due_dates",
                        to="accounts.section",
                    ),
                ),
            ],
            options={
                "unique_together": {("assignment", "section")},
            },
        ),
    ]
