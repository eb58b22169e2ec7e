from datetime import timedelta

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone


class Assignment(models.Model):
    short_identifier = models.CharField(max_length=100, unique=True)
    description = models.CharField(max_length=255, blank=True)
    due_date = models.DateTimeField()
    late_period = models.DurationField(
        default=timedelta(0),
        help_text="Time after the due date during which submissions are still collected",
    )

    # Group formation
    group_min = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    group_max = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    invalid_override = models.BooleanField(
        default=False,
        help_text="Instructors form the groups; students cannot invite each other",
    )
    section_groups_only = models.BooleanField(default=False)
    section_due_dates_type = models.BooleanField(default=False)

    # Repository
    vcs_submit = models.BooleanField(default=False)

    # Automated testing tokens
    unlimited_tokens = models.BooleanField(default=False)
    tokens_per_period = models.PositiveIntegerField(default=0)
    token_period = models.FloatField(
        default=24.0,
        validators=[MinValueValidator(0.01)],
        help_text="Token regeneration period in hours",
    )
    token_start_date = models.DateTimeField(default=timezone.now)
    non_regenerating_tokens = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("due_date", "short_identifier")

    def clean(self):
        super().clean()
        if self.group_min and self.group_max and self.group_min > self.group_max:
            raise ValidationError(
                {"group_max": "Maximum group size must be ≥ minimum group size."}
            )

    def __str__(self) -> str:
        return self.short_identifier

    @property
    def repository_folder(self) -> str:
        return self.short_identifier

    @property
    def is_group_assignment(self) -> bool:
        return self.invalid_override or self.group_max > 1

    def section_due_date(self, section):
        """Return the due date for ``section``, falling back to the assignment's."""
        if self.section_due_dates_type and section is not None:
            due_date = (
                self.section_due_dates.filter(section=section)
                .values_list("due_date", flat=True)
                .first()
            )
            if due_date is not None:
                return due_date
        return self.due_date

    def past_collection_date(self, section=None, now=None) -> bool:
        now = now or timezone.now()
        return self.section_due_date(section) + self.late_period < now


class SectionDueDate(models.Model):
    assignment = models.ForeignKey(
        Assignment,
        on_delete=models.CASCADE,
        related_name="section_due_dates",
    )
    section = models.ForeignKey(
        "accounts.Section",
        on_delete=models.CASCADE,
        related_name="section_due_dates",
    )
    due_date = models.DateTimeField()

    class Meta:
        unique_together = ("assignment", "section")

    def __str__(self) -> str:
        return f"{self.assignment} · {self.section}: {self.due_date}"


class Criterion(models.Model):
    class CriterionType(models.TextChoices):
        RUBRIC = "rubric", "Rubric"
        FLEXIBLE = "flexible", "Flexible"
        CHECKBOX = "checkbox", "Checkbox"

    assignment = models.ForeignKey(
        Assignment,
        on_delete=models.CASCADE,
        related_name="criteria",
    )
    name = models.CharField(max_length=255)
    criterion_type = models.CharField(
        max_length=20,
        choices=CriterionType.choices,
        default=CriterionType.FLEXIBLE,
    )
    max_mark = models.DecimalField(max_digits=10, decimal_places=2, default=1)
    position = models.PositiveIntegerField(default=0)
    assigned_groups_count = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ("assignment", "position", "id")
        unique_together = ("assignment", "name")

    def __str__(self) -> str:
        return f"{self.assignment}: {self.name}"


class CriterionTaAssociation(models.Model):
    """Assigns a TA to mark one criterion of an assignment."""

    assignment = models.ForeignKey(
        Assignment,
        on_delete=models.CASCADE,
        related_name="criterion_ta_associations",
    )
    criterion = models.ForeignKey(
        Criterion,
        on_delete=models.CASCADE,
        related_name="ta_associations",
    )
    criterion_type = models.CharField(
        max_length=20,
        choices=Criterion.CriterionType.choices,
        default=Criterion.CriterionType.FLEXIBLE,
    )
    ta = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="criterion_ta_associations",
    )

    class Meta:
        unique_together = ("criterion", "ta")

    def save(self, *args, **kwargs):
        if self.criterion_id and not self.assignment_id:
            self.assignment_id = self.criterion.assignment_id
        if self.criterion_id:
            self.criterion_type = self.criterion.criterion_type
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.ta} → {self.criterion}"
