"""Groups, their per-assignment groupings and the memberships in them."""

import uuid
from datetime import datetime

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Sum
from django.utils import timezone

from repositories import get_repository_class


def generate_group_name() -> str:
    """Generate a short unique group name."""
    return f"group_{uuid.uuid4().hex[:8]}"


class Group(models.Model):
    """A named set of students owning one version control repository."""

    group_name = models.CharField(max_length=255, unique=True, default=generate_group_name)
    repo_name = models.CharField(max_length=255, unique=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("group_name",)

    def __str__(self) -> str:  # pragma: no cover - simple representation
        return self.group_name

    def save(self, *args, **kwargs):
        if not self.repo_name:
            self.repo_name = self.group_name
        created = self._state.adding
        super().save(*args, **kwargs)
        if created and settings.REPOSITORY_IS_ADMIN:
            self.build_repository()

    @property
    def repo_path(self) -> str:
        return self.repo_name

    def build_repository(self) -> None:
        repo_class = get_repository_class()
        if not repo_class.exists(self.repo_path):
            repo_class.create(self.repo_path)

    def access_repo(self):
        """Context manager yielding the open repository of this group."""
        return get_repository_class().access(self.repo_path)


class Grouping(models.Model):
    """A group working on one assignment: the unit that submits and is graded."""

    assignment = models.ForeignKey(
        "assignments.Assignment",
        on_delete=models.CASCADE,
        related_name="groupings",
    )
    group = models.ForeignKey(
        Group,
        on_delete=models.CASCADE,
        related_name="groupings",
    )
    admin_approved = models.BooleanField(default=False)
    test_tokens = models.PositiveIntegerField(default=0)
    criteria_coverage_count = models.PositiveIntegerField(default=0)
    starter_code_revision_identifier = models.CharField(max_length=255, blank=True)
    is_collected = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ("assignment", "group")
        ordering = ("assignment", "group__group_name")

    def __str__(self) -> str:
        return f"{self.assignment}: {self.group}"

    # Memberships ----------------------------------------------------------

    @property
    def student_memberships(self):
        return self.memberships.filter(membership_type=Membership.Type.STUDENT).order_by("id")

    @property
    def accepted_student_memberships(self):
        return self.student_memberships.filter(
            membership_status__in=Membership.ACCEPTED_STATUSES
        )

    @property
    def pending_student_memberships(self):
        return self.student_memberships.filter(membership_status=Membership.Status.PENDING)

    @property
    def non_rejected_student_memberships(self):
        return self.student_memberships.exclude(membership_status=Membership.Status.REJECTED)

    @property
    def ta_memberships(self):
        return self.memberships.filter(membership_type=Membership.Type.TA).order_by("id")

    def _users(self, memberships):
        return get_user_model().objects.filter(
            pk__in=memberships.values("user_id")
        ).order_by("id")

    @property
    def students(self):
        return self._users(self.student_memberships)

    @property
    def accepted_students(self):
        return self._users(self.accepted_student_memberships)

    @property
    def pending_students(self):
        return self._users(self.pending_student_memberships)

    @property
    def tas(self):
        return self._users(self.ta_memberships)

    @property
    def inviter_membership(self):
        return (
            self.student_memberships.filter(membership_status=Membership.Status.INVITER)
            .select_related("user")
            .first()
        )

    @property
    def inviter(self):
        membership = self.inviter_membership
        return membership.user if membership else None

    def membership_status(self, user) -> str | None:
        """Return the membership status of ``user`` or ``None`` if not a member."""
        return (
            self.student_memberships.filter(user=user)
            .values_list("membership_status", flat=True)
            .first()
        )

    def is_pending(self, user) -> bool:
        return self.membership_status(user) == Membership.Status.PENDING

    def is_inviter(self, user) -> bool:
        return self.membership_status(user) == Membership.Status.INVITER

    @property
    def student_membership_number(self) -> int:
        """Number of inviter, accepted and pending members."""
        return self.student_memberships.filter(
            membership_status__in=[*Membership.ACCEPTED_STATUSES, Membership.Status.PENDING]
        ).count()

    def is_valid(self) -> bool:
        """A grouping is valid once approved or large enough for the assignment."""
        return self.admin_approved or (
            self.non_rejected_student_memberships.count() >= self.assignment.group_min
        )

    def has_ta_for_marking(self) -> bool:
        return self.ta_memberships.exists()

    def get_ta_names(self) -> list[str]:
        return list(self.ta_memberships.values_list("user__username", flat=True))

    def does_not_share_any_students(self, other: "Grouping") -> bool:
        mine = set(self.student_memberships.values_list("user_id", flat=True))
        theirs = set(other.student_memberships.values_list("user_id", flat=True))
        return not mine & theirs

    # Naming ---------------------------------------------------------------

    def get_all_students_in_group(self) -> str:
        user_names = list(self.student_memberships.values_list("user__username", flat=True))
        if not user_names:
            return "Empty Group"
        return ", ".join(user_names)

    def get_group_name(self) -> str:
        name = self.group.group_name
        if self.assignment.group_max == 1:
            return name
        student_names = list(self.accepted_students.values_list("username", flat=True))
        if student_names != [name]:
            name += f" ({', '.join(student_names)})"
        return name

    def group_name_with_student_user_names(self) -> str:
        if not self.student_memberships.exists():
            return self.group.group_name
        return f"{self.group.group_name}: {self.get_all_students_in_group()}"

    @property
    def section(self) -> str:
        """Section name of the inviter; all members share it for section-only groups."""
        from accounts.models import section_of

        inviter = self.inviter
        section = section_of(inviter) if inviter else None
        return section.name if section else "-"

    # Submissions and dates ------------------------------------------------

    @property
    def current_submission_used(self):
        return self.submissions.filter(submission_version_used=True).first()

    def has_submission(self) -> bool:
        return self.submissions.filter(submission_version_used=True).exists()

    def get_extension(self):
        return Extension.objects.filter(grouping=self).first()

    @property
    def due_date(self) -> datetime:
        """Due date of the inviter's section (if any) plus the extension."""
        from accounts.models import section_of

        inviter = self.inviter
        section = section_of(inviter) if inviter else None
        due_date = self.assignment.section_due_date(section)
        extension = self.get_extension()
        if extension is not None:
            return due_date + extension.time_delta
        return due_date

    @property
    def collection_date(self) -> datetime:
        return self.due_date + self.assignment.late_period

    def past_collection_date(self, now=None) -> bool:
        return self.collection_date < (now or timezone.now())

    # Grace credits --------------------------------------------------------

    def grace_period_deduction_single(self) -> int:
        """Grace credits deducted from one member for this grouping.

        Every member of a grouping is deducted the same amount, so any
        deduction is representative.
        """
        deduction = (
            GracePeriodDeduction.objects.filter(
                membership__grouping=self,
                membership__membership_type=Membership.Type.STUDENT,
            )
            .exclude(membership__membership_status=Membership.Status.REJECTED)
            .order_by("id")
            .values_list("deduction", flat=True)
            .first()
        )
        return deduction or 0

    def available_grace_credits(self) -> int | None:
        from accounts.models import StudentProfile

        remaining = []
        profiles = StudentProfile.objects.filter(user__in=self.accepted_students).annotate(
            deducted=Sum("user__memberships__grace_period_deductions__deduction")
        )
        for profile in profiles:
            remaining.append(profile.grace_credits - (profile.deducted or 0))
        return min(remaining) if remaining else None


class Membership(models.Model):
    """A user's place in a grouping, either as a student or as a grading TA."""

    class Type(models.TextChoices):
        STUDENT = "student", "Student"
        TA = "ta", "TA"

    class Status(models.TextChoices):
        INVITER = "inviter", "Inviter"
        ACCEPTED = "accepted", "Accepted"
        PENDING = "pending", "Pending"
        REJECTED = "rejected", "Rejected"

    ACCEPTED_STATUSES = (Status.ACCEPTED, Status.INVITER)

    grouping = models.ForeignKey(
        Grouping,
        on_delete=models.CASCADE,
        related_name="memberships",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="memberships",
    )
    membership_type = models.CharField(
        max_length=10,
        choices=Type.choices,
        default=Type.STUDENT,
    )
    membership_status = models.CharField(
        max_length=10,
        choices=Status.choices,
        blank=True,
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("id",)
        unique_together = ("grouping", "user")
        indexes = [
            models.Index(fields=["user", "membership_status"], name="groupings_member_user_status"),
        ]

    def __str__(self) -> str:
        label = self.membership_status or self.membership_type
        return f"{self.user} → {self.grouping} ({label})"

    @property
    def grants_repository_access(self) -> bool:
        return (
            self.membership_type == self.Type.TA
            or self.membership_status in self.ACCEPTED_STATUSES
        )


class Extension(models.Model):
    grouping = models.OneToOneField(
        Grouping,
        on_delete=models.CASCADE,
        related_name="extension",
    )
    time_delta = models.DurationField()
    note = models.CharField(max_length=255, blank=True)

    def __str__(self) -> str:  # pragma: no cover - simple representation
        return f"{self.grouping} +{self.time_delta}"


class GracePeriodDeduction(models.Model):
    membership = models.ForeignKey(
        Membership,
        on_delete=models.CASCADE,
        related_name="grace_period_deductions",
    )
    deduction = models.PositiveIntegerField(default=0, validators=[MinValueValidator(0)])

    def __str__(self) -> str:  # pragma: no cover - simple representation
        return f"{self.membership.user}: -{self.deduction}"


class Submission(models.Model):
    grouping = models.ForeignKey(
        Grouping,
        on_delete=models.CASCADE,
        related_name="submissions",
    )
    revision_identifier = models.CharField(max_length=255)
    revision_timestamp = models.DateTimeField(null=True, blank=True)
    submission_version_used = models.BooleanField(default=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ("-created_at", "-id")

    def __str__(self) -> str:  # pragma: no cover - simple representation
        return f"{self.grouping} @ {self.revision_identifier}"
