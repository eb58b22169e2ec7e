from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models


class Section(models.Model):
    """A lecture or tutorial section students are enrolled in."""

    name = models.CharField(max_length=120, unique=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class StudentProfile(models.Model):
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE)
    section = models.ForeignKey(
        Section,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="students",
    )
    hidden = models.BooleanField(default=False)
    grace_credits = models.IntegerField(
        default=0, validators=[MinValueValidator(0)]
    )

    def __str__(self):
        return f"{self.user.username} (student)"


class TaProfile(models.Model):
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE)

    def __str__(self):
        return f"{self.user.username} (ta)"


class AdminProfile(models.Model):
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE)

    def __str__(self):
        return f"{self.user.username} (admin)"


class Role(models.TextChoices):
    ADMIN = "admin", "Admin"
    TA = "ta", "TA"
    STUDENT = "student", "Student"


def is_student(user) -> bool:
    return bool(user) and StudentProfile.objects.filter(user=user).exists()


def is_ta(user) -> bool:
    return bool(user) and TaProfile.objects.filter(user=user).exists()


def is_admin(user) -> bool:
    return bool(user) and AdminProfile.objects.filter(user=user).exists()


def role_of(user) -> str | None:
    """Return the role of ``user`` or ``None`` if it has no profile.

    A user is expected to hold exactly one profile; admins win over TAs and
    TAs over students if data is inconsistent.
    """

    if is_admin(user):
        return Role.ADMIN
    if is_ta(user):
        return Role.TA
    if is_student(user):
        return Role.STUDENT
    return None


def section_of(user) -> Section | None:
    profile = StudentProfile.objects.filter(user=user).select_related("section").first()
    return profile.section if profile else None
