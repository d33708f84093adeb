from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    class Role(models.TextChoices):
        STUDENT = "STUDENT", "Student"
        FACULTY = "FACULTY", "Faculty"
        ADMIN = "ADMIN", "Admin"

    class TutorStatus(models.TextChoices):
        NONE = "", "Not applied"
        PENDING = "pending", "Pending"
        APPROVED = "approved", "Approved"
        REJECTED = "rejected", "Rejected"

    role = models.CharField(max_length=20, choices=Role.choices, default=Role.STUDENT)
    phone = models.CharField(max_length=20, blank=True)
    department = models.CharField(max_length=120, blank=True)
    bio = models.TextField(blank=True)
    is_verified = models.BooleanField(default=False)
    is_tutor = models.BooleanField(default=False)
    tutor_application_status = models.CharField(
        max_length=20, choices=TutorStatus.choices, blank=True, default=TutorStatus.NONE
    )

    class Meta:
        db_table = "accounts_user"
        indexes = [
            models.Index(fields=["role"], name="accounts_user_role_idx"),
            models.Index(fields=["tutor_application_status"], name="accounts_user_tutor_idx"),
        ]

    def __str__(self):
        return f"{self.username} ({self.role})"

    @property
    def is_admin_role(self) -> bool:
        return self.is_superuser or self.role == self.Role.ADMIN

    @property
    def is_faculty(self) -> bool:
        return self.role == self.Role.FACULTY

    @property
    def is_student(self) -> bool:
        return self.role == self.Role.STUDENT

    def preferred_full_name(self) -> str:
        """Return the best available human friendly name for the user."""
        full_name = (super().get_full_name() or "").strip()
        if full_name:
            return full_name
        if self.username:
            return self.username
        return "Unknown user"

    def preferred_email(self) -> str:
        """Return the user's email or an empty string when missing."""
        return (self.email or "").strip()

    def display_name_with_email(self) -> str:
        """Display helper that combines full name with email when possible."""
        name = self.preferred_full_name()
        email = self.preferred_email()
        if email and email.lower() not in name.lower():
            return f"{name} ({email})"
        return name
