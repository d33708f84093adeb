import uuid

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

RATING_VALIDATORS = [MinValueValidator(1), MaxValueValidator(5)]


class CourseEvaluation(models.Model):
    """Anonymous rating row; holds no reference to the submitting user."""

    # Random key: insertion order must not line up with EvaluationSubmission ids.
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    course =models.ForeignKey("courses.Course", on_delete=models.CASCADE, related_name="evaluations")
    semester = models.CharField(max_length=32)
    teaching_quality = models.PositiveSmallIntegerField(validators=RATING_VALIDATORS)
    course_content = models.PositiveSmallIntegerField(validators=RATING_VALIDATORS)
    course_materials = models.PositiveSmallIntegerField(validators=RATING_VALIDATORS)
    workload = models.PositiveSmallIntegerField(validators=RATING_VALIDATORS)
    organization = models.PositiveSmallIntegerField(validators=RATING_VALIDATORS)
    overall_rating = models.PositiveSmallIntegerField(validators=RATING_VALIDATORS)
    strengths = models.TextField(blank=True)
    improvements = models.TextField(blank=True)
    additional_comments = models.TextField(blank=True)
    submission_hash = models.CharField(max_length=64, unique=True)
    # Date only: must not be joinable to marker timestamps.
    submitted_on = models.DateField(auto_now_add=True)

    class Meta:
        indexes = [models.Index(fields=["course", "semester"], name="evaluation_course_sem_idx")]

    def __str__(self):
        return f"{self.course} ({self.semester})"

    @property
    def has_comments(self):
        return bool(self.strengths or self.improvements or self.additional_comments)


class EvaluationSubmission(models.Model):
    """Marker proving a student already evaluated a course this semester."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="evaluation_submissions"
    )
    course = models.ForeignKey(
        "courses.Course", on_delete=models.CASCADE, related_name="evaluation_submissions"
    )
    semester = models.CharField(max_length=32)
    submitted_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["user", "course", "semester"], name="uniq_evalsub_user_course_sem")
        ]

    def __str__(self):
        return f"{self.user} evaluated {self.course} ({self.semester})"
