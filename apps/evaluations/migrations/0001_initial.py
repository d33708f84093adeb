import uuid

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

RATING_VALIDATORS = [
    django.core.validators.MinValueValidator(1),
    django.core.validators.MaxValueValidator(5),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("courses", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="CourseEvaluation",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("semester", models.CharField(max_length=32)),
                ("teaching_quality", models.PositiveSmallIntegerField(validators=RATING_VALIDATORS)),
                ("course_content", models.PositiveSmallIntegerField(validators=RATING_VALIDATORS)),
                ("course_materials", models.PositiveSmallIntegerField(validators=RATING_VALIDATORS)),
                ("workload", models.PositiveSmallIntegerField(validators=RATING_VALIDATORS)),
                ("organization", models.PositiveSmallIntegerField(validators=RATING_VALIDATORS)),
                ("overall_rating", models.PositiveSmallIntegerField(validators=RATING_VALIDATORS)),
                ("strengths", models.TextField(blank=True)),
                ("improvements", models.TextField(blank=True)),
                ("additional_comments", models.TextField(blank=True)),
                ("submission_hash", models.CharField(max_length=64, unique=True)),
                ("submitted_on", models.DateField(auto_now_add=True)),
                (
                    "course",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="evaluations",
                        to="courses.course",
                    ),
                ),
            ],
            options={
                "indexes": [models.Index(fields=["course", "semester"], name="evaluation_course_sem_idx")],
            },
        ),
        migrations.CreateModel(
            name="EvaluationSubmission",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("semester", models.CharField(max_length=32)),
                ("submitted_at", models.DateTimeField(auto_now_add=True)),
                (
                    "course",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="evaluation_submissions",
                        to="courses.course",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="evaluation_submissions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(
                        fields=("user", "course", "semester"), name="uniq_evalsub_user_course_sem"
                    )
                ],
            },
        ),
    ]
