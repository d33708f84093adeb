import random
from datetime import timedelta

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone
from faker import Faker

from apps.activity_logs.models import ActivityLog
from apps.announcements.services import publish_announcement
from apps.assignments.models import AssignmentSubmission
from apps.attendance.models import Attendance
from apps.common.factories import (
    AdminFactory,
    AnnouncementFactory,
    AssignmentFactory,
    ClassSessionFactory,
    ComplaintFactory,
    CourseFactory,
    DeadlineFactory,
    DiscussionCommentFactory,
    DiscussionFactory,
    FacultyFactory,
    ScholarshipFactory,
    StudentFactory,
)
from apps.courses.models import Enrollment, TeachingAssignment
from apps.evaluations.semester import current_semester
from apps.evaluations.services import RATING_FIELDS, has_submitted, submit_evaluation

User = get_user_model()
fake = Faker()


class Command(BaseCommand):
    help = (
        "Seed the database with demo data: users of every role, courses with faculty and "
        "enrollments, class sessions with attendance, assignments, discussions, "
        "evaluations, scholarships, complaints and announcements."
    )

    def add_arguments(self, parser):
        parser.add_argument("--students", type=int, default=40, help="Number of students")
        parser.add_argument("--faculty", type=int, default=6, help="Number of faculty members")
        parser.add_argument("--courses", type=int, default=8, help="Number of courses")
        parser.add_argument("--sessions-per-course", type=int, default=6, help="Class sessions per course")
        parser.add_argument("--seed", type=int, default=None, help="Random seed for repeatable data")

    @transaction.atomic
    def handle(self, *args, **options):
        if options["seed"] is not None:
            random.seed(options["seed"])
            Faker.seed(options["seed"])
        self.stdout.write(self.style.SUCCESS("--- Starting Database Seeding ---"))
        now = timezone.now()

        # === 1. Users ===
        admin = AdminFactory(username="admin", first_name="Site", last_name="Admin", is_superuser=True)
        faculty = [FacultyFactory(username=f"faculty{i:03d}") for i in range(1, options["faculty"] + 1)]
        students = [StudentFactory(username=f"student{i:03d}") for i in range(1, options["students"] + 1)]
        self.stdout.write(
            self.style.SUCCESS(f"Ensured 1 admin, {len(faculty)} faculty, {len(students)} students (password: password123).")
        )

        # === 2. Courses, teaching assignments, enrollments ===
        courses = [CourseFactory() for _ in range(options["courses"])]
        enrollment_count = 0
        for course in courses:
            TeachingAssignment.objects.get_or_create(user=random.choice(faculty), course=course)
            for student in random.sample(students, k=min(len(students), random.randint(8, 20))):
                _, created = Enrollment.objects.get_or_create(user=student, course=course)
                enrollment_count += int(created)
        self.stdout.write(self.style.SUCCESS(f"Created {len(courses)} courses and {enrollment_count} enrollments."))

        # === 3. Sessions and attendance ===
        session_count = 0
        attendance_count = 0
        for course in courses:
            roster = list(User.objects.filter(enrollments__course=course))
            for i in range(options["sessions_per_course"]):
                start = now + timedelta(days=(i - options["sessions_per_course"] // 2) * 3, hours=random.randint(-3, 3))
                session = ClassSessionFactory(course=course, title=f"{course.code} - Week {i + 1}", start_time=start)
                session_count += 1
                if session.end_time >= now:
                    continue
                for student in roster:
                    if random.random() < 0.85:
                        Attendance.objects.create(
                            session=session,
                            user=student,
                            is_present=random.random() < 0.8,
                            join_time=start + timedelta(minutes=random.randint(0, 10)),
                        )
                        attendance_count += 1
        self.stdout.write(self.style.SUCCESS(f"Created {session_count} sessions and {attendance_count} attendance rows."))

        # === 4. Assignments, submissions, deadlines ===
        for course in courses:
            teacher = TeachingAssignment.objects.filter(course=course).first().user
            DeadlineFactory(course=course, created_by=teacher)
            for offset in (-10, 5, 14):
                assignment = AssignmentFactory(
                    course=course, created_by=teacher, due_date=now + timedelta(days=offset)
                )
                if offset > 0:
                    continue
                for student in User.objects.filter(enrollments__course=course)[:10]:
                    AssignmentSubmission.objects.create(
                        assignment=assignment,
                        user=student,
                        submission_text=fake.paragraph(),
                        submitted_at=assignment.due_date - timedelta(days=1),
                        status=AssignmentSubmission.Status.GRADED,
                        grade=random.randint(55, assignment.max_points),
                        feedback=fake.sentence(),
                        graded_by=teacher,
                        graded_at=now,
                    )
        self.stdout.write(self.style.SUCCESS("Created assignments, graded submissions and deadlines."))

        # === 5. Discussions ===
        for course in courses:
            members = list(User.objects.filter(enrollments__course=course)[:6])
            if not members:
                continue
            for _ in range(3):
                discussion = DiscussionFactory(course=course, created_by=random.choice(members))
                for _ in range(random.randint(0, 4)):
                    DiscussionCommentFactory(discussion=discussion, user=random.choice(members))
        self.stdout.write(self.style.SUCCESS("Created discussions and comments."))

        # === 6. Evaluations (anonymous) ===
        semester = current_semester()
        evaluation_count = 0
        for course in courses:
            for student in User.objects.filter(enrollments__course=course)[:5]:
                if has_submitted(student, course, semester):
                    continue
                submit_evaluation(
                    student=student,
                    course=course,
                    semester=semester,
                    ratings={name: random.randint(2, 5) for name, _ in RATING_FIELDS},
                    strengths=fake.sentence() if random.random() < 0.5 else "",
                    improvements=fake.sentence() if random.random() < 0.3 else "",
                )
                evaluation_count += 1
        self.stdout.write(self.style.SUCCESS(f"Created {evaluation_count} evaluations for {semester}."))

        # === 7. Scholarships, complaints, announcements ===
        for _ in range(3):
            ScholarshipFactory()
        for student in random.sample(students, k=min(5, len(students))):
            ComplaintFactory(user=student, category=random.choice(["academic", "technical", "facilities"]))
        announcement = AnnouncementFactory(created_by=admin, title="Welcome to the new semester")
        recipients = publish_announcement(announcement)
        self.stdout.write(self.style.SUCCESS(f"Announcement sent to {recipients} users."))

        ActivityLog.objects.create(user=admin, action="seed_database", details={"courses": len(courses)})
        self.stdout.write(self.style.SUCCESS("--- Database Seeding Completed ---"))
