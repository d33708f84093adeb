from datetime import timedelta

import factory
from django.contrib.auth import get_user_model
from django.utils import timezone
from factory import SubFactory, post_generation
from faker import Faker

from apps.announcements.models import Announcement
from apps.assignments.models import Assignment, AssignmentSubmission
from apps.attendance.models import Attendance
from apps.class_sessions.models import ClassSession
from apps.complaints.models import Complaint
from apps.courses.models import Course, Deadline, Enrollment, TeachingAssignment
from apps.discussions.models import Discussion, DiscussionComment
from apps.scholarships.models import Scholarship

User = get_user_model()
fake = Faker()

DEPARTMENTS = ("Computer Science", "Mathematics", "Physics", "Economics", "Literature")


def _safe_digits(s, max_len=20):
    digits = "".join(ch for ch in str(s) if ch.isdigit())
    return digits[:max_len]


def _safe_text(s, max_len):
    return str(s)[:max_len]


class UserFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = User
        django_get_or_create = ("username",)

    username = factory.Sequence(lambda n: f"user{n:05d}")
    password = factory.PostGenerationMethodCall("set_password", "password123")
    first_name = factory.LazyAttribute(lambda o: _safe_text(fake.first_name(), 150))
    last_name = factory.LazyAttribute(lambda o: _safe_text(fake.last_name(), 150))
    email = factory.LazyAttribute(lambda o: f"{o.username}@campus.test")
    is_active = True
    role = User.Role.STUDENT
    phone = factory.LazyAttribute(lambda o: _safe_digits(fake.msisdn(), 20))
    department = factory.LazyAttribute(lambda o: fake.random_element(DEPARTMENTS))
    is_verified = True


class StudentFactory(UserFactory):
    role = User.Role.STUDENT


class FacultyFactory(UserFactory):
    role = User.Role.FACULTY


class AdminFactory(UserFactory):
    role = User.Role.ADMIN
    is_staff = True


class CourseFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Course
        django_get_or_create = ("code",)

    code = factory.Sequence(lambda n: f"CS{100 + n}")
    title = factory.LazyAttribute(lambda o: _safe_text(fake.catch_phrase().title(), 200))
    description = factory.LazyAttribute(lambda o: fake.paragraph(nb_sentences=2))
    credits = 3
    schedule = "Mon/Wed 10:00-11:30"
    room = factory.LazyAttribute(lambda o: f"B-{fake.random_int(100, 450)}")

    @post_generation
    def students(self, create, extracted, **kwargs):
        if not create or not extracted:
            return
        for student in extracted:
            Enrollment.objects.get_or_create(user=student, course=self)

    @post_generation
    def faculty(self, create, extracted, **kwargs):
        if not create or not extracted:
            return
        for member in extracted:
            TeachingAssignment.objects.get_or_create(user=member, course=self)


class EnrollmentFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Enrollment

    user = SubFactory(StudentFactory)
    course = SubFactory(CourseFactory)


class TeachingAssignmentFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = TeachingAssignment

    user = SubFactory(FacultyFactory)
    course = SubFactory(CourseFactory)


class DeadlineFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Deadline

    course = SubFactory(CourseFactory)
    title = factory.LazyAttribute(lambda o: _safe_text(fake.sentence(nb_words=4), 200))
    description = factory.LazyAttribute(lambda o: fake.sentence())
    due_date = factory.LazyFunction(lambda: timezone.now() + timedelta(days=7))


class ClassSessionFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = ClassSession

    course = SubFactory(CourseFactory)
    title = factory.LazyAttribute(lambda o: f"{o.course.code} lecture")
    description = ""
    start_time = factory.LazyFunction(lambda: timezone.now() + timedelta(days=1))
    end_time = factory.LazyAttribute(lambda o: o.start_time + timedelta(minutes=90))
    meeting_link = "https://meet.example.com/room"


class AttendanceFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Attendance

    session = SubFactory(ClassSessionFactory)
    user = SubFactory(StudentFactory)
    is_present = True


class AssignmentFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Assignment

    course = SubFactory(CourseFactory)
    title = factory.LazyAttribute(lambda o: _safe_text(fake.sentence(nb_words=5), 200))
    description = factory.LazyAttribute(lambda o: fake.paragraph())
    due_date = factory.LazyFunction(lambda: timezone.now() + timedelta(days=10))
    max_points = 100
    submission_type = Assignment.SubmissionType.TEXT


class AssignmentSubmissionFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = AssignmentSubmission

    assignment = SubFactory(AssignmentFactory)
    user = SubFactory(StudentFactory)
    submission_text = factory.LazyAttribute(lambda o: fake.paragraph())


class AnnouncementFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Announcement

    title = factory.LazyAttribute(lambda o: _safe_text(fake.sentence(nb_words=6), 200))
    content = factory.LazyAttribute(lambda o: fake.paragraph())
    target = Announcement.Target.ALL
    created_by = SubFactory(AdminFactory)


class ComplaintFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Complaint

    user = SubFactory(StudentFactory)
    subject = factory.LazyAttribute(lambda o: _safe_text(fake.sentence(nb_words=5), 200))
    description = factory.LazyAttribute(lambda o: fake.paragraph())
    category = Complaint.Category.ACADEMIC


class ScholarshipFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Scholarship

    name = factory.Sequence(lambda n: f"Merit Scholarship {n}")
    description = factory.LazyAttribute(lambda o: fake.paragraph())
    amount = 2500
    requirements = "GPA above 3.0"
    deadline = factory.LazyFunction(lambda: timezone.localdate() + timedelta(days=30))
    academic_year = "2025-2026"
    is_active = True


class DiscussionFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Discussion

    course = SubFactory(CourseFactory)
    created_by = SubFactory(StudentFactory)
    title = factory.LazyAttribute(lambda o: _safe_text(fake.sentence(nb_words=6), 200))
    content = factory.LazyAttribute(lambda o: fake.paragraph())


class DiscussionCommentFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = DiscussionComment

    discussion = SubFactory(DiscussionFactory)
    user = SubFactory(StudentFactory)
    content = factory.LazyAttribute(lambda o: fake.sentence())
