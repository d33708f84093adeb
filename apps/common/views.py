from datetime import timedelta

from django.contrib.auth import get_user_model
from django.contrib.auth.decorators import login_required
from django.db.models import Count
from django.shortcuts import redirect, render
from django.utils import timezone

from apps.accounts.permissions import role_flags
from apps.activity_logs.models import ActivityLog
from apps.assignments.models import Assignment, AssignmentSubmission
from apps.attendance.services import student_attendance, student_stats
from apps.class_sessions.models import ClassSession
from apps.complaints.models import Complaint
from apps.courses.models import Course, Enrollment
from apps.courses.services import courses_for_user, upcoming_deadlines
from apps.notifications.models import Notification
from apps.scholarships.models import ScholarshipApplication

User = get_user_model()


def home(request):
    if request.user.is_authenticated:
        return redirect("common:dashboard")
    return redirect("accounts:login")


def _card(label, value, icon, accent="primary", subtitle=""):
    return {"label": label, "value": value, "icon": icon, "accent": accent, "subtitle": subtitle}


def _upcoming_sessions(courses, now, limit=5):
    return (
        ClassSession.objects.filter(course__in=courses, end_time__gte=now)
        .select_related("course")
        .order_by("start_time")[:limit]
    )


@login_required
def dashboard(request):
    user = request.user
    flags = role_flags(user)
    now = timezone.now()
    context = {"now": now, **flags}

    if flags["is_admin"]:
        cards = [
            _card("Students", User.objects.filter(role=User.Role.STUDENT, is_active=True).count(), "bi-people"),
            _card("Faculty", User.objects.filter(role=User.Role.FACULTY, is_active=True).count(), "bi-person-badge", "info"),
            _card("Courses", Course.objects.count(), "bi-journal-bookmark", "success"),
            _card("Enrollments", Enrollment.objects.count(), "bi-card-checklist", "secondary"),
            _card(
                "Open complaints",
                Complaint.objects.filter(status__in=[Complaint.Status.PENDING, Complaint.Status.IN_PROGRESS]).count(),
                "bi-exclamation-octagon",
                "warning",
            ),
            _card(
                "Pending applications",
                ScholarshipApplication.objects.filter(status=ScholarshipApplication.Status.PENDING).count(),
                "bi-award",
                "danger",
            ),
        ]
        context.update(
            {
                "dashboard_role": "admin",
                "cards": cards,
                "recent_activity": ActivityLog.objects.select_related("user")[:8],
                "upcoming_sessions": _upcoming_sessions(Course.objects.all(), now),
            }
        )

    elif flags["is_faculty"]:
        courses = courses_for_user(user)
        to_grade = AssignmentSubmission.objects.filter(
            assignment__course__in=courses, status=AssignmentSubmission.Status.SUBMITTED
        ).count()
        cards = [
            _card("My courses", courses.count(), "bi-journal-bookmark"),
            _card(
                "Students",
                Enrollment.objects.filter(course__in=courses).values("user").distinct().count(),
                "bi-people",
                "info",
            ),
            _card("Submissions to grade", to_grade, "bi-check2-square", "warning"),
            _card(
                "Classes this week",
                ClassSession.objects.filter(
                    course__in=courses, start_time__gte=now, start_time__lt=now + timedelta(days=7)
                ).count(),
                "bi-calendar-event",
                "success",
            ),
        ]
        context.update(
            {
                "dashboard_role": "faculty",
                "cards": cards,
                "courses": courses.annotate(student_count=Count("enrollments", distinct=True)).order_by("code"),
                "upcoming_sessions": _upcoming_sessions(courses, now),
                "deadlines": upcoming_deadlines(user)[:5],
            }
        )

    elif flags["is_student"]:
        courses = courses_for_user(user)
        stats = student_stats(student_attendance(user))
        pending = (
            Assignment.objects.filter(course__in=courses, due_date__gte=now)
            .exclude(submissions__user=user)
            .count()
        )
        cards = [
            _card("Enrolled courses", courses.count(), "bi-journal-bookmark"),
            _card("Assignments due", pending, "bi-check2-square", "warning", "Not yet submitted"),
            _card("Attendance", f"{stats['percentage']}%", "bi-person-check", "success", f"{stats['present']}/{stats['total']} classes"),
            _card(
                "Unread notifications",
                Notification.objects.filter(user=user, is_read=False).count(),
                "bi-bell",
                "info",
            ),
        ]
        context.update(
            {
                "dashboard_role": "student",
                "cards": cards,
                "upcoming_sessions": _upcoming_sessions(courses, now),
                "deadlines": upcoming_deadlines(user)[:5],
            }
        )

    else:
        context.update(
            {
                "dashboard_role": "generic",
                "generic_message": "No dashboard is available for your account yet.",
            }
        )

    return render(request, "dashboard/index.html", context)
