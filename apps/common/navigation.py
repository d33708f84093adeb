"""Sidebar link sets per role. Views enforce the same roles server-side."""
from django.urls import reverse

from apps.accounts.permissions import role_flags

STUDENT_LINKS = [
    ("Dashboard", "common:dashboard", "bi-speedometer2"),
    ("Courses", "courses:list", "bi-journal-bookmark"),
    ("Classes", "class_sessions:upcoming", "bi-camera-video"),
    ("Assignments", "assignments:list", "bi-clipboard-check"),
    ("Grades", "assignments:grades", "bi-award"),
    ("Attendance", "attendance:my_attendance", "bi-calendar-check"),
    ("Materials", "materials:list", "bi-folder2-open"),
    ("Deadlines", "courses:deadlines", "bi-alarm"),
    ("Discussions", "discussions:list", "bi-chat-square-text"),
    ("Evaluations", "evaluations:list", "bi-star-half"),
    ("Scholarships", "scholarships:list", "bi-cash-coin"),
    ("Complaints", "complaints:list", "bi-exclamation-circle"),
    ("Announcements", "announcements:list", "bi-megaphone"),
    ("Notifications", "notifications:list", "bi-bell"),
]

FACULTY_LINKS = [
    ("Dashboard", "common:dashboard", "bi-speedometer2"),
    ("My courses", "courses:list", "bi-journal-bookmark"),
    ("Classes", "class_sessions:manage", "bi-camera-video"),
    ("Assignments", "assignments:list", "bi-clipboard-check"),
    ("Materials", "materials:list", "bi-folder2-open"),
    ("Deadlines", "courses:deadlines", "bi-alarm"),
    ("Discussions", "discussions:list", "bi-chat-square-text"),
    ("Announcements", "announcements:manage", "bi-megaphone"),
    ("Notifications", "notifications:list", "bi-bell"),
]

ADMIN_LINKS = [
    ("Dashboard", "common:dashboard", "bi-speedometer2"),
    ("Users", "accounts:manage_accounts", "bi-people"),
    ("Courses", "courses:list", "bi-journal-bookmark"),
    ("Classes", "class_sessions:manage", "bi-camera-video"),
    ("Announcements", "announcements:manage", "bi-megaphone"),
    ("Complaints", "complaints:manage", "bi-exclamation-circle"),
    ("Scholarships", "scholarships:manage", "bi-cash-coin"),
    ("Tutors", "accounts:manage_tutors", "bi-person-badge"),
    ("Evaluations", "evaluations:admin_overview", "bi-star-half"),
    ("Discussions", "discussions:list", "bi-chat-square-text"),
    ("Reports", "reports:dashboard", "bi-bar-chart"),
    ("Exports", "reports:exports", "bi-download"),
    ("Activity logs", "activity_logs:list", "bi-clock-history"),
]


def links_for(user):
    flags = role_flags(user)
    if flags["is_admin"]:
        source = ADMIN_LINKS
    elif flags["is_faculty"]:
        source = FACULTY_LINKS
    elif flags["is_student"]:
        source = STUDENT_LINKS
    else:
        source = []
    return [
        {"label": label, "url_name": url_name, "url": reverse(url_name), "icon": icon}
        for label, url_name, icon in source
    ]
