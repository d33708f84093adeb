import shutil
import tempfile

from django.core.exceptions import PermissionDenied
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from django.urls import reverse

from apps.activity_logs.models import ActivityLog
from apps.common.factories import (
    AdminFactory,
    CourseFactory,
    FacultyFactory,
    StudentFactory,
    TeachingAssignmentFactory,
)

from .models import StudyMaterial
from .services import delete_material, materials_for_user, upload_material

MEDIA_ROOT = tempfile.mkdtemp()


def _pdf(name="week1.pdf"):
    return SimpleUploadedFile(name, b"%PDF-1.4 slides", content_type="application/pdf")


@override_settings(MEDIA_ROOT=MEDIA_ROOT)
class MaterialTests(TestCase):
    @classmethod
    def tearDownClass(cls):
        shutil.rmtree(MEDIA_ROOT, ignore_errors=True)
        super().tearDownClass()

    def setUp(self):
        self.faculty = FacultyFactory()
        self.student = StudentFactory()
        self.course = CourseFactory(faculty=[self.faculty], students=[self.student])

    def test_upload_records_file_metadata(self):
        material = upload_material(course=self.course, uploaded=_pdf(), title="Week 1", user=self.faculty)
        self.assertEqual(material.file_name, "week1.pdf")
        self.assertEqual(material.file_type, "application/pdf")
        self.assertEqual(material.file_size, len(b"%PDF-1.4 slides"))
        self.assertTrue(material.file.name.startswith(f"materials/{self.course.pk}/"))
        self.assertTrue(ActivityLog.objects.filter(action="upload_material").exists())
        self.assertEqual(list(materials_for_user(self.student)), [material])

    def test_only_course_staff_upload(self):
        with self.assertRaises(PermissionDenied):
            upload_material(course=self.course, uploaded=_pdf(), title="Nope", user=FacultyFactory())

    def test_delete_by_uploader_or_admin(self):
        material = upload_material(course=self.course, uploaded=_pdf(), title="Week 1", user=self.faculty)
        co_teacher = FacultyFactory()
        TeachingAssignmentFactory(user=co_teacher, course=self.course)
        with self.assertRaises(PermissionDenied):
            delete_material(material=material, user=co_teacher)

        delete_material(material=material, user=AdminFactory())
        self.assertFalse(StudyMaterial.objects.exists())

    def test_upload_view(self):
        self.client.force_login(self.faculty)
        response = self.client.post(
            reverse("materials:upload"),
            {"course": self.course.pk, "title": "Syllabus", "description": "", "file": _pdf("syllabus.pdf")},
        )
        self.assertRedirects(response, f"{reverse('materials:list')}?course={self.course.pk}")
        self.assertEqual(StudyMaterial.objects.get().uploaded_by, self.faculty)

    def test_students_cannot_upload(self):
        self.client.force_login(self.student)
        self.assertEqual(self.client.get(reverse("materials:upload")).status_code, 403)

    def test_student_delete_is_forbidden(self):
        material = upload_material(course=self.course, uploaded=_pdf(), title="Week 1", user=self.faculty)
        self.client.force_login(self.student)
        response = self.client.post(reverse("materials:delete", args=[material.pk]))
        self.assertEqual(response.status_code, 403)
