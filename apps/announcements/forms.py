from django import forms
from django.contrib.auth import get_user_model

from apps.courses.models import Course

from .models import Announcement

User = get_user_model()


class StudentMultipleChoiceField(forms.ModelMultipleChoiceField):
    def label_from_instance(self, obj):
        return obj.display_name_with_email()


class AnnouncementForm(forms.ModelForm):
    recipients = StudentMultipleChoiceField(
        queryset=User.objects.none(),
        required=False,
        label="Students",
        widget=forms.SelectMultiple(attrs={"class": "form-select tom-select", "multiple": "multiple"}),
    )

    class Meta:
        model = Announcement
        fields = ["title", "content", "target", "course", "recipients"]
        widgets = {"content": forms.Textarea(attrs={"rows": 5})}

    def __init__(self, *args, courses=None, allow_everyone=True, **kwargs):
        super().__init__(*args, **kwargs)
        self.allow_everyone = allow_everyone
        self.fields["course"].queryset = (courses if courses is not None else Course.objects.all()).order_by("code")
        if not allow_everyone:
            self.fields["target"].choices = [
                c for c in Announcement.Target.choices if c[0] != Announcement.Target.ALL
            ]
            self.fields["target"].initial = Announcement.Target.COURSE

        course_id = self.data.get("course") if self.is_bound else None
        students = User.objects.filter(role=User.Role.STUDENT, is_active=True)
        if course_id:
            students = students.filter(enrollments__course_id=course_id)
        self.fields["recipients"].queryset = students.order_by("last_name", "first_name").distinct()

    def clean_title(self):
        title = (self.cleaned_data.get("title") or "").strip()
        if not title:
            raise forms.ValidationError("Title is required.")
        return title

    def clean_content(self):
        content = (self.cleaned_data.get("content") or "").strip()
        if not content:
            raise forms.ValidationError("Content is required.")
        return content

    def clean(self):
        cleaned = super().clean()
        target = cleaned.get("target")
        course = cleaned.get("course")
        recipients = cleaned.get("recipients")

        if target == Announcement.Target.ALL:
            if not self.allow_everyone:
                raise forms.ValidationError("You can only send announcements to your own courses.")
            cleaned["course"] = None
        elif target in {Announcement.Target.COURSE, Announcement.Target.STUDENTS} and not course:
            self.add_error("course", "Please choose a course.")
        if target == Announcement.Target.STUDENTS and not recipients:
            self.add_error("recipients", "Please choose at least one student.")
        if target != Announcement.Target.STUDENTS:
            cleaned["recipients"] = User.objects.none()
        return cleaned
