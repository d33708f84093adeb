from django import forms
from django.contrib.auth import get_user_model

from apps.common.utils.forms import DateTimeLocalInput

from .models import Course, Deadline

User = get_user_model()


class UserChoiceField(forms.ModelChoiceField):
    def label_from_instance(self, obj):
        return obj.display_name_with_email()


class CourseForm(forms.ModelForm):
    class Meta:
        model = Course
        fields = ["code", "title", "description", "credits", "schedule", "room"]
        widgets = {"description": forms.Textarea(attrs={"rows": 3})}

    def clean_code(self):
        code = (self.cleaned_data.get("code") or "").strip().upper()
        if not code:
            raise forms.ValidationError("Course code is required.")
        instance = self.instance
        if instance.pk and code != instance.code and instance.enrollments.exists():
            raise forms.ValidationError(
                "The course code cannot change once students are enrolled."
            )
        return code

    def clean_credits(self):
        credits = self.cleaned_data.get("credits")
        if credits is not None and not 0 < credits <= 12:
            raise forms.ValidationError("Credits must be between 1 and 12.")
        return credits


class EnrollStudentForm(forms.Form):
    student = UserChoiceField(
        queryset=User.objects.none(),
        label="Student",
        widget=forms.Select(attrs={"class": "form-select tom-select"}),
    )

    def __init__(self, *args, course=None, **kwargs):
        super().__init__(*args, **kwargs)
        qs = User.objects.filter(role=User.Role.STUDENT, is_active=True)
        if course is not None:
            qs = qs.exclude(enrollments__course=course)
        self.fields["student"].queryset = qs.order_by("last_name", "first_name")


class AssignFacultyForm(forms.Form):
    faculty = UserChoiceField(
        queryset=User.objects.none(),
        label="Faculty member",
        widget=forms.Select(attrs={"class": "form-select tom-select"}),
    )

    def __init__(self, *args, course=None, **kwargs):
        super().__init__(*args, **kwargs)
        qs = User.objects.filter(role=User.Role.FACULTY, is_active=True)
        if course is not None:
            qs = qs.exclude(teaching_assignments__course=course)
        self.fields["faculty"].queryset = qs.order_by("last_name", "first_name")


class DeadlineForm(forms.ModelForm):
    class Meta:
        model = Deadline
        fields = ["course", "title", "description", "due_date"]
        widgets = {
            "description": forms.Textarea(attrs={"rows": 3}),
            "due_date": DateTimeLocalInput(),
        }

    def __init__(self, *args, courses=None, **kwargs):
        super().__init__(*args, **kwargs)
        if courses is not None:
            self.fields["course"].queryset = courses
