from decimal import Decimal

from django import forms

from apps.common.utils.forms import DateTimeLocalInput
from apps.common.utils.uploads import validate_upload_size

from .models import Assignment, AssignmentSubmission


class AssignmentForm(forms.ModelForm):
    class Meta:
        model = Assignment
        fields = ["course", "title", "description", "due_date", "max_points", "submission_type", "attachment"]
        widgets = {
            "description": forms.Textarea(attrs={"rows": 4}),
            "due_date": DateTimeLocalInput(),
        }

    def __init__(self, *args, courses=None, **kwargs):
        super().__init__(*args, **kwargs)
        if courses is not None:
            self.fields["course"].queryset = courses.order_by("code")

    def clean_max_points(self):
        points = self.cleaned_data.get("max_points")
        if points is not None and points <= 0:
            raise forms.ValidationError("Max points must be greater than zero.")
        return points

    def clean_attachment(self):
        attachment = self.cleaned_data.get("attachment")
        validate_upload_size(attachment)
        return attachment


class SubmissionForm(forms.Form):
    submission_text = forms.CharField(label="Answer", required=False, widget=forms.Textarea(attrs={"rows": 6}))
    submission_url = forms.URLField(label="Link", required=False)
    file = forms.FileField(label="File", required=False)

    def __init__(self, *args, assignment=None, submission=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.assignment = assignment
        self.submission = submission

    def clean_file(self):
        uploaded = self.cleaned_data.get("file")
        validate_upload_size(uploaded)
        return uploaded

    def clean(self):
        cleaned = super().clean()
        kind = self.assignment.submission_type if self.assignment else None
        if kind == Assignment.SubmissionType.TEXT and not (cleaned.get("submission_text") or "").strip():
            self.add_error("submission_text", "Please write your answer.")
        elif kind == Assignment.SubmissionType.URL and not cleaned.get("submission_url"):
            self.add_error("submission_url", "Please provide a link.")
        elif kind == Assignment.SubmissionType.FILE and not cleaned.get("file"):
            if not (self.submission and self.submission.file):
                self.add_error("file", "Please attach a file.")
        return cleaned


class GradeForm(forms.ModelForm):
    class Meta:
        model = AssignmentSubmission
        fields = ["grade", "feedback"]
        widgets = {"feedback": forms.Textarea(attrs={"rows": 4})}

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["grade"].required = True
        self.fields["grade"].widget.attrs.update(
            {"min": 0, "max": self.instance.assignment.max_points, "step": "0.5"}
        )

    def clean_grade(self):
        grade = self.cleaned_data.get("grade")
        max_points = Decimal(self.instance.assignment.max_points)
        if grade is not None and not Decimal(0) <= grade <= max_points:
            raise forms.ValidationError(f"Grade must be between 0 and {self.instance.assignment.max_points}.")
        return grade
