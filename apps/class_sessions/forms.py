from django import forms

from apps.common.utils.forms import DateTimeLocalInput

from .models import ClassSession


class ClassSessionForm(forms.ModelForm):
    class Meta:
        model = ClassSession
        fields = ["course", "title", "description", "start_time", "end_time", "meeting_link"]
        widgets = {
            "course": forms.Select(attrs={"class": "form-select tom-select"}),
            "description": forms.Textarea(attrs={"rows": 3}),
            "start_time": DateTimeLocalInput(),
            "end_time": DateTimeLocalInput(),
        }

    def __init__(self, *args, courses=None, **kwargs):
        super().__init__(*args, **kwargs)
        if courses is not None:
            self.fields["course"].queryset = courses.order_by("code")
        self.fields["start_time"].input_formats = ["%Y-%m-%dT%H:%M", "%Y-%m-%d %H:%M"]
        self.fields["end_time"].input_formats = ["%Y-%m-%dT%H:%M", "%Y-%m-%d %H:%M"]
