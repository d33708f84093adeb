from django import forms

from apps.common.utils.uploads import validate_upload_size

from .models import StudyMaterial


class StudyMaterialForm(forms.ModelForm):
    class Meta:
        model = StudyMaterial
        fields = ["course", "title", "description", "file"]
        widgets = {"description": forms.Textarea(attrs={"rows": 3})}

    def __init__(self, *args, courses=None, **kwargs):
        super().__init__(*args, **kwargs)
        if courses is not None:
            self.fields["course"].queryset = courses.order_by("code")

    def clean_file(self):
        uploaded = self.cleaned_data.get("file")
        validate_upload_size(uploaded)
        return uploaded
