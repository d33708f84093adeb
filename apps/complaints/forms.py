from django import forms

from .models import Complaint


class ComplaintForm(forms.ModelForm):
    class Meta:
        model = Complaint
        fields = ["subject", "category", "description"]
        widgets = {"description": forms.Textarea(attrs={"rows": 6})}

    def clean_subject(self):
        subject = (self.cleaned_data.get("subject") or "").strip()
        if not subject:
            raise forms.ValidationError("Please enter a subject.")
        return subject


class ComplaintStatusForm(forms.Form):
    status = forms.ChoiceField(choices=Complaint.Status.choices)
    resolution_notes = forms.CharField(required=False, widget=forms.Textarea(attrs={"rows": 4}))

    def clean(self):
        cleaned = super().clean()
        if cleaned.get("status") in Complaint.CLOSED_STATUSES and not (cleaned.get("resolution_notes") or "").strip():
            self.add_error(
                "resolution_notes", "Please provide details about the resolution or reason for rejection."
            )
        return cleaned
