from django import forms

from .models import Scholarship, ScholarshipApplication


class ScholarshipForm(forms.ModelForm):
    class Meta:
        model = Scholarship
        fields = ["name", "description", "amount", "requirements", "deadline", "academic_year", "is_active"]
        widgets = {
            "description": forms.Textarea(attrs={"rows": 4}),
            "requirements": forms.Textarea(attrs={"rows": 3}),
            "deadline": forms.DateInput(attrs={"type": "date"}, format="%Y-%m-%d"),
        }

    def clean_amount(self):
        amount = self.cleaned_data.get("amount")
        if amount is not None and amount <= 0:
            raise forms.ValidationError("Amount must be greater than zero.")
        return amount


class ScholarshipApplicationForm(forms.ModelForm):
    class Meta:
        model = ScholarshipApplication
        fields = ["gpa", "financial_info", "statement_of_purpose"]
        labels = {
            "gpa": "Current GPA",
            "financial_info": "Financial information",
            "statement_of_purpose": "Statement of purpose",
        }
        widgets = {
            "gpa": forms.NumberInput(attrs={"step": "0.01", "min": 0, "max": 4}),
            "financial_info": forms.Textarea(attrs={"rows": 4}),
            "statement_of_purpose": forms.Textarea(attrs={"rows": 6}),
        }


class ApplicationReviewForm(forms.ModelForm):
    class Meta:
        model = ScholarshipApplication
        fields = ["status", "admin_notes"]
        widgets = {"admin_notes": forms.Textarea(attrs={"rows": 4})}
