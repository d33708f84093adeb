from django import forms

from .services import RATING_FIELDS

RATING_CHOICES = [(i, str(i)) for i in range(5, 0, -1)]


class EvaluationForm(forms.Form):
    strengths = forms.CharField(
        required=False,
        label="What did you like about this course?",
        widget=forms.Textarea(attrs={"rows": 3}),
    )
    improvements = forms.CharField(
        required=False,
        label="What could be improved?",
        widget=forms.Textarea(attrs={"rows": 3}),
    )
    additional_comments = forms.CharField(
        required=False,
        label="Additional comments",
        widget=forms.Textarea(attrs={"rows": 3}),
    )

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        ratings = {
            name: forms.IntegerField(
                label=label,
                min_value=1,
                max_value=5,
                widget=forms.RadioSelect(choices=RATING_CHOICES),
                error_messages={"required": f"Please rate {label.lower()}."},
            )
            for name, label in RATING_FIELDS
        }
        # Ratings render before the free-text questions.
        self.fields = {**ratings, **self.fields}

    def ratings(self):
        return {name: self.cleaned_data[name] for name, _ in RATING_FIELDS}
