from django import forms

from apps.courses.models import Course

from .models import Discussion


class DiscussionForm(forms.ModelForm):
    class Meta:
        model = Discussion
        fields = ["course", "title", "content"]
        widgets = {"content": forms.Textarea(attrs={"rows": 6})}

    def __init__(self, *args, courses=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["course"].queryset = (courses if courses is not None else Course.objects.all()).order_by("code")


class CommentForm(forms.Form):
    content = forms.CharField(
        widget=forms.Textarea(attrs={"rows": 3, "placeholder": "Write a reply..."}),
        error_messages={"required": "Comment cannot be empty."},
    )
