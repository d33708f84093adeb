from django import forms
from django.contrib.auth import get_user_model, password_validation
from django.contrib.auth.forms import (
    PasswordChangeForm as DjangoPasswordChangeForm,
    SetPasswordForm as DjangoSetPasswordForm,
)
from django.core.exceptions import ValidationError
from django.db.models import Q

from .services import unique_username

User = get_user_model()


def _unique_email(email, exclude_pk=None):
    email = (email or "").strip()
    if email and User.objects.filter(email__iexact=email).exclude(pk=exclude_pk).exists():
        raise ValidationError("This email is already used by another account.")
    return email


class ImportUserForm(forms.Form):
    file = forms.FileField(label="Excel/CSV file")


class SignUpForm(forms.Form):
    first_name = forms.CharField(max_length=150)
    last_name = forms.CharField(max_length=150)
    email = forms.EmailField()
    password1 = forms.CharField(label="Password", widget=forms.PasswordInput)
    password2 = forms.CharField(label="Confirm password", widget=forms.PasswordInput)

    def clean_email(self):
        email = _unique_email(self.cleaned_data.get("email"))
        if not email:
            raise ValidationError("Please enter your email address.")
        return email

    def clean(self):
        cleaned = super().clean()
        p1 = cleaned.get("password1")
        p2 = cleaned.get("password2")
        if p1 and p2 and p1 != p2:
            self.add_error("password2", "The two password fields didn't match.")
        elif p1:
            candidate = User(
                first_name=cleaned.get("first_name", ""),
                last_name=cleaned.get("last_name", ""),
                email=cleaned.get("email", ""),
            )
            try:
                password_validation.validate_password(p1, candidate)
            except ValidationError as e:
                self.add_error("password1", e)
        return cleaned


class AdminUserCreateForm(forms.ModelForm):
    password1 = forms.CharField(label="Password", widget=forms.PasswordInput)
    password2 = forms.CharField(label="Confirm password", widget=forms.PasswordInput)

    class Meta:
        model = User
        fields = ["first_name", "last_name", "email", "phone", "role", "department", "is_active"]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["first_name"].required = True
        self.fields["email"].required = True

    def clean_email(self):
        return _unique_email(self.cleaned_data.get("email"))

    def clean(self):
        cleaned = super().clean()
        if cleaned.get("password1") != cleaned.get("password2"):
            self.add_error("password2", "The two password fields didn't match.")
        return cleaned

    def save(self, commit=True):
        user = super().save(commit=False)
        user.username = unique_username(self.cleaned_data["first_name"], self.cleaned_data["last_name"])
        user.set_password(self.cleaned_data["password1"])
        user.is_staff = user.role == User.Role.ADMIN
        # Accounts an admin creates need no email round trip.
        user.is_verified = True
        if commit:
            user.save()
        return user


class AdminUserUpdateForm(forms.ModelForm):
    password = forms.CharField(
        label="New password",
        widget=forms.PasswordInput,
        required=False,
        help_text="Leave blank to keep the current password.",
    )

    class Meta:
        model = User
        fields = ["first_name", "last_name", "email", "phone", "role", "department", "is_active", "is_verified"]

    def __init__(self, *args, acting_user=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.acting_user = acting_user

    def clean_email(self):
        return _unique_email(self.cleaned_data.get("email"), exclude_pk=self.instance.pk)

    def clean(self):
        cleaned = super().clean()
        if self.acting_user is not None and self.acting_user.pk == self.instance.pk:
            if cleaned.get("role") != User.Role.ADMIN or not cleaned.get("is_active"):
                raise ValidationError("You cannot remove your own admin access.")
        return cleaned

    def save(self, commit=True):
        user = super().save(commit=False)
        if self.cleaned_data.get("password"):
            user.set_password(self.cleaned_data["password"])
        user.is_staff = user.is_superuser or user.role == User.Role.ADMIN
        if commit:
            user.save()
        return user


class UserProfileUpdateForm(forms.ModelForm):
    class Meta:
        model = User
        fields = ["first_name", "last_name", "email", "phone", "department", "bio"]
        widgets = {"bio": forms.Textarea(attrs={"rows": 3})}

    def clean_email(self):
        return _unique_email(self.cleaned_data.get("email"), exclude_pk=self.instance.pk)


class UserPasswordChangeForm(DjangoPasswordChangeForm):
    def __init__(self, user, *args, **kwargs):
        super().__init__(user, *args, **kwargs)
        self.fields["old_password"].error_messages = {
            "required": "Please enter your current password.",
            "password_incorrect": "Your current password is incorrect.",
        }
        self.error_messages["password_mismatch"] = "The two password fields didn't match."


class UserSetPasswordForm(DjangoSetPasswordForm):
    """Reset form sharing copy with the change-password version."""

    def __init__(self, user, *args, **kwargs):
        super().__init__(user, *args, **kwargs)
        self.fields["new_password1"].validators = []
        self.fields["new_password2"].validators = []
        self.error_messages["password_mismatch"] = "The two password fields didn't match."

    def clean_new_password2(self):
        password1 = self.cleaned_data.get("new_password1")
        password2 = self.cleaned_data.get("new_password2")
        if not password1 or not password2:
            raise ValidationError("Please fill in both password fields.")
        if password1 != password2:
            raise ValidationError(self.error_messages["password_mismatch"], code="password_mismatch")
        return password2


class ForgotPasswordForm(forms.Form):
    identifier = forms.CharField(
        label="Email or phone",
        widget=forms.TextInput(attrs={"placeholder": "Registered email or phone number"}),
    )

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.user_cache = None

    def clean_identifier(self):
        identifier = (self.cleaned_data.get("identifier") or "").strip()
        if not identifier:
            raise forms.ValidationError("Please enter your registered email or phone number.")

        lookup = Q(email__iexact=identifier) | Q(phone__iexact=identifier)
        self.user_cache = User.objects.filter(lookup, is_active=True).first()
        return identifier

    def get_user(self):
        return self.user_cache


class TutorDecisionForm(forms.Form):
    ACTIONS = (("approve", "Approve"), ("reject", "Reject"), ("revoke", "Revoke"))

    action = forms.ChoiceField(choices=ACTIONS)
