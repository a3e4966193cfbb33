"""Forms for the accounts app."""

from django import forms
from django.contrib.auth.forms import UserChangeForm, UserCreationForm

from .models import CustomUser


class CustomUserCreationForm(UserCreationForm):
    class Meta:
        model = CustomUser
        fields = ("username", "email", "display_name", "role", "department")


class CustomUserChangeForm(UserChangeForm):
    class Meta:
        model = CustomUser
        fields = (
            "username",
            "email",
            "display_name",
            "role",
            "department",
            "account_type",
        )


class UserCreateForm(forms.ModelForm):
    """Create an application user from the user administration endpoint."""

    password = forms.CharField(min_length=6, required=False)

    class Meta:
        model = CustomUser
        fields = ("email", "display_name", "role", "department", "account_type")

    def clean_email(self):
        email = self.cleaned_data.get("email", "").strip().lower()
        if CustomUser.objects.filter(email__iexact=email).exists():
            raise forms.ValidationError(
                "This email address is already in use."
            )
        return email

    def clean_role(self):
        role = self.cleaned_data.get("role", "")
        if not role:
            raise forms.ValidationError("A role is required.")
        return role

    def clean_department(self):
        department = self.cleaned_data.get("department", "").strip()
        valid = {value for value, _ in CustomUser.DEPARTMENT_CHOICES}
        if department and department not in valid:
            raise forms.ValidationError(
                f"Unknown department '{department}'."
            )
        return department

    def clean(self):
        cleaned = super().clean()
        if cleaned.get("account_type", "Standard") == "Standard" and not (
            cleaned.get("password")
        ):
            self.add_error(
                "password", "A password is required for standard accounts."
            )
        return cleaned

    def save(self, commit=True):
        user = super().save(commit=False)
        user.username = user.email
        password = self.cleaned_data.get("password")
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        if commit:
            user.save()
        return user


class ProfileEditForm(forms.ModelForm):
    """Form for editing user profile details."""

    class Meta:
        model = CustomUser
        fields = ("display_name", "email")

    def clean_email(self):
        email = self.cleaned_data.get("email", "").strip().lower()
        if (
            CustomUser.objects.filter(email__iexact=email)
            .exclude(pk=self.instance.pk)
            .exists()
        ):
            raise forms.ValidationError(
                "This email address is already in use."
            )
        return email
