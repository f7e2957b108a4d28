from django import forms
from django.contrib.auth.forms import AuthenticationForm


class LoginForm(AuthenticationForm):
    """Login form with email as username field, used by the token endpoint."""

    username = forms.EmailField(label="Email")
    password = forms.CharField(label="Password", strip=False)

    error_messages = {
        'invalid_login': "Invalid email or password. Please try again.",
        'inactive': "This account is inactive. Contact your administrator.",
    }


class StudentProvisionForm(forms.Form):
    """Request body of the student-provisioning endpoint."""
    full_name = forms.CharField(max_length=150)
    email = forms.EmailField()
    phone = forms.CharField(max_length=20, required=False)
    date_of_birth = forms.DateField(required=False)
    address = forms.CharField(required=False)
    class_id = forms.IntegerField(required=False, min_value=1)

    def first_error(self):
        """A single human-readable error message for JSON responses."""
        missing = [
            name for name in ('full_name', 'email')
            if name in self.errors and not str(self.data.get(name) or '').strip()
        ]
        if missing:
            return 'full_name and email are required'
        field, errors = next(iter(self.errors.items()))
        return f"{field}: {errors[0]}"


class ApprovalReviewForm(forms.Form):
    action = forms.ChoiceField(choices=[('approve', 'Approve'), ('reject', 'Reject')])
    note = forms.CharField(required=False, max_length=500)
