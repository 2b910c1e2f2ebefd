from django import forms
from django.contrib.auth import get_user_model
from django.core.validators import RegexValidator

from .models import POSITIONS, Member, Plan

username_validator = RegexValidator(
    r"^[a-zA-Z0-9_]+$",
    "Username can only contain letters, numbers, and underscores.",
)
mobile_validator = RegexValidator(
    r"^[0-9]{10}$",
    "Mobile number must be exactly 10 digits.",
)


class ClientForm(forms.Form):
    name = forms.CharField(min_length=2, max_length=50)
    username = forms.CharField(min_length=3, max_length=20, validators=[username_validator])
    password = forms.CharField(min_length=6, max_length=50, widget=forms.PasswordInput)
    mobile = forms.CharField(validators=[mobile_validator])
    email = forms.EmailField()
    package = forms.ChoiceField(choices=Member.PACKAGE_CHOICES)
    parent_id = forms.CharField(required=False)
    position = forms.ChoiceField(
        required=False,
        choices=[("", "Auto")] + [(p, p.title()) for p in POSITIONS],
    )

    def clean_username(self):
        username = self.cleaned_data["username"]
        if get_user_model().objects.filter(username=username).exists():
            raise forms.ValidationError("Username already exists.")
        return username

    def clean_parent_id(self):
        parent_id = (self.cleaned_data.get("parent_id") or "").strip()
        if parent_id and not Member.objects.filter(member_id=parent_id).exists():
            raise forms.ValidationError("Parent user not found.")
        return parent_id or None

    def clean_position(self):
        return self.cleaned_data.get("position") or None

    def account_fields(self):
        data = self.cleaned_data
        return {
            "name": data["name"],
            "username": data["username"],
            "password": data["password"],
            "mobile": data["mobile"],
            "email": data["email"],
            "package": data["package"],
        }


class PaymentConfirmationForm(ClientForm):
    payment_confirmed = forms.BooleanField(required=False)

    def clean(self):
        cleaned_data = super().clean()
        if not cleaned_data.get("payment_confirmed"):
            raise forms.ValidationError("Payment confirmation required.")
        return cleaned_data


class PlanForm(forms.ModelForm):
    class Meta:
        model = Plan
        fields = [
            "name", "price", "business_volume",
            "referral_commission", "tree_commission", "status",
        ]
