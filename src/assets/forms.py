"""Forms for the assets app."""

from django import forms

from .models import Employee

UPLOAD_EXTENSIONS = (".csv", ".xlsx")


class EmployeeForm(forms.ModelForm):
    """Create or edit an employee record."""

    class Meta:
        model = Employee
        fields = ["employee_id", "employee_name", "email", "role", "department"]

    def clean_employee_id(self):
        employee_id = self.cleaned_data["employee_id"].strip()
        if not employee_id:
            raise forms.ValidationError("Employee ID is required.")
        return employee_id

    def clean_employee_name(self):
        return self.cleaned_data["employee_name"].strip()


class UploadForm(forms.Form):
    """A spreadsheet upload for bulk asset, employee or order import."""

    file = forms.FileField()
    update_existing = forms.BooleanField(required=False)

    def clean_file(self):
        upload = self.cleaned_data["file"]
        if not upload.name.lower().endswith(UPLOAD_EXTENSIONS):
            raise forms.ValidationError(
                "Unsupported file type. Upload a .csv or .xlsx file."
            )
        return upload


class RejectRequestForm(forms.Form):
    reason = forms.CharField(required=False, max_length=1000)
