from django import forms

from core.choices import AttendanceStatus


class AttendanceEntryForm(forms.Form):
    """One row of a submitted attendance register."""
    student_id = forms.IntegerField(min_value=1)
    status = forms.ChoiceField(choices=AttendanceStatus.choices)
    remarks = forms.CharField(max_length=200, required=False)

    def clean_remarks(self):
        return (self.cleaned_data.get('remarks') or '').strip()
