from django import forms

from .models import GradeTier


class MarkEntryForm(forms.Form):
    """
    One row of a submitted marks sheet.

    ``marks_obtained`` may be blank: the student is then left unmarked.
    Range checks against the exam subject happen in ``save_marks``.
    """
    student_id = forms.IntegerField(min_value=1)
    marks_obtained = forms.DecimalField(max_digits=6, decimal_places=2, required=False)
    remarks = forms.CharField(max_length=200, required=False)

    def clean_remarks(self):
        return (self.cleaned_data.get('remarks') or '').strip()


class GradeTierForm(forms.ModelForm):
    """Form for creating/editing the tiers of a grading scale."""

    class Meta:
        model = GradeTier
        fields = ['grade', 'min_percentage', 'max_percentage', 'grade_point']

    def clean(self):
        cleaned_data = super().clean()
        min_pct = cleaned_data.get('min_percentage')
        max_pct = cleaned_data.get('max_percentage')

        if min_pct is not None and max_pct is not None and min_pct > max_pct:
            raise forms.ValidationError('Minimum percentage cannot be greater than maximum percentage.')

        return cleaned_data
