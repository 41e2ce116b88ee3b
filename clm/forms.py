import json

from django import forms
from django.core.exceptions import ValidationError

from .models import AgendaItem, Contract, ContractAmendment, ContractVendor
from .progress import StepName
from .services import VENDOR_EVALUATION_FIELDS


class ContractForm(forms.ModelForm):
    """Form for creating and editing a contract header"""
    category = forms.ChoiceField(
        choices=[('', '-- Select category --')] + Contract.CATEGORY_CHOICES,
        required=False,
        widget=forms.Select(attrs={'class': 'form-control'})
    )

    class Meta:
        model = Contract
        fields = [
            'title', 'category', 'division', 'department', 'pt', 'contract_type',
            'effective_date', 'expiry_date', 'is_cr', 'is_on_hold', 'is_anticipated'
        ]
        widgets = {
            'title': forms.TextInput(attrs={
                'class': 'form-control',
                'placeholder': 'Enter contract title'
            }),
            'division': forms.Select(attrs={
                'class': 'form-control'
            }),
            'department': forms.TextInput(attrs={
                'class': 'form-control',
                'placeholder': 'Enter department'
            }),
            'pt': forms.Select(attrs={
                'class': 'form-control'
            }),
            'contract_type': forms.Select(attrs={
                'class': 'form-control'
            }),
            'effective_date': forms.DateInput(attrs={
                'class': 'form-control',
                'type': 'date'
            }),
            'expiry_date': forms.DateInput(attrs={
                'class': 'form-control',
                'type': 'date'
            }),
            'is_cr': forms.CheckboxInput(attrs={
                'class': 'form-check-input'
            }),
            'is_on_hold': forms.CheckboxInput(attrs={
                'class': 'form-check-input'
            }),
            'is_anticipated': forms.CheckboxInput(attrs={
                'class': 'form-check-input'
            }),
        }
        labels = {
            'pt': 'PT',
            'is_cr': 'CR',
            'is_on_hold': 'On Hold',
            'is_anticipated': 'Anticipated',
        }

    def __init__(self, *args, **kwargs):
        # Dates are only editable once the contract is signed
        self.allow_dates = kwargs.pop('allow_dates', True)
        super().__init__(*args, **kwargs)
        if not self.allow_dates:
            for field in ('effective_date', 'expiry_date'):
                self.fields[field].disabled = True

    def clean(self):
        cleaned_data = super().clean()
        effective_date = cleaned_data.get('effective_date')
        expiry_date = cleaned_data.get('expiry_date')

        if effective_date and expiry_date and expiry_date <= effective_date:
            raise ValidationError({
                'expiry_date': 'Expiry Date must be AFTER the Effective Date.'
            })

        return cleaned_data


class FinalizeContractForm(forms.Form):
    """Details captured when a contract is signed or closed"""
    contract_number = forms.CharField(
        max_length=50,
        widget=forms.TextInput(attrs={
            'class': 'form-control',
            'placeholder': 'Enter contract number'
        })
    )
    effective_date = forms.DateField(
        widget=forms.DateInput(attrs={'class': 'form-control', 'type': 'date'})
    )
    expiry_date = forms.DateField(
        widget=forms.DateInput(attrs={'class': 'form-control', 'type': 'date'})
    )
    reference_contract_number = forms.CharField(
        max_length=50,
        required=False,
        widget=forms.TextInput(attrs={
            'class': 'form-control',
            'placeholder': 'Reference contract number (optional)'
        })
    )
    contract_summary = forms.CharField(
        required=False,
        widget=forms.Textarea(attrs={
            'class': 'form-control',
            'rows': 4,
            'placeholder': 'Short summary of the signed contract'
        })
    )

    def clean(self):
        cleaned_data = super().clean()
        effective_date = cleaned_data.get('effective_date')
        expiry_date = cleaned_data.get('expiry_date')

        if effective_date and expiry_date and expiry_date <= effective_date:
            raise ValidationError({
                'expiry_date': 'Expiry Date must be AFTER the Effective Date.'
            })

        return cleaned_data


class ExtendContractForm(forms.Form):
    new_expiry_date = forms.DateField(
        label='New Expiry Date',
        widget=forms.DateInput(attrs={'class': 'form-control', 'type': 'date'})
    )

    def __init__(self, *args, **kwargs):
        self.contract = kwargs.pop('contract', None)
        super().__init__(*args, **kwargs)

    def clean_new_expiry_date(self):
        new_expiry_date = self.cleaned_data['new_expiry_date']
        if self.contract is not None:
            if self.contract.effective_date and new_expiry_date <= self.contract.effective_date:
                raise ValidationError('Expiry Date must be AFTER the Effective Date.')
            if self.contract.expiry_date and new_expiry_date <= self.contract.expiry_date:
                raise ValidationError('The new expiry date must be later than the current one.')
        return new_expiry_date


class AmendmentForm(forms.Form):
    amendment_type = forms.ChoiceField(
        choices=ContractAmendment.AMENDMENT_TYPES,
        widget=forms.Select(attrs={'class': 'form-control'})
    )
    amendment_reason = forms.CharField(
        widget=forms.Textarea(attrs={
            'class': 'form-control',
            'rows': 4,
            'placeholder': 'Why is this contract being amended?'
        })
    )


class AgendaStepForm(forms.Form):
    """Add a step to the bid agenda, from the catalog or free text"""
    step_name = forms.CharField(
        max_length=200,
        widget=forms.TextInput(attrs={
            'class': 'form-control',
            'placeholder': 'Select or type a step name',
            'list': 'step-catalog'
        })
    )

    step_catalog = StepName.values


class VendorForm(forms.ModelForm):
    class Meta:
        model = ContractVendor
        fields = ['vendor_name']
        widgets = {
            'vendor_name': forms.TextInput(attrs={
                'class': 'form-control',
                'placeholder': 'Enter vendor name'
            }),
        }


# ============================================================================
# AGENDA EDITOR ROWS
# ============================================================================

ISO_DATE_FORMATS = ['%Y-%m-%d']


class AgendaRowForm(forms.Form):
    """One step row posted by the agenda editor"""
    start_date = forms.DateField(required=False, input_formats=ISO_DATE_FORMATS)
    end_date = forms.DateField(required=False, input_formats=ISO_DATE_FORMATS)
    status = forms.ChoiceField(choices=AgendaItem.STATUS_CHOICES, required=False)
    remarks = forms.CharField(required=False, strip=False)


class VendorEvaluationForm(forms.ModelForm):
    class Meta:
        model = ContractVendor
        fields = VENDOR_EVALUATION_FIELDS


class VendorStepDateRowForm(forms.Form):
    """A vendor's own dates for one vendor-dependent step"""
    start_date = forms.DateField(required=False, input_formats=ISO_DATE_FORMATS)
    end_date = forms.DateField(required=False, input_formats=ISO_DATE_FORMATS)
    remarks = forms.CharField(required=False, strip=False)


class AgendaPayloadForm(forms.Form):
    """
    The agenda editor's hidden JSON fields.

    Each field holds a list of row objects. Every row is checked with its row
    form, and the cleaned value maps the row's id to the columns it sent, so
    columns a row leaves out are not touched by the save. One bad row fails
    the whole form.
    """
    agenda_json = forms.CharField(required=False)
    vendors_json = forms.CharField(required=False)
    step_dates_json = forms.CharField(required=False)

    def clean_agenda_json(self):
        rows = self._load_rows('agenda_json', ('id',))
        return {str(row['id']): self._clean_row(AgendaRowForm, row, 'Step') for row in rows}

    def clean_vendors_json(self):
        rows = self._load_rows('vendors_json', ('id',))
        return {str(row['id']): self._clean_row(VendorEvaluationForm, row, 'Vendor') for row in rows}

    def clean_step_dates_json(self):
        rows = self._load_rows('step_dates_json', ('vendor_id', 'step_id'))
        return {
            (str(row['vendor_id']), str(row['step_id'])): self._clean_row(VendorStepDateRowForm, row, 'Vendor date')
            for row in rows
        }

    def _load_rows(self, field, keys):
        try:
            rows = json.loads(self.cleaned_data.get(field) or '[]')
        except ValueError:
            raise ValidationError('The submitted agenda could not be read.')
        if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
            raise ValidationError('The submitted agenda could not be read.')
        return [row for row in rows if all(row.get(key) for key in keys)]

    def _clean_row(self, form_class, row, label):
        # Date and text fields expect strings
        data = {key: '' if value is None else str(value) for key, value in row.items()}
        form = form_class(data=data)
        if not form.is_valid():
            problems = [
                f"{form[name].label if name in form.fields else label}: {' '.join(errors)}"
                for name, errors in form.errors.items()
            ]
            raise ValidationError(f"{label} row has invalid values. " + ' '.join(problems))
        return {name: form.cleaned_data[name] for name in form.fields if name in row}
