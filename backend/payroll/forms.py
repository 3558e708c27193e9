"""
Input validation for the net pay calculator.
Rejects user-correctable input before the calculator is called.
"""
from decimal import Decimal
from django import forms

from payroll.services.calculator import CalculationInput, HousingType

# Largest monthly amount accepted for any field
MAX_AMOUNT = Decimal('999999999999.99')

NON_NEGATIVE_MESSAGE = 'Please ensure all numerical inputs are valid non-negative numbers.'
GROSS_PAY_MESSAGE = 'Gross Pay must be a positive number.'
TOO_LARGE_MESSAGE = 'Amounts cannot exceed Ksh 999,999,999,999.99.'

HOUSING_TYPE_CHOICES = [
    (HousingType.ORDINARY.value, 'Ordinary'),
    (HousingType.FARM.value, 'Farm'),
]


def _amount_field(label, required=False):
    return forms.DecimalField(
        label=label,
        required=required,
        min_value=Decimal('0'),
        max_value=MAX_AMOUNT,
        error_messages={
            'invalid': NON_NEGATIVE_MESSAGE,
            'min_value': NON_NEGATIVE_MESSAGE,
            'max_value': TOO_LARGE_MESSAGE,
        },
    )


def _toggle_field(label):
    # Rendered checked; an unchecked box is simply absent from the POST
    return forms.BooleanField(label=label, required=False, initial=True)


class NetPayForm(forms.Form):
    """
    Calculator input form. Blank optional amounts are treated as 0.

    Toggles follow checkbox semantics: a missing key means unchecked (False).
    They render checked, like the calculator screen. Callers building data in
    code can use with_defaults() to get the screen's initial state instead.
    """

    # Initial state of the calculator screen
    DEFAULTS = {
        'housing_type': HousingType.ORDINARY.value,
        'ignore_benefits_under_threshold': True,
        'use_tiered_contribution_schedule': True,
        'include_second_contribution_tier': True,
        'apply_housing_levy': True,
    }

    OPTIONAL_AMOUNTS = [
        'non_cash_benefits',
        'pension_contribution',
        'other_allowable_deductions',
        'housing_value',
        'rent_paid_to_employer',
    ]

    gross_pay = forms.DecimalField(
        label='Gross Pay (Ksh)',
        max_value=MAX_AMOUNT,
        error_messages={
            'required': GROSS_PAY_MESSAGE,
            'invalid': GROSS_PAY_MESSAGE,
            'max_value': TOO_LARGE_MESSAGE,
        },
    )
    non_cash_benefits = _amount_field('Non-Cash Benefits (Ksh)')
    pension_contribution = _amount_field('Pension Contribution (Ksh)')
    other_allowable_deductions = _amount_field('Other Allowable Deductions (Ksh)')

    is_housed_by_employer = forms.BooleanField(label='Housed by Employer', required=False)
    housing_type = forms.ChoiceField(
        label='Housing Type',
        choices=HOUSING_TYPE_CHOICES,
        initial=HousingType.ORDINARY.value,
        required=False,
    )
    housing_value = _amount_field('Value of Housing (Ksh)')
    rent_paid_to_employer = _amount_field('Rent Paid to Employer (Ksh)')

    ignore_benefits_under_threshold = _toggle_field('Ignore Benefits ≤ Ksh 5,000')
    use_tiered_contribution_schedule = _toggle_field('Use 2025 NSSF Tiers')
    include_second_contribution_tier = _toggle_field('Deduct Tier II NSSF')
    apply_housing_levy = _toggle_field('Deduct AHL')

    @classmethod
    def with_defaults(cls, data):
        """Bind the form, filling missing keys from DEFAULTS."""
        merged = {**cls.DEFAULTS}
        merged.update(data.items())
        return cls(merged)

    def clean_gross_pay(self):
        gross_pay = self.cleaned_data['gross_pay']
        if gross_pay <= 0:
            raise forms.ValidationError(GROSS_PAY_MESSAGE)
        return gross_pay

    def clean(self):
        cleaned_data = super().clean()

        for name in self.OPTIONAL_AMOUNTS:
            if name in cleaned_data and cleaned_data[name] is None:
                cleaned_data[name] = Decimal('0')

        if not cleaned_data.get('housing_type'):
            cleaned_data['housing_type'] = HousingType.ORDINARY.value

        # Housing inputs are only validated and used when housed
        if not cleaned_data.get('is_housed_by_employer'):
            for name in ('housing_value', 'rent_paid_to_employer'):
                self._errors.pop(name, None)
                cleaned_data[name] = Decimal('0')

        return cleaned_data

    def to_input(self) -> CalculationInput:
        """Build calculator input from a valid form."""
        if not self.is_bound or not self.is_valid():
            raise ValueError("Cannot build calculation input from an invalid form")

        data = self.cleaned_data
        return CalculationInput(
            gross_pay=data['gross_pay'],
            non_cash_benefits=data['non_cash_benefits'],
            pension_contribution=data['pension_contribution'],
            other_allowable_deductions=data['other_allowable_deductions'],
            is_housed_by_employer=data['is_housed_by_employer'],
            housing_type=HousingType(data['housing_type']),
            housing_value=data['housing_value'],
            rent_paid_to_employer=data['rent_paid_to_employer'],
            ignore_benefits_under_threshold=data['ignore_benefits_under_threshold'],
            use_tiered_contribution_schedule=data['use_tiered_contribution_schedule'],
            include_second_contribution_tier=data['include_second_contribution_tier'],
            apply_housing_levy=data['apply_housing_levy'],
        )
