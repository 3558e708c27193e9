"""
Tests for calculator input validation.
"""
from decimal import Decimal
from django.test import SimpleTestCase
from payroll.forms import MAX_AMOUNT, TOO_LARGE_MESSAGE, NetPayForm
from payroll.services.calculator import HousingType

NON_NEGATIVE_MESSAGE = 'Please ensure all numerical inputs are valid non-negative numbers.'


class NetPayFormTests(SimpleTestCase):

    def test_minimal_input_uses_screen_defaults(self):
        form = NetPayForm.with_defaults({'gross_pay': '50000'})

        self.assertTrue(form.is_valid(), form.errors)
        calculation_input = form.to_input()

        self.assertEqual(calculation_input.gross_pay, Decimal('50000'))
        self.assertEqual(calculation_input.non_cash_benefits, Decimal('0'))
        self.assertEqual(calculation_input.pension_contribution, Decimal('0'))
        self.assertEqual(calculation_input.other_allowable_deductions, Decimal('0'))
        self.assertFalse(calculation_input.is_housed_by_employer)
        self.assertEqual(calculation_input.housing_type, HousingType.ORDINARY)
        self.assertTrue(calculation_input.ignore_benefits_under_threshold)
        self.assertTrue(calculation_input.use_tiered_contribution_schedule)
        self.assertTrue(calculation_input.include_second_contribution_tier)
        self.assertTrue(calculation_input.apply_housing_levy)

    def test_toggles_can_be_switched_off(self):
        form = NetPayForm.with_defaults({
            'gross_pay': '50000',
            'use_tiered_contribution_schedule': 'false',
            'apply_housing_levy': 'false',
        })

        self.assertTrue(form.is_valid(), form.errors)
        calculation_input = form.to_input()
        self.assertFalse(calculation_input.use_tiered_contribution_schedule)
        self.assertFalse(calculation_input.apply_housing_levy)
        self.assertTrue(calculation_input.include_second_contribution_tier)

    def test_unchecked_toggles_without_defaults(self):
        form = NetPayForm({'gross_pay': '50000'})

        self.assertTrue(form.is_valid(), form.errors)
        self.assertFalse(form.to_input().apply_housing_levy)

    def test_gross_pay_required(self):
        form = NetPayForm.with_defaults({})

        self.assertFalse(form.is_valid())
        self.assertEqual(form.errors['gross_pay'], ['Gross Pay must be a positive number.'])

    def test_gross_pay_must_be_positive(self):
        for value in ('0', '-100', 'abc', 'NaN'):
            with self.subTest(value=value):
                form = NetPayForm.with_defaults({'gross_pay': value})
                self.assertFalse(form.is_valid())
                self.assertEqual(form.errors['gross_pay'], ['Gross Pay must be a positive number.'])

    def test_negative_amounts_rejected(self):
        for field in ('non_cash_benefits', 'pension_contribution', 'other_allowable_deductions'):
            with self.subTest(field=field):
                form = NetPayForm.with_defaults({'gross_pay': '50000', field: '-1'})
                self.assertFalse(form.is_valid())
                self.assertEqual(form.errors[field], [NON_NEGATIVE_MESSAGE])

    def test_non_numeric_amount_rejected(self):
        form = NetPayForm.with_defaults({'gross_pay': '50000', 'pension_contribution': 'ten'})

        self.assertFalse(form.is_valid())
        self.assertEqual(form.errors['pension_contribution'], [NON_NEGATIVE_MESSAGE])

    def test_blank_amounts_are_zero(self):
        form = NetPayForm.with_defaults({'gross_pay': '50000', 'non_cash_benefits': ''})

        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(form.to_input().non_cash_benefits, Decimal('0'))

    def test_housing_fields_used_when_housed(self):
        form = NetPayForm.with_defaults({
            'gross_pay': '50000',
            'is_housed_by_employer': 'true',
            'housing_type': HousingType.FARM.value,
            'housing_value': '15000',
            'rent_paid_to_employer': '5000',
        })

        self.assertTrue(form.is_valid(), form.errors)
        calculation_input = form.to_input()
        self.assertTrue(calculation_input.is_housed_by_employer)
        self.assertEqual(calculation_input.housing_type, HousingType.FARM)
        self.assertEqual(calculation_input.housing_value, Decimal('15000'))
        self.assertEqual(calculation_input.rent_paid_to_employer, Decimal('5000'))

    def test_housing_fields_validated_when_housed(self):
        form = NetPayForm.with_defaults({
            'gross_pay': '50000',
            'is_housed_by_employer': 'true',
            'rent_paid_to_employer': '-10',
        })

        self.assertFalse(form.is_valid())
        self.assertIn('rent_paid_to_employer', form.errors)

    def test_housing_fields_ignored_when_not_housed(self):
        form = NetPayForm.with_defaults({
            'gross_pay': '50000',
            'housing_value': 'not a number',
            'rent_paid_to_employer': '-10',
        })

        self.assertTrue(form.is_valid(), form.errors)
        calculation_input = form.to_input()
        self.assertEqual(calculation_input.housing_value, Decimal('0'))
        self.assertEqual(calculation_input.rent_paid_to_employer, Decimal('0'))

    def test_invalid_housing_type(self):
        form = NetPayForm.with_defaults({'gross_pay': '50000', 'housing_type': '3'})
        self.assertFalse(form.is_valid())

    def test_to_input_requires_valid_form(self):
        with self.assertRaises(ValueError):
            NetPayForm.with_defaults({'gross_pay': '-1'}).to_input()

        with self.assertRaises(ValueError):
            NetPayForm().to_input()

    def test_amounts_above_limit_rejected(self):
        """Oversized amounts are a user error, not a calculation failure."""
        for field in ('gross_pay', 'non_cash_benefits', 'pension_contribution', 'other_allowable_deductions'):
            with self.subTest(field=field):
                data = {'gross_pay': '50000', field: '1e27'}
                form = NetPayForm.with_defaults(data)
                self.assertFalse(form.is_valid())
                self.assertEqual(form.errors[field], [TOO_LARGE_MESSAGE])

    def test_amount_at_limit_accepted(self):
        form = NetPayForm.with_defaults({'gross_pay': str(MAX_AMOUNT)})

        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(form.to_input().gross_pay, MAX_AMOUNT)

    def test_unchecked_checkboxes_switch_every_toggle_off(self):
        """A browser form omits unchecked boxes, so missing toggles are off."""
        form = NetPayForm({'gross_pay': '50000', 'apply_housing_levy': 'on'})

        self.assertTrue(form.is_valid(), form.errors)
        calculation_input = form.to_input()
        self.assertFalse(calculation_input.ignore_benefits_under_threshold)
        self.assertFalse(calculation_input.use_tiered_contribution_schedule)
        self.assertFalse(calculation_input.include_second_contribution_tier)
        self.assertTrue(calculation_input.apply_housing_levy)

    def test_toggles_render_checked(self):
        form = NetPayForm()

        for name in ('ignore_benefits_under_threshold', 'use_tiered_contribution_schedule',
                     'include_second_contribution_tier', 'apply_housing_levy'):
            with self.subTest(name=name):
                self.assertIs(form[name].initial, True)
                self.assertIn('checked', str(form[name]))
