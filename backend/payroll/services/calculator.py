"""
Net Pay Calculator Service
Implements Kenyan statutory deductions: PAYE, NSSF, NHIF/SHIF, Housing Levy
Based on Kenya Revenue Authority monthly rates (Finance Act 2023)
"""
from decimal import Context, Decimal, MAX_EMAX, MIN_EMIN, ROUND_HALF_UP, getcontext, localcontext
from dataclasses import dataclass, fields
from enum import Enum
from typing import Optional
import logging

logger = logging.getLogger('payroll')

ZERO = Decimal('0')
CENT = Decimal('0.01')

# Extra significant digits kept beyond the largest input amount
PRECISION_HEADROOM = 20


def to_decimal(value) -> Decimal:
    """Coerce ints, floats and numeric strings to Decimal."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class HousingType(str, Enum):
    """Type of employer-provided housing. Carried through, not taxed differently."""
    ORDINARY = '1'
    FARM = '2'


@dataclass(frozen=True)
class CalculationInput:
    """Salary inputs and policy toggles for one net pay calculation."""
    gross_pay: Decimal
    non_cash_benefits: Decimal = ZERO
    pension_contribution: Decimal = ZERO
    other_allowable_deductions: Decimal = ZERO

    # Employer housing
    is_housed_by_employer: bool = False
    housing_type: str = HousingType.ORDINARY
    housing_value: Decimal = ZERO
    rent_paid_to_employer: Decimal = ZERO

    # Policy toggles
    ignore_benefits_under_threshold: bool = False
    use_tiered_contribution_schedule: bool = False
    include_second_contribution_tier: bool = False
    apply_housing_levy: bool = False

    MONEY_FIELDS = (
        'gross_pay',
        'non_cash_benefits',
        'pension_contribution',
        'other_allowable_deductions',
        'housing_value',
        'rent_paid_to_employer',
    )

    def __post_init__(self):
        for name in self.MONEY_FIELDS:
            object.__setattr__(self, name, to_decimal(getattr(self, name)))


@dataclass(frozen=True)
class CalculationResult:
    """Itemized result of a net pay calculation. All amounts are rounded to 2dp."""
    # Echoed inputs
    gross_pay: Decimal
    non_cash_benefits: Decimal
    pension_contribution: Decimal
    other_allowable_deductions: Decimal
    housing_value: Decimal
    rent_paid_to_employer: Decimal
    is_housed_by_employer: bool

    # Tax base
    taxable_benefits: Decimal
    taxable_income: Decimal

    # Statutory deductions
    contribution_tier_amount: Decimal  # NSSF
    health_levy_amount: Decimal  # NHIF/SHIF
    housing_levy_amount: Decimal  # AHL
    income_tax_amount: Decimal  # PAYE

    # Totals
    total_deductions: Decimal
    net_pay: Decimal
    relief_applied: Decimal

    def as_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


class DeductionCalculator:
    """
    Calculator for Kenyan monthly net pay with all statutory deductions.

    Calculation Steps:
    1. Taxable benefits = non-cash benefits (less 5,000 if ignored) + housing value - rent
    2. NSSF: flat 200, or Tier I (+ optional Tier II) at 6%
    3. NHIF/SHIF from gross pay bands
    4. Housing Levy (1.5% of gross) if applied
    5. Taxable income = Gross + Benefits - Pension (capped) - NSSF - NHIF - AHL - Other
    6. PAYE = tax on taxable income using marginal bands - Personal Relief
    7. Total deductions = PAYE + NSSF + NHIF + AHL + full Pension + full Other
    8. Net Pay = Gross - Total deductions

    Every stage rounds its own output to 2dp; no other intermediate rounding.
    """

    # Default tax configuration (Kenya, monthly)
    DEFAULT_CONFIG = {
        # PAYE tax bands, as band widths
        'band_1_width': Decimal('24000'),
        'band_1_rate': Decimal('0.10'),
        'band_2_width': Decimal('8333'),
        'band_2_rate': Decimal('0.25'),
        'band_3_width': Decimal('467667'),
        'band_3_rate': Decimal('0.30'),
        'band_4_width': Decimal('300000'),
        'band_4_rate': Decimal('0.325'),
        'band_5_rate': Decimal('0.35'),

        # Reliefs
        'personal_relief': Decimal('2400'),

        # Non-cash benefits below this are tax free when ignored
        'benefits_exemption_limit': Decimal('5000'),

        # NSSF
        'nssf_flat_amount': Decimal('200'),
        'nssf_tier1_limit': Decimal('6000'),
        'nssf_tier1_rate': Decimal('0.06'),
        'nssf_tier2_limit': Decimal('18000'),
        'nssf_tier2_rate': Decimal('0.06'),

        # NHIF/SHIF bands: (inclusive upper bound, contribution); None is unbounded
        'nhif_bands': (
            (Decimal('5999'), Decimal('150')),
            (Decimal('7999'), Decimal('300')),
            (Decimal('11999'), Decimal('400')),
            (Decimal('14999'), Decimal('500')),
            (Decimal('19999'), Decimal('600')),
            (Decimal('24999'), Decimal('750')),
            (Decimal('29999'), Decimal('850')),
            (Decimal('34999'), Decimal('900')),
            (Decimal('39999'), Decimal('950')),
            (Decimal('44999'), Decimal('1000')),
            (Decimal('49999'), Decimal('1100')),
            (Decimal('59999'), Decimal('1200')),
            (Decimal('69999'), Decimal('1300')),
            (Decimal('79999'), Decimal('1400')),
            (Decimal('89999'), Decimal('1500')),
            (Decimal('99999'), Decimal('1600')),
            (None, Decimal('1700')),
        ),

        # Housing Levy
        'housing_levy_rate': Decimal('0.015'),

        # Pension limits
        'pension_max_deduction': Decimal('30000'),
    }

    def __init__(self, config: Optional[dict] = None):
        """
        Args:
            config: Tax table entries replacing the matching DEFAULT_CONFIG keys,
                e.g. {'personal_relief': Decimal('0')}. Unlisted keys keep their defaults.
        """
        self.config = {**self.DEFAULT_CONFIG, **(config or {})}

    def _round(self, value: Decimal) -> Decimal:
        """Round to 2 decimal places, half away from zero."""
        with localcontext() as context:
            # quantize needs room for every integer digit plus the cents
            context.prec = max(context.prec, value.adjusted() + 3)
            return value.quantize(CENT, rounding=ROUND_HALF_UP)

    def _context_for(self, calculation_input: 'CalculationInput') -> Context:
        """Decimal context wide enough to carry the largest input amount to the cent."""
        context = getcontext().copy()
        digits = max(
            getattr(calculation_input, name).adjusted()
            for name in CalculationInput.MONEY_FIELDS
        )
        context.prec = max(context.prec, digits + PRECISION_HEADROOM)
        context.Emax = MAX_EMAX
        context.Emin = MIN_EMIN
        return context

    def calculate_taxable_benefits(
        self,
        non_cash_benefits: Decimal,
        ignore_under_threshold: bool = False,
        is_housed: bool = False,
        housing_value: Decimal = ZERO,
        rent_paid: Decimal = ZERO,
    ) -> Decimal:
        """
        Calculate the taxable value of non-cash benefits.

        Employer housing is taxed on its value net of rent paid to the employer.

        Args:
            non_cash_benefits: Monthly value of benefits in kind
            ignore_under_threshold: Only tax the excess over the exemption limit
            is_housed: Whether the employee is housed by the employer
            housing_value: Monthly value of the housing
            rent_paid: Rent the employee pays back to the employer

        Returns:
            Taxable benefits
        """
        if ignore_under_threshold:
            taxable = max(ZERO, non_cash_benefits - self.config['benefits_exemption_limit'])
        else:
            taxable = non_cash_benefits

        if is_housed and housing_value > 0:
            taxable += max(ZERO, housing_value - rent_paid)

        taxable = self._round(taxable)
        logger.debug(f"Taxable Benefits: {taxable}")
        return taxable

    def calculate_nssf(
        self,
        gross_pay: Decimal,
        use_tiers: bool = True,
        include_tier2: bool = True,
    ) -> Decimal:
        """
        Calculate NSSF contribution (employee portion).

        - Legacy rates: flat KES 200
        - Tier I: 6% of first KES 6,000
        - Tier II: 6% of KES 6,001 to KES 18,000 (optional)

        Higher tiers of the NSSF Act are not modelled.

        Args:
            gross_pay: Monthly gross pay
            use_tiers: Use tiered rates instead of the flat legacy amount
            include_tier2: Add the Tier II contribution

        Returns:
            Total NSSF contribution
        """
        if not use_tiers:
            return self._round(self.config['nssf_flat_amount'])

        tier1_limit = self.config['nssf_tier1_limit']

        tier1_contribution = min(gross_pay, tier1_limit) * self.config['nssf_tier1_rate']

        tier2_contribution = ZERO
        if include_tier2 and gross_pay > tier1_limit:
            tier2_pensionable = min(gross_pay, self.config['nssf_tier2_limit']) - tier1_limit
            tier2_contribution = tier2_pensionable * self.config['nssf_tier2_rate']

        total_nssf = self._round(tier1_contribution + tier2_contribution)
        logger.debug(f"NSSF: Tier1={tier1_contribution}, Tier2={tier2_contribution}, Total={total_nssf}")

        return total_nssf

    def calculate_health_levy(self, gross_pay: Decimal) -> Decimal:
        """
        Calculate NHIF/SHIF contribution from the gross pay bands.

        The first band whose upper bound is at least the gross pay applies.
        """
        bands = self.config['nhif_bands']
        contribution = bands[-1][1]

        for limit, amount in bands:
            if limit is None or gross_pay <= limit:
                contribution = amount
                break

        levy = self._round(contribution)
        logger.debug(f"NHIF: {levy} (gross {gross_pay})")
        return levy

    def calculate_housing_levy(self, gross_pay: Decimal, apply_levy: bool = True) -> Decimal:
        """AHL: a flat housing_levy_rate (1.5%) of gross pay, or nothing when not applied."""
        if not apply_levy:
            return self._round(ZERO)

        levy = self._round(gross_pay * self.config['housing_levy_rate'])
        logger.debug(f"Housing Levy: {levy} (1.5% of {gross_pay})")
        return levy

    def calculate_taxable_income(
        self,
        gross_pay: Decimal,
        taxable_benefits: Decimal,
        pension_contribution: Decimal,
        nssf: Decimal,
        health_levy: Decimal,
        housing_levy: Decimal,
        other_deductions: Decimal,
    ) -> Decimal:
        """Income subject to PAYE, never below zero. Pension relief is capped."""
        pension_deductible = min(pension_contribution, self.config['pension_max_deduction'])

        taxable_income = (
            gross_pay +
            taxable_benefits -
            pension_deductible -
            nssf -
            health_levy -
            housing_levy -
            other_deductions
        )
        return self._round(max(taxable_income, ZERO))

    def calculate_tax(self, taxable_income: Decimal) -> Decimal:
        """
        Tax charged before relief, summed band by band at each band's marginal rate.

        Bands are consumed in order as fixed widths of taxable income:
        first 24,000 at 10%, next 8,333 at 25%, next 467,667 at 30%,
        next 300,000 at 32.5%, and whatever remains at 35%.
        The result is not rounded; PAYE is rounded after relief.
        """
        if taxable_income <= 0:
            return ZERO

        tax = ZERO
        remaining = taxable_income

        bands = [
            (self.config['band_1_width'], self.config['band_1_rate']),
            (self.config['band_2_width'], self.config['band_2_rate']),
            (self.config['band_3_width'], self.config['band_3_rate']),
            (self.config['band_4_width'], self.config['band_4_rate']),
            (None, self.config['band_5_rate']),  # No upper limit
        ]

        for width, rate in bands:
            if remaining <= 0:
                break

            if width is None:
                band_income = remaining
            else:
                band_income = min(remaining, width)

            tax += band_income * rate
            remaining -= band_income

            logger.debug(f"Tax Band: income={band_income}, rate={rate}, tax={band_income * rate}")

        logger.debug(f"Total Tax Charged: {tax}")
        return tax

    def compute(self, calculation_input: CalculationInput) -> CalculationResult:
        """
        Calculate net pay and every statutory deduction.

        Args:
            calculation_input: Validated, non-negative salary inputs and toggles

        Returns:
            CalculationResult with all computed values
        """
        with localcontext(self._context_for(calculation_input)):
            return self._compute(calculation_input)

    def _compute(self, calculation_input: CalculationInput) -> CalculationResult:
        data = calculation_input
        gross_pay = data.gross_pay

        # Step 1: Taxable benefits
        taxable_benefits = self.calculate_taxable_benefits(
            data.non_cash_benefits,
            ignore_under_threshold=data.ignore_benefits_under_threshold,
            is_housed=data.is_housed_by_employer,
            housing_value=data.housing_value,
            rent_paid=data.rent_paid_to_employer,
        )

        # Steps 2-4: Statutory contributions
        nssf = self.calculate_nssf(
            gross_pay,
            use_tiers=data.use_tiered_contribution_schedule,
            include_tier2=data.include_second_contribution_tier,
        )
        health_levy = self.calculate_health_levy(gross_pay)
        housing_levy = self.calculate_housing_levy(gross_pay, apply_levy=data.apply_housing_levy)

        # Step 5: Taxable income
        taxable_income = self.calculate_taxable_income(
            gross_pay,
            taxable_benefits,
            data.pension_contribution,
            nssf,
            health_levy,
            housing_levy,
            data.other_allowable_deductions,
        )
        logger.info(f"Taxable Income: {taxable_income}")

        # Step 6: PAYE
        tax_charged = self.calculate_tax(taxable_income)
        personal_relief = self.config['personal_relief']
        paye = self._round(max(tax_charged - personal_relief, ZERO))
        logger.info(f"PAYE: {paye} (Tax: {tax_charged}, Relief: {personal_relief})")

        # Step 7: Total deductions use the full pension and other deductions actually paid
        total_deductions = self._round(
            paye +
            nssf +
            health_levy +
            housing_levy +
            data.pension_contribution +
            data.other_allowable_deductions
        )

        # Step 8: Net pay, not clamped at zero
        net_pay = self._round(gross_pay - total_deductions)
        logger.info(f"Net Pay: {net_pay} (Gross: {gross_pay}, Deductions: {total_deductions})")

        return CalculationResult(
            gross_pay=self._round(gross_pay),
            non_cash_benefits=self._round(data.non_cash_benefits),
            pension_contribution=self._round(data.pension_contribution),
            other_allowable_deductions=self._round(data.other_allowable_deductions),
            housing_value=self._round(data.housing_value),
            rent_paid_to_employer=self._round(data.rent_paid_to_employer),
            is_housed_by_employer=data.is_housed_by_employer,
            taxable_benefits=taxable_benefits,
            taxable_income=taxable_income,
            contribution_tier_amount=nssf,
            health_levy_amount=health_levy,
            housing_levy_amount=housing_levy,
            income_tax_amount=paye,
            total_deductions=total_deductions,
            net_pay=net_pay,
            relief_applied=self._round(personal_relief),
        )


_default_calculator = DeductionCalculator()


def compute(calculation_input: CalculationInput) -> CalculationResult:
    """Compute a CalculationResult with the default Kenyan tax configuration."""
    return _default_calculator.compute(calculation_input)
