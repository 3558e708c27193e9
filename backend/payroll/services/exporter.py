"""
Plain-text export of a net pay calculation.
"""
from decimal import Decimal

from .calculator import CalculationResult

SUMMARY_FILENAME = 'NetPaySummary.txt'


def _ksh(amount: Decimal) -> str:
    return f"Ksh {amount:.2f}"


def render_summary(result: CalculationResult) -> str:
    """Render the downloadable NET PAY CALCULATION SUMMARY for a result."""
    lines = [
        "NET PAY CALCULATION SUMMARY",
        "",
        f"Gross Pay: {_ksh(result.gross_pay)}",
        f"PAYE: {_ksh(result.income_tax_amount)}",
        f"NSSF: {_ksh(result.contribution_tier_amount)}",
        f"NHIF: {_ksh(result.health_levy_amount)}",
        f"Housing Levy (AHL): {_ksh(result.housing_levy_amount)}",
        f"Pension Contribution: {_ksh(result.pension_contribution)}",
        f"Other Deductions: {_ksh(result.other_allowable_deductions)}",
        "",
        f"Total Deductions: {_ksh(result.total_deductions)}",
        f"Net Pay: {_ksh(result.net_pay)}",
        "",
        f"Taxable Pay: {_ksh(result.taxable_income)}",
        f"Personal Relief: {_ksh(result.relief_applied)}",
    ]
    return "\n".join(lines) + "\n"
