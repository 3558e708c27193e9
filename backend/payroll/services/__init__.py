"""
Payroll services: net pay calculator, calculation history and summary export.
"""
from .calculator import (
    CalculationInput,
    CalculationResult,
    DeductionCalculator,
    HousingType,
    compute,
)
from .history import HistoryEntry, HistoryEntryNotFound, HistoryLedger
from .exporter import SUMMARY_FILENAME, render_summary
