"""
HTTP endpoints for the net pay calculator and its calculation history.
"""
from django.apps import apps
from django.conf import settings
from django.http import Http404, HttpResponse, JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt
import logging

from payroll.forms import NetPayForm
from payroll.services.calculator import DeductionCalculator
from payroll.services.exporter import SUMMARY_FILENAME, render_summary
from payroll.services.history import HistoryEntry, HistoryEntryNotFound, HistoryLedger

logger = logging.getLogger('payroll')


def serialize_entry(entry: HistoryEntry, full: bool = True) -> dict:
    data = {
        'sequence': entry.sequence,
        'created_at': entry.created_at,
    }
    if full:
        data['result'] = entry.result.as_dict()
    else:
        data['net_pay'] = entry.result.net_pay
    return data


class HistoryMixin:
    """Gives a view the calculation history. Pass ledger= to as_view() to override."""
    ledger = None

    def get_ledger(self) -> HistoryLedger:
        if self.ledger is not None:
            return self.ledger
        return apps.get_app_config('payroll').history

    def get_entry(self, sequence: int) -> HistoryEntry:
        try:
            return self.get_ledger().get(sequence)
        except HistoryEntryNotFound as e:
            raise Http404(str(e))


@method_decorator(csrf_exempt, name='dispatch')
class CalculateView(HistoryMixin, View):
    """
    Validate calculator input, compute net pay and record it in the history.

    Toggles are checkboxes: send any truthy value ('on', 'true') to switch one
    on. A toggle missing from the POST is off.
    """
    calculator = None

    def get_calculator(self) -> DeductionCalculator:
        """Get calculator with the configured tax table overrides."""
        if self.calculator is not None:
            return self.calculator
        return DeductionCalculator(getattr(settings, 'NETPAY_TAX_CONFIG', None))

    def post(self, request):
        form = NetPayForm(request.POST)

        if not form.is_valid():
            logger.info(f"Rejected calculation input: {form.errors.as_json()}")
            return JsonResponse({'errors': form.errors.get_json_data()}, status=400)

        result = self.get_calculator().compute(form.to_input())
        entry = self.get_ledger().append(result)
        logger.info(f"Saved calculation #{entry.sequence}: Net Pay = {result.net_pay}")

        return JsonResponse(serialize_entry(entry), status=201)


class HistoryListView(HistoryMixin, View):
    """Past calculations, most recent first."""

    def get(self, request):
        entries = self.get_ledger().list()
        return JsonResponse({
            'count': len(entries),
            'entries': [serialize_entry(entry, full=False) for entry in entries],
        })


class HistoryDetailView(HistoryMixin, View):

    def get(self, request, sequence):
        return JsonResponse(serialize_entry(self.get_entry(sequence)))


class HistorySummaryView(HistoryMixin, View):
    """Download a past calculation as a plain-text summary."""

    def get(self, request, sequence):
        entry = self.get_entry(sequence)
        response = HttpResponse(render_summary(entry.result), content_type='text/plain; charset=utf-8')
        response['Content-Disposition'] = f'attachment; filename="{SUMMARY_FILENAME}"'
        return response
