from django.apps import AppConfig


class PayrollConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'payroll'
    verbose_name = 'Net Pay Calculator'

    def ready(self):
        from payroll.services.history import HistoryLedger

        # One calculation history per process
        self.history = HistoryLedger()
