from django.urls import include, path

urlpatterns = [
    path('payroll/', include('payroll.urls')),
]
