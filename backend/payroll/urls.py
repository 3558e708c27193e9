from django.urls import path

from . import views

app_name = 'payroll'

urlpatterns = [
    path('calculate/', views.CalculateView.as_view(), name='calculate'),
    path('history/', views.HistoryListView.as_view(), name='history'),
    path('history/<int:sequence>/', views.HistoryDetailView.as_view(), name='history-detail'),
    path('history/<int:sequence>/summary.txt', views.HistorySummaryView.as_view(), name='history-summary'),
]
