from django.urls import path
from .views import (
    sales_upload, sales_summary, sales_timeseries, sales_export,
    sales_report_list, sales_report_delete,
)

urlpatterns = [
    path('sales/upload/', sales_upload, name='sales-upload'),
    path('sales/summary/', sales_summary, name='sales-summary'),
    path('sales/timeseries/', sales_timeseries, name='sales-timeseries'),
    path('sales/export/', sales_export, name='sales-export'),
    path('sales/reports/', sales_report_list, name='sales-report-list'),
    path('sales/reports/<int:pk>/', sales_report_delete, name='sales-report-delete'),
]
