from django.urls import path
from .views import (
    staff_list_create, staff_detail, roster_weekly, roster_duplicate,
    roster_status, roster_send_emails, public_holiday_list_create,
)

urlpatterns = [
    path('roster/staff/', staff_list_create, name='roster-staff-list-create'),
    path('roster/staff/<int:pk>/', staff_detail, name='roster-staff-detail'),
    path('roster/weekly/', roster_weekly, name='roster-weekly'),
    path('roster/weekly/duplicate/', roster_duplicate, name='roster-duplicate'),
    path('roster/weekly/<int:pk>/status/', roster_status, name='roster-status'),
    path('roster/weekly/<int:pk>/send-emails/', roster_send_emails, name='roster-send-emails'),
    path('roster/public-holidays/', public_holiday_list_create, name='roster-public-holidays'),
]
