from django.contrib import admin
from .models import Staff, Roster, Shift, PublicHoliday


@admin.register(Staff)
class StaffAdmin(admin.ModelAdmin):
    list_display = ['name', 'role', 'base_hourly_rate', 'saturday_hourly_rate', 'sunday_hourly_rate',
                    'public_holiday_hourly_rate', 'email', 'is_active']
    list_filter = ['role', 'is_active']
    search_fields = ['name', 'email']


class ShiftInline(admin.TabularInline):
    model = Shift
    extra = 0
    fields = ['staff', 'day_of_week', 'start_time', 'end_time', 'break_minutes', 'role', 'is_backup_barista']


@admin.register(Roster)
class RosterAdmin(admin.ModelAdmin):
    list_display = ['week_start_date', 'status', 'created_by', 'updated_at']
    list_filter = ['status']
    inlines = [ShiftInline]


@admin.register(PublicHoliday)
class PublicHolidayAdmin(admin.ModelAdmin):
    list_display = ['name', 'date', 'state']
    list_filter = ['state']
