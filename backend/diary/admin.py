from django.contrib import admin
from .models import DiaryEntry


@admin.register(DiaryEntry)
class DiaryEntryAdmin(admin.ModelAdmin):
    list_display = ['title', 'urgency', 'assigned_to', 'due_date', 'is_completed', 'created_at']
    list_filter = ['urgency', 'is_completed']
    search_fields = ['title', 'description', 'assigned_to']
