from django.conf import settings
from django.db import models
from django.utils import timezone


class DiaryEntry(models.Model):
    """Shop diary task or note"""
    URGENCY_CHOICES = [
        ('low', 'Low'),
        ('medium', 'Medium'),
        ('high', 'High'),
        ('urgent', 'Urgent'),
    ]
    # Sort rank, most urgent first
    URGENCY_RANK = {'urgent': 0, 'high': 1, 'medium': 2, 'low': 3}

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    urgency = models.CharField(max_length=10, choices=URGENCY_CHOICES, default='medium')
    assigned_to = models.CharField(max_length=200, blank=True)
    due_date = models.DateField(null=True, blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                   related_name='diary_entries')
    is_completed = models.BooleanField(default=False)
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"[{self.urgency}] {self.title}"

    def set_completed(self, completed):
        """Stamp or clear completed_at to match the flag"""
        if completed and not self.is_completed:
            self.completed_at = timezone.now()
        elif not completed:
            self.completed_at = None
        self.is_completed = completed

    class Meta:
        db_table = 'diary_entries'
        ordering = ['is_completed', '-created_at']
        verbose_name_plural = 'diary entries'
