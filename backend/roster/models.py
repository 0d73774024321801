from django.conf import settings
from django.core.validators import RegexValidator, MinValueValidator, MaxValueValidator
from django.db import models
from decimal import Decimal

time_validator = RegexValidator(r'^([01]\d|2[0-3]):[0-5]\d$', 'Time must be in HH:MM format')


class Staff(models.Model):
    """Rostered staff member and their pay rates"""
    name = models.CharField(max_length=200, unique=True)
    role = models.CharField(max_length=100)
    base_hourly_rate = models.DecimalField(max_digits=8, decimal_places=2)
    saturday_hourly_rate = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    sunday_hourly_rate = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    public_holiday_hourly_rate = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    tax_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('30.00'))
    super_rate = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=50, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.role})"

    class Meta:
        db_table = 'staff'
        ordering = ['-role', 'name']
        verbose_name_plural = 'staff'


class Roster(models.Model):
    """One week of shifts, starting on a Monday"""
    DRAFT = 'draft'
    PUBLISHED = 'published'
    ARCHIVED = 'archived'
    STATUS_CHOICES = [
        (DRAFT, 'Draft'),
        (PUBLISHED, 'Published'),
        (ARCHIVED, 'Archived'),
    ]

    week_start_date = models.DateField(unique=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=DRAFT)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                   related_name='rosters')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Roster week of {self.week_start_date} ({self.status})"

    class Meta:
        db_table = 'rosters'
        ordering = ['-week_start_date']


class Shift(models.Model):
    """A shift within a roster. day_of_week: 0=Sunday .. 6=Saturday"""
    roster = models.ForeignKey(Roster, on_delete=models.CASCADE, related_name='shifts')
    staff = models.ForeignKey(Staff, on_delete=models.CASCADE, related_name='shifts')
    day_of_week = models.PositiveSmallIntegerField(validators=[MinValueValidator(0), MaxValueValidator(6)])
    start_time = models.CharField(max_length=5, validators=[time_validator])
    end_time = models.CharField(max_length=5, validators=[time_validator])
    break_minutes = models.PositiveIntegerField(default=0)
    role = models.CharField(max_length=100, blank=True)
    is_backup_barista = models.BooleanField(default=False)
    notes = models.TextField(blank=True)

    def __str__(self):
        return f"{self.staff.name} day {self.day_of_week} {self.start_time}-{self.end_time}"

    class Meta:
        db_table = 'shifts'
        ordering = ['day_of_week', 'start_time']
        indexes = [
            models.Index(fields=['roster', 'day_of_week'], name='idx_shift_roster_day'),
        ]


class PublicHoliday(models.Model):
    name = models.CharField(max_length=200)
    date = models.DateField()
    state = models.CharField(max_length=10, default='NSW')

    def __str__(self):
        return f"{self.name} ({self.date}, {self.state})"

    class Meta:
        db_table = 'public_holidays'
        ordering = ['date']
        unique_together = [('date', 'state')]
