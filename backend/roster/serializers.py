from rest_framework import serializers
from .models import Staff, Roster, Shift, PublicHoliday
from .costing import calculate_hours, parse_time


class StaffSerializer(serializers.ModelSerializer):
    class Meta:
        model = Staff
        fields = ['id', 'name', 'role', 'base_hourly_rate', 'saturday_hourly_rate', 'sunday_hourly_rate',
                  'public_holiday_hourly_rate', 'tax_rate', 'super_rate', 'email', 'phone', 'is_active',
                  'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']
        # Duplicate names are reported as a 409 by the views
        extra_kwargs = {'name': {'validators': []}}

    def validate(self, attrs):
        for field in ('base_hourly_rate', 'saturday_hourly_rate', 'sunday_hourly_rate',
                      'public_holiday_hourly_rate', 'tax_rate', 'super_rate'):
            value = attrs.get(field)
            if value is not None and value < 0:
                raise serializers.ValidationError({field: 'Cannot be negative'})
        return attrs


class ShiftSerializer(serializers.ModelSerializer):
    staff_id = serializers.IntegerField(source='staff.id', read_only=True)
    staff_name = serializers.CharField(source='staff.name', read_only=True)
    hours = serializers.SerializerMethodField()

    class Meta:
        model = Shift
        fields = ['id', 'staff_id', 'staff_name', 'day_of_week', 'start_time', 'end_time', 'break_minutes',
                  'hours', 'role', 'is_backup_barista', 'notes']

    def get_hours(self, obj):
        return calculate_hours(obj.start_time, obj.end_time, obj.break_minutes)


class ShiftInputSerializer(serializers.Serializer):
    staff_id = serializers.IntegerField()
    day_of_week = serializers.IntegerField(min_value=0, max_value=6)
    start_time = serializers.RegexField(r'^([01]\d|2[0-3]):[0-5]\d$',
                                        error_messages={'invalid': 'Time must be in HH:MM format'})
    end_time = serializers.RegexField(r'^([01]\d|2[0-3]):[0-5]\d$',
                                      error_messages={'invalid': 'Time must be in HH:MM format'})
    break_minutes = serializers.IntegerField(min_value=0, required=False, default=0)
    role = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    is_backup_barista = serializers.BooleanField(required=False, default=False)
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    def validate_staff_id(self, value):
        if not Staff.objects.filter(pk=value).exists():
            raise serializers.ValidationError(f'Staff member {value} does not exist')
        return value

    def validate(self, attrs):
        if parse_time(attrs['end_time']) <= parse_time(attrs['start_time']):
            raise serializers.ValidationError({'end_time': 'End time must be after start time'})
        return attrs


class RosterSerializer(serializers.ModelSerializer):
    shifts = ShiftSerializer(many=True, read_only=True)

    class Meta:
        model = Roster
        fields = ['id', 'week_start_date', 'status', 'shifts', 'created_at', 'updated_at']


class PublicHolidaySerializer(serializers.ModelSerializer):
    class Meta:
        model = PublicHoliday
        fields = ['id', 'name', 'date', 'state']
        validators = []
