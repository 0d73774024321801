from rest_framework import serializers
from .models import DiaryEntry


class DiaryEntrySerializer(serializers.ModelSerializer):
    created_by_name = serializers.CharField(source='created_by.username', read_only=True, default=None)

    class Meta:
        model = DiaryEntry
        fields = ['id', 'title', 'description', 'urgency', 'assigned_to', 'due_date', 'is_completed',
                  'completed_at', 'created_by_name', 'created_at', 'updated_at']
        read_only_fields = ['completed_at', 'created_at', 'updated_at']

    def validate_title(self, value):
        if not value.strip():
            raise serializers.ValidationError('Title is required')
        return value.strip()

    def create(self, validated_data):
        completed = validated_data.pop('is_completed', False)
        entry = DiaryEntry(**validated_data)
        entry.set_completed(completed)
        entry.save()
        return entry

    def update(self, instance, validated_data):
        if 'is_completed' in validated_data:
            instance.set_completed(validated_data.pop('is_completed'))
        return super().update(instance, validated_data)
