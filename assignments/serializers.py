from rest_framework import serializers

from .models import AssignmentBatch, AssignmentCandidate


class AssignmentCandidateSerializer(serializers.ModelSerializer):
    developer_name = serializers.SerializerMethodField()
    response_time_ms = serializers.ReadOnlyField()

    class Meta:
        model = AssignmentCandidate
        fields = '__all__'
        read_only_fields = [
            'id',
            'batch',
            'project',
            'developer',
            'level',
            'response_status',
            'assigned_at',
            'acceptance_deadline',
            'responded_at',
            'invalidated_at',
            'is_first_accepted',
            'usual_response_time_ms',
            'status_text_for_client',
        ]

    def get_developer_name(self, obj):
        user = obj.developer.user
        return user.get_full_name() or user.get_username()


class AssignmentBatchSerializer(serializers.ModelSerializer):
    is_active = serializers.ReadOnlyField()

    class Meta:
        model = AssignmentBatch
        fields = '__all__'
        read_only_fields = [
            'id',
            'project',
            'batch_number',
            'status',
            'selection',
            'created_at',
            'updated_at',
        ]


class GenerateBatchSerializer(serializers.Serializer):
    """Requested counts per level; omitted levels use the configured defaults."""
    expert  = serializers.IntegerField(min_value=0, required=False)
    mid     = serializers.IntegerField(min_value=0, required=False)
    fresher = serializers.IntegerField(min_value=0, required=False)

    def validate(self, data):
        if len(data) == len(self.fields) and not any(data.values()):
            raise serializers.ValidationError("At least one level must request a candidate")
        return data


def batch_result_payload(result):
    return {
        'success': True,
        'batch': AssignmentBatchSerializer(result.batch).data,
        'candidates': AssignmentCandidateSerializer(result.candidates, many=True).data,
        'requested': result.requested,
        'filled': result.filled,
        'supersededBatchId': str(result.superseded_batch_id) if result.superseded_batch_id else None,
    }
