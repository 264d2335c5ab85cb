import uuid

from rest_framework import serializers

from directory.models import Skill
from .models import Project


class ProjectSerializer(serializers.ModelSerializer):
    is_claimable = serializers.ReadOnlyField()

    class Meta:
        model = Project
        fields = "__all__"
        read_only_fields = [
            "id",
            "client",
            "status",
            "current_batch",
            "contact_reveal_enabled",
            "contact_revealed_developer",
            "created_at",
            "updated_at",
        ]

    def validate_skills_required(self, value):
        """
        Ordered list of Skill ids; the order is the fall-through order
        used when building candidate pools.
        """
        if not isinstance(value, list) or not value:
            raise serializers.ValidationError("skills_required must be a non-empty list of skill ids")

        normalized = []
        for item in value:
            try:
                skill_id = str(uuid.UUID(str(item)))
            except ValueError:
                raise serializers.ValidationError(f"'{item}' is not a valid skill id")
            if skill_id not in normalized:
                normalized.append(skill_id)

        known = {str(pk) for pk in Skill.objects.filter(pk__in=normalized).values_list("pk", flat=True)}
        missing = [skill_id for skill_id in normalized if skill_id not in known]
        if missing:
            raise serializers.ValidationError(f"Unknown skills: {', '.join(missing)}")

        return normalized
