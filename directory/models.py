from django.conf import settings
from django.db import models
import uuid


class ExperienceLevel(models.TextChoices):
    EXPERT  = "EXPERT", "Expert"
    MID     = "MID", "Mid"
    FRESHER = "FRESHER", "Fresher"


# Highest first; fallback promotion walks this order downwards.
LEVEL_ORDER = (ExperienceLevel.EXPERT.value, ExperienceLevel.MID.value, ExperienceLevel.FRESHER.value)


class ApprovalStatus(models.TextChoices):
    PENDING  = "pending", "Pending"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"


class AvailabilityStatus(models.TextChoices):
    AVAILABLE     = "available", "Available"
    CHECKING      = "checking", "Checking"
    BUSY          = "busy", "Busy"
    NOT_AVAILABLE = "not_available", "Not available"


ROTATION_AVAILABILITY = (AvailabilityStatus.AVAILABLE, AvailabilityStatus.CHECKING)


class Skill(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name        = models.CharField(max_length=128, unique=True)
    slug        = models.SlugField(max_length=128, unique=True)
    category    = models.CharField(max_length=64, blank=True)
    created_at  = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name


class DeveloperProfile(models.Model):
    """
    Read model of a developer as published by the directory.
    Availability and approval are owned elsewhere; the rotation engine
    only reads them.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user                  = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="developer_profile")
    level                 = models.CharField(max_length=16, choices=ExperienceLevel.choices, default=ExperienceLevel.FRESHER)
    admin_approval_status = models.CharField(max_length=16, choices=ApprovalStatus.choices, default=ApprovalStatus.PENDING)
    availability_status   = models.CharField(max_length=16, choices=AvailabilityStatus.choices, default=AvailabilityStatus.AVAILABLE)
    created_at            = models.DateTimeField(auto_now_add=True)
    updated_at            = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.user} ({self.level})"


class DeveloperSkill(models.Model):
    developer = models.ForeignKey(DeveloperProfile, on_delete=models.CASCADE, related_name="skills")
    skill     = models.ForeignKey(Skill, on_delete=models.CASCADE, related_name="developers")
    years     = models.PositiveIntegerField(default=0)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["developer", "skill"], name="unique_developer_skill"),
        ]

    def __str__(self):
        return f"{self.developer_id}:{self.skill_id} ({self.years}y)"
