from django.conf import settings
from django.db import models
import uuid


class ProjectStatus(models.TextChoices):
    SUBMITTED   = "submitted", "Submitted"
    ASSIGNING   = "assigning", "Assigning"
    ACCEPTED    = "accepted", "Accepted"
    IN_PROGRESS = "in_progress", "In progress"
    COMPLETED   = "completed", "Completed"
    CANCELLED   = "cancelled", "Cancelled"


# Statuses from which a batch may be generated or refreshed, and from
# which a developer may still claim the project.
GENERATION_STATUSES = (ProjectStatus.SUBMITTED, ProjectStatus.ASSIGNING)


class Project(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    client                          = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="projects")
    title                           = models.CharField(max_length=255)
    description                     = models.TextField(blank=True)
    skills_required                 = models.JSONField(default=list, blank=True) # ordered Skill ids
    status                          = models.CharField(max_length=16, choices=ProjectStatus.choices, default=ProjectStatus.SUBMITTED)
    current_batch                   = models.ForeignKey("assignments.AssignmentBatch", null=True, blank=True, on_delete=models.SET_NULL, related_name="+")
    contact_reveal_enabled          = models.BooleanField(default=False)
    contact_revealed_developer      = models.ForeignKey("directory.DeveloperProfile", null=True, blank=True, on_delete=models.SET_NULL, related_name="revealed_projects")
    created_at                      = models.DateTimeField(auto_now_add=True)
    updated_at                      = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.title}"

    @property
    def skill_ids(self):
        """Required skill ids as strings, de-duplicated, in declared order."""
        seen = []
        for skill_id in self.skills_required or []:
            key = str(skill_id)
            if key not in seen:
                seen.append(key)
        return seen

    @property
    def is_claimable(self):
        return self.status in GENERATION_STATUSES and not self.contact_reveal_enabled
