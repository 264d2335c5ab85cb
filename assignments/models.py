from django.db import models
from django.utils import timezone
import uuid

from directory.models import ExperienceLevel


class BatchStatus(models.TextChoices):
    ACTIVE      = "active", "Active"
    COMPLETED   = "completed", "Completed"
    INVALIDATED = "invalidated", "Invalidated"


class ResponseStatus(models.TextChoices):
    PENDING     = "pending", "Pending"
    ACCEPTED    = "accepted", "Accepted"
    REJECTED    = "rejected", "Rejected"
    EXPIRED     = "expired", "Expired"
    INVALIDATED = "invalidated", "Invalidated"


class ClientStatusText:
    """Text shown to the client next to each candidate."""
    CHECKING  = "developer is checking"
    ACCEPTED  = "developer accepted"
    DECLINED  = "developer declined"
    EXPIRED   = "no response in time"
    WITHDRAWN = "offer withdrawn"


class AssignmentBatch(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    project      = models.ForeignKey("projects.Project", on_delete=models.CASCADE, related_name="batches")
    batch_number = models.PositiveIntegerField()
    status       = models.CharField(max_length=16, choices=BatchStatus.choices, default=BatchStatus.ACTIVE)
    selection    = models.JSONField(default=dict, blank=True) # requested counts per level
    created_at   = models.DateTimeField(auto_now_add=True)
    updated_at   = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(fields=["project", "batch_number"], name="unique_batch_number_per_project"),
        ]

    def __str__(self):
        return f"{self.project_id} #{self.batch_number} ({self.status})"

    @property
    def is_active(self):
        return self.status == BatchStatus.ACTIVE


class AssignmentCandidate(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    batch                  = models.ForeignKey(AssignmentBatch, on_delete=models.CASCADE, related_name="candidates")
    project                = models.ForeignKey("projects.Project", on_delete=models.CASCADE, related_name="candidates")
    developer              = models.ForeignKey("directory.DeveloperProfile", on_delete=models.CASCADE, related_name="assignment_candidates")
    level                  = models.CharField(max_length=16, choices=ExperienceLevel.choices) # slot level, after fallback
    response_status        = models.CharField(max_length=16, choices=ResponseStatus.choices, default=ResponseStatus.PENDING)
    assigned_at            = models.DateTimeField(default=timezone.now)
    acceptance_deadline    = models.DateTimeField()
    responded_at           = models.DateTimeField(null=True, blank=True)
    invalidated_at         = models.DateTimeField(null=True, blank=True)
    is_first_accepted      = models.BooleanField(default=False)
    usual_response_time_ms = models.PositiveIntegerField(default=0)
    status_text_for_client = models.CharField(max_length=64, default=ClientStatusText.CHECKING)

    class Meta:
        ordering = ["assigned_at"]
        indexes = [
            models.Index(fields=["response_status", "acceptance_deadline"], name="candidate_status_deadline_idx"),
        ]
        constraints = [
            models.UniqueConstraint(fields=["batch", "developer"], name="unique_developer_per_batch"),
            models.UniqueConstraint(
                fields=["batch"],
                condition=models.Q(is_first_accepted=True),
                name="single_first_accepted_per_batch",
            ),
        ]

    def __str__(self):
        return f"{self.developer_id} in {self.batch_id} ({self.response_status})"

    @property
    def response_time_ms(self):
        if self.responded_at is None:
            return None
        return int((self.responded_at - self.assigned_at).total_seconds() * 1000)


class RotationCursor(models.Model):
    """
    Fairness pointer per (skill, level): the last developer handed a slot
    from that pool. The next generation starts just after it.
    """
    skill             = models.ForeignKey("directory.Skill", on_delete=models.CASCADE, related_name="rotation_cursors")
    level             = models.CharField(max_length=16, choices=ExperienceLevel.choices)
    last_developer_id = models.UUIDField(null=True, blank=True)
    updated_at        = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["skill", "level"], name="unique_cursor_per_skill_level"),
        ]

    def __str__(self):
        return f"{self.skill_id}/{self.level} -> {self.last_developer_id}"


class CronRunStatus(models.TextChoices):
    STARTED   = "started", "Started"
    SUCCEEDED = "succeeded", "Succeeded"
    FAILED    = "failed", "Failed"


class CronRun(models.Model):
    job         = models.CharField(max_length=64)
    status      = models.CharField(max_length=16, choices=CronRunStatus.choices, default=CronRunStatus.STARTED)
    details     = models.JSONField(default=dict, blank=True)
    started_at  = models.DateTimeField(auto_now_add=True)
    finished_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-started_at']

    def __str__(self):
        return f"{self.job} ({self.status})"

    def succeed(self, **details):
        self.status = CronRunStatus.SUCCEEDED
        self.details = {**self.details, **details}
        self.finished_at = timezone.now()
        self.save()

    def fail(self, error):
        self.status = CronRunStatus.FAILED
        self.details = {**self.details, "error": str(error)}
        self.finished_at = timezone.now()
        self.save()
