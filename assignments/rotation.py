"""
Rotation engine.

Generates timed batches of candidate offers for a project, resolves the
race between developers accepting offers of the same batch, and expires
offers whose acceptance window has closed.

Every operation is one database transaction run through ``run_atomic``:
either everything it touches commits, or nothing does. Single-winner
semantics come from conditional updates whose row counts are verified
(claim-and-verify); no in-process lock is involved.
"""
import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass
from datetime import timedelta
from functools import partial
from typing import Optional

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Max
from django.utils import timezone

import notify_client
from directory.models import LEVEL_ORDER, ROTATION_AVAILABILITY, ApprovalStatus, DeveloperSkill, Skill
from projects.models import GENERATION_STATUSES, Project, ProjectStatus

from .exceptions import (
    AlreadyClaimed,
    BatchNotActive,
    CandidateNotFound,
    DeadlinePassed,
    InvalidResponseStatus,
    NoEligibleCandidates,
    NotYourAssignment,
    ProjectNotEligible,
    ProjectNotFound,
)
from .models import (
    AssignmentBatch,
    AssignmentCandidate,
    BatchStatus,
    ClientStatusText,
    ResponseStatus,
    RotationCursor,
)
from .selection import (
    PoolEntry,
    allocate_levels,
    count_by_level,
    cursor_positions,
    merge_pools,
    rotate_after_cursor,
)
from .transactions import run_atomic

logger = logging.getLogger(__name__)

# Offers averaged into a developer's response-time snapshot.
RESPONSE_HISTORY_SIZE = 5


@dataclass
class BatchResult:
    batch: AssignmentBatch
    candidates: list
    requested: dict
    superseded_batch_id: Optional[object] = None

    @property
    def batch_id(self):
        return self.batch.id

    @property
    def filled(self):
        counts = {level: 0 for level in LEVEL_ORDER}
        for candidate in self.candidates:
            counts[candidate.level] += 1
        return counts


@dataclass
class AssignmentStatus:
    project: Project
    batch: Optional[AssignmentBatch]
    candidates: list
    can_refresh: bool


def resolve_counts(counts=None):
    """
    Map a ``{"expert": 3, "mid": 5, "fresher": 5}`` style mapping onto
    level values. Levels the caller leaves out take the configured
    defaults; negative counts become zero.
    """
    merged = {key.lower(): value for key, value in settings.ROTATION_DEFAULT_SELECTION.items()}
    for key, value in (counts or {}).items():
        if value is not None:
            merged[str(key).lower()] = value
    return {level: max(int(merged.get(level.lower(), 0)), 0) for level in LEVEL_ORDER}


# ---------------------------------------------------------------------------
# Generation and refresh
# ---------------------------------------------------------------------------

def generate_batch(project_id, counts=None):
    """
    Create a new batch of offers for ``project_id``.

    An active batch that is still current is superseded: its pending
    offers are withdrawn and the batch is invalidated in the same
    transaction.
    """
    return run_atomic(lambda: _generate_in_tx(project_id, resolve_counts(counts), refresh=False))


def refresh_batch(project_id, counts=None):
    """
    Replace the current batch. Developers of the batch being replaced
    are only re-offered when the fresh pool cannot fill the counts.
    """
    return run_atomic(lambda: _generate_in_tx(project_id, resolve_counts(counts), refresh=True))


def _generate_in_tx(project_id, requested, refresh):
    project = _lock_project(project_id)

    if project.status not in GENERATION_STATUSES:
        raise ProjectNotEligible(project.status)

    if refresh and project.candidates.filter(is_first_accepted=True).exists():
        raise ProjectNotEligible(project.status, "Project already has an accepted developer")

    now = timezone.now()
    previous = project.current_batch
    recycled_ids = set()
    superseded_batch_id = None

    if previous is not None:
        if refresh:
            recycled_ids = set(previous.candidates.values_list("developer_id", flat=True))
        if previous.status == BatchStatus.ACTIVE:
            withdrawn = _invalidate_batch(previous, now)
            superseded_batch_id = previous.id
            logger.info(f"Invalidated batch {previous.id} of project {project.id} ({withdrawn} offers withdrawn)")

    skill_ids = _existing_skill_ids(project.skill_ids)
    cursors = _lock_cursors(skill_ids)
    pools = _build_pools(_eligible_rows(project, skill_ids), skill_ids, cursors, recycled_ids)

    selected = allocate_levels(pools, requested)
    if not selected:
        raise NoEligibleCandidates()

    last_number = project.batches.aggregate(last=Max("batch_number"))["last"] or 0
    batch = AssignmentBatch.objects.create(
        project=project,
        batch_number=last_number + 1,
        status=BatchStatus.ACTIVE,
        selection=requested,
    )

    deadline = now + timedelta(minutes=settings.ROTATION_ACCEPTANCE_WINDOW_MINUTES)
    snapshots = _response_time_snapshots([choice.developer_id for choice in selected])
    candidates = AssignmentCandidate.objects.bulk_create([
        AssignmentCandidate(
            batch=batch,
            project=project,
            developer_id=choice.developer_id,
            level=choice.level,
            response_status=ResponseStatus.PENDING,
            assigned_at=now,
            acceptance_deadline=deadline,
            usual_response_time_ms=snapshots[choice.developer_id],
            status_text_for_client=ClientStatusText.CHECKING,
        )
        for choice in selected
    ])

    for key, developer_id in cursor_positions(pools, selected).items():
        cursor = cursors[key]
        cursor.last_developer_id = developer_id
        cursor.save(update_fields=["last_developer_id", "updated_at"])

    project.status = ProjectStatus.ASSIGNING
    project.current_batch = batch
    project.save(update_fields=["status", "current_batch", "updated_at"])

    transaction.on_commit(partial(
        notify_client.notify_batch_safely,
        batch_id=batch.id,
        project_id=project.id,
        developer_ids=[candidate.developer_id for candidate in candidates],
        acceptance_deadline=deadline,
    ))

    promoted = sum(1 for choice in selected if choice.promoted)
    logger.info(
        f"{'Refreshed' if refresh else 'Generated'} batch #{batch.batch_number} for project {project.id}: "
        f"requested={requested} filled={count_by_level(selected)} promoted={promoted}"
    )
    return BatchResult(
        batch=batch,
        candidates=candidates,
        requested=requested,
        superseded_batch_id=superseded_batch_id,
    )


def _lock_project(project_id):
    try:
        return Project.objects.select_for_update().get(pk=project_id)
    except (Project.DoesNotExist, ValidationError):
        raise ProjectNotFound()


def _invalidate_batch(batch, now):
    withdrawn = batch.candidates.filter(response_status=ResponseStatus.PENDING).update(
        response_status=ResponseStatus.INVALIDATED,
        invalidated_at=now,
        status_text_for_client=ClientStatusText.WITHDRAWN,
    )
    AssignmentBatch.objects.filter(pk=batch.pk, status=BatchStatus.ACTIVE).update(
        status=BatchStatus.INVALIDATED,
        updated_at=now,
    )
    return withdrawn


def _existing_skill_ids(skill_ids):
    """Project skill ids that resolve in the catalog, in project order."""
    parsed = []
    for skill_id in skill_ids:
        try:
            normalized = str(uuid.UUID(str(skill_id)))
        except ValueError:
            logger.warning(f"Ignoring malformed skill id {skill_id!r}")
            continue
        if normalized not in parsed:
            parsed.append(normalized)
    if not parsed:
        return []
    known = {str(pk) for pk in Skill.objects.filter(pk__in=parsed).values_list("pk", flat=True)}
    return [skill_id for skill_id in parsed if skill_id in known]


def _lock_cursors(skill_ids):
    """
    Fetch and lock the cursor of every (skill, level) the project draws
    from. Rows are locked in (skill, level) order so that concurrent
    generations sharing cursors queue up instead of deadlocking.
    """
    for skill_id in sorted(skill_ids):
        for level in LEVEL_ORDER:
            RotationCursor.objects.get_or_create(skill_id=skill_id, level=level)

    cursors = (
        RotationCursor.objects
        .select_for_update()
        .filter(skill_id__in=skill_ids)
        .order_by("skill_id", "level")
    )
    return {(str(cursor.skill_id), cursor.level): cursor for cursor in cursors}


def _eligible_rows(project, skill_ids):
    """(developer id, skill id, level) for every eligible developer-skill pair."""
    engaged = AssignmentCandidate.objects.filter(
        response_status=ResponseStatus.PENDING,
        batch__status=BatchStatus.ACTIVE,
    ).values("developer_id")

    return (
        DeveloperSkill.objects
        .filter(
            skill_id__in=skill_ids,
            developer__admin_approval_status=ApprovalStatus.APPROVED,
            developer__availability_status__in=ROTATION_AVAILABILITY,
        )
        .exclude(developer__user_id=project.client_id)
        .exclude(developer_id__in=engaged)
        .values_list("developer_id", "skill_id", "developer__level")
    )


def _build_pools(rows, skill_ids, cursors, recycled_ids):
    """
    Ordered pool per level. Each (skill, level) pool is sorted by id and
    rotated past its cursor; the skill pools follow the project's skill
    order and recycled developers are moved to the tail.
    """
    by_pool = defaultdict(list)
    for developer_id, skill_id, level in rows:
        by_pool[(str(skill_id), level)].append(developer_id)

    pools = {}
    for level in LEVEL_ORDER:
        fresh, tail = [], []
        for skill_id in skill_ids:
            cursor = cursors.get((skill_id, level))
            ordered = rotate_after_cursor(
                sorted(by_pool.get((skill_id, level), ())),
                cursor.last_developer_id if cursor else None,
            )
            fresh.append([PoolEntry(d, skill_id, level) for d in ordered if d not in recycled_ids])
            tail.append([PoolEntry(d, skill_id, level, recycled=True) for d in ordered if d in recycled_ids])
        pools[level] = merge_pools(fresh + tail)
    return pools


def _response_time_snapshots(developer_ids):
    """Mean response time over each developer's most recent answered offers."""
    history = defaultdict(list)
    rows = (
        AssignmentCandidate.objects
        .filter(
            developer_id__in=developer_ids,
            response_status__in=(ResponseStatus.ACCEPTED, ResponseStatus.REJECTED),
            responded_at__isnull=False,
        )
        .order_by("developer_id", "-responded_at")
        .values_list("developer_id", "assigned_at", "responded_at")
    )
    for developer_id, assigned_at, responded_at in rows:
        samples = history[developer_id]
        if len(samples) < RESPONSE_HISTORY_SIZE:
            samples.append(max((responded_at - assigned_at).total_seconds() * 1000, 0))

    snapshots = {}
    for developer_id in developer_ids:
        samples = history.get(developer_id)
        if samples:
            snapshots[developer_id] = int(sum(samples) / len(samples))
        else:
            snapshots[developer_id] = settings.ROTATION_DEFAULT_RESPONSE_TIME_MS
    return snapshots


# ---------------------------------------------------------------------------
# Accept / reject
# ---------------------------------------------------------------------------

def accept_candidate(candidate_id, user_id):
    """
    Claim the project for the developer behind ``candidate_id``.

    Exactly one candidate per batch can win. A loser that gets past the
    guards fails on the conditional updates with ``AlreadyClaimed``;
    transient conflicts that keep failing surface the same way.
    """
    return run_atomic(lambda: _accept_in_tx(candidate_id, user_id), conflict_error=AlreadyClaimed)


def reject_candidate(candidate_id, user_id):
    """Decline an offer. Allowed after the deadline, unlike accept."""
    return run_atomic(lambda: _reject_in_tx(candidate_id, user_id), conflict_error=AlreadyClaimed)


def _load_candidate(candidate_id):
    try:
        return (
            AssignmentCandidate.objects
            .select_related("batch", "project", "developer")
            .get(pk=candidate_id)
        )
    except (AssignmentCandidate.DoesNotExist, ValidationError):
        raise CandidateNotFound()


def _check_response_guards(candidate, user_id, action):
    if candidate.developer.user_id != user_id:
        raise NotYourAssignment(f"You can only {action} your own assignments")
    if action == "accept" and candidate.project.client_id == user_id:
        raise NotYourAssignment("You cannot accept your own project")
    if candidate.batch.status != BatchStatus.ACTIVE:
        raise BatchNotActive(candidate.batch.status, action)
    if candidate.response_status != ResponseStatus.PENDING:
        raise InvalidResponseStatus(candidate.response_status, action)


def _accept_in_tx(candidate_id, user_id):
    candidate = _load_candidate(candidate_id)
    _check_response_guards(candidate, user_id, "accept")

    now = timezone.now()
    if candidate.acceptance_deadline < now:
        raise DeadlinePassed()
    if candidate.is_first_accepted:
        raise AlreadyClaimed("This candidate has already been marked as first accepted")

    # Claim the project first; a concurrent winner blocks us on this row
    # and leaves nothing matching the filter once it commits.
    claimed = Project.objects.filter(
        pk=candidate.project_id,
        current_batch_id=candidate.batch_id,
        contact_reveal_enabled=False,
        status__in=GENERATION_STATUSES,
    ).update(
        status=ProjectStatus.ACCEPTED,
        contact_reveal_enabled=True,
        contact_revealed_developer_id=candidate.developer_id,
        updated_at=now,
    )
    if claimed != 1:
        raise AlreadyClaimed()

    won = AssignmentCandidate.objects.filter(
        pk=candidate.pk,
        response_status=ResponseStatus.PENDING,
        is_first_accepted=False,
        acceptance_deadline__gte=now,
    ).update(
        response_status=ResponseStatus.ACCEPTED,
        responded_at=now,
        is_first_accepted=True,
        status_text_for_client=ClientStatusText.ACCEPTED,
    )
    if won != 1:
        # Expired or answered between the guards and the claim.
        candidate.refresh_from_db(fields=["response_status", "is_first_accepted"])
        if candidate.response_status != ResponseStatus.PENDING:
            raise InvalidResponseStatus(candidate.response_status, "accept")
        if candidate.is_first_accepted:
            raise AlreadyClaimed("This candidate has already been marked as first accepted")
        raise DeadlinePassed()

    completed = AssignmentBatch.objects.filter(pk=candidate.batch_id, status=BatchStatus.ACTIVE).update(
        status=BatchStatus.COMPLETED,
        updated_at=now,
    )
    if completed != 1:
        raise AlreadyClaimed()

    withdrawn = (
        AssignmentCandidate.objects
        .filter(batch_id=candidate.batch_id, response_status=ResponseStatus.PENDING)
        .exclude(pk=candidate.pk)
        .update(
            response_status=ResponseStatus.INVALIDATED,
            invalidated_at=now,
            status_text_for_client=ClientStatusText.WITHDRAWN,
        )
    )

    logger.info(
        f"Developer {candidate.developer_id} accepted project {candidate.project_id} "
        f"(batch {candidate.batch_id}, {withdrawn} sibling offers withdrawn)"
    )
    candidate.refresh_from_db()
    return candidate


def _reject_in_tx(candidate_id, user_id):
    candidate = _load_candidate(candidate_id)
    _check_response_guards(candidate, user_id, "reject")

    now = timezone.now()
    rejected = AssignmentCandidate.objects.filter(
        pk=candidate.pk,
        response_status=ResponseStatus.PENDING,
    ).update(
        response_status=ResponseStatus.REJECTED,
        responded_at=now,
        status_text_for_client=ClientStatusText.DECLINED,
    )
    if rejected != 1:
        # Lost to the sweeper or an invalidation between read and write.
        candidate.refresh_from_db(fields=["response_status"])
        raise InvalidResponseStatus(candidate.response_status, "reject")

    logger.info(f"Developer {candidate.developer_id} rejected offer {candidate.id} for project {candidate.project_id}")
    candidate.refresh_from_db()
    return candidate


# ---------------------------------------------------------------------------
# Expiry
# ---------------------------------------------------------------------------

def expire_pending_candidates(now=None):
    """Expire every pending offer whose deadline has passed. Returns the count."""
    now = now or timezone.now()

    def sweep():
        return AssignmentCandidate.objects.filter(
            response_status=ResponseStatus.PENDING,
            acceptance_deadline__lt=now,
        ).update(
            response_status=ResponseStatus.EXPIRED,
            responded_at=now,
            status_text_for_client=ClientStatusText.EXPIRED,
        )

    expired = run_atomic(sweep)
    if expired:
        logger.info(f"Expired {expired} pending candidates")
    return expired


# ---------------------------------------------------------------------------
# Read side
# ---------------------------------------------------------------------------

def can_generate_new_batch(project_id):
    return AssignmentBatch.objects.filter(project_id=project_id).count() < settings.ROTATION_MAX_BATCHES_PER_PROJECT


def assignment_status(project_id):
    """Current batch of a project with its offers, experts first."""
    try:
        project = Project.objects.select_related("current_batch").get(pk=project_id)
    except (Project.DoesNotExist, ValidationError):
        raise ProjectNotFound()

    batch = project.current_batch
    candidates = []
    if batch is not None:
        candidates = sorted(
            batch.candidates.select_related("developer__user"),
            key=lambda candidate: (LEVEL_ORDER.index(candidate.level), candidate.assigned_at),
        )

    return AssignmentStatus(
        project=project,
        batch=batch,
        candidates=candidates,
        can_refresh=project.status in GENERATION_STATUSES and can_generate_new_batch(project.id),
    )
