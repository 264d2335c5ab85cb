import itertools
from datetime import timedelta

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient

from assignments.models import AssignmentCandidate
from directory.models import (
    ApprovalStatus,
    AvailabilityStatus,
    DeveloperProfile,
    DeveloperSkill,
    ExperienceLevel,
    Skill,
)
from projects.models import Project, ProjectStatus


_sequence = itertools.count(1)


@pytest.fixture(autouse=True)
def _quiet_notifications(settings):
    settings.NOTIFY_BASE_URL = ""
    settings.CRON_SECRET = ""


@pytest.fixture
def make_user(db):
    def _make(username=None, **extra):
        username = username or f"user{next(_sequence)}"
        return get_user_model().objects.create_user(username=username, password="secret", **extra)
    return _make


@pytest.fixture
def make_skill(db):
    def _make(name=None):
        name = name or f"Skill {next(_sequence)}"
        return Skill.objects.create(name=name, slug=name.lower().replace(" ", "-"))
    return _make


@pytest.fixture
def make_developer(db, make_user):
    def _make(
        level=ExperienceLevel.EXPERT,
        skills=(),
        approval=ApprovalStatus.APPROVED,
        availability=AvailabilityStatus.AVAILABLE,
        user=None,
    ):
        profile = DeveloperProfile.objects.create(
            user=user or make_user(),
            level=level,
            admin_approval_status=approval,
            availability_status=availability,
        )
        for skill in skills:
            DeveloperSkill.objects.create(developer=profile, skill=skill, years=3)
        return profile
    return _make


@pytest.fixture
def make_pool(make_developer):
    """Create ``expert``/``mid``/``fresher`` approved developers holding ``skill``."""
    def _make(skill, expert=0, mid=0, fresher=0):
        pool = {}
        for level, size in (
            (ExperienceLevel.EXPERT, expert),
            (ExperienceLevel.MID, mid),
            (ExperienceLevel.FRESHER, fresher),
        ):
            developers = [make_developer(level=level, skills=[skill]) for _ in range(size)]
            pool[level.value] = sorted(developers, key=lambda developer: developer.id)
        return pool
    return _make


@pytest.fixture
def make_project(db, make_user):
    def _make(skills=(), client=None, status=ProjectStatus.SUBMITTED, title=None):
        return Project.objects.create(
            client=client or make_user(),
            title=title or f"Project {next(_sequence)}",
            skills_required=[str(skill.id) for skill in skills],
            status=status,
        )
    return _make


@pytest.fixture
def expire_offers():
    """Push the deadline of every pending offer into the past."""
    def _expire(batch=None):
        qs = AssignmentCandidate.objects.filter(response_status="pending")
        if batch is not None:
            qs = qs.filter(batch=batch)
        qs.update(acceptance_deadline=timezone.now() - timedelta(minutes=1))
    return _expire


@pytest.fixture
def api_client():
    return APIClient()
