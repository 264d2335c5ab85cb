from django.urls import path
from rest_framework.routers import DefaultRouter

from .candidate_views import AssignmentCandidateViewSet
from .views import ExpireCandidatesView


router = DefaultRouter()
router.register(r"candidates", AssignmentCandidateViewSet, basename="candidates")

urlpatterns = router.urls + [
    path("cron/expire-candidates/", ExpireCandidatesView.as_view(), name="cron-expire-candidates"),
]
