import logging

from rest_framework import viewsets, mixins, status
from rest_framework.decorators import action
from rest_framework.response import Response

from .exceptions import AssignmentError
from .models import AssignmentCandidate
from .rotation import accept_candidate, reject_candidate
from .serializers import AssignmentCandidateSerializer

logger = logging.getLogger(__name__)


class AssignmentCandidateViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    Offers made to the requesting developer.
    """

    queryset = AssignmentCandidate.objects.all()
    serializer_class = AssignmentCandidateSerializer

    def get_queryset(self):
        qs = (
            AssignmentCandidate.objects
            .select_related("developer__user", "batch", "project")
            .filter(developer__user=self.request.user)
            .order_by("-assigned_at")
        )

        status_param = self.request.query_params.get("status")
        if status_param:
            qs = qs.filter(response_status=status_param)

        return qs


    @action(detail=True, methods=['post'], url_path='accept')
    def accept(self, request, pk=None):
        return self._respond(accept_candidate, pk, request, "Assignment accepted")


    @action(detail=True, methods=['post'], url_path='reject')
    def reject(self, request, pk=None):
        return self._respond(reject_candidate, pk, request, "Assignment rejected")


    def _respond(self, operation, candidate_id, request, message):
        # Looked up unscoped: another developer's offer fails with
        # NotYourAssignment, not CandidateNotFound.
        try:
            candidate = operation(candidate_id, request.user.pk)
        except AssignmentError as e:
            logger.info(f"{operation.__name__} refused for candidate {candidate_id}: {e.kind}")
            return Response(e.as_payload(), status=e.status_code)

        return Response({
            'success': True,
            'message': message,
            'candidate': self.get_serializer(candidate).data,
        }, status=status.HTTP_200_OK)
