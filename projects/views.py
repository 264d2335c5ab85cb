import logging

from rest_framework import viewsets, mixins, status
from rest_framework.decorators import action
from rest_framework.response import Response

from assignments.exceptions import AssignmentError
from assignments.rotation import assignment_status, generate_batch, refresh_batch
from assignments.serializers import (
    AssignmentBatchSerializer,
    AssignmentCandidateSerializer,
    GenerateBatchSerializer,
    batch_result_payload,
)
from .models import Project
from .serializers import ProjectSerializer

logger = logging.getLogger(__name__)


class ProjectViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    viewsets.GenericViewSet,
):
    """
    Project API for clients: their own projects, plus batch generation,
    refresh and the assignment progress of the current batch.
    """

    queryset = Project.objects.all()
    serializer_class = ProjectSerializer

    def get_queryset(self):
        qs = (
            Project.objects
            .filter(client=self.request.user)
            .order_by("-created_at")
        )

        status_param = self.request.query_params.get("status")
        if status_param:
            qs = qs.filter(status=status_param)

        return qs

    def perform_create(self, serializer):
        project = serializer.save(client=self.request.user)
        logger.info(f"Project {project.id} submitted by user {self.request.user.pk}")


    @action(detail=True, methods=['post'], url_path='batches/generate')
    def generate_batch(self, request, pk=None):
        return self._run_generation(generate_batch, request)


    @action(detail=True, methods=['post'], url_path='batches/refresh')
    def refresh_batch(self, request, pk=None):
        return self._run_generation(refresh_batch, request)


    @action(detail=True, methods=['get'], url_path='assignment')
    def assignment(self, request, pk=None):
        project = self.get_object()

        try:
            current = assignment_status(project.id)
        except AssignmentError as e:
            return Response(e.as_payload(), status=e.status_code)

        return Response({
            'project': self.get_serializer(current.project).data,
            'batch': AssignmentBatchSerializer(current.batch).data if current.batch else None,
            'candidates': AssignmentCandidateSerializer(current.candidates, many=True).data,
            'canRefresh': current.can_refresh,
        }, status=status.HTTP_200_OK)


    def _run_generation(self, operation, request):
        project = self.get_object()

        counts = GenerateBatchSerializer(data=request.data)
        counts.is_valid(raise_exception=True)

        try:
            result = operation(project.id, counts.validated_data)
        except AssignmentError as e:
            logger.warning(f"{operation.__name__} failed for project {project.id}: {e}")
            return Response(e.as_payload(), status=e.status_code)

        return Response(batch_result_payload(result), status=status.HTTP_201_CREATED)
