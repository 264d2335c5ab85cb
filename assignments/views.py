import logging

from django.conf import settings
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from .expiry import run_expiry_sweep

logger = logging.getLogger(__name__)


class ExpireCandidatesView(APIView):
    """
    Cron trigger for the expiry sweeper. Authenticated with
    ``Authorization: Bearer <CRON_SECRET>`` when a secret is configured.
    """

    authentication_classes = []
    permission_classes = [AllowAny,]

    def post(self, request):
        secret = settings.CRON_SECRET
        if secret and request.headers.get("Authorization") != f"Bearer {secret}":
            return Response(
                {'success': False, 'error': 'Unauthorized'},
                status=status.HTTP_401_UNAUTHORIZED
            )

        try:
            result = run_expiry_sweep()
        except Exception as e:
            logger.exception("Expiry sweep failed")
            return Response(
                {'success': False, 'error': f'Failed to expire candidates: {str(e)}'},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        return Response({
            'success': True,
            'data': result,
        }, status=status.HTTP_200_OK)
