import logging

import requests
from django.conf import settings

logger = logging.getLogger(__name__)


class NotificationError(Exception):
    pass


def _headers():
    headers = {
        'content-type': 'application/json'
    }
    if settings.NOTIFY_AUTH_TOKEN:
        headers['Authorization'] = f"Bearer {settings.NOTIFY_AUTH_TOKEN}"
    return headers


def send_batch_notifications(*, batch_id, project_id, developer_ids, acceptance_deadline):
    """
    Tell the notification service which developers hold a new offer.
    Returns False when notifications are not configured.
    """
    if not settings.NOTIFY_BASE_URL:
        logger.debug(f"Notifications disabled, skipping batch {batch_id}")
        return False

    url = f"{settings.NOTIFY_BASE_URL}/notifications/batches"

    payload = {
        "batchId": str(batch_id),
        "projectId": str(project_id),
        "developerIds": [str(developer_id) for developer_id in developer_ids],
        "acceptanceDeadline": acceptance_deadline.isoformat(),
        "template": "new_batch_offer",
    }

    try:
        response = requests.post(
            url,
            json=payload,
            headers=_headers(),
            timeout=settings.NOTIFY_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        return True

    except requests.exceptions.Timeout:
        raise NotificationError("Notification service request timed out")

    except requests.exceptions.ConnectionError as e:
        raise NotificationError(f"Failed to connect to notification service: {str(e)}")

    except requests.exceptions.RequestException as e:
        raise NotificationError(f"Notification request failed: {str(e)}")


def notify_batch_safely(**kwargs):
    """on_commit hook: a failed notification never touches the committed batch."""
    try:
        return send_batch_notifications(**kwargs)
    except NotificationError as e:
        logger.error(f"Failed to send notifications for batch {kwargs.get('batch_id')}: {e}")
        return False
