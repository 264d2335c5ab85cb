import logging

from django.utils import timezone

from .models import CronRun
from .rotation import expire_pending_candidates

logger = logging.getLogger(__name__)

EXPIRY_JOB = "expire-candidates"


def run_expiry_sweep():
    """
    Run the expiry sweeper under a CronRun audit record.

    Returns ``{"expiredCount": n, "processedAt": iso timestamp}``. A failed
    sweep is recorded on its CronRun and re-raised.
    """
    run = CronRun.objects.create(job=EXPIRY_JOB)
    try:
        processed_at = timezone.now()
        expired = expire_pending_candidates(now=processed_at)
    except Exception as e:
        logger.error(f"Expiry sweep {run.id} failed: {e}")
        run.fail(e)
        raise

    run.succeed(expired_count=expired)
    logger.info(f"Expiry sweep {run.id} finished, {expired} candidates expired")
    return {
        "expiredCount": expired,
        "processedAt": processed_at.isoformat(),
    }
