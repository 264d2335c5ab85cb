from django.core.management.base import BaseCommand

from assignments.expiry import run_expiry_sweep


class Command(BaseCommand):
    help = "Expire pending assignment candidates whose acceptance deadline has passed"

    def handle(self, *args, **options):
        result = run_expiry_sweep()
        self.stdout.write(
            self.style.SUCCESS(f"Expired {result['expiredCount']} candidates at {result['processedAt']}")
        )
