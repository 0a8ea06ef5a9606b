from django.core.management.base import BaseCommand
from services.delivery_management import sweep_expired_offers


class Command(BaseCommand):
    help = "Expire delivery offers past their response window and redispatch the deliveries."

    def handle(self, *args, **options):
        result = sweep_expired_offers()

        if result.nothing_to_do:
            self.stdout.write("No expired offers.")
            return

        self.stdout.write(
            self.style.SUCCESS(
                f"Expired {result.processed_count} offer(s), repaired {result.repaired_count}, "
                f"retried {result.retried_count} stalled; "
                f"redispatched {result.reoffered_count} deliver{'y' if result.reoffered_count == 1 else 'ies'}."
            )
        )
        if result.failed_count:
            self.stderr.write(f"{result.failed_count} offer(s) could not be closed, see the log.")
